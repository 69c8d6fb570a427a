# survey_utils/survey_engine/grouping.py
"""
Hierarchical grouping of survey submissions

Builds chart-ready series:
- distribution(): village / block / district rows, granularity chosen by the filter
- year_series(): one row per financial year
- population_pyramid(): fixed age buckets split by gender

Each public function takes raw records; the *_from_frames variants take
already-built SurveyFrames and are what the data processor calls.
"""

import logging
from dataclasses import dataclass
from typing import Any, Iterable

import numpy as np
import pandas as pd

from .constants import AGE_BUCKETS, ALL
from .filters import FilterState, apply_filters
from .frames import SurveyFrames, frames_from_records

logger = logging.getLogger(__name__)

VILLAGE_COLUMNS = ['name', 'population', 'households']
AREA_COLUMNS = ['name', 'population', 'households', 'schools', 'gp_count']

YEAR_SERIES_COLUMNS = [
    'financial_year',
    'population',
    'households',
    'male',
    'female',
    'migrants',
    'seasonal_male',
    'seasonal_female',
    'permanent_male',
    'permanent_female',
    'schools',
]

PYRAMID_COLUMNS = ['age_group', 'male', 'female']


@dataclass
class Distribution:
    """
    Attributes:
        title: Describes the active granularity
        level: 'village', 'block' or 'district'
        rows: DataFrame with VILLAGE_COLUMNS or AREA_COLUMNS
    """
    title: str
    level: str
    rows: pd.DataFrame

    @property
    def is_empty(self) -> bool:
        return self.rows.empty

    def to_records(self):
        return self.rows.to_dict('records')


# =============================================================================
# DISTRIBUTION
# =============================================================================

def _village_rows(frames: SurveyFrames) -> pd.DataFrame:
    demo = frames.demographics
    if demo.empty:
        return pd.DataFrame(columns=VILLAGE_COLUMNS)

    rows = demo.groupby('village', sort=False).agg(
        population=('totalPopulation', 'sum'),
        households=('households', 'sum'),
    ).reset_index().rename(columns={'village': 'name'})

    return rows[VILLAGE_COLUMNS]


def _area_rows(frames: SurveyFrames, key: str) -> pd.DataFrame:
    """Rows per district or block, in first-appearance order of the records."""
    records = frames.records
    if records.empty:
        return pd.DataFrame(columns=AREA_COLUMNS)

    base = records.groupby(key, sort=False).agg(gp_count=('gp_name', 'nunique'))

    population = frames.demographics.groupby(key, sort=False)['totalPopulation'].sum()
    households = frames.demographics.groupby(key, sort=False)['households'].sum()
    schools = frames.schools.groupby(key, sort=False).size()

    base['population'] = population.reindex(base.index, fill_value=0)
    base['households'] = households.reindex(base.index, fill_value=0)
    base['schools'] = schools.reindex(base.index, fill_value=0)

    rows = base.reset_index().rename(columns={key: 'name'})
    for column in ('population', 'households', 'schools', 'gp_count'):
        rows[column] = rows[column].astype(int)

    return rows[AREA_COLUMNS]


def distribution_from_frames(frames: SurveyFrames, filter_state: FilterState) -> Distribution:
    """Granularity: gp selected -> villages; district selected -> blocks; else districts."""
    if filter_state.gp != ALL:
        return Distribution(
            title=f"Village-wise Distribution - {filter_state.gp}",
            level='village',
            rows=_village_rows(frames),
        )

    if filter_state.district != ALL:
        return Distribution(
            title=f"Block-wise Distribution - {filter_state.district}",
            level='block',
            rows=_area_rows(frames, 'block'),
        )

    return Distribution(
        title="District-wise Distribution",
        level='district',
        rows=_area_rows(frames, 'district'),
    )


def distribution(records: Iterable[Any], filter_state: FilterState = None) -> Distribution:
    """
    Distribution rows for the records matching filter_state.

    Args:
        records: All records (filtered here)
        filter_state: Current selection

    Returns:
        Distribution with title and rows
    """
    filter_state = filter_state or FilterState()
    frames = frames_from_records(apply_filters(records, filter_state))
    return distribution_from_frames(frames, filter_state)


# =============================================================================
# YEAR SERIES
# =============================================================================

def year_series_from_frames(frames: SurveyFrames) -> pd.DataFrame:
    """One row per financial year, ascending by label."""
    records = frames.records
    if records.empty:
        return pd.DataFrame(columns=YEAR_SERIES_COLUMNS)

    demo = frames.demographics.copy()

    # Male/female totals fall back to the age-bucket sums when missing
    age_male = sum(demo[male] for male, _ in AGE_BUCKETS.values())
    age_female = sum(demo[female] for _, female in AGE_BUCKETS.values())
    demo['male'] = np.where(demo['malePopulation'] > 0, demo['malePopulation'], age_male)
    demo['female'] = np.where(demo['femalePopulation'] > 0, demo['femalePopulation'], age_female)

    migration = frames.migration

    years = pd.DataFrame(index=pd.Index(sorted(records['financial_year'].unique()), name='financial_year'))

    by_year_demo = demo.groupby('financial_year')
    years['population'] = by_year_demo['totalPopulation'].sum()
    years['households'] = by_year_demo['households'].sum()
    years['male'] = by_year_demo['male'].sum()
    years['female'] = by_year_demo['female'].sum()

    by_year_migration = migration.groupby('financial_year')
    years['seasonal_male'] = by_year_migration['seasonalMigrantsMale'].sum()
    years['seasonal_female'] = by_year_migration['seasonalMigrantsFemale'].sum()
    years['permanent_male'] = by_year_migration['permanentMigrantsMale'].sum()
    years['permanent_female'] = by_year_migration['permanentMigrantsFemale'].sum()

    years['schools'] = frames.schools.groupby('financial_year').size()

    years = years.fillna(0)
    years['migrants'] = (
        years['seasonal_male'] + years['seasonal_female']
        + years['permanent_male'] + years['permanent_female']
    )

    result = years.reset_index()
    for column in YEAR_SERIES_COLUMNS[1:]:
        result[column] = result[column].astype(int)

    return result[YEAR_SERIES_COLUMNS]


def year_series(records: Iterable[Any]) -> pd.DataFrame:
    return year_series_from_frames(frames_from_records(records))


# =============================================================================
# POPULATION PYRAMID
# =============================================================================

def population_pyramid_from_frames(frames: SurveyFrames) -> pd.DataFrame:
    """Rows for 0-14, 15-60 and 60+, always all three, zero when there is no data."""
    demo = frames.demographics
    rows = []
    for bucket, (male, female) in AGE_BUCKETS.items():
        rows.append({
            'age_group': bucket,
            'male': int(demo[male].sum()) if not demo.empty else 0,
            'female': int(demo[female].sum()) if not demo.empty else 0,
        })
    return pd.DataFrame(rows, columns=PYRAMID_COLUMNS)


def population_pyramid(records: Iterable[Any]) -> pd.DataFrame:
    return population_pyramid_from_frames(frames_from_records(records))
