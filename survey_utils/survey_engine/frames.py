# survey_utils/survey_engine/frames.py
"""
Flatten normalized submissions into pandas DataFrames

Every frame carries the record dimensions (record_index, gp_name, district,
block, financial_year) so any frame can be scoped to a filtered record set
with a single isin() on record_index. Frames always have their full column
set, even when empty, so sums over an empty selection are 0.
"""

import logging
from dataclasses import dataclass, fields
from typing import Iterable, List, Sequence

import pandas as pd

from .constants import (
    DEMOGRAPHICS_INT_FIELDS,
    FINANCE_FIELDS,
    LAND_USE_FLOAT_FIELDS,
    MIGRATION_INT_FIELDS,
    ROAD_FLOAT_FIELDS,
    SCHOOL_INT_FIELDS,
)
from .normalizer import NormalizedSubmission, normalize_record
from .records import SurveyRecord, coerce_records

logger = logging.getLogger(__name__)

DIM_COLUMNS = ['record_index', 'gp_name', 'district', 'block', 'financial_year']

RECORD_COLUMNS = DIM_COLUMNS + ['user_id', 'submitted_at', 'last_touched', 'village_count']
DEMOGRAPHICS_COLUMNS = DIM_COLUMNS + ['village'] + DEMOGRAPHICS_INT_FIELDS
SCHOOL_COLUMNS = DIM_COLUMNS + ['village', 'name', 'infrastructureStatus'] + SCHOOL_INT_FIELDS
MIGRATION_COLUMNS = DIM_COLUMNS + ['village'] + MIGRATION_INT_FIELDS
ROAD_COLUMNS = DIM_COLUMNS + ['village'] + ROAD_FLOAT_FIELDS
LAND_USE_COLUMNS = DIM_COLUMNS + ['village'] + LAND_USE_FLOAT_FIELDS
WATER_COLUMNS = DIM_COLUMNS + ['village', 'kind', 'type', 'condition', 'status', 'irrigationPotential']
FINANCE_COLUMNS = DIM_COLUMNS + FINANCE_FIELDS + ['total_revenue']


@dataclass
class SurveyFrames:
    """Tabular view of a set of normalized submissions."""
    records: pd.DataFrame
    demographics: pd.DataFrame
    schools: pd.DataFrame
    migration: pd.DataFrame
    roads: pd.DataFrame
    land_use: pd.DataFrame
    water: pd.DataFrame
    finances: pd.DataFrame

    def subset(self, record_indexes: Iterable[int]) -> 'SurveyFrames':
        """Restrict every frame to the given record indexes."""
        keep = set(record_indexes)
        return SurveyFrames(**{
            f.name: getattr(self, f.name)[getattr(self, f.name)['record_index'].isin(keep)]
            for f in fields(self)
        })

    @property
    def is_empty(self) -> bool:
        return self.records.empty


def _dims(index: int, record: SurveyRecord) -> dict:
    return {
        'record_index': index,
        'gp_name': record.gp_name,
        'district': record.district,
        'block': record.block,
        'financial_year': record.financial_year,
    }


def _frame(rows: List[dict], columns: Sequence[str]) -> pd.DataFrame:
    return pd.DataFrame(rows, columns=list(columns))


def build_frames(submissions: Sequence[NormalizedSubmission]) -> SurveyFrames:
    """
    Build all frames in a single pass over the submissions.

    Args:
        submissions: Normalized submissions; position in the sequence becomes record_index

    Returns:
        SurveyFrames
    """
    record_rows, demo_rows, school_rows = [], [], []
    migration_rows, road_rows, land_rows = [], [], []
    water_rows, finance_rows = [], []

    for index, sub in enumerate(submissions):
        record = sub.record
        dims = _dims(index, record)

        record_rows.append({
            **dims,
            'user_id': record.user_id,
            'submitted_at': record.submitted_at,
            'last_touched': record.last_touched,
            'village_count': len(sub.village_names),
        })

        for village, row in sub.demographics.items():
            demo_rows.append({**dims, 'village': village, **{f: row[f] for f in DEMOGRAPHICS_INT_FIELDS}})

        for village, schools in sub.education.items():
            for school in schools:
                school_rows.append({
                    **dims,
                    'village': village,
                    'name': school.get('name', ''),
                    'infrastructureStatus': school.get('infrastructureStatus', ''),
                    **{f: school[f] for f in SCHOOL_INT_FIELDS},
                })

        for village, row in sub.migration.items():
            migration_rows.append({**dims, 'village': village, **{f: row[f] for f in MIGRATION_INT_FIELDS}})

        for village, row in sub.roads.items():
            road_rows.append({**dims, 'village': village, **{f: row[f] for f in ROAD_FLOAT_FIELDS}})

        for village, row in sub.land_use.get('landUseData', {}).items():
            land_rows.append({**dims, 'village': village, **{f: row[f] for f in LAND_USE_FLOAT_FIELDS}})

        for kind, key in (('water_body', 'waterBodies'), ('irrigation_structure', 'irrigationStructures')):
            for village, items in sub.water.get(key, {}).items():
                for item in items:
                    water_rows.append({
                        **dims,
                        'village': village,
                        'kind': kind,
                        'type': item.get('type', ''),
                        'condition': item.get('condition', ''),
                        'status': item.get('status', ''),
                        'irrigationPotential': item['irrigationPotential'],
                    })

        if sub.finances:
            finance_rows.append({
                **dims,
                **sub.finances,
                'total_revenue': sum(sub.finances[f] for f in FINANCE_FIELDS),
            })

    frames = SurveyFrames(
        records=_frame(record_rows, RECORD_COLUMNS),
        demographics=_frame(demo_rows, DEMOGRAPHICS_COLUMNS),
        schools=_frame(school_rows, SCHOOL_COLUMNS),
        migration=_frame(migration_rows, MIGRATION_COLUMNS),
        roads=_frame(road_rows, ROAD_COLUMNS),
        land_use=_frame(land_rows, LAND_USE_COLUMNS),
        water=_frame(water_rows, WATER_COLUMNS),
        finances=_frame(finance_rows, FINANCE_COLUMNS),
    )

    logger.debug(
        f"Built survey frames: {len(record_rows)} records, {len(demo_rows)} villages, "
        f"{len(school_rows)} schools, {len(water_rows)} water items"
    )
    return frames


def frames_from_records(records) -> SurveyFrames:
    """Convenience: raw dicts or SurveyRecords -> normalized -> frames."""
    return build_frames([normalize_record(r) for r in coerce_records(records)])
