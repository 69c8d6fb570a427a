# survey_utils/survey_engine/metrics.py
"""
Metric calculations for survey submissions

Handles all numeric roll-ups:
- Overview totals (population, schools, migrants, revenue, land, water)
- Distinct GP count and data submission rate
- Per-GP panchayat finance and road breakdowns
- Single-submission snapshot metrics (social, education, health, economic,
  road infrastructure, environmental), optionally narrowed to one village
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List

import pandas as pd

from .constants import (
    ALL,
    FINANCE_FIELDS,
    FINANCE_LABELS,
    HEALTH_FACILITY_LISTS,
    HEALTH_STATUSES,
    MIGRANT_FIELDS,
    REPAIR_STATUSES,
    ROAD_FLOAT_FIELDS,
    ROAD_LABELS,
)
from .frames import SurveyFrames, frames_from_records
from .normalizer import (
    NormalizedSubmission,
    filter_irrigation_structures,
    filter_water_bodies,
    village_matches,
)

logger = logging.getLogger(__name__)


def safe_ratio(numerator: float, denominator: float, scale: float = 1.0) -> float:
    """numerator / denominator * scale, or 0 when the denominator is 0."""
    if not denominator:
        return 0
    return numerator / denominator * scale


def _sum(df: pd.DataFrame, column: str, as_int: bool = True):
    if df.empty:
        return 0 if as_int else 0.0
    total = df[column].sum()
    return int(total) if as_int else float(total)


@dataclass(frozen=True)
class AggregateMetrics:
    """Named totals over a set of submissions. All zeros for an empty set."""
    total_population: int = 0
    total_households: int = 0
    total_schools: int = 0
    total_teachers: int = 0
    total_students: int = 0
    total_migrants: int = 0
    total_mgnregs_cards: int = 0
    total_revenue: int = 0
    total_water_bodies: int = 0
    total_forest_area: float = 0.0
    total_agricultural_area: float = 0.0
    gp_count: int = 0
    record_count: int = 0
    data_submission_rate: float = 0

    def to_dict(self) -> Dict[str, Any]:
        """camelCase keys, as consumed by the dashboard cards."""
        return {
            'totalPopulation': self.total_population,
            'totalHouseholds': self.total_households,
            'totalSchools': self.total_schools,
            'totalTeachers': self.total_teachers,
            'totalStudents': self.total_students,
            'totalMigrants': self.total_migrants,
            'totalMGNREGSCards': self.total_mgnregs_cards,
            'totalRevenue': self.total_revenue,
            'totalWaterBodies': self.total_water_bodies,
            'totalForestArea': self.total_forest_area,
            'totalAgriculturalArea': self.total_agricultural_area,
            'gpCount': self.gp_count,
            'recordCount': self.record_count,
            'dataSubmissionRate': self.data_submission_rate,
        }


class SurveyMetrics:
    """
    Metric calculations over flattened survey frames.

    Usage:
        metrics = SurveyMetrics(frames)

        overview = metrics.calculate_overview_metrics()
        finance_df = metrics.gp_finance_breakdown()
    """

    def __init__(self, frames: SurveyFrames):
        self.frames = frames

    # =========================================================================
    # OVERVIEW METRICS
    # =========================================================================

    def calculate_overview_metrics(self) -> AggregateMetrics:
        """
        Totals across every record in the frames.

        Returns:
            AggregateMetrics (zero-valued when there are no records)
        """
        f = self.frames

        if f.is_empty:
            return AggregateMetrics()

        record_count = len(f.records)
        gp_count = int(f.records['gp_name'].nunique())

        schools = f.schools
        total_teachers = _sum(schools, 'teachersMale') + _sum(schools, 'teachersFemale')

        migration = f.migration
        total_migrants = sum(_sum(migration, name) for name in MIGRANT_FIELDS)

        water = f.water
        water_bodies = water[water['kind'] == 'water_body'] if not water.empty else water

        return AggregateMetrics(
            total_population=_sum(f.demographics, 'totalPopulation'),
            total_households=_sum(f.demographics, 'households'),
            total_schools=len(schools),
            total_teachers=total_teachers,
            total_students=_sum(schools, 'studentsTotal'),
            total_migrants=total_migrants,
            total_mgnregs_cards=_sum(migration, 'householdsWithMGNREGSCards'),
            total_revenue=_sum(f.finances, 'total_revenue'),
            total_water_bodies=len(water_bodies),
            total_forest_area=_sum(f.land_use, 'forestArea', as_int=False),
            total_agricultural_area=_sum(f.land_use, 'cultivableArea', as_int=False),
            gp_count=gp_count,
            record_count=record_count,
            data_submission_rate=safe_ratio(record_count, gp_count, 100),
        )

    # =========================================================================
    # FINANCES
    # =========================================================================

    def gp_finance_breakdown(self) -> pd.DataFrame:
        """
        Revenue sources per GP, summed across years, sorted by total revenue.

        Returns:
            DataFrame with columns: gp_name, district, block, CFC, SFC,
            Own Sources, MGNREGS, total_revenue
        """
        columns = ['gp_name', 'district', 'block'] + [FINANCE_LABELS[f] for f in FINANCE_FIELDS] + ['total_revenue']
        finances = self.frames.finances

        if finances.empty:
            return pd.DataFrame(columns=columns)

        result = finances.groupby('gp_name', sort=False).agg(
            district=('district', 'first'),
            block=('block', 'first'),
            **{FINANCE_LABELS[f]: (f, 'sum') for f in FINANCE_FIELDS},
            total_revenue=('total_revenue', 'sum'),
        ).reset_index()

        result = result.sort_values('total_revenue', ascending=False, kind='stable').reset_index(drop=True)
        return result[columns]

    # =========================================================================
    # ROADS
    # =========================================================================

    def road_breakdown(self) -> pd.DataFrame:
        """
        Road lengths per GP, summed over villages and years, longest CC road first.

        Returns:
            DataFrame with columns: gp_name, district, block, Total CC Road,
            CC Road Required, Repair Required, Kuchha Road
        """
        columns = ['gp_name', 'district', 'block'] + [ROAD_LABELS[f] for f in ROAD_FLOAT_FIELDS]
        roads = self.frames.roads

        if roads.empty:
            return pd.DataFrame(columns=columns)

        result = roads.groupby('gp_name', sort=False).agg(
            district=('district', 'first'),
            block=('block', 'first'),
            **{ROAD_LABELS[f]: (f, 'sum') for f in ROAD_FLOAT_FIELDS},
        ).reset_index()

        result = result.sort_values(ROAD_LABELS['totalCCRoad'], ascending=False, kind='stable')
        return result[columns].round(2).reset_index(drop=True)


# =============================================================================
# SNAPSHOT METRICS (single submission)
# =============================================================================

def _select(mapping: Dict[str, Any], village: str) -> List[Any]:
    if village == ALL:
        return list(mapping.values())
    return [value for name, value in mapping.items() if village_matches(name, village)]


def _water_items(sub: NormalizedSubmission, key: str, village: str) -> List[Dict[str, Any]]:
    buckets = sub.water.get(key, {})
    if village == ALL:
        return [item for items in buckets.values() for item in items]

    matched = [item for name, items in buckets.items() if village_matches(name, village) for item in items]
    # Items bucketed under another village may still list this one among their locations
    others = [item for name, items in buckets.items() if not village_matches(name, village) for item in items]
    if key == 'waterBodies':
        matched += filter_water_bodies(others, village)
    else:
        matched += filter_irrigation_structures(others, village)
    return matched


def _facility_location(facility: Dict[str, Any]) -> str:
    return str(facility.get('location') or facility.get('village') or '')


def _health_section(sub: NormalizedSubmission, village: str) -> Dict[str, Any]:
    facilities = {}
    for name in HEALTH_FACILITY_LISTS:
        items = sub.health.get(name, [])
        if village != ALL:
            # Facilities outside any surveyed village only count for the whole GP
            items = [f for f in items if village_matches(_facility_location(f), village)]
        facilities[name] = items

    return {
        'facility_counts': {name: len(items) for name, items in facilities.items()},
        'status_counts': {
            name: {status: sum(1 for f in items if f.get('status') == status) for status in HEALTH_STATUSES}
            for name, items in facilities.items()
        },
        'total_facilities': sum(len(items) for items in facilities.values()),
        'facilities_needing_repair': sum(
            1 for items in facilities.values() for f in items if f.get('status') in REPAIR_STATUSES
        ),
    }


def _road_section(sub: NormalizedSubmission, village: str) -> Dict[str, Any]:
    rows = [
        {'village': name, **{field: row[field] for field in ROAD_FLOAT_FIELDS}}
        for name, row in sub.roads.items()
        if village == ALL or village_matches(name, village)
    ]
    totals = {field: round(sum(r[field] for r in rows), 2) for field in ROAD_FLOAT_FIELDS}
    return {
        'total_cc_road': totals['totalCCRoad'],
        'cc_road_required': totals['ccRoadRequired'],
        'repair_required': totals['repairRequired'],
        'kuchha_road': totals['kuchhaRoad'],
        'by_village': rows,
    }


def gp_snapshot_metrics(sub: NormalizedSubmission, village: str = ALL) -> Dict[str, Dict[str, Any]]:
    """
    Headline metrics for one submission, optionally for a single village.

    Args:
        sub: Normalized submission
        village: Village name (case-insensitive) or 'all'

    Returns:
        Dict with 'social', 'education', 'health', 'economic', 'infrastructure'
        and 'environmental' sections
    """
    village = ALL if str(village).strip().lower() == ALL else village

    # Social
    demo_rows = _select(sub.demographics, village)
    population = sum(r['totalPopulation'] for r in demo_rows)
    households = sum(r['households'] for r in demo_rows)
    male = sum(r['malePopulation'] for r in demo_rows)
    female = sum(r['femalePopulation'] for r in demo_rows)

    social = {
        'total_population': population,
        'total_households': households,
        'male_population': male,
        'female_population': female,
        'gender_ratio': round(safe_ratio(male, female, 1000)),
        'villages': len(demo_rows),
    }

    # Education
    schools = [s for village_schools in _select(sub.education, village) for s in village_schools]
    teachers = sum(s['teachersMale'] + s['teachersFemale'] for s in schools)
    students = sum(s['studentsTotal'] for s in schools)

    education = {
        'total_schools': len(schools),
        'total_teachers': teachers,
        'total_students': students,
        'student_teacher_ratio': round(safe_ratio(students, teachers)),
    }

    # Economic
    migration_rows = _select(sub.migration, village)
    reporting = sum(r['householdsReportingMigration'] for r in migration_rows)
    cards = sum(r['householdsWithMGNREGSCards'] for r in migration_rows)
    # Panchayat finances are GP-level and only meaningful for the whole GP
    revenue = sum(sub.finances.get(f, 0) for f in FINANCE_FIELDS) if village == ALL else 0

    economic = {
        'total_migrants': sum(r[f] for r in migration_rows for f in MIGRANT_FIELDS),
        'total_mgnregs_cards': cards,
        'total_reporting_migration': reporting,
        'landless_households': sum(r['landlessHouseholds'] for r in migration_rows),
        'total_workdays': sum(r['workdaysProvidedMGNREGS'] for r in migration_rows),
        'total_revenue': revenue,
        'total_households': households,
        'migration_rate': round(safe_ratio(reporting, households, 100), 1),
        'mgnregs_percentage': round(safe_ratio(cards, households, 100), 1),
    }

    # Environmental
    water_bodies = _water_items(sub, 'waterBodies', village)
    structures = _water_items(sub, 'irrigationStructures', village)
    potential = sum(i['irrigationPotential'] for i in water_bodies + structures)

    land_rows = _select(sub.land_use.get('landUseData', {}), village)
    agricultural = sum(r['cultivableArea'] for r in land_rows)

    environmental = {
        'total_water_bodies': len(water_bodies),
        'total_irrigation_structures': len(structures),
        'structures_needing_repair': sum(1 for s in structures if s.get('status') in REPAIR_STATUSES),
        'total_irrigation_potential': round(potential, 1),
        'forest_area': round(sum(r['forestArea'] for r in land_rows), 1),
        'agricultural_area': round(agricultural, 1),
        'irrigated_land': round(sum(r['irrigatedLand'] for r in land_rows), 1),
        'common_land_area': round(sum(r['commonLandArea'] for r in land_rows), 1),
        'non_cultivable_area': round(sum(r['nonCultivableArea'] for r in land_rows), 1),
        'irrigation_coverage': round(min(100.0, safe_ratio(potential, agricultural, 100)), 1),
    }

    return {
        'social': social,
        'education': education,
        'health': _health_section(sub, village),
        'economic': economic,
        'infrastructure': _road_section(sub, village),
        'environmental': environmental,
    }


# =============================================================================
# MODULE-LEVEL CONVENIENCE
# =============================================================================

def aggregate(records) -> AggregateMetrics:
    """Aggregate metrics for raw records (dicts or SurveyRecords)."""
    return SurveyMetrics(frames_from_records(records)).calculate_overview_metrics()


def gp_finance_breakdown(records) -> pd.DataFrame:
    return SurveyMetrics(frames_from_records(records)).gp_finance_breakdown()


def road_breakdown(records) -> pd.DataFrame:
    return SurveyMetrics(frames_from_records(records)).road_breakdown()
