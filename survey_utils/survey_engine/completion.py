# survey_utils/survey_engine/completion.py
"""
Completion scoring for survey submissions

A submission is scored against the 8 fixed categories. A category counts
as filled only when it carries meaningful data: all-zero or all-blank
payloads do not count, even when the key is present.

Also builds the GP x Financial Year coverage table shown on the reports page.

CHANGELOG:
- v1.1.0: coverage_long / gp_report_summary for the GP reports page
- v1.0.0: Initial implementation
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from numbers import Real
from typing import Any, Dict, Iterable, List, Mapping

import pandas as pd

from .constants import (
    CATEGORIES,
    CATEGORY_KEYS,
    COMPLETION_FLOOR,
    FINANCE_FIELDS,
    FY_FIRST_YEAR,
    IDENTITY_KEYS,
    PANCHAYAT_FINANCES,
)
from .fiscal_year import enumerate_fiscal_years
from .normalizer import parse_float
from .records import SurveyRecord, coerce_records

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompletionResult:
    """
    Attributes:
        percentage: 0-100, a multiple of 12.5
        per_category: canonical category -> filled
    """
    percentage: float
    per_category: Dict[str, bool] = field(default_factory=dict)

    @property
    def filled_count(self) -> int:
        return sum(1 for filled in self.per_category.values() if filled)

    @property
    def is_complete(self) -> bool:
        return self.percentage >= 100


# =============================================================================
# MEANINGFUL-DATA CHECKS
# =============================================================================

def _is_meaningful_leaf(value: Any) -> bool:
    if value is None or isinstance(value, bool):
        return bool(value)
    if isinstance(value, Real):
        return parse_float(value) != 0
    text = str(value).strip()
    if not text:
        return False
    try:
        return float(text.replace(',', '')) != 0
    except ValueError:
        # Free text such as a school name
        return True


def _has_meaningful_data(value: Any, top_level: bool = False) -> bool:
    """
    - Mapping: some non-identity value is meaningful
    - List: nested lists count when non-empty; a top-level list needs a
      meaningful element
    - Scalar: non-null, non-blank, non-zero; a bare scalar as the whole
      category payload is never filled
    """
    if isinstance(value, Mapping):
        return any(
            _has_meaningful_data(v)
            for k, v in value.items()
            if k not in IDENTITY_KEYS
        )
    if isinstance(value, (list, tuple)):
        if top_level:
            return any(_has_meaningful_data(v) for v in value)
        return len(value) > 0
    if top_level:
        return False
    return _is_meaningful_leaf(value)


def _finances_filled(payload: Any) -> bool:
    if not isinstance(payload, Mapping):
        return False
    return any(parse_float(payload.get(name)) != 0 for name in FINANCE_FIELDS)


def category_filled(form_data: Mapping[str, Any], category: str) -> bool:
    """True when any stored spelling of the category holds meaningful data."""
    for key in CATEGORY_KEYS[category]:
        payload = form_data.get(key)
        if payload is None:
            continue
        if category == PANCHAYAT_FINANCES:
            filled = _finances_filled(payload)
        else:
            filled = _has_meaningful_data(payload, top_level=True)
        if filled:
            return True
    return False


# =============================================================================
# SCORING
# =============================================================================

def score(record) -> CompletionResult:
    """
    Completion score of one submission.

    Args:
        record: SurveyRecord or raw record dict

    Returns:
        CompletionResult. When no category is filled but formData still has
        keys, the percentage is COMPLETION_FLOOR instead of 0.
    """
    if not isinstance(record, SurveyRecord):
        record = SurveyRecord.from_dict(record)

    form_data = record.form_data or {}
    per_category = {category: category_filled(form_data, category) for category in CATEGORIES}
    filled = sum(1 for v in per_category.values() if v)

    if filled == 0 and len(form_data) > 0:
        percentage = COMPLETION_FLOOR
    else:
        percentage = filled / len(CATEGORIES) * 100

    return CompletionResult(percentage=percentage, per_category=per_category)


# =============================================================================
# COVERAGE (GP x FINANCIAL YEAR)
# =============================================================================

COVERAGE_LONG_COLUMNS = [
    'gp_name', 'district', 'block', 'financial_year',
    'has_data', 'percentage', 'is_complete', 'last_touched',
]


def _score_rows(records: List[SurveyRecord]) -> pd.DataFrame:
    rows = []
    for record in records:
        result = score(record)
        rows.append({
            'gp_name': record.gp_name,
            'district': record.district,
            'block': record.block,
            'financial_year': record.financial_year,
            'percentage': result.percentage,
            'last_touched': record.last_touched,
        })
    return pd.DataFrame(rows, columns=['gp_name', 'district', 'block', 'financial_year', 'percentage', 'last_touched'])


def coverage_long(
    records: Iterable[Any],
    as_of: date = None,
    start_year: int = FY_FIRST_YEAR
) -> pd.DataFrame:
    """
    One row per (GP, financial year) for every GP in the records and every
    year from enumerate_fiscal_years. Years without a submission have
    has_data False and percentage 0. When a GP has several submissions in
    one year the best score and latest touch are kept.
    """
    records = coerce_records(records)
    scored = _score_rows(records)

    if scored.empty:
        return pd.DataFrame(columns=COVERAGE_LONG_COLUMNS)

    years = enumerate_fiscal_years(start_year, as_of)
    gps = scored.drop_duplicates('gp_name')[['gp_name', 'district', 'block']]

    best = scored.groupby(['gp_name', 'financial_year'], sort=False).agg(
        percentage=('percentage', 'max'),
        last_touched=('last_touched', 'max'),
    ).reset_index()

    grid = gps.merge(pd.DataFrame({'financial_year': years}), how='cross')
    result = grid.merge(best, on=['gp_name', 'financial_year'], how='left')

    result['has_data'] = result['percentage'].notna()
    result['percentage'] = result['percentage'].fillna(0.0).astype(float)
    result['last_touched'] = result['last_touched'].fillna('')
    result['is_complete'] = result['percentage'] >= 100

    return result[COVERAGE_LONG_COLUMNS].reset_index(drop=True)


def coverage_table(
    records: Iterable[Any],
    as_of: date = None,
    start_year: int = FY_FIRST_YEAR
) -> pd.DataFrame:
    """
    Wide coverage table: one row per GP, one column per financial year
    holding the completion percentage (0 when nothing was submitted).

    Columns: gp_name, district, block, <year>, <year>, ...
    """
    years = enumerate_fiscal_years(start_year, as_of)
    long_df = coverage_long(records, as_of, start_year)

    if long_df.empty:
        return pd.DataFrame(columns=['gp_name', 'district', 'block'] + years)

    wide = long_df.pivot_table(
        index=['gp_name', 'district', 'block'],
        columns='financial_year',
        values='percentage',
        aggfunc='max',
        fill_value=0.0,
    )
    wide = wide.reindex(columns=years, fill_value=0.0)
    wide.columns.name = None

    return wide.reset_index().sort_values('gp_name', kind='stable').reset_index(drop=True)


def gp_report_summary(records: Iterable[Any]) -> pd.DataFrame:
    """
    Per-GP submission summary.

    Returns:
        DataFrame with columns: gp_name, district, block, total_submissions,
        last_touched, years (sorted list), best_completion
    """
    columns = ['gp_name', 'district', 'block', 'total_submissions', 'last_touched', 'years', 'best_completion']
    scored = _score_rows(coerce_records(records))

    if scored.empty:
        return pd.DataFrame(columns=columns)

    summary = scored.groupby('gp_name', sort=False).agg(
        district=('district', 'first'),
        block=('block', 'first'),
        total_submissions=('financial_year', 'size'),
        last_touched=('last_touched', 'max'),
        best_completion=('percentage', 'max'),
    ).reset_index()

    years_by_gp = {
        gp: sorted(set(y for y in group if y))
        for gp, group in scored.groupby('gp_name', sort=False)['financial_year']
    }
    summary['years'] = summary['gp_name'].map(years_by_gp)

    return summary.sort_values('gp_name', kind='stable').reset_index(drop=True)[columns]
