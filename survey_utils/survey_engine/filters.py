# survey_utils/survey_engine/filters.py
"""
Filter cascade for the survey dashboard

District -> Block -> GP selection, plus an independent Financial Year.

Cascade rules:
- Changing district resets block and gp to 'all'
- Changing block resets gp to 'all'
- Changing gp or year resets nothing
- districts and years options are always the full distinct sets

CHANGELOG:
- v1.1.0: render_sidebar_filters keys block/gp widgets on their parent
          selection so stale widget state cannot survive a reset
- v1.0.0: Initial implementation
"""

import logging
from dataclasses import dataclass, replace
from typing import Any, Iterable, List, Optional

import pandas as pd
import streamlit as st

from .constants import ALL
from .records import SurveyRecord, coerce_records

logger = logging.getLogger(__name__)


# =============================================================================
# FILTER STATE
# =============================================================================

@dataclass(frozen=True)
class FilterState:
    """
    Current filter selection. Hashable, so it can key a memo.

    Attributes:
        district, block, gp, year: selected value or 'all'
    """
    district: str = ALL
    block: str = ALL
    gp: str = ALL
    year: str = ALL

    def with_district(self, district: str) -> 'FilterState':
        return replace(self, district=district or ALL, block=ALL, gp=ALL)

    def with_block(self, block: str) -> 'FilterState':
        return replace(self, block=block or ALL, gp=ALL)

    def with_gp(self, gp: str) -> 'FilterState':
        return replace(self, gp=gp or ALL)

    def with_year(self, year: str) -> 'FilterState':
        return replace(self, year=year or ALL)

    @property
    def is_unfiltered(self) -> bool:
        return all(v == ALL for v in (self.district, self.block, self.gp, self.year))

    def __repr__(self) -> str:
        return f"FilterState(district={self.district}, block={self.block}, gp={self.gp}, year={self.year})"


@dataclass(frozen=True)
class FilterOptions:
    """Selectable values. Each list is sorted, de-duplicated and free of blanks."""
    districts: List[str]
    blocks: List[str]
    gps: List[str]
    years: List[str]


# =============================================================================
# OPTION RESOLUTION
# =============================================================================

_DIM_COLUMNS = ['district', 'block', 'gp_name', 'financial_year']


def _dims_frame(records: List[SurveyRecord]) -> pd.DataFrame:
    return pd.DataFrame(
        [(r.district, r.block, r.gp_name, r.financial_year) for r in records],
        columns=_DIM_COLUMNS,
    )


def _distinct(series: pd.Series) -> List[str]:
    values = series.dropna().astype(str).str.strip()
    return sorted(values[values != ''].unique().tolist())


def resolve_options(all_records: Iterable[Any], selection: FilterState = None) -> FilterOptions:
    """
    Selectable filter values consistent with the current selection.

    Args:
        all_records: Every loaded record (not the filtered subset)
        selection: Current FilterState (default: nothing selected)

    Returns:
        FilterOptions
    """
    selection = selection or FilterState()
    df = _dims_frame(coerce_records(all_records))

    if df.empty:
        return FilterOptions(districts=[], blocks=[], gps=[], years=[])

    districts = _distinct(df['district'])
    years = _distinct(df['financial_year'])

    if selection.district == ALL:
        blocks = _distinct(df['block'])
    else:
        blocks = _distinct(df.loc[df['district'] == selection.district, 'block'])

    if selection.district == ALL and selection.block == ALL:
        gps = _distinct(df['gp_name'])
    else:
        scope = df
        if selection.district != ALL:
            scope = scope[scope['district'] == selection.district]
        if selection.block != ALL:
            scope = scope[scope['block'] == selection.block]
        gps = _distinct(scope['gp_name'])

    return FilterOptions(districts=districts, blocks=blocks, gps=gps, years=years)


def matches(record: SurveyRecord, selection: FilterState) -> bool:
    return (
        (selection.district == ALL or record.district == selection.district)
        and (selection.block == ALL or record.block == selection.block)
        and (selection.gp == ALL or record.gp_name == selection.gp)
        and (selection.year == ALL or record.financial_year == selection.year)
    )


def apply_filters(records: Iterable[Any], selection: FilterState = None) -> List[SurveyRecord]:
    """Records matching every non-'all' field of the selection."""
    records = coerce_records(records)
    if selection is None or selection.is_unfiltered:
        return records
    return [r for r in records if matches(r, selection)]


# =============================================================================
# STREAMLIT SIDEBAR
# =============================================================================

def _selectbox(ctx, label: str, values: List[str], current: str, all_label: str, key: str) -> str:
    choices = [ALL] + values
    index = choices.index(current) if current in choices else 0
    return ctx.selectbox(
        label,
        options=choices,
        index=index,
        format_func=lambda v: all_label if v == ALL else v,
        key=key,
    )


def render_sidebar_filters(
    options: FilterOptions,
    state: FilterState,
    container=None,
    key_prefix: str = "survey"
) -> FilterState:
    """
    Render the district/block/GP/year select boxes.

    Args:
        options: Options resolved for `state`
        state: Current selection
        container: Optional Streamlit container (default: st.sidebar)
        key_prefix: Widget key namespace

    Returns:
        Next FilterState with the cascade resets applied. The caller should
        store it and rerun when it differs from `state`.
    """
    ctx = container if container else st.sidebar

    ctx.header("🎛️ Filters")

    district = _selectbox(
        ctx, "District", options.districts, state.district, "All Districts",
        key=f"{key_prefix}_district",
    )
    if district != state.district:
        logger.debug(f"District changed {state.district} -> {district}")
        return state.with_district(district)

    block = _selectbox(
        ctx, "Block", options.blocks, state.block, "All Blocks",
        key=f"{key_prefix}_block_{state.district}",
    )
    if block != state.block:
        return state.with_block(block)

    gp = _selectbox(
        ctx, "Gram Panchayat", options.gps, state.gp, "All GPs",
        key=f"{key_prefix}_gp_{state.district}_{state.block}",
    )
    year = _selectbox(
        ctx, "Financial Year", options.years, state.year, "All Years",
        key=f"{key_prefix}_year",
    )

    return state.with_gp(gp).with_year(year)
