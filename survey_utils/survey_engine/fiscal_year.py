# survey_utils/survey_engine/fiscal_year.py
"""
Financial Year helpers

Indian financial years run April to March and are labelled
"{start}-{start + 1}", e.g. "2024-2025".
"""

import logging
import re
from datetime import date
from typing import List, Optional

import pandas as pd

from .constants import FY_FIRST_YEAR, FY_START_MONTH

logger = logging.getLogger(__name__)

_FY_LABEL = re.compile(r'^\s*(\d{4})\s*-\s*(\d{4})\s*$')


def fiscal_year_label(start_year: int) -> str:
    return f"{start_year}-{start_year + 1}"


def fiscal_year_start_for(as_of: date) -> int:
    """Calendar year in which the financial year containing as_of started."""
    return as_of.year if as_of.month >= FY_START_MONTH else as_of.year - 1


def current_fiscal_year(as_of: date = None) -> str:
    """
    Label of the financial year containing as_of.

    Args:
        as_of: Reference date (defaults to today)

    Returns:
        e.g. "2024-2025" for any date from 2024-04-01 to 2025-03-31
    """
    if as_of is None:
        as_of = date.today()
    return fiscal_year_label(fiscal_year_start_for(as_of))


def enumerate_fiscal_years(start_year: int = FY_FIRST_YEAR, as_of: date = None) -> List[str]:
    """
    Every financial year label from start_year through the year after the
    current one, inclusive. Used as the fixed column set of coverage tables.
    """
    if as_of is None:
        as_of = date.today()
    last_start = fiscal_year_start_for(as_of) + 1
    return [fiscal_year_label(year) for year in range(int(start_year), last_start + 1)]


def fiscal_year_start(label: str) -> Optional[int]:
    """Start year of a "YYYY-YYYY" label, or None if the label is malformed."""
    match = _FY_LABEL.match(str(label or ''))
    if not match:
        return None
    start, end = int(match.group(1)), int(match.group(2))
    if end != start + 1:
        return None
    return start


def local_today(timezone: str = None) -> date:
    """
    Today's date in the given IANA timezone (e.g. "Asia/Kolkata").
    An unknown or empty timezone falls back to the server's local date.
    """
    if not timezone:
        return date.today()
    try:
        return pd.Timestamp.now(tz=timezone).date()
    except (KeyError, ValueError) as e:
        logger.warning(f"Unknown timezone {timezone!r}, using server date: {e}")
        return date.today()
