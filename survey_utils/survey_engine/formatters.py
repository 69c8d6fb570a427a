# survey_utils/survey_engine/formatters.py
"""
Number formatting for the survey dashboard

Indian digit grouping (12,34,56,789) and crore / lakh / thousand
abbreviations for rupee amounts.
"""

import logging
import math
from typing import Union

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

CRORE = 10_000_000
LAKH = 100_000
THOUSAND = 1_000

Number = Union[int, float, None]

_CURRENCY_TIERS = [(CRORE, " Cr"), (LAKH, " L"), (THOUSAND, " K")]


def _is_missing(value) -> bool:
    try:
        return value is None or pd.isna(value)
    except (TypeError, ValueError):
        return False


def _round_half_up(value: float, decimals: int = 2) -> float:
    factor = 10 ** decimals
    return math.floor(value * factor + 0.5) / factor


def _group_indian(integer_part: str) -> str:
    """'1234567' -> '12,34,567'"""
    if len(integer_part) <= 3:
        return integer_part
    head, last_three = integer_part[:-3], integer_part[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ','.join(groups) + ',' + last_three


def format_indian_number(value: Number) -> str:
    """
    Format a number with Indian digit grouping.

    Args:
        value: Number to format; decimals are kept as given

    Returns:
        e.g. "12,34,567" or "1,234.5"; "-" for missing values
    """
    if _is_missing(value):
        return "-"

    try:
        number = float(value)
    except (TypeError, ValueError):
        logger.debug(f"Cannot format {value!r} as a number")
        return "-"

    if number == 0:
        return "0"

    sign = "-" if number < 0 else ""
    text = np.format_float_positional(abs(number), trim='-')
    integer_part, _, decimal_part = text.partition('.')

    formatted = _group_indian(integer_part)
    if decimal_part:
        formatted += '.' + decimal_part
    return sign + formatted


def format_indian_currency(amount: Number) -> str:
    """
    Format a rupee amount with crore / lakh / thousand abbreviations.

    Examples:
        12345678 -> "₹1.23 Cr"
        150000   -> "₹1.5 L"
        2500     -> "₹2.5 K"
        999      -> "₹999"
    """
    if _is_missing(amount):
        return "-"

    try:
        amount = float(amount)
    except (TypeError, ValueError):
        return "-"

    if amount == 0:
        return "₹0"

    prefix = "-₹" if amount < 0 else "₹"
    absolute = abs(amount)

    for i, (unit, suffix) in enumerate(_CURRENCY_TIERS):
        if absolute < unit:
            continue
        scaled = _round_half_up(absolute / unit)
        # 99,999.999 rounds to 100 K, which reads as 1 L
        if i > 0 and scaled * unit >= _CURRENCY_TIERS[i - 1][0]:
            unit, suffix = _CURRENCY_TIERS[i - 1]
            scaled = _round_half_up(absolute / unit)
        return prefix + format_indian_number(scaled) + suffix
    return prefix + format_indian_number(absolute)


def format_hectares(value: Number, decimals: int = 2) -> str:
    if _is_missing(value):
        return "-"
    return f"{format_indian_number(_round_half_up(float(value), decimals))} ha"


def format_percentage(value: Number, decimals: int = 1) -> str:
    """Format 0-100 values as a percentage string."""
    if _is_missing(value):
        return "-"
    try:
        return f"{float(value):.{decimals}f}%"
    except (TypeError, ValueError):
        return "-"
