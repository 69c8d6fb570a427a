"""
Indian number and currency formatting.
"""

import math

import pytest

from survey_utils.survey_engine import (
    format_hectares,
    format_indian_currency,
    format_indian_number,
    format_percentage,
)


class TestIndianNumber:
    @pytest.mark.parametrize("value, expected", [
        (1234567, "12,34,567"),
        (123456789, "12,34,56,789"),
        (999, "999"),
        (1000, "1,000"),
        (1234.5, "1,234.5"),
        (-1500, "-1,500"),
        (0, "0"),
    ])
    def test_grouping(self, value, expected):
        assert format_indian_number(value) == expected

    @pytest.mark.parametrize("value", [None, math.nan, "abc"])
    def test_missing(self, value):
        assert format_indian_number(value) == "-"


class TestIndianCurrency:
    @pytest.mark.parametrize("amount, expected", [
        (12345678, "₹1.23 Cr"),
        (150000, "₹1.5 L"),
        (2500, "₹2.5 K"),
        (999, "₹999"),
        (0, "₹0"),
        (-250000, "-₹2.5 L"),
    ])
    def test_abbreviations(self, amount, expected):
        assert format_indian_currency(amount) == expected

    @pytest.mark.parametrize("amount, expected", [
        (99_999.999, "₹1 L"),
        (9_999_999.996, "₹1 Cr"),
        (99_994, "₹99.99 K"),
        (-99_999.999, "-₹1 L"),
    ])
    def test_rounding_up_moves_to_next_unit(self, amount, expected):
        assert format_indian_currency(amount) == expected

    def test_missing(self):
        assert format_indian_currency(None) == "-"


class TestUnits:
    def test_hectares(self):
        assert format_hectares(12.5) == "12.5 ha"
        assert format_hectares(None) == "-"

    def test_percentage(self):
        assert format_percentage(12.5) == "12.5%"
        assert format_percentage(100) == "100.0%"
        assert format_percentage(None) == "-"
