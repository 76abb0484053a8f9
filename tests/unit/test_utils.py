"""
Unit tests for utils.py module.

Tests clamping helpers, timeframe conversions and currency formatting.
"""

import math

import pytest

from fairshare.exceptions import ValidationError
from fairshare.utils import (
    CURRENCIES,
    clamp_percent,
    finite_or_zero,
    conversion_factor,
    currency_symbol,
    format_currency,
    non_negative,
    retained_fraction,
    round_half_up,
    timeframe_label,
    to_display,
    to_monthly,
)


class TestClamping:
    """Test clamping helpers."""

    @pytest.mark.parametrize("value, expected", [
        (5, 5.0),
        (-3, -3.0),
        (None, 0.0),
        (float("nan"), 0.0),
        (float("inf"), 0.0),
        (float("-inf"), 0.0),
    ])
    def test_finite_or_zero(self, value, expected):
        assert finite_or_zero(value) == expected

    @pytest.mark.parametrize("value, expected", [
        (5, 5.0),
        (0, 0.0),
        (-3, 0.0),
        (None, 0.0),
        (float("nan"), 0.0),
        (float("inf"), 0.0),
    ])
    def test_non_negative(self, value, expected):
        assert non_negative(value) == expected

    @pytest.mark.parametrize("value, expected", [
        (50, 50.0),
        (-10, 0.0),
        (130, 100.0),
        (None, 0.0),
        (float("nan"), 0.0),
    ])
    def test_clamp_percent(self, value, expected):
        assert clamp_percent(value) == expected

    def test_retained_fraction(self):
        assert retained_fraction(20) == pytest.approx(0.8)
        assert retained_fraction(250) == 0.0


class TestTimeframes:
    """Test monthly/yearly conversions."""

    def test_conversion_factor(self):
        assert conversion_factor("monthly") == 1.0
        assert conversion_factor("yearly") == pytest.approx(1 / 12)

    def test_conversion_factor_invalid(self):
        with pytest.raises(ValidationError, match="timeframe"):
            conversion_factor("weekly")

    def test_to_monthly_and_back(self):
        assert to_monthly(36_000, "yearly") == pytest.approx(3000)
        assert to_display(3000, "yearly") == pytest.approx(36_000)
        assert to_display(3000, "monthly") == 3000

    def test_timeframe_label(self):
        assert timeframe_label("monthly") == "/mo"
        assert timeframe_label("yearly") == "/yr"


class TestRounding:

    @pytest.mark.parametrize("value, expected", [
        (2.5, 3.0),
        (3.5, 4.0),
        (-2.5, -2.0),
        (249.99, 250.0),
        (250.4, 250.0),
    ])
    def test_round_half_up(self, value, expected):
        assert round_half_up(value) == expected

    @pytest.mark.parametrize("value", [float("inf"), float("-inf")])
    def test_round_half_up_keeps_infinities(self, value):
        assert round_half_up(value) == value

    def test_round_half_up_keeps_nan(self):
        assert math.isnan(round_half_up(float("nan")))


class TestCurrency:
    """Test currency table and formatting."""

    def test_currency_table(self):
        codes = [c.code for c in CURRENCIES]
        assert codes == ["USD", "EUR", "GBP", "CHF", "CAD", "AUD", "JPY"]

    def test_currency_symbol(self):
        assert currency_symbol("EUR") == "€"
        assert currency_symbol("XYZ") == "XYZ"

    def test_format_currency_monthly(self):
        assert format_currency(1800, "USD") == "$1,800"

    def test_format_currency_yearly_display(self):
        assert format_currency(1800, "EUR", "yearly") == "€21,600"

    def test_format_currency_negative(self):
        assert format_currency(-250.4, "GBP") == "-£250"

    def test_format_currency_non_finite(self):
        assert format_currency(float("nan"), "JPY") == "¥0"
        assert format_currency(float("inf")) == "$0"

