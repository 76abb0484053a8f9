"""General utilities for FairShare

Contents
--------
- Clamping helpers (non-negative amounts, percentages)
- Timeframe conversions (monthly <-> yearly display)
- Rounding helpers
- Currency table and formatting
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import numpy as np

from .constants import MONTHS_PER_YEAR, TIMEFRAMES
from .exceptions import ValidationError

__all__ = [
    # Clamping
    "finite_or_zero",
    "non_negative",
    "clamp_percent",
    "retained_fraction",
    # Timeframes
    "check_timeframe",
    "conversion_factor",
    "to_monthly",
    "to_display",
    "timeframe_label",
    # Rounding
    "round_half_up",
    # Currency
    "Currency",
    "CURRENCIES",
    "currency_symbol",
    "format_currency",
]


# ---------------------------------------------------------------------------
# Clamping helpers
# ---------------------------------------------------------------------------

def finite_or_zero(value: Optional[float]) -> float:
    """Return *value* as float, with None and NaN/inf mapped to 0."""
    if value is None:
        return 0.0
    value = float(value)
    return value if math.isfinite(value) else 0.0


def non_negative(value: Optional[float]) -> float:
    """Return *value* as float, mapping negatives, None and NaN/inf to 0."""
    value = finite_or_zero(value)
    return value if value > 0 else 0.0


def clamp_percent(value: Optional[float]) -> float:
    """Clamp a percentage into [0, 100]. Non-finite input maps to 0."""
    if value is None:
        return 0.0
    value = float(value)
    if math.isnan(value):
        return 0.0
    return float(np.clip(value, 0.0, 100.0))


def retained_fraction(discount: Optional[float]) -> float:
    """Fraction of value kept after a percentage discount: 1 - clamp(d)/100."""
    return 1.0 - clamp_percent(discount) / 100.0


# ---------------------------------------------------------------------------
# Timeframe conversions
# ---------------------------------------------------------------------------

def check_timeframe(timeframe: str) -> str:
    """Raise if *timeframe* is not 'monthly' or 'yearly'."""
    if timeframe not in TIMEFRAMES:
        raise ValidationError(
            f"timeframe must be one of {TIMEFRAMES}, got {timeframe!r}."
        )
    return timeframe


def conversion_factor(timeframe: str) -> float:
    """Factor that turns a figure in *timeframe* units into a monthly figure.

    1 for 'monthly', 1/12 for 'yearly'.
    """
    return 1.0 / MONTHS_PER_YEAR if check_timeframe(timeframe) == "yearly" else 1.0


def to_monthly(value: float, timeframe: str) -> float:
    """Convert a figure expressed in *timeframe* units to monthly."""
    return float(value) * conversion_factor(timeframe)


def to_display(value: float, timeframe: str) -> float:
    """Convert a monthly figure back to *timeframe* units for display."""
    return float(value) / conversion_factor(timeframe)


def timeframe_label(timeframe: str) -> str:
    """Short suffix for amounts shown in *timeframe*: '/mo' or '/yr'."""
    return "/yr" if check_timeframe(timeframe) == "yearly" else "/mo"


# ---------------------------------------------------------------------------
# Rounding
# ---------------------------------------------------------------------------

def round_half_up(value: float) -> float:
    """Round to the nearest whole unit, ties towards +inf.

    Python's round() uses banker's rounding; stored household figures are
    rounded the way spreadsheet users expect (2.5 -> 3, -2.5 -> -2).
    NaN and infinities are returned unchanged.
    """
    value = float(value)
    if not math.isfinite(value):
        return value
    return float(math.floor(value + 0.5))


# ---------------------------------------------------------------------------
# Currency
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Currency:
    code: str
    symbol: str
    name: str


CURRENCIES: Tuple[Currency, ...] = (
    Currency("USD", "$", "United States Dollar"),
    Currency("EUR", "€", "Euro"),
    Currency("GBP", "£", "British Pound"),
    Currency("CHF", "Fr.", "Swiss Franc"),
    Currency("CAD", "C$", "Canadian Dollar"),
    Currency("AUD", "A$", "Australian Dollar"),
    Currency("JPY", "¥", "Japanese Yen"),
)

_SYMBOLS: Dict[str, str] = {c.code: c.symbol for c in CURRENCIES}


def currency_symbol(code: str) -> str:
    """Display symbol for a currency code; unknown codes are returned unchanged."""
    return _SYMBOLS.get(code, code)


def format_currency(amount: float, currency: str = "USD", timeframe: str = "monthly") -> str:
    """
    Format a monthly engine figure for display.

    Converts the monthly *amount* to the display *timeframe*, rounds to whole
    units and prefixes the currency symbol. The engine's values are never
    modified; this is presentation only.

    Parameters
    ----------
    amount : float
        Monthly amount as produced by the capacity engine.
    currency : str, default "USD"
        Currency code (label only, never converted).
    timeframe : {"monthly", "yearly"}, default "monthly"
        Display timeframe. Yearly multiplies by 12.

    Returns
    -------
    str
        Formatted amount.

    Examples
    --------
    >>> format_currency(1800, "USD")
    '$1,800'
    >>> format_currency(1800, "EUR", "yearly")
    '€21,600'
    >>> format_currency(-250.4, "GBP")
    '-£250'
    >>> format_currency(float("nan"), "JPY")
    '¥0'
    """
    display = to_display(amount, timeframe)
    if not math.isfinite(display):
        display = 0.0
    rounded = round_half_up(display)
    symbol = currency_symbol(currency)
    sign = "-" if rounded < 0 else ""
    return f"{sign}{symbol}{abs(rounded):,.0f}"
