"""
Global constants for FairShare.

Purpose
-------
Centralizes default values and magic numbers used throughout the FairShare
codebase: assumed return rates, default uncertainty discounts, calendar
conversions and numeric tolerances.

Usage
-----
>>> from fairshare.constants import ASSUMED_RETURN_RATE, MONTHS_PER_YEAR
>>> monthly = amount * ASSUMED_RETURN_RATE / (MONTHS_PER_YEAR * 100)

Categories
----------
- Rates: assumed annual return for imputed income
- Discounts: default haircuts for non-liquid or uncertain amounts
- Time: months per year, days per year
- Household: default household snapshot values
- Tolerances: percentage-sum checks
"""

from typing import Tuple

__all__ = [
    # Rates
    "ASSUMED_RETURN_RATE",
    "DEFAULT_PASSIVE_ADVANTAGES_RATE",
    # Discounts
    "DEFAULT_PASSIVE_ADVANTAGES_DISCOUNT",
    "DEFAULT_FUTURE_INHERITANCE_DISCOUNT",
    "DEFAULT_VARIABLE_INCOME_DISCOUNT",
    "DEFAULT_INHERITANCE_DISCOUNT",
    # Time
    "MONTHS_PER_YEAR",
    "DAYS_PER_YEAR",
    "TIMEFRAMES",
    # Household
    "DEFAULT_CURRENCY",
    "DEFAULT_SHARED_EXPENSES",
    "DEFAULT_PARTNER_NAMES",
    "MIN_PEOPLE_FOR_REMOVAL",
    "PROPERTY_ARRANGEMENTS",
    # Tolerances
    "PERCENTAGE_TOLERANCE",
]


# =============================================================================
# Rates
# =============================================================================

ASSUMED_RETURN_RATE: float = 5.5
"""Annual percentage return assumed for expected future inheritances.

Also the default rate for newly created inheritances.
"""

DEFAULT_PASSIVE_ADVANTAGES_RATE: float = 5.5
"""Default annual percentage return for passive advantages."""


# =============================================================================
# Discounts (percent, 0-100)
# =============================================================================

DEFAULT_PASSIVE_ADVANTAGES_DISCOUNT: float = 70.0
"""Passive advantages are non-liquid benefits (typically 60-80% discount)."""

DEFAULT_FUTURE_INHERITANCE_DISCOUNT: float = 50.0
"""Expected inheritances are uncertain in amount and timing."""

DEFAULT_VARIABLE_INCOME_DISCOUNT: float = 20.0
"""Bonuses and commissions are discounted for uncertainty."""

DEFAULT_INHERITANCE_DISCOUNT: float = 0.0
"""Received inheritances default to cash-equivalent (no haircut)."""


# =============================================================================
# Time
# =============================================================================

MONTHS_PER_YEAR: int = 12
"""Number of months in a year (timeframe normalization and rate conversion)."""

DAYS_PER_YEAR: float = 365.25
"""Average year length used when measuring elapsed years since a date."""

TIMEFRAMES: Tuple[str, ...] = ("monthly", "yearly")
"""Valid household timeframes."""


# =============================================================================
# Household defaults
# =============================================================================

DEFAULT_CURRENCY: str = "USD"
"""Default currency label. Currency is never converted."""

DEFAULT_SHARED_EXPENSES: float = 3000.0
"""Shared expenses in a freshly created household."""

DEFAULT_PARTNER_NAMES: Tuple[str, ...] = ("Partner A", "Partner B")
"""Names of the two people in a freshly created household."""

MIN_PEOPLE_FOR_REMOVAL: int = 2
"""A person can only be removed while the household has more than this many people."""

PROPERTY_ARRANGEMENTS: Tuple[str, ...] = ("none", "owned")
"""Valid property arrangements."""


# =============================================================================
# Tolerances
# =============================================================================

PERCENTAGE_TOLERANCE: float = 1e-5
"""Allowed deviation of the summed percentages from 100."""
