"""
Capacity engine for FairShare.

Purpose
-------
Maps a household snapshot to a per-person split of shared expenses. Each
person's *capacity* (monthly ability to pay) is derived from take-home pay
plus imputed income from assets minus obligations; shared expenses are then
allocated in proportion to capacity.

Pipeline
--------
1. Normalize every periodic figure to monthly (factor 1 or 1/12).
2. Base capacity per person:
       net income
     + employer retirement matching
     + imputed income of each inheritance (compounded, discounted)
     + imputed income of passive advantages (discounted)
     + imputed income of the expected future inheritance (discounted)
     - student loans
     - family support
     + variable income (annual, discounted, / 12)
   clamped at zero.
3. Property adjustment when one member owns the shared home: the owner
   gains the market rent as imputed income and members consume it
   (formula chosen by ``EnginePolicy.property_split``). Clamped at zero.
4. Allocation: percentage = capacity / total capacity, contribution =
   percentage of the monthly shared expenses.

Imputed income
--------------
For an inheritance received ``y`` years ago (y = |today - date| / 365.25):

    compounded = amount * (1 + r/100) ** y
    monthly    = compounded * (1 - d/100) * r / (12 * 100)

Passive advantages and expected inheritances use the same formula with
y = 0 (current value), the latter at the fixed 5.5% rate.

Guarantees
----------
- Pure: no I/O, no logging, inputs are never mutated, deterministic for a
  given snapshot, policy and reference date.
- Permissive: negative or non-finite amounts count as zero, discounts are
  clamped into [0, 100]; nothing raises for numeric input.
- Every capacity, contribution, percentage and disposable amount is finite
  and >= 0; percentages sum to 100 whenever total capacity is positive.

Example
-------
>>> from fairshare.household import Household, Person
>>> from fairshare.capacity import calculate
>>> household = Household(
...     shared_expenses=3000,
...     people=(Person(id="a", net_income=6000), Person(id="b", net_income=4000)),
... )
>>> [round(r.percentage) for r in calculate(household)]
[60, 40]
>>> [round(r.monthly_contribution) for r in calculate(household)]
[1800, 1200]
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date
from typing import List, Literal, Optional, Tuple

import numpy as np

from .config import EnginePolicy
from .constants import DAYS_PER_YEAR, MONTHS_PER_YEAR
from .household import Household, Inheritance, Person
from .utils import clamp_percent, finite_or_zero, non_negative, retained_fraction

__all__ = [
    "BreakdownItem",
    "PersonResult",
    "calculate",
    "person_capacity",
    "years_between",
    "compounded_value",
    "imputed_monthly_income",
    "lump_sum_monthly_income",
]

BreakdownType = Literal["income", "deduction", "imputed"]

_DEFAULT_POLICY = EnginePolicy()


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BreakdownItem:
    """One audit line explaining part of a person's monthly capacity."""

    label: str
    amount: float
    type: BreakdownType
    category: str


@dataclass(frozen=True)
class PersonResult:
    """
    Engine output for one person. All amounts are monthly.

    Attributes
    ----------
    person_id : str
        Id of the person this result belongs to.
    monthly_capacity : float
        Adjusted capacity after property adjustment (>= 0).
    monthly_contribution : float
        Share of the monthly shared expenses (>= 0).
    percentage : float
        Share of total capacity in percent (0-100, never NaN).
    monthly_disposable : float
        Net income left after the contribution (>= 0).
    monthly_net_income : float
        Normalized take-home income (>= 0).
    breakdown : tuple of BreakdownItem
        Ordered audit lines.
    """

    person_id: str
    monthly_capacity: float
    monthly_contribution: float
    percentage: float
    monthly_disposable: float
    monthly_net_income: float
    breakdown: Tuple[BreakdownItem, ...] = ()


@dataclass
class _Capacity:
    # Mutable accumulator used while adjustments are applied.
    person_id: str
    monthly_capacity: float
    monthly_net_income: float
    breakdown: List[BreakdownItem] = field(default_factory=list)

    def add(self, label: str, amount: float, type_: BreakdownType, category: str) -> None:
        amount = _bounded(amount)
        self.monthly_capacity = _bounded(self.monthly_capacity + amount)
        self.breakdown.append(BreakdownItem(label, amount, type_, category))


# ---------------------------------------------------------------------------
# Valuation helpers
# ---------------------------------------------------------------------------

def _bounded(value: float) -> float:
    # Overflowed amounts saturate at the largest finite float; NaN counts as 0.
    return float(np.nan_to_num(value, nan=0.0))


def _pct(value: float) -> str:
    return f"{value:g}%"


def years_between(start: Optional[date], end: Optional[date] = None) -> float:
    """
    Absolute number of years between two dates (365.25-day years).

    A missing *start* yields 0. *end* defaults to today. The distance is
    absolute, so a date in the future counts the same as one in the past.
    """
    if start is None:
        return 0.0
    end = end or date.today()
    return abs((end - start).days) / DAYS_PER_YEAR


def compounded_value(
    amount: float,
    received_date: Optional[date],
    annual_rate: float,
    *,
    today: Optional[date] = None,
) -> float:
    """
    Grow *amount* from *received_date* to *today* at *annual_rate* percent.

    Returns 0 for non-positive amounts and the amount itself when no date is
    given. A growth base ``1 + rate/100`` below zero is treated as zero.
    """
    amount = non_negative(amount)
    if amount <= 0:
        return 0.0
    if received_date is None:
        return amount
    growth = max(0.0, 1.0 + finite_or_zero(annual_rate) / 100.0)
    try:
        return amount * growth ** years_between(received_date, today)
    except OverflowError:
        return math.inf


def lump_sum_monthly_income(amount: float, discount: float, annual_rate: float) -> float:
    """
    Monthly imputed income of a current-value lump sum.

        amount * (1 - clamp(discount)/100) * rate / (12 * 100)

    Not clamped: a negative rate yields a negative figure, which callers
    ignore.
    """
    discounted = non_negative(amount) * retained_fraction(discount)
    return discounted * finite_or_zero(annual_rate) / (MONTHS_PER_YEAR * 100)


def imputed_monthly_income(
    inheritance: Inheritance,
    *,
    today: Optional[date] = None,
    compound: bool = True,
) -> float:
    """
    Monthly imputed income of one inheritance (>= 0).

    The principal is compounded from its received date (unless *compound*
    is False), discounted, then converted to monthly income at the
    inheritance's own return rate.

    Examples
    --------
    >>> inh = Inheritance(id="i", amount=100_000, discount=0, return_rate=5.5)
    >>> round(imputed_monthly_income(inh), 2)
    458.33
    """
    amount = non_negative(inheritance.amount)
    if amount <= 0:
        return 0.0

    if compound:
        value = compounded_value(
            amount, inheritance.received_date, inheritance.return_rate, today=today
        )
    else:
        value = amount

    monthly = lump_sum_monthly_income(value, inheritance.discount, inheritance.return_rate)
    return max(0.0, monthly)


# ---------------------------------------------------------------------------
# Per-person capacity
# ---------------------------------------------------------------------------

def _base_capacity(
    person: Person,
    factor: float,
    *,
    today: date,
    policy: EnginePolicy,
) -> _Capacity:
    net_income = non_negative(person.net_income) * factor
    cap = _Capacity(person.id, net_income, net_income)
    cap.breakdown.append(BreakdownItem("Net Income", net_income, "income", "income"))

    matching = non_negative(person.retirement_matching) * factor
    if matching > 0:
        cap.add("Employer Retirement Matching", matching, "income", "matching")

    for index, inheritance in enumerate(person.inheritances):
        monthly = imputed_monthly_income(
            inheritance, today=today, compound=policy.compound_inheritances
        )
        if monthly > 0:
            name = inheritance.name or f"Inheritance {index + 1}"
            retained = 100 - clamp_percent(inheritance.discount)
            years = (
                years_between(inheritance.received_date, today)
                if policy.compound_inheritances
                else 0.0
            )
            rate = finite_or_zero(inheritance.return_rate)
            cap.add(
                f"{name} ({_pct(retained)} valued, {years:.1f}y @ {_pct(rate)})",
                monthly,
                "imputed",
                "inheritance",
            )

    if non_negative(person.passive_advantages) > 0:
        rate = finite_or_zero(person.passive_advantages_return_rate)
        monthly = lump_sum_monthly_income(
            person.passive_advantages, person.passive_advantages_discount, rate
        )
        if monthly > 0:
            retained = 100 - clamp_percent(person.passive_advantages_discount)
            cap.add(
                f"Family Advantages ({_pct(retained)} valued @ {_pct(rate)})",
                monthly,
                "imputed",
                "advantages",
            )

    if non_negative(person.expected_future_inheritance) > 0:
        rate = policy.future_inheritance_rate
        monthly = lump_sum_monthly_income(
            person.expected_future_inheritance,
            person.expected_future_inheritance_discount,
            rate,
        )
        if monthly > 0:
            retained = 100 - clamp_percent(person.expected_future_inheritance_discount)
            cap.add(
                f"Expected Inheritance ({_pct(retained)} valued @ {_pct(rate)})",
                monthly,
                "imputed",
                "future-inheritance",
            )

    loans = non_negative(person.student_loans) * factor
    if loans > 0:
        cap.add("Student Loans", -loans, "deduction", "loans")

    support = non_negative(person.family_support) * factor
    if support > 0:
        cap.add("Family Support", -support, "deduction", "support")

    variable = non_negative(person.variable_income)
    if variable > 0:
        # Variable income is an annual figure whatever the household timeframe.
        monthly = variable * retained_fraction(person.variable_income_discount) / MONTHS_PER_YEAR
        if monthly > 0:
            retained = 100 - clamp_percent(person.variable_income_discount)
            cap.add(f"Variable Income ({_pct(retained)} valued)", monthly, "income", "variable")

    cap.monthly_capacity = max(0.0, cap.monthly_capacity)
    return cap


def person_capacity(
    person: Person,
    conversion_factor: float = 1.0,
    *,
    today: Optional[date] = None,
    policy: Optional[EnginePolicy] = None,
) -> Tuple[float, float, Tuple[BreakdownItem, ...]]:
    """
    Base monthly capacity of one person, before any property adjustment.

    Parameters
    ----------
    person : Person
        Household member.
    conversion_factor : float, default 1.0
        1 for monthly households, 1/12 for yearly ones.
    today : date, optional
        Reference date for inheritance compounding. Defaults to today.
    policy : EnginePolicy, optional
        Engine policy. Defaults to compounding with the 5.5% future rate.

    Returns
    -------
    tuple
        ``(monthly_capacity, monthly_net_income, breakdown)``.
    """
    cap = _base_capacity(
        person,
        conversion_factor,
        today=today or date.today(),
        policy=policy or _DEFAULT_POLICY,
    )
    return cap.monthly_capacity, cap.monthly_net_income, tuple(cap.breakdown)


# ---------------------------------------------------------------------------
# Property adjustment
# ---------------------------------------------------------------------------

def _apply_property(
    household: Household,
    capacities: List[_Capacity],
    factor: float,
    policy: EnginePolicy,
) -> None:
    if household.property_arrangement != "owned":
        return
    owner = household.find_person(household.property_owner_id)
    rent = non_negative(household.market_rent) * factor
    if owner is None or rent <= 0:
        return

    if policy.property_split == "per_capita":
        share = rent / len(capacities)
        for cap in capacities:
            if cap.person_id == owner.id:
                cap.add("Housing Consumption (owner share)", -share, "deduction", "property-rent")
                cap.add("Property Ownership (market rent value)", rent, "imputed", "property")
            else:
                cap.add("Housing Consumption (rent paid)", -share, "deduction", "property-rent")
    else:
        non_owners = [c for c in capacities if c.person_id != owner.id]
        for cap in capacities:
            if cap.person_id == owner.id:
                cap.add("Property Ownership (market rent value)", rent, "imputed", "property")
        if non_owners:
            share = rent * 0.5 / len(non_owners)
            label = f"Rent to Owner ({50 / len(non_owners):.0f}% of market rent)"
            for cap in non_owners:
                cap.add(label, -share, "deduction", "property-rent")

    for cap in capacities:
        cap.monthly_capacity = max(0.0, cap.monthly_capacity)


# ---------------------------------------------------------------------------
# Allocation
# ---------------------------------------------------------------------------

def _allocate(capacities: List[_Capacity], shared_monthly: float) -> List[PersonResult]:
    capacity = np.array([c.monthly_capacity for c in capacities], dtype=float)
    peak = float(capacity.max()) if capacity.size else 0.0

    if not peak > 0:
        # Nobody can pay: no contribution is imposed on anyone.
        return [
            PersonResult(
                person_id=c.person_id,
                monthly_capacity=0.0,
                monthly_contribution=0.0,
                percentage=0.0,
                monthly_disposable=c.monthly_net_income,
                monthly_net_income=c.monthly_net_income,
                breakdown=tuple(c.breakdown),
            )
            for c in capacities
        ]

    # Scaled by the largest capacity so the sum cannot overflow.
    scaled = capacity / peak
    with np.errstate(divide="ignore", invalid="ignore"):
        percentage = scaled / scaled.sum() * 100.0
    percentage = np.where(np.isfinite(percentage), percentage, 0.0)
    contribution = np.maximum(0.0, percentage / 100.0 * shared_monthly)

    return [
        PersonResult(
            person_id=c.person_id,
            monthly_capacity=float(c.monthly_capacity),
            monthly_contribution=float(contribution[i]),
            percentage=float(percentage[i]),
            monthly_disposable=max(0.0, c.monthly_net_income - float(contribution[i])),
            monthly_net_income=c.monthly_net_income,
            breakdown=tuple(c.breakdown),
        )
        for i, c in enumerate(capacities)
    ]


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def calculate(
    household: Household,
    *,
    policy: Optional[EnginePolicy] = None,
    today: Optional[date] = None,
) -> List[PersonResult]:
    """
    Split a household's shared expenses in proportion to each member's capacity.

    Parameters
    ----------
    household : Household
        Snapshot to evaluate. Never modified.
    policy : EnginePolicy, optional
        Compounding and property-split policy. Defaults to ``EnginePolicy()``
        (compounded inheritances, per-capita property split).
    today : date, optional
        Reference date for inheritance compounding. Defaults to today.

    Returns
    -------
    list of PersonResult
        One result per person, in ``household.people`` order. Empty when the
        household has no people.

    Notes
    -----
    - Zero (or negative) shared expenses short-circuit to all-zero results
      with empty breakdowns.
    - Zero total capacity yields 0% and no contribution for everyone, with
      the whole net income left disposable.

    Examples
    --------
    >>> household = Household(shared_expenses=1200, people=(Person(id="solo", net_income=100),))
    >>> calculate(household)[0].percentage
    100.0
    """
    policy = policy or _DEFAULT_POLICY
    today = today or date.today()

    factor = 1.0 / MONTHS_PER_YEAR if household.timeframe == "yearly" else 1.0
    shared_monthly = non_negative(household.shared_expenses) * factor

    if not household.people:
        return []

    if shared_monthly <= 0:
        return [
            PersonResult(
                person_id=person.id,
                monthly_capacity=0.0,
                monthly_contribution=0.0,
                percentage=0.0,
                monthly_disposable=0.0,
                monthly_net_income=0.0,
            )
            for person in household.people
        ]

    capacities = [
        _base_capacity(person, factor, today=today, policy=policy)
        for person in household.people
    ]
    _apply_property(household, capacities, factor, policy)
    return _allocate(capacities, shared_monthly)
