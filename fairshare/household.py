"""
Household records for FairShare.

Purpose
-------
Immutable in-memory representation of a household snapshot: the people
sharing expenses, their incomes, assets and obligations, and the property
arrangement. These records are the input of the capacity engine
(``capacity.calculate``) and the state that the store (``store``) replaces
on every action.

Key components
--------------
- Inheritance:
    One-time wealth transfer with a received date, a liquidity discount and
    an annual return rate.

- Person:
    One household member. Periodic figures are expressed in the household
    timeframe; ``variable_income`` is always an annual amount.

- Household:
    The snapshot: currency label, shared expenses, timeframe, people and
    property arrangement.

Design principles
-----------------
- Frozen dataclasses: a snapshot never changes once built; updates produce
  new records via ``dataclasses.replace``.
- No validation of numeric ranges: negative amounts and out-of-range
  discounts are legal here and clamped by the engine.
- Structural validation (types, required keys) lives in ``config`` and is
  applied when snapshots come from files.

Example
-------
>>> from fairshare.household import Household, Person
>>> household = Household(
...     shared_expenses=3000,
...     people=(Person(id="a", name="Alex", net_income=6000),
...             Person(id="b", name="Sam", net_income=4000)),
... )
>>> household.find_person("b").name
'Sam'
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Tuple, Literal

from .constants import (
    ASSUMED_RETURN_RATE,
    DEFAULT_CURRENCY,
    DEFAULT_FUTURE_INHERITANCE_DISCOUNT,
    DEFAULT_INHERITANCE_DISCOUNT,
    DEFAULT_PARTNER_NAMES,
    DEFAULT_PASSIVE_ADVANTAGES_DISCOUNT,
    DEFAULT_PASSIVE_ADVANTAGES_RATE,
    DEFAULT_SHARED_EXPENSES,
    DEFAULT_VARIABLE_INCOME_DISCOUNT,
)
from .utils import conversion_factor

__all__ = [
    "Timeframe",
    "PropertyArrangement",
    "Inheritance",
    "Person",
    "Household",
    "new_id",
    "create_inheritance",
    "create_person",
    "default_household",
]

Timeframe = Literal["monthly", "yearly"]
PropertyArrangement = Literal["none", "owned"]


def new_id() -> str:
    """Fresh opaque identifier for people and inheritances."""
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Inheritance:
    """
    One-time wealth transfer with time-dependent value.

    Parameters
    ----------
    id : str
        Opaque identifier.
    name : str, default ""
        Display label. Empty names are rendered as "Inheritance <n>" in
        capacity breakdowns.
    amount : float, default 0.0
        Principal as of ``received_date``. Amounts <= 0 contribute nothing.
    received_date : date, optional
        When the inheritance was received. None means the amount is already
        a present value and is not compounded.
    discount : float, default 0.0
        Illiquidity/uncertainty haircut in percent, applied after
        compounding. Clamped into [0, 100] by the engine.
    return_rate : float, default 5.5
        Annual percentage return, used both to compound the principal and
        to derive the imputed monthly income.
    """

    id: str
    name: str = ""
    amount: float = 0.0
    received_date: Optional[date] = None
    discount: float = DEFAULT_INHERITANCE_DISCOUNT
    return_rate: float = ASSUMED_RETURN_RATE


@dataclass(frozen=True)
class Person:
    """
    One household member and every input of their capacity.

    Periodic fields (``net_income``, ``student_loans``, ``family_support``,
    ``retirement_matching``) use the household timeframe.
    ``variable_income`` is an annual amount regardless of timeframe.
    ``passive_advantages`` and ``expected_future_inheritance`` are lump sums.
    """

    id: str
    name: str = ""
    net_income: float = 0.0
    inheritances: Tuple[Inheritance, ...] = ()
    passive_advantages: float = 0.0
    passive_advantages_discount: float = DEFAULT_PASSIVE_ADVANTAGES_DISCOUNT
    passive_advantages_return_rate: float = DEFAULT_PASSIVE_ADVANTAGES_RATE
    expected_future_inheritance: float = 0.0
    expected_future_inheritance_discount: float = DEFAULT_FUTURE_INHERITANCE_DISCOUNT
    student_loans: float = 0.0
    family_support: float = 0.0
    variable_income: float = 0.0
    variable_income_discount: float = DEFAULT_VARIABLE_INCOME_DISCOUNT
    retirement_matching: float = 0.0

    def __post_init__(self) -> None:
        # Accept any iterable (e.g. a list from a caller) but store a tuple.
        if not isinstance(self.inheritances, tuple):
            object.__setattr__(self, "inheritances", tuple(self.inheritances))

    def find_inheritance(self, inheritance_id: str) -> Optional[Inheritance]:
        return next((i for i in self.inheritances if i.id == inheritance_id), None)


@dataclass(frozen=True)
class Household:
    """
    Household snapshot consumed by the capacity engine.

    Parameters
    ----------
    currency : str, default "USD"
        Display label only; amounts are never converted.
    shared_expenses : float, default 3000.0
        Total periodic cost to split, in ``timeframe`` units.
    timeframe : {"monthly", "yearly"}, default "monthly"
        Unit of every periodic figure in the snapshot.
    people : tuple of Person
        Ordered members. Engine results follow this order.
    property_arrangement : {"none", "owned"}, default "none"
        Whether one member owns the jointly used home.
    property_owner_id : str, optional
        Id of the owning person when the arrangement is "owned".
    market_rent : float, default 0.0
        Periodic fair-market rent of the home.
    """

    currency: str = DEFAULT_CURRENCY
    shared_expenses: float = DEFAULT_SHARED_EXPENSES
    timeframe: Timeframe = "monthly"
    people: Tuple[Person, ...] = field(default_factory=tuple)
    property_arrangement: PropertyArrangement = "none"
    property_owner_id: Optional[str] = None
    market_rent: float = 0.0

    def __post_init__(self) -> None:
        if not isinstance(self.people, tuple):
            object.__setattr__(self, "people", tuple(self.people))

    @property
    def conversion_factor(self) -> float:
        """Factor turning this household's periodic figures into monthly ones."""
        return conversion_factor(self.timeframe)

    @property
    def person_ids(self) -> Tuple[str, ...]:
        return tuple(p.id for p in self.people)

    def find_person(self, person_id: Optional[str]) -> Optional[Person]:
        """Return the person with *person_id*, or None."""
        if person_id is None:
            return None
        return next((p for p in self.people if p.id == person_id), None)


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

def create_inheritance(name: str, *, today: Optional[date] = None) -> Inheritance:
    """New inheritance with zero amount, received *today*, no discount, 5.5%."""
    return Inheritance(
        id=new_id(),
        name=name,
        amount=0.0,
        received_date=today or date.today(),
        discount=DEFAULT_INHERITANCE_DISCOUNT,
        return_rate=ASSUMED_RETURN_RATE,
    )


def create_person(name: str) -> Person:
    """New person with a fresh id and default discounts and rates."""
    return Person(id=new_id(), name=name)


def default_household() -> Household:
    """Starting snapshot: two partners, 3000 USD of monthly shared expenses."""
    return Household(
        currency=DEFAULT_CURRENCY,
        shared_expenses=DEFAULT_SHARED_EXPENSES,
        timeframe="monthly",
        people=tuple(create_person(name) for name in DEFAULT_PARTNER_NAMES),
        property_arrangement="none",
        property_owner_id=None,
        market_rent=0.0,
    )
