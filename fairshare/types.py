"""
Type definitions for FairShare.

Purpose
-------
Provides TypedDict definitions for the serialized (JSON-ready) shapes used
by the serialization layer, the store's export format and the CLI. The
in-memory domain uses frozen dataclasses (see ``household`` and
``capacity``); these dicts describe what goes over the file boundary.

Usage
-----
>>> from fairshare.types import HouseholdDict, PersonResultDict
>>>
>>> data: HouseholdDict = household_to_dict(household)
>>> rows: list[PersonResultDict] = results_to_dict(results)

Type Definitions
----------------
InheritanceDict
    One inheritance: {"id", "name", "amount", "received_date", "discount", "return_rate"}

PersonDict
    One household member with all capacity inputs

HouseholdDict
    Full household snapshot

BreakdownItemDict
    One audit line of a capacity breakdown: {"label", "amount", "type", "category"}

PersonResultDict
    Engine output for one person

ExportMetaDict / ExportEnvelopeDict
    Export file envelope with version and timestamp

PlotColorsDict
    Colors by breakdown type for plotting
"""

from typing import List, Optional
from typing_extensions import TypedDict, Literal

__all__ = [
    "InheritanceDict",
    "PersonDict",
    "HouseholdDict",
    "BreakdownItemDict",
    "PersonResultDict",
    "ExportMetaDict",
    "ExportEnvelopeDict",
    "PlotColorsDict",
]


class InheritanceDict(TypedDict):
    """
    Serialized inheritance.

    Attributes
    ----------
    id : str
        Opaque identifier.
    name : str
        Display label.
    amount : float
        Principal as of ``received_date``.
    received_date : str or None
        ISO date (YYYY-MM-DD). None means present value, no compounding.
    discount : float
        Illiquidity/uncertainty haircut in percent.
    return_rate : float
        Annual percentage return.
    """

    id: str
    name: str
    amount: float
    received_date: Optional[str]
    discount: float
    return_rate: float


class PersonDict(TypedDict):
    """
    Serialized household member.

    Periodic fields (net_income, student_loans, family_support,
    retirement_matching) are expressed in the household timeframe;
    variable_income is always an annual amount.
    """

    id: str
    name: str
    net_income: float
    inheritances: List[InheritanceDict]
    passive_advantages: float
    passive_advantages_discount: float
    passive_advantages_return_rate: float
    expected_future_inheritance: float
    expected_future_inheritance_discount: float
    student_loans: float
    family_support: float
    variable_income: float
    variable_income_discount: float
    retirement_matching: float


class HouseholdDict(TypedDict):
    """
    Serialized household snapshot.

    Examples
    --------
    >>> snapshot: HouseholdDict = {
    ...     "currency": "EUR",
    ...     "shared_expenses": 3000,
    ...     "timeframe": "monthly",
    ...     "people": [],
    ...     "property_arrangement": "none",
    ...     "property_owner_id": None,
    ...     "market_rent": 0,
    ... }
    """

    currency: str
    shared_expenses: float
    timeframe: Literal["monthly", "yearly"]
    people: List[PersonDict]
    property_arrangement: Literal["none", "owned"]
    property_owner_id: Optional[str]
    market_rent: float


class BreakdownItemDict(TypedDict):
    """
    One audit line explaining part of a person's capacity.

    Attributes
    ----------
    label : str
        Human-readable description, e.g. "Variable Income (80% valued)".
    amount : float
        Monthly amount; negative for deductions.
    type : {"income", "deduction", "imputed"}
        Kind of adjustment.
    category : str
        Machine-readable category, e.g. "inheritance" or "property-rent".
    """

    label: str
    amount: float
    type: Literal["income", "deduction", "imputed"]
    category: str


class PersonResultDict(TypedDict):
    """
    Engine output for one person (all amounts monthly).

    Examples
    --------
    >>> row: PersonResultDict = result_to_dict(results[0])
    >>> print(f"{row['person_id']}: {row['percentage']:.1f}%")
    """

    person_id: str
    monthly_capacity: float
    monthly_contribution: float
    percentage: float
    monthly_disposable: float
    monthly_net_income: float
    breakdown: List[BreakdownItemDict]


class ExportMetaDict(TypedDict):
    """Metadata stored alongside exported snapshots."""

    version: int
    date: str


class ExportEnvelopeDict(TypedDict):
    """
    File envelope written by ``save_household`` and ``HouseholdStore.export_json``.
    """

    schema_version: str
    meta: ExportMetaDict
    household: HouseholdDict


class PlotColorsDict(TypedDict, total=False):
    """
    Colors by breakdown type for plotting functions.

    Examples
    --------
    >>> colors: PlotColorsDict = {
    ...     "income": "#4CAF50",
    ...     "imputed": "#2196F3",
    ...     "deduction": "#F44336",
    ... }
    >>> plot_breakdown(result, colors=colors)
    """

    income: str
    imputed: str
    deduction: str
    contribution: str
