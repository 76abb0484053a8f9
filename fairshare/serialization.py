"""
Serialization module for FairShare persistence.

Purpose
-------
Provides JSON serialization and deserialization for household snapshots
and engine results, enabling persistence, export/import and reporting.

Supports serialization of:
- Inheritance, Person and Household records
- Household files (schema version + metadata envelope)
- PersonResult lists (dicts for JSON, pandas DataFrame for tables/CSV)

Design Principles
-----------------
- Type-safe: snapshots are validated with the Pydantic schema in ``config``
- Structural only: malformed shapes are rejected, numeric ranges are not
- Human-readable: indented JSON with snake_case keys
- Backward compatible: camelCase snapshots and bare (envelope-less)
  snapshots from the original web store load unchanged

Example
-------
>>> from pathlib import Path
>>> from fairshare.household import default_household
>>> from fairshare.serialization import save_household, load_household
>>>
>>> save_household(default_household(), Path("household.json"))
>>> household = load_household(Path("household.json"))
"""

from __future__ import annotations
from typing import Any, Dict, Iterable, List, Optional, TYPE_CHECKING
from datetime import datetime
from pathlib import Path
import json
import logging
import warnings

import pandas as pd
from pydantic import ValidationError as PydanticValidationError

from .config import HouseholdConfig, InheritanceConfig, PersonConfig
from .exceptions import PersistenceError, SnapshotFormatError
from .household import Household, Inheritance, Person
from .types import (
    ExportEnvelopeDict,
    HouseholdDict,
    InheritanceDict,
    PersonDict,
    PersonResultDict,
)

if TYPE_CHECKING:
    from .capacity import PersonResult

__all__ = [
    "SCHEMA_VERSION",
    "EXPORT_FORMAT_VERSION",
    "inheritance_to_dict",
    "inheritance_from_dict",
    "person_to_dict",
    "person_from_dict",
    "household_to_dict",
    "household_from_dict",
    "household_to_envelope",
    "household_from_payload",
    "save_household",
    "load_household",
    "result_to_dict",
    "results_to_dict",
    "results_to_frame",
]

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Schema Version
# ---------------------------------------------------------------------------

SCHEMA_VERSION = "0.1.0"

EXPORT_FORMAT_VERSION = 1


# ---------------------------------------------------------------------------
# Inheritance / Person Serialization
# ---------------------------------------------------------------------------

def inheritance_to_dict(inheritance: Inheritance) -> InheritanceDict:
    """
    Convert Inheritance to dictionary representation.

    Dates are written as ISO strings.
    """
    return {
        "id": inheritance.id,
        "name": inheritance.name,
        "amount": inheritance.amount,
        "received_date": (
            inheritance.received_date.isoformat()
            if inheritance.received_date is not None
            else None
        ),
        "discount": inheritance.discount,
        "return_rate": inheritance.return_rate,
    }


def _inheritance_from_config(config: InheritanceConfig) -> Inheritance:
    return Inheritance(
        id=config.id,
        name=config.name,
        amount=config.amount,
        received_date=config.received_date,
        discount=config.discount,
        return_rate=config.return_rate,
    )


def inheritance_from_dict(data: Dict[str, Any]) -> Inheritance:
    """
    Create Inheritance from dictionary representation.

    Raises
    ------
    SnapshotFormatError
        If the data does not have the inheritance shape.
    """
    return _inheritance_from_config(_validate(InheritanceConfig, data, "inheritance"))


def person_to_dict(person: Person) -> PersonDict:
    """Convert Person to dictionary representation."""
    return {
        "id": person.id,
        "name": person.name,
        "net_income": person.net_income,
        "inheritances": [inheritance_to_dict(i) for i in person.inheritances],
        "passive_advantages": person.passive_advantages,
        "passive_advantages_discount": person.passive_advantages_discount,
        "passive_advantages_return_rate": person.passive_advantages_return_rate,
        "expected_future_inheritance": person.expected_future_inheritance,
        "expected_future_inheritance_discount": person.expected_future_inheritance_discount,
        "student_loans": person.student_loans,
        "family_support": person.family_support,
        "variable_income": person.variable_income,
        "variable_income_discount": person.variable_income_discount,
        "retirement_matching": person.retirement_matching,
    }


def _person_from_config(config: PersonConfig) -> Person:
    return Person(
        id=config.id,
        name=config.name,
        net_income=config.net_income,
        inheritances=tuple(_inheritance_from_config(i) for i in config.inheritances),
        passive_advantages=config.passive_advantages,
        passive_advantages_discount=config.passive_advantages_discount,
        passive_advantages_return_rate=config.passive_advantages_return_rate,
        expected_future_inheritance=config.expected_future_inheritance,
        expected_future_inheritance_discount=config.expected_future_inheritance_discount,
        student_loans=config.student_loans,
        family_support=config.family_support,
        variable_income=config.variable_income,
        variable_income_discount=config.variable_income_discount,
        retirement_matching=config.retirement_matching,
    )


def person_from_dict(data: Dict[str, Any]) -> Person:
    """
    Create Person from dictionary representation.

    Missing fields take their defaults (e.g. 20% variable income discount).

    Raises
    ------
    SnapshotFormatError
        If the data does not have the person shape.
    """
    return _person_from_config(_validate(PersonConfig, data, "person"))


# ---------------------------------------------------------------------------
# Household Serialization
# ---------------------------------------------------------------------------

def _validate(model, data: Any, what: str):
    if not isinstance(data, dict):
        raise SnapshotFormatError(
            f"Invalid {what}: expected an object, got {type(data).__name__}"
        )
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
            for err in e.errors()
        )
        raise SnapshotFormatError(f"Invalid {what}: {problems}") from e


def household_to_dict(household: Household) -> HouseholdDict:
    """
    Convert Household to dictionary representation.

    Parameters
    ----------
    household : Household
        Snapshot to serialize

    Returns
    -------
    dict
        JSON-ready dictionary with snake_case keys
    """
    return {
        "currency": household.currency,
        "shared_expenses": household.shared_expenses,
        "timeframe": household.timeframe,
        "people": [person_to_dict(p) for p in household.people],
        "property_arrangement": household.property_arrangement,
        "property_owner_id": household.property_owner_id,
        "market_rent": household.market_rent,
    }


def household_from_dict(data: Dict[str, Any]) -> Household:
    """
    Create Household from dictionary representation.

    Accepts snake_case or camelCase keys and ignores unknown keys. Only the
    structure is checked: ``people`` must be present and be a list of
    objects, numbers must be numbers and enumerations must be valid.
    Out-of-range numbers pass through unchanged.

    Parameters
    ----------
    data : dict
        Snapshot dictionary

    Returns
    -------
    Household
        Reconstructed snapshot

    Raises
    ------
    SnapshotFormatError
        If the data does not have the household shape.
    """
    config = _validate(HouseholdConfig, data, "household snapshot")
    return Household(
        currency=config.currency,
        shared_expenses=config.shared_expenses,
        timeframe=config.timeframe,
        people=tuple(_person_from_config(p) for p in config.people),
        property_arrangement=config.property_arrangement,
        property_owner_id=config.property_owner_id,
        market_rent=config.market_rent,
    )


def household_to_envelope(
    household: Household,
    *,
    now: Optional[datetime] = None,
) -> ExportEnvelopeDict:
    """
    Wrap a household in the file envelope (schema version + metadata).

    Examples
    --------
    >>> envelope = household_to_envelope(default_household())
    >>> envelope["meta"]["version"]
    1
    """
    now = now or datetime.now()
    return {
        "schema_version": SCHEMA_VERSION,
        "meta": {
            "version": EXPORT_FORMAT_VERSION,
            "date": now.isoformat(timespec="seconds"),
        },
        "household": household_to_dict(household),
    }


def household_from_payload(payload: Any) -> Household:
    """
    Build a Household from a decoded JSON payload.

    Two layouts are accepted:
    - the envelope written by ``save_household`` / ``export_json``
      (``{"schema_version", "meta", "household"}``);
    - a bare legacy snapshot (``{"currency", "sharedExpenses", "people", ...}``).

    A schema version different from the current one triggers a
    ``UserWarning`` but the load proceeds.

    Raises
    ------
    SnapshotFormatError
        If the payload matches neither layout.
    """
    if not isinstance(payload, dict):
        raise SnapshotFormatError(
            f"Invalid household file: expected an object, got {type(payload).__name__}"
        )

    if "household" in payload:
        schema_version = payload.get("schema_version", "0.0.0")
        if schema_version != SCHEMA_VERSION:
            warnings.warn(
                f"Household schema version {schema_version} differs from current "
                f"version {SCHEMA_VERSION}. May encounter compatibility issues.",
                UserWarning,
            )
        return household_from_dict(payload["household"])

    logger.debug("Loading bare household snapshot (no envelope)")
    return household_from_dict(payload)


def save_household(
    household: Household,
    path: Path,
    *,
    now: Optional[datetime] = None,
) -> None:
    """
    Save a household snapshot to a JSON file.

    Parameters
    ----------
    household : Household
        Snapshot to save
    path : Path
        Output file path (parent directories are created)

    Raises
    ------
    PersistenceError
        If the file cannot be written.

    Examples
    --------
    >>> save_household(household, Path("household.json"))
    """
    path = Path(path)
    envelope = household_to_envelope(household, now=now)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(envelope, f, indent=2)
    except OSError as e:
        raise PersistenceError(f"Could not write household file {path}: {e}") from e
    logger.debug("Saved household with %d people to %s", len(household.people), path)


def load_household(path: Path) -> Household:
    """
    Load a household snapshot from a JSON file.

    Parameters
    ----------
    path : Path
        Input file path

    Returns
    -------
    Household
        Reconstructed snapshot

    Raises
    ------
    PersistenceError
        If the file cannot be read or is not valid JSON.
    SnapshotFormatError
        If the JSON does not have the household shape.

    Examples
    --------
    >>> household = load_household(Path("household.json"))
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            payload = json.load(f)
    except OSError as e:
        raise PersistenceError(f"Could not read household file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise PersistenceError(f"Household file {path} is not valid JSON: {e}") from e

    household = household_from_payload(payload)
    logger.debug("Loaded household with %d people from %s", len(household.people), path)
    return household


# ---------------------------------------------------------------------------
# Result Serialization
# ---------------------------------------------------------------------------

def result_to_dict(result: PersonResult) -> PersonResultDict:
    """Convert one PersonResult to dictionary representation."""
    return {
        "person_id": result.person_id,
        "monthly_capacity": result.monthly_capacity,
        "monthly_contribution": result.monthly_contribution,
        "percentage": result.percentage,
        "monthly_disposable": result.monthly_disposable,
        "monthly_net_income": result.monthly_net_income,
        "breakdown": [
            {
                "label": item.label,
                "amount": item.amount,
                "type": item.type,
                "category": item.category,
            }
            for item in result.breakdown
        ],
    }


def results_to_dict(results: Iterable[PersonResult]) -> List[PersonResultDict]:
    """Convert engine results to a JSON-ready list."""
    return [result_to_dict(r) for r in results]


_FRAME_COLUMNS = [
    "name",
    "monthly_net_income",
    "monthly_capacity",
    "percentage",
    "monthly_contribution",
    "monthly_disposable",
]


def results_to_frame(
    results: Iterable[PersonResult],
    household: Optional[Household] = None,
) -> pd.DataFrame:
    """
    Tabulate engine results, one row per person.

    Parameters
    ----------
    results : iterable of PersonResult
        Engine output.
    household : Household, optional
        Snapshot the results came from; used to fill the ``name`` column.

    Returns
    -------
    pd.DataFrame
        Indexed by ``person_id`` with columns name, monthly_net_income,
        monthly_capacity, percentage, monthly_contribution,
        monthly_disposable. Breakdowns are not included.

    Examples
    --------
    >>> df = results_to_frame(calculate(household), household)
    >>> df["percentage"].sum()
    100.0
    """
    rows = []
    for r in results:
        person = household.find_person(r.person_id) if household is not None else None
        rows.append(
            {
                "person_id": r.person_id,
                "name": person.name if person is not None else "",
                "monthly_net_income": r.monthly_net_income,
                "monthly_capacity": r.monthly_capacity,
                "percentage": r.percentage,
                "monthly_contribution": r.monthly_contribution,
                "monthly_disposable": r.monthly_disposable,
            }
        )
    if not rows:
        return pd.DataFrame(columns=_FRAME_COLUMNS, index=pd.Index([], name="person_id"))
    return pd.DataFrame(rows).set_index("person_id")[_FRAME_COLUMNS]
