"""
Household state store for FairShare.

Purpose
-------
Owns the current household snapshot and every way of changing it. Changes
are expressed as explicit *actions* (frozen dataclasses) applied by a pure
reducer; ``HouseholdStore`` adds persistence, JSON export/import and access
to the capacity engine.

Key components
--------------
- Actions:
    One dataclass per kind of edit (add/remove/rename people, set income
    fields, manage inheritances, household settings, reset).

- reduce(household, action):
    Pure function returning the next snapshot. Validates enumerations and
    ids, never touches disk.

- HouseholdStore:
    Single-writer holder of the snapshot with load/save, dispatch,
    export_json/import_json and calculate.

Example
-------
>>> from fairshare.store import HouseholdStore, SetIncome
>>> store = HouseholdStore()
>>> alex, sam = store.household.person_ids
>>> _ = store.dispatch(SetIncome(alex, net_income=6000))
>>> _ = store.dispatch(SetIncome(sam, net_income=4000))
>>> [round(r.percentage) for r in store.calculate()]
[60, 40]
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, replace
from datetime import date
from pathlib import Path
from typing import List, Optional, Union

from .capacity import PersonResult, calculate
from .config import AppSettings, EnginePolicy, load_settings
from .constants import MIN_PEOPLE_FOR_REMOVAL, MONTHS_PER_YEAR, PROPERTY_ARRANGEMENTS
from .exceptions import (
    PersistenceError,
    SnapshotFormatError,
    UnknownEntityError,
    ValidationError,
)
from .household import (
    Household,
    Inheritance,
    Person,
    create_inheritance,
    create_person,
    default_household,
)
from .serialization import (
    household_from_payload,
    household_to_envelope,
    load_household,
    save_household,
)
from .utils import check_timeframe, round_half_up

__all__ = [
    # Actions
    "AddPerson",
    "RemovePerson",
    "RenamePerson",
    "SetIncome",
    "SetVariableIncome",
    "SetDeductions",
    "SetPassiveAdvantages",
    "SetExpectedInheritance",
    "AddInheritance",
    "UpdateInheritance",
    "RemoveInheritance",
    "SetSharedExpenses",
    "SetCurrency",
    "SetTimeframe",
    "SetProperty",
    "ResetHousehold",
    "Action",
    # Reducer / store
    "reduce",
    "HouseholdStore",
]

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AddPerson:
    """Append a person. Unnamed people are called "Partner <n+1>"."""
    name: Optional[str] = None


@dataclass(frozen=True)
class RemovePerson:
    """Remove a person. Ignored while the household has two people or fewer."""
    person_id: str


@dataclass(frozen=True)
class RenamePerson:
    person_id: str
    name: str


@dataclass(frozen=True)
class SetIncome:
    """Set periodic take-home income and/or employer retirement matching."""
    person_id: str
    net_income: Optional[float] = None
    retirement_matching: Optional[float] = None


@dataclass(frozen=True)
class SetVariableIncome:
    """Set annual variable income and/or its uncertainty discount."""
    person_id: str
    amount: Optional[float] = None
    discount: Optional[float] = None


@dataclass(frozen=True)
class SetDeductions:
    person_id: str
    student_loans: Optional[float] = None
    family_support: Optional[float] = None


@dataclass(frozen=True)
class SetPassiveAdvantages:
    person_id: str
    amount: Optional[float] = None
    discount: Optional[float] = None
    return_rate: Optional[float] = None


@dataclass(frozen=True)
class SetExpectedInheritance:
    person_id: str
    amount: Optional[float] = None
    discount: Optional[float] = None


@dataclass(frozen=True)
class AddInheritance:
    """Append an inheritance, named "Inheritance <k+1>" and dated today by default."""
    person_id: str
    name: Optional[str] = None
    received_date: Optional[date] = None


@dataclass(frozen=True)
class UpdateInheritance:
    """
    Update fields of one inheritance. ``None`` leaves a field unchanged;
    ``clear_received_date`` removes the date (the amount is then treated
    as a present value).
    """
    person_id: str
    inheritance_id: str
    name: Optional[str] = None
    amount: Optional[float] = None
    received_date: Optional[date] = None
    discount: Optional[float] = None
    return_rate: Optional[float] = None
    clear_received_date: bool = False


@dataclass(frozen=True)
class RemoveInheritance:
    person_id: str
    inheritance_id: str


@dataclass(frozen=True)
class SetSharedExpenses:
    amount: float


@dataclass(frozen=True)
class SetCurrency:
    code: str


@dataclass(frozen=True)
class SetTimeframe:
    """Switch timeframe, rescaling every periodic figure by 12 or 1/12."""
    timeframe: str


@dataclass(frozen=True)
class SetProperty:
    """
    Update the property arrangement. ``None`` leaves a field unchanged;
    ``clear_owner`` unsets the owner.
    """
    arrangement: Optional[str] = None
    owner_id: Optional[str] = None
    market_rent: Optional[float] = None
    clear_owner: bool = False


@dataclass(frozen=True)
class ResetHousehold:
    pass


Action = Union[
    AddPerson,
    RemovePerson,
    RenamePerson,
    SetIncome,
    SetVariableIncome,
    SetDeductions,
    SetPassiveAdvantages,
    SetExpectedInheritance,
    AddInheritance,
    UpdateInheritance,
    RemoveInheritance,
    SetSharedExpenses,
    SetCurrency,
    SetTimeframe,
    SetProperty,
    ResetHousehold,
]


# ---------------------------------------------------------------------------
# Reducer
# ---------------------------------------------------------------------------

def _number(value, field_name: str) -> float:
    """Coerce an action value to float; ranges are left to the engine."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(
            f"{field_name} must be a number, got {type(value).__name__}"
        )
    value = float(value)
    if math.isnan(value):
        raise ValidationError(f"{field_name} must not be NaN")
    return value


def _changes(**fields) -> dict:
    """Keep only the fields that were given, coerced to float."""
    return {
        name: _number(value, name)
        for name, value in fields.items()
        if value is not None
    }


def _require_person(household: Household, person_id: str) -> Person:
    person = household.find_person(person_id)
    if person is None:
        raise UnknownEntityError(f"Unknown person id: {person_id!r}")
    return person


def _require_inheritance(person: Person, inheritance_id: str) -> Inheritance:
    inheritance = person.find_inheritance(inheritance_id)
    if inheritance is None:
        raise UnknownEntityError(
            f"Unknown inheritance id {inheritance_id!r} for person {person.id!r}"
        )
    return inheritance


def _replace_person(household: Household, person: Person) -> Household:
    return replace(
        household,
        people=tuple(person if p.id == person.id else p for p in household.people),
    )


def _update_person(household: Household, person_id: str, **changes) -> Household:
    person = _require_person(household, person_id)
    if not changes:
        return household
    return _replace_person(household, replace(person, **changes))


def _rescale(household: Household, to_yearly: bool) -> Household:
    def scaled(value: float) -> float:
        if to_yearly:
            return round_half_up(value * MONTHS_PER_YEAR)
        return round_half_up(value / MONTHS_PER_YEAR)

    people = tuple(
        replace(
            p,
            net_income=scaled(p.net_income),
            student_loans=scaled(p.student_loans),
            family_support=scaled(p.family_support),
            retirement_matching=scaled(p.retirement_matching),
        )
        for p in household.people
    )
    return replace(
        household,
        shared_expenses=scaled(household.shared_expenses),
        market_rent=scaled(household.market_rent),
        people=people,
    )


def reduce(
    household: Household,
    action: Action,
    *,
    today: Optional[date] = None,
) -> Household:
    """
    Apply *action* to *household* and return the next snapshot.

    The input snapshot is never modified.

    Parameters
    ----------
    household : Household
        Current snapshot.
    action : Action
        One of the action dataclasses of this module.
    today : date, optional
        Date given to new inheritances. Defaults to today.

    Returns
    -------
    Household
        Next snapshot (may be the same object when nothing changes).

    Raises
    ------
    UnknownEntityError
        If a person or inheritance id does not exist.
    ValidationError
        If a value is invalid (unknown timeframe or arrangement, empty
        currency, non-numeric amount) or the action type is unknown.

    Examples
    --------
    >>> household = reduce(default_household(), SetTimeframe("yearly"))
    >>> household.shared_expenses
    36000.0
    """
    if isinstance(action, AddPerson):
        name = action.name or f"Partner {len(household.people) + 1}"
        return replace(household, people=household.people + (create_person(name),))

    if isinstance(action, RemovePerson):
        _require_person(household, action.person_id)
        if len(household.people) <= MIN_PEOPLE_FOR_REMOVAL:
            logger.debug(
                "Not removing %s: household keeps at least %d people",
                action.person_id, MIN_PEOPLE_FOR_REMOVAL,
            )
            return household
        owner_id = household.property_owner_id
        return replace(
            household,
            people=tuple(p for p in household.people if p.id != action.person_id),
            property_owner_id=None if owner_id == action.person_id else owner_id,
        )

    if isinstance(action, RenamePerson):
        if not isinstance(action.name, str):
            raise ValidationError("name must be a string")
        return _update_person(household, action.person_id, name=action.name)

    if isinstance(action, SetIncome):
        return _update_person(
            household,
            action.person_id,
            **_changes(
                net_income=action.net_income,
                retirement_matching=action.retirement_matching,
            ),
        )

    if isinstance(action, SetVariableIncome):
        return _update_person(
            household,
            action.person_id,
            **_changes(
                variable_income=action.amount,
                variable_income_discount=action.discount,
            ),
        )

    if isinstance(action, SetDeductions):
        return _update_person(
            household,
            action.person_id,
            **_changes(
                student_loans=action.student_loans,
                family_support=action.family_support,
            ),
        )

    if isinstance(action, SetPassiveAdvantages):
        return _update_person(
            household,
            action.person_id,
            **_changes(
                passive_advantages=action.amount,
                passive_advantages_discount=action.discount,
                passive_advantages_return_rate=action.return_rate,
            ),
        )

    if isinstance(action, SetExpectedInheritance):
        return _update_person(
            household,
            action.person_id,
            **_changes(
                expected_future_inheritance=action.amount,
                expected_future_inheritance_discount=action.discount,
            ),
        )

    if isinstance(action, AddInheritance):
        person = _require_person(household, action.person_id)
        name = action.name or f"Inheritance {len(person.inheritances) + 1}"
        inheritance = create_inheritance(name, today=today)
        if action.received_date is not None:
            inheritance = replace(inheritance, received_date=action.received_date)
        return _replace_person(
            household, replace(person, inheritances=person.inheritances + (inheritance,))
        )

    if isinstance(action, UpdateInheritance):
        person = _require_person(household, action.person_id)
        inheritance = _require_inheritance(person, action.inheritance_id)
        changes = _changes(
            amount=action.amount,
            discount=action.discount,
            return_rate=action.return_rate,
        )
        if action.name is not None:
            changes["name"] = action.name
        if action.clear_received_date:
            changes["received_date"] = None
        elif action.received_date is not None:
            changes["received_date"] = action.received_date
        updated = replace(inheritance, **changes)
        return _replace_person(
            household,
            replace(
                person,
                inheritances=tuple(
                    updated if i.id == updated.id else i for i in person.inheritances
                ),
            ),
        )

    if isinstance(action, RemoveInheritance):
        person = _require_person(household, action.person_id)
        _require_inheritance(person, action.inheritance_id)
        return _replace_person(
            household,
            replace(
                person,
                inheritances=tuple(
                    i for i in person.inheritances if i.id != action.inheritance_id
                ),
            ),
        )

    if isinstance(action, SetSharedExpenses):
        return replace(household, shared_expenses=_number(action.amount, "shared_expenses"))

    if isinstance(action, SetCurrency):
        code = action.code.strip() if isinstance(action.code, str) else ""
        if not code or len(code) > 10:
            raise ValidationError(f"Invalid currency code: {action.code!r}")
        return replace(household, currency=code)

    if isinstance(action, SetTimeframe):
        timeframe = check_timeframe(action.timeframe)
        if timeframe == household.timeframe:
            return household
        logger.debug("Switching timeframe %s -> %s", household.timeframe, timeframe)
        return replace(_rescale(household, timeframe == "yearly"), timeframe=timeframe)

    if isinstance(action, SetProperty):
        changes = {}
        if action.arrangement is not None:
            if action.arrangement not in PROPERTY_ARRANGEMENTS:
                raise ValidationError(
                    f"arrangement must be one of {PROPERTY_ARRANGEMENTS}, "
                    f"got {action.arrangement!r}."
                )
            changes["property_arrangement"] = action.arrangement
        if action.clear_owner:
            changes["property_owner_id"] = None
        elif action.owner_id is not None:
            _require_person(household, action.owner_id)
            changes["property_owner_id"] = action.owner_id
        changes.update(_changes(market_rent=action.market_rent))
        return replace(household, **changes) if changes else household

    if isinstance(action, ResetHousehold):
        return default_household()

    raise ValidationError(f"Unknown action: {type(action).__name__}")


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class HouseholdStore:
    """
    Holder of the current household snapshot.

    The store is single-writer and not thread-safe. Persistence is explicit:
    ``load()`` reads the state file, ``save()`` writes it, and ``dispatch``
    saves after each action when ``autosave`` is on and a path is set.

    Parameters
    ----------
    path : Path, optional
        State file. Without a path the store is in-memory only.
    policy : EnginePolicy, optional
        Engine policy used by ``calculate``.
    autosave : bool, default True
        Save after every dispatched action.
    household : Household, optional
        Initial snapshot. Defaults to ``default_household()``.
    """

    def __init__(
        self,
        path: Optional[Path] = None,
        *,
        policy: Optional[EnginePolicy] = None,
        autosave: bool = True,
        household: Optional[Household] = None,
    ):
        self.path = Path(path) if path is not None else None
        self.policy = policy or EnginePolicy()
        self.autosave = autosave
        self.household = household or default_household()

    @classmethod
    def from_settings(cls, settings: Optional[AppSettings] = None) -> "HouseholdStore":
        """Store bound to the settings' state file and engine policy, loaded."""
        settings = settings or load_settings()
        store = cls(
            settings.state_file,
            policy=settings.engine_policy(),
            autosave=settings.autosave,
        )
        store.load()
        return store

    def __repr__(self) -> str:
        return (
            f"HouseholdStore(path={self.path}, people={len(self.household.people)}, "
            f"timeframe='{self.household.timeframe}')"
        )

    # -- persistence --------------------------------------------------------

    def load(self) -> Household:
        """
        Load the snapshot from the state file.

        A missing, unreadable or malformed file leaves the store with the
        default household; problems are logged as warnings.
        """
        if self.path is None or not self.path.exists():
            self.household = default_household()
            return self.household
        try:
            self.household = load_household(self.path)
        except (PersistenceError, SnapshotFormatError) as e:
            logger.warning("Could not load %s, using defaults: %s", self.path, e)
            self.household = default_household()
        return self.household

    def save(self) -> bool:
        """Write the snapshot to the state file. Returns False on failure."""
        if self.path is None:
            return False
        try:
            save_household(self.household, self.path)
        except PersistenceError as e:
            logger.warning("Could not save household: %s", e)
            return False
        return True

    # -- state changes ------------------------------------------------------

    def dispatch(self, action: Action, *, today: Optional[date] = None) -> Household:
        """Apply *action*, autosave if enabled and return the new snapshot."""
        self.household = reduce(self.household, action, today=today)
        if self.autosave and self.path is not None:
            self.save()
        return self.household

    def reset(self) -> Household:
        """Restore the default household."""
        return self.dispatch(ResetHousehold())

    def calculate(self, today: Optional[date] = None) -> List[PersonResult]:
        """Run the capacity engine on the current snapshot."""
        return calculate(self.household, policy=self.policy, today=today)

    # -- export / import ----------------------------------------------------

    def export_json(self) -> str:
        """Serialize the snapshot as an export envelope (JSON text)."""
        return json.dumps(household_to_envelope(self.household), indent=2)

    def import_json(self, text: str) -> bool:
        """
        Replace the snapshot with one decoded from *text*.

        Accepts an export envelope or a bare legacy snapshot. Invalid JSON
        or an invalid structure is logged and leaves the state unchanged.

        Returns
        -------
        bool
            True when the import succeeded.
        """
        try:
            payload = json.loads(text)
        except (TypeError, ValueError) as e:
            logger.error("Import failed: invalid JSON: %s", e)
            return False
        try:
            household = household_from_payload(payload)
        except SnapshotFormatError as e:
            logger.error("Import failed: %s", e)
            return False

        self.household = household
        logger.info("Imported household with %d people", len(household.people))
        if self.autosave and self.path is not None:
            self.save()
        return True
