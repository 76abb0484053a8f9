"""
Custom exceptions for FairShare.

Purpose
-------
Provides a unified exception hierarchy for consistent error handling
across the FairShare collaborator layers (store, serialization, CLI).
All exceptions inherit from FairShareError, enabling catch-all handling
when needed.

The capacity engine itself never raises for numeric input: out-of-range
amounts and percentages are clamped. These exceptions cover structural
problems that must be rejected *before* a snapshot reaches the engine.

Exception Hierarchy
-------------------
FairShareError (base)
├── ConfigurationError - Invalid settings or engine policy
├── ValidationError - Structural snapshot/action failures (also a ValueError)
│   ├── SnapshotFormatError - Malformed household snapshot (missing people, bad types)
│   └── UnknownEntityError - Person or inheritance id not found
└── PersistenceError - Reading or writing a household file failed

Usage
-----
>>> from fairshare.exceptions import SnapshotFormatError, FairShareError
>>>
>>> raise SnapshotFormatError("people must be a list, got dict")
>>>
>>> try:
...     household = load_household(path)
... except FairShareError as e:
...     print(f"FairShare error: {e}")
"""


class FairShareError(Exception):
    """
    Base exception for all FairShare errors.

    Examples
    --------
    >>> try:
    ...     store.dispatch(RemovePerson("missing"))
    ... except FairShareError as e:
    ...     logger.error("Update failed: %s", e)
    """
    pass


class ConfigurationError(FairShareError):
    """
    Invalid settings or engine policy.

    Raised when application settings cannot be turned into a usable
    configuration, such as an unknown property split policy name.
    """
    pass


class ValidationError(FairShareError, ValueError):
    """
    Structural validation failures.

    Raised when a snapshot or a store action is structurally invalid:
    - Unknown timeframe or property arrangement
    - Unknown action type passed to the reducer
    - Wrong value types

    Numeric range problems (negative incomes, discounts above 100) are
    never reported through this exception; they are clamped.
    """
    pass


class SnapshotFormatError(ValidationError):
    """
    Malformed household snapshot.

    Raised on load/import when the data does not have the household shape:
    - Missing ``people`` list
    - ``people`` is not a list
    - Person entries of the wrong type

    Examples
    --------
    >>> raise SnapshotFormatError(
    ...     "Invalid household snapshot: people: Field required"
    ... )
    """
    pass


class UnknownEntityError(ValidationError):
    """
    Person or inheritance id not found in the household.

    Examples
    --------
    >>> raise UnknownEntityError(f"No person with id {person_id!r}")
    """
    pass


class PersistenceError(FairShareError):
    """
    Reading or writing a household file failed.

    Wraps the underlying OSError/JSON error so callers that want strict
    behaviour (the CLI) can report it, while the store treats persistence
    as best effort.
    """
    pass
