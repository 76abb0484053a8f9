"""
Configuration management module for FairShare.

Purpose
-------
Centralized configuration using Pydantic models for type-safe parameter
management, validation and serialization:

- Snapshot schema (InheritanceConfig, PersonConfig, HouseholdConfig):
  structural validation of household files before they are turned into
  ``household.Household`` records. Only *types and shape* are checked;
  numeric ranges are deliberately left open because the capacity engine
  clamps them.
- EnginePolicy: the capacity engine's policy switches (inheritance
  compounding, property split formula, future-inheritance rate).
- AppSettings: environment-driven application settings (state file,
  log level, defaults).

Design Principles
-----------------
- Type-safe: Pydantic enforces types on everything read from disk
- Immutable: Frozen models prevent accidental mutation
- Permissive ranges: negative amounts and out-of-range discounts pass
- Compatible: camelCase keys written by the original web store are accepted
- Environment-aware: Supports .env files and FAIRSHARE_* variables

Example
-------
>>> from fairshare.config import HouseholdConfig, EnginePolicy
>>> config = HouseholdConfig.model_validate({"people": [{"id": "a", "netIncome": 5000}]})
>>> config.people[0].net_income
5000.0
>>> EnginePolicy(property_split="half_rent").compound_inheritances
True
"""

from __future__ import annotations
from typing import Optional, Literal, List
import datetime
from pathlib import Path

from pydantic import BaseModel, Field, field_validator, ConfigDict
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    ASSUMED_RETURN_RATE,
    DEFAULT_CURRENCY,
    DEFAULT_FUTURE_INHERITANCE_DISCOUNT,
    DEFAULT_INHERITANCE_DISCOUNT,
    DEFAULT_PASSIVE_ADVANTAGES_DISCOUNT,
    DEFAULT_PASSIVE_ADVANTAGES_RATE,
    DEFAULT_SHARED_EXPENSES,
    DEFAULT_VARIABLE_INCOME_DISCOUNT,
)
from .exceptions import ConfigurationError
from .household import new_id

__all__ = [
    "InheritanceConfig",
    "PersonConfig",
    "HouseholdConfig",
    "EnginePolicy",
    "AppSettings",
    "load_settings",
]


def _none_to_zero(v):
    """JSON nulls in numeric fields count as zero."""
    return 0.0 if v is None else v


# ---------------------------------------------------------------------------
# Snapshot Schema
# ---------------------------------------------------------------------------

class InheritanceConfig(BaseModel):
    """
    Schema for one inheritance entry.

    Attributes
    ----------
    id : str
        Identifier (generated when missing).
    name : str
        Display label.
    amount : float
        Principal as of received_date (any sign; <= 0 contributes nothing).
    received_date : datetime.date, optional
        ISO date. Empty string or null means "no compounding".
    discount : float
        Haircut percentage (clamped to [0, 100] by the engine).
    return_rate : float
        Annual percentage return.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str = Field(
        default_factory=new_id,
        description="Inheritance identifier"
    )
    name: str = Field(
        default="",
        description="Display label"
    )
    amount: float = Field(
        default=0.0,
        description="Principal as of received_date"
    )
    received_date: Optional[datetime.date] = Field(
        default=None,
        description="Date received (None = present value)"
    )
    discount: float = Field(
        default=DEFAULT_INHERITANCE_DISCOUNT,
        description="Illiquidity/uncertainty discount in percent"
    )
    return_rate: float = Field(
        default=ASSUMED_RETURN_RATE,
        description="Annual return rate in percent"
    )

    @field_validator("received_date", mode="before")
    @classmethod
    def parse_received_date(cls, v):
        """Treat empty strings as missing and drop a time component."""
        if isinstance(v, str):
            v = v.strip()
            if not v:
                return None
            return v.split("T", 1)[0]
        return v

    @field_validator("amount", "discount", "return_rate", mode="before")
    @classmethod
    def null_numbers(cls, v):
        return _none_to_zero(v)


class PersonConfig(BaseModel):
    """Schema for one household member. Missing fields take the usual defaults."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str = Field(
        default_factory=new_id,
        description="Person identifier"
    )
    name: str = Field(
        default="",
        description="Display name"
    )
    net_income: float = Field(
        default=0.0,
        description="Periodic take-home income"
    )
    inheritances: List[InheritanceConfig] = Field(
        default_factory=list,
        description="Received inheritances"
    )
    passive_advantages: float = Field(
        default=0.0,
        description="Lump-sum value of non-liquid family advantages"
    )
    passive_advantages_discount: float = Field(
        default=DEFAULT_PASSIVE_ADVANTAGES_DISCOUNT,
        description="Discount on passive advantages in percent"
    )
    passive_advantages_return_rate: float = Field(
        default=DEFAULT_PASSIVE_ADVANTAGES_RATE,
        description="Annual return rate for passive advantages in percent"
    )
    expected_future_inheritance: float = Field(
        default=0.0,
        description="Speculative future inheritance amount"
    )
    expected_future_inheritance_discount: float = Field(
        default=DEFAULT_FUTURE_INHERITANCE_DISCOUNT,
        description="Uncertainty discount on the future inheritance in percent"
    )
    student_loans: float = Field(
        default=0.0,
        description="Periodic student loan payments"
    )
    family_support: float = Field(
        default=0.0,
        description="Periodic support paid to family"
    )
    variable_income: float = Field(
        default=0.0,
        description="Annual uncertain income (bonuses, commissions)"
    )
    variable_income_discount: float = Field(
        default=DEFAULT_VARIABLE_INCOME_DISCOUNT,
        description="Uncertainty discount on variable income in percent"
    )
    retirement_matching: float = Field(
        default=0.0,
        description="Periodic employer retirement matching"
    )

    @field_validator(
        "net_income",
        "passive_advantages",
        "passive_advantages_discount",
        "passive_advantages_return_rate",
        "expected_future_inheritance",
        "expected_future_inheritance_discount",
        "student_loans",
        "family_support",
        "variable_income",
        "variable_income_discount",
        "retirement_matching",
        mode="before",
    )
    @classmethod
    def null_numbers(cls, v):
        return _none_to_zero(v)


class HouseholdConfig(BaseModel):
    """
    Schema for a household snapshot.

    ``people`` is required and must be a list; this is the structural check
    that keeps malformed imports away from the engine. Unknown keys (UI
    state such as ``activeSection``) are ignored.

    Examples
    --------
    >>> HouseholdConfig.model_validate({"sharedExpenses": 4000, "people": []}).shared_expenses
    4000.0
    >>> HouseholdConfig.model_validate({"currency": "EUR"})
    Traceback (most recent call last):
    ...
    pydantic_core._pydantic_core.ValidationError: 1 validation error for HouseholdConfig
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    currency: str = Field(
        default=DEFAULT_CURRENCY,
        min_length=1,
        max_length=10,
        description="Currency label (never converted)"
    )
    shared_expenses: float = Field(
        default=DEFAULT_SHARED_EXPENSES,
        description="Periodic shared expenses to split"
    )
    timeframe: Literal["monthly", "yearly"] = Field(
        default="monthly",
        description="Unit of all periodic figures"
    )
    people: List[PersonConfig] = Field(
        description="Household members"
    )
    property_arrangement: Literal["none", "owned"] = Field(
        default="none",
        description="Property arrangement"
    )
    property_owner_id: Optional[str] = Field(
        default=None,
        description="Id of the property owner"
    )
    market_rent: float = Field(
        default=0.0,
        description="Periodic fair-market rent of the shared home"
    )

    @field_validator("shared_expenses", "market_rent", mode="before")
    @classmethod
    def null_numbers(cls, v):
        return _none_to_zero(v)


# ---------------------------------------------------------------------------
# Engine Policy
# ---------------------------------------------------------------------------

class EnginePolicy(BaseModel):
    """
    Policy switches of the capacity engine.

    Earlier revisions of the calculation disagreed on two points; both are
    explicit policy choices here instead of being merged.

    Attributes
    ----------
    compound_inheritances : bool
        Grow each inheritance from its received date to today at its own
        return rate before discounting. When False the principal is used
        as-is.
    property_split : {"per_capita", "half_rent"}
        "per_capita": the owner gains the full market rent and every member
        (owner included) consumes an equal share of it.
        "half_rent": the owner gains the full market rent and the non-owners
        share half of it between them.
    future_inheritance_rate : float
        Annual percentage rate used to value expected future inheritances.

    Examples
    --------
    >>> policy = EnginePolicy(compound_inheritances=False)
    >>> policy.property_split
    'per_capita'
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    compound_inheritances: bool = Field(
        default=True,
        description="Compound inheritances from their received date"
    )
    property_split: Literal["per_capita", "half_rent"] = Field(
        default="per_capita",
        description="Property ownership split formula"
    )
    future_inheritance_rate: float = Field(
        default=ASSUMED_RETURN_RATE,
        ge=0,
        le=100,
        description="Assumed annual return for expected inheritances (percent)"
    )


# ---------------------------------------------------------------------------
# Application Settings (Environment Variables)
# ---------------------------------------------------------------------------

class AppSettings(BaseSettings):
    """
    Global application settings loaded from environment variables.

    Supports .env files for local development. Environment variables
    should be prefixed with FAIRSHARE_ (e.g., FAIRSHARE_LOG_LEVEL=DEBUG).

    Attributes
    ----------
    log_level : str
        Logging level: "DEBUG", "INFO", "WARNING", "ERROR"
    state_file : Path
        Household file used by the store when no path is given
    default_currency : str
        Currency label for newly created households
    autosave : bool
        Save the household after every store action
    compound_inheritances, property_split
        Engine policy defaults (see EnginePolicy)

    Examples
    --------
    >>> settings = AppSettings()
    >>> settings.log_level
    'WARNING'

    # With .env file:
    # FAIRSHARE_PROPERTY_SPLIT=half_rent
    >>> AppSettings(_env_file=".env").engine_policy().property_split
    'half_rent'
    """

    model_config = SettingsConfigDict(
        env_prefix="FAIRSHARE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Logging level"
    )
    state_file: Path = Field(
        default=Path.home() / ".local" / "share" / "fairshare" / "household.json",
        description="Default household file"
    )
    default_currency: str = Field(
        default=DEFAULT_CURRENCY,
        min_length=1,
        max_length=10,
        description="Currency for new households"
    )
    autosave: bool = Field(
        default=True,
        description="Persist the household after every change"
    )
    compound_inheritances: bool = Field(
        default=True,
        description="Engine policy: compound inheritances"
    )
    property_split: Literal["per_capita", "half_rent"] = Field(
        default="per_capita",
        description="Engine policy: property split formula"
    )

    def engine_policy(self) -> EnginePolicy:
        """Engine policy built from these settings."""
        return EnginePolicy(
            compound_inheritances=self.compound_inheritances,
            property_split=self.property_split,
        )


def load_settings(**overrides) -> AppSettings:
    """
    Read AppSettings from the environment.

    Raises
    ------
    ConfigurationError
        If a FAIRSHARE_* variable (or .env entry) has an invalid value.

    Examples
    --------
    >>> load_settings(log_level="DEBUG").log_level
    'DEBUG'
    """
    try:
        return AppSettings(**overrides)
    except PydanticValidationError as e:
        raise ConfigurationError(f"Invalid FairShare settings: {e}") from e
