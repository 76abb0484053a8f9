"""
FairShare — Capacity-based household expense splitting

Splits shared household expenses in proportion to each person's financial
capacity: take-home pay plus imputed income from inheritances, family
advantages and property ownership, minus obligations.

Modules
-------
- capacity      : Capacity engine (calculate, per-person capacity, valuation)
- household     : Immutable household / person / inheritance records
- store         : Actions, reducer and the persistent HouseholdStore
- config        : Pydantic snapshot schema, EnginePolicy, AppSettings
- serialization : JSON files, export envelope, result tables
- plotting      : Contribution and breakdown charts
- utils         : Clamping, timeframe conversion, currency formatting

"""

from .capacity import BreakdownItem, PersonResult, calculate
from .config import EnginePolicy
from .household import Household, Inheritance, Person, default_household
from .store import HouseholdStore
from . import utils

__version__ = "0.1.0"
