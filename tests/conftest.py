"""
Pytest configuration and fixtures for FairShare test suite.

This module provides reusable fixtures for testing all FairShare components.
Fixtures follow the principle of "arrange-act-assert" with clear separation.
"""

import json
from datetime import date

import pytest

from fairshare.config import EnginePolicy
from fairshare.household import Household, Inheritance, Person


# ---------------------------------------------------------------------------
# Date Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def today() -> date:
    """Fixed reference date so inheritance growth is reproducible."""
    return date(2025, 1, 1)


# ---------------------------------------------------------------------------
# Person Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def alex() -> Person:
    """Higher earner: 6,000/month, no assets or obligations."""
    return Person(id="alex", name="Alex", net_income=6000)


@pytest.fixture
def sam() -> Person:
    """Lower earner: 4,000/month, no assets or obligations."""
    return Person(id="sam", name="Sam", net_income=4000)


@pytest.fixture
def inheritance_today(today) -> Inheritance:
    """
    Inheritance of 100,000 received on the reference date.

    No growth (0 years), no discount, 5.5% return:
    imputed income = 100,000 * 0.055 / 12 = 458.33/month
    """
    return Inheritance(
        id="inh-1",
        name="Grandparents",
        amount=100_000,
        received_date=today,
        discount=0,
        return_rate=5.5,
    )


# ---------------------------------------------------------------------------
# Household Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def simple_household(alex, sam) -> Household:
    """
    Two people, monthly timeframe, 3,000 of shared expenses.

    Expected split: 60% / 40% -> 1,800 / 1,200.
    """
    return Household(
        currency="USD",
        shared_expenses=3000,
        timeframe="monthly",
        people=(alex, sam),
    )


@pytest.fixture
def owned_household(alex, sam) -> Household:
    """Equal incomes (5,000 each), Alex owns the home, market rent 2,000."""
    return Household(
        shared_expenses=3000,
        people=(
            Person(id="alex", name="Alex", net_income=5000),
            Person(id="sam", name="Sam", net_income=5000),
        ),
        property_arrangement="owned",
        property_owner_id="alex",
        market_rent=2000,
    )


@pytest.fixture
def default_policy() -> EnginePolicy:
    return EnginePolicy()


# ---------------------------------------------------------------------------
# File Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def legacy_snapshot() -> dict:
    """Bare snapshot in the camelCase layout of the original web store."""
    return {
        "currency": "EUR",
        "sharedExpenses": 3000,
        "timeframe": "monthly",
        "people": [
            {
                "id": "a",
                "name": "Alex",
                "netIncome": 6000,
                "inheritances": [],
                "passiveAdvantages": 0,
                "passiveAdvantagesDiscount": 70,
                "passiveAdvantagesReturnRate": 5.5,
                "expectedFutureInheritance": 0,
                "expectedFutureInheritanceDiscount": 50,
                "studentLoans": 0,
                "familySupport": 0,
                "variableIncome": 0,
                "variableIncomeDiscount": 20,
                "retirementMatching": 0,
            },
            {"id": "b", "name": "Sam", "netIncome": 4000, "inheritances": []},
        ],
        "propertyArrangement": "none",
        "propertyOwnerId": None,
        "marketRent": 0,
        "activeSection": "income",
    }


@pytest.fixture
def household_file(tmp_path, legacy_snapshot):
    """Legacy snapshot written to a temporary JSON file."""
    path = tmp_path / "household.json"
    path.write_text(json.dumps(legacy_snapshot), encoding="utf-8")
    return path
