"""
Unit tests for store.py module.

Tests the action reducer and HouseholdStore persistence, export and import.
"""

import json
import logging
import math
from datetime import date

import pytest

from fairshare.config import AppSettings, EnginePolicy
from fairshare.exceptions import UnknownEntityError, ValidationError
from fairshare.household import Household, Inheritance, Person, default_household
from fairshare.serialization import household_from_dict
from fairshare.store import (
    AddInheritance,
    AddPerson,
    HouseholdStore,
    RemoveInheritance,
    RemovePerson,
    RenamePerson,
    ResetHousehold,
    SetCurrency,
    SetDeductions,
    SetExpectedInheritance,
    SetIncome,
    SetPassiveAdvantages,
    SetProperty,
    SetSharedExpenses,
    SetTimeframe,
    SetVariableIncome,
    UpdateInheritance,
    reduce,
)


@pytest.fixture
def three_people() -> Household:
    return Household(
        people=(
            Person(id="a", name="Alex", net_income=5000),
            Person(id="b", name="Sam", net_income=4000),
            Person(id="c", name="Robin", net_income=3000),
        ),
        property_arrangement="owned",
        property_owner_id="c",
        market_rent=1500,
    )


# ============================================================================
# REDUCER
# ============================================================================

class TestPeopleActions:
    """Test adding, removing and renaming people."""

    def test_add_person_default_name(self, simple_household):
        household = reduce(simple_household, AddPerson())
        assert household.people[-1].name == "Partner 3"
        assert len(household.people) == 3

    def test_add_person_named(self, simple_household):
        household = reduce(simple_household, AddPerson("Robin"))
        assert household.people[-1].name == "Robin"

    def test_add_person_does_not_mutate(self, simple_household):
        reduce(simple_household, AddPerson())
        assert len(simple_household.people) == 2

    def test_remove_person_keeps_two(self, simple_household):
        household = reduce(simple_household, RemovePerson("sam"))
        assert household is simple_household

    def test_remove_owner_clears_owner(self, three_people):
        household = reduce(three_people, RemovePerson("c"))
        assert household.person_ids == ("a", "b")
        assert household.property_owner_id is None

    def test_remove_non_owner_keeps_owner(self, three_people):
        household = reduce(three_people, RemovePerson("a"))
        assert household.property_owner_id == "c"

    def test_remove_unknown_person(self, three_people):
        with pytest.raises(UnknownEntityError):
            reduce(three_people, RemovePerson("zz"))

    def test_rename(self, simple_household):
        household = reduce(simple_household, RenamePerson("alex", "Alexandra"))
        assert household.find_person("alex").name == "Alexandra"


class TestPersonFieldActions:
    """Test the grouped field setters."""

    def test_set_income(self, simple_household):
        household = reduce(simple_household, SetIncome("sam", net_income=4500, retirement_matching=200))
        sam = household.find_person("sam")
        assert sam.net_income == 4500
        assert sam.retirement_matching == 200

    def test_partial_update_keeps_other_fields(self, simple_household):
        household = reduce(simple_household, SetIncome("sam", retirement_matching=150))
        assert household.find_person("sam").net_income == 4000

    def test_negative_values_are_stored(self, simple_household):
        """Ranges are the engine's concern."""
        household = reduce(simple_household, SetIncome("sam", net_income=-100))
        assert household.find_person("sam").net_income == -100

    def test_set_variable_income(self, simple_household):
        household = reduce(simple_household, SetVariableIncome("alex", amount=12_000, discount=30))
        alex = household.find_person("alex")
        assert alex.variable_income == 12_000
        assert alex.variable_income_discount == 30

    def test_set_deductions(self, simple_household):
        household = reduce(simple_household, SetDeductions("alex", student_loans=300, family_support=150))
        alex = household.find_person("alex")
        assert (alex.student_loans, alex.family_support) == (300, 150)

    def test_set_passive_advantages(self, simple_household):
        household = reduce(
            simple_household,
            SetPassiveAdvantages("alex", amount=50_000, discount=60, return_rate=4),
        )
        alex = household.find_person("alex")
        assert alex.passive_advantages == 50_000
        assert alex.passive_advantages_discount == 60
        assert alex.passive_advantages_return_rate == 4

    def test_set_expected_inheritance(self, simple_household):
        household = reduce(simple_household, SetExpectedInheritance("sam", amount=80_000))
        sam = household.find_person("sam")
        assert sam.expected_future_inheritance == 80_000
        assert sam.expected_future_inheritance_discount == 50

    def test_non_numeric_value_rejected(self, simple_household):
        with pytest.raises(ValidationError):
            reduce(simple_household, SetIncome("sam", net_income="lots"))

    def test_unknown_person(self, simple_household):
        with pytest.raises(UnknownEntityError):
            reduce(simple_household, SetIncome("nobody", net_income=1))


class TestInheritanceActions:
    """Test inheritance management."""

    def test_add_inheritance_defaults(self, simple_household):
        household = reduce(simple_household, AddInheritance("alex"), today=date(2024, 2, 29))
        (inheritance,) = household.find_person("alex").inheritances
        assert inheritance.name == "Inheritance 1"
        assert inheritance.received_date == date(2024, 2, 29)
        assert inheritance.amount == 0

    def test_add_second_inheritance_name(self, simple_household):
        household = reduce(simple_household, AddInheritance("alex"))
        household = reduce(household, AddInheritance("alex"))
        assert household.find_person("alex").inheritances[1].name == "Inheritance 2"

    def test_add_inheritance_with_date(self, simple_household):
        household = reduce(
            simple_household, AddInheritance("alex", name="Farm", received_date=date(2010, 5, 5))
        )
        inheritance = household.find_person("alex").inheritances[0]
        assert (inheritance.name, inheritance.received_date) == ("Farm", date(2010, 5, 5))

    def test_update_inheritance(self, simple_household):
        household = reduce(simple_household, AddInheritance("alex"))
        inheritance_id = household.find_person("alex").inheritances[0].id

        household = reduce(
            household,
            UpdateInheritance("alex", inheritance_id, amount=100_000, discount=10, return_rate=4),
        )
        inheritance = household.find_person("alex").inheritances[0]
        assert inheritance.amount == 100_000
        assert inheritance.discount == 10
        assert inheritance.return_rate == 4

    def test_clear_received_date(self, simple_household):
        household = reduce(simple_household, AddInheritance("alex"))
        inheritance_id = household.find_person("alex").inheritances[0].id

        household = reduce(household, UpdateInheritance("alex", inheritance_id, clear_received_date=True))
        assert household.find_person("alex").inheritances[0].received_date is None

    def test_remove_inheritance(self, simple_household):
        household = reduce(simple_household, AddInheritance("alex"))
        inheritance_id = household.find_person("alex").inheritances[0].id

        household = reduce(household, RemoveInheritance("alex", inheritance_id))
        assert household.find_person("alex").inheritances == ()

    def test_unknown_inheritance(self, simple_household):
        with pytest.raises(UnknownEntityError):
            reduce(simple_household, UpdateInheritance("alex", "missing", amount=1))
        with pytest.raises(UnknownEntityError):
            reduce(simple_household, RemoveInheritance("alex", "missing"))


class TestHouseholdActions:
    """Test household-level settings."""

    def test_set_shared_expenses(self, simple_household):
        assert reduce(simple_household, SetSharedExpenses(4200)).shared_expenses == 4200

    def test_set_currency(self, simple_household):
        assert reduce(simple_household, SetCurrency("CHF")).currency == "CHF"

    @pytest.mark.parametrize("code", ["", "   ", "TOO-LONG-CODE"])
    def test_invalid_currency(self, simple_household, code):
        with pytest.raises(ValidationError):
            reduce(simple_household, SetCurrency(code))

    def test_set_timeframe_to_yearly(self):
        household = Household(
            shared_expenses=3000,
            market_rent=1250,
            people=(Person(
                id="a", net_income=4166.67, student_loans=100,
                family_support=50, retirement_matching=20.5,
            ),),
        )
        yearly = reduce(household, SetTimeframe("yearly"))
        person = yearly.people[0]

        assert yearly.timeframe == "yearly"
        assert yearly.shared_expenses == 36_000
        assert yearly.market_rent == 15_000
        assert person.net_income == 50_000
        assert person.student_loans == 1200
        assert person.family_support == 600
        assert person.retirement_matching == 246

    def test_set_timeframe_to_monthly_rounds_half_up(self):
        household = Household(
            timeframe="yearly",
            shared_expenses=30,  # 2.5 -> 3
            people=(Person(id="a", net_income=100_000),),
        )
        monthly = reduce(household, SetTimeframe("monthly"))
        assert monthly.shared_expenses == 3
        assert monthly.people[0].net_income == 8333

    def test_set_timeframe_with_infinite_income(self, simple_household):
        household = reduce(simple_household, SetIncome("alex", net_income=float("inf")))
        yearly = reduce(household, SetTimeframe("yearly"))

        assert yearly.find_person("alex").net_income == float("inf")
        assert yearly.find_person("sam").net_income == 48_000
        assert yearly.shared_expenses == 36_000

    def test_set_timeframe_with_nan_from_file(self):
        household = household_from_dict({"people": [{"id": "a", "netIncome": float("nan")}]})
        yearly = reduce(household, SetTimeframe("yearly"))
        assert math.isnan(yearly.people[0].net_income)

    def test_set_timeframe_overflow(self):
        household = Household(shared_expenses=1e308, people=(Person(id="a", net_income=100),))
        yearly = reduce(household, SetTimeframe("yearly"))

        assert yearly.shared_expenses == float("inf")
        assert yearly.people[0].net_income == 1200

    def test_set_timeframe_leaves_variable_income(self, simple_household):
        household = reduce(simple_household, SetVariableIncome("alex", amount=12_000))
        yearly = reduce(household, SetTimeframe("yearly"))
        assert yearly.find_person("alex").variable_income == 12_000

    def test_same_timeframe_is_noop(self, simple_household):
        assert reduce(simple_household, SetTimeframe("monthly")) is simple_household

    def test_invalid_timeframe(self, simple_household):
        with pytest.raises(ValidationError):
            reduce(simple_household, SetTimeframe("weekly"))

    def test_set_property(self, simple_household):
        household = reduce(
            simple_household, SetProperty(arrangement="owned", owner_id="sam", market_rent=1800)
        )
        assert household.property_arrangement == "owned"
        assert household.property_owner_id == "sam"
        assert household.market_rent == 1800

    def test_clear_owner(self, three_people):
        assert reduce(three_people, SetProperty(clear_owner=True)).property_owner_id is None

    def test_invalid_property(self, simple_household):
        with pytest.raises(ValidationError):
            reduce(simple_household, SetProperty(arrangement="rented"))
        with pytest.raises(UnknownEntityError):
            reduce(simple_household, SetProperty(owner_id="nobody"))

    def test_reset(self, simple_household):
        household = reduce(simple_household, ResetHousehold())
        assert [p.name for p in household.people] == ["Partner A", "Partner B"]

    def test_unknown_action(self, simple_household):
        with pytest.raises(ValidationError, match="Unknown action"):
            reduce(simple_household, "add person")


# ============================================================================
# STORE
# ============================================================================

class TestHouseholdStore:
    """Test HouseholdStore persistence and engine access."""

    def test_starts_with_default_household(self):
        store = HouseholdStore()
        assert len(store.household.people) == 2

    def test_dispatch_and_calculate(self, today):
        store = HouseholdStore()
        a, b = store.household.person_ids
        store.dispatch(SetIncome(a, net_income=6000))
        store.dispatch(SetIncome(b, net_income=4000))

        results = store.calculate(today=today)
        assert [r.percentage for r in results] == pytest.approx([60, 40])

    def test_policy_is_used(self, owned_household, today):
        store = HouseholdStore(policy=EnginePolicy(property_split="half_rent"), household=owned_household)
        assert store.calculate(today=today)[0].monthly_capacity == pytest.approx(7000)

    def test_autosave(self, tmp_path):
        path = tmp_path / "state" / "household.json"
        store = HouseholdStore(path)
        store.dispatch(SetSharedExpenses(4100))

        assert path.exists()
        assert HouseholdStore(path).load().shared_expenses == 4100

    def test_autosave_disabled(self, tmp_path):
        path = tmp_path / "household.json"
        store = HouseholdStore(path, autosave=False)
        store.dispatch(SetSharedExpenses(4100))
        assert not path.exists()
        assert store.save() is True
        assert path.exists()

    def test_save_without_path(self):
        assert HouseholdStore().save() is False

    def test_save_failure_returns_false(self, tmp_path, caplog):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("x")
        store = HouseholdStore(blocker / "household.json", autosave=False)

        with caplog.at_level(logging.WARNING, logger="fairshare.store"):
            assert store.save() is False
        assert "Could not save" in caplog.text

    def test_load_missing_file(self, tmp_path):
        store = HouseholdStore(tmp_path / "missing.json")
        assert [p.name for p in store.load().people] == ["Partner A", "Partner B"]

    def test_load_legacy_file(self, household_file):
        household = HouseholdStore(household_file).load()
        assert household.currency == "EUR"
        assert household.find_person("a").net_income == 6000

    @pytest.mark.parametrize("content", ["{not json", '{"currency": "EUR"}', "[1, 2]"])
    def test_load_bad_file_uses_defaults(self, tmp_path, caplog, content):
        path = tmp_path / "household.json"
        path.write_text(content)

        with caplog.at_level(logging.WARNING, logger="fairshare.store"):
            household = HouseholdStore(path).load()
        assert [p.name for p in household.people] == ["Partner A", "Partner B"]
        assert "using defaults" in caplog.text

    def test_reset(self):
        store = HouseholdStore()
        store.dispatch(AddPerson("Robin"))
        store.reset()
        assert len(store.household.people) == 2


class TestExportImport:
    """Test JSON export and import."""

    def test_export_envelope(self, simple_household):
        store = HouseholdStore(household=simple_household)
        data = json.loads(store.export_json())

        assert data["meta"]["version"] == 1
        assert "date" in data["meta"]
        assert data["household"]["shared_expenses"] == 3000
        assert [p["id"] for p in data["household"]["people"]] == ["alex", "sam"]

    def test_export_then_import(self, simple_household, today):
        exported = HouseholdStore(household=simple_household).export_json()

        store = HouseholdStore()
        assert store.import_json(exported) is True
        assert store.household == simple_household

    def test_import_legacy_snapshot(self, legacy_snapshot):
        store = HouseholdStore()
        assert store.import_json(json.dumps(legacy_snapshot)) is True
        assert store.household.currency == "EUR"
        assert store.household.person_ids == ("a", "b")

    @pytest.mark.parametrize("text", [
        "not json at all",
        '{"currency": "EUR"}',
        '{"people": "Alex"}',
        '{"people": [{"netIncome": "high"}]}',
        '"just a string"',
        '{"meta": {"version": 1}, "household": {"currency": "EUR"}}',
    ])
    def test_invalid_import_leaves_state(self, text, caplog):
        store = HouseholdStore()
        before = store.household

        with caplog.at_level(logging.ERROR, logger="fairshare.store"):
            assert store.import_json(text) is False
        assert store.household is before
        assert "Import failed" in caplog.text

    def test_import_autosaves(self, tmp_path, legacy_snapshot):
        path = tmp_path / "household.json"
        store = HouseholdStore(path)
        store.import_json(json.dumps(legacy_snapshot))
        assert HouseholdStore(path).load().currency == "EUR"

    def test_from_settings(self, tmp_path, household_file):
        settings = AppSettings(
            _env_file=None,
            state_file=household_file,
            property_split="half_rent",
            autosave=False,
        )
        store = HouseholdStore.from_settings(settings)

        assert store.path == household_file
        assert store.autosave is False
        assert store.policy.property_split == "half_rent"
        assert store.household.currency == "EUR"
