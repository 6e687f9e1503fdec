"""
Unit tests for generation payload assembly.

Tests cover:
- split_csv / names_from_email / merge helpers
- row_to_client_parts column spellings
- build_client_payload precedence and validation
"""

import pytest
from pydantic import ValidationError as PydanticValidationError

from instantly_chef.data.models import Profile, WeeklyPlan
from instantly_chef.generation.payload import (
    CallbackPayload,
    ClientPayload,
    GenerationPayload,
    build_client_payload,
    merge,
    names_from_email,
    row_to_client_parts,
    split_csv,
)


# =============================================================================
# Helpers
# =============================================================================

class TestHelpers:

    def test_split_csv(self):
        assert split_csv(" oven, grill ,, wok ") == ["oven", "grill", "wok"]
        assert split_csv(["oven ", ""]) == ["oven"]
        assert split_csv(None) == []
        assert split_csv("") == []

    @pytest.mark.parametrize("email,expected", [
        ("jane.doe@example.com", ("jane", "doe")),
        ("mary_ann-smith@x.io", ("mary", "ann smith")),
        ("chef@x.io", ("chef", "")),
        ("", ("", "")),
        (None, ("", "")),
    ])
    def test_names_from_email(self, email, expected):
        assert names_from_email(email) == expected

    def test_merge_explicit_wins(self):
        assert merge({"a": 1}, {"a": 2, "b": 3}) == {"a": 1, "b": 3}

    def test_merge_blank_explicit_does_not_erase(self):
        assert merge({"a": "", "b": None}, {"a": "stored", "b": 2}) == {"a": "stored", "b": 2}

    def test_merge_handles_none(self):
        assert merge(None, None) == {}


class TestRowToClientParts:

    def test_empty_row(self):
        assert row_to_client_parts(None) == {}

    def test_flat_row(self):
        row = {
            "first_name": "Jane",
            "email": "jane@example.com",
            "zip": "30301",
            "city": "Atlanta",
            "adults": "2",
            "toddlers_infants": 1,
            "portions_per_meal": 4,
            "equipment": "oven, air fryer",
            "allergies": ["peanuts"],
            "stores_nearby": "Kroger,Publix",
            "grocery_store": "Publix",
        }
        parts = row_to_client_parts(row)

        assert parts["basicInformation"]["firstName"] == "Jane"
        assert parts["basicInformation"]["accountAddress"]["zipcode"] == "30301"
        assert parts["basicInformation"]["accountAddress"]["city"] == "Atlanta"
        assert parts["householdSetup"]["toddlersInfants"] == 1
        assert parts["householdSetup"]["portionsPerDinner"] == 4
        assert parts["cookingPreferences"]["equipment"] == ["oven", "air fryer"]
        assert parts["cookingPreferences"]["cookingSkill"] == "Beginner"
        assert parts["dietaryProfile"]["allergiesRestrictions"] == ["peanuts"]
        assert parts["shoppingPreferences"]["storesNearMe"] == ["Kroger", "Publix"]
        assert parts["shoppingPreferences"]["preferredGroceryStore"] == "Publix"
        assert parts["shoppingPreferences"]["preferOrganic"] == "I dont care"

    def test_nested_address(self):
        row = {"address": {"street": "1 Main St", "state": "GA"}}
        address = row_to_client_parts(row)["basicInformation"]["accountAddress"]
        assert address == {"street": "1 Main St", "city": "", "state": "GA", "zipcode": ""}


# =============================================================================
# build_client_payload
# =============================================================================

class TestBuildClientPayload:

    def test_names_derived_from_email(self):
        payload = build_client_payload(None, email="jane.doe@example.com")
        dumped = payload.model_dump(by_alias=True)
        assert dumped["basicInformation"]["firstName"] == "jane"
        assert dumped["basicInformation"]["lastName"] == "doe"
        assert dumped["basicInformation"]["email"] == "jane.doe@example.com"

    def test_stored_names_beat_derived(self):
        payload = build_client_payload({"first_name": "Janet"}, email="jane.doe@example.com")
        assert payload.basic_information.first_name == "Janet"
        assert payload.basic_information.last_name == "doe"

    def test_explicit_client_wins_over_row(self):
        row = {"cooking_skill": "Expert", "adults": 2}
        client = {"cookingPreferences": {"cookingSkill": "Intermediate"}}
        payload = build_client_payload(row, client=client)
        assert payload.cooking_preferences.cooking_skill == "Intermediate"
        assert payload.household_setup.adults == 2

    def test_weekly_values_fill_client(self):
        payload = build_client_payload(
            {"portions_per_dinner": 6, "dinners_per_week": 7, "preferred_store": "Aldi"},
            weekly=WeeklyPlan(dinners=3, mood="cozy"),
            profile=Profile(portion_default=2, store="Kroger"),
        )
        assert payload.household_setup.portions_per_dinner == 2
        assert payload.household_setup.dinners_per_week == 3
        assert payload.shopping_preferences.preferred_grocery_store == "Kroger"
        assert payload.extra["weeklyMood"] == "cozy"

    def test_unparseable_counts_become_zero(self):
        payload = build_client_payload({"adults": "two", "teens": None})
        assert payload.household_setup.adults == 0
        assert payload.household_setup.teens == 0

    def test_numeric_zip_is_stringified(self):
        payload = build_client_payload({"zipcode": 30301})
        assert payload.basic_information.account_address.zipcode == "30301"

    def test_camel_case_dump(self):
        dumped = build_client_payload(None).model_dump(by_alias=True)
        assert set(dumped) == {
            "basicInformation",
            "householdSetup",
            "cookingPreferences",
            "dietaryProfile",
            "shoppingPreferences",
            "extra",
        }
        assert "toddlersInfants" in dumped["householdSetup"]

    def test_invalid_section_rejected(self):
        with pytest.raises(PydanticValidationError):
            build_client_payload(None, client={"cookingPreferences": "spicy"})


class TestGenerationPayload:

    def test_defaults_generate_everything(self):
        payload = GenerationPayload(client=ClientPayload())
        dumped = payload.model_dump(by_alias=True)
        assert dumped["generate"] == {"menus": True, "heroImages": True, "menuCards": True, "receipt": True}
        assert dumped["pantrySnapshot"] == []
        assert dumped["barSnapshot"] == []

    def test_generate_accepts_camel_case(self):
        payload = GenerationPayload(client=ClientPayload(), generate={"heroImages": False})
        assert payload.generate.hero_images is False
        assert payload.generate.menus is True


class TestCallbackPayload:

    def test_valid(self):
        cb = CallbackPayload.model_validate({"correlationId": "abc", "status": "done", "menus": []})
        assert cb.correlation_id == "abc"

    @pytest.mark.parametrize("data", [
        {"menus": []},
        {"correlationId": "", "menus": []},
        {"correlationId": "abc"},
        {"correlationId": "abc", "menus": "nope"},
    ])
    def test_invalid(self, data):
        with pytest.raises(PydanticValidationError):
            CallbackPayload.model_validate(data)

    def test_menus_are_typed(self):
        cb = CallbackPayload.model_validate({
            "correlationId": "abc",
            "menus": [{
                "id": 7,
                "title": "Tacos",
                "portions": "2",
                "ingredients": [{"name": "Beef", "qty": "0.5", "measure": "lb", "estPrice": "5.5"}],
            }],
        })

        stored = cb.menus_to_store()

        assert stored == [{
            "id": "7",
            "title": "Tacos",
            "portions": 2,
            "ingredients": [{"name": "Beef", "qty": 0.5, "measure": "lb", "estPrice": 5.5}],
        }]

    @pytest.mark.parametrize("menu", [
        {"ingredients": [{"qty": 1, "measure": "lb"}]},
        {"ingredients": [{"name": "", "qty": 1}]},
        {"ingredients": [{"name": "Beef", "estPrice": "cheap"}]},
        {"ingredients": [{"name": "Beef", "qty": -1}]},
        {"portions": 0},
        {"sides": [{"title": "Rice", "ingredients": [{"qty": 1}]}]},
    ])
    def test_malformed_menu_rejected(self, menu):
        with pytest.raises(PydanticValidationError):
            CallbackPayload.model_validate({"correlationId": "abc", "menus": [menu]})
