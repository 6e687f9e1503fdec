"""
Unit tests for cocktail/mocktail suggestions.
"""

import pytest

from instantly_chef.beverages import generate_beverage_recipe
from instantly_chef.data.models import BarItem


def _item(name, category, active=True):
    return BarItem(id=name, name=name, qty=4, measure="oz", category=category, active=active)


DEFAULT_BAR = [
    _item("Vodka", "spirit"),
    _item("Tonic water", "mixer"),
    _item("Strawberries", "produce"),
    _item("Mint", "herb"),
]


def test_cocktail_from_default_bar():
    recipe = generate_beverage_recipe(DEFAULT_BAR, "cocktail")
    assert recipe.name == "Vodka Strawberries Spritz"
    assert [i["name"] for i in recipe.ingredients] == ["Vodka", "Strawberries", "Tonic water"]
    assert recipe.kind == "cocktail"
    assert recipe.instructions


def test_mocktail_from_default_bar():
    recipe = generate_beverage_recipe(DEFAULT_BAR, "mocktail")
    assert recipe.name == "Sparkling Strawberries Mint Refresher"
    assert "Vodka" not in [i["name"] for i in recipe.ingredients]


def test_inactive_items_are_skipped():
    bar = [_item("Vodka", "spirit", active=False), _item("Cola", "mixer")]
    recipe = generate_beverage_recipe(bar, "cocktail")
    assert recipe.name == "Cocktail"
    assert [i["name"] for i in recipe.ingredients] == ["Cola"]


def test_empty_bar_gets_fallback_names():
    assert generate_beverage_recipe([], "cocktail").name == "Classic Cocktail"
    assert generate_beverage_recipe([], "mocktail").name == "Fresh Garden Mocktail"


def test_unknown_kind():
    with pytest.raises(ValueError):
        generate_beverage_recipe(DEFAULT_BAR, "smoothie")
