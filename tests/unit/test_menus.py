"""
Unit tests for the menu board.
"""

import pytest

from instantly_chef.cart import ShoppingCart
from instantly_chef.menus import CHEF_TWIST_SUFFIX, SAMPLE_MENUS, MenuBoard


class TestGenerateLocal:

    def test_generates_requested_count(self):
        board = MenuBoard()
        menus = board.generate_local(2, portions=4)
        assert [m.id for m in menus] == ["m1", "m2"]
        assert all(m.portions == 4 and not m.approved for m in menus)

    def test_count_is_capped_by_samples(self):
        menus = MenuBoard().generate_local(10, portions=2)
        assert len(menus) == len(SAMPLE_MENUS)

    def test_replaces_previous_batch(self):
        board = MenuBoard()
        board.generate_local(3, portions=2)
        board.approve("m1", ShoppingCart())
        board.generate_local(3, portions=2)
        assert board.approved_count() == 0


class TestReplaceMenus:

    def test_installs_unapproved(self):
        board = MenuBoard()
        installed = board.replace_menus(
            [
                {"id": "x1", "title": "Tacos", "approved": True,
                 "ingredients": [{"name": "Tortillas", "qty": 3, "measure": "count", "estPrice": 0.25}]},
                {"title": "Soup"},
            ],
            default_portions=3,
        )
        assert [m.title for m in installed] == ["Tacos", "Soup"]
        assert all(not m.approved for m in installed)
        assert all(m.portions == 3 for m in installed)
        assert installed[0].ingredients[0].est_price == 0.25
        assert installed[1].id

    def test_string_prices_are_numeric(self):
        board = MenuBoard()
        menu = board.replace_menus(
            [{"id": "x1", "portions": 2,
              "ingredients": [{"name": "Beef", "qty": "0.5", "measure": "lb", "estPrice": "5.5"}]}],
            default_portions=4,
        )[0]
        assert menu.ingredients[0].qty == 0.5
        assert menu.ingredients[0].est_price == 5.5

        lines = board.approve("x1", ShoppingCart())
        assert lines[0].qty == 1.0
        assert lines[0].est_price == pytest.approx(5.5)

    def test_unparseable_price_falls_back_to_unknown(self):
        menu = MenuBoard().replace_menus(
            [{"ingredients": [{"name": "Salt", "qty": 1, "estPrice": "n/a"}]}], default_portions=1
        )[0]
        assert menu.ingredients[0].est_price is None


class TestAdjustments:

    def test_adjust_portions(self):
        board = MenuBoard()
        board.generate_local(1, portions=2)
        assert board.adjust_portions("m1", 2).portions == 4
        assert board.adjust_portions("m1", -10).portions == 1

    def test_adjust_unknown_is_noop(self):
        board = MenuBoard()
        board.generate_local(1, portions=2)
        before = board.to_list()
        assert board.adjust_portions("nope", 1) is None
        assert board.to_list() == before

    def test_feedback_revises_title_and_description(self):
        board = MenuBoard()
        board.generate_local(1, portions=2)
        menu = board.submit_feedback("m1", "less garlic")
        assert menu.feedback == "less garlic"
        assert menu.title.endswith(CHEF_TWIST_SUFFIX)
        assert menu.description == "Updated per your note: less garlic"

    def test_repeat_feedback_does_not_stack_suffix(self):
        board = MenuBoard()
        board.generate_local(1, portions=2)
        board.submit_feedback("m1", "less garlic")
        menu = board.submit_feedback("m1", "more lemon")
        assert menu.title.count(CHEF_TWIST_SUFFIX) == 1
        assert menu.feedback == "more lemon"


class TestApprove:

    def test_approve_delegates_to_cart(self):
        board = MenuBoard()
        board.generate_local(2, portions=2)
        cart = ShoppingCart()

        lines = board.approve("m2", cart)

        assert len(lines) == len(SAMPLE_MENUS[1]["ingredients"])
        assert board.get("m2").approved is True
        assert board.approved_count() == 1
        pasta = lines[0]
        assert pasta.qty == pytest.approx(8)
        assert pasta.est_price == pytest.approx(12.0)

    def test_approve_unknown_is_noop(self):
        cart = ShoppingCart()
        assert MenuBoard().approve("missing", cart) == []
        assert cart.meal_lines == []
