"""
Shopping cart aggregation.

The cart has two sections: "meal" lines projected from approved menus and
"extra" lines the user adds by hand (or via a staple reorder).
"""

import logging
from typing import Dict, Iterable, List, Optional

from instantly_chef.data.models import CART_SECTIONS, CartLine, MenuItem
from instantly_chef.errors import InvalidItemError
from instantly_chef.utils import generate_id, line_price, round_to_cents, scale_ingredients

logger = logging.getLogger(__name__)


def section_total(lines: Iterable[CartLine]) -> float:
    """Unrounded sum of line prices."""
    return sum(line.est_price for line in lines)


def compute_totals(meal_lines: Iterable[CartLine], extra_lines: Iterable[CartLine]) -> Dict[str, float]:
    """
    Compute display totals for both cart sections.

    Rounding here is for display only. Budget checks use section_total().

    Returns:
        Dict with "meal", "extra" and "grand" totals rounded to cents
    """
    meal = section_total(meal_lines)
    extra = section_total(extra_lines)
    return {
        "meal": round_to_cents(meal),
        "extra": round_to_cents(extra),
        "grand": round_to_cents(meal + extra),
    }


class ShoppingCart:
    """Meal and extra cart sections for one session."""

    def __init__(
        self,
        meal_lines: Optional[List[CartLine]] = None,
        extra_lines: Optional[List[CartLine]] = None,
    ):
        self.meal_lines: List[CartLine] = list(meal_lines or [])
        self.extra_lines: List[CartLine] = list(extra_lines or [])

    def approve_menu(self, menu: MenuItem) -> List[CartLine]:
        """
        Add a menu's ingredients to the meal section and mark it approved.

        Ingredients are scaled by the menu's current portion count. Every
        call appends; approving the same menu again adds a second set.

        Args:
            menu: Menu to approve (mutated: approved=True)

        Returns:
            The newly added cart lines
        """
        scaled = scale_ingredients(menu.ingredients, menu.portions)
        new_lines = [
            CartLine(
                id=generate_id(),
                name=ing.name,
                qty=ing.qty,
                measure=ing.measure,
                est_price=max(0.0, line_price(ing)),
                section="meal",
            )
            for ing in scaled
        ]
        self.meal_lines.extend(new_lines)
        menu.approved = True
        logger.info(f"Approved menu {menu.id} ({menu.portions} portions): {len(new_lines)} cart lines")
        return new_lines

    def add_extra_item(self, name: str, qty: float, measure: str, price: float) -> CartLine:
        """
        Append a manually entered line to the extra section.

        Raises:
            InvalidItemError: If qty is negative
        """
        if qty < 0:
            raise InvalidItemError(f"Quantity must be zero or more (got {qty})")
        line = CartLine(
            id=generate_id(),
            name=name,
            qty=qty,
            measure=measure,
            est_price=max(0.0, price),
            section="extra",
        )
        self.extra_lines.append(line)
        return line

    def remove_line(self, line_id: str):
        """Remove a line from either section. Unknown ids are ignored."""
        self.meal_lines = [line for line in self.meal_lines if line.id != line_id]
        self.extra_lines = [line for line in self.extra_lines if line.id != line_id]

    def clear_section(self, section: str):
        """Empty one section. There is no undo."""
        if section not in CART_SECTIONS:
            raise InvalidItemError(f"Unknown cart section: {section}")
        if section == "meal":
            self.meal_lines = []
        else:
            self.extra_lines = []
        logger.info(f"Cleared cart section: {section}")

    def totals(self) -> Dict[str, float]:
        return compute_totals(self.meal_lines, self.extra_lines)

    def to_dict(self) -> Dict:
        return {
            "meal": [line.to_dict() for line in self.meal_lines],
            "extra": [line.to_dict() for line in self.extra_lines],
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "ShoppingCart":
        return cls(
            meal_lines=[CartLine.from_dict(line) for line in data.get("meal", [])],
            extra_lines=[CartLine.from_dict(line) for line in data.get("extra", [])],
        )
