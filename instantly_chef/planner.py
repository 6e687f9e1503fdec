"""
Weekly planner and budget evaluation.

WeeklyPlan is a flat record; WeeklyPlanner only coerces UI edits into it.
The budget check is a pure predicate and is recomputed on every read.
"""

import logging
from typing import Dict, Iterable, Optional

from instantly_chef.config import BUDGET_EPSILON
from instantly_chef.data.models import BUDGET_TYPES, CartLine, Profile, WeeklyPlan
from instantly_chef.utils import coerce_number

logger = logging.getLogger(__name__)

ON_HAND_IMAGE_ITEMS = "2 lb chicken thighs, 1 lemon, 8 oz spinach"
# Delivered menus are scaled by portions at approval time
INGREDIENT_QUANTITY_BASIS = "perPortion"

_BUDGET_LABELS = {
    "perWeek": "Per week ($)",
    "perMeal": "Per meal ($)",
}


def is_within_budget(
    meal_lines: Iterable[CartLine],
    extra_lines: Iterable[CartLine],
    weekly: WeeklyPlan,
    approved_menu_count: int,
    epsilon: float = BUDGET_EPSILON,
) -> bool:
    """
    Check the cart against the weekly budget.

    - "none" or no budget value: always within budget
    - "perWeek": meal + extra total <= budget
    - "perMeal": meal total <= budget * max(1, approved menus)

    Sums are unrounded; epsilon absorbs float noise.

    Args:
        meal_lines: Meal section lines
        extra_lines: Extra section lines
        weekly: Weekly plan holding the budget settings
        approved_menu_count: Number of approved menus
        epsilon: Tolerance added to the limit

    Returns:
        True if the cart fits the budget
    """
    if weekly.budget_type == "none" or not weekly.budget_value:
        return True

    meal_total = sum(line.est_price for line in meal_lines)

    if weekly.budget_type == "perWeek":
        extra_total = sum(line.est_price for line in extra_lines)
        return meal_total + extra_total <= weekly.budget_value + epsilon

    if weekly.budget_type == "perMeal":
        return meal_total <= weekly.budget_value * max(1, approved_menu_count) + epsilon

    return True


def budget_type_label(budget_type: str) -> str:
    """Human-readable budget type for the generation workflow."""
    return _BUDGET_LABELS.get(budget_type, "none")


class WeeklyPlanner:
    """Applies coerced UI edits to the profile defaults and the weekly plan."""

    def __init__(self, profile: Optional[Profile] = None, weekly: Optional[WeeklyPlan] = None):
        self.profile = profile or Profile()
        self.weekly = weekly or WeeklyPlan()

    def set_portion_default(self, value) -> int:
        self.profile.portion_default = max(1, int(coerce_number(value, self.profile.portion_default)))
        return self.profile.portion_default

    def set_store(self, store: str):
        self.profile.store = (store or "").strip()

    def set_dinners(self, value) -> int:
        self.weekly.dinners = max(1, int(coerce_number(value, self.weekly.dinners)))
        return self.weekly.dinners

    def set_budget(self, budget_type: Optional[str], budget_value=None):
        """
        Set budget type and value.

        Unknown types fall back to "none". A blank or unparseable value
        clears the budget value; negative values are clamped to zero.
        """
        self.weekly.budget_type = budget_type if budget_type in BUDGET_TYPES else "none"
        if budget_value is None or budget_value == "":
            self.weekly.budget_value = None
        else:
            value = coerce_number(budget_value, None)
            self.weekly.budget_value = None if value is None else max(0.0, value)

    def update(self, data: Dict):
        """Apply a partial update from a weekly planner form."""
        if "portion_default" in data:
            self.set_portion_default(data["portion_default"])
        if "store" in data:
            self.set_store(data["store"])
        if "dinners" in data:
            self.set_dinners(data["dinners"])
        if "budget_type" in data or "budget_value" in data:
            self.set_budget(
                data.get("budget_type", self.weekly.budget_type),
                data.get("budget_value", self.weekly.budget_value),
            )
        for key in ("on_hand_text", "mood", "extras"):
            if key in data:
                setattr(self.weekly, key, str(data[key] or ""))

    def submit_on_hand_image(self, preview: Optional[str]) -> str:
        """
        Photo intake stub for on-hand ingredients.

        Stores the image reference and appends a fixed list of recognised
        items to the on-hand text.

        Returns:
            The updated on-hand text
        """
        self.weekly.on_hand_image = preview
        if self.weekly.on_hand_text:
            self.weekly.on_hand_text = f"{self.weekly.on_hand_text}, {ON_HAND_IMAGE_ITEMS}"
        else:
            self.weekly.on_hand_text = ON_HAND_IMAGE_ITEMS
        return self.weekly.on_hand_text

    def take_snapshot(self, pantry_count: int, bar_count: int, menus_count: int):
        """Record inventory/menu counters at generation time."""
        self.weekly.pantry_count = pantry_count
        self.weekly.bar_count = bar_count
        self.weekly.menus_count = menus_count

    def weekly_payload(self) -> Dict:
        """Weekly section of the generation request."""
        return {
            "portionsPerDinner": self.profile.portion_default,
            "ingredientQuantities": INGREDIENT_QUANTITY_BASIS,
            "groceryStore": self.profile.store,
            "dinnersNeededThisWeek": self.weekly.dinners,
            "budgetType": budget_type_label(self.weekly.budget_type),
            "budgetValue": self.weekly.budget_value,
            "weeklyOnHandText": self.weekly.on_hand_text,
            "weeklyOnHandImage": self.weekly.on_hand_image,
            "weeklyMood": self.weekly.mood,
            "weeklyExtras": self.weekly.extras,
            "pantryCount": self.weekly.pantry_count,
            "barCount": self.weekly.bar_count,
            "currentMenusCount": self.weekly.menus_count,
        }
