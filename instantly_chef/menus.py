"""
Menu board: the current week's menus and their lifecycle.

Menus arrive from the generation workflow (or the local sample stub),
get their portions and feedback adjusted, and are approved into the cart.
A new batch replaces the old one; nothing is deleted individually.
"""

import logging
from typing import Dict, Iterable, List, Optional

from instantly_chef.data.models import Ingredient, MenuItem
from instantly_chef.utils import generate_id

logger = logging.getLogger(__name__)

CHEF_TWIST_SUFFIX = " (Chef's Twist)"

# Quantities are per portion
SAMPLE_MENUS = [
    {
        "id": "m1",
        "title": "Charred Lemon Herb Chicken with Roasted Veg",
        "description": "Crispy-skinned chicken with bright lemon, parsley, and garlic over seasonal veggies.",
        "hero": "/hero.jpg",
        "ingredients": [
            ("Chicken thighs, boneless", 0.5, "lb", 4.5),
            ("Lemon", 0.5, "count", 0.79),
            ("Garlic", 1.5, "count", 0.15),
            ("Parsley", 0.25, "oz", 2.0),
            ("Mixed vegetables", 8, "oz", 3.5),
        ],
    },
    {
        "id": "m2",
        "title": "Creamy Tuscan Pasta",
        "description": "Silky cream sauce, sun-dried tomatoes, spinach, and parmesan. A weeknight hero.",
        "hero": "/hero.jpg",
        "ingredients": [
            ("Pasta", 4, "oz", 1.5),
            ("Heavy cream", 4, "oz", 2.0),
            ("Sun-dried tomatoes", 2, "oz", 3.2),
            ("Spinach", 2, "oz", 1.5),
            ("Parmesan", 1.5, "oz", 2.8),
        ],
    },
    {
        "id": "m3",
        "title": "Soy-Ginger Salmon with Rice & Greens",
        "description": "Oven-roasted salmon with glossy soy-ginger glaze over fluffy rice and greens.",
        "hero": "/hero.jpg",
        "ingredients": [
            ("Salmon fillet", 0.375, "lb", 9.0),
            ("Soy sauce", 1, "oz", 0.3),
            ("Fresh ginger", 0.5, "oz", 0.8),
            ("Rice", 4, "oz", 1.2),
            ("Green beans", 4, "oz", 2.0),
        ],
    },
]


def _sample_menu(base: Dict, portions: int) -> MenuItem:
    return MenuItem(
        id=base["id"],
        title=base["title"],
        description=base["description"],
        hero=base["hero"],
        portions=portions,
        approved=False,
        ingredients=[
            Ingredient(name=name, qty=qty, measure=measure, est_price=price)
            for name, qty, measure, price in base["ingredients"]
        ],
    )


class MenuBoard:
    """Current batch of menus for a session."""

    def __init__(self, menus: Optional[List[MenuItem]] = None):
        self.menus: List[MenuItem] = list(menus or [])

    def get(self, menu_id: str) -> Optional[MenuItem]:
        for menu in self.menus:
            if menu.id == menu_id:
                return menu
        return None

    def generate_local(self, count: int, portions: int) -> List[MenuItem]:
        """
        Offline stand-in for the generation workflow.

        Args:
            count: Dinners needed (capped at the number of samples)
            portions: Portion count for every menu

        Returns:
            The new menus (previous batch is replaced)
        """
        count = min(max(1, count or 3), len(SAMPLE_MENUS))
        self.menus = [_sample_menu(base, max(1, portions)) for base in SAMPLE_MENUS[:count]]
        return self.menus

    def replace_menus(self, menus: Iterable[Dict], default_portions: int) -> List[MenuItem]:
        """
        Install a batch delivered by the generation workflow.

        Incoming menus start unapproved; missing ids and portions are filled.
        """
        installed = []
        for data in menus:
            data = dict(data)
            data.setdefault("id", generate_id())
            data.setdefault("portions", default_portions)
            menu = MenuItem.from_dict(data)
            menu.approved = False
            installed.append(menu)
        self.menus = installed
        logger.info(f"Installed {len(installed)} generated menus")
        return self.menus

    def adjust_portions(self, menu_id: str, delta: int) -> Optional[MenuItem]:
        """Change portions by delta (minimum 1). Unknown ids are ignored."""
        menu = self.get(menu_id)
        if menu is None:
            return None
        menu.portions = max(1, menu.portions + int(delta))
        return menu

    def submit_feedback(self, menu_id: str, feedback: str) -> Optional[MenuItem]:
        """Record feedback and revise the menu's title and description."""
        menu = self.get(menu_id)
        if menu is None:
            return None
        menu.feedback = feedback
        if not menu.title.endswith(CHEF_TWIST_SUFFIX):
            menu.title = f"{menu.title}{CHEF_TWIST_SUFFIX}"
        menu.description = f"Updated per your note: {feedback}"
        return menu

    def approve(self, menu_id: str, cart) -> list:
        """Approve a menu into the cart. Returns the new lines ([] if unknown)."""
        menu = self.get(menu_id)
        if menu is None:
            return []
        return cart.approve_menu(menu)

    def approved_count(self) -> int:
        return sum(1 for menu in self.menus if menu.approved)

    def to_list(self) -> List[Dict]:
        return [menu.to_dict() for menu in self.menus]
