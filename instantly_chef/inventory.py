"""
Pantry and bar inventory.

Both managers keep an ordered list (newest first) and only change it
through the operations below. Missing ids are ignored rather than raised,
since the UI can race a removal with an edit.
"""

import logging
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Union

from instantly_chef.config import STAPLE_REORDER_PRICE
from instantly_chef.data.models import BAR_CATEGORIES, MEASURES, BarItem, CartLine, PantryItem
from instantly_chef.errors import InvalidItemError
from instantly_chef.utils import fade_perishables, generate_id, timestamp_now

logger = logging.getLogger(__name__)

DEFAULT_PANTRY = [
    ("Salt", "spice"),
    ("Pepper", "spice"),
    ("Extra-virgin olive oil", "oil"),
    ("Vegetable oil", "oil"),
]

DEFAULT_BAR = [
    ("Vodka", 16, "oz", "spirit"),
    ("Tonic water", 12, "oz", "mixer"),
    ("Strawberries", 8, "oz", "produce"),
    ("Mint", 1, "oz", "herb"),
]


def _check_measure(measure: Optional[str]):
    if measure is not None and measure not in MEASURES:
        raise InvalidItemError(f"Unknown measure: {measure}")


class _InventoryManager:
    """Shared id-based bookkeeping for pantry and bar lists."""

    def __init__(self, items=None):
        self.items = list(items or [])

    def get(self, item_id: str):
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def _replace(self, item_id: str, **changes) -> bool:
        for i, item in enumerate(self.items):
            if item.id == item_id:
                self.items[i] = replace(item, **changes)
                return True
        return False

    def remove_item(self, item_id: str):
        """Remove by id. Removing an unknown id does nothing."""
        self.items = [item for item in self.items if item.id != item_id]

    def toggle_active(self, item_id: str):
        item = self.get(item_id)
        if item is None:
            return
        self._replace(item_id, active=not item.active, updated_at=timestamp_now())

    def to_list(self) -> List[Dict]:
        return [item.to_dict() for item in self.items]


class PantryManager(_InventoryManager):
    """Pantry items. Items without quantity and unit are staples."""

    def __init__(self, items: Optional[List[PantryItem]] = None):
        super().__init__(items)

    @classmethod
    def with_defaults(cls) -> "PantryManager":
        now = timestamp_now()
        return cls([
            PantryItem(id=generate_id(), name=name, qty=None, measure=None,
                       active=True, updated_at=now, category=category)
            for name, category in DEFAULT_PANTRY
        ])

    def add_manual(
        self,
        name: str,
        qty: Optional[float],
        measure: Optional[str],
        category: Optional[str] = None,
    ) -> PantryItem:
        """
        Add a pantry item to the front of the list.

        Args:
            name: Item name (duplicates allowed)
            qty: Quantity, or None together with measure for a staple
            measure: Unit of measure, or None for a staple
            category: Optional tag (spice, condiment, oil, canned, other)

        Returns:
            The new PantryItem

        Raises:
            InvalidItemError: If a quantity is given without a unit
        """
        if qty is not None and measure is None:
            raise InvalidItemError("Quantity given without a unit of measure")
        _check_measure(measure)

        item = PantryItem(
            id=generate_id(),
            name=name,
            qty=max(0.0, qty) if qty is not None else None,
            measure=measure if qty is not None else None,
            active=True,
            updated_at=timestamp_now(),
            category=category,
        )
        self.items.insert(0, item)
        logger.debug(f"Pantry add: {item.name} (staple={item.is_staple})")
        return item

    def edit_item(self, item_id: str, **patch) -> Optional[PantryItem]:
        """
        Apply a partial update to name/qty/measure.

        The updated timestamp is always refreshed. Unknown ids are a no-op.
        The merged item must still be a staple or carry a known unit.

        Returns:
            The updated item, or None if the id was not found

        Raises:
            InvalidItemError: If the edit leaves a quantity without a unit
        """
        item = self.get(item_id)
        if item is None:
            logger.debug(f"Pantry edit ignored, unknown id {item_id}")
            return None

        changes = {k: v for k, v in patch.items() if k in ("name", "qty", "measure")}
        qty = changes.get("qty", item.qty)
        measure = changes.get("measure", item.measure)
        if qty is None:
            measure = None
        elif measure is None:
            raise InvalidItemError("Quantity given without a unit of measure")
        _check_measure(measure)

        changes.update(
            qty=max(0.0, qty) if qty is not None else None,
            measure=measure,
            updated_at=timestamp_now(),
        )
        self._replace(item_id, **changes)
        return self.get(item_id)

    def reorder_staple(self, name: str, cart) -> CartLine:
        """
        Put one unit of a staple into the cart's extra section.

        The pantry record itself is left as it is.

        Args:
            name: Staple name
            cart: ShoppingCart receiving the line

        Returns:
            The new extra CartLine
        """
        return cart.add_extra_item(name, 1, "count", STAPLE_REORDER_PRICE)

    def submit_image(self) -> List[PantryItem]:
        """Image intake stub: adds a fixed pair of detected items."""
        return [
            self.add_manual("Canned tomatoes", 14, "oz", "canned"),
            self.add_manual("Chili crisp", 6, "oz", "condiment"),
        ]

    def staples(self) -> List[PantryItem]:
        return [item for item in self.items if item.is_staple]

    def tracked(self) -> List[PantryItem]:
        return [item for item in self.items if not item.is_staple]


class BarManager(_InventoryManager):
    """Home bar items. Produce and herbs are perishable."""

    def __init__(self, items: Optional[List[BarItem]] = None):
        super().__init__(items)

    @classmethod
    def with_defaults(cls) -> "BarManager":
        now = timestamp_now()
        return cls([
            BarItem(id=generate_id(), name=name, qty=qty, measure=measure,
                    category=category, active=True, updated_at=now)
            for name, qty, measure, category in DEFAULT_BAR
        ])

    def add_manual(self, name: str, qty: float, measure: str, category: str = "other") -> BarItem:
        """Add a bar item to the front of the list."""
        if measure is None:
            raise InvalidItemError("Bar items need a unit of measure")
        _check_measure(measure)
        if category not in BAR_CATEGORIES:
            raise InvalidItemError(f"Unknown bar category: {category}")

        item = BarItem(
            id=generate_id(),
            name=name,
            qty=max(0.0, qty),
            measure=measure,
            category=category,
            active=True,
            updated_at=timestamp_now(),
        )
        self.items.insert(0, item)
        return item

    def edit_item(self, item_id: str, **patch) -> Optional[BarItem]:
        """Partial update of name/qty/measure, checked like add_manual."""
        item = self.get(item_id)
        if item is None:
            return None

        changes = {k: v for k, v in patch.items() if k in ("name", "qty", "measure")}
        qty = changes.get("qty", item.qty)
        measure = changes.get("measure", item.measure)
        if qty is None or measure is None:
            raise InvalidItemError("Bar items need a quantity and a unit of measure")
        _check_measure(measure)

        changes.update(qty=max(0.0, qty), measure=measure, updated_at=timestamp_now())
        self._replace(item_id, **changes)
        return self.get(item_id)

    def submit_image(self) -> List[BarItem]:
        """Image intake stub: adds a fixed pair of detected items."""
        return [
            self.add_manual("Lime", 6, "count", "produce"),
            self.add_manual("Simple syrup", 8, "oz", "mixer"),
        ]

    def fade(self, now: Union[str, datetime, None] = None, max_age: Optional[timedelta] = None):
        """Deactivate stale perishables in place."""
        before = sum(1 for item in self.items if item.active)
        self.items = fade_perishables(self.items, now=now, max_age=max_age)
        faded = before - sum(1 for item in self.items if item.active)
        if faded:
            logger.info(f"Faded {faded} perishable bar item(s)")

    def active_items(self) -> List[BarItem]:
        return [item for item in self.items if item.active]
