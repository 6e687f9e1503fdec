"""
Data models for Instantly Chef.

These models define the core entities used throughout the system:
- Ingredient / SideDish / MenuItem: generated dinner menus
- CartLine: priced shopping cart rows (meal or extra section)
- PantryItem / BarItem: tracked kitchen and bar inventory
- WeeklyPlan / Profile: weekly constraints and household defaults
- BeverageRecipe: cocktail/mocktail suggestions from the bar
- GenerationResult: menus delivered by the generation workflow
"""

from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any

MEASURES = ("oz", "lb", "ml", "g", "kg", "count")
BAR_CATEGORIES = ("spirit", "mixer", "produce", "herb", "other")
PERISHABLE_CATEGORIES = frozenset({"produce", "herb"})
PANTRY_CATEGORIES = ("spice", "condiment", "oil", "canned", "other")
BUDGET_TYPES = ("none", "perWeek", "perMeal")
CART_SECTIONS = ("meal", "extra")


def _optional_float(value: Any) -> Optional[float]:
    """Numeric value as float; None or unparseable input gives None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


@dataclass
class Ingredient:
    """Ingredient line of a menu, quantity expressed per portion."""

    name: str
    qty: float
    measure: str  # one of MEASURES
    est_price: Optional[float] = None  # estimated unit price

    def __str__(self) -> str:
        return f"{self.qty} {self.measure} {self.name}"

    def to_dict(self) -> Dict:
        return {
            "name": self.name,
            "qty": self.qty,
            "measure": self.measure,
            "est_price": self.est_price,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "Ingredient":
        return cls(
            name=data["name"],
            qty=_optional_float(data.get("qty")) or 0.0,
            measure=data.get("measure") or "count",
            est_price=_optional_float(data.get("est_price", data.get("estPrice"))),
        )


@dataclass
class SideDish:
    """Side dish served with a menu, with its own ingredients and steps."""

    title: str
    ingredients: List[Ingredient] = field(default_factory=list)
    steps: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "title": self.title,
            "ingredients": [ing.to_dict() for ing in self.ingredients],
            "steps": list(self.steps),
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "SideDish":
        return cls(
            title=data.get("title") or "",
            ingredients=[Ingredient.from_dict(i) for i in data.get("ingredients", [])],
            steps=list(data.get("steps", [])),
        )


@dataclass
class MenuItem:
    """A generated dinner menu.

    Starts unapproved. Portions and feedback may change it; approving it
    snapshots its scaled ingredients into the cart.
    """

    id: str
    title: str
    description: str
    hero: str  # hero image reference
    portions: int
    approved: bool = False
    feedback: Optional[str] = None
    ingredients: List[Ingredient] = field(default_factory=list)
    steps: List[str] = field(default_factory=list)
    sides: List[SideDish] = field(default_factory=list)

    def __str__(self) -> str:
        state = "approved" if self.approved else "pending"
        return f"{self.title} ({self.portions} portions, {state})"

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "hero": self.hero,
            "portions": self.portions,
            "approved": self.approved,
            "feedback": self.feedback,
            "ingredients": [ing.to_dict() for ing in self.ingredients],
            "steps": list(self.steps),
            "sides": [side.to_dict() for side in self.sides],
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "MenuItem":
        """
        Create MenuItem from dictionary.

        Accepts both our own to_dict() output and the looser shape the
        generation workflow posts back (missing flags, camelCase prices).

        Args:
            data: Dictionary representation of a menu

        Returns:
            MenuItem object
        """
        return cls(
            id=str(data["id"]),
            title=data.get("title") or "",
            description=data.get("description") or "",
            hero=data.get("hero") or "",
            portions=max(1, int(data.get("portions") or 1)),
            approved=bool(data.get("approved", False)),
            feedback=data.get("feedback"),
            ingredients=[Ingredient.from_dict(i) for i in data.get("ingredients", [])],
            steps=list(data.get("steps", [])),
            sides=[SideDish.from_dict(s) for s in data.get("sides", [])],
        )


@dataclass
class CartLine:
    """Single priced row of the shopping cart."""

    id: str
    name: str
    qty: float
    measure: str
    est_price: float  # line total, never negative
    section: str  # "meal" or "extra"

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "name": self.name,
            "qty": self.qty,
            "measure": self.measure,
            "est_price": self.est_price,
            "section": self.section,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "CartLine":
        return cls(
            id=data["id"],
            name=data["name"],
            qty=float(data.get("qty") or 0),
            measure=data.get("measure") or "count",
            est_price=max(0.0, float(data.get("est_price") or 0)),
            section=data.get("section", "extra"),
        )


@dataclass
class PantryItem:
    """Pantry inventory entry. No qty and no measure means a staple."""

    id: str
    name: str
    qty: Optional[float]
    measure: Optional[str]
    active: bool = True
    updated_at: str = ""  # ISO timestamp
    category: Optional[str] = None

    @property
    def is_staple(self) -> bool:
        return self.qty is None and self.measure is None

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "name": self.name,
            "qty": self.qty,
            "measure": self.measure,
            "staple": self.is_staple,
            "active": self.active,
            "updated_at": self.updated_at,
            "category": self.category,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "PantryItem":
        return cls(
            id=data["id"],
            name=data["name"],
            qty=data.get("qty"),
            measure=data.get("measure"),
            active=bool(data.get("active", True)),
            updated_at=data.get("updated_at", ""),
            category=data.get("category"),
        )


@dataclass
class BarItem:
    """Home bar inventory entry."""

    id: str
    name: str
    qty: float
    measure: str
    category: str  # one of BAR_CATEGORIES
    active: bool = True
    updated_at: str = ""  # ISO timestamp

    @property
    def perishable(self) -> bool:
        return self.category in PERISHABLE_CATEGORIES

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "name": self.name,
            "qty": self.qty,
            "measure": self.measure,
            "category": self.category,
            "active": self.active,
            "perishable": self.perishable,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "BarItem":
        return cls(
            id=data["id"],
            name=data["name"],
            qty=float(data.get("qty") or 0),
            measure=data.get("measure") or "oz",
            category=data.get("category", "other"),
            active=bool(data.get("active", True)),
            updated_at=data.get("updated_at", ""),
        )


@dataclass
class WeeklyPlan:
    """Constraints for this week's menus."""

    dinners: int = 3
    budget_type: str = "none"  # "none", "perWeek", "perMeal"
    budget_value: Optional[float] = None
    on_hand_text: str = ""
    on_hand_image: Optional[str] = None  # photographed on-hand snapshot reference
    mood: str = ""
    extras: str = ""

    # Snapshot counters captured at generation time
    pantry_count: int = 0
    bar_count: int = 0
    menus_count: int = 0

    def to_dict(self) -> Dict:
        return {
            "dinners": self.dinners,
            "budget_type": self.budget_type,
            "budget_value": self.budget_value,
            "on_hand_text": self.on_hand_text,
            "on_hand_image": self.on_hand_image,
            "mood": self.mood,
            "extras": self.extras,
            "pantry_count": self.pantry_count,
            "bar_count": self.bar_count,
            "menus_count": self.menus_count,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "WeeklyPlan":
        return cls(
            dinners=int(data.get("dinners", 3)),
            budget_type=data.get("budget_type", "none"),
            budget_value=data.get("budget_value"),
            on_hand_text=data.get("on_hand_text", ""),
            on_hand_image=data.get("on_hand_image"),
            mood=data.get("mood", ""),
            extras=data.get("extras", ""),
            pantry_count=int(data.get("pantry_count", 0)),
            bar_count=int(data.get("bar_count", 0)),
            menus_count=int(data.get("menus_count", 0)),
        )


@dataclass
class Profile:
    """Household defaults.

    The account form has many more fields (address, household, equipment,
    dietary and shopping preferences). They are kept as an opaque mapping.
    """

    portion_default: int = 4
    store: str = "Kroger"
    fields: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict:
        return {
            "portion_default": self.portion_default,
            "store": self.store,
            "fields": dict(self.fields),
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "Profile":
        return cls(
            portion_default=max(1, int(data.get("portion_default", 4))),
            store=data.get("store", "Kroger"),
            fields=dict(data.get("fields") or {}),
        )


@dataclass
class BeverageRecipe:
    """Cocktail or mocktail suggestion built from the bar."""

    id: str
    name: str
    kind: str  # "cocktail" or "mocktail"
    ingredients: List[Dict[str, Any]] = field(default_factory=list)
    instructions: List[str] = field(default_factory=list)
    image_url: str = ""

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "name": self.name,
            "kind": self.kind,
            "ingredients": [dict(i) for i in self.ingredients],
            "instructions": list(self.instructions),
            "image_url": self.image_url,
        }


@dataclass
class GenerationResult:
    """Menus delivered for one correlation id. Immutable once stored."""

    correlation_id: str
    status: str
    menus: List[Dict[str, Any]] = field(default_factory=list)
    received_at: Optional[str] = None

    def to_dict(self) -> Dict:
        return {
            "correlationId": self.correlation_id,
            "status": self.status,
            "menus": self.menus,
            "receivedAt": self.received_at,
        }
