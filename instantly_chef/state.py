"""
Per-user application state and the Dashboard facade.

AppState is the whole dashboard for one user: profile defaults, weekly
plan, menus, cart, pantry and bar. Dashboard loads it from the database,
applies one operation, and saves it back. Perishable fade runs on every
load, so freshness is always derived from the stored timestamps.
"""

import logging
from dataclasses import dataclass, field
from functools import wraps
from typing import Any, Dict, List, Optional

from instantly_chef.beverages import generate_beverage_recipe
from instantly_chef.cart import ShoppingCart
from instantly_chef.config import Settings
from instantly_chef.data.models import BarItem, MenuItem, PantryItem, Profile, WeeklyPlan
from instantly_chef.generation.payload import GenerationPayload, build_client_payload
from instantly_chef.inventory import BarManager, PantryManager
from instantly_chef.menus import MenuBoard
from instantly_chef.planner import WeeklyPlanner, is_within_budget

logger = logging.getLogger(__name__)


@dataclass
class AppState:
    """Everything on one user's dashboard."""

    profile: Profile = field(default_factory=Profile)
    weekly: WeeklyPlan = field(default_factory=WeeklyPlan)
    menus: MenuBoard = field(default_factory=MenuBoard)
    cart: ShoppingCart = field(default_factory=ShoppingCart)
    pantry: PantryManager = field(default_factory=PantryManager.with_defaults)
    bar: BarManager = field(default_factory=BarManager.with_defaults)
    pending_correlation_id: Optional[str] = None

    def to_dict(self) -> Dict:
        return {
            "profile": self.profile.to_dict(),
            "weekly": self.weekly.to_dict(),
            "menus": self.menus.to_list(),
            "cart": self.cart.to_dict(),
            "pantry": self.pantry.to_list(),
            "bar": self.bar.to_list(),
            "pending_correlation_id": self.pending_correlation_id,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "AppState":
        return cls(
            profile=Profile.from_dict(data.get("profile") or {}),
            weekly=WeeklyPlan.from_dict(data.get("weekly") or {}),
            menus=MenuBoard([MenuItem.from_dict(m) for m in data.get("menus", [])]),
            cart=ShoppingCart.from_dict(data.get("cart") or {}),
            pantry=PantryManager([PantryItem.from_dict(p) for p in data.get("pantry", [])]),
            bar=BarManager([BarItem.from_dict(b) for b in data.get("bar", [])]),
            pending_correlation_id=data.get("pending_correlation_id"),
        )


def _persist(method):
    """Save the dashboard after a successful mutation."""
    @wraps(method)
    def wrapper(self, *args, **kwargs):
        result = method(self, *args, **kwargs)
        self.save()
        return result
    return wrapper


class Dashboard:
    """Session facade: one user's AppState plus the operations on it."""

    def __init__(self, db, user_key: str, settings: Optional[Settings] = None, email: Optional[str] = None):
        """
        Load (or create) the user's state.

        Args:
            db: DatabaseInterface
            user_key: User identifier from the session
            settings: Policy settings (budget epsilon, perishable window)
            email: Signed-in user's email, used for the client payload
        """
        self.db = db
        self.user_key = user_key
        self.settings = settings or Settings()
        self.email = email
        self.state = self._load()

    def _load(self) -> AppState:
        data = self.db.get_state(self.user_key)
        if data is None:
            # Seed once so default item ids stay stable across requests
            state = AppState()
            self.db.save_state(self.user_key, state.to_dict())
            logger.info(f"Seeded default dashboard for user {self.user_key}")
        else:
            state = AppState.from_dict(data)
        state.bar.fade(max_age=self.settings.perishable_max_age)
        return state

    def save(self):
        self.db.save_state(self.user_key, self.state.to_dict())

    def reset(self):
        """Discard everything and start from the default dashboard."""
        self.db.clear_state(self.user_key)
        self.state = AppState()
        self.save()
        logger.info(f"Reset dashboard for user {self.user_key}")

    @property
    def planner(self) -> WeeklyPlanner:
        return WeeklyPlanner(self.state.profile, self.state.weekly)

    # ==================== Views ====================

    def budget_status(self) -> Dict[str, Any]:
        cart = self.state.cart
        weekly = self.state.weekly
        return {
            "withinBudget": is_within_budget(
                cart.meal_lines,
                cart.extra_lines,
                weekly,
                self.state.menus.approved_count(),
                epsilon=self.settings.budget_epsilon,
            ),
            "budgetType": weekly.budget_type,
            "budgetValue": weekly.budget_value,
            "totals": cart.totals(),
        }

    def to_dict(self) -> Dict[str, Any]:
        data = self.state.to_dict()
        data["budget"] = self.budget_status()
        data["approved_count"] = self.state.menus.approved_count()
        return data

    # ==================== Profile & weekly ====================

    @_persist
    def update_profile(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        """
        Save account form fields and sync the dashboard defaults.

        portions_per_dinner and preferred_store also drive the portion
        default and store shown on the weekly planner.
        """
        if self.email and "email" not in fields:
            fields = dict(fields, email=self.email)
        merged = self.db.upsert_profile(self.user_key, fields)
        self.state.profile.fields = merged

        planner = self.planner
        if "portions_per_dinner" in fields:
            planner.set_portion_default(fields["portions_per_dinner"])
        if "preferred_store" in fields:
            planner.set_store(fields["preferred_store"])
        return merged

    def get_profile(self) -> Dict[str, Any]:
        return self.db.get_profile(self.user_key) or dict(self.state.profile.fields)

    @_persist
    def update_weekly(self, data: Dict[str, Any]) -> WeeklyPlan:
        self.planner.update(data)
        return self.state.weekly

    @_persist
    def submit_on_hand_image(self, preview: Optional[str]) -> str:
        return self.planner.submit_on_hand_image(preview)

    # ==================== Pantry ====================

    @_persist
    def add_pantry_item(self, name: str, qty=None, measure=None, category=None) -> PantryItem:
        return self.state.pantry.add_manual(name, qty, measure, category)

    @_persist
    def edit_pantry_item(self, item_id: str, **patch) -> Optional[PantryItem]:
        return self.state.pantry.edit_item(item_id, **patch)

    @_persist
    def remove_pantry_item(self, item_id: str):
        self.state.pantry.remove_item(item_id)

    @_persist
    def toggle_pantry_item(self, item_id: str):
        self.state.pantry.toggle_active(item_id)

    @_persist
    def reorder_staple(self, name: str):
        return self.state.pantry.reorder_staple(name, self.state.cart)

    @_persist
    def submit_pantry_image(self) -> List[PantryItem]:
        return self.state.pantry.submit_image()

    # ==================== Bar ====================

    @_persist
    def add_bar_item(self, name: str, qty, measure: str, category: str = "other") -> BarItem:
        return self.state.bar.add_manual(name, qty, measure, category)

    @_persist
    def edit_bar_item(self, item_id: str, **patch) -> Optional[BarItem]:
        return self.state.bar.edit_item(item_id, **patch)

    @_persist
    def remove_bar_item(self, item_id: str):
        self.state.bar.remove_item(item_id)

    @_persist
    def toggle_bar_item(self, item_id: str):
        self.state.bar.toggle_active(item_id)

    @_persist
    def submit_bar_image(self) -> List[BarItem]:
        return self.state.bar.submit_image()

    def suggest_beverage(self, kind: str):
        return generate_beverage_recipe(self.state.bar.items, kind)

    # ==================== Menus & cart ====================

    @_persist
    def generate_sample_menus(self) -> List[MenuItem]:
        return self.state.menus.generate_local(
            self.state.weekly.dinners, self.state.profile.portion_default
        )

    @_persist
    def adjust_portions(self, menu_id: str, delta: int) -> Optional[MenuItem]:
        return self.state.menus.adjust_portions(menu_id, delta)

    @_persist
    def submit_feedback(self, menu_id: str, feedback: str) -> Optional[MenuItem]:
        return self.state.menus.submit_feedback(menu_id, feedback)

    @_persist
    def approve_menu(self, menu_id: str):
        return self.state.menus.approve(menu_id, self.state.cart)

    @_persist
    def add_extra_item(self, name: str, qty: float, measure: str, price: float):
        return self.state.cart.add_extra_item(name, qty, measure, price)

    @_persist
    def clear_cart_section(self, section: str):
        self.state.cart.clear_section(section)

    @_persist
    def remove_cart_line(self, line_id: str):
        self.state.cart.remove_line(line_id)

    # ==================== Generation ====================

    def build_generation_payload(
        self,
        client: Optional[Dict[str, Any]] = None,
        generate: Optional[Dict[str, Any]] = None,
    ) -> GenerationPayload:
        """
        Snapshot the dashboard into a generation payload.

        Records the pantry/bar/menu counters on the weekly plan first so the
        weekly section reflects what was sent.
        """
        state = self.state
        active_pantry = [item for item in state.pantry.items if item.active]
        active_bar = state.bar.active_items()
        self.planner.take_snapshot(len(active_pantry), len(active_bar), len(state.menus.menus))

        client_payload = build_client_payload(
            self.db.get_profile(self.user_key) or state.profile.fields,
            weekly=state.weekly,
            profile=state.profile,
            client=client,
            email=self.email or "",
        )
        return GenerationPayload(
            client=client_payload,
            weekly=self.planner.weekly_payload(),
            pantry_snapshot=[item.to_dict() for item in active_pantry],
            bar_snapshot=[item.to_dict() for item in active_bar],
            generate=generate or {},
        )

    @_persist
    def submit_generation(self, generation_client, client=None, generate=None) -> Dict[str, str]:
        """Submit a generation request and remember its correlation id."""
        payload = self.build_generation_payload(client=client, generate=generate)
        accepted = generation_client.submit_generation_request(payload, user_key=self.user_key)
        self.state.pending_correlation_id = accepted["correlationId"]
        return accepted

    @_persist
    def apply_generation_result(self, result: Dict[str, Any]) -> bool:
        """
        Install delivered menus if they answer this dashboard's pending request.

        Returns:
            True if the menus were installed
        """
        cid = result.get("correlationId")
        if not cid or cid != self.state.pending_correlation_id:
            return False
        self.state.menus.replace_menus(result.get("menus") or [], self.state.profile.portion_default)
        self.state.pending_correlation_id = None
        return True
