"""
Generation request payload.

The workflow expects a nested camelCase "client" document describing the
household. It is assembled from two sources: values the caller sends
explicitly (weekly planner, form edits) and the stored profile row. The
caller wins; the stored row fills blanks. The result is validated once,
right before submission.
"""

import logging
import re
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from instantly_chef.data.models import Profile, WeeklyPlan
from instantly_chef.utils import coerce_number

logger = logging.getLogger(__name__)

CLIENT_SECTIONS = (
    "basicInformation",
    "householdSetup",
    "cookingPreferences",
    "dietaryProfile",
    "shoppingPreferences",
    "extra",
)


# =============================================================================
# Pydantic Models
# =============================================================================

class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, coerce_numbers_to_str=True)


def _as_list(value: Any) -> List[str]:
    return split_csv(value)


def _as_int(value: Any) -> int:
    return int(coerce_number(value, 0))


class AccountAddress(_CamelModel):
    street: str = ""
    city: str = ""
    state: str = ""
    zipcode: str = ""


class BasicInformation(_CamelModel):
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    account_address: AccountAddress = Field(default_factory=AccountAddress)


class HouseholdSetup(_CamelModel):
    adults: int = 0
    teens: int = 0
    children: int = 0
    toddlers_infants: int = 0
    portions_per_dinner: int = 0
    dinners_per_week: int = 0

    @field_validator("*", mode="before")
    @classmethod
    def coerce_counts(cls, v):
        return _as_int(v)


class CookingPreferences(_CamelModel):
    cooking_skill: str = "Beginner"
    cooking_time_preference: str = "30 min"
    equipment: List[str] = Field(default_factory=list)

    @field_validator("equipment", mode="before")
    @classmethod
    def split_equipment(cls, v):
        return _as_list(v)


class DietaryProfile(_CamelModel):
    allergies_restrictions: List[str] = Field(default_factory=list)
    dislikes_avoid_list: List[str] = Field(default_factory=list)
    dietary_programs: List[str] = Field(default_factory=list)
    notes: str = ""

    @field_validator("allergies_restrictions", "dislikes_avoid_list", "dietary_programs", mode="before")
    @classmethod
    def split_lists(cls, v):
        return _as_list(v)


class ShoppingPreferences(_CamelModel):
    stores_near_me: List[str] = Field(default_factory=list)
    preferred_grocery_store: str = ""
    prefer_organic: str = "I dont care"
    prefer_national_brands: str = "No preference"

    @field_validator("stores_near_me", mode="before")
    @classmethod
    def split_stores(cls, v):
        return _as_list(v)


class ClientPayload(_CamelModel):
    """Household description sent to the menu generation workflow."""
    basic_information: BasicInformation = Field(default_factory=BasicInformation)
    household_setup: HouseholdSetup = Field(default_factory=HouseholdSetup)
    cooking_preferences: CookingPreferences = Field(default_factory=CookingPreferences)
    dietary_profile: DietaryProfile = Field(default_factory=DietaryProfile)
    shopping_preferences: ShoppingPreferences = Field(default_factory=ShoppingPreferences)
    extra: Dict[str, Any] = Field(default_factory=dict)


class GenerateOptions(_CamelModel):
    """Which artifacts the workflow should produce."""
    menus: bool = True
    hero_images: bool = True
    menu_cards: bool = True
    receipt: bool = True


class GenerationPayload(_CamelModel):
    """
    Everything submitted for one generation run, minus the correlation id
    and callback URL (those are added by the client at submit time).
    """
    client: ClientPayload
    weekly: Dict[str, Any] = Field(default_factory=dict)
    pantry_snapshot: List[Dict[str, Any]] = Field(default_factory=list)
    bar_snapshot: List[Dict[str, Any]] = Field(default_factory=list)
    generate: GenerateOptions = Field(default_factory=GenerateOptions)


class IngredientPayload(_CamelModel):
    name: str = Field(min_length=1)
    qty: Optional[float] = Field(default=None, ge=0)
    measure: Optional[str] = None
    est_price: Optional[float] = Field(default=None, ge=0)


class SideDishPayload(_CamelModel):
    title: Optional[str] = None
    ingredients: List[IngredientPayload] = Field(default_factory=list)
    steps: List[str] = Field(default_factory=list)


class MenuPayload(_CamelModel):
    """
    One delivered menu. Ingredient quantities are per portion; portions
    is the serving count the menu starts at.
    """
    id: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    hero: Optional[str] = None
    portions: Optional[int] = Field(default=None, ge=1)
    ingredients: List[IngredientPayload] = Field(default_factory=list)
    steps: List[str] = Field(default_factory=list)
    sides: List[SideDishPayload] = Field(default_factory=list)


class CallbackPayload(_CamelModel):
    """Menus delivered by the workflow for one correlation id."""
    correlation_id: str = Field(min_length=1)
    status: str = "complete"
    menus: List[MenuPayload]

    def menus_to_store(self) -> List[Dict[str, Any]]:
        """Validated menus as plain dicts, keeping only the fields that were sent."""
        return [menu.model_dump(by_alias=True, exclude_unset=True) for menu in self.menus]


# =============================================================================
# Row mapping helpers
# =============================================================================

def split_csv(value: Any) -> List[str]:
    """Split a comma-separated string into trimmed, non-empty parts. Lists pass through."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        parts = [str(v) for v in value]
    else:
        parts = str(value).split(",")
    return [p.strip() for p in parts if p.strip()]


def names_from_email(email: Optional[str]) -> Tuple[str, str]:
    """
    Derive (first, last) names from an email handle.

    "jane.doe@example.com" -> ("jane", "doe"); "chef@x" -> ("chef", "")
    """
    handle = (email or "").split("@")[0]
    cleaned = re.sub(r"[._-]+", " ", handle).strip()
    if not cleaned:
        return "", ""
    parts = cleaned.split()
    return parts[0], " ".join(parts[1:])


def _is_blank(value: Any) -> bool:
    return value is None or value == "" or value == []


def merge(explicit: Optional[Mapping], stored: Optional[Mapping]) -> Dict:
    """Shallow merge where explicit values win and stored values fill blanks."""
    merged = dict(stored or {})
    for key, value in (explicit or {}).items():
        if not _is_blank(value) or key not in merged:
            merged[key] = value
    return merged


def _first(row: Mapping, *keys, default: Any = "") -> Any:
    for key in keys:
        if row.get(key) is not None:
            return row[key]
    return default


def row_to_client_parts(row: Optional[Mapping]) -> Dict[str, Dict]:
    """
    Normalize a stored profile row into camelCase client sections.

    Several common column spellings are accepted (first_name/firstName,
    zip/zipcode, ...). Address may be nested under "address" or flat.
    """
    if not row:
        return {}

    address = row.get("address") or {
        "street": _first(row, "address_street", "street"),
        "city": _first(row, "address_city", "city"),
        "state": _first(row, "address_state", "state"),
        "zipcode": _first(row, "address_zipcode", "zipcode", "zip"),
    }

    return {
        "basicInformation": {
            "firstName": _first(row, "first_name", "firstName", "given_name"),
            "lastName": _first(row, "last_name", "lastName", "family_name"),
            "email": _first(row, "email", "user_email"),
            "accountAddress": {
                "street": address.get("street") or "",
                "city": address.get("city") or "",
                "state": address.get("state") or "",
                "zipcode": address.get("zipcode") or "",
            },
        },
        "householdSetup": {
            "adults": _first(row, "adults", default=0),
            "teens": _first(row, "teens", default=0),
            "children": _first(row, "children", default=0),
            "toddlersInfants": _first(row, "toddlers", "toddlers_infants", default=0),
            "portionsPerDinner": _first(row, "portions_per_meal", "portions_per_dinner", default=0),
            "dinnersPerWeek": _first(row, "dinners_per_week", default=0),
        },
        "cookingPreferences": {
            "cookingSkill": _first(row, "cooking_skill", default="Beginner"),
            "cookingTimePreference": _first(row, "cooking_time", default="30 min"),
            "equipment": split_csv(row.get("equipment")),
        },
        "dietaryProfile": {
            "allergiesRestrictions": split_csv(row.get("allergies")),
            "dislikesAvoidList": split_csv(row.get("dislikes")),
            "dietaryPrograms": split_csv(row.get("dietary_programs")),
            "notes": _first(row, "macros", "macro_notes", "notes"),
        },
        "shoppingPreferences": {
            "storesNearMe": split_csv(_first(row, "stores_nearby", "stores_near_me", default=None)),
            "preferredGroceryStore": _first(row, "preferred_store", "grocery_store"),
            "preferOrganic": _first(row, "organic_preference", "prefer_organic", default="I dont care"),
            "preferNationalBrands": _first(
                row, "brand_preference", "prefer_national_brands", default="No preference"
            ),
        },
    }


def _weekly_client_parts(weekly: Optional[WeeklyPlan], profile: Optional[Profile]) -> Dict[str, Dict]:
    """Weekly planner values that belong inside the client document."""
    parts: Dict[str, Dict] = {"householdSetup": {}, "shoppingPreferences": {}, "extra": {}}
    if profile is not None:
        parts["householdSetup"]["portionsPerDinner"] = profile.portion_default
        parts["shoppingPreferences"]["preferredGroceryStore"] = profile.store
    if weekly is not None:
        parts["householdSetup"]["dinnersPerWeek"] = weekly.dinners
        parts["extra"] = {
            "weeklyMood": weekly.mood,
            "weeklyExtras": weekly.extras,
            "weeklyOnHandText": weekly.on_hand_text,
            "currentMenusCount": weekly.menus_count,
        }
    return parts


def build_client_payload(
    row: Optional[Mapping],
    weekly: Optional[WeeklyPlan] = None,
    profile: Optional[Profile] = None,
    client: Optional[Mapping] = None,
    email: str = "",
) -> ClientPayload:
    """
    Build the validated client document.

    Precedence per section: explicit ``client`` values, then weekly planner
    values, then the stored row. Names are derived from the email handle
    when neither source has them.

    Args:
        row: Stored profile row (flat snake_case fields), or None
        weekly: Current weekly plan
        profile: Profile defaults (portions, store)
        client: Explicit camelCase sections from the caller
        email: Signed-in user's email

    Returns:
        ClientPayload

    Raises:
        pydantic.ValidationError: If the merged document is malformed
    """
    if client is not None and not isinstance(client, Mapping):
        return ClientPayload.model_validate(client)

    client = dict(client or {})
    stored = row_to_client_parts(row)
    weekly_parts = _weekly_client_parts(weekly, profile)

    # Malformed sections are passed through untouched for pydantic to reject
    sections = {
        key: client[key]
        for key in CLIENT_SECTIONS
        if client.get(key) is not None and not isinstance(client[key], Mapping)
    }
    if sections:
        return ClientPayload.model_validate(sections)

    for key in CLIENT_SECTIONS:
        if key == "basicInformation":
            continue
        explicit = merge(client.get(key), weekly_parts.get(key))
        sections[key] = merge(explicit, stored.get(key))

    basic_in = client.get("basicInformation") or {}
    basic_db = stored.get("basicInformation") or {}
    resolved_email = (basic_in.get("email") or email or basic_db.get("email") or "").strip()
    derived_first, derived_last = names_from_email(resolved_email)

    basic = merge(basic_in, basic_db)
    basic["email"] = resolved_email
    basic["firstName"] = (basic.get("firstName") or derived_first).strip()
    basic["lastName"] = (basic.get("lastName") or derived_last).strip()
    sections["basicInformation"] = basic

    payload = ClientPayload.model_validate(sections)
    logger.debug(f"Built client payload for {resolved_email or 'anonymous user'}")
    return payload
