"""
Derivation utilities.

Small pure helpers shared by the inventory, planner and cart code:
ids, timestamps, numeric coercion, pricing, scaling and perishable decay.
"""

import math
import random
import string
import threading
import time
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, List, Optional, Union

from instantly_chef.config import DEFAULT_UNIT_PRICE, PERISHABLE_MAX_AGE_DAYS
from instantly_chef.data.models import BarItem, Ingredient

_ALPHABET = string.digits + string.ascii_lowercase

_id_lock = threading.Lock()
_last_tick = 0


def _base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_ALPHABET[rem])
    return "".join(reversed(digits))


def generate_id() -> str:
    """
    Generate an opaque, collision-resistant id.

    Combines a strictly increasing microsecond tick with a random suffix.
    Not suitable for anything security related.

    Returns:
        Short lowercase alphanumeric id
    """
    global _last_tick
    with _id_lock:
        tick = time.time_ns() // 1000
        if tick <= _last_tick:
            tick = _last_tick + 1
        _last_tick = tick
    suffix = "".join(random.choices(_ALPHABET, k=6))
    return f"{_base36(tick)}{suffix}"


def timestamp_now() -> str:
    """Current instant as an ISO-8601 UTC string."""
    return datetime.now(timezone.utc).isoformat()


def parse_timestamp(value: Union[str, datetime, None]) -> Optional[datetime]:
    """Parse an ISO timestamp (or pass a datetime through). Naive values are UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def coerce_number(text: Any, fallback: float) -> float:
    """
    Parse free-form numeric input, returning fallback on failure.

    Never raises. Blank strings, None, NaN and infinities all yield fallback.

    Args:
        text: User input (string, number or None)
        fallback: Value returned when parsing fails

    Returns:
        Parsed float or fallback
    """
    if text is None or isinstance(text, bool):
        return fallback
    try:
        value = float(str(text).strip()) if isinstance(text, str) else float(text)
    except (TypeError, ValueError):
        return fallback
    if math.isnan(value) or math.isinf(value):
        return fallback
    return value


def round_to_cents(value: float) -> float:
    return round(value, 2)


def format_currency(value: float) -> str:
    return f"${value:.2f}"


def line_price(ingredient: Ingredient) -> float:
    """
    Estimated price of an ingredient line.

    Unknown unit prices count as DEFAULT_UNIT_PRICE (a placeholder, not a
    price lookup).
    """
    unit_price = ingredient.est_price if ingredient.est_price is not None else DEFAULT_UNIT_PRICE
    return ingredient.qty * unit_price


def scale_ingredients(ingredients: Iterable[Ingredient], multiplier: float) -> List[Ingredient]:
    """
    Scale ingredient quantities by a multiplier.

    Args:
        ingredients: Base ingredient list (left untouched)
        multiplier: Scaling factor, usually the target portion count

    Returns:
        New list of new Ingredient objects
    """
    return [replace(ing, qty=ing.qty * multiplier) for ing in ingredients]


def fade_perishables(
    items: Iterable[BarItem],
    now: Union[str, datetime, None] = None,
    max_age: Optional[timedelta] = None,
) -> List[BarItem]:
    """
    Deactivate perishable bar items that have gone stale.

    Perishable items whose last update is older than max_age come back as
    inactive copies. Everything else passes through unchanged. Pure and
    idempotent for a fixed `now`.

    Args:
        items: Bar items
        now: Reference instant (defaults to timestamp_now())
        max_age: Freshness window (defaults to PERISHABLE_MAX_AGE_DAYS)

    Returns:
        New list of bar items
    """
    reference = parse_timestamp(now if now is not None else timestamp_now())
    window = max_age if max_age is not None else timedelta(days=PERISHABLE_MAX_AGE_DAYS)

    faded = []
    for item in items:
        updated = parse_timestamp(item.updated_at)
        if item.perishable and item.active and updated is not None and reference - updated > window:
            faded.append(replace(item, active=False))
        else:
            faded.append(item)
    return faded
