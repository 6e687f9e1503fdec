"""
Cocktail and mocktail suggestions from whatever is active in the bar.
"""

from typing import Iterable
from urllib.parse import quote

from instantly_chef.data.models import BarItem, BeverageRecipe
from instantly_chef.utils import generate_id

MOCKTAIL_STEPS = [
    "Muddle fresh ingredients in a cocktail shaker",
    "Add ice and shake vigorously for 15 seconds",
    "Strain into a chilled glass over fresh ice",
    "Top with sparkling mixer and garnish with fresh herbs",
]

COCKTAIL_STEPS = [
    "Fill a cocktail shaker with ice",
    "Add spirit and fresh ingredients",
    "Shake well for 15-20 seconds until well chilled",
    "Strain into a glass with fresh ice",
    "Top with mixer and garnish elegantly",
]


def _first(items, category):
    for item in items:
        if item.category == category:
            return item
    return None


def generate_beverage_recipe(bar: Iterable[BarItem], kind: str) -> BeverageRecipe:
    """
    Build a drink from the first active item of each relevant category.

    Args:
        bar: Bar items (inactive ones are skipped)
        kind: "cocktail" or "mocktail"

    Returns:
        BeverageRecipe
    """
    if kind not in ("cocktail", "mocktail"):
        raise ValueError(f"Unknown beverage kind: {kind}")

    active = [item for item in bar if item.active]
    ingredients = []
    name = ""

    if kind == "mocktail":
        fruit = _first(active, "produce")
        herb = _first(active, "herb")
        mixer = _first(active, "mixer")
        if fruit:
            name = f"Sparkling {fruit.name} "
            ingredients.append({"name": fruit.name, "qty": 4, "measure": "oz"})
        if herb:
            name += f"{herb.name} Refresher"
            ingredients.append({"name": herb.name, "qty": 3, "measure": "leaves"})
        if mixer:
            ingredients.append({"name": mixer.name, "qty": 6, "measure": "oz"})
        name = name.strip() or "Fresh Garden Mocktail"
        steps = MOCKTAIL_STEPS
    else:
        spirit = _first(active, "spirit")
        fruit = _first(active, "produce")
        mixer = _first(active, "mixer")
        if spirit:
            name = f"{spirit.name} "
            ingredients.append({"name": spirit.name, "qty": 2, "measure": "oz"})
        if fruit:
            name += f"{fruit.name} "
            ingredients.append({"name": fruit.name, "qty": 3, "measure": "pieces"})
        if mixer:
            name += "Spritz" if "water" in mixer.name.lower() else "Cocktail"
            ingredients.append({"name": mixer.name, "qty": 4, "measure": "oz"})
        name = name.strip() or "Classic Cocktail"
        steps = COCKTAIL_STEPS

    prompt = quote(f"{name} cocktail drink")
    return BeverageRecipe(
        id=generate_id(),
        name=name,
        kind=kind,
        ingredients=ingredients,
        instructions=list(steps),
        image_url=f"https://source.unsplash.com/800x600/?{kind},beverage,{prompt}",
    )
