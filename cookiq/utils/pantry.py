"""Pantry staples quick-add for the ingredient input."""

PANTRY_STAPLES = ("Onions", "Potatoes", "Eggs", "Milk", "Flour", "Tomato", "Paneer", "Spinach")


def split_ingredients(text: str) -> list[str]:
    """Split comma-separated ingredient text into trimmed, non-empty items."""
    return [item.strip() for item in text.split(",") if item.strip()] if text else []


def add_staple(ingredients: str, item: str) -> str:
    """Append item to a comma-separated ingredient list unless already present.

    Matching is exact (case-sensitive), and the input is returned unchanged
    when the item is already listed.

    >>> add_staple("rice, Eggs", "Milk")
    'rice, Eggs, Milk'
    >>> add_staple("rice, Eggs", "Eggs")
    'rice, Eggs'
    """
    items = split_ingredients(ingredients)
    if item in items:
        return ingredients
    return ", ".join([*items, item])
