COMMON_INGREDIENTS = [
    "Olive oil",
    "Garlic",
    "Rice",
    "Tuna",
    "Sugar",
    "Coffee",
    "Onion",
    "Chocolate",
    "Beans",
    "Flour",
    "Eggs",
    "Milk",
    "Lentils",
    "Lemon",
    "Butter",
    "Honey",
    "Bread",
    "Pasta",
    "Potatoes",
    "Bell pepper",
    "Chicken",
    "Cheese",
    "Salt",
    "Tomato",
    "Yogurt",
    "Carrot",
    "Avocado",
    "Almonds",
    "Oats",
    "Cod",
    "Broccoli",
    "Zucchini",
    "Cinnamon",
    "Mushrooms",
    "Coriander",
    "Spinach",
    "Chickpeas",
    "Ham",
    "Corn",
    "Apple",
    "Orange",
    "Walnuts",
    "Cucumber",
    "Pear",
    "Pepper",
    "Banana",
    "Beef",
    "Vinegar",
    "Carrots",
]

MIN_QUERY_LENGTH = 2


def suggest_ingredients(query: str, limit: int = 5) -> list[str]:
    """Autocomplete over the common ingredient list by case-insensitive substring."""
    needle = (query or "").strip().lower()
    if len(needle) < MIN_QUERY_LENGTH:
        return []
    return [item for item in COMMON_INGREDIENTS if needle in item.lower()][:limit]
