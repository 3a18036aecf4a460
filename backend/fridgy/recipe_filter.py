"""
Recipe compatibility against a user's dietary preferences and allergies.

Matching is a lowercase substring test of each keyword against every
ingredient of the recipe (available and additional).
"""
import logging
from typing import Any

from pydantic import BaseModel

logger = logging.getLogger(__name__)

DIETARY_KEYWORDS: dict[str, list[str]] = {
    "Vegetarian": ["meat", "chicken", "pork", "beef", "veal", "ham", "bacon", "sausage", "chorizo"],
    "Vegan": [
        "meat",
        "chicken",
        "pork",
        "beef",
        "veal",
        "ham",
        "bacon",
        "sausage",
        "chorizo",
        "milk",
        "cheese",
        "yogurt",
        "cream",
        "butter",
        "egg",
        "honey",
    ],
    "Gluten-free": ["wheat", "flour", "bread", "pasta", "barley", "rye", "oat", "cracker"],
    "Lactose-free": ["milk", "cheese", "yogurt", "cream", "butter", "ice cream", "dairy"],
    "Keto": ["sugar", "flour", "bread", "pasta", "rice", "potato", "corn", "bean"],
    "Paleo": ["dairy", "legume", "cereal", "sugar", "processed"],
    "Low-carb": ["sugar", "flour", "bread", "pasta", "rice", "potato", "corn", "bean"],
    "Low-sodium": ["salt", "salted", "cured meat", "canned", "soy sauce"],
    "Low-sugar": ["sugar", "honey", "syrup", "sweet", "candy", "chocolate"],
    # Mediterranean is inclusive, nothing is excluded
    "Mediterranean": [],
}

_KEYWORDS_BY_NAME = {name.lower(): keywords for name, keywords in DIETARY_KEYWORDS.items()}


class Compatibility(BaseModel):
    compatible: bool = True
    incompatible_reasons: list[str] = []
    compatibility_score: float = 1.0


def keywords_for(preference: str) -> list[str]:
    return _KEYWORDS_BY_NAME.get((preference or "").strip().lower(), [])


def recipe_ingredients(recipe: Any) -> list[str]:
    """Lowercased available + additional ingredients of a suggested or stored recipe."""
    if isinstance(recipe, dict):
        ingredients = recipe.get("ingredients") or {}
        available = ingredients.get("available") or []
        additional = ingredients.get("additional") or []
    elif hasattr(recipe, "available_ingredients"):
        available = recipe.available_ingredients or []
        additional = recipe.additional_ingredients or []
    else:
        available = recipe.ingredients.available
        additional = recipe.ingredients.additional
    return [str(ingredient).lower() for ingredient in [*available, *additional]]


def check_compatibility(
    recipe: Any, dietary_preferences: list[str], allergies: list[str]
) -> Compatibility:
    if not dietary_preferences and not allergies:
        return Compatibility()

    ingredients = recipe_ingredients(recipe)

    allergy_conflicts = [
        allergy
        for allergy in allergies
        if allergy.strip() and any(allergy.strip().lower() in item for item in ingredients)
    ]
    if allergy_conflicts:
        return Compatibility(
            compatible=False,
            incompatible_reasons=[f"Contains {allergy}" for allergy in allergy_conflicts],
            compatibility_score=0.0,
        )

    dietary_conflicts: list[str] = []
    for preference in dietary_preferences:
        for keyword in keywords_for(preference):
            if any(keyword in item for item in ingredients):
                dietary_conflicts.append(f"Not compatible with {preference}")
                break

    total = len(dietary_preferences)
    score = (total - len(dietary_conflicts)) / total if total else 1.0
    return Compatibility(
        compatible=not dietary_conflicts,
        incompatible_reasons=dietary_conflicts,
        compatibility_score=score,
    )


def filter_and_sort_recipes(
    recipes: list[Any], dietary_preferences: list[str], allergies: list[str]
) -> tuple[list[Any], list[Any]]:
    """Split recipes into (compatible, incompatible), each sorted by descending score."""
    scored = [
        (recipe, check_compatibility(recipe, dietary_preferences, allergies))
        for recipe in recipes
    ]
    compatible = [item for item in scored if item[1].compatible]
    incompatible = [item for item in scored if not item[1].compatible]
    compatible.sort(key=lambda item: item[1].compatibility_score, reverse=True)
    incompatible.sort(key=lambda item: item[1].compatibility_score, reverse=True)
    return [recipe for recipe, _ in compatible], [recipe for recipe, _ in incompatible]


def enrich_recipe(
    recipe: dict[str, Any], dietary_preferences: list[str], allergies: list[str]
) -> dict[str, Any]:
    return {**recipe, **check_compatibility(recipe, dietary_preferences, allergies).model_dump()}


def enrich_recipes(
    recipes: list[dict[str, Any]], dietary_preferences: list[str], allergies: list[str]
) -> list[dict[str, Any]]:
    return [enrich_recipe(recipe, dietary_preferences, allergies) for recipe in recipes]
