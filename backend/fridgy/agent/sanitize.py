import re

from fridgy.agent.artifacts import FridgeAnalysis, RecipeIngredients, SuggestedRecipe

_SCRIPT_BLOCK = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)
_JS_SCHEME = re.compile(r"javascript:", re.IGNORECASE)
_EVENT_HANDLER = re.compile(r"on\w+=", re.IGNORECASE)


def sanitize_text(text: str) -> str:
    """Strip script blocks, javascript: URLs and inline event handlers from model text."""
    text = _SCRIPT_BLOCK.sub("", text or "")
    text = _JS_SCHEME.sub("", text)
    return _EVENT_HANDLER.sub("", text)


def _clean_list(values: list[str]) -> list[str]:
    return [sanitize_text(value) for value in values]


def sanitize_recipe(recipe: SuggestedRecipe) -> SuggestedRecipe:
    return recipe.model_copy(
        update={
            "title": sanitize_text(recipe.title),
            "description": sanitize_text(recipe.description),
            "ingredients": RecipeIngredients(
                available=_clean_list(recipe.ingredients.available),
                additional=_clean_list(recipe.ingredients.additional),
            ),
            "steps": _clean_list(recipe.steps),
        }
    )


def sanitize_analysis(analysis: FridgeAnalysis) -> FridgeAnalysis:
    return FridgeAnalysis(
        ingredients=_clean_list(analysis.ingredients),
        recipes=[sanitize_recipe(recipe) for recipe in analysis.recipes],
    )
