import math

import pytest

from fridgy.agent.artifacts import SuggestedRecipe
from fridgy.agent.fallback import fallback_analysis
from fridgy.agent.sanitize import sanitize_text
from fridgy.core.config import settings


@pytest.mark.parametrize(
    "calories", [None, 0, -50, "350", True, math.inf, math.nan]
)
def test_invalid_calories_fall_back_to_default(calories):
    recipe = SuggestedRecipe(title="Soup", calories=calories)
    assert recipe.calories == settings.DEFAULT_CALORIES


def test_missing_calories_fall_back_to_default():
    recipe = SuggestedRecipe(title="Soup")
    assert recipe.calories == settings.DEFAULT_CALORIES


def test_fractional_calories_are_rounded():
    assert SuggestedRecipe(title="Soup", calories=0.4).calories == 1
    assert SuggestedRecipe(title="Soup", calories=249.5).calories == 250


def test_sanitize_text_strips_scripts_and_handlers():
    dirty = 'Tasty<SCRIPT type="x">alert(1)</SCRIPT> <a href="JavaScript:go()" onMouseOver=run()>dish</a>'
    clean = sanitize_text(dirty)
    assert "alert" not in clean
    assert "javascript:" not in clean.lower()
    assert "onmouseover=" not in clean.lower()
    assert clean.startswith("Tasty")


def test_fallback_analysis_has_three_recipes_with_calories():
    analysis = fallback_analysis()
    assert len(analysis.recipes) == 3
    assert [recipe.calories for recipe in analysis.recipes] == [320, 180, 280]
    assert "Eggs" in analysis.ingredients
