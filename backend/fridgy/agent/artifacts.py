import logging
import math
from typing import Any

from pydantic import BaseModel, Field, field_validator

from fridgy.core.config import settings

logger = logging.getLogger(__name__)


class RecipeIngredients(BaseModel):
    available: list[str] = Field(
        default_factory=list, description="Ingredients seen in the fridge that the recipe uses"
    )
    additional: list[str] = Field(
        default_factory=list, description="Ingredients the user has to add"
    )


class SuggestedRecipe(BaseModel):
    id: str | None = Field(default=None, description="Leave empty, assigned by the server")
    title: str = Field(description="Descriptive recipe title")
    description: str = Field(default="", description="Short description of the dish")
    ingredients: RecipeIngredients = Field(default_factory=RecipeIngredients)
    steps: list[str] = Field(default_factory=list, description="Detailed preparation steps")
    calories: int = Field(
        default=None,
        validate_default=True,
        description="Total calorie estimate for the recipe, positive integer",
    )
    image_url: str | None = Field(default=None, description="Leave empty")

    @field_validator("calories", mode="before")
    @classmethod
    def _valid_calories(cls, value: Any) -> int:
        is_number = isinstance(value, int | float) and not isinstance(value, bool)
        if not is_number or not math.isfinite(value) or value <= 0:
            logger.warning(
                "Invalid calorie estimate %r, using default of %s", value, settings.DEFAULT_CALORIES
            )
            return settings.DEFAULT_CALORIES
        return max(1, int(round(value)))


class FridgeAnalysis(BaseModel):
    """Artifact produced by the fridge analysis agent."""
    ingredients: list[str] = Field(description="Every food item visible in the fridge")
    recipes: list[SuggestedRecipe] = Field(description="Suggested recipes using those ingredients")


class FridgeImage(BaseModel):
    """Input for the fridge analysis agent."""
    data_uri: str
    dietary_preferences: list[str] = Field(default_factory=list)
    allergies: list[str] = Field(default_factory=list)
