import logging
from urllib.parse import quote_plus

from fridgy.agent.base import BaseAgent
from fridgy.agent.prompts.fridge import RECIPE_IMAGE_PROMPT
from fridgy.core.config import settings

logger = logging.getLogger(__name__)


def placeholder_image_url(recipe_title: str) -> str:
    return f"/placeholder.svg?height=300&width=400&query=food+{quote_plus(recipe_title or '')}"


class RecipeImageAgent(BaseAgent[str, str | None]):
    """Generates a food photograph for a recipe title."""

    async def run(self, input_data: str) -> str | None:
        return await self.llm.generate_image(
            RECIPE_IMAGE_PROMPT.format(recipe_title=input_data)
        )


async def get_recipe_image(recipe_title: str) -> str:
    """Generated image URL for the recipe, or a placeholder when generation is unavailable."""
    if not settings.llm_configured:
        # AsyncOpenAI refuses to build without a key
        logger.warning("No LLM API key configured, using placeholder recipe image")
        return placeholder_image_url(recipe_title)
    generated = await RecipeImageAgent().run_or_none(recipe_title)
    return generated or placeholder_image_url(recipe_title)
