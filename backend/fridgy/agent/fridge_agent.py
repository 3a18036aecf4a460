from fridgy.agent.artifacts import FridgeAnalysis, FridgeImage
from fridgy.agent.base import BaseAgent
from fridgy.agent.prompts.fridge import (
    FRIDGE_SYSTEM_PROMPT,
    FRIDGE_USER_PROMPT,
    format_preferences_block,
)
from fridgy.agent.sanitize import sanitize_analysis
from fridgy.core.config import settings


class FridgeAnalysisAgent(BaseAgent[FridgeImage, FridgeAnalysis]):
    """
    Agent that turns a fridge photograph into an ingredient list and
    recipe suggestions.
    """

    def get_system_prompt(self, **kwargs) -> str:
        return FRIDGE_SYSTEM_PROMPT

    @staticmethod
    def build_user_prompt(input_data: FridgeImage) -> str:
        return FRIDGE_USER_PROMPT.format(
            recipe_count=settings.RECIPE_COUNT,
            preferences_block=format_preferences_block(
                input_data.dietary_preferences, input_data.allergies
            ),
        )

    async def run(self, input_data: FridgeImage) -> FridgeAnalysis:
        analysis = await self.llm.generate_structured(
            system_prompt=self.get_system_prompt(),
            user_prompt=self.build_user_prompt(input_data),
            response_schema=FridgeAnalysis,
            image_url=input_data.data_uri,
        )

        if not analysis.recipes:
            raise ValueError("FridgeAnalysisAgent did not return any recipes.")

        return sanitize_analysis(analysis)
