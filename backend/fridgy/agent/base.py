import logging
from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from pydantic import BaseModel

from fridgy.agent.llm_client import LLMClient
from fridgy.core.config import settings

logger = logging.getLogger(__name__)

InType = TypeVar("InType", bound=BaseModel | str)
OutType = TypeVar("OutType")


class BaseAgent(ABC, Generic[InType, OutType]):
    """
    Base class for the model-backed steps (photo analysis, recipe images).

    Subclasses implement `run`; callers that prefer a missing result over an
    exception use `run_or_none`.
    """

    def __init__(self, model_name: str | None = None):
        self.llm = LLMClient(model_name=model_name or settings.MODEL_DEFAULT)

    @abstractmethod
    async def run(self, input_data: InType) -> OutType:
        """Run the agent on the given input to produce the output artifact."""

    async def run_or_none(self, input_data: InType) -> OutType | None:
        try:
            return await self.run(input_data)
        except Exception as exc:
            logger.error("%s failed: %s", type(self).__name__, exc)
            return None

    def get_system_prompt(self, **kwargs) -> str:
        return ""
