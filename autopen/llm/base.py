"""
LLM provider base class
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel, Field

from ..models import LLMOptions


class LLMResponse(BaseModel):
    """LLM response"""
    content: str = Field(..., description="Generated text")
    model: str = Field(..., description="Model that produced the text")
    usage: dict[str, int] = Field(default_factory=dict, description="Token usage")


class LLMProvider(ABC):
    """LLM provider base class"""

    def __init__(self, api_key: str, base_url: str, model: str):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name"""
        pass

    @abstractmethod
    async def invoke(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        options: LLMOptions | None = None,
    ) -> LLMResponse:
        """
        Generate a completion

        Args:
            prompt: User prompt
            system_prompt: System prompt
            options: Call options; ``options.model`` overrides the provider model

        Returns:
            LLM response
        """
        pass

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}: {self.name} ({self.model})>"
