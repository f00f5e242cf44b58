"""
LLM module
"""

from .base import LLMProvider, LLMResponse
from .generation import GenerationService, clean_title, extract_json
from .providers import (
    DeepSeekProvider,
    OpenAICompatibleProvider,
    OpenRouterProvider,
    create_provider,
)

__all__ = [
    "LLMProvider",
    "LLMResponse",
    "GenerationService",
    "clean_title",
    "extract_json",
    "OpenAICompatibleProvider",
    "OpenRouterProvider",
    "DeepSeekProvider",
    "create_provider",
]
