"""
Configuration module
"""

from .settings import (
    LLMConfig,
    AppConfig,
    load_config,
    load_model_settings,
    create_llm_provider,
    create_store,
    create_workflow_service,
    default_render_options,
)

__all__ = [
    "LLMConfig",
    "AppConfig",
    "load_config",
    "load_model_settings",
    "create_llm_provider",
    "create_store",
    "create_workflow_service",
    "default_render_options",
]
