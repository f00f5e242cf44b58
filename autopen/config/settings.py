"""
Configuration
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

import httpx
import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from ..errors import WorkflowError
from ..llm import GenerationService, LLMProvider, create_provider
from ..models import ModelSettings
from ..pipeline import WorkflowService
from ..render import RenderOptions, RenderService
from ..store import FileProgressStore, ProgressStore


TRUE_VALUES = {"1", "true", "yes", "on"}


class LLMConfig(BaseModel):
    """LLM configuration"""
    api_key: str
    base_url: str
    model: str
    provider_type: str = "openrouter"


class AppConfig(BaseModel):
    """Application configuration"""
    llm: LLMConfig = Field(..., description="Generation backend")
    models: ModelSettings = Field(default_factory=ModelSettings, description="Per-kind model settings")
    store_dir: str = Field(default=".autopen", description="Progress store root")
    output_dir: str = Field(default="output", description="Rendered files directory")
    pacing_delay: float = Field(default=1.0, ge=0, description="Seconds between auto-run steps")
    chapter_table: bool = Field(default=True, description="Store chapters as individual rows")
    request_timeout: float = Field(default=30.0, gt=0, description="HTTP request timeout in seconds")
    max_retries: int = Field(default=3, ge=0, description="Retries for HTTP 429/5xx")
    paper_size: Literal["a4", "letter"] = Field(default="a4")


def load_model_settings(file_path: str | Path, request_timeout: float = 30.0) -> ModelSettings:
    """
    Load per-kind model overrides from YAML

    Example::

        default_model: openai/gpt-4o-mini
        chapters:
          model: anthropic/claude-3-sonnet
          max_tokens: 6000

    Unlisted kinds keep their defaults.
    """
    with open(file_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise WorkflowError(f"{file_path}: expected a mapping of generation kinds")

    default_model = data.pop("default_model", None)
    settings = ModelSettings()
    merged: dict[str, Any] = {}
    for name in ModelSettings.model_fields:
        options = getattr(settings, name).model_dump()
        options["timeout"] = request_timeout
        if default_model:
            options["model"] = default_model
        options.update(data.get(name) or {})
        merged[name] = options

    unknown = set(data) - set(ModelSettings.model_fields)
    if unknown:
        raise WorkflowError(f"{file_path}: unknown generation kinds {', '.join(sorted(unknown))}")

    try:
        return ModelSettings.model_validate(merged)
    except ValidationError as e:
        raise WorkflowError(f"{file_path}: invalid model settings: {e}") from e


def load_config(env_file: str | Path | None = None) -> AppConfig:
    """
    Load configuration from environment variables

    Args:
        env_file: .env file path, defaults to .env in the current directory

    Returns:
        AppConfig instance
    """
    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()

    llm = LLMConfig(
        api_key=os.getenv("OPENROUTER_API_KEY", ""),
        base_url=os.getenv("OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1"),
        model=os.getenv("AUTOPEN_DEFAULT_MODEL", "deepseek/deepseek-r1-zero:free"),
        provider_type=os.getenv("AUTOPEN_PROVIDER", "openrouter"),
    )

    request_timeout = float(os.getenv("AUTOPEN_REQUEST_TIMEOUT", "30"))
    models_file = os.getenv("AUTOPEN_MODELS_FILE")
    if models_file:
        models = load_model_settings(models_file, request_timeout)
    else:
        models = ModelSettings()
        for name in ModelSettings.model_fields:
            getattr(models, name).timeout = request_timeout

    return AppConfig(
        llm=llm,
        models=models,
        store_dir=os.getenv("AUTOPEN_STORE_DIR", ".autopen"),
        output_dir=os.getenv("AUTOPEN_OUTPUT_DIR", "output"),
        pacing_delay=float(os.getenv("AUTOPEN_PACING_DELAY", "1.0")),
        chapter_table=os.getenv("AUTOPEN_CHAPTER_TABLE", "true").strip().lower() in TRUE_VALUES,
        request_timeout=request_timeout,
        max_retries=int(os.getenv("AUTOPEN_MAX_RETRIES", "3")),
        paper_size=os.getenv("AUTOPEN_PAPER_SIZE", "a4"),
    )


def create_llm_provider(config: AppConfig, transport: httpx.AsyncBaseTransport | None = None) -> LLMProvider:
    """Create the generation backend provider"""
    return create_provider(
        provider_type=config.llm.provider_type,
        api_key=config.llm.api_key,
        base_url=config.llm.base_url,
        model=config.llm.model,
        max_retries=config.max_retries,
        transport=transport,
    )


def create_store(config: AppConfig) -> ProgressStore:
    return FileProgressStore(config.store_dir, chapter_table=config.chapter_table)


def default_render_options(config: AppConfig) -> RenderOptions:
    return RenderOptions(output_dir=config.output_dir, paper_size=config.paper_size)


def create_workflow_service(
    config: AppConfig,
    *,
    store: ProgressStore | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> WorkflowService:
    """Wire store, generation and rendering into a WorkflowService"""
    generation = GenerationService(create_llm_provider(config, transport), config.models)
    return WorkflowService(
        store or create_store(config),
        generation,
        RenderService(),
        pacing_delay=config.pacing_delay,
        render_options=default_render_options(config),
    )
