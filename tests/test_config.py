"""
Configuration loading and service wiring
"""

import pytest

from autopen.config import (
    create_llm_provider,
    create_store,
    create_workflow_service,
    default_render_options,
    load_config,
    load_model_settings,
)
from autopen.errors import WorkflowError
from autopen.pipeline import WorkflowService
from autopen.store import FileProgressStore


ENV_VARS = [
    "OPENROUTER_API_KEY",
    "OPENROUTER_BASE_URL",
    "AUTOPEN_DEFAULT_MODEL",
    "AUTOPEN_PROVIDER",
    "AUTOPEN_MODELS_FILE",
    "AUTOPEN_STORE_DIR",
    "AUTOPEN_OUTPUT_DIR",
    "AUTOPEN_PACING_DELAY",
    "AUTOPEN_CHAPTER_TABLE",
    "AUTOPEN_REQUEST_TIMEOUT",
    "AUTOPEN_MAX_RETRIES",
    "AUTOPEN_PAPER_SIZE",
]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    # set first so whatever load_dotenv writes is undone after the test
    for name in ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    return tmp_path / "missing.env"


def test_defaults(clean_env):
    config = load_config(clean_env)
    assert config.llm.provider_type == "openrouter"
    assert config.llm.base_url == "https://openrouter.ai/api/v1"
    assert config.store_dir == ".autopen"
    assert config.pacing_delay == 1.0
    assert config.chapter_table is True
    assert config.max_retries == 3
    assert config.models.title.temperature == 0.8
    assert config.models.chapters.timeout == 30.0


def test_environment_overrides(clean_env, monkeypatch, tmp_path):
    monkeypatch.setenv("OPENROUTER_API_KEY", "sk-live")
    monkeypatch.setenv("AUTOPEN_DEFAULT_MODEL", "vendor/big")
    monkeypatch.setenv("AUTOPEN_STORE_DIR", str(tmp_path / "store"))
    monkeypatch.setenv("AUTOPEN_PACING_DELAY", "0")
    monkeypatch.setenv("AUTOPEN_CHAPTER_TABLE", "no")
    monkeypatch.setenv("AUTOPEN_REQUEST_TIMEOUT", "90")
    monkeypatch.setenv("AUTOPEN_PAPER_SIZE", "letter")

    config = load_config(clean_env)

    assert config.llm.api_key == "sk-live"
    assert config.llm.model == "vendor/big"
    assert config.pacing_delay == 0
    assert config.chapter_table is False
    assert config.models.review.timeout == 90
    assert default_render_options(config).paper_size == "letter"

    store = create_store(config)
    assert isinstance(store, FileProgressStore)
    assert store.chapter_table is False


def test_env_file_is_read(clean_env, tmp_path):
    env_file = tmp_path / "app.env"
    env_file.write_text("AUTOPEN_MAX_RETRIES=5\nAUTOPEN_PROVIDER=deepseek\n")
    config = load_config(env_file)
    assert config.max_retries == 5
    assert create_llm_provider(config).name == "deepseek"


def test_models_file(tmp_path):
    path = tmp_path / "models.yaml"
    path.write_text(
        "default_model: vendor/cheap\n"
        "chapters:\n"
        "  model: vendor/writer\n"
        "  max_tokens: 6000\n"
        "review:\n"
        "  temperature: 0.3\n"
    )

    settings = load_model_settings(path, request_timeout=45)

    assert settings.chapters.model == "vendor/writer"
    assert settings.chapters.max_tokens == 6000
    assert settings.title.model == "vendor/cheap"
    assert settings.title.max_tokens == 50
    assert settings.review.temperature == 0.3
    assert settings.introduction.timeout == 45


def test_models_file_via_environment(clean_env, monkeypatch, tmp_path):
    path = tmp_path / "models.yaml"
    path.write_text("toc:\n  max_tokens: 1234\n")
    monkeypatch.setenv("AUTOPEN_MODELS_FILE", str(path))
    assert load_config(clean_env).models.toc.max_tokens == 1234


@pytest.mark.parametrize("text", ["epilogue:\n  max_tokens: 10\n", "- just\n- a list\n", "title:\n  max_tokens: lots\n"])
def test_bad_models_file(tmp_path, text):
    path = tmp_path / "models.yaml"
    path.write_text(text)
    with pytest.raises(WorkflowError):
        load_model_settings(path)


def test_create_workflow_service(clean_env, tmp_path):
    config = load_config(clean_env).model_copy(update={"store_dir": str(tmp_path / "store")})
    service = create_workflow_service(config)
    assert isinstance(service, WorkflowService)
    assert service.render_options.output_dir == "output"
    assert service.generation.settings is config.models
