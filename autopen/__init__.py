"""
AutoPen: AI eBook generation workflow
From raw notes to title, table of contents, chapters, review and a rendered eBook
"""

__version__ = "0.1.0"

from .models import (
    Chapter,
    EbookContent,
    EbookVersion,
    TableOfContents,
    TocEntry,
    WorkflowState,
    WorkflowStep,
    StepResult,
    AutoRunResult,
    AutoRunStatus,
    ProgressEvent,
    LLMOptions,
    ModelSettings,
)
from .errors import (
    WorkflowError,
    PreconditionError,
    GenerationError,
    PersistenceError,
    CancelledError,
    WorkflowBusyError,
    UnknownStepError,
)
from .llm import LLMProvider, LLMResponse, GenerationService, create_provider
from .store import ProgressStore, FileProgressStore, MemoryProgressStore
from .pipeline import STEP_CATALOG, WorkflowService, AutoRunHandle, CancellationToken
from .render import RenderOptions, RenderService
from .config import load_config, AppConfig, create_workflow_service

__all__ = [
    # version
    "__version__",
    # models
    "Chapter",
    "EbookContent",
    "EbookVersion",
    "TableOfContents",
    "TocEntry",
    "WorkflowState",
    "WorkflowStep",
    "StepResult",
    "AutoRunResult",
    "AutoRunStatus",
    "ProgressEvent",
    "LLMOptions",
    "ModelSettings",
    # errors
    "WorkflowError",
    "PreconditionError",
    "GenerationError",
    "PersistenceError",
    "CancelledError",
    "WorkflowBusyError",
    "UnknownStepError",
    # LLM
    "LLMProvider",
    "LLMResponse",
    "GenerationService",
    "create_provider",
    # storage
    "ProgressStore",
    "FileProgressStore",
    "MemoryProgressStore",
    # pipeline
    "STEP_CATALOG",
    "WorkflowService",
    "AutoRunHandle",
    "CancellationToken",
    # rendering
    "RenderOptions",
    "RenderService",
    # config
    "load_config",
    "AppConfig",
    "create_workflow_service",
]
