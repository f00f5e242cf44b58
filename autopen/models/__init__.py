"""
Data models
"""

from .ebook import Chapter, EbookContent, EbookVersion, TableOfContents, TocEntry
from .workflow import (
    TOTAL_STEPS,
    AutoRunResult,
    AutoRunStatus,
    GenerationKind,
    LLMOptions,
    ModelSettings,
    ProgressEvent,
    ProgressKind,
    StepResult,
    StepStatus,
    WorkflowState,
    WorkflowStep,
    clamp_percent,
)

__all__ = [
    "Chapter",
    "EbookContent",
    "EbookVersion",
    "TableOfContents",
    "TocEntry",
    "TOTAL_STEPS",
    "AutoRunResult",
    "AutoRunStatus",
    "GenerationKind",
    "LLMOptions",
    "ModelSettings",
    "ProgressEvent",
    "ProgressKind",
    "StepResult",
    "StepStatus",
    "WorkflowState",
    "WorkflowStep",
    "clamp_percent",
]
