"""
Workflow models: steps, persisted progress and run results
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

if TYPE_CHECKING:
    from ..pipeline.catalog import StepCatalog


class WorkflowStep(str, Enum):
    """eBook workflow steps, declared in execution order"""
    INPUT_HANDLING = "input_handling"
    GENERATE_TITLE = "generate_title"
    GENERATE_TOC = "generate_toc"
    GENERATE_CHAPTERS = "generate_chapters"
    GENERATE_INTRODUCTION = "generate_introduction"
    GENERATE_CONCLUSION = "generate_conclusion"
    ASSEMBLE_DRAFT = "assemble_draft"
    AI_REVIEW = "ai_review"
    GENERATE_PDF = "generate_pdf"


TOTAL_STEPS = len(WorkflowStep)


def clamp_percent(value: float) -> float:
    """Clamp a percentage into [0, 100]"""
    return max(0.0, min(100.0, float(value)))


class LLMOptions(BaseModel):
    """LLM call options"""
    model: str | None = Field(default=None, description="Model override for this call")
    max_tokens: int = Field(default=2000, description="Maximum completion tokens")
    temperature: float = Field(default=0.7, description="Sampling temperature")
    top_p: float = Field(default=0.95, description="Top-P sampling")
    timeout: float = Field(default=30.0, description="Request timeout in seconds")


class GenerationKind(str, Enum):
    """What a generation call produces"""
    TITLE = "title"
    TOC = "toc"
    CHAPTER = "chapter"
    INTRODUCTION = "introduction"
    CONCLUSION = "conclusion"
    REVIEW = "review"
    CHAPTER_REVISION = "chapter_revision"
    META_REVISION = "meta_revision"


class ModelSettings(BaseModel):
    """Per-kind model, temperature and token limits"""
    title: LLMOptions = Field(default_factory=lambda: LLMOptions(temperature=0.8, max_tokens=50))
    toc: LLMOptions = Field(default_factory=lambda: LLMOptions(temperature=0.7, max_tokens=2000))
    chapters: LLMOptions = Field(default_factory=lambda: LLMOptions(temperature=0.7, max_tokens=4000))
    introduction: LLMOptions = Field(default_factory=lambda: LLMOptions(temperature=0.7, max_tokens=1000))
    conclusion: LLMOptions = Field(default_factory=lambda: LLMOptions(temperature=0.7, max_tokens=1500))
    review: LLMOptions = Field(default_factory=lambda: LLMOptions(temperature=0.5, max_tokens=3000))
    revision: LLMOptions = Field(default_factory=lambda: LLMOptions(temperature=0.6, max_tokens=4000))

    def for_kind(self, kind: GenerationKind) -> LLMOptions:
        name = {
            GenerationKind.CHAPTER: "chapters",
            GenerationKind.CHAPTER_REVISION: "revision",
            GenerationKind.META_REVISION: "revision",
        }.get(kind, kind.value)
        return getattr(self, name)


class WorkflowState(BaseModel):
    """
    Persisted workflow progress

    Mutated only through ``record_start`` / ``record_progress`` /
    ``record_completion``; the owning session persists after each call.
    """
    model_config = ConfigDict(populate_by_name=True)

    current_step: WorkflowStep | None = Field(default=None, alias="currentStep")
    completed_steps: list[WorkflowStep] = Field(default_factory=list, alias="stepsCompleted")
    step_progress: dict[WorkflowStep, float] = Field(default_factory=dict, alias="stepProgress")

    @field_validator("current_step", mode="before")
    @classmethod
    def _known_current_step(cls, value: Any) -> Any:
        if value in (None, ""):
            return None
        try:
            return WorkflowStep(value)
        except ValueError:
            return None

    @field_validator("completed_steps", mode="before")
    @classmethod
    def _dedupe_completed(cls, value: Any) -> list[WorkflowStep]:
        if not isinstance(value, (list, tuple, set)):
            return []
        result: list[WorkflowStep] = []
        for item in value:
            try:
                step = WorkflowStep(item)
            except ValueError:
                continue
            if step not in result:
                result.append(step)
        return result

    @field_validator("step_progress", mode="before")
    @classmethod
    def _clamp_progress(cls, value: Any) -> dict[WorkflowStep, float]:
        if not isinstance(value, dict):
            return {}
        result: dict[WorkflowStep, float] = {}
        for key, pct in value.items():
            try:
                result[WorkflowStep(key)] = clamp_percent(pct)
            except (TypeError, ValueError):
                continue
        return result

    def is_completed(self, step: WorkflowStep) -> bool:
        return step in self.completed_steps

    def record_start(self, step: WorkflowStep) -> None:
        self.current_step = step

    def record_progress(self, step: WorkflowStep, percent: float) -> float:
        value = clamp_percent(percent)
        self.step_progress[step] = value
        return value

    def record_completion(self, step: WorkflowStep, catalog: StepCatalog) -> WorkflowStep | None:
        """Mark ``step`` done and advance ``current_step``; returns the new current step"""
        if step not in self.completed_steps:
            self.completed_steps.append(step)
        self.current_step = catalog.next_incomplete(self.completed_steps)
        return self.current_step

    def to_persisted(self) -> dict[str, Any]:
        """JSON-compatible persisted shape"""
        return {
            "currentStep": self.current_step.value if self.current_step else None,
            "totalSteps": TOTAL_STEPS,
            "stepsCompleted": [s.value for s in self.completed_steps],
            "stepProgress": {s.value: pct for s, pct in self.step_progress.items()},
        }

    @classmethod
    def from_persisted(cls, data: dict[str, Any] | None) -> WorkflowState:
        return cls.model_validate(data or {})


class StepStatus(str, Enum):
    """Outcome of a single manual step"""
    COMPLETED = "completed"
    NOTHING_TO_DO = "nothing_to_do"


class StepResult(BaseModel):
    """Result of executing one workflow step"""
    step: WorkflowStep | None = None
    status: StepStatus = StepStatus.COMPLETED
    next_step: WorkflowStep | None = None
    warnings: list[str] = Field(default_factory=list)


class AutoRunStatus(str, Enum):
    """Auto-run driver state machine"""
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (AutoRunStatus.COMPLETED, AutoRunStatus.CANCELLED, AutoRunStatus.FAILED)


class ProgressKind(str, Enum):
    STEP_STARTED = "step_started"
    STEP_PROGRESS = "step_progress"
    STEP_COMPLETED = "step_completed"
    FINISHED = "finished"


class ProgressEvent(BaseModel):
    """Progress notification sent to auto-run observers"""
    kind: ProgressKind
    step: WorkflowStep | None = None
    overall_percent: float = 0.0
    step_percent: float | None = None
    status: AutoRunStatus = AutoRunStatus.RUNNING


class AutoRunResult(BaseModel):
    """Terminal outcome of an auto-run"""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    status: AutoRunStatus
    executed_steps: list[WorkflowStep] = Field(default_factory=list)
    failed_step: WorkflowStep | None = None
    error: BaseException | None = None
    warnings: list[str] = Field(default_factory=list)

    def raise_for_status(self) -> None:
        """Re-raise the stored error for FAILED / CANCELLED runs"""
        if self.error is not None:
            raise self.error
