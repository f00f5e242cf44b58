"""
Step catalog: the fixed execution order and what each step needs
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from ..models import EbookContent, WorkflowStep
from ..errors import UnknownStepError


@dataclass(frozen=True)
class StepSpec:
    """Static description of one catalog step"""
    step: WorkflowStep
    label: str
    requires: tuple[str, ...] = field(default_factory=tuple)
    # input_handling is satisfied by the caller submitting seed data
    runnable: bool = True


def _is_present(content: EbookContent, name: str) -> bool:
    value = getattr(content, name)
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if hasattr(value, "chapters"):
        return len(value.chapters) > 0
    return len(value) > 0


class StepCatalog:
    """
    Immutable, totally ordered list of workflow steps

    - ``next_incomplete``: first runnable step not yet completed
    - ``precondition`` / ``missing_fields``: content checks before a step runs
    """

    def __init__(self, specs: Iterable[StepSpec]):
        self._specs: tuple[StepSpec, ...] = tuple(specs)
        self._by_step = {spec.step: spec for spec in self._specs}

    @property
    def steps(self) -> list[WorkflowStep]:
        return [spec.step for spec in self._specs]

    @property
    def runnable_steps(self) -> list[WorkflowStep]:
        return [spec.step for spec in self._specs if spec.runnable]

    def __len__(self) -> int:
        return len(self._specs)

    def __iter__(self):
        return iter(self._specs)

    def spec(self, step: WorkflowStep) -> StepSpec:
        try:
            return self._by_step[step]
        except KeyError:
            raise UnknownStepError(f"step not in catalog: {step}") from None

    def resolve(self, name: str | WorkflowStep) -> WorkflowStep:
        """Look up a step by enum value or name (case-insensitive)"""
        if isinstance(name, WorkflowStep):
            return name
        key = name.strip().lower().replace("-", "_")
        for step in self._by_step:
            if key in (step.value, step.name.lower()):
                return step
        raise UnknownStepError(f"unknown step: {name}")

    def position(self, step: WorkflowStep) -> int:
        return self.steps.index(self.spec(step).step)

    def next_incomplete(self, completed: Iterable[WorkflowStep]) -> WorkflowStep | None:
        done = set(completed)
        for step in self.runnable_steps:
            if step not in done:
                return step
        return None

    def remaining(self, completed: Iterable[WorkflowStep]) -> list[WorkflowStep]:
        """Runnable steps not yet completed, from the first incomplete one onwards"""
        done = set(completed)
        first = self.next_incomplete(done)
        if first is None:
            return []
        runnable = self.runnable_steps
        return [s for s in runnable[runnable.index(first):] if s not in done]

    def missing_fields(self, step: WorkflowStep, content: EbookContent) -> list[str]:
        return [name for name in self.spec(step).requires if not _is_present(content, name)]

    def precondition(self, step: WorkflowStep, content: EbookContent) -> bool:
        return not self.missing_fields(step, content)


STEP_CATALOG = StepCatalog([
    StepSpec(WorkflowStep.INPUT_HANDLING, "Input", runnable=False),
    StepSpec(WorkflowStep.GENERATE_TITLE, "Generating Title", ("raw_data",)),
    StepSpec(WorkflowStep.GENERATE_TOC, "Creating Table of Contents", ("title", "raw_data")),
    StepSpec(WorkflowStep.GENERATE_CHAPTERS, "Writing Chapters", ("table_of_contents",)),
    StepSpec(WorkflowStep.GENERATE_INTRODUCTION, "Crafting Introduction", ("title", "table_of_contents")),
    StepSpec(WorkflowStep.GENERATE_CONCLUSION, "Creating Conclusion", ("title", "table_of_contents")),
    StepSpec(WorkflowStep.ASSEMBLE_DRAFT, "Assembling Draft", ("title", "chapters")),
    StepSpec(WorkflowStep.AI_REVIEW, "AI Review & Revisions", ("title", "introduction", "conclusion", "chapters")),
    StepSpec(WorkflowStep.GENERATE_PDF, "Creating PDF", ("title", "chapters")),
])
