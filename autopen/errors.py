"""
Workflow error types
"""

from __future__ import annotations

from typing import Iterable

from .models import WorkflowStep


class WorkflowError(Exception):
    """Base class for all workflow errors"""

    def __init__(self, message: str, *, step: WorkflowStep | None = None):
        super().__init__(message)
        self.step = step


class PreconditionError(WorkflowError):
    """Data a step depends on has not been produced yet"""

    def __init__(self, step: WorkflowStep, missing: str | Iterable[str]):
        fields = [missing] if isinstance(missing, str) else list(missing)
        self.missing = fields
        super().__init__(f"{step.value}: missing required {', '.join(fields)}", step=step)


class GenerationError(WorkflowError):
    """Generation or render call failed; the step can be re-run"""


class PersistenceError(WorkflowError):
    """Saving to the progress store failed"""


class CancelledError(WorkflowError):
    """Auto-run was stopped cooperatively at a step boundary"""


class WorkflowBusyError(WorkflowError):
    """Another run is already in flight for this workflow instance"""


class UnknownStepError(WorkflowError):
    """Step name is not part of the catalog"""
