"""
Workflow pipeline module
"""

from .catalog import STEP_CATALOG, StepCatalog, StepSpec
from .executor import AutoRunDriver, CancellationToken, ManualDriver
from .service import AutoRunHandle, WorkflowService
from .session import WorkflowSession
from .steps import (
    AIReviewStep,
    AssembleDraftStep,
    GenerateChaptersStep,
    GenerateConclusionStep,
    GenerateIntroductionStep,
    GeneratePDFStep,
    GenerateTitleStep,
    GenerateTOCStep,
    InputHandlingStep,
    StepExecutor,
    build_executors,
)

__all__ = [
    "STEP_CATALOG",
    "StepCatalog",
    "StepSpec",
    "AutoRunDriver",
    "CancellationToken",
    "ManualDriver",
    "AutoRunHandle",
    "WorkflowService",
    "WorkflowSession",
    "StepExecutor",
    "InputHandlingStep",
    "GenerateTitleStep",
    "GenerateTOCStep",
    "GenerateChaptersStep",
    "GenerateIntroductionStep",
    "GenerateConclusionStep",
    "AssembleDraftStep",
    "AIReviewStep",
    "GeneratePDFStep",
    "build_executors",
]
