"""
Workflow drivers: manual single-step execution and cancellable auto-run
"""

from __future__ import annotations

import asyncio
from typing import Callable

from rich.console import Console
from rich.panel import Panel

from ..errors import CancelledError, UnknownStepError, WorkflowBusyError
from ..models import (
    AutoRunResult,
    AutoRunStatus,
    ProgressEvent,
    ProgressKind,
    StepResult,
    StepStatus,
    WorkflowStep,
)
from .session import WorkflowSession
from .steps import StepExecutor


console = Console()

ProgressCallback = Callable[[ProgressEvent], None]


class CancellationToken:
    """Cooperative stop flag for one auto-run; checked between steps"""

    def __init__(self) -> None:
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def __repr__(self) -> str:
        return f"<CancellationToken cancelled={self._cancelled}>"


class ManualDriver:
    """
    Executes one step at a time

    ``execute_step`` is the primitive shared with ``AutoRunDriver``; it
    assumes the caller already holds the session.
    """

    def __init__(self, session: WorkflowSession, executors: dict[WorkflowStep, StepExecutor]):
        self.session = session
        self.executors = executors

    def executor_for(self, step: WorkflowStep) -> StepExecutor:
        try:
            return self.executors[step]
        except KeyError:
            raise UnknownStepError(f"no executor for step {step.value}", step=step) from None

    def next_step(self) -> WorkflowStep | None:
        """The step ``run_next_step`` would execute"""
        state = self.session.state
        catalog = self.session.catalog
        current = state.current_step
        if current is not None and catalog.spec(current).runnable:
            return current
        return catalog.next_incomplete(state.completed_steps)

    async def execute_step(self, step: WorkflowStep, **params) -> StepResult:
        return await self.executor_for(step).run(self.session, **params)

    async def run_next_step(self, **params) -> StepResult:
        """
        Execute the current step (or the first incomplete one)

        Returns:
            StepResult; ``NOTHING_TO_DO`` once every step is complete
        """
        with self.session.claim():
            step = self.next_step()
            if step is None:
                return StepResult(status=StepStatus.NOTHING_TO_DO)
            return await self.execute_step(step, **params)

    async def run_step(self, step: WorkflowStep | str, **params) -> StepResult:
        """Re-enter a named step (regeneration); completed steps stay completed"""
        step = self.session.catalog.resolve(step)
        with self.session.claim():
            return await self.execute_step(step, **params)


class AutoRunDriver:
    """
    Runs every remaining step in catalog order

    IDLE -> RUNNING -> COMPLETED | CANCELLED | FAILED. The remaining steps
    are fixed when the run starts. The token is only checked between steps;
    a step in flight always finishes.
    """

    def __init__(self, manual: ManualDriver, pacing_delay: float = 1.0):
        self.manual = manual
        self.pacing_delay = pacing_delay
        self.status = AutoRunStatus.IDLE
        self.token: CancellationToken | None = None

    @property
    def session(self) -> WorkflowSession:
        return self.manual.session

    def cancel(self) -> None:
        if self.token is not None:
            self.token.cancel()

    async def run(
        self,
        on_progress: ProgressCallback | None = None,
        token: CancellationToken | None = None,
    ) -> AutoRunResult:
        with self.session.claim():
            return await self.run_claimed(on_progress, token)

    async def run_claimed(
        self,
        on_progress: ProgressCallback | None = None,
        token: CancellationToken | None = None,
    ) -> AutoRunResult:
        """Auto-run body; the caller must already hold the session"""
        if self.status is AutoRunStatus.RUNNING:
            raise WorkflowBusyError(f"auto-run already in progress for {self.session.content_id}")

        self.status = AutoRunStatus.RUNNING
        self.token = token or CancellationToken()
        session = self.session
        remaining = session.catalog.remaining(session.state.completed_steps)
        total = len(remaining)
        result = AutoRunResult(status=AutoRunStatus.RUNNING)
        overall = 0.0
        current: list[WorkflowStep] = []

        def emit(kind: ProgressKind, step: WorkflowStep | None = None, step_percent: float | None = None) -> None:
            if on_progress is not None:
                on_progress(ProgressEvent(
                    kind=kind,
                    step=step,
                    overall_percent=overall,
                    step_percent=step_percent,
                    status=self.status,
                ))

        def on_step_progress(step: WorkflowStep, percent: float) -> None:
            if current and current[-1] is step:
                emit(ProgressKind.STEP_PROGRESS, step, percent)

        console.print(Panel(
            f"[bold]Auto-generating eBook[/bold]\n"
            f"Instance: {session.content_id}\n"
            f"Remaining steps: {total}",
            title="AutoPen",
            border_style="blue",
        ))

        session.add_listener(on_step_progress)
        try:
            for i, step in enumerate(remaining):
                if i > 0 and self.pacing_delay > 0:
                    await asyncio.sleep(self.pacing_delay)

                if self.token.cancelled:
                    self.status = AutoRunStatus.CANCELLED
                    result.error = CancelledError(f"auto-run cancelled before {step.value}", step=step)
                    console.print(f"[yellow]Auto-run cancelled before {step.value}[/yellow]")
                    break

                overall = float(round(i / total * 100))
                current.append(step)
                emit(ProgressKind.STEP_STARTED, step)
                console.print(f"\n[bold cyan]═══ Step {i + 1}/{total}: {session.catalog.spec(step).label} ═══[/bold cyan]")

                try:
                    step_result = await self.manual.execute_step(step)
                except Exception as e:
                    self.status = AutoRunStatus.FAILED
                    result.failed_step = step
                    result.error = e
                    result.warnings.extend(session.drain_warnings())
                    console.print(f"[bold red]✗ Auto-run stopped at {step.value}: {e}[/bold red]")
                    break

                result.executed_steps.append(step)
                result.warnings.extend(step_result.warnings)
                overall = float(round((i + 1) / total * 100))
                emit(ProgressKind.STEP_COMPLETED, step, 100.0)
            else:
                self.status = AutoRunStatus.COMPLETED
                overall = 100.0
        finally:
            session.remove_listener(on_step_progress)

        result.status = self.status
        emit(ProgressKind.FINISHED)

        if self.status is AutoRunStatus.COMPLETED:
            console.print(Panel(
                f"[bold green]eBook generation complete[/bold green]\n"
                f"Steps executed: {len(result.executed_steps)}",
                title="Done",
                border_style="green",
            ))
        return result
