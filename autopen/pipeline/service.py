"""
Workflow service: the facade used by the CLI and other callers
"""

from __future__ import annotations

import asyncio
from typing import Any, AsyncIterator, Callable

from rich.console import Console

from ..errors import WorkflowError
from ..models import (
    AutoRunResult,
    Chapter,
    EbookContent,
    EbookVersion,
    ProgressEvent,
    StepResult,
    WorkflowState,
    WorkflowStep,
)
from ..store import ProgressStore
from .catalog import STEP_CATALOG, StepCatalog
from .executor import AutoRunDriver, CancellationToken, ManualDriver
from .session import WorkflowSession
from .steps import Generator, Renderer, build_executors


console = Console()


class AutoRunHandle:
    """
    A running auto-run

    ``stream()`` yields progress events until the run finishes;
    ``wait()`` returns the terminal ``AutoRunResult``.
    """

    def __init__(self, content_id: str, token: CancellationToken):
        self.content_id = content_id
        self.token = token
        self.events: asyncio.Queue[ProgressEvent | None] = asyncio.Queue()
        self.task: asyncio.Task[AutoRunResult] | None = None

    @property
    def done(self) -> bool:
        return self.task is not None and self.task.done()

    def cancel(self) -> None:
        """Request a stop at the next step boundary"""
        self.token.cancel()

    async def wait(self) -> AutoRunResult:
        return await self.task

    async def stream(self) -> AsyncIterator[ProgressEvent]:
        while True:
            event = await self.events.get()
            if event is None:
                return
            yield event


class WorkflowService:
    """
    Entry point for workflow instances

    Keeps one session per content id for the life of the service, so the
    in-memory state stays authoritative even when a save fails.
    """

    def __init__(
        self,
        store: ProgressStore,
        generation: Generator,
        renderer: Renderer,
        *,
        catalog: StepCatalog = STEP_CATALOG,
        pacing_delay: float = 1.0,
        render_options: Any = None,
    ):
        self.store = store
        self.generation = generation
        self.renderer = renderer
        self.catalog = catalog
        self.pacing_delay = pacing_delay
        self.render_options = render_options
        self.executors = build_executors(generation, renderer, render_options)
        self._sessions: dict[str, WorkflowSession] = {}
        self._runs: dict[str, AutoRunHandle] = {}

    def open(self, content_id: str) -> WorkflowSession:
        session = self._sessions.get(content_id)
        if session is None:
            session = WorkflowSession.open(content_id, self.store, self.catalog)
            self._sessions[content_id] = session
        return session

    def _manual(self, content_id: str) -> ManualDriver:
        return ManualDriver(self.open(content_id), self.executors)

    async def submit_input(self, content_id: str, raw_data: str) -> StepResult:
        """Store the seed text (the input-handling step)"""
        return await self._manual(content_id).run_step(WorkflowStep.INPUT_HANDLING, raw_data=raw_data)

    async def run_next_step(self, content_id: str, **params) -> StepResult:
        return await self._manual(content_id).run_next_step(**params)

    async def run_step(self, content_id: str, step: WorkflowStep | str, **params) -> StepResult:
        return await self._manual(content_id).run_step(step, **params)

    def start_auto_run(
        self,
        content_id: str,
        on_progress: Callable[[ProgressEvent], None] | None = None,
    ) -> AutoRunHandle:
        """
        Start running every remaining step in the background

        Must be called from a running event loop.

        Raises:
            WorkflowBusyError: A run or step is already in flight for this instance
        """
        session = self.open(content_id)
        session.acquire()
        handle = AutoRunHandle(content_id, CancellationToken())
        driver = AutoRunDriver(ManualDriver(session, self.executors), self.pacing_delay)

        def relay(event: ProgressEvent) -> None:
            handle.events.put_nowait(event)
            if on_progress is not None:
                on_progress(event)

        async def runner() -> AutoRunResult:
            try:
                return await driver.run_claimed(relay, handle.token)
            finally:
                session.release()
                if self._runs.get(content_id) is handle:
                    del self._runs[content_id]
                handle.events.put_nowait(None)

        try:
            handle.task = asyncio.get_running_loop().create_task(runner())
        except RuntimeError:
            session.release()
            raise
        self._runs[content_id] = handle
        return handle

    def cancel_auto_run(self, content_id: str) -> bool:
        """Request cancellation; False when nothing is running"""
        handle = self._runs.get(content_id)
        if handle is None or handle.done:
            return False
        handle.cancel()
        return True

    def get_state(self, content_id: str) -> tuple[WorkflowState, EbookContent]:
        """Snapshot copies of the current state and content"""
        session = self.open(content_id)
        return session.state.model_copy(deep=True), session.content.model_copy(deep=True)

    def save_chapter(self, content_id: str, chapter: Chapter) -> Chapter:
        """
        Add or replace a chapter between steps

        ``chapter.index`` may replace an existing position or append at the end.

        Raises:
            PersistenceError: The chapter could not be stored
        """
        session = self.open(content_id)
        with session.claim():
            if chapter.index > len(session.content.chapters):
                raise WorkflowError(
                    f"chapter index {chapter.index} leaves a gap (have {len(session.content.chapters)})"
                )
            return session.save_chapter(chapter, strict=True)

    def delete_chapter(self, content_id: str, chapter_id: str) -> None:
        session = self.open(content_id)
        with session.claim():
            session.delete_chapter(chapter_id)

    async def export(self, content_id: str, options: Any = None) -> str:
        """Render the current content without touching workflow progress"""
        session = self.open(content_id)
        with session.claim():
            options = options or self.render_options
            number = session.next_version_number()
            artifact = await self.renderer.render(
                session.content, options, stem=f"{content_id}-v{number}"
            )
            meta = options.model_dump() if hasattr(options, "model_dump") else {}
            meta["source"] = "export"
            session.save_version(artifact, meta)
        return artifact

    def list_versions(self, content_id: str) -> list[EbookVersion]:
        return self.store.list_versions(content_id)
