"""
Workflow session: the single owner of one instance's state and content
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, Iterator

from rich.console import Console

from ..errors import PersistenceError, WorkflowBusyError, WorkflowError
from ..models import Chapter, EbookContent, EbookVersion, WorkflowState, WorkflowStep
from ..store import ProgressStore
from .catalog import STEP_CATALOG, StepCatalog


console = Console()

ProgressListener = Callable[[WorkflowStep, float], None]


class WorkflowSession:
    """
    Holds the in-memory state/content of one workflow instance

    Every state mutation is followed by ``store.save_state``. A failed save
    does not undo the mutation; it is printed and collected in ``warnings``.
    """

    def __init__(
        self,
        content_id: str,
        store: ProgressStore,
        state: WorkflowState | None = None,
        content: EbookContent | None = None,
        catalog: StepCatalog = STEP_CATALOG,
    ):
        self.content_id = content_id
        self.store = store
        self.state = state or WorkflowState()
        self.content = content or EbookContent()
        self.catalog = catalog
        self.warnings: list[str] = []
        self._listeners: list[ProgressListener] = []
        self.busy = False

    @classmethod
    def open(
        cls,
        content_id: str,
        store: ProgressStore,
        catalog: StepCatalog = STEP_CATALOG,
    ) -> WorkflowSession:
        """Load (or create empty) state and content for ``content_id``"""
        state, content = store.load_state(content_id)
        return cls(content_id, store, state, content, catalog)

    # ---- run ownership ----

    def acquire(self) -> None:
        if self.busy:
            raise WorkflowBusyError(
                f"a step is already running for {self.content_id}", step=self.state.current_step
            )
        self.busy = True

    def release(self) -> None:
        self.busy = False

    @contextmanager
    def claim(self) -> Iterator[WorkflowSession]:
        """Hold the instance for one run; a concurrent claim raises ``WorkflowBusyError``"""
        self.acquire()
        try:
            yield self
        finally:
            self.release()

    # ---- listeners ----

    def add_listener(self, listener: ProgressListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: ProgressListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, step: WorkflowStep, percent: float) -> None:
        for listener in list(self._listeners):
            listener(step, percent)

    def warn(self, message: str) -> None:
        console.print(f"[yellow]⚠ {message}[/yellow]")
        self.warnings.append(message)

    def drain_warnings(self) -> list[str]:
        warnings, self.warnings = self.warnings, []
        return warnings

    # ---- state mutations ----

    def _persist(self) -> bool:
        try:
            self.store.save_state(self.content_id, self.state, self.content)
        except PersistenceError as e:
            self.warn(f"progress not saved: {e}")
            return False
        return True

    def record_start(self, step: WorkflowStep) -> bool:
        self.state.record_start(step)
        return self._persist()

    def record_progress(self, step: WorkflowStep, percent: float) -> bool:
        value = self.state.record_progress(step, percent)
        saved = self._persist()
        self._notify(step, value)
        return saved

    def record_completion(self, step: WorkflowStep) -> bool:
        self.state.record_completion(step, self.catalog)
        return self._persist()

    # ---- content ----

    def commit_content(self, **fields) -> EbookContent:
        """
        Merge ``fields`` into content and persist

        Saves a copy first; on failure the in-memory content is untouched.

        Raises:
            PersistenceError: The store rejected the save
        """
        unknown = set(fields) - set(EbookContent.model_fields)
        if unknown:
            raise WorkflowError(f"unknown content fields: {', '.join(sorted(unknown))}")
        updated = self.content.model_copy(update=fields, deep=True)
        self.store.save_state(self.content_id, self.state, updated)
        self.content = updated
        return updated

    def save_chapter(self, chapter: Chapter, *, backup: bool = True, strict: bool = False) -> Chapter:
        """
        Persist one chapter and place it in content (best effort)

        A chapter store failure is a warning; the chapter still lands in
        the in-memory content and in the whole-content backup save. With
        ``strict=True`` the failure is raised and content is not touched.
        """
        if strict:
            stored = self.store.save_chapter(self.content_id, chapter)
        else:
            stored = self._save_row(chapter)

        chapters = [c for c in self.content.chapters if c.index != stored.index]
        chapters.append(stored)
        self.content.chapters = sorted(chapters, key=lambda c: c.index)
        if backup:
            self._persist()
        return stored

    def delete_chapter(self, chapter_id: str) -> None:
        """
        Remove a chapter and re-index the rest densely

        Raises:
            PersistenceError: Unknown chapter or store failure
        """
        target = self.content.find_chapter(chapter_id)
        if target is None:
            raise PersistenceError(f"chapter {chapter_id} not found for {self.content_id}")
        self.store.delete_chapter(self.content_id, chapter_id)

        remaining = [c for c in self.content.ordered_chapters() if c.id != chapter_id]
        reindexed = []
        for i, chapter in enumerate(remaining):
            if chapter.index != i:
                chapter = chapter.model_copy(update={"index": i})
                if chapter.id:
                    chapter = self._save_row(chapter)
            reindexed.append(chapter)
        self.content.chapters = reindexed
        self._persist()

    def drop_chapter(self, chapter: Chapter) -> None:
        """Forget a stale chapter (store row included, best effort)"""
        if chapter.id:
            try:
                self.store.delete_chapter(self.content_id, chapter.id)
            except PersistenceError as e:
                self.warn(f"stale chapter {chapter.index} not deleted: {e}")
        self.content.chapters = [c for c in self.content.chapters if c is not chapter]

    def _save_row(self, chapter: Chapter) -> Chapter:
        """
        Save a chapter row; on failure the chapter lives on in the content blob

        An older row for the same chapter would shadow the blob copy on the
        next load, so it is deleted and the chapter loses its id.
        """
        try:
            return self.store.save_chapter(self.content_id, chapter)
        except PersistenceError as e:
            self.warn(f"chapter {chapter.index} ({chapter.title}) not saved: {e}")
        if chapter.id:
            try:
                self.store.delete_chapter(self.content_id, chapter.id)
            except PersistenceError as e:
                self.warn(f"stale row for chapter {chapter.index} not deleted: {e}")
            chapter = chapter.model_copy(update={"id": None})
        return chapter

    def resave_chapters(self) -> None:
        """Re-save chapters that already have a store row (best effort)"""
        self.content.chapters = [
            self._save_row(c) if c.id else c for c in self.content.ordered_chapters()
        ]

    # ---- versions ----

    def next_version_number(self) -> int:
        try:
            versions = self.store.list_versions(self.content_id)
        except PersistenceError as e:
            self.warn(f"versions not readable: {e}")
            return 1
        return versions[0].version_number + 1 if versions else 1

    def save_version(self, artifact: str, metadata: dict | None = None) -> EbookVersion | None:
        """Record a rendered artifact; failures are warnings"""
        version = EbookVersion(
            version_number=self.next_version_number(),
            artifact=artifact,
            metadata=metadata or {},
        )
        try:
            return self.store.save_version(self.content_id, version)
        except PersistenceError as e:
            self.warn(f"version not recorded: {e}")
            return None

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}: {self.content_id} @ {self.state.current_step}>"
