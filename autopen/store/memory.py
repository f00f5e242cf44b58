"""
In-memory progress store (tests and throwaway runs)
"""

from __future__ import annotations

import uuid

from ..models import Chapter, EbookContent, EbookVersion, WorkflowState
from ..errors import PersistenceError
from .base import ProgressStore, merge_chapter_rows


class MemoryProgressStore(ProgressStore):
    """
    Keeps serialized snapshots in dictionaries

    Snapshots are stored in persisted form, so what comes back from
    ``load_state`` is exactly what a real store would return.
    """

    def __init__(self) -> None:
        self.progress: dict[str, dict] = {}
        self.contents: dict[str, dict] = {}
        self.chapter_rows: dict[str, dict[str, dict]] = {}
        self.versions: dict[str, list[EbookVersion]] = {}
        self.save_count = 0

    def load_state(self, content_id: str) -> tuple[WorkflowState, EbookContent]:
        state = WorkflowState.from_persisted(self.progress.get(content_id))
        content = EbookContent.from_persisted(self.contents.get(content_id))
        rows = [Chapter.model_validate(r) for r in self.chapter_rows.get(content_id, {}).values()]
        content.chapters = merge_chapter_rows(content.chapters, rows)
        return state, content

    def save_state(self, content_id: str, state: WorkflowState, content: EbookContent) -> None:
        self.progress[content_id] = state.to_persisted()
        self.contents[content_id] = content.to_persisted()
        self.save_count += 1

    def save_chapter(self, content_id: str, chapter: Chapter) -> Chapter:
        stored = chapter.model_copy(update={"id": chapter.id or uuid.uuid4().hex})
        self.chapter_rows.setdefault(content_id, {})[stored.id] = stored.model_dump(mode="json", by_alias=True)
        return stored

    def delete_chapter(self, content_id: str, chapter_id: str) -> None:
        rows = self.chapter_rows.get(content_id, {})
        if chapter_id not in rows:
            raise PersistenceError(f"chapter {chapter_id} not found for {content_id}")
        del rows[chapter_id]

    def save_version(self, content_id: str, version: EbookVersion) -> EbookVersion:
        self.versions.setdefault(content_id, []).append(version)
        return version

    def list_versions(self, content_id: str) -> list[EbookVersion]:
        return sorted(self.versions.get(content_id, []), key=lambda v: v.version_number, reverse=True)

    def delete(self, content_id: str) -> None:
        for table in (self.progress, self.contents, self.chapter_rows, self.versions):
            table.pop(content_id, None)
