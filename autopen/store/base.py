"""
Progress store interface
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..models import Chapter, EbookContent, EbookVersion, WorkflowState


def merge_chapter_rows(blob: list[Chapter], rows: list[Chapter]) -> list[Chapter]:
    """
    Chapters as loaded: a row replaces the blob chapter at its index

    Indexes without a row keep the blob copy, so a chapter whose row save
    failed is still restored from the whole-content backup.
    """
    by_index = {c.index: c for c in blob}
    for row in rows:
        by_index[row.index] = row
    return sorted(by_index.values(), key=lambda c: c.index)


class ProgressStore(ABC):
    """
    Persistence boundary for workflow instances

    Implementations raise ``PersistenceError`` on failure. Concurrent
    writers for the same content id are the caller's responsibility
    (last write wins).
    """

    @abstractmethod
    def load_state(self, content_id: str) -> tuple[WorkflowState, EbookContent]:
        """
        Load progress and content; a never-saved id yields an empty pair

        Args:
            content_id: Workflow instance id

        Returns:
            (WorkflowState, EbookContent)
        """

    @abstractmethod
    def save_state(self, content_id: str, state: WorkflowState, content: EbookContent) -> None:
        """Persist progress and the whole content blob"""

    @abstractmethod
    def save_chapter(self, content_id: str, chapter: Chapter) -> Chapter:
        """
        Persist one chapter row

        Returns:
            The chapter as stored; ``id`` is filled in on first save
        """

    @abstractmethod
    def delete_chapter(self, content_id: str, chapter_id: str) -> None:
        """Remove one chapter row"""

    @abstractmethod
    def save_version(self, content_id: str, version: EbookVersion) -> EbookVersion:
        """Record a rendered version"""

    @abstractmethod
    def list_versions(self, content_id: str) -> list[EbookVersion]:
        """Versions, newest first"""

    @abstractmethod
    def delete(self, content_id: str) -> None:
        """Drop everything stored for ``content_id``"""

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}>"
