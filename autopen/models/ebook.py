"""
eBook content models: the draft accumulated by the generation workflow
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class TocEntry(BaseModel):
    """One table-of-contents entry"""
    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(..., description="Chapter title")
    data_points: list[str] = Field(default_factory=list, alias="dataPoints", description="Topics the chapter covers")


class TableOfContents(BaseModel):
    """Ordered table of contents"""
    chapters: list[TocEntry] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.chapters)


class Chapter(BaseModel):
    """A single chapter; ``content`` is None until it has been generated"""
    model_config = ConfigDict(populate_by_name=True)

    id: str | None = Field(default=None, description="Store id, assigned on first persistence")
    title: str = Field(..., description="Chapter title")
    content: str | None = Field(default=None, description="Chapter body text")
    index: int = Field(..., alias="chapterIndex", ge=0, description="Position within the eBook (0-based)")
    data_points: list[str] = Field(default_factory=list, alias="dataPoints")

    @property
    def is_generated(self) -> bool:
        return bool(self.content)


class EbookContent(BaseModel):
    """
    Accumulated eBook draft

    Grows step by step as the workflow runs; every field is optional until
    the step responsible for it has completed.
    """
    model_config = ConfigDict(populate_by_name=True)

    title: str | None = None
    table_of_contents: TableOfContents | None = Field(default=None, alias="tableOfContents")
    introduction: str | None = None
    conclusion: str | None = None
    chapters: list[Chapter] = Field(default_factory=list)
    raw_data: str | None = Field(default=None, alias="rawData")

    def ordered_chapters(self) -> list[Chapter]:
        """Chapters sorted by index"""
        return sorted(self.chapters, key=lambda c: c.index)

    def find_chapter(self, chapter_id: str) -> Chapter | None:
        for chapter in self.chapters:
            if chapter.id == chapter_id:
                return chapter
        return None

    def word_count(self) -> int:
        parts = [self.introduction or "", self.conclusion or ""]
        parts.extend(c.content or "" for c in self.chapters)
        return sum(len(p.split()) for p in parts)

    def to_persisted(self) -> dict[str, Any]:
        """JSON-compatible persisted shape (camelCase keys, empty fields omitted)"""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @classmethod
    def from_persisted(cls, data: dict[str, Any] | None) -> EbookContent:
        return cls.model_validate(data or {})


class EbookVersion(BaseModel):
    """A rendered artifact of the eBook"""
    model_config = ConfigDict(populate_by_name=True)

    version_number: int = Field(..., alias="versionNumber", ge=1)
    artifact: str = Field(..., description="Path or URL of the rendered file")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), alias="createdAt")
    metadata: dict[str, Any] = Field(default_factory=dict)
