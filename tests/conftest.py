"""
Shared fixtures: scripted generation/render fakes and seeded stores
"""

from __future__ import annotations

from typing import Any, Callable

import pytest

from autopen.errors import PersistenceError
from autopen.models import (
    Chapter,
    EbookContent,
    GenerationKind,
    TableOfContents,
    TocEntry,
    WorkflowState,
    WorkflowStep,
)
from autopen.pipeline import STEP_CATALOG, WorkflowService
from autopen.store import MemoryProgressStore


CHAPTER_TITLES = ["Getting Started", "Going Deeper", "Wrapping Up"]


class FakeGeneration:
    """Deterministic generation service that records every call"""

    def __init__(self, chapter_titles: list[str] | None = None):
        self.chapter_titles = chapter_titles or list(CHAPTER_TITLES)
        self.calls: list[tuple[GenerationKind, dict[str, Any]]] = []
        self.fail_on: dict[GenerationKind, Exception] = {}
        self.fail_on_chapter: dict[int, Exception] = {}
        self.on_call: Callable[[GenerationKind, dict[str, Any]], None] | None = None

    @property
    def kinds(self) -> list[GenerationKind]:
        return [kind for kind, _ in self.calls]

    async def generate(self, kind: GenerationKind, context: dict[str, Any]) -> Any:
        self.calls.append((kind, context))
        if self.on_call is not None:
            self.on_call(kind, context)
        if kind in self.fail_on:
            raise self.fail_on[kind]
        if kind is GenerationKind.CHAPTER and context["chapter"].index in self.fail_on_chapter:
            raise self.fail_on_chapter[context["chapter"].index]

        if kind is GenerationKind.TITLE:
            return "The Test Book"
        if kind is GenerationKind.TOC:
            return TableOfContents(chapters=[
                TocEntry(title=title, data_points=[f"{title} point"]) for title in self.chapter_titles
            ])
        if kind is GenerationKind.CHAPTER:
            return f"Content of {context['chapter'].title}"
        if kind is GenerationKind.INTRODUCTION:
            return "An introduction."
        if kind is GenerationKind.CONCLUSION:
            return "A conclusion."
        if kind is GenerationKind.REVIEW:
            return "Tighten the prose."
        if kind is GenerationKind.CHAPTER_REVISION:
            return f"Revised {context['chapter'].title}"
        if kind is GenerationKind.META_REVISION:
            return {
                "title": "The Revised Book",
                "introduction": "A better introduction.",
                "conclusion": "A better conclusion.",
            }
        raise AssertionError(f"unexpected kind {kind}")


class FakeRenderer:
    """Render service that only records what it was asked to render"""

    def __init__(self):
        self.calls: list[tuple[EbookContent, Any, str | None]] = []
        self.error: Exception | None = None
        self.on_render: Callable[[], None] | None = None

    async def render(self, content: EbookContent, options: Any = None, *, stem: str | None = None) -> str:
        self.calls.append((content, options, stem))
        if self.on_render is not None:
            self.on_render()
        if self.error is not None:
            raise self.error
        return f"memory://{stem or 'ebook'}.pdf"


class FlakyStore(MemoryProgressStore):
    """Memory store whose writes can be switched to fail"""

    def __init__(self):
        super().__init__()
        self.fail_state = False
        self.fail_chapter = False
        self.fail_chapter_indexes: set[int] = set()
        self.fail_version = False

    def save_state(self, content_id, state, content):
        if self.fail_state:
            raise PersistenceError("state table unavailable")
        super().save_state(content_id, state, content)

    def save_chapter(self, content_id, chapter):
        if self.fail_chapter or chapter.index in self.fail_chapter_indexes:
            raise PersistenceError("chapter table unavailable")
        return super().save_chapter(content_id, chapter)

    def save_version(self, content_id, version):
        if self.fail_version:
            raise PersistenceError("versions table unavailable")
        return super().save_version(content_id, version)


def make_content(titles: list[str] | None = None, generated: bool = True) -> EbookContent:
    """Content as it looks after the conclusion step"""
    titles = titles or list(CHAPTER_TITLES)
    return EbookContent(
        title="The Test Book",
        raw_data="notes about testing",
        table_of_contents=TableOfContents(chapters=[TocEntry(title=t, data_points=[f"{t} point"]) for t in titles]),
        introduction="An introduction.",
        conclusion="A conclusion.",
        chapters=[
            Chapter(title=t, index=i, content=f"Content of {t}" if generated else None)
            for i, t in enumerate(titles)
        ],
    )


def seed(store: MemoryProgressStore, content_id: str, content: EbookContent, completed: list[WorkflowStep]) -> None:
    """Store content and progress the way an interrupted run would have left them"""
    state = WorkflowState(completed_steps=completed)
    state.current_step = STEP_CATALOG.next_incomplete(completed)
    chapters = [store.save_chapter(content_id, c) for c in content.chapters]
    store.save_state(content_id, state, content.model_copy(update={"chapters": chapters}))


@pytest.fixture
def store():
    return FlakyStore()


@pytest.fixture
def generation():
    return FakeGeneration()


@pytest.fixture
def renderer():
    return FakeRenderer()


@pytest.fixture
def service(store, generation, renderer):
    return WorkflowService(store, generation, renderer, pacing_delay=0)
