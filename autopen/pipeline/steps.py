"""
Step executors: one class per workflow step
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Protocol

from rich.console import Console

from ..errors import GenerationError, PreconditionError
from ..models import (
    Chapter,
    EbookContent,
    GenerationKind,
    StepResult,
    StepStatus,
    WorkflowStep,
)
from .session import WorkflowSession


console = Console()


class Generator(Protocol):
    async def generate(self, kind: GenerationKind, context: dict[str, Any]) -> Any: ...


class Renderer(Protocol):
    async def render(self, content: EbookContent, options: Any = None, *, stem: str | None = None) -> str: ...


class StepExecutor(ABC):
    """
    Base class for step executors

    ``run`` is the common contract: precondition check, ``record_start``,
    step-specific ``execute``, ``record_completion``. ``execute`` commits
    its own content through the session; any error it raises leaves the
    step current and is propagated unchanged.
    """

    @property
    @abstractmethod
    def step(self) -> WorkflowStep:
        """Catalog step this executor implements"""
        pass

    @property
    def description(self) -> str:
        return self.step.value

    def check_precondition(self, session: WorkflowSession, **params) -> None:
        missing = session.catalog.missing_fields(self.step, session.content)
        if missing:
            raise PreconditionError(self.step, missing)

    @abstractmethod
    async def execute(self, session: WorkflowSession, **params) -> None:
        """Produce this step's data and commit it to the session"""
        pass

    async def run(self, session: WorkflowSession, **params) -> StepResult:
        self.check_precondition(session, **params)
        session.drain_warnings()

        session.record_start(self.step)
        console.print(f"[bold blue]▶ {self.description}...[/bold blue]")
        try:
            await self.execute(session, **params)
        except Exception as e:
            console.print(f"[bold red]✗ {self.description} failed: {e}[/bold red]")
            raise
        session.record_completion(self.step)
        console.print(f"[green]✓ {self.description} done[/green]")

        return StepResult(
            step=self.step,
            status=StepStatus.COMPLETED,
            next_step=session.state.current_step,
            warnings=session.drain_warnings(),
        )


class InputHandlingStep(StepExecutor):
    """Stores the submitted seed text"""

    step = WorkflowStep.INPUT_HANDLING
    description = "Saving input"

    def check_precondition(self, session: WorkflowSession, **params) -> None:
        raw_data = params.get("raw_data")
        if not isinstance(raw_data, str) or not raw_data.strip():
            raise PreconditionError(self.step, "raw_data")

    async def execute(self, session: WorkflowSession, *, raw_data: str, **params) -> None:
        session.commit_content(raw_data=raw_data.strip())


class GenerateTitleStep(StepExecutor):
    step = WorkflowStep.GENERATE_TITLE
    description = "Generating title"

    def __init__(self, generation: Generator):
        self.generation = generation

    async def execute(self, session: WorkflowSession, **params) -> None:
        title = await self.generation.generate(
            GenerationKind.TITLE, {"raw_data": session.content.raw_data}
        )
        session.commit_content(title=title)
        console.print(f"[dim]  Title: {title}[/dim]")


class GenerateTOCStep(StepExecutor):
    step = WorkflowStep.GENERATE_TOC
    description = "Creating table of contents"

    def __init__(self, generation: Generator):
        self.generation = generation

    async def execute(self, session: WorkflowSession, **params) -> None:
        toc = await self.generation.generate(
            GenerationKind.TOC,
            {"title": session.content.title, "raw_data": session.content.raw_data},
        )
        session.commit_content(table_of_contents=toc)
        console.print(f"[dim]  {len(toc.chapters)} chapters planned[/dim]")


class GenerateChaptersStep(StepExecutor):
    """
    Writes every chapter of the table of contents, in index order

    Each finished chapter is persisted on its own before the next one is
    started, so a failure keeps the chapters written so far. A resumed run
    keeps chapters that already have content, unless ``regenerate=True``.
    """

    step = WorkflowStep.GENERATE_CHAPTERS
    description = "Writing chapters"

    def __init__(self, generation: Generator):
        self.generation = generation

    def _plan(self, session: WorkflowSession, regenerate: bool) -> list[Chapter]:
        """
        One chapter per TOC entry; content-less entries still need writing

        Existing chapters stay in ``session.content`` until their
        replacement is saved, so a failure part-way keeps the old text.
        """
        entries = session.content.table_of_contents.chapters
        for chapter in list(session.content.chapters):
            if chapter.index >= len(entries):
                session.drop_chapter(chapter)
        existing = {c.index: c for c in session.content.chapters}

        plan = []
        for index, entry in enumerate(entries):
            current = existing.get(index)
            if current is not None and current.title == entry.title and not regenerate:
                plan.append(current)
            else:
                plan.append(Chapter(
                    id=current.id if current else None,
                    title=entry.title,
                    index=index,
                    data_points=list(entry.data_points),
                ))
        return plan

    async def execute(self, session: WorkflowSession, *, regenerate: bool = False, **params) -> None:
        chapters = self._plan(session, regenerate)
        total = len(chapters)
        book_title = session.content.title or ""

        for i, chapter in enumerate(chapters):
            if chapter.is_generated:
                console.print(f"[dim]  ↷ Chapter {i + 1}/{total} already written: {chapter.title}[/dim]")
            else:
                console.print(f"[dim]  Writing chapter {i + 1}/{total}: {chapter.title}[/dim]")
                text = await self.generation.generate(
                    GenerationKind.CHAPTER,
                    {"book_title": book_title, "chapter": chapter, "total": total},
                )
                session.save_chapter(chapter.model_copy(update={"content": text}))
            session.record_progress(self.step, round((i + 1) / total * 100))


class GenerateIntroductionStep(StepExecutor):
    step = WorkflowStep.GENERATE_INTRODUCTION
    description = "Crafting introduction"

    def __init__(self, generation: Generator):
        self.generation = generation

    async def execute(self, session: WorkflowSession, **params) -> None:
        text = await self.generation.generate(
            GenerationKind.INTRODUCTION,
            {"title": session.content.title, "table_of_contents": session.content.table_of_contents},
        )
        session.commit_content(introduction=text)


class GenerateConclusionStep(StepExecutor):
    step = WorkflowStep.GENERATE_CONCLUSION
    description = "Creating conclusion"

    def __init__(self, generation: Generator):
        self.generation = generation

    async def execute(self, session: WorkflowSession, **params) -> None:
        text = await self.generation.generate(
            GenerationKind.CONCLUSION,
            {"title": session.content.title, "table_of_contents": session.content.table_of_contents},
        )
        session.commit_content(conclusion=text)


class AssembleDraftStep(StepExecutor):
    """Orders chapters and checks the draft is complete; no generation"""

    step = WorkflowStep.ASSEMBLE_DRAFT
    description = "Assembling draft"

    async def execute(self, session: WorkflowSession, **params) -> None:
        chapters = session.content.ordered_chapters()
        dense = [c.index for c in chapters] == list(range(len(chapters)))
        if not dense or not all(c.is_generated for c in chapters):
            raise PreconditionError(self.step, "chapters")
        session.commit_content(chapters=chapters)
        console.print(f"[dim]  {len(chapters)} chapters, {session.content.word_count()} words[/dim]")


class AIReviewStep(StepExecutor):
    """
    Editorial review and revision

    1. review notes for the whole draft
    2. each chapter revised in order (reports sub-progress)
    3. title/introduction/conclusion revised together; an unparseable
       answer keeps the originals

    Everything is committed in one save at the end.
    """

    step = WorkflowStep.AI_REVIEW
    description = "AI review & revisions"

    def __init__(self, generation: Generator):
        self.generation = generation

    async def execute(self, session: WorkflowSession, **params) -> None:
        content = session.content
        chapters = content.ordered_chapters()
        total = len(chapters) + 2

        notes = await self.generation.generate(GenerationKind.REVIEW, {"content": content})
        session.record_progress(self.step, round(1 / total * 100))

        revised = []
        for i, chapter in enumerate(chapters):
            console.print(f"[dim]  Revising chapter {i + 1}/{len(chapters)}: {chapter.title}[/dim]")
            text = await self.generation.generate(
                GenerationKind.CHAPTER_REVISION,
                {"review_notes": notes, "chapter": chapter},
            )
            revised.append(chapter.model_copy(update={"content": text}))
            session.record_progress(self.step, round((i + 2) / total * 100))

        meta = {"title": content.title, "introduction": content.introduction, "conclusion": content.conclusion}
        try:
            meta = await self.generation.generate(
                GenerationKind.META_REVISION, {"review_notes": notes, **meta}
            )
        except GenerationError as e:
            session.warn(f"title/introduction/conclusion kept unrevised: {e}")

        session.commit_content(chapters=revised, **meta)
        session.resave_chapters()
        session.record_progress(self.step, 100)


class GeneratePDFStep(StepExecutor):
    """Renders the eBook and records the result as a new version"""

    step = WorkflowStep.GENERATE_PDF
    description = "Creating PDF"

    def __init__(self, renderer: Renderer, options: Any = None):
        self.renderer = renderer
        self.options = options

    async def execute(self, session: WorkflowSession, *, options: Any = None, **params) -> None:
        options = options or self.options
        number = session.next_version_number()
        artifact = await self.renderer.render(
            session.content, options, stem=f"{session.content_id}-v{number}"
        )
        meta = options.model_dump() if hasattr(options, "model_dump") else {}
        meta["wordCount"] = session.content.word_count()
        session.save_version(artifact, meta)
        console.print(f"[dim]  Artifact: {artifact}[/dim]")


def build_executors(generation: Generator, renderer: Renderer, render_options: Any = None) -> dict[WorkflowStep, StepExecutor]:
    """One executor per catalog step"""
    executors: list[StepExecutor] = [
        InputHandlingStep(),
        GenerateTitleStep(generation),
        GenerateTOCStep(generation),
        GenerateChaptersStep(generation),
        GenerateIntroductionStep(generation),
        GenerateConclusionStep(generation),
        AssembleDraftStep(),
        AIReviewStep(generation),
        GeneratePDFStep(renderer, render_options),
    ]
    return {executor.step: executor for executor in executors}
