"""
Generation service: turns a generation kind and its context into text or structured data
"""

from __future__ import annotations

import json
import re
from typing import Any

import httpx
from pydantic import ValidationError
from rich.console import Console

from ..errors import GenerationError
from ..models import EbookContent, GenerationKind, ModelSettings, TableOfContents
from ..prompts import (
    SYSTEM_PROMPT,
    build_chapter_prompt,
    build_chapter_revision_prompt,
    build_conclusion_prompt,
    build_introduction_prompt,
    build_meta_revision_prompt,
    build_review_prompt,
    build_title_prompt,
    build_toc_prompt,
    format_draft,
)
from .base import LLMProvider


console = Console()

META_KEYS = ("title", "introduction", "conclusion")


def extract_json(text: str) -> Any:
    """
    Parse JSON out of model output

    Accepts a ```json fenced block, any fenced block, or the outermost
    ``{...}`` span; raises ``ValueError`` when nothing parses.
    """
    candidates = []
    for pattern in (r"```json\s*(.*?)\s*```", r"```\s*(.*?)\s*```", r"(\{.*\})"):
        match = re.search(pattern, text, re.DOTALL)
        if match:
            candidates.append(match.group(1))
    candidates.append(text.strip())

    for candidate in candidates:
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            continue
    raise ValueError("no JSON object found in model output")


def clean_title(text: str) -> str:
    """First non-empty line, without markdown emphasis, heading marks or quotes"""
    for line in text.splitlines():
        line = re.sub(r"^#+\s*", "", line.strip())
        line = line.strip("*_").strip().strip("\"'").strip()
        if line:
            return line
    return ""


class GenerationService:
    """
    Generation collaborator consumed by the step executors

    ``generate(kind, context)`` returns:

    - ``TableOfContents`` for ``TOC``
    - ``dict`` with title/introduction/conclusion for ``META_REVISION``
    - ``str`` for every other kind

    Any provider or parse failure is raised as ``GenerationError``.
    """

    def __init__(self, provider: LLMProvider, settings: ModelSettings | None = None):
        self.provider = provider
        self.settings = settings or ModelSettings()

    def build_prompt(self, kind: GenerationKind, context: dict[str, Any]) -> str:
        try:
            if kind is GenerationKind.TITLE:
                return build_title_prompt(context["raw_data"])
            if kind is GenerationKind.TOC:
                return build_toc_prompt(context["title"], context["raw_data"])
            if kind is GenerationKind.CHAPTER:
                return build_chapter_prompt(context["book_title"], context["chapter"], context["total"])
            if kind is GenerationKind.INTRODUCTION:
                return build_introduction_prompt(context["title"], context["table_of_contents"])
            if kind is GenerationKind.CONCLUSION:
                return build_conclusion_prompt(context["title"], context["table_of_contents"])
            if kind is GenerationKind.REVIEW:
                content: EbookContent = context["content"]
                draft = format_draft(
                    content.title or "",
                    content.introduction or "",
                    content.ordered_chapters(),
                    content.conclusion or "",
                )
                return build_review_prompt(draft)
            if kind is GenerationKind.CHAPTER_REVISION:
                return build_chapter_revision_prompt(context["review_notes"], context["chapter"])
            if kind is GenerationKind.META_REVISION:
                return build_meta_revision_prompt(
                    context["review_notes"],
                    context["title"],
                    context["introduction"],
                    context["conclusion"],
                )
        except KeyError as e:
            raise GenerationError(f"{kind.value}: missing context {e}") from e
        raise GenerationError(f"unsupported generation kind: {kind}")

    async def generate(self, kind: GenerationKind, context: dict[str, Any]) -> Any:
        prompt = self.build_prompt(kind, context)
        options = self.settings.for_kind(kind)

        try:
            response = await self.provider.invoke(prompt, system_prompt=SYSTEM_PROMPT, options=options)
        except (httpx.HTTPError, KeyError, IndexError, TypeError, ValueError) as e:
            raise GenerationError(f"{kind.value} generation failed: {e}") from e

        text = response.content.strip()
        if not text:
            raise GenerationError(f"{kind.value} generation returned no text")

        return self._parse(kind, text)

    def _parse(self, kind: GenerationKind, text: str) -> Any:
        if kind is GenerationKind.TITLE:
            title = clean_title(text)
            if not title:
                raise GenerationError("title generation returned no usable title")
            return title

        if kind is GenerationKind.TOC:
            try:
                toc = TableOfContents.model_validate(extract_json(text))
            except (ValueError, ValidationError) as e:
                raise GenerationError(f"table of contents is not valid JSON: {e}") from e
            if not toc.chapters:
                raise GenerationError("table of contents has no chapters")
            return toc

        if kind is GenerationKind.META_REVISION:
            try:
                data = extract_json(text)
            except ValueError as e:
                raise GenerationError(f"meta revision is not valid JSON: {e}") from e
            if not isinstance(data, dict) or not all(isinstance(data.get(k), str) and data[k].strip() for k in META_KEYS):
                raise GenerationError("meta revision is missing title, introduction or conclusion")
            return {k: data[k].strip() for k in META_KEYS}

        return text
