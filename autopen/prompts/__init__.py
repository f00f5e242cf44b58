"""
Prompt template module
"""

from .templates import (
    SYSTEM_PROMPT,
    TITLE_PROMPT,
    TOC_PROMPT,
    CHAPTER_PROMPT,
    INTRODUCTION_PROMPT,
    CONCLUSION_PROMPT,
    REVIEW_PROMPT,
    CHAPTER_REVISION_PROMPT,
    META_REVISION_PROMPT,
    build_title_prompt,
    build_toc_prompt,
    build_chapter_prompt,
    build_introduction_prompt,
    build_conclusion_prompt,
    build_review_prompt,
    build_chapter_revision_prompt,
    build_meta_revision_prompt,
    format_draft,
)

__all__ = [
    "SYSTEM_PROMPT",
    "TITLE_PROMPT",
    "TOC_PROMPT",
    "CHAPTER_PROMPT",
    "INTRODUCTION_PROMPT",
    "CONCLUSION_PROMPT",
    "REVIEW_PROMPT",
    "CHAPTER_REVISION_PROMPT",
    "META_REVISION_PROMPT",
    "build_title_prompt",
    "build_toc_prompt",
    "build_chapter_prompt",
    "build_introduction_prompt",
    "build_conclusion_prompt",
    "build_review_prompt",
    "build_chapter_revision_prompt",
    "build_meta_revision_prompt",
    "format_draft",
]
