"""
Prompt templates for each generation kind
"""

from __future__ import annotations

from ..models import Chapter, TableOfContents


SYSTEM_PROMPT = "You are a professional eBook author and editor. Write clear, engaging, well-structured prose."


TITLE_PROMPT = """Given the following structured data containing key themes, topics, and summaries, generate an engaging and viral eBook title that succinctly encapsulates the core message. The title should be catchy, clear, and adaptable to various genres or content styles. If the provided data is minimal, infer a creative title based on best-practice title structures.

Raw Data:
{raw_data}

Output only the title without any additional text or formatting."""


TOC_PROMPT = """Review the following structured data comprising key points, themes, and summaries. Develop a detailed table of contents for an eBook titled "{title}" by outlining chapter titles. For each chapter, list the corresponding data points or topics that will be discussed. Ensure the sequence offers a logical flow and accommodates both broad and niche content areas. If gaps are detected, propose additional sections that could enhance the narrative.

Raw Data:
{raw_data}

Format your response as a valid JSON object with this structure:
{{
  "chapters": [
    {{
      "title": "Chapter Title",
      "dataPoints": ["Data point 1", "Data point 2", "..."]
    }}
  ]
}}

Provide only the JSON without any additional text or formatting."""


CHAPTER_PROMPT = """Compose a comprehensive chapter for the eBook "{book_title}". This is chapter {number} of {total}, titled '{chapter_title}'. Incorporate the following data points:

{data_points}

The chapter must be detailed, coherent, and engaging, with a clear narrative structure. Include explanations, examples, and smooth transitions to enhance readability. If the input data is sparse, intelligently expand on common themes while remaining consistent with the overall ebook purpose.

Output only the chapter content without any additional text or formatting."""


INTRODUCTION_PROMPT = """Craft an engaging introduction for an eBook titled '{title}' that leverages the following table of contents:

{chapter_titles}

Your introduction should establish a strong hook, outline the main themes, and set clear expectations for the reader. Aim for 300-500 words, ensuring the tone is inviting and adaptable to a variety of content styles.

Output only the introduction without any additional text or formatting."""


CONCLUSION_PROMPT = """Develop a compelling conclusion for the ebook titled '{title}' by summarizing the essential points from the following chapters:

{chapter_summaries}

Reinforce the central message, tie together any loose ends, and provide the reader with actionable takeaways or a memorable closing thought. Aim for a 500-1000-word conclusion that is both reflective and inspiring.

Output only the conclusion without any additional text or formatting."""


REVIEW_PROMPT = """You are a professional editor reviewing an eBook draft. Provide a comprehensive, detailed review focusing on improving the quality, readability, and professionalism of the content.

Look for:
1. COHERENCE: logical flow of ideas across chapters and sections
2. CLARITY: whether explanations are clear and concepts well presented
3. CONSISTENCY: tone, style, terminology and formatting
4. ENGAGEMENT: how compelling the content is for readers
5. COMPLETENESS: gaps or areas that need more development
6. LANGUAGE: awkward phrasing, grammatical issues, repetition

EBOOK CONTENT:
{draft}

Provide your review as a structured list of specific feedback points organized by section (Title, Introduction, each Chapter, Conclusion). For each issue, say what needs improvement, why, and how to fix it."""


CHAPTER_REVISION_PROMPT = """You are revising Chapter {number} of an eBook based on editorial feedback. Here is the overall feedback for the entire eBook:

{review_notes}

Now focus on improving this chapter. Enhance clarity, coherence, and reader engagement while keeping the original core message and structure.

ORIGINAL CHAPTER {number}: {chapter_title}
{chapter_content}

Produce a revised version of this chapter only, without the chapter title."""


META_REVISION_PROMPT = """Based on the following editorial feedback about an eBook:

{review_notes}

Revise these sections of the eBook. Make them more engaging, clear, and professional while keeping the core message:

TITLE: {title}
INTRODUCTION:
{introduction}
CONCLUSION:
{conclusion}

Provide your response in valid JSON format:
{{
  "title": "Improved Title",
  "introduction": "Revised introduction text...",
  "conclusion": "Revised conclusion text..."
}}"""


def build_title_prompt(raw_data: str) -> str:
    return TITLE_PROMPT.format(raw_data=raw_data)


def build_toc_prompt(title: str, raw_data: str) -> str:
    return TOC_PROMPT.format(title=title, raw_data=raw_data)


def build_chapter_prompt(book_title: str, chapter: Chapter, total: int) -> str:
    """Chapter prompt; data points become a bullet list"""
    data_points = "\n".join(f"- {dp}" for dp in chapter.data_points) or "- (no data points given)"
    return CHAPTER_PROMPT.format(
        book_title=book_title,
        number=chapter.index + 1,
        total=total,
        chapter_title=chapter.title,
        data_points=data_points,
    )


def build_introduction_prompt(title: str, toc: TableOfContents) -> str:
    chapter_titles = "\n".join(f"- {entry.title}" for entry in toc.chapters)
    return INTRODUCTION_PROMPT.format(title=title, chapter_titles=chapter_titles)


def build_conclusion_prompt(title: str, toc: TableOfContents) -> str:
    chapter_summaries = "\n".join(
        f"{i}. {entry.title}: {', '.join(entry.data_points)}"
        for i, entry in enumerate(toc.chapters, 1)
    )
    return CONCLUSION_PROMPT.format(title=title, chapter_summaries=chapter_summaries)


def format_draft(title: str, introduction: str, chapters: list[Chapter], conclusion: str) -> str:
    """Flatten the draft into one reviewable text block"""
    body = "\n\n---\n\n".join(
        f"CHAPTER {c.index + 1}: {c.title}\n\n{c.content or ''}" for c in chapters
    )
    return f"TITLE: {title}\n\nINTRODUCTION:\n{introduction}\n\nCHAPTERS:\n{body}\n\nCONCLUSION:\n{conclusion}"


def build_review_prompt(draft: str) -> str:
    return REVIEW_PROMPT.format(draft=draft)


def build_chapter_revision_prompt(review_notes: str, chapter: Chapter) -> str:
    return CHAPTER_REVISION_PROMPT.format(
        number=chapter.index + 1,
        review_notes=review_notes,
        chapter_title=chapter.title,
        chapter_content=chapter.content or "",
    )


def build_meta_revision_prompt(review_notes: str, title: str, introduction: str, conclusion: str) -> str:
    return META_REVISION_PROMPT.format(
        review_notes=review_notes,
        title=title,
        introduction=introduction,
        conclusion=conclusion,
    )
