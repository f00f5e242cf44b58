"""
PDF exporter (reportlab)
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Literal

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_JUSTIFY
from reportlab.lib.pagesizes import A4, letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import PageBreak, Paragraph, SimpleDocTemplate, Spacer
from rich.console import Console

from ..models import EbookContent
from .markdown import iter_blocks


console = Console()

PAGE_SIZES = {"a4": A4, "letter": letter}


def _escape(text: str) -> str:
    text = text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")
    text = re.sub(r"\*\*(.+?)\*\*", r"<b>\1</b>", text)
    text = re.sub(r"\*(.+?)\*", r"<i>\1</i>", text)
    return text


class PdfExporter:
    """
    Lays out the eBook as a PDF

    Cover page and table of contents are optional; each chapter starts on
    a new page.
    """

    def __init__(
        self,
        paper_size: Literal["a4", "letter"] = "a4",
        with_cover: bool = True,
        include_toc: bool = True,
    ):
        self.pagesize = PAGE_SIZES[paper_size]
        self.with_cover = with_cover
        self.include_toc = include_toc
        self._styles = self._build_styles()

    def _build_styles(self) -> dict[str, ParagraphStyle]:
        base = getSampleStyleSheet()
        return {
            "title": ParagraphStyle(
                "BookTitle",
                parent=base["Heading1"],
                fontSize=28,
                leading=34,
                spaceAfter=30,
                alignment=TA_CENTER,
                textColor=colors.HexColor("#1a1a2e"),
            ),
            "chapter": ParagraphStyle(
                "ChapterTitle",
                parent=base["Heading1"],
                fontSize=20,
                spaceBefore=20,
                spaceAfter=20,
                textColor=colors.HexColor("#1a1a2e"),
            ),
            "heading": ParagraphStyle(
                "BookHeading2",
                parent=base["Heading2"],
                fontSize=14,
                spaceBefore=16,
                spaceAfter=10,
                textColor=colors.HexColor("#2a2a4e"),
            ),
            "body": ParagraphStyle(
                "BookBody",
                parent=base["Normal"],
                fontSize=11,
                leading=16,
                spaceAfter=12,
                alignment=TA_JUSTIFY,
            ),
            "bullet": ParagraphStyle(
                "BookBullet",
                parent=base["Normal"],
                fontSize=11,
                leading=16,
                leftIndent=18,
                bulletIndent=6,
                spaceAfter=4,
            ),
            "toc": ParagraphStyle(
                "TocEntry",
                parent=base["Normal"],
                fontSize=12,
                leftIndent=20,
                spaceAfter=8,
            ),
        }

    def _section(self, story: list, heading: str, body: str) -> None:
        styles = self._styles
        story.append(Paragraph(_escape(heading), styles["chapter"]))
        for kind, text in iter_blocks(body):
            if kind == "heading":
                story.append(Spacer(1, 10))
                story.append(Paragraph(_escape(text), styles["heading"]))
            elif kind == "bullet":
                story.append(Paragraph(_escape(text), styles["bullet"], bulletText="•"))
            else:
                story.append(Paragraph(_escape(text), styles["body"]))
        story.append(PageBreak())

    def export(self, content: EbookContent, output_path: str | Path) -> Path:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        styles = self._styles
        title = content.title or "Untitled"
        chapters = content.ordered_chapters()

        story: list = []
        if self.with_cover:
            story.append(Spacer(1, 2 * inch))
            story.append(Paragraph(_escape(title), styles["title"]))
            story.append(PageBreak())

        if self.include_toc:
            story.append(Paragraph("Table of Contents", styles["chapter"]))
            if content.introduction:
                story.append(Paragraph("Introduction", styles["toc"]))
            for chapter in chapters:
                story.append(Paragraph(
                    _escape(f"Chapter {chapter.index + 1}: {chapter.title}"), styles["toc"]
                ))
            if content.conclusion:
                story.append(Paragraph("Conclusion", styles["toc"]))
            story.append(PageBreak())

        if content.introduction:
            self._section(story, "Introduction", content.introduction)
        for chapter in chapters:
            self._section(story, f"Chapter {chapter.index + 1}: {chapter.title}", chapter.content or "")
        if content.conclusion:
            self._section(story, "Conclusion", content.conclusion)

        doc = SimpleDocTemplate(
            str(output_path),
            pagesize=self.pagesize,
            rightMargin=72,
            leftMargin=72,
            topMargin=72,
            bottomMargin=72,
            title=title,
        )
        doc.build(story)
        console.print(f"[green]✓ PDF written: {output_path}[/green]")
        return output_path
