"""
Word exporter

Writes the eBook as a .docx document with python-docx
"""

from __future__ import annotations

from pathlib import Path

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Pt
from rich.console import Console

from ..models import EbookContent
from .markdown import iter_blocks


console = Console()


class WordExporter:
    """Exports ``EbookContent`` to Word"""

    def __init__(self, with_cover: bool = True, include_toc: bool = True):
        self.with_cover = with_cover
        self.include_toc = include_toc

    def _set_document_defaults(self, doc) -> None:
        style = doc.styles["Normal"]
        style.font.name = "Georgia"
        style.font.size = Pt(11)
        style.paragraph_format.space_after = Pt(8)

    def _add_section(self, doc, heading: str, body: str) -> None:
        doc.add_heading(heading, level=1)
        for kind, text in iter_blocks(body):
            if kind == "heading":
                doc.add_heading(text, level=2)
            elif kind == "bullet":
                doc.add_paragraph(text, style="List Bullet")
            else:
                doc.add_paragraph(text)
        doc.add_page_break()

    def export(self, content: EbookContent, output_path: str | Path) -> Path:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        chapters = content.ordered_chapters()

        doc = Document()
        self._set_document_defaults(doc)
        doc.core_properties.title = content.title or ""

        if self.with_cover:
            title_para = doc.add_paragraph()
            title_run = title_para.add_run(content.title or "Untitled")
            title_run.bold = True
            title_run.font.size = Pt(28)
            title_para.alignment = WD_ALIGN_PARAGRAPH.CENTER
            doc.add_page_break()

        if self.include_toc:
            doc.add_heading("Table of Contents", level=1)
            if content.introduction:
                doc.add_paragraph("Introduction")
            for chapter in chapters:
                doc.add_paragraph(f"Chapter {chapter.index + 1}: {chapter.title}")
            if content.conclusion:
                doc.add_paragraph("Conclusion")
            doc.add_page_break()

        if content.introduction:
            self._add_section(doc, "Introduction", content.introduction)
        for chapter in chapters:
            self._add_section(doc, f"Chapter {chapter.index + 1}: {chapter.title}", chapter.content or "")
        if content.conclusion:
            self._add_section(doc, "Conclusion", content.conclusion)

        doc.save(str(output_path))
        console.print(f"[green]✓ Word document written: {output_path}[/green]")
        return output_path
