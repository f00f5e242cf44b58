"""
Render service: the document renderer collaborator used by the workflow
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field
from reportlab.platypus.doctemplate import LayoutError

from ..errors import GenerationError
from ..models import EbookContent
from .markdown import MarkdownRenderer
from .pdf import PdfExporter
from .word import WordExporter


EXTENSIONS = {"pdf": ".pdf", "docx": ".docx", "markdown": ".md"}


class RenderOptions(BaseModel):
    """Render options"""
    format: Literal["pdf", "docx", "markdown"] = Field(default="pdf")
    paper_size: Literal["a4", "letter"] = Field(default="a4")
    with_cover: bool = Field(default=True, description="Add a title page")
    include_table_of_contents: bool = Field(default=True)
    output_dir: str = Field(default="output")


def slugify(text: str, fallback: str = "ebook") -> str:
    slug = re.sub(r"[^a-zA-Z0-9]+", "-", text).strip("-").lower()
    return slug[:80] or fallback


class RenderService:
    """Renders content to a file and returns its path"""

    async def render(
        self,
        content: EbookContent,
        options: RenderOptions | None = None,
        *,
        stem: str | None = None,
    ) -> str:
        """
        Render ``content`` in ``options.format``

        Args:
            content: eBook content
            options: Render options
            stem: File name without extension (defaults to the title slug)

        Returns:
            Path of the written file

        Raises:
            GenerationError: Rendering or writing the file failed
        """
        options = options or RenderOptions()
        output_path = Path(options.output_dir) / f"{stem or slugify(content.title or '')}{EXTENSIONS[options.format]}"

        try:
            if options.format == "pdf":
                exporter = PdfExporter(
                    paper_size=options.paper_size,
                    with_cover=options.with_cover,
                    include_toc=options.include_table_of_contents,
                )
                path = exporter.export(content, output_path)
            elif options.format == "docx":
                exporter = WordExporter(
                    with_cover=options.with_cover,
                    include_toc=options.include_table_of_contents,
                )
                path = exporter.export(content, output_path)
            else:
                path = MarkdownRenderer().render_to_file(
                    content, output_path, include_toc=options.include_table_of_contents
                )
        except (OSError, ValueError, LayoutError) as e:
            raise GenerationError(f"render to {options.format} failed: {e}") from e

        return str(path)
