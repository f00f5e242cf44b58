"""
Render module
"""

from .markdown import MarkdownRenderer, iter_blocks
from .pdf import PdfExporter
from .service import RenderOptions, RenderService, slugify
from .word import WordExporter

__all__ = [
    "MarkdownRenderer",
    "iter_blocks",
    "PdfExporter",
    "WordExporter",
    "RenderOptions",
    "RenderService",
    "slugify",
]
