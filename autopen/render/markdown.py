"""
Markdown renderer

Assembles the eBook into one Markdown manuscript; also hosts the small
block splitter the PDF and Word exporters share.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Iterator

from jinja2 import Environment, FileSystemLoader, Template

from ..models import EbookContent


DEFAULT_MARKDOWN_TEMPLATE = """# {{ title }}
{% if include_toc %}
## Table of Contents
{% if introduction %}
- Introduction
{%- endif %}
{%- for chapter in chapters %}
- Chapter {{ chapter.index + 1 }}: {{ chapter.title }}
{%- endfor %}
{%- if conclusion %}
- Conclusion
{%- endif %}
{% endif %}
{% if introduction %}
## Introduction

{{ introduction }}
{% endif %}
{% for chapter in chapters %}
## Chapter {{ chapter.index + 1 }}: {{ chapter.title }}

{{ chapter.content or "" }}
{% endfor %}
{% if conclusion %}
## Conclusion

{{ conclusion }}
{% endif %}
"""


def iter_blocks(text: str) -> Iterator[tuple[str, str]]:
    """
    Split Markdown-ish text into ``(kind, text)`` blocks

    kind is ``heading`` (``#``/``##``/``###`` lines), ``bullet`` or
    ``paragraph``; consecutive plain lines are joined into one paragraph.
    """
    current: list[str] = []

    def flush() -> Iterator[tuple[str, str]]:
        if current:
            yield "paragraph", " ".join(current)
            current.clear()

    for raw in text.splitlines():
        line = raw.strip()
        if not line:
            yield from flush()
            continue
        heading = re.match(r"^#{1,6}\s+(.*)$", line)
        if heading:
            yield from flush()
            yield "heading", heading.group(1).strip()
            continue
        bullet = re.match(r"^(?:[-*+]|\d+[.)])\s+(.*)$", line)
        if bullet:
            yield from flush()
            yield "bullet", bullet.group(1).strip()
            continue
        current.append(line)
    yield from flush()


class MarkdownRenderer:
    """Renders ``EbookContent`` as a Markdown document"""

    def __init__(
        self,
        template_path: str | Path | None = None,
        template_string: str | None = None,
    ):
        if template_path:
            template_path = Path(template_path)
            env = Environment(loader=FileSystemLoader(str(template_path.parent)))
            self.template = env.get_template(template_path.name)
        else:
            self.template = Template(template_string or DEFAULT_MARKDOWN_TEMPLATE)

    def render(self, content: EbookContent, include_toc: bool = True) -> str:
        return self.template.render(
            title=content.title or "Untitled",
            introduction=content.introduction,
            conclusion=content.conclusion,
            chapters=content.ordered_chapters(),
            include_toc=include_toc,
        )

    def render_to_file(
        self,
        content: EbookContent,
        output_path: str | Path,
        include_toc: bool = True,
    ) -> Path:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(self.render(content, include_toc), encoding="utf-8")
        return output_path
