"""
JSON-file progress store

Layout per workflow instance::

    <root>/<content_id>/progress.json
    <root>/<content_id>/content.json
    <root>/<content_id>/chapters/<chapter_id>.json
    <root>/<content_id>/versions.json
"""

from __future__ import annotations

import json
import shutil
import uuid
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from ..errors import PersistenceError
from ..models import Chapter, EbookContent, EbookVersion, WorkflowState
from .base import ProgressStore, merge_chapter_rows


class FileProgressStore(ProgressStore):
    """
    Stores each workflow instance in its own directory

    With ``chapter_table=False`` chapters live only inside ``content.json``
    and never get an id, like a deployment without a chapters table.
    """

    def __init__(self, root: str | Path, *, chapter_table: bool = True):
        self.root = Path(root)
        self.chapter_table = chapter_table

    def _dir(self, content_id: str) -> Path:
        if not content_id or "/" in content_id or content_id in (".", ".."):
            raise PersistenceError(f"invalid content id: {content_id!r}")
        return self.root / content_id

    def _read_json(self, path: Path) -> Any:
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise PersistenceError(f"cannot read {path}: {e}") from e

    def _write_json(self, path: Path, data: Any) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp = path.with_name(path.name + ".tmp")
            tmp.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
            tmp.replace(path)
        except (OSError, TypeError, ValueError) as e:
            raise PersistenceError(f"cannot write {path}: {e}") from e

    def load_state(self, content_id: str) -> tuple[WorkflowState, EbookContent]:
        base = self._dir(content_id)
        try:
            state = WorkflowState.from_persisted(self._read_json(base / "progress.json"))
            content = EbookContent.from_persisted(self._read_json(base / "content.json"))
        except ValidationError as e:
            raise PersistenceError(f"corrupt record for {content_id}: {e}") from e

        content.chapters = merge_chapter_rows(content.chapters, self._load_chapter_rows(base))
        return state, content

    def _load_chapter_rows(self, base: Path) -> list[Chapter]:
        chapter_dir = base / "chapters"
        if not self.chapter_table or not chapter_dir.is_dir():
            return []
        rows = []
        for path in chapter_dir.glob("*.json"):
            try:
                rows.append(Chapter.model_validate(self._read_json(path)))
            except ValidationError as e:
                raise PersistenceError(f"corrupt chapter row {path.name}: {e}") from e
        return sorted(rows, key=lambda c: c.index)

    def save_state(self, content_id: str, state: WorkflowState, content: EbookContent) -> None:
        base = self._dir(content_id)
        self._write_json(base / "progress.json", state.to_persisted())
        self._write_json(base / "content.json", content.to_persisted())

    def save_chapter(self, content_id: str, chapter: Chapter) -> Chapter:
        if not self.chapter_table:
            # blob-only mode: the next save_state carries the chapter
            return chapter
        stored = chapter.model_copy(update={"id": chapter.id or uuid.uuid4().hex})
        path = self._dir(content_id) / "chapters" / f"{stored.id}.json"
        self._write_json(path, stored.model_dump(mode="json", by_alias=True))
        return stored

    def delete_chapter(self, content_id: str, chapter_id: str) -> None:
        if not self.chapter_table:
            return
        path = self._dir(content_id) / "chapters" / f"{chapter_id}.json"
        if not path.exists():
            raise PersistenceError(f"chapter {chapter_id} not found for {content_id}")
        try:
            path.unlink()
        except OSError as e:
            raise PersistenceError(f"cannot delete {path}: {e}") from e

    def save_version(self, content_id: str, version: EbookVersion) -> EbookVersion:
        path = self._dir(content_id) / "versions.json"
        existing = self._read_json(path) or []
        existing.append(version.model_dump(mode="json", by_alias=True))
        self._write_json(path, existing)
        return version

    def list_versions(self, content_id: str) -> list[EbookVersion]:
        data = self._read_json(self._dir(content_id) / "versions.json") or []
        try:
            versions = [EbookVersion.model_validate(item) for item in data]
        except ValidationError as e:
            raise PersistenceError(f"corrupt versions for {content_id}: {e}") from e
        return sorted(versions, key=lambda v: v.version_number, reverse=True)

    def delete(self, content_id: str) -> None:
        base = self._dir(content_id)
        if base.exists():
            try:
                shutil.rmtree(base)
            except OSError as e:
                raise PersistenceError(f"cannot delete {base}: {e}") from e

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}: {self.root}>"
