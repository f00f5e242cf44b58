"""
Progress stores
"""

import json

import pytest

from autopen.errors import PersistenceError
from autopen.models import Chapter, EbookContent, EbookVersion, WorkflowState, WorkflowStep
from autopen.store import FileProgressStore, MemoryProgressStore, ProgressStore


@pytest.fixture(params=["memory", "files"])
def any_store(request, tmp_path):
    if request.param == "memory":
        return MemoryProgressStore()
    return FileProgressStore(tmp_path / "store")


def test_never_saved_id_loads_empty(any_store):
    state, content = any_store.load_state("fresh")
    assert state.completed_steps == []
    assert content == EbookContent()


def test_state_and_content_survive_a_reload(any_store):
    state = WorkflowState(current_step=WorkflowStep.GENERATE_TOC, completed_steps=[WorkflowStep.GENERATE_TITLE])
    any_store.save_state("book", state, EbookContent(title="T", raw_data="notes"))

    loaded_state, loaded_content = any_store.load_state("book")
    assert loaded_state == state
    assert loaded_content.title == "T"
    assert loaded_content.raw_data == "notes"


def test_chapter_rows_override_the_content_blob(any_store):
    any_store.save_state("book", WorkflowState(), EbookContent(chapters=[Chapter(title="Old", index=0)]))
    second = any_store.save_chapter("book", Chapter(title="Two", index=1, content="b"))
    first = any_store.save_chapter("book", Chapter(title="One", index=0, content="a"))

    assert first.id and second.id and first.id != second.id
    _, content = any_store.load_state("book")
    assert [(c.index, c.title) for c in content.chapters] == [(0, "One"), (1, "Two")]

    again = any_store.save_chapter("book", first.model_copy(update={"content": "a2"}))
    assert again.id == first.id
    _, content = any_store.load_state("book")
    assert content.chapters[0].content == "a2"
    assert len(content.chapters) == 2


def test_chapters_without_a_row_come_from_the_content_blob(any_store):
    blob = [Chapter(title=t, index=i, content=f"blob {i}") for i, t in enumerate(["One", "Two", "Three"])]
    any_store.save_state("book", WorkflowState(), EbookContent(chapters=blob))
    any_store.save_chapter("book", Chapter(title="Three", index=2, content="row 2"))
    any_store.save_chapter("book", Chapter(title="One", index=0, content="row 0"))

    _, content = any_store.load_state("book")

    assert [(c.index, c.content) for c in content.chapters] == [(0, "row 0"), (1, "blob 1"), (2, "row 2")]


def test_store_without_delete_cannot_be_built():
    class PartialStore(ProgressStore):
        def load_state(self, content_id):
            return WorkflowState(), EbookContent()

        def save_state(self, content_id, state, content):
            pass

        def save_chapter(self, content_id, chapter):
            return chapter

        def delete_chapter(self, content_id, chapter_id):
            pass

        def save_version(self, content_id, version):
            return version

        def list_versions(self, content_id):
            return []

    with pytest.raises(TypeError):
        PartialStore()


def test_delete_chapter(any_store):
    saved = any_store.save_chapter("book", Chapter(title="One", index=0))
    any_store.delete_chapter("book", saved.id)
    _, content = any_store.load_state("book")
    assert content.chapters == []
    with pytest.raises(PersistenceError):
        any_store.delete_chapter("book", saved.id)


def test_versions_newest_first(any_store):
    for n in (1, 2, 3):
        any_store.save_version("book", EbookVersion(version_number=n, artifact=f"v{n}.pdf"))
    assert [v.version_number for v in any_store.list_versions("book")] == [3, 2, 1]
    assert any_store.list_versions("other") == []


def test_delete_everything(any_store):
    any_store.save_state("book", WorkflowState(), EbookContent(title="T"))
    any_store.save_chapter("book", Chapter(title="One", index=0))
    any_store.delete("book")
    _, content = any_store.load_state("book")
    assert content == EbookContent()


def test_file_store_layout(tmp_path):
    store = FileProgressStore(tmp_path)
    store.save_state("book", WorkflowState(completed_steps=[WorkflowStep.GENERATE_TITLE]), EbookContent(title="T"))
    saved = store.save_chapter("book", Chapter(title="One", index=0, content="a"))

    progress = json.loads((tmp_path / "book" / "progress.json").read_text())
    assert progress["stepsCompleted"] == ["generate_title"]
    assert progress["totalSteps"] == 9
    row = json.loads((tmp_path / "book" / "chapters" / f"{saved.id}.json").read_text())
    assert row["chapterIndex"] == 0


def test_file_store_without_chapter_table_uses_the_blob(tmp_path):
    store = FileProgressStore(tmp_path, chapter_table=False)
    chapter = store.save_chapter("book", Chapter(title="One", index=0, content="a"))
    assert chapter.id is None
    assert not (tmp_path / "book" / "chapters").exists()

    store.save_state("book", WorkflowState(), EbookContent(chapters=[chapter]))
    _, content = store.load_state("book")
    assert content.chapters[0].title == "One"
    assert content.chapters[0].id is None


def test_file_store_corrupt_record(tmp_path):
    store = FileProgressStore(tmp_path)
    (tmp_path / "book").mkdir()
    (tmp_path / "book" / "progress.json").write_text("{not json")
    with pytest.raises(PersistenceError):
        store.load_state("book")


@pytest.mark.parametrize("content_id", ["", "..", "a/b"])
def test_file_store_rejects_bad_ids(tmp_path, content_id):
    with pytest.raises(PersistenceError):
        FileProgressStore(tmp_path).load_state(content_id)
