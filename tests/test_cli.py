"""
Command line interface
"""

import pytest
from typer.testing import CliRunner

from conftest import make_content, seed

from autopen import cli
from autopen.errors import GenerationError
from autopen.models import GenerationKind, WorkflowStep
from autopen.pipeline import STEP_CATALOG


runner = CliRunner()


@pytest.fixture(autouse=True)
def use_service(monkeypatch, service):
    monkeypatch.setattr(cli, "build_service", lambda env_file=None: service)


def test_init_then_run(service):
    result = runner.invoke(cli.app, ["init", "book", "--text", "Notes about bread"])
    assert result.exit_code == 0, result.output
    assert "input_handling completed" in result.output

    result = runner.invoke(cli.app, ["run", "book"])
    assert result.exit_code == 0, result.output

    state, _ = service.get_state("book")
    assert set(state.completed_steps) == set(STEP_CATALOG.steps)


def test_init_from_file(service, tmp_path):
    notes = tmp_path / "notes.txt"
    notes.write_text("  Notes from a file \n", encoding="utf-8")
    result = runner.invoke(cli.app, ["init", "book", "--file", str(notes)])
    assert result.exit_code == 0, result.output
    _, content = service.get_state("book")
    assert content.raw_data == "Notes from a file"


def test_init_needs_material():
    result = runner.invoke(cli.app, ["init", "book"])
    assert result.exit_code == 2


def test_next_runs_one_step(service):
    runner.invoke(cli.app, ["init", "book", "--text", "notes"])
    result = runner.invoke(cli.app, ["next", "book"])
    assert result.exit_code == 0, result.output
    assert "generate_title completed" in result.output
    state, _ = service.get_state("book")
    assert state.current_step is WorkflowStep.GENERATE_TOC


def test_next_without_input_fails():
    result = runner.invoke(cli.app, ["next", "book"])
    assert result.exit_code == 1
    assert "raw_data" in result.output


def test_status_lists_steps(store):
    seed(store, "book", make_content(), [WorkflowStep.GENERATE_TITLE, WorkflowStep.GENERATE_TOC])
    result = runner.invoke(cli.app, ["status", "book"])
    assert result.exit_code == 0, result.output
    assert "The Test Book" in result.output
    assert "Writing Chapters" in result.output


def test_unknown_step_name():
    result = runner.invoke(cli.app, ["step", "book", "publish"])
    assert result.exit_code == 1
    assert "unknown step" in result.output


def test_failed_run_exits_with_error(store, generation):
    seed(store, "book", make_content(), STEP_CATALOG.runnable_steps[:6])
    generation.fail_on[GenerationKind.REVIEW] = GenerationError("rate limited")
    result = runner.invoke(cli.app, ["run", "book"])
    assert result.exit_code == 1
    assert "ai_review" in result.output


def test_export_and_versions(store, renderer):
    seed(store, "book", make_content(), STEP_CATALOG.steps)

    result = runner.invoke(cli.app, ["export", "book", "--format", "docx", "--no-cover"])
    assert result.exit_code == 0, result.output
    options = renderer.calls[0][1]
    assert options.format == "docx"
    assert options.with_cover is False

    result = runner.invoke(cli.app, ["versions", "book"])
    assert result.exit_code == 0, result.output
    assert "memory://book-v1.pdf" in result.output


def test_export_rejects_unknown_format(store):
    seed(store, "book", make_content(), STEP_CATALOG.steps)
    result = runner.invoke(cli.app, ["export", "book", "--format", "epub"])
    assert result.exit_code == 1
