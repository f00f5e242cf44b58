"""
AutoPen command line

- init: submit the seed text for a new eBook
- next / step: run one step manually
- run: generate everything that is left (Ctrl-C stops at the next step)
- status / versions / export
"""

from __future__ import annotations

import asyncio
import signal
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn
from rich.table import Table

from .config import create_workflow_service, load_config
from .errors import WorkflowError
from .models import AutoRunStatus, ProgressEvent, ProgressKind, StepResult, StepStatus
from .pipeline import WorkflowService
from .render import RenderOptions


app = typer.Typer(
    name="autopen",
    help="AutoPen - AI eBook generation workflow",
    add_completion=False,
)

console = Console()

ENV_OPTION = typer.Option(None, "--env", "-e", help=".env file path")


def build_service(env_file: Optional[Path] = None) -> WorkflowService:
    """Service wired from configuration"""
    return create_workflow_service(load_config(env_file))


def _fail(error: Exception) -> None:
    console.print(f"[red]Error: {error}[/red]")
    raise typer.Exit(code=1)


def _print_step_result(result: StepResult) -> None:
    if result.status is StepStatus.NOTHING_TO_DO:
        console.print("[green]All steps are complete, nothing to do[/green]")
        return
    console.print(f"[green]✓ {result.step.value} completed[/green]")
    for warning in result.warnings:
        console.print(f"[yellow]  ⚠ {warning}[/yellow]")
    if result.next_step:
        console.print(f"[dim]Next: {result.next_step.value}[/dim]")


@app.command("init")
def init(
    content_id: str = typer.Argument(..., help="eBook id"),
    input_file: Optional[Path] = typer.Option(
        None, "--file", "-f", help="Text file with the seed material", exists=True, dir_okay=False
    ),
    text: Optional[str] = typer.Option(None, "--text", "-t", help="Seed material given inline"),
    env_file: Optional[Path] = ENV_OPTION,
) -> None:
    """
    Submit the seed material for an eBook
    """
    if input_file is None and text is None:
        console.print("[red]Give the seed material with --file or --text[/red]")
        raise typer.Exit(code=2)
    raw_data = input_file.read_text(encoding="utf-8") if input_file else text

    service = build_service(env_file)
    try:
        result = asyncio.run(service.submit_input(content_id, raw_data))
    except WorkflowError as e:
        _fail(e)
    _print_step_result(result)
    console.print(f"\n[dim]Next:[/dim] [bold]autopen run {content_id}[/bold]")


@app.command("next")
def next_step(
    content_id: str = typer.Argument(..., help="eBook id"),
    env_file: Optional[Path] = ENV_OPTION,
) -> None:
    """
    Run the next incomplete step
    """
    service = build_service(env_file)
    try:
        result = asyncio.run(service.run_next_step(content_id))
    except WorkflowError as e:
        _fail(e)
    _print_step_result(result)


@app.command("step")
def run_step(
    content_id: str = typer.Argument(..., help="eBook id"),
    step: str = typer.Argument(..., help="Step name, e.g. generate_title or generate-toc"),
    regenerate: bool = typer.Option(False, "--regenerate", help="Rewrite chapters that already have content"),
    env_file: Optional[Path] = ENV_OPTION,
) -> None:
    """
    Re-run one named step
    """
    service = build_service(env_file)
    params = {"regenerate": True} if regenerate else {}
    try:
        result = asyncio.run(service.run_step(content_id, step, **params))
    except WorkflowError as e:
        _fail(e)
    _print_step_result(result)


@app.command("run")
def run(
    content_id: str = typer.Argument(..., help="eBook id"),
    env_file: Optional[Path] = ENV_OPTION,
) -> None:
    """
    Generate every remaining step; Ctrl-C stops after the current step
    """
    service = build_service(env_file)

    async def main():
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=console,
        ) as progress:
            overall = progress.add_task("Overall", total=100)
            current = progress.add_task("Waiting", total=100)

            def on_progress(event: ProgressEvent) -> None:
                progress.update(overall, completed=event.overall_percent)
                if event.kind is ProgressKind.STEP_STARTED:
                    label = service.catalog.spec(event.step).label
                    progress.update(current, description=label, completed=0)
                elif event.step_percent is not None:
                    progress.update(current, completed=event.step_percent)

            handle = service.start_auto_run(content_id, on_progress=on_progress)
            loop = asyncio.get_running_loop()
            try:
                loop.add_signal_handler(signal.SIGINT, handle.cancel)
                installed = True
            except (NotImplementedError, RuntimeError, ValueError):
                installed = False
            try:
                return await handle.wait()
            finally:
                if installed:
                    loop.remove_signal_handler(signal.SIGINT)

    try:
        result = asyncio.run(main())
    except WorkflowError as e:
        _fail(e)

    for warning in result.warnings:
        console.print(f"[yellow]⚠ {warning}[/yellow]")

    if result.status is AutoRunStatus.COMPLETED:
        console.print(f"[green]✓ Done ({len(result.executed_steps)} steps)[/green]")
    elif result.status is AutoRunStatus.CANCELLED:
        console.print(f"[yellow]Cancelled after {len(result.executed_steps)} steps; run again to resume[/yellow]")
        raise typer.Exit(code=130)
    else:
        console.print(Panel(
            f"[bold red]Failed at {result.failed_step.value}[/bold red]\n{result.error}",
            border_style="red",
        ))
        raise typer.Exit(code=1)


@app.command("status")
def status(
    content_id: str = typer.Argument(..., help="eBook id"),
    env_file: Optional[Path] = ENV_OPTION,
) -> None:
    """
    Show step progress and what has been generated
    """
    service = build_service(env_file)
    try:
        state, content = service.get_state(content_id)
    except WorkflowError as e:
        _fail(e)

    console.print(Panel(
        f"[bold]{content.title or '(untitled)'}[/bold]\n"
        f"Chapters: {len(content.chapters)}  Words: {content.word_count()}",
        title=content_id,
        border_style="blue",
    ))

    table = Table(title="Workflow", show_header=True)
    table.add_column("Step", style="cyan")
    table.add_column("Status", justify="center")
    table.add_column("Progress", justify="right")
    for spec in service.catalog:
        if state.is_completed(spec.step):
            mark = "[green]✓[/green]"
        elif spec.step is state.current_step:
            mark = "[yellow]▶[/yellow]"
        else:
            mark = "[dim]-[/dim]"
        pct = state.step_progress.get(spec.step)
        table.add_row(spec.label, mark, f"{pct:.0f}%" if pct is not None else "")
    console.print(table)


@app.command("versions")
def versions(
    content_id: str = typer.Argument(..., help="eBook id"),
    env_file: Optional[Path] = ENV_OPTION,
) -> None:
    """
    List rendered versions, newest first
    """
    service = build_service(env_file)
    try:
        items = service.list_versions(content_id)
    except WorkflowError as e:
        _fail(e)
    if not items:
        console.print("[dim]No versions yet[/dim]")
        return
    table = Table(show_header=True)
    table.add_column("#", justify="right")
    table.add_column("Created")
    table.add_column("Artifact", style="cyan")
    for version in items:
        table.add_row(str(version.version_number), version.created_at.strftime("%Y-%m-%d %H:%M"), version.artifact)
    console.print(table)


@app.command("export")
def export(
    content_id: str = typer.Argument(..., help="eBook id"),
    fmt: str = typer.Option("pdf", "--format", "-f", help="pdf, docx or markdown"),
    paper_size: Optional[str] = typer.Option(None, "--paper-size", help="a4 or letter"),
    no_cover: bool = typer.Option(False, "--no-cover", help="Skip the title page"),
    no_toc: bool = typer.Option(False, "--no-toc", help="Skip the table of contents"),
    output_dir: Optional[Path] = typer.Option(None, "--output", "-o", help="Output directory"),
    env_file: Optional[Path] = ENV_OPTION,
) -> None:
    """
    Render the current draft without changing workflow progress
    """
    service = build_service(env_file)
    base = service.render_options or RenderOptions()
    update = {"format": fmt, "with_cover": not no_cover, "include_table_of_contents": not no_toc}
    if paper_size:
        update["paper_size"] = paper_size
    if output_dir:
        update["output_dir"] = str(output_dir)
    try:
        options = RenderOptions.model_validate({**base.model_dump(), **update})
        artifact = asyncio.run(service.export(content_id, options))
    except (WorkflowError, ValueError) as e:
        _fail(e)
    console.print(f"[green]✓ Exported: {artifact}[/green]")


if __name__ == "__main__":
    app()
