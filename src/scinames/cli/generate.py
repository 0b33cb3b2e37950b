"""Commands for running change generators against a project."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.table import Table

from scinames.exceptions import SciNamesError
from scinames.pipeline.generators import available_generators, create_generator
from scinames.utils.logging import log_timing, logging_context

from .common import CLIError, console, get_state, load_project, resolve_path

app = typer.Typer(
    add_completion=False,
    help="List and run generators that propose candidate changes.",
    no_args_is_help=True,
)


def _list_command() -> None:
    table = Table(title="Change generators", box=None)
    table.add_column("Key")
    table.add_column("Name")
    table.add_column("Column")
    table.add_column("Description")
    for generator in available_generators():
        table.add_row(
            generator.key,
            generator.name,
            "required" if generator.needs_dataset_column else "-",
            generator.description,
        )
    console.print(table)


def _run_command(
    ctx: typer.Context,
    path: Path = typer.Argument(..., help="Project file (.xml or .xml.gz)."),
    key: str = typer.Argument(..., help="Generator key, see `scinames generate list`."),
    column: Optional[str] = typer.Option(None, "--column", "-c", help="Dataset column the generator reads."),
    dataset_name: Optional[str] = typer.Option(None, "--dataset", "-d", help="Restrict to one dataset."),
    submit: bool = typer.Option(False, "--submit", help="Accept every candidate as an explicit change."),
    output: Optional[Path] = typer.Option(None, "--output", help="Save the project here after generating."),
) -> None:
    state = get_state(ctx)
    project = load_project(state, path)
    dataset = None
    if dataset_name is not None:
        dataset = project.get_dataset(dataset_name)
        if dataset is None:
            raise CLIError(f"Project has no dataset named '{dataset_name}'")

    try:
        generator = create_generator(key, column)
        with logging_context(run_id=state.run_id, step=key), log_timing(f"generate {key}"):
            candidates = list(generator.generate(project, dataset))
    except SciNamesError as exc:
        raise CLIError(str(exc)) from exc

    table = Table(title=f"{generator.name}: {len(candidates)} candidates", box=None)
    table.add_column("Dataset")
    table.add_column("Change")
    table.add_column("Note")
    for candidate in candidates:
        table.add_row(candidate.dataset.name, str(candidate), candidate.note)
    console.print(table)

    if submit:
        for candidate in candidates:
            candidate.submit()
        console.print(f"[green]Submitted {len(candidates)} changes.[/green]")
    if output is not None:
        written = project.save(resolve_path(output, must_exist=False))
        console.print(f"[green]Project saved to {written}.[/green]")
    elif submit:
        console.print("[yellow]No --output given; submitted changes were not saved.[/yellow]")


app.command("list")(_list_command)
app.command("run")(_run_command)
