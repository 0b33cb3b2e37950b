"""Inspection commands for saved projects."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer
from rich.table import Table

from scinames.pipeline.validation import Severity

from .common import CLIError, console, get_state, load_project, render_panel

app = typer.Typer(
    add_completion=False,
    help="Summarise, cluster and validate saved projects.",
    no_args_is_help=True,
)


def _summary_command(
    ctx: typer.Context,
    path: Path = typer.Argument(..., help="Project file (.xml or .xml.gz)."),
) -> None:
    state = get_state(ctx)
    project = load_project(state, path)
    if state.verbose:
        render_panel(f"Project {project.name}", project.describe())

    table = Table(title=f"Datasets in {project.name}", box=None)
    table.add_column("Dataset")
    table.add_column("Type")
    table.add_column("Names")
    table.add_column("Changes")
    for dataset in project.datasets:
        table.add_row(
            dataset.citation,
            dataset.type_label,
            dataset.get_name_count_summary(project),
            dataset.get_changes_count_summary(project),
        )
    console.print(table)
    for line in project.get_perfectly_reversing_summary():
        console.print(f"[yellow]Reversed:[/yellow] {line}")


def _clusters_command(
    ctx: typer.Context,
    path: Path = typer.Argument(..., help="Project file (.xml or .xml.gz)."),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Only show the cluster containing this name."),
    limit: int = typer.Option(50, "--limit", min=0, help="Maximum clusters to list (0 for all)."),
) -> None:
    state = get_state(ctx)
    project = load_project(state, path)
    manager = project.name_cluster_manager
    if name is not None:
        target = project.names.get_from_full_name(name)
        cluster = manager.get_cluster(target) if target is not None else None
        if cluster is None:
            raise CLIError(f"No name cluster contains '{name}'")
        clusters = [cluster]
    else:
        clusters = manager.clusters
        if limit:
            clusters = clusters[:limit]

    table = Table(title=f"Name clusters ({len(manager)} total)", box=None)
    table.add_column("Representative")
    table.add_column("Names")
    table.add_column("Found in")
    table.add_column("Polytypic")
    for cluster in clusters:
        table.add_row(
            cluster.representative.full_name,
            ", ".join(member.full_name for member in cluster.names),
            cluster.get_date_range(),
            "yes" if cluster.is_polytypic(project) else "no",
        )
    console.print(table)


def _concepts_command(
    ctx: typer.Context,
    path: Path = typer.Argument(..., help="Project file (.xml or .xml.gz)."),
    name: str = typer.Argument(..., help="Any name in the cluster to inspect."),
) -> None:
    state = get_state(ctx)
    project = load_project(state, path)
    target = project.names.get_from_full_name(name)
    cluster = project.name_cluster_manager.get_cluster(target) if target is not None else None
    if cluster is None:
        raise CLIError(f"No name cluster contains '{name}'")

    table = Table(title=f"Taxon concepts for {cluster.representative}", box=None)
    table.add_column("Names")
    table.add_column("Dates")
    table.add_column("Starts with")
    table.add_column("Ends with")
    table.add_column("Ongoing")
    for concept in cluster.get_taxon_concepts(project):
        table.add_row(
            ", ".join(member.full_name for member in concept.name_list) or "-",
            concept.get_date_range(),
            "; ".join(str(change) for change in concept.starts_with) or "-",
            "; ".join(str(change) for change in concept.ends_with) or "-",
            "yes" if concept.is_ongoing(project) else "no",
        )
    console.print(table)


def _validate_command(
    ctx: typer.Context,
    path: Path = typer.Argument(..., help="Project file (.xml or .xml.gz)."),
    validator: List[str] = typer.Option(  # noqa: B008 - Typer signature
        [],
        "--validator",
        help="Validator key to run (repeatable); defaults to the enabled validators.",
    ),
    fail_on_severe: bool = typer.Option(
        False,
        "--fail-on-severe",
        help="Exit with status 1 when any severe finding is reported.",
    ),
) -> None:
    state = get_state(ctx)
    project = load_project(state, path)
    try:
        findings = project.validate(validator or None)
    except ValueError as exc:
        raise CLIError(str(exc)) from exc

    if not findings:
        console.print("[green]No validation findings.[/green]")
        return

    table = Table(title=f"Validation findings ({len(findings)})", box=None)
    table.add_column("Severity")
    table.add_column("Validator")
    table.add_column("Dataset")
    table.add_column("Target")
    table.add_column("Message")
    for finding in sorted(findings, key=lambda item: -item.severity.rank):
        data = finding.to_dict()
        table.add_row(data["severity"], data["validator"], data["dataset"] or "-", data["target"], data["message"])
    console.print(table)

    if fail_on_severe and any(finding.severity is Severity.SEVERE for finding in findings):
        raise typer.Exit(code=1)


app.command("summary")(_summary_command)
app.command("clusters")(_clusters_command)
app.command("concepts")(_concepts_command)
app.command("validate")(_validate_command)
