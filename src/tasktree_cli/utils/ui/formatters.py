"""Console messages and record output for CLI commands.

Task collections go through the pipeline formatters; this module covers the
rest: status messages, single records and project lists.
"""

from __future__ import annotations

import json
from typing import Any

import typer
import yaml
from pydantic import BaseModel
from rich import box
from rich.table import Table

from tasktree_cli.models import Project, ProjectStatus
from tasktree_cli.pipeline.formatters import FormatOptions, render_renderable
from tasktree_cli.utils.ui.console import get_console

console = get_console()


def format_error(message: str) -> None:
    """Format and display an error message."""
    console.print(f"[bold red]Error:[/bold red] {message}")


def format_success(message: str) -> None:
    """Format and display a success message."""
    console.print(f"[bold green]Success:[/bold green] {message}")


def format_warning(message: str) -> None:
    """Format and display a warning message."""
    console.print(f"[bold yellow]Warning:[/bold yellow] {message}")


def format_info(message: str) -> None:
    """Format and display an info message."""
    console.print(f"[bold blue]Info:[/bold blue] {message}")


def format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "yes" if value else "no"
    if isinstance(value, list):
        return ", ".join(str(v) for v in value)
    if value is None:
        return "-"
    return str(value)


def format_single_item(item: BaseModel | dict, output_format: str, options: FormatOptions) -> None:
    """Print one record (task, project, config section) as key/value pairs."""
    data = item.model_dump(mode="json") if isinstance(item, BaseModel) else item

    if output_format == "json":
        typer.echo(json.dumps(data, indent=2, ensure_ascii=False))
        return
    if output_format == "yaml":
        typer.echo(yaml.safe_dump(data, default_flow_style=False, sort_keys=False))
        return

    table = Table(show_header=False, box=None)
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    for key, value in data.items():
        table.add_row(key.replace("_", " ").title(), format_value(value))
    typer.echo(render_renderable(table, options))


def render_projects(
    projects: list[Project],
    output_format: str,
    options: FormatOptions,
    task_counts: dict[int, int] | None = None,
) -> str:
    """Render a project list in any of the task output formats."""
    if output_format in ("json", "yaml"):
        data = [project.model_dump(mode="json") for project in projects]
        if output_format == "json":
            return json.dumps(data, indent=2, ensure_ascii=False)
        return yaml.safe_dump(data, default_flow_style=False, sort_keys=False)

    if output_format == "markdown":
        return "\n".join(
            f"- [{'x' if p.status == ProjectStatus.ARCHIVED else ' '}] {p.name} (#{p.id})"
            for p in projects
        )

    if output_format in ("compact", "tree"):
        return "\n".join(f"{p.id} {p.status.value} {p.name}" for p in projects)

    if not projects:
        return "No projects found"

    table = Table(
        show_header=True,
        header_style="bold magenta",
        box=box.ROUNDED if options.unicode else box.ASCII,
    )
    table.add_column("ID", justify="right", style="cyan")
    table.add_column("Name")
    table.add_column("Status")
    if task_counts is not None:
        table.add_column("Tasks", justify="right")
    table.add_column("Created")

    for project in projects:
        row = [
            str(project.id),
            project.name,
            "[dim]archived[/dim]" if project.status == ProjectStatus.ARCHIVED else "active",
        ]
        if task_counts is not None:
            row.append(str(task_counts.get(project.id, 0)))
        row.append(project.created_at.strftime(options.date_format))
        table.add_row(*row)

    return render_renderable(table, options)
