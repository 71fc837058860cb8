"""Project management commands."""

import typer

from tasktree_cli.utils.typer_helpers import SuggestingGroup
from tasktree_cli.utils.ui.formatters import (
    format_info,
    format_single_item,
    format_success,
    render_projects,
)

from .decorators import command_wrapper
from .utils import OUTPUT_HELP, emit, format_options, get_storage, resolve_format

app = typer.Typer(cls=SuggestingGroup, help="Project management commands")


@app.command("add")
@command_wrapper
def add_project(
    name: str = typer.Argument(..., help="Project name"),
    output: str | None = typer.Option(None, "--output", "-o", help=OUTPUT_HELP),
) -> None:
    """Create a new project."""
    project = get_storage().project_service.create_project(name)
    format_success(f"Project created: {project.id}")
    if output:
        format_single_item(project, output, format_options())


@app.command("list")
@command_wrapper
def list_projects(
    archived: bool = typer.Option(False, "--archived", help="Show only archived projects"),
    all_: bool = typer.Option(False, "--all", "-a", help="Include archived projects"),
    search: str | None = typer.Option(None, "--search", "-s", help="Match project names"),
    output: str | None = typer.Option(None, "--output", "-o", help=OUTPUT_HELP),
) -> None:
    """List projects."""
    storage = get_storage()
    status = None if all_ else ("archived" if archived else "active")
    projects = storage.project_service.list_projects(status=status, search=search)
    counts = {p.id: storage.project_service.count_tasks(p.id) for p in projects}
    emit(render_projects(projects, resolve_format(output), format_options(), counts))


@app.command("show")
@command_wrapper
def show_project(
    project_id: int = typer.Argument(..., help="Project ID"),
    output: str | None = typer.Option(None, "--output", "-o", help=OUTPUT_HELP),
) -> None:
    """Show project details."""
    service = get_storage().project_service
    project = service.get_project(project_id)
    data = project.model_dump(mode="json")
    data["tasks"] = service.count_tasks(project_id)
    format_single_item(data, resolve_format(output), format_options())


@app.command("edit")
@command_wrapper
def edit_project(
    project_id: int = typer.Argument(..., help="Project ID"),
    name: str | None = typer.Option(None, "--name", "-n", help="New project name"),
) -> None:
    """Rename a project."""
    if name is None:
        format_info("Nothing to change")
        raise typer.Exit(0)
    project = get_storage().project_service.update_project(project_id, name=name)
    format_success(f"Project updated: {project.id}")


@app.command("archive")
@command_wrapper
def archive_project(project_id: int = typer.Argument(..., help="Project ID")) -> None:
    """Archive a project."""
    get_storage().project_service.archive_project(project_id)
    format_success(f"Project archived: {project_id}")


@app.command("unarchive")
@command_wrapper
def unarchive_project(project_id: int = typer.Argument(..., help="Project ID")) -> None:
    """Restore an archived project."""
    get_storage().project_service.unarchive_project(project_id)
    format_success(f"Project unarchived: {project_id}")


@app.command("delete")
@command_wrapper
def delete_project(
    project_id: int = typer.Argument(..., help="Project ID"),
    force: bool = typer.Option(
        False, "--force", "-f", help="Also delete the project's tasks and their subtasks"
    ),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete a project."""
    if not yes and not typer.confirm(
        f"Are you sure you want to delete project {project_id}?"
    ):
        format_info("Cancelled")
        raise typer.Exit(0)

    deleted = get_storage().project_service.delete_project(project_id, force=force)
    format_success(f"Project deleted: {project_id}")
    if deleted:
        format_info(f"Deleted {len(deleted)} task(s) with it")
