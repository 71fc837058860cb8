"""Task management commands."""

import pydantic
import typer

from tasktree_cli.exceptions import ValidationError
from tasktree_cli.models import TaskFilters
from tasktree_cli.utils.dates import parse_date
from tasktree_cli.utils.typer_helpers import SuggestingGroup
from tasktree_cli.utils.ui.formatters import (
    format_info,
    format_single_item,
    format_success,
)

from .decorators import command_wrapper
from .utils import (
    OUTPUT_HELP,
    build_pipeline,
    emit,
    format_options,
    get_storage,
    resolve_format,
)

app = typer.Typer(cls=SuggestingGroup, help="Task management commands")

SORT_HELP = "Sort order: id, priority, due, created or score"


def build_filters(
    *,
    status: list[str] | None = None,
    project: int | None = None,
    unassigned: bool = False,
    priority: list[str] | None = None,
    due_after: str | None = None,
    due_before: str | None = None,
    overdue: bool = False,
    search: str | None = None,
    parent: int | None = None,
    limit: int | None = None,
) -> TaskFilters:
    """Turn command-line options into a validated TaskFilters."""
    try:
        return TaskFilters(
            status=status or None,
            project_id=project,
            unassigned=unassigned,
            priority=priority or None,
            due_after=parse_date(due_after),
            due_before=parse_date(due_before),
            overdue=overdue,
            search=search,
            parent_id=parent,
            limit=limit,
        )
    except pydantic.ValidationError as e:
        raise ValidationError.from_pydantic(e) from e


@app.command("add")
@command_wrapper
def add_task(
    title: str = typer.Argument(..., help="Task title"),
    description: str | None = typer.Option(None, "--description", "-d", help="Description"),
    project: int | None = typer.Option(None, "--project", "-p", help="Project ID"),
    parent: int | None = typer.Option(None, "--parent", help="Parent task ID"),
    priority: str = typer.Option("medium", "--priority", help="low, medium, high or urgent"),
    status: str = typer.Option("pending", "--status", help="Initial status"),
    due: str | None = typer.Option(None, "--due", help="Due date (YYYY-MM-DD, today, +3d)"),
    output: str | None = typer.Option(None, "--output", "-o", help=OUTPUT_HELP),
) -> None:
    """Create a new task."""
    task = get_storage().task_service.add_task(
        title,
        description=description,
        project_id=project,
        parent_id=parent,
        priority=priority,
        status=status,
        due_date=due,
    )
    format_success(f"Task created: {task.id}")
    if output:
        format_single_item(task, output, format_options())


@app.command("list")
@command_wrapper
def list_tasks(
    status: list[str] | None = typer.Option(None, "--status", help="Filter by status (repeatable)"),
    project: int | None = typer.Option(None, "--project", "-p", help="Filter by project ID"),
    unassigned: bool = typer.Option(False, "--unassigned", help="Only tasks without a project"),
    priority: list[str] | None = typer.Option(None, "--priority", help="Filter by priority (repeatable)"),
    due_after: str | None = typer.Option(None, "--due-after", help="Due on or after this date"),
    due_before: str | None = typer.Option(None, "--due-before", help="Due on or before this date"),
    overdue: bool = typer.Option(False, "--overdue", help="Only open tasks past their due date"),
    search: str | None = typer.Option(None, "--search", "-s", help="Search title and description"),
    parent: int | None = typer.Option(None, "--parent", help="Only direct children of this task"),
    limit: int | None = typer.Option(None, "--limit", help="Limit results"),
    sort: str | None = typer.Option(None, "--sort", help=SORT_HELP),
    output: str | None = typer.Option(None, "--output", "-o", help=OUTPUT_HELP),
) -> None:
    """List tasks as a flat collection."""
    filters = build_filters(
        status=status,
        project=project,
        unassigned=unassigned,
        priority=priority,
        due_after=due_after,
        due_before=due_before,
        overdue=overdue,
        search=search,
        parent=parent,
        limit=limit,
    )
    pipeline = build_pipeline(filters=filters, sort=sort, output=output)
    # Limit is applied after sorting, not in storage
    rows = get_storage().task_service.list_tasks(filters.model_copy(update={"limit": None}))
    emit(pipeline.run_flat(rows))


@app.command("tree")
@command_wrapper
def tree(
    root: int | None = typer.Argument(None, help="Show only the subtree under this task"),
    status: list[str] | None = typer.Option(None, "--status", help="Filter by status (repeatable)"),
    project: int | None = typer.Option(None, "--project", "-p", help="Filter by project ID"),
    unassigned: bool = typer.Option(False, "--unassigned", help="Only tasks without a project"),
    priority: list[str] | None = typer.Option(None, "--priority", help="Filter by priority (repeatable)"),
    due_after: str | None = typer.Option(None, "--due-after", help="Due on or after this date"),
    due_before: str | None = typer.Option(None, "--due-before", help="Due on or before this date"),
    overdue: bool = typer.Option(False, "--overdue", help="Only open tasks past their due date"),
    search: str | None = typer.Option(None, "--search", "-s", help="Search title and description"),
    sort: str | None = typer.Option(None, "--sort", help=SORT_HELP),
    output: str = typer.Option("tree", "--output", "-o", help=OUTPUT_HELP),
) -> None:
    """Show tasks as a hierarchy."""
    filters = build_filters(
        status=status,
        project=project,
        unassigned=unassigned,
        priority=priority,
        due_after=due_after,
        due_before=due_before,
        overdue=overdue,
        search=search,
    )
    pipeline = build_pipeline(filters=filters, sort=sort, output=output)
    forest = get_storage().task_service.get_tree(root)
    if not len(forest):
        format_info("No tasks found")
        return
    emit(pipeline.run_tree(forest))


@app.command("show")
@command_wrapper
def show_task(
    task_id: int = typer.Argument(..., help="Task ID"),
    output: str | None = typer.Option(None, "--output", "-o", help=OUTPUT_HELP),
) -> None:
    """Show task details."""
    service = get_storage().task_service
    task = service.get_task(task_id)
    output = resolve_format(output)
    if output in ("json", "yaml"):
        format_single_item(task, output, format_options())
        return

    data = task.model_dump(mode="json")
    data["children"] = [child.id for child in service.repository.list_children(task_id)]
    data["progress"] = f"{round(service.get_progress(task_id) * 100)}%"
    format_single_item(data, output, format_options())


@app.command("edit")
@command_wrapper
def edit_task(
    task_id: int = typer.Argument(..., help="Task ID"),
    title: str | None = typer.Option(None, "--title", "-t", help="New title"),
    description: str | None = typer.Option(None, "--description", "-d", help="New description"),
    clear_description: bool = typer.Option(False, "--clear-description", help="Remove the description"),
    project: int | None = typer.Option(None, "--project", "-p", help="Move to this project"),
    no_project: bool = typer.Option(False, "--no-project", help="Unassign from its project"),
    priority: str | None = typer.Option(None, "--priority", help="low, medium, high or urgent"),
    due: str | None = typer.Option(None, "--due", help="New due date"),
    clear_due: bool = typer.Option(False, "--clear-due", help="Remove the due date"),
) -> None:
    """Edit task fields. Only the options given are changed."""
    changes: dict = {}
    if title is not None:
        changes["title"] = title
    if clear_description:
        changes["description"] = None
    elif description is not None:
        changes["description"] = description
    if no_project:
        changes["project_id"] = None
    elif project is not None:
        changes["project_id"] = project
    if priority is not None:
        changes["priority"] = priority
    if clear_due:
        changes["due_date"] = None
    elif due is not None:
        changes["due_date"] = due

    if not changes:
        format_info("Nothing to change")
        raise typer.Exit(0)

    get_storage().task_service.update_task(task_id, **changes)
    format_success(f"Task updated: {task_id}")


@app.command("move")
@command_wrapper
def move_task(
    task_id: int = typer.Argument(..., help="Task ID"),
    parent: int | None = typer.Option(None, "--parent", help="New parent task ID"),
    root: bool = typer.Option(False, "--root", help="Make the task a top-level task"),
) -> None:
    """Move a task under another task, or to the top level."""
    if (parent is None) == (not root):
        raise ValidationError("Give exactly one of --parent or --root")

    get_storage().task_service.move_task(task_id, None if root else parent)
    if root:
        format_success(f"Task {task_id} is now a top-level task")
    else:
        format_success(f"Task {task_id} moved under task {parent}")


@app.command("status")
@command_wrapper
def set_status(
    task_id: int = typer.Argument(..., help="Task ID"),
    status: str = typer.Argument(..., help="pending, in_progress, done or cancelled"),
    recursive: bool = typer.Option(False, "--recursive", "-r", help="Apply to all subtasks too"),
) -> None:
    """Set the status of a task."""
    affected = get_storage().task_service.set_status(task_id, status, recursive=recursive)
    format_success(f"Status set to {status} on {len(affected)} task(s)")


@app.command("complete")
@command_wrapper
def complete_task(
    task_id: int = typer.Argument(..., help="Task ID"),
    recursive: bool = typer.Option(False, "--recursive", "-r", help="Complete all subtasks too"),
) -> None:
    """Mark a task as done."""
    affected = get_storage().task_service.complete_task(task_id, recursive=recursive)
    format_success(f"Completed {len(affected)} task(s)")


@app.command("reopen")
@command_wrapper
def reopen_task(
    task_id: int = typer.Argument(..., help="Task ID"),
    recursive: bool = typer.Option(False, "--recursive", "-r", help="Reopen all subtasks too"),
) -> None:
    """Move a task back to pending."""
    affected = get_storage().task_service.reopen_task(task_id, recursive=recursive)
    format_success(f"Reopened {len(affected)} task(s)")


@app.command("delete")
@command_wrapper
def delete_task(
    task_id: int = typer.Argument(..., help="Task ID"),
    recursive: bool = typer.Option(False, "--recursive", "-r", help="Delete all subtasks too"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete a task."""
    if not yes and not typer.confirm(f"Are you sure you want to delete task {task_id}?"):
        format_info("Cancelled")
        raise typer.Exit(0)

    deleted = get_storage().task_service.delete_task(task_id, recursive=recursive)
    format_success(f"Deleted {len(deleted)} task(s)")


@app.command("progress")
@command_wrapper
def show_progress(task_id: int = typer.Argument(..., help="Task ID")) -> None:
    """Show the completion ratio of a task's subtree."""
    ratio = get_storage().task_service.get_progress(task_id)
    emit(f"{round(ratio * 100)}%")
