"""Format strategies.

A formatter is a pure function ``render(view, options) -> str``. Everything
that affects rendering (colour, box style, date format, "today") travels in
``FormatOptions``; formatters never read configuration themselves.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date

import yaml
from rich import box
from rich.table import Table
from rich.text import Text

from tasktree_cli.core.tree import TaskForest
from tasktree_cli.exceptions import ValidationError
from tasktree_cli.models import Priority, Task, TaskStatus
from tasktree_cli.utils.ui.console import render_to_text

PRIORITY_COLORS = {
    Priority.URGENT: "bold red",
    Priority.HIGH: "bold orange3",
    Priority.MEDIUM: "yellow",
    Priority.LOW: "green",
}

STATUS_COLORS = {
    TaskStatus.PENDING: "white",
    TaskStatus.IN_PROGRESS: "cyan",
    TaskStatus.DONE: "green",
    TaskStatus.CANCELLED: "dim",
}

STATUS_ICONS = {
    TaskStatus.PENDING: "○",
    TaskStatus.IN_PROGRESS: "◐",
    TaskStatus.DONE: "●",
    TaskStatus.CANCELLED: "⊘",
}

STATUS_ASCII = {
    TaskStatus.PENDING: "[ ]",
    TaskStatus.IN_PROGRESS: "[~]",
    TaskStatus.DONE: "[x]",
    TaskStatus.CANCELLED: "[-]",
}


@dataclass(frozen=True)
class FormatOptions:
    """Rendering switches passed explicitly to every formatter."""

    color: bool = True
    unicode: bool = True
    date_format: str = "%Y-%m-%d"
    today: date | None = None
    width: int = 120


@dataclass
class TaskView:
    """Tasks in display order, with depth and progress for tree views."""

    tasks: list[Task]
    depths: dict[int, int] | None = None
    progress: dict[int, float] | None = None

    @property
    def is_tree(self) -> bool:
        return self.depths is not None

    @classmethod
    def flat(cls, tasks: list[Task]) -> TaskView:
        return cls(list(tasks))

    @classmethod
    def from_forest(
        cls, forest: TaskForest, progress: dict[int, float] | None = None
    ) -> TaskView:
        """Pre-order view of a forest.

        ``progress`` may come from a larger forest than the one shown, so a
        filtered tree still reports the progress of the full subtree.
        """
        walked = list(forest.walk())
        return cls(
            tasks=[node.task for node, _ in walked],
            depths={node.id: depth for node, depth in walked},
            progress=progress if progress is not None else forest.progress_map(),
        )

    def depth(self, task: Task) -> int:
        return self.depths.get(task.id, 0) if self.depths else 0

    def progress_of(self, task: Task) -> float:
        if self.progress and task.id in self.progress:
            return self.progress[task.id]
        return 1.0 if task.status == TaskStatus.DONE else 0.0


Formatter = Callable[[TaskView, FormatOptions], str]


def _format_date(value: date | None, options: FormatOptions) -> str:
    if value is None:
        return "-"
    return value.strftime(options.date_format)


def _is_overdue(task: Task, options: FormatOptions) -> bool:
    return (
        options.today is not None
        and task.due_date is not None
        and task.due_date < options.today
        and not task.status.is_closed
    )


def _status_marker(status: TaskStatus, options: FormatOptions) -> str:
    return STATUS_ICONS[status] if options.unicode else STATUS_ASCII[status]


def _task_dicts(view: TaskView) -> list[dict]:
    return [task.model_dump(mode="json") for task in view.tasks]


def render_json(view: TaskView, options: FormatOptions) -> str:
    """Array of task objects; tree views come out in pre-order."""
    return json.dumps(_task_dicts(view), indent=2, ensure_ascii=False)


def render_yaml(view: TaskView, options: FormatOptions) -> str:
    return yaml.safe_dump(
        _task_dicts(view), default_flow_style=False, sort_keys=False, allow_unicode=True
    )


def render_compact(view: TaskView, options: FormatOptions) -> str:
    """One line per task: id, status, priority, title, due."""
    lines = []
    for task in view.tasks:
        indent = "  " * view.depth(task)
        due = f" due:{_format_date(task.due_date, options)}" if task.due_date else ""
        lines.append(
            f"{indent}{task.id} {task.status.value} {task.priority.value} "
            f"{task.title}{due}"
        )
    return "\n".join(lines)


def render_tree(view: TaskView, options: FormatOptions) -> str:
    """Two spaces per depth level, one line per node, with progress."""
    lines = []
    for task in view.tasks:
        indent = "  " * view.depth(task)
        marker = _status_marker(task.status, options)
        percent = round(view.progress_of(task) * 100)
        lines.append(f"{indent}{marker} #{task.id} {task.title} ({percent}%)")
    return "\n".join(lines)


def render_markdown(view: TaskView, options: FormatOptions) -> str:
    """Nested checkbox list."""
    lines = []
    for task in view.tasks:
        indent = "  " * view.depth(task)
        checkbox = "[x]" if task.status == TaskStatus.DONE else "[ ]"
        line = f"{indent}- {checkbox} {task.title} (#{task.id})"
        if task.due_date:
            line += f" due {_format_date(task.due_date, options)}"
        lines.append(line)
    return "\n".join(lines)


def render_table(view: TaskView, options: FormatOptions) -> str:
    """Rich table, coloured by priority and status."""
    if not view.tasks:
        return "No tasks found"

    table = Table(
        show_header=True,
        header_style="bold magenta",
        box=box.ROUNDED if options.unicode else box.ASCII,
    )
    table.add_column("ID", justify="right", style="cyan")
    table.add_column("Title")
    table.add_column("Status")
    table.add_column("Priority")
    table.add_column("Due")
    table.add_column("Project", justify="right")
    if view.is_tree:
        table.add_column("Progress", justify="right")

    for task in view.tasks:
        title = Text("  " * view.depth(task) + task.title)
        if task.status.is_closed:
            title.stylize("dim")
        due = Text(
            _format_date(task.due_date, options),
            style="bold red" if _is_overdue(task, options) else "",
        )
        row = [
            str(task.id),
            title,
            Text(task.status.value, style=STATUS_COLORS[task.status]),
            Text(task.priority.value, style=PRIORITY_COLORS[task.priority]),
            due,
            str(task.project_id) if task.project_id is not None else "-",
        ]
        if view.is_tree:
            row.append(f"{round(view.progress_of(task) * 100)}%")
        table.add_row(*row)

    return render_renderable(table, options)


def render_renderable(renderable, options: FormatOptions) -> str:
    """Render any Rich object to a string according to ``options``."""
    return render_to_text(renderable, color=options.color, width=options.width)


FORMATTERS: dict[str, Formatter] = {
    "table": render_table,
    "json": render_json,
    "yaml": render_yaml,
    "tree": render_tree,
    "compact": render_compact,
    "markdown": render_markdown,
}


def get_formatter(name: str) -> Formatter:
    try:
        return FORMATTERS[name]
    except KeyError:
        raise ValidationError(
            f"Unknown format: {name!r} (expected one of {', '.join(FORMATTERS)})"
        ) from None
