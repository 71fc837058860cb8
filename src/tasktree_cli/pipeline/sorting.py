"""Sort strategies.

Each strategy takes tasks plus a ``SortContext`` and returns a new list.
Every ordering falls back to ascending id, so results are deterministic.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import date

from tasktree_cli.exceptions import ValidationError
from tasktree_cli.models import Task
from tasktree_cli.models.config_models import ScoringConfig
from tasktree_cli.utils.dates import days_until


@dataclass(frozen=True)
class SortContext:
    """Inputs for date-dependent and weighted sorts."""

    today: date
    priority_weight: float = 0.6
    due_weight: float = 0.4
    horizon_days: int = 14

    @classmethod
    def from_config(cls, scoring: ScoringConfig, today: date) -> SortContext:
        return cls(
            today=today,
            priority_weight=scoring.priority_weight,
            due_weight=scoring.due_weight,
            horizon_days=scoring.horizon_days,
        )


SortStrategy = Callable[[Iterable[Task], SortContext], list[Task]]


def due_proximity(task: Task, context: SortContext) -> float:
    """1.0 when due today or overdue, falling to 0.0 at the horizon."""
    if task.due_date is None:
        return 0.0
    remaining = days_until(task.due_date, context.today)
    return min(1.0, max(0.0, 1.0 - remaining / context.horizon_days))


def weighted_score(task: Task, context: SortContext) -> float:
    return (
        context.priority_weight * task.priority.rank / 3
        + context.due_weight * due_proximity(task, context)
    )


def by_id(tasks: Iterable[Task], context: SortContext | None = None) -> list[Task]:
    return sorted(tasks, key=lambda t: t.id)


def by_priority(tasks: Iterable[Task], context: SortContext | None = None) -> list[Task]:
    """Urgent first."""
    return sorted(tasks, key=lambda t: (-t.priority.rank, t.id))


def by_due(tasks: Iterable[Task], context: SortContext | None = None) -> list[Task]:
    """Earliest due date first; tasks without one go last."""
    return sorted(
        tasks,
        key=lambda t: (t.due_date is None, t.due_date or date.max, t.id),
    )


def by_created(tasks: Iterable[Task], context: SortContext | None = None) -> list[Task]:
    return sorted(tasks, key=lambda t: (t.created_at, t.id))


def by_score(tasks: Iterable[Task], context: SortContext) -> list[Task]:
    """Highest weighted score first."""
    return sorted(tasks, key=lambda t: (-weighted_score(t, context), t.id))


SORTS: dict[str, SortStrategy] = {
    "id": by_id,
    "priority": by_priority,
    "due": by_due,
    "created": by_created,
    "score": by_score,
}


def get_sort(name: str) -> SortStrategy:
    try:
        return SORTS[name]
    except KeyError:
        raise ValidationError(
            f"Unknown sort: {name!r} (expected one of {', '.join(SORTS)})"
        ) from None
