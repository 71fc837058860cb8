"""Filter strategies.

A filter is a plain predicate ``Task -> bool``. The factories below build
predicates from criteria; ``all_of`` combines them with AND.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import date

from tasktree_cli.models import Priority, Task, TaskFilters, TaskStatus

Predicate = Callable[[Task], bool]


def match_all(task: Task) -> bool:
    return True


def all_of(*predicates: Predicate) -> Predicate:
    """AND-compose predicates; no predicates matches everything."""
    if not predicates:
        return match_all
    if len(predicates) == 1:
        return predicates[0]

    def predicate(task: Task) -> bool:
        return all(p(task) for p in predicates)

    return predicate


def by_status(statuses: Iterable[TaskStatus | str]) -> Predicate:
    wanted = {TaskStatus(s) for s in statuses}
    return lambda task: task.status in wanted


def by_project(project_id: int | None) -> Predicate:
    """Tasks of a project; ``None`` selects unassigned tasks."""
    return lambda task: task.project_id == project_id


def by_priority(priorities: Iterable[Priority | str]) -> Predicate:
    wanted = {Priority(p) for p in priorities}
    return lambda task: task.priority in wanted


def by_parent(parent_id: int) -> Predicate:
    return lambda task: task.parent_id == parent_id


def due_between(after: date | None = None, before: date | None = None) -> Predicate:
    """Inclusive due-date range; tasks without a due date never match."""

    def predicate(task: Task) -> bool:
        if task.due_date is None:
            return False
        if after is not None and task.due_date < after:
            return False
        if before is not None and task.due_date > before:
            return False
        return True

    return predicate


def overdue(today: date) -> Predicate:
    """Open tasks whose due date is before ``today``."""
    return lambda task: (
        task.due_date is not None
        and task.due_date < today
        and not task.status.is_closed
    )


def text_search(query: str) -> Predicate:
    """Case-insensitive substring match on title or description."""
    needle = query.casefold()
    return lambda task: needle in task.title.casefold() or (
        task.description is not None and needle in task.description.casefold()
    )


FILTERS: dict[str, Callable[..., Predicate]] = {
    "status": by_status,
    "project": by_project,
    "priority": by_priority,
    "parent": by_parent,
    "due": due_between,
    "overdue": overdue,
    "search": text_search,
}


def predicate_from_filters(filters: TaskFilters | None, today: date) -> Predicate:
    """Build the conjunction described by a ``TaskFilters`` model."""
    if filters is None:
        return match_all

    predicates: list[Predicate] = []
    if filters.status:
        predicates.append(by_status(filters.status))
    if filters.project_id is not None:
        predicates.append(by_project(filters.project_id))
    elif filters.unassigned:
        predicates.append(by_project(None))
    if filters.priority:
        predicates.append(by_priority(filters.priority))
    if filters.parent_id is not None:
        predicates.append(by_parent(filters.parent_id))
    if filters.due_after is not None or filters.due_before is not None:
        predicates.append(due_between(filters.due_after, filters.due_before))
    if filters.overdue:
        predicates.append(overdue(today))
    if filters.search:
        predicates.append(text_search(filters.search))

    return all_of(*predicates)
