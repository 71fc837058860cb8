"""Task service - Business logic for task operations.

This service layer sits between commands (CLI or HTTP) and repositories,
providing a clean API for task-related business logic. Hierarchy-aware
operations are delegated to the cascade engine.
"""

from __future__ import annotations

from datetime import date
from typing import Any

import pydantic

from tasktree_cli.core.tree import TaskForest, build_forest
from tasktree_cli.exceptions import ValidationError
from tasktree_cli.models import (
    Priority,
    Task,
    TaskCreate,
    TaskFilters,
    TaskStatus,
    TaskUpdate,
)
from tasktree_cli.repositories import TaskRepository
from tasktree_cli.services.cascade_service import CascadeEngine
from tasktree_cli.utils.dates import parse_date


class TaskService:
    """Service for task business logic.

    This service encapsulates business rules and orchestrates task operations
    using the task repository.
    """

    def __init__(
        self,
        task_repository: TaskRepository,
        *,
        block_incomplete_children: bool = False,
    ):
        """Initialize the task service.

        Args:
            task_repository: TaskRepository implementation for data access
            block_incomplete_children: Refuse non-recursive completion of a
                task whose children are still open
        """
        self.repository = task_repository
        self.cascade = CascadeEngine(
            task_repository, block_incomplete_children=block_incomplete_children
        )

    def list_tasks(self, filters: TaskFilters | None = None) -> list[Task]:
        """List tasks matching the storage-level part of ``filters``.

        The full predicate (including ``overdue``) is applied by the pipeline.
        """
        return self.repository.list_all(filters)

    def get_task(self, task_id: int) -> Task:
        """Get a specific task by ID."""
        return self.repository.get(task_id)

    def add_task(
        self,
        title: str,
        *,
        description: str | None = None,
        project_id: int | None = None,
        parent_id: int | None = None,
        priority: Priority | str = Priority.MEDIUM,
        status: TaskStatus | str = TaskStatus.PENDING,
        due_date: str | date | None = None,
    ) -> Task:
        """Create a new task.

        Args:
            title: Task title (required)
            description: Detailed description
            project_id: Owning project ID
            parent_id: Parent task ID (None for a root task)
            priority: Priority level
            status: Initial status
            due_date: Due date (ISO date, relative keyword, or date)

        Returns:
            Created Task object
        """
        try:
            task_data = TaskCreate(
                title=title,
                description=description,
                project_id=project_id,
                parent_id=parent_id,
                priority=priority,
                status=status,
                due_date=parse_date(due_date),
            )
        except pydantic.ValidationError as e:
            raise ValidationError.from_pydantic(e) from e

        return self.repository.create(task_data)

    def update_task(self, task_id: int, **changes: Any) -> Task:
        """Apply a partial update.

        Only the keyword arguments given are changed; passing ``None`` for a
        nullable field (description, project_id, parent_id, due_date) clears it.
        """
        if "due_date" in changes:
            changes["due_date"] = parse_date(changes["due_date"])
        try:
            updates = TaskUpdate(**changes)
        except pydantic.ValidationError as e:
            raise ValidationError.from_pydantic(e) from e

        return self.repository.update(task_id, updates)

    def move_task(self, task_id: int, parent_id: int | None) -> Task:
        """Reparent a task; ``None`` makes it a root."""
        return self.repository.update(task_id, TaskUpdate(parent_id=parent_id))

    def set_status(
        self, task_id: int, status: TaskStatus | str, recursive: bool = False
    ) -> set[int]:
        try:
            status = TaskStatus(status)
        except ValueError:
            raise ValidationError(
                f"Invalid status: {status!r} "
                f"(expected one of {', '.join(s.value for s in TaskStatus)})"
            ) from None
        return self.cascade.set_status(task_id, status, recursive=recursive)

    def complete_task(self, task_id: int, recursive: bool = False) -> set[int]:
        """Mark a task done, optionally cascading to its subtree."""
        return self.cascade.complete(task_id, recursive=recursive)

    def reopen_task(self, task_id: int, recursive: bool = False) -> set[int]:
        """Move a task back to pending, optionally cascading to its subtree."""
        return self.cascade.reopen(task_id, recursive=recursive)

    def delete_task(self, task_id: int, recursive: bool = False) -> set[int]:
        """Delete a task, or its whole subtree when recursive."""
        return self.cascade.delete(task_id, recursive=recursive)

    def get_progress(self, task_id: int) -> float:
        return self.cascade.progress(task_id)

    def get_tree(self, root_id: int | None = None) -> TaskForest:
        """Build the whole task forest, or the subtree under ``root_id``."""
        if root_id is not None:
            return self.cascade.subtree(root_id)
        return build_forest(self.repository.list_all())
