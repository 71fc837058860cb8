"""Repository abstraction layer for TaskTree CLI.

This module defines the abstract base classes (interfaces) for all repository types,
following the hexagonal architecture (Ports & Adapters) pattern.

Repositories are the only components that touch the database. Every write is
atomic per call; ``transaction()`` lets callers such as the cascade engine
group several writes into one all-or-nothing unit.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager

from tasktree_cli.models import (
    Project,
    ProjectCreate,
    ProjectFilters,
    ProjectUpdate,
    Task,
    TaskCreate,
    TaskFilters,
    TaskUpdate,
)


class TaskRepository(ABC):
    """Abstract base class for task persistence operations."""

    @abstractmethod
    def transaction(self) -> AbstractContextManager:
        """Open (or join) a write transaction."""

    @abstractmethod
    def list_all(self, filters: TaskFilters | None = None) -> list[Task]:
        """List tasks matching the SQL-expressible subset of ``filters``.

        Results are ordered by id ascending.
        """

    @abstractmethod
    def get(self, task_id: int) -> Task:
        """Get a specific task by ID.

        Raises:
            NotFoundError: If task does not exist
        """

    @abstractmethod
    def exists(self, task_id: int) -> bool:
        """Return True if a task with this id exists."""

    @abstractmethod
    def create(self, task_data: TaskCreate) -> Task:
        """Create a new task.

        Raises:
            InvalidReferenceError: If project_id or parent_id do not exist
        """

    @abstractmethod
    def update(self, task_id: int, updates: TaskUpdate) -> Task:
        """Apply a partial patch; ``updated_at`` is always refreshed.

        Raises:
            NotFoundError: If task does not exist
            InvalidReferenceError: If a new project_id/parent_id does not exist
            CycleDetectedError: If the new parent would create a loop
        """

    @abstractmethod
    def delete(self, task_id: int, recursive: bool = False) -> set[int]:
        """Delete a task, and its descendants when ``recursive``.

        Returns:
            Ids of every deleted task

        Raises:
            NotFoundError: If task does not exist
            ConflictError: If the task has children and ``recursive`` is False
        """

    @abstractmethod
    def get_parent_id(self, task_id: int) -> int | None:
        """Return the parent id of a task (None for roots).

        Raises:
            NotFoundError: If task does not exist
        """

    @abstractmethod
    def list_children(self, task_id: int) -> list[Task]:
        """List direct children of a task, ordered by id."""

    @abstractmethod
    def list_subtree(self, task_id: int, max_depth: int = 1000) -> list[Task]:
        """List a task and all its descendants, ordered by id.

        Raises:
            NotFoundError: If task does not exist
            CorruptHierarchyError: If the subtree is deeper than ``max_depth``
        """

    @abstractmethod
    def delete_many(self, task_ids: list[int]) -> None:
        """Delete rows in the given order (callers pass deepest-first)."""

    @abstractmethod
    def restore(self, task: Task) -> Task:
        """Insert a task verbatim (explicit id and timestamps), for imports."""

    @abstractmethod
    def clear(self) -> None:
        """Delete every task."""


class ProjectRepository(ABC):
    """Abstract base class for project persistence operations."""

    @abstractmethod
    def transaction(self) -> AbstractContextManager:
        """Open (or join) a write transaction."""

    @abstractmethod
    def list_all(self, filters: ProjectFilters | None = None) -> list[Project]:
        """List projects, ordered by id."""

    @abstractmethod
    def get(self, project_id: int) -> Project:
        """Get a specific project by ID.

        Raises:
            NotFoundError: If project does not exist
        """

    @abstractmethod
    def exists(self, project_id: int) -> bool:
        """Return True if a project with this id exists."""

    @abstractmethod
    def create(self, project_data: ProjectCreate) -> Project:
        """Create a new project."""

    @abstractmethod
    def update(self, project_id: int, updates: ProjectUpdate) -> Project:
        """Apply a partial patch; ``updated_at`` is always refreshed."""

    @abstractmethod
    def delete(self, project_id: int, force: bool = False) -> set[int]:
        """Delete a project.

        With ``force``, dependent tasks (and their descendants) go too.

        Returns:
            Ids of the tasks removed along with the project

        Raises:
            NotFoundError: If project does not exist
            ConflictError: If tasks reference the project and ``force`` is False
        """

    @abstractmethod
    def count_tasks(self, project_id: int) -> int:
        """Number of tasks assigned to the project."""

    @abstractmethod
    def restore(self, project: Project) -> Project:
        """Insert a project verbatim (explicit id and timestamps), for imports."""

    @abstractmethod
    def clear(self) -> None:
        """Delete every project (tasks must be cleared first)."""

