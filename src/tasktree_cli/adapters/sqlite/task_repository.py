"""SQLite implementation of TaskRepository."""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Any

from tasktree_cli.adapters.sqlite.base import SqliteRepositoryBase
from tasktree_cli.adapters.sqlite.utils import (
    build_update_clause,
    next_timestamp,
    now_utc,
    placeholders,
    row_to_dict,
    to_iso,
)
from tasktree_cli.exceptions import (
    CorruptHierarchyError,
    InvalidReferenceError,
    NotFoundError,
)
from tasktree_cli.models import Task, TaskCreate, TaskFilters, TaskUpdate
from tasktree_cli.repositories import TaskRepository
from tasktree_cli.utils.logger import get_logger

logger = get_logger("tasks")

_COLUMNS = (
    "id, title, description, project_id, parent_id, status, priority, "
    "due_date, created_at, updated_at"
)


def _to_column(value: Any) -> Any:
    """Convert a model value to its stored representation."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, date):
        return value.isoformat()
    return value


class SqliteTaskRepository(SqliteRepositoryBase, TaskRepository):
    """SQLite implementation of task repository."""

    def list_all(self, filters: TaskFilters | None = None) -> list[Task]:
        """List all tasks with filtering."""
        filters = filters or TaskFilters()

        query = f"SELECT {_COLUMNS} FROM tasks t WHERE 1=1"
        params: list[Any] = []

        if filters.status:
            query += f" AND t.status IN ({placeholders(len(filters.status))})"
            params.extend(s.value for s in filters.status)

        if filters.project_id is not None:
            query += " AND t.project_id = ?"
            params.append(filters.project_id)
        elif filters.unassigned:
            query += " AND t.project_id IS NULL"

        if filters.priority:
            query += f" AND t.priority IN ({placeholders(len(filters.priority))})"
            params.extend(p.value for p in filters.priority)

        if filters.parent_id is not None:
            query += " AND t.parent_id = ?"
            params.append(filters.parent_id)

        if filters.search:
            query += " AND (t.title LIKE ? OR t.description LIKE ?)"
            search_term = f"%{filters.search}%"
            params.extend([search_term, search_term])

        if filters.due_after:
            query += " AND t.due_date >= ?"
            params.append(filters.due_after.isoformat())

        if filters.due_before:
            query += " AND t.due_date <= ?"
            params.append(filters.due_before.isoformat())

        query += " ORDER BY t.id ASC"

        if filters.limit is not None:
            query += " LIMIT ?"
            params.append(filters.limit)

        cursor = self._execute(query, params)
        return [Task(**row_to_dict(row)) for row in cursor.fetchall()]

    def get(self, task_id: int) -> Task:
        """Get a specific task by ID."""
        cursor = self._execute(f"SELECT {_COLUMNS} FROM tasks WHERE id = ?", (task_id,))
        row = cursor.fetchone()

        if not row:
            raise NotFoundError(f"Task not found: {task_id}", entity_id=task_id)

        return Task(**row_to_dict(row))

    def exists(self, task_id: int) -> bool:
        cursor = self._execute("SELECT 1 FROM tasks WHERE id = ?", (task_id,))
        return cursor.fetchone() is not None

    def create(self, task_data: TaskCreate) -> Task:
        """Create a new task, validating its project and parent references."""
        from tasktree_cli.services.cascade_service import CascadeEngine

        now = to_iso(now_utc())

        with self.transaction():
            self._check_project(task_data.project_id)
            if task_data.parent_id is not None:
                self._check_parent(task_data.parent_id)
                CascadeEngine(self).check_cycle(task_data.parent_id, None)

            cursor = self._execute(
                """INSERT INTO tasks (
                    title, description, project_id, parent_id, status, priority,
                    due_date, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    task_data.title,
                    task_data.description,
                    task_data.project_id,
                    task_data.parent_id,
                    task_data.status.value,
                    task_data.priority.value,
                    to_iso(task_data.due_date),
                    now,
                    now,
                ),
            )
            task_id = cursor.lastrowid

        logger.debug("created task %s (parent=%s)", task_id, task_data.parent_id)
        return self.get(task_id)

    def update(self, task_id: int, updates: TaskUpdate) -> Task:
        """Update an existing task."""
        from tasktree_cli.services.cascade_service import CascadeEngine

        update_dict = updates.changes()

        with self.transaction():
            current = self.get(task_id)

            if "project_id" in update_dict:
                self._check_project(update_dict["project_id"])

            new_parent = update_dict.get("parent_id")
            if new_parent is not None and new_parent != current.parent_id:
                if new_parent != task_id:
                    self._check_parent(new_parent)
                CascadeEngine(self).check_cycle(new_parent, task_id)

            row = {key: _to_column(value) for key, value in update_dict.items()}
            row["updated_at"] = to_iso(next_timestamp(current.updated_at))

            set_clause, params = build_update_clause(row)
            params.append(task_id)
            self._execute(f"UPDATE tasks SET {set_clause} WHERE id = ?", params)

        logger.debug("updated task %s: %s", task_id, sorted(update_dict))
        return self.get(task_id)

    def delete(self, task_id: int, recursive: bool = False) -> set[int]:
        """Delete a task; the cascade engine handles children."""
        from tasktree_cli.services.cascade_service import CascadeEngine

        return CascadeEngine(self).delete(task_id, recursive=recursive)

    def get_parent_id(self, task_id: int) -> int | None:
        cursor = self._execute("SELECT parent_id FROM tasks WHERE id = ?", (task_id,))
        row = cursor.fetchone()
        if row is None:
            raise NotFoundError(f"Task not found: {task_id}", entity_id=task_id)
        return row["parent_id"]

    def list_children(self, task_id: int) -> list[Task]:
        return self.list_all(TaskFilters(parent_id=task_id))

    def list_subtree(self, task_id: int, max_depth: int = 1000) -> list[Task]:
        """List a task and all of its descendants with a recursive CTE."""
        if not self.exists(task_id):
            raise NotFoundError(f"Task not found: {task_id}", entity_id=task_id)

        cursor = self._execute(
            f"""
            WITH RECURSIVE subtree(id, depth) AS (
                SELECT id, 0 FROM tasks WHERE id = ?
                UNION ALL
                SELECT t.id, s.depth + 1
                FROM tasks t
                INNER JOIN subtree s ON t.parent_id = s.id
                WHERE s.depth < ?
            )
            SELECT {", ".join("t." + c.strip() for c in _COLUMNS.split(","))},
                   MAX(s.depth) AS depth
            FROM subtree s
            INNER JOIN tasks t ON t.id = s.id
            GROUP BY t.id
            ORDER BY t.id ASC
            """,
            (task_id, max_depth),
        )
        rows = [row_to_dict(row) for row in cursor.fetchall()]

        if rows and max(row["depth"] for row in rows) >= max_depth:
            raise CorruptHierarchyError(
                f"Subtree of task {task_id} exceeds depth {max_depth}; "
                "parent_id links probably form a cycle",
                entity_id=task_id,
            )

        for row in rows:
            del row["depth"]
        return [Task(**row) for row in rows]

    def delete_many(self, task_ids: list[int]) -> None:
        with self.transaction():
            self.connection.executemany(
                "DELETE FROM tasks WHERE id = ?", [(task_id,) for task_id in task_ids]
            )
        logger.debug("deleted tasks %s", task_ids)

    def restore(self, task: Task) -> Task:
        """Insert a task verbatim, keeping its id and timestamps."""
        with self.transaction():
            self._execute(
                f"INSERT INTO tasks ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    task.id,
                    task.title,
                    task.description,
                    task.project_id,
                    task.parent_id,
                    task.status.value,
                    task.priority.value,
                    to_iso(task.due_date),
                    to_iso(task.created_at),
                    to_iso(task.updated_at),
                ),
            )
        return task

    def clear(self) -> None:
        with self.transaction():
            self._execute("DELETE FROM tasks")

    def _check_project(self, project_id: int | None) -> None:
        if project_id is None:
            return
        cursor = self._execute("SELECT 1 FROM projects WHERE id = ?", (project_id,))
        if cursor.fetchone() is None:
            raise InvalidReferenceError(
                f"Project does not exist: {project_id}", entity_id=project_id
            )

    def _check_parent(self, parent_id: int) -> None:
        if not self.exists(parent_id):
            raise InvalidReferenceError(
                f"Parent task does not exist: {parent_id}", entity_id=parent_id
            )
