"""SQLite implementation of ProjectRepository."""

from __future__ import annotations

from typing import Any

from tasktree_cli.adapters.sqlite.base import SqliteRepositoryBase
from tasktree_cli.adapters.sqlite.utils import (
    build_update_clause,
    next_timestamp,
    now_utc,
    row_to_dict,
    to_iso,
)
from tasktree_cli.exceptions import ConflictError, CorruptHierarchyError, NotFoundError
from tasktree_cli.models import Project, ProjectCreate, ProjectFilters, ProjectUpdate
from tasktree_cli.repositories import ProjectRepository
from tasktree_cli.utils.logger import get_logger

logger = get_logger("projects")

MAX_DEPTH = 1000


class SqliteProjectRepository(SqliteRepositoryBase, ProjectRepository):
    """SQLite implementation of project repository."""

    def list_all(self, filters: ProjectFilters | None = None) -> list[Project]:
        """List all projects with filtering."""
        filters = filters or ProjectFilters()

        query = "SELECT * FROM projects WHERE 1=1"
        params: list[Any] = []

        if filters.status:
            query += " AND status = ?"
            params.append(filters.status.value)

        if filters.search:
            query += " AND name LIKE ?"
            params.append(f"%{filters.search}%")

        query += " ORDER BY id ASC"

        cursor = self._execute(query, params)
        return [Project(**row_to_dict(row)) for row in cursor.fetchall()]

    def get(self, project_id: int) -> Project:
        """Get a specific project by ID."""
        cursor = self._execute("SELECT * FROM projects WHERE id = ?", (project_id,))
        row = cursor.fetchone()

        if not row:
            raise NotFoundError(f"Project not found: {project_id}", entity_id=project_id)

        return Project(**row_to_dict(row))

    def exists(self, project_id: int) -> bool:
        cursor = self._execute("SELECT 1 FROM projects WHERE id = ?", (project_id,))
        return cursor.fetchone() is not None

    def create(self, project_data: ProjectCreate) -> Project:
        """Create a new project."""
        now = to_iso(now_utc())

        with self.transaction():
            cursor = self._execute(
                """INSERT INTO projects (name, status, created_at, updated_at)
                   VALUES (?, ?, ?, ?)""",
                (project_data.name, project_data.status.value, now, now),
            )
            project_id = cursor.lastrowid

        logger.debug("created project %s", project_id)
        return self.get(project_id)

    def update(self, project_id: int, updates: ProjectUpdate) -> Project:
        """Update an existing project."""
        update_dict = updates.model_dump(exclude_none=True)

        with self.transaction():
            current = self.get(project_id)

            row = {
                key: value.value if key == "status" else value
                for key, value in update_dict.items()
            }
            row["updated_at"] = to_iso(next_timestamp(current.updated_at))

            set_clause, params = build_update_clause(row)
            params.append(project_id)
            self._execute(f"UPDATE projects SET {set_clause} WHERE id = ?", params)

        logger.debug("updated project %s: %s", project_id, sorted(update_dict))
        return self.get(project_id)

    def delete(self, project_id: int, force: bool = False) -> set[int]:
        """Delete a project, removing its tasks and their subtrees when forced."""
        with self.transaction():
            if not self.exists(project_id):
                raise NotFoundError(
                    f"Project not found: {project_id}", entity_id=project_id
                )

            task_count = self.count_tasks(project_id)
            if task_count and not force:
                raise ConflictError(
                    f"Project {project_id} has {task_count} task(s); "
                    "use force to delete them too",
                    entity_id=project_id,
                )

            doomed = self._doomed_task_ids(project_id) if task_count else []
            if doomed:
                self.connection.executemany(
                    "DELETE FROM tasks WHERE id = ?", [(task_id,) for task_id in doomed]
                )
            self._execute("DELETE FROM projects WHERE id = ?", (project_id,))

        logger.info("deleted project %s with %d task(s)", project_id, len(doomed))
        return set(doomed)

    def count_tasks(self, project_id: int) -> int:
        cursor = self._execute(
            "SELECT COUNT(*) FROM tasks WHERE project_id = ?", (project_id,)
        )
        return cursor.fetchone()[0]

    def restore(self, project: Project) -> Project:
        """Insert a project verbatim, keeping its id and timestamps."""
        with self.transaction():
            self._execute(
                """INSERT INTO projects (id, name, status, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?)""",
                (
                    project.id,
                    project.name,
                    project.status.value,
                    to_iso(project.created_at),
                    to_iso(project.updated_at),
                ),
            )
        return project

    def clear(self) -> None:
        with self.transaction():
            self._execute("DELETE FROM projects")

    def _doomed_task_ids(self, project_id: int) -> list[int]:
        """Tasks of the project plus all their descendants, deepest first.

        Descendants are included even when they belong to another project,
        since a child cannot outlive its parent.
        """
        cursor = self._execute(
            """
            WITH RECURSIVE doomed(id, depth) AS (
                SELECT id, 0 FROM tasks WHERE project_id = ?
                UNION ALL
                SELECT t.id, d.depth + 1
                FROM tasks t
                INNER JOIN doomed d ON t.parent_id = d.id
                WHERE d.depth < ?
            )
            SELECT id, MAX(depth) AS depth
            FROM doomed
            GROUP BY id
            ORDER BY depth DESC, id ASC
            """,
            (project_id, MAX_DEPTH),
        )
        rows = cursor.fetchall()
        if rows and rows[0]["depth"] >= MAX_DEPTH:
            raise CorruptHierarchyError(
                f"Tasks of project {project_id} nest deeper than {MAX_DEPTH}",
                entity_id=project_id,
            )
        return [row["id"] for row in rows]
