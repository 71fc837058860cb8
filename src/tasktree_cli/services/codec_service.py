"""Export and import of the whole data set as a JSON document.

Document layout::

    {
        "format": "tasktree-export",
        "version": 1,
        "exported_at": "...",
        "stats": {"projects_count": 1, "tasks_count": 2},
        "projects": [{id, name, status, created_at, updated_at}, ...],
        "tasks": [{id, title, description, project_id, parent_id, status,
                   priority, due_date, created_at, updated_at}, ...]
    }

Imports are validated completely before anything is written, and run in a
single transaction.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, Literal

import pydantic
from pydantic import BaseModel, Field

from tasktree_cli.core.tree import build_forest
from tasktree_cli.exceptions import (
    CorruptHierarchyError,
    InvalidImportError,
    ValidationError,
)
from tasktree_cli.models import Project, ProjectCreate, Task, TaskCreate
from tasktree_cli.repositories import ProjectRepository, TaskRepository
from tasktree_cli.utils.logger import get_logger

logger = get_logger("codec")

EXPORT_FORMAT = "tasktree-export"
EXPORT_VERSION = 1


class ImportMode(StrEnum):
    """How an import combines with the existing store."""

    REPLACE = "replace"
    MERGE = "merge"


class ExportStats(BaseModel):
    projects_count: int = 0
    tasks_count: int = 0


class ExportDocument(BaseModel):
    """Structural schema of an export file."""

    format: Literal["tasktree-export"]
    version: Literal[1]
    exported_at: datetime | None = None
    stats: ExportStats | None = None
    projects: list[Project] = Field(default_factory=list)
    tasks: list[Task] = Field(default_factory=list)


@dataclass
class ImportResult:
    """Outcome of an import.

    Attributes:
        mode: Mode the import ran in
        projects: Number of projects written
        tasks: Number of tasks written
        project_ids: Document project id -> stored id
        task_ids: Document task id -> stored id
    """

    mode: ImportMode
    projects: int = 0
    tasks: int = 0
    project_ids: dict[int, int] = field(default_factory=dict)
    task_ids: dict[int, int] = field(default_factory=dict)


class CodecService:
    """Round-trip codec between the store and export documents.

    Both repositories must share one connection so that an import is a
    single transaction.
    """

    def __init__(
        self,
        project_repository: ProjectRepository,
        task_repository: TaskRepository,
    ):
        self.project_repository = project_repository
        self.task_repository = task_repository

    def export(self) -> dict[str, Any]:
        """Serialize every project and task, ids and links preserved."""
        projects = self.project_repository.list_all()
        tasks = self.task_repository.list_all()

        document = ExportDocument(
            format=EXPORT_FORMAT,
            version=EXPORT_VERSION,
            exported_at=datetime.now(UTC),
            stats=ExportStats(projects_count=len(projects), tasks_count=len(tasks)),
            projects=projects,
            tasks=tasks,
        )
        logger.info("exported %d project(s), %d task(s)", len(projects), len(tasks))
        return document.model_dump(mode="json")

    def parse_document(self, data: Any) -> ExportDocument:
        """Validate structure and referential consistency of a document.

        Raises:
            InvalidImportError: Listing every problem found
        """
        try:
            document = ExportDocument.model_validate(data)
        except pydantic.ValidationError as e:
            problems = [
                f"{'.'.join(str(part) for part in item['loc']) or 'document'}: {item['msg']}"
                for item in e.errors()
            ]
            raise InvalidImportError(
                "Import file is not a valid tasktree export", problems=problems
            ) from e

        problems = self.find_problems(document)
        if problems:
            raise InvalidImportError(
                f"Import file has {len(problems)} consistency problem(s)",
                problems=problems,
            )
        return document

    @staticmethod
    def find_problems(document: ExportDocument) -> list[str]:
        """Duplicate ids, dangling references and parent cycles."""
        problems: list[str] = []

        project_ids: set[int] = set()
        for project in document.projects:
            if project.id in project_ids:
                problems.append(f"project {project.id}: duplicate id")
            if not project.name.strip():
                problems.append(f"project {project.id}: name is empty")
            project_ids.add(project.id)

        task_ids: set[int] = set()
        for task in document.tasks:
            if task.id in task_ids:
                problems.append(f"task {task.id}: duplicate id")
            if not task.title.strip():
                problems.append(f"task {task.id}: title is empty")
            task_ids.add(task.id)

        for task in document.tasks:
            if task.project_id is not None and task.project_id not in project_ids:
                problems.append(
                    f"task {task.id}: project_id {task.project_id} is not in the file"
                )
            if task.parent_id is not None and task.parent_id not in task_ids:
                problems.append(
                    f"task {task.id}: parent_id {task.parent_id} is not in the file"
                )
            if task.parent_id == task.id:
                problems.append(f"task {task.id}: is its own parent")

        if len(task_ids) == len(document.tasks):
            try:
                list(build_forest(document.tasks).walk())
            except CorruptHierarchyError as e:
                problems.append(f"task {e.entity_id}: {e.message}")

        return problems

    def import_document(
        self, data: Any, mode: ImportMode | str = ImportMode.MERGE
    ) -> ImportResult:
        """Load a document into the store.

        ``replace`` empties the store and loads rows verbatim; ``merge`` adds
        rows with fresh ids and remaps project/parent references.

        Raises:
            InvalidImportError: If the document is invalid; nothing is written
        """
        try:
            mode = ImportMode(mode)
        except ValueError:
            raise ValidationError(
                f"Invalid import mode: {mode!r} (expected replace or merge)"
            ) from None
        document = self.parse_document(data)
        # Pre-order puts every parent before its children
        ordered_tasks = build_forest(document.tasks).tasks()
        result = ImportResult(mode=mode)

        with self.task_repository.transaction():
            if mode == ImportMode.REPLACE:
                self.task_repository.clear()
                self.project_repository.clear()
                for project in document.projects:
                    self.project_repository.restore(project)
                    result.project_ids[project.id] = project.id
                for task in ordered_tasks:
                    self.task_repository.restore(task)
                    result.task_ids[task.id] = task.id
            else:
                for project in document.projects:
                    created = self.project_repository.create(
                        ProjectCreate(name=project.name, status=project.status)
                    )
                    result.project_ids[project.id] = created.id
                for task in ordered_tasks:
                    created = self.task_repository.create(
                        TaskCreate(
                            title=task.title,
                            description=task.description,
                            project_id=result.project_ids.get(task.project_id),
                            parent_id=result.task_ids.get(task.parent_id),
                            status=task.status,
                            priority=task.priority,
                            due_date=task.due_date,
                        )
                    )
                    result.task_ids[task.id] = created.id

        result.projects = len(result.project_ids)
        result.tasks = len(result.task_ids)
        logger.info(
            "imported %d project(s), %d task(s) (%s)",
            result.projects,
            result.tasks,
            mode.value,
        )
        return result
