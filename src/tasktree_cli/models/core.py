"""Project and task data models."""

from __future__ import annotations

from datetime import date, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProjectStatus(StrEnum):
    """Lifecycle label for a project."""

    ACTIVE = "active"
    ARCHIVED = "archived"


class TaskStatus(StrEnum):
    """Task status label.

    Any status may move to any other status; there is no guarded state machine.
    """

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    DONE = "done"
    CANCELLED = "cancelled"

    @property
    def is_closed(self) -> bool:
        return self in (TaskStatus.DONE, TaskStatus.CANCELLED)


class Priority(StrEnum):
    """Task priority, ordered urgent > high > medium > low."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"

    @property
    def rank(self) -> int:
        """Numeric rank, 0 for low up to 3 for urgent."""
        return _PRIORITY_RANKS[self]


_PRIORITY_RANKS = {
    Priority.LOW: 0,
    Priority.MEDIUM: 1,
    Priority.HIGH: 2,
    Priority.URGENT: 3,
}


def _require_text(value: str | None, field: str) -> str | None:
    if value is None:
        return None
    value = value.strip()
    if not value:
        raise ValueError(f"{field} must not be empty")
    return value


class Project(BaseModel):
    """Project model representing a complete project entity.

    Attributes:
        id: Unique integer identifier
        name: Project name
        status: active or archived
        created_at: Creation timestamp (UTC)
        updated_at: Last update timestamp (UTC)
    """

    id: int
    name: str
    status: ProjectStatus = ProjectStatus.ACTIVE
    created_at: datetime
    updated_at: datetime


class ProjectCreate(BaseModel):
    """Model for creating a new project."""

    name: str
    status: ProjectStatus = ProjectStatus.ACTIVE

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _require_text(v, "name")


class ProjectUpdate(BaseModel):
    """Model for updating an existing project.

    All fields are optional - only provided fields will be updated.
    """

    name: str | None = None
    status: ProjectStatus | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str | None) -> str | None:
        return _require_text(v, "name")


class ProjectFilters(BaseModel):
    """Filters for querying projects.

    Attributes:
        status: Only projects with this status
        search: Case-insensitive substring match on the name
    """

    status: ProjectStatus | None = None
    search: str | None = None


class Task(BaseModel):
    """Task model representing a complete task entity.

    Field names and order match the exported JSON task object.

    Attributes:
        id: Unique integer identifier
        title: Short task title
        description: Optional detailed description
        project_id: Optional owning project (weak reference)
        parent_id: Optional parent task (weak reference, None for roots)
        status: pending, in_progress, done or cancelled
        priority: low, medium, high or urgent
        due_date: Optional calendar date
        created_at: Creation timestamp (UTC)
        updated_at: Last update timestamp (UTC)
    """

    id: int
    title: str
    description: str | None = None
    project_id: int | None = None
    parent_id: int | None = None
    status: TaskStatus = TaskStatus.PENDING
    priority: Priority = Priority.MEDIUM
    due_date: date | None = None
    created_at: datetime
    updated_at: datetime


class TaskCreate(BaseModel):
    """Model for creating a new task.

    Attributes:
        title: Task title (required, non-empty)
        description: Optional detailed description
        project_id: Optional project reference
        parent_id: Optional parent task reference
        status: Initial status
        priority: Priority level
        due_date: Optional due date
    """

    title: str
    description: str | None = None
    project_id: int | None = None
    parent_id: int | None = None
    status: TaskStatus = TaskStatus.PENDING
    priority: Priority = Priority.MEDIUM
    due_date: date | None = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return _require_text(v, "title")


class TaskUpdate(BaseModel):
    """Partial patch for an existing task.

    Only fields that were explicitly set are applied; setting a nullable field
    to None clears it (e.g. ``parent_id=None`` moves the task to the root).
    """

    title: str | None = None
    description: str | None = None
    project_id: int | None = None
    parent_id: int | None = None
    status: TaskStatus | None = None
    priority: Priority | None = None
    due_date: date | None = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str | None) -> str | None:
        return _require_text(v, "title")

    def changes(self) -> dict:
        """Return only the explicitly supplied fields."""
        data = self.model_dump(exclude_unset=True)
        for key in ("title", "status", "priority"):
            if key in data and data[key] is None:
                del data[key]
        return data


class TaskFilters(BaseModel):
    """Criteria for selecting tasks.

    The repository uses the cheap SQL-expressible subset; the filter pipeline
    evaluates every field as an in-memory predicate.

    Attributes:
        status: Keep tasks whose status is in this list
        project_id: Keep tasks of this project
        unassigned: Keep tasks without a project
        priority: Keep tasks whose priority is in this list
        due_after: Keep tasks due on or after this date
        due_before: Keep tasks due on or before this date
        overdue: Keep open tasks whose due date has passed
        search: Case-insensitive substring of title or description
        parent_id: Keep direct children of this task
    """

    model_config = ConfigDict(use_enum_values=False)

    status: list[TaskStatus] | None = None
    project_id: int | None = None
    unassigned: bool = False
    priority: list[Priority] | None = None
    due_after: date | None = None
    due_before: date | None = None
    overdue: bool = False
    search: str | None = None
    parent_id: int | None = None
    limit: int | None = Field(default=None, ge=1)
