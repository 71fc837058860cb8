"""TaskTree CLI domain models.

This package contains Pydantic models that represent the core domain entities
of the TaskTree application. These models are used throughout the application
for data validation, serialization, and type safety.
"""

from .config_models import AppConfig
from .core import (
    Priority,
    Project,
    ProjectCreate,
    ProjectFilters,
    ProjectStatus,
    ProjectUpdate,
    Task,
    TaskCreate,
    TaskFilters,
    TaskStatus,
    TaskUpdate,
)

__all__ = [
    # Task models
    "Task",
    "TaskCreate",
    "TaskUpdate",
    "TaskFilters",
    "TaskStatus",
    "Priority",
    # Project models
    "Project",
    "ProjectCreate",
    "ProjectUpdate",
    "ProjectFilters",
    "ProjectStatus",
    # Config models
    "AppConfig",
]
