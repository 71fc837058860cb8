"""Services module for TaskTree CLI - Business logic layer."""

from .cascade_service import CascadeEngine
from .codec_service import CodecService, ImportMode, ImportResult
from .project_service import ProjectService
from .task_service import TaskService

__all__ = [
    "TaskService",
    "ProjectService",
    "CascadeEngine",
    "CodecService",
    "ImportMode",
    "ImportResult",
]
