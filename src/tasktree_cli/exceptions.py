"""Typed errors raised by the TaskTree core.

Every failure surfaced by a repository, the cascade engine or the codec is one
of these. Callers (CLI commands, HTTP handlers) translate ``kind`` into exit
codes or status codes; the core never does that mapping itself.
"""

from __future__ import annotations

import pydantic


class TaskTreeError(Exception):
    """Base exception for all TaskTree errors.

    Attributes:
        kind: Stable machine-readable error category
        entity_id: Offending project/task id, when there is one
    """

    kind = "error"

    def __init__(self, message: str, *, entity_id: int | None = None):
        super().__init__(message)
        self.message = message
        self.entity_id = entity_id

    def to_dict(self) -> dict:
        return {"error": self.kind, "message": self.message, "id": self.entity_id}


class NotFoundError(TaskTreeError):
    """Raised when a referenced project or task id does not exist."""

    kind = "not_found"


class InvalidReferenceError(TaskTreeError):
    """Raised when a write points project_id/parent_id at a missing row."""

    kind = "invalid_reference"


class ConflictError(TaskTreeError):
    """Raised when a delete is blocked by dependents (no force/recursive flag)."""

    kind = "conflict"


class CycleDetectedError(TaskTreeError):
    """Raised when a parent reassignment would make a task its own ancestor."""

    kind = "cycle_detected"


class CorruptHierarchyError(TaskTreeError):
    """Raised when an already-cyclic or over-deep tree is found while reading."""

    kind = "corrupt_hierarchy"


class ValidationError(TaskTreeError):
    """Raised for empty titles/names, malformed dates and bad enum values."""

    kind = "validation"

    @classmethod
    def from_pydantic(cls, error: pydantic.ValidationError) -> ValidationError:
        """Flatten a pydantic error into one readable message."""
        details = "; ".join(
            f"{'.'.join(str(part) for part in item['loc']) or 'value'}: {item['msg']}"
            for item in error.errors()
        )
        return cls(f"Invalid input: {details}")


class InvalidImportError(TaskTreeError):
    """Raised when an import document is structurally or referentially broken.

    Attributes:
        problems: Every violation found, so the user can fix the file in one go
    """

    kind = "invalid_import"

    def __init__(self, message: str, *, problems: list[str] | None = None):
        super().__init__(message)
        self.problems = problems or []

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["problems"] = self.problems
        return data
