"""
Exit codes for TaskTree CLI.

Semantic exit codes so scripts can tell what happened without parsing output.
"""

from tasktree_cli.exceptions import (
    ConflictError,
    CorruptHierarchyError,
    CycleDetectedError,
    InvalidImportError,
    InvalidReferenceError,
    NotFoundError,
    TaskTreeError,
    ValidationError,
)

# Success
SUCCESS = 0

# General error (unspecified)
ERROR_GENERAL = 1

# Invalid arguments, validation error, bad reference or bad import file
ERROR_INVALID_ARGS = 2

# Resource not found
ERROR_NOT_FOUND = 5

# Operation blocked by existing data (dependents, cycles)
ERROR_CONFLICT = 7

# Stored hierarchy is corrupt
ERROR_CORRUPT = 8


_ERROR_CODES: dict[type[TaskTreeError], int] = {
    NotFoundError: ERROR_NOT_FOUND,
    InvalidReferenceError: ERROR_INVALID_ARGS,
    ValidationError: ERROR_INVALID_ARGS,
    InvalidImportError: ERROR_INVALID_ARGS,
    ConflictError: ERROR_CONFLICT,
    CycleDetectedError: ERROR_CONFLICT,
    CorruptHierarchyError: ERROR_CORRUPT,
}


def exit_code_for(error: BaseException) -> int:
    """Map a raised error to the process exit code."""
    for error_type, code in _ERROR_CODES.items():
        if isinstance(error, error_type):
            return code
    return ERROR_GENERAL


def get_exit_code_name(code: int) -> str:
    """Get the name of an exit code for display purposes."""
    code_names = {
        SUCCESS: "SUCCESS",
        ERROR_GENERAL: "ERROR_GENERAL",
        ERROR_INVALID_ARGS: "ERROR_INVALID_ARGS",
        ERROR_NOT_FOUND: "ERROR_NOT_FOUND",
        ERROR_CONFLICT: "ERROR_CONFLICT",
        ERROR_CORRUPT: "ERROR_CORRUPT",
    }
    return code_names.get(code, f"UNKNOWN({code})")
