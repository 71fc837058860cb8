"""SQLite adapter module - Local database storage implementation."""

from tasktree_cli.adapters.sqlite.connection import (
    DatabaseConnection,
    get_connection,
    open_connection,
)
from tasktree_cli.adapters.sqlite.project_repository import SqliteProjectRepository
from tasktree_cli.adapters.sqlite.task_repository import SqliteTaskRepository

__all__ = [
    "SqliteTaskRepository",
    "SqliteProjectRepository",
    "DatabaseConnection",
    "get_connection",
    "open_connection",
]
