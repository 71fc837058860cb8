"""Connection handling shared by the SQLite repositories."""

from __future__ import annotations

import sqlite3
from contextlib import AbstractContextManager
from pathlib import Path
from typing import Any

from tasktree_cli.adapters.sqlite.connection import DatabaseConnection, get_connection
from tasktree_cli.adapters.sqlite.utils import transaction


class SqliteRepositoryBase:
    """Lazily opened connection plus retrying execute."""

    def __init__(
        self,
        db_path: str | Path | None = None,
        *,
        connection: sqlite3.Connection | None = None,
        timeout: float = 30.0,
        retries: int = 3,
    ):
        """Initialize the repository.

        Args:
            db_path: Database file path; ignored when ``connection`` is given
            connection: Pre-opened connection (tests, shared storage context)
            timeout: Busy timeout used when opening the connection
            retries: Attempts for statements hitting "database is locked"
        """
        if connection is None and db_path is None:
            raise ValueError("Either db_path or connection is required")
        self.db_path = db_path
        self.timeout = timeout
        self.retries = retries
        self._connection = connection

    @property
    def connection(self) -> sqlite3.Connection:
        """Get or create database connection."""
        if self._connection is None:
            self._connection = get_connection(self.db_path, timeout=self.timeout)
        return self._connection

    def transaction(self) -> AbstractContextManager:
        """Open (or join) a write transaction on this repository's connection."""
        return transaction(self.connection)

    def _execute(self, sql: str, params: Any = None) -> sqlite3.Cursor:
        return DatabaseConnection.execute_with_retry(
            self.connection, sql, params, max_retries=self.retries
        )
