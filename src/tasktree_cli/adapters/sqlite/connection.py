"""Database connection management for the SQLite store.

This module provides a singleton connection manager for the local SQLite database,
ensuring proper connection lifecycle, WAL mode, and foreign key enforcement.
"""

from __future__ import annotations

import atexit
import sqlite3
import time
from pathlib import Path

from tasktree_cli.adapters.sqlite.migrations import ALL_MIGRATIONS
from tasktree_cli.adapters.sqlite.migrations.runner import MigrationRunner
from tasktree_cli.utils.logger import get_logger

MEMORY = ":memory:"

logger = get_logger("db")


def open_connection(
    db_path: str | Path, timeout: float = 30.0, *, migrate: bool = True
) -> sqlite3.Connection:
    """Open and configure a connection, running pending migrations.

    Args:
        db_path: Database file path, or ":memory:"
        timeout: Seconds to wait for another writer's lock
        migrate: Set up WAL and apply migrations. Reader connections pass
            False so opening them never needs the write lock.

    Returns:
        sqlite3.Connection in autocommit mode (transactions are explicit)
    """
    is_memory = str(db_path) == MEMORY
    if not is_memory:
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    connection = sqlite3.connect(
        str(db_path),
        check_same_thread=False,  # Writer is shared by the HTTP server's worker threads
        timeout=timeout,
        isolation_level=None,
    )
    connection.row_factory = sqlite3.Row
    connection.execute("PRAGMA foreign_keys = ON")
    if not migrate:
        return connection
    if not is_memory:
        connection.execute("PRAGMA journal_mode = WAL")

    applied = MigrationRunner(connection).run_migrations(ALL_MIGRATIONS)
    if applied:
        logger.info("database %s migrated (%d migration(s))", db_path, applied)

    return connection


class DatabaseConnection:
    """Singleton connection manager for the local SQLite store.

    Provides:
    - Single connection per process (connection reuse)
    - WAL mode for better concurrency
    - Foreign key constraint enforcement
    - Automatic directory creation
    - Graceful cleanup on exit
    """

    _instance: DatabaseConnection | None = None
    _connection: sqlite3.Connection | None = None
    _db_path: Path | None = None

    def __new__(cls) -> DatabaseConnection:
        """Ensure singleton pattern."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @classmethod
    def get_connection(
        cls, db_path: str | Path, timeout: float = 30.0
    ) -> sqlite3.Connection:
        """Get or create the database connection for ``db_path``."""
        instance = cls()
        db_path = Path(db_path)

        if instance._connection is not None and instance._db_path == db_path:
            return instance._connection

        if instance._connection is not None:
            instance._connection.close()

        instance._connection = open_connection(db_path, timeout=timeout)
        instance._db_path = db_path

        atexit.register(cls.close_connection)

        return instance._connection

    @classmethod
    def close_connection(cls) -> None:
        """Close database connection gracefully."""
        instance = cls()
        if instance._connection is not None:
            try:
                instance._connection.close()
            finally:
                instance._connection = None
                instance._db_path = None

    @classmethod
    def get_db_path(cls) -> Path | None:
        """Get current database path."""
        return cls()._db_path

    @staticmethod
    def execute_with_retry(
        connection: sqlite3.Connection,
        sql: str,
        params: tuple | list | dict | None = None,
        max_retries: int = 3,
    ) -> sqlite3.Cursor:
        """Execute SQL with retry logic for database locked errors.

        Args:
            connection: Database connection
            sql: SQL statement to execute
            params: Parameters for SQL statement
            max_retries: Maximum number of attempts

        Returns:
            Cursor after successful execution

        Raises:
            sqlite3.OperationalError: If database remains locked after retries
        """
        for attempt in range(max_retries):
            try:
                if params:
                    return connection.execute(sql, params)
                return connection.execute(sql)
            except sqlite3.OperationalError as e:
                if "database is locked" in str(e) and attempt < max_retries - 1:
                    # Exponential backoff: 0.1s, 0.2s, 0.4s
                    time.sleep(0.1 * (2**attempt))
                    continue
                raise

        raise sqlite3.OperationalError("Max retries exceeded")


def get_connection(db_path: str | Path, timeout: float = 30.0) -> sqlite3.Connection:
    """Helper function to get the shared database connection."""
    return DatabaseConnection.get_connection(db_path, timeout=timeout)
