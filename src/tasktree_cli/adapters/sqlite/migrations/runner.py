"""Migration framework for SQLite database schema evolution.

This module provides a simple migration system with:
- Sequential version-based migrations
- Forward-only migration support
- Migration validation and tracking
- Automatic execution on startup
"""

from __future__ import annotations

import sqlite3
from abc import ABC, abstractmethod
from datetime import UTC, datetime

from tasktree_cli.adapters.sqlite.utils import transaction
from tasktree_cli.utils.logger import get_logger

logger = get_logger("migrations")


class Migration(ABC):
    """Base class for database migrations."""

    @property
    @abstractmethod
    def version(self) -> int:
        """Migration version number (sequential)."""

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable description of the migration."""

    @abstractmethod
    def up(self, connection: sqlite3.Connection) -> None:
        """Execute forward migration.

        Args:
            connection: Database connection
        """


class MigrationRunner:
    """Manages and executes database migrations."""

    def __init__(self, connection: sqlite3.Connection):
        """Initialize migration runner.

        Args:
            connection: Database connection (autocommit mode)
        """
        self.connection = connection
        self._ensure_version_table()

    def _ensure_version_table(self) -> None:
        """Create schema_version table if it doesn't exist."""
        self.connection.execute("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY,
                description TEXT NOT NULL,
                applied_at TEXT NOT NULL
            )
        """)

    def get_current_version(self) -> int:
        """Get current database schema version.

        Returns:
            Current version number (0 if no migrations applied)
        """
        cursor = self.connection.execute("SELECT MAX(version) FROM schema_version")
        result = cursor.fetchone()[0]
        return result if result is not None else 0

    def run_migration(self, migration: Migration) -> None:
        """Run a single migration inside its own transaction.

        Args:
            migration: Migration to execute

        Raises:
            ValueError: If migration version is not greater than current version
            RuntimeError: If the migration itself fails (nothing is applied)
        """
        current_version = self.get_current_version()

        if migration.version <= current_version:
            raise ValueError(
                f"Migration version {migration.version} is not greater than "
                f"current version {current_version}"
            )

        try:
            with transaction(self.connection):
                migration.up(self.connection)
                self.connection.execute(
                    """
                    INSERT INTO schema_version (version, description, applied_at)
                    VALUES (?, ?, ?)
                    """,
                    (migration.version, migration.description, datetime.now(UTC).isoformat()),
                )
        except sqlite3.Error as e:
            raise RuntimeError(f"Migration {migration.version} failed: {str(e)}") from e

        logger.info("applied migration %03d: %s", migration.version, migration.description)

    def run_migrations(self, migrations: list[Migration]) -> int:
        """Run all pending migrations.

        Args:
            migrations: List of migrations to potentially run

        Returns:
            Number of migrations applied
        """
        current_version = self.get_current_version()
        pending = [
            m for m in sorted(migrations, key=lambda m: m.version)
            if m.version > current_version
        ]

        for migration in pending:
            self.run_migration(migration)

        return len(pending)

    def get_migration_history(self) -> list[dict]:
        """Get history of applied migrations.

        Returns:
            List of migration records with version, description, and applied_at
        """
        cursor = self.connection.execute("""
            SELECT version, description, applied_at
            FROM schema_version
            ORDER BY version
            """)

        return [
            {"version": row[0], "description": row[1], "applied_at": row[2]}
            for row in cursor.fetchall()
        ]


def get_current_version(connection: sqlite3.Connection) -> int:
    """Helper function to get current schema version."""
    return MigrationRunner(connection).get_current_version()


def run_migrations(connection: sqlite3.Connection, migrations: list[Migration]) -> int:
    """Helper function to run migrations.

    Args:
        connection: Database connection
        migrations: List of migrations

    Returns:
        Number of migrations applied
    """
    return MigrationRunner(connection).run_migrations(migrations)
