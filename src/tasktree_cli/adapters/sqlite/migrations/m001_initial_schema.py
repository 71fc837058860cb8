"""Initial database schema migration.

This migration creates all initial tables:
- projects
- tasks
- schema_version (created by migration system)
"""

import sqlite3

from tasktree_cli.adapters.sqlite import schema

from .runner import Migration


class InitialSchemaMigration(Migration):
    """Migration 001: Create initial database schema."""

    @property
    def version(self) -> int:
        return 1

    @property
    def description(self) -> str:
        return "Initial database schema"

    def up(self, connection: sqlite3.Connection) -> None:
        """Create all initial tables."""
        connection.execute(schema.CREATE_PROJECTS_TABLE)
        connection.execute(schema.CREATE_TASKS_TABLE)

        for index_sql in schema.ALL_INDEXES:
            connection.execute(index_sql)


# Export singleton instance
initial_migration = InitialSchemaMigration()
