"""Storage bootstrap for TaskTree CLI.

Key Functions:
- get_storage_context(): Main entry point for repository and service access

Usage Pattern:
    from tasktree_cli.services.context_manager import get_storage_context

    storage = get_storage_context()
    tasks = storage.task_service.list_tasks()

The context opens one SQLite connection for the configured database path and
shares it between the repositories, so a cascade or an import that touches
both projects and tasks commits as one transaction. Threads that only read
use reading(), which hands each thread its own connection so an open write
transaction on the shared connection is never visible to them.
"""

from __future__ import annotations

import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from functools import cached_property, lru_cache
from pathlib import Path

from tasktree_cli.adapters.sqlite import (
    SqliteProjectRepository,
    SqliteTaskRepository,
    open_connection,
)
from tasktree_cli.adapters.sqlite.connection import MEMORY
from tasktree_cli.models.config_models import AppConfig
from tasktree_cli.services.codec_service import CodecService
from tasktree_cli.services.config_service import get_config_service
from tasktree_cli.services.project_service import ProjectService
from tasktree_cli.services.task_service import TaskService
from tasktree_cli.utils.logger import get_logger

logger = get_logger("storage")


class StorageContext:
    """Connection, repositories and services for one database.

    Attributes:
        db_path: Database file path (or ":memory:")
        connection: The shared SQLite connection
        write_lock: Serializes writers that share this context across threads.
            In-memory databases also take it for reads, since they cannot be
            opened a second time.
    """

    def __init__(
        self,
        db_path: str | Path,
        config: AppConfig | None = None,
        *,
        connection: sqlite3.Connection | None = None,
    ):
        self.config = config or AppConfig()
        self.db_path = db_path
        self.connection = connection or open_connection(
            db_path, timeout=self.config.storage.timeout
        )
        self.write_lock = threading.RLock()
        self._local = threading.local()
        self._readers: list[StorageContext] = []
        self._readers_lock = threading.Lock()
        logger.debug("storage context opened for %s", db_path)

    @cached_property
    def task_repository(self) -> SqliteTaskRepository:
        return SqliteTaskRepository(
            connection=self.connection, retries=self.config.storage.retries
        )

    @cached_property
    def project_repository(self) -> SqliteProjectRepository:
        return SqliteProjectRepository(
            connection=self.connection, retries=self.config.storage.retries
        )

    @cached_property
    def task_service(self) -> TaskService:
        return TaskService(
            self.task_repository,
            block_incomplete_children=self.config.behavior.block_incomplete_children,
        )

    @cached_property
    def project_service(self) -> ProjectService:
        return ProjectService(self.project_repository)

    @cached_property
    def codec_service(self) -> CodecService:
        return CodecService(self.project_repository, self.task_repository)

    @contextmanager
    def reading(self) -> Iterator[StorageContext]:
        """Yield a context for a consistent, committed-only read.

        File databases get a per-thread reader connection; the block runs in
        a deferred transaction, so every query in it sees one WAL snapshot.
        """
        if str(self.db_path) == MEMORY:
            with self.write_lock:
                yield self
            return

        reader = getattr(self._local, "reader", None)
        if reader is None:
            reader = StorageContext(
                self.db_path,
                self.config,
                connection=open_connection(
                    self.db_path, timeout=self.config.storage.timeout, migrate=False
                ),
            )
            self._local.reader = reader
            with self._readers_lock:
                self._readers.append(reader)
            logger.debug("reader connection opened on %s", threading.current_thread().name)

        if reader.connection.in_transaction:
            yield reader
            return
        reader.connection.execute("BEGIN")
        try:
            yield reader
        finally:
            reader.connection.rollback()

    def close(self) -> None:
        with self._readers_lock:
            for reader in self._readers:
                reader.close()
            self._readers.clear()
        self.connection.close()


@lru_cache(maxsize=1)
def get_storage_context() -> StorageContext:
    """Get a cached StorageContext for the configured database.

    Returns:
        StorageContext: Repositories and services bound to one connection
    """
    config_svc = get_config_service()
    return StorageContext(config_svc.db_path, config_svc.effective_config)
