"""Shared test fixtures and configuration.

Provides in-memory SQLite storage with migrations applied, and isolates
configuration and database files from the real user directories.
"""

from __future__ import annotations

from unittest.mock import patch

import pytest

from tasktree_cli.adapters.sqlite import (
    SqliteProjectRepository,
    SqliteTaskRepository,
    open_connection,
)
from tasktree_cli.models.config_models import AppConfig
from tasktree_cli.services.context_manager import StorageContext


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------


@pytest.fixture
def connection():
    """Fresh in-memory database with the full schema."""
    conn = open_connection(":memory:")
    yield conn
    conn.close()


@pytest.fixture
def task_repo(connection) -> SqliteTaskRepository:
    return SqliteTaskRepository(connection=connection)


@pytest.fixture
def project_repo(connection) -> SqliteProjectRepository:
    return SqliteProjectRepository(connection=connection)


@pytest.fixture
def app_config() -> AppConfig:
    return AppConfig()


@pytest.fixture
def storage(connection, app_config) -> StorageContext:
    """Storage context sharing the in-memory connection."""
    return StorageContext(":memory:", app_config, connection=connection)


@pytest.fixture
def task_service(storage):
    return storage.task_service


@pytest.fixture
def project_service(storage):
    return storage.project_service


@pytest.fixture
def sample_tree(project_service, task_service):
    """P1 with task A; B and C under A; D under B; E unassigned.

    Returns a dict of name -> id.
    """
    p1 = project_service.create_project("P1")
    a = task_service.add_task("A", project_id=p1.id, priority="high")
    b = task_service.add_task("B", project_id=p1.id, parent_id=a.id)
    c = task_service.add_task("C", project_id=p1.id, parent_id=a.id, priority="low")
    d = task_service.add_task("D", parent_id=b.id, priority="urgent")
    e = task_service.add_task("E")
    return {"P1": p1.id, "A": a.id, "B": b.id, "C": c.id, "D": d.id, "E": e.id}


# ---------------------------------------------------------------------------
# Config isolation helpers
# ---------------------------------------------------------------------------


@pytest.fixture()
def tmp_config(tmp_path):
    """Provide a real ConfigService backed by a temporary directory.

    Patches platform dirs so config/data files land in *tmp_path* only.
    Also clears the lru_cache so each test gets a fresh service instance.
    """
    from tasktree_cli.services.config_service import ConfigService, get_config_service

    tmpdir = str(tmp_path)
    get_config_service.cache_clear()
    with patch("tasktree_cli.services.config_service.user_config_dir", return_value=tmpdir):
        with patch("tasktree_cli.services.config_service.user_data_dir", return_value=tmpdir):
            yield ConfigService()
    get_config_service.cache_clear()


@pytest.fixture()
def cli_env(tmp_path, monkeypatch):
    """Run CLI commands against a throwaway database and config directory."""
    from tasktree_cli.services.config_service import get_config_service
    from tasktree_cli.services.context_manager import get_storage_context

    monkeypatch.setenv("TASKTREE_DB", str(tmp_path / "cli.db"))
    monkeypatch.setenv("TASKTREE_NO_COLOR", "1")
    monkeypatch.setenv("TASKTREE_ASCII", "1")

    tmpdir = str(tmp_path)
    get_config_service.cache_clear()
    get_storage_context.cache_clear()
    with patch("tasktree_cli.services.config_service.user_config_dir", return_value=tmpdir):
        with patch("tasktree_cli.services.config_service.user_data_dir", return_value=tmpdir):
            yield tmp_path
            if get_storage_context.cache_info().currsize:
                get_storage_context().close()
    get_storage_context.cache_clear()
    get_config_service.cache_clear()
