"""HTTP surface for TaskTree (FastAPI).

Handlers are thin: they call the same services as the CLI and translate
typed errors into status codes. Writes are serialized with the storage
context's write lock. Reads go through ``storage.reading()`` and run
concurrently in FastAPI's thread pool, each seeing only committed data.
"""

from __future__ import annotations

from datetime import date
from typing import Any

from fastapi import APIRouter, Body, Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from tasktree_cli import __version__
from tasktree_cli.exceptions import TaskTreeError
from tasktree_cli.models import (
    Priority,
    Project,
    ProjectCreate,
    ProjectStatus,
    ProjectUpdate,
    Task,
    TaskCreate,
    TaskFilters,
    TaskStatus,
    TaskUpdate,
)
from tasktree_cli.pipeline import Pipeline
from tasktree_cli.pipeline.formatters import TaskView
from tasktree_cli.services.codec_service import ImportMode
from tasktree_cli.services.context_manager import StorageContext, get_storage_context
from tasktree_cli.utils.dates import today
from tasktree_cli.utils.logger import get_logger

logger = get_logger("server")

STATUS_CODES = {
    "not_found": 404,
    "invalid_reference": 422,
    "conflict": 409,
    "cycle_detected": 409,
    "corrupt_hierarchy": 500,
    "invalid_import": 422,
    "validation": 422,
}


def get_storage(request: Request) -> StorageContext:
    return request.app.state.storage


def task_filters(
    status: list[TaskStatus] | None = Query(None),
    project_id: int | None = None,
    unassigned: bool = False,
    priority: list[Priority] | None = Query(None),
    due_after: date | None = None,
    due_before: date | None = None,
    overdue: bool = False,
    search: str | None = None,
    parent_id: int | None = None,
    limit: int | None = Query(None, ge=1),
) -> TaskFilters:
    return TaskFilters(
        status=status,
        project_id=project_id,
        unassigned=unassigned,
        priority=priority,
        due_after=due_after,
        due_before=due_before,
        overdue=overdue,
        search=search,
        parent_id=parent_id,
        limit=limit,
    )


projects_router = APIRouter(prefix="/projects", tags=["projects"])
tasks_router = APIRouter(prefix="/tasks", tags=["tasks"])
data_router = APIRouter(tags=["data"])


# ==========================
#  PROJECTS
# ==========================
@projects_router.get("", response_model=list[Project])
def list_projects(
    status: ProjectStatus | None = None,
    search: str | None = None,
    storage: StorageContext = Depends(get_storage),
):
    with storage.reading() as reader:
        return reader.project_service.list_projects(status=status, search=search)


@projects_router.post("", response_model=Project, status_code=201)
def create_project(data: ProjectCreate, storage: StorageContext = Depends(get_storage)):
    with storage.write_lock:
        return storage.project_service.create_project(data.name)


@projects_router.get("/{project_id}", response_model=Project)
def get_project(project_id: int, storage: StorageContext = Depends(get_storage)):
    with storage.reading() as reader:
        return reader.project_service.get_project(project_id)


@projects_router.patch("/{project_id}", response_model=Project)
def update_project(
    project_id: int, data: ProjectUpdate, storage: StorageContext = Depends(get_storage)
):
    with storage.write_lock:
        return storage.project_service.update_project(
            project_id, name=data.name, status=data.status
        )


@projects_router.delete("/{project_id}")
def delete_project(
    project_id: int, force: bool = False, storage: StorageContext = Depends(get_storage)
):
    with storage.write_lock:
        deleted = storage.project_service.delete_project(project_id, force=force)
    return {"id": project_id, "deleted_tasks": sorted(deleted)}


# ==========================
#  TASKS
# ==========================
@tasks_router.get("", response_model=list[Task])
def list_tasks(
    filters: TaskFilters = Depends(task_filters),
    sort: str | None = None,
    storage: StorageContext = Depends(get_storage),
):
    pipeline = Pipeline.from_config(
        storage.config, filters=filters, sort=sort, output_format="json", today=today()
    )
    with storage.reading() as reader:
        rows = reader.task_service.list_tasks(filters.model_copy(update={"limit": None}))
    return pipeline.select(rows)


@tasks_router.get("/tree")
def task_tree(
    root_id: int | None = None,
    filters: TaskFilters = Depends(task_filters),
    sort: str | None = None,
    storage: StorageContext = Depends(get_storage),
) -> list[dict[str, Any]]:
    """Pre-order list of tasks with their depth and subtree progress."""
    pipeline = Pipeline.from_config(
        storage.config, filters=filters, sort=sort, output_format="json", today=today()
    )
    with storage.reading() as reader:
        forest = reader.task_service.get_tree(root_id)
    view = TaskView.from_forest(pipeline.select_tree(forest), forest.progress_map())
    return [
        {
            **task.model_dump(mode="json"),
            "depth": view.depth(task),
            "progress": view.progress_of(task),
        }
        for task in view.tasks
    ]


@tasks_router.post("", response_model=Task, status_code=201)
def create_task(data: TaskCreate, storage: StorageContext = Depends(get_storage)):
    with storage.write_lock:
        return storage.task_service.add_task(**data.model_dump())


@tasks_router.get("/{task_id}", response_model=Task)
def get_task(task_id: int, storage: StorageContext = Depends(get_storage)):
    with storage.reading() as reader:
        return reader.task_service.get_task(task_id)


@tasks_router.patch("/{task_id}", response_model=Task)
def update_task(
    task_id: int, data: TaskUpdate, storage: StorageContext = Depends(get_storage)
):
    with storage.write_lock:
        return storage.task_service.update_task(task_id, **data.changes())


@tasks_router.delete("/{task_id}")
def delete_task(
    task_id: int, recursive: bool = False, storage: StorageContext = Depends(get_storage)
):
    with storage.write_lock:
        deleted = storage.task_service.delete_task(task_id, recursive=recursive)
    return {"deleted": sorted(deleted)}


@tasks_router.post("/{task_id}/complete")
def complete_task(
    task_id: int, recursive: bool = False, storage: StorageContext = Depends(get_storage)
):
    with storage.write_lock:
        affected = storage.task_service.complete_task(task_id, recursive=recursive)
    return {"affected": sorted(affected)}


@tasks_router.post("/{task_id}/reopen")
def reopen_task(
    task_id: int, recursive: bool = False, storage: StorageContext = Depends(get_storage)
):
    with storage.write_lock:
        affected = storage.task_service.reopen_task(task_id, recursive=recursive)
    return {"affected": sorted(affected)}


@tasks_router.get("/{task_id}/progress")
def task_progress(task_id: int, storage: StorageContext = Depends(get_storage)):
    with storage.reading() as reader:
        progress = reader.task_service.get_progress(task_id)
    return {"id": task_id, "progress": progress}


# ==========================
#  EXPORT / IMPORT
# ==========================
@data_router.get("/export")
def export_data(storage: StorageContext = Depends(get_storage)):
    with storage.reading() as reader:
        return reader.codec_service.export()


@data_router.post("/import")
def import_data(
    document: dict[str, Any] = Body(...),
    mode: ImportMode = ImportMode.MERGE,
    storage: StorageContext = Depends(get_storage),
):
    with storage.write_lock:
        result = storage.codec_service.import_document(document, mode)
    return {"mode": result.mode.value, "projects": result.projects, "tasks": result.tasks}


def task_tree_error_handler(request: Request, exc: TaskTreeError) -> JSONResponse:
    status_code = STATUS_CODES.get(exc.kind, 500)
    logger.info(
        "%s %s -> %d %s: %s",
        request.method,
        request.url.path,
        status_code,
        exc.kind,
        exc.message,
    )
    return JSONResponse(status_code=status_code, content=exc.to_dict())


def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = "; ".join(
        f"{'.'.join(str(part) for part in item['loc'])}: {item['msg']}"
        for item in exc.errors()
    )
    return JSONResponse(
        status_code=422,
        content={"error": "validation", "message": details, "id": None},
    )


def create_app(storage: StorageContext | None = None) -> FastAPI:
    """Build the API application bound to a storage context."""
    app = FastAPI(title="TaskTree API", version=__version__)
    app.state.storage = storage or get_storage_context()

    app.add_exception_handler(TaskTreeError, task_tree_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    app.include_router(projects_router)
    app.include_router(tasks_router)
    app.include_router(data_router)

    @app.get("/")
    def read_root():
        return {"name": "tasktree", "version": __version__}

    return app
