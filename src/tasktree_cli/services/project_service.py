"""Project service - Business logic for project operations."""

from __future__ import annotations

import pydantic

from tasktree_cli.exceptions import ValidationError
from tasktree_cli.models import (
    Project,
    ProjectCreate,
    ProjectFilters,
    ProjectStatus,
    ProjectUpdate,
)
from tasktree_cli.repositories import ProjectRepository


class ProjectService:
    """Service for project business logic.

    This service encapsulates business rules and orchestrates project operations
    using the project repository.
    """

    def __init__(self, project_repository: ProjectRepository):
        """Initialize the project service.

        Args:
            project_repository: ProjectRepository implementation for data access
        """
        self.repository = project_repository

    def list_projects(
        self,
        *,
        status: ProjectStatus | str | None = None,
        search: str | None = None,
    ) -> list[Project]:
        """List projects with filtering.

        Args:
            status: Filter by status ("active" or "archived")
            search: Text search query on the name

        Returns:
            List of Project objects matching the criteria
        """
        try:
            filters = ProjectFilters(status=status, search=search)
        except pydantic.ValidationError as e:
            raise ValidationError.from_pydantic(e) from e
        return self.repository.list_all(filters)

    def get_project(self, project_id: int) -> Project:
        """Get a specific project by ID."""
        return self.repository.get(project_id)

    def create_project(self, name: str) -> Project:
        """Create a new active project."""
        try:
            project_data = ProjectCreate(name=name)
        except pydantic.ValidationError as e:
            raise ValidationError.from_pydantic(e) from e
        return self.repository.create(project_data)

    def update_project(
        self,
        project_id: int,
        *,
        name: str | None = None,
        status: ProjectStatus | str | None = None,
    ) -> Project:
        """Update a project's name and/or status."""
        try:
            updates = ProjectUpdate(name=name, status=status)
        except pydantic.ValidationError as e:
            raise ValidationError.from_pydantic(e) from e
        return self.repository.update(project_id, updates)

    def archive_project(self, project_id: int) -> Project:
        return self.update_project(project_id, status=ProjectStatus.ARCHIVED)

    def unarchive_project(self, project_id: int) -> Project:
        return self.update_project(project_id, status=ProjectStatus.ACTIVE)

    def delete_project(self, project_id: int, force: bool = False) -> set[int]:
        """Delete a project.

        Args:
            project_id: Project to delete
            force: Also delete its tasks and their subtrees

        Returns:
            Ids of the tasks deleted along with the project
        """
        return self.repository.delete(project_id, force=force)

    def count_tasks(self, project_id: int) -> int:
        self.repository.get(project_id)
        return self.repository.count_tasks(project_id)
