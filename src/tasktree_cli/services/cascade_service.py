"""Cascading operations over the task hierarchy.

Every operation takes the id of a subtree root, runs inside one repository
transaction and returns the ids it touched. The first error aborts the whole
transaction, so a cascade is either fully applied or not at all.
"""

from __future__ import annotations

from tasktree_cli.core.tree import MAX_DEPTH, TaskForest, build_forest
from tasktree_cli.exceptions import (
    ConflictError,
    CorruptHierarchyError,
    CycleDetectedError,
)
from tasktree_cli.models import TaskStatus, TaskUpdate
from tasktree_cli.repositories import TaskRepository
from tasktree_cli.utils.logger import get_logger

logger = get_logger("cascade")


class CascadeEngine:
    """Completion, deletion, progress and cycle checks for task subtrees."""

    def __init__(
        self,
        task_repository: TaskRepository,
        *,
        block_incomplete_children: bool = False,
    ):
        self.repository = task_repository
        self.block_incomplete_children = block_incomplete_children

    def subtree(self, task_id: int) -> TaskForest:
        """Forest rooted at ``task_id``, read fresh from the repository."""
        return build_forest(self.repository.list_subtree(task_id, max_depth=MAX_DEPTH))

    def set_status(
        self, task_id: int, status: TaskStatus, recursive: bool = False
    ) -> set[int]:
        """Set the status of a task, and of all its descendants when recursive."""
        with self.repository.transaction():
            if recursive:
                ids = [node.id for node, _ in self.subtree(task_id).walk(task_id)]
            else:
                self.repository.get(task_id)
                ids = [task_id]

            for affected_id in ids:
                self.repository.update(affected_id, TaskUpdate(status=status))

        logger.info(
            "set status of %d task(s) under %s to %s", len(ids), task_id, status.value
        )
        return set(ids)

    def complete(self, task_id: int, recursive: bool = False) -> set[int]:
        """Mark a task done; with ``recursive`` every descendant becomes done too.

        Raises:
            NotFoundError: If the task does not exist
            ConflictError: If children are still open, the cascade is not
                recursive and ``block_incomplete_children`` is on
        """
        with self.repository.transaction():
            self.repository.get(task_id)
            if self.block_incomplete_children and not recursive:
                open_children = [
                    child.id
                    for child in self.repository.list_children(task_id)
                    if not child.status.is_closed
                ]
                if open_children:
                    raise ConflictError(
                        f"Task {task_id} has incomplete child task(s): "
                        + ", ".join(str(i) for i in open_children),
                        entity_id=task_id,
                    )
            return self.set_status(task_id, TaskStatus.DONE, recursive=recursive)

    def reopen(self, task_id: int, recursive: bool = False) -> set[int]:
        """Move a task (and optionally its subtree) back to pending."""
        return self.set_status(task_id, TaskStatus.PENDING, recursive=recursive)

    def delete(self, task_id: int, recursive: bool = False) -> set[int]:
        """Delete a task; with ``recursive`` its whole subtree goes, deepest first.

        Raises:
            NotFoundError: If the task does not exist
            ConflictError: If the task has children and ``recursive`` is False
        """
        with self.repository.transaction():
            self.repository.get(task_id)
            children = self.repository.list_children(task_id)

            if children and not recursive:
                raise ConflictError(
                    f"Task {task_id} has {len(children)} child task(s); "
                    "delete them first or delete recursively",
                    entity_id=task_id,
                )

            if children:
                walked = list(self.subtree(task_id).walk(task_id))
                walked.sort(key=lambda item: (-item[1], item[0].id))
                ids = [node.id for node, _ in walked]
            else:
                ids = [task_id]

            self.repository.delete_many(ids)

        logger.info("deleted %d task(s) under %s", len(ids), task_id)
        return set(ids)

    def progress(self, task_id: int) -> float:
        """Completion ratio of a task's subtree, between 0.0 and 1.0."""
        return self.subtree(task_id).progress(task_id)

    def check_cycle(self, candidate_parent_id: int, moving_task_id: int | None) -> None:
        """Refuse a parent assignment that would make a task its own ancestor.

        ``moving_task_id`` is None for a task being created; the walk then
        only verifies that the candidate's existing ancestry is sound.

        Raises:
            CycleDetectedError: If the moving task is the candidate parent or
                one of its ancestors
            CorruptHierarchyError: If the stored ancestry already loops
        """
        if moving_task_id is not None and candidate_parent_id == moving_task_id:
            raise CycleDetectedError(
                f"Task {moving_task_id} cannot be its own parent",
                entity_id=moving_task_id,
            )

        visited: set[int] = set()
        current: int | None = candidate_parent_id
        while current is not None:
            if current in visited or len(visited) >= MAX_DEPTH:
                raise CorruptHierarchyError(
                    f"Ancestry of task {candidate_parent_id} loops or is too deep",
                    entity_id=candidate_parent_id,
                )
            if current == moving_task_id:
                raise CycleDetectedError(
                    f"Moving task {moving_task_id} under task {candidate_parent_id} "
                    "would create a cycle",
                    entity_id=moving_task_id,
                )
            visited.add(current)
            current = self.repository.get_parent_id(current)
