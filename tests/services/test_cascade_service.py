"""Tests for CascadeEngine: completion, deletion, progress and cycle checks."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from tasktree_cli.exceptions import (
    ConflictError,
    CorruptHierarchyError,
    CycleDetectedError,
    NotFoundError,
)
from tasktree_cli.models import TaskStatus
from tasktree_cli.services.cascade_service import CascadeEngine


@pytest.fixture
def engine(task_repo):
    return CascadeEngine(task_repo)


def statuses(task_repo):
    return {t.id: t.status for t in task_repo.list_all()}


def test_parent_and_child_scenario(project_service, task_service, task_repo):
    project = project_service.create_project("P1")
    a = task_service.add_task("A", project_id=project.id)
    b = task_service.add_task("B", project_id=project.id, parent_id=a.id)

    with pytest.raises(ConflictError, match="child"):
        task_service.delete_task(a.id)
    assert task_repo.exists(a.id) and task_repo.exists(b.id)

    assert task_service.complete_task(a.id, recursive=True) == {a.id, b.id}
    assert statuses(task_repo) == {a.id: TaskStatus.DONE, b.id: TaskStatus.DONE}


class TestComplete:
    def test_recursive_completion_and_progress(self, engine, task_repo, sample_tree):
        a, b, c, d = (sample_tree[k] for k in "ABCD")

        assert engine.progress(a) == 0.0

        affected = engine.complete(b, recursive=True)
        assert affected == {b, d}
        assert engine.progress(a) == 0.5

        engine.complete(c)
        assert engine.progress(a) == 1.0
        assert task_repo.get(a).status == TaskStatus.PENDING

    def test_non_recursive_touches_only_target(self, engine, task_repo, sample_tree):
        assert engine.complete(sample_tree["A"]) == {sample_tree["A"]}
        current = statuses(task_repo)
        assert current[sample_tree["A"]] == TaskStatus.DONE
        assert current[sample_tree["B"]] == TaskStatus.PENDING

    def test_blocking_incomplete_children(self, task_repo, sample_tree):
        engine = CascadeEngine(task_repo, block_incomplete_children=True)
        with pytest.raises(ConflictError) as exc:
            engine.complete(sample_tree["A"])
        assert exc.value.entity_id == sample_tree["A"]
        assert statuses(task_repo)[sample_tree["A"]] == TaskStatus.PENDING

        # Recursive completion is always allowed
        assert len(engine.complete(sample_tree["A"], recursive=True)) == 4

    def test_blocking_ignores_closed_children(self, task_repo, sample_tree):
        engine = CascadeEngine(task_repo, block_incomplete_children=True)
        engine.complete(sample_tree["B"], recursive=True)
        engine.set_status(sample_tree["C"], TaskStatus.CANCELLED)
        assert engine.complete(sample_tree["A"]) == {sample_tree["A"]}

    def test_missing_task(self, engine):
        with pytest.raises(NotFoundError):
            engine.complete(99, recursive=True)

    def test_failure_rolls_back_whole_cascade(self, engine, task_repo, sample_tree):
        original_update = task_repo.update
        calls = []

        def failing_update(task_id, updates):
            calls.append(task_id)
            if len(calls) == 3:
                raise RuntimeError("disk full")
            return original_update(task_id, updates)

        with patch.object(task_repo, "update", side_effect=failing_update):
            with pytest.raises(RuntimeError):
                engine.complete(sample_tree["A"], recursive=True)

        assert all(s == TaskStatus.PENDING for s in statuses(task_repo).values())


class TestReopenAndStatus:
    def test_reopen_recursive(self, engine, task_repo, sample_tree):
        engine.complete(sample_tree["A"], recursive=True)
        affected = engine.reopen(sample_tree["B"], recursive=True)
        assert affected == {sample_tree["B"], sample_tree["D"]}
        current = statuses(task_repo)
        assert current[sample_tree["D"]] == TaskStatus.PENDING
        assert current[sample_tree["C"]] == TaskStatus.DONE

    def test_set_status_recursive(self, engine, task_repo, sample_tree):
        engine.set_status(sample_tree["A"], TaskStatus.IN_PROGRESS, recursive=True)
        current = statuses(task_repo)
        assert {current[sample_tree[k]] for k in "ABCD"} == {TaskStatus.IN_PROGRESS}
        assert current[sample_tree["E"]] == TaskStatus.PENDING


class TestDelete:
    def test_parent_needs_recursive(self, engine, task_repo, sample_tree):
        with pytest.raises(ConflictError):
            engine.delete(sample_tree["A"])
        assert len(task_repo.list_all()) == 5

    def test_recursive_delete_removes_subtree(self, engine, task_repo, sample_tree):
        deleted = engine.delete(sample_tree["A"], recursive=True)
        assert deleted == {sample_tree[k] for k in "ABCD"}
        assert [t.id for t in task_repo.list_all()] == [sample_tree["E"]]

    def test_recursive_delete_is_deepest_first(self, engine, task_repo, sample_tree):
        with patch.object(task_repo, "delete_many", wraps=task_repo.delete_many) as spy:
            engine.delete(sample_tree["A"], recursive=True)
        order = spy.call_args.args[0]
        assert order == [sample_tree["D"], sample_tree["B"], sample_tree["C"], sample_tree["A"]]

    def test_leaf_delete(self, engine, task_repo, sample_tree):
        assert engine.delete(sample_tree["D"]) == {sample_tree["D"]}
        assert task_repo.list_children(sample_tree["B"]) == []

    def test_missing_task(self, engine):
        with pytest.raises(NotFoundError):
            engine.delete(42)


class TestProgress:
    def test_leaf(self, engine, sample_tree):
        assert engine.progress(sample_tree["E"]) == 0.0
        engine.complete(sample_tree["E"])
        assert engine.progress(sample_tree["E"]) == 1.0

    def test_missing_task(self, engine):
        with pytest.raises(NotFoundError):
            engine.progress(42)


class TestCheckCycle:
    def test_self_parent(self, engine, sample_tree):
        with pytest.raises(CycleDetectedError):
            engine.check_cycle(sample_tree["A"], sample_tree["A"])

    def test_descendant_as_parent(self, engine, sample_tree):
        with pytest.raises(CycleDetectedError):
            engine.check_cycle(sample_tree["D"], sample_tree["A"])

    def test_unrelated_parent_is_fine(self, engine, sample_tree):
        engine.check_cycle(sample_tree["E"], sample_tree["A"])
        engine.check_cycle(sample_tree["C"], sample_tree["B"])

    def test_new_task_only_checks_ancestry(self, engine, sample_tree):
        engine.check_cycle(sample_tree["D"], None)

    def test_stored_loop_is_corrupt(self, engine, connection, sample_tree):
        connection.execute(
            "UPDATE tasks SET parent_id = ? WHERE id = ?",
            (sample_tree["D"], sample_tree["A"]),
        )
        with pytest.raises(CorruptHierarchyError):
            engine.check_cycle(sample_tree["B"], sample_tree["E"])
