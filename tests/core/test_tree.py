"""Tests for the in-memory task forest."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from tasktree_cli.core.tree import MAX_DEPTH, build_forest
from tasktree_cli.exceptions import CorruptHierarchyError, NotFoundError
from tasktree_cli.models import Task, TaskStatus

STAMP = datetime(2024, 1, 1, tzinfo=UTC)


def make_task(task_id, parent_id=None, status=TaskStatus.PENDING, title=None):
    return Task(
        id=task_id,
        title=title or f"task {task_id}",
        parent_id=parent_id,
        status=status,
        created_at=STAMP,
        updated_at=STAMP,
    )


@pytest.fixture
def forest():
    #   1
    #   ├── 2
    #   │   └── 4
    #   └── 3
    #   5
    return build_forest(
        [
            make_task(1),
            make_task(2, 1),
            make_task(3, 1),
            make_task(4, 2),
            make_task(5),
        ]
    )


class TestBuildForest:
    def test_roots_and_children(self, forest):
        assert forest.roots == [1, 5]
        assert [n.id for n in forest.children(1)] == [2, 3]
        assert forest.node(4).is_leaf

    def test_parent_outside_set_becomes_root(self):
        forest = build_forest([make_task(2, parent_id=1), make_task(3, parent_id=2)])
        assert forest.roots == [2]

    def test_input_order_defines_sibling_order(self):
        forest = build_forest([make_task(1), make_task(3, 1), make_task(2, 1)])
        assert [n.id for n in forest.children(1)] == [3, 2]

    def test_empty(self):
        forest = build_forest([])
        assert len(forest) == 0
        assert forest.tasks() == []

    def test_contains(self, forest):
        assert 4 in forest
        assert 9 not in forest

    def test_missing_node(self, forest):
        with pytest.raises(NotFoundError):
            forest.node(9)


class TestTraversal:
    def test_walk_is_pre_order_with_depth(self, forest):
        assert [(n.id, d) for n, d in forest.walk()] == [
            (1, 0),
            (2, 1),
            (4, 2),
            (3, 1),
            (5, 0),
        ]

    def test_walk_from_start(self, forest):
        assert [(n.id, d) for n, d in forest.walk(2)] == [(2, 0), (4, 1)]

    def test_ancestors_nearest_first(self, forest):
        assert [n.id for n in forest.ancestors(4)] == [2, 1]
        assert forest.ancestors(5) == []

    def test_descendants(self, forest):
        assert [n.id for n in forest.descendants(1)] == [2, 4, 3]

    def test_depth(self, forest):
        assert forest.depth(4) == 2
        assert forest.depth(1) == 0

    def test_cycle_is_unreachable(self):
        forest = build_forest([make_task(1), make_task(2, 3), make_task(3, 2)])
        with pytest.raises(CorruptHierarchyError) as exc:
            list(forest.walk())
        assert exc.value.entity_id == 2

    def test_ancestors_of_cycle_member(self):
        forest = build_forest([make_task(2, 3), make_task(3, 2)])
        with pytest.raises(CorruptHierarchyError):
            forest.ancestors(2)

    def test_depth_limit(self):
        tasks = [make_task(1)] + [make_task(i, i - 1) for i in range(2, MAX_DEPTH + 2)]
        forest = build_forest(tasks)
        with pytest.raises(CorruptHierarchyError):
            list(forest.walk())


class TestDerivedForests:
    def test_subtree(self, forest):
        sub = forest.subtree(2)
        assert sub.roots == [2]
        assert [t.id for t in sub.tasks()] == [2, 4]

    def test_prune_promotes_orphans(self, forest):
        pruned = forest.prune({1, 4, 5})
        assert pruned.roots == [1, 4, 5]
        assert pruned.node(1).is_leaf

    def test_sorted_reorders_every_level(self, forest):
        def reverse_ids(tasks):
            return sorted(tasks, key=lambda t: -t.id)

        resorted = forest.sorted(reverse_ids)
        assert [t.id for t in resorted.tasks()] == [5, 1, 3, 2, 4]
        # The original is untouched
        assert [t.id for t in forest.tasks()] == [1, 2, 4, 3, 5]


class TestProgress:
    def test_leaf_progress(self):
        forest = build_forest([make_task(1, status=TaskStatus.DONE), make_task(2)])
        assert forest.progress(1) == 1.0
        assert forest.progress(2) == 0.0

    def test_cancelled_leaf_counts_as_not_done(self):
        forest = build_forest([make_task(1, status=TaskStatus.CANCELLED)])
        assert forest.progress(1) == 0.0

    def test_inner_node_is_mean_of_children(self):
        forest = build_forest(
            [
                make_task(1),
                make_task(2, 1, status=TaskStatus.DONE),
                make_task(3, 1),
                make_task(4, 3, status=TaskStatus.DONE),
                make_task(5, 3),
            ]
        )
        assert forest.progress(3) == 0.5
        assert forest.progress(1) == 0.75

    def test_inner_node_own_status_ignored(self):
        forest = build_forest(
            [make_task(1, status=TaskStatus.DONE), make_task(2, 1)]
        )
        assert forest.progress(1) == 0.0

    def test_pending_inner_node_over_done_leaves(self):
        # 1 -> 2 (pending) -> 3 (done): only leaves decide completion
        forest = build_forest(
            [make_task(1), make_task(2, 1), make_task(3, 2, status=TaskStatus.DONE)]
        )
        assert forest.progress(2) == 1.0
        assert forest.progress(1) == 1.0
        assert forest.node(2).task.status == TaskStatus.PENDING

    def test_progress_map(self, forest):
        assert forest.progress_map() == {1: 0.0, 2: 0.0, 3: 0.0, 4: 0.0, 5: 0.0}
