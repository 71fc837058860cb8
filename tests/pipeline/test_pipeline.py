"""Tests for the Filter -> Sort -> Format pipeline and tree filter policies."""

from __future__ import annotations

import json
from datetime import UTC, date, datetime

import pytest

from tasktree_cli.core.tree import build_forest
from tasktree_cli.exceptions import ValidationError
from tasktree_cli.models import AppConfig, Priority, Task, TaskFilters, TaskStatus
from tasktree_cli.pipeline import (
    Pipeline,
    filter_roots,
    keep_with_ancestors,
)
from tasktree_cli.pipeline.filters import by_priority, match_all
from tasktree_cli.pipeline.formatters import FormatOptions, render_json, render_tree
from tasktree_cli.pipeline.sorting import by_priority as sort_by_priority

STAMP = datetime(2024, 1, 1, tzinfo=UTC)
TODAY = date(2024, 6, 15)


def make_task(task_id, parent_id=None, **kwargs):
    return Task(
        id=task_id,
        title=f"task {task_id}",
        parent_id=parent_id,
        created_at=STAMP,
        updated_at=STAMP,
        **kwargs,
    )


@pytest.fixture
def forest():
    #   1 (low)
    #   ├── 2 (low)
    #   │   └── 4 (urgent, done)
    #   └── 3 (high)
    #   5 (urgent)
    #   └── 6 (low)
    return build_forest(
        [
            make_task(1, priority=Priority.LOW),
            make_task(2, 1, priority=Priority.LOW),
            make_task(3, 1, priority=Priority.HIGH),
            make_task(4, 2, priority=Priority.URGENT, status=TaskStatus.DONE),
            make_task(5, priority=Priority.URGENT),
            make_task(6, 5, priority=Priority.LOW),
        ]
    )


class TestTreeFilterPolicies:
    def test_context_keeps_ancestors_of_matches(self, forest):
        result = keep_with_ancestors(forest, by_priority(["urgent"]))
        assert [t.id for t in result.tasks()] == [1, 2, 4, 5]

    def test_roots_keeps_whole_matching_subtrees(self, forest):
        result = filter_roots(forest, by_priority(["urgent"]))
        assert [t.id for t in result.tasks()] == [5, 6]

    def test_match_all_returns_forest_unchanged(self, forest):
        assert keep_with_ancestors(forest, match_all) is forest
        assert filter_roots(forest, match_all) is forest


class TestPipeline:
    def test_select_filters_sorts_and_limits(self, forest):
        pipeline = Pipeline(
            predicate=by_priority(["urgent", "high"]),
            sort=sort_by_priority,
            limit=2,
        )
        assert [t.id for t in pipeline.select(forest.tasks())] == [4, 5]

    def test_select_tree_sorts_siblings(self, forest):
        pipeline = Pipeline(sort=sort_by_priority)
        assert [t.id for t in pipeline.select_tree(forest).tasks()] == [5, 6, 1, 3, 2, 4]

    def test_run_tree_uses_unfiltered_progress(self, forest):
        pipeline = Pipeline(
            predicate=by_priority(["high"]),
            formatter=render_tree,
            options=FormatOptions(color=False, unicode=False),
        )
        lines = pipeline.run_tree(forest).splitlines()
        # Task 1 still reports 50%: its hidden child 2 is fully done
        assert lines == ["[ ] #1 task 1 (50%)", "  [ ] #3 task 3 (0%)"]

    def test_run_flat_json(self, forest):
        pipeline = Pipeline(predicate=by_priority(["urgent"]), formatter=render_json)
        data = json.loads(pipeline.run_flat(forest.tasks()))
        assert [t["id"] for t in data] == [4, 5]


class TestFromConfig:
    def test_defaults(self):
        pipeline = Pipeline.from_config(AppConfig(), today=TODAY)
        assert pipeline.tree_filter is keep_with_ancestors
        assert pipeline.options.today == TODAY
        assert pipeline.limit is None

    def test_overrides_and_filters(self, forest):
        config = AppConfig()
        config.output.tree_filter = "roots"
        config.output.color = False
        pipeline = Pipeline.from_config(
            config,
            filters=TaskFilters(priority=[Priority.URGENT], limit=1),
            sort="priority",
            output_format="compact",
            today=TODAY,
        )
        assert pipeline.tree_filter is filter_roots
        assert pipeline.limit == 1
        assert pipeline.options.color is False
        assert pipeline.run_flat(forest.tasks()) == "4 done urgent task 4"

    def test_unknown_sort(self):
        with pytest.raises(ValidationError):
            Pipeline.from_config(AppConfig(), sort="random", today=TODAY)

    def test_unknown_format(self):
        with pytest.raises(ValidationError):
            Pipeline.from_config(AppConfig(), output_format="xml", today=TODAY)
