"""Tests for output formatters."""

from __future__ import annotations

import json
from datetime import UTC, date, datetime

import pytest
import yaml

from tasktree_cli.core.tree import build_forest
from tasktree_cli.exceptions import ValidationError
from tasktree_cli.models import Priority, Task, TaskStatus
from tasktree_cli.pipeline.formatters import (
    FORMATTERS,
    FormatOptions,
    TaskView,
    get_formatter,
    render_compact,
    render_json,
    render_markdown,
    render_table,
    render_tree,
    render_yaml,
)

STAMP = datetime(2024, 1, 1, tzinfo=UTC)
PLAIN = FormatOptions(color=False, unicode=False, today=date(2024, 6, 15))


def make_task(task_id, parent_id=None, **kwargs):
    kwargs.setdefault("title", f"task {task_id}")
    return Task(
        id=task_id, parent_id=parent_id, created_at=STAMP, updated_at=STAMP, **kwargs
    )


@pytest.fixture
def two_tasks():
    return TaskView.flat(
        [
            make_task(1, title="Write", priority=Priority.HIGH, due_date=date(2024, 6, 20)),
            make_task(2, title="Read"),
        ]
    )


@pytest.fixture
def tree_view():
    forest = build_forest(
        [
            make_task(1, title="Parent"),
            make_task(2, 1, title="Done child", status=TaskStatus.DONE),
            make_task(3, 1, title="Open child"),
        ]
    )
    return TaskView.from_forest(forest)


class TestJson:
    def test_array_of_task_objects(self, two_tasks):
        data = json.loads(render_json(two_tasks, PLAIN))
        assert len(data) == 2
        assert data[0]["title"] == "Write"
        assert data[0]["priority"] == "high"
        assert data[0]["due_date"] == "2024-06-20"
        assert data[1]["due_date"] is None

    def test_tree_is_pre_order(self, tree_view):
        data = json.loads(render_json(tree_view, PLAIN))
        assert [t["id"] for t in data] == [1, 2, 3]

    def test_empty(self):
        assert json.loads(render_json(TaskView.flat([]), PLAIN)) == []


class TestYaml:
    def test_round_trips_through_yaml(self, two_tasks):
        data = yaml.safe_load(render_yaml(two_tasks, PLAIN))
        assert [t["title"] for t in data] == ["Write", "Read"]


class TestTree:
    def test_indentation_and_progress(self, tree_view):
        lines = render_tree(tree_view, PLAIN).splitlines()
        assert lines == [
            "[ ] #1 Parent (50%)",
            "  [x] #2 Done child (100%)",
            "  [ ] #3 Open child (0%)",
        ]

    def test_unicode_markers(self, tree_view):
        options = FormatOptions(color=False, unicode=True)
        assert render_tree(tree_view, options).splitlines()[1] == "  ● #2 Done child (100%)"

    def test_progress_from_larger_forest(self):
        forest = build_forest([make_task(1), make_task(2, 1, status=TaskStatus.DONE)])
        view = TaskView.from_forest(forest.prune({1}), {1: 0.25})
        assert render_tree(view, PLAIN) == "[ ] #1 task 1 (25%)"


class TestCompactAndMarkdown:
    def test_compact(self, two_tasks):
        assert render_compact(two_tasks, PLAIN).splitlines() == [
            "1 pending high Write due:2024-06-20",
            "2 pending medium Read",
        ]

    def test_compact_honours_date_format(self, two_tasks):
        options = FormatOptions(color=False, date_format="%d/%m/%Y")
        assert "due:20/06/2024" in render_compact(two_tasks, options)

    def test_markdown_nested(self, tree_view):
        assert render_markdown(tree_view, PLAIN).splitlines() == [
            "- [ ] Parent (#1)",
            "  - [x] Done child (#2)",
            "  - [ ] Open child (#3)",
        ]


class TestTable:
    def test_plain_table(self, two_tasks):
        output = render_table(two_tasks, PLAIN)
        assert "Write" in output
        assert "2024-06-20" in output
        assert "\x1b[" not in output
        assert "+" in output or "|" in output

    def test_tree_table_has_progress(self, tree_view):
        output = render_table(tree_view, PLAIN)
        assert "Progress" in output
        assert "50%" in output

    def test_color(self, two_tasks):
        options = FormatOptions(color=True, unicode=True)
        assert "\x1b[" in render_table(two_tasks, options)

    def test_empty(self):
        assert render_table(TaskView.flat([]), PLAIN) == "No tasks found"


class TestRegistry:
    def test_names(self):
        assert set(FORMATTERS) == {"table", "json", "yaml", "tree", "compact", "markdown"}

    def test_unknown(self):
        with pytest.raises(ValidationError, match="Unknown format"):
            get_formatter("xml")
