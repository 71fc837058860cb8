"""Tests for sort strategies."""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta

import pytest

from tasktree_cli.exceptions import ValidationError
from tasktree_cli.models import Priority, Task
from tasktree_cli.models.config_models import ScoringConfig
from tasktree_cli.pipeline.sorting import (
    SORTS,
    SortContext,
    by_created,
    by_due,
    by_id,
    by_priority,
    by_score,
    due_proximity,
    get_sort,
    weighted_score,
)

STAMP = datetime(2024, 1, 1, tzinfo=UTC)
TODAY = date(2024, 6, 15)
CONTEXT = SortContext(today=TODAY)


def make_task(task_id, **kwargs):
    kwargs.setdefault("created_at", STAMP)
    return Task(id=task_id, title=f"task {task_id}", updated_at=STAMP, **kwargs)


def ids(tasks):
    return [t.id for t in tasks]


class TestPriority:
    def test_urgent_first(self):
        tasks = [
            make_task(1, priority=Priority.LOW),
            make_task(2, priority=Priority.URGENT),
            make_task(3, priority=Priority.MEDIUM),
            make_task(4, priority=Priority.HIGH),
        ]
        result = by_priority(tasks, CONTEXT)
        assert [t.priority for t in result] == [
            Priority.URGENT,
            Priority.HIGH,
            Priority.MEDIUM,
            Priority.LOW,
        ]

    def test_ties_broken_by_id(self):
        tasks = [make_task(i, priority=Priority.HIGH) for i in (5, 2, 9)]
        assert ids(by_priority(tasks, CONTEXT)) == [2, 5, 9]

    def test_input_not_mutated(self):
        tasks = [make_task(2), make_task(1)]
        by_id(tasks, CONTEXT)
        assert ids(tasks) == [2, 1]


class TestDue:
    def test_undated_last(self):
        tasks = [
            make_task(1),
            make_task(2, due_date=date(2024, 7, 1)),
            make_task(3, due_date=date(2024, 6, 1)),
            make_task(4),
        ]
        assert ids(by_due(tasks, CONTEXT)) == [3, 2, 1, 4]

    def test_created(self):
        tasks = [
            make_task(1, created_at=STAMP + timedelta(hours=2)),
            make_task(2, created_at=STAMP),
        ]
        assert ids(by_created(tasks, CONTEXT)) == [2, 1]


class TestScore:
    def test_due_proximity(self):
        assert due_proximity(make_task(1), CONTEXT) == 0.0
        assert due_proximity(make_task(1, due_date=TODAY), CONTEXT) == 1.0
        assert due_proximity(make_task(1, due_date=TODAY - timedelta(days=3)), CONTEXT) == 1.0
        assert due_proximity(make_task(1, due_date=TODAY + timedelta(days=7)), CONTEXT) == 0.5
        assert due_proximity(make_task(1, due_date=TODAY + timedelta(days=30)), CONTEXT) == 0.0

    def test_weighted_score(self):
        task = make_task(1, priority=Priority.URGENT, due_date=TODAY)
        assert weighted_score(task, CONTEXT) == pytest.approx(1.0)
        assert weighted_score(make_task(2, priority=Priority.LOW), CONTEXT) == 0.0

    def test_near_due_beats_higher_priority(self):
        tasks = [
            make_task(1, priority=Priority.HIGH),
            make_task(2, priority=Priority.MEDIUM, due_date=TODAY),
        ]
        # high: 0.6 * 2/3 = 0.4; medium due today: 0.6 * 1/3 + 0.4 = 0.6
        assert ids(by_score(tasks, CONTEXT)) == [2, 1]

    def test_weights_from_config(self):
        context = SortContext.from_config(ScoringConfig(priority_weight=1, due_weight=0), TODAY)
        tasks = [
            make_task(1, priority=Priority.HIGH),
            make_task(2, priority=Priority.MEDIUM, due_date=TODAY),
        ]
        assert ids(by_score(tasks, context)) == [1, 2]


class TestRegistry:
    def test_names(self):
        assert set(SORTS) == {"id", "priority", "due", "created", "score"}

    def test_unknown(self):
        with pytest.raises(ValidationError, match="Unknown sort"):
            get_sort("alphabetical")
