"""Filter -> Sort -> Format pipeline over flat or tree views of tasks.

Each stage is a plain function picked from a registry (``FILTERS``,
``SORTS``, ``FORMATTERS``), so callers can swap any stage independently.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import date
from functools import partial

from tasktree_cli.core.tree import TaskForest
from tasktree_cli.exceptions import ValidationError
from tasktree_cli.models import Task, TaskFilters
from tasktree_cli.models.config_models import AppConfig
from tasktree_cli.pipeline.filters import (
    FILTERS,
    Predicate,
    all_of,
    match_all,
    predicate_from_filters,
)
from tasktree_cli.pipeline.formatters import (
    FORMATTERS,
    FormatOptions,
    Formatter,
    TaskView,
    get_formatter,
)
from tasktree_cli.pipeline.sorting import (
    SORTS,
    SortContext,
    SortStrategy,
    by_id,
    get_sort,
)
from tasktree_cli.utils.dates import today as local_today

TreeFilter = Callable[[TaskForest, Predicate], TaskForest]


def keep_with_ancestors(forest: TaskForest, predicate: Predicate) -> TaskForest:
    """Keep every match plus its ancestors, so matches show in place."""
    if predicate is match_all:
        return forest
    keep: set[int] = set()
    for node, _ in forest.walk():
        if predicate(node.task):
            keep.add(node.id)
            keep.update(ancestor.id for ancestor in forest.ancestors(node.id))
    return forest.prune(keep)


def filter_roots(forest: TaskForest, predicate: Predicate) -> TaskForest:
    """Test roots only; a matching root keeps its whole subtree."""
    if predicate is match_all:
        return forest
    keep: set[int] = set()
    for root_id in forest.roots:
        if predicate(forest.node(root_id).task):
            keep.update(node.id for node, _ in forest.walk(root_id))
    return forest.prune(keep)


TREE_FILTERS: dict[str, TreeFilter] = {
    "context": keep_with_ancestors,
    "roots": filter_roots,
}


@dataclass
class Pipeline:
    """A configured Filter -> Sort -> Format chain."""

    predicate: Predicate = match_all
    sort: SortStrategy = by_id
    formatter: Formatter = FORMATTERS["table"]
    tree_filter: TreeFilter = keep_with_ancestors
    sort_context: SortContext = field(
        default_factory=lambda: SortContext(today=local_today())
    )
    options: FormatOptions = field(default_factory=FormatOptions)
    limit: int | None = None

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        *,
        filters: TaskFilters | None = None,
        sort: str | None = None,
        output_format: str | None = None,
        today: date | None = None,
    ) -> Pipeline:
        """Pick strategies by name, falling back to configured defaults."""
        today = today or local_today()
        output = config.output
        tree_filter_name = output.tree_filter
        if tree_filter_name not in TREE_FILTERS:
            raise ValidationError(f"Unknown tree filter policy: {tree_filter_name!r}")

        return cls(
            predicate=predicate_from_filters(filters, today),
            sort=get_sort(sort or output.sort),
            formatter=get_formatter(output_format or output.format),
            tree_filter=TREE_FILTERS[tree_filter_name],
            sort_context=SortContext.from_config(config.scoring, today),
            options=FormatOptions(
                color=output.color,
                unicode=output.unicode,
                date_format=output.date_format,
                today=today,
            ),
            limit=filters.limit if filters else None,
        )

    def select(self, tasks: Iterable[Task]) -> list[Task]:
        """Filter and sort a flat collection."""
        selected = self.sort([t for t in tasks if self.predicate(t)], self.sort_context)
        if self.limit is not None:
            selected = selected[: self.limit]
        return selected

    def select_tree(self, forest: TaskForest) -> TaskForest:
        """Filter a forest by policy, then sort roots and every sibling list."""
        filtered = self.tree_filter(forest, self.predicate)
        return filtered.sorted(partial(self.sort, context=self.sort_context))

    def run_flat(self, tasks: Iterable[Task]) -> str:
        return self.formatter(TaskView.flat(self.select(tasks)), self.options)

    def run_tree(self, forest: TaskForest) -> str:
        """Render a forest; progress is computed on the unfiltered forest."""
        progress = forest.progress_map()
        view = TaskView.from_forest(self.select_tree(forest), progress)
        return self.formatter(view, self.options)


__all__ = [
    "FILTERS",
    "SORTS",
    "FORMATTERS",
    "TREE_FILTERS",
    "Pipeline",
    "FormatOptions",
    "SortContext",
    "TaskView",
    "all_of",
    "predicate_from_filters",
    "keep_with_ancestors",
    "filter_roots",
]
