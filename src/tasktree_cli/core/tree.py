"""In-memory task hierarchy.

A ``TaskForest`` is an arena of ``TaskNode`` objects indexed by task id. Each
node keeps the ordered ids of its children, so the forest can be re-sorted or
pruned without touching the underlying ``Task`` rows.

Building a forest never fails. Problems with the stored links (a parent chain
that loops back on itself) only surface when the forest is traversed, as a
``CorruptHierarchyError``.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field

from tasktree_cli.exceptions import CorruptHierarchyError, NotFoundError
from tasktree_cli.models import Task, TaskStatus

MAX_DEPTH = 1000


@dataclass
class TaskNode:
    """A task plus the ids of its direct children."""

    task: Task
    children: list[int] = field(default_factory=list)

    @property
    def id(self) -> int:
        return self.task.id

    @property
    def parent_id(self) -> int | None:
        return self.task.parent_id

    @property
    def is_leaf(self) -> bool:
        return not self.children


class TaskForest:
    """Ordered forest of task nodes."""

    def __init__(self, nodes: dict[int, TaskNode], roots: list[int]):
        self._nodes = nodes
        self.roots = roots

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._nodes

    def node(self, task_id: int) -> TaskNode:
        """Look up a node by task id."""
        try:
            return self._nodes[task_id]
        except KeyError:
            raise NotFoundError(
                f"Task not found: {task_id}", entity_id=task_id
            ) from None

    def children(self, task_id: int) -> list[TaskNode]:
        return [self._nodes[child_id] for child_id in self.node(task_id).children]

    def walk(self, start: int | None = None) -> Iterator[tuple[TaskNode, int]]:
        """Yield ``(node, depth)`` pairs in pre-order.

        With ``start`` only that node's subtree is visited; otherwise every
        root is walked in order, and nodes left unvisited at the end (members
        of a parent cycle) are reported as corruption.

        Raises:
            CorruptHierarchyError: On a revisit, a path deeper than
                MAX_DEPTH, or unreachable nodes
        """
        if start is not None:
            self.node(start)
            stack = [(start, 0)]
        else:
            stack = [(root_id, 0) for root_id in reversed(self.roots)]
        visited: set[int] = set()

        while stack:
            task_id, depth = stack.pop()
            if task_id in visited:
                raise CorruptHierarchyError(
                    f"Task {task_id} is reachable twice", entity_id=task_id
                )
            if depth >= MAX_DEPTH:
                raise CorruptHierarchyError(
                    f"Task hierarchy deeper than {MAX_DEPTH} levels at task {task_id}",
                    entity_id=task_id,
                )
            visited.add(task_id)
            node = self._nodes[task_id]
            yield node, depth
            stack.extend((child_id, depth + 1) for child_id in reversed(node.children))

        if start is None and len(visited) != len(self._nodes):
            orphans = sorted(set(self._nodes) - visited)
            raise CorruptHierarchyError(
                f"Tasks {orphans} are not reachable from any root; "
                "their parent links form a cycle",
                entity_id=orphans[0],
            )

    def tasks(self) -> list[Task]:
        """All tasks in pre-order."""
        return [node.task for node, _ in self.walk()]

    def ancestors(self, task_id: int) -> list[TaskNode]:
        """Ancestors inside this forest, nearest first."""
        result: list[TaskNode] = []
        seen = {task_id}
        parent_id = self.node(task_id).parent_id

        while parent_id is not None and parent_id in self._nodes:
            if parent_id in seen or len(result) >= MAX_DEPTH:
                raise CorruptHierarchyError(
                    f"Parent chain of task {task_id} loops or is too deep",
                    entity_id=task_id,
                )
            seen.add(parent_id)
            parent = self._nodes[parent_id]
            result.append(parent)
            parent_id = parent.parent_id

        return result

    def descendants(self, task_id: int) -> list[TaskNode]:
        """Descendants of a task in pre-order, excluding the task itself."""
        return [node for node, depth in self.walk(task_id) if depth > 0]

    def depth(self, task_id: int) -> int:
        return len(self.ancestors(task_id))

    def subtree(self, task_id: int) -> TaskForest:
        """A new forest rooted at ``task_id``."""
        return build_forest(node.task for node, _ in self.walk(task_id))

    def prune(self, keep: Iterable[int]) -> TaskForest:
        """A new forest with only the given ids; links are re-derived.

        Nodes whose parent was dropped become roots. Relative order follows
        this forest's pre-order.
        """
        keep = set(keep)
        return build_forest(task for task in self.tasks() if task.id in keep)

    def sorted(self, sort: Callable[[list[Task]], list[Task]]) -> TaskForest:
        """A new forest with the roots and every sibling list reordered."""

        def reorder(ids: list[int]) -> list[int]:
            return [task.id for task in sort([self._nodes[i].task for i in ids])]

        nodes = {
            task_id: TaskNode(node.task, reorder(node.children))
            for task_id, node in self._nodes.items()
        }
        return TaskForest(nodes, reorder(self.roots))

    def progress(self, task_id: int) -> float:
        """Completion ratio of a subtree.

        A leaf counts 1.0 when done and 0.0 otherwise; an inner node is the
        mean of its direct children.
        """
        return _progress_values(self.walk(task_id))[task_id]

    def progress_map(self) -> dict[int, float]:
        """Progress of every node, computed bottom-up in one pass."""
        return _progress_values(self.walk())


def build_forest(tasks: Iterable[Task]) -> TaskForest:
    """Build a forest from flat rows.

    Tasks whose parent is not among ``tasks`` become roots. Sibling order
    follows the input order.
    """
    nodes: dict[int, TaskNode] = {}
    for task in tasks:
        nodes[task.id] = TaskNode(task)

    roots: list[int] = []
    for task_id, node in nodes.items():
        parent_id = node.parent_id
        if parent_id is not None and parent_id in nodes and parent_id != task_id:
            nodes[parent_id].children.append(task_id)
        else:
            roots.append(task_id)

    return TaskForest(nodes, roots)


def _progress_values(walked: Iterable[tuple[TaskNode, int]]) -> dict[int, float]:
    values: dict[int, float] = {}
    # Reversed pre-order visits children before their parent
    for node, _ in reversed(list(walked)):
        if node.is_leaf:
            values[node.id] = 1.0 if node.task.status == TaskStatus.DONE else 0.0
        else:
            values[node.id] = sum(values[c] for c in node.children) / len(node.children)
    return values
