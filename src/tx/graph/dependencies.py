"""
Blocking dependency graph.

An edge A -> B means "A blocks B" and is stored on A's ``blocks`` list.
B is blocked while any task blocking it is still open. The graph is built
over a snapshot of every known task, open and archived, so edges to
completed tasks still resolve.

Cycles are tolerated: they are never rejected on insert, and every
traversal keeps a visited set and a depth bound.

Algorithm Complexity:
- Build: O(V + E)
- is_blocked / open_blocked_count: O(degree)
- render_graph: O(E log E) for ordering, edges yielded lazily
- walk: O(V + E) within the depth bound
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional

from tx.core.constants import DEFAULT_GRAPH_MAX_DEPTH
from tx.core.exceptions import TaskNotFoundError
from tx.tasks.models import Task

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GraphEdge:
    """A blocking edge between two known tasks."""

    blocker: Task
    blocked: Task

    @property
    def active(self) -> bool:
        """True while the blocker still holds the blocked task back."""
        return self.blocker.is_open and self.blocked.is_open


class DependencyGraph:
    """
    Blocking relationships over a snapshot of tasks.

    Tasks passed in are held by reference; add_edge mutates the blocker's
    ``blocks`` list so the caller can persist it.
    """

    def __init__(self, tasks: Iterable[Task]) -> None:
        self._tasks: dict[str, Task] = {}
        self._blocked_by: dict[str, list[str]] = {}

        for task in tasks:
            self._tasks[task.id] = task
        for task in self._tasks.values():
            for blocked_id in task.blocks:
                self._index_edge(task.id, blocked_id)

    def _index_edge(self, blocker_id: str, blocked_id: str) -> None:
        inbound = self._blocked_by.setdefault(blocked_id, [])
        if blocker_id not in inbound:
            inbound.append(blocker_id)

    def _require(self, task_id: str) -> Task:
        task = self._tasks.get(task_id)
        if task is None:
            raise TaskNotFoundError(f"Task not found: {task_id}", task_id=task_id)
        return task

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._tasks

    def __len__(self) -> int:
        return len(self._tasks)

    def get(self, task_id: str) -> Optional[Task]:
        return self._tasks.get(task_id)

    @property
    def tasks(self) -> list[Task]:
        return list(self._tasks.values())

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def add_edge(self, blocker_id: str, blocked_id: str) -> bool:
        """
        Record that ``blocker_id`` blocks ``blocked_id``.

        Self-edges are accepted. A duplicate edge changes nothing.

        Returns:
            True if the edge was added, False if it already existed

        Raises:
            TaskNotFoundError: If either task is unknown
        """
        blocker = self._require(blocker_id)
        self._require(blocked_id)

        if not blocker.add_block(blocked_id):
            return False
        self._index_edge(blocker_id, blocked_id)
        logger.debug(f"Edge added: {blocker_id} blocks {blocked_id}")
        return True

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def blockers_of(self, task_id: str) -> list[Task]:
        """Known tasks that block ``task_id``, oldest first."""
        blockers = [self._tasks[b] for b in self._blocked_by.get(task_id, []) if b in self._tasks]
        return sorted(blockers, key=lambda t: (t.created_at, t.id))

    def open_blockers_of(self, task_id: str) -> list[Task]:
        return [t for t in self.blockers_of(task_id) if t.is_open]

    def blocked_by(self, task_id: str) -> list[Task]:
        """Known tasks that ``task_id`` blocks, in edge order."""
        task = self._tasks.get(task_id)
        if task is None:
            return []
        return [self._tasks[b] for b in task.blocks if b in self._tasks]

    def is_blocked(self, task_id: str) -> bool:
        """True if any known task blocking ``task_id`` is open."""
        return any(
            self._tasks[b].is_open
            for b in self._blocked_by.get(task_id, [])
            if b in self._tasks
        )

    def open_blocked_count(self, task_id: str) -> int:
        """Number of open tasks that ``task_id`` blocks."""
        return sum(1 for t in self.blocked_by(task_id) if t.is_open)

    def blocked_tasks(self) -> list[Task]:
        """Open tasks currently held back by an open blocker, oldest first."""
        blocked = [t for t in self._tasks.values() if t.is_open and self.is_blocked(t.id)]
        return sorted(blocked, key=lambda t: (t.created_at, t.id))

    def roots(self) -> list[Task]:
        """Open tasks that block something but are not blocked themselves."""
        roots = [
            t for t in self._tasks.values()
            if t.is_open and t.blocks and not self.is_blocked(t.id)
        ]
        return sorted(roots, key=lambda t: (t.created_at, t.id))

    # -------------------------------------------------------------------------
    # Traversal
    # -------------------------------------------------------------------------

    def render_graph(self) -> Iterator[GraphEdge]:
        """
        Yield every edge with at least one open endpoint.

        Edges are ordered by blocker creation time, then blocker id, then
        the blocker's edge order. Edges to unknown tasks are skipped.
        """
        blockers = sorted(
            (t for t in self._tasks.values() if t.blocks),
            key=lambda t: (t.created_at, t.id),
        )
        for blocker in blockers:
            for blocked_id in blocker.blocks:
                blocked = self._tasks.get(blocked_id)
                if blocked is None:
                    continue
                if blocker.is_open or blocked.is_open:
                    yield GraphEdge(blocker=blocker, blocked=blocked)

    def walk(
        self, start_id: str, max_depth: int = DEFAULT_GRAPH_MAX_DEPTH
    ) -> Iterator[tuple[int, Task]]:
        """
        Depth-first walk along "blocks" edges.

        Every task is yielded at most once, so cycles terminate.

        Args:
            start_id: Task to start from (yielded at depth 0)
            max_depth: Deepest level to descend to

        Yields:
            (depth, task) pairs in pre-order

        Raises:
            TaskNotFoundError: If the start task is unknown
        """
        start = self._require(start_id)
        visited: set[str] = set()
        stack: list[tuple[int, Task]] = [(0, start)]

        while stack:
            depth, task = stack.pop()
            if task.id in visited:
                continue
            visited.add(task.id)
            yield depth, task

            if depth >= max_depth:
                continue
            children = [c for c in self.blocked_by(task.id) if c.id not in visited]
            for child in reversed(children):
                stack.append((depth + 1, child))
