"""
Read-side task views.

Every view is computed from a fresh snapshot of the store, with the
dependency graph, scorer, and semantic index composed on top. Field
comparisons go through the alias table, so a query for any spelling of
an entity finds tasks stored under any other spelling of it.
"""

import re
from datetime import date, timedelta
from typing import Optional

from tx.core.constants import FieldKind
from tx.extractors.base import Extraction
from tx.graph.dependencies import DependencyGraph
from tx.index.semantic import SemanticIndex
from tx.tasks.models import FieldValue, Task, normalize_field_name
from tx.tasks.scoring import FocusScore, rank_tasks
from tx.tasks.stats import TaskStats, compute_stats
from tx.tasks.store import TaskStore

NO_VALUE = "(none)"

SEARCH_STOPWORDS: frozenset[str] = frozenset(
    {
        "the", "and", "for", "with", "what", "which", "show", "list", "all",
        "any", "are", "tasks", "task", "that", "have", "has", "about", "due",
        "from", "this", "were", "was", "did", "how", "many",
    }
)


def parse_where(expression: str) -> tuple[str, str]:
    """
    Split a ``field=value`` expression.

    Raises:
        ValueError: If the expression has no ``=`` or an empty side
    """
    name, sep, value = expression.partition("=")
    name = normalize_field_name(name)
    value = value.strip()
    if not sep or not name or not value:
        raise ValueError(f"Expected FIELD=VALUE, got '{expression}'")
    return name, value


class TaskQueries:
    """Task views over a store snapshot."""

    def __init__(self, store: TaskStore, index: SemanticIndex, today: Optional[date] = None) -> None:
        self._store = store
        self._index = index
        self._today = today or date.today()
        self._graph: Optional[DependencyGraph] = None

    @property
    def today(self) -> date:
        return self._today

    @property
    def graph(self) -> DependencyGraph:
        if self._graph is None:
            self._graph = DependencyGraph(self._store.all_tasks())
        return self._graph

    def _open(self) -> list[Task]:
        return [t for t in self.graph.tasks if t.is_open]

    def _by_deadline(self, tasks: list[Task]) -> list[Task]:
        return sorted(tasks, key=lambda t: (t.deadline or date.max, t.created_at, t.id))

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    def open_tasks(self) -> list[Task]:
        return sorted(self._open(), key=lambda t: (t.created_at, t.id))

    def due_today(self) -> list[Task]:
        return self._by_deadline([t for t in self._open() if t.deadline == self._today])

    def due_this_week(self) -> list[Task]:
        """Open tasks due from today through the next six days."""
        end = self._today + timedelta(days=6)
        return self._by_deadline(
            [t for t in self._open() if t.deadline and self._today <= t.deadline <= end]
        )

    def overdue(self) -> list[Task]:
        return self._by_deadline(
            [t for t in self._open() if t.deadline and t.deadline < self._today]
        )

    def blocked(self) -> list[Task]:
        return self.graph.blocked_tasks()

    def focus(self, limit: Optional[int] = None) -> list[FocusScore]:
        ranked = rank_tasks(self._open(), self.graph, self._today)
        return ranked[:limit] if limit is not None else ranked

    def stats(self, window_days: int) -> TaskStats:
        tasks = self.graph.tasks
        return compute_stats(
            [t for t in tasks if t.is_open],
            [t for t in tasks if not t.is_open],
            self._today,
            window_days=window_days,
            canonical=self._index.canonical_for,
            graph=self.graph,
        )

    # -------------------------------------------------------------------------
    # Field Queries
    # -------------------------------------------------------------------------

    def _canonical(self, value: FieldValue) -> str:
        if value.kind == FieldKind.DATE:
            return value.text
        return self._index.canonical_for(value.text)

    def group_by(self, field_name: str) -> dict[str, list[Task]]:
        """Open tasks grouped by the canonical value of a field."""
        name = normalize_field_name(field_name)
        groups: dict[str, list[Task]] = {}
        for task in self.open_tasks():
            value = task.fields.get(name)
            key = self._canonical(value) if value is not None else NO_VALUE
            groups.setdefault(key, []).append(task)
        return dict(sorted(groups.items(), key=lambda item: (item[0] == NO_VALUE, item[0].casefold())))

    def matches(self, task: Task, field_name: str, value: FieldValue) -> bool:
        """True if the task's field equals ``value`` up to aliasing and case."""
        stored = task.fields.get(normalize_field_name(field_name))
        if stored is None:
            return False
        return self._canonical(stored).casefold() == self._canonical(value).casefold()

    def where(self, field_name: str, value: str, include_archived: bool = False) -> list[Task]:
        """Tasks whose field equals ``value``."""
        wanted = FieldValue.coerce(value)
        pool = self.graph.tasks if include_archived else self._open()
        return sorted(
            (t for t in pool if self.matches(t, field_name, wanted)),
            key=lambda t: (t.created_at, t.id),
        )

    def search(self, text: str) -> list[Task]:
        """Open tasks whose description contains every significant query word."""
        words = [
            w for w in re.findall(r"\w+", text.casefold())
            if len(w) > 2 and w not in SEARCH_STOPWORDS
        ]
        if not words:
            return []
        return [
            t for t in self.open_tasks()
            if all(w in t.description.casefold() for w in words)
        ]

    def ask(self, extraction: Extraction, text: str) -> list[Task]:
        """
        Answer a natural-language query.

        Extracted fields act as equality filters; a query with no
        extractable fields falls back to a word search.
        """
        if not extraction.fields:
            return self.search(text)
        return [
            t for t in self.open_tasks()
            if all(self.matches(t, name, value) for name, value in extraction.fields.items())
        ]
