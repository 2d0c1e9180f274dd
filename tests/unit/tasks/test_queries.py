"""
Unit tests for read-side task views.

Tests cover:
- Date views (today, week, overdue)
- Blocked and focus views
- Grouping and field equality through aliases
- Natural-language ask and word search
"""

from datetime import datetime, timedelta

import pytest

from tx.core.constants import FieldKind
from tx.extractors.base import Extraction
from tx.index.semantic import SemanticIndex
from tx.tasks.models import FieldValue
from tx.tasks.queries import NO_VALUE, TaskQueries, parse_where


def _str(value: str) -> FieldValue:
    return FieldValue(kind=FieldKind.STRING, value=value)


@pytest.fixture
def index() -> SemanticIndex:
    return SemanticIndex()


class TestDateViews:
    """Tests for deadline-based views."""

    def test_today_week_overdue(self, store, make_task, index, today):
        late = make_task("late", order=0, deadline=today - timedelta(days=1))
        now = make_task("now", order=1, deadline=today)
        soon = make_task("soon", order=2, deadline=today + timedelta(days=6))
        later = make_task("later", order=3, deadline=today + timedelta(days=7))
        undated = make_task("undated", order=4)
        for task in (later, soon, now, late, undated):
            store.create(task)

        queries = TaskQueries(store, index, today=today)
        assert [t.description for t in queries.due_today()] == ["now"]
        assert [t.description for t in queries.due_this_week()] == ["now", "soon"]
        assert [t.description for t in queries.overdue()] == ["late"]
        assert len(queries.open_tasks()) == 5

    def test_completed_tasks_excluded(self, store, make_task, index, today):
        task = make_task("done", deadline=today)
        store.create(task)
        task.complete(completed_at=datetime(2025, 12, 2, 8, 0))
        store.save(task)

        queries = TaskQueries(store, index, today=today)
        assert queries.due_today() == []
        assert queries.open_tasks() == []


class TestGraphViews:
    """Tests for blocked and focus views."""

    def test_blocked_and_focus(self, store, make_task, index, today):
        blocked = make_task("blocked", order=1)
        blocker = make_task("blocker", order=0, blocks=[blocked.id])
        urgent = make_task("urgent", order=2, priority="urgent")
        for task in (blocker, blocked, urgent):
            store.create(task)

        queries = TaskQueries(store, index, today=today)
        assert [t.description for t in queries.blocked()] == ["blocked"]

        focus = queries.focus()
        assert [s.task.description for s in focus] == ["urgent", "blocker", "blocked"]
        assert [s.score for s in focus] == [100, 40, -50]
        assert len(queries.focus(limit=1)) == 1

    def test_stats_use_canonical_project(self, store, make_task, index, today):
        index.propose_alias("Launch")
        index.merge_alias("Launch", "launch-q4")
        done_at = datetime(2025, 12, 2, 9, 0)
        for i, project in enumerate(["Launch", "launch-q4"]):
            task = make_task(f"t{i}", order=i, fields={"project": _str(project)})
            store.create(task)
            task.complete(completed_at=done_at)
            store.save(task)

        stats = TaskQueries(store, index, today=today).stats(window_days=7)
        assert stats.by_project == {"Launch": 2}
        assert stats.completion_rate == 100.0


class TestFieldQueries:
    """Tests for grouping and equality queries."""

    def test_group_by_with_missing_last(self, store, make_task, index, today):
        store.create(make_task("a", order=0, fields={"project": _str("work")}))
        store.create(make_task("b", order=1, fields={"project": _str("Home")}))
        store.create(make_task("c", order=2))

        groups = TaskQueries(store, index, today=today).group_by("Project")
        assert list(groups) == ["Home", "work", NO_VALUE]

    def test_group_by_folds_aliases(self, store, make_task, index, today):
        index.propose_alias("John")
        index.merge_alias("John", "Johnny B")
        store.create(make_task("a", order=0, fields={"person": _str("John")}))
        store.create(make_task("b", order=1, fields={"person": _str("Johnny B")}))

        groups = TaskQueries(store, index, today=today).group_by("person")
        assert list(groups) == ["John"]
        assert len(groups["John"]) == 2

    def test_where_case_insensitive(self, store, make_task, index, today):
        task = make_task("a", fields={"project": _str("Work")})
        store.create(task)
        assert TaskQueries(store, index, today=today).where("project", "work")[0].id == task.id

    def test_where_dates(self, store, make_task, index, today):
        task = make_task("a", deadline=today)
        store.create(task)
        queries = TaskQueries(store, index, today=today)
        assert queries.where("due", today.isoformat())[0].id == task.id
        assert queries.where("due", "2030-01-01") == []

    def test_where_include_archived(self, store, make_task, index, today):
        task = make_task("a", fields={"project": _str("work")})
        store.create(task)
        task.complete(completed_at=datetime(2025, 12, 2, 9, 0))
        store.save(task)

        queries = TaskQueries(store, index, today=today)
        assert queries.where("project", "work") == []
        assert len(queries.where("project", "work", include_archived=True)) == 1

    @pytest.mark.parametrize("expression", ["project", "=work", "project=", ""])
    def test_parse_where_invalid(self, expression):
        with pytest.raises(ValueError):
            parse_where(expression)

    def test_parse_where(self):
        assert parse_where(" Due Date = 2025-12-03 ") == ("due_date", "2025-12-03")


class TestAsk:
    """Tests for natural-language queries."""

    def test_ask_filters_on_extracted_fields(self, store, make_task, index, today):
        match = make_task("Call John", order=0, fields={"person": _str("John")})
        other = make_task("Call Maria", order=1, fields={"person": _str("Maria")})
        store.create(match)
        store.create(other)

        extraction = Extraction(fields={"person": _str("john")})
        results = TaskQueries(store, index, today=today).ask(extraction, "tasks for john")
        assert [t.id for t in results] == [match.id]

    def test_ask_falls_back_to_search(self, store, make_task, index, today):
        budget = make_task("Review the budget draft", order=0)
        store.create(budget)
        store.create(make_task("Buy milk", order=1))

        results = TaskQueries(store, index, today=today).ask(Extraction.empty(), "what about the budget?")
        assert [t.id for t in results] == [budget.id]

    def test_search_needs_significant_words(self, store, make_task, index, today):
        store.create(make_task("Buy milk"))
        assert TaskQueries(store, index, today=today).search("show all the tasks") == []
