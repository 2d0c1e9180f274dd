"""Unit tests for task statistics."""

from datetime import date, datetime, timedelta

import pytest

from tx.core.constants import FieldKind
from tx.tasks.models import FieldValue
from tx.tasks.stats import compute_stats


def _field(value: str) -> FieldValue:
    return FieldValue(kind=FieldKind.STRING, value=value)


class TestComputeStats:
    """Tests for compute_stats."""

    def test_empty(self, today):
        stats = compute_stats([], [], today)
        assert stats.total_created == 0
        assert stats.completion_rate == 0.0
        assert stats.by_project == {}
        assert len(stats.daily_completions) == 7
        assert all(count == 0 for _, count in stats.daily_completions)

    def test_completion_rate(self, make_task, today):
        done_at = datetime(2025, 12, 2, 10, 0)
        archived = [make_task(f"d{i}", order=i, completed_at=done_at) for i in range(3)]
        open_tasks = [make_task("open", order=9)]

        stats = compute_stats(open_tasks, archived, today)
        assert stats.total_created == 4
        assert stats.total_completed == 3
        assert stats.completion_rate == 75.0
        assert stats.open_count == 1

    def test_rate_rounded_to_one_decimal(self, make_task, today):
        done = [make_task("d", completed_at=datetime(2025, 12, 1, 8, 0))]
        open_tasks = [make_task("a", order=1), make_task("b", order=2)]
        assert compute_stats(open_tasks, done, today).completion_rate == 33.3

    def test_daily_window_zero_filled(self, make_task, today):
        archived = [
            make_task("a", completed_at=datetime(2025, 12, 2, 9, 0)),
            make_task("b", order=1, completed_at=datetime(2025, 12, 2, 18, 0)),
            make_task("c", order=2, completed_at=datetime(2025, 11, 30, 12, 0)),
            make_task("old", order=3, completed_at=datetime(2025, 11, 1, 12, 0)),
        ]
        stats = compute_stats([], archived, today, window_days=3)

        assert stats.daily_completions == [
            (date(2025, 11, 30), 1),
            (date(2025, 12, 1), 0),
            (date(2025, 12, 2), 2),
        ]

    def test_by_project_sorted_by_count(self, make_task, today):
        done_at = datetime(2025, 12, 1, 8, 0)
        archived = [
            make_task("a", fields={"project": _field("home")}, completed_at=done_at),
            make_task("b", order=1, fields={"project": _field("work")}, completed_at=done_at),
            make_task("c", order=2, fields={"project": _field("work")}, completed_at=done_at),
            make_task("d", order=3, completed_at=done_at),
        ]
        stats = compute_stats([], archived, today)
        assert list(stats.by_project.items()) == [("work", 2), ("home", 1)]

    def test_by_project_uses_canonical_names(self, make_task, today):
        done_at = datetime(2025, 12, 1, 8, 0)
        archived = [
            make_task("a", fields={"project": _field("Q4 Launch")}, completed_at=done_at),
            make_task("b", order=1, fields={"project": _field("q4-launch")}, completed_at=done_at),
        ]
        canonical = {"Q4 Launch": "q4-launch"}
        stats = compute_stats([], archived, today, canonical=lambda p: canonical.get(p, p))
        assert stats.by_project == {"q4-launch": 2}

    def test_average_duration_by_type(self, make_task, today):
        done_at = datetime(2025, 12, 1, 8, 0)
        archived = [
            make_task("a", fields={"type": _field("call")}, completed_at=done_at, duration_minutes=10),
            make_task("b", order=1, fields={"type": _field("call")}, completed_at=done_at, duration_minutes=25),
            make_task("c", order=2, completed_at=done_at, duration_minutes=60),
            make_task("d", order=3, completed_at=done_at),
        ]
        stats = compute_stats([], archived, today)
        assert stats.avg_duration_by_type == {"call": 17.5, "unspecified": 60.0}

    def test_overdue_and_blocked_counts(self, make_task, today):
        blocked = make_task("blocked", order=1)
        overdue = make_task("late", order=2, deadline=today - timedelta(days=2), blocks=[blocked.id])
        stats = compute_stats([overdue, blocked], [], today)
        assert stats.overdue_count == 1
        assert stats.blocked_count == 1

    def test_to_dict(self, today):
        data = compute_stats([], [], today, window_days=1).to_dict()
        assert data["daily_completions"] == [{"date": "2025-12-02", "completed": 0}]

    def test_invalid_window(self, today):
        with pytest.raises(ValueError):
            compute_stats([], [], today, window_days=0)
