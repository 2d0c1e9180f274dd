"""Statistics over the open and archived task sets."""

from collections import Counter, defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Callable, Optional, Sequence

from tx.core.constants import DEFAULT_STATS_WINDOW_DAYS, UNSPECIFIED_TYPE
from tx.graph.dependencies import DependencyGraph
from tx.tasks.models import Task


@dataclass
class TaskStats:
    """Aggregate statistics for a task set."""

    total_created: int = 0
    total_completed: int = 0
    completion_rate: float = 0.0
    by_project: dict[str, int] = field(default_factory=dict)
    avg_duration_by_type: dict[str, float] = field(default_factory=dict)
    daily_completions: list[tuple[date, int]] = field(default_factory=list)
    open_count: int = 0
    overdue_count: int = 0
    blocked_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_created": self.total_created,
            "total_completed": self.total_completed,
            "completion_rate": self.completion_rate,
            "by_project": dict(self.by_project),
            "avg_duration_by_type": dict(self.avg_duration_by_type),
            "daily_completions": [
                {"date": day.isoformat(), "completed": count}
                for day, count in self.daily_completions
            ],
            "open_count": self.open_count,
            "overdue_count": self.overdue_count,
            "blocked_count": self.blocked_count,
        }


def compute_stats(
    open_tasks: Sequence[Task],
    archived_tasks: Sequence[Task],
    today: date,
    window_days: int = DEFAULT_STATS_WINDOW_DAYS,
    canonical: Optional[Callable[[str], str]] = None,
    graph: Optional[DependencyGraph] = None,
) -> TaskStats:
    """
    Compute task statistics.

    Args:
        open_tasks: Tasks still open
        archived_tasks: Completed tasks
        today: Last day of the daily completion window
        window_days: Length of the daily completion window
        canonical: Maps a project name to its canonical alias
        graph: Dependency graph over both sets; built when omitted

    Returns:
        TaskStats. Completion rate is a percentage rounded to one decimal,
        0.0 when nothing was ever created.
    """
    if window_days < 1:
        raise ValueError("window_days must be at least 1")

    completed = [t for t in archived_tasks if t.is_completed and t.completion is not None]
    total_created = len(open_tasks) + len(archived_tasks)

    stats = TaskStats(
        total_created=total_created,
        total_completed=len(completed),
        completion_rate=(
            round(100.0 * len(completed) / total_created, 1) if total_created else 0.0
        ),
        open_count=len(open_tasks),
    )

    projects: Counter[str] = Counter()
    durations: dict[str, list[int]] = defaultdict(list)
    per_day: Counter[date] = Counter()

    for task in completed:
        project = task.project
        if project:
            projects[canonical(project) if canonical else project] += 1

        if task.completion.duration_minutes is not None:
            durations[task.task_type or UNSPECIFIED_TYPE].append(task.completion.duration_minutes)

        per_day[task.completion.completed_at.date()] += 1

    stats.by_project = dict(sorted(projects.items(), key=lambda item: (-item[1], item[0])))
    stats.avg_duration_by_type = {
        task_type: round(sum(values) / len(values), 1)
        for task_type, values in sorted(durations.items())
    }

    start = today - timedelta(days=window_days - 1)
    stats.daily_completions = [
        (start + timedelta(days=offset), per_day.get(start + timedelta(days=offset), 0))
        for offset in range(window_days)
    ]

    if graph is None:
        graph = DependencyGraph([*open_tasks, *archived_tasks])
    stats.overdue_count = sum(
        1 for t in open_tasks if t.deadline is not None and t.deadline < today
    )
    stats.blocked_count = sum(1 for t in open_tasks if graph.is_blocked(t.id))

    return stats
