"""
Focus scoring.

Deterministic ranking of open tasks. Contributions:

    deadline before today          +200
    deadline today                 +100
    priority "urgent"              +100
    priority "high"                 +50
    each open task it blocks        +40
    blocked by an open task         -50

Ties break on earliest deadline (none last), then creation time, then id.
Scores are recomputed per query and never stored on the task.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable

from tx.core.constants import (
    BLOCKED_PENALTY,
    BLOCKS_OPEN_SCORE,
    DUE_TODAY_SCORE,
    OVERDUE_SCORE,
    PRIORITY_SCORES,
)
from tx.graph.dependencies import DependencyGraph
from tx.tasks.models import Task


@dataclass(frozen=True)
class FocusScore:
    """A task's focus score and the contributions that make it up."""

    task: Task
    score: int
    breakdown: dict[str, int] = field(default_factory=dict)

    def sort_key(self) -> tuple:
        deadline = self.task.deadline
        return (
            -self.score,
            deadline is None,
            deadline or date.max,
            self.task.created_at,
            self.task.id,
        )


def score_task(task: Task, graph: DependencyGraph, today: date) -> FocusScore:
    """
    Score a single task.

    Args:
        task: Task to score
        graph: Dependency graph containing the task
        today: Reference date for deadline checks

    Returns:
        FocusScore with a per-reason breakdown
    """
    breakdown: dict[str, int] = {}

    if task.deadline is not None:
        if task.deadline < today:
            breakdown["overdue"] = OVERDUE_SCORE
        elif task.deadline == today:
            breakdown["due_today"] = DUE_TODAY_SCORE

    priority = task.priority
    if priority in PRIORITY_SCORES:
        breakdown[f"priority_{priority}"] = PRIORITY_SCORES[priority]

    blocking = graph.open_blocked_count(task.id)
    if blocking:
        breakdown["blocks_open"] = BLOCKS_OPEN_SCORE * blocking

    if graph.is_blocked(task.id):
        breakdown["blocked"] = BLOCKED_PENALTY

    return FocusScore(task=task, score=sum(breakdown.values()), breakdown=breakdown)


def rank_tasks(tasks: Iterable[Task], graph: DependencyGraph, today: date) -> list[FocusScore]:
    """Score tasks and order them by focus, highest first."""
    scores = [score_task(task, graph, today) for task in tasks]
    return sorted(scores, key=FocusScore.sort_key)
