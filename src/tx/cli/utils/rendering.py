"""Rich renderers for tasks and index tables."""

from datetime import date
from typing import Iterable, Optional

from rich.table import Table
from rich.tree import Tree

from tx.core.constants import DEADLINE_FIELD_NAMES, PRIORITY_FIELD
from tx.graph.dependencies import DependencyGraph
from tx.tasks.models import Task
from tx.tasks.scoring import FocusScore

HIDDEN_SUMMARY_FIELDS = frozenset((*DEADLINE_FIELD_NAMES, PRIORITY_FIELD))


def format_deadline(task: Task, today: date) -> str:
    if task.deadline is None:
        return ""
    text = task.deadline.isoformat()
    if not task.is_open:
        return f"[dim]{text}[/dim]"
    if task.deadline < today:
        return f"[red]{text}[/red]"
    if task.deadline == today:
        return f"[yellow]{text}[/yellow]"
    return text


def format_fields(task: Task) -> str:
    """Compact ``name=value`` summary of non-deadline fields."""
    return ", ".join(
        f"{name}={value.text}"
        for name, value in sorted(task.fields.items())
        if name not in HIDDEN_SUMMARY_FIELDS
    )


def task_table(
    tasks: Iterable[Task],
    title: str,
    today: date,
    graph: Optional[DependencyGraph] = None,
) -> Table:
    table = Table(title=title)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Task")
    table.add_column("Due", no_wrap=True)
    table.add_column("Priority", style="magenta")
    table.add_column("Fields", style="dim")
    table.add_column("State")

    for task in tasks:
        if not task.is_open:
            state = "[green]done[/green]"
        elif graph is not None and graph.is_blocked(task.id):
            state = "[red]blocked[/red]"
        else:
            state = "open"
        if task.recurrence:
            state += f" [blue]({task.recurrence.describe()})[/blue]"
        table.add_row(
            task.short_id,
            task.description,
            format_deadline(task, today),
            task.priority or "",
            format_fields(task),
            state,
        )
    return table


def focus_table(scores: Iterable[FocusScore], today: date) -> Table:
    table = Table(title="Focus")
    table.add_column("#", justify="right")
    table.add_column("Score", justify="right", style="bold")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Task")
    table.add_column("Due", no_wrap=True)
    table.add_column("Why", style="dim")

    for rank, entry in enumerate(scores, start=1):
        why = ", ".join(f"{reason} {points:+d}" for reason, points in entry.breakdown.items())
        table.add_row(
            str(rank),
            str(entry.score),
            entry.task.short_id,
            entry.task.description,
            format_deadline(entry.task, today),
            why,
        )
    return table


def task_tree(task: Task, graph: DependencyGraph, today: date) -> Tree:
    """Detailed view of one task."""
    status = "[green]completed[/green]" if task.is_completed else "open"
    tree = Tree(f"[bold cyan]{task.description}[/bold cyan] ({task.id})")

    props = tree.add("[dim]Properties[/dim]")
    props.add(f"Status: {status}")
    props.add(f"Created: {task.created_at.strftime('%Y-%m-%d %H:%M')}")
    if task.deadline:
        props.add(f"Deadline: {format_deadline(task, today)}")
    if task.recurrence:
        props.add(f"Repeats: {task.recurrence.describe()}")
    if task.completion:
        props.add(f"Completed: {task.completion.completed_at.strftime('%Y-%m-%d %H:%M')}")
        duration = task.completion.duration_minutes
        props.add(f"Duration: {'skipped' if duration is None else f'{duration} min'}")
        if task.completion.note:
            props.add(f"Note: {task.completion.note}")

    if task.fields:
        fields = tree.add("[green]Fields[/green]")
        for name, value in sorted(task.fields.items()):
            fields.add(f"{name} = {value.text} [dim]({value.kind.value})[/dim]")

    blocks = graph.blocked_by(task.id)
    if blocks:
        branch = tree.add("[yellow]Blocks[/yellow]")
        for other in blocks:
            branch.add(f"{other.short_id} {other.description}")

    blockers = graph.blockers_of(task.id)
    if blockers:
        branch = tree.add("[yellow]Blocked by[/yellow]")
        for other in blockers:
            marker = "" if other.is_open else " [green](done)[/green]"
            branch.add(f"{other.short_id} {other.description}{marker}")

    return tree
