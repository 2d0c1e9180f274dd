"""Main CLI entrypoint for tx."""

import logging
import sys
from datetime import date
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.table import Table
from rich.tree import Tree

from tx.cli.aliases import app as aliases_app
from tx.cli.config_commands import app as config_app
from tx.cli.history import app as history_app
from tx.cli.utils import (
    CliState,
    console,
    err_console,
    exit_unresolved,
    load_config,
    open_history,
    open_store,
    open_tracker,
)
from tx.cli.utils.rendering import focus_table, format_fields, task_table, task_tree
from tx.core.exceptions import ValidationError
from tx.core.fileio import atomic_write_text
from tx.export.formats import ExportFormat, export_tasks
from tx.tasks.models import Task
from tx.tasks.queries import TaskQueries, parse_where
from tx.tasks.resolver import resolve_prefix
from tx.tasks.tracker import parse_duration

logger = logging.getLogger(__name__)

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

# Create main app
app = typer.Typer(
    name="tx",
    help="tx - track tasks written in plain language",
    no_args_is_help=True,
)

app.add_typer(aliases_app, name="aliases")
app.add_typer(history_app, name="history")
app.add_typer(config_app, name="config")


@app.callback()
def main_callback(
    ctx: typer.Context,
    home: Annotated[
        Optional[Path],
        typer.Option("--home", envvar="TX_HOME", help="tx data directory (default ~/.tx)"),
    ] = None,
    log_level: Annotated[
        str, typer.Option("--log-level", help="DEBUG, INFO, WARNING or ERROR")
    ] = "WARNING",
) -> None:
    """Track tasks written in plain language."""
    log_level_upper = log_level.upper()
    if log_level_upper not in VALID_LOG_LEVELS:
        err_console.print(f"[red]Error: Invalid log level '{log_level}'[/red]")
        err_console.print(f"Valid levels: {', '.join(VALID_LOG_LEVELS)}")
        raise typer.Exit(1)

    logging.basicConfig(
        level=getattr(logging, log_level_upper),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )
    ctx.obj = CliState(home=home)


def _queries(ctx: typer.Context) -> TaskQueries:
    tracker = open_tracker(ctx)
    return TaskQueries(tracker.store, tracker.index, today=date.today())


def _print_tasks(queries: TaskQueries, tasks: list[Task], title: str, empty: str) -> None:
    if not tasks:
        console.print(f"[yellow]{empty}[/yellow]")
        return
    console.print(task_table(tasks, title, queries.today, graph=queries.graph))


# =============================================================================
# Adding and Completing
# =============================================================================

@app.command("add")
def add_command(
    ctx: typer.Context,
    text: Annotated[list[str], typer.Argument(help="Task description")],
) -> None:
    """Add a task from free-form text."""
    tracker = open_tracker(ctx)
    try:
        outcome = tracker.add(" ".join(text))
    except ValidationError as e:
        err_console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    for warning in outcome.warnings:
        err_console.print(f"[yellow]Warning: {warning}[/yellow]")

    task = outcome.task
    console.print(f"[green]Added[/green] [cyan]{task.short_id}[/cyan] {task.description}")
    if task.deadline:
        console.print(f"  Due: {task.deadline.isoformat()}")
    if task.recurrence:
        console.print(f"  Repeats: {task.recurrence.describe()}")
    summary = format_fields(task)
    if summary:
        console.print(f"  Fields: {summary}")

    for proposal in outcome.alias_proposals:
        console.print(
            f"  [blue]Treating '{proposal.variant}' as '{proposal.canonical}'[/blue] "
            f"(similarity {proposal.score:.2f}); correct with 'tx aliases merge'"
        )
    if outcome.template is not None and outcome.template.is_established(
        tracker.index.template_min_matches
    ):
        console.print(f"  [dim]Matches template: {outcome.template.pattern}[/dim]")


def _ask_duration() -> Optional[int]:
    while True:
        answer = typer.prompt(
            "Time spent (e.g. 30m, 1h30m, or 'skip')", default="skip", show_default=False
        )
        try:
            return parse_duration(answer)
        except ValidationError as e:
            err_console.print(f"[yellow]{e.message}[/yellow]")


@app.command("done")
def done_command(
    ctx: typer.Context,
    prefix: Annotated[str, typer.Argument(help="Task id or unique prefix")],
    duration: Annotated[
        Optional[str], typer.Option("--duration", "-d", help="Time spent, e.g. 45m or 1h30m")
    ] = None,
    note: Annotated[Optional[str], typer.Option("--note", "-n", help="Completion note")] = None,
    no_prompt: Annotated[
        bool, typer.Option("--no-prompt", help="Do not ask for duration or note")
    ] = False,
) -> None:
    """Complete an open task."""
    tracker = open_tracker(ctx)

    resolution = tracker.resolve_open(prefix)
    if not resolution.found:
        exit_unresolved(resolution, prefix, what="open task")

    task = tracker.store.get(resolution.match)
    console.print(f"Completing [cyan]{task.short_id}[/cyan] {task.description}")

    if duration is not None:
        try:
            minutes = parse_duration(duration)
        except ValidationError as e:
            err_console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(1)
    elif no_prompt:
        minutes = None
    else:
        minutes = _ask_duration()

    if note is None and not no_prompt:
        note = typer.prompt("Note (optional)", default="", show_default=False)

    outcome = tracker.complete(resolution.match, duration_minutes=minutes, note=note or None)

    console.print(f"[green]Completed[/green] [cyan]{outcome.task.short_id}[/cyan]")
    for warning in outcome.warnings:
        err_console.print(f"[yellow]Warning: {warning}[/yellow]")
    if outcome.next_task is not None:
        console.print(
            f"Next occurrence [cyan]{outcome.next_task.short_id}[/cyan] "
            f"due {outcome.next_task.deadline.isoformat()}"
        )


@app.command("block")
def block_command(
    ctx: typer.Context,
    blocker: Annotated[str, typer.Argument(help="Task that must finish first")],
    blocked: Annotated[str, typer.Argument(help="Task that waits on it")],
) -> None:
    """Record that BLOCKER blocks BLOCKED."""
    tracker = open_tracker(ctx)
    outcome = tracker.block(blocker, blocked)

    if not outcome.blocker_resolution.found:
        exit_unresolved(outcome.blocker_resolution, blocker)
    if not outcome.blocked_resolution.found:
        exit_unresolved(outcome.blocked_resolution, blocked)

    if not outcome.added:
        console.print("[yellow]That dependency already exists[/yellow]")
        return
    console.print(
        f"[green]{outcome.blocker.short_id}[/green] now blocks "
        f"[green]{outcome.blocked.short_id}[/green]"
    )
    if outcome.blocker.id == outcome.blocked.id:
        console.print("[yellow]Note: the task now blocks itself[/yellow]")


@app.command("show")
def show_command(
    ctx: typer.Context,
    prefix: Annotated[str, typer.Argument(help="Task id or unique prefix")],
) -> None:
    """Show a task with its fields and dependencies."""
    queries = _queries(ctx)
    resolution = resolve_prefix(prefix, [t.id for t in queries.graph.tasks])
    if not resolution.found:
        exit_unresolved(resolution, prefix)

    task = queries.graph.get(resolution.match)
    console.print(task_tree(task, queries.graph, queries.today))


# =============================================================================
# Views
# =============================================================================

@app.command("list")
def list_command(
    ctx: typer.Context,
    show_all: Annotated[bool, typer.Option("--all", "-a", help="Include completed tasks")] = False,
) -> None:
    """List open tasks."""
    queries = _queries(ctx)
    tasks = queries.open_tasks()
    if show_all:
        tasks = sorted(queries.graph.tasks, key=lambda t: (t.created_at, t.id))
    _print_tasks(queries, tasks, "Tasks", "No tasks")


@app.command("today")
def today_command(ctx: typer.Context) -> None:
    """List open tasks due today."""
    queries = _queries(ctx)
    _print_tasks(queries, queries.due_today(), "Due Today", "Nothing due today")


@app.command("week")
def week_command(ctx: typer.Context) -> None:
    """List open tasks due in the next seven days."""
    queries = _queries(ctx)
    _print_tasks(queries, queries.due_this_week(), "Due This Week", "Nothing due this week")


@app.command("overdue")
def overdue_command(ctx: typer.Context) -> None:
    """List open tasks past their deadline."""
    queries = _queries(ctx)
    _print_tasks(queries, queries.overdue(), "Overdue", "Nothing overdue")


@app.command("blocked")
def blocked_command(ctx: typer.Context) -> None:
    """List open tasks waiting on another open task."""
    queries = _queries(ctx)
    _print_tasks(queries, queries.blocked(), "Blocked", "Nothing blocked")


@app.command("focus")
def focus_command(
    ctx: typer.Context,
    limit: Annotated[int, typer.Option("--limit", "-n", help="Number of tasks to show")] = 10,
) -> None:
    """Rank open tasks by what to do next."""
    queries = _queries(ctx)
    ranked = queries.focus(limit=limit)
    if not ranked:
        console.print("[yellow]Nothing open[/yellow]")
        return
    console.print(focus_table(ranked, queries.today))


@app.command("group")
def group_command(
    ctx: typer.Context,
    field_name: Annotated[str, typer.Argument(metavar="FIELD", help="Field to group by")],
) -> None:
    """Group open tasks by a discovered field."""
    queries = _queries(ctx)
    groups = queries.group_by(field_name)
    if not groups:
        console.print("[yellow]Nothing open[/yellow]")
        return
    for value, tasks in groups.items():
        console.print(task_table(tasks, f"{field_name}: {value} ({len(tasks)})", queries.today, queries.graph))


@app.command("where")
def where_command(
    ctx: typer.Context,
    expression: Annotated[str, typer.Argument(metavar="FIELD=VALUE", help="Equality filter")],
    include_archived: Annotated[
        bool, typer.Option("--all", "-a", help="Include completed tasks")
    ] = False,
) -> None:
    """List tasks whose field equals a value (aliases included)."""
    try:
        name, value = parse_where(expression)
    except ValueError as e:
        err_console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    queries = _queries(ctx)
    tasks = queries.where(name, value, include_archived=include_archived)
    _print_tasks(queries, tasks, f"{name} = {value}", f"No tasks with {name} = {value}")


@app.command("ask")
def ask_command(
    ctx: typer.Context,
    text: Annotated[list[str], typer.Argument(help="Question in plain language")],
) -> None:
    """Ask a question about your tasks in plain language."""
    question = " ".join(text)
    tracker = open_tracker(ctx)
    extraction, warnings = tracker.extract(question)
    for warning in warnings:
        err_console.print(f"[yellow]Warning: {warning}[/yellow]")

    queries = TaskQueries(tracker.store, tracker.index, today=date.today())
    matched = queries.ask(extraction, question)
    filters = {name: value.text for name, value in extraction.fields.items()}

    record = open_history(ctx).record(question, filters=filters, matched_ids=[t.id for t in matched])

    if filters:
        console.print("[dim]Filters: " + ", ".join(f"{k}={v}" for k, v in filters.items()) + "[/dim]")
    _print_tasks(queries, matched, "Answer", "No matching tasks")
    console.print(f"[dim]Saved as {record.id[:8]}[/dim]")


# =============================================================================
# Structure
# =============================================================================

@app.command("structures")
def structures_command(ctx: typer.Context) -> None:
    """Show the fields discovered so far."""
    index = open_tracker(ctx).index
    if not index.fields:
        console.print("[yellow]No fields discovered yet[/yellow]")
        return

    table = Table(title="Discovered Fields")
    table.add_column("Field", style="cyan")
    table.add_column("Type", style="magenta")
    table.add_column("Count", justify="right")
    table.add_column("Samples", style="dim")

    for entry in sorted(index.fields.values(), key=lambda e: (-e.count, e.name)):
        table.add_row(entry.name, entry.field_type.value, str(entry.count), ", ".join(entry.samples))
    console.print(table)


@app.command("templates")
def templates_command(
    ctx: typer.Context,
    show_all: Annotated[
        bool, typer.Option("--all", "-a", help="Include shapes seen only once")
    ] = False,
) -> None:
    """Show recurring task phrasings."""
    index = open_tracker(ctx).index
    templates = (
        sorted(index.templates.values(), key=lambda t: (-t.match_count, t.pattern))
        if show_all
        else index.established_templates()
    )
    if not templates:
        console.print("[yellow]No templates yet[/yellow]")
        return

    table = Table(title="Templates")
    table.add_column("Pattern", style="cyan")
    table.add_column("Fields")
    table.add_column("Seen", justify="right")

    for template in templates:
        table.add_row(template.pattern, ", ".join(sorted(template.fields)), str(template.match_count))
    console.print(table)


@app.command("graph")
def graph_command(ctx: typer.Context) -> None:
    """Show blocking dependencies as trees."""
    config = load_config(ctx)
    queries = _queries(ctx)
    graph = queries.graph

    edges = list(graph.render_graph())
    if not edges:
        console.print("[yellow]No dependencies[/yellow]")
        return

    shown: set[tuple[str, str]] = set()
    for root in graph.roots():
        tree = Tree(f"[bold cyan]{root.short_id}[/bold cyan] {root.description}")
        branches = {root.id: tree}
        parents: dict[str, str] = {}
        for depth, task in graph.walk(root.id, max_depth=config.graph.max_depth):
            for child in graph.blocked_by(task.id):
                parents.setdefault(child.id, task.id)
            if depth == 0:
                continue
            parent = branches[parents[task.id]]
            marker = "" if task.is_open else " [green](done)[/green]"
            branches[task.id] = parent.add(f"{task.short_id} {task.description}{marker}")
            shown.add((parents[task.id], task.id))
        console.print(tree)

    # Edges only reachable through cycles have no unblocked root
    remaining = [e for e in edges if (e.blocker.id, e.blocked.id) not in shown]
    if remaining:
        console.print("[yellow]Other dependencies:[/yellow]")
        for edge in remaining:
            console.print(f"  {edge.blocker.short_id} -> {edge.blocked.short_id} {edge.blocked.description}")


@app.command("stats")
def stats_command(
    ctx: typer.Context,
    days: Annotated[
        Optional[int], typer.Option("--days", help="Days in the completion chart")
    ] = None,
) -> None:
    """Show completion statistics."""
    config = load_config(ctx)
    window = days if days is not None else config.stats.window_days
    if window < 1:
        err_console.print("[red]Error: --days must be at least 1[/red]")
        raise typer.Exit(1)

    stats = _queries(ctx).stats(window)

    console.print("[bold]Task Statistics[/bold]")
    console.print("-" * 30)
    console.print(f"Created:         {stats.total_created}")
    console.print(f"Completed:       {stats.total_completed} ({stats.completion_rate:.1f}%)")
    console.print(f"Open:            {stats.open_count}")
    console.print(f"Overdue:         {stats.overdue_count}")
    console.print(f"Blocked:         {stats.blocked_count}")

    if stats.by_project:
        table = Table(title="Completed by Project")
        table.add_column("Project", style="cyan")
        table.add_column("Done", justify="right")
        for project, count in stats.by_project.items():
            table.add_row(project, str(count))
        console.print(table)

    if stats.avg_duration_by_type:
        table = Table(title="Average Duration")
        table.add_column("Type", style="cyan")
        table.add_column("Minutes", justify="right")
        for task_type, minutes in stats.avg_duration_by_type.items():
            table.add_row(task_type, f"{minutes:.1f}")
        console.print(table)

    console.print(f"[bold]Last {window} days[/bold]")
    for day, count in stats.daily_completions:
        console.print(f"  {day.strftime('%a %m-%d')}  {'#' * count} {count}")


# =============================================================================
# Maintenance
# =============================================================================

@app.command("export")
def export_command(
    ctx: typer.Context,
    fmt: Annotated[
        ExportFormat, typer.Option("--format", "-f", help="json, markdown or ical")
    ] = ExportFormat.JSON,
    output: Annotated[
        Optional[Path], typer.Option("--output", "-o", help="Write to a file instead of stdout")
    ] = None,
    open_only: Annotated[
        bool, typer.Option("--open-only", help="Leave out completed tasks")
    ] = False,
) -> None:
    """Export tasks."""
    store = open_store(ctx)
    tasks = store.open_tasks() if open_only else store.all_tasks()
    text = export_tasks(tasks, fmt)

    if output is None:
        typer.echo(text, nl=False)
        return

    try:
        atomic_write_text(output, text)
    except OSError as e:
        err_console.print(f"[red]Error: Cannot write {output}: {e}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]Exported {len(tasks)} tasks to {output}[/green]")


@app.command("reindex")
def reindex_command(ctx: typer.Context) -> None:
    """Rebuild discovered fields and templates from stored tasks."""
    tracker = open_tracker(ctx)
    index = tracker.reindex()
    counts = tracker.store.count()
    console.print(
        f"[green]Reindexed {counts['open'] + counts['archived']} tasks[/green]: "
        f"{len(index.fields)} fields, {len(index.templates)} templates, "
        f"{len(index.aliases)} aliases kept"
    )
