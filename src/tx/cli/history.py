"""CLI commands for query history.

This module provides the `tx history` command group:
- list: Show recent natural-language queries
- show: Show one query, its filters, and the tasks it matched
"""

from typing import Annotated

import typer
from rich.table import Table
from rich.tree import Tree

from tx.cli.utils import console, err_console, exit_unresolved, open_history, open_store
from tx.core.constants import HISTORY_PREVIEW_LENGTH, SHORT_ID_LENGTH
from tx.core.exceptions import PersistenceCorruptionError

app = typer.Typer(
    name="history",
    help="Revisit earlier natural-language queries.",
    no_args_is_help=True,
)


def _preview(text: str) -> str:
    if len(text) <= HISTORY_PREVIEW_LENGTH:
        return text
    return text[: HISTORY_PREVIEW_LENGTH - 3] + "..."


@app.command("list")
def history_list(
    ctx: typer.Context,
    limit: Annotated[int, typer.Option("--limit", "-n", help="Maximum records to show")] = 20,
) -> None:
    """Show recent queries, newest first."""
    records = open_history(ctx).list_records(limit=limit)

    if not records:
        console.print("[yellow]No queries recorded yet[/yellow]")
        return

    table = Table(title="Query History")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("When", no_wrap=True)
    table.add_column("Query")
    table.add_column("Matches", justify="right")

    for record in records:
        table.add_row(
            record.id[:SHORT_ID_LENGTH],
            record.created_at.strftime("%Y-%m-%d %H:%M"),
            _preview(record.query),
            str(len(record.matched_ids)),
        )

    console.print(table)


@app.command("show")
def history_show(
    ctx: typer.Context,
    prefix: Annotated[str, typer.Argument(help="History record id or prefix")],
) -> None:
    """Show one query and the tasks it matched."""
    history = open_history(ctx)
    resolution = history.resolve(prefix)
    if not resolution.found:
        exit_unresolved(resolution, prefix, what="history record")

    try:
        record = history.get(resolution.match)
    except PersistenceCorruptionError as e:
        err_console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    store = open_store(ctx)
    tree = Tree(f"[bold cyan]{record.query}[/bold cyan] ({record.id})")
    tree.add(f"Asked: {record.created_at.strftime('%Y-%m-%d %H:%M')}")

    if record.filters:
        filters = tree.add("[green]Filters[/green]")
        for name, value in sorted(record.filters.items()):
            filters.add(f"{name} = {value}")

    matches = tree.add(f"[yellow]Matched {len(record.matched_ids)} tasks[/yellow]")
    for task_id in record.matched_ids:
        task = store.get(task_id)
        if task is None:
            matches.add(f"{task_id[:SHORT_ID_LENGTH]} [dim](no longer stored)[/dim]")
        else:
            done = " [green](done)[/green]" if task.is_completed else ""
            matches.add(f"{task.short_id} {task.description}{done}")

    console.print(tree)
