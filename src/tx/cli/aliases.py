"""CLI commands for the alias table.

This module provides the `tx aliases` command group:
- list: Show canonical names and their variants
- merge: Record a variant under a canonical name
"""

from typing import Annotated

import typer
from rich.table import Table

from tx.cli.utils import console, err_console, open_tracker
from tx.core.exceptions import ValidationError

app = typer.Typer(
    name="aliases",
    help="Inspect and correct entity aliases.",
    no_args_is_help=True,
)


@app.command("list")
def aliases_list(ctx: typer.Context) -> None:
    """Show canonical names and their variants."""
    index = open_tracker(ctx).index

    if not index.aliases:
        console.print("[yellow]No aliases recorded yet[/yellow]")
        return

    table = Table(title="Aliases")
    table.add_column("Canonical", style="cyan")
    table.add_column("Variants")

    for canonical in sorted(index.aliases, key=str.casefold):
        entry = index.aliases[canonical]
        table.add_row(canonical, ", ".join(entry.variants) or "[dim]-[/dim]")

    console.print(table)


@app.command("merge")
def aliases_merge(
    ctx: typer.Context,
    canonical: Annotated[str, typer.Argument(help="Name to keep")],
    variant: Annotated[str, typer.Argument(help="Spelling to fold under it")],
) -> None:
    """Record VARIANT as another spelling of CANONICAL.

    Stored task text is never rewritten; queries for either spelling
    resolve to CANONICAL afterwards.
    """
    tracker = open_tracker(ctx)
    try:
        entry = tracker.merge_alias(canonical, variant)
    except ValidationError as e:
        err_console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]'{variant}' now resolves to '{entry.canonical}'[/green]")
    if len(entry.variants) > 1:
        console.print(f"Variants: {', '.join(entry.variants)}")
