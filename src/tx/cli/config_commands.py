"""CLI commands for configuration.

This module provides the `tx config` command group:
- show: Print the effective configuration
- init: Write the default configuration file
"""

import json
from typing import Annotated

import typer

from tx.cli.utils import console, err_console, get_state, load_config
from tx.core.config import TxConfig
from tx.core.constants import get_config_path

app = typer.Typer(
    name="config",
    help="Show or initialize tx configuration.",
    no_args_is_help=True,
)


@app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Print the effective configuration as JSON."""
    config = load_config(ctx)
    path = get_config_path(get_state(ctx).home)
    source = str(path) if path.exists() else "defaults (no config file)"
    console.print(f"[dim]Source: {source}[/dim]")
    console.print_json(json.dumps(config.to_dict()))


@app.command("init")
def config_init(
    ctx: typer.Context,
    force: Annotated[
        bool, typer.Option("--force", help="Overwrite an existing config file")
    ] = False,
) -> None:
    """Write the default configuration file."""
    path = get_config_path(get_state(ctx).home)

    if path.exists() and not force:
        console.print(f"[yellow]Config already exists at {path}[/yellow]")
        console.print("Use --force to overwrite")
        return

    try:
        written = TxConfig().save(get_state(ctx).home)
    except OSError as e:
        err_console.print(f"[red]Error: Cannot write config: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]Wrote default config to {written}[/green]")
    console.print("Set \"provider\" to \"openai\" or \"local\" to enable LLM extraction.")
