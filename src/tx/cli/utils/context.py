"""Shared CLI state: where tx lives and how to open its components."""

from dataclasses import dataclass
from pathlib import Path
from typing import NoReturn, Optional

import typer
from rich.console import Console

from tx.core.config import TxConfig
from tx.core.constants import ResolutionStatus
from tx.core.exceptions import ConfigurationError
from tx.extractors import create_extractor
from tx.history.store import HistoryStore
from tx.tasks.resolver import Resolution
from tx.tasks.store import TaskStore
from tx.tasks.tracker import TaskTracker

console = Console()
err_console = Console(stderr=True)


@dataclass
class CliState:
    """Options given to the top-level ``tx`` command."""

    home: Optional[Path] = None


def get_state(ctx: typer.Context) -> CliState:
    root = ctx.find_root()
    if not isinstance(root.obj, CliState):
        root.obj = CliState()
    return root.obj


def load_config(ctx: typer.Context) -> TxConfig:
    """Load configuration, exiting with an error if it is invalid."""
    try:
        return TxConfig.load(get_state(ctx).home)
    except ConfigurationError as e:
        err_console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)


def open_store(ctx: typer.Context) -> TaskStore:
    return TaskStore(get_state(ctx).home, config=load_config(ctx))


def open_tracker(ctx: typer.Context) -> TaskTracker:
    config = load_config(ctx)
    try:
        extractor = create_extractor(config)
    except ConfigurationError as e:
        err_console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    store = TaskStore(get_state(ctx).home, config=config)
    return TaskTracker(store, extractor, config=config)


def open_history(ctx: typer.Context) -> HistoryStore:
    return HistoryStore(get_state(ctx).home)


def exit_unresolved(resolution: Resolution, prefix: str, what: str = "task") -> NoReturn:
    """
    Report a prefix that did not resolve to exactly one id and exit.

    Not-found and ambiguous prefixes print different messages; an
    ambiguous prefix lists every candidate. Both exit with code 1.
    """
    if resolution.status == ResolutionStatus.AMBIGUOUS:
        err_console.print(
            f"[yellow]Error: '{prefix}' is ambiguous, it matches "
            f"{len(resolution.matches)} {what}s:[/yellow]"
        )
        for candidate in resolution.matches:
            err_console.print(f"  {candidate}")
        err_console.print("Use a longer prefix.")
    else:
        err_console.print(f"[red]Error: No {what} matches '{prefix}'[/red]")
    raise typer.Exit(1)
