"""CLI utility modules for tx."""

from tx.cli.utils.context import (
    CliState,
    console,
    err_console,
    exit_unresolved,
    get_state,
    load_config,
    open_history,
    open_store,
    open_tracker,
)

__all__ = [
    "CliState",
    "console",
    "err_console",
    "exit_unresolved",
    "get_state",
    "load_config",
    "open_history",
    "open_store",
    "open_tracker",
]
