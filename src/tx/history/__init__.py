"""Natural-language query history."""

from tx.history.store import HistoryRecord, HistoryStore

__all__ = [
    "HistoryRecord",
    "HistoryStore",
]
