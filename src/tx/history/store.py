"""
Query history.

Every natural-language query is kept as a small YAML record under
``<tx root>/history/<id>.yaml`` so earlier questions and their answers
can be listed and revisited by id prefix.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from tx.core.constants import RECORD_FILE_EXTENSION, get_history_root
from tx.core.exceptions import PersistenceCorruptionError
from tx.core.fileio import atomic_write_text
from tx.tasks.resolver import Resolution, resolve_prefix
from tx.tasks.store import dump_yaml, load_yaml_record

logger = logging.getLogger(__name__)


@dataclass
class HistoryRecord:
    """One natural-language query and what it matched."""

    query: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=datetime.now)
    filters: dict[str, str] = field(default_factory=dict)
    matched_ids: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "query": self.query,
            "created_at": self.created_at.isoformat(),
            "filters": dict(self.filters),
            "matched_ids": list(self.matched_ids),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HistoryRecord":
        return cls(
            id=data["id"],
            query=data["query"],
            created_at=datetime.fromisoformat(data["created_at"]),
            filters={str(k): str(v) for k, v in (data.get("filters") or {}).items()},
            matched_ids=[str(i) for i in data.get("matched_ids") or []],
        )


class HistoryStore:
    """Persistent store of query history records."""

    def __init__(self, base_path: Optional[Path] = None) -> None:
        self._root = get_history_root(base_path)

    @property
    def root(self) -> Path:
        return self._root

    def _path(self, record_id: str) -> Path:
        return self._root / f"{record_id}{RECORD_FILE_EXTENSION}"

    def record(
        self,
        query: str,
        filters: Optional[dict[str, str]] = None,
        matched_ids: Optional[list[str]] = None,
    ) -> HistoryRecord:
        """Persist a new history record."""
        entry = HistoryRecord(
            query=query,
            filters=dict(filters or {}),
            matched_ids=list(matched_ids or []),
        )
        atomic_write_text(self._path(entry.id), dump_yaml(entry.to_dict()))
        logger.debug(f"Recorded query {entry.id[:8]}")
        return entry

    def _read(self, path: Path) -> HistoryRecord:
        data = load_yaml_record(path)
        try:
            return HistoryRecord.from_dict(data)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise PersistenceCorruptionError(f"Invalid history record: {e}", path=path) from e

    def list_records(self, limit: Optional[int] = None) -> list[HistoryRecord]:
        """History records, newest first. Corrupt records are skipped."""
        records = []
        if self._root.exists():
            for path in self._root.glob(f"*{RECORD_FILE_EXTENSION}"):
                try:
                    records.append(self._read(path))
                except PersistenceCorruptionError as e:
                    logger.warning(f"Skipping corrupt history record: {e}")

        records.sort(key=lambda r: (r.created_at, r.id), reverse=True)
        return records[:limit] if limit is not None else records

    def resolve(self, prefix: str) -> Resolution:
        """Resolve a history id prefix."""
        ids = [p.stem for p in self._root.glob(f"*{RECORD_FILE_EXTENSION}")] if self._root.exists() else []
        return resolve_prefix(prefix, ids)

    def get(self, record_id: str) -> Optional[HistoryRecord]:
        """
        Load a record by exact id.

        Raises:
            PersistenceCorruptionError: If the record exists but is corrupt
        """
        path = self._path(record_id)
        if not path.exists():
            return None
        return self._read(path)
