"""
Task store for persistence.

Tasks live as one YAML file each, partitioned by status:

    <tx root>/tasks/open/<id>.yaml
    <tx root>/tasks/archive/<id>.yaml

The semantic index lives beside them in ``<tx root>/index.yaml``. Every
write replaces the target file atomically. Concurrent tx processes are
not coordinated: the last writer of a file wins.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import yaml

from tx.core.config import TxConfig
from tx.core.constants import (
    ARCHIVE_TASKS_DIR,
    CORRUPT_FILE_SUFFIX,
    OPEN_TASKS_DIR,
    RECORD_FILE_EXTENSION,
    get_index_path,
    get_tasks_root,
)
from tx.core.exceptions import PersistenceCorruptionError, TaskNotFoundError, ValidationError
from tx.core.fileio import atomic_write_text
from tx.index.semantic import SemanticIndex
from tx.tasks.models import Task
from tx.tasks.resolver import Resolution, resolve_prefix

logger = logging.getLogger(__name__)


def dump_yaml(data: dict[str, Any]) -> str:
    """Serialize a record the way every tx YAML file is written."""
    return yaml.safe_dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)


def load_yaml_record(path: Path) -> dict[str, Any]:
    """
    Read a YAML mapping from disk.

    Raises:
        PersistenceCorruptionError: If the file is unreadable or not a mapping
    """
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise PersistenceCorruptionError(f"Cannot read record: {e}", path=path) from e

    if not isinstance(data, dict):
        raise PersistenceCorruptionError("Record is not a mapping", path=path)
    return data


class TaskStore:
    """
    Persistent storage for tasks and the semantic index.

    Records are loaded once per store and cached. Callers always receive
    copies; changes are persisted through create/save.
    """

    def __init__(self, base_path: Optional[Path] = None, config: Optional[TxConfig] = None) -> None:
        """
        Initialize task store.

        Args:
            base_path: tx root directory; defaults to $TX_HOME or ~/.tx
            config: Configuration used for the semantic index
        """
        self._tasks_dir = get_tasks_root(base_path)
        self._index_path = get_index_path(base_path)
        self._config = config or TxConfig()
        self._open: dict[str, Task] = {}
        self._archive: dict[str, Task] = {}
        self._loaded = False

    # -------------------------------------------------------------------------
    # Paths
    # -------------------------------------------------------------------------

    @property
    def open_dir(self) -> Path:
        return self._tasks_dir / OPEN_TASKS_DIR

    @property
    def archive_dir(self) -> Path:
        return self._tasks_dir / ARCHIVE_TASKS_DIR

    @property
    def index_path(self) -> Path:
        return self._index_path

    def _task_path(self, task: Task) -> Path:
        directory = self.open_dir if task.is_open else self.archive_dir
        return directory / f"{task.id}{RECORD_FILE_EXTENSION}"

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def _read_task(self, path: Path) -> Task:
        """
        Decode one task record.

        Raises:
            PersistenceCorruptionError: If the record cannot be decoded
        """
        data = load_yaml_record(path)
        try:
            task = Task.from_dict(data)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise PersistenceCorruptionError(f"Invalid task record: {e}", path=path) from e

        if task.id != path.stem:
            raise PersistenceCorruptionError(
                f"Record id {task.id} does not match file name", path=path
            )
        return task

    def _load_dir(self, directory: Path) -> dict[str, Task]:
        tasks: dict[str, Task] = {}
        if not directory.exists():
            return tasks

        for path in sorted(directory.glob(f"*{RECORD_FILE_EXTENSION}")):
            try:
                task = self._read_task(path)
            except PersistenceCorruptionError as e:
                logger.warning(f"Skipping corrupt task record: {e}")
                continue
            tasks[task.id] = task
        return tasks

    def load(self) -> None:
        """Load every task record from disk, replacing the cache."""
        self._open = self._load_dir(self.open_dir)
        self._archive = self._load_dir(self.archive_dir)

        # An id in both partitions means a move was interrupted; archive wins
        for task_id in set(self._open) & set(self._archive):
            logger.warning(f"Task {task_id} found open and archived, keeping archived copy")
            del self._open[task_id]

        self._loaded = True
        logger.debug(f"Loaded {len(self._open)} open and {len(self._archive)} archived tasks")

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self.load()

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @staticmethod
    def _ordered(tasks: dict[str, Task]) -> list[Task]:
        return [t.copy() for t in sorted(tasks.values(), key=lambda t: (t.created_at, t.id))]

    def open_tasks(self) -> list[Task]:
        """Open tasks, oldest first."""
        self._ensure_loaded()
        return self._ordered(self._open)

    def archived_tasks(self) -> list[Task]:
        """Completed tasks, oldest first."""
        self._ensure_loaded()
        return self._ordered(self._archive)

    def all_tasks(self) -> list[Task]:
        self._ensure_loaded()
        return self._ordered({**self._open, **self._archive})

    def get(self, task_id: str) -> Optional[Task]:
        """Get a task by exact id."""
        self._ensure_loaded()
        task = self._open.get(task_id) or self._archive.get(task_id)
        return task.copy() if task else None

    def ids(self, include_archived: bool = True) -> list[str]:
        self._ensure_loaded()
        ids = list(self._open)
        if include_archived:
            ids.extend(self._archive)
        return ids

    def resolve(self, prefix: str, include_archived: bool = True) -> Resolution:
        """Resolve an id prefix against stored tasks."""
        return resolve_prefix(prefix, self.ids(include_archived=include_archived))

    def count(self) -> dict[str, int]:
        self._ensure_loaded()
        return {"open": len(self._open), "archived": len(self._archive)}

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def create(self, task: Task) -> Task:
        """
        Persist a new open task.

        Raises:
            ValidationError: If the task is invalid or its id already exists
        """
        self._ensure_loaded()

        errors = task.validate()
        if errors:
            raise ValidationError("Invalid task", details={"errors": errors})
        if task.id in self._open or task.id in self._archive:
            raise ValidationError(f"Task already exists: {task.id}", details={"task_id": task.id})
        if not task.is_open:
            raise ValidationError("New tasks must be open", details={"task_id": task.id})

        self._write(task)
        self._open[task.id] = task.copy()
        logger.info(f"Created task {task.short_id}")
        return task.copy()

    def save(self, task: Task) -> Task:
        """
        Persist changes to an existing task.

        A completed task is written to the archive before its open record
        is removed, so an interrupted move leaves both copies rather than
        none.

        Raises:
            TaskNotFoundError: If the task was never created
            ValidationError: If the task is invalid
        """
        self._ensure_loaded()

        if task.id not in self._open and task.id not in self._archive:
            raise TaskNotFoundError(f"Task not found: {task.id}", task_id=task.id)
        errors = task.validate()
        if errors:
            raise ValidationError("Invalid task", details={"errors": errors})

        self._write(task)

        if task.is_open:
            self._open[task.id] = task.copy()
        else:
            self._archive[task.id] = task.copy()
            if self._open.pop(task.id, None) is not None:
                stale = self.open_dir / f"{task.id}{RECORD_FILE_EXTENSION}"
                stale.unlink(missing_ok=True)
                logger.info(f"Archived task {task.short_id}")

        return task.copy()

    def _write(self, task: Task) -> None:
        atomic_write_text(self._task_path(task), dump_yaml(task.to_dict()))

    # -------------------------------------------------------------------------
    # Semantic Index
    # -------------------------------------------------------------------------

    def load_index(self) -> SemanticIndex:
        """
        Load the semantic index.

        A missing file yields an empty index. A corrupt file is logged,
        moved to ``index.yaml.corrupt`` and also yields an empty index;
        ``tx reindex`` rebuilds fields and templates from tasks.
        """
        if not self._index_path.exists():
            return SemanticIndex.from_config(self._config.index)

        try:
            data = load_yaml_record(self._index_path)
            return SemanticIndex.from_dict(data, self._config.index)
        except PersistenceCorruptionError as e:
            logger.warning(f"Ignoring corrupt semantic index: {e}")
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Ignoring invalid semantic index {self._index_path}: {e}")

        self._set_aside(self._index_path)
        return SemanticIndex.from_config(self._config.index)

    def _set_aside(self, path: Path) -> Path:
        target = path.with_name(path.name + CORRUPT_FILE_SUFFIX)
        path.replace(target)
        logger.warning(f"Moved unreadable {path.name} to {target}")
        return target

    def save_index(self, index: SemanticIndex) -> None:
        """Persist the semantic index."""
        data = {"updated_at": datetime.now().isoformat(), **index.to_dict()}
        atomic_write_text(self._index_path, dump_yaml(data))
