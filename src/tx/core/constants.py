"""tx system constants and default values."""

import os
from enum import Enum
from pathlib import Path
from typing import Final


class TaskStatus(str, Enum):
    """Lifecycle status of a task."""

    OPEN = "open"
    COMPLETED = "completed"


class FieldKind(str, Enum):
    """Value kinds a discovered field can hold."""

    STRING = "string"
    DATE = "date"
    ENUM = "enum"


class Frequency(str, Enum):
    """Recurrence frequency classes."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class ResolutionStatus(str, Enum):
    """Outcome classes of identifier prefix resolution."""

    FOUND = "found"
    NOT_FOUND = "not_found"
    AMBIGUOUS = "ambiguous"


# Directory structure
TX_ROOT_DIR: Final[str] = ".tx"
TX_HOME_ENV: Final[str] = "TX_HOME"
TASKS_DIR: Final[str] = "tasks"
OPEN_TASKS_DIR: Final[str] = "open"
ARCHIVE_TASKS_DIR: Final[str] = "archive"
HISTORY_DIR: Final[str] = "history"

# Files
CONFIG_FILE: Final[str] = "config.json"
INDEX_FILE: Final[str] = "index.yaml"
RECORD_FILE_EXTENSION: Final[str] = ".yaml"
CORRUPT_FILE_SUFFIX: Final[str] = ".corrupt"

# Well-known discovered fields
DEADLINE_FIELD_NAMES: Final[tuple[str, ...]] = (
    "deadline",
    "due",
    "due_date",
    "due_on",
    "date",
)
PRIORITY_FIELD: Final[str] = "priority"
PROJECT_FIELD: Final[str] = "project"
TYPE_FIELD_NAMES: Final[tuple[str, ...]] = ("type", "task_type", "category")
RECURRENCE_FIELD_NAMES: Final[tuple[str, ...]] = ("recurrence", "repeat", "recurring")
DEFAULT_ALIAS_FIELDS: Final[tuple[str, ...]] = (
    "person",
    "assignee",
    "owner",
    "contact",
    "client",
    "project",
    "who",
)

# Semantic index defaults
DEFAULT_MAX_FIELD_SAMPLES: Final[int] = 5
DEFAULT_ALIAS_THRESHOLD: Final[float] = 0.85
DEFAULT_TEMPLATE_MIN_MATCHES: Final[int] = 2
TOKEN_SUBSET_SIMILARITY: Final[float] = 0.9

# Focus scoring contributions
OVERDUE_SCORE: Final[int] = 200
DUE_TODAY_SCORE: Final[int] = 100
URGENT_SCORE: Final[int] = 100
HIGH_PRIORITY_SCORE: Final[int] = 50
BLOCKS_OPEN_SCORE: Final[int] = 40
BLOCKED_PENALTY: Final[int] = -50

PRIORITY_SCORES: Final[dict[str, int]] = {
    "urgent": URGENT_SCORE,
    "high": HIGH_PRIORITY_SCORE,
}

# Statistics
DEFAULT_STATS_WINDOW_DAYS: Final[int] = 7
UNSPECIFIED_TYPE: Final[str] = "unspecified"
SKIP_DURATION_WORDS: Final[tuple[str, ...]] = ("", "skip", "s", "-", "none")

# Graph traversal
DEFAULT_GRAPH_MAX_DEPTH: Final[int] = 25

# Extractor defaults
DEFAULT_PROVIDER: Final[str] = "none"
DEFAULT_EXTRACTOR_TIMEOUT_SECONDS: Final[float] = 20.0
DEFAULT_EXTRACTOR_MAX_RETRIES: Final[int] = 2
DEFAULT_EXTRACTOR_RETRY_DELAY_SECONDS: Final[float] = 0.5

# Display
SHORT_ID_LENGTH: Final[int] = 8
HISTORY_PREVIEW_LENGTH: Final[int] = 60


def get_tx_root(base_path: Path | None = None) -> Path:
    """Get the tx state directory.

    An explicit base path wins, then ``$TX_HOME``, then ``~/.tx``.
    """
    if base_path is not None:
        return Path(base_path)
    env_root = os.environ.get(TX_HOME_ENV)
    if env_root:
        return Path(env_root).expanduser()
    return Path.home() / TX_ROOT_DIR


def get_tasks_root(base_path: Path | None = None) -> Path:
    """Get the task records directory."""
    return get_tx_root(base_path) / TASKS_DIR


def get_index_path(base_path: Path | None = None) -> Path:
    """Get the semantic index file path."""
    return get_tx_root(base_path) / INDEX_FILE


def get_history_root(base_path: Path | None = None) -> Path:
    """Get the query history directory."""
    return get_tx_root(base_path) / HISTORY_DIR


def get_config_path(base_path: Path | None = None) -> Path:
    """Get the configuration file path."""
    return get_tx_root(base_path) / CONFIG_FILE
