"""Configuration, constants, and exceptions shared across tx."""

from tx.core.config import TxConfig
from tx.core.constants import FieldKind, Frequency, ResolutionStatus, TaskStatus
from tx.core.exceptions import (
    ConfigurationError,
    ExtractorError,
    PersistenceCorruptionError,
    TaskNotFoundError,
    TxError,
    ValidationError,
)

__all__ = [
    "TxConfig",
    "TaskStatus",
    "FieldKind",
    "Frequency",
    "ResolutionStatus",
    "TxError",
    "ConfigurationError",
    "TaskNotFoundError",
    "ValidationError",
    "PersistenceCorruptionError",
    "ExtractorError",
]
