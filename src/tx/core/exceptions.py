"""tx custom exception hierarchy."""

from pathlib import Path
from typing import Any


class TxError(Exception):
    """Base exception for all tx errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


class ConfigurationError(TxError):
    """Raised when configuration is invalid or missing."""

    pass


class TaskNotFoundError(TxError):
    """Raised when a task identifier does not resolve to a known task."""

    def __init__(
        self,
        message: str,
        task_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if task_id is not None:
            details["task_id"] = task_id
        super().__init__(message, details)
        self.task_id = task_id


class ValidationError(TxError):
    """Raised when input such as an edge or recurrence anchor is malformed."""

    pass


class PersistenceCorruptionError(TxError):
    """Raised when a persisted record cannot be decoded."""

    def __init__(
        self,
        message: str,
        path: Path | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if path:
            details["path"] = str(path)
        super().__init__(message, details)
        self.path = path


class ExtractorError(TxError):
    """Raised when the semantic extractor times out or returns garbage."""

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if provider:
            details["provider"] = provider
        super().__init__(message, details)
        self.provider = provider
