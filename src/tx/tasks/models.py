"""
Task data models.

This module defines the core data structures for tx: the Task record,
the tagged FieldValue union for discovered fields, recurrence descriptors,
and completion records.
"""

import copy
import re
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Optional

from tx.core.constants import (
    DEADLINE_FIELD_NAMES,
    FieldKind,
    Frequency,
    PRIORITY_FIELD,
    PROJECT_FIELD,
    SHORT_ID_LENGTH,
    TYPE_FIELD_NAMES,
    TaskStatus,
)


ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


# =============================================================================
# ID Generation
# =============================================================================

def generate_task_id() -> str:
    """Generate a unique task ID."""
    return str(uuid.uuid4())


def validate_task_id(task_id: str) -> bool:
    """Validate a task ID format."""
    try:
        return str(uuid.UUID(task_id)) == task_id
    except (ValueError, AttributeError, TypeError):
        return False


def normalize_field_name(name: str) -> str:
    """Normalize a discovered field name: trimmed, lowercase, underscores."""
    return re.sub(r"[\s\-]+", "_", name.strip().lower())


# =============================================================================
# Supporting Data Classes
# =============================================================================

@dataclass(frozen=True)
class FieldValue:
    """
    A typed value of a discovered field.

    ``value`` is a ``date`` when ``kind`` is DATE, a string otherwise.
    """

    kind: FieldKind
    value: Any

    def __post_init__(self) -> None:
        if isinstance(self.kind, str):
            object.__setattr__(self, "kind", FieldKind(self.kind))
        if self.kind == FieldKind.DATE:
            if isinstance(self.value, datetime):
                object.__setattr__(self, "value", self.value.date())
            elif isinstance(self.value, str):
                object.__setattr__(self, "value", date.fromisoformat(self.value))
            elif not isinstance(self.value, date):
                raise TypeError(f"Date field value must be a date, got {type(self.value).__name__}")
        elif isinstance(self.value, date):
            object.__setattr__(self, "value", self.value.isoformat())
        elif not isinstance(self.value, str):
            object.__setattr__(self, "value", str(self.value))

    @classmethod
    def coerce(cls, raw: Any, kind: Optional[FieldKind | str] = None) -> "FieldValue":
        """Build a FieldValue from a loosely typed extractor value."""
        if kind is not None:
            return cls(kind=kind, value=raw)
        if isinstance(raw, FieldValue):
            return raw
        if isinstance(raw, (date, datetime)):
            return cls(kind=FieldKind.DATE, value=raw)
        text = str(raw).strip()
        if ISO_DATE_PATTERN.match(text):
            try:
                return cls(kind=FieldKind.DATE, value=text)
            except ValueError:
                pass
        return cls(kind=FieldKind.STRING, value=text)

    @property
    def text(self) -> str:
        """Canonical string form of the value."""
        if isinstance(self.value, date):
            return self.value.isoformat()
        return self.value

    def to_dict(self) -> dict[str, str]:
        return {"type": self.kind.value, "value": self.text}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FieldValue":
        return cls(kind=FieldKind(data["type"]), value=data["value"])


@dataclass(frozen=True)
class RecurrenceDescriptor:
    """How often a task repeats and what it is anchored to."""

    frequency: Frequency
    anchor: Optional[str] = None

    def __post_init__(self) -> None:
        if isinstance(self.frequency, str):
            object.__setattr__(self, "frequency", Frequency(self.frequency))
        if self.anchor is not None:
            object.__setattr__(self, "anchor", str(self.anchor).strip().lower() or None)

    def describe(self) -> str:
        """Human readable form, e.g. ``weekly on monday``."""
        if self.anchor is None:
            return self.frequency.value
        if self.anchor.isdigit():
            return f"{self.frequency.value} on day {self.anchor}"
        return f"{self.frequency.value} on {self.anchor}"

    def to_dict(self) -> dict[str, Optional[str]]:
        return {"frequency": self.frequency.value, "anchor": self.anchor}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RecurrenceDescriptor":
        return cls(frequency=Frequency(data["frequency"]), anchor=data.get("anchor"))


@dataclass(frozen=True)
class CompletionRecord:
    """When and how a task was completed."""

    completed_at: datetime
    duration_minutes: Optional[int] = None
    note: Optional[str] = None

    @property
    def skipped_duration(self) -> bool:
        """True when no duration was recorded."""
        return self.duration_minutes is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "completed_at": self.completed_at.isoformat(),
            "duration_minutes": self.duration_minutes,
            "note": self.note,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CompletionRecord":
        duration = data.get("duration_minutes")
        return cls(
            completed_at=datetime.fromisoformat(data["completed_at"]),
            duration_minutes=int(duration) if duration is not None else None,
            note=data.get("note"),
        )


def deadline_from_fields(fields: dict[str, FieldValue]) -> Optional[date]:
    """Promote the first date-typed deadline-like field to a deadline."""
    for name in DEADLINE_FIELD_NAMES:
        value = fields.get(name)
        if value is not None and value.kind == FieldKind.DATE:
            return value.value
    return None


# =============================================================================
# Main Task Model
# =============================================================================

@dataclass
class Task:
    """
    A tracked unit of work.

    The description is the raw text the user typed and never changes.
    Everything the extractor discovered lives in ``fields``; the deadline
    is promoted out of them because graph and scoring logic depend on it.
    """

    # Identity
    description: str = ""
    id: str = field(default_factory=generate_task_id)
    created_at: datetime = field(default_factory=datetime.now)

    # State
    status: TaskStatus = TaskStatus.OPEN

    # Discovered structure
    fields: dict[str, FieldValue] = field(default_factory=dict)
    deadline: Optional[date] = None
    recurrence: Optional[RecurrenceDescriptor] = None

    # Completion
    completion: Optional[CompletionRecord] = None

    # Dependencies (outgoing "blocks" edges)
    blocks: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Validate and normalize task data."""
        if isinstance(self.status, str):
            self.status = TaskStatus(self.status)
        if isinstance(self.recurrence, dict):
            self.recurrence = RecurrenceDescriptor.from_dict(self.recurrence)
        if isinstance(self.completion, dict):
            self.completion = CompletionRecord.from_dict(self.completion)
        if isinstance(self.deadline, datetime):
            self.deadline = self.deadline.date()

        normalized: dict[str, FieldValue] = {}
        for name, value in self.fields.items():
            if isinstance(value, dict):
                value = FieldValue.from_dict(value)
            elif not isinstance(value, FieldValue):
                value = FieldValue.coerce(value)
            normalized[normalize_field_name(name)] = value
        self.fields = normalized

    # -------------------------------------------------------------------------
    # Status
    # -------------------------------------------------------------------------

    @property
    def is_open(self) -> bool:
        return self.status == TaskStatus.OPEN

    @property
    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED

    def complete(
        self,
        duration_minutes: Optional[int] = None,
        note: Optional[str] = None,
        completed_at: Optional[datetime] = None,
    ) -> None:
        """
        Mark the task completed.

        Raises:
            ValueError: If the task is already completed
        """
        if not self.is_open:
            raise ValueError(f"Task {self.id} is already completed")
        self.status = TaskStatus.COMPLETED
        self.completion = CompletionRecord(
            completed_at=completed_at or datetime.now(),
            duration_minutes=duration_minutes,
            note=note or None,
        )

    # -------------------------------------------------------------------------
    # Field Access
    # -------------------------------------------------------------------------

    def field_text(self, name: str) -> Optional[str]:
        """Get a discovered field's value as text, if present."""
        value = self.fields.get(normalize_field_name(name))
        return value.text if value is not None else None

    @property
    def priority(self) -> Optional[str]:
        text = self.field_text(PRIORITY_FIELD)
        return text.strip().lower() if text else None

    @property
    def project(self) -> Optional[str]:
        return self.field_text(PROJECT_FIELD)

    @property
    def task_type(self) -> Optional[str]:
        for name in TYPE_FIELD_NAMES:
            text = self.field_text(name)
            if text:
                return text
        return None

    @property
    def short_id(self) -> str:
        return self.id[:SHORT_ID_LENGTH]

    # -------------------------------------------------------------------------
    # Dependency Management
    # -------------------------------------------------------------------------

    def add_block(self, task_id: str) -> bool:
        """Record that this task blocks ``task_id``. Returns False on duplicates."""
        if task_id in self.blocks:
            return False
        self.blocks.append(task_id)
        return True

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def copy(self) -> "Task":
        """Return an independent copy safe to hand to consumers."""
        return copy.deepcopy(self)

    def to_dict(self) -> dict[str, Any]:
        """Convert task to dictionary for serialization."""
        return {
            "id": self.id,
            "description": self.description,
            "created_at": self.created_at.isoformat(),
            "status": self.status.value,
            "fields": {name: value.to_dict() for name, value in self.fields.items()},
            "deadline": self.deadline.isoformat() if self.deadline else None,
            "recurrence": self.recurrence.to_dict() if self.recurrence else None,
            "completion": self.completion.to_dict() if self.completion else None,
            "blocks": list(self.blocks),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Task":
        """Create task from dictionary."""
        deadline = data.get("deadline")
        return cls(
            id=data["id"],
            description=data["description"],
            created_at=datetime.fromisoformat(data["created_at"]),
            status=TaskStatus(data["status"]),
            fields={
                name: FieldValue.from_dict(value)
                for name, value in (data.get("fields") or {}).items()
            },
            deadline=date.fromisoformat(deadline) if deadline else None,
            recurrence=(
                RecurrenceDescriptor.from_dict(data["recurrence"])
                if data.get("recurrence")
                else None
            ),
            completion=(
                CompletionRecord.from_dict(data["completion"])
                if data.get("completion")
                else None
            ),
            blocks=[str(b) for b in (data.get("blocks") or [])],
        )

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def validate(self) -> list[str]:
        """
        Validate task data.

        Returns a list of validation errors (empty if valid).
        """
        errors = []

        if not validate_task_id(self.id):
            errors.append(f"Invalid task ID format: {self.id}")

        if not self.description.strip():
            errors.append("Task description is required")

        if self.is_completed and self.completion is None:
            errors.append("Completed task is missing its completion record")

        if self.is_open and self.completion is not None:
            errors.append("Open task carries a completion record")

        if len(set(self.blocks)) != len(self.blocks):
            errors.append("Task has duplicate blocking edges")

        return errors
