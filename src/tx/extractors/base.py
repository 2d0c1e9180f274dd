"""
Base interface for semantic extractors.

An extractor turns free-form task text into discovered fields and an
optional recurrence hint. Extractors are collaborators of the tracker:
they may be slow or unavailable, and signal any failure by raising
ExtractorError so the caller can degrade.
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Protocol, runtime_checkable

from tx.tasks.models import FieldValue, RecurrenceDescriptor


@dataclass(frozen=True)
class Extraction:
    """Structured view of one piece of task or query text."""

    fields: dict[str, FieldValue] = field(default_factory=dict)
    recurrence: Optional[RecurrenceDescriptor] = None
    confidence: float = 0.0

    @classmethod
    def empty(cls) -> "Extraction":
        return cls()

    @property
    def is_empty(self) -> bool:
        return not self.fields and self.recurrence is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "fields": {name: value.to_dict() for name, value in self.fields.items()},
            "recurrence": self.recurrence.to_dict() if self.recurrence else None,
            "confidence": self.confidence,
        }


@runtime_checkable
class SemanticExtractor(Protocol):
    """
    Protocol for field extractors.

    Implementations raise ExtractorError on timeout, transport failure,
    or an unusable response.
    """

    name: str

    def extract(self, text: str) -> Extraction:
        ...
