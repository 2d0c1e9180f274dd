"""
Template shapes for recurring task phrasings.

A shape generalizes a task description into its action verb, the slots
where discovered field values appear, and the connector words that lead
into those slots:

    "Call John about the budget"  ->  "call {person} about {topic}"
    "Call Maria about invoices"   ->  "call {person} about {topic}"

Descriptions whose shape has no slot carry no structure and are ignored.
"""

import hashlib
import re
from dataclasses import dataclass, field
from typing import Any, Optional

from tx.tasks.models import FieldValue, normalize_field_name

WORD_PATTERN = re.compile(r"[\w'.@#-]+")

CONNECTOR_WORDS: frozenset[str] = frozenset(
    {"about", "for", "with", "to", "on", "by", "at", "from", "re", "in", "of"}
)

TEMPLATE_ID_LENGTH = 12


@dataclass
class TemplateEntry:
    """A generalized phrasing seen across tasks."""

    template_id: str
    pattern: str
    fields: set[str] = field(default_factory=set)
    match_count: int = 1

    def is_established(self, min_matches: int) -> bool:
        """True once the shape has repeated often enough to count."""
        return self.match_count >= min_matches

    def to_dict(self) -> dict[str, Any]:
        return {
            "pattern": self.pattern,
            "fields": sorted(self.fields),
            "match_count": self.match_count,
        }

    @classmethod
    def from_dict(cls, template_id: str, data: dict[str, Any]) -> "TemplateEntry":
        return cls(
            template_id=template_id,
            pattern=data["pattern"],
            fields=set(data.get("fields") or []),
            match_count=int(data.get("match_count", 1)),
        )


def template_id_for(pattern: str) -> str:
    """Stable short identifier for a shape pattern."""
    return hashlib.sha256(pattern.encode("utf-8")).hexdigest()[:TEMPLATE_ID_LENGTH]


def _words(text: str) -> list[str]:
    return [w.strip(".,;:!?").casefold() for w in WORD_PATTERN.findall(text)]


def _find_span(words: list[str], needle: list[str], claimed: list[bool]) -> Optional[int]:
    """Index of the first unclaimed occurrence of ``needle`` in ``words``."""
    width = len(needle)
    for start in range(len(words) - width + 1):
        if any(claimed[start:start + width]):
            continue
        if words[start:start + width] == needle:
            return start
    return None


def compute_shape(raw_text: str, field_map: dict[str, FieldValue]) -> Optional[str]:
    """
    Compute the token shape of a task description.

    Args:
        raw_text: Description as typed
        field_map: Discovered fields for the description

    Returns:
        Shape pattern, or None when no field value appears in the text
    """
    words = _words(raw_text)
    if not words:
        return None

    claimed = [False] * len(words)
    # Sigils like "#" and "@" are part of the word but not of the value
    stripped = [w.lstrip("#@!") for w in words]
    slots: dict[int, tuple[int, str]] = {}

    for name in sorted(field_map):
        value = field_map[name]
        needle = [w.lstrip("#@!") for w in _words(value.text)]
        needle = [w for w in needle if w]
        if not needle:
            continue
        start = _find_span(stripped, needle, claimed)
        if start is None:
            continue
        for i in range(start, start + len(needle)):
            claimed[i] = True
        slots[start] = (len(needle), normalize_field_name(name))

    if not slots:
        return None

    parts: list[str] = []
    if not claimed[0] and words[0].isalpha():
        parts.append(words[0])

    position = 1 if parts else 0
    for start in sorted(slots):
        width, name = slots[start]
        connector = None
        for word in words[position:start]:
            if word in CONNECTOR_WORDS:
                connector = word
        if connector is not None:
            parts.append(connector)
        parts.append("{" + name + "}")
        position = start + width

    return " ".join(parts)
