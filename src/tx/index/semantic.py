"""
Semantic index over discovered task structure.

The index is the one process-wide record of what tx has learned from
task text:

- fields: every discovered field name with its kind, a small rolling set
  of sample values, and how often it occurred
- aliases: canonical entity names and the variant spellings folded
  under them
- templates: recurring phrasings and the fields they consistently carry

It is loaded at the start of a command, mutated in memory, and persisted
by the task store at the end.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from tx.core.config import IndexConfig
from tx.core.constants import (
    DEFAULT_ALIAS_THRESHOLD,
    DEFAULT_MAX_FIELD_SAMPLES,
    DEFAULT_TEMPLATE_MIN_MATCHES,
    FieldKind,
)
from tx.core.exceptions import ValidationError
from tx.index.similarity import similarity
from tx.index.templates import TemplateEntry, compute_shape, template_id_for
from tx.tasks.models import FieldValue, Task, normalize_field_name

logger = logging.getLogger(__name__)


# =============================================================================
# Index Entries
# =============================================================================

@dataclass
class FieldEntry:
    """What tx knows about one discovered field name."""

    name: str
    field_type: FieldKind = FieldKind.STRING
    samples: list[str] = field(default_factory=list)
    count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.field_type.value,
            "samples": list(self.samples),
            "count": self.count,
        }

    @classmethod
    def from_dict(cls, name: str, data: dict[str, Any]) -> "FieldEntry":
        return cls(
            name=name,
            field_type=FieldKind(data.get("type", FieldKind.STRING.value)),
            samples=[str(s) for s in data.get("samples") or []],
            count=int(data.get("count", 0)),
        )


@dataclass
class AliasEntry:
    """A canonical name and the variant spellings that resolve to it."""

    canonical: str
    variants: list[str] = field(default_factory=list)

    def names(self) -> list[str]:
        return [self.canonical, *self.variants]

    def has_variant(self, value: str) -> bool:
        folded = value.casefold()
        return any(v.casefold() == folded for v in self.variants)

    def to_dict(self) -> dict[str, Any]:
        return {"variants": list(self.variants)}

    @classmethod
    def from_dict(cls, canonical: str, data: dict[str, Any]) -> "AliasEntry":
        return cls(canonical=canonical, variants=[str(v) for v in data.get("variants") or []])


@dataclass(frozen=True)
class AliasProposal:
    """A value recorded as a variant of an existing canonical name."""

    canonical: str
    variant: str
    score: float


# =============================================================================
# Semantic Index
# =============================================================================

class SemanticIndex:
    """
    Field, alias, and template tables learned from task text.

    Field names are normalized before indexing. Canonical alias names are
    either the first-seen spelling or one designated through merge_alias,
    and are never renamed implicitly.
    """

    def __init__(
        self,
        max_samples: int = DEFAULT_MAX_FIELD_SAMPLES,
        alias_threshold: float = DEFAULT_ALIAS_THRESHOLD,
        template_min_matches: int = DEFAULT_TEMPLATE_MIN_MATCHES,
    ) -> None:
        self.max_samples = max_samples
        self.alias_threshold = alias_threshold
        self.template_min_matches = template_min_matches

        self.fields: dict[str, FieldEntry] = {}
        self.aliases: dict[str, AliasEntry] = {}
        self.templates: dict[str, TemplateEntry] = {}

    @classmethod
    def from_config(cls, config: IndexConfig) -> "SemanticIndex":
        return cls(
            max_samples=config.max_field_samples,
            alias_threshold=config.alias_threshold,
            template_min_matches=config.template_min_matches,
        )

    # -------------------------------------------------------------------------
    # Fields
    # -------------------------------------------------------------------------

    def observe(self, field_map: dict[str, FieldValue]) -> None:
        """
        Record the fields of one task.

        Each field's count is incremented and its value is kept as a
        sample. Samples are distinct; once the bound is reached the
        oldest sample is evicted.
        """
        for raw_name, value in field_map.items():
            name = normalize_field_name(raw_name)
            if not name:
                continue

            entry = self.fields.get(name)
            if entry is None:
                entry = FieldEntry(name=name, field_type=value.kind)
                self.fields[name] = entry
                logger.debug(f"New field discovered: {name} ({value.kind.value})")

            entry.count += 1
            sample = value.text
            if sample and sample not in entry.samples:
                entry.samples.append(sample)
                while len(entry.samples) > self.max_samples:
                    entry.samples.pop(0)

    # -------------------------------------------------------------------------
    # Aliases
    # -------------------------------------------------------------------------

    def _find_canonical(self, value: str) -> Optional[AliasEntry]:
        folded = value.casefold()
        for entry in self.aliases.values():
            if entry.canonical.casefold() == folded:
                return entry
        return None

    def _owner_of(self, value: str) -> Optional[AliasEntry]:
        """Entry whose canonical or variants include ``value``."""
        entry = self._find_canonical(value)
        if entry is not None:
            return entry
        for entry in self.aliases.values():
            if entry.has_variant(value):
                return entry
        return None

    def propose_alias(self, candidate: str) -> Optional[AliasProposal]:
        """
        Fold a new entity name into the alias table.

        The candidate is compared to every known canonical name and
        variant. A strong enough match records it as a variant of that
        canonical name; otherwise it becomes a new canonical name.

        Args:
            candidate: Entity name as it appeared in a task

        Returns:
            The proposal when the candidate was recorded as a variant,
            None when it was already known or registered as canonical
        """
        candidate = candidate.strip()
        if not candidate or self._owner_of(candidate) is not None:
            return None

        best_entry: Optional[AliasEntry] = None
        best_score = 0.0
        for entry in self.aliases.values():
            for name in entry.names():
                score = similarity(candidate, name)
                if score > best_score:
                    best_entry = entry
                    best_score = score

        if best_entry is not None and best_score >= self.alias_threshold:
            best_entry.variants.append(candidate)
            logger.info(
                f"Alias detected: '{candidate}' -> '{best_entry.canonical}' "
                f"(score {best_score:.2f})"
            )
            return AliasProposal(
                canonical=best_entry.canonical,
                variant=candidate,
                score=best_score,
            )

        self.aliases[candidate] = AliasEntry(canonical=candidate)
        return None

    def merge_alias(self, canonical: str, variant: str) -> AliasEntry:
        """
        Manually record ``variant`` as a spelling of ``canonical``.

        Only the alias table changes. If ``variant`` was itself a canonical
        name, its variants follow it under ``canonical``.

        Raises:
            ValidationError: If either name is empty or both are the same
        """
        canonical = canonical.strip()
        variant = variant.strip()
        if not canonical or not variant:
            raise ValidationError("Alias names must not be empty")
        if canonical.casefold() == variant.casefold():
            raise ValidationError(
                f"Cannot merge '{variant}' into itself",
                details={"canonical": canonical, "variant": variant},
            )

        target = self._find_canonical(canonical)
        if target is None:
            target = AliasEntry(canonical=canonical)
            self.aliases[canonical] = target

        folded_targets = {canonical.casefold(), variant.casefold()}
        moved: list[str] = []
        for key in list(self.aliases):
            entry = self.aliases[key]
            if entry is target:
                continue
            if entry.canonical.casefold() == variant.casefold():
                moved.extend(entry.variants)
                del self.aliases[key]
                continue
            entry.variants = [v for v in entry.variants if v.casefold() not in folded_targets]

        for name in [variant, *moved]:
            if name.casefold() != target.canonical.casefold() and not target.has_variant(name):
                target.variants.append(name)

        logger.info(f"Merged alias '{variant}' into '{target.canonical}'")
        return target

    def canonical_for(self, value: str) -> str:
        """Canonical name for a value or variant; the value itself if unknown."""
        entry = self._owner_of(value.strip())
        return entry.canonical if entry is not None else value

    # -------------------------------------------------------------------------
    # Templates
    # -------------------------------------------------------------------------

    def detect_template(
        self, raw_text: str, field_map: dict[str, FieldValue]
    ) -> Optional[TemplateEntry]:
        """
        Match a description's shape against known templates.

        A repeated shape strengthens its entry and narrows the field set
        to the fields present every time.

        Returns:
            The created or updated entry, or None when the text has no
            slotted shape
        """
        pattern = compute_shape(raw_text, field_map)
        if pattern is None:
            return None

        names = {normalize_field_name(n) for n in field_map}
        template_id = template_id_for(pattern)
        entry = self.templates.get(template_id)

        if entry is None:
            entry = TemplateEntry(template_id=template_id, pattern=pattern, fields=names)
            self.templates[template_id] = entry
            return entry

        entry.match_count += 1
        entry.fields &= names
        if entry.match_count == self.template_min_matches:
            logger.info(f"Template established: {pattern}")
        return entry

    def established_templates(self) -> list[TemplateEntry]:
        """Templates that have repeated enough, most frequent first."""
        return sorted(
            (t for t in self.templates.values() if t.is_established(self.template_min_matches)),
            key=lambda t: (-t.match_count, t.pattern),
        )

    # -------------------------------------------------------------------------
    # Maintenance
    # -------------------------------------------------------------------------

    def rebuild(self, tasks: Iterable[Task]) -> None:
        """Recompute the field and template tables, keeping aliases."""
        self.fields = {}
        self.templates = {}
        for task in sorted(tasks, key=lambda t: (t.created_at, t.id)):
            self.observe(task.fields)
            self.detect_template(task.description, task.fields)
        logger.info(
            f"Index rebuilt: {len(self.fields)} fields, {len(self.templates)} templates"
        )

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        return {
            "fields": {name: entry.to_dict() for name, entry in self.fields.items()},
            "aliases": {name: entry.to_dict() for name, entry in self.aliases.items()},
            "templates": {tid: entry.to_dict() for tid, entry in self.templates.items()},
        }

    @classmethod
    def from_dict(
        cls, data: dict[str, Any], config: Optional[IndexConfig] = None
    ) -> "SemanticIndex":
        index = cls.from_config(config) if config is not None else cls()
        index.fields = {
            name: FieldEntry.from_dict(name, entry)
            for name, entry in (data.get("fields") or {}).items()
        }
        index.aliases = {
            name: AliasEntry.from_dict(name, entry)
            for name, entry in (data.get("aliases") or {}).items()
        }
        index.templates = {
            tid: TemplateEntry.from_dict(tid, entry)
            for tid, entry in (data.get("templates") or {}).items()
        }
        return index
