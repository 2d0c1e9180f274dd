"""
Task tracker: the write workflows of tx.

This module ties the store, the semantic index, the extractor, the
dependency graph, and the recurrence engine together:
- Adding a task from free-form text
- Completing a task by id prefix, spawning the next occurrence if it recurs
- Adding blocking edges by id prefix
- Manual alias merges and index rebuilds

Prefix lookups return their Resolution rather than raising, so callers
can tell "no such task" from "which one did you mean".
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from tx.core.config import TxConfig
from tx.core.constants import FieldKind, SKIP_DURATION_WORDS
from tx.core.exceptions import ExtractorError, ValidationError
from tx.extractors.base import Extraction, SemanticExtractor
from tx.graph.dependencies import DependencyGraph
from tx.index.semantic import AliasEntry, AliasProposal, SemanticIndex
from tx.index.templates import TemplateEntry
from tx.tasks.models import FieldValue, Task, deadline_from_fields, normalize_field_name
from tx.tasks.recurrence import detect_recurrence, next_occurrence
from tx.tasks.resolver import Resolution
from tx.tasks.store import TaskStore

logger = logging.getLogger(__name__)


DURATION_PATTERN = re.compile(r"^(?:(\d+)\s*h(?:ours?|rs?)?)?\s*(?:(\d+)\s*m(?:in(?:utes?|s)?)?)?$")


def parse_duration(text: Optional[str]) -> Optional[int]:
    """
    Parse a duration answer into minutes.

    Accepts "45", "45m", "2h", "1h30m" and "1h 30min". Empty input and
    skip words ("skip", "s", "-", "none") mean no duration.

    Raises:
        ValidationError: If the text is not a duration
    """
    if text is None:
        return None
    cleaned = text.strip().lower()
    if cleaned in SKIP_DURATION_WORDS:
        return None
    if cleaned.isdigit():
        return int(cleaned)

    match = DURATION_PATTERN.match(cleaned)
    if match is None or not any(match.groups()):
        raise ValidationError(f"Not a duration: {text}", details={"input": text})
    hours, minutes = match.groups()
    return int(hours or 0) * 60 + int(minutes or 0)


# =============================================================================
# Outcomes
# =============================================================================

@dataclass
class AddOutcome:
    """Result of adding a task."""

    task: Task
    extraction: Extraction
    alias_proposals: list[AliasProposal] = field(default_factory=list)
    template: Optional[TemplateEntry] = None
    warnings: list[str] = field(default_factory=list)


@dataclass
class CompletionOutcome:
    """Result of completing a task by prefix."""

    resolution: Resolution
    task: Optional[Task] = None
    next_task: Optional[Task] = None
    warnings: list[str] = field(default_factory=list)

    @property
    def completed(self) -> bool:
        return self.task is not None


@dataclass
class EdgeOutcome:
    """Result of adding a blocking edge by prefixes."""

    blocker_resolution: Resolution
    blocked_resolution: Resolution
    blocker: Optional[Task] = None
    blocked: Optional[Task] = None
    added: bool = False

    @property
    def resolved(self) -> bool:
        return self.blocker_resolution.found and self.blocked_resolution.found


# =============================================================================
# Tracker
# =============================================================================

class TaskTracker:
    """
    Orchestrates task writes across the store and the semantic index.

    The index is loaded lazily on first use and saved after each workflow
    that changes it.
    """

    def __init__(
        self,
        store: TaskStore,
        extractor: SemanticExtractor,
        config: Optional[TxConfig] = None,
        index: Optional[SemanticIndex] = None,
    ) -> None:
        self._store = store
        self._extractor = extractor
        self._config = config or TxConfig()
        self._index = index

    @property
    def store(self) -> TaskStore:
        return self._store

    @property
    def index(self) -> SemanticIndex:
        if self._index is None:
            self._index = self._store.load_index()
        return self._index

    # -------------------------------------------------------------------------
    # Adding
    # -------------------------------------------------------------------------

    def extract(self, text: str) -> tuple[Extraction, list[str]]:
        """
        Run the extractor, degrading to an empty extraction on failure.

        Returns:
            The extraction and any warnings raised along the way
        """
        try:
            return self._extractor.extract(text), []
        except ExtractorError as e:
            logger.warning(f"Extractor '{self._extractor.name}' failed: {e}")
            return Extraction.empty(), [f"Field extraction failed: {e.message}"]

    def add(self, text: str) -> AddOutcome:
        """
        Create a task from free-form text.

        Raises:
            ValidationError: If the text is empty
        """
        text = text.strip()
        if not text:
            raise ValidationError("Task description is required")

        extraction, warnings = self.extract(text)

        fields: dict[str, FieldValue] = {}
        for raw_name, value in extraction.fields.items():
            name = normalize_field_name(raw_name)
            if name:
                fields[name] = value

        task = Task(
            description=text,
            fields=fields,
            deadline=deadline_from_fields(fields),
            recurrence=detect_recurrence(text, fields, extraction.recurrence),
        )
        task = self._store.create(task)

        template = self._index_task(task)
        proposals = self._propose_aliases(task)
        self._store.save_index(self.index)

        return AddOutcome(
            task=task,
            extraction=extraction,
            alias_proposals=proposals,
            template=template,
            warnings=warnings,
        )

    def _index_task(self, task: Task) -> Optional[TemplateEntry]:
        self.index.observe(task.fields)
        return self.index.detect_template(task.description, task.fields)

    def _propose_aliases(self, task: Task) -> list[AliasProposal]:
        proposals = []
        for name in self._config.index.alias_fields:
            value = task.fields.get(normalize_field_name(name))
            if value is None or value.kind == FieldKind.DATE:
                continue
            proposal = self.index.propose_alias(value.text)
            if proposal is not None:
                proposals.append(proposal)
        return proposals

    # -------------------------------------------------------------------------
    # Completion
    # -------------------------------------------------------------------------

    def resolve_open(self, prefix: str) -> Resolution:
        """Resolve a prefix among open tasks only."""
        return self._store.resolve(prefix, include_archived=False)

    def complete(
        self,
        prefix: str,
        duration_minutes: Optional[int] = None,
        note: Optional[str] = None,
        completed_at: Optional[datetime] = None,
    ) -> CompletionOutcome:
        """
        Complete the open task matching ``prefix``.

        The task is archived. If it recurs, the next occurrence is created
        as a new open task.
        """
        resolution = self.resolve_open(prefix)
        if not resolution.found:
            return CompletionOutcome(resolution=resolution)

        task = self._store.get(resolution.match)
        completed_at = completed_at or datetime.now()
        task.complete(duration_minutes=duration_minutes, note=note, completed_at=completed_at)
        task = self._store.save(task)
        logger.info(f"Completed task {task.short_id}")

        outcome = CompletionOutcome(resolution=resolution, task=task)

        if task.recurrence is not None:
            upcoming = next_occurrence(task, completed_at.date())
            if upcoming is None:
                outcome.warnings.append(
                    f"Could not schedule the next '{task.recurrence.describe()}' occurrence"
                )
            else:
                outcome.next_task = self._store.create(upcoming)
                self._index_task(outcome.next_task)
                self._store.save_index(self.index)

        return outcome

    # -------------------------------------------------------------------------
    # Dependencies
    # -------------------------------------------------------------------------

    def graph(self) -> DependencyGraph:
        """Dependency graph over every known task."""
        return DependencyGraph(self._store.all_tasks())

    def block(self, blocker_prefix: str, blocked_prefix: str) -> EdgeOutcome:
        """Record that one task blocks another, both given by id prefix."""
        outcome = EdgeOutcome(
            blocker_resolution=self._store.resolve(blocker_prefix),
            blocked_resolution=self._store.resolve(blocked_prefix),
        )
        if not outcome.resolved:
            return outcome

        graph = self.graph()
        blocker_id = outcome.blocker_resolution.match
        blocked_id = outcome.blocked_resolution.match

        outcome.added = graph.add_edge(blocker_id, blocked_id)
        if outcome.added:
            self._store.save(graph.get(blocker_id))

        outcome.blocker = self._store.get(blocker_id)
        outcome.blocked = self._store.get(blocked_id)
        return outcome

    # -------------------------------------------------------------------------
    # Index Maintenance
    # -------------------------------------------------------------------------

    def merge_alias(self, canonical: str, variant: str) -> AliasEntry:
        """Manually fold ``variant`` under ``canonical`` and persist the index."""
        entry = self.index.merge_alias(canonical, variant)
        self._store.save_index(self.index)
        return entry

    def reindex(self) -> SemanticIndex:
        """Rebuild fields and templates from stored tasks, keeping aliases."""
        self.index.rebuild(self._store.all_tasks())
        self._store.save_index(self.index)
        return self.index
