"""Prefix resolution of task and history identifiers."""

from dataclasses import dataclass, field
from typing import Iterable, Optional

from tx.core.constants import ResolutionStatus


@dataclass(frozen=True)
class Resolution:
    """Outcome of resolving a user supplied identifier prefix."""

    status: ResolutionStatus
    match: Optional[str] = None
    matches: tuple[str, ...] = field(default_factory=tuple)

    @property
    def found(self) -> bool:
        return self.status == ResolutionStatus.FOUND

    @property
    def ambiguous(self) -> bool:
        return self.status == ResolutionStatus.AMBIGUOUS


def resolve_prefix(prefix: str, candidates: Iterable[str]) -> Resolution:
    """
    Resolve a prefix against a set of identifiers.

    Matching is case-sensitive. A prefix equal to a known identifier
    resolves to it even when longer identifiers share it. An empty prefix
    matches every candidate, so it resolves only when exactly one
    candidate exists.

    Args:
        prefix: User supplied leading characters of an identifier
        candidates: Known identifiers; duplicates are ignored

    Returns:
        FOUND with the single match, NOT_FOUND, or AMBIGUOUS with every
        matching identifier in sorted order.
    """
    unique = set(candidates)
    if prefix in unique:
        return Resolution(status=ResolutionStatus.FOUND, match=prefix, matches=(prefix,))

    matches = tuple(sorted(c for c in unique if c.startswith(prefix)))

    if not matches:
        return Resolution(status=ResolutionStatus.NOT_FOUND)
    if len(matches) == 1:
        return Resolution(status=ResolutionStatus.FOUND, match=matches[0], matches=matches)
    return Resolution(status=ResolutionStatus.AMBIGUOUS, matches=matches)
