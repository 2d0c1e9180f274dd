"""
Unit tests for the semantic index.

Tests cover:
- Field observation and sample bounds
- Alias proposal and manual merges
- Template detection and establishment
- Rebuild and serialization
"""

from datetime import datetime, timedelta

import pytest

from tx.core.config import IndexConfig
from tx.core.constants import FieldKind
from tx.core.exceptions import ValidationError
from tx.index import SemanticIndex
from tx.tasks.models import FieldValue, Task


def _fields(**values: str) -> dict[str, FieldValue]:
    return {name: FieldValue(kind=FieldKind.STRING, value=v) for name, v in values.items()}


class TestObserve:
    """Tests for field observation."""

    def test_counts_and_kinds(self):
        index = SemanticIndex()
        index.observe(_fields(person="John"))
        index.observe({"Due": FieldValue(kind=FieldKind.DATE, value="2025-12-05")})
        index.observe(_fields(person="Maria"))

        assert index.fields["person"].count == 2
        assert index.fields["person"].samples == ["John", "Maria"]
        assert index.fields["due"].field_type == FieldKind.DATE

    def test_samples_distinct_and_bounded(self):
        index = SemanticIndex(max_samples=2)
        for name in ["a", "b", "a", "c"]:
            index.observe(_fields(person=name))

        assert index.fields["person"].samples == ["b", "c"]
        assert index.fields["person"].count == 4

    def test_from_config(self):
        index = SemanticIndex.from_config(IndexConfig(max_field_samples=3, alias_threshold=0.7))
        assert index.max_samples == 3
        assert index.alias_threshold == 0.7


class TestAliases:
    """Tests for alias handling."""

    def test_first_seen_is_canonical(self):
        index = SemanticIndex()
        assert index.propose_alias("John") is None
        assert "John" in index.aliases

    def test_similar_name_becomes_variant(self):
        index = SemanticIndex()
        index.propose_alias("John")
        proposal = index.propose_alias("John Smith")

        assert proposal.canonical == "John"
        assert proposal.variant == "John Smith"
        assert proposal.score == pytest.approx(0.9)
        assert index.canonical_for("john smith") == "John"

    def test_known_names_not_reproposed(self):
        index = SemanticIndex()
        index.propose_alias("John")
        index.propose_alias("John Smith")
        assert index.propose_alias("JOHN") is None
        assert index.propose_alias("john smith") is None
        assert index.aliases["John"].variants == ["John Smith"]

    def test_dissimilar_name_is_new_canonical(self):
        index = SemanticIndex()
        index.propose_alias("John")
        assert index.propose_alias("Maria") is None
        assert set(index.aliases) == {"John", "Maria"}

    def test_canonical_for_unknown(self):
        assert SemanticIndex().canonical_for("Nobody") == "Nobody"

    def test_merge_creates_canonical(self):
        index = SemanticIndex()
        entry = index.merge_alias("Robert", "Bob")
        assert entry.canonical == "Robert"
        assert index.canonical_for("bob") == "Robert"

    def test_merge_moves_canonical_and_its_variants(self):
        index = SemanticIndex()
        index.propose_alias("Bob")
        index.aliases["Bob"].variants.append("Bobby")
        index.propose_alias("Robert")

        index.merge_alias("Robert", "Bob")

        assert "Bob" not in index.aliases
        assert index.aliases["Robert"].variants == ["Bob", "Bobby"]
        assert index.canonical_for("Bobby") == "Robert"

    def test_merge_removes_variant_from_other_entry(self):
        index = SemanticIndex()
        index.propose_alias("John")
        index.propose_alias("John Smith")
        index.merge_alias("Johnny", "John Smith")

        assert index.aliases["John"].variants == []
        assert index.canonical_for("John Smith") == "Johnny"

    def test_merge_is_idempotent(self):
        index = SemanticIndex()
        index.merge_alias("Robert", "Bob")
        index.merge_alias("Robert", "Bob")
        assert index.aliases["Robert"].variants == ["Bob"]

    @pytest.mark.parametrize("canonical,variant", [("", "Bob"), ("Bob", " "), ("Bob", "bob")])
    def test_merge_invalid(self, canonical, variant):
        with pytest.raises(ValidationError):
            SemanticIndex().merge_alias(canonical, variant)


class TestTemplates:
    """Tests for template detection."""

    def test_repeated_shape_establishes(self):
        index = SemanticIndex(template_min_matches=2)
        first = index.detect_template(
            "Call John about the budget", _fields(person="John", topic="the budget")
        )
        assert first.match_count == 1
        assert index.established_templates() == []

        second = index.detect_template(
            "Call Maria about invoices", _fields(person="Maria", topic="invoices")
        )
        assert second is first
        assert second.match_count == 2
        assert index.established_templates() == [second]

    def test_field_set_narrows(self):
        index = SemanticIndex()
        index.detect_template("Call John", {**_fields(person="John"), **_fields(extra="x")})
        entry = index.detect_template("Call Maria", _fields(person="Maria"))
        assert entry.fields == {"person"}

    def test_no_shape(self):
        index = SemanticIndex()
        assert index.detect_template("Buy milk", {}) is None
        assert index.templates == {}


class TestRebuildAndSerialization:
    """Tests for rebuild and to_dict/from_dict."""

    def test_rebuild_keeps_aliases(self):
        index = SemanticIndex()
        index.merge_alias("Robert", "Bob")
        index.observe(_fields(stale="x"))

        start = datetime(2025, 12, 1, 9, 0)
        tasks = [
            Task(description="Call Bob", created_at=start, fields=_fields(person="Bob")),
            Task(
                description="Call Maria",
                created_at=start + timedelta(minutes=1),
                fields=_fields(person="Maria"),
            ),
        ]
        index.rebuild(tasks)

        assert set(index.fields) == {"person"}
        assert index.fields["person"].count == 2
        assert len(index.templates) == 1
        assert index.canonical_for("Bob") == "Robert"

    def test_round_trip(self):
        index = SemanticIndex()
        index.observe(_fields(person="John"))
        index.propose_alias("John")
        index.propose_alias("John Smith")
        index.detect_template("Call John", _fields(person="John"))

        restored = SemanticIndex.from_dict(index.to_dict())
        assert restored.to_dict() == index.to_dict()
        assert restored.canonical_for("John Smith") == "John"
