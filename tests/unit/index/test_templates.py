"""
Unit tests for template shapes.

Tests cover:
- Shape computation from text and fields
- Stable template ids
- Template entry serialization
"""

from tx.core.constants import FieldKind
from tx.index.templates import TemplateEntry, compute_shape, template_id_for
from tx.tasks.models import FieldValue


def _fields(**values: str) -> dict[str, FieldValue]:
    return {name: FieldValue(kind=FieldKind.STRING, value=v) for name, v in values.items()}


class TestComputeShape:
    """Tests for compute_shape."""

    def test_call_about(self):
        shape = compute_shape("Call John about the budget", _fields(person="John", topic="the budget"))
        assert shape == "call {person} about {topic}"

    def test_same_shape_for_similar_phrasing(self):
        first = compute_shape("Call John about the budget", _fields(person="John", topic="the budget"))
        second = compute_shape("call Maria about invoices", _fields(person="Maria", topic="invoices"))
        assert first == second

    def test_sigils_stripped(self):
        shape = compute_shape("Email @john re #apollo", _fields(person="john", project="apollo"))
        assert shape == "email {person} re {project}"

    def test_multiword_value(self):
        shape = compute_shape("Meet with John Smith", _fields(person="John Smith"))
        assert shape == "meet with {person}"

    def test_no_slot_means_no_shape(self):
        assert compute_shape("Buy milk", {}) is None
        assert compute_shape("Buy milk", _fields(person="John")) is None

    def test_leading_value_has_no_verb(self):
        shape = compute_shape("John to send the slides", _fields(person="John"))
        assert shape == "{person}"

    def test_date_values(self):
        fields = {"due": FieldValue(kind=FieldKind.DATE, value="2025-12-05")}
        assert compute_shape("Submit report by 2025-12-05", fields) == "submit by {due}"


class TestTemplateEntry:
    """Tests for TemplateEntry."""

    def test_id_is_stable(self):
        assert template_id_for("call {person}") == template_id_for("call {person}")
        assert template_id_for("call {person}") != template_id_for("email {person}")
        assert len(template_id_for("call {person}")) == 12

    def test_established(self):
        entry = TemplateEntry(template_id="x", pattern="call {person}")
        assert not entry.is_established(2)
        entry.match_count = 2
        assert entry.is_established(2)

    def test_round_trip(self):
        entry = TemplateEntry(template_id="abc", pattern="call {person}", fields={"person"}, match_count=3)
        assert TemplateEntry.from_dict("abc", entry.to_dict()) == entry
