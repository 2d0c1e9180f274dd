"""
Unit tests for the offline rule extractor.

Tests cover:
- Shorthand markers (#project, @person, !priority)
- Due date expressions
- Task type from the leading verb
- Recurrence hints
"""

from datetime import date

import pytest

from tx.core.constants import FieldKind, Frequency
from tx.extractors import RuleExtractor, SemanticExtractor
from tx.extractors.rule_extractor import resolve_date_expression

# 2025-12-02 is a Tuesday
TODAY = date(2025, 12, 2)


@pytest.fixture
def extractor() -> RuleExtractor:
    return RuleExtractor(today=lambda: TODAY)


class TestShorthand:
    """Tests for shorthand markers."""

    def test_satisfies_protocol(self, extractor):
        assert isinstance(extractor, SemanticExtractor)

    def test_all_markers(self, extractor):
        result = extractor.extract("Call @john about #budget !high due friday")

        assert result.fields["person"].text == "john"
        assert result.fields["project"].text == "budget"
        assert result.fields["priority"].kind == FieldKind.ENUM
        assert result.fields["priority"].text == "high"
        assert result.fields["due"].value == date(2025, 12, 5)
        assert result.fields["type"].text == "call"
        assert result.confidence > 0

    def test_dotted_person(self, extractor):
        result = extractor.extract("Email @john.smith re: invoice")
        assert result.fields["person"].text == "john.smith"
        assert result.fields["type"].text == "email"

    def test_asap_means_urgent(self, extractor):
        result = extractor.extract("Fix login bug ASAP")
        assert result.fields["priority"].text == "urgent"
        assert result.fields["type"].text == "fix"

    def test_nothing_found(self, extractor):
        result = extractor.extract("Think about life")
        assert result.is_empty
        assert result.confidence == 0.0


class TestDueDates:
    """Tests for due date expressions."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("Dentist tomorrow", date(2025, 12, 3)),
            ("Submit report by 2025-12-10", date(2025, 12, 10)),
            ("Send card before dec 24", date(2025, 12, 24)),
            ("Standup due tuesday", date(2025, 12, 2)),
            ("Retro due next tuesday", date(2025, 12, 9)),
        ],
    )
    def test_due(self, extractor, text, expected):
        result = extractor.extract(text)
        assert result.fields["due"].kind == FieldKind.DATE
        assert result.fields["due"].value == expected

    def test_resolve_date_expression_unparseable(self):
        assert resolve_date_expression("the twelfth of never", TODAY) is None

    def test_next_week(self):
        assert resolve_date_expression("next week", TODAY) == date(2025, 12, 9)


class TestRecurrenceHint:
    """Tests for recurrence phrases."""

    def test_monthly(self, extractor):
        result = extractor.extract("Pay rent every month on the 1st")
        assert result.recurrence.frequency == Frequency.MONTHLY
        assert result.recurrence.anchor == "1"
        assert result.fields["type"].text == "payment"

    def test_weekly(self, extractor):
        result = extractor.extract("Team sync every monday")
        assert result.recurrence.frequency == Frequency.WEEKLY
        assert result.recurrence.anchor == "monday"
        assert not result.is_empty
