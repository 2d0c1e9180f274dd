"""
Unit tests for recurrence handling.

Tests cover:
- Recurrence phrase detection
- Next deadline arithmetic for each frequency
- Month-end clamping
- Invalid anchors
- Next occurrence construction
"""

import logging
from datetime import date, datetime

import pytest

from tx.core.constants import FieldKind, Frequency
from tx.core.exceptions import ValidationError
from tx.tasks import FieldValue, RecurrenceDescriptor, Task, detect_recurrence, next_deadline, next_occurrence
from tx.tasks.recurrence import parse_day_anchor, parse_recurrence_phrase, parse_weekday_anchor


class TestRecurrenceDetection:
    """Tests for recognizing recurrence phrases."""

    @pytest.mark.parametrize(
        "text,frequency,anchor",
        [
            ("Water plants every day", Frequency.DAILY, None),
            ("Standup daily", Frequency.DAILY, None),
            ("Team sync every Monday", Frequency.WEEKLY, "monday"),
            ("Gym every tues", Frequency.WEEKLY, "tuesday"),
            ("Review weekly on friday", Frequency.WEEKLY, "friday"),
            ("Pay rent monthly on the 1st", Frequency.MONTHLY, "1"),
            ("Invoice on the 15th of every month", Frequency.MONTHLY, "15"),
            ("Renew domain every year", Frequency.YEARLY, None),
            ("Taxes annually", Frequency.YEARLY, None),
        ],
    )
    def test_phrases(self, text, frequency, anchor):
        descriptor = parse_recurrence_phrase(text)
        assert descriptor == RecurrenceDescriptor(frequency=frequency, anchor=anchor)

    def test_no_recurrence(self):
        assert parse_recurrence_phrase("Call John about the budget") is None

    def test_hint_wins(self):
        hint = RecurrenceDescriptor(frequency=Frequency.YEARLY)
        assert detect_recurrence("every day", {}, hint=hint) is hint

    def test_field_before_text(self):
        fields = {"repeat": FieldValue(kind=FieldKind.STRING, value="weekly")}
        descriptor = detect_recurrence("do it every day", fields)
        assert descriptor.frequency == Frequency.WEEKLY

    def test_describe(self):
        assert RecurrenceDescriptor(Frequency.WEEKLY, "Monday").describe() == "weekly on monday"
        assert RecurrenceDescriptor(Frequency.MONTHLY, "15").describe() == "monthly on day 15"
        assert RecurrenceDescriptor(Frequency.DAILY).describe() == "daily"


class TestAnchors:
    """Tests for anchor parsing."""

    def test_weekday_anchor(self):
        assert parse_weekday_anchor("Wed") == 2
        with pytest.raises(ValidationError):
            parse_weekday_anchor("someday")

    def test_day_anchor(self):
        assert parse_day_anchor("3rd") == 3
        assert parse_day_anchor("last") == 31
        with pytest.raises(ValidationError):
            parse_day_anchor("32")


class TestNextDeadline:
    """Tests for next deadline arithmetic."""

    def test_daily(self):
        descriptor = RecurrenceDescriptor(Frequency.DAILY)
        assert next_deadline(descriptor, date(2025, 12, 2), date(2025, 12, 2)) == date(2025, 12, 3)

    def test_daily_crosses_year(self):
        descriptor = RecurrenceDescriptor(Frequency.DAILY)
        assert next_deadline(descriptor, date(2025, 12, 31), date(2025, 12, 31)) == date(2026, 1, 1)

    def test_weekly_anchor_is_strictly_later(self):
        descriptor = RecurrenceDescriptor(Frequency.WEEKLY, "monday")
        # 2025-12-01 is a Monday
        assert next_deadline(descriptor, date(2025, 12, 1), date(2025, 12, 1)) == date(2025, 12, 8)
        assert next_deadline(descriptor, date(2025, 12, 3), date(2025, 12, 3)) == date(2025, 12, 8)

    def test_weekly_without_anchor(self):
        descriptor = RecurrenceDescriptor(Frequency.WEEKLY)
        assert next_deadline(descriptor, date(2025, 12, 2), date(2025, 12, 2)) == date(2025, 12, 9)

    def test_monthly_clamps_to_month_end(self):
        descriptor = RecurrenceDescriptor(Frequency.MONTHLY, "31")
        assert next_deadline(descriptor, date(2025, 3, 31), date(2025, 3, 31)) == date(2025, 4, 30)
        assert next_deadline(descriptor, date(2025, 1, 31), date(2025, 1, 31)) == date(2025, 2, 28)

    def test_monthly_anchor_later_in_same_month(self):
        descriptor = RecurrenceDescriptor(Frequency.MONTHLY, "15")
        assert next_deadline(descriptor, date(2025, 12, 2), date(2025, 12, 2)) == date(2025, 12, 15)

    def test_yearly_leap_day(self):
        descriptor = RecurrenceDescriptor(Frequency.YEARLY)
        assert next_deadline(descriptor, date(2024, 2, 29), date(2024, 2, 29)) == date(2025, 2, 28)

    def test_no_prior_deadline_uses_completion_date(self):
        descriptor = RecurrenceDescriptor(Frequency.DAILY)
        assert next_deadline(descriptor, None, date(2025, 12, 5)) == date(2025, 12, 6)

    def test_invalid_anchor_returns_none_and_logs(self, caplog):
        descriptor = RecurrenceDescriptor(Frequency.WEEKLY, "someday")
        with caplog.at_level(logging.WARNING, logger="tx.tasks.recurrence"):
            assert next_deadline(descriptor, date(2025, 12, 2), date(2025, 12, 2)) is None
        assert "Cannot compute next occurrence" in caplog.text


class TestNextOccurrence:
    """Tests for building the next occurrence."""

    def _recurring_task(self) -> Task:
        return Task(
            description="Team sync every monday",
            created_at=datetime(2025, 11, 28, 9, 0),
            fields={
                "due": FieldValue(kind=FieldKind.DATE, value="2025-12-01"),
                "project": FieldValue(kind=FieldKind.STRING, value="ops"),
            },
            deadline=date(2025, 12, 1),
            recurrence=RecurrenceDescriptor(Frequency.WEEKLY, "monday"),
            blocks=["some-other-task"],
        )

    def test_builds_fresh_task(self):
        task = self._recurring_task()
        created = datetime(2025, 12, 1, 10, 0)
        nxt = next_occurrence(task, date(2025, 12, 1), created_at=created)

        assert nxt is not None
        assert nxt.id != task.id
        assert nxt.description == task.description
        assert nxt.deadline == date(2025, 12, 8)
        assert nxt.fields["due"].value == date(2025, 12, 8)
        assert nxt.fields["project"].text == "ops"
        assert nxt.recurrence == task.recurrence
        assert nxt.blocks == []
        assert nxt.completion is None
        assert nxt.is_open
        assert nxt.created_at == created

    def test_input_unchanged(self):
        task = self._recurring_task()
        before = task.to_dict()
        next_occurrence(task, date(2025, 12, 1))
        assert task.to_dict() == before

    def test_one_off_task(self):
        assert next_occurrence(Task(description="once"), date(2025, 12, 1)) is None

    def test_invalid_anchor(self):
        task = Task(
            description="odd",
            recurrence=RecurrenceDescriptor(Frequency.MONTHLY, "sometime"),
        )
        assert next_occurrence(task, date(2025, 12, 1)) is None
