"""
Recurrence detection and next-occurrence computation.

A recurring task carries a RecurrenceDescriptor. Completing it produces a
fresh open task whose deadline is the next anchored date after the prior
deadline (or after the completion date when there was none).
"""

import logging
import re
from datetime import date, datetime, timedelta
from typing import Optional

from dateutil.relativedelta import FR, MO, SA, SU, TH, TU, WE, relativedelta

from tx.core.constants import DEADLINE_FIELD_NAMES, FieldKind, Frequency, RECURRENCE_FIELD_NAMES
from tx.core.exceptions import ValidationError
from tx.tasks.models import FieldValue, RecurrenceDescriptor, Task, generate_task_id

logger = logging.getLogger(__name__)


WEEKDAYS: dict[str, int] = {
    "monday": 0, "mon": 0,
    "tuesday": 1, "tue": 1, "tues": 1,
    "wednesday": 2, "wed": 2,
    "thursday": 3, "thu": 3, "thur": 3, "thurs": 3,
    "friday": 4, "fri": 4,
    "saturday": 5, "sat": 5,
    "sunday": 6, "sun": 6,
}

RELATIVE_WEEKDAYS = (MO, TU, WE, TH, FR, SA, SU)

LAST_DAY_ANCHORS: frozenset[str] = frozenset({"last", "end", "eom"})

_WEEKDAY_ALTERNATION = "|".join(sorted(WEEKDAYS, key=len, reverse=True))

# Ordered: anchored phrasings are tried before bare frequencies
RECURRENCE_PATTERNS: tuple[tuple[re.Pattern[str], Frequency], ...] = (
    (re.compile(rf"\bevery\s+({_WEEKDAY_ALTERNATION})s?\b"), Frequency.WEEKLY),
    (re.compile(rf"\b(?:weekly|every\s+week)\s+on\s+({_WEEKDAY_ALTERNATION})s?\b"), Frequency.WEEKLY),
    (
        re.compile(r"\b(?:monthly|every\s+month)\s+on\s+(?:the\s+)?(\d{1,2})(?:st|nd|rd|th)?\b"),
        Frequency.MONTHLY,
    ),
    (
        re.compile(r"\bon\s+the\s+(\d{1,2})(?:st|nd|rd|th)?\s+of\s+(?:every|each)\s+month\b"),
        Frequency.MONTHLY,
    ),
    (re.compile(r"\b(?:every|each)\s+day\b|\bdaily\b"), Frequency.DAILY),
    (re.compile(r"\b(?:every|each)\s+week\b|\bweekly\b"), Frequency.WEEKLY),
    (re.compile(r"\b(?:every|each)\s+month\b|\bmonthly\b"), Frequency.MONTHLY),
    (re.compile(r"\b(?:every|each)\s+year\b|\byearly\b|\bannually\b"), Frequency.YEARLY),
)


# =============================================================================
# Detection
# =============================================================================

def parse_recurrence_phrase(text: str) -> Optional[RecurrenceDescriptor]:
    """Recognize a recurrence phrase such as "every monday" or "monthly"."""
    lowered = text.lower()
    for pattern, frequency in RECURRENCE_PATTERNS:
        match = pattern.search(lowered)
        if match is None:
            continue
        anchor = match.group(1) if match.groups() else None
        if anchor is not None and frequency == Frequency.WEEKLY:
            anchor = _full_weekday_name(anchor)
        elif anchor is not None:
            anchor = str(int(anchor))
        return RecurrenceDescriptor(frequency=frequency, anchor=anchor)
    return None


def detect_recurrence(
    text: str,
    fields: dict[str, FieldValue],
    hint: Optional[RecurrenceDescriptor] = None,
) -> Optional[RecurrenceDescriptor]:
    """
    Decide whether a task recurs.

    An extractor hint wins, then a recurrence-like field, then phrases in
    the description itself.

    Args:
        text: Raw task description
        fields: Discovered fields
        hint: Recurrence reported by the extractor, if any

    Returns:
        Recurrence descriptor, or None for one-off tasks
    """
    if hint is not None:
        return hint

    for name in RECURRENCE_FIELD_NAMES:
        value = fields.get(name)
        if value is None:
            continue
        descriptor = parse_recurrence_phrase(value.text)
        if descriptor is not None:
            return descriptor

    return parse_recurrence_phrase(text)


# =============================================================================
# Next Deadline
# =============================================================================

def _full_weekday_name(anchor: str) -> str:
    index = WEEKDAYS[anchor]
    return next(name for name, i in WEEKDAYS.items() if i == index and len(name) > 4)


def parse_weekday_anchor(anchor: str) -> int:
    """
    Weekday index (Monday is 0) of a weekday anchor.

    Raises:
        ValidationError: If the anchor is not a weekday name
    """
    index = WEEKDAYS.get(anchor.strip().lower())
    if index is None:
        raise ValidationError(f"Unrecognized weekday anchor: {anchor}", details={"anchor": anchor})
    return index


def parse_day_anchor(anchor: str) -> int:
    """
    Day of month of a monthly anchor; 31 stands for the last day.

    Raises:
        ValidationError: If the anchor is not a day of month
    """
    text = anchor.strip().lower()
    if text in LAST_DAY_ANCHORS:
        return 31
    match = re.fullmatch(r"(\d{1,2})(?:st|nd|rd|th)?", text)
    if match is None or not 1 <= int(match.group(1)) <= 31:
        raise ValidationError(f"Unrecognized day-of-month anchor: {anchor}", details={"anchor": anchor})
    return int(match.group(1))


def _advance(descriptor: RecurrenceDescriptor, base: date) -> date:
    frequency = descriptor.frequency

    if frequency == Frequency.DAILY:
        return base + timedelta(days=1)

    if frequency == Frequency.WEEKLY:
        if descriptor.anchor is None:
            return base + timedelta(days=7)
        target = RELATIVE_WEEKDAYS[parse_weekday_anchor(descriptor.anchor)]
        # Start the search the day after base so the result is strictly later
        return base + relativedelta(days=1, weekday=target(+1))

    if frequency == Frequency.MONTHLY:
        day = base.day if descriptor.anchor is None else parse_day_anchor(descriptor.anchor)
        # relativedelta clamps day to the month's last day
        for offset in range(3):
            candidate = base + relativedelta(months=offset, day=day)
            if candidate > base:
                return candidate
        raise ValidationError(f"No monthly occurrence after {base}")

    return base + relativedelta(years=1)


def next_deadline(
    descriptor: RecurrenceDescriptor,
    prior_deadline: Optional[date],
    completed_on: date,
) -> Optional[date]:
    """
    Compute the deadline of the next occurrence.

    Args:
        descriptor: Recurrence of the completed task
        prior_deadline: Deadline of the completed occurrence, if any
        completed_on: Completion date, used when there was no deadline

    Returns:
        Next deadline, or None when the anchor cannot be interpreted
    """
    base = prior_deadline or completed_on
    try:
        return _advance(descriptor, base)
    except ValidationError as e:
        logger.warning(f"Cannot compute next occurrence for '{descriptor.describe()}': {e}")
        return None


def next_occurrence(
    task: Task,
    completed_on: date,
    created_at: Optional[datetime] = None,
) -> Optional[Task]:
    """
    Build the next occurrence of a recurring task.

    The input task is not modified. The new task keeps the description,
    fields, and recurrence; it gets a new id, no blocking edges, no
    completion record, and the next deadline.

    Returns:
        The new open task, or None if the task does not recur or its
        next deadline cannot be computed
    """
    if task.recurrence is None:
        return None

    deadline = next_deadline(task.recurrence, task.deadline, completed_on)
    if deadline is None:
        return None

    fields = dict(task.fields)
    for name in DEADLINE_FIELD_NAMES:
        value = fields.get(name)
        if value is not None and value.kind == FieldKind.DATE:
            fields[name] = FieldValue(kind=FieldKind.DATE, value=deadline)
            break

    return Task(
        id=generate_task_id(),
        description=task.description,
        created_at=created_at or datetime.now(),
        fields=fields,
        deadline=deadline,
        recurrence=task.recurrence,
    )
