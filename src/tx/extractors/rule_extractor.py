"""
Offline rule-based extractor.

Recognizes a small shorthand that needs no model:

    #project        project
    @person         person
    !urgent !high   priority
    due friday      due date (also "by", "before", "on"; today, tomorrow,
                    weekday names, ISO dates, "march 3", "3/14")
    every monday    recurrence hint

A leading verb such as "call" or "email" becomes the task type.
"""

import logging
import re
from datetime import date, datetime, timedelta
from typing import Callable, Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

from tx.core.constants import FieldKind, PRIORITY_FIELD, PROJECT_FIELD
from tx.extractors.base import Extraction
from tx.tasks.models import FieldValue
from tx.tasks.recurrence import RELATIVE_WEEKDAYS, WEEKDAYS, parse_recurrence_phrase

logger = logging.getLogger(__name__)


PROJECT_PATTERN = re.compile(r"(?<!\w)#([\w][\w-]*)")
PERSON_PATTERN = re.compile(r"(?<![\w.])@([\w][\w.-]*[\w]|[\w])")
PRIORITY_PATTERN = re.compile(r"(?<!\w)!(urgent|high|medium|low)\b", re.IGNORECASE)
URGENT_WORD_PATTERN = re.compile(r"\b(urgent|asap)\b", re.IGNORECASE)

_WEEKDAY_ALTERNATION = "|".join(sorted(WEEKDAYS, key=len, reverse=True))
DATE_EXPRESSION = (
    rf"today|tonight|tomorrow|next\s+week|(?:next\s+)?(?:{_WEEKDAY_ALTERNATION})\b"
    r"|\d{4}-\d{2}-\d{2}"
    r"|\d{1,2}/\d{1,2}(?:/\d{2,4})?"
    r"|(?:jan|feb|mar|apr|may|jun|jul|aug|sep|sept|oct|nov|dec)[a-z]*\.?\s+\d{1,2}(?:st|nd|rd|th)?"
)
DUE_PATTERN = re.compile(rf"\b(?:due|by|before|on)\s+({DATE_EXPRESSION})", re.IGNORECASE)
BARE_DAY_PATTERN = re.compile(r"\b(today|tonight|tomorrow)\b", re.IGNORECASE)

TASK_TYPE_VERBS: dict[str, str] = {
    "call": "call",
    "phone": "call",
    "ring": "call",
    "email": "email",
    "mail": "email",
    "reply": "email",
    "write": "writing",
    "draft": "writing",
    "review": "review",
    "read": "reading",
    "meet": "meeting",
    "schedule": "meeting",
    "buy": "errand",
    "pick": "errand",
    "pay": "payment",
    "fix": "fix",
    "debug": "fix",
    "deploy": "deploy",
    "clean": "chore",
}

RULE_CONFIDENCE = 0.6


def resolve_date_expression(expression: str, today: date) -> Optional[date]:
    """
    Turn a date expression into a calendar date relative to ``today``.

    Weekday names mean the next such day on or after today; "next"
    skips to the one strictly after today.
    """
    text = re.sub(r"\s+", " ", expression.strip().lower())

    if text in ("today", "tonight"):
        return today
    if text == "tomorrow":
        return today + timedelta(days=1)
    if text == "next week":
        return today + timedelta(days=7)

    words = text.split()
    if words[-1] in WEEKDAYS:
        weekday = RELATIVE_WEEKDAYS[WEEKDAYS[words[-1]]]
        if words[0] == "next":
            return today + relativedelta(days=1, weekday=weekday(+1))
        return today + relativedelta(weekday=weekday(+1))

    try:
        parsed = date_parser.parse(text, default=datetime(today.year, today.month, today.day))
    except (ValueError, OverflowError) as e:
        logger.debug(f"Unparseable date expression '{expression}': {e}")
        return None
    return parsed.date()


class RuleExtractor:
    """Extractor for the offline "none" provider."""

    name = "rules"

    def __init__(self, today: Callable[[], date] = date.today) -> None:
        self._today = today

    def extract(self, text: str) -> Extraction:
        today = self._today()
        fields: dict[str, FieldValue] = {}

        project = PROJECT_PATTERN.search(text)
        if project:
            fields[PROJECT_FIELD] = FieldValue(kind=FieldKind.STRING, value=project.group(1))

        person = PERSON_PATTERN.search(text)
        if person:
            fields["person"] = FieldValue(kind=FieldKind.STRING, value=person.group(1))

        priority = PRIORITY_PATTERN.search(text) or URGENT_WORD_PATTERN.search(text)
        if priority:
            level = priority.group(1).lower()
            level = "urgent" if level == "asap" else level
            fields[PRIORITY_FIELD] = FieldValue(kind=FieldKind.ENUM, value=level)

        due = DUE_PATTERN.search(text) or BARE_DAY_PATTERN.search(text)
        if due:
            resolved = resolve_date_expression(due.group(1), today)
            if resolved is not None:
                fields["due"] = FieldValue(kind=FieldKind.DATE, value=resolved)

        words = text.strip().split()
        if words:
            verb = words[0].lower().strip(".,:;!")
            if verb in TASK_TYPE_VERBS:
                fields["type"] = FieldValue(kind=FieldKind.ENUM, value=TASK_TYPE_VERBS[verb])

        recurrence = parse_recurrence_phrase(text)
        confidence = RULE_CONFIDENCE if fields or recurrence else 0.0
        return Extraction(fields=fields, recurrence=recurrence, confidence=confidence)
