"""
Task export formatters.

- json: every task record, exactly as stored
- markdown: checklist of open tasks followed by completed ones
- ical: one all-day VEVENT per task with a deadline; recurring tasks
  carry an RRULE
"""

import json
from datetime import datetime
from enum import Enum
from typing import Callable, Iterable, Optional

from tx.core.constants import Frequency
from tx.tasks.models import RecurrenceDescriptor, Task
from tx.tasks.recurrence import WEEKDAYS

ICAL_WEEKDAYS = ("MO", "TU", "WE", "TH", "FR", "SA", "SU")
ICAL_PRODID = "-//tx//Task Export//EN"


class ExportFormat(str, Enum):
    """Supported export formats."""

    JSON = "json"
    MARKDOWN = "markdown"
    ICAL = "ical"


# =============================================================================
# JSON
# =============================================================================

def export_json(tasks: Iterable[Task], now: Optional[datetime] = None) -> str:
    payload = {
        "exported_at": (now or datetime.now()).isoformat(),
        "tasks": [task.to_dict() for task in tasks],
    }
    return json.dumps(payload, indent=2, ensure_ascii=False) + "\n"


# =============================================================================
# Markdown
# =============================================================================

def _markdown_line(task: Task) -> str:
    mark = " " if task.is_open else "x"
    details = []
    if task.deadline:
        details.append(f"due {task.deadline.isoformat()}")
    if task.recurrence:
        details.append(task.recurrence.describe())
    for name, value in sorted(task.fields.items()):
        if value.kind.value != "date":
            details.append(f"{name}: {value.text}")
    suffix = f" ({'; '.join(details)})" if details else ""
    return f"- [{mark}] {task.description}{suffix} `{task.short_id}`"


def export_markdown(tasks: Iterable[Task], now: Optional[datetime] = None) -> str:
    tasks = list(tasks)
    open_tasks = [t for t in tasks if t.is_open]
    done_tasks = [t for t in tasks if not t.is_open]

    lines = [
        "# Tasks",
        "",
        f"_Exported {(now or datetime.now()).strftime('%Y-%m-%d %H:%M')}_",
        "",
        f"## Open ({len(open_tasks)})",
        "",
    ]
    lines.extend(_markdown_line(t) for t in open_tasks)
    if not open_tasks:
        lines.append("_Nothing open._")

    lines.extend(["", f"## Completed ({len(done_tasks)})", ""])
    lines.extend(_markdown_line(t) for t in done_tasks)
    if not done_tasks:
        lines.append("_Nothing completed yet._")

    return "\n".join(lines) + "\n"


# =============================================================================
# iCalendar
# =============================================================================

def _ics_escape(text: str) -> str:
    """Escape text for an iCalendar property value."""
    return (
        text.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\n", "\\n")
    )


def recurrence_rule(descriptor: RecurrenceDescriptor) -> str:
    """RRULE value for a recurrence descriptor."""
    rule = f"FREQ={descriptor.frequency.value.upper()}"
    anchor = descriptor.anchor
    if anchor is None:
        return rule

    if descriptor.frequency == Frequency.WEEKLY and anchor in WEEKDAYS:
        return f"{rule};BYDAY={ICAL_WEEKDAYS[WEEKDAYS[anchor]]}"
    if descriptor.frequency == Frequency.MONTHLY and anchor.isdigit():
        day = int(anchor)
        return f"{rule};BYMONTHDAY={-1 if day >= 31 else day}"
    return rule


def export_ical(tasks: Iterable[Task], now: Optional[datetime] = None) -> str:
    stamp = (now or datetime.now()).strftime("%Y%m%dT%H%M%S")
    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:{ICAL_PRODID}",
        "CALSCALE:GREGORIAN",
        "X-WR-CALNAME:tx tasks",
    ]

    for task in tasks:
        if task.deadline is None:
            continue
        description = "\n".join(
            f"{name}: {value.text}" for name, value in sorted(task.fields.items())
        )
        lines.extend(
            [
                "BEGIN:VEVENT",
                f"UID:{task.id}@tx",
                f"DTSTAMP:{stamp}",
                f"DTSTART;VALUE=DATE:{task.deadline.strftime('%Y%m%d')}",
                f"SUMMARY:{_ics_escape(task.description)}",
                f"STATUS:{'CONFIRMED' if task.is_open else 'CANCELLED'}",
            ]
        )
        if description:
            lines.append(f"DESCRIPTION:{_ics_escape(description)}")
        if task.recurrence is not None and task.is_open:
            lines.append(f"RRULE:{recurrence_rule(task.recurrence)}")
        lines.append("END:VEVENT")

    lines.append("END:VCALENDAR")
    return "\r\n".join(lines) + "\r\n"


EXPORTERS: dict[ExportFormat, Callable[..., str]] = {
    ExportFormat.JSON: export_json,
    ExportFormat.MARKDOWN: export_markdown,
    ExportFormat.ICAL: export_ical,
}


def export_tasks(
    tasks: Iterable[Task],
    fmt: ExportFormat | str,
    now: Optional[datetime] = None,
) -> str:
    """
    Render tasks in an export format.

    Raises:
        ValueError: If the format is unknown
    """
    return EXPORTERS[ExportFormat(fmt)](tasks, now=now)
