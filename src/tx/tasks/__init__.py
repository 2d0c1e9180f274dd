"""
tx task module.

Public API:
-----------

Models:
    Task - Main task model
    FieldValue - Typed value of a discovered field
    RecurrenceDescriptor - Frequency and anchor of a recurring task
    CompletionRecord - When and how a task was completed

Resolution:
    Resolution - Outcome of prefix resolution
    resolve_prefix - Resolve an id prefix against candidates

Recurrence:
    detect_recurrence - Decide whether a task recurs
    next_deadline - Next anchored deadline
    next_occurrence - Next occurrence of a recurring task

Scoring, statistics, storage, and workflows live in tx.tasks.scoring,
tx.tasks.stats, tx.tasks.store, tx.tasks.tracker, and tx.tasks.queries.

Utilities:
    generate_task_id - Generate unique task ID
    validate_task_id - Validate task ID format
"""

from tx.tasks.models import (
    CompletionRecord,
    FieldValue,
    RecurrenceDescriptor,
    Task,
    deadline_from_fields,
    generate_task_id,
    normalize_field_name,
    validate_task_id,
)
from tx.tasks.recurrence import detect_recurrence, next_deadline, next_occurrence
from tx.tasks.resolver import Resolution, resolve_prefix

__all__ = [
    "Task",
    "FieldValue",
    "RecurrenceDescriptor",
    "CompletionRecord",
    "Resolution",
    "resolve_prefix",
    "detect_recurrence",
    "next_deadline",
    "next_occurrence",
    "deadline_from_fields",
    "generate_task_id",
    "normalize_field_name",
    "validate_task_id",
]
