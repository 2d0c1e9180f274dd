"""Task export formatters."""

from tx.export.formats import ExportFormat, export_ical, export_json, export_markdown, export_tasks

__all__ = [
    "ExportFormat",
    "export_tasks",
    "export_json",
    "export_markdown",
    "export_ical",
]
