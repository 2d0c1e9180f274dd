"""tx - natural-language personal task tracking.

Free-form task descriptions go in; a structured, queryable task set with
discovered fields, dependencies, recurrence, and focus ranking comes out.
"""

__version__ = "0.1.0"

from tx.core import (
    TaskStatus,
    TxConfig,
    TxError,
)

__all__ = [
    "__version__",
    "TaskStatus",
    "TxConfig",
    "TxError",
]
