"""Pytest configuration and fixtures for tx tests."""

import tempfile
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Callable, Generator, Optional

import pytest

from tx.core.config import TxConfig
from tx.core.constants import FieldKind
from tx.core.exceptions import ExtractorError
from tx.extractors.base import Extraction
from tx.tasks.models import FieldValue, Task
from tx.tasks.store import TaskStore
from tx.tasks.tracker import TaskTracker

BASE_CREATED_AT = datetime(2025, 12, 1, 9, 0, 0)


class StubExtractor:
    """Extractor returning canned extractions keyed by text."""

    name = "stub"

    def __init__(self, responses: Optional[dict[str, Extraction]] = None) -> None:
        self.responses = responses or {}
        self.calls: list[str] = []

    def extract(self, text: str) -> Extraction:
        self.calls.append(text)
        return self.responses.get(text, Extraction.empty())


class FailingExtractor:
    """Extractor that always fails the way a timed-out LLM call does."""

    name = "failing"

    def extract(self, text: str) -> Extraction:
        raise ExtractorError("Request timed out", provider="openai")


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def config() -> TxConfig:
    """Create default configuration."""
    return TxConfig()


@pytest.fixture
def store(temp_dir: Path, config: TxConfig) -> TaskStore:
    """Create task store rooted in a temporary directory."""
    return TaskStore(temp_dir, config=config)


@pytest.fixture
def stub_extractor() -> StubExtractor:
    return StubExtractor()


@pytest.fixture
def failing_extractor() -> FailingExtractor:
    return FailingExtractor()


@pytest.fixture
def tracker(store: TaskStore, stub_extractor: StubExtractor, config: TxConfig) -> TaskTracker:
    """Create tracker with a canned extractor."""
    return TaskTracker(store, stub_extractor, config=config)


@pytest.fixture
def today() -> date:
    """Fixed reference date."""
    return date(2025, 12, 2)


@pytest.fixture
def make_task() -> Callable[..., Task]:
    """Factory for tasks with deterministic creation times."""

    def _make(
        description: str = "Sample task",
        order: int = 0,
        deadline: Optional[date] = None,
        priority: Optional[str] = None,
        fields: Optional[dict[str, FieldValue]] = None,
        blocks: Optional[list[str]] = None,
        completed_at: Optional[datetime] = None,
        duration_minutes: Optional[int] = None,
    ) -> Task:
        all_fields = dict(fields or {})
        if priority is not None:
            all_fields["priority"] = FieldValue(kind=FieldKind.ENUM, value=priority)
        if deadline is not None:
            all_fields.setdefault("due", FieldValue(kind=FieldKind.DATE, value=deadline))

        task = Task(
            description=description,
            created_at=BASE_CREATED_AT + timedelta(minutes=order),
            fields=all_fields,
            deadline=deadline,
            blocks=list(blocks or []),
        )
        if completed_at is not None:
            task.complete(duration_minutes=duration_minutes, completed_at=completed_at)
        return task

    return _make
