# tests/conftest.py

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path
from types import SimpleNamespace

import pytest

from taskdeck.core.state import AppState
from taskdeck.tasks.task_store import TaskStore

from .fakes import FixedClock

NOW = datetime(2024, 3, 15, 12, 0, 0, tzinfo=UTC)


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the shell.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="taskdeck-test",
        log_level="WARNING",
        log_to_file=False,
        data_dir=tmp_path / "data",
        tasks_file_path=tmp_path / "tasks.json",
        date_format="%Y-%m-%d",
    )


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture()
def store(settings: SimpleNamespace, clock: FixedClock) -> TaskStore:
    """Real TaskStore on a temp file; loaded, so it starts empty."""
    s = TaskStore(settings.tasks_file_path, clock=clock)
    s.load()
    return s


@pytest.fixture()
def state(settings: SimpleNamespace, store: TaskStore) -> AppState:
    return AppState(settings=settings, task_store=store)
