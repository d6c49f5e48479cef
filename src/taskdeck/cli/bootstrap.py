# src/taskdeck/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the concrete TaskStore into AppState.
"""

from __future__ import annotations

import logging
from pathlib import Path

from ..config import get_settings
from ..core.state import AppState
from ..tasks.task_store import Clock, TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    Path(settings.tasks_file_path).parent.mkdir(parents=True, exist_ok=True)
    if getattr(settings, "log_to_file", False):
        Path(settings.data_dir).mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None, clock: Clock | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().

    The store is NOT loaded here; call load_tasks(state) so the caller decides
    what a load failure means.
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    store = TaskStore(Path(settings.tasks_file_path), clock=clock)
    logger.debug("TaskStore created path=%s", store.path)
    return AppState(settings=settings, task_store=store)


def load_tasks(state: AppState) -> int:
    """Load the task file into the store; returns the number of tasks (errors propagate)."""
    state.task_store.load()
    total = state.task_store.count_tasks()
    logger.info("Loaded %d tasks", total)
    return total
