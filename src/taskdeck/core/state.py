# src/taskdeck/core/state.py

from __future__ import annotations

from dataclasses import dataclass

from .ports import TaskRepo


@dataclass
class AppState:
    # Store Settings on the state for easy access in command flows.
    settings: object
    task_store: TaskRepo
