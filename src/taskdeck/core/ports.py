# src/taskdeck/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the shell.

Command flows depend on this Protocol instead of the concrete TaskStore.
This keeps storage swappable and makes testing easier.
"""

from collections.abc import Mapping
from datetime import datetime
from typing import Any, Protocol


class TaskRepo(Protocol):
    # Persistence
    def load(self) -> None: ...
    def save(self) -> None: ...

    # Mutations (each one persists before returning)
    def add_task(
            self,
            title: str,
            description: str = "",
            category: Any = None,  # TaskCategory | str | None
            priority: Any = None,  # TaskPriority | str | None
            due_date: datetime | None = None,
    ) -> Any: ...
    def edit_task(self, task_id: int, updates: Any | Mapping[str, Any]) -> Any: ...
    def delete_task(self, task_id: int) -> None: ...
    def toggle_task_complete(self, task_id: int) -> Any: ...

    # Queries (return copies, insertion order)
    def count_tasks(self) -> int: ...
    def get_task(self, task_id: int) -> Any: ...
    def list_tasks(self) -> list[Any]: ...
    def search_tasks(self, query: str) -> list[Any]: ...
    def filter_by_category(self, category: Any) -> list[Any]: ...
    def filter_by_priority(self, priority: Any) -> list[Any]: ...
    def list_overdue_tasks(self, *, now: datetime | None = None) -> list[Any]: ...
