# src/taskdeck/tasks/task_store.py

from __future__ import annotations

import json
import logging
import os
from collections.abc import Callable, Mapping
from dataclasses import replace
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from .errors import InvalidTaskDataError, TaskNotFoundError, TaskPersistenceError
from .task_models import (
    Task,
    TaskCategory,
    TaskPriority,
    TaskUpdate,
    clean_description,
    clean_due_date,
    clean_title,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _as_utc(ts: datetime) -> datetime:
    """Naive values are taken as UTC."""
    return ts if ts.tzinfo is not None else ts.replace(tzinfo=UTC)


def _ts_to_str(ts: datetime) -> str:
    return _as_utc(ts).astimezone(UTC).isoformat().replace("+00:00", "Z")


def _str_to_ts(raw: Any, field: str) -> datetime:
    if not isinstance(raw, str):
        raise ValueError(f"{field} must be an ISO-8601 string, got {raw!r}")
    return _as_utc(datetime.fromisoformat(raw))


class TaskStore:
    """
    JSON-file task store.

    The whole collection lives in memory; the file is a full mirror rewritten
    after every mutation (tasks + nextID). Mutations change memory first and
    then save, so a failed save leaves memory ahead of disk until the next
    successful save.

    Thread-safety:
    - none; one process, one caller at a time
    """

    def __init__(self, path: str | Path = "tasks.json", *, clock: Clock | None = None) -> None:
        self._path = Path(path)
        self._clock: Clock = clock or _utc_now
        self._tasks: list[Task] = []
        self._next_id: int = 1

    @property
    def path(self) -> Path:
        return self._path

    @property
    def next_id(self) -> int:
        return self._next_id

    # ---- persistence ----

    def load(self) -> None:
        """Replace in-memory state with the file contents (missing file -> empty store)."""
        try:
            raw = self._path.read_text("utf-8")
        except FileNotFoundError:
            self._tasks = []
            self._next_id = 1
            logger.info("TaskStore: no file at %s, starting empty", self._path)
            return
        except (OSError, UnicodeDecodeError) as e:
            raise TaskPersistenceError("load tasks", e) from e

        try:
            tasks, next_id = self._decode(json.loads(raw))
        except (ValueError, TypeError, KeyError) as e:
            # json.JSONDecodeError is a ValueError
            raise TaskPersistenceError("load tasks", e) from e

        self._tasks = tasks
        self._next_id = next_id
        logger.info(
            "TaskStore loaded path=%s total=%s next_id=%s", self._path, len(tasks), next_id
        )

    def save(self) -> None:
        """Overwrite the file with the full collection (write temp file, then rename)."""
        payload = {
            "tasks": [self._task_to_json(t) for t in self._tasks],
            "nextID": self._next_id,
        }
        tmp = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(payload, ensure_ascii=False, indent=2), "utf-8")
            os.replace(tmp, self._path)
        except OSError as e:
            raise TaskPersistenceError("save tasks", e) from e
        logger.debug("TaskStore saved path=%s total=%s", self._path, len(self._tasks))

    @staticmethod
    def _task_to_json(task: Task) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": task.id,
            "title": task.title,
            "description": task.description,
            "completed": task.completed,
            "createdAt": _ts_to_str(task.created_at),
        }
        if task.category is not None:
            out["category"] = task.category.value
        if task.priority is not None:
            out["priority"] = task.priority.value
        if task.due_date is not None:
            out["dueDate"] = _ts_to_str(task.due_date)
        return out

    @staticmethod
    def _json_to_task(raw: Any) -> Task:
        if not isinstance(raw, dict):
            raise TypeError(f"task entry must be an object, got {type(raw).__name__}")

        task_id = raw["id"]
        if not isinstance(task_id, int) or isinstance(task_id, bool) or task_id < 1:
            raise ValueError(f"task id must be a positive integer, got {task_id!r}")

        title = raw["title"]
        if not isinstance(title, str) or not title.strip():
            raise ValueError(f"task {task_id}: title must be non-empty text")

        description = raw.get("description", "")
        if not isinstance(description, str):
            raise ValueError(f"task {task_id}: description must be text")

        completed = raw.get("completed", False)
        if not isinstance(completed, bool):
            raise ValueError(f"task {task_id}: completed must be a boolean")

        try:
            category = TaskCategory.parse(raw.get("category"))
            priority = TaskPriority.parse(raw.get("priority"))
        except InvalidTaskDataError as e:
            raise ValueError(f"task {task_id}: {e}") from None

        due_raw = raw.get("dueDate")
        return Task(
            id=task_id,
            title=title,
            description=description,
            completed=completed,
            created_at=_str_to_ts(raw["createdAt"], "createdAt"),
            category=category,
            priority=priority,
            due_date=_str_to_ts(due_raw, "dueDate") if due_raw is not None else None,
        )

    def _decode(self, data: Any) -> tuple[list[Task], int]:
        if not isinstance(data, dict):
            raise TypeError("top-level JSON value must be an object")

        raw_tasks = data["tasks"]
        if not isinstance(raw_tasks, list):
            raise TypeError("'tasks' must be a list")
        tasks = [self._json_to_task(r) for r in raw_tasks]

        ids = [t.id for t in tasks]
        if len(set(ids)) != len(ids):
            raise ValueError("duplicate task ids")

        # Restored verbatim, never recomputed from the collection.
        next_id = data["nextID"]
        if not isinstance(next_id, int) or isinstance(next_id, bool) or next_id < 1:
            raise ValueError(f"'nextID' must be a positive integer, got {next_id!r}")
        if ids and next_id <= max(ids):
            raise ValueError(f"'nextID' ({next_id}) must exceed every task id (max {max(ids)})")

        return tasks, next_id

    # ---- low-level helpers ----

    def _now(self) -> datetime:
        return _as_utc(self._clock())

    def _find(self, task_id: int) -> Task:
        for task in self._tasks:
            if task.id == task_id:
                return task
        raise TaskNotFoundError(task_id)

    def _allocate_id(self) -> int:
        nid = self._next_id
        self._next_id += 1
        return nid

    @staticmethod
    def _copies(tasks: list[Task]) -> list[Task]:
        return [replace(t) for t in tasks]

    # ---- public API: mutations ----

    def add_task(
        self,
        title: str,
        description: str = "",
        category: TaskCategory | str | None = None,
        priority: TaskPriority | str | None = None,
        due_date: datetime | None = None,
    ) -> Task:
        # Validate everything before touching state.
        task = Task(
            id=0,
            title=clean_title(title),
            description=clean_description(description),
            completed=False,
            created_at=self._now(),
            category=TaskCategory.parse(category),
            priority=TaskPriority.parse(priority),
            due_date=clean_due_date(due_date),
        )
        task.id = self._allocate_id()
        self._tasks.append(task)
        logger.info("Task added id=%s category=%s priority=%s", task.id, task.category, task.priority)
        self.save()
        return replace(task)

    def edit_task(self, task_id: int, updates: TaskUpdate | Mapping[str, Any]) -> Task:
        task = self._find(task_id)
        if not isinstance(updates, TaskUpdate):
            updates = TaskUpdate.from_mapping(updates)
        changed = updates.validated().apply_to(task)
        logger.info("Task edited id=%s fields=%s", task_id, ",".join(changed) or "-")
        self.save()
        return replace(task)

    def delete_task(self, task_id: int) -> None:
        task = self._find(task_id)
        self._tasks.remove(task)
        logger.info("Task deleted id=%s", task_id)
        self.save()

    def toggle_task_complete(self, task_id: int) -> Task:
        task = self._find(task_id)
        task.completed = not task.completed
        logger.info("Task toggled id=%s completed=%s", task_id, task.completed)
        self.save()
        return replace(task)

    # ---- public API: queries ----

    def count_tasks(self) -> int:
        return len(self._tasks)

    def get_task(self, task_id: int) -> Task:
        return replace(self._find(task_id))

    def list_tasks(self) -> list[Task]:
        return self._copies(self._tasks)

    def search_tasks(self, query: str) -> list[Task]:
        """
        Case-insensitive substring match on title or description.

        An empty query matches every task.
        """
        needle = query.casefold()
        return self._copies(
            [
                t
                for t in self._tasks
                if needle in t.title.casefold() or needle in t.description.casefold()
            ]
        )

    def filter_by_category(self, category: TaskCategory | str) -> list[Task]:
        return self._copies([t for t in self._tasks if t.category is not None and t.category == category])

    def filter_by_priority(self, priority: TaskPriority | str) -> list[Task]:
        return self._copies([t for t in self._tasks if t.priority is not None and t.priority == priority])

    def list_overdue_tasks(self, *, now: datetime | None = None) -> list[Task]:
        if now is None:
            now = self._now()
        else:
            now = _as_utc(now)
        return self._copies([t for t in self._tasks if t.is_overdue(now)])
