# src/taskdeck/tasks/task_models.py

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields
from datetime import UTC, datetime
from enum import Enum, StrEnum
from typing import Any, Final

from .errors import InvalidTaskDataError


class TaskCategory(StrEnum):
    WORK = "work"
    PERSONAL = "personal"
    SHOPPING = "shopping"
    HEALTH = "health"
    OTHER = "other"

    @classmethod
    def parse(cls, raw: TaskCategory | str | None) -> TaskCategory | None:
        """None stays None; anything else must be an exact member value."""
        if raw is None:
            return None
        try:
            return cls(raw)
        except ValueError:
            raise InvalidTaskDataError(
                f"unknown category {raw!r} (expected one of: {', '.join(cls)})"
            ) from None


class TaskPriority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def parse(cls, raw: TaskPriority | str | None) -> TaskPriority | None:
        if raw is None:
            return None
        try:
            return cls(raw)
        except ValueError:
            raise InvalidTaskDataError(
                f"unknown priority {raw!r} (expected one of: {', '.join(cls)})"
            ) from None


class _Unset(Enum):
    UNSET = "UNSET"

    def __repr__(self) -> str:
        return "UNSET"


# Marks a TaskUpdate field that is not part of the update.
UNSET: Final = _Unset.UNSET


@dataclass(slots=True)
class Task:
    id: int
    title: str
    description: str
    completed: bool
    created_at: datetime

    category: TaskCategory | None = None
    priority: TaskPriority | None = None
    due_date: datetime | None = None

    def is_overdue(self, now: datetime) -> bool:
        return self.due_date is not None and self.due_date < now and not self.completed


# ---- field validation (shared by add_task and TaskUpdate) ----


def clean_title(raw: Any) -> str:
    if not isinstance(raw, str):
        raise InvalidTaskDataError("title must be text")
    title = raw.strip()
    if not title:
        raise InvalidTaskDataError("Title cannot be empty")
    return title


def clean_description(raw: Any) -> str:
    if raw is None:
        return ""
    if not isinstance(raw, str):
        raise InvalidTaskDataError("description must be text")
    return raw.strip()


def clean_due_date(raw: Any) -> datetime | None:
    """Due dates are stored timezone-aware; naive values are taken as UTC."""
    if raw is None:
        return None
    if not isinstance(raw, datetime):
        raise InvalidTaskDataError("due date must be a datetime")
    if raw.tzinfo is None:
        return raw.replace(tzinfo=UTC)
    return raw


_FIELD_ALIASES: Final[dict[str, str]] = {"dueDate": "due_date"}
_IMMUTABLE_FIELDS: Final[frozenset[str]] = frozenset({"id", "created_at", "createdAt"})


@dataclass(frozen=True, slots=True)
class TaskUpdate:
    """
    Partial update for edit_task.

    Every field defaults to UNSET ("keep the current value"). For the optional
    attributes (category, priority, due_date) an explicit None clears them.
    There is deliberately no id / created_at field.
    """

    title: str | _Unset = UNSET
    description: str | _Unset = UNSET
    category: TaskCategory | str | None | _Unset = UNSET
    priority: TaskPriority | str | None | _Unset = UNSET
    due_date: datetime | None | _Unset = UNSET
    completed: bool | _Unset = UNSET

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> TaskUpdate:
        """
        Build an update from a loose field bag (e.g. parsed user input).

        Accepts the file's camelCase spelling for dueDate. Immutable and
        unknown keys are rejected rather than dropped.
        """
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            if key in _IMMUTABLE_FIELDS:
                raise InvalidTaskDataError(f"field {key!r} cannot be changed")
            name = _FIELD_ALIASES.get(key, key)
            if name not in known:
                raise InvalidTaskDataError(f"unknown field {key!r}")
            kwargs[name] = value
        return cls(**kwargs)

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is UNSET for f in fields(self))

    def validated(self) -> TaskUpdate:
        """Return a copy with every present field checked and normalized."""
        title = self.title if self.title is UNSET else clean_title(self.title)

        description = self.description
        if description is not UNSET:
            if description is None:
                raise InvalidTaskDataError("description must be text")
            description = clean_description(description)

        category = self.category if self.category is UNSET else TaskCategory.parse(self.category)
        priority = self.priority if self.priority is UNSET else TaskPriority.parse(self.priority)
        due_date = self.due_date if self.due_date is UNSET else clean_due_date(self.due_date)

        completed = self.completed
        if completed is not UNSET and not isinstance(completed, bool):
            raise InvalidTaskDataError("completed must be true or false")

        return TaskUpdate(
            title=title,
            description=description,
            category=category,
            priority=priority,
            due_date=due_date,
            completed=completed,
        )

    def apply_to(self, task: Task) -> list[str]:
        """Write present fields onto task; returns the names that were set."""
        changed: list[str] = []
        for f in fields(self):
            value = getattr(self, f.name)
            if value is UNSET:
                continue
            setattr(task, f.name, value)
            changed.append(f.name)
        return changed
