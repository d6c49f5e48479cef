# src/taskdeck/tasks/errors.py

from __future__ import annotations


class TaskStoreError(Exception):
    """Base class for every error the task store raises on purpose."""


class TaskNotFoundError(TaskStoreError):
    def __init__(self, task_id: int) -> None:
        super().__init__(f"Task with ID {task_id} is not found")
        self.task_id = task_id


class InvalidTaskDataError(TaskStoreError):
    def __init__(self, message: str) -> None:
        super().__init__(f"Invalid task data: {message}")


class TaskPersistenceError(TaskStoreError):
    """
    The backing file could not be read or written.

    A missing file on load is not an error (empty store); everything else is
    wrapped here. The original exception is kept as __cause__.
    """

    def __init__(self, operation: str, cause: BaseException) -> None:
        super().__init__(f"Failed to {operation}: {cause}")
        self.operation = operation
