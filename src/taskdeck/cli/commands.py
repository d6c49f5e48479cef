# src/taskdeck/cli/commands.py

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from typing import Any

from ..core.state import AppState
from ..tasks.errors import TaskStoreError
from ..tasks.task_models import Task, TaskCategory, TaskPriority, TaskUpdate

Ask = Callable[[str], str]
CommandHandler = Callable[[AppState, list[str], Ask], str]

DEFAULT_DATE_FORMAT = "%Y-%m-%d"
CLEAR_TOKEN = "-"

logger = logging.getLogger(__name__)


class InvalidInputError(ValueError):
    """User input rejected by the shell before any store call."""


class CommandRegistry:
    """Menu/command registry used by the console connector (1..9, add, list, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}
        self._menu: list[tuple[str, str]] = []

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
        menu: tuple[str, str] | None = None,
    ) -> None:
        """
        menu=(key, label) also lists the command in the numbered menu and
        makes key an alias.
        """
        aliases = list(aliases or [])
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        if menu is not None:
            self._menu.append(menu)
            aliases.append(menu[0])
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(self, state: AppState, line: str, ask: Ask | None = None) -> str | None:
        """
        Handle a line like "toggle 3" or "3".
        Returns a reply string or None for an empty line.
        """
        parts = line.split()
        if not parts:
            return None

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return "Invalid option. Please try again (type 'help' to list commands)."

        return handler(state, args, ask if ask is not None else input)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  {name} - {help_text}")
        lines.append("  exit - Quit (also: quit, 0).")
        return "\n".join(lines)

    def build_menu(self, title: str = "Task Manager CLI") -> str:
        lines = [f"=== {title} ==="]
        for key, label in self._menu:
            lines.append(f"{key}. {label}")
        lines.append("0. Exit")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- input parsing ----


def _arg_or_ask(args: list[str], ask: Ask, prompt: str) -> str:
    if args:
        return " ".join(args)
    return ask(prompt)


def parse_task_id(raw: str) -> int:
    raw = raw.strip().rstrip(".")
    if not (raw.isascii() and raw.isdigit()) or int(raw) < 1:
        raise InvalidInputError(f"task id must be a positive number, got {raw!r}")
    return int(raw)


def parse_due_date(raw: str, date_format: str = DEFAULT_DATE_FORMAT) -> datetime:
    """Dates are taken as midnight UTC of the given day."""
    try:
        return datetime.strptime(raw.strip(), date_format).replace(tzinfo=UTC)
    except ValueError:
        raise InvalidInputError(f"date {raw.strip()!r} does not match {date_format}") from None


def parse_category(raw: str) -> TaskCategory:
    value = raw.strip()
    if value not in set(TaskCategory):
        raise InvalidInputError(f"category must be one of: {_choices(TaskCategory)}")
    return TaskCategory(value)


def parse_priority(raw: str) -> TaskPriority:
    value = raw.strip()
    if value not in set(TaskPriority):
        raise InvalidInputError(f"priority must be one of: {_choices(TaskPriority)}")
    return TaskPriority(value)


def _choices(members: Iterable[Any]) -> str:
    return "/".join(str(m) for m in members)


def _date_format(state: AppState) -> str:
    return str(getattr(state.settings, "date_format", DEFAULT_DATE_FORMAT) or DEFAULT_DATE_FORMAT)


# ---- rendering ----


def format_task(task: Task, date_format: str = DEFAULT_DATE_FORMAT) -> str:
    lines = [
        f"id: {task.id}",
        f"title: {task.title}",
        f"description: {task.description}",
        f"status: {'✓ done' if task.completed else 'open'}",
    ]
    if task.category is not None:
        lines.append(f"category: ({task.category})")
    if task.priority is not None:
        lines.append(f"priority: [{task.priority.upper()}]")
    if task.due_date is not None:
        lines.append(f"due: {task.due_date.astimezone(UTC).strftime(date_format)}")
    return "\n".join(lines)


def format_tasks(tasks: list[Task], date_format: str = DEFAULT_DATE_FORMAT) -> str:
    return "\n\n".join(format_task(t, date_format) for t in tasks)


def _failed(action: str, err: Exception) -> str:
    if isinstance(err, InvalidInputError):
        logger.debug("%s rejected: %s", action, err)
        return f"Invalid input: {err}"
    logger.info("%s failed: %s", action, err)
    return f"Error: {err}"


# ---- commands ----


def cmd_help(state: AppState, args: list[str], ask: Ask) -> str:
    return registry.build_help()


def cmd_add(state: AppState, args: list[str], ask: Ask) -> str:
    """
    add            -> prompt for every field
    add <title...> -> inline title, prompt for the rest
    """
    fmt = _date_format(state)
    try:
        title = _arg_or_ask(args, ask, "Task Title: ")
        description = ask("Task Description: ")
        category_raw = ask(f"Category ({_choices(TaskCategory)}) [optional]: ").strip()
        priority_raw = ask(f"Priority ({_choices(TaskPriority)}) [optional]: ").strip()
        due_raw = ask(f"Due Date [{fmt}] [optional]: ").strip()

        task = state.task_store.add_task(
            title,
            description,
            category=parse_category(category_raw) if category_raw else None,
            priority=parse_priority(priority_raw) if priority_raw else None,
            due_date=parse_due_date(due_raw, fmt) if due_raw else None,
        )
    except (InvalidInputError, TaskStoreError) as e:
        return _failed("add", e)

    return "✓ Task added successfully!\n" + format_task(task, fmt)


def cmd_list(state: AppState, args: list[str], ask: Ask) -> str:
    tasks = state.task_store.list_tasks()
    if not tasks:
        return "No tasks found."
    return "=== All Tasks ===\n\n" + format_tasks(tasks, _date_format(state))


def cmd_toggle(state: AppState, args: list[str], ask: Ask) -> str:
    try:
        task_id = parse_task_id(_arg_or_ask(args, ask, "Enter Task ID: "))
        task = state.task_store.toggle_task_complete(task_id)
    except (InvalidInputError, TaskStoreError) as e:
        return _failed("toggle", e)
    return "✓ Task updated!\n" + format_task(task, _date_format(state))


def _optional_edit(raw: str, parse: Callable[[str], Any]) -> Any:
    """Blank keeps the current value (None here), '-' clears it."""
    raw = raw.strip()
    if not raw:
        return None
    if raw == CLEAR_TOKEN:
        return CLEAR_TOKEN
    return parse(raw)


def cmd_edit(state: AppState, args: list[str], ask: Ask) -> str:
    """
    Prompt for each field; blank answers keep the current value and '-' clears
    category/priority/due date.
    """
    fmt = _date_format(state)
    try:
        task_id = parse_task_id(_arg_or_ask(args, ask, "Enter Task ID: "))
        # Unknown id: fail before prompting for fields.
        state.task_store.get_task(task_id)

        title = ask("New title (leave empty to keep current): ").strip()
        description = ask("New description (leave empty to keep current): ").strip()
        category = _optional_edit(
            ask(f"New category ({_choices(TaskCategory)}, '-' to clear) [optional]: "),
            parse_category,
        )
        priority = _optional_edit(
            ask(f"New priority ({_choices(TaskPriority)}, '-' to clear) [optional]: "),
            parse_priority,
        )
        due_date = _optional_edit(
            ask(f"New due date ({fmt}, '-' to clear) [optional]: "),
            lambda raw: parse_due_date(raw, fmt),
        )

        changes: dict[str, Any] = {}
        if title:
            changes["title"] = title
        if description:
            changes["description"] = description
        for name, value in (("category", category), ("priority", priority), ("due_date", due_date)):
            if value is not None:
                changes[name] = None if value == CLEAR_TOKEN else value

        if not changes:
            return "Nothing to change."

        task = state.task_store.edit_task(task_id, TaskUpdate(**changes))
    except (InvalidInputError, TaskStoreError) as e:
        return _failed("edit", e)

    return "✓ Task edited successfully!\n" + format_task(task, fmt)


def cmd_delete(state: AppState, args: list[str], ask: Ask) -> str:
    try:
        task_id = parse_task_id(_arg_or_ask(args, ask, "Enter Task ID: "))
        state.task_store.delete_task(task_id)
    except (InvalidInputError, TaskStoreError) as e:
        return _failed("delete", e)
    return "✓ Task deleted successfully!"


def cmd_search(state: AppState, args: list[str], ask: Ask) -> str:
    query = _arg_or_ask(args, ask, "Search query: ").strip()
    if not query:
        return "Invalid input: search query is required."

    tasks = state.task_store.search_tasks(query)
    if not tasks:
        return "No tasks found matching your query."
    return f"=== Search Results ({len(tasks)}) ===\n\n" + format_tasks(tasks, _date_format(state))


def cmd_category(state: AppState, args: list[str], ask: Ask) -> str:
    try:
        category = parse_category(_arg_or_ask(args, ask, f"Category ({_choices(TaskCategory)}): "))
    except InvalidInputError as e:
        return _failed("filter by category", e)

    tasks = state.task_store.filter_by_category(category)
    if not tasks:
        return "No tasks found in this category."
    return f"=== {category} Tasks ===\n\n" + format_tasks(tasks, _date_format(state))


def cmd_priority(state: AppState, args: list[str], ask: Ask) -> str:
    try:
        priority = parse_priority(_arg_or_ask(args, ask, f"Priority ({_choices(TaskPriority)}): "))
    except InvalidInputError as e:
        return _failed("filter by priority", e)

    tasks = state.task_store.filter_by_priority(priority)
    if not tasks:
        return "No tasks found with this priority."
    return f"=== {priority} Priority Tasks ===\n\n" + format_tasks(tasks, _date_format(state))


def cmd_overdue(state: AppState, args: list[str], ask: Ask) -> str:
    tasks = state.task_store.list_overdue_tasks()
    if not tasks:
        return "No overdue tasks!"
    return "=== Overdue Tasks ===\n\n" + format_tasks(tasks, _date_format(state))


registry.register("add", cmd_add, help_text="Add a task: add [title].", menu=("1", "Add Task"))
registry.register("list", cmd_list, help_text="List all tasks.", aliases=["ls"], menu=("2", "List All Tasks"))
registry.register(
    "toggle",
    cmd_toggle,
    help_text="Toggle a task's completed flag: toggle [id].",
    aliases=["done"],
    menu=("3", "Toggle Task Complete"),
)
registry.register("edit", cmd_edit, help_text="Edit a task: edit [id].", menu=("4", "Edit Task"))
registry.register(
    "delete", cmd_delete, help_text="Delete a task: delete [id].", aliases=["rm"], menu=("5", "Delete Task")
)
registry.register("search", cmd_search, help_text="Search title/description: search [text].", menu=("6", "Search Tasks"))
registry.register(
    "category", cmd_category, help_text="Filter by category: category [name].", menu=("7", "Filter By Category")
)
registry.register(
    "priority", cmd_priority, help_text="Filter by priority: priority [level].", menu=("8", "Filter By Priority")
)
registry.register("overdue", cmd_overdue, help_text="Show overdue open tasks.", menu=("9", "Show Overdue Tasks"))
registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
