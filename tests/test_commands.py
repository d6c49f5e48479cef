# tests/test_commands.py

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from taskdeck.cli.commands import (
    CommandRegistry,
    InvalidInputError,
    format_task,
    parse_due_date,
    parse_task_id,
    registry,
)
from taskdeck.tasks.errors import TaskPersistenceError
from taskdeck.tasks.task_models import TaskCategory, TaskPriority

from .conftest import NOW
from .fakes import ScriptedAsk


def test_command_registry_routes_names_aliases_and_menu_keys(state) -> None:
    reg = CommandRegistry()
    calls: list[list[str]] = []

    def handler(state, args, ask):
        calls.append(args)
        return "ok"

    reg.register("thing", handler, "do a thing", aliases=["t"], menu=("7", "Thing"))

    assert reg.handle(state, "thing a b") == "ok"
    assert reg.handle(state, "T") == "ok"
    assert reg.handle(state, "7 x") == "ok"
    assert calls == [["a", "b"], [], ["x"]]
    assert "7. Thing" in reg.build_menu()


def test_command_registry_unknown_and_empty(state) -> None:
    reg = CommandRegistry()
    assert reg.handle(state, "   ") is None
    assert "Invalid option" in (reg.handle(state, "nope") or "")


def test_menu_lists_every_flow() -> None:
    menu = registry.build_menu()
    for line in (
        "1. Add Task",
        "2. List All Tasks",
        "3. Toggle Task Complete",
        "4. Edit Task",
        "5. Delete Task",
        "6. Search Tasks",
        "7. Filter By Category",
        "8. Filter By Priority",
        "9. Show Overdue Tasks",
        "0. Exit",
    ):
        assert line in menu


def test_parse_helpers() -> None:
    assert parse_task_id(" 12 ") == 12
    assert parse_task_id("3.") == 3
    assert parse_due_date("2024-02-29") == datetime(2024, 2, 29, tzinfo=UTC)
    for bad in ("", "abc", "-1", "0", "²", "¹2"):
        with pytest.raises(InvalidInputError):
            parse_task_id(bad)
    with pytest.raises(InvalidInputError):
        parse_due_date("29/02/2024")


def test_add_flow_prompts_for_every_field(state) -> None:
    ask = ScriptedAsk(["Buy milk", "2% milk", "shopping", "low", "2024-03-20"])

    reply = registry.handle(state, "1", ask=ask)

    assert reply is not None and reply.startswith("✓ Task added successfully!")
    [task] = state.task_store.list_tasks()
    assert task.title == "Buy milk"
    assert task.category is TaskCategory.SHOPPING
    assert task.priority is TaskPriority.LOW
    assert task.due_date == datetime(2024, 3, 20, tzinfo=UTC)
    assert len(ask.prompts) == 5


def test_add_flow_with_inline_title_and_blank_optionals(state) -> None:
    ask = ScriptedAsk(["", "", "", ""])

    registry.handle(state, "add Write the report", ask=ask)

    [task] = state.task_store.list_tasks()
    assert task.title == "Write the report"
    assert task.description == ""
    assert task.category is None and task.priority is None and task.due_date is None


def test_add_flow_reports_store_and_input_errors(state) -> None:
    reply = registry.handle(state, "add", ask=ScriptedAsk(["   ", "", "", "", ""]))
    assert reply == "Error: Invalid task data: Title cannot be empty"

    reply = registry.handle(state, "add", ask=ScriptedAsk(["x", "", "Work", "", ""]))
    assert reply is not None and reply.startswith("Invalid input: category must be one of")

    reply = registry.handle(state, "add", ask=ScriptedAsk(["x", "", "", "", "tomorrow"]))
    assert reply is not None and reply.startswith("Invalid input: date")

    assert state.task_store.count_tasks() == 0


def test_list_flow(state) -> None:
    assert registry.handle(state, "list", ask=ScriptedAsk([])) == "No tasks found."

    state.task_store.add_task("a")
    state.task_store.add_task("b")
    reply = registry.handle(state, "2", ask=ScriptedAsk([]))

    assert reply is not None
    assert reply.startswith("=== All Tasks ===")
    assert reply.index("title: a") < reply.index("title: b")


def test_toggle_flow(state) -> None:
    task = state.task_store.add_task("x")

    reply = registry.handle(state, "3", ask=ScriptedAsk([str(task.id)]))
    assert reply is not None and "status: ✓ done" in reply

    reply = registry.handle(state, f"toggle {task.id}", ask=ScriptedAsk([]))
    assert reply is not None and "status: open" in reply

    assert registry.handle(state, "toggle 99", ask=ScriptedAsk([])) == "Error: Task with ID 99 is not found"
    reply = registry.handle(state, "toggle abc", ask=ScriptedAsk([]))
    assert reply is not None and reply.startswith("Invalid input: task id")


def test_edit_flow_keeps_blank_fields_and_clears_dash(state) -> None:
    task = state.task_store.add_task("Old", "desc", "work", "high", NOW + timedelta(days=2))

    ask = ScriptedAsk([str(task.id), "New title", "", "-", "", "2024-04-01"])
    reply = registry.handle(state, "edit", ask=ask)

    assert reply is not None and reply.startswith("✓ Task edited successfully!")
    edited = state.task_store.get_task(task.id)
    assert edited.title == "New title"
    assert edited.description == "desc"
    assert edited.category is None
    assert edited.priority is TaskPriority.HIGH
    assert edited.due_date == datetime(2024, 4, 1, tzinfo=UTC)
    assert edited.created_at == task.created_at


def test_edit_flow_missing_task_fails_before_prompting_fields(state) -> None:
    ask = ScriptedAsk(["5"])
    assert registry.handle(state, "4", ask=ask) == "Error: Task with ID 5 is not found"
    assert len(ask.prompts) == 1


def test_edit_flow_all_blank_changes_nothing(state) -> None:
    task = state.task_store.add_task("x")
    reply = registry.handle(state, f"edit {task.id}", ask=ScriptedAsk(["", "", "", "", ""]))
    assert reply == "Nothing to change."


def test_delete_flow(state) -> None:
    first = state.task_store.add_task("first")
    state.task_store.add_task("second")

    assert registry.handle(state, "5", ask=ScriptedAsk([str(first.id)])) == "✓ Task deleted successfully!"
    assert [t.title for t in state.task_store.list_tasks()] == ["second"]
    assert registry.handle(state, "rm 1", ask=ScriptedAsk([])) == "Error: Task with ID 1 is not found"


def test_search_flow(state) -> None:
    state.task_store.add_task("Buy milk")
    state.task_store.add_task("Gym")

    assert registry.handle(state, "6", ask=ScriptedAsk(["   "])) == "Invalid input: search query is required."
    reply = registry.handle(state, "search MILK", ask=ScriptedAsk([]))
    assert reply is not None and reply.startswith("=== Search Results (1) ===")
    assert registry.handle(state, "search xyz", ask=ScriptedAsk([])) == "No tasks found matching your query."


def test_category_and_priority_flows(state) -> None:
    state.task_store.add_task("Report", category="work", priority="high")
    state.task_store.add_task("Birthday", category="personal")

    reply = registry.handle(state, "7", ask=ScriptedAsk(["work"]))
    assert reply is not None and "title: Report" in reply and "Birthday" not in reply

    assert registry.handle(state, "category shopping", ask=ScriptedAsk([])) == "No tasks found in this category."
    reply = registry.handle(state, "category", ask=ScriptedAsk([""]))
    assert reply is not None and reply.startswith("Invalid input: category")

    reply = registry.handle(state, "priority high", ask=ScriptedAsk([]))
    assert reply is not None and reply.startswith("=== high Priority Tasks ===")
    assert registry.handle(state, "8", ask=ScriptedAsk(["low"])) == "No tasks found with this priority."


def test_overdue_flow(state) -> None:
    assert registry.handle(state, "9", ask=ScriptedAsk([])) == "No overdue tasks!"

    task = state.task_store.add_task("late", due_date=NOW - timedelta(days=1))
    reply = registry.handle(state, "overdue", ask=ScriptedAsk([]))
    assert reply is not None and "title: late" in reply

    state.task_store.toggle_task_complete(task.id)
    assert registry.handle(state, "overdue", ask=ScriptedAsk([])) == "No overdue tasks!"


def test_persistence_error_is_reported_not_raised(state, monkeypatch) -> None:
    def broken_save() -> None:
        raise TaskPersistenceError("save tasks", OSError("disk full"))

    monkeypatch.setattr(state.task_store, "save", broken_save)

    reply = registry.handle(state, "add", ask=ScriptedAsk(["x", "", "", "", ""]))
    assert reply == "Error: Failed to save tasks: disk full"


def test_format_task_includes_optional_fields_only_when_set(state) -> None:
    plain = state.task_store.add_task("plain")
    rich = state.task_store.add_task("rich", "d", "health", "medium", datetime(2024, 1, 2, tzinfo=UTC))

    assert format_task(plain).splitlines() == [
        "id: 1",
        "title: plain",
        "description: ",
        "status: open",
    ]
    assert format_task(rich).splitlines()[-3:] == [
        "category: (health)",
        "priority: [MEDIUM]",
        "due: 2024-01-02",
    ]
