# src/taskdeck/connectors/console_connector.py

from __future__ import annotations

import logging

from ..cli.commands import Ask, registry as command_registry
from ..core.state import AppState

logger = logging.getLogger(__name__)

EXIT_WORDS = frozenset({"0", "exit", "quit", "/exit", "/quit"})


def run_console_loop(state: AppState, ask: Ask | None = None, out=print) -> None:
    """
    Menu loop: show menu, read a choice, run one command, print its reply.

    Command flows report store/input errors as replies themselves; anything
    else raised by a handler escapes this loop on purpose (main() turns it into
    a non-zero exit).
    """
    if ask is None:
        ask = input
    app_name = str(getattr(getattr(state, "settings", None), "app_name", "taskdeck"))
    logger.info("Console connector started (tasks=%s).", state.task_store.count_tasks())

    while True:
        out("\n" + command_registry.build_menu(title=f"{app_name} - Task Manager CLI") + "\n")
        try:
            choice = ask("Choose an option: ").strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            out("")
            break

        if not choice:
            continue

        if choice.lower() in EXIT_WORDS:
            logger.info("Console exit command received.")
            break

        try:
            reply = command_registry.handle(state, choice, ask=ask)
        except (EOFError, KeyboardInterrupt):
            # Input closed in the middle of a flow: nothing was changed, just stop.
            logger.info("Console input closed during command %r, exiting.", choice)
            out("")
            break

        if reply is not None:
            out("\n" + reply)

    out("\nGoodbye!")
    logger.info("Console connector finished.")
