# src/taskdeck/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, loads the task file, then runs the
console menu in the main thread.
"""

from __future__ import annotations

import logging
import sys

from ..cli.bootstrap import create_initial_state, load_tasks
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..logging_setup import setup_logging
from ..tasks.errors import TaskPersistenceError

logger = logging.getLogger(__name__)


def main() -> int:
    settings = get_settings()

    # choose console log level from settings.log_level
    level_name = str(getattr(settings, "log_level", "WARNING")).upper()
    console_level = getattr(logging, level_name, logging.WARNING)

    setup_logging(
        log_dir=settings.data_dir,
        console_level=console_level,
        log_to_file=settings.log_to_file,
    )

    logger.info("Starting %s...", settings.app_name)

    try:
        state = create_initial_state(settings=settings)
        print("Loading tasks...")
        load_tasks(state)
        print("Tasks loaded successfully!")
    except (TaskPersistenceError, OSError) as e:
        logger.error("Cannot start: %s", e)
        print(f"Fatal error: {e}", file=sys.stderr)
        return 1

    try:
        run_console_loop(state)
    except Exception as e:
        logger.exception("Unhandled error in console loop.")
        print(f"Fatal error: {e}", file=sys.stderr)
        return 1

    logger.info("Bye.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
