# src/taskdeck/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- Every value has a working default; nothing is required at import time.
- The task file path is plain configuration handed to TaskStore, never a global
  read by the store itself.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "TASKDECK"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str
    log_to_file: bool

    # ---- Local data paths ----
    data_dir: Path
    tasks_file_path: Path

    # ---- Shell ----
    date_format: str

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "taskdeck").strip() or "taskdeck"
        # Console level only; the log file always gets DEBUG.
        log_level = _env(_k("LOG_LEVEL"), "WARNING").strip().upper() or "WARNING"
        log_to_file = _env_bool(_k("LOG_TO_FILE"), True)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/taskdeck"))
        tasks_file_path = _env_path(_k("TASKS_FILE"), Path("tasks.json"))

        date_format = _env(_k("DATE_FORMAT"), "%Y-%m-%d").strip() or "%Y-%m-%d"

        return Settings(
            app_name=app_name,
            log_level=log_level,
            log_to_file=log_to_file,
            data_dir=data_dir,
            tasks_file_path=tasks_file_path,
            date_format=date_format,
        )


# Real environment wins over .env.
load_dotenv(override=False)

SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
