# src/habit_sync/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- No secrets required at import time.
- Remote sync is off unless a backend is configured.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "HABIT"

REMOTE_BACKENDS = ("none", "sqlite", "rest")


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


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

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    state_path: Path

    # ---- Remote store ----
    remote_backend: str
    remote_db_path: Path
    remote_url: str
    remote_api_key: str
    remote_table: str
    remote_timeout_seconds: float

    # ---- Account (auto sign-in) ----
    account_id: str
    account_email: str

    # ---- Sync tuning ----
    push_debounce_seconds: float

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "habit-sync").strip() or "habit-sync"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/habit"))
        state_path = _env_path(_k("STATE_PATH"), data_dir / "habit_state.json")

        remote_backend = _env(_k("REMOTE_BACKEND"), "none").strip().lower()
        if remote_backend not in REMOTE_BACKENDS:
            remote_backend = "none"

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            state_path=state_path,
            remote_backend=remote_backend,
            remote_db_path=_env_path(_k("REMOTE_DB_PATH"), data_dir / "remote.sqlite3"),
            remote_url=_env(_k("REMOTE_URL")).strip(),
            remote_api_key=_env(_k("REMOTE_API_KEY")).strip(),
            remote_table=_env(_k("REMOTE_TABLE"), "habit_data").strip() or "habit_data",
            # Keep a floor so a typo can't turn every call into an instant timeout.
            remote_timeout_seconds=max(0.5, _env_float(_k("REMOTE_TIMEOUT_SECONDS"), 10.0)),
            account_id=_env(_k("ACCOUNT_ID")).strip(),
            account_email=_env(_k("ACCOUNT_EMAIL")).strip(),
            push_debounce_seconds=max(0.0, _env_float(_k("PUSH_DEBOUNCE_SECONDS"), 1.0)),
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
