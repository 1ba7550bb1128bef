# tests/test_logging_setup.py

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

import pytest

from habit_sync.logging_setup import SyncConsoleFilter, resolve_level, setup_logging


def _record(name: str, level: int) -> logging.LogRecord:
    return logging.LogRecord(name, level, __file__, 1, "msg", None, None)


@pytest.mark.parametrize(
    ("name", "level", "shown"),
    [
        ("habit_sync.core.store", logging.DEBUG, True),
        ("habit_sync.sync.orchestrator", logging.INFO, True),
        ("habit_sync.sync.remote", logging.INFO, False),
        ("habit_sync.sync.remote", logging.WARNING, True),
        ("habit_sync.storage.remote_sqlite", logging.INFO, False),
        ("habit_sync.storage.local_store", logging.INFO, True),
        ("httpx", logging.WARNING, False),
        ("httpx", logging.ERROR, True),
        ("py.warnings", logging.WARNING, False),
    ],
)
def test_console_filter(name: str, level: int, shown: bool) -> None:
    assert SyncConsoleFilter().filter(_record(name, level)) is shown


def test_resolve_level() -> None:
    assert resolve_level("debug") == logging.DEBUG
    assert resolve_level(" WARNING ") == logging.WARNING
    assert resolve_level(logging.ERROR) == logging.ERROR
    assert resolve_level("loud") == logging.INFO
    assert resolve_level(None, default=logging.WARNING) == logging.WARNING


@pytest.fixture()
def restore_root_logging():
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    yield
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()
    for h in saved_handlers:
        root.addHandler(h)
    root.setLevel(saved_level)
    logging.captureWarnings(False)


def test_setup_logging_writes_rotating_file(tmp_path: Path, restore_root_logging) -> None:
    log_file = setup_logging(data_dir=tmp_path / "logs", console_level="warning")

    root = logging.getLogger()
    assert log_file == tmp_path / "logs" / "habit.log"
    assert sum(isinstance(h, RotatingFileHandler) for h in root.handlers) == 1
    console = [h for h in root.handlers if not isinstance(h, RotatingFileHandler)]
    assert console[0].level == logging.WARNING

    logging.getLogger("habit_sync.test").debug("hello file")
    for h in root.handlers:
        h.flush()
    assert "hello file" in log_file.read_text("utf-8")
