# src/habit_sync/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds the HabitApp, runs the start-of-session sync,
then the console loop. On exit, pending debounced pushes are flushed.
"""

from __future__ import annotations

import asyncio
import logging

from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..logging_setup import setup_logging
from .bootstrap import HabitApp, create_app, start_app

logger = logging.getLogger(__name__)


def _warn_user(text: str) -> None:
    print(f"[WARN] {text}", flush=True)


async def _shutdown(app: HabitApp) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    try:
        await app.sync.close()
    except Exception:
        logger.exception("Failed to flush pending sync on shutdown.")


async def run(app: HabitApp) -> None:
    try:
        await start_app(app)
        await run_console_loop(app)
    finally:
        await _shutdown(app)


def main() -> None:
    settings = get_settings()

    setup_logging(data_dir=settings.data_dir, console_level=settings.log_level)

    logger.info("Starting %s...", settings.app_name)

    app = create_app(settings=settings, notify=_warn_user)

    try:
        asyncio.run(run(app))
    except KeyboardInterrupt:
        logger.info("Interrupted.")
    logger.info("Bye.")


if __name__ == "__main__":
    main()
