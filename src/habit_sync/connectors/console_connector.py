# src/habit_sync/connectors/console_connector.py

from __future__ import annotations

import asyncio
import inspect
import logging
from datetime import datetime

from ..cli.bootstrap import HabitApp
from ..cli.commands import registry as command_registry

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


async def run_console_loop(app: HabitApp) -> None:
    """
    Interactive loop. input() runs in a worker thread so debounced pushes
    and sign-in reconciles keep running on the event loop between prompts.
    """
    logger.info("Console connector started.")
    _print_ts("[CONSOLE] Use /help for commands, /week for the grid, /exit to quit.\n")

    while True:
        try:
            user_input = (await asyncio.to_thread(input, ">>> ")).strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        try:
            reply = command_registry.handle(app, user_input, emit=_print_ts)
            if inspect.isawaitable(reply):
                reply = await reply
        except Exception:
            logger.exception("Command handler crashed.")
            reply = "Internal error while handling a command."

        if reply is None:
            _print_ts("Commands start with '/'. Use /help to list them.")
            continue

        _print_ts(str(reply))

    logger.info("Console connector finished.")
