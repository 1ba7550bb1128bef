# src/habit_sync/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import cast

from ..core import dates
from ..core.models import ICON_OPTIONS, DayStatus
from ..core.stats import task_stats
from ..core.store import HabitStore
from ..core.transfer import dump_export, export_filename
from ..errors import NotFoundError, RemoteUnavailableError, ValidationError
from .bootstrap import HabitApp

CommandEmitter = Callable[[str], None]
CommandReply = str | Awaitable[str]
CommandHandler2 = Callable[[HabitApp, list[str]], CommandReply]
CommandHandler3 = Callable[[HabitApp, list[str], CommandEmitter | None], CommandReply]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)

_USER_ERRORS = (ValidationError, NotFoundError, RemoteUnavailableError)

_GLYPHS = {
    DayStatus.EMPTY: "·",
    DayStatus.IN_PROGRESS: "◐",
    DayStatus.COMPLETED: "✓",
}


async def _friendly(aw: Awaitable[str]) -> str:
    try:
        return await aw
    except _USER_ERRORS as e:
        return str(e)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        app: HabitApp,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> CommandReply | None:
        """
        Handle a string like "/command args".
        Returns a reply (string, or awaitable string for async handlers) or None if not a command.
        User-facing errors (validation, unknown task, remote down) become the reply text.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        try:
            if nparams >= 3:
                result = cast(CommandHandler3, handler)(app, args, emit)
            else:
                result = cast(CommandHandler2, handler)(app, args)
        except _USER_ERRORS as e:
            return str(e)

        if inspect.isawaitable(result):
            return _friendly(result)
        return result

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def resolve_task_id(store: HabitStore, token: str) -> str:
    """Exact id, or a unique id prefix."""
    ids = store.state.task_ids()
    if token in ids:
        return token
    matches = [i for i in ids if i.startswith(token)]
    if len(matches) == 1:
        return matches[0]
    if not matches:
        raise NotFoundError(token)
    raise ValidationError(f"Ambiguous task id prefix: {token}")


def _short(task_id: str) -> str:
    return task_id[:8]


def cmd_help(app: HabitApp, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(app: HabitApp, args: list[str]) -> str:
    account = app.auth.get_current_account()
    state = app.store.state
    if account is None:
        who = "signed out"
    elif account.email:
        who = f"{account.id} <{account.email}>"
    else:
        who = account.id
    return (
        "Status:\n"
        f"  Account: {who}\n"
        f"  Remote: {getattr(app.settings, 'remote_backend', 'none')}"
        f" ({'configured' if app.remote.configured else 'local-only'})\n"
        f"  Sync phase: {app.sync.phase.value}, push: {app.remote.phase.value}"
        f"{', scheduled' if app.sync.push_scheduled else ''}\n"
        f"  Tasks: {len(state.tasks)}\n"
        f"  Local file: {app.local.path}"
    )


def cmd_list(app: HabitApp, args: list[str]) -> str:
    tasks = app.store.state.tasks
    if not tasks:
        return "No tasks yet. Create one with /add <icon> <name>."
    lines = ["Tasks:"]
    for i, t in enumerate(tasks, start=1):
        lines.append(f"{i}. [{_short(t.id)}] ({t.icon}) {t.name}")
    return "\n".join(lines)


def cmd_week(app: HabitApp, args: list[str]) -> str:
    """
    /week      -> current week grid
    /week -1   -> previous week
    """
    try:
        offset = int(args[0]) if args else 0
    except ValueError:
        return "Usage: /week [offset], e.g. /week -1"

    today = app.today()
    days = dates.week_dates(today, offset)
    header = f"Week of {days[0]:%a %d %b} to {days[-1]:%a %d %b}"
    tasks = app.store.state.tasks
    if not tasks:
        return f"{header}\nNo tasks yet."

    width = max(len(t.name) for t in tasks)
    lines = [header, " " * (width + 2) + " ".join(f"{d:%a}"[:2] for d in days)]
    for t in tasks:
        cells = [
            " " if dates.is_future_date(d, today) else _GLYPHS[app.store.get_day_status(t.id, d)]
            for d in days
        ]
        lines.append(f"{t.name.ljust(width)}  " + " ".join(c.ljust(2) for c in cells))
    return "\n".join(lines)


def cmd_icons(app: HabitApp, args: list[str]) -> str:
    return "Icons: " + ", ".join(ICON_OPTIONS)


def cmd_add(app: HabitApp, args: list[str]) -> str:
    if len(args) < 2:
        return "Usage: /add <icon> <name...>"
    task = app.store.create_task(" ".join(args[1:]), args[0])
    return f"Task created: [{_short(task.id)}] ({task.icon}) {task.name}"


def cmd_edit(app: HabitApp, args: list[str]) -> str:
    if len(args) < 3:
        return "Usage: /edit <id> <icon> <name...>"
    task_id = resolve_task_id(app.store, args[0])
    app.store.update_task(task_id, " ".join(args[2:]), args[1])
    return "Task updated."


def cmd_rm(app: HabitApp, args: list[str]) -> str:
    """
    /rm <id>      -> ask for confirmation
    /rm <id> yes  -> delete task and its whole history
    """
    if not args:
        return "Usage: /rm <id> [yes]"
    task_id = resolve_task_id(app.store, args[0])
    task = app.store.get_task(task_id)
    if len(args) < 2 or args[1].lower() not in ("yes", "y"):
        return f'Delete task "{task.name}" and its history? Type /rm {_short(task_id)} yes to confirm.'
    app.store.delete_task(task_id)
    return f'Task "{task.name}" deleted.'


def cmd_move(app: HabitApp, args: list[str]) -> str:
    if len(args) != 2:
        return "Usage: /move <id> <target_id>"
    task_id = resolve_task_id(app.store, args[0])
    target_id = resolve_task_id(app.store, args[1])
    app.store.reorder_task(task_id, target_id)
    return cmd_list(app, [])


def cmd_mark(app: HabitApp, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /mark <id>          -> cycle today's status
    /mark <id> <date>   -> cycle the status of a past date (YYYY-MM-DD)
    """
    if not args:
        return "Usage: /mark <id> [YYYY-MM-DD]"
    task_id = resolve_task_id(app.store, args[0])
    today = app.today()
    day = dates.parse_date_key(args[1]) if len(args) > 1 else today
    if dates.is_future_date(day, today):
        return "Future dates cannot be marked."

    new_status = app.store.cycle_day_status(task_id, day)
    if new_status is DayStatus.COMPLETED and emit is not None:
        emit("Well done!")
    return f"{app.store.get_task(task_id).name} @ {dates.format_date(day)}: {new_status.value}"


def cmd_set(app: HabitApp, args: list[str]) -> str:
    if len(args) != 3:
        return "Usage: /set <id> <YYYY-MM-DD> <empty|in-progress|completed>"
    task_id = resolve_task_id(app.store, args[0])
    app.store.set_day_status(task_id, args[1], args[2].lower())
    return "Status updated."


def cmd_stats(app: HabitApp, args: list[str]) -> str:
    if not args:
        return "Usage: /stats <id>"
    task_id = resolve_task_id(app.store, args[0])
    s = task_stats(app.store.state, task_id, app.today())
    return (
        f"Stats for {app.store.get_task(task_id).name}:\n"
        f"  Completed: {s.completed} / {s.tracked_days} days ({s.completion_rate:.0%})\n"
        f"  In progress: {s.in_progress}\n"
        f"  Current streak: {s.current_streak}"
    )


async def cmd_login(app: HabitApp, args: list[str]) -> str:
    if not args:
        return "Usage: /login <account_id> [email]"
    account = app.auth.sign_in(args[0], args[1] if len(args) > 1 else "")
    await app.sync.wait_idle()
    return f"Signed in as {account.id}. Tasks: {len(app.store.state.tasks)}"


def cmd_logout(app: HabitApp, args: list[str]) -> str:
    if app.auth.get_current_account() is None:
        return "Not signed in."
    app.auth.sign_out()
    return "Signed out. Local data is kept; cloud sync is paused."


def cmd_export(app: HabitApp, args: list[str]) -> str:
    data_dir = Path(getattr(app.settings, "data_dir", "."))
    path = Path(args[0]).expanduser() if args else data_dir / export_filename(app.today())
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(dump_export(app.sync.export_document()), "utf-8")
    except OSError as e:
        return f"Cannot write {path}: {e.strerror or e}"
    logger.info("Exported data to %s", path)
    return f"Data exported to {path}"


def cmd_import(app: HabitApp, args: list[str]) -> str:
    if not args:
        return "Usage: /import <path>"
    path = Path(args[0]).expanduser()
    try:
        text = path.read_text("utf-8")
    except OSError as e:
        return f"Cannot read {path}: {e.strerror or e}"
    state = app.sync.import_document(text)
    return f"Imported {len(state.tasks)} tasks."


async def cmd_delete_account(app: HabitApp, args: list[str]) -> str:
    """
    /delete-account <email>  -> irreversible: remote record + local data.
    The account email must be re-typed as confirmation.
    """
    account = app.auth.get_current_account()
    if account is None:
        return "You must be signed in."
    if not args:
        return (
            "WARNING: this cannot be undone. All tasks and history will be deleted.\n"
            f"To confirm, type: /delete-account {account.email or '<your email>'}"
        )
    await app.sync.delete_account(args[0])
    return "Account and data deleted."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show account, remote and sync status.")
registry.register("list", cmd_list, help_text="List tasks in display order.", aliases=["ls"])
registry.register("week", cmd_week, help_text="Show the week grid: /week [offset].")
registry.register("icons", cmd_icons, help_text="List allowed icons.")
registry.register("add", cmd_add, help_text="Create a task: /add <icon> <name...>.")
registry.register("edit", cmd_edit, help_text="Rename/re-icon: /edit <id> <icon> <name...>.")
registry.register("rm", cmd_rm, help_text="Delete a task: /rm <id> yes.", aliases=["delete"])
registry.register("move", cmd_move, help_text="Reorder: /move <id> <target_id>.")
registry.register("mark", cmd_mark, help_text="Cycle a day's status: /mark <id> [date].")
registry.register("set", cmd_set, help_text="Set a status: /set <id> <date> <status>.")
registry.register("stats", cmd_stats, help_text="Completion stats: /stats <id>.")
registry.register("login", cmd_login, help_text="Sign in: /login <account_id> [email].")
registry.register("logout", cmd_logout, help_text="Sign out (local data is kept).")
registry.register("export", cmd_export, help_text="Export all data to JSON: /export [path].")
registry.register("import", cmd_import, help_text="Import a JSON export: /import <path>.")
registry.register(
    "delete-account", cmd_delete_account, help_text="Delete account data: /delete-account <email>."
)
