# src/voice_tasks/cli/commands.py

from __future__ import annotations

import contextlib
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Union, cast

from ..core.state import AppState
from ..tasks.task_models import TaskView

CommandEmitter = Callable[[str], None]
CommandResult = Union[str, Awaitable[str]]
CommandHandler2 = Callable[[AppState, list[str]], CommandResult]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], CommandResult]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by connectors (/help, /add, /rec, ...)."""

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

    async def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        Handlers may be plain functions or coroutines.
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

        if nparams >= 3:
            result = cast(CommandHandler3, handler)(state, args, emit)
        else:
            result = cast(CommandHandler2, handler)(state, args)

        if inspect.isawaitable(result):
            result = await result
        return cast(str, result)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        lines.append("  Any other line is added as a task.")
        return "\n".join(lines)


registry = CommandRegistry()


def _parse_positions(args: list[str], size: int) -> tuple[list[int], list[str]]:
    """1-based positions from args -> (0-based valid positions, rejected args)."""
    positions: list[int] = []
    bad: list[str] = []
    for a in args:
        try:
            n = int(a)
        except ValueError:
            bad.append(a)
            continue
        if 1 <= n <= size:
            positions.append(n - 1)
        else:
            bad.append(a)
    return positions, bad


def format_tasks(tasks: tuple[TaskView, ...] | list[TaskView], *, numbered: bool = True) -> str:
    lines: list[str] = []
    for i, t in enumerate(tasks, start=1):
        mark = "[x]" if t.completed else "[ ]"
        prefix = f"{i:>2}. " if numbered else "  - "
        lines.append(f"{prefix}{mark} {t.text}")
    return "\n".join(lines)


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    models = ", ".join(list(getattr(state.llm, "models", []) or [])) or "-"
    mode = "OFFLINE (demo extraction)" if state.offline else "ONLINE"
    rec = state.recorder.state.value
    return (
        "Status:\n"
        f"  Extraction: {mode}\n"
        f"  Models (priority -> fallback): {models}\n"
        f"  Recorder: {rec}\n"
        f"  Archive grace period: {state.scheduler.grace_seconds:.0f}s\n"
        f"  Active: {state.store.count_active()}  History: {state.store.count_history()}  "
        f"Pending archive: {len(state.scheduler.pending_ids())}"
    )


def cmd_add(state: AppState, args: list[str]) -> str:
    text = " ".join(args)
    state.pipeline.add_text(text)
    return f"Added: {text.strip()}"


def cmd_list(state: AppState, args: list[str]) -> str:
    tasks = state.store.active()
    if not tasks:
        return "No active tasks."
    return "Current:\n" + format_tasks(tasks)


def cmd_history(state: AppState, args: list[str]) -> str:
    tasks = state.store.history()
    if not tasks:
        return "No history yet."
    return "History (newest first):\n" + format_tasks(tasks, numbered=False)


def cmd_done(state: AppState, args: list[str]) -> str:
    """
    /done N [N...]  -> toggle completion of active task(s) by number.
    Completed tasks move to history after the grace period unless toggled back.
    """
    if not args:
        return "Usage: /done N [N...] (numbers from /list)."

    active = state.store.active()
    positions, bad = _parse_positions(args, len(active))
    lines: list[str] = []
    for pos in positions:
        task = active[pos]
        state.store.toggle_task(task.id)
        now = state.store.get(task.id)
        if now is not None and now.completed:
            lines.append(f"Done: {task.text} (archives in {state.scheduler.grace_seconds:.0f}s)")
        else:
            lines.append(f"Reopened: {task.text}")
    if bad:
        lines.append(f"Ignored: {', '.join(bad)}")
    return "\n".join(lines)


def cmd_del(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /del N [N...] (numbers from /list)."

    active = state.store.active()
    positions, bad = _parse_positions(args, len(active))
    removed = state.store.delete_at(positions)
    names = {t.id: t.text for t in active}
    lines = [f"Deleted: {names.get(task_id, task_id)}" for task_id in removed]
    if bad:
        lines.append(f"Ignored: {', '.join(bad)}")
    return "\n".join(lines) or "Nothing deleted."


def cmd_clear(state: AppState, args: list[str]) -> str:
    n = state.store.clear_history()
    return f"History cleared ({n} item(s))."


async def cmd_rec(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /rec  -> start recording; /rec again -> stop, transcribe, extract, add tasks.
    """
    if not state.recorder.is_recording:
        state.pipeline.start_recording()
        return "Listening... use /rec again to stop."

    if emit:
        with contextlib.suppress(Exception):
            emit("Processing...")

    ids = await state.pipeline.stop_and_process()
    return _report_added(state, ids)


async def cmd_say(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """/say <utterance>  -> run extraction on typed text as if it had been spoken."""
    text = " ".join(args).strip()
    if not text:
        return "Usage: /say <what you would have said>."

    if emit:
        with contextlib.suppress(Exception):
            emit("Processing...")

    ids = await state.pipeline.process_utterance(text)
    return _report_added(state, ids)


def _report_added(state: AppState, ids: list[str]) -> str:
    if not ids:
        return "No tasks found in what you said."
    lines = [f"Added {len(ids)} task(s):"]
    for task_id in ids:
        t = state.store.get(task_id)
        if t is not None:
            lines.append(f"  + {t.text}")
    return "\n".join(lines)


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show extraction mode, recorder state and counts.")
registry.register("add", cmd_add, help_text="Add a task: /add Buy milk.")
registry.register("list", cmd_list, help_text="Show current tasks.", aliases=["ls"])
registry.register("history", cmd_history, help_text="Show archived tasks (newest first).")
registry.register("done", cmd_done, help_text="Toggle completion: /done 1 3.", aliases=["toggle", "x"])
registry.register("del", cmd_del, help_text="Delete tasks: /del 2.", aliases=["rm"])
registry.register("clear", cmd_clear, help_text="Clear history.")
registry.register("rec", cmd_rec, help_text="Start / stop-and-process a voice note.", aliases=["r"])
registry.register("say", cmd_say, help_text="Extract tasks from typed text: /say buy milk and call Alice.")
