# src/voice_tasks/connectors/console_connector.py

from __future__ import annotations

import asyncio
import logging
import sys
import threading
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.state import AppState
from ..errors import VoiceTasksError, friendly_error_message
from ..tasks.task_models import TaskEvent, TaskEventKind

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _rewrite_prev_line(line: str) -> None:
    """
    Replace the last terminal line with `line`.
    Best-effort: if not a TTY, just print a new line.
    """
    if sys.stdout.isatty():
        sys.stdout.write("\033[1A\033[2K\r")
        sys.stdout.write(line + "\n")
        sys.stdout.flush()
    else:
        print(line)


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


async def _read_line(prompt: str) -> str:
    """
    input() on a daemon thread, awaited from the loop.

    A daemon thread (instead of the default executor) keeps shutdown from waiting
    on a prompt nobody will answer.
    """
    loop = asyncio.get_running_loop()
    fut: asyncio.Future[str] = loop.create_future()

    def _deliver(value: str | None, exc: BaseException | None) -> None:
        if fut.done():
            return
        if exc is not None:
            fut.set_exception(exc)
        else:
            fut.set_result(value or "")

    def _reader() -> None:
        try:
            line = input(prompt)
        except (EOFError, OSError) as e:
            loop.call_soon_threadsafe(_deliver, None, e)
            return
        loop.call_soon_threadsafe(_deliver, line, None)

    threading.Thread(target=_reader, name="console-input", daemon=True).start()
    return await fut


def _event_printer(state: AppState):
    """Live notices for changes the user did not type (timer-driven archival)."""

    def on_event(event: TaskEvent) -> None:
        if event.kind != TaskEventKind.ARCHIVED or event.task_id is None:
            return
        task = state.store.get(event.task_id)
        if task is not None:
            _print_ts(f"[ARCHIVE] Moved to history: {task.text}")

    return on_event


async def run_console_loop(state: AppState, *, prompt: str = ">>> ") -> None:
    """
    Interactive REPL on the owner event loop.

    input() runs on a daemon thread so archive timers keep firing while the user
    is typing; every command executes back on this loop.
    """
    logger.info("Console connector started (offline=%s).", state.offline)
    _print_ts("[CONSOLE] Type a task to add it. Use /rec to speak, /help for commands, /exit to quit.\n")

    unsubscribe = state.store.subscribe(_event_printer(state))

    def emit(text: str) -> None:
        _print_ts(text)

    try:
        while True:
            try:
                user_input = (await _read_line(prompt)).strip()
                _rewrite_prev_line(f"[{_ts_local()}] {prompt}{user_input}")
            except (EOFError, OSError):
                logger.info("Console input closed, exiting.")
                break

            if not user_input:
                continue

            if user_input.lower() in ("/exit", "/quit"):
                logger.info("Console exit command received.")
                break

            try:
                if user_input.startswith("/"):
                    reply = await command_registry.handle(state, user_input, emit=emit)
                else:
                    state.pipeline.add_text(user_input)
                    reply = f"Added: {user_input}"
            except VoiceTasksError as e:
                logger.info("Command failed: %s", e)
                reply = f"[ERROR] {friendly_error_message(e)}"
            except Exception:
                logger.exception("Command handler crashed.")
                reply = "Internal error while handling a command."

            if reply:
                _print_ts(reply)
    finally:
        unsubscribe()
        logger.info("Console connector finished.")
