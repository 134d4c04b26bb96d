# src/voice_tasks/tasks/task_scheduler.py

from __future__ import annotations

"""
Archive scheduler.

Turns ARMED / DISARMED events from TaskStore into deferred
archive_if_still_completed() calls:
- ARMED    -> one-shot loop timer after the grace period (replaces a pending one)
- DISARMED -> cancel the pending timer for that id, if any

The timer does not trust its own scheduling: the store re-validates on fire,
so a timer that slipped past cancellation is harmless.
"""

import asyncio
import contextlib
import itertools
import logging
from collections.abc import Callable
from dataclasses import dataclass

from .task_models import TaskEvent, TaskEventKind
from .task_store import TaskStore

logger = logging.getLogger(__name__)

DEFAULT_GRACE_SECONDS = 30.0


@dataclass(slots=True)
class _Pending:
    token: int
    handle: asyncio.TimerHandle


class ArchiveScheduler:
    """
    Per-task deferred archival, keyed by task id.

    Timers run on the owner event loop (the loop that performs store mutations).
    The loop is passed explicitly or captured when the scheduler is built inside
    a running loop (else on the first arm()). Calls made from other threads are
    marshalled with call_soon_threadsafe. Arming with no loop at all raises, and
    TaskStore reopens the task.
    """

    def __init__(
        self,
        store: TaskStore,
        *,
        grace_seconds: float = DEFAULT_GRACE_SECONDS,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._store = store
        self._grace = max(0.0, float(grace_seconds))
        if loop is None:
            with contextlib.suppress(RuntimeError):
                loop = asyncio.get_running_loop()
        self._loop = loop
        self._pending: dict[str, _Pending] = {}
        self._tokens = itertools.count(1)
        self._unsubscribe: Callable[[], None] | None = store.subscribe(
            self._on_event, required=True
        )

    @property
    def grace_seconds(self) -> float:
        return self._grace

    def _on_event(self, event: TaskEvent) -> None:
        if event.task_id is None:
            return
        if event.kind == TaskEventKind.ARMED:
            self.arm(event.task_id)
        elif event.kind == TaskEventKind.DISARMED:
            self.disarm(event.task_id)

    # ---- loop plumbing ----

    def _owner_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            try:
                self._loop = asyncio.get_running_loop()
            except RuntimeError as e:
                raise RuntimeError(
                    "ArchiveScheduler needs a running event loop (or an explicit loop=...)."
                ) from e
        return self._loop

    def _on_owner_thread(self, loop: asyncio.AbstractEventLoop) -> bool:
        try:
            return asyncio.get_running_loop() is loop
        except RuntimeError:
            return False

    # ---- public API ----

    def arm(self, task_id: str) -> None:
        loop = self._owner_loop()
        if self._on_owner_thread(loop):
            self._arm_now(task_id)
        else:
            loop.call_soon_threadsafe(self._arm_now, task_id)

    def disarm(self, task_id: str) -> bool:
        """
        Cancel the pending archival for task_id.

        Returns True if a pending timer was cancelled on this call. When called off the
        owner thread the cancellation is queued and False is returned.
        """
        if task_id not in self._pending and self._loop is None:
            return False
        loop = self._owner_loop()
        if self._on_owner_thread(loop):
            return self._disarm_now(task_id)
        loop.call_soon_threadsafe(self._disarm_now, task_id)
        return False

    def is_armed(self, task_id: str) -> bool:
        return task_id in self._pending

    def pending_ids(self) -> list[str]:
        return list(self._pending)

    def shutdown(self) -> None:
        """Cancel every pending timer and stop listening to the store."""
        for pending in self._pending.values():
            pending.handle.cancel()
        n = len(self._pending)
        self._pending.clear()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        logger.debug("ArchiveScheduler stopped (cancelled=%d)", n)

    # ---- owner-thread internals ----

    def _arm_now(self, task_id: str) -> None:
        previous = self._pending.pop(task_id, None)
        if previous is not None:
            previous.handle.cancel()
            logger.debug("Archive re-armed task_id=%s", task_id)

        loop = self._owner_loop()
        token = next(self._tokens)
        handle = loop.call_later(self._grace, self._fire, task_id, token)
        self._pending[task_id] = _Pending(token=token, handle=handle)
        logger.debug("Archive armed task_id=%s in %.1fs", task_id, self._grace)

    def _disarm_now(self, task_id: str) -> bool:
        pending = self._pending.pop(task_id, None)
        if pending is None:
            return False
        pending.handle.cancel()
        logger.debug("Archive disarmed task_id=%s", task_id)
        return True

    def _fire(self, task_id: str, token: int) -> None:
        pending = self._pending.get(task_id)
        if pending is None or pending.token != token:
            # Superseded by a newer arm().
            return
        del self._pending[task_id]

        try:
            self._store.archive_if_still_completed(task_id)
        except Exception:
            logger.exception("archive_if_still_completed failed task_id=%s", task_id)
