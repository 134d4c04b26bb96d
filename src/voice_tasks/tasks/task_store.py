# src/voice_tasks/tasks/task_store.py

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from ..errors import InvalidInput
from .task_models import Task, TaskEvent, TaskEventKind, TaskView

logger = logging.getLogger(__name__)

TaskListener = Callable[[TaskEvent], None]


class TaskStore:
    """
    In-memory task store: the active list and the history list.

    Ordering:
    - active: insertion order (append at end)
    - history: newest first (archived tasks are inserted at index 0)

    Invariants:
    - a task id lives in at most one list, at most once
    - tasks reach history only through archive_if_still_completed()
    - history entries are always completed

    Thread-safety:
    - none; all mutations happen on the owner event loop.

    Every mutation is followed by a TaskEvent sent to subscribers.
    ARMED / DISARMED are consumed by ArchiveScheduler.
    """

    def __init__(self) -> None:
        self._active: list[Task] = []
        self._history: list[Task] = []
        self._listeners: list[tuple[TaskListener, bool]] = []
        logger.debug("TaskStore ready")

    # ---- observation ----

    def subscribe(self, listener: TaskListener, *, required: bool = False) -> Callable[[], None]:
        """
        Register a listener; returns a callable that unsubscribes it.

        A failing listener is logged and skipped. A `required` listener's failure is
        re-raised to the caller once every listener has seen the event.
        """
        entry = (listener, required)
        self._listeners.append(entry)

        def _unsubscribe() -> None:
            if entry in self._listeners:
                self._listeners.remove(entry)

        return _unsubscribe

    def _emit(self, kind: TaskEventKind, task_id: str | None = None) -> None:
        event = TaskEvent(kind=kind, task_id=task_id)
        failure: Exception | None = None
        for listener, required in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.exception("Task listener failed event=%s task_id=%s", kind.value, task_id)
                if required and failure is None:
                    failure = e
        if failure is not None:
            raise failure

    # ---- reads ----

    def active(self) -> tuple[TaskView, ...]:
        return tuple(TaskView.of(t) for t in self._active)

    def history(self) -> tuple[TaskView, ...]:
        return tuple(TaskView.of(t) for t in self._history)

    def get(self, task_id: str) -> TaskView | None:
        """Look a task up in either list."""
        idx = self.index_of(task_id)
        if idx is not None:
            return TaskView.of(self._active[idx])
        for t in self._history:
            if t.id == task_id:
                return TaskView.of(t)
        return None

    def index_of(self, task_id: str) -> int | None:
        """Position of task_id in the active list, or None."""
        for i, t in enumerate(self._active):
            if t.id == task_id:
                return i
        return None

    def count_active(self) -> int:
        return len(self._active)

    def count_history(self) -> int:
        return len(self._history)

    # ---- mutations ----

    def add_task(self, text: str) -> str:
        clean = (text or "").strip()
        if not clean:
            raise InvalidInput("task text is required")

        task = Task(text=clean)
        self._active.append(task)
        logger.debug("Task added id=%s text=%r", task.id, clean)
        self._emit(TaskEventKind.ADDED, task.id)
        return task.id

    def toggle_task(self, task_id: str) -> bool:
        """
        Flip `completed` for an active task.

        Unknown ids are ignored (returns False). Completing arms the deferred
        archival check; un-completing disarms it. If arming fails the task is
        reopened and the error propagates: a completed task always has an
        archival pending.
        """
        idx = self.index_of(task_id)
        if idx is None:
            logger.debug("toggle_task: %s not active, ignored", task_id)
            return False

        task = self._active[idx]
        task.completed = not task.completed
        logger.debug("Task %s -> completed=%s", task_id, task.completed)

        self._emit(TaskEventKind.TOGGLED, task_id)
        try:
            self._emit(TaskEventKind.ARMED if task.completed else TaskEventKind.DISARMED, task_id)
        except Exception:
            if task.completed:
                logger.warning("Archival could not be scheduled for %s; task reopened", task_id)
                task.completed = False
                self._emit(TaskEventKind.TOGGLED, task_id)
            raise
        return True

    def delete_task(self, task_id: str) -> bool:
        idx = self.index_of(task_id)
        if idx is None:
            return False
        self._remove_active_at(idx)
        return True

    def delete_at(self, indices: Iterable[int]) -> list[str]:
        """
        Delete active tasks by position (several offsets at once, like a list swipe).

        Positions refer to the list before deletion; out-of-range ones are skipped.
        Returns the removed ids in list order.
        """
        size = len(self._active)
        valid = sorted({int(i) for i in indices if 0 <= int(i) < size}, reverse=True)
        removed = [self._remove_active_at(i) for i in valid]
        removed.reverse()
        return removed

    def _remove_active_at(self, idx: int) -> str:
        task = self._active.pop(idx)
        logger.debug("Task deleted id=%s completed=%s", task.id, task.completed)
        self._emit(TaskEventKind.DELETED, task.id)
        # Cancels any pending archival, even for tasks that were never completed.
        self._emit(TaskEventKind.DISARMED, task.id)
        return task.id

    def archive_if_still_completed(self, task_id: str) -> bool:
        """
        Move a task from active to the head of history if it is still completed.

        Called by the archive scheduler when the grace period elapses. Safe to call
        for tasks that were deleted, archived already or unchecked meanwhile: all
        of those are silent no-ops.
        """
        idx = self.index_of(task_id)
        if idx is None:
            logger.debug("archive: %s no longer active, skipped", task_id)
            return False

        task = self._active[idx]
        if not task.completed:
            logger.debug("archive: %s was unchecked, skipped", task_id)
            return False

        del self._active[idx]
        self._history.insert(0, task)
        logger.info("Task archived id=%s text=%r", task.id, task.text)
        self._emit(TaskEventKind.ARCHIVED, task.id)
        return True

    def clear_history(self) -> int:
        n = len(self._history)
        self._history.clear()
        logger.debug("History cleared (%d items)", n)
        self._emit(TaskEventKind.HISTORY_CLEARED)
        return n
