# src/voice_tasks/tasks/task_models.py

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import StrEnum


def new_task_id() -> str:
    return str(uuid.uuid4())


@dataclass(slots=True)
class Task:
    """
    A task owned by TaskStore.

    `id` is assigned once at creation and never changes.
    `completed` is the only mutable attribute while the task is active.
    """

    text: str
    completed: bool = False
    id: str = field(default_factory=new_task_id)


@dataclass(slots=True, frozen=True)
class TaskView:
    """Read-only copy handed out to readers (snapshots never alias store state)."""

    id: str
    text: str
    completed: bool

    @classmethod
    def of(cls, task: Task) -> TaskView:
        return cls(id=task.id, text=task.text, completed=task.completed)


class TaskEventKind(StrEnum):
    ADDED = "added"
    TOGGLED = "toggled"
    # Archive scheduler hooks
    ARMED = "armed"
    DISARMED = "disarmed"
    DELETED = "deleted"
    ARCHIVED = "archived"
    HISTORY_CLEARED = "history_cleared"


@dataclass(slots=True, frozen=True)
class TaskEvent:
    kind: TaskEventKind
    task_id: str | None = None
