# src/voice_tasks/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..audio.recorder import RecorderController
from ..llm.extractor import TaskExtractionClient
from ..stt.transcriber import TranscriptionBridge
from ..tasks.task_scheduler import ArchiveScheduler
from ..tasks.task_store import TaskStore
from .pipeline import PipelineOrchestrator
from .ports import Feedback, LLMClient


@dataclass
class AppState:
    """Everything a connector needs, wired once by cli.bootstrap."""

    settings: Any
    llm: LLMClient
    store: TaskStore
    scheduler: ArchiveScheduler
    recorder: RecorderController
    transcriber: TranscriptionBridge
    extractor: TaskExtractionClient
    pipeline: PipelineOrchestrator
    feedback: Feedback
    offline: bool = False

    def shutdown(self) -> None:
        """Best-effort teardown: stop timers, drop any half-finished recording."""
        self.scheduler.shutdown()
        self.recorder.abort()
