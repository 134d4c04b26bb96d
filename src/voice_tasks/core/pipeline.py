# src/voice_tasks/core/pipeline.py

"""
Voice pipeline orchestration.

stop recorder -> transcribe -> extract tasks -> add each task in order.

Key invariants:
- a failed transcription or extraction adds nothing (insertion starts only after
  extraction returned, and insertion itself is synchronous and local),
- tasks from earlier runs are never rolled back,
- the store is only touched from the coroutine's own loop (the owner loop);
  blocking stages run in worker threads inside the bridge / client.
"""

from __future__ import annotations

import contextlib
import logging
from typing import Protocol

from ..audio.recorder import AudioArtifact, RecorderController
from ..errors import PipelineError
from ..tasks.task_store import TaskStore
from .feedback import NullFeedback
from .ports import Feedback

logger = logging.getLogger(__name__)


class Transcriber(Protocol):
    async def transcribe(self, artifact: AudioArtifact) -> str: ...


class TaskExtractor(Protocol):
    async def extract_tasks(self, utterance: str) -> list[str]: ...


class PipelineOrchestrator:
    def __init__(
        self,
        *,
        store: TaskStore,
        recorder: RecorderController,
        transcriber: Transcriber,
        extractor: TaskExtractor,
        feedback: Feedback | None = None,
    ) -> None:
        self.store = store
        self.recorder = recorder
        self._transcriber = transcriber
        self._extractor = extractor
        self._feedback: Feedback = feedback or NullFeedback()
        self._in_flight = 0

    @property
    def processing(self) -> bool:
        """True while any extraction run is in flight (the 'Processing...' overlay)."""
        return self._in_flight > 0

    @property
    def is_recording(self) -> bool:
        return self.recorder.is_recording

    def _notify(self, kind: str) -> None:
        with contextlib.suppress(Exception):
            getattr(self._feedback, kind)()

    # ---- text entry ----

    def add_text(self, text: str) -> str:
        """Direct text entry. Raises InvalidInput for blank text."""
        task_id = self.store.add_task(text)
        self._notify("success")
        return task_id

    # ---- voice ----

    def start_recording(self) -> bool:
        """Start a capture session. Raises RecordingUnavailable; False if already recording."""
        started = self.recorder.start()
        if started:
            self._notify("impact")
        return started

    async def stop_and_process(self) -> list[str]:
        """
        Finish the current recording and turn it into tasks.

        Returns the new task ids in insertion order. Returns [] when there was no
        recording. Raises TranscriptionFailed / ExtractionFailed after signalling
        error feedback; nothing is inserted in that case.
        """
        if not self.recorder.is_recording:
            logger.debug("stop_and_process: not recording, nothing to do")
            return []

        artifact = self.recorder.stop()
        self._notify("impact")
        if artifact is None:
            logger.warning("stop_and_process: recording could not be finalized")
            return []

        self._in_flight += 1
        try:
            transcript = await self._transcriber.transcribe(artifact)
            logger.info("Utterance: %r", transcript[:200])
            return await self._extract_and_insert(transcript)
        except PipelineError as e:
            logger.info("Pipeline aborted at %s: %s", e.stage, e)
            self._notify("error")
            raise
        finally:
            self._in_flight -= 1

    async def process_utterance(self, utterance: str) -> list[str]:
        """Extraction + insertion for text that is already transcribed."""
        self._in_flight += 1
        try:
            return await self._extract_and_insert(utterance)
        except PipelineError as e:
            logger.info("Pipeline aborted at %s: %s", e.stage, e)
            self._notify("error")
            raise
        finally:
            self._in_flight -= 1

    async def toggle_recording(self) -> list[str] | None:
        """
        Single record button: start when idle, stop-and-process when recording.

        Returns None when a session was started, the new task ids otherwise.
        """
        if self.recorder.is_recording:
            return await self.stop_and_process()
        self.start_recording()
        return None

    async def _extract_and_insert(self, utterance: str) -> list[str]:
        if not (utterance or "").strip():
            logger.info("Empty utterance; no tasks extracted.")
            self._notify("success")
            return []

        texts = await self._extractor.extract_tasks(utterance)

        # Back on the owner loop: insert synchronously, in order.
        ids: list[str] = []
        for text in texts:
            if not (text or "").strip():
                continue
            ids.append(self.store.add_task(text))

        logger.info("Pipeline added %d task(s)", len(ids))
        self._notify("success")
        return ids
