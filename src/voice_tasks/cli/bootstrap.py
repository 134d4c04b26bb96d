# src/voice_tasks/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AppState (store/scheduler/recorder/STT/LLM).
"""

from __future__ import annotations

import logging
from typing import Any

from ..audio.recorder import RecorderController
from ..config import get_settings
from ..core.feedback import BellFeedback, NullFeedback
from ..core.pipeline import PipelineOrchestrator
from ..core.ports import Feedback, LLMClient
from ..core.state import AppState
from ..llm.client import OpenRouterLLMClient
from ..llm.extractor import TaskExtractionClient
from ..llm.offline import OfflineLLMClient
from ..stt.transcriber import OpenAISpeechEngine, TranscriptionBridge
from ..tasks.task_scheduler import ArchiveScheduler
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.recordings_dir.mkdir(parents=True, exist_ok=True)


def _input_device(raw: str | None) -> Any:
    """sounddevice accepts an index or a (partial) device name."""
    if raw is None:
        return None
    s = str(raw).strip()
    if not s:
        return None
    return int(s) if s.isdigit() else s


def create_initial_state(*, settings=None, feedback: Feedback | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    llm_client: LLMClient
    offline = False
    try:
        llm_client = OpenRouterLLMClient(settings)
    except RuntimeError as e:
        # Fallback for demos / local runs without external services.
        logger.warning("LLM unavailable (%s); using offline task extraction.", e)
        llm_client = OfflineLLMClient()
        offline = True

    if feedback is None:
        feedback = BellFeedback() if getattr(settings, "feedback_bell", False) else NullFeedback()

    store = TaskStore()
    scheduler = ArchiveScheduler(store, grace_seconds=settings.archive_grace_seconds)

    recorder = RecorderController(
        settings.recordings_dir,
        sample_rate=settings.sample_rate,
        channels=settings.channels,
        audio_format=settings.audio_format,
        device=_input_device(getattr(settings, "input_device", None)),
    )

    transcriber = TranscriptionBridge(
        OpenAISpeechEngine(
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
            model=settings.transcription_model,
        ),
        locale=settings.transcription_locale,
        timeout_seconds=settings.transcription_timeout_seconds,
    )
    extractor = TaskExtractionClient(llm_client, timeout_seconds=settings.extraction_timeout_seconds)

    pipeline = PipelineOrchestrator(
        store=store,
        recorder=recorder,
        transcriber=transcriber,
        extractor=extractor,
        feedback=feedback,
    )

    return AppState(
        settings=settings,
        llm=llm_client,
        store=store,
        scheduler=scheduler,
        recorder=recorder,
        transcriber=transcriber,
        extractor=extractor,
        pipeline=pipeline,
        feedback=feedback,
        offline=offline,
    )
