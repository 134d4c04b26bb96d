# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from voice_tasks.audio.recorder import RecorderController
from voice_tasks.core.pipeline import PipelineOrchestrator
from voice_tasks.core.state import AppState
from voice_tasks.llm.extractor import TaskExtractionClient
from voice_tasks.stt.transcriber import TranscriptionBridge
from voice_tasks.tasks.task_scheduler import ArchiveScheduler
from voice_tasks.tasks.task_store import TaskStore

from .fakes import FakeAudioBackend, FakeLLMClient, FakeSpeechEngine, RecordingFeedback

GRACE = 0.05


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and core modules.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="voice-tasks-test",
        log_level="DEBUG",
        data_dir=tmp_path / "data",
        recordings_dir=tmp_path / "data" / "recordings",
        archive_grace_seconds=GRACE,
        sample_rate=12000,
        channels=1,
        audio_format="FLAC",
        input_device=None,
        openai_api_key=None,
        openai_base_url="https://api.openai.com/v1",
        llm_api_key=None,
        llm_base_url="https://api.openai.com/v1",
        llm_models=["test-model"],
        extra_headers={},
        transcription_model="whisper-1",
        transcription_locale="en-US",
        transcription_timeout_seconds=5.0,
        extraction_timeout_seconds=5.0,
        feedback_bell=False,
    )


@pytest.fixture()
def store() -> TaskStore:
    return TaskStore()


@pytest.fixture()
def audio() -> FakeAudioBackend:
    return FakeAudioBackend()


@pytest.fixture()
def recorder(tmp_path: Path, audio: FakeAudioBackend) -> RecorderController:
    return RecorderController(
        tmp_path / "recordings",
        stream_factory=audio.stream_factory,
        sink_factory=audio.sink_factory,
    )


@pytest.fixture()
def speech() -> FakeSpeechEngine:
    return FakeSpeechEngine(text="buy milk and call alice")


@pytest.fixture()
def llm() -> FakeLLMClient:
    return FakeLLMClient('{"tasks": ["Buy milk", "Call Alice"]}')


@pytest.fixture()
def feedback() -> RecordingFeedback:
    return RecordingFeedback()


@pytest.fixture()
def state(
    settings: SimpleNamespace,
    store: TaskStore,
    recorder: RecorderController,
    speech: FakeSpeechEngine,
    llm: FakeLLMClient,
    feedback: RecordingFeedback,
) -> AppState:
    """
    AppState wired with deterministic fakes.

    NOTE: the store and scheduler are real because their behavior is what
    most tests are about; only I/O edges (audio, STT, LLM) are faked.
    """
    transcriber = TranscriptionBridge(speech, locale="en-US", timeout_seconds=5.0)
    extractor = TaskExtractionClient(llm, timeout_seconds=5.0)
    pipeline = PipelineOrchestrator(
        store=store,
        recorder=recorder,
        transcriber=transcriber,
        extractor=extractor,
        feedback=feedback,
    )
    return AppState(
        settings=settings,
        llm=llm,
        store=store,
        scheduler=ArchiveScheduler(store, grace_seconds=GRACE),
        recorder=recorder,
        transcriber=transcriber,
        extractor=extractor,
        pipeline=pipeline,
        feedback=feedback,
    )
