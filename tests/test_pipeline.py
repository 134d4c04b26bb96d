# tests/test_pipeline.py

from __future__ import annotations

import asyncio

import pytest

from voice_tasks.core.state import AppState
from voice_tasks.errors import ExtractionFailed, InvalidInput, RecordingUnavailable, TranscriptionFailed
from voice_tasks.tasks.task_store import TaskStore

from .fakes import FakeAudioBackend, FakeLLMClient, FakeSpeechEngine, RecordingFeedback


def _texts(tasks) -> list[str]:
    return [t.text for t in tasks]


def test_add_text_appends_and_signals_success(state: AppState, feedback: RecordingFeedback) -> None:
    task_id = state.pipeline.add_text("Buy milk")

    assert state.store.get(task_id).text == "Buy milk"
    assert feedback.events == ["success"]


def test_add_blank_text_is_rejected(state: AppState, feedback: RecordingFeedback) -> None:
    with pytest.raises(InvalidInput):
        state.pipeline.add_text("   ")

    assert state.store.active() == ()
    assert feedback.events == []


@pytest.mark.asyncio
async def test_voice_note_adds_tasks_in_order(
    state: AppState,
    audio: FakeAudioBackend,
    speech: FakeSpeechEngine,
    llm: FakeLLMClient,
    feedback: RecordingFeedback,
) -> None:
    state.store.add_task("Existing")

    assert state.pipeline.start_recording() is True
    audio.stream.feed(1200)
    ids = await state.pipeline.stop_and_process()

    assert _texts(state.store.active()) == ["Existing", "Buy milk", "Call Alice"]
    assert [state.store.get(i).text for i in ids] == ["Buy milk", "Call Alice"]
    assert all(not t.completed for t in state.store.active())

    assert speech.calls[0][1] == "en"
    assert llm.calls[0][0][0]["content"] == "buy milk and call alice"
    assert feedback.events == ["impact", "impact", "success"]
    assert state.pipeline.processing is False


@pytest.mark.asyncio
async def test_voice_note_then_completion_archives_only_that_task(state: AppState) -> None:
    state.pipeline.start_recording()
    ids = await state.pipeline.stop_and_process()

    state.store.toggle_task(ids[0])
    await asyncio.sleep(0.2)

    assert _texts(state.store.active()) == ["Call Alice"]
    assert _texts(state.store.history()) == ["Buy milk"]


@pytest.mark.asyncio
async def test_transcription_failure_adds_nothing(
    state: AppState,
    speech: FakeSpeechEngine,
    llm: FakeLLMClient,
    feedback: RecordingFeedback,
) -> None:
    state.store.add_task("Existing")
    speech.error = RuntimeError("speech service down")

    state.pipeline.start_recording()
    with pytest.raises(TranscriptionFailed):
        await state.pipeline.stop_and_process()

    assert _texts(state.store.active()) == ["Existing"]
    assert llm.calls == []
    assert feedback.events == ["impact", "impact", "error"]
    assert state.pipeline.processing is False
    assert not state.pipeline.is_recording


@pytest.mark.asyncio
async def test_extraction_failure_adds_nothing(
    state: AppState,
    llm: FakeLLMClient,
    feedback: RecordingFeedback,
) -> None:
    llm.error = RuntimeError("All LLM models failed.")

    state.pipeline.start_recording()
    with pytest.raises(ExtractionFailed):
        await state.pipeline.stop_and_process()

    assert state.store.active() == ()
    assert feedback.events[-1] == "error"


@pytest.mark.asyncio
async def test_blank_transcript_adds_nothing_without_extraction(
    state: AppState,
    speech: FakeSpeechEngine,
    llm: FakeLLMClient,
    feedback: RecordingFeedback,
) -> None:
    speech.text = "   "

    state.pipeline.start_recording()
    ids = await state.pipeline.stop_and_process()

    assert ids == []
    assert state.store.active() == ()
    assert llm.calls == []
    assert feedback.events[-1] == "success"


@pytest.mark.asyncio
async def test_empty_extraction_is_not_an_error(state: AppState, llm: FakeLLMClient) -> None:
    llm.next_text = '{"tasks": []}'

    assert await state.pipeline.process_utterance("nice weather today") == []
    assert state.store.active() == ()


@pytest.mark.asyncio
async def test_stop_without_recording_is_silent_noop(
    state: AppState, speech: FakeSpeechEngine, feedback: RecordingFeedback
) -> None:
    assert await state.pipeline.stop_and_process() == []
    assert speech.calls == []
    assert feedback.events == []


@pytest.mark.asyncio
async def test_toggle_recording_starts_then_processes(state: AppState) -> None:
    assert await state.pipeline.toggle_recording() is None
    assert state.pipeline.is_recording

    ids = await state.pipeline.toggle_recording()

    assert ids is not None and len(ids) == 2
    assert not state.pipeline.is_recording


@pytest.mark.asyncio
async def test_processing_flag_is_set_while_in_flight(state: AppState, speech: FakeSpeechEngine) -> None:
    speech.delay = 0.1
    state.pipeline.start_recording()

    run = asyncio.create_task(state.pipeline.stop_and_process())
    await asyncio.sleep(0.03)
    assert state.pipeline.processing is True

    await run
    assert state.pipeline.processing is False


@pytest.mark.asyncio
async def test_earlier_runs_are_not_rolled_back(state: AppState, llm: FakeLLMClient) -> None:
    await state.pipeline.process_utterance("buy milk and call alice")

    llm.error = RuntimeError("boom")
    with pytest.raises(ExtractionFailed):
        await state.pipeline.process_utterance("something else")

    assert _texts(state.store.active()) == ["Buy milk", "Call Alice"]


def test_recording_unavailable_propagates(state: AppState, tmp_path) -> None:
    from voice_tasks.audio.recorder import RecorderController
    from voice_tasks.core.pipeline import PipelineOrchestrator

    broken = FakeAudioBackend(stream_error=PermissionError("microphone permission denied"))
    feedback = RecordingFeedback()
    pipeline = PipelineOrchestrator(
        store=TaskStore(),
        recorder=RecorderController(
            tmp_path, stream_factory=broken.stream_factory, sink_factory=broken.sink_factory
        ),
        transcriber=state.transcriber,
        extractor=state.extractor,
        feedback=feedback,
    )

    with pytest.raises(RecordingUnavailable, match="permission denied"):
        pipeline.start_recording()

    assert not pipeline.is_recording
    assert feedback.events == []


@pytest.mark.asyncio
async def test_extraction_timeout_adds_nothing_even_after_late_reply(
    state: AppState, feedback: RecordingFeedback
) -> None:
    from voice_tasks.core.pipeline import PipelineOrchestrator
    from voice_tasks.llm.extractor import TaskExtractionClient

    slow = FakeLLMClient('{"tasks": ["Buy milk"]}', delay=0.2)
    pipeline = PipelineOrchestrator(
        store=state.store,
        recorder=state.recorder,
        transcriber=state.transcriber,
        extractor=TaskExtractionClient(slow, timeout_seconds=0.01),
        feedback=feedback,
    )

    pipeline.start_recording()
    with pytest.raises(ExtractionFailed, match="timed out"):
        await pipeline.stop_and_process()

    # the worker thread finishing later must not leak tasks into the store
    await asyncio.sleep(0.3)
    assert state.store.active() == ()
    assert feedback.events[-1] == "error"
    assert pipeline.processing is False


@pytest.mark.asyncio
async def test_processing_stays_set_until_last_overlapping_run_ends(
    state: AppState, speech: FakeSpeechEngine
) -> None:
    speech.delay = 0.15
    state.pipeline.start_recording()

    voice = asyncio.create_task(state.pipeline.stop_and_process())
    await asyncio.sleep(0.02)
    await state.pipeline.process_utterance("buy milk and call alice")

    # the typed run finished first; the voice run is still transcribing
    assert state.pipeline.processing is True

    await voice
    assert state.pipeline.processing is False
