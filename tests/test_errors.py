# tests/test_errors.py

from __future__ import annotations

from voice_tasks.errors import (
    ExtractionFailed,
    InvalidInput,
    PipelineError,
    RecordingUnavailable,
    TranscriptionFailed,
    VoiceTasksError,
    friendly_error_message,
)


def test_hierarchy() -> None:
    assert issubclass(InvalidInput, ValueError)
    for cls in (InvalidInput, RecordingUnavailable, TranscriptionFailed, ExtractionFailed):
        assert issubclass(cls, VoiceTasksError)
    assert issubclass(TranscriptionFailed, PipelineError)
    assert issubclass(ExtractionFailed, PipelineError)


def test_friendly_messages() -> None:
    assert friendly_error_message(InvalidInput("task text is required")) == "Task text is empty."
    assert (
        friendly_error_message(RecordingUnavailable("no input device"))
        == "Recording unavailable: no input device"
    )
    assert friendly_error_message(RecordingUnavailable("")) == "Recording unavailable."


def test_pipeline_errors_carry_cause() -> None:
    err = TranscriptionFailed("Transcription failed.", RuntimeError("503 from server"))

    assert friendly_error_message(err) == "Transcription failed. (503 from server)"
    assert friendly_error_message(ExtractionFailed("")) == "Extraction failed."
    assert friendly_error_message(ExtractionFailed("timed out", TimeoutError())) == "timed out (TimeoutError)"


def test_config_hints() -> None:
    msg = friendly_error_message(RuntimeError("LLM API key is not set. Set ..."))
    assert "VTASKS_OPENAI_API_KEY" in msg

    msg = friendly_error_message(RuntimeError("LLM model list is empty. Set ..."))
    assert "VTASKS_LLM_MODELS" in msg

    assert friendly_error_message(KeyError()) == "KeyError"
