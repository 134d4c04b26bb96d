# src/voice_tasks/errors.py

"""
Error kinds surfaced by the core.

None of them is fatal: connectors report the message and return to an idle prompt.
Scheduler races (task unchecked or deleted before the grace period ends) are not
errors at all and never raise.
"""

from __future__ import annotations


class VoiceTasksError(Exception):
    """Base class for every error the core raises on purpose."""


class InvalidInput(VoiceTasksError, ValueError):
    """Task text is empty after stripping."""


class RecordingUnavailable(VoiceTasksError):
    """Audio capture could not start (no device, permission denied, missing library)."""


class PipelineError(VoiceTasksError):
    """
    A stage of the voice pipeline failed.

    The underlying exception is kept on `cause` and chained as __cause__
    by the raising code (`raise ... from exc`).
    """

    stage = "pipeline"

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class TranscriptionFailed(PipelineError):
    stage = "transcription"


class ExtractionFailed(PipelineError):
    stage = "extraction"


def friendly_error_message(err: BaseException) -> str:
    """One user-visible line for an error, with the underlying cause attached."""
    if isinstance(err, InvalidInput):
        return "Task text is empty."

    if isinstance(err, RecordingUnavailable):
        msg = str(err).strip()
        return f"Recording unavailable: {msg}" if msg else "Recording unavailable."

    if isinstance(err, PipelineError):
        msg = str(err).strip() or f"{err.stage.capitalize()} failed."
        cause = err.cause
        if cause is not None:
            detail = str(cause).strip() or cause.__class__.__name__
            if detail not in msg:
                return f"{msg} ({detail})"
        return msg

    msg = str(err).strip()
    if "LLM API key is not set" in msg:
        return "LLM is not configured (missing API key). Set VTASKS_OPENAI_API_KEY in .env."
    if "LLM model list is empty" in msg:
        return "LLM is not configured (no models). Set VTASKS_LLM_MODELS in .env."
    return msg or err.__class__.__name__
