# src/voice_tasks/stt/transcriber.py

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

from openai import OpenAI

from ..audio.recorder import AudioArtifact
from ..core.ports import SpeechEngine
from ..errors import TranscriptionFailed
from ..llm.client import make_openai_client

logger = logging.getLogger(__name__)

DEFAULT_LOCALE = "en-US"
DEFAULT_MODEL = "whisper-1"
DEFAULT_TIMEOUT_SECONDS = 60.0


def language_from_locale(locale: str | None) -> str | None:
    """'en-US' / 'en_US' -> 'en'; empty -> None (let the engine auto-detect)."""
    s = (locale or "").strip()
    if not s:
        return None
    return s.replace("_", "-").split("-", 1)[0].lower() or None


class OpenAISpeechEngine:
    """
    SpeechEngine backed by the OpenAI audio transcription endpoint.

    The client is created lazily so that building the engine needs no secrets.
    """

    def __init__(
        self,
        *,
        api_key: str | None,
        base_url: str,
        model: str = DEFAULT_MODEL,
        client: OpenAI | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url
        self._model = model
        self._client = client

    def _get_client(self) -> OpenAI:
        if self._client is None:
            self._client = make_openai_client(api_key=self._api_key, base_url=self._base_url)
        return self._client

    def transcribe(self, audio_path: Path, *, language: str | None = None) -> str:
        client = self._get_client()
        kwargs: dict[str, Any] = {"model": self._model}
        if language:
            kwargs["language"] = language

        with open(audio_path, "rb") as fh:
            result = client.audio.transcriptions.create(file=fh, **kwargs)

        text = getattr(result, "text", result)
        return str(text or "")


class TranscriptionBridge:
    """
    One audio artifact -> one final transcript, awaited.

    The engine call is blocking and runs in a worker thread; the caller's
    coroutine resumes on its own loop. Errors and timeouts become
    TranscriptionFailed with the original exception attached.
    """

    def __init__(
        self,
        engine: SpeechEngine,
        *,
        locale: str | None = DEFAULT_LOCALE,
        timeout_seconds: float | None = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._engine = engine
        self._language = language_from_locale(locale)
        self._timeout = timeout_seconds

    async def transcribe(self, artifact: AudioArtifact) -> str:
        logger.debug("Transcribing %s (language=%s)", artifact.path, self._language or "auto")
        try:
            text = await asyncio.wait_for(
                asyncio.to_thread(self._engine.transcribe, artifact.path, language=self._language),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as e:
            logger.warning("Transcription timed out after %.1fs", self._timeout or 0.0)
            raise TranscriptionFailed("Transcription timed out.", e) from e
        except Exception as e:
            logger.warning("Transcription failed: %r", e)
            raise TranscriptionFailed("Transcription failed.", e) from e

        transcript = " ".join(str(text or "").split())
        logger.info("Transcript ready (%d chars)", len(transcript))
        return transcript
