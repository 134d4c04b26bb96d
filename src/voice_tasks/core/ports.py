# src/voice_tasks/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps the speech engine, the language service and audio I/O swappable
and makes testing easier.
"""

from pathlib import Path
from typing import Any, Callable, Iterable, Protocol

ChatMessage = dict[str, str]
# OpenAI-style chat messages: {"role": "...", "content": "..."}.


class LLMClient(Protocol):
    """Streaming chat completion client (OpenAI/OpenRouter-compatible)."""
    def stream_chat(self, messages: list[ChatMessage], system_prompt: str) -> Iterable[str]: ...


class SpeechEngine(Protocol):
    """
    Blocking speech-to-text call on a finished audio file.

    Returns the final transcript only; partial results are not part of the contract.
    """

    def transcribe(self, audio_path: Path, *, language: str | None = None) -> str: ...


class Feedback(Protocol):
    """
    Optional user feedback (haptics, bell, sound...).

    Must never raise into the caller's flow; implementations are best-effort.
    """

    def impact(self) -> None: ...
    def success(self) -> None: ...
    def error(self) -> None: ...


class AudioInputStream(Protocol):
    """Subset of sounddevice.InputStream the recorder relies on."""

    def start(self) -> None: ...
    def stop(self) -> None: ...
    def close(self) -> None: ...


class AudioSink(Protocol):
    """Subset of soundfile.SoundFile the recorder relies on."""

    def write(self, data: Any) -> None: ...
    def close(self) -> None: ...


# (callback, sample_rate, channels, device) -> stream
InputStreamFactory = Callable[[Callable[..., None], int, int, Any], AudioInputStream]
# (path, sample_rate, channels, audio_format) -> sink
AudioSinkFactory = Callable[[Path, int, int, str], AudioSink]
