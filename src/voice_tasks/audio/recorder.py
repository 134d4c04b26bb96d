# src/voice_tasks/audio/recorder.py

from __future__ import annotations

import contextlib
import logging
import threading
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Any

from ..core.ports import AudioInputStream, AudioSink, AudioSinkFactory, InputStreamFactory
from ..errors import RecordingUnavailable

logger = logging.getLogger(__name__)
# Runs on the PortAudio thread; kept separate so the console filter can mute it.
capture_logger = logging.getLogger(__name__ + ".capture")

DEFAULT_SAMPLE_RATE = 12000
DEFAULT_CHANNELS = 1
DEFAULT_FORMAT = "FLAC"

_SUBTYPES = {
    "FLAC": "PCM_16",
    "WAV": "PCM_16",
    "OGG": "VORBIS",
}

_EXTENSIONS = {
    "FLAC": ".flac",
    "WAV": ".wav",
    "OGG": ".ogg",
}


class RecorderState(StrEnum):
    IDLE = "idle"
    RECORDING = "recording"


@dataclass(slots=True, frozen=True)
class AudioArtifact:
    """A finished recording on disk."""

    path: Path
    sample_rate: int
    channels: int
    audio_format: str
    frames: int

    @property
    def duration_seconds(self) -> float:
        if self.sample_rate <= 0:
            return 0.0
        return self.frames / float(self.sample_rate)


def _default_stream_factory(callback, sample_rate: int, channels: int, device: Any) -> AudioInputStream:
    import sounddevice as sd  # type: ignore

    return sd.InputStream(
        samplerate=sample_rate,
        channels=channels,
        dtype="float32",
        callback=callback,
        blocksize=0,
        device=device,
    )


def _default_sink_factory(path: Path, sample_rate: int, channels: int, audio_format: str) -> AudioSink:
    import soundfile as sf  # type: ignore

    return sf.SoundFile(
        str(path),
        mode="w",
        samplerate=sample_rate,
        channels=channels,
        format=audio_format,
        subtype=_SUBTYPES.get(audio_format),
    )


class RecorderController:
    """
    One audio-capture session at a time: IDLE -> RECORDING -> IDLE.

    - start() is only meaningful from IDLE, stop() only from RECORDING;
      calls in the wrong state are ignored rather than raising.
    - Setup failures raise RecordingUnavailable and leave the controller IDLE.
    - Every session overwrites the same transient file under `recordings_dir`.

    Capture runs in the audio driver's callback thread, which only writes frames
    to the sink; state transitions happen on the caller's thread.
    """

    def __init__(
        self,
        recordings_dir: str | Path,
        *,
        sample_rate: int = DEFAULT_SAMPLE_RATE,
        channels: int = DEFAULT_CHANNELS,
        audio_format: str = DEFAULT_FORMAT,
        device: Any = None,
        stream_factory: InputStreamFactory | None = None,
        sink_factory: AudioSinkFactory | None = None,
    ) -> None:
        fmt = (audio_format or DEFAULT_FORMAT).strip().upper()
        if fmt not in _EXTENSIONS:
            raise ValueError(f"Unsupported audio format: {audio_format!r}")

        self._dir = Path(recordings_dir)
        self._sample_rate = int(sample_rate)
        self._channels = int(channels)
        self._format = fmt
        self._device = device
        self._stream_factory = stream_factory or _default_stream_factory
        self._sink_factory = sink_factory or _default_sink_factory

        self._state = RecorderState.IDLE
        self._stream: AudioInputStream | None = None
        self._sink: AudioSink | None = None
        self._path: Path | None = None
        self._frames = 0
        self._sink_lock = threading.Lock()

    @property
    def state(self) -> RecorderState:
        return self._state

    @property
    def is_recording(self) -> bool:
        return self._state == RecorderState.RECORDING

    @property
    def artifact_path(self) -> Path:
        return self._dir / f"recording{_EXTENSIONS[self._format]}"

    def _on_audio(self, indata, frames, time_info, status) -> None:
        if status:
            capture_logger.warning("Audio input status: %s", status)
        with self._sink_lock:
            sink = self._sink
            if sink is None:
                return
            try:
                sink.write(indata)
                self._frames += int(frames)
            except Exception:
                capture_logger.exception("Failed to write audio frames")

    def start(self) -> bool:
        """Begin a session. Returns False if one is already running."""
        if self._state == RecorderState.RECORDING:
            logger.debug("start() ignored: already recording")
            return False

        path = self.artifact_path
        sink: AudioSink | None = None
        stream: AudioInputStream | None = None

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            sink = self._sink_factory(path, self._sample_rate, self._channels, self._format)
            with self._sink_lock:
                self._sink = sink
                self._frames = 0
            stream = self._stream_factory(self._on_audio, self._sample_rate, self._channels, self._device)
            stream.start()
        except Exception as e:
            logger.warning("Recording setup failed: %r", e)
            if stream is not None:
                with contextlib.suppress(Exception):
                    stream.close()
            with self._sink_lock:
                self._sink = None
            if sink is not None:
                with contextlib.suppress(Exception):
                    sink.close()
            raise RecordingUnavailable(str(e) or e.__class__.__name__) from e

        self._stream = stream
        self._path = path
        self._state = RecorderState.RECORDING
        logger.info(
            "Recording started path=%s (rate=%d, channels=%d, format=%s)",
            path,
            self._sample_rate,
            self._channels,
            self._format,
        )
        return True

    def _teardown(self) -> tuple[Path | None, int, bool]:
        stream, self._stream = self._stream, None
        if stream is not None:
            try:
                stream.stop()
            except Exception:
                logger.debug("Audio stream stop failed.", exc_info=True)
            with contextlib.suppress(Exception):
                stream.close()

        with self._sink_lock:
            sink, self._sink = self._sink, None
            frames = self._frames

        ok = True
        if sink is not None:
            try:
                sink.close()
            except Exception:
                logger.exception("Failed to finalize recording file")
                ok = False

        path, self._path = self._path, None
        self._state = RecorderState.IDLE
        return path, frames, ok

    def stop(self) -> AudioArtifact | None:
        """Finish the session and return the artifact (None when idle or finalize failed)."""
        if self._state != RecorderState.RECORDING:
            logger.debug("stop() ignored: not recording")
            return None

        path, frames, ok = self._teardown()
        if not ok or path is None:
            return None

        artifact = AudioArtifact(
            path=path,
            sample_rate=self._sample_rate,
            channels=self._channels,
            audio_format=self._format,
            frames=frames,
        )
        logger.info("Recording stopped path=%s duration=%.2fs", path, artifact.duration_seconds)
        return artifact

    def abort(self) -> None:
        """Stop without producing an artifact (shutdown path)."""
        if self._state != RecorderState.RECORDING:
            return
        self._teardown()
        logger.info("Recording aborted.")
