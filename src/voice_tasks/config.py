# src/voice_tasks/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- No secrets required at import time.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv

ENV_PREFIX = "VTASKS"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    parts = [p.strip() for p in raw.replace(",", " ").split() if p.strip()]
    return parts


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    recordings_dir: Path

    # ---- Task list ----
    archive_grace_seconds: float

    # ---- Recording ----
    sample_rate: int
    channels: int
    audio_format: str
    input_device: Optional[str]

    # ---- OpenAI-compatible services ----
    openai_api_key: Optional[str]
    openai_base_url: str
    llm_api_key: Optional[str]
    llm_base_url: str
    llm_models: List[str]
    extra_headers: Dict[str, str]

    # ---- Pipeline ----
    transcription_model: str
    transcription_locale: str
    transcription_timeout_seconds: float
    extraction_timeout_seconds: float

    # ---- Feedback ----
    feedback_bell: bool

    @staticmethod
    def from_env() -> "Settings":
        app_name = _first_env(_k("APP_NAME"), default="voice-tasks") or "voice-tasks"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/voice-tasks"))
        recordings_dir = _env_path(_k("RECORDINGS_DIR"), data_dir / "recordings")

        archive_grace_seconds = max(0.0, _env_float(_k("ARCHIVE_GRACE_SECONDS"), 30.0))

        sample_rate = _env_int(_k("SAMPLE_RATE"), 12000)
        channels = _env_int(_k("CHANNELS"), 1)
        audio_format = _env(_k("AUDIO_FORMAT"), "FLAC").strip().upper() or "FLAC"
        input_device = (_first_env(_k("INPUT_DEVICE"), default="") or "").strip() or None

        openai_api_key = _first_env(_k("OPENAI_API_KEY"), "OPENAI_API_KEY", default=None)
        openai_base_url = _env(_k("OPENAI_BASE_URL"), "https://api.openai.com/v1")
        llm_api_key = _first_env(_k("LLM_API_KEY"), default=openai_api_key)
        llm_base_url = _first_env(_k("LLM_BASE_URL"), default=openai_base_url) or openai_base_url

        http_referer = _env(_k("HTTP_REFERER"), "https://example.com")
        title = _env(_k("APP_TITLE"), app_name)

        # OpenRouter metadata headers; ignored by other OpenAI-compatible endpoints.
        extra_headers = {
            "HTTP-Referer": http_referer,
            "X-Title": title,
        }

        llm_models = _env_list(_k("LLM_MODELS"), ["gpt-4o-mini", "gpt-4.1-mini"])

        transcription_model = _env(_k("TRANSCRIPTION_MODEL"), "whisper-1")
        transcription_locale = _env(_k("TRANSCRIPTION_LOCALE"), "en-US")
        transcription_timeout_seconds = _env_float(_k("TRANSCRIPTION_TIMEOUT_SECONDS"), 60.0)
        extraction_timeout_seconds = _env_float(_k("EXTRACTION_TIMEOUT_SECONDS"), 45.0)

        feedback_bell = _env_bool(_k("FEEDBACK_BELL"), False)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            recordings_dir=recordings_dir,
            archive_grace_seconds=archive_grace_seconds,
            sample_rate=sample_rate,
            channels=channels,
            audio_format=audio_format,
            input_device=input_device,
            openai_api_key=openai_api_key,
            openai_base_url=openai_base_url,
            llm_api_key=llm_api_key,
            llm_base_url=llm_base_url,
            llm_models=llm_models,
            extra_headers=extra_headers,
            transcription_model=transcription_model,
            transcription_locale=transcription_locale,
            transcription_timeout_seconds=transcription_timeout_seconds,
            extraction_timeout_seconds=extraction_timeout_seconds,
            feedback_bell=feedback_bell,
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    """Process-wide settings; .env is read on first use, never overriding real env vars."""
    global _SETTINGS
    if _SETTINGS is None:
        load_dotenv(override=False)
        _SETTINGS = Settings.from_env()
    return _SETTINGS
