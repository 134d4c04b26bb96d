# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real secrets. Put them in .env (local, gitignored).

This file exists to make the repo self-documenting even without opening .env.
"""

ENV_VARS = {
    # App / logging
    "VTASKS_APP_NAME": "App display name (default: voice-tasks).",
    "VTASKS_LOG_LEVEL": "Console logging level (default: INFO). The log file always gets DEBUG.",
    # Paths (gitignored)
    "VTASKS_DATA_DIR": "Local data directory for logs (default: .local/voice-tasks).",
    "VTASKS_RECORDINGS_DIR": "Where the transient recording is written (default: <data_dir>/recordings).",
    # Task list
    "VTASKS_ARCHIVE_GRACE_SECONDS": "Delay before a completed task moves to history (default: 30).",
    # Recording
    "VTASKS_SAMPLE_RATE": "Capture sample rate in Hz (default: 12000).",
    "VTASKS_CHANNELS": "Capture channels (default: 1).",
    "VTASKS_AUDIO_FORMAT": "FLAC, OGG or WAV (default: FLAC).",
    "VTASKS_INPUT_DEVICE": "Input device index or name (default: system default).",
    # OpenAI-compatible services
    "VTASKS_OPENAI_API_KEY": "API key for transcription and extraction (falls back to OPENAI_API_KEY).",
    "VTASKS_OPENAI_BASE_URL": "Base URL (default: https://api.openai.com/v1).",
    "VTASKS_LLM_API_KEY": "Separate key for task extraction (default: the OpenAI key).",
    "VTASKS_LLM_BASE_URL": "Separate base URL for task extraction, e.g. OpenRouter.",
    "VTASKS_LLM_MODELS": "Comma/space separated list of models to try in order.",
    "VTASKS_HTTP_REFERER": "Optional OpenRouter metadata header.",
    "VTASKS_APP_TITLE": "Optional OpenRouter metadata header title.",
    "VTASKS_LLM_FIRST_TOKEN_TIMEOUT_SECONDS": "Give up on a model with no first token after N seconds (default: 20).",
    "VTASKS_LLM_READ_TIMEOUT_SECONDS": "HTTP read timeout (default: 25).",
    "VTASKS_LLM_CONNECT_TIMEOUT_SECONDS": "HTTP connect timeout (default: 5).",
    # Pipeline
    "VTASKS_TRANSCRIPTION_MODEL": "Speech-to-text model (default: whisper-1).",
    "VTASKS_TRANSCRIPTION_LOCALE": "Locale of the speaker (default: en-US).",
    "VTASKS_TRANSCRIPTION_TIMEOUT_SECONDS": "Overall transcription timeout (default: 60).",
    "VTASKS_EXTRACTION_TIMEOUT_SECONDS": "Overall extraction timeout (default: 45).",
    # Feedback
    "VTASKS_FEEDBACK_BELL": "Ring the terminal bell on record/success/error (true/false).",
}
