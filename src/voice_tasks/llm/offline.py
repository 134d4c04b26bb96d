# src/voice_tasks/llm/offline.py

from __future__ import annotations

import json
import re
from collections.abc import Iterable

from ..core.ports import ChatMessage

_SPLIT_RE = re.compile(r"[.!?;,\n]+|\b(?:and then|then|and also|and)\b", re.IGNORECASE)
_FILLER_RE = re.compile(
    r"^(?:(?:please|ok(?:ay)?|so|also|remind me to|i need to|i have to|i should|i must|don't forget to)\s+)+",
    re.IGNORECASE,
)


def split_utterance(text: str) -> list[str]:
    """Naive clause splitter: punctuation and and/then conjunctions."""
    out: list[str] = []
    for part in _SPLIT_RE.split(text or ""):
        item = _FILLER_RE.sub("", (part or "").strip()).strip()
        if item:
            out.append(item[0].upper() + item[1:])
    return out


class OfflineLLMClient:
    """
    Offline deterministic LLM client used for demos when no external API is configured.

    Behavior:
    - Task extraction prompts -> returns {"tasks": [...]} built by split_utterance()
    - Anything else -> a short notice that no LLM is configured
    """

    def stream_chat(self, messages: list[ChatMessage], system_prompt: str) -> Iterable[str]:
        user_text = ""
        for m in reversed(messages):
            if m["role"] == "user":
                user_text = m["content"]
                break

        if "task extraction" in (system_prompt or "").lower():
            yield json.dumps({"tasks": split_utterance(user_text)}, ensure_ascii=False)
            return

        yield (
            "Offline demo mode: no external LLM is configured.\n"
            "Set VTASKS_OPENAI_API_KEY (and VTASKS_LLM_MODELS) to enable real extraction."
        )
