# src/voice_tasks/llm/extractor.py

"""
Task extraction client.

Sends one utterance to the language service and gets back an ordered list of
short task descriptions. The wire contract with the model is a single JSON
object: {"tasks": ["...", "..."]}.

- order is preserved exactly as returned
- blank / non-string items are dropped (they could never become tasks)
- an empty list is a normal result, not an error
- service errors, timeouts and unparseable replies raise ExtractionFailed
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from ..core.ports import LLMClient
from ..errors import ExtractionFailed

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 45.0

TASK_EXTRACTION_SYSTEM_PROMPT = """
You are a task extraction module for a personal to-do list.

You do NOT chat with the user.

Input: one transcribed voice note. It may describe zero, one or several tasks.

Return ONLY a JSON object:
  {"tasks": ["<task 1>", "<task 2>", ...]}

Rules:
- One entry per distinct, actionable task, in the order they were mentioned.
- Each entry is short imperative text (e.g. "Buy milk", "Call Alice").
- Keep names, dates and quantities the user said; do not invent details.
- Do not merge separate tasks; do not split one task into steps.
- If the note contains no task, return {"tasks": []}.
- No markdown, no comments, no extra keys.
""".strip()


_DECODER = json.JSONDecoder()


def _decode_first_json(text: str) -> Any:
    """
    Decode the first JSON object or array found in `text`.

    Openers are tried in order of position; whatever follows the decoded value
    (trailing prose, closing code fences) is ignored.
    """
    for idx, ch in enumerate(text):
        if ch not in "{[":
            continue
        try:
            value, _end = _DECODER.raw_decode(text, idx)
        except json.JSONDecodeError:
            continue
        return value
    raise ValueError("reply contains no JSON object or array")


def parse_task_list(raw: str) -> list[str]:
    """
    Parse the model reply into task strings.

    Accepts the reply wrapped in prose or code fences, and a bare JSON array
    as a lenient alias for {"tasks": [...]}. Raises ValueError on anything else.
    """
    text = (raw or "").strip()
    if not text:
        raise ValueError("empty reply")

    payload = _decode_first_json(text)

    if isinstance(payload, dict):
        items = payload.get("tasks")
    else:
        items = payload

    if not isinstance(items, list):
        raise ValueError("reply has no 'tasks' list")

    out: list[str] = []
    for item in items:
        if not isinstance(item, str):
            continue
        s = " ".join(item.split())
        if s:
            out.append(s)
    return out


class TaskExtractionClient:
    """Single-shot async facade over a (blocking, streaming) LLMClient."""

    def __init__(
        self,
        llm: LLMClient,
        *,
        timeout_seconds: float | None = DEFAULT_TIMEOUT_SECONDS,
        system_prompt: str = TASK_EXTRACTION_SYSTEM_PROMPT,
    ) -> None:
        self._llm = llm
        self._timeout = timeout_seconds
        self._system_prompt = system_prompt

    def _collect(self, utterance: str) -> str:
        raw = ""
        for piece in self._llm.stream_chat(
            [{"role": "user", "content": utterance}],
            self._system_prompt,
        ):
            raw += piece
        return raw

    async def extract_tasks(self, utterance: str) -> list[str]:
        text = (utterance or "").strip()
        if not text:
            return []

        try:
            raw = await asyncio.wait_for(asyncio.to_thread(self._collect, text), timeout=self._timeout)
        except asyncio.TimeoutError as e:
            logger.warning("Task extraction timed out after %.1fs", self._timeout or 0.0)
            raise ExtractionFailed("Task extraction timed out.", e) from e
        except Exception as e:
            logger.warning("Task extraction call failed: %r", e)
            raise ExtractionFailed("Task extraction failed.", e) from e

        try:
            tasks = parse_task_list(raw)
        except (ValueError, TypeError) as e:
            logger.warning("Task extraction reply unparseable: %r", (raw or "")[:500])
            raise ExtractionFailed("Task extraction returned an unreadable reply.", e) from e

        logger.info("Extracted %d task(s) from utterance", len(tasks))
        logger.debug("Extracted tasks=%s", json.dumps(tasks, ensure_ascii=False)[:2000])
        return tasks
