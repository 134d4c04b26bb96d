# src/voice_tasks/core/feedback.py

from __future__ import annotations

import contextlib
import logging
import sys
from typing import TextIO

logger = logging.getLogger(__name__)


class NullFeedback:
    """Feedback port that does nothing (default)."""

    def impact(self) -> None:
        return

    def success(self) -> None:
        return

    def error(self) -> None:
        return


class BellFeedback:
    """Terminal bell: one ring for impact/success, two for errors. TTY only."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream or sys.stdout

    def _ring(self, times: int = 1) -> None:
        with contextlib.suppress(Exception):
            if not self._stream.isatty():
                return
            self._stream.write("\a" * times)
            self._stream.flush()

    def impact(self) -> None:
        self._ring()

    def success(self) -> None:
        self._ring()

    def error(self) -> None:
        self._ring(2)
