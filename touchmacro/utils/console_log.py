"""Console log sink — displays timestamped ``log_message`` signals on stderr."""
from __future__ import annotations

import sys
from datetime import datetime
from typing import TextIO

from PySide6.QtCore import QObject, Slot

_LEVEL_COLORS: dict[str, str] = {
    "INFO":    "\x1b[37m",
    "SUCCESS": "\x1b[36m",
    "WARNING": "\x1b[33m",
    "ERROR":   "\x1b[31m",
    "DEBUG":   "\x1b[90m",
}
_RESET = "\x1b[0m"

_LEVEL_ORDER: dict[str, int] = {
    "DEBUG": 0, "INFO": 1, "SUCCESS": 1, "WARNING": 2, "ERROR": 3,
}


class ConsoleLog(QObject):
    """Writes ``[HH:MM:SS.mmm] [LEVEL  ] message`` lines.

    Lives in the main thread, so signals emitted from the playback thread
    are queued here instead of interleaving on the stream.
    """

    def __init__(self, stream: TextIO | None = None, verbose: bool = False) -> None:
        super().__init__()
        self._stream  = stream or sys.stderr
        self._min     = 0 if verbose else 1
        self._color   = hasattr(self._stream, "isatty") and self._stream.isatty()

    @Slot(str, str)
    def log(self, level: str, message: str) -> None:
        """Append a timestamped, colour-coded log entry."""
        level = level.upper()
        if _LEVEL_ORDER.get(level, 1) < self._min:
            return
        ts = datetime.now().strftime("%H:%M:%S.%f")[:-3]
        line = f"[{ts}] [{level:7}] {message}"
        if self._color:
            line = f"{_LEVEL_COLORS.get(level, '')}{line}{_RESET}"
        print(line, file=self._stream, flush=True)
