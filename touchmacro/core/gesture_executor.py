"""Gesture executors — synthesize a tap or a drag on a target surface.

The player only depends on ``GestureExecutor``.  Backends:

AdbGestureExecutor (this module)
    Drives an Android device through ``adb shell input tap|swipe``.
PynputGestureExecutor (pynput_executor.py)
    Drives the desktop pointer; the left button plays the part of the finger.

Executors report failure by returning False; they never raise for an
ordinary dispatch failure.
"""
from __future__ import annotations

import subprocess
import sys
from abc import ABC, abstractmethod
from typing import Callable, Optional

from touchmacro.core import constants

LogFn = Callable[[str, str], None]       # (level, message)

# Windows: keep adb from flashing a console window
CREATE_NO_WINDOW = 0x08000000 if sys.platform == "win32" else 0


class GestureExecutor(ABC):
    """Contract consumed by the player."""

    @abstractmethod
    def tap(self, x: float, y: float) -> bool:
        """Instantaneous tap at (x, y)."""

    @abstractmethod
    def drag(self, x0: float, y0: float, x1: float, y1: float, duration_ms: int) -> bool:
        """Straight drag from (x0, y0) to (x1, y1) lasting ``duration_ms``."""


class AdbGestureExecutor(GestureExecutor):
    """Replays gestures on an Android device via ``adb shell input``.

    Parameters
    ----------
    adb_path : str
        adb executable; resolved through PATH when bare.
    serial : str
        Device serial passed as ``-s``; empty targets the only device.
    """

    def __init__(
        self,
        adb_path: str = "adb",
        serial: str = "",
        log_callback: Optional[LogFn] = None,
        timeout: float = constants.ADB_TIMEOUT_S,
    ) -> None:
        self.adb_path = adb_path
        self.serial   = serial
        self._log     = log_callback or (lambda level, msg: None)
        self._timeout = timeout

    @classmethod
    def from_settings(cls, settings, log_callback: Optional[LogFn] = None) -> "AdbGestureExecutor":
        return cls(settings.adb_path, settings.adb_serial, log_callback)

    def tap(self, x: float, y: float) -> bool:
        return self._input(["tap", str(int(x)), str(int(y))])

    def drag(self, x0: float, y0: float, x1: float, y1: float, duration_ms: int) -> bool:
        return self._input([
            "swipe",
            str(int(x0)), str(int(y0)), str(int(x1)), str(int(y1)),
            str(int(duration_ms)),
        ])

    # ------------------------------------------------------------------

    def _command(self, args: list[str]) -> list[str]:
        cmd = [self.adb_path]
        if self.serial:
            cmd += ["-s", self.serial]
        return cmd + ["shell", "input"] + args

    def _input(self, args: list[str]) -> bool:
        # `input swipe` blocks for its duration, so the timeout must cover it
        timeout = self._timeout
        if args[0] == "swipe":
            timeout += int(args[-1]) / 1000.0
        try:
            result = subprocess.run(
                self._command(args),
                capture_output=True,
                text=True,
                timeout=timeout,
                creationflags=CREATE_NO_WINDOW,
            )
        except subprocess.TimeoutExpired:
            error = f"ADB timeout ({timeout:.1f}s)"
        except OSError as exc:
            error = str(exc)
        else:
            if result.returncode == 0:
                return True
            output = (result.stderr or result.stdout or "").strip()
            error = output or f"exit code {result.returncode}"

        self._log("WARNING", f"adb input {' '.join(args)}: {error}")
        return False
