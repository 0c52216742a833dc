"""Desktop gesture executor — replays taps and drags with the system pointer."""
from __future__ import annotations

import time
from typing import Optional

from pynput import mouse

from touchmacro.core import constants
from touchmacro.core.gesture_executor import GestureExecutor, LogFn


class PynputGestureExecutor(GestureExecutor):
    """Left button down/up stands in for finger down/up.

    Drags are interpolated as straight-line pointer moves every
    ``drag_step_ms`` milliseconds while the button is held.
    """

    def __init__(self, settings=None, log_callback: Optional[LogFn] = None) -> None:
        self._mc      = mouse.Controller()
        self._log     = log_callback or (lambda level, msg: None)
        self._step_ms = settings.drag_step_ms if settings is not None else constants.DRAG_STEP_MS

    def tap(self, x: float, y: float) -> bool:
        try:
            self._mc.position = (int(x), int(y))
            self._mc.press(mouse.Button.left)
            time.sleep(constants.TAP_HOLD_MS / 1000.0)
            self._mc.release(mouse.Button.left)
        except Exception as exc:          # noqa: BLE001
            self._log("ERROR", f"tap({x:g}, {y:g}) failed: {exc!r}")
            return False
        return True

    def drag(self, x0: float, y0: float, x1: float, y1: float, duration_ms: int) -> bool:
        steps = max(1, int(duration_ms) // self._step_ms)
        pause = duration_ms / steps / 1000.0
        pressed = False
        try:
            self._mc.position = (int(x0), int(y0))
            self._mc.press(mouse.Button.left)
            pressed = True
            for i in range(1, steps + 1):
                time.sleep(pause)
                t = i / steps
                self._mc.position = (round(x0 + (x1 - x0) * t),
                                     round(y0 + (y1 - y0) * t))
        except Exception as exc:          # noqa: BLE001
            self._log("ERROR", f"drag({x0:g}, {y0:g} -> {x1:g}, {y1:g}) failed: {exc!r}")
            return False
        finally:
            if pressed:
                self._mc.release(mouse.Button.left)
        return True
