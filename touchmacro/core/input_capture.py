"""Pointer capture — feeds a TouchRecorder from global mouse events.

The left mouse button stands in for a finger: press → touch down, motion
while pressed → touch move, release → touch up.  pynput delivers events on
its own daemon thread; every call into the recorder happens under
``_lock`` so the recorder still sees a single writer.
"""
from __future__ import annotations

import threading
from typing import Optional

from pynput import mouse

from touchmacro.core.recorder import TouchRecorder


class PointerCapture:
    """Bridges a pynput mouse listener to ``TouchRecorder``."""

    def __init__(self, recorder: TouchRecorder, button: mouse.Button = mouse.Button.left) -> None:
        self._recorder = recorder
        self._button   = button
        self._pressed  = False
        self._lock     = threading.Lock()
        self._listener: Optional[mouse.Listener] = None

    @property
    def is_running(self) -> bool:
        return self._listener is not None

    def start(self) -> None:
        if self._listener is not None:
            return
        self._pressed  = False
        self._listener = mouse.Listener(on_move=self._on_move, on_click=self._on_click)
        self._listener.daemon = True
        self._listener.start()

    def stop(self) -> None:
        """Stop listening; no recorder call happens after this returns."""
        if self._listener is None:
            return
        listener, self._listener = self._listener, None
        listener.stop()
        if listener is not threading.current_thread():
            listener.join()
        with self._lock:
            self._pressed = False

    # ------------------------------------------------------------------
    # Mouse callbacks  (called from mouse listener thread)
    # ------------------------------------------------------------------

    def _on_move(self, x: int, y: int) -> None:
        with self._lock:
            if self._pressed:
                self._recorder.record_touch_move(float(x), float(y))

    def _on_click(self, x: int, y: int, button: mouse.Button, pressed: bool) -> None:
        if button != self._button:
            return
        with self._lock:
            if pressed:
                self._pressed = True
                self._recorder.record_touch_down(float(x), float(y))
            elif self._pressed:
                self._pressed = False
                self._recorder.record_touch_up(float(x), float(y))
