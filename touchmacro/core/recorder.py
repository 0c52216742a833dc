"""Touch recording engine.

Consumes raw pointer events (down / move / up) and turns them into an
ordered list of ``MacroAction`` objects.  Classification happens on the
fly:

    down            → DRAG_START appended immediately
    move (> 5 px)   → DRAG_MOVE
    up, quick+still → the pending DRAG_START is re-tagged TAP in place
    up, otherwise   → DRAG_END carrying the whole gesture duration

Typical recorded output for a tap followed by a short swipe:
    #0 TAP        (120, 300) +0ms
    #1 DRAG_START (100, 800) +912ms
    #2 DRAG_MOVE  (100, 640) +40ms
    #3 DRAG_END   (100, 420) +45ms dur=85ms

The recorder is a single-writer state machine: callers (the input capture
thread, a UI thread) must serialize calls into it.  Calls made in the wrong
state are logged as warnings and ignored.
"""
from __future__ import annotations

import time
from datetime import datetime
from typing import Callable, Optional

from PySide6.QtCore import QObject, Signal

from touchmacro.core import constants
from touchmacro.core.models import ActionType, Macro, MacroAction
from touchmacro.core.repository import MacroRepository

Clock = Callable[[], float]       # monotonic seconds

IDLE      = "idle"
RECORDING = "recording"


# ---------------------------------------------------------------------------
# Stopwatch
# ---------------------------------------------------------------------------

class _Stopwatch:
    """Elapsed-time counter in whole milliseconds."""

    def __init__(self, clock: Clock) -> None:
        self._clock   = clock
        self._started: Optional[float] = None
        self._frozen  = 0.0     # seconds accumulated when stopped

    def restart(self) -> None:
        self._started = self._clock()
        self._frozen  = 0.0

    def stop(self) -> None:
        if self._started is not None:
            self._frozen  = self._clock() - self._started
            self._started = None

    def reset(self) -> None:
        self._started = None
        self._frozen  = 0.0

    @property
    def elapsed_ms(self) -> int:
        if self._started is None:
            return round(self._frozen * 1000)
        return round((self._clock() - self._started) * 1000)


# ---------------------------------------------------------------------------
# Recorder
# ---------------------------------------------------------------------------

class TouchRecorder(QObject):
    """Classifies pointer events into macro actions and saves them.

    Signals
    -------
    status_changed(str)
        Emits "recording" on start, "stopped" on stop/save or cancel.
    action_recorded(object)
        Emitted with the ``MacroAction`` after each append.
    log_message(str, str)
        (level, message) for the log sink.
    """

    status_changed  = Signal(str)
    action_recorded = Signal(object)
    log_message     = Signal(str, str)

    def __init__(
        self,
        repository: MacroRepository,
        settings=None,
        clock: Clock = time.monotonic,
    ) -> None:
        super().__init__()
        self._repository = repository
        self._settings   = settings
        self._clock      = clock
        self._state      = IDLE

        self._since_last = _Stopwatch(clock)   # delay since the previous action
        self._gesture    = _Stopwatch(clock)   # down → up duration

        self._actions: list[MacroAction] = []
        self._seq            = 0
        self._dragging       = False
        self._had_drag_move  = False
        self._last_drag_pt   = (0.0, 0.0)
        self._move_threshold = float(constants.MOVE_THRESHOLD_PX)
        self._tap_max_ms     = constants.TAP_MAX_MS

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def state(self) -> str:
        return self._state

    @property
    def is_recording(self) -> bool:
        return self._state == RECORDING

    @property
    def actions(self) -> list[MacroAction]:
        """Copy of the actions buffered so far."""
        return [a.copy() for a in self._actions]

    def start_recording(self) -> None:
        if self._state != IDLE:
            self._warn("Tried to start recording when already recording")
            return

        if self._settings is not None:
            self._move_threshold = float(self._settings.move_threshold_px)
            self._tap_max_ms     = self._settings.tap_max_ms

        self._actions       = []
        self._seq           = 0
        self._dragging      = False
        self._had_drag_move = False
        self._gesture.reset()
        self._since_last.restart()
        self._state = RECORDING

        self.log_message.emit("INFO", "Recording started")
        self.status_changed.emit("recording")

    def record_touch_down(self, x: float, y: float) -> None:
        if self._state != RECORDING:
            self._warn("Tried to record touch down when not recording")
            return
        if self._dragging:
            self._warn(f"Touch down at ({x:g}, {y:g}) while a gesture is in progress; ignored")
            return

        delay_ms = self._take_delay()

        self._dragging      = True
        self._had_drag_move = False
        self._last_drag_pt  = (x, y)
        self._gesture.restart()

        self._append(x, y, delay_ms, ActionType.DRAG_START)

    def record_touch_move(self, x: float, y: float) -> None:
        if self._state != RECORDING or not self._dragging:
            return

        lx, ly = self._last_drag_pt
        if abs(x - lx) <= self._move_threshold and abs(y - ly) <= self._move_threshold:
            return

        delay_ms = self._take_delay()
        self._had_drag_move = True
        self._last_drag_pt  = (x, y)
        self._append(x, y, delay_ms, ActionType.DRAG_MOVE)

    def record_touch_up(self, x: float, y: float) -> None:
        if self._state != RECORDING:
            self._warn("Tried to record touch up when not recording")
            return

        delay_ms = self._take_delay()

        was_dragging   = self._dragging
        self._dragging = False
        self._gesture.stop()
        duration_ms = self._gesture.elapsed_ms

        if not was_dragging:
            # Release with no matching press (capture started mid-hold)
            if not self._actions:
                self.log_message.emit("DEBUG", f"Dropped release at ({x:g}, {y:g}) before any action")
                return
            self._append(x, y, delay_ms, ActionType.TAP)
            return

        if self._had_drag_move or duration_ms > self._tap_max_ms:
            self._append(x, y, delay_ms, ActionType.DRAG_END, duration_ms)
            return

        start = self._actions[-1]
        start.action_type = ActionType.TAP
        self.log_message.emit("DEBUG", f"Converted drag start to tap at ({start.x:g}, {start.y:g})")
        self.action_recorded.emit(start.copy())

    def record_tap(self, x: float, y: float) -> None:
        """Append a TAP directly, bypassing down/up classification."""
        if self._state != RECORDING:
            self._warn("Tried to record tap when not recording")
            return
        self._append(x, y, self._take_delay(), ActionType.TAP)

    def stop_recording_and_save(self, name: str) -> int:
        """Finish the session and persist it.

        Returns the new macro id, or ``NOT_SAVED`` when nothing was recorded
        or the repository failed.
        """
        if self._state != RECORDING:
            self._warn("Tried to stop recording when not recording")
            return constants.NOT_SAVED

        if self._dragging:
            # Stopped mid-gesture: close it where the finger was last seen
            self.record_touch_up(*self._last_drag_pt)

        actions = self._finish()
        self.log_message.emit("INFO", f"Recording stopped with {len(actions)} actions")

        if not actions:
            self._warn("No actions were recorded")
            return constants.NOT_SAVED

        macro = Macro(
            name         = name,
            created_at   = datetime.now(),
            action_count = len(actions),
            actions      = actions,
        )
        try:
            macro_id = self._repository.save_macro(macro)
        except Exception as exc:          # noqa: BLE001
            self.log_message.emit("ERROR", f"Saving macro '{name}' failed: {exc!r}")
            return constants.NOT_SAVED

        self.log_message.emit("SUCCESS", f"Saved macro '{name}' (id={macro_id})")
        return macro_id

    def cancel_recording(self) -> None:
        if self._state != RECORDING:
            return
        self._finish()
        self.log_message.emit("INFO", "Recording cancelled")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _take_delay(self) -> int:
        """Elapsed ms since the previous action; restarts the clock."""
        delay_ms = max(0, self._since_last.elapsed_ms)
        self._since_last.restart()
        return delay_ms

    def _append(
        self,
        x: float,
        y: float,
        delay_ms: int,
        action_type: ActionType,
        duration_ms: int = 0,
    ) -> None:
        action = MacroAction(
            x               = x,
            y               = y,
            delay_ms        = delay_ms,
            sequence_number = self._seq,
            action_type     = action_type,
            duration_ms     = duration_ms,
        )
        self._seq += 1
        self._actions.append(action)
        self.log_message.emit("DEBUG", f"Recorded {action}")
        self.action_recorded.emit(action.copy())

    def _finish(self) -> list[MacroAction]:
        """Stop clocks, return to IDLE and hand over the buffer."""
        self._since_last.stop()
        self._gesture.stop()
        self._dragging = False
        self._state    = IDLE
        actions, self._actions = self._actions, []
        self.status_changed.emit("stopped")
        return actions

    def _warn(self, msg: str) -> None:
        self.log_message.emit("WARNING", msg)
