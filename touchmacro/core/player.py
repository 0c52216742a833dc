"""Macro playback engine.

Architecture
------------
MacroPlayer (QObject, caller's thread)
  ├─ repository.get_macro_with_actions() — loaded once, copied
  └─ _PlaybackThread (QThread, one instance per play_macro() call)
       └─ executor.tap() / executor.drag() — one call per non-DRAG_START action

Each iteration: wait ``delay_ms`` → dispatch → (drag segments) settle wait.
Both waits poll a ``threading.Event`` every SLEEP_CHUNK_S, so
``stop_playback()`` from any thread ends the session before the next
dispatch.  An executor call already in flight is never interrupted.

Signals are emitted from the playback thread; Qt queues them to receivers
living in other threads.
"""
from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from PySide6.QtCore import QObject, QThread, Signal

from touchmacro.core import constants
from touchmacro.core.gesture_executor import GestureExecutor
from touchmacro.core.models import ActionType, Macro, MacroAction
from touchmacro.core.repository import MacroRepository

LogFn = Callable[[str, str], None]       # (level, message)

IDLE    = "idle"
PLAYING = "playing"


@dataclass(frozen=True)
class PlaybackTiming:
    """Empirical timing constants, tunable per target input pipeline."""

    min_drag_duration_ms:  int   = constants.MIN_DRAG_DURATION_MS
    drag_move_duration_ms: int   = constants.DRAG_MOVE_DURATION_MS
    settle_min_ms:         int   = constants.SETTLE_MIN_MS
    settle_divisor:        int   = constants.SETTLE_DIVISOR
    speed:                 float = 1.0

    @classmethod
    def from_settings(cls, settings) -> "PlaybackTiming":
        if settings is None:
            return cls()
        return cls(
            min_drag_duration_ms  = settings.min_drag_duration_ms,
            drag_move_duration_ms = settings.drag_move_duration_ms,
            settle_min_ms         = settings.settle_min_ms,
            settle_divisor        = settings.settle_divisor,
            speed                 = settings.playback_speed,
        )

    def drag_duration(self, action: MacroAction) -> int:
        recorded = (action.duration_ms if action.action_type is ActionType.DRAG_END
                    else self.drag_move_duration_ms)
        return max(self.min_drag_duration_ms, recorded)

    def settle_delay(self, segment_ms: int) -> int:
        return max(self.settle_min_ms, segment_ms // self.settle_divisor)


class _Cancelled(Exception):
    pass


# ---------------------------------------------------------------------------
# Worker thread
# ---------------------------------------------------------------------------

class _PlaybackThread(QThread):

    def __init__(
        self,
        macro:       Macro,
        executor:    GestureExecutor,
        timing:      PlaybackTiming,
        stop_event:  threading.Event,
        log_fn:      LogFn,
        on_action:   Callable[[int, int, MacroAction], None],
        on_finished: Callable[[], None],
    ) -> None:
        super().__init__()
        self._macro       = macro
        self._executor    = executor
        self._timing      = timing
        self._stop_event  = stop_event
        self._log         = log_fn
        self._on_action   = on_action
        self._on_finished = on_finished
        self._done        = 0

    # ------------------------------------------------------------------

    def run(self) -> None:
        try:
            self._play()
            self._log("SUCCESS", f"Playback complete ({self._done} actions)")
        except _Cancelled:
            self._log("INFO", f"Playback cancelled ({self._done} actions executed)")
        except Exception as exc:          # noqa: BLE001
            self._log("ERROR", f"Playback error: {exc!r}")
        finally:
            self._on_finished()

    def _play(self) -> None:
        actions  = self._macro.ordered_actions()
        total    = len(actions)
        previous: Optional[MacroAction] = None

        for i, action in enumerate(actions, start=1):
            self._check_stop()
            if action.delay_ms > 0:
                self._sleep(action.delay_ms)
            self._check_stop()

            self._log("DEBUG", f"Executing action {i}/{total}: {action}")
            segment_ms = self._dispatch(action, previous)
            self._done += 1
            self._on_action(i, total, action)

            if segment_ms is not None:
                # Let the drag finish before the next action's own delay starts
                self._sleep(self._timing.settle_delay(segment_ms))

            previous = action

    def _dispatch(self, action: MacroAction, previous: Optional[MacroAction]) -> Optional[int]:
        """Run one action; return the drag duration handed to the executor, if any."""
        kind = action.action_type

        if not kind.is_drag_segment:
            if kind is ActionType.TAP and not self._executor.tap(action.x, action.y):
                self._log("WARNING", f"Tap at ({action.x:g}, {action.y:g}) was not dispatched")
            return None

        x0, y0 = previous.point if previous is not None else action.point
        duration = self._timing.drag_duration(action)
        if not self._executor.drag(x0, y0, action.x, action.y, duration):
            self._log("WARNING", f"Drag to ({action.x:g}, {action.y:g}) was not dispatched")
        return duration

    # ------------------------------------------------------------------
    # Timing helpers
    # ------------------------------------------------------------------

    def _check_stop(self) -> None:
        if self._stop_event.is_set():
            raise _Cancelled()

    def _sleep(self, ms: float) -> None:
        """Sleep for ``ms`` milliseconds (scaled by speed).

        Breaks into SLEEP_CHUNK_S chunks so the stop event is polled
        frequently; raises _Cancelled as soon as it is seen.
        """
        speed   = max(0.01, self._timing.speed)
        target  = ms / speed / 1000.0
        elapsed = 0.0
        while elapsed < target:
            self._check_stop()
            t = min(constants.SLEEP_CHUNK_S, target - elapsed)
            time.sleep(t)
            elapsed += t
        self._check_stop()


# ---------------------------------------------------------------------------
# Public player
# ---------------------------------------------------------------------------

class MacroPlayer(QObject):
    """Replays stored macros through a gesture executor.

    Parameters
    ----------
    repository : MacroRepository
    executor : GestureExecutor
    settings : SettingsManager, optional
        Source of the playback timing; constants are used when omitted.

    Signals
    -------
    playback_started / playback_stopped
        Exactly one stopped per play_macro call that gets past the
        already-playing guard; started only when a macro actually runs.
    status_changed(str)
        "playing" | "stopped".
    progress(int, int)
        (actions executed, total actions).
    action_executed(object)
        The ``MacroAction`` just dispatched.
    log_message(str, str)
        (level, message).
    """

    playback_started = Signal()
    playback_stopped = Signal()
    status_changed   = Signal(str)
    progress         = Signal(int, int)
    action_executed  = Signal(object)
    log_message      = Signal(str, str)

    def __init__(
        self,
        repository: MacroRepository,
        executor:   GestureExecutor,
        settings=None,
    ) -> None:
        super().__init__()
        self._repository = repository
        self._executor   = executor
        self._settings   = settings
        self._state      = IDLE
        self._stop_event = threading.Event()
        self._thread: Optional[_PlaybackThread] = None

    # ------------------------------------------------------------------

    @property
    def state(self) -> str:
        return self._state

    @property
    def is_playing(self) -> bool:
        return self._state == PLAYING

    def play_macro(self, macro_id: int) -> bool:
        """Start replaying ``macro_id`` in the background.

        Returns False when a playback is already running (silently) or the
        macro is missing, empty or unreadable. In the latter cases
        ``playback_stopped`` still fires once, as after a normal run.
        """
        if self._state == PLAYING:
            self.log_message.emit("WARNING", "Tried to play macro when already playing")
            return False

        try:
            macro = self._repository.get_macro_with_actions(macro_id)
        except Exception as exc:          # noqa: BLE001
            self.log_message.emit("ERROR", f"Loading macro {macro_id} failed: {exc!r}")
            self._on_finished()
            return False

        if macro is None or not macro.actions:
            self.log_message.emit("WARNING", f"Macro with ID {macro_id} not found or has no actions")
            self._on_finished()
            return False

        if self._thread is not None:
            # Previous run has already reported back; let QThread wind down
            self._thread.wait()

        self._stop_event = threading.Event()
        self._thread = _PlaybackThread(
            macro       = macro.snapshot(),
            executor    = self._executor,
            timing      = PlaybackTiming.from_settings(self._settings),
            stop_event  = self._stop_event,
            log_fn      = self.log_message.emit,
            on_action   = self._on_action,
            on_finished = self._on_finished,
        )

        self._state = PLAYING
        self.log_message.emit(
            "INFO", f"Starting playback of macro '{macro.name}' with {len(macro.actions)} actions"
        )
        self.playback_started.emit()
        self.status_changed.emit("playing")
        self._thread.start()
        return True

    def stop_playback(self) -> None:
        """Request cancellation; safe to call from any thread."""
        if self._state != PLAYING:
            return
        self.log_message.emit("INFO", "Stopping macro playback")
        self._stop_event.set()

    def wait(self, timeout_ms: Optional[int] = None) -> bool:
        """Block until the current playback thread has finished."""
        if self._thread is None:
            return True
        if timeout_ms is None:
            return self._thread.wait()
        return self._thread.wait(timeout_ms)

    # ------------------------------------------------------------------
    # Callbacks from the playback thread
    # ------------------------------------------------------------------

    def _on_action(self, done: int, total: int, action: MacroAction) -> None:
        self.progress.emit(done, total)
        self.action_executed.emit(action)

    def _on_finished(self) -> None:
        self._state = IDLE
        self.playback_stopped.emit()
        self.status_changed.emit("stopped")
