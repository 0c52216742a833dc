"""Centralised tunables and magic numbers.

All numeric constants that control runtime behaviour are collected here
so they are easy to find, document, and adjust.  Every value can be
overridden per target platform from settings.ini (see settings_manager.py).
"""

# ---------------------------------------------------------------------------
# Recorder  (touchmacro/core/recorder.py)
# ---------------------------------------------------------------------------
MOVE_THRESHOLD_PX = 5      # |dx| or |dy| must exceed this to record DRAG_MOVE
TAP_MAX_MS        = 200    # down→up within this and no DRAG_MOVE → TAP
NOT_SAVED         = -1     # stop_recording_and_save() result when nothing saved

# ---------------------------------------------------------------------------
# Player  (touchmacro/core/player.py)
# ---------------------------------------------------------------------------
MIN_DRAG_DURATION_MS  = 100   # floor for any drag handed to the executor
DRAG_MOVE_DURATION_MS = 100   # nominal duration of one DRAG_MOVE segment
SETTLE_MIN_MS         = 50    # settle delay after a drag: max(this, dur / divisor)
SETTLE_DIVISOR        = 5
SLEEP_CHUNK_S         = 0.05  # seconds between stop-event polls during waits

# ---------------------------------------------------------------------------
# Executors  (touchmacro/core/gesture_executor.py)
# ---------------------------------------------------------------------------
TAP_HOLD_MS   = 1       # press→release interval of a synthesized tap
DRAG_STEP_MS  = 10      # interval between interpolated pointer moves
ADB_TIMEOUT_S = 5.0     # per `adb shell input` call
