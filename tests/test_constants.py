"""Tests for touchmacro.core.constants — verify documented values and types."""
from touchmacro.core import constants


class TestRecorderConstants:
    def test_move_threshold(self):
        assert constants.MOVE_THRESHOLD_PX == 5

    def test_tap_max_ms(self):
        assert constants.TAP_MAX_MS == 200

    def test_not_saved_is_negative(self):
        assert constants.NOT_SAVED < 0


class TestPlayerConstants:
    def test_min_drag_duration(self):
        assert constants.MIN_DRAG_DURATION_MS == 100

    def test_settle(self):
        assert constants.SETTLE_MIN_MS == 50
        assert constants.SETTLE_DIVISOR == 5

    def test_drag_move_duration(self):
        assert isinstance(constants.DRAG_MOVE_DURATION_MS, int)
        assert constants.DRAG_MOVE_DURATION_MS > 0

    def test_sleep_chunk(self):
        assert isinstance(constants.SLEEP_CHUNK_S, float)
        assert 0 < constants.SLEEP_CHUNK_S < 1.0


class TestExecutorConstants:
    def test_drag_step(self):
        assert isinstance(constants.DRAG_STEP_MS, int)
        assert constants.DRAG_STEP_MS > 0

    def test_adb_timeout(self):
        assert constants.ADB_TIMEOUT_S > 0
