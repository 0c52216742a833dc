"""Tests for the pynput-backed pieces: executor, pointer capture, hotkey parsing."""
from unittest.mock import MagicMock, call, patch

import pytest

pynput = pytest.importorskip("pynput", reason="pynput requires display server", exc_type=ImportError)
from pynput import mouse

from touchmacro.core.hotkey_manager import _parse_hotkey
from touchmacro.core.input_capture import PointerCapture
from touchmacro.core.models import ActionType
from touchmacro.core.pynput_executor import PynputGestureExecutor
from touchmacro.core.recorder import TouchRecorder


@pytest.fixture
def controller():
    with patch("touchmacro.core.pynput_executor.mouse.Controller") as cls, \
         patch("touchmacro.core.pynput_executor.time.sleep"):
        yield cls.return_value


class TestPynputExecutor:
    def test_tap(self, controller):
        ex = PynputGestureExecutor()
        assert ex.tap(10.4, 20.6) is True
        assert controller.position == (10, 20)
        assert controller.method_calls == [call.press(mouse.Button.left),
                                           call.release(mouse.Button.left)]

    def test_drag_interpolates_and_releases(self, controller):
        positions = []
        type(controller).position = property(lambda self: None,
                                             lambda self, v: positions.append(v))
        ex = PynputGestureExecutor()
        assert ex.drag(0, 0, 100, 0, 100) is True
        assert positions[0] == (0, 0)
        assert positions[-1] == (100, 0)
        assert len(positions) == 1 + 100 // 10
        assert controller.release.called

    def test_drag_failure_still_releases(self, controller):
        logs = []
        ex = PynputGestureExecutor(log_callback=lambda l, m: logs.append(l))
        with patch("touchmacro.core.pynput_executor.time.sleep", side_effect=OSError("boom")):
            assert ex.drag(0, 0, 10, 10, 100) is False
        controller.release.assert_called_once_with(mouse.Button.left)
        assert logs == ["ERROR"]

    def test_tap_failure(self, controller):
        controller.press.side_effect = RuntimeError("no display")
        ex = PynputGestureExecutor()
        assert ex.tap(1, 1) is False


class TestPointerCapture:
    @pytest.fixture
    def recorder(self, memory_repo, clock):
        r = TouchRecorder(memory_repo, clock=clock)
        r.start_recording()
        return r

    def test_left_button_drag(self, recorder, clock):
        cap = PointerCapture(recorder)
        cap._on_move(0, 0)                                    # not pressed: ignored
        cap._on_click(0, 0, mouse.Button.left, True)
        clock.advance(30)
        cap._on_move(40, 0)
        clock.advance(30)
        cap._on_click(80, 0, mouse.Button.left, False)
        assert [a.action_type for a in recorder.actions] == [
            ActionType.DRAG_START, ActionType.DRAG_MOVE, ActionType.DRAG_END,
        ]

    def test_other_buttons_ignored(self, recorder):
        cap = PointerCapture(recorder)
        cap._on_click(5, 5, mouse.Button.right, True)
        cap._on_click(5, 5, mouse.Button.right, False)
        assert recorder.actions == []

    def test_release_without_press_ignored(self, recorder):
        cap = PointerCapture(recorder)
        cap._on_click(5, 5, mouse.Button.left, False)
        assert recorder.actions == []

    def test_stop_when_not_started(self, recorder):
        cap = PointerCapture(recorder)
        cap.stop()
        assert not cap.is_running


class TestParseHotkey:
    def test_modifiers(self):
        assert _parse_hotkey("Ctrl+Shift+S") == "<ctrl>+<shift>+s"

    def test_named_key(self):
        assert _parse_hotkey("Alt+F9") == "<alt>+<f9>"

    def test_escape(self):
        assert _parse_hotkey("Esc") == "<esc>"

    def test_empty(self):
        assert _parse_hotkey("") is None
        assert _parse_hotkey("   ") is None

    def test_dangling_plus(self):
        assert _parse_hotkey("Ctrl+") is None
