"""Global hotkey manager — system-wide keyboard shortcuts via pynput.

Listens for key combinations defined in settings.ini [HOTKEYS] and
emits Qt signals that the session controller can connect to.  A command
line session has no window to receive key presses, so global hotkeys are
the only way to end a recording or interrupt a playback.

The listener runs in a daemon thread and is stopped when stop() is called.
"""
from __future__ import annotations

from typing import Callable

from PySide6.QtCore import QObject, Signal

from pynput import keyboard

_DEFAULTS: dict[str, str] = {
    "record_stop":   "Ctrl+Shift+S",
    "record_cancel": "Ctrl+Shift+X",
    "play_stop":     "Ctrl+Shift+X",
}


def _parse_hotkey(combo_str: str) -> str | None:
    """Convert 'Ctrl+Shift+R' into pynput GlobalHotKeys format '<ctrl>+<shift>+r'.

    Returns None if the combo string is empty or unparseable.
    """
    if not combo_str or not combo_str.strip():
        return None

    _MAP = {
        "CTRL":  "<ctrl>",
        "ALT":   "<alt>",
        "SHIFT": "<shift>",
        "WIN":   "<cmd>",
        "SUPER": "<cmd>",
        "ESC":   "<esc>",
    }

    parts = [p.strip() for p in combo_str.split("+")]
    if any(not p for p in parts):
        return None
    result: list[str] = []
    for p in parts:
        upper = p.upper()
        if upper in _MAP:
            result.append(_MAP[upper])
        elif len(p) == 1:
            result.append(p.lower())
        else:
            # Function keys and other named keys
            result.append(f"<{p.lower()}>")
    return "+".join(result)


class HotkeyManager(QObject):
    """Manages the global hotkeys that end a session.

    Signals
    -------
    stop_triggered   : save the recording / stop playback
    cancel_triggered : discard the recording
    """

    stop_triggered   = Signal()
    cancel_triggered = Signal()

    def __init__(self, settings, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._settings = settings
        self._listener: keyboard.GlobalHotKeys | None = None

    def combo(self, name: str) -> str:
        """Human-readable combo for ``name`` as configured."""
        return self._settings.get("HOTKEYS", name, _DEFAULTS.get(name, ""))

    def start(self, mode: str = "record") -> None:
        """Start listening; ``mode`` is "record" or "play"."""
        if self._listener is not None:
            return

        hotkeys: dict[str, Callable] = {}
        if mode == "record":
            stop_combo   = _parse_hotkey(self.combo("record_stop"))
            cancel_combo = _parse_hotkey(self.combo("record_cancel"))
        else:
            stop_combo   = _parse_hotkey(self.combo("play_stop"))
            cancel_combo = None

        if stop_combo:
            hotkeys[stop_combo] = self.stop_triggered.emit
        if cancel_combo and cancel_combo != stop_combo:
            hotkeys[cancel_combo] = self.cancel_triggered.emit

        if not hotkeys:
            return

        self._listener = keyboard.GlobalHotKeys(hotkeys)
        self._listener.daemon = True
        self._listener.start()

    def stop(self) -> None:
        """Stop the global hotkey listener."""
        if self._listener is not None:
            self._listener.stop()
            self._listener = None
