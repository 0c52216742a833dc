"""Touch Macro — Entry point.

Builds every component once (settings → repository → executor → recorder
/ player) and hands explicit references to whichever command needs them.

    python main.py list
    python main.py record "Daily login"     # Ctrl+Shift+S saves, Ctrl+Shift+X cancels
    python main.py play 3                   # Ctrl+Shift+X stops
    python main.py rename 3 "Login v2"
    python main.py delete 3
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

from PySide6.QtCore import QCoreApplication, QObject, Slot

from touchmacro.core.constants import NOT_SAVED
from touchmacro.core.gesture_executor import AdbGestureExecutor, GestureExecutor
from touchmacro.core.player import MacroPlayer
from touchmacro.core.recorder import TouchRecorder
from touchmacro.core.repository import SqliteMacroRepository
from touchmacro.core.settings_manager import SettingsManager
from touchmacro.utils.console_log import ConsoleLog

BASE_DIR = Path(__file__).parent


def build_executor(settings: SettingsManager, console: ConsoleLog) -> GestureExecutor:
    if settings.executor_backend == "adb":
        return AdbGestureExecutor.from_settings(settings, log_callback=console.log)
    from touchmacro.core.pynput_executor import PynputGestureExecutor
    return PynputGestureExecutor(settings, log_callback=console.log)


class _RecordSession(QObject):
    """Ends a command line recording from the hotkey thread's signals."""

    def __init__(self, app, recorder: TouchRecorder, capture, hotkeys, name: str) -> None:
        super().__init__()
        self._app      = app
        self._recorder = recorder
        self._capture  = capture
        self._hotkeys  = hotkeys
        self._name     = name

    def _release(self) -> None:
        self._capture.stop()
        self._hotkeys.stop()

    @Slot()
    def save(self) -> None:
        self._release()
        macro_id = self._recorder.stop_recording_and_save(self._name)
        if macro_id != NOT_SAVED:
            print(macro_id)
        self._app.exit(0 if macro_id != NOT_SAVED else 1)

    @Slot()
    def cancel(self) -> None:
        self._release()
        self._recorder.cancel_recording()
        self._app.exit(1)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def _cmd_list(repository: SqliteMacroRepository, args) -> int:
    macros = repository.get_all_macros()
    if not macros:
        print("No macros recorded yet.")
        return 0
    for m in macros:
        print(f"{m.id:>5}  {m.created_at:%Y-%m-%d %H:%M}  {m.action_count:>4} actions  {m.name}")
    return 0


def _cmd_delete(repository: SqliteMacroRepository, args) -> int:
    return 0 if repository.delete_macro(args.macro_id) else 1


def _cmd_rename(repository: SqliteMacroRepository, args) -> int:
    try:
        return 0 if repository.update_macro_name(args.macro_id, args.name) else 1
    except ValueError as exc:
        print(f"rename: {exc}", file=sys.stderr)
        return 2


def _cmd_record(app, settings, repository, console, args) -> int:
    from touchmacro.core.hotkey_manager import HotkeyManager
    from touchmacro.core.input_capture import PointerCapture

    recorder = TouchRecorder(repository, settings)
    recorder.log_message.connect(console.log)
    capture = PointerCapture(recorder)
    hotkeys = HotkeyManager(settings)
    session = _RecordSession(app, recorder, capture, hotkeys, args.name)
    hotkeys.stop_triggered.connect(session.save)
    hotkeys.cancel_triggered.connect(session.cancel)

    recorder.start_recording()
    capture.start()
    hotkeys.start("record")
    console.log("INFO", f"Recording '{args.name}': {hotkeys.combo('record_stop')} saves, "
                        f"{hotkeys.combo('record_cancel')} cancels")
    return app.exec()


def _cmd_play(app, settings, repository, console, args) -> int:
    from touchmacro.core.hotkey_manager import HotkeyManager

    executor = build_executor(settings, console)
    player   = MacroPlayer(repository, executor, settings)
    player.log_message.connect(console.log)
    player.playback_stopped.connect(app.quit)

    hotkeys = HotkeyManager(settings)
    hotkeys.stop_triggered.connect(player.stop_playback)

    if not player.play_macro(args.macro_id):
        return 1
    hotkeys.start("play")
    code = app.exec()
    hotkeys.stop()
    player.wait()
    return code


# ---------------------------------------------------------------------------
# Entry
# ---------------------------------------------------------------------------

def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="touchmacro", description="Record and replay touch macros.")
    parser.add_argument("--settings", type=Path, default=BASE_DIR / "settings.ini",
                        help="settings.ini path (default: next to main.py)")
    parser.add_argument("-v", "--verbose", action="store_true", help="show DEBUG messages")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="list stored macros, newest first")

    p = sub.add_parser("record", help="record a new macro")
    p.add_argument("name")

    p = sub.add_parser("play", help="replay a stored macro")
    p.add_argument("macro_id", type=int)

    p = sub.add_parser("delete", help="delete a macro and its actions")
    p.add_argument("macro_id", type=int)

    p = sub.add_parser("rename", help="rename a macro")
    p.add_argument("macro_id", type=int)
    p.add_argument("name")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
    app.setApplicationName("Touch Macro")
    app.setApplicationVersion("0.1.0")

    settings = SettingsManager(args.settings)
    console  = ConsoleLog(verbose=args.verbose)

    db_path = settings.database
    if not db_path.is_absolute():
        db_path = args.settings.parent / db_path
    repository = SqliteMacroRepository(db_path, log_callback=console.log)

    try:
        if args.command == "list":
            return _cmd_list(repository, args)
        if args.command == "delete":
            return _cmd_delete(repository, args)
        if args.command == "rename":
            return _cmd_rename(repository, args)
        if args.command == "record":
            return _cmd_record(app, settings, repository, console, args)
        return _cmd_play(app, settings, repository, console, args)
    finally:
        repository.close()


if __name__ == "__main__":
    sys.exit(main())
