"""Settings manager — reads settings.ini via configparser."""
from configparser import ConfigParser
from pathlib import Path

from touchmacro.core import constants


class SettingsManager:
    def __init__(self, ini_path: Path) -> None:
        self.ini_path = ini_path
        self.config = ConfigParser(comment_prefixes=("#", ";"), inline_comment_prefixes=("#",))
        if ini_path.exists():
            self.config.read(ini_path, encoding="utf-8")

    # ------------------------------------------------------------------
    # Generic getters
    # ------------------------------------------------------------------
    def get(self, section: str, key: str, fallback: str = "") -> str:
        return self.config.get(section, key, fallback=fallback)

    def getint(self, section: str, key: str, fallback: int = 0) -> int:
        return self.config.getint(section, key, fallback=fallback)

    def getfloat(self, section: str, key: str, fallback: float = 0.0) -> float:
        return self.config.getfloat(section, key, fallback=fallback)

    # ------------------------------------------------------------------
    # Convenience properties
    # ------------------------------------------------------------------
    @property
    def database(self) -> Path:
        return Path(self.get("GENERAL", "database", "touchmacro.db"))

    # Recorder
    @property
    def move_threshold_px(self) -> float:
        return self.getfloat("RECORDER", "move_threshold_px", constants.MOVE_THRESHOLD_PX)

    @property
    def tap_max_ms(self) -> int:
        return self.getint("RECORDER", "tap_max_ms", constants.TAP_MAX_MS)

    # Player
    @property
    def min_drag_duration_ms(self) -> int:
        return self.getint("PLAYER", "min_drag_duration_ms", constants.MIN_DRAG_DURATION_MS)

    @property
    def drag_move_duration_ms(self) -> int:
        return self.getint("PLAYER", "drag_move_duration_ms", constants.DRAG_MOVE_DURATION_MS)

    @property
    def settle_min_ms(self) -> int:
        return self.getint("PLAYER", "settle_min_ms", constants.SETTLE_MIN_MS)

    @property
    def settle_divisor(self) -> int:
        return max(1, self.getint("PLAYER", "settle_divisor", constants.SETTLE_DIVISOR))

    @property
    def playback_speed(self) -> float:
        return self.getfloat("PLAYER", "playback_speed", 1.0)

    # Executor
    @property
    def executor_backend(self) -> str:
        return self.get("EXECUTOR", "backend", "pynput").strip().lower()

    @property
    def adb_path(self) -> str:
        return self.get("EXECUTOR", "adb_path", "adb")

    @property
    def adb_serial(self) -> str:
        return self.get("EXECUTOR", "adb_serial", "").strip()

    @property
    def drag_step_ms(self) -> int:
        return max(1, self.getint("EXECUTOR", "drag_step_ms", constants.DRAG_STEP_MS))
