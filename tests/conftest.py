"""Shared test fixtures."""
import sys
import threading
from pathlib import Path
from typing import Optional

import pytest

# Ensure project root is on sys.path so `touchmacro.*` imports work
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from PySide6.QtCore import QCoreApplication  # noqa: E402

from touchmacro.core.gesture_executor import GestureExecutor  # noqa: E402
from touchmacro.core.models import Macro  # noqa: E402
from touchmacro.core.repository import MacroRepository  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def qapp():
    """QThread and queued signals need a core application instance."""
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


class FakeClock:
    """Monotonic clock in seconds, advanced by hand."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms / 1000.0


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


class MemoryRepository(MacroRepository):
    """Dict-backed repository that records every call."""

    def __init__(self) -> None:
        self.macros: dict[int, Macro] = {}
        self.calls: list[str] = []
        self.fail_with: Optional[Exception] = None
        self._next_id = 1

    def _check(self, name: str) -> None:
        self.calls.append(name)
        if self.fail_with is not None:
            raise self.fail_with

    def save_macro(self, macro: Macro) -> int:
        self._check("save_macro")
        macro.id = self._next_id
        self._next_id += 1
        self.macros[macro.id] = macro
        return macro.id

    def get_all_macros(self) -> list[Macro]:
        self._check("get_all_macros")
        return sorted(self.macros.values(), key=lambda m: m.created_at, reverse=True)

    def get_macro_with_actions(self, macro_id: int) -> Optional[Macro]:
        self._check("get_macro_with_actions")
        return self.macros.get(macro_id)

    def delete_macro(self, macro_id: int) -> bool:
        self._check("delete_macro")
        return self.macros.pop(macro_id, None) is not None

    def update_macro_name(self, macro_id: int, name: str) -> bool:
        self._check("update_macro_name")
        if macro_id not in self.macros:
            return False
        self.macros[macro_id].name = name
        return True


@pytest.fixture
def memory_repo() -> MemoryRepository:
    return MemoryRepository()


class RecordingExecutor(GestureExecutor):
    """Records dispatched gestures together with the fake time they happened at."""

    def __init__(self, timeline=None) -> None:
        self.calls: list[tuple] = []
        self.times: list[float] = []
        self.timeline = timeline
        self.result = True
        self.on_call = None
        self._lock = threading.Lock()

    def _record(self, call: tuple) -> bool:
        with self._lock:
            self.calls.append(call)
            self.times.append(self.timeline.now if self.timeline is not None else 0.0)
        if self.on_call is not None:
            self.on_call(call)
        return self.result

    def tap(self, x, y) -> bool:
        return self._record(("tap", x, y))

    def drag(self, x0, y0, x1, y1, duration_ms) -> bool:
        return self._record(("drag", x0, y0, x1, y1, duration_ms))


class FakeSleep:
    """Replacement for time.sleep that only advances a virtual timeline (seconds)."""

    def __init__(self) -> None:
        self.now = 0.0
        self.hook = None

    def __call__(self, seconds: float) -> None:
        self.now += seconds
        if self.hook is not None:
            self.hook(self.now)


@pytest.fixture
def fake_sleep(monkeypatch) -> FakeSleep:
    sleeper = FakeSleep()
    monkeypatch.setattr("touchmacro.core.player.time.sleep", sleeper)
    return sleeper
