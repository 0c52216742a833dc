"""Action model — one recorded touch event and the named macro that owns it.

Both shapes are plain dataclasses.  ``MacroAction`` is mutable only while a
recording is in progress (the recorder re-tags a DRAG_START into a TAP in
place); once a macro is saved nothing in the package mutates its actions.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import IntEnum
from typing import Optional


class ActionType(IntEnum):
    """Persisted as its integer value."""

    TAP        = 0
    DRAG_START = 1
    DRAG_MOVE  = 2
    DRAG_END   = 3

    @property
    def is_drag_segment(self) -> bool:
        """True for actions replayed as a point-to-point drag."""
        return self in (ActionType.DRAG_MOVE, ActionType.DRAG_END)


@dataclass
class MacroAction:
    x:               float
    y:               float
    delay_ms:        int        = 0
    sequence_number: int        = 0
    action_type:     ActionType = ActionType.TAP
    duration_ms:     int        = 0
    id:              Optional[int] = None
    macro_id:        Optional[int] = None

    @property
    def point(self) -> tuple[float, float]:
        return self.x, self.y

    def copy(self) -> "MacroAction":
        return replace(self)

    def __str__(self) -> str:
        text = (f"#{self.sequence_number} {self.action_type.name} "
                f"({self.x:g}, {self.y:g}) +{self.delay_ms}ms")
        if self.action_type is ActionType.DRAG_END:
            text += f" dur={self.duration_ms}ms"
        return text


@dataclass
class Macro:
    """A named, ordered list of actions.

    ``action_count`` is cached so that ``get_all_macros()`` can list macros
    without loading their actions.
    """

    name:         str
    actions:      list[MacroAction] = field(default_factory=list)
    created_at:   Optional[datetime] = None
    action_count: int = 0
    id:           Optional[int] = None

    def snapshot(self) -> "Macro":
        """Deep-enough copy for playback: new list, copied actions."""
        return replace(self, actions=[a.copy() for a in self.actions])

    def ordered_actions(self) -> list[MacroAction]:
        return sorted(self.actions, key=lambda a: a.sequence_number)
