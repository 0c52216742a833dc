"""Macro repository — persistence boundary for macros and their actions.

The recorder and the player only depend on ``MacroRepository``.  The SQLite
implementation stores two tables::

    macro(id, name, created_at, action_count)
    macro_action(id, macro_id, x, y, delay_ms, sequence_number,
                 action_type, duration_ms)

``save_macro`` and ``delete_macro`` each run inside a single transaction so
a macro is never visible without all of its actions.
"""
from __future__ import annotations

import sqlite3
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional, Union

from touchmacro.core.models import ActionType, Macro, MacroAction

LogFn = Callable[[str, str], None]       # (level, message)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS macro (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    name         TEXT    NOT NULL,
    created_at   TEXT    NOT NULL,
    action_count INTEGER NOT NULL
);
CREATE TABLE IF NOT EXISTS macro_action (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    macro_id        INTEGER NOT NULL REFERENCES macro(id) ON DELETE CASCADE,
    x               REAL    NOT NULL,
    y               REAL    NOT NULL,
    delay_ms        INTEGER NOT NULL,
    sequence_number INTEGER NOT NULL,
    action_type     INTEGER NOT NULL,
    duration_ms     INTEGER NOT NULL DEFAULT 0
);
CREATE INDEX IF NOT EXISTS ix_macro_action_macro_id ON macro_action(macro_id);
"""


class MacroRepository(ABC):
    """Contract consumed by the recorder and the player."""

    @abstractmethod
    def save_macro(self, macro: Macro) -> int:
        """Persist ``macro`` and all its actions as one unit; return its id."""

    @abstractmethod
    def get_all_macros(self) -> list[Macro]:
        """Macro summaries (no actions), newest first."""

    @abstractmethod
    def get_macro_with_actions(self, macro_id: int) -> Optional[Macro]:
        """The macro with its actions in sequence order, or None."""

    @abstractmethod
    def delete_macro(self, macro_id: int) -> bool:
        """Remove the macro and its actions as one unit."""

    @abstractmethod
    def update_macro_name(self, macro_id: int, name: str) -> bool:
        """Rename a stored macro."""


class SqliteMacroRepository(MacroRepository):
    """SQLite-backed repository.  Pass ``":memory:"`` for a throwaway store.

    The connection is shared between the caller's thread and the playback
    thread, so every statement runs under ``_lock``.
    """

    def __init__(self, path: Union[str, Path], log_callback: Optional[LogFn] = None) -> None:
        self._path = str(path)
        self._log  = log_callback or (lambda level, msg: None)
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(self._path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys = ON")
        with self._conn:
            self._conn.executescript(_SCHEMA)
        self._log("DEBUG", f"Database opened: {self._path}")

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def save_macro(self, macro: Macro) -> int:
        if not macro.name or not macro.name.strip():
            raise ValueError("Macro name must not be empty")
        if not macro.actions:
            raise ValueError("Refusing to save a macro without actions")

        if macro.created_at is None:
            macro.created_at = datetime.now()
        macro.action_count = len(macro.actions)

        with self._lock, self._conn:
            cur = self._conn.execute(
                "INSERT INTO macro (name, created_at, action_count) VALUES (?, ?, ?)",
                (macro.name, macro.created_at.isoformat(), macro.action_count),
            )
            macro_id = cur.lastrowid
            action_ids: list[int] = []
            for action in macro.actions:
                cur = self._conn.execute(
                    "INSERT INTO macro_action (macro_id, x, y, delay_ms, sequence_number,"
                    " action_type, duration_ms) VALUES (?, ?, ?, ?, ?, ?, ?)",
                    (macro_id, action.x, action.y, action.delay_ms,
                     action.sequence_number, int(action.action_type), action.duration_ms),
                )
                action_ids.append(cur.lastrowid)

        # Ids are only handed out once the transaction has committed
        macro.id = macro_id
        for action, action_id in zip(macro.actions, action_ids):
            action.id       = action_id
            action.macro_id = macro_id
        self._log("INFO", f"Saved macro '{macro.name}' (id={macro_id}, {macro.action_count} actions)")
        return macro_id

    def delete_macro(self, macro_id: int) -> bool:
        with self._lock, self._conn:
            self._conn.execute("DELETE FROM macro_action WHERE macro_id = ?", (macro_id,))
            cur = self._conn.execute("DELETE FROM macro WHERE id = ?", (macro_id,))
        deleted = cur.rowcount > 0
        if deleted:
            self._log("INFO", f"Deleted macro {macro_id}")
        return deleted

    def update_macro_name(self, macro_id: int, name: str) -> bool:
        if not name or not name.strip():
            raise ValueError("Macro name must not be empty")
        with self._lock, self._conn:
            cur = self._conn.execute("UPDATE macro SET name = ? WHERE id = ?", (name, macro_id))
        return cur.rowcount > 0

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_all_macros(self) -> list[Macro]:
        with self._lock:
            rows = self._conn.execute(
                "SELECT * FROM macro ORDER BY created_at DESC, id DESC"
            ).fetchall()
        return [_macro_from_row(r) for r in rows]

    def get_macro_with_actions(self, macro_id: int) -> Optional[Macro]:
        with self._lock:
            row = self._conn.execute("SELECT * FROM macro WHERE id = ?", (macro_id,)).fetchone()
            if row is None:
                return None
            action_rows = self._conn.execute(
                "SELECT * FROM macro_action WHERE macro_id = ? ORDER BY sequence_number",
                (macro_id,),
            ).fetchall()
        macro = _macro_from_row(row)
        macro.actions = [_action_from_row(r) for r in action_rows]
        return macro


# ---------------------------------------------------------------------------
# Row mapping
# ---------------------------------------------------------------------------

def _macro_from_row(row: sqlite3.Row) -> Macro:
    return Macro(
        id           = row["id"],
        name         = row["name"],
        created_at   = datetime.fromisoformat(row["created_at"]),
        action_count = row["action_count"],
    )


def _action_from_row(row: sqlite3.Row) -> MacroAction:
    return MacroAction(
        id              = row["id"],
        macro_id        = row["macro_id"],
        x               = row["x"],
        y               = row["y"],
        delay_ms        = row["delay_ms"],
        sequence_number = row["sequence_number"],
        action_type     = ActionType(row["action_type"]),
        duration_ms     = row["duration_ms"],
    )
