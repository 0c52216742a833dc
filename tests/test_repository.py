"""Tests for touchmacro.core.repository — SqliteMacroRepository against a temp file."""
from datetime import datetime, timedelta

import pytest

from touchmacro.core.models import ActionType, Macro, MacroAction
from touchmacro.core.repository import SqliteMacroRepository


@pytest.fixture
def repo(tmp_path):
    r = SqliteMacroRepository(tmp_path / "macros.db")
    yield r
    r.close()


def _macro(name="swipe", created_at=None):
    actions = [
        MacroAction(x=0, y=0, delay_ms=0, sequence_number=0, action_type=ActionType.DRAG_START),
        MacroAction(x=50.5, y=0, delay_ms=30, sequence_number=1, action_type=ActionType.DRAG_MOVE),
        MacroAction(x=150, y=0, delay_ms=30, sequence_number=2,
                    action_type=ActionType.DRAG_END, duration_ms=60),
        MacroAction(x=12, y=34, delay_ms=800, sequence_number=3, action_type=ActionType.TAP),
    ]
    return Macro(name=name, actions=actions, created_at=created_at)


class TestSave:
    def test_round_trip(self, repo):
        original = _macro()
        macro_id = repo.save_macro(original)
        loaded = repo.get_macro_with_actions(macro_id)

        assert loaded.id == macro_id
        assert loaded.name == "swipe"
        assert loaded.action_count == len(loaded.actions) == 4
        assert [(a.x, a.y, a.delay_ms, a.sequence_number, a.action_type, a.duration_ms)
                for a in loaded.actions] == \
               [(a.x, a.y, a.delay_ms, a.sequence_number, a.action_type, a.duration_ms)
                for a in original.actions]
        assert all(a.macro_id == macro_id for a in loaded.actions)

    def test_assigns_ids_and_count(self, repo):
        macro = _macro()
        macro.action_count = 0
        macro_id = repo.save_macro(macro)
        assert macro.id == macro_id
        assert macro.action_count == 4
        assert all(a.id is not None and a.macro_id == macro_id for a in macro.actions)

    def test_sets_created_at_when_missing(self, repo):
        macro_id = repo.save_macro(_macro())
        assert isinstance(repo.get_macro_with_actions(macro_id).created_at, datetime)

    def test_actions_loaded_in_sequence_order(self, repo):
        macro = _macro()
        macro.actions.reverse()
        macro_id = repo.save_macro(macro)
        seqs = [a.sequence_number for a in repo.get_macro_with_actions(macro_id).actions]
        assert seqs == [0, 1, 2, 3]

    def test_refuses_empty_macro(self, repo):
        with pytest.raises(ValueError):
            repo.save_macro(Macro(name="empty"))
        assert repo.get_all_macros() == []

    def test_refuses_blank_name(self, repo):
        with pytest.raises(ValueError):
            repo.save_macro(_macro(name="  "))

    def test_save_is_all_or_nothing(self, repo):
        macro = _macro()
        macro.actions[2].x = None        # violates NOT NULL on the third row
        with pytest.raises(Exception):
            repo.save_macro(macro)
        assert repo.get_all_macros() == []
        assert macro.id is None


class TestQuery:
    def test_get_missing(self, repo):
        assert repo.get_macro_with_actions(12345) is None

    def test_all_macros_newest_first(self, repo):
        now = datetime(2024, 5, 1, 12, 0)
        repo.save_macro(_macro("old", now - timedelta(days=1)))
        repo.save_macro(_macro("new", now))
        repo.save_macro(_macro("middle", now - timedelta(hours=1)))
        assert [m.name for m in repo.get_all_macros()] == ["new", "middle", "old"]

    def test_summaries_have_count_but_no_actions(self, repo):
        repo.save_macro(_macro())
        (summary,) = repo.get_all_macros()
        assert summary.action_count == 4
        assert summary.actions == []

    def test_persists_across_connections(self, tmp_path):
        path = tmp_path / "persist.db"
        first = SqliteMacroRepository(path)
        macro_id = first.save_macro(_macro())
        first.close()

        second = SqliteMacroRepository(path)
        try:
            assert second.get_macro_with_actions(macro_id).action_count == 4
        finally:
            second.close()


class TestDeleteAndRename:
    def test_delete_removes_macro_and_actions(self, repo):
        keep = repo.save_macro(_macro("keep"))
        drop = repo.save_macro(_macro("drop"))
        assert repo.delete_macro(drop) is True
        assert repo.get_macro_with_actions(drop) is None
        assert [m.id for m in repo.get_all_macros()] == [keep]
        with repo._lock:
            orphans = repo._conn.execute(
                "SELECT COUNT(*) FROM macro_action WHERE macro_id = ?", (drop,)
            ).fetchone()[0]
        assert orphans == 0
        assert len(repo.get_macro_with_actions(keep).actions) == 4

    def test_delete_missing(self, repo):
        assert repo.delete_macro(999) is False

    def test_rename(self, repo):
        macro_id = repo.save_macro(_macro("before"))
        assert repo.update_macro_name(macro_id, "after") is True
        assert repo.get_macro_with_actions(macro_id).name == "after"

    def test_rename_missing(self, repo):
        assert repo.update_macro_name(42, "x") is False

    def test_rename_blank(self, repo):
        macro_id = repo.save_macro(_macro())
        with pytest.raises(ValueError):
            repo.update_macro_name(macro_id, "")


class TestLogging:
    def test_log_callback(self, tmp_path):
        logs = []
        r = SqliteMacroRepository(tmp_path / "l.db", log_callback=lambda l, m: logs.append((l, m)))
        try:
            r.save_macro(_macro("logged"))
        finally:
            r.close()
        assert any(level == "INFO" and "logged" in msg for level, msg in logs)
