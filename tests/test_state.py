"""
Tests for the scoped script state store.
"""

import pytest

from scripting.state import ScriptStateStore, StateCell, StateScope


@pytest.mark.unit
class TestScriptStateStore:
    """Tests for ScriptStateStore.get_or_create()."""

    def test_same_key_same_cell(self):
        store = ScriptStateStore()
        first = store.get_or_create("/scripts/counter.py")
        second = store.get_or_create("/scripts/counter.py")

        first.set({"count": 1})
        assert second.get() == {"count": 1}
        assert first is second

    def test_default_is_fresh_dict(self):
        store = ScriptStateStore()
        a = store.get_or_create("/a.py")
        b = store.get_or_create("/b.py")

        a.get()["x"] = 1
        assert a.get() == {"x": 1}
        assert b.get() == {}

    def test_initial_value_only_seeds_new_cell(self):
        store = ScriptStateStore()
        cell = store.get_or_create("/a.py", initial_value={"count": 5})
        cell.set({"count": 6})

        again = store.get_or_create("/a.py", initial_value={"count": 5})
        assert again.get() == {"count": 6}

    def test_scopes_are_isolated(self):
        store = ScriptStateStore()
        workspace = StateScope("workspace")

        store.get_or_create("/a.py").set("process")
        store.get_or_create("/a.py", workspace).set("workspace")

        assert store.get_or_create("/a.py").get() == "process"
        assert store.get_or_create("/a.py", workspace).get() == "workspace"
        assert "/a.py" in workspace
        assert len(workspace) == 1

    def test_set_replaces_without_merge(self):
        cell = StateCell({"a": 1})
        cell.set({"b": 2})
        assert cell.get() == {"b": 2}

    def test_clear_scope(self):
        store = ScriptStateStore()
        scope = StateScope("workspace")
        store.get_or_create("/a.py", scope).set(1)

        scope.clear()
        assert store.get_or_create("/a.py", scope).get() == {}
