"""
Scoped State Store

Per-script mutable state that survives between invocations (and reloads)
for the lifetime of its scope. Purely in memory.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class StateCell:
    """A mutable value. get() and set() operate on the live value."""

    def __init__(self, value: Any = None):
        self._value = value

    def get(self) -> Any:
        return self._value

    def set(self, value: Any) -> None:
        """Replace the value (no merge, no validation)."""
        self._value = value


class StateScope:
    """Memo table of cells keyed by script path."""

    def __init__(self, name: str = "scope"):
        self.name = name
        self._cells: Dict[str, StateCell] = {}

    def __contains__(self, script_path: str) -> bool:
        return script_path in self._cells

    def __len__(self) -> int:
        return len(self._cells)

    def get(self, script_path: str) -> Optional[StateCell]:
        return self._cells.get(script_path)

    def add(self, script_path: str, cell: StateCell) -> None:
        self._cells[script_path] = cell

    def clear(self) -> None:
        self._cells.clear()


class ScriptStateStore:
    """
    Hands out state cells per (scope, script path).

    Example:
        store = ScriptStateStore()
        cell = store.get_or_create("/scripts/counter.py")
        cell.set(cell.get().get("count", 0) + 1)
    """

    def __init__(self):
        self.default_scope = StateScope("process")

    def get_or_create(
        self,
        script_path: str,
        scope: Optional[StateScope] = None,
        initial_value: Any = None,
    ) -> StateCell:
        """
        Get the state cell of a script, creating it on first access.

        Args:
            script_path: Path of the script (the cell key)
            scope: Isolation scope (default: process-wide scope)
            initial_value: Seed for a new cell (default: a fresh empty dict)

        Returns:
            The same cell object for every call with the same key and scope.
        """
        if scope is None:
            scope = self.default_scope

        key = str(script_path)
        cell = scope.get(key)
        if cell is None:
            cell = StateCell({} if initial_value is None else initial_value)
            scope.add(key, cell)
            logger.debug(f"Created state for '{key}' in scope '{scope.name}'")

        return cell
