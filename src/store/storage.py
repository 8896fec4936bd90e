"""
Global State Storage - Persistent key/value records.

Values are replaced wholesale on update, never patched in place.
"""

from __future__ import annotations

import copy
import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict

from utils.atomic_write import atomic_write_json

logger = logging.getLogger(__name__)

KEY_KNOWN_APPS = "powertools.apps.known"


class StateStorage(ABC):
    """Base class for persistent key/value storage."""

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """Get a stored value."""
        pass

    @abstractmethod
    def update(self, key: str, value: Any) -> None:
        """Replace a stored value. None removes the key."""
        pass


class MemoryStateStorage(StateStorage):
    """In-memory storage, for tests and headless runs."""

    def __init__(self, initial: Dict[str, Any] = None):
        self._data: Dict[str, Any] = copy.deepcopy(initial or {})

    def get(self, key: str, default: Any = None) -> Any:
        return copy.deepcopy(self._data.get(key, default))

    def update(self, key: str, value: Any) -> None:
        if value is None:
            self._data.pop(key, None)
        else:
            self._data[key] = copy.deepcopy(value)


class JsonFileStateStorage(StateStorage):
    """
    Storage backed by a single JSON file.

    The whole file is rewritten atomically on every update.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable state file {self.path}: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Ignoring state file {self.path}: not an object")
            return {}
        return data

    def get(self, key: str, default: Any = None) -> Any:
        return self._read().get(key, default)

    def update(self, key: str, value: Any) -> None:
        data = self._read()
        if value is None:
            data.pop(key, None)
        else:
            data[key] = value

        atomic_write_json(self.path, data)
        logger.debug(f"Updated '{key}' in {self.path}")
