"""
Entries - Commands and apps declared in the settings.

Both kinds are configured as one mapping keyed by entry id:

    "commands": {
        "mkloubert.build": {
            "script": "scripts/build.py",
            "name": "Build (${ today })",
            "button": {"text": "Build", "languages": ["python"]}
        }
    }
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional, Union

from common.exceptions import InvalidConfigError

# Python source or a callable
HookCode = Union[str, Callable[..., Any]]


class EntryKind(Enum):
    """What an entry turns into."""
    COMMAND = "command"
    APP = "app"


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _string_list(value: Any, field_name: str) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        raise InvalidConfigError(field_name, value, "must be a string or a list of strings")
    return [str(v).strip() for v in value if str(v).strip()]


def _hook(value: Any, field_name: str) -> Optional[HookCode]:
    if value is None:
        return None
    if callable(value):
        return value
    if isinstance(value, str):
        return value if value.strip() else None
    raise InvalidConfigError(field_name, value, "must be Python code or a callable")


@dataclass
class ButtonSpec:
    """Status bar button of an entry."""
    text: Optional[str] = None
    tooltip: Optional[str] = None
    color: Optional[str] = None
    alignment: str = "left"
    priority: Optional[int] = None
    # Visibility predicate on the active editor
    languages: List[str] = field(default_factory=list)
    pattern: Optional[str] = None
    on_editor_changed: Optional[HookCode] = None

    @property
    def has_visibility_predicate(self) -> bool:
        return bool(self.languages) or bool(self.pattern)

    @classmethod
    def from_config(cls, config: Any, context: str = "button") -> "ButtonSpec":
        """Create from a ``button`` setting (``true`` means a default button)."""
        if config is True:
            return cls()
        if not isinstance(config, dict):
            raise InvalidConfigError(context, config, "must be an object")

        alignment = str(config.get("alignment") or "left").strip().lower()
        if alignment not in ("left", "right"):
            raise InvalidConfigError(f"{context}.alignment", alignment, "must be 'left' or 'right'")

        priority = config.get("priority")
        if priority is not None and not isinstance(priority, int):
            raise InvalidConfigError(f"{context}.priority", priority, "must be an integer")

        return cls(
            text=_optional_text(config.get("text")),
            tooltip=_optional_text(config.get("tooltip")),
            color=_optional_text(config.get("color")),
            alignment=alignment,
            priority=priority,
            languages=_string_list(config.get("languages"), f"{context}.languages"),
            pattern=_optional_text(config.get("pattern")),
            on_editor_changed=_hook(config.get("onEditorChanged"), f"{context}.onEditorChanged"),
        )


@dataclass
class Entry:
    """A command or app declared in the settings. Read-only to the runtime."""
    key: str
    script: str
    kind: EntryKind = EntryKind.COMMAND
    name: Optional[str] = None
    description: Optional[str] = None
    button: Optional[ButtonSpec] = None
    options: Any = None
    # Initial value of the script's state cell
    state: Any = None
    on_created: Optional[HookCode] = None
    on_destroyed: Optional[HookCode] = None
    platforms: List[str] = field(default_factory=list)
    condition: Optional[str] = None
    vue: bool = False

    @property
    def display_name_template(self) -> str:
        """Name template; falls back to the key (commands) or script (apps)."""
        if self.name:
            return self.name
        return self.key if self.kind is EntryKind.COMMAND else self.script

    def initial_state(self) -> Any:
        if self.state is None:
            return {}
        return copy.deepcopy(self.state)

    @classmethod
    def from_config(cls, key: Any, config: Any, kind: EntryKind = EntryKind.COMMAND) -> "Entry":
        """
        Create from one settings value.

        Args:
            key: Entry id
            config: Entry object, or a plain script path
            kind: Command or app

        Raises:
            InvalidConfigError: If the config is malformed
        """
        entry_key = str(key if key is not None else "").strip()
        if not entry_key:
            raise InvalidConfigError("key", key, "entry id must not be empty")

        if isinstance(config, str):
            config = {"script": config}
        if not isinstance(config, dict):
            raise InvalidConfigError(entry_key, config, "must be an object or a script path")

        script = str(config.get("script") or "").strip()
        if not script:
            raise InvalidConfigError(f"{entry_key}.script", script, "script is required")

        button = None
        if config.get("button"):
            button = ButtonSpec.from_config(config["button"], f"{entry_key}.button")

        condition = config.get("if")
        if condition is not None and not isinstance(condition, str):
            raise InvalidConfigError(f"{entry_key}.if", condition, "must be a Python expression")

        return cls(
            key=entry_key,
            script=script,
            kind=kind,
            name=_optional_text(config.get("name")),
            description=_optional_text(config.get("description")),
            button=button,
            options=copy.deepcopy(config.get("options")),
            state=copy.deepcopy(config.get("state")),
            on_created=_hook(config.get("onCreated"), f"{entry_key}.onCreated"),
            on_destroyed=_hook(config.get("onDestroyed"), f"{entry_key}.onDestroyed"),
            platforms=_string_list(config.get("platforms"), f"{entry_key}.platforms"),
            condition=_optional_text(condition),
            vue=bool(config.get("vue", False)),
        )
