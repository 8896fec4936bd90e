"""
Settings for the Powertools runtime.

Settings are read from a JSON file (``~/.config/powertools/settings.json``
by default) and may be overridden through environment variables.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from utils.atomic_write import atomic_write_json

from .exceptions import InvalidConfigError, MissingConfigError

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".config/powertools"
DATA_DIR = Path.home() / ".local/share/powertools"

DEFAULT_SETTINGS_FILE = CONFIG_DIR / "settings.json"
DEFAULT_APPS_DIR = DATA_DIR / "apps"
DEFAULT_STATE_FILE = DATA_DIR / "global_state.json"

ENV_APP_STORE_URL = "POWERTOOLS_APP_STORE_URL"
ENV_APPS_DIR = "POWERTOOLS_APPS_DIR"
ENV_STATE_FILE = "POWERTOOLS_STATE_FILE"


@dataclass
class Settings:
    """User and workspace settings consumed by the runtime."""
    app_store_url: str = ""
    apps_dir: Path = DEFAULT_APPS_DIR
    state_file: Path = DEFAULT_STATE_FILE
    # Relative script paths are resolved against this directory
    base_dir: Path = field(default_factory=Path.cwd)
    commands: Dict[str, Any] = field(default_factory=dict)
    apps: Dict[str, Any] = field(default_factory=dict)
    globals: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "appStoreUrl": self.app_store_url,
            "appsDir": str(self.apps_dir),
            "stateFile": str(self.state_file),
            "baseDir": str(self.base_dir),
            "commands": self.commands,
            "apps": self.apps,
            "globals": self.globals,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], base_dir: Optional[Path] = None) -> "Settings":
        """Create from dictionary."""
        if not isinstance(data, dict):
            raise InvalidConfigError("settings", type(data).__name__, "must be an object")

        for key in ("commands", "apps", "globals"):
            value = data.get(key)
            if value is not None and not isinstance(value, dict):
                raise InvalidConfigError(key, value, "must be an object keyed by id")

        settings = cls(
            app_store_url=str(data.get("appStoreUrl") or ""),
            commands=dict(data.get("commands") or {}),
            apps=dict(data.get("apps") or {}),
            globals=dict(data.get("globals") or {}),
        )

        if data.get("appsDir"):
            settings.apps_dir = Path(data["appsDir"]).expanduser()
        if data.get("stateFile"):
            settings.state_file = Path(data["stateFile"]).expanduser()

        if data.get("baseDir"):
            settings.base_dir = Path(data["baseDir"]).expanduser()
        elif base_dir is not None:
            settings.base_dir = base_dir

        return settings

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "Settings":
        """
        Load settings from disk and apply environment overrides.

        Args:
            path: Settings file (default: ~/.config/powertools/settings.json)

        Returns:
            Settings; defaults when the file does not exist.
        """
        path = Path(path) if path else DEFAULT_SETTINGS_FILE

        if path.exists():
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
            except json.JSONDecodeError as e:
                raise InvalidConfigError(str(path), "<file>", f"malformed JSON: {e}") from e
            settings = cls.from_dict(data, base_dir=path.parent)
            logger.debug(f"Loaded settings from {path}")
        else:
            logger.debug(f"Settings file not found, using defaults: {path}")
            settings = cls()

        settings.apply_environment()
        return settings

    def apply_environment(self) -> None:
        """Apply POWERTOOLS_* environment overrides."""
        if os.environ.get(ENV_APP_STORE_URL):
            self.app_store_url = os.environ[ENV_APP_STORE_URL]
        if os.environ.get(ENV_APPS_DIR):
            self.apps_dir = Path(os.environ[ENV_APPS_DIR]).expanduser()
        if os.environ.get(ENV_STATE_FILE):
            self.state_file = Path(os.environ[ENV_STATE_FILE]).expanduser()

    def save(self, path: Optional[Path] = None) -> None:
        """Write settings to disk atomically."""
        path = Path(path) if path else DEFAULT_SETTINGS_FILE
        atomic_write_json(path, self.to_dict())
        logger.info(f"Saved settings to {path}")


def get_app_store_url(settings: Settings) -> str:
    """
    Get the normalized app store URL.

    Raises:
        MissingConfigError: If no URL is configured
    """
    url = (settings.app_store_url or "").strip()
    if not url:
        raise MissingConfigError("app_store_url")

    if not url.lower().startswith(("https://", "http://")):
        url = "http://" + url

    return url.strip()
