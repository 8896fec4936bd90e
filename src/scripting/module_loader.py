"""
Script Module Loader

Loads user scripts as Python modules. A script exposes optional handler
functions, each taking one invocation context:

    def execute(ctx): ...
    def get_html(ctx): ...
    def get_title(ctx): ...
    def on_message(ctx): ...
    def on_dispose(ctx): ...

Modules are memoized per resolved path for one generation; reset()
drops them so that the next load re-executes the file.
"""

from __future__ import annotations

import hashlib
import importlib.util
import logging
import sys
from pathlib import Path
from types import ModuleType
from typing import Callable, Dict, Optional

from common.exceptions import ScriptLoadError

logger = logging.getLogger(__name__)

SLOTS = ("execute", "get_html", "get_title", "on_message", "on_dispose")

# camelCase aliases accepted for scripts ported from other runtimes
SLOT_ALIASES = {
    "get_html": "getHtml",
    "get_title": "getTitle",
    "on_message": "onMessage",
    "on_dispose": "onDispose",
}


class ScriptModule:
    """A loaded script and its handler slots."""

    def __init__(self, path: Path, module: ModuleType):
        self.path = path
        self.module = module

    def slot(self, name: str) -> Optional[Callable]:
        """Get a handler by slot name, or None if the script has none."""
        handler = getattr(self.module, name, None)
        if handler is None and name in SLOT_ALIASES:
            handler = getattr(self.module, SLOT_ALIASES[name], None)
        return handler if callable(handler) else None

    def has_slot(self, name: str) -> bool:
        return self.slot(name) is not None

    def __repr__(self) -> str:
        slots = [s for s in SLOTS if self.has_slot(s)]
        return f"ScriptModule({self.path}, slots={slots})"


class ScriptModuleLoader:
    """Loads and memoizes script modules."""

    def __init__(self, base_dir: Optional[Path] = None):
        self.base_dir = Path(base_dir) if base_dir else Path.cwd()
        self.generation = 0
        self._modules: Dict[Path, ScriptModule] = {}

    def resolve(self, script: str) -> Path:
        """Absolute path of a script; relative paths are taken from base_dir."""
        path = Path(script).expanduser()
        if not path.is_absolute():
            path = self.base_dir / path
        return path.resolve()

    def _module_name(self, path: Path) -> str:
        digest = hashlib.sha1(str(path).encode("utf-8")).hexdigest()[:12]
        return f"powertools_scripts.g{self.generation}_{digest}"

    def load(self, script: str) -> ScriptModule:
        """
        Load a script module.

        Args:
            script: Script path (absolute or relative to base_dir)

        Returns:
            The loaded module; the same object for repeated calls in one generation

        Raises:
            ScriptLoadError: If the file is missing or fails while executing
        """
        path = self.resolve(script)
        cached = self._modules.get(path)
        if cached is not None:
            return cached

        if not path.is_file():
            raise ScriptLoadError(str(path), "file not found")

        name = self._module_name(path)
        spec = importlib.util.spec_from_file_location(name, path)
        if spec is None or spec.loader is None:
            raise ScriptLoadError(str(path), "not a loadable Python file")

        module = importlib.util.module_from_spec(spec)
        sys.modules[name] = module
        try:
            spec.loader.exec_module(module)
        except Exception as e:
            sys.modules.pop(name, None)
            raise ScriptLoadError(str(path), str(e), cause=e) from e

        loaded = ScriptModule(path, module)
        self._modules[path] = loaded
        logger.debug(f"Loaded script {path} as {name}")
        return loaded

    def reset(self) -> None:
        """Discard all modules of the current generation."""
        for loaded in self._modules.values():
            name = loaded.module.__name__
            if sys.modules.get(name) is loaded.module:
                del sys.modules[name]
        self._modules.clear()
        self.generation += 1

    def __len__(self) -> int:
        return len(self._modules)
