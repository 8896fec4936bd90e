"""
Powertools Runtime

Process-wide context: constructed once at startup, torn down with one
dispose() call. Owns the state store, both registries and the value
context. Nothing here lives in module globals.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from common.config import Settings

from .bindings import LiveBinding
from .entries import EntryKind
from .host import EditorHost
from .module_loader import ScriptModuleLoader
from .registry import ScriptRegistry
from .state import ScriptStateStore, StateScope
from .values import ValueContext

logger = logging.getLogger(__name__)


class PowertoolsRuntime:
    """
    Commands and apps of one editor session.

    Commands keep their state in the global scope, apps in the
    workspace scope.

    Example:
        runtime = PowertoolsRuntime(MemoryHost(), Settings.load())
        runtime.reload()
        await runtime.commands.execute("mkloubert.build")
        runtime.dispose()
    """

    def __init__(
        self,
        host: EditorHost,
        settings: Settings,
        clock: Optional[Callable[[], datetime]] = None,
        workspace_values: Optional[Dict[str, Any]] = None,
    ):
        self.host = host
        self.settings = settings
        self.state_store = ScriptStateStore()
        self.global_scope = StateScope("global")
        self.workspace_scope = StateScope("workspace")
        self.global_state: Dict[str, Any] = {}
        self.values = ValueContext(settings.globals, workspace_values, clock)

        self.commands = ScriptRegistry(
            host,
            ScriptModuleLoader(settings.base_dir),
            self.values,
            self.state_store,
            scope=self.global_scope,
            global_state=self.global_state,
            kind=EntryKind.COMMAND,
        )
        self.apps = ScriptRegistry(
            host,
            ScriptModuleLoader(settings.base_dir),
            self.values,
            self.state_store,
            scope=self.workspace_scope,
            global_state=self.global_state,
            kind=EntryKind.APP,
        )
        self._disposed = False

    def reload(self, settings: Optional[Settings] = None) -> List[LiveBinding]:
        """
        Reload commands and apps, optionally from new settings.

        Returns:
            All live bindings (commands first)
        """
        if self._disposed:
            raise RuntimeError("Runtime has been disposed")

        if settings is not None:
            self.settings = settings
            self.values.global_values = dict(settings.globals)
            self.commands.loader.base_dir = settings.base_dir
            self.apps.loader.base_dir = settings.base_dir

        commands = self.commands.reload_from_config(self.settings.commands)
        apps = self.apps.reload_from_config(self.settings.apps)
        return commands + apps

    def dispose(self) -> None:
        """Tear down both registries and drop workspace state."""
        if self._disposed:
            return
        self._disposed = True

        self.commands.dispose()
        self.apps.dispose()
        self.workspace_scope.clear()
        logger.info("Powertools runtime disposed")
