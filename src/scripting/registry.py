"""
Script Registry

Turns entries into live bindings and replaces them wholesale on reload.
The previous generation is disposed completely before the first entry of
the new one registers, so ids can be reused across reloads.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

from common.exceptions import InvalidConfigError, PowertoolsError, RegistrationConflict, ValidationSkip
from common.logging_config import LogContext

from .bindings import AppBinding, CommandBinding, LiveBinding, resolve_result
from .conditions import check_entry
from .entries import Entry, EntryKind
from .hooks import run_hook
from .host import EditorHost, EditorInfo
from .module_loader import ScriptModuleLoader
from .state import ScriptStateStore, StateScope
from .values import ValueContext

logger = logging.getLogger(__name__)


class ScriptRegistry:
    """
    Lifecycle manager for one kind of entry (commands or apps).

    Example:
        registry = ScriptRegistry(host, loader, values, store)
        registry.reload_from_config(settings.commands)
        await registry.execute("mkloubert.build", "arg")
    """

    def __init__(
        self,
        host: EditorHost,
        loader: ScriptModuleLoader,
        values: ValueContext,
        state_store: ScriptStateStore,
        scope: Optional[StateScope] = None,
        global_state: Optional[Dict[str, Any]] = None,
        kind: EntryKind = EntryKind.COMMAND,
    ):
        self.host = host
        self.loader = loader
        self.values = values
        self.state_store = state_store
        self.scope = scope
        self.global_state = global_state if global_state is not None else {}
        self.kind = kind
        self.generation = 0
        self._bindings: List[LiveBinding] = []
        self._subscription = host.on_active_editor_changed(self._on_active_editor_changed)

    @property
    def bindings(self) -> List[LiveBinding]:
        return list(self._bindings)

    def get(self, binding_id: str) -> Optional[LiveBinding]:
        for binding in self._bindings:
            if binding.id == binding_id:
                return binding
        return None

    def dispose_bindings(self) -> None:
        """Dispose the current generation."""
        for binding in self._bindings:
            with LogContext(entry=binding.id, script=binding.entry.script):
                try:
                    binding.dispose()
                except Exception as e:
                    logger.error(f"Disposing {binding.id} failed: {e}")
        self._bindings = []

    def _create_binding(self, entry: Entry) -> LiveBinding:
        script_path = str(self.loader.resolve(entry.script))
        cell = self.state_store.get_or_create(script_path, self.scope, entry.initial_state())
        binding_class = AppBinding if entry.kind is EntryKind.APP else CommandBinding
        return binding_class(entry, self.host, self.loader, self.values, cell, self.global_state)

    def _register(self, entry: Entry, editor: Optional[EditorInfo]) -> Optional[LiveBinding]:
        """Realize one entry. Returns None if it was skipped or failed."""
        try:
            check_entry(entry, self.values)
        except ValidationSkip as e:
            logger.info(str(e))
            return None

        binding = self._create_binding(entry)
        try:
            binding.register_command()
            binding.create_button()
            binding.load()
        except Exception as e:
            if isinstance(e, PowertoolsError):
                logger.error(f"Could not register {entry.key}: {e}")
            else:
                logger.error(f"Could not register {entry.key}: {e}", exc_info=True)
            binding.dispose()
            return None

        binding.activate()
        binding.refresh_visibility(editor)
        return binding

    def reload(self, entries: List[Entry]) -> List[LiveBinding]:
        """
        Replace all bindings with ones for the given entries.

        Failing entries are logged and skipped; the reload always completes.

        Returns:
            The new generation of bindings
        """
        self.dispose_bindings()
        self.loader.reset()

        editor = self.host.active_editor
        bindings: List[LiveBinding] = []
        for entry in entries:
            with LogContext(entry=entry.key, script=entry.script):
                binding = self._register(entry, editor)
            if binding is not None:
                bindings.append(binding)

        self._bindings = bindings
        self.generation += 1
        logger.info(
            f"Registered {len(bindings)} of {len(entries)} {self.kind.value}s "
            f"(generation {self.generation})"
        )
        return self.bindings

    def reload_from_config(self, config: Optional[Mapping[str, Any]]) -> List[LiveBinding]:
        """Parse entry configs keyed by id, then reload."""
        entries: List[Entry] = []
        for key, value in (config or {}).items():
            try:
                entries.append(Entry.from_config(key, value, self.kind))
            except InvalidConfigError as e:
                logger.error(f"Invalid {self.kind.value} '{key}': {e}")
        return self.reload(entries)

    async def execute(self, binding_id: str, *args: Any) -> Any:
        """
        Run a binding's command through the host.

        Raises:
            KeyError: If no binding has this id
        """
        if self.get(binding_id) is None:
            raise KeyError(f"Unknown {self.kind.value}: {binding_id}")

        result = self.host.execute_command(binding_id, *args)
        return await resolve_result(result)

    def _on_active_editor_changed(self, editor: Optional[EditorInfo]) -> None:
        for binding in self._bindings:
            if binding.button is None:
                continue
            try:
                binding.refresh_visibility(editor)
            except Exception as e:
                logger.error(f"Updating button of {binding.id} failed: {e}")
                continue
            hook = binding.entry.button.on_editor_changed
            if hook is not None:
                run_hook(hook, self.values, f"{binding.id}.onEditorChanged", binding=binding, editor=editor)

    def dispose(self) -> None:
        """Unsubscribe from the host and dispose all bindings."""
        if self._subscription is not None:
            self._subscription.dispose()
            self._subscription = None
        self.dispose_bindings()
        self.loader.reset()

    def __len__(self) -> int:
        return len(self._bindings)
