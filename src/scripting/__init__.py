"""
Powertools Scripting

User-defined commands and apps backed by Python scripts.
"""

from .bindings import AppBinding, BindingState, CommandBinding, LiveBinding
from .context import InvocationContext
from .entries import ButtonSpec, Entry, EntryKind
from .host import EditorHost, EditorInfo, MemoryHost
from .module_loader import ScriptModule, ScriptModuleLoader
from .registry import ScriptRegistry
from .runtime import PowertoolsRuntime
from .state import ScriptStateStore, StateCell, StateScope
from .values import ValueContext

__all__ = [
    "AppBinding",
    "BindingState",
    "CommandBinding",
    "LiveBinding",
    "InvocationContext",
    "ButtonSpec",
    "Entry",
    "EntryKind",
    "EditorHost",
    "EditorInfo",
    "MemoryHost",
    "ScriptModule",
    "ScriptModuleLoader",
    "ScriptRegistry",
    "PowertoolsRuntime",
    "ScriptStateStore",
    "StateCell",
    "StateScope",
    "ValueContext",
]
