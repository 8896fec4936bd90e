"""
Invocation context handed to script handlers.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Callable, Dict, Optional, Tuple

from .host import EditorInfo, HostExecutionContext, StatusButton
from .state import StateCell


class InvocationContext:
    """
    Everything a script handler gets. The only argument of every handler.

    ``state`` reads and writes the script's live state cell:

        def execute(ctx):
            ctx.state = {"count": ctx.state.get("count", 0) + 1}
    """

    def __init__(
        self,
        command: str,
        cell: StateCell,
        arguments: Tuple[Any, ...] = (),
        host_context: Optional[HostExecutionContext] = None,
        options: Any = None,
        global_values: Optional[Dict[str, Any]] = None,
        global_state: Optional[Dict[str, Any]] = None,
        replace_values: Optional[Callable[[Any], str]] = None,
        logger: Optional[logging.Logger] = None,
        button: Optional[StatusButton] = None,
        post: Optional[Callable[[str, Any], None]] = None,
        event: Optional[str] = None,
        data: Any = None,
    ):
        self.command = command
        self.arguments = tuple(arguments)
        self.options = copy.deepcopy(options)
        self.globals = dict(global_values or {})
        self.global_state = global_state if global_state is not None else {}
        self.replace_values = replace_values or (lambda text: "" if text is None else str(text))
        self.logger = logger or logging.getLogger(f"powertools.scripts.{command}")
        self.button = button
        self.post = post
        self.event = event
        self.data = data

        host_context = host_context or HostExecutionContext()
        self.host_context = host_context
        self.editor: Optional[EditorInfo] = host_context.editor
        self._cell = cell

    @property
    def file(self) -> Optional[str]:
        """File name of the active editor."""
        return self.editor.file_name if self.editor else None

    @property
    def state(self) -> Any:
        return self._cell.get()

    @state.setter
    def state(self, value: Any) -> None:
        self._cell.set(value)

    def __repr__(self) -> str:
        return f"InvocationContext(command={self.command!r}, event={self.event!r})"
