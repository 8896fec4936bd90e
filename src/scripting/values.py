"""
Placeholder values

Display texts of entries may contain ``${ name }`` placeholders. Each
placeholder is evaluated as a jinja2 expression on every read so that
changing values (the clock, globals edited at runtime) show up without a
reload. Text outside placeholders is never parsed, so ``{#`` or ``{%``
in a label stays literal.
"""

from __future__ import annotations

import logging
import os
import re
import sys
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from jinja2 import Environment, TemplateError, Undefined

logger = logging.getLogger(__name__)

PLACEHOLDER_RE = re.compile(r"\$\{(.*?)\}", re.DOTALL)


class ValueContext:
    """
    Global and workspace placeholder values.

    Workspace values override global ones. Callable values are invoked
    on every render.
    """

    def __init__(
        self,
        global_values: Optional[Dict[str, Any]] = None,
        workspace_values: Optional[Dict[str, Any]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.global_values: Dict[str, Any] = dict(global_values or {})
        self.workspace_values: Dict[str, Any] = dict(workspace_values or {})
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._env = Environment(autoescape=False)

    def builtins(self) -> Dict[str, Any]:
        now = self._clock()
        return {
            "now": now.isoformat(),
            "today": now.date().isoformat(),
            "platform": sys.platform,
            "env": dict(os.environ),
        }

    def snapshot(self) -> Dict[str, Any]:
        """Current values with callables evaluated."""
        values = self.builtins()
        for source in (self.global_values, self.workspace_values):
            for name, value in source.items():
                values[name] = value() if callable(value) else value
        return values

    def replace_values(self, text: Any) -> str:
        """
        Render placeholders in text. None renders as an empty string.

        Placeholders naming unknown values, and placeholders that are not
        valid expressions, are kept exactly as written.
        """
        if text is None:
            return ""
        text = str(text)
        if "${" not in text:
            return text

        values = self.snapshot()

        def render(match):
            source = match.group(1).strip()
            try:
                result = self._env.compile_expression(source, undefined_to_none=False)(values)
            except TemplateError as e:
                logger.debug(f"Cannot render '{match.group(0)}': {e}")
                return match.group(0)
            if isinstance(result, Undefined):
                return match.group(0)
            return str(result)

        return PLACEHOLDER_RE.sub(render, text)
