"""
Entry hooks (onCreated, onDestroyed, onEditorChanged).

A hook is either a callable or Python source from the user's settings.
Source hooks are run with exec(), with the same trust level as script
modules loaded by the module loader.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from .entries import HookCode
from .values import ValueContext

logger = logging.getLogger(__name__)


def run_hook(code: Optional[HookCode], values: ValueContext, name: str = "hook", **names: Any) -> bool:
    """
    Run a hook. Failures are logged and never raised.

    Args:
        code: Python source or a callable; None does nothing
        values: Placeholder values, in scope as ``values``
        name: Hook name for log messages
        **names: Extra names in scope (keyword arguments for callables)

    Returns:
        True if the hook ran without error (or there was none)
    """
    if code is None:
        return True

    try:
        if callable(code):
            code(**names)
        else:
            scope = {"values": values.snapshot(), "logger": logger}
            scope.update(names)
            exec(compile(code, f"<{name}>", "exec"), scope)
        return True
    except Exception as e:
        logger.error(f"Hook '{name}' failed: {e}", exc_info=True)
        return False
