"""
Entry conditions - platform and filter predicates, button visibility.

An entry's ``if`` filter is a Python expression from the user's settings
and is run with eval(). It has the same trust level as the entry's script
module, which is executed in-process as well.
"""

from __future__ import annotations

import fnmatch
import logging
import sys
from pathlib import PurePath
from typing import Optional

from common.exceptions import ValidationSkip

from .entries import ButtonSpec, Entry
from .host import EditorInfo
from .values import ValueContext

logger = logging.getLogger(__name__)


def matches_platform(entry: Entry, platform: Optional[str] = None) -> bool:
    """True if the entry has no platform list or lists the current platform."""
    if not entry.platforms:
        return True

    platform = (platform or sys.platform).lower()
    return any(platform.startswith(p.lower()) for p in entry.platforms)


def matches_filter(entry: Entry, values: ValueContext) -> bool:
    """
    Evaluate the entry's ``if`` expression.

    Placeholder values are available as names. Errors propagate.
    """
    if not entry.condition:
        return True

    namespace = values.snapshot()
    code = compile(entry.condition, f"<{entry.key}.if>", "eval")
    return bool(eval(code, {"__builtins__": __builtins__}, namespace))


def check_entry(entry: Entry, values: ValueContext) -> None:
    """
    Raise ValidationSkip if the entry does not apply here.

    Raises:
        ValidationSkip: Platform or filter predicate failed
    """
    if not matches_platform(entry):
        raise ValidationSkip(entry.key, f"not available on {sys.platform}")

    try:
        matched = matches_filter(entry, values)
    except Exception as e:
        raise ValidationSkip(entry.key, f"condition failed: {e}") from e

    if not matched:
        raise ValidationSkip(entry.key, "condition is false")


def is_visible_for_editor(button: Optional[ButtonSpec], editor: Optional[EditorInfo]) -> bool:
    """
    Check a button's visibility predicate against the active editor.

    Buttons without a predicate are always visible.
    """
    if button is None or not button.has_visibility_predicate:
        return True
    if editor is None:
        return False

    if button.languages:
        languages = {lang.lower() for lang in button.languages}
        if (editor.language_id or "").lower() not in languages:
            return False

    if button.pattern:
        file_name = editor.file_name or ""
        base_name = PurePath(file_name).name
        if not (fnmatch.fnmatch(file_name, button.pattern) or fnmatch.fnmatch(base_name, button.pattern)):
            return False

    return True
