"""
Atomic file operations for Powertools.

Persisted state (settings, global state, known-app snapshots) is always
replaced wholesale: write to a temp file in the same directory, then rename.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Union


def _fsync_directory(directory: Path) -> None:
    try:
        dir_fd = os.open(str(directory), os.O_RDONLY | os.O_DIRECTORY)
        try:
            os.fsync(dir_fd)
        finally:
            os.close(dir_fd)
    except (OSError, AttributeError):
        # O_DIRECTORY not available on all platforms
        pass


def atomic_write_text(path: Union[str, Path], content: str, mode: int = 0o644) -> None:
    """
    Write text content to file atomically.

    Args:
        path: Destination file path
        content: Text content to write
        mode: File permissions (default 0o644)
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, temp_path = tempfile.mkstemp(
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp"
    )

    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())

        os.chmod(temp_path, mode)
        os.replace(temp_path, path)
        _fsync_directory(path.parent)

    except Exception:
        try:
            os.unlink(temp_path)
        except OSError:
            pass
        raise


def atomic_write_json(
    path: Union[str, Path],
    data: Any,
    indent: int = 2,
    mode: int = 0o644,
) -> None:
    """
    Write JSON data to file atomically.

    Args:
        path: Destination file path
        data: JSON-serializable data
        indent: JSON indentation (default 2)
        mode: File permissions (default 0o644)
    """
    content = json.dumps(data, indent=indent, ensure_ascii=False)
    atomic_write_text(path, content + '\n', mode)
