"""
Powertools Utility Modules

Common utilities for file operations.
"""

from .atomic_write import (
    atomic_write_text,
    atomic_write_json,
)

__all__ = [
    "atomic_write_text",
    "atomic_write_json",
]
