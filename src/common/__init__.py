"""
Powertools Common Utilities

Shared exceptions, logging, decorators and settings.
"""

from .exceptions import (
    PowertoolsError, CatalogError, NetworkError, ParseError, ScriptError,
    ScriptLoadError, RegistrationConflict, ValidationSkip, BindingStateError,
    InstallError, DownloadError, AppArchiveError, ConfigError,
    InvalidConfigError, MissingConfigError,
)
from .decorators import handle_errors, timed
from .logging_config import setup_logging, add_logging_arguments, logging_options, LogContext
from .config import Settings, get_app_store_url

__all__ = [
    # Exceptions
    "PowertoolsError", "CatalogError", "NetworkError", "ParseError", "ScriptError",
    "ScriptLoadError", "RegistrationConflict", "ValidationSkip", "BindingStateError",
    "InstallError", "DownloadError", "AppArchiveError", "ConfigError",
    "InvalidConfigError", "MissingConfigError",
    # Decorators
    "handle_errors", "timed",
    # Logging
    "setup_logging", "add_logging_arguments", "logging_options", "LogContext",
    # Settings
    "Settings", "get_app_store_url",
]
