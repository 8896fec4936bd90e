"""
Powertools Exception Hierarchy

Provides clear, actionable error messages with structured information
for logging, user feedback, and programmatic error handling.
"""

from typing import Optional, Dict, Any


class PowertoolsError(Exception):
    """
    Base exception for all Powertools errors.

    Attributes:
        message: Human-readable error message
        code: Machine-readable error code
        details: Additional context as key-value pairs
        cause: Original exception that caused this error
        recoverable: Whether the error is recoverable
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        recoverable: bool = True,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        self.cause = cause
        self.recoverable = recoverable

    def __str__(self):
        s = f"[{self.code}] {self.message}"
        if self.details:
            s += f" (details: {self.details})"
        if self.cause:
            s += f" caused by: {self.cause}"
        return s

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
            "recoverable": self.recoverable,
        }


# =============================================================================
# Catalog errors
# =============================================================================

class CatalogError(PowertoolsError):
    """Base for app catalog errors."""
    pass


class NetworkError(CatalogError):
    """Catalog could not be fetched (timeout, transport error or non-2xx status)."""
    def __init__(
        self,
        url: str,
        reason: str,
        status_code: Optional[int] = None,
        status_text: Optional[str] = None,
        cause: Optional[Exception] = None,
    ):
        if status_code is not None:
            message = f"Unexpected response: [{status_code}] '{status_text or ''}'"
        else:
            message = f"Failed to fetch '{url}': {reason}"
        super().__init__(
            message,
            code="NETWORK_ERROR",
            details={
                "url": url,
                "reason": reason,
                "status_code": status_code,
                "status_text": status_text,
            },
            cause=cause,
        )
        self.url = url
        self.status_code = status_code
        self.status_text = status_text


class ParseError(CatalogError):
    """Catalog body is not a valid catalog document."""
    def __init__(self, url: str, reason: str, cause: Optional[Exception] = None):
        super().__init__(
            f"Invalid catalog at '{url}': {reason}",
            code="CATALOG_PARSE_FAILED",
            details={"url": url, "reason": reason},
            cause=cause,
        )
        self.url = url


# =============================================================================
# Script errors
# =============================================================================

class ScriptError(PowertoolsError):
    """Base for script module errors."""
    pass


class ScriptLoadError(ScriptError):
    """Script module is missing or failed while loading."""
    def __init__(self, script: str, reason: str, cause: Optional[Exception] = None):
        super().__init__(
            f"Could not load script '{script}': {reason}",
            code="SCRIPT_LOAD_FAILED",
            details={"script": script, "reason": reason},
            cause=cause,
        )
        self.script = script


class RegistrationConflict(ScriptError):
    """A command with the same id is already registered."""
    def __init__(self, command_id: str):
        super().__init__(
            f"Command '{command_id}' is already registered",
            code="COMMAND_CONFLICT",
            details={"command_id": command_id},
        )
        self.command_id = command_id


class ValidationSkip(ScriptError):
    """Entry does not apply to this environment. A skip, not a failure."""
    def __init__(self, entry_key: str, reason: str):
        super().__init__(
            f"Entry '{entry_key}' skipped: {reason}",
            code="ENTRY_SKIPPED",
            details={"entry": entry_key, "reason": reason},
        )
        self.entry_key = entry_key


class BindingStateError(ScriptError):
    """Invalid lifecycle transition for a binding."""
    def __init__(self, binding_id: str, current_state: str, transition: str):
        super().__init__(
            f"Cannot {transition} binding '{binding_id}' in state '{current_state}'",
            code="BINDING_INVALID_STATE",
            details={
                "binding": binding_id,
                "current_state": current_state,
                "transition": transition,
            },
            recoverable=False,
        )


# =============================================================================
# Installation errors
# =============================================================================

class InstallError(PowertoolsError):
    """Base for installation errors."""
    pass


class DownloadError(InstallError):
    """Download failed."""
    def __init__(self, url: str, reason: str, cause: Optional[Exception] = None):
        super().__init__(
            f"Failed to download: {reason}",
            code="DOWNLOAD_FAILED",
            details={"url": url, "reason": reason},
            cause=cause,
        )


class AppArchiveError(InstallError):
    """App archive is malformed or unsafe."""
    def __init__(self, reason: str, cause: Optional[Exception] = None):
        super().__init__(
            f"Invalid app archive: {reason}",
            code="APP_ARCHIVE_INVALID",
            details={"reason": reason},
            cause=cause,
            recoverable=False,
        )


# =============================================================================
# Configuration errors
# =============================================================================

class ConfigError(PowertoolsError):
    """Base for configuration errors."""
    pass


class InvalidConfigError(ConfigError):
    """Invalid configuration."""
    def __init__(self, field: str, value: Any, reason: str):
        super().__init__(
            f"Invalid configuration: {field}={value}: {reason}",
            code="INVALID_CONFIG",
            details={"field": field, "value": str(value), "reason": reason},
        )


class MissingConfigError(ConfigError):
    """Required configuration missing."""
    def __init__(self, field: str):
        super().__init__(
            f"Missing required configuration: {field}",
            code="MISSING_CONFIG",
            details={"field": field},
        )
