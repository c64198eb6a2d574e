"""Base types and enums for configuration models."""

from enum import Enum


class ErrorCategory(str, Enum):
    """Closed taxonomy used to classify stage failures."""

    RESOURCE_EXHAUSTED = "resource_exhausted"
    LOCK_CONTENTION = "lock_contention"
    PERMISSION_DENIED = "permission_denied"
    DEPENDENCY_UNAVAILABLE = "dependency_unavailable"
    UNKNOWN = "unknown"


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    TEXT = "text"


class RemediationKind(str, Enum):
    """Built-in remediation step types available from configuration."""

    REMOVE_PATHS = "remove_paths"
    FREE_SPACE = "free_space"
    COMMAND = "command"
