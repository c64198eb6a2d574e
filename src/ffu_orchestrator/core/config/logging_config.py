"""Logging configuration model."""

from dataclasses import dataclass

from ffu_orchestrator.core.config.base import LogFormat, LogLevel


@dataclass
class LoggingConfig:
    """Console and log-file settings for a build run."""

    level: LogLevel = LogLevel.INFO
    """Logging level (default: INFO)"""

    format: LogFormat = LogFormat.TEXT
    """Log output format (default: text)"""

    file: str | None = None
    """Detailed log file path, referenced in failure explanations (optional)"""
