"""Logging configuration for the CLI."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

from ffu_orchestrator.core.config.base import LogFormat
from ffu_orchestrator.core.config.logging_config import LoggingConfig

TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


class JsonFormatter(logging.Formatter):
    """Formats each record as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def configure_logging(config: LoggingConfig, level: str | None = None, log_file: str | None = None) -> str | None:
    """Configure the root logger from *config*.

    Records go to stderr and, when a log file is configured, also to that
    file at DEBUG level so failure explanations can point at full detail.

    Args:
        config: Logging configuration from the build file.
        level: Console level override (e.g. from ``--log-level``).
        log_file: Log file override (e.g. from ``--log-file``).

    Returns:
        The log file path in use, or ``None``.
    """
    formatter: logging.Formatter
    if config.format == LogFormat.JSON:
        formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(TEXT_FORMAT)

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(getattr(logging, level or config.level.value))
    console.setFormatter(formatter)
    root.addHandler(console)
    root.setLevel(logging.DEBUG)

    path = log_file or config.file
    if path:
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
    else:
        root.setLevel(console.level)

    return path
