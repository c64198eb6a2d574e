"""Small helpers shared by the executor, facilities and diagnostics."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any


def safe_call(
    fn: Callable[[], None],
    call_logger: logging.Logger,
    message: str,
    *message_args: Any,
) -> None:
    """Invoke *fn*, logging any exception as a warning instead of raising it.

    The executor dispatches lifecycle hooks through this so a broken hook
    never changes a build outcome. *message* and *message_args* are passed
    to *call_logger* unformatted.
    """
    try:
        fn()
    except Exception:
        call_logger.warning(message, *message_args, exc_info=True)


def tail_lines(text: str, limit: int = 20) -> str:
    """Return the last *limit* non-blank lines of *text*."""
    lines = [line.rstrip() for line in text.splitlines() if line.strip()]
    return "\n".join(lines[-limit:])
