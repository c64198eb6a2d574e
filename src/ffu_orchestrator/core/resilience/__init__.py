"""Resilience primitives: backoff and cancellation."""

from ffu_orchestrator.core.resilience.backoff import backoff_delay
from ffu_orchestrator.core.resilience.cancellation import CancellationToken

__all__ = [
    "CancellationToken",
    "backoff_delay",
]
