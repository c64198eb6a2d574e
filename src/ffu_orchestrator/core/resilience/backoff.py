"""Backoff delay calculation."""

from __future__ import annotations

import random


def backoff_delay(
    initial_seconds: float,
    multiplier: float,
    max_seconds: float,
    retry_index: int,
    jitter_factor: float = 0.0,
) -> float:
    """Calculate the delay in seconds before a retry.

    Uses exponential backoff: ``min(initial * multiplier^retry_index, max) * (1 + jitter)``.
    With ``multiplier == 1`` this is a fixed delay.

    Args:
        initial_seconds: Delay before the first retry.
        multiplier: Growth factor per further retry.
        max_seconds: Cap applied before jitter.
        retry_index: Zero-based retry index (0 = first retry).
        jitter_factor: Random jitter multiplier (0 disables jitter).

    Returns:
        Delay in seconds.
    """
    base = min(initial_seconds * (multiplier ** retry_index), max_seconds)

    if jitter_factor > 0:
        base += base * jitter_factor * random.random()

    return base
