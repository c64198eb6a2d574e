"""Cooperative cancellation for backoff waits."""

from __future__ import annotations

import threading


class CancellationToken:
    """Thread-safe cancellation signal.

    The executor waits on the token during backoff, so a ``cancel()``
    from another thread or a signal handler wakes it immediately.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    @property
    def cancelled(self) -> bool:
        """Return ``True`` once ``cancel()`` has been called."""
        return self._event.is_set()

    def cancel(self) -> None:
        """Request cancellation. Idempotent."""
        self._event.set()

    def wait(self, seconds: float) -> bool:
        """Block for up to *seconds*.

        Returns:
            ``True`` if cancellation was requested before or during the wait.
        """
        if seconds <= 0:
            return self.cancelled
        return self._event.wait(seconds)
