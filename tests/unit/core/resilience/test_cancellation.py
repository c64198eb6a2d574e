"""Tests for CancellationToken."""

from __future__ import annotations

import threading
import time

from ffu_orchestrator.core.resilience import CancellationToken


class TestCancellationToken:
    """Tests for CancellationToken."""

    def test_initially_not_cancelled(self) -> None:
        assert not CancellationToken().cancelled

    def test_cancel_is_idempotent(self) -> None:
        token = CancellationToken()
        token.cancel()
        token.cancel()
        assert token.cancelled

    def test_zero_wait_returns_state(self) -> None:
        token = CancellationToken()
        assert token.wait(0) is False
        token.cancel()
        assert token.wait(0) is True

    def test_wait_times_out(self) -> None:
        assert CancellationToken().wait(0.01) is False

    def test_cancel_wakes_waiter(self) -> None:
        """A cancel from another thread ends a long wait early."""
        token = CancellationToken()
        timer = threading.Timer(0.05, token.cancel)
        timer.start()
        start = time.monotonic()
        try:
            assert token.wait(30.0) is True
        finally:
            timer.cancel()
        assert time.monotonic() - start < 5.0
