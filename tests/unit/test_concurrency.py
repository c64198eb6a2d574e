"""Concurrency tests for cancellation and fan-out.

Validates that cancellation from another thread interrupts a backoff
wait and that fan-out jobs run in isolation under contention.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable

from ffu_orchestrator.core.errors import LockContentionError
from ffu_orchestrator.core.resilience.cancellation import CancellationToken
from ffu_orchestrator.core.stage.base import PipelineStage
from ffu_orchestrator.runner.executor import PipelineExecutor
from ffu_orchestrator.runner.result import BuildReport, BuildStatus, StageStatus
from ffu_orchestrator.runtime.fanout import run_parallel

THREADS = 8
ITERATIONS = 200


def _locked() -> None:
    raise LockContentionError("mount busy")


class TestCancellationConcurrency:
    """Cancellation requested from a second thread."""

    def test_cancel_interrupts_backoff(self) -> None:
        token = CancellationToken()
        failed_once = threading.Event()

        def action() -> None:
            failed_once.set()
            _locked()

        stage = PipelineStage(name="capture", action=action, max_attempts=3, backoff_seconds=60.0)
        reports: list[BuildReport] = []

        def run() -> None:
            reports.append(PipelineExecutor().run([stage], cancel_token=token))

        worker = threading.Thread(target=run)
        start = time.monotonic()
        worker.start()
        assert failed_once.wait(5.0)
        token.cancel()
        worker.join(10.0)

        assert not worker.is_alive()
        assert time.monotonic() - start < 30.0
        assert reports[0].status is BuildStatus.CANCELLED
        assert reports[0].stages[0].status is StageStatus.CANCELLED

    def test_many_waiters_released(self) -> None:
        token = CancellationToken()
        woke: list[bool] = []
        lock = threading.Lock()

        def wait() -> None:
            cancelled = token.wait(30.0)
            with lock:
                woke.append(cancelled)

        threads = [threading.Thread(target=wait) for _ in range(THREADS)]
        for t in threads:
            t.start()
        token.cancel()
        for t in threads:
            t.join(5.0)

        assert woke == [True] * THREADS


class TestFanOutConcurrency:
    """Fan-out jobs under contention."""

    def test_jobs_see_only_their_own_state(self) -> None:
        counters = {str(i): 0 for i in range(THREADS)}

        def make_job(name: str) -> Callable[[], int]:
            def job() -> int:
                for _ in range(ITERATIONS):
                    counters[name] += 1
                return counters[name]

            return job

        result = run_parallel({name: make_job(name) for name in counters}, max_workers=THREADS)

        assert result.all_succeeded
        assert all(r.value == ITERATIONS for r in result.results)

    def test_partial_failures_collected(self) -> None:
        jobs = {str(i): (_locked if i % 2 else (lambda: None)) for i in range(THREADS)}
        result = run_parallel(jobs, max_workers=3)

        assert sorted(result.failures) == [str(i) for i in range(THREADS) if i % 2]
        assert len(result.results) == THREADS
