"""Fan-out/fan-in over independent jobs.

Jobs operate on disjoint resources (for example distinct physical
drives) and share no mutable state, so the only coordination is the
join barrier: every job runs to completion before results are returned.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from ffu_orchestrator.core.diagnostics.taxonomy import classify_error
from ffu_orchestrator.core.errors import FanOutError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class JobResult(Generic[T]):
    """Outcome of one fan-out job."""

    name: str
    success: bool
    duration_ms: int
    value: T | None = None
    error: BaseException | None = None


@dataclass(frozen=True)
class FanOutResult(Generic[T]):
    """Aggregated outcomes, in submission order."""

    results: list[JobResult[T]] = field(default_factory=list)

    @property
    def all_succeeded(self) -> bool:
        """Return ``True`` if every job succeeded."""
        return all(r.success for r in self.results)

    @property
    def failures(self) -> dict[str, BaseException]:
        """Return ``{name: error}`` for failed jobs, in submission order."""
        return {r.name: r.error for r in self.results if not r.success and r.error is not None}

    def raise_for_failures(self) -> None:
        """Raise ``FanOutError`` if any job failed.

        The error category is that of the first failed job.
        """
        failures = self.failures
        if not failures:
            return
        first = next(iter(failures.values()))
        raise FanOutError(failures, classify_error(first))


def run_parallel(
    jobs: Mapping[str, Callable[[], T]],
    max_workers: int | None = None,
    clock: Callable[[], float] | None = None,
) -> FanOutResult[T]:
    """Run *jobs* concurrently and wait for all of them.

    A failing job never cancels the others.

    Args:
        jobs: Job name to zero-argument callable.
        max_workers: Pool size (default: one worker per job).
        clock: Injectable monotonic clock for testing.

    Returns:
        ``FanOutResult`` with one ``JobResult`` per job.
    """
    if not jobs:
        return FanOutResult()

    now = clock or time.monotonic
    workers = max_workers or len(jobs)

    def _run(name: str, fn: Callable[[], T]) -> JobResult[T]:
        start = now()
        try:
            value = fn()
        except Exception as exc:
            logger.warning("Parallel job '%s' failed: %s", name, exc)
            return JobResult(name=name, success=False, duration_ms=int((now() - start) * 1000), error=exc)
        return JobResult(name=name, success=True, duration_ms=int((now() - start) * 1000), value=value)

    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="ffu-fanout") as pool:
        futures = [pool.submit(_run, name, fn) for name, fn in jobs.items()]
        # Leaving the context manager is the join barrier.
    return FanOutResult(results=[f.result() for f in futures])
