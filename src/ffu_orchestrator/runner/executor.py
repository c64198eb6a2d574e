"""Sequential pipeline executor with per-stage retry and remediation."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from typing import Any

from ffu_orchestrator.core.errors import BuildError
from ffu_orchestrator.core.remediation.base import RemediationContext, RemediationOutcome
from ffu_orchestrator.core.resilience.cancellation import CancellationToken
from ffu_orchestrator.core.stage.base import AttemptError, FailureCause, FailureKind, PipelineStage
from ffu_orchestrator.core.utils import safe_call
from ffu_orchestrator.runner.hooks import NoOpHooks, PipelineHooks
from ffu_orchestrator.runner.result import (
    AttemptResult,
    BuildReport,
    BuildStatus,
    StageOutcome,
    StageStatus,
)

logger = logging.getLogger(__name__)


class PipelineExecutor:
    """Runs pipeline stages in order, enforcing each stage's retry policy.

    For every attempt the stage precondition is checked and then the
    action runs. A retryable failure with attempts left is followed by
    the stage's remediation, a backoff wait, and a retry. The first
    terminal failure of a required stage aborts the build and every later
    stage is recorded as skipped.

    The backoff wait is the only suspend point and is interruptible
    through a :class:`CancellationToken`; a cancelled wait ends the build
    with a ``cancelled`` report rather than a failure.

    Args:
        hooks: Lifecycle hooks (default: ``NoOpHooks``).
        clock: Injectable monotonic clock for testing.
        build_name: Name recorded in the report.
    """

    def __init__(
        self,
        hooks: PipelineHooks | None = None,
        clock: Callable[[], float] | None = None,
        build_name: str = "build",
    ) -> None:
        self._hooks: PipelineHooks = hooks or NoOpHooks()
        self._clock = clock or time.monotonic
        self._build_name = build_name

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def run(
        self,
        stages: Sequence[PipelineStage],
        cancel_token: CancellationToken | None = None,
    ) -> BuildReport:
        """Execute *stages* sequentially.

        Args:
            stages: Non-empty ordered stages with unique names.
            cancel_token: Optional token that interrupts backoff waits.

        Returns:
            The finalized ``BuildReport``.

        Raises:
            ValueError: If *stages* is empty or names are duplicated.
        """
        if not stages:
            raise ValueError("At least one stage is required")
        names = [s.name for s in stages]
        if len(names) != len(set(names)):
            raise ValueError("Stage names must be unique")

        token = cancel_token or CancellationToken()
        total = len(stages)
        outcomes: list[StageOutcome] = []
        status = BuildStatus.SUCCEEDED

        self._call_hook("before_build", self._build_name, list(stages))

        for index, stage in enumerate(stages):
            if status is not BuildStatus.SUCCEEDED:
                outcomes.append(StageOutcome(name=stage.name, status=StageStatus.SKIPPED, required=stage.required))
                self._call_hook("on_stage_skipped", stage, index)
                continue

            if token.cancelled:
                logger.info("Cancellation requested before stage '%s'", stage.name)
                outcome = StageOutcome(name=stage.name, status=StageStatus.CANCELLED, required=stage.required)
            else:
                self._call_hook("before_stage", stage, index, total)
                outcome = self._run_stage(stage, token)
                self._call_hook("after_stage", outcome, index, total)
            outcomes.append(outcome)

            if outcome.status is StageStatus.CANCELLED:
                status = BuildStatus.CANCELLED
            elif outcome.status is StageStatus.FAILED:
                if stage.required:
                    status = BuildStatus.FAILED
                else:
                    logger.warning("Optional stage '%s' failed; continuing", stage.name)

        report = BuildReport(
            build_name=self._build_name,
            status=status,
            stages=tuple(outcomes),
            duration_ms=sum(o.duration_ms for o in outcomes),
        )
        self._call_hook("after_build", report)
        return report

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _run_stage(self, stage: PipelineStage, token: CancellationToken) -> StageOutcome:
        """Run one stage to a terminal state."""
        stage_start = self._clock()
        attempts: list[AttemptResult] = []

        for attempt in range(1, stage.max_attempts + 1):
            attempt_start = self._clock()
            error = self._attempt(stage)
            duration_ms = self._elapsed_ms(attempt_start)

            if error is None:
                attempts.append(AttemptResult(attempt=attempt, success=True, duration_ms=duration_ms, diagnostic="ok"))
                return self._outcome(stage, StageStatus.SUCCEEDED, attempts, stage_start)

            self._call_hook("on_attempt_failure", stage, attempt, error)
            diagnostic = f"Attempt {attempt}/{stage.max_attempts}: {error.describe()}"

            if not error.retryable or attempt == stage.max_attempts:
                if not error.retryable:
                    logger.error("Stage '%s' failed with a non-retryable %s", stage.name, error.category.value)
                attempts.append(
                    AttemptResult(
                        attempt=attempt,
                        success=False,
                        duration_ms=duration_ms,
                        diagnostic=diagnostic,
                        error=error,
                    )
                )
                return self._outcome(stage, StageStatus.FAILED, attempts, stage_start)

            remediation = self._remediate(stage, attempt, error)
            attempts.append(
                AttemptResult(
                    attempt=attempt,
                    success=False,
                    duration_ms=duration_ms,
                    diagnostic=diagnostic,
                    error=error,
                    remediation=remediation,
                )
            )

            delay = stage.delay_for(attempt - 1)
            self._call_hook("on_retry_attempt", stage, attempt, stage.max_attempts, int(delay * 1000), error)
            if token.wait(delay):
                logger.warning("Stage '%s' cancelled during backoff", stage.name)
                return self._outcome(stage, StageStatus.CANCELLED, attempts, stage_start)

        # Loop always returns on the final attempt.
        raise AssertionError("unreachable")

    def _attempt(self, stage: PipelineStage) -> AttemptError | None:
        """Run precondition and action once, returning the error if any."""
        try:
            stage.check_precondition()
        except Exception as exc:
            return self._to_error(stage, exc, FailureCause.PRECONDITION_FAILED)

        try:
            stage.action()
        except Exception as exc:
            return self._to_error(stage, exc, FailureCause.ACTION_FAILED)

        return None

    def _to_error(self, stage: PipelineStage, exc: Exception, cause: FailureCause) -> AttemptError:
        if cause is FailureCause.PRECONDITION_FAILED:
            # Only an explicit opt-in makes a precondition failure retryable.
            retryable = isinstance(exc, BuildError) and exc.retryable is True
            kind = FailureKind.RETRYABLE if retryable else FailureKind.FATAL
        else:
            try:
                kind = stage.classify(exc)
            except Exception:
                logger.warning(
                    "Classifier for stage '%s' raised; treating failure as fatal", stage.name, exc_info=True
                )
                kind = FailureKind.FATAL
        logger.debug("Stage '%s' %s", stage.name, cause.value, exc_info=exc)
        return AttemptError.from_exception(exc, cause, retryable=kind is FailureKind.RETRYABLE)

    def _remediate(self, stage: PipelineStage, attempt: int, error: AttemptError) -> RemediationOutcome | None:
        """Run the stage's remediation, never letting it raise."""
        if stage.remediation is None:
            return None

        context = RemediationContext(stage_name=stage.name, attempt=attempt, error=error)
        try:
            outcome = stage.remediation.remediate(context)
        except Exception as exc:
            logger.warning("Remediation for stage '%s' raised an exception", stage.name, exc_info=True)
            outcome = RemediationOutcome(residual_issues=(f"{type(exc).__name__}: {exc}",))

        self._call_hook("on_remediation", stage, attempt, outcome)
        return outcome

    def _outcome(
        self,
        stage: PipelineStage,
        status: StageStatus,
        attempts: list[AttemptResult],
        stage_start: float,
    ) -> StageOutcome:
        return StageOutcome(
            name=stage.name,
            status=status,
            attempts=tuple(attempts),
            duration_ms=self._elapsed_ms(stage_start),
            required=stage.required,
        )

    def _elapsed_ms(self, start: float) -> int:
        return int((self._clock() - start) * 1000)

    def _call_hook(self, method: str, *args: Any) -> None:
        """Invoke a hook method; errors are logged, not raised."""
        safe_call(
            lambda: getattr(self._hooks, method)(*args),
            logger,
            "Hook %s.%s raised an exception",
            type(self._hooks).__name__,
            method,
        )
