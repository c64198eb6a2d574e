"""Built-in build hooks: logging."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from ffu_orchestrator.core.remediation.base import RemediationOutcome
from ffu_orchestrator.core.stage.base import AttemptError, PipelineStage


class LoggingHooks:
    """Hooks that log build lifecycle events.

    Uses ``%s`` formatting for lazy evaluation.

    Args:
        logger: Custom logger instance. Defaults to ``logging.getLogger("ffu.build")``.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger("ffu.build")

    @property
    def logger(self) -> logging.Logger:
        """Return the logger used by this hooks instance."""
        return self._logger

    def before_build(self, build_name: str, stages: Sequence[PipelineStage]) -> None:
        self._logger.info("Build '%s' starting with %d stages", build_name, len(stages))

    def after_build(self, report: Any) -> None:
        self._logger.info(
            "Build '%s' %s in %dms",
            report.build_name,
            report.status.value,
            report.duration_ms,
        )

    def before_stage(self, stage: PipelineStage, index: int, total: int) -> None:
        self._logger.info("Stage '%s' [%d/%d] starting", stage.name, index + 1, total)

    def after_stage(self, outcome: Any, index: int, total: int) -> None:
        level = logging.INFO if outcome.status.value == "succeeded" else logging.ERROR
        self._logger.log(
            level,
            "Stage '%s' [%d/%d] %s after %d attempt(s) in %dms",
            outcome.name,
            index + 1,
            total,
            outcome.status.value,
            len(outcome.attempts),
            outcome.duration_ms,
        )

    def on_attempt_failure(self, stage: PipelineStage, attempt: int, error: AttemptError) -> None:
        self._logger.warning(
            "Stage '%s' attempt %d/%d failed (%s, %s): %s",
            stage.name,
            attempt,
            stage.max_attempts,
            error.cause.value,
            error.category.value,
            error.message,
        )
        if error.detail:
            self._logger.debug("Stage '%s' attempt %d detail:\n%s", stage.name, attempt, error.detail)

    def on_remediation(self, stage: PipelineStage, attempt: int, outcome: RemediationOutcome) -> None:
        self._logger.info(
            "Stage '%s' remediation after attempt %d applied [%s]",
            stage.name,
            attempt,
            ", ".join(sorted(outcome.applied)),
        )
        for issue in outcome.residual_issues:
            self._logger.warning("Stage '%s' residual issue: %s", stage.name, issue)

    def on_retry_attempt(
        self,
        stage: PipelineStage,
        attempt: int,
        max_attempts: int,
        delay_ms: int,
        error: AttemptError,
    ) -> None:
        self._logger.warning(
            "Stage '%s' retry %d/%d after %dms: %s",
            stage.name,
            attempt + 1,
            max_attempts,
            delay_ms,
            error.message,
        )

    def on_stage_skipped(self, stage: PipelineStage, index: int) -> None:
        self._logger.info("Stage '%s' [%d] skipped", stage.name, index + 1)
