"""Build lifecycle hooks protocol and infrastructure."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any, Protocol

from ffu_orchestrator.core.remediation.base import RemediationOutcome
from ffu_orchestrator.core.stage.base import AttemptError, PipelineStage

logger = logging.getLogger(__name__)


class PipelineHooks(Protocol):
    """Protocol defining lifecycle callbacks for build execution.

    Implementations receive notifications at key points during a build.
    This protocol is NOT ``@runtime_checkable``; use structural typing.
    """

    def before_build(self, build_name: str, stages: Sequence[PipelineStage]) -> None:
        """Called before the first stage starts."""
        ...

    def after_build(self, report: Any) -> None:
        """Called with the finalized ``BuildReport``."""
        ...

    def before_stage(self, stage: PipelineStage, index: int, total: int) -> None:
        """Called before each stage's first attempt."""
        ...

    def after_stage(self, outcome: Any, index: int, total: int) -> None:
        """Called with the ``StageOutcome`` of every stage that ran."""
        ...

    def on_attempt_failure(self, stage: PipelineStage, attempt: int, error: AttemptError) -> None:
        """Called after an attempt fails, before any remediation."""
        ...

    def on_remediation(self, stage: PipelineStage, attempt: int, outcome: RemediationOutcome) -> None:
        """Called after a remediation pass."""
        ...

    def on_retry_attempt(
        self,
        stage: PipelineStage,
        attempt: int,
        max_attempts: int,
        delay_ms: int,
        error: AttemptError,
    ) -> None:
        """Called before waiting out the backoff for a retry."""
        ...

    def on_stage_skipped(self, stage: PipelineStage, index: int) -> None:
        """Called for each stage skipped after the build aborted."""
        ...


class NoOpHooks:
    """Hooks implementation that does nothing.

    Useful as a default or placeholder.
    """

    def before_build(self, build_name: str, stages: Sequence[PipelineStage]) -> None:
        pass

    def after_build(self, report: Any) -> None:
        pass

    def before_stage(self, stage: PipelineStage, index: int, total: int) -> None:
        pass

    def after_stage(self, outcome: Any, index: int, total: int) -> None:
        pass

    def on_attempt_failure(self, stage: PipelineStage, attempt: int, error: AttemptError) -> None:
        pass

    def on_remediation(self, stage: PipelineStage, attempt: int, outcome: RemediationOutcome) -> None:
        pass

    def on_retry_attempt(
        self,
        stage: PipelineStage,
        attempt: int,
        max_attempts: int,
        delay_ms: int,
        error: AttemptError,
    ) -> None:
        pass

    def on_stage_skipped(self, stage: PipelineStage, index: int) -> None:
        pass


class CompositeHooks:
    """Broadcasts lifecycle events to multiple hooks implementations.

    Exceptions raised by individual hooks are caught and logged so that
    one misbehaving hook does not break the build.
    """

    def __init__(self, *hooks: PipelineHooks) -> None:
        self._hooks: tuple[PipelineHooks, ...] = hooks

    def _call_all(self, method: str, *args: Any) -> None:
        """Invoke *method* on every registered hook, swallowing errors."""
        for hook in self._hooks:
            try:
                getattr(hook, method)(*args)
            except Exception:
                logger.warning(
                    "Hook %s.%s raised an exception",
                    type(hook).__name__,
                    method,
                    exc_info=True,
                )

    def before_build(self, build_name: str, stages: Sequence[PipelineStage]) -> None:
        self._call_all("before_build", build_name, stages)

    def after_build(self, report: Any) -> None:
        self._call_all("after_build", report)

    def before_stage(self, stage: PipelineStage, index: int, total: int) -> None:
        self._call_all("before_stage", stage, index, total)

    def after_stage(self, outcome: Any, index: int, total: int) -> None:
        self._call_all("after_stage", outcome, index, total)

    def on_attempt_failure(self, stage: PipelineStage, attempt: int, error: AttemptError) -> None:
        self._call_all("on_attempt_failure", stage, attempt, error)

    def on_remediation(self, stage: PipelineStage, attempt: int, outcome: RemediationOutcome) -> None:
        self._call_all("on_remediation", stage, attempt, outcome)

    def on_retry_attempt(
        self,
        stage: PipelineStage,
        attempt: int,
        max_attempts: int,
        delay_ms: int,
        error: AttemptError,
    ) -> None:
        self._call_all("on_retry_attempt", stage, attempt, max_attempts, delay_ms, error)

    def on_stage_skipped(self, stage: PipelineStage, index: int) -> None:
        self._call_all("on_stage_skipped", stage, index)
