"""Remediation policies run between failed stage attempts.

A remediation inspects the current state, repairs what it can, and
reports what it could not fix. It is best-effort: ``remediate`` never
raises, and its outcome never changes the stage's reported error.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Protocol

from ffu_orchestrator.core.stage.base import AttemptError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RemediationContext:
    """What a remediation knows about the failure it follows.

    Args:
        stage_name: Stage being remediated.
        attempt: 1-based number of the attempt that just failed.
        error: The attempt's error.
    """

    stage_name: str
    attempt: int
    error: AttemptError | None = None


@dataclass(frozen=True)
class RemediationOutcome:
    """Result of one remediation pass.

    Args:
        applied: Names of steps whose repair action ran.
        residual_issues: Conditions still present afterwards.
    """

    applied: frozenset[str] = frozenset()
    residual_issues: tuple[str, ...] = ()

    @property
    def clean(self) -> bool:
        """Return ``True`` if no residual issues remain."""
        return not self.residual_issues


class RemediationPolicy(Protocol):
    """Protocol for stage remediation."""

    def remediate(self, context: RemediationContext) -> RemediationOutcome:
        """Repair state before the next attempt. Must not raise."""
        ...


class RemediationStep(Protocol):
    """One detect-and-repair unit used by :class:`StepRemediation`."""

    name: str
    from_attempt: int

    def detect(self, context: RemediationContext) -> str | None:
        """Return a description of the issue, or ``None`` when healthy."""
        ...

    def apply(self, context: RemediationContext) -> str | None:
        """Repair the detected issue and return whatever remains, or ``None``."""
        ...


class StepRemediation:
    """Runs a sequence of remediation steps.

    Each step is detected first. Healthy steps are skipped, so running the
    policy when nothing is wrong is a no-op. A detected issue is repaired;
    whatever the repair reports as remaining becomes a residual issue.
    Steps with ``from_attempt`` greater than the failed attempt number are
    held back, which lets later retries escalate to heavier repairs.
    """

    def __init__(self, steps: Sequence[RemediationStep]) -> None:
        self._steps = tuple(steps)

    @property
    def steps(self) -> tuple[RemediationStep, ...]:
        """Return the configured steps."""
        return self._steps

    def remediate(self, context: RemediationContext) -> RemediationOutcome:
        applied: set[str] = set()
        residual: list[str] = []

        for step in self._steps:
            if context.attempt < step.from_attempt:
                continue
            try:
                issue = step.detect(context)
                if issue is None:
                    continue
                logger.info("Remediation '%s' for stage '%s': %s", step.name, context.stage_name, issue)
                applied.add(step.name)
                remaining = step.apply(context)
                if remaining is not None:
                    residual.append(f"{step.name}: {remaining}")
            except Exception as exc:
                logger.warning(
                    "Remediation '%s' for stage '%s' raised an exception",
                    step.name,
                    context.stage_name,
                    exc_info=True,
                )
                residual.append(f"{step.name}: {type(exc).__name__}: {exc}")

        return RemediationOutcome(applied=frozenset(applied), residual_issues=tuple(residual))


class CallableRemediation:
    """Adapts a plain function to :class:`RemediationPolicy`.

    The function may return a ``RemediationOutcome``, a list of residual
    issue strings, a single issue string, or ``None`` for a clean pass. Exceptions become a
    residual issue.
    """

    def __init__(
        self,
        fn: Callable[[RemediationContext], RemediationOutcome | Sequence[str] | str | None],
        name: str | None = None,
    ) -> None:
        self._fn = fn
        self._name = name or getattr(fn, "__name__", "remediation")

    def remediate(self, context: RemediationContext) -> RemediationOutcome:
        try:
            result = self._fn(context)
        except Exception as exc:
            logger.warning(
                "Remediation '%s' for stage '%s' raised an exception",
                self._name,
                context.stage_name,
                exc_info=True,
            )
            return RemediationOutcome(
                applied=frozenset({self._name}),
                residual_issues=(f"{self._name}: {type(exc).__name__}: {exc}",),
            )

        if isinstance(result, RemediationOutcome):
            return result
        if isinstance(result, str):
            result = (result,)
        return RemediationOutcome(
            applied=frozenset({self._name}),
            residual_issues=tuple(result or ()),
        )
