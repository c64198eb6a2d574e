"""Build execution result models.

All result types are frozen: a ``BuildReport`` is finalized by the
executor and handed to the caller, never mutated afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from ffu_orchestrator.core.config.base import ErrorCategory
from ffu_orchestrator.core.remediation.base import RemediationOutcome
from ffu_orchestrator.core.stage.base import AttemptError, FailureCause


class StageStatus(str, Enum):
    """Final state of one stage."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"
    CANCELLED = "cancelled"


class BuildStatus(str, Enum):
    """Overall outcome of a build run."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class AttemptResult:
    """Outcome of one execution of a stage.

    ``remediation`` is the remediation pass that ran after this attempt
    failed, if any.
    """

    attempt: int
    success: bool
    duration_ms: int
    diagnostic: str = ""
    error: AttemptError | None = None
    remediation: RemediationOutcome | None = None


@dataclass(frozen=True)
class StageOutcome:
    """Final record of a stage across all of its attempts."""

    name: str
    status: StageStatus
    attempts: tuple[AttemptResult, ...] = ()
    duration_ms: int = 0
    required: bool = True

    @property
    def attempted(self) -> bool:
        """Return ``True`` if at least one attempt ran."""
        return bool(self.attempts)

    @property
    def terminal_error(self) -> AttemptError | None:
        """Return the error of the last attempt, if it failed."""
        if not self.attempts:
            return None
        return self.attempts[-1].error

    @property
    def causes(self) -> list[AttemptError]:
        """Aggregate errors from every attempt, in order.

        Residual remediation issues are included as ``remediation_failed``
        entries after the attempt they followed.
        """
        causes: list[AttemptError] = []
        for attempt in self.attempts:
            if attempt.error is not None:
                causes.append(attempt.error)
            if attempt.remediation is not None:
                for issue in attempt.remediation.residual_issues:
                    causes.append(
                        AttemptError(
                            cause=FailureCause.REMEDIATION_FAILED,
                            category=ErrorCategory.UNKNOWN,
                            error_type="ResidualIssue",
                            message=issue,
                            retryable=True,
                        )
                    )
        return causes


@dataclass(frozen=True)
class BuildReport:
    """Aggregate record of a full build run."""

    build_name: str
    status: BuildStatus
    stages: tuple[StageOutcome, ...] = ()
    duration_ms: int = 0

    @property
    def success(self) -> bool:
        """Return ``True`` if the build completed successfully."""
        return self.status is BuildStatus.SUCCEEDED

    @property
    def failed_stage(self) -> StageOutcome | None:
        """Return the required stage that ended the build, if any."""
        for stage in self.stages:
            if stage.status is StageStatus.FAILED and stage.required:
                return stage
        return None

    @property
    def failed_stages(self) -> list[StageOutcome]:
        """Return every failed stage, required or not."""
        return [s for s in self.stages if s.status is StageStatus.FAILED]

    @property
    def skipped_stages(self) -> list[str]:
        """Return names of stages that never ran."""
        return [s.name for s in self.stages if s.status is StageStatus.SKIPPED]

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-compatible representation."""
        return {
            "build_name": self.build_name,
            "status": self.status.value,
            "success": self.success,
            "duration_ms": self.duration_ms,
            "stages": [_stage_to_dict(s) for s in self.stages],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BuildReport:
        """Rebuild a report from :meth:`to_dict` output.

        Raises:
            KeyError: If a required field is missing.
            ValueError: If an enum value is unknown.
        """
        return cls(
            build_name=data["build_name"],
            status=BuildStatus(data["status"]),
            stages=tuple(_stage_from_dict(s) for s in data.get("stages", [])),
            duration_ms=int(data.get("duration_ms", 0)),
        )


# ------------------------------------------------------------------
# Serialisation helpers
# ------------------------------------------------------------------


def _error_to_dict(error: AttemptError) -> dict[str, Any]:
    return {
        "cause": error.cause.value,
        "category": error.category.value,
        "error_type": error.error_type,
        "message": error.message,
        "retryable": error.retryable,
        "detail": error.detail,
    }


def _error_from_dict(data: dict[str, Any]) -> AttemptError:
    return AttemptError(
        cause=FailureCause(data["cause"]),
        category=ErrorCategory(data["category"]),
        error_type=data["error_type"],
        message=data["message"],
        retryable=bool(data["retryable"]),
        detail=data.get("detail", ""),
    )


def _stage_to_dict(stage: StageOutcome) -> dict[str, Any]:
    attempts = []
    for a in stage.attempts:
        entry: dict[str, Any] = {
            "attempt": a.attempt,
            "success": a.success,
            "duration_ms": a.duration_ms,
            "diagnostic": a.diagnostic,
            "error": _error_to_dict(a.error) if a.error is not None else None,
            "remediation": None,
        }
        if a.remediation is not None:
            entry["remediation"] = {
                "applied": sorted(a.remediation.applied),
                "residual_issues": list(a.remediation.residual_issues),
            }
        attempts.append(entry)
    return {
        "name": stage.name,
        "status": stage.status.value,
        "required": stage.required,
        "duration_ms": stage.duration_ms,
        "attempts": attempts,
    }


def _stage_from_dict(data: dict[str, Any]) -> StageOutcome:
    attempts = []
    for a in data.get("attempts", []):
        remediation = None
        if a.get("remediation") is not None:
            remediation = RemediationOutcome(
                applied=frozenset(a["remediation"].get("applied", [])),
                residual_issues=tuple(a["remediation"].get("residual_issues", [])),
            )
        attempts.append(
            AttemptResult(
                attempt=int(a["attempt"]),
                success=bool(a["success"]),
                duration_ms=int(a.get("duration_ms", 0)),
                diagnostic=a.get("diagnostic", ""),
                error=_error_from_dict(a["error"]) if a.get("error") else None,
                remediation=remediation,
            )
        )
    return StageOutcome(
        name=data["name"],
        status=StageStatus(data["status"]),
        attempts=tuple(attempts),
        duration_ms=int(data.get("duration_ms", 0)),
        required=bool(data.get("required", True)),
    )
