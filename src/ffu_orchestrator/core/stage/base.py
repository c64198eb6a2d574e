"""Pipeline stage definition and failure classification."""

from __future__ import annotations

import enum
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ffu_orchestrator.core.config.base import ErrorCategory
from ffu_orchestrator.core.diagnostics.taxonomy import classify_error
from ffu_orchestrator.core.resilience.backoff import backoff_delay
from ffu_orchestrator.core.errors import BuildError, PreconditionError
from ffu_orchestrator.core.utils import tail_lines

if TYPE_CHECKING:
    from ffu_orchestrator.core.remediation.base import RemediationPolicy

DEFAULT_FATAL_CATEGORIES: frozenset[ErrorCategory] = frozenset(
    {ErrorCategory.RESOURCE_EXHAUSTED, ErrorCategory.DEPENDENCY_UNAVAILABLE}
)


class FailureKind(str, enum.Enum):
    """Whether a failure may be retried."""

    RETRYABLE = "retryable"
    FATAL = "fatal"


class FailureCause(str, enum.Enum):
    """Which part of a stage produced an error."""

    PRECONDITION_FAILED = "precondition_failed"
    ACTION_FAILED = "action_failed"
    REMEDIATION_FAILED = "remediation_failed"


@dataclass(frozen=True)
class AttemptError:
    """Structured, serialisable description of a stage error."""

    cause: FailureCause
    category: ErrorCategory
    error_type: str
    message: str
    retryable: bool
    detail: str = ""

    @classmethod
    def from_exception(cls, error: BaseException, cause: FailureCause, retryable: bool) -> AttemptError:
        """Build an ``AttemptError`` from a raised exception."""
        detail = error.diagnostic if isinstance(error, BuildError) else ""
        return cls(
            cause=cause,
            category=classify_error(error),
            error_type=type(error).__name__,
            message=str(error) or type(error).__name__,
            retryable=retryable,
            detail=tail_lines(detail),
        )

    def describe(self) -> str:
        """Return one display line plus any captured detail."""
        line = f"{self.cause.value} [{self.category.value}] {self.error_type}: {self.message}"
        if self.detail:
            return f"{line}\n{self.detail}"
        return line


def make_classifier(
    fatal_categories: Iterable[ErrorCategory] = DEFAULT_FATAL_CATEGORIES,
) -> Callable[[BaseException], FailureKind]:
    """Build a classifier that treats *fatal_categories* as non-retryable.

    An explicit ``BuildError.retryable`` always wins. Precondition errors
    are fatal unless they opt in to retrying.
    """
    fatal = frozenset(ErrorCategory(c) for c in fatal_categories)

    def classify(error: BaseException) -> FailureKind:
        if isinstance(error, BuildError) and error.retryable is not None:
            return FailureKind.RETRYABLE if error.retryable else FailureKind.FATAL
        if isinstance(error, PreconditionError):
            return FailureKind.FATAL
        if classify_error(error) in fatal:
            return FailureKind.FATAL
        return FailureKind.RETRYABLE

    return classify


default_classifier = make_classifier()


@dataclass(frozen=True)
class PipelineStage:
    """One fallible, retryable unit of work in the build pipeline.

    Stages are stateless between runs; the executor owns them for the
    duration of one run.

    Args:
        name: Stage identifier, unique within a run.
        action: Operation to attempt. Raising means the attempt failed.
        precondition: Checked before every attempt. Raising, or returning
            ``False``, fails the attempt with a precondition error.
        remediation: Best-effort repair run between a failed attempt and
            the next retry.
        max_attempts: Total attempts allowed, at least 1.
        backoff_seconds: Delay before the first retry.
        backoff_multiplier: Growth factor for further retries.
        max_backoff_seconds: Cap on a single delay.
        classify: Decides whether a failure is retryable or fatal.
        required: When ``False`` a terminal failure does not abort the build.
    """

    name: str
    action: Callable[[], object]
    precondition: Callable[[], object] | None = None
    remediation: RemediationPolicy | None = None
    max_attempts: int = 1
    backoff_seconds: float = 0.0
    backoff_multiplier: float = 1.0
    max_backoff_seconds: float = 300.0
    classify: Callable[[BaseException], FailureKind] = field(default=default_classifier)
    required: bool = True

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("name is required")
        if self.max_attempts < 1:
            raise ValueError(f"Stage '{self.name}': max_attempts must be at least 1")
        if self.backoff_seconds < 0:
            raise ValueError(f"Stage '{self.name}': backoff_seconds must not be negative")
        if self.backoff_multiplier < 1.0:
            raise ValueError(f"Stage '{self.name}': backoff_multiplier must be >= 1.0")

    def delay_for(self, retry_index: int) -> float:
        """Return the backoff delay before retry *retry_index* (0-based)."""
        return backoff_delay(
            self.backoff_seconds,
            self.backoff_multiplier,
            max(self.max_backoff_seconds, self.backoff_seconds),
            retry_index,
        )

    def check_precondition(self) -> None:
        """Evaluate the precondition, raising ``PreconditionError`` on ``False``."""
        if self.precondition is None:
            return
        if self.precondition() is False:
            raise PreconditionError(f"Precondition for stage '{self.name}' was not met")
