"""Retry configuration models."""

from dataclasses import dataclass, field

from ffu_orchestrator.core.config.base import ErrorCategory


def _default_fatal_categories() -> list[ErrorCategory]:
    return [ErrorCategory.RESOURCE_EXHAUSTED, ErrorCategory.DEPENDENCY_UNAVAILABLE]


@dataclass(frozen=True)
class RetryConfig:
    """Configuration for stage retry behavior.

    The defaults mirror the empirically tuned "retry once after five
    seconds" behaviour of the build scripts; treat them as starting
    points rather than contracts.
    """

    max_attempts: int = 2
    """Maximum number of attempts, including the first (default: 2)"""

    backoff_seconds: float = 5.0
    """Delay before the first retry in seconds (default: 5.0)"""

    backoff_multiplier: float = 1.0
    """Multiplier applied to the delay for each further retry (default: 1.0)"""

    max_backoff_seconds: float = 300.0
    """Upper bound for any single delay in seconds (default: 300.0)"""

    fatal_categories: list[ErrorCategory] = field(default_factory=_default_fatal_categories)
    """Error categories that end the stage without retrying"""

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.backoff_seconds < 0:
            raise ValueError("backoff_seconds must not be negative")
        if self.backoff_multiplier < 1.0:
            raise ValueError("backoff_multiplier must be >= 1.0")
        if self.max_backoff_seconds < self.backoff_seconds:
            raise ValueError("max_backoff_seconds must be >= backoff_seconds")
