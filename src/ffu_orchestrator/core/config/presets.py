"""Pre-built retry policies.

Note: These presets are instances, not factories. If you need to
modify a preset, create a new instance instead of mutating these.
"""

from ffu_orchestrator.core.config.retry import RetryConfig


class RetryPolicies:
    """Pre-built retry policies for common build stages.

    Example:
        >>> from ffu_orchestrator.core.config import RetryPolicies
        >>> RetryPolicies.RETRY_ONCE.max_attempts
        2
    """

    # Single attempt, no retries.
    NO_RETRY: RetryConfig = RetryConfig(max_attempts=1, backoff_seconds=0.0)

    # One retry after five seconds: DISM pre-flight, copype, package application.
    RETRY_ONCE: RetryConfig = RetryConfig()

    # Network share setup and VM capture connections.
    NETWORK: RetryConfig = RetryConfig(
        max_attempts=3,
        backoff_seconds=5.0,
        backoff_multiplier=2.0,
    )

    # Long-running operations that tend to recover on their own.
    PERSISTENT: RetryConfig = RetryConfig(
        max_attempts=5,
        backoff_seconds=2.0,
        backoff_multiplier=2.0,
        max_backoff_seconds=60.0,
    )
