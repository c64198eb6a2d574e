"""Build error hierarchy.

Every error raised by the orchestrator's own facilities carries an
:class:`~ffu_orchestrator.core.config.base.ErrorCategory` so the executor
and the diagnostic reporter never have to guess from a bare exception.
"""

from __future__ import annotations

from ffu_orchestrator.core.config.base import ErrorCategory


class BuildError(Exception):
    """Base exception for classified build failures.

    Args:
        message: Human-readable description.
        retryable: Explicit retry decision. ``None`` leaves the decision
            to the stage classifier.
        diagnostic: Extra detail for display, such as a stderr tail.
    """

    category: ErrorCategory = ErrorCategory.UNKNOWN

    def __init__(
        self,
        message: str,
        *,
        retryable: bool | None = None,
        diagnostic: str = "",
        category: ErrorCategory | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.retryable = retryable
        self.diagnostic = diagnostic
        if category is not None:
            self.category = category


class ResourceExhaustedError(BuildError):
    """Disk space or memory ran out."""

    category = ErrorCategory.RESOURCE_EXHAUSTED


class LockContentionError(BuildError):
    """A mount, file handle, or image lock is held by another process."""

    category = ErrorCategory.LOCK_CONTENTION


class PermissionDeniedError(BuildError):
    """Elevation, ACL, or antivirus interference blocked the operation."""

    category = ErrorCategory.PERMISSION_DENIED


class DependencyUnavailableError(BuildError):
    """A required tool or service is missing or unhealthy."""

    category = ErrorCategory.DEPENDENCY_UNAVAILABLE


class PreconditionError(BuildError):
    """A stage precondition did not hold.

    Fatal unless raised with ``retryable=True``.
    """


class ToolNotFoundError(DependencyUnavailableError):
    """An external executable could not be located."""

    def __init__(self, tool: str) -> None:
        self.tool = tool
        super().__init__(f"Required tool '{tool}' was not found", retryable=False)


class CommandFailedError(BuildError):
    """An external command exited with a non-zero code."""

    def __init__(
        self,
        args: list[str],
        exit_code: int,
        *,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        diagnostic: str = "",
    ) -> None:
        self.command = list(args)
        self.exit_code = exit_code
        super().__init__(
            f"Command '{' '.join(args)}' exited with code {exit_code}",
            diagnostic=diagnostic,
            category=category,
        )


class CommandTimeoutError(LockContentionError):
    """An external command did not exit within its timeout."""

    def __init__(self, args: list[str], timeout_seconds: float, *, diagnostic: str = "") -> None:
        self.command = list(args)
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"Command '{' '.join(args)}' did not exit within {timeout_seconds:g}s",
            diagnostic=diagnostic,
        )


class FanOutError(BuildError):
    """One or more parallel jobs failed.

    The category is that of the first failure in job order.
    """

    def __init__(self, failures: dict[str, BaseException], category: ErrorCategory) -> None:
        self.failures = dict(failures)
        names = ", ".join(sorted(failures))
        detail = "\n".join(f"{name}: {err}" for name, err in failures.items())
        super().__init__(
            f"{len(failures)} parallel job(s) failed: {names}",
            diagnostic=detail,
            category=category,
        )


class StepLoadError(DependencyUnavailableError):
    """A custom build step class could not be loaded or instantiated."""

    def __init__(self, class_path: str, cause: Exception) -> None:
        self.class_path = class_path
        self.cause = cause
        super().__init__(f"Failed to load build step '{class_path}': {cause}", retryable=False)
        self.__cause__ = cause
