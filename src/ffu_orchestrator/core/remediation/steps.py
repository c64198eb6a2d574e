"""Built-in remediation steps."""

from __future__ import annotations

from collections.abc import Sequence

from ffu_orchestrator.core.facilities import FileSystem, ProcessRunner
from ffu_orchestrator.core.remediation.base import RemediationContext


class RemoveStalePaths:
    """Removes leftover files or directories such as stale mount folders.

    Args:
        paths: Paths that must not exist before the next attempt.
        fs: Filesystem facility.
        from_attempt: First failed attempt this step runs after.
    """

    def __init__(self, paths: Sequence[str], fs: FileSystem, from_attempt: int = 1) -> None:
        self.name = "remove_paths"
        self.from_attempt = from_attempt
        self._paths = tuple(paths)
        self._fs = fs

    def detect(self, context: RemediationContext) -> str | None:
        present = [p for p in self._paths if self._fs.exists(p)]
        if not present:
            return None
        return f"stale paths present: {', '.join(present)}"

    def apply(self, context: RemediationContext) -> str | None:
        for path in self._paths:
            if self._fs.exists(path):
                self._fs.remove(path)
        return self.detect(context)


class EnsureFreeSpace:
    """Deletes scratch paths until *path* has *min_free_bytes* free.

    Args:
        path: Path whose volume is checked.
        min_free_bytes: Required free space.
        cleanup_paths: Paths that are safe to delete to reclaim space.
        fs: Filesystem facility.
        from_attempt: First failed attempt this step runs after.
    """

    def __init__(
        self,
        path: str,
        min_free_bytes: int,
        cleanup_paths: Sequence[str],
        fs: FileSystem,
        from_attempt: int = 1,
    ) -> None:
        self.name = "free_space"
        self.from_attempt = from_attempt
        self._path = path
        self._min_free_bytes = min_free_bytes
        self._cleanup_paths = tuple(cleanup_paths)
        self._fs = fs

    def detect(self, context: RemediationContext) -> str | None:
        free = self._fs.free_bytes(self._path)
        if free >= self._min_free_bytes:
            return None
        return f"{free} bytes free on '{self._path}', {self._min_free_bytes} required"

    def apply(self, context: RemediationContext) -> str | None:
        for cleanup in self._cleanup_paths:
            if self._fs.free_bytes(self._path) >= self._min_free_bytes:
                break
            if self._fs.exists(cleanup):
                self._fs.remove(cleanup)
        return self.detect(context)


class RunCommand:
    """Runs a repair command, optionally gated by a health check.

    With a ``check_command`` the repair only runs when the check exits
    non-zero and the check is repeated afterwards. Without one the repair
    runs on every pass and its exit code decides the outcome, so it must
    be safe to repeat (``dism /Cleanup-Mountpoints`` is).

    Args:
        command: Repair command.
        runner: Process facility.
        check_command: Health check; exit code 0 means healthy.
        timeout_seconds: Timeout for each command.
        from_attempt: First failed attempt this step runs after.
    """

    def __init__(
        self,
        command: Sequence[str],
        runner: ProcessRunner,
        check_command: Sequence[str] | None = None,
        timeout_seconds: float = 300.0,
        from_attempt: int = 1,
    ) -> None:
        if not command:
            raise ValueError("command must not be empty")
        self.name = f"command:{command[0]}"
        self.from_attempt = from_attempt
        self._command = list(command)
        self._check_command = list(check_command) if check_command else None
        self._timeout = timeout_seconds
        self._runner = runner

    def detect(self, context: RemediationContext) -> str | None:
        if self._check_command is None:
            return "unconditional repair"
        result = self._runner.run(self._check_command, timeout=self._timeout)
        if result.succeeded:
            return None
        return f"health check '{' '.join(self._check_command)}' exited with {result.exit_code}"

    def apply(self, context: RemediationContext) -> str | None:
        result = self._runner.run(self._command, timeout=self._timeout)
        if not result.succeeded:
            return f"'{' '.join(self._command)}' exited with {result.exit_code}"
        if self._check_command is None:
            return None
        return self.detect(context)
