"""Process-invocation and filesystem facilities.

The executor never touches the host directly; stages and remediation
steps reach external tools and the filesystem through these protocols so
tests can substitute fakes.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from ffu_orchestrator.core.diagnostics.taxonomy import classify_text
from ffu_orchestrator.core.errors import CommandFailedError, CommandTimeoutError, ToolNotFoundError
from ffu_orchestrator.core.utils import tail_lines

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    """Captured outcome of an external command."""

    args: tuple[str, ...]
    exit_code: int
    stdout: str = ""
    stderr: str = ""
    duration_ms: int = 0

    @property
    def succeeded(self) -> bool:
        """Return ``True`` if the command exited with code 0."""
        return self.exit_code == 0

    def check(self) -> CommandResult:
        """Raise ``CommandFailedError`` unless the command succeeded.

        The error category is inferred from the command's output.
        """
        if self.succeeded:
            return self
        output = f"{self.stderr}\n{self.stdout}"
        raise CommandFailedError(
            list(self.args),
            self.exit_code,
            category=classify_text(output),
            diagnostic=tail_lines(output),
        )


class ProcessRunner(Protocol):
    """Runs external commands."""

    def run(
        self,
        args: Sequence[str],
        cwd: str | None = None,
        timeout: float | None = None,
        env: Mapping[str, str] | None = None,
    ) -> CommandResult:
        """Run *args* and capture its output.

        Raises:
            ToolNotFoundError: If the executable does not exist.
            CommandTimeoutError: If the command outlives *timeout*.
        """
        ...


class SubprocessRunner:
    """``ProcessRunner`` backed by :func:`subprocess.run`."""

    def run(
        self,
        args: Sequence[str],
        cwd: str | None = None,
        timeout: float | None = None,
        env: Mapping[str, str] | None = None,
    ) -> CommandResult:
        argv = [str(a) for a in args]
        logger.debug("Running %s (cwd=%s, timeout=%s)", argv, cwd, timeout)
        start = time.monotonic()
        try:
            completed = subprocess.run(
                argv,
                cwd=cwd,
                env=dict(env) if env is not None else None,
                timeout=timeout,
                capture_output=True,
                text=True,
                check=False,
            )
        except FileNotFoundError as exc:
            raise ToolNotFoundError(argv[0]) from exc
        except subprocess.TimeoutExpired as exc:
            output = _decode(exc.stderr) + "\n" + _decode(exc.stdout)
            raise CommandTimeoutError(argv, timeout or 0.0, diagnostic=tail_lines(output)) from exc

        duration_ms = int((time.monotonic() - start) * 1000)
        logger.debug("%s exited with %d in %dms", argv[0], completed.returncode, duration_ms)
        return CommandResult(
            args=tuple(argv),
            exit_code=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
            duration_ms=duration_ms,
        )


def _decode(data: str | bytes | None) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode(errors="replace")
    return data


class FileSystem(Protocol):
    """Filesystem queries and cleanup used by preconditions and remediation."""

    def exists(self, path: str) -> bool:
        """Return whether *path* exists."""
        ...

    def free_bytes(self, path: str) -> int:
        """Return free bytes on the volume holding *path*."""
        ...

    def remove(self, path: str) -> None:
        """Remove a file or directory tree. Missing paths are a no-op."""
        ...

    def which(self, tool: str) -> str | None:
        """Return the resolved path of *tool*, or ``None``."""
        ...


class LocalFileSystem:
    """``FileSystem`` for the local host."""

    def exists(self, path: str) -> bool:
        return Path(path).exists()

    def free_bytes(self, path: str) -> int:
        return shutil.disk_usage(path).free

    def remove(self, path: str) -> None:
        target = Path(path)
        if target.is_dir() and not target.is_symlink():
            shutil.rmtree(target)
        else:
            target.unlink(missing_ok=True)

    def which(self, tool: str) -> str | None:
        return shutil.which(tool)
