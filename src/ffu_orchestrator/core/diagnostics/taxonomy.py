"""Failure classification into the closed error taxonomy."""

from __future__ import annotations

import errno
import re
import subprocess
from dataclasses import dataclass

from ffu_orchestrator.core.config.base import ErrorCategory
from ffu_orchestrator.core.errors import BuildError

_RESOURCE_ERRNOS = frozenset({errno.ENOSPC, errno.ENOMEM, getattr(errno, "EDQUOT", errno.ENOSPC)})
_LOCK_ERRNOS = frozenset({errno.EBUSY, errno.ETXTBSY, errno.EAGAIN})
_PERMISSION_ERRNOS = frozenset({errno.EACCES, errno.EPERM})

# Ordered: the first matching pattern wins.
_TEXT_PATTERNS: tuple[tuple[re.Pattern[str], ErrorCategory], ...] = (
    (re.compile(r"0x80070070|not enough (disk )?space|disk (is )?full|insufficient (disk )?space", re.I),
     ErrorCategory.RESOURCE_EXHAUSTED),
    (re.compile(r"out of memory|0x8007000e", re.I), ErrorCategory.RESOURCE_EXHAUSTED),
    (re.compile(r"0x80070020|0xc1420127|being used by another process|already mounted|sharing violation", re.I),
     ErrorCategory.LOCK_CONTENTION),
    (re.compile(r"0x80070005|access is denied|permission denied|"
                r"elevat(ed|ion) (permissions? )?(is |are )?required", re.I),
     ErrorCategory.PERMISSION_DENIED),
    (re.compile(r"not recognized as an internal or external command|command not found|"
                r"service (is )?not (running|available)|0x80070422", re.I),
     ErrorCategory.DEPENDENCY_UNAVAILABLE),
)


@dataclass(frozen=True)
class CategoryGuidance:
    """Canned operator guidance for one error category."""

    title: str
    likely_cause: str
    next_steps: tuple[str, ...]


GUIDANCE: dict[ErrorCategory, CategoryGuidance] = {
    ErrorCategory.RESOURCE_EXHAUSTED: CategoryGuidance(
        title="Resource exhausted",
        likely_cause="The build host ran out of disk space or memory.",
        next_steps=(
            "Free space on the drive holding the build and scratch directories.",
            "Remove leftover VHDX, WIM, and FFU files from earlier runs.",
            "Close memory-heavy applications or give the build VM less memory.",
        ),
    ),
    ErrorCategory.LOCK_CONTENTION: CategoryGuidance(
        title="Lock contention",
        likely_cause="A stale mount, open handle, or hung tool is holding a resource the stage needs.",
        next_steps=(
            "Run 'dism /Cleanup-Mountpoints' and discard stale image mounts.",
            "Close Explorer windows and shells opened inside the build directories.",
            "Reboot the build host if the handle cannot be released.",
        ),
    ),
    ErrorCategory.PERMISSION_DENIED: CategoryGuidance(
        title="Permission denied",
        likely_cause="The operation was blocked by missing elevation, an ACL, or antivirus scanning.",
        next_steps=(
            "Run the build from an elevated (administrator) session.",
            "Exclude the build directories from real-time antivirus scanning.",
            "Check ownership and ACLs on the build and output folders.",
        ),
    ),
    ErrorCategory.DEPENDENCY_UNAVAILABLE: CategoryGuidance(
        title="Dependency unavailable",
        likely_cause="A required tool or service is missing, not on PATH, or unhealthy.",
        next_steps=(
            "Verify the Windows ADK and WinPE add-on are installed and on PATH.",
            "Check that required services (Hyper-V, network sharing) are running.",
            "Re-run with --dry-run to list missing tools before building.",
        ),
    ),
    ErrorCategory.UNKNOWN: CategoryGuidance(
        title="Unclassified failure",
        likely_cause="The failure did not match a known pattern; see the raw diagnostic output below.",
        next_steps=(
            "Read the raw diagnostic text and the detailed log.",
            "Re-run with --log-level DEBUG to capture more context.",
        ),
    ),
}


def classify_text(text: str) -> ErrorCategory:
    """Classify free-form tool output by known messages and HRESULT codes."""
    for pattern, category in _TEXT_PATTERNS:
        if pattern.search(text):
            return category
    return ErrorCategory.UNKNOWN


def classify_error(error: BaseException) -> ErrorCategory:
    """Classify an exception into the error taxonomy.

    ``BuildError`` instances carry their own category. Standard library
    errors are mapped by type and ``errno``. Anything else falls back to
    matching the error text.
    """
    if isinstance(error, BuildError):
        if error.category is not ErrorCategory.UNKNOWN:
            return error.category
        return classify_text(f"{error.message}\n{error.diagnostic}")

    if isinstance(error, MemoryError):
        return ErrorCategory.RESOURCE_EXHAUSTED
    if isinstance(error, PermissionError):
        return ErrorCategory.PERMISSION_DENIED
    if isinstance(error, (TimeoutError, subprocess.TimeoutExpired)):
        # A hung external tool is almost always blocked on a held mount or handle.
        return ErrorCategory.LOCK_CONTENTION

    if isinstance(error, OSError) and error.errno is not None:
        if error.errno in _RESOURCE_ERRNOS:
            return ErrorCategory.RESOURCE_EXHAUSTED
        if error.errno in _PERMISSION_ERRNOS:
            return ErrorCategory.PERMISSION_DENIED
        if error.errno in _LOCK_ERRNOS:
            return ErrorCategory.LOCK_CONTENTION

    if isinstance(error, FileNotFoundError):
        return ErrorCategory.DEPENDENCY_UNAVAILABLE

    return classify_text(str(error))
