"""Remediation step configuration models."""

from dataclasses import dataclass, field

from ffu_orchestrator.core.config.base import RemediationKind


@dataclass
class RemediationConfig:
    """Configuration for one built-in remediation step.

    Which fields apply depends on ``step``:

    - ``remove_paths``: ``paths``
    - ``free_space``: ``path``, ``min_free_bytes`` and optional ``paths`` to delete
    - ``command``: ``command`` and optional ``check_command``
    """

    step: RemediationKind
    """Remediation step type (required)"""

    paths: list[str] = field(default_factory=list)
    """Files or directories to remove (default: [])"""

    path: str = "."
    """Path whose volume is checked for free space (default: '.')"""

    min_free_bytes: int = 0
    """Minimum free space on ``path`` in bytes (default: 0)"""

    command: list[str] = field(default_factory=list)
    """Repair command to run (default: [])"""

    check_command: list[str] = field(default_factory=list)
    """Health check; exit code 0 means nothing to repair (default: [])"""

    timeout_seconds: float = 300.0
    """Timeout for each command in seconds (default: 300.0)"""

    from_attempt: int = 1
    """First failed attempt number this step runs after (default: 1)"""

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.from_attempt < 1:
            raise ValueError("from_attempt must be at least 1")
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")
        if self.step == RemediationKind.REMOVE_PATHS and not self.paths:
            raise ValueError("remove_paths remediation requires 'paths'")
        if self.step == RemediationKind.FREE_SPACE and self.min_free_bytes <= 0:
            raise ValueError("free_space remediation requires a positive 'min_free_bytes'")
        if self.step == RemediationKind.COMMAND and not self.command:
            raise ValueError("command remediation requires 'command'")
