"""Stage configuration models."""

from dataclasses import dataclass, field
from typing import Any

from ffu_orchestrator.core.config.remediation import RemediationConfig
from ffu_orchestrator.core.config.retry import RetryConfig


@dataclass
class StageConfig:
    """Configuration for one build stage.

    A stage either runs an external ``command`` or a custom ``BuildStep``
    loaded from ``class_path``.
    """

    name: str
    """Unique stage name within the build (required)"""

    command: list[str] = field(default_factory=list)
    """External command to run; ``{target}`` is substituted per target (default: [])"""

    class_path: str | None = None
    """Fully qualified ``BuildStep`` subclass path (optional)"""

    config: dict[str, Any] = field(default_factory=dict)
    """Step-specific configuration passed to ``class_path`` (default: {})"""

    working_dir: str | None = None
    """Working directory for ``command`` (optional)"""

    timeout_seconds: float | None = None
    """Bounded wait for ``command`` to exit (optional)"""

    targets: list[str] = field(default_factory=list)
    """Independent targets to fan ``command`` out over, such as drive numbers (default: [])"""

    max_parallel: int = 4
    """Maximum concurrent target jobs (default: 4)"""

    required_tools: list[str] = field(default_factory=list)
    """Executables that must be on PATH before the stage runs (default: [])"""

    required_paths: list[str] = field(default_factory=list)
    """Paths that must exist before the stage runs (default: [])"""

    min_free_bytes: int = 0
    """Free space required on ``free_space_path`` (default: 0, unchecked)"""

    free_space_path: str = "."
    """Path whose volume is checked for ``min_free_bytes`` (default: '.')"""

    retry: RetryConfig | None = None
    """Retry policy; falls back to the build's ``default_retry`` (optional)"""

    remediation: list[RemediationConfig] = field(default_factory=list)
    """Remediation steps run between failed attempts (default: [])"""

    required: bool = True
    """Whether a terminal failure aborts the build (default: True)"""

    enabled: bool = True
    """Whether this stage is enabled (default: True)"""

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not self.name:
            raise ValueError("name is required")

        if bool(self.command) == bool(self.class_path):
            raise ValueError(f"Stage '{self.name}' must set exactly one of 'command' or 'class_path'")

        if self.targets and not self.command:
            raise ValueError(f"Stage '{self.name}' can only fan out a 'command' over targets")

        if self.max_parallel < 1:
            raise ValueError("max_parallel must be at least 1")

        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")

        if self.min_free_bytes < 0:
            raise ValueError("min_free_bytes must not be negative")
