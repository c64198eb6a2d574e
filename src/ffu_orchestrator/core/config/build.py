"""Build configuration models."""

from dataclasses import dataclass, field

from .logging_config import LoggingConfig
from .retry import RetryConfig
from .stage import StageConfig


@dataclass
class BuildConfig:
    """Top-level configuration for an image build.

    Stages run in the order they are listed.
    """

    name: str
    """Build name (required)"""

    version: str
    """Build definition version (required)"""

    stages: list[StageConfig]
    """Ordered list of build stages (required)"""

    default_retry: RetryConfig | None = None
    """Retry policy for stages that do not set one (optional)"""

    logging: LoggingConfig = field(default_factory=LoggingConfig)
    """Logging configuration (default: LoggingConfig with defaults)"""

    report_path: str | None = None
    """Where to write the JSON run report (optional)"""

    tags: dict[str, str] = field(default_factory=dict)
    """Arbitrary key-value tags for metadata (default: {})"""

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not self.name:
            raise ValueError("name is required")

        if not self.version:
            raise ValueError("version is required")

        if not self.stages:
            raise ValueError("At least one stage is required")

        stage_names = [s.name for s in self.stages]
        if len(stage_names) != len(set(stage_names)):
            raise ValueError("Stage names must be unique")

    def get_stage(self, name: str) -> StageConfig | None:
        """Get a stage by name.

        Args:
            name: Stage name to look up.

        Returns:
            StageConfig if found, None otherwise.
        """
        for stage in self.stages:
            if stage.name == name:
                return stage
        return None

    def enabled_stages(self) -> list[StageConfig]:
        """Return enabled stages in execution order."""
        return [s for s in self.stages if s.enabled]
