"""Build configuration validation without running anything.

Designed for ``--dry-run`` pre-flight checks: custom step classes are
resolved and required tools are looked up, but no stage action runs.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field

from ffu_orchestrator.core.config.build import BuildConfig
from ffu_orchestrator.core.facilities import FileSystem, LocalFileSystem
from ffu_orchestrator.runtime.loader import load_step_class

logger = logging.getLogger(__name__)


class ValidationPhase(str, enum.Enum):
    """Which check produced a validation error."""

    REQUIRED_FIELDS = "required-fields"
    TYPE_RESOLUTION = "type-resolution"


@dataclass
class ValidationError:
    """One problem that would stop the build from starting.

    Args:
        phase: Check that found the problem.
        message: Operator-facing description.
        stage_name: Offending stage, when the problem belongs to one.
    """

    phase: ValidationPhase
    message: str
    stage_name: str | None = None


@dataclass
class ValidationResult:
    """Errors and warnings collected by :func:`validate_build`.

    Args:
        errors: Problems that make the build unrunnable.
        warnings: Problems the stage preconditions will report at run time.
    """

    errors: list[ValidationError] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        """Return ``True`` when the build can be started."""
        return len(self.errors) == 0


def validate_build(config: BuildConfig, fs: FileSystem | None = None) -> ValidationResult:
    """Validate a build configuration.

    Missing tools are warnings only: the stage precondition reports them
    as fatal at run time, but a dry run on a workstation without the ADK
    should still succeed.

    Args:
        config: Build configuration to validate.
        fs: Filesystem facility used for tool lookups.

    Returns:
        Every problem found; nothing is raised.
    """
    fs = fs or LocalFileSystem()
    result = ValidationResult()

    enabled = config.enabled_stages()
    if not enabled:
        result.errors.append(ValidationError(ValidationPhase.REQUIRED_FIELDS, "Build has no enabled stages"))

    for stage in enabled:
        for tool in stage.required_tools:
            if fs.which(tool) is None:
                result.warnings.append(f"[{stage.name}] required tool '{tool}' is not on PATH")

        if stage.class_path is None:
            continue

        try:
            cls = load_step_class(stage.class_path)
        except Exception as exc:
            result.errors.append(
                ValidationError(
                    ValidationPhase.TYPE_RESOLUTION,
                    f"Cannot load '{stage.class_path}': {exc}",
                    stage_name=stage.name,
                )
            )
            continue

        if not (hasattr(cls, "from_config") and callable(cls.from_config)):
            result.warnings.append(
                f"[{stage.name}] '{stage.class_path}' does not implement from_config(); "
                "will fall back to **kwargs instantiation"
            )
        abstract_methods: frozenset[str] = getattr(cls, "__abstractmethods__", frozenset())
        if abstract_methods:
            result.errors.append(
                ValidationError(
                    ValidationPhase.TYPE_RESOLUTION,
                    f"'{stage.class_path}' has unimplemented abstract methods: {', '.join(sorted(abstract_methods))}",
                    stage_name=stage.name,
                )
            )

    for warning in result.warnings:
        logger.debug("Validation warning: %s", warning)
    return result
