"""Stage definitions, build steps, and the build error hierarchy."""

from ffu_orchestrator.core.stage.base import (
    AttemptError,
    FailureCause,
    FailureKind,
    PipelineStage,
    default_classifier,
    make_classifier,
)
from ffu_orchestrator.core.errors import (
    BuildError,
    CommandFailedError,
    CommandTimeoutError,
    DependencyUnavailableError,
    FanOutError,
    LockContentionError,
    PermissionDeniedError,
    PreconditionError,
    ResourceExhaustedError,
    StepLoadError,
    ToolNotFoundError,
)
from ffu_orchestrator.core.stage.step import BuildStep

__all__ = [
    "AttemptError",
    "BuildError",
    "BuildStep",
    "CommandFailedError",
    "CommandTimeoutError",
    "DependencyUnavailableError",
    "FailureCause",
    "FailureKind",
    "FanOutError",
    "LockContentionError",
    "PermissionDeniedError",
    "PipelineStage",
    "PreconditionError",
    "ResourceExhaustedError",
    "StepLoadError",
    "ToolNotFoundError",
    "default_classifier",
    "make_classifier",
]
