"""Runtime: config-driven stage construction, built-in steps, and fan-out."""

from ffu_orchestrator.runtime.fanout import FanOutResult, JobResult, run_parallel
from ffu_orchestrator.runtime.loader import (
    build_stage,
    build_stages,
    instantiate_step,
    load_step_class,
)
from ffu_orchestrator.runtime.steps import CommandStep
from ffu_orchestrator.runtime.validator import (
    ValidationError,
    ValidationPhase,
    ValidationResult,
    validate_build,
)

__all__ = [
    "CommandStep",
    "FanOutResult",
    "JobResult",
    "ValidationError",
    "ValidationPhase",
    "ValidationResult",
    "build_stage",
    "build_stages",
    "instantiate_step",
    "load_step_class",
    "run_parallel",
    "validate_build",
]
