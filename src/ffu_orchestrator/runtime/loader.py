"""Build ``PipelineStage`` objects from configuration."""

from __future__ import annotations

import importlib
import logging
from collections.abc import Callable

from ffu_orchestrator.core.config.base import RemediationKind
from ffu_orchestrator.core.config.build import BuildConfig
from ffu_orchestrator.core.config.presets import RetryPolicies
from ffu_orchestrator.core.config.remediation import RemediationConfig
from ffu_orchestrator.core.config.retry import RetryConfig
from ffu_orchestrator.core.config.stage import StageConfig
from ffu_orchestrator.core.errors import (
    DependencyUnavailableError,
    PreconditionError,
    ResourceExhaustedError,
    StepLoadError,
)
from ffu_orchestrator.core.facilities import FileSystem, LocalFileSystem, ProcessRunner, SubprocessRunner
from ffu_orchestrator.core.remediation.base import RemediationStep, StepRemediation
from ffu_orchestrator.core.remediation.steps import EnsureFreeSpace, RemoveStalePaths, RunCommand
from ffu_orchestrator.core.stage.base import PipelineStage, make_classifier
from ffu_orchestrator.core.stage.step import BuildStep
from ffu_orchestrator.runtime.steps import CommandStep

logger = logging.getLogger(__name__)


def load_step_class(class_path: str) -> type[BuildStep]:
    """Dynamically load a ``BuildStep`` subclass by its fully-qualified path.

    Args:
        class_path: Dotted path such as ``"my_package.steps.CaptureFFU"``.

    Returns:
        The loaded class (not an instance).

    Raises:
        StepLoadError: If the path is malformed, the module cannot be
            imported, the attribute does not exist, or it is not a
            ``BuildStep`` subclass.
    """
    parts = class_path.rsplit(".", 1)
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise StepLoadError(
            class_path,
            ValueError(f"Invalid class path format: '{class_path}' (expected 'module.ClassName')"),
        )

    module_path, class_name = parts

    try:
        module = importlib.import_module(module_path)
    except ImportError as exc:
        raise StepLoadError(class_path, exc) from exc

    try:
        cls = getattr(module, class_name)
    except AttributeError as exc:
        raise StepLoadError(class_path, exc) from exc

    if not isinstance(cls, type) or not issubclass(cls, BuildStep):
        raise StepLoadError(class_path, TypeError(f"'{class_name}' is not a BuildStep subclass"))

    return cls


def instantiate_step(stage_config: StageConfig, runner: ProcessRunner | None = None) -> BuildStep:
    """Create the ``BuildStep`` for a stage.

    ``command`` stages become a :class:`CommandStep`. ``class_path`` stages
    use ``from_config(config)`` if the class provides it, otherwise
    ``cls(**config)``.

    Raises:
        StepLoadError: If loading or instantiation fails.
    """
    if stage_config.command:
        return CommandStep(
            name=stage_config.name,
            command=stage_config.command,
            runner=runner,
            working_dir=stage_config.working_dir,
            timeout_seconds=stage_config.timeout_seconds,
            targets=stage_config.targets,
            max_parallel=stage_config.max_parallel,
        )

    assert stage_config.class_path is not None  # guaranteed by StageConfig
    cls = load_step_class(stage_config.class_path)
    try:
        if hasattr(cls, "from_config") and callable(cls.from_config):
            instance: BuildStep = cls.from_config(stage_config.config)  # type: ignore[attr-defined]
            return instance
        return cls(**stage_config.config)
    except Exception as exc:
        raise StepLoadError(stage_config.class_path, exc) from exc


def build_remediation_step(
    config: RemediationConfig,
    runner: ProcessRunner,
    fs: FileSystem,
) -> RemediationStep:
    """Create one built-in remediation step from its configuration."""
    if config.step == RemediationKind.REMOVE_PATHS:
        return RemoveStalePaths(config.paths, fs, from_attempt=config.from_attempt)
    if config.step == RemediationKind.FREE_SPACE:
        return EnsureFreeSpace(
            config.path,
            config.min_free_bytes,
            config.paths,
            fs,
            from_attempt=config.from_attempt,
        )
    return RunCommand(
        config.command,
        runner,
        check_command=config.check_command or None,
        timeout_seconds=config.timeout_seconds,
        from_attempt=config.from_attempt,
    )


def make_precondition(stage_config: StageConfig, step: BuildStep, fs: FileSystem) -> Callable[[], None]:
    """Compose the stage precondition from its configuration and the step's ``check``.

    Missing tools and low disk space are raised as their own categories so
    the reporter can give specific guidance.
    """

    def precondition() -> None:
        for tool in stage_config.required_tools:
            if fs.which(tool) is None:
                raise DependencyUnavailableError(f"Required tool '{tool}' is not on PATH", retryable=False)

        for path in stage_config.required_paths:
            if not fs.exists(path):
                raise PreconditionError(f"Required path '{path}' does not exist")

        if stage_config.min_free_bytes > 0:
            free = fs.free_bytes(stage_config.free_space_path)
            if free < stage_config.min_free_bytes:
                raise ResourceExhaustedError(
                    f"{free} bytes free on '{stage_config.free_space_path}', "
                    f"{stage_config.min_free_bytes} required",
                    retryable=False,
                )

        if not step.check():
            raise PreconditionError(f"Step '{step.name}' reported it cannot run")

    return precondition


def build_stage(
    stage_config: StageConfig,
    default_retry: RetryConfig | None = None,
    runner: ProcessRunner | None = None,
    fs: FileSystem | None = None,
) -> PipelineStage:
    """Create a ``PipelineStage`` from a ``StageConfig``.

    Args:
        stage_config: Stage configuration.
        default_retry: Retry policy used when the stage sets none.
        runner: Process facility (default: ``SubprocessRunner``).
        fs: Filesystem facility (default: ``LocalFileSystem``).

    Raises:
        StepLoadError: If a custom step cannot be loaded.
    """
    runner = runner or SubprocessRunner()
    fs = fs or LocalFileSystem()
    retry = stage_config.retry or default_retry or RetryPolicies.NO_RETRY

    step = instantiate_step(stage_config, runner)
    remediation = None
    if stage_config.remediation:
        remediation = StepRemediation([build_remediation_step(r, runner, fs) for r in stage_config.remediation])

    return PipelineStage(
        name=stage_config.name,
        action=step.run,
        precondition=make_precondition(stage_config, step, fs),
        remediation=remediation,
        max_attempts=retry.max_attempts,
        backoff_seconds=retry.backoff_seconds,
        backoff_multiplier=retry.backoff_multiplier,
        max_backoff_seconds=retry.max_backoff_seconds,
        classify=make_classifier(retry.fatal_categories),
        required=stage_config.required,
    )


def build_stages(
    config: BuildConfig,
    runner: ProcessRunner | None = None,
    fs: FileSystem | None = None,
) -> list[PipelineStage]:
    """Create the enabled stages of a build in order."""
    runner = runner or SubprocessRunner()
    fs = fs or LocalFileSystem()
    stages = []
    for stage_config in config.enabled_stages():
        stages.append(build_stage(stage_config, config.default_retry, runner, fs))
    skipped = len(config.stages) - len(stages)
    if skipped:
        logger.debug("Build '%s': %d disabled stage(s) left out", config.name, skipped)
    return stages
