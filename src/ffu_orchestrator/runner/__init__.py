"""Build runner: hooks, execution, results, and report persistence."""

from ffu_orchestrator.runner.executor import PipelineExecutor
from ffu_orchestrator.runner.hooks import (
    CompositeHooks,
    NoOpHooks,
    PipelineHooks,
)
from ffu_orchestrator.runner.hooks_builtin import LoggingHooks
from ffu_orchestrator.runner.report_store import load_report, save_report
from ffu_orchestrator.runner.result import (
    AttemptResult,
    BuildReport,
    BuildStatus,
    StageOutcome,
    StageStatus,
)

__all__ = [
    "AttemptResult",
    "BuildReport",
    "BuildStatus",
    "CompositeHooks",
    "LoggingHooks",
    "NoOpHooks",
    "PipelineExecutor",
    "PipelineHooks",
    "StageOutcome",
    "StageStatus",
    "load_report",
    "save_report",
]
