"""Local demo: run an in-process pipeline with a flaky stage.

Shows a stage that fails twice, is remediated between attempts, and
succeeds on its third attempt, followed by the rendered explanation.
No external tools are required.

Usage:
    python examples/run_local_demo.py
"""

from __future__ import annotations

import logging

from ffu_orchestrator.core.diagnostics.reporter import explain
from ffu_orchestrator.core.errors import LockContentionError
from ffu_orchestrator.core.remediation import CallableRemediation, RemediationContext
from ffu_orchestrator.core.stage import PipelineStage
from ffu_orchestrator.runner import CompositeHooks, LoggingHooks, PipelineExecutor


def main() -> None:
    """Build three stages, run them, and print the report."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    mounts = {"C:\\mount": True}
    calls = {"capture": 0}

    def capture() -> None:
        calls["capture"] += 1
        if calls["capture"] < 3:
            raise LockContentionError("The file is being used by another process")

    def release_mounts(context: RemediationContext) -> list[str]:
        mounts.clear()
        return []

    stages = [
        PipelineStage(name="create-vm", action=lambda: None),
        PipelineStage(
            name="capture-ffu",
            action=capture,
            remediation=CallableRemediation(release_mounts),
            max_attempts=3,
            backoff_seconds=0.5,
        ),
        PipelineStage(name="cleanup", action=lambda: None),
    ]

    executor = PipelineExecutor(hooks=CompositeHooks(LoggingHooks()), build_name="local-demo")
    report = executor.run(stages)

    print()
    print(explain(report))


if __name__ == "__main__":
    main()
