"""Built-in build steps."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from ffu_orchestrator.core.facilities import CommandResult, ProcessRunner, SubprocessRunner
from ffu_orchestrator.core.stage.step import BuildStep
from ffu_orchestrator.runtime.fanout import run_parallel

logger = logging.getLogger(__name__)

TARGET_PLACEHOLDER = "{target}"


class CommandStep(BuildStep):
    """Runs an external command and checks its exit code.

    When ``targets`` is given, the command is run once per target with
    ``{target}`` substituted in every argument, and the runs fan out
    across at most ``max_parallel`` workers. Any failed target fails the
    step with a ``FanOutError`` once every target has finished.

    Args:
        name: Step name.
        command: Command and arguments.
        runner: Process facility (default: ``SubprocessRunner``).
        working_dir: Working directory for the command.
        timeout_seconds: Bounded wait for the command to exit.
        targets: Independent targets to fan out over.
        max_parallel: Maximum concurrent target runs.
    """

    def __init__(
        self,
        name: str,
        command: Sequence[str],
        runner: ProcessRunner | None = None,
        working_dir: str | None = None,
        timeout_seconds: float | None = None,
        targets: Sequence[str] = (),
        max_parallel: int = 4,
    ) -> None:
        if not command:
            raise ValueError("command must not be empty")
        self._name = name
        self._command = list(command)
        self._runner = runner or SubprocessRunner()
        self._working_dir = working_dir
        self._timeout = timeout_seconds
        self._targets = list(targets)
        self._max_parallel = max_parallel

    @property
    def name(self) -> str:
        return self._name

    @property
    def command(self) -> list[str]:
        """Return the command template."""
        return list(self._command)

    def command_for(self, target: str) -> list[str]:
        """Return the command with ``{target}`` substituted."""
        return [arg.replace(TARGET_PLACEHOLDER, target) for arg in self._command]

    def run(self) -> None:
        if not self._targets:
            self._run_one(self._command)
            return

        jobs = {target: (lambda t=target: self._run_one(self.command_for(t))) for target in self._targets}
        logger.info("Step '%s' fanning out over %d targets", self._name, len(jobs))
        run_parallel(jobs, max_workers=min(self._max_parallel, len(jobs))).raise_for_failures()

    def _run_one(self, args: list[str]) -> CommandResult:
        result = self._runner.run(args, cwd=self._working_dir, timeout=self._timeout)
        return result.check()
