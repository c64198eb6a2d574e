"""Tests for PipelineExecutor."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from ffu_orchestrator.core.config.base import ErrorCategory
from ffu_orchestrator.core.errors import (
    DependencyUnavailableError,
    LockContentionError,
    PreconditionError,
    ResourceExhaustedError,
)
from ffu_orchestrator.core.remediation.base import (
    CallableRemediation,
    RemediationContext,
    RemediationOutcome,
)
from ffu_orchestrator.core.resilience.cancellation import CancellationToken
from ffu_orchestrator.core.stage.base import FailureCause, FailureKind, PipelineStage
from ffu_orchestrator.runner.executor import PipelineExecutor
from ffu_orchestrator.runner.hooks import NoOpHooks
from ffu_orchestrator.runner.result import BuildStatus, StageStatus
from tests.factories import FakeClock, Flaky


def _ok() -> None:
    pass


def _always_fail() -> None:
    raise LockContentionError("image is mounted by another process")


class _RecordingRemediation:
    def __init__(self) -> None:
        self.contexts: list[RemediationContext] = []

    def remediate(self, context: RemediationContext) -> RemediationOutcome:
        self.contexts.append(context)
        return RemediationOutcome(applied=frozenset({"release"}))


# ---------------------------------------------------------------------------
# Happy path
# ---------------------------------------------------------------------------


class TestSuccessfulRuns:
    """Builds where every stage succeeds."""

    def test_all_stages_succeed(self) -> None:
        stages = [PipelineStage(name=n, action=_ok) for n in ("a", "b", "c")]
        report = PipelineExecutor().run(stages)

        assert report.success
        assert report.status is BuildStatus.SUCCEEDED
        assert [s.name for s in report.stages] == ["a", "b", "c"]
        assert all(s.status is StageStatus.SUCCEEDED for s in report.stages)
        assert all(len(s.attempts) == 1 for s in report.stages)

    def test_duration_is_sum_of_stage_durations(self) -> None:
        clock = FakeClock(step=0.010)
        stages = [PipelineStage(name=n, action=_ok) for n in ("a", "b", "c")]
        report = PipelineExecutor(clock=clock).run(stages)

        assert report.duration_ms == sum(s.duration_ms for s in report.stages)
        assert report.duration_ms > 0

    def test_build_name_recorded(self) -> None:
        report = PipelineExecutor(build_name="lab").run([PipelineStage(name="a", action=_ok)])
        assert report.build_name == "lab"

    def test_stages_run_in_order(self) -> None:
        order: list[str] = []
        stages = [PipelineStage(name=n, action=lambda n=n: order.append(n)) for n in ("x", "y", "z")]
        PipelineExecutor().run(stages)
        assert order == ["x", "y", "z"]


class TestInputValidation:
    """Rejection of malformed stage lists."""

    def test_empty_stages_rejected(self) -> None:
        with pytest.raises(ValueError, match="At least one stage"):
            PipelineExecutor().run([])

    def test_duplicate_names_rejected(self) -> None:
        with pytest.raises(ValueError, match="unique"):
            PipelineExecutor().run([PipelineStage(name="a", action=_ok), PipelineStage(name="a", action=_ok)])


# ---------------------------------------------------------------------------
# Retry and remediation
# ---------------------------------------------------------------------------


class TestRetry:
    """Retry, backoff and remediation between attempts."""

    def test_three_stage_scenario(self) -> None:
        """A succeeds, B fails twice then succeeds (max 3), C succeeds."""
        flaky = Flaky(failures=2)
        stages = [
            PipelineStage(name="A", action=_ok),
            PipelineStage(name="B", action=flaky, max_attempts=3),
            PipelineStage(name="C", action=_ok),
        ]
        report = PipelineExecutor().run(stages)

        assert report.success
        b = report.stages[1]
        assert b.status is StageStatus.SUCCEEDED
        assert len(b.attempts) == 3
        assert [a.success for a in b.attempts] == [False, False, True]
        assert [a.attempt for a in b.attempts] == [1, 2, 3]
        assert report.stages[2].status is StageStatus.SUCCEEDED

    def test_remediation_runs_between_attempts_only(self) -> None:
        remediation = _RecordingRemediation()
        stage = PipelineStage(name="s", action=_always_fail, remediation=remediation, max_attempts=4)
        report = PipelineExecutor().run([stage])

        assert not report.success
        assert [c.attempt for c in remediation.contexts] == [1, 2, 3]
        assert report.stages[0].attempts[-1].remediation is None

    def test_no_remediation_before_first_attempt_on_success(self) -> None:
        remediation = _RecordingRemediation()
        stage = PipelineStage(name="s", action=_ok, remediation=remediation, max_attempts=3)
        PipelineExecutor().run([stage])
        assert remediation.contexts == []

    def test_remediation_context_carries_error(self) -> None:
        remediation = _RecordingRemediation()
        stage = PipelineStage(name="s", action=Flaky(1), remediation=remediation, max_attempts=2)
        PipelineExecutor().run([stage])

        context = remediation.contexts[0]
        assert context.stage_name == "s"
        assert context.error is not None
        assert context.error.cause is FailureCause.ACTION_FAILED

    def test_remediation_outcome_recorded_on_failed_attempt(self) -> None:
        stage = PipelineStage(name="s", action=Flaky(1), remediation=_RecordingRemediation(), max_attempts=2)
        report = PipelineExecutor().run([stage])

        first = report.stages[0].attempts[0]
        assert first.remediation is not None
        assert first.remediation.applied == frozenset({"release"})

    def test_raising_remediation_does_not_abort_retry(self) -> None:
        broken = MagicMock()
        broken.remediate.side_effect = RuntimeError("remediation blew up")
        stage = PipelineStage(name="s", action=Flaky(1), remediation=broken, max_attempts=2)
        report = PipelineExecutor().run([stage])

        assert report.success
        outcome = report.stages[0].attempts[0].remediation
        assert outcome is not None
        assert "remediation blew up" in outcome.residual_issues[0]

    def test_remediation_residuals_do_not_replace_action_error(self) -> None:
        remediation = CallableRemediation(lambda ctx: ["lock still held"])
        stage = PipelineStage(name="s", action=_always_fail, remediation=remediation, max_attempts=2)
        report = PipelineExecutor().run([stage])

        terminal = report.stages[0].terminal_error
        assert terminal is not None
        assert terminal.cause is FailureCause.ACTION_FAILED
        assert terminal.category is ErrorCategory.LOCK_CONTENTION

    def test_exhausted_attempts_fail_stage(self) -> None:
        stage = PipelineStage(name="s", action=_always_fail, max_attempts=3)
        report = PipelineExecutor().run([stage])

        outcome = report.stages[0]
        assert outcome.status is StageStatus.FAILED
        assert len(outcome.attempts) == 3
        assert len(outcome.causes) == 3

    def test_backoff_delays_passed_to_token(self) -> None:
        token = MagicMock(spec=CancellationToken)
        token.cancelled = False
        token.wait.return_value = False
        stage = PipelineStage(
            name="s",
            action=_always_fail,
            max_attempts=3,
            backoff_seconds=1.0,
            backoff_multiplier=2.0,
        )
        PipelineExecutor().run([stage], cancel_token=token)

        assert [c.args[0] for c in token.wait.call_args_list] == [1.0, 2.0]


# ---------------------------------------------------------------------------
# Fatal failures
# ---------------------------------------------------------------------------


class TestFatalFailures:
    """Non-retryable failures and downstream skipping."""

    def test_fatal_action_error_skips_retries(self) -> None:
        action = MagicMock(side_effect=ResourceExhaustedError("disk full"))
        remediation = _RecordingRemediation()
        stage = PipelineStage(name="s", action=action, remediation=remediation, max_attempts=5)
        report = PipelineExecutor().run([stage])

        assert action.call_count == 1
        assert remediation.contexts == []
        error = report.stages[0].terminal_error
        assert error is not None
        assert not error.retryable

    def test_fatal_precondition_skips_later_stages(self) -> None:
        later = MagicMock()
        stages = [
            PipelineStage(name="a", action=_ok),
            PipelineStage(
                name="b",
                action=_ok,
                precondition=MagicMock(side_effect=DependencyUnavailableError("oscdimg missing")),
            ),
            PipelineStage(name="c", action=later),
            PipelineStage(name="d", action=later),
        ]
        report = PipelineExecutor().run(stages)

        assert report.status is BuildStatus.FAILED
        assert report.stages[1].terminal_error.cause is FailureCause.PRECONDITION_FAILED  # type: ignore[union-attr]
        assert [s.status for s in report.stages[2:]] == [StageStatus.SKIPPED, StageStatus.SKIPPED]
        assert all(not s.attempted for s in report.stages[2:])
        assert report.skipped_stages == ["c", "d"]
        later.assert_not_called()

    def test_false_precondition_is_fatal(self) -> None:
        action = MagicMock()
        stage = PipelineStage(name="s", action=action, precondition=lambda: False, max_attempts=3)
        report = PipelineExecutor().run([stage])

        assert report.stages[0].status is StageStatus.FAILED
        assert len(report.stages[0].attempts) == 1
        action.assert_not_called()

    def test_retryable_precondition_is_retried(self) -> None:
        precondition = Flaky(1, PreconditionError("mount folder busy", retryable=True))
        stage = PipelineStage(name="s", action=_ok, precondition=precondition, max_attempts=2)
        report = PipelineExecutor().run([stage])

        assert report.success
        assert report.stages[0].attempts[0].error.cause is FailureCause.PRECONDITION_FAILED  # type: ignore[union-attr]

    @pytest.mark.parametrize(
        "error",
        [
            RuntimeError("mount check blew up"),
            LockContentionError("mount busy"),
            PermissionError("access denied"),
        ],
    )
    def test_precondition_without_opt_in_is_fatal(self, error: Exception) -> None:
        precondition = MagicMock(side_effect=error)
        remediation = _RecordingRemediation()
        stage = PipelineStage(
            name="s",
            action=_ok,
            precondition=precondition,
            remediation=remediation,
            max_attempts=3,
            classify=lambda exc: FailureKind.RETRYABLE,
        )
        report = PipelineExecutor().run([stage])

        assert precondition.call_count == 1
        assert remediation.contexts == []
        assert len(report.stages[0].attempts) == 1
        terminal = report.stages[0].terminal_error
        assert terminal is not None
        assert terminal.cause is FailureCause.PRECONDITION_FAILED
        assert not terminal.retryable

    def test_custom_classifier(self) -> None:
        action = MagicMock(side_effect=RuntimeError("boom"))
        stage = PipelineStage(name="s", action=action, max_attempts=3, classify=lambda exc: FailureKind.FATAL)
        PipelineExecutor().run([stage])
        assert action.call_count == 1

    def test_raising_classifier_treated_as_fatal(self) -> None:
        def bad_classifier(exc: BaseException) -> FailureKind:
            raise RuntimeError("classifier bug")

        action = MagicMock(side_effect=RuntimeError("boom"))
        stage = PipelineStage(name="s", action=action, max_attempts=3, classify=bad_classifier)
        report = PipelineExecutor().run([stage])

        assert action.call_count == 1
        assert report.stages[0].status is StageStatus.FAILED


class TestOptionalStages:
    """Stages marked required=False."""

    def test_optional_failure_does_not_abort(self) -> None:
        after = MagicMock()
        stages = [
            PipelineStage(name="optional", action=_always_fail, required=False),
            PipelineStage(name="next", action=after),
        ]
        report = PipelineExecutor().run(stages)

        assert report.success
        assert report.stages[0].status is StageStatus.FAILED
        assert report.failed_stage is None
        assert [s.name for s in report.failed_stages] == ["optional"]
        after.assert_called_once()


# ---------------------------------------------------------------------------
# Cancellation
# ---------------------------------------------------------------------------


class TestCancellation:
    """Cooperative cancellation through CancellationToken."""

    def test_cancel_during_backoff(self) -> None:
        token = CancellationToken()

        def cancel(context: RemediationContext) -> None:
            token.cancel()

        later = MagicMock()
        stages = [
            PipelineStage(
                name="capture",
                action=_always_fail,
                remediation=CallableRemediation(cancel),
                max_attempts=3,
                backoff_seconds=30.0,
            ),
            PipelineStage(name="cleanup", action=later),
        ]
        report = PipelineExecutor().run(stages, cancel_token=token)

        assert report.status is BuildStatus.CANCELLED
        assert not report.success
        assert report.stages[0].status is StageStatus.CANCELLED
        assert len(report.stages[0].attempts) == 1
        assert report.stages[1].status is StageStatus.SKIPPED
        later.assert_not_called()

    def test_cancelled_before_start(self) -> None:
        token = CancellationToken()
        token.cancel()
        action = MagicMock()
        report = PipelineExecutor().run(
            [PipelineStage(name="a", action=action), PipelineStage(name="b", action=action)],
            cancel_token=token,
        )

        assert report.status is BuildStatus.CANCELLED
        assert report.stages[0].status is StageStatus.CANCELLED
        assert report.stages[1].status is StageStatus.SKIPPED
        action.assert_not_called()


# ---------------------------------------------------------------------------
# Hooks
# ---------------------------------------------------------------------------


class TestHooks:
    """Lifecycle hook dispatch."""

    def test_lifecycle_calls(self) -> None:
        hooks = MagicMock(spec=NoOpHooks)
        stages = [
            PipelineStage(name="a", action=Flaky(1), max_attempts=2, remediation=_RecordingRemediation()),
            PipelineStage(name="b", action=_always_fail, max_attempts=1),
            PipelineStage(name="c", action=_ok),
        ]
        report = PipelineExecutor(hooks=hooks).run(stages)

        hooks.before_build.assert_called_once()
        hooks.after_build.assert_called_once_with(report)
        assert hooks.before_stage.call_count == 2
        assert hooks.after_stage.call_count == 2
        assert hooks.on_attempt_failure.call_count == 2
        hooks.on_remediation.assert_called_once()
        hooks.on_retry_attempt.assert_called_once()
        hooks.on_stage_skipped.assert_called_once()

    def test_hook_errors_are_swallowed(self) -> None:
        hooks = MagicMock(spec=NoOpHooks)
        hooks.before_stage.side_effect = RuntimeError("hook failure")
        report = PipelineExecutor(hooks=hooks).run([PipelineStage(name="a", action=_ok)])
        assert report.success
