"""Human-readable explanation of a build report.

``explain`` is a pure function of its inputs: the same report always
renders to the same text, and nothing is printed or logged.
"""

from __future__ import annotations

from ffu_orchestrator.core.config.base import ErrorCategory
from ffu_orchestrator.core.diagnostics.taxonomy import GUIDANCE
from ffu_orchestrator.core.stage.base import FailureCause
from ffu_orchestrator.runner.result import BuildReport, BuildStatus, StageOutcome, StageStatus

_STATUS_MARKERS = {
    StageStatus.SUCCEEDED: "ok",
    StageStatus.FAILED: "FAILED",
    StageStatus.SKIPPED: "skipped",
    StageStatus.CANCELLED: "cancelled",
}


def failure_category(stage: StageOutcome) -> ErrorCategory:
    """Return the category of the stage's terminal error.

    Remediation residuals never decide the category; only precondition
    and action errors do.
    """
    for error in reversed(stage.causes):
        if error.cause is not FailureCause.REMEDIATION_FAILED:
            return error.category
    return ErrorCategory.UNKNOWN


def explain(report: BuildReport, log_path: str | None = None) -> str:
    """Render *report* as actionable text.

    Every failed stage is classified into the error taxonomy and given the
    category's canned guidance, followed by the per-attempt diagnostics.

    Args:
        report: A finalized build report.
        log_path: Detailed log location to point the reader at.

    Returns:
        Multi-line explanation text.
    """
    lines = [_headline(report), ""]

    for index, stage in enumerate(report.stages, start=1):
        lines.append(_stage_line(index, stage))

    for stage in report.failed_stages:
        lines.append("")
        lines.extend(_explain_failure(stage))

    cancelled = [s for s in report.stages if s.status is StageStatus.CANCELLED]
    if cancelled:
        lines.append("")
        lines.append(
            f"The build was cancelled during stage '{cancelled[0].name}'. "
            "No stage failed; re-run the build to continue."
        )

    if log_path and report.status is not BuildStatus.SUCCEEDED:
        lines.append("")
        lines.append(f"Detailed log: {log_path}")

    return "\n".join(lines)


def _headline(report: BuildReport) -> str:
    seconds = report.duration_ms / 1000
    if report.status is BuildStatus.SUCCEEDED:
        optional = len(report.failed_stages)
        suffix = f" ({optional} optional stage(s) failed)" if optional else ""
        return f"Build '{report.build_name}' succeeded in {seconds:.1f}s{suffix}"
    if report.status is BuildStatus.CANCELLED:
        return f"Build '{report.build_name}' was cancelled after {seconds:.1f}s"
    failed = report.failed_stage
    where = f" at stage '{failed.name}'" if failed is not None else ""
    return f"Build '{report.build_name}' failed{where} after {seconds:.1f}s"


def _stage_line(index: int, stage: StageOutcome) -> str:
    marker = _STATUS_MARKERS[stage.status]
    optional = " (optional)" if not stage.required else ""
    if not stage.attempted:
        return f"  {index}. [{marker}] {stage.name}{optional}"
    return (
        f"  {index}. [{marker}] {stage.name}{optional}: "
        f"{len(stage.attempts)} attempt(s), {stage.duration_ms}ms"
    )


def _explain_failure(stage: StageOutcome) -> list[str]:
    category = failure_category(stage)
    guidance = GUIDANCE[category]
    terminal = stage.terminal_error

    lines = [f"Stage '{stage.name}' failed: {guidance.title} ({category.value})"]
    if terminal is not None and not terminal.retryable:
        lines.append("  The failure was classified as non-retryable, so no further attempts were made.")
    lines.append(f"  Likely cause: {guidance.likely_cause}")
    lines.append("  Suggested next steps:")
    lines.extend(f"    - {step}" for step in guidance.next_steps)

    lines.append("  Attempts:")
    for attempt in stage.attempts:
        lines.extend(f"    {line}" for line in attempt.diagnostic.splitlines())
        if attempt.remediation is not None:
            applied = ", ".join(sorted(attempt.remediation.applied)) or "nothing needed"
            lines.append(f"      remediation: {applied}")
            lines.extend(f"      residual: {issue}" for issue in attempt.remediation.residual_issues)

    if category is ErrorCategory.UNKNOWN and terminal is not None:
        lines.append("  Raw diagnostic:")
        lines.append(f"    {terminal.error_type}: {terminal.message}")
        lines.extend(f"    {line}" for line in terminal.detail.splitlines())

    return lines
