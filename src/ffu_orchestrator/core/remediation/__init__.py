"""Remediation policies and built-in remediation steps."""

from ffu_orchestrator.core.remediation.base import (
    CallableRemediation,
    RemediationContext,
    RemediationOutcome,
    RemediationPolicy,
    RemediationStep,
    StepRemediation,
)
from ffu_orchestrator.core.remediation.steps import EnsureFreeSpace, RemoveStalePaths, RunCommand

__all__ = [
    "CallableRemediation",
    "EnsureFreeSpace",
    "RemediationContext",
    "RemediationOutcome",
    "RemediationPolicy",
    "RemediationStep",
    "RemoveStalePaths",
    "RunCommand",
    "StepRemediation",
]
