"""Failure classification.

The report explainer lives in :mod:`ffu_orchestrator.core.diagnostics.reporter`
and is imported from there directly.
"""

from ffu_orchestrator.core.diagnostics.taxonomy import (
    GUIDANCE,
    CategoryGuidance,
    classify_error,
    classify_text,
)

__all__ = [
    "GUIDANCE",
    "CategoryGuidance",
    "classify_error",
    "classify_text",
]
