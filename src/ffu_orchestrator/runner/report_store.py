"""JSON persistence of build reports for post-mortem analysis."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from ffu_orchestrator.runner.result import BuildReport

logger = logging.getLogger(__name__)


def save_report(report: BuildReport, path: str | Path) -> Path:
    """Write *report* as JSON using atomic write-then-rename.

    Args:
        report: Finalized build report.
        path: Target file; parent directories are created.

    Returns:
        The path written.
    """
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    data = json.dumps(report.to_dict(), indent=2)
    fd, tmp_path_str = tempfile.mkstemp(dir=str(target.parent), suffix=".tmp")
    tmp_path = Path(tmp_path_str)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(data)
        tmp_path.replace(target)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
    logger.info("Build report written to %s", target)
    return target


def load_report(path: str | Path) -> BuildReport:
    """Load a report written by :func:`save_report`.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If the content is not a valid report.
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    try:
        return BuildReport.from_dict(data)
    except (KeyError, TypeError, AttributeError) as exc:
        raise ValueError(f"'{path}' is not a valid build report: {exc}") from exc
