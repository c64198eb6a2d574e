"""Command-line interface for running image builds."""

from __future__ import annotations

import argparse
import contextlib
import logging
import signal
import sys
import threading
from collections.abc import Iterator

from ffu_orchestrator.core.config.build import BuildConfig
from ffu_orchestrator.core.config.loader import load_from_file
from ffu_orchestrator.core.diagnostics.reporter import explain
from ffu_orchestrator.core.resilience.cancellation import CancellationToken
from ffu_orchestrator.runner.executor import PipelineExecutor
from ffu_orchestrator.runner.hooks import CompositeHooks
from ffu_orchestrator.runner.hooks_builtin import LoggingHooks
from ffu_orchestrator.runner.logging_setup import configure_logging
from ffu_orchestrator.runner.report_store import load_report, save_report
from ffu_orchestrator.runner.result import BuildReport, BuildStatus
from ffu_orchestrator.runtime.loader import build_stages
from ffu_orchestrator.runtime.validator import validate_build

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_INVALID_CONFIG = 2
EXIT_CANCELLED = 130


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ffu-build",
        description="Run an image build pipeline from a HOCON configuration file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    build = subparsers.add_parser("build", help="Run the build pipeline.")
    build.add_argument(
        "--config",
        required=True,
        help="Path to the HOCON build configuration file.",
    )
    build.add_argument(
        "--report",
        default=None,
        help="Write the JSON run report to this path (overrides report_path).",
    )
    build.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        help="Validate the configuration and list stages without running them.",
    )
    build.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Console logging level (default: from configuration).",
    )
    build.add_argument(
        "--log-file",
        default=None,
        help="Detailed log file (overrides logging.file).",
    )

    explain_cmd = subparsers.add_parser("explain", help="Explain a saved run report.")
    explain_cmd.add_argument("report", help="Path to a JSON run report.")
    explain_cmd.add_argument(
        "--log-file",
        default=None,
        help="Log file to reference in the explanation.",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint.

    Args:
        argv: Command-line arguments. Defaults to ``sys.argv[1:]``.

    Returns:
        Exit code: 0 for success, 1 for a terminal stage failure,
        2 for invalid configuration, 130 when cancelled.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command == "explain":
        return _run_explain(args)
    return _run_build(args)


def _run_build(args: argparse.Namespace) -> int:
    try:
        config = load_from_file(args.config, BuildConfig)
    except Exception as exc:
        print(f"Invalid configuration '{args.config}': {exc}", file=sys.stderr)
        return EXIT_INVALID_CONFIG

    log_path = configure_logging(config.logging, level=args.log_level, log_file=args.log_file)

    validation = validate_build(config)
    for warning in validation.warnings:
        logger.warning("Validation warning: %s", warning)
    if not validation.is_valid:
        for error in validation.errors:
            logger.error("Validation error (%s): %s", error.phase.value, error.message)
            print(f"Invalid configuration: {error.message}", file=sys.stderr)
        return EXIT_INVALID_CONFIG

    try:
        stages = build_stages(config)
    except Exception as exc:
        logger.error("Failed to prepare build '%s': %s", config.name, exc)
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return EXIT_INVALID_CONFIG

    if args.dry_run:
        print(f"Dry run passed: build '{config.name}' v{config.version} has {len(stages)} stage(s):")
        for index, stage in enumerate(stages, start=1):
            print(f"  {index}. {stage.name} (max attempts: {stage.max_attempts})")
        return EXIT_SUCCESS

    token = CancellationToken()
    executor = PipelineExecutor(hooks=CompositeHooks(LoggingHooks()), build_name=config.name)
    with _cancel_on_sigint(token):
        report = executor.run(stages, cancel_token=token)

    report_path = args.report or config.report_path
    if report_path:
        try:
            save_report(report, report_path)
        except OSError as exc:
            logger.error("Could not write report to %s: %s", report_path, exc)

    print(explain(report, log_path))
    return _exit_code(report)


def _run_explain(args: argparse.Namespace) -> int:
    try:
        report = load_report(args.report)
    except (OSError, ValueError) as exc:
        print(f"Cannot read report '{args.report}': {exc}", file=sys.stderr)
        return EXIT_INVALID_CONFIG

    print(explain(report, args.log_file))
    return EXIT_SUCCESS if report.success else EXIT_FAILURE


def _exit_code(report: BuildReport) -> int:
    if report.status is BuildStatus.SUCCEEDED:
        return EXIT_SUCCESS
    if report.status is BuildStatus.CANCELLED:
        return EXIT_CANCELLED
    return EXIT_FAILURE


@contextlib.contextmanager
def _cancel_on_sigint(token: CancellationToken) -> Iterator[None]:
    """Route SIGINT to *token* for the duration of the block."""
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def _handle(signum: int, frame: object) -> None:
        logger.warning("Interrupt received; cancelling at the next backoff wait")
        token.cancel()

    previous = signal.getsignal(signal.SIGINT)
    signal.signal(signal.SIGINT, _handle)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


if __name__ == "__main__":
    sys.exit(main())
