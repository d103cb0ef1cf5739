"""CLI argument parsing for objlock."""

from __future__ import annotations

import argparse
import sys

import argcomplete

from objlock.core.constants import EXIT_INTERRUPTED, EXIT_LOCK_HELD, SUPPORTED_BACKENDS, VALID_LOG_LEVELS
from objlock.core.version import __version__


def _non_negative_seconds(value: str) -> float:
    try:
        seconds = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected a number of seconds, got '{value}'") from None
    if seconds < 0:
        raise argparse.ArgumentTypeError("seconds can not be negative")
    return seconds


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="objlock",
        description="Run tasks under a distributed lock kept in an object storage bucket",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Examples:
  # Run a nightly job on at most one node; lock expires after 10 minutes
  objlock --backend gcs --bucket my-locks run nightly-report --lock-for 600 -- ./report.sh

  # Local development with a directory-backed store
  objlock --backend file --root /tmp/locks run job-1 --lock-for 60 -- echo hello

  # Inspect a lock
  objlock --backend s3 --bucket my-locks status nightly-report --json

Exit codes:
  {EXIT_LOCK_HELD}  the lock is held elsewhere and the command was not run
  1   configuration, storage or unlock failure, or the command could not be started
  {EXIT_INTERRUPTED} interrupted
        """,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--backend",
        choices=SUPPORTED_BACKENDS,
        help="Object store backend (default: $OBJLOCK_STORE_BACKEND or memory)",
    )
    parser.add_argument("--bucket", help="Bucket holding lock objects (default: $OBJLOCK_BUCKET)")
    parser.add_argument("--root", help="Base directory for the file backend (default: $OBJLOCK_ROOT)")
    parser.add_argument("--endpoint-url", help="Custom endpoint for S3-compatible services or GCS emulators")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=VALID_LOG_LEVELS,
        help="Logging level (default: $LOG_LEVEL or INFO)",
    )
    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        default="text",
        help="Log output format (default: text)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run a command while holding a lock")
    run_parser.add_argument("name", help="Lock name")
    run_parser.add_argument(
        "--lock-for",
        type=_non_negative_seconds,
        required=True,
        metavar="SECONDS",
        help="Lock at most for this many seconds (recorded as lockUntil)",
    )
    run_parser.add_argument(
        "--lock-at-least",
        type=_non_negative_seconds,
        default=0.0,
        metavar="SECONDS",
        help="Minimum expected hold time; early release is logged (default: 0)",
    )

    status_parser = subparsers.add_parser("status", help="Show the record of a lock")
    status_parser.add_argument("name", help="Lock name")
    status_parser.add_argument("--json", action="store_true", help="Print machine-readable JSON")

    return parser


def parse_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments"""
    parser = build_parser()
    argcomplete.autocomplete(parser)

    # Everything after the first "--" is the task command, passed through untouched
    argv = list(sys.argv[1:] if argv is None else argv)
    task: list[str] = []
    if "--" in argv:
        separator = argv.index("--")
        argv, task = argv[:separator], argv[separator + 1 :]

    args = parser.parse_args(argv)
    if args.command == "run" and not task:
        parser.error("run: a command to execute is required after --")
    args.task = task
    return args
