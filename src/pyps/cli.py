"""Command-line entry point for pyps."""

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

from pyps.config import Settings
from pyps.errors import FatalEnvironmentError
from pyps.log_config import setup_logging
from pyps.monitor import Snapshot, SnapshotAssembler
from pyps.procfs import ProcessRecordReader, acquire_context
from pyps.report import SortKey, build_rows, render_text, sort_rows

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="pyps",
        description="Report a snapshot of the processes on this host, like ps aux.",
    )
    parser.add_argument(
        "--sort",
        choices=[key.value for key in SortKey],
        default=None,
        help="Sort the report (default: the order /proc lists processes in).",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Number of threads reading process records (default: 1).",
    )
    parser.add_argument(
        "--proc-root",
        type=Path,
        default=None,
        help="Root of the proc filesystem (default: /proc).",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Diagnostics level on stderr, e.g. DEBUG or INFO (default: WARNING).",
    )
    parser.add_argument(
        "--tui",
        action="store_true",
        help="Show the snapshot in an interactive table instead of printing it.",
    )
    return parser


def resolve_settings(args: argparse.Namespace, base: Settings) -> Settings:
    """Apply command-line overrides on top of environment settings."""
    settings = base
    if args.proc_root is not None:
        settings = replace(settings, proc_root=args.proc_root)
    if args.workers is not None:
        settings = replace(settings, workers=args.workers)
    if args.log_level is not None:
        settings = replace(settings, log_level=args.log_level)
    if args.sort is not None:
        settings = replace(settings, sort=SortKey(args.sort))
    return replace(settings, tui=args.tui).validated()


def take_snapshot(settings: Settings) -> Snapshot:
    """
    Acquire the system context and assemble one snapshot.

    Raises:
        FatalEnvironmentError: If the system constants or the process root
            are unusable.
    """
    context = acquire_context(settings.proc_root)
    reader = ProcessRecordReader(settings.proc_root)
    return SnapshotAssembler(context, reader, max_workers=settings.workers).assemble()


def main(argv: list[str] | None = None) -> int:
    """Entry point for pyps."""
    args = build_parser().parse_args(argv)
    try:
        settings = resolve_settings(args, Settings.from_env())
    except ValueError as exc:
        print(f"pyps: {exc}", file=sys.stderr)
        return EXIT_USAGE

    setup_logging(settings.log_level_value)

    try:
        snapshot = take_snapshot(settings)
    except FatalEnvironmentError as exc:
        logger.error("%s", exc)
        return EXIT_FATAL

    rows = build_rows(snapshot)
    if settings.tui:
        from pyps.app import PypsApp

        PypsApp(snapshot, rows, sort=settings.sort).run()
        return EXIT_OK

    if settings.sort is not None:
        rows = sort_rows(rows, settings.sort)
    print(render_text(rows))
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
