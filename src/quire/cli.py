"""Command-line interface: ``quire build``.

Exit codes:
    0  every document built
    1  at least one document failed, or the site could not be read
    2  bad command-line usage
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from quire import __version__
from quire.environment import QuireError, terminal
from quire.site import SiteBuilder, load_config

logger = logging.getLogger("quire")

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="quire",
        description="Build a static site from Markdown/HTML content, layouts and data tables",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    build = subparsers.add_parser("build", help="Render the site into the destination directory")
    build.add_argument(
        "-s", "--source", type=Path, default=Path("."), help="Site source directory (default: .)"
    )
    build.add_argument(
        "-d", "--destination", type=Path, help="Output directory (default: <source>/_site)"
    )
    build.add_argument("--config", type=Path, help="Config file (default: <source>/_config.yml)")
    build.add_argument(
        "--fail-fast", action="store_true", default=None, help="Stop at the first failing document"
    )
    verbosity = build.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Log every file")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Only report problems")
    return parser


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.WARNING if quiet else logging.INFO
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.handlers[:] = [handler]
    logger.setLevel(level)
    logger.propagate = False


def run_build(args: argparse.Namespace) -> int:
    if not args.source.is_dir():
        print(f"quire: source directory not found: {args.source}", file=sys.stderr)
        return EXIT_USAGE

    overrides = {
        "destination": str(args.destination.resolve()) if args.destination else None,
        "fail_fast": args.fail_fast,
    }
    try:
        config = load_config(args.source, args.config, overrides)
        report = SiteBuilder(config).build()
    except QuireError as exc:
        print(exc.format_compact(), file=sys.stderr)
        return EXIT_FAILURE

    for failure in report.failures:
        print(failure.format_compact(), file=sys.stderr)
        print(file=sys.stderr)

    if not report.ok:
        total = len(report.failures) + len(report.pages)
        message = f"{len(report.failures)} of {total} documents failed"
        print(terminal.error_line(message), file=sys.stderr)
        return EXIT_FAILURE

    if not args.quiet:
        print(terminal.success(f"✓ {report.summary()} → {config.destination_path}"))
    return EXIT_OK


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(verbose=args.verbose, quiet=args.quiet)

    if args.command == "build":
        return run_build(args)
    parser.error(f"unknown command {args.command!r}")
    return EXIT_USAGE


if __name__ == "__main__":
    sys.exit(main())
