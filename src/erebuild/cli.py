"""
Command-line interface for erebuild.

This module provides the `erebuild` CLI tool. Host build scripts call
`erebuild build` before compiling the client; it prints link directives on
stdout and writes the compile unit as JSON into OUT_DIR.
"""

import argparse
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from erebuild import __version__
from erebuild.build.build_context import OUT_DIR_VAR, BuildParams
from erebuild.build.orchestrator import Orchestrator
from erebuild.errors import OrchestrationError
from erebuild.output import init_timer, log, log_error, log_header, set_verbose
from erebuild.summary_display import print_summary

COMPILE_UNIT_FILE = "compile_unit.json"


@dataclass
class BuildArgs:
    """Arguments for the build command."""

    client_dir: Path
    out_dir: Optional[Path] = None
    unit_json: Optional[Path] = None
    summary: bool = False
    verbose: bool = False


def build_command(args: BuildArgs) -> int:
    """Build the client's dependencies and write its compile unit.

    Examples:
        erebuild build                     # client in current directory
        erebuild build client              # explicit client directory
        erebuild build --out-dir target    # override OUT_DIR
        erebuild build --summary           # stage table at the end

    Returns:
        Process exit status
    """
    log_header("erebuild", __version__)

    environ = dict(os.environ)
    if args.out_dir is not None:
        environ[OUT_DIR_VAR] = str(args.out_dir)

    try:
        params = BuildParams.from_environment(args.client_dir, environ)
    except OrchestrationError as e:
        log_error(str(e))
        return 1

    result = Orchestrator(params).run()

    if args.summary:
        print_summary(result)

    unit = result.compile_unit
    if not result.success or unit is None:
        log_error(str(result.error))
        return 1

    unit_path = args.unit_json if args.unit_json is not None else params.out_dir / COMPILE_UNIT_FILE
    try:
        unit_path.write_text(unit.to_json(), encoding="utf-8")
    except OSError as e:
        log_error(f"Cannot write compile unit to {unit_path}: {e}")
        return 1

    log(f"Compile unit: {unit_path}")
    return 0


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="erebuild",
        description="Build native dependencies and prepare the client compile unit",
    )
    parser.add_argument("--version", action="version", version=f"erebuild {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    build = subparsers.add_parser("build", help="Build dependencies and assemble the compile unit")
    build.add_argument(
        "client_dir",
        nargs="?",
        type=Path,
        default=Path.cwd(),
        help="Client directory (default: current directory)",
    )
    build.add_argument("--out-dir", type=Path, default=None, help=f"Host output directory (overrides {OUT_DIR_VAR})")
    build.add_argument("--unit-json", type=Path, default=None, help="Where to write the compile unit JSON")
    build.add_argument("--summary", action="store_true", help="Print a table of pipeline stages")
    build.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the erebuild console script."""
    args = parse_args(argv)

    init_timer()
    set_verbose(args.verbose)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.command == "build":
            return build_command(
                BuildArgs(
                    client_dir=args.client_dir,
                    out_dir=args.out_dir,
                    unit_json=args.unit_json,
                    summary=args.summary,
                    verbose=args.verbose,
                )
            )
    except KeyboardInterrupt:
        log_error("Interrupted")
        return 130
    return 2


if __name__ == "__main__":
    sys.exit(main())
