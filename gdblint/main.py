#!/usr/bin/env python3
"""gdblint/main.py: command-line entry point.

Usage examples
--------------
    # Lint a script
    gdblint ~/.gdbinit

    # Lint standard input and emit a sourceable bash fragment
    cat commands.gdb | gdblint --script

    # Only report undefined references, for the aarch64 register set
    gdblint --wno-unused -a aarch64 commands.gdb

    # List the architectures gdb knows about
    gdblint --list

    # Forget the cached gdb built-ins
    gdblint --clear

Exit codes
----------
    0   No findings.
    1   One or more findings were reported.
    2   Infrastructure failure (unreadable input, cache directory, bad
        arguments).

The module doubles as ``python -m gdblint`` via ``gdblint/__main__.py``.
"""

from __future__ import annotations

import argparse
import logging
import sys
import textwrap
from typing import List, Optional, Sequence, TextIO

from gdblint import __version__
from gdblint.config import COLOR_MODES, LintConfig
from gdblint.errors import CollaboratorError, GdbLintError
from gdblint.program import clear_cache, lint, list_architectures
from gdblint.report import render_human, render_script, use_color

_log = logging.getLogger("gdblint")

# Exit codes ----------------------------------------------------------------

EXIT_OK: int = 0
EXIT_FINDINGS: int = 1
EXIT_INFRA: int = 2

PROG: str = "gdblint"


# ===========================================================================
# Utility helpers
# ===========================================================================

def _configure_logging(verbosity: int) -> None:
    """Set up the root ``gdblint`` logger.

    Parameters
    ----------
    verbosity:
        0 → WARNING, 1 → INFO, 2+ → DEBUG.
    """
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    root = logging.getLogger("gdblint")
    for old in list(root.handlers):
        root.removeHandler(old)
    root.setLevel(level)
    root.addHandler(handler)


def _print_header(stream: TextIO) -> None:
    stream.write(f"{PROG} - lint GDB scripts\n\n")


def _print_architectures(archs: List[str], stream: TextIO) -> None:
    stream.write("ARCHITECTURES\n\tAvailable GDB architectures\n\n")
    for arch in archs:
        stream.write(f"\t{arch}\n")
    stream.write("\n")


# ===========================================================================
# Parser
# ===========================================================================

def _build_parser() -> argparse.ArgumentParser:
    """Construct the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog=PROG,
        description=(
            "Lints a GDB script.  Reads the script from standard input if\n"
            "no file path is given as the final argument."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            environment:
              GDBLINT_GDB           gdb executable (default: gdb)
              GDBLINT_CACHE_DIR     cache directory (default: ~/.cache/gdblint)
              GDBLINT_GDB_TIMEOUT   seconds allowed per gdb query (default: 60)
        """),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v info, -vv debug).",
    )

    actions = parser.add_mutually_exclusive_group()
    actions.add_argument(
        "-s", "--script",
        action="store_true",
        help="Enable bash friendly output.",
    )
    actions.add_argument(
        "-c", "--clear",
        action="store_true",
        help="Clear the defs and commands cache.",
    )
    actions.add_argument(
        "-l", "--list",
        action="store_true",
        help="List architectures available with GDB.",
    )
    parser.add_argument(
        "-a", "--arch",
        default=None,
        metavar="ARCH",
        help="Specify the architecture to use.",
    )

    warnings = parser.add_argument_group("warnings")
    warnings.add_argument(
        "--wno-unused",
        dest="no_warn_unused",
        action="store_true",
        help="Disable warnings for unused functions and variables.",
    )
    warnings.add_argument(
        "--wno-unused-function",
        dest="no_warn_unused_function",
        action="store_true",
        help="Disable warnings for unused functions.",
    )
    warnings.add_argument(
        "--wno-unused-variable",
        dest="no_warn_unused_variable",
        action="store_true",
        help="Disable warnings for unused variables.",
    )
    warnings.add_argument(
        "--wno-undefined",
        dest="no_warn_undefined",
        action="store_true",
        help="Disable warnings for undefined functions and variables.",
    )
    warnings.add_argument(
        "--wno-undefined-function",
        dest="no_warn_undefined_function",
        action="store_true",
        help="Disable warnings for undefined functions.",
    )
    warnings.add_argument(
        "--wno-undefined-variable",
        dest="no_warn_undefined_variable",
        action="store_true",
        help="Disable warnings for undefined variables.",
    )

    tuning = parser.add_argument_group("analysis")
    tuning.add_argument(
        "--check-duplicates",
        action="store_true",
        help="Store identical definitions and references only once.",
    )
    tuning.add_argument(
        "--abbreviations",
        action="store_true",
        help="Treat unambiguous prefixes of gdb commands as commands.",
    )
    tuning.add_argument(
        "--no-cache",
        dest="use_cache",
        action="store_false",
        help="Always query gdb and leave the cache untouched.",
    )
    parser.add_argument(
        "--color",
        choices=COLOR_MODES,
        default="auto",
        help="Colour human readable output (default: auto).",
    )
    parser.add_argument(
        "file",
        nargs="?",
        default=None,
        metavar="FILE",
        help='GDB script to lint ("-" or omit for stdin).',
    )
    return parser


def _config_from_args(args: argparse.Namespace) -> LintConfig:
    return LintConfig.from_env(
        file=args.file,
        script_mode=args.script,
        arch=args.arch,
        no_warn_undefined=args.no_warn_undefined,
        no_warn_undefined_function=args.no_warn_undefined_function,
        no_warn_undefined_variable=args.no_warn_undefined_variable,
        no_warn_unused=args.no_warn_unused,
        no_warn_unused_function=args.no_warn_unused_function,
        no_warn_unused_variable=args.no_warn_unused_variable,
        check_duplicates=args.check_duplicates,
        abbreviations=args.abbreviations,
        color=args.color,
        use_cache=args.use_cache,
    )


# ===========================================================================
# Actions
# ===========================================================================

def _cmd_clear(config: LintConfig) -> int:
    clear_cache(config)
    sys.stdout.write("Definitions and commands cache has been removed\n")
    return EXIT_OK


def _cmd_list(config: LintConfig) -> int:
    try:
        archs = list_architectures(config)
    except CollaboratorError as exc:
        _log.error("could not load GDB data: %s", exc)
        return EXIT_INFRA
    _print_header(sys.stdout)
    _print_architectures(archs, sys.stdout)
    return EXIT_OK


def _cmd_lint(config: LintConfig) -> int:
    result = lint(config)

    if config.script_mode:
        render_script(result.findings, result.width, sys.stdout)
    else:
        render_human(
            result.findings,
            result.path,
            result.width,
            sys.stdout,
            color=use_color(config.color, sys.stdout),
        )
    sys.stdout.flush()
    return EXIT_FINDINGS if result.findings else EXIT_OK


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the gdblint CLI.

    Parameters
    ----------
    argv:
        Command-line arguments.  ``None`` → ``sys.argv[1:]``.

    Returns
    -------
    int
        Exit code (see module docstring for semantics).
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)

    config = _config_from_args(args)
    problems = config.validate()
    if problems:
        for problem in problems:
            _log.error("%s", problem)
        return EXIT_INFRA

    try:
        if args.clear:
            return _cmd_clear(config)
        if args.list:
            return _cmd_list(config)
        return _cmd_lint(config)
    except KeyboardInterrupt:
        _log.info("Interrupted by user.")
        return 130
    except GdbLintError as exc:
        _log.error("%s", exc)
        return exc.exit_code


# ---------------------------------------------------------------------------
# Module execution support
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    raise SystemExit(main())
