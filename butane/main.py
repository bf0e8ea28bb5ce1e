#!/usr/bin/env python3
"""butane/main.py — CLI entry-point for the Butane rules compiler.

Usage examples
--------------
    # Compile rules.yaml and print the JSON rules
    butane rules.yaml

    # Compile rules.yaml into rules.json
    butane rules.yaml rules.json

    # Compile a single expression
    butane --expr "next.name === auth.uid"

    # Show the parse tree of an expression (debugging aid)
    butane --dump-ast "root.users[\\$user].exists()"

Exit codes
----------
    0   Success.
    1   The rules could not be compiled.
    2   Infrastructure failure (missing input, bad output directory, I/O).

The module doubles as ``python -m butane`` via the companion
``butane/__main__.py`` which simply calls :func:`main`.
"""

from __future__ import annotations

import argparse
import logging
import sys
import textwrap
from typing import Optional, Sequence

from butane import __version__
from butane.ast import dump_sexp
from butane.convert import convert, dump_rules
from butane.errors import ButaneError, ConvertError
from butane.parser import parse_expression
from butane.rules import compile_expression

_log = logging.getLogger("butane")

# Exit codes ----------------------------------------------------------------

EXIT_OK: int = 0
EXIT_ERROR: int = 1
EXIT_INFRA: int = 2


def _configure_logging(verbosity: int) -> None:
    """Set up the root ``butane`` logger.

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
    root = logging.getLogger("butane")
    root.setLevel(level)
    root.addHandler(handler)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="butane",
        description="Compile YAML Firebase security rules into Firebase JSON rules.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            examples:
              butane rules.yaml
              butane rules.yaml rules.json
              butane --expr 'next.owner === auth.uid'
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
    parser.add_argument("input", nargs="?", help="YAML rules file.")
    parser.add_argument("output", nargs="?", help="JSON file to write (default: stdout).")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--expr",
        metavar="EXPR",
        help="Compile a single rule expression and print it.",
    )
    mode.add_argument(
        "--dump-ast",
        metavar="EXPR",
        help="Print the parse tree of EXPR as an S-expression.",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the Butane CLI.

    Returns
    -------
    int
        Exit code (see module docstring for semantics).
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)

    try:
        if args.dump_ast is not None:
            print(dump_sexp(parse_expression(args.dump_ast)))
            return EXIT_OK
        if args.expr is not None:
            print(compile_expression(args.expr))
            return EXIT_OK
        if args.input is None:
            parser.print_help(sys.stderr)
            return EXIT_INFRA

        rules = convert(args.input, args.output)
        if args.output is None:
            print(dump_rules(rules))
        return EXIT_OK
    except ConvertError as exc:
        _log.error("%s", exc)
        return EXIT_INFRA
    except ButaneError as exc:
        _log.error("%s", exc)
        return EXIT_ERROR
    except OSError as exc:
        _log.error("I/O error: %s", exc)
        return EXIT_INFRA
    except KeyboardInterrupt:
        _log.info("Interrupted by user.")
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
