"""minipl: run a MiniPL source file."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .errors import InterpreterError, Stage
from .lexer import LexerError
from .pipeline import run_source, tokenize

EXIT_FILE_ERROR = 1


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(prog="minipl", description="Run a MiniPL program")
    ap.add_argument("path", type=Path, help="Path to MiniPL source file (UTF-8)")
    ap.add_argument(
        "-v",
        dest="verbose",
        action="count",
        default=0,
        help="Log pipeline stages to stderr (-vv for debug detail)",
    )
    ap.add_argument(
        "--tokens",
        action="store_true",
        help="Print the scanned tokens instead of running the program",
    )
    args = ap.parse_args(argv)
    _configure_logging(args.verbose)

    try:
        src = args.path.read_text(encoding="utf-8")
    except FileNotFoundError:
        log_error(f"file not found: {args.path}")
        return EXIT_FILE_ERROR
    except (OSError, UnicodeDecodeError) as e:
        log_error(f"cannot read {args.path}: {e}")
        return EXIT_FILE_ERROR

    if args.tokens:
        return _print_tokens(src)

    result = run_source(src)
    if not result.ok:
        report(result.error)
    return result.exit_code


def _print_tokens(src: str) -> int:
    try:
        tokens = tokenize(src)
    except LexerError as e:
        report(e)
        return e.exit_code
    for t in tokens:
        print(f"{t.kind.name}\t{t.lexeme!r}\t({t.pos})")
    return 0


def report(error: InterpreterError) -> None:
    if error.stage == Stage.ASSERTION:
        print(error.message, file=sys.stderr)
        return
    if error.stage == Stage.INTERNAL:
        log_error(
            "Something in this program causes the interpreter to break: "
            + error.message
        )
        return
    print(f"There were errors found during {error.stage.value}:", file=sys.stderr)
    print(error.message.rstrip("\n"), file=sys.stderr)


def log_error(msg: str) -> None:
    print(f"[minipl:error] {msg}", file=sys.stderr)


def _configure_logging(verbosity: int) -> None:
    if verbosity <= 0:
        return
    level = logging.DEBUG if verbosity > 1 else logging.INFO
    logging.basicConfig(
        level=level, stream=sys.stderr, format="[minipl] %(name)s: %(message)s"
    )


if __name__ == "__main__":
    raise SystemExit(main())
