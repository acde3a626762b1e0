"""
Command-line entry point for dpm.

Usage:
    dpm [-v] [-c KEY=VALUE ...] [-C DIR] [-f FILE ...] [EXPR ...]

Every -f script and then every EXPR is evaluated in one shared session; the
first error is reported and the process exits with status 1. With neither
files nor expressions an interactive prompt is started.

Examples:
    dpm '(read-env ".env")' '(docker "build")'
    dpm -c PROFILE=dev -f deploy.dpm
    dpm -C ../service '(version-check "docker")'
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from dpm import __version__, log
from dpm.errors import DpmError, DpmParseError
from dpm.interpreter import Interpreter
from dpm.reader import read_all
from dpm.types.values import write

logger = logging.getLogger(__name__)

PROMPT = "dpm> "
CONTINUATION_PROMPT = "...> "

INCOMPLETE_INPUT = ("Unbalanced parentheses", "Unterminated string", "Expected an expression after quote")


def parse_cfg(value: str) -> tuple[str, str]:
    """Parse a KEY=VALUE option into (key, value)."""
    key, sep, val = value.partition("=")
    if not sep or not key.strip():
        raise argparse.ArgumentTypeError(f"Invalid configuration format: '{value}'. Use key=value format")
    return key.strip(), val


def existing_dir(value: str) -> Path:
    path = Path(value)
    if not path.is_dir():
        raise argparse.ArgumentTypeError(f"Not a directory: {value}")
    return path


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dpm",
        description="Manage Docker-based development environments with a small command language.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("-c", "--cfg", metavar="KEY=VALUE", type=parse_cfg, action="append", default=[],
                        help="Set a session variable before anything runs (repeatable)")
    parser.add_argument("-C", "--basedir", metavar="DIR", type=existing_dir, default=None,
                        help="Base directory for relative paths (default: $DPM_BASEDIR or .)")
    parser.add_argument("-f", "--file", metavar="FILE", action="append", default=[],
                        help="Evaluate a script file (repeatable)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("exprs", metavar="EXPR", nargs="*", help="Expressions to evaluate")
    return parser


def is_incomplete(ex: DpmParseError) -> bool:
    return ex.reason.startswith(INCOMPLETE_INPUT)


def repl(interp: Interpreter, stdin=None, stdout=None) -> int:
    """Read forms until EOF; errors are reported and the session continues."""
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout
    buffer = ""
    while True:
        stdout.write(CONTINUATION_PROMPT if buffer else PROMPT)
        stdout.flush()
        try:
            line = stdin.readline()
        except KeyboardInterrupt:
            # Ctrl-C drops any pending input and starts a fresh prompt.
            stdout.write("\n")
            buffer = ""
            continue
        if not line:
            stdout.write("\n")
            return 0
        buffer += line
        try:
            forms = read_all(buffer)
        except DpmParseError as ex:
            if is_incomplete(ex):
                continue
            print(f"error: {ex}", file=sys.stderr)
            buffer = ""
            continue
        buffer = ""
        for form in forms:
            try:
                result = interp.eval_form(form)
            except DpmError as ex:
                print(f"error: {ex}", file=sys.stderr)
                break
            except KeyboardInterrupt:
                print("error: interrupted", file=sys.stderr)
                break
            stdout.write(write(result) + "\n")


def run_scripts(interp: Interpreter, files: Sequence[str], exprs: Sequence[str]) -> int:
    try:
        for path in files:
            interp.load(path)
        for expr in exprs:
            interp.eval(expr)
    except DpmError as ex:
        print(f"error: {ex}", file=sys.stderr)
        return 1
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    log.configure()
    if args.verbose:
        log.set_debug(True)

    try:
        interp = Interpreter(prelude=None, basedir=args.basedir, debug=True if args.verbose else None)
        for key, value in args.cfg:
            logger.debug("cfg: %s = %s", key, value)
            interp.ctx.set(key, value)
        interp.load_prelude()
    except DpmError as ex:
        print(f"error: {ex}", file=sys.stderr)
        return 1

    if args.file or args.exprs:
        return run_scripts(interp, args.file, args.exprs)
    return repl(interp)
