from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path
from typing import List, Optional

from .api import CompileOptions, compile_string
from .codec import desugar, resugar
from .errors import TapecError
from .instructions import count_primitives, loop_depth
from .interpreter import TAPE_SIZE, TapeInterpreter


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tapec",
        description="Compile and run programs for the byte tape machine.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Run a raw primitive program (or a variable-language one with --lang)")
    run.add_argument("file", help="Source file ('-' reads stdin)")
    run.add_argument("--lang", action="store_true", help="Treat the source as the variable language")
    run.add_argument("--tape-size", type=int, default=TAPE_SIZE, help=f"Number of cells (default {TAPE_SIZE})")
    run.add_argument("--dump", action="store_true", help="Print the first 100 cells after execution")
    run.add_argument("--stats", action="store_true", help="Print timing and size information")
    run.add_argument("--trace", action="store_true", help="Print the compiler trace (with --lang)")

    comp = sub.add_parser("compile", help="Print the raw primitive program for a variable-language source")
    comp.add_argument("file", help="Source file ('-' reads stdin)")
    comp.add_argument("--trace", action="store_true", help="Print the compiler trace")
    comp.add_argument("--stats", action="store_true", help="Print timing and size information")
    return parser


def _read_source(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def _load(args: argparse.Namespace, source: str, lang: bool):
    start = time.time()
    if lang:
        result = compile_string(source, options=CompileOptions(trace=args.trace))
        if args.trace:
            for line in result.trace:
                print(line, file=sys.stderr)
        program = result.program
    else:
        program = desugar(source)
    end = time.time()

    if args.stats:
        print(f"Compilation took {(end - start) * 1000:.2f} ms", file=sys.stderr)
        print(
            f"Primitives: {count_primitives(program)}, loop depth: {loop_depth(program)}",
            file=sys.stderr,
        )
    return program


def _cmd_compile(args: argparse.Namespace, source: str) -> int:
    program = _load(args, source, lang=True)
    sys.stdout.write(resugar(program) + "\n")
    return 0


def _cmd_run(args: argparse.Namespace, source: str) -> int:
    program = _load(args, source, lang=args.lang)

    interpreter = TapeInterpreter(sys.stdout.buffer, sys.stdin.buffer, tape_size=args.tape_size)
    start = time.time()
    interpreter.execute(program)
    end = time.time()

    if args.stats:
        print(f"Execution took {(end - start) * 1000:.2f} ms", file=sys.stderr)
    if args.dump:
        print("\n================", file=sys.stderr)
        print(interpreter.dump(), file=sys.stderr)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.command == "run":
        if args.trace and not args.lang:
            parser.error("--trace needs --lang (raw programs are not compiled)")
        if args.tape_size <= 0:
            parser.error(f"--tape-size must be positive, got {args.tape_size}")

    try:
        source = _read_source(args.file)
    except FileNotFoundError:
        print(f"Couldn't find file: {args.file}", file=sys.stderr)
        return 1

    try:
        if args.command == "compile":
            return _cmd_compile(args, source)
        return _cmd_run(args, source)
    except TapecError as e:
        print(e, file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
