from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import BinaryIO, Optional

from .bf_interpreter import BrainfuckInterpreter, StreamError, StreamReader, StreamWriter
from .optimizer import OptimizationStats, optimize
from .parser import ParseError, parse

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_PARSE_ERROR = 2
EXIT_IO_ERROR = 3


def _read_source(path: str) -> str:
    source_path = Path(path)
    if not source_path.exists():
        raise FileNotFoundError(f"Source file not found: {path}")
    return source_path.read_text(encoding="utf-8")


def main(
    argv: Optional[list[str]] = None,
    stdin: Optional[BinaryIO] = None,
    stdout: Optional[BinaryIO] = None,
) -> int:
    parser = argparse.ArgumentParser(description="Optimizing Brainfuck interpreter")
    parser.add_argument("source", help="Path to Brainfuck source file")
    parser.add_argument(
        "--no-optimize",
        action="store_true",
        help="Execute the program exactly as parsed, without folding",
    )
    parser.add_argument(
        "--dump",
        action="store_true",
        help="Print the optimized instruction listing instead of running",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log parser, optimizer and execution details to stderr",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        source_text = _read_source(args.source)
    except (OSError, UnicodeDecodeError) as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_USAGE

    try:
        program = parse(source_text)
    except ParseError as exc:
        print(f"Parse error: {exc}", file=sys.stderr)
        return EXIT_PARSE_ERROR

    if not args.no_optimize:
        stats = OptimizationStats()
        program = optimize(program, stats)
        logger.debug(
            "Optimized %s: %d -> %d instructions",
            args.source,
            stats.raw_length,
            stats.optimized_length,
        )

    output_stream = stdout if stdout is not None else sys.stdout.buffer
    if args.dump:
        listing = program.listing()
        output_stream.write(listing.encode("utf-8"))
        if listing:
            output_stream.write(b"\n")
        output_stream.flush()
        return EXIT_OK

    input_stream = stdin if stdin is not None else sys.stdin.buffer
    interpreter = BrainfuckInterpreter()
    try:
        interpreter.execute(program, StreamReader(input_stream), StreamWriter(output_stream))
    except StreamError as exc:
        print(f"I/O error: {exc}", file=sys.stderr)
        return EXIT_IO_ERROR

    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
