"""Command-line entry point: compile a source file to a NASM assembly file."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .api import compile_with_stats, dump_ast, dump_tokens
from .compile_types import CodeGenConfig
from .errors import CompileError
from . import constants

logger = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fnc", description="Compile fn-language source to x86-64 NASM assembly"
    )
    parser.add_argument("file", help="Source file to compile")
    parser.add_argument(
        "--output", "-o", default=None,
        help="Assembly output path (default: source path with .asm suffix)",
    )
    parser.add_argument(
        "--entry", "-e", default=constants.ENTRY_LABEL,
        help=f"Entry point label (default: {constants.ENTRY_LABEL})",
    )
    parser.add_argument(
        "--annotate", action="store_true",
        help="Emit source-location comments in the assembly",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Log each pipeline stage"
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--tokens", action="store_true", help="Only print the token stream"
    )
    mode.add_argument("--ast", action="store_true", help="Only print the AST")
    mode.add_argument(
        "--stats", action="store_true",
        help="Compile and print pipeline statistics",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    source_path = Path(args.file)
    try:
        source = source_path.read_text(encoding="utf-8")
    except OSError as exc:
        print(f"error: could not read '{source_path}': {exc.strerror}", file=sys.stderr)
        return 1

    try:
        if args.tokens:
            print(dump_tokens(source))
            return 0
        if args.ast:
            print(dump_ast(source))
            return 0
        config = CodeGenConfig(entry_label=args.entry, annotate=args.annotate)
        asm, stats = compile_with_stats(source, config)
    except CompileError as exc:
        logger.debug("Compilation of %s failed", source_path, exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return 1

    output_path = Path(args.output) if args.output else source_path.with_suffix(".asm")
    output_path.write_text(asm, encoding="utf-8")
    logger.info("Wrote %s", output_path)
    if args.stats:
        print(stats.report())
    return 0


if __name__ == "__main__":
    sys.exit(main())
