"""Composable API functions for the compile pipeline.

Each function corresponds to a CLI workflow (--tokens, --ast, --stats, or a
full compile) but is callable programmatically without argparse.
"""

from __future__ import annotations

import logging
import time

from .ast import Function, Node
from .codegen import CodeGenerator, collect_globals
from .compile_types import CodeGenConfig, CompileStats
from .dump import count_node_kinds, format_ast, format_tokens
from .lexer import Lexer, raise_on_error
from .parser import Parser
from .tokens import Token

logger = logging.getLogger(__name__)


def tokenize_source(source: str) -> list[Token]:
    """Lex source text into tokens.

    Args:
        source: The complete source text.

    Returns:
        The token list, terminated by END_OF_FILE.

    Raises:
        LexError: If the source contains a malformed token.
    """
    return raise_on_error(Lexer(source).tokenize())


def parse_source(source: str) -> list[Node]:
    """Lex and parse source text into top-level AST nodes.

    Args:
        source: The complete source text.

    Returns:
        The ordered list of top-level nodes.
    """
    return Parser(tokenize_source(source)).parse()


def compile_source(source: str, config: CodeGenConfig | None = None) -> str:
    """Run the full pipeline and return the assembly text.

    Nothing is returned unless every stage succeeds; the first failure raises
    a ``CompileError`` subclass.

    Args:
        source: The complete source text.
        config: Code generation options; defaults apply when omitted.

    Returns:
        The generated assembly as one string.
    """
    asm, _stats = compile_with_stats(source, config)
    return asm


def compile_with_stats(
    source: str, config: CodeGenConfig | None = None
) -> tuple[str, CompileStats]:
    """Compile *source* and report per-stage timings and sizes.

    Args:
        source: The complete source text.
        config: Code generation options.

    Returns:
        A ``(assembly, stats)`` pair.
    """
    stats = CompileStats(
        source_bytes=len(source.encode("utf-8")),
        source_lines=len(source.splitlines()),
    )
    t_start = time.perf_counter()

    t0 = time.perf_counter()
    tokens = tokenize_source(source)
    stats.lex_time = time.perf_counter() - t0
    stats.token_count = len(tokens)

    t0 = time.perf_counter()
    nodes = Parser(tokens).parse()
    stats.parse_time = time.perf_counter() - t0
    stats.top_level_nodes = len(nodes)
    stats.function_count = sum(1 for node in nodes if isinstance(node, Function))

    t0 = time.perf_counter()
    asm = CodeGenerator(config or CodeGenConfig()).generate(nodes)
    stats.codegen_time = time.perf_counter() - t0
    stats.global_count = len(collect_globals(nodes))
    stats.asm_lines = len(asm.splitlines())

    stats.total_time = time.perf_counter() - t_start
    logger.info(
        "Compiled %d bytes of source into %d lines of assembly",
        stats.source_bytes,
        stats.asm_lines,
    )
    return asm, stats


def compile_many(
    sources: dict[str, str], config: CodeGenConfig | None = None
) -> dict[str, str]:
    """Compile independent units; a failure in any unit aborts the batch.

    Args:
        sources: Mapping of unit name to source text.
        config: Code generation options shared by every unit.

    Returns:
        Mapping of unit name to assembly text, in input order.
    """
    results: dict[str, str] = {}
    for name, source in sources.items():
        logger.info("Compiling unit %s", name)
        results[name] = compile_source(source, config)
    return results


def dump_tokens(source: str) -> str:
    """Lex source and return one line per token.

    Unlike ``tokenize_source`` this keeps a trailing ERROR token in the
    listing instead of raising, so malformed input can be inspected.
    """
    return format_tokens(Lexer(source).tokenize())


def dump_ast(source: str) -> str:
    """Parse source and return an indented tree rendering."""
    return format_ast(parse_source(source))


def ast_stats(source: str) -> dict[str, int]:
    """Parse source and return node-kind frequency counts."""
    return count_node_kinds(parse_source(source))
