"""Human-readable renderings of tokens and AST nodes for inspection."""

from __future__ import annotations

from collections import Counter

from .ast import (
    Assignment,
    BinaryOp,
    Function,
    Identifier,
    Literal,
    Node,
    VarDecl,
    children,
)
from .tokens import Token, keyword_spelling

_INDENT = "  "


def format_tokens(tokens: list[Token]) -> str:
    return "\n".join(str(token) for token in tokens)


def _describe(node: Node) -> str:
    if isinstance(node, Literal):
        return f"Literal[{node.kind.value}]: {node}"
    if isinstance(node, Identifier):
        return f"Identifier: {node.name}"
    if isinstance(node, BinaryOp):
        return f"BinaryOp: {node.op.value}"
    if isinstance(node, Assignment):
        return f"Assignment: {node.identifier}"
    if isinstance(node, VarDecl):
        return f"VarDecl: {keyword_spelling(node.type_keyword)} {node.identifier}"
    if isinstance(node, Function):
        return f"Function: {node}"
    return type(node).__name__


def _format_node(node: Node, depth: int, lines: list[str]):
    lines.append(f"{_INDENT * depth}{_describe(node)}")
    for child in children(node):
        _format_node(child, depth + 1, lines)


def format_ast(nodes: list[Node]) -> str:
    """Indented tree, one node per line, children two spaces deeper."""
    lines: list[str] = []
    for node in nodes:
        _format_node(node, 0, lines)
    return "\n".join(lines)


def count_node_kinds(nodes: list[Node]) -> dict[str, int]:
    """Return a frequency map of node class names over every tree in *nodes*.

    Args:
        nodes: Top-level AST nodes.

    Returns:
        A dict mapping node class names to their occurrence counts.
        Empty dict for an empty input list.
    """
    counts: Counter[str] = Counter()
    pending = list(nodes)
    while pending:
        node = pending.pop()
        counts[type(node).__name__] += 1
        pending.extend(children(node))
    return dict(counts)
