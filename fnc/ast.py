"""AST model — a closed set of node variants produced by the parser."""

from __future__ import annotations

from enum import Enum
from typing import Union

from pydantic import BaseModel, ConfigDict

from .tokens import SourceLocation, TokenKind, keyword_spelling

NO_LOCATION = SourceLocation(line=0, column=0)


class LiteralKind(str, Enum):
    NUMBER = "number"
    UNSIGNED_INT = "unsigned_int"
    SIGNED_INT = "signed_int"
    FLOAT = "float"


class BinaryOperator(str, Enum):
    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"
    POW = "^"


OPERATOR_FOR_TOKEN: dict[TokenKind, BinaryOperator] = {
    TokenKind.PLUS: BinaryOperator.ADD,
    TokenKind.MINUS: BinaryOperator.SUB,
    TokenKind.MUL: BinaryOperator.MUL,
    TokenKind.DIV: BinaryOperator.DIV,
    TokenKind.EXP: BinaryOperator.POW,
}


class _Node(BaseModel):
    model_config = ConfigDict(frozen=True)

    location: SourceLocation = NO_LOCATION


class Literal(_Node):
    """A numeric literal; ``type_keyword`` is set for typed literals (``u8 5``)."""

    kind: LiteralKind
    text: str
    type_keyword: TokenKind | None = None

    @property
    def value(self) -> int | float:
        """Exact ``int`` for integral text, ``float`` otherwise."""
        if self.kind == LiteralKind.FLOAT or "." in self.text:
            return float(self.text)
        return int(self.text)

    def __str__(self) -> str:
        if self.type_keyword is None:
            return self.text
        return f"{keyword_spelling(self.type_keyword)} {self.text}"


class Identifier(_Node):
    name: str

    def __str__(self) -> str:
        return self.name


class BinaryOp(_Node):
    op: BinaryOperator
    left: Expression
    right: Expression

    def __str__(self) -> str:
        return f"({self.left} {self.op.value} {self.right})"


Expression = Union[Literal, Identifier, BinaryOp]


class Assignment(_Node):
    identifier: str
    value: Expression

    def __str__(self) -> str:
        return f"{self.identifier} = {self.value}"


class VarDecl(_Node):
    type_keyword: TokenKind
    identifier: str
    initializer: Expression | None = None

    def __str__(self) -> str:
        decl = f"{keyword_spelling(self.type_keyword)} {self.identifier}"
        return decl if self.initializer is None else f"{decl} = {self.initializer}"


Statement = Union[Assignment, Literal, Identifier, BinaryOp]


class Parameter(_Node):
    name: str
    type_keyword: TokenKind | None = None
    is_const: bool = False

    def __str__(self) -> str:
        parts = ["const"] if self.is_const else []
        if self.type_keyword is not None:
            parts.append(keyword_spelling(self.type_keyword))
        parts.append(self.name)
        return " ".join(parts)


class Function(_Node):
    name: str
    parameters: tuple[Parameter, ...] = ()
    body: tuple[Statement, ...] = ()

    def __str__(self) -> str:
        params = ", ".join(str(p) for p in self.parameters)
        return f"fn {self.name}({params})"


Node = Union[Function, VarDecl, Assignment, Literal, Identifier, BinaryOp]

BinaryOp.model_rebuild()
Assignment.model_rebuild()
VarDecl.model_rebuild()
Function.model_rebuild()


def children(node: Node) -> list[Node]:
    """Direct children of *node*, in evaluation order."""
    if isinstance(node, BinaryOp):
        return [node.left, node.right]
    if isinstance(node, Assignment):
        return [node.value]
    if isinstance(node, VarDecl):
        return [] if node.initializer is None else [node.initializer]
    if isinstance(node, Function):
        return list(node.body)
    return []
