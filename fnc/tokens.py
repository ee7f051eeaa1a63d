"""Token model shared by the lexer and the parser."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class TokenKind(str, Enum):
    # Punctuation
    PLUS = "PLUS"
    MINUS = "MINUS"
    MUL = "MUL"
    DIV = "DIV"
    EXP = "EXP"
    LPAR = "LPAR"
    RPAR = "RPAR"
    LBRACE = "LBRACE"
    RBRACE = "RBRACE"
    COMMA = "COMMA"
    EQUAL = "EQUAL"
    # Values
    NUM = "NUM"
    IDENTIFIER = "IDENTIFIER"
    # Keywords
    FN = "FN"
    CONST = "CONST"
    U8 = "U8"
    U16 = "U16"
    U32 = "U32"
    U64 = "U64"
    INT = "INT"
    FLOAT = "FLOAT"
    # Special
    END_OF_FILE = "END_OF_FILE"
    ERROR = "ERROR"


PUNCTUATION: dict[str, TokenKind] = {
    "+": TokenKind.PLUS,
    "-": TokenKind.MINUS,
    "*": TokenKind.MUL,
    "/": TokenKind.DIV,
    "^": TokenKind.EXP,
    "(": TokenKind.LPAR,
    ")": TokenKind.RPAR,
    "{": TokenKind.LBRACE,
    "}": TokenKind.RBRACE,
    ",": TokenKind.COMMA,
    "=": TokenKind.EQUAL,
}

KEYWORDS: dict[str, TokenKind] = {
    "fn": TokenKind.FN,
    "const": TokenKind.CONST,
    "u8": TokenKind.U8,
    "u16": TokenKind.U16,
    "u32": TokenKind.U32,
    "u64": TokenKind.U64,
    "int": TokenKind.INT,
    "float": TokenKind.FLOAT,
}

TYPE_KEYWORDS: frozenset[TokenKind] = frozenset(
    {
        TokenKind.U8,
        TokenKind.U16,
        TokenKind.U32,
        TokenKind.U64,
        TokenKind.INT,
        TokenKind.FLOAT,
    }
)

UNSIGNED_TYPE_KEYWORDS: frozenset[TokenKind] = frozenset(
    {TokenKind.U8, TokenKind.U16, TokenKind.U32, TokenKind.U64}
)


class SourceLocation(BaseModel):
    """1-based line/column of a token's first character."""

    model_config = ConfigDict(frozen=True)

    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


class Token(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: TokenKind
    text: str
    location: SourceLocation

    @property
    def line(self) -> int:
        return self.location.line

    @property
    def column(self) -> int:
        return self.location.column

    def __str__(self) -> str:
        return f"{self.kind.value} {self.text!r} @{self.location}"


def keyword_spelling(kind: TokenKind) -> str:
    """Return the source spelling of a keyword kind (``TokenKind.U8`` -> ``"u8"``)."""
    return kind.value.lower()
