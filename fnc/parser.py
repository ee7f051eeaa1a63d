"""Recursive-descent parser — token stream to an ordered list of AST nodes."""

from __future__ import annotations

import logging

from .ast import (
    OPERATOR_FOR_TOKEN,
    Assignment,
    BinaryOp,
    Expression,
    Function,
    Identifier,
    Literal,
    LiteralKind,
    Node,
    Parameter,
    Statement,
    VarDecl,
)
from .errors import LexError, ParseError
from .tokens import (
    TYPE_KEYWORDS,
    UNSIGNED_TYPE_KEYWORDS,
    Token,
    TokenKind,
    keyword_spelling,
)
from . import constants

logger = logging.getLogger(__name__)

_UNSIGNED_MAX: dict[TokenKind, int] = {
    TokenKind.U8: 2**8 - 1,
    TokenKind.U16: 2**16 - 1,
    TokenKind.U32: 2**32 - 1,
    TokenKind.U64: constants.UNSIGNED_64_MAX,
}

_DESCRIPTIONS: dict[TokenKind, str] = {
    TokenKind.LPAR: "'('",
    TokenKind.RPAR: "')'",
    TokenKind.LBRACE: "'{'",
    TokenKind.RBRACE: "'}'",
    TokenKind.IDENTIFIER: "identifier",
    TokenKind.NUM: "number",
}


def _describe(token: Token) -> str:
    if token.kind == TokenKind.END_OF_FILE:
        return "end of input"
    return f"{token.kind.value} {token.text!r}"


class Parser:
    """Builds top-level AST nodes from a token list ending in END_OF_FILE.

    Grammar, loosest binding last::

        factor    := NUM | IDENTIFIER | typed-literal | '(' expr ')'
        power     := factor ('^' factor)*
        term      := power (('*' | '/') power)*
        expr      := term (('+' | '-') term)*
        statement := IDENTIFIER '=' expr | expr
        vardecl   := type IDENTIFIER ('=' expr)?
        function  := 'fn' IDENTIFIER '(' params? ')' '{' statement* '}'
        program   := (function | vardecl | statement)+
    """

    def __init__(self, tokens: list[Token]):
        if not tokens or tokens[-1].kind != TokenKind.END_OF_FILE:
            raise ValueError("Token stream must end with END_OF_FILE")
        self._tokens = tokens
        self._pos = 0

    # ── cursor ───────────────────────────────────────────────────

    def _current(self) -> Token:
        token = self._tokens[self._pos]
        if token.kind == TokenKind.ERROR:
            raise LexError(token.text, token.location)
        return token

    def _peek_kind(self, offset: int = 1) -> TokenKind:
        idx = min(self._pos + offset, len(self._tokens) - 1)
        return self._tokens[idx].kind

    def _check(self, *kinds: TokenKind) -> bool:
        return self._current().kind in kinds

    def _advance(self) -> Token:
        token = self._current()
        if token.kind != TokenKind.END_OF_FILE:
            self._pos += 1
        return token

    def _error(self, expected: str) -> ParseError:
        token = self._current()
        return ParseError(f"Expected {expected}, got {_describe(token)}", token.location)

    def _expect(self, kind: TokenKind, expected: str = "") -> Token:
        if not self._check(kind):
            raise self._error(expected or _DESCRIPTIONS.get(kind, kind.value))
        return self._advance()

    # ── program ──────────────────────────────────────────────────

    def parse(self) -> list[Node]:
        if self._check(TokenKind.END_OF_FILE):
            raise ParseError(constants.EMPTY_PROGRAM_MESSAGE, self._current().location)
        nodes: list[Node] = []
        while not self._check(TokenKind.END_OF_FILE):
            nodes.append(self._parse_item())
        logger.info("Parsed %d top-level nodes", len(nodes))
        return nodes

    def _parse_item(self) -> Node:
        if self._check(TokenKind.FN):
            return self._parse_function()
        if self._check(*TYPE_KEYWORDS) and self._peek_kind() == TokenKind.IDENTIFIER:
            return self._parse_var_decl()
        return self._parse_statement()

    def _parse_var_decl(self) -> VarDecl:
        type_token = self._advance()
        name = self._expect(TokenKind.IDENTIFIER)
        initializer: Expression | None = None
        if self._check(TokenKind.EQUAL):
            self._advance()
            initializer = self._parse_expr()
        return VarDecl(
            type_keyword=type_token.kind,
            identifier=name.text,
            initializer=initializer,
            location=type_token.location,
        )

    def _parse_statement(self) -> Statement:
        token = self._current()
        if token.kind == TokenKind.IDENTIFIER and self._peek_kind() == TokenKind.EQUAL:
            self._advance()
            self._advance()
            return Assignment(
                identifier=token.text,
                value=self._parse_expr(),
                location=token.location,
            )
        if token.kind in TYPE_KEYWORDS and self._peek_kind() == TokenKind.IDENTIFIER:
            raise ParseError(
                "Variable declarations are only allowed at top level",
                token.location,
            )
        return self._parse_expr()

    # ── functions ────────────────────────────────────────────────

    def _parse_function(self) -> Function:
        fn_token = self._expect(TokenKind.FN)
        name = self._expect(TokenKind.IDENTIFIER, "function name")
        self._expect(TokenKind.LPAR, "'(' after function name")
        params: list[Parameter] = []
        if not self._check(TokenKind.RPAR):
            params.append(self._parse_parameter())
            while self._check(TokenKind.COMMA):
                self._advance()
                params.append(self._parse_parameter())
        self._expect(TokenKind.RPAR, "',' or ')' in parameter list")
        self._expect(TokenKind.LBRACE, "'{' to open function body")

        body: list[Statement] = []
        while not self._check(TokenKind.RBRACE):
            if self._check(TokenKind.END_OF_FILE):
                raise self._error(f"'}}' to close body of function '{name.text}'")
            body.append(self._parse_statement())
        self._advance()

        logger.debug(
            "Parsed function %s with %d params, %d statements",
            name.text,
            len(params),
            len(body),
        )
        return Function(
            name=name.text,
            parameters=tuple(params),
            body=tuple(body),
            location=fn_token.location,
        )

    def _parse_parameter(self) -> Parameter:
        start = self._current().location
        is_const = False
        type_keyword: TokenKind | None = None
        if self._check(TokenKind.CONST):
            self._advance()
            is_const = True
        if self._check(*TYPE_KEYWORDS):
            type_keyword = self._advance().kind
        name = self._expect(TokenKind.IDENTIFIER, "parameter name")
        return Parameter(
            name=name.text,
            type_keyword=type_keyword,
            is_const=is_const,
            location=start,
        )

    # ── expressions ──────────────────────────────────────────────

    def _parse_binary(self, operand, kinds: tuple[TokenKind, ...]) -> Expression:
        node = operand()
        while self._check(*kinds):
            op_token = self._advance()
            node = BinaryOp(
                op=OPERATOR_FOR_TOKEN[op_token.kind],
                left=node,
                right=operand(),
                location=op_token.location,
            )
        return node

    def _parse_expr(self) -> Expression:
        return self._parse_binary(self._parse_term, (TokenKind.PLUS, TokenKind.MINUS))

    def _parse_term(self) -> Expression:
        return self._parse_binary(self._parse_power, (TokenKind.MUL, TokenKind.DIV))

    def _parse_power(self) -> Expression:
        # Left-associative: 2^3^2 is (2^3)^2.
        return self._parse_binary(self._parse_factor, (TokenKind.EXP,))

    def _parse_factor(self) -> Expression:
        token = self._current()
        if token.kind == TokenKind.NUM:
            self._advance()
            return Literal(kind=LiteralKind.NUMBER, text=token.text, location=token.location)
        if token.kind == TokenKind.IDENTIFIER:
            self._advance()
            return Identifier(name=token.text, location=token.location)
        if token.kind in TYPE_KEYWORDS:
            return self._parse_typed_literal()
        if token.kind == TokenKind.LPAR:
            self._advance()
            node = self._parse_expr()
            self._expect(TokenKind.RPAR, "')' to close parenthesized expression")
            return node
        raise self._error("number, identifier, typed literal or '('")

    def _parse_typed_literal(self) -> Literal:
        type_token = self._advance()
        spelling = keyword_spelling(type_token.kind)
        negative = False
        if self._check(TokenKind.MINUS):
            self._advance()
            negative = True
        value_token = self._expect(TokenKind.NUM, f"literal value after '{spelling}'")
        text = f"-{value_token.text}" if negative else value_token.text

        if type_token.kind == TokenKind.FLOAT:
            kind = LiteralKind.FLOAT
        else:
            if "." in value_token.text:
                raise ParseError(
                    f"Expected integer literal for '{spelling}', got {text!r}",
                    value_token.location,
                )
            value = int(text)
            if type_token.kind in UNSIGNED_TYPE_KEYWORDS:
                kind = LiteralKind.UNSIGNED_INT
                upper = _UNSIGNED_MAX[type_token.kind]
                if negative or value > upper:
                    raise ParseError(
                        f"Literal {text} out of range for '{spelling}' (0..{upper})",
                        value_token.location,
                    )
            else:
                kind = LiteralKind.SIGNED_INT
                if not constants.SIGNED_64_MIN <= value <= constants.SIGNED_64_MAX:
                    raise ParseError(
                        f"Literal {text} out of range for '{spelling}'",
                        value_token.location,
                    )

        return Literal(
            kind=kind,
            text=text,
            type_keyword=type_token.kind,
            location=type_token.location,
        )


def parse(tokens: list[Token]) -> list[Node]:
    return Parser(tokens).parse()
