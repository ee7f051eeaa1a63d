"""Lexer — source text to a position-tagged token stream."""

from __future__ import annotations

import logging

from .errors import LexError
from .tokens import KEYWORDS, PUNCTUATION, SourceLocation, Token, TokenKind
from . import constants

logger = logging.getLogger(__name__)


def _is_identifier_start(ch: str) -> bool:
    return ch.isascii() and (ch.isalpha() or ch == "_")


def _is_identifier_char(ch: str) -> bool:
    return ch.isascii() and (ch.isalnum() or ch == "_")


def _is_number_char(ch: str) -> bool:
    return ch.isascii() and (ch.isdigit() or ch == ".")


class Lexer:
    """Single-pass scanner over a complete source buffer.

    ``next()`` yields one token at a time; ``tokenize()`` drains the buffer and
    stops right after the first ERROR token.
    """

    def __init__(self, source: str):
        self._source = source
        self._pos = 0
        self._line = 1
        self._column = 1

    # ── cursor ───────────────────────────────────────────────────

    def _peek(self, offset: int = 0) -> str:
        idx = self._pos + offset
        return self._source[idx] if idx < len(self._source) else ""

    def _advance(self) -> str:
        ch = self._source[self._pos]
        self._pos += 1
        if ch == "\n":
            self._line += 1
            self._column = 1
        else:
            self._column += 1
        return ch

    def _at_end(self) -> bool:
        return self._pos >= len(self._source)

    def _location(self) -> SourceLocation:
        return SourceLocation(line=self._line, column=self._column)

    def _skip_trivia(self):
        """Skip whitespace and ``//`` line comments."""
        while not self._at_end():
            ch = self._peek()
            if ch.isspace():
                self._advance()
            elif ch == "/" and self._peek(1) == "/":
                while not self._at_end() and self._peek() != "\n":
                    self._advance()
            else:
                return

    # ── scanners ─────────────────────────────────────────────────

    def _scan_identifier(self, start: SourceLocation) -> Token:
        chars: list[str] = []
        while not self._at_end() and _is_identifier_char(self._peek()):
            chars.append(self._advance())
        text = "".join(chars)
        kind = KEYWORDS.get(text, TokenKind.IDENTIFIER)
        return Token(kind=kind, text=text, location=start)

    def _scan_number(self, start: SourceLocation) -> Token:
        chars: list[str] = []
        seen_point = False
        while not self._at_end() and _is_number_char(self._peek()):
            if self._peek() == ".":
                if seen_point:
                    return Token(
                        kind=TokenKind.ERROR,
                        text=constants.MULTIPLE_DECIMAL_POINTS_MESSAGE,
                        location=start,
                    )
                seen_point = True
            chars.append(self._advance())
        text = "".join(chars)
        try:
            float(text)
        except ValueError:
            return Token(
                kind=TokenKind.ERROR,
                text=constants.INVALID_NUMBER_MESSAGE + text,
                location=start,
            )
        return Token(kind=TokenKind.NUM, text=text, location=start)

    # ── public API ───────────────────────────────────────────────

    def next(self) -> Token:
        """Return the next token, or END_OF_FILE once input is exhausted."""
        self._skip_trivia()
        start = self._location()
        if self._at_end():
            return Token(kind=TokenKind.END_OF_FILE, text="", location=start)

        ch = self._peek()
        if ch in PUNCTUATION:
            self._advance()
            return Token(kind=PUNCTUATION[ch], text=ch, location=start)
        if _is_identifier_start(ch):
            return self._scan_identifier(start)
        if _is_number_char(ch):
            return self._scan_number(start)

        self._advance()
        return Token(kind=TokenKind.ERROR, text=ch, location=start)

    def tokenize(self) -> list[Token]:
        """Return every token up to and including END_OF_FILE.

        An ERROR token is kept and ends the scan; END_OF_FILE still closes the
        list so consumers can rely on a terminator.
        """
        tokens: list[Token] = []
        while True:
            token = self.next()
            if token.kind == TokenKind.END_OF_FILE:
                break
            tokens.append(token)
            if token.kind == TokenKind.ERROR:
                logger.info("Lexer stopped at %s: %s", token.location, token.text)
                return tokens + [
                    Token(
                        kind=TokenKind.END_OF_FILE,
                        text="",
                        location=self._location(),
                    )
                ]
        tokens.append(token)
        logger.info("Lexed %d tokens", len(tokens))
        return tokens


def find_error(tokens: list[Token]) -> Token | None:
    return next((t for t in tokens if t.kind == TokenKind.ERROR), None)


def raise_on_error(tokens: list[Token]) -> list[Token]:
    """Return *tokens* unchanged, or raise ``LexError`` for the first ERROR token."""
    error = find_error(tokens)
    if error is not None:
        raise LexError(error.text, error.location)
    return tokens
