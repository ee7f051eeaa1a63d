"""Compilation errors raised by each pipeline stage."""

from __future__ import annotations

from .tokens import SourceLocation


class CompileError(Exception):
    """Base class for every failure that aborts a compilation unit."""

    def __init__(self, message: str, location: SourceLocation | None = None):
        self.message = message
        self.location = location
        super().__init__(
            f"{message} at {location}" if location is not None else message
        )


class LexError(CompileError):
    """Raised when the token stream contains an ERROR token."""

    pass


class ParseError(CompileError):
    """Raised on the first structural violation in the token stream."""

    pass


class CodeGenError(CompileError):
    """Raised when the AST cannot be lowered to assembly."""

    pass
