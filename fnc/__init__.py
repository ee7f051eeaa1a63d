"""fnc — ahead-of-time compiler from the fn expression language to x86-64 assembly."""

from .api import (  # noqa: F401
    compile_source,
    compile_with_stats,
    compile_many,
    tokenize_source,
    parse_source,
    dump_tokens,
    dump_ast,
)
from .errors import CompileError, LexError, ParseError, CodeGenError  # noqa: F401
