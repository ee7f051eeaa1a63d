"""Tests for the composable API functions in fnc.api."""

import pytest

from fnc.api import (
    ast_stats,
    compile_many,
    compile_source,
    compile_with_stats,
    dump_ast,
    dump_tokens,
    parse_source,
    tokenize_source,
)
from fnc.ast import Function
from fnc.compile_types import CodeGenConfig, CompileStats
from fnc.errors import CodeGenError, CompileError, LexError, ParseError
from fnc.tokens import Token, TokenKind

SIMPLE_SOURCE = "u8 x = 5\n"

FUNCTION_SOURCE = """\
// adds two numbers
fn add(int a, int b) {
    a + b
}

fn main() {
    add
}
"""


class TestTokenizeSource:
    def test_returns_tokens_ending_in_eof(self):
        tokens = tokenize_source(SIMPLE_SOURCE)
        assert all(isinstance(t, Token) for t in tokens)
        assert tokens[-1].kind == TokenKind.END_OF_FILE

    def test_raises_on_malformed_number(self):
        with pytest.raises(LexError, match="Multiple decimal points"):
            tokenize_source("1..2")


class TestParseSource:
    def test_returns_top_level_nodes(self):
        nodes = parse_source(FUNCTION_SOURCE)
        assert [n.name for n in nodes if isinstance(n, Function)] == ["add", "main"]

    def test_independent_runs_are_structurally_identical(self):
        assert parse_source(FUNCTION_SOURCE) == parse_source(FUNCTION_SOURCE)


class TestCompileSource:
    def test_returns_assembly_text(self):
        asm = compile_source(SIMPLE_SOURCE)
        assert asm.startswith("section .data\n")
        assert "section .text" in asm

    def test_is_byte_identical_across_runs(self):
        source = "b = 2 a = 1 fn add(int a, int b) { a + b } a / b ^ 2"
        assert compile_source(source) == compile_source(source)

    def test_config_is_applied(self):
        asm = compile_source(SIMPLE_SOURCE, CodeGenConfig(annotate=True))
        assert "; 1:1: u8 x = 5" in asm

    @pytest.mark.parametrize(
        "source, error",
        [
            ("x = $", LexError),
            ("", ParseError),
            ("fn f( { }", ParseError),
            ("y + 1", CodeGenError),
        ],
    )
    def test_each_stage_fails_with_compile_error(self, source, error):
        with pytest.raises(error) as excinfo:
            compile_source(source)
        assert isinstance(excinfo.value, CompileError)

    def test_undefined_name_in_function(self):
        # Function names are not values.
        with pytest.raises(CodeGenError, match="Undefined identifier 'add'"):
            compile_source(FUNCTION_SOURCE)


class TestCompileWithStats:
    def test_counts_are_populated(self):
        asm, stats = compile_with_stats("a = 1 fn f(x) { x } u8 b")
        assert isinstance(stats, CompileStats)
        assert stats.token_count == 14
        assert stats.top_level_nodes == 3
        assert stats.function_count == 1
        assert stats.global_count == 2
        assert stats.asm_lines == len(asm.splitlines())
        assert stats.total_time >= 0.0

    def test_report_mentions_every_stage(self):
        _asm, stats = compile_with_stats(SIMPLE_SOURCE)
        report = stats.report()
        for stage in ("Lex", "Parse", "Generate", "Total"):
            assert stage in report
        assert "1 globals" in report


class TestCompileMany:
    def test_units_compile_independently(self):
        results = compile_many({"one": "x = 1", "two": "u8 y = 2"})
        assert list(results) == ["one", "two"]
        assert "$x: dq 0" in results["one"]
        assert "$x:" not in results["two"]
        assert "$y: db 0" in results["two"]

    def test_failure_aborts_batch(self):
        with pytest.raises(ParseError):
            compile_many({"good": "1", "bad": "("})


class TestDumps:
    def test_dump_tokens_keeps_error_token(self):
        text = dump_tokens("1 ~")
        assert text.splitlines() == [
            "NUM '1' @1:1",
            "ERROR '~' @1:3",
            "END_OF_FILE '' @1:4",
        ]

    def test_dump_ast(self):
        assert dump_ast("x = 1 + y").splitlines() == [
            "Assignment: x",
            "  BinaryOp: +",
            "    Literal[number]: 1",
            "    Identifier: y",
        ]

    def test_ast_stats(self):
        assert ast_stats("fn f(a) { a * 2 }") == {
            "Function": 1,
            "BinaryOp": 1,
            "Identifier": 1,
            "Literal": 1,
        }
