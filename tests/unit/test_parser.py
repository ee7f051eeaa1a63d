"""Tests for the recursive-descent Parser — precedence, shapes and errors."""

from __future__ import annotations

import pytest

from fnc.ast import (
    Assignment,
    BinaryOp,
    BinaryOperator,
    Function,
    Identifier,
    Literal,
    LiteralKind,
    VarDecl,
)
from fnc.errors import LexError, ParseError
from fnc.lexer import Lexer
from fnc.parser import Parser, parse
from fnc.tokens import TokenKind


def _parse(source: str):
    return Parser(Lexer(source).tokenize()).parse()


def _single(source: str):
    nodes = _parse(source)
    assert len(nodes) == 1
    return nodes[0]


class TestPrecedence:
    def test_multiplication_binds_tighter_than_addition(self):
        node = _single("2+3*4")
        assert isinstance(node, BinaryOp)
        assert node.op == BinaryOperator.ADD
        assert node.left == Literal(kind=LiteralKind.NUMBER, text="2", location=node.left.location)
        assert isinstance(node.right, BinaryOp)
        assert node.right.op == BinaryOperator.MUL

    def test_parentheses_override_precedence(self):
        node = _single("(2+3)*4")
        assert node.op == BinaryOperator.MUL
        assert node.left.op == BinaryOperator.ADD

    def test_subtraction_is_left_associative(self):
        node = _single("10-4-3")
        assert node.op == BinaryOperator.SUB
        assert isinstance(node.left, BinaryOp)
        assert str(node) == "((10 - 4) - 3)"

    def test_exponent_chain_is_left_associative(self):
        node = _single("2^3^2")
        assert node.op == BinaryOperator.POW
        assert isinstance(node.left, BinaryOp)
        assert node.left.op == BinaryOperator.POW
        assert isinstance(node.right, Literal)
        assert str(node) == "((2 ^ 3) ^ 2)"

    def test_exponent_binds_tighter_than_multiplication(self):
        node = _single("2*3^2")
        assert node.op == BinaryOperator.MUL
        assert node.right.op == BinaryOperator.POW


class TestLiterals:
    def test_plain_number_value(self):
        node = _single("3.14")
        assert isinstance(node, Literal)
        assert node.kind == LiteralKind.NUMBER
        assert node.type_keyword is None
        assert node.value == pytest.approx(3.14)

    def test_unsigned_typed_literal(self):
        node = _single("u8 5")
        assert node.kind == LiteralKind.UNSIGNED_INT
        assert node.type_keyword == TokenKind.U8
        assert node.value == 5

    def test_negative_int_literal(self):
        node = _single("int -3")
        assert node.kind == LiteralKind.SIGNED_INT
        assert node.value == -3

    def test_float_literal(self):
        node = _single("float 2.0")
        assert node.kind == LiteralKind.FLOAT
        assert node.value == 2.0

    def test_unsigned_literal_out_of_range(self):
        with pytest.raises(ParseError, match="out of range for 'u8'"):
            _parse("u8 256")

    def test_unsigned_literal_cannot_be_negative(self):
        with pytest.raises(ParseError, match="out of range for 'u16'"):
            _parse("u16 -1")

    def test_integer_type_rejects_fraction(self):
        with pytest.raises(ParseError, match="integer literal for 'int'"):
            _parse("int 3.5")

    def test_type_keyword_needs_value(self):
        with pytest.raises(ParseError, match="literal value after 'u32'"):
            _parse("u32 + 1")


class TestStatements:
    def test_assignment(self):
        node = _single("x = 1 + 2")
        assert isinstance(node, Assignment)
        assert node.identifier == "x"
        assert isinstance(node.value, BinaryOp)

    def test_identifier_without_equal_is_expression(self):
        node = _single("x + 1")
        assert isinstance(node, BinaryOp)
        assert node.left == Identifier(name="x", location=node.left.location)

    def test_bare_identifier(self):
        node = _single("x")
        assert isinstance(node, Identifier)

    def test_statements_need_no_separator(self):
        nodes = _parse("x = 1 y = x 2")
        assert [type(n) for n in nodes] == [Assignment, Assignment, Literal]

    def test_var_decl_with_initializer(self):
        node = _single("u8 x = 5")
        assert isinstance(node, VarDecl)
        assert node.type_keyword == TokenKind.U8
        assert node.identifier == "x"
        assert node.initializer.value == 5

    def test_var_decl_without_initializer(self):
        node = _single("float y")
        assert isinstance(node, VarDecl)
        assert node.initializer is None


class TestFunctions:
    def test_typed_parameters(self):
        node = _single("fn add(int a, int b) { a+b }")
        assert isinstance(node, Function)
        assert node.name == "add"
        assert [p.name for p in node.parameters] == ["a", "b"]
        assert all(p.type_keyword == TokenKind.INT for p in node.parameters)
        assert not any(p.is_const for p in node.parameters)
        assert len(node.body) == 1
        assert isinstance(node.body[0], BinaryOp)

    def test_const_and_untyped_parameters(self):
        node = _single("fn f(const u8 x, y) { x }")
        first, second = node.parameters
        assert first.is_const and first.type_keyword == TokenKind.U8
        assert not second.is_const and second.type_keyword is None

    def test_empty_parameters_and_body(self):
        node = _single("fn f() { }")
        assert node.parameters == ()
        assert node.body == ()

    def test_multiple_body_statements(self):
        node = _single("fn main() { x = 1 x * 2 }")
        assert [type(s) for s in node.body] == [Assignment, BinaryOp]

    def test_functions_and_expressions_mix_at_top_level(self):
        nodes = _parse("fn f(a) { a } 1 + 1 fn g() { 2 }")
        assert [type(n) for n in nodes] == [Function, BinaryOp, Function]

    def test_var_decl_inside_function_is_rejected(self):
        with pytest.raises(ParseError, match="only allowed at top level"):
            _parse("fn f() { u8 x = 1 }")


class TestErrors:
    def test_empty_program(self):
        with pytest.raises(ParseError, match="Empty program"):
            _parse("")

    def test_whitespace_and_comments_only(self):
        with pytest.raises(ParseError, match="Empty program"):
            _parse("  \n // just a comment\n")

    def test_missing_closing_paren_reports_location(self):
        with pytest.raises(ParseError, match=r"'\)'.*1:5"):
            _parse("(1+2")

    def test_unterminated_function_body(self):
        with pytest.raises(ParseError, match="close body of function 'f'"):
            _parse("fn f() { 1")

    def test_missing_function_name(self):
        with pytest.raises(ParseError, match="function name"):
            _parse("fn (a) { a }")

    def test_bad_parameter_list(self):
        with pytest.raises(ParseError, match="parameter name"):
            _parse("fn f(a,) { a }")

    def test_unexpected_token(self):
        with pytest.raises(ParseError, match=r"Expected number.*MUL '\*' at 1:1"):
            _parse("* 2")

    def test_error_token_surfaces_as_lex_error(self):
        with pytest.raises(LexError, match="Multiple decimal points"):
            _parse("x = 1..2")

    def test_token_stream_must_be_terminated(self):
        with pytest.raises(ValueError):
            Parser([])


class TestIdempotence:
    def test_same_tokens_parse_to_equal_trees(self):
        tokens = Lexer("u8 x = 5 fn add(int a, int b) { a+b } x ^ 2 ^ 3").tokenize()
        assert parse(tokens) == parse(tokens)
