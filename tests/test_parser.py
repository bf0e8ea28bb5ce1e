# tests/test_parser.py
"""
Tests for the expression grammar: rule string → AST.
"""

import pytest

from butane.ast import (
    ArrayExpression,
    BinaryExpression,
    CallExpression,
    ConditionalExpression,
    Identifier,
    Literal,
    LogicalExpression,
    MemberExpression,
    UnaryExpression,
    dump_sexp,
    root_identifier,
)
from butane.errors import ExpressionSyntaxError, ParseError
from butane.parser import parse_expression, unquote


class TestLiterals:

    def test_integer(self):
        assert parse_expression("12345") == Literal(12345)

    def test_float(self):
        assert parse_expression("1.5") == Literal(1.5)

    def test_booleans_and_null(self):
        assert parse_expression("true") == Literal(True)
        assert parse_expression("false") == Literal(False)
        assert parse_expression("null") == Literal(None)

    def test_keyword_prefix_is_identifier(self):
        assert parse_expression("trueish") == Identifier("trueish")
        assert parse_expression("nullable") == Identifier("nullable")

    def test_single_and_double_quotes(self):
        assert parse_expression("'bar'") == Literal("bar")
        assert parse_expression('"bar"') == Literal("bar")

    def test_escapes(self):
        assert parse_expression(r"'it\'s'") == Literal("it's")
        assert unquote(r"'a\nb'") == "a\nb"

    @pytest.mark.parametrize("src, value", [
        (r"'\u00e9'", "\u00e9"),
        (r"'\x41'", "A"),
        (r"'\u{1F600}'", "\U0001F600"),
        (r"'\ud83d\ude00'", "\U0001F600"),
        (r"'\q'", "q"),
        (r"'\u{110000}'", "u{110000}"),
    ])
    def test_hex_and_unicode_escapes(self, src, value):
        assert unquote(src) == value

    def test_array(self):
        assert parse_expression("['a', 1]") == ArrayExpression((Literal("a"), Literal(1)))
        assert parse_expression("[]") == ArrayExpression(())


class TestMemberAndCall:

    def test_static_member(self):
        node = parse_expression("next.foo")
        assert node == MemberExpression(Identifier("next"), Identifier("foo"), False)

    def test_computed_member(self):
        node = parse_expression("root.users[$user]")
        assert isinstance(node, MemberExpression)
        assert node.computed
        assert node.property == Identifier("$user")

    def test_call_with_arguments(self):
        node = parse_expression("hasUser($chat, auth.uid)")
        assert isinstance(node, CallExpression)
        assert node.callee == Identifier("hasUser")
        assert len(node.arguments) == 2

    def test_empty_call(self):
        node = parse_expression("isAuthed()")
        assert node == CallExpression(Identifier("isAuthed"), ())

    def test_method_chain(self):
        node = parse_expression("next.foo().bar")
        assert isinstance(node, MemberExpression)
        assert isinstance(node.object, CallExpression)
        assert root_identifier(node) == Identifier("next")

    def test_whitespace_between_links(self):
        assert parse_expression("next . foo ( )") == parse_expression("next.foo()")


class TestOperators:

    def test_logical_precedence(self):
        node = parse_expression("a && b || c")
        assert isinstance(node, LogicalExpression)
        assert node.operator == "||"
        assert node.left == LogicalExpression("&&", Identifier("a"), Identifier("b"))

    def test_left_associative(self):
        node = parse_expression("a - b - c")
        assert node.left == BinaryExpression("-", Identifier("a"), Identifier("b"))

    def test_equality_binds_tighter_than_and(self):
        node = parse_expression("a === 1 && b !== 2")
        assert node.operator == "&&"
        assert node.left.operator == "==="
        assert node.right.operator == "!=="

    def test_loose_equality(self):
        assert parse_expression("a == b").operator == "=="

    def test_unary(self):
        node = parse_expression("!prev.exists()")
        assert isinstance(node, UnaryExpression)
        assert node.operator == "!"

    def test_conditional(self):
        node = parse_expression("a ? b : c || d")
        assert isinstance(node, ConditionalExpression)
        assert node.alternate.operator == "||"

    def test_parentheses(self):
        node = parse_expression("(a || b) && c")
        assert node.operator == "&&"
        assert node.left.operator == "||"

    def test_multiline(self):
        node = parse_expression("a &&\n  b")
        assert node == LogicalExpression("&&", Identifier("a"), Identifier("b"))


class TestSyntaxErrors:

    @pytest.mark.parametrize("src", [
        "",
        "next.",
        "a &&",
        "foo(",
        "^chat.foo",
        "a b",
    ])
    def test_rejected(self, src):
        with pytest.raises(ExpressionSyntaxError):
            parse_expression(src)

    def test_is_parse_error(self):
        with pytest.raises(ParseError) as exc_info:
            parse_expression("next === ")
        assert exc_info.value.source == "next === "
        assert exc_info.value.code == "BTN-1001"


class TestSexpDump:

    def test_member(self):
        assert dump_sexp(parse_expression("next.foo")) == "(member next foo)"

    def test_call(self):
        assert dump_sexp(parse_expression("isAuthed()")) == "(call isAuthed)"
