"""butane/parser.py – PEG grammar and tree builder for rule expressions.

Rule strings are parsed with a Parsimonious grammar into a parse tree,
which :class:`ExpressionBuilder` folds into :mod:`butane.ast` nodes.

Operator precedence, loosest first::

    a ? b : c
    ||
    &&
    ===  !==  ==  !=
    <=  >=  <  >
    +  -
    *  /  %
    !  -  +            (prefix)
    a.b  a[b]  a(b)    (postfix)

Binary operators associate to the left.  Parsed trees are immutable and
cached by source text, since the same function bodies are parsed once per
call site.
"""

from __future__ import annotations

import functools
import logging
import re
from typing import List

from parsimonious.exceptions import ParseError as GrammarError
from parsimonious.grammar import Grammar
from parsimonious.nodes import NodeVisitor

from butane.ast import (
    ArrayExpression,
    BinaryExpression,
    CallExpression,
    ConditionalExpression,
    Identifier,
    Literal,
    LogicalExpression,
    MemberExpression,
    Node,
    UnaryExpression,
)
from butane.errors import ButaneError, ExpressionSyntaxError

logger = logging.getLogger(__name__)

__all__ = [
    "EXPRESSION_GRAMMAR",
    "ExpressionBuilder",
    "parse_expression",
    "unquote",
]


# ═══════════════════════════════════════════════════════════════════════════════
# GRAMMAR
# ═══════════════════════════════════════════════════════════════════════════════

EXPRESSION_GRAMMAR = Grammar(r'''
    expression          = _ conditional _

    # ─────────────────────────────────────────────────────────────
    # Operators
    # ─────────────────────────────────────────────────────────────

    conditional         = logical_or conditional_tail?
    conditional_tail    = _ "?" _ conditional _ ":" _ conditional
    logical_or          = logical_and (_ or_op _ logical_and)*
    logical_and         = equality (_ and_op _ equality)*
    equality            = relational (_ equality_op _ relational)*
    relational          = additive (_ relational_op _ additive)*
    additive            = multiplicative (_ additive_op _ multiplicative)*
    multiplicative      = unary (_ multiplicative_op _ unary)*
    unary               = prefixed / postfix
    prefixed            = unary_op _ unary

    or_op               = "||"
    and_op              = "&&"
    equality_op         = "===" / "!==" / "==" / "!="
    relational_op       = "<=" / ">=" / "<" / ">"
    additive_op         = "+" / "-"
    multiplicative_op   = "*" / "/" / "%"
    unary_op            = "!" / "-" / "+"

    # ─────────────────────────────────────────────────────────────
    # Member access and calls
    # ─────────────────────────────────────────────────────────────

    postfix             = primary accessor*
    accessor            = call_suffix / member_suffix / index_suffix
    call_suffix         = _ "(" _ arguments? _ ")"
    member_suffix       = _ "." _ identifier
    index_suffix        = _ "[" expression "]"
    arguments           = expression ("," expression)*

    # ─────────────────────────────────────────────────────────────
    # Primaries
    # ─────────────────────────────────────────────────────────────

    primary             = group / array / literal / identifier
    group               = "(" expression ")"
    array               = "[" _ arguments? _ "]"
    literal             = string / number / boolean / null

    string              = ~r'"(?:[^"\\]|\\.)*"' / ~r"'(?:[^'\\]|\\.)*'"
    number              = ~r"(?:\d+\.\d+|\d+|\.\d+)(?:[eE][+-]?\d+)?"
    boolean             = ~r"(?:true|false)(?![\w$])"
    null                = ~r"null(?![\w$])"
    identifier          = ~r"[A-Za-z_$][\w$]*"

    _                   = ~r"\s*"
''')


_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "v": "\v", "0": "\0"}
_ESCAPE_RE = re.compile(
    r"\\(?:u\{(?P<code>[0-9A-Fa-f]{1,6})\}"
    r"|u(?P<u4>[0-9A-Fa-f]{4})"
    r"|x(?P<x2>[0-9A-Fa-f]{2})"
    r"|(?P<char>.))",
    re.DOTALL,
)


def _unescape(match: re.Match) -> str:
    hex_digits = match.group("code") or match.group("u4") or match.group("x2")
    if hex_digits is not None:
        code = int(hex_digits, 16)
        # past U+10FFFF: keep the text, like any unknown escape
        return chr(code) if code <= 0x10FFFF else match.group(0)[1:]
    char = match.group("char")
    return _ESCAPES.get(char, char)


def unquote(text: str) -> str:
    """Strip the quotes from a string literal and resolve its escapes.

    Handles the single-character escapes, ``\\xXX``, ``\\uXXXX`` and
    ``\\u{X...}``.  A ``\\uXXXX`` surrogate pair decodes to one character.
    """
    value = _ESCAPE_RE.sub(_unescape, text[1:-1])
    if any("\ud800" <= c <= "\udfff" for c in value):
        value = value.encode("utf-16-le", "surrogatepass").decode("utf-16-le", "surrogatepass")
    return value


# ═══════════════════════════════════════════════════════════════════════════════
# PARSE TREE → AST
# ═══════════════════════════════════════════════════════════════════════════════

class ExpressionBuilder(NodeVisitor):
    """Transforms a Parsimonious parse tree into expression nodes."""

    grammar = EXPRESSION_GRAMMAR
    unwrapped_exceptions = (ButaneError,)

    def generic_visit(self, node, visited_children):
        return visited_children

    def visit_expression(self, node, visited_children):
        _, expr, _ = visited_children
        return expr

    # ─────────────────────────────────────────────────────────────
    # Operators
    # ─────────────────────────────────────────────────────────────

    def visit_conditional(self, node, visited_children):
        test, tail = visited_children
        if not tail:
            return test
        consequent, alternate = tail[0]
        return ConditionalExpression(test, consequent, alternate)

    def visit_conditional_tail(self, node, visited_children):
        _, _, _, consequent, _, _, _, alternate = visited_children
        return consequent, alternate

    def _fold(self, visited_children, factory):
        result, rest = visited_children
        for _, operator, _, operand in rest:
            result = factory(operator, result, operand)
        return result

    def visit_logical_or(self, node, visited_children):
        return self._fold(visited_children, LogicalExpression)

    def visit_logical_and(self, node, visited_children):
        return self._fold(visited_children, LogicalExpression)

    def visit_equality(self, node, visited_children):
        return self._fold(visited_children, BinaryExpression)

    def visit_relational(self, node, visited_children):
        return self._fold(visited_children, BinaryExpression)

    def visit_additive(self, node, visited_children):
        return self._fold(visited_children, BinaryExpression)

    def visit_multiplicative(self, node, visited_children):
        return self._fold(visited_children, BinaryExpression)

    def visit_unary(self, node, visited_children):
        return visited_children[0]

    def visit_prefixed(self, node, visited_children):
        operator, _, argument = visited_children
        return UnaryExpression(operator, argument)

    def _operator(self, node, visited_children):
        return node.text

    visit_or_op = _operator
    visit_and_op = _operator
    visit_equality_op = _operator
    visit_relational_op = _operator
    visit_additive_op = _operator
    visit_multiplicative_op = _operator
    visit_unary_op = _operator

    # ─────────────────────────────────────────────────────────────
    # Member access and calls
    # ─────────────────────────────────────────────────────────────

    def visit_postfix(self, node, visited_children):
        result, accessors = visited_children
        for tag, payload in accessors:
            if tag == "call":
                result = CallExpression(result, tuple(payload))
            elif tag == "member":
                result = MemberExpression(result, payload, computed=False)
            else:
                result = MemberExpression(result, payload, computed=True)
        return result

    def visit_accessor(self, node, visited_children):
        return visited_children[0]

    def visit_call_suffix(self, node, visited_children):
        _, _, _, arguments, _, _ = visited_children
        return ("call", arguments[0] if arguments else [])

    def visit_member_suffix(self, node, visited_children):
        _, _, _, name = visited_children
        return ("member", name)

    def visit_index_suffix(self, node, visited_children):
        _, _, expr, _ = visited_children
        return ("index", expr)

    def visit_arguments(self, node, visited_children) -> List[Node]:
        first, rest = visited_children
        return [first] + [expr for _, expr in rest]

    # ─────────────────────────────────────────────────────────────
    # Primaries
    # ─────────────────────────────────────────────────────────────

    def visit_primary(self, node, visited_children):
        return visited_children[0]

    def visit_group(self, node, visited_children):
        _, expr, _ = visited_children
        return expr

    def visit_array(self, node, visited_children):
        _, _, elements, _, _ = visited_children
        return ArrayExpression(tuple(elements[0]) if elements else ())

    def visit_literal(self, node, visited_children):
        return visited_children[0]

    def visit_string(self, node, visited_children):
        return Literal(unquote(node.text))

    def visit_number(self, node, visited_children):
        text = node.text
        if any(c in text for c in ".eE"):
            return Literal(float(text))
        return Literal(int(text))

    def visit_boolean(self, node, visited_children):
        return Literal(node.text == "true")

    def visit_null(self, node, visited_children):
        return Literal(None)

    def visit_identifier(self, node, visited_children):
        return Identifier(node.text)


_BUILDER = ExpressionBuilder()


# ═══════════════════════════════════════════════════════════════════════════════
# ENTRY POINT
# ═══════════════════════════════════════════════════════════════════════════════

@functools.lru_cache(maxsize=4096)
def parse_expression(text: str) -> Node:
    """Parse one rule expression into an AST.

    Raises:
        ExpressionSyntaxError: if ``text`` is not a complete, valid
            expression.  ``position`` points at the failing column.
    """
    if not isinstance(text, str):
        raise TypeError(f"expected expression text, got {type(text).__name__}")
    try:
        tree = EXPRESSION_GRAMMAR.parse(text)
    except GrammarError as exc:
        rule = exc.expr.name if exc.expr is not None else ""
        logger.debug("Grammar rejected %r at %d (rule %r)", text, exc.pos, rule)
        raise ExpressionSyntaxError(text, exc.pos, rule=rule) from None
    return _BUILDER.visit(tree)
