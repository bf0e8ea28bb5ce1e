"""
butane/codegen.py
=================

Expression printer.

Turns an expression tree back into rule source text.  Output is
normalised: single-quoted strings, one space around binary operators,
``", "`` between arguments, and only the parentheses that precedence
requires.  Printing a freshly parsed string therefore round-trips to an
equivalent (not necessarily identical) string.
"""

from __future__ import annotations

from typing import Dict

from butane import ast as A
from butane.visitor import ExpressionVisitor

__all__ = [
    "generate",
    "precedence",
    "quote",
    "CodeGenerator",
]


# ═══════════════════════════════════════════════════════════════════════════════
# PRECEDENCE
# ═══════════════════════════════════════════════════════════════════════════════

CONDITIONAL = 1
UNARY = 8
POSTFIX = 9
PRIMARY = 10

BINARY_PRECEDENCE: Dict[str, int] = {
    "||": 2,
    "&&": 3,
    "===": 4, "!==": 4, "==": 4, "!=": 4,
    "<": 5, "<=": 5, ">": 5, ">=": 5,
    "+": 6, "-": 6,
    "*": 7, "/": 7, "%": 7,
}


def precedence(node: A.Node) -> int:
    """Binding strength of ``node``'s outermost operator (higher binds tighter)."""
    if isinstance(node, A.ConditionalExpression):
        return CONDITIONAL
    if isinstance(node, (A.BinaryExpression, A.LogicalExpression)):
        return BINARY_PRECEDENCE[node.operator]
    if isinstance(node, A.UnaryExpression):
        return UNARY
    if isinstance(node, (A.MemberExpression, A.CallExpression)):
        return POSTFIX
    return PRIMARY


_STRING_ESCAPES = {
    "\\": "\\\\",
    "'": "\\'",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\b": "\\b",
    "\f": "\\f",
    "\v": "\\v",
}


def _escape(c: str) -> str:
    if c in _STRING_ESCAPES:
        return _STRING_ESCAPES[c]
    # other control characters, NUL included
    if c < " " or c == "\x7f":
        return f"\\x{ord(c):02x}"
    return c


def quote(value: str) -> str:
    """Render ``value`` as a single-quoted string literal that parses back to ``value``."""
    return "'" + "".join(_escape(c) for c in value) + "'"


# ═══════════════════════════════════════════════════════════════════════════════
# GENERATOR
# ═══════════════════════════════════════════════════════════════════════════════

class CodeGenerator(ExpressionVisitor):
    """Visitor returning the source text of each node."""

    def generic_visit(self, node: A.Node) -> str:
        raise TypeError(f"Cannot generate code for {type(node).__name__}")

    def _operand(self, node: A.Node, minimum: int) -> str:
        text = self.visit(node)
        if precedence(node) < minimum:
            return f"({text})"
        return text

    def visit_identifier(self, node: A.Identifier) -> str:
        return node.name

    def visit_literal(self, node: A.Literal) -> str:
        value = node.value
        if value is None:
            return "null"
        if value is True:
            return "true"
        if value is False:
            return "false"
        if isinstance(value, str):
            return quote(value)
        if isinstance(value, float) and value.is_integer() and abs(value) < 1e16:
            return str(int(value))
        return repr(value)

    def visit_array_expression(self, node: A.ArrayExpression) -> str:
        return "[" + ", ".join(self.visit(e) for e in node.elements) + "]"

    def visit_member_expression(self, node: A.MemberExpression) -> str:
        obj = self._operand(node.object, POSTFIX)
        if isinstance(node.object, A.Literal) and isinstance(node.object.value, (int, float)):
            obj = f"({obj})"
        if node.computed:
            return f"{obj}[{self.visit(node.property)}]"
        return f"{obj}.{node.property.name}"

    def visit_call_expression(self, node: A.CallExpression) -> str:
        callee = self._operand(node.callee, POSTFIX)
        return callee + "(" + ", ".join(self.visit(a) for a in node.arguments) + ")"

    def visit_unary_expression(self, node: A.UnaryExpression) -> str:
        argument = self._operand(node.argument, UNARY)
        # "- -x" must not collapse into "--x"
        if node.operator in "+-" and argument.startswith(node.operator):
            argument = f"({argument})"
        return node.operator + argument

    def _binary(self, node) -> str:
        level = BINARY_PRECEDENCE[node.operator]
        left = self._operand(node.left, level)
        right = self._operand(node.right, level + 1)
        return f"{left} {node.operator} {right}"

    visit_binary_expression = _binary
    visit_logical_expression = _binary

    def visit_conditional_expression(self, node: A.ConditionalExpression) -> str:
        test = self._operand(node.test, CONDITIONAL + 1)
        consequent = self._operand(node.consequent, CONDITIONAL)
        alternate = self._operand(node.alternate, CONDITIONAL)
        return f"{test} ? {consequent} : {alternate}"


_GENERATOR = CodeGenerator()


def generate(node: A.Node) -> str:
    """Print an expression tree as rule source text."""
    return _GENERATOR.visit(node)
