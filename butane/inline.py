"""butane/inline.py – Function inlining.

Calls to declared (``.functions``) and registered functions are replaced
by their bodies.  For a declared function ``f(a, b) = body``:

1. the call's arguments are inlined first (they belong to the caller);
2. the body is parsed and inlined (it may call other functions);
3. each parameter identifier in the body is replaced by the matching
   argument tree.

Substitution works on the tree, so only identifiers are replaced: a
parameter named ``user`` does not touch ``root.user`` or ``'user'``.
Missing arguments leave their parameter names in place.

Calls that name a snapshot method (``exists()``, ``val()``, ...) or a
method on an object (``x.hasChild(y)``) are left alone.  Any other bare
call is an error.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Set

from butane import ast as A
from butane.builtins import FunctionRegistry, default_registry
from butane.codegen import generate
from butane.config import DEFAULT_CONFIG, CompilerConfig
from butane.errors import (
    ButaneError,
    CircularDefinitionError,
    FunctionArgumentError,
    UndefinedFunctionError,
)
from butane.options import FunctionDef, Options
from butane.parser import parse_expression
from butane.visitor import DepthFirstVisitor, ExpressionTransformer

logger = logging.getLogger(__name__)

__all__ = [
    "FunctionInliner",
    "ParameterSubstituter",
    "literal_value",
    "inline_functions",
    "replace_functions",
]


# ═══════════════════════════════════════════════════════════════════════════════
# HELPERS
# ═══════════════════════════════════════════════════════════════════════════════

class ParameterSubstituter(ExpressionTransformer):
    """Replace parameter identifiers with argument trees."""

    def __init__(self, bindings: Dict[str, A.Node]) -> None:
        self.bindings = bindings

    def visit_identifier(self, node: A.Identifier) -> A.Node:
        return self.bindings.get(node.name, node)


class _NameCollector(DepthFirstVisitor):
    def __init__(self) -> None:
        self.names: Set[str] = set()

    def visit_identifier(self, node: A.Identifier) -> None:
        self.names.add(node.name)


def literal_value(node: A.Node, function: str = "") -> Any:
    """Evaluate a literal argument tree to its Python value.

    Arrays become lists; a signed number literal becomes a number.

    Raises:
        FunctionArgumentError: for anything that is not a literal.
    """
    if isinstance(node, A.Literal):
        return node.value
    if isinstance(node, A.ArrayExpression):
        return [literal_value(e, function) for e in node.elements]
    if (isinstance(node, A.UnaryExpression) and node.operator in "+-"
            and isinstance(node.argument, A.Literal)
            and isinstance(node.argument.value, (int, float))
            and not isinstance(node.argument.value, bool)):
        value = node.argument.value
        return -value if node.operator == "-" else value
    raise FunctionArgumentError(function, f"{generate(node)} is not a literal")


# ═══════════════════════════════════════════════════════════════════════════════
# INLINER
# ═══════════════════════════════════════════════════════════════════════════════

class FunctionInliner(ExpressionTransformer):
    """Rewrites calls to declared and registered functions into their bodies."""

    def __init__(
        self,
        functions: Dict[str, FunctionDef],
        registry: Optional[FunctionRegistry] = None,
        config: Optional[CompilerConfig] = None,
    ) -> None:
        self.functions = functions
        self.registry = registry if registry is not None else default_registry()
        self.config = config or DEFAULT_CONFIG
        self._stack: List[str] = []

    def visit_call_expression(self, node: A.CallExpression) -> A.Node:
        callee = node.callee
        if not isinstance(callee, A.Identifier):
            return self.generic_visit(node)
        name = callee.name
        if name in self.functions:
            return self._inline_declared(self.functions[name], node)
        if name in self.registry:
            return self._inline_registered(name, node)
        if name in self.config.builtin_methods:
            return self.generic_visit(node)
        raise UndefinedFunctionError(name)

    def _enter(self, name: str) -> None:
        if name in self._stack:
            raise CircularDefinitionError(self._stack[self._stack.index(name):] + [name])
        if len(self._stack) >= self.config.max_inline_depth:
            raise CircularDefinitionError(self._stack + [name]).with_hint(
                f"inlining exceeded max_inline_depth={self.config.max_inline_depth}")
        self._stack.append(name)

    def _inline_declared(self, fn: FunctionDef, node: A.CallExpression) -> A.Node:
        arguments = [self.visit(arg) for arg in node.arguments]
        if len(arguments) > len(fn.args):
            logger.debug("%s() takes %d argument(s), got %d; extras ignored",
                         fn.name, len(fn.args), len(arguments))
        self._enter(fn.name)
        try:
            body = self.visit(parse_expression(fn.body))
        finally:
            self._stack.pop()
        missing = fn.args[len(arguments):]
        if missing:
            collector = _NameCollector()
            collector.visit(body)
            unresolved = [p for p in missing if p in collector.names]
            if unresolved:
                logger.debug("%s() called without %s; left unresolved",
                             fn.name, ", ".join(unresolved))
        return ParameterSubstituter(dict(zip(fn.args, arguments))).visit(body)

    def _inline_registered(self, name: str, node: A.CallExpression) -> A.Node:
        arguments = [self.visit(arg) for arg in node.arguments]
        values = [literal_value(arg, name) for arg in arguments]
        fn = self.registry.get(name)
        try:
            source = fn(*values)
        except ButaneError:
            raise
        except (TypeError, ValueError) as exc:
            raise FunctionArgumentError(name, str(exc)) from exc
        if not isinstance(source, str):
            raise FunctionArgumentError(
                name, f"returned {type(source).__name__}, expected expression text")
        logger.debug("%s(%s) -> %s", name, ", ".join(map(repr, values)), source)
        self._enter(name)
        try:
            return self.visit(parse_expression(source))
        finally:
            self._stack.pop()


def inline_functions(
    node: A.Node,
    options: Options,
    registry: Optional[FunctionRegistry] = None,
    config: Optional[CompilerConfig] = None,
) -> A.Node:
    """Tree form of :func:`replace_functions`."""
    return FunctionInliner(options.functions, registry, config).visit(node)


def replace_functions(
    text: str,
    options: Options,
    registry: Optional[FunctionRegistry] = None,
    config: Optional[CompilerConfig] = None,
) -> str:
    """Inline every function call in ``text``."""
    return generate(inline_functions(parse_expression(text), options, registry, config))
