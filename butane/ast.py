"""butane/ast.py – Expression AST for Firebase rule expressions.

Rule strings are small JavaScript-like expressions: identifiers, literals,
member access (``a.b`` / ``a[b]``), calls, and the usual unary, binary,
logical and conditional operators.  This module defines the tree those
strings parse into and that every compilation pass rewrites.

Design notes
------------
* Every node is a frozen dataclass; passes build new trees rather than
  mutating shared ones, so parsed trees can be cached and reused.
* Child sequences are tuples so nodes stay hashable.
* The property of a *static* member access (``a.b``) is stored as an
  :class:`Identifier` but is **not** a child expression: it names a key,
  it does not reference a variable.  :meth:`Node.children` and
  :meth:`Node.map_children` skip it, which keeps renaming and parameter
  substitution away from property names.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Iterator, Optional, Tuple, Union

import sexpdata

__all__ = [
    "Node",
    "Expression",
    "Identifier",
    "Literal",
    "ArrayExpression",
    "MemberExpression",
    "CallExpression",
    "UnaryExpression",
    "BinaryExpression",
    "LogicalExpression",
    "ConditionalExpression",
    "LiteralValue",
    "root_identifier",
    "method_name",
    "chain_calls",
    "chain_has_call",
    "to_sexp",
    "dump_sexp",
]

LiteralValue = Union[str, int, float, bool, None]


# ═══════════════════════════════════════════════════════════════════════════════
# BASE
# ═══════════════════════════════════════════════════════════════════════════════

class Node:
    """Base class for all expression nodes."""

    __slots__ = ()

    kind: ClassVar[str] = "node"

    def accept(self, visitor: Any) -> Any:
        method = getattr(visitor, f"visit_{self.kind}", None)
        if method is None:
            return visitor.generic_visit(self)
        return method(self)

    def children(self) -> Tuple["Node", ...]:
        return ()

    def map_children(self, fn: Callable[["Node"], "Node"]) -> "Node":
        """Return a copy with ``fn`` applied to every child expression.

        Returns ``self`` when no child changed.
        """
        return self


# ═══════════════════════════════════════════════════════════════════════════════
# LEAVES
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True, slots=True)
class Identifier(Node):
    """A bare name: ``next``, ``auth``, ``$chat``, a function parameter."""

    kind: ClassVar[str] = "identifier"

    name: str


@dataclass(frozen=True, slots=True)
class Literal(Node):
    """A string, number, boolean or ``null`` constant."""

    kind: ClassVar[str] = "literal"

    value: LiteralValue


# ═══════════════════════════════════════════════════════════════════════════════
# COMPOUND
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True, slots=True)
class ArrayExpression(Node):
    kind: ClassVar[str] = "array_expression"

    elements: Tuple[Node, ...] = ()

    def children(self) -> Tuple[Node, ...]:
        return self.elements

    def map_children(self, fn: Callable[[Node], Node]) -> Node:
        elements = tuple(fn(e) for e in self.elements)
        if _same(elements, self.elements):
            return self
        return ArrayExpression(elements)


@dataclass(frozen=True, slots=True)
class MemberExpression(Node):
    """``object.property`` (static) or ``object[property]`` (computed)."""

    kind: ClassVar[str] = "member_expression"

    object: Node
    property: Node
    computed: bool = False

    def children(self) -> Tuple[Node, ...]:
        if self.computed:
            return (self.object, self.property)
        return (self.object,)

    def map_children(self, fn: Callable[[Node], Node]) -> Node:
        obj = fn(self.object)
        prop = fn(self.property) if self.computed else self.property
        if obj is self.object and prop is self.property:
            return self
        return MemberExpression(obj, prop, self.computed)


@dataclass(frozen=True, slots=True)
class CallExpression(Node):
    kind: ClassVar[str] = "call_expression"

    callee: Node
    arguments: Tuple[Node, ...] = ()

    def children(self) -> Tuple[Node, ...]:
        return (self.callee,) + self.arguments

    def map_children(self, fn: Callable[[Node], Node]) -> Node:
        callee = fn(self.callee)
        arguments = tuple(fn(a) for a in self.arguments)
        if callee is self.callee and _same(arguments, self.arguments):
            return self
        return CallExpression(callee, arguments)


@dataclass(frozen=True, slots=True)
class UnaryExpression(Node):
    """Prefix ``!``, ``-`` or ``+``."""

    kind: ClassVar[str] = "unary_expression"

    operator: str
    argument: Node

    def children(self) -> Tuple[Node, ...]:
        return (self.argument,)

    def map_children(self, fn: Callable[[Node], Node]) -> Node:
        argument = fn(self.argument)
        if argument is self.argument:
            return self
        return UnaryExpression(self.operator, argument)


@dataclass(frozen=True, slots=True)
class BinaryExpression(Node):
    """Comparison and arithmetic operators."""

    kind: ClassVar[str] = "binary_expression"

    operator: str
    left: Node
    right: Node

    def children(self) -> Tuple[Node, ...]:
        return (self.left, self.right)

    def map_children(self, fn: Callable[[Node], Node]) -> Node:
        left, right = fn(self.left), fn(self.right)
        if left is self.left and right is self.right:
            return self
        return BinaryExpression(self.operator, left, right)


@dataclass(frozen=True, slots=True)
class LogicalExpression(Node):
    """``&&`` and ``||``."""

    kind: ClassVar[str] = "logical_expression"

    operator: str
    left: Node
    right: Node

    def children(self) -> Tuple[Node, ...]:
        return (self.left, self.right)

    def map_children(self, fn: Callable[[Node], Node]) -> Node:
        left, right = fn(self.left), fn(self.right)
        if left is self.left and right is self.right:
            return self
        return LogicalExpression(self.operator, left, right)


@dataclass(frozen=True, slots=True)
class ConditionalExpression(Node):
    kind: ClassVar[str] = "conditional_expression"

    test: Node
    consequent: Node
    alternate: Node

    def children(self) -> Tuple[Node, ...]:
        return (self.test, self.consequent, self.alternate)

    def map_children(self, fn: Callable[[Node], Node]) -> Node:
        test, consequent, alternate = fn(self.test), fn(self.consequent), fn(self.alternate)
        if test is self.test and consequent is self.consequent and alternate is self.alternate:
            return self
        return ConditionalExpression(test, consequent, alternate)


Expression = Union[
    Identifier,
    Literal,
    ArrayExpression,
    MemberExpression,
    CallExpression,
    UnaryExpression,
    BinaryExpression,
    LogicalExpression,
    ConditionalExpression,
]


def _same(new: Tuple[Node, ...], old: Tuple[Node, ...]) -> bool:
    return all(a is b for a, b in zip(new, old))


# ═══════════════════════════════════════════════════════════════════════════════
# CHAIN HELPERS
# ═══════════════════════════════════════════════════════════════════════════════
#
# A "chain" is a run of member accesses and calls hanging off one root,
# e.g. ``root.users[$user].child('x').val()``.  Coercion and child-syntax
# desugaring both reason about chains by their root identifier and by the
# methods called along the way.

def root_identifier(node: Node) -> Optional[Identifier]:
    """Follow objects and callees down to the chain's root identifier."""
    while True:
        if isinstance(node, MemberExpression):
            node = node.object
        elif isinstance(node, CallExpression):
            node = node.callee
        elif isinstance(node, Identifier):
            return node
        else:
            return None


def method_name(node: CallExpression) -> Optional[str]:
    """``x.name(...)`` -> ``"name"``; ``None`` for bare or computed calls."""
    callee = node.callee
    if isinstance(callee, MemberExpression) and not callee.computed:
        return callee.property.name  # type: ignore[attr-defined]
    return None


def chain_calls(node: Node) -> Iterator[CallExpression]:
    """Yield every call along a chain, outermost first."""
    while isinstance(node, (MemberExpression, CallExpression)):
        if isinstance(node, CallExpression):
            yield node
            node = node.callee
        else:
            node = node.object


def chain_has_call(node: Node, names) -> bool:
    """True when the chain calls a method named in ``names`` anywhere."""
    if isinstance(names, str):
        names = (names,)
    return any(method_name(call) in names for call in chain_calls(node))


# ═══════════════════════════════════════════════════════════════════════════════
# S-EXPRESSION DUMP
# ═══════════════════════════════════════════════════════════════════════════════

_S = sexpdata.Symbol


def to_sexp(node: Node) -> Any:
    """Convert a tree to nested lists of :class:`sexpdata.Symbol` and atoms."""
    if isinstance(node, Identifier):
        return _S(node.name)
    if isinstance(node, Literal):
        value = node.value
        if value is None:
            return _S("null")
        if isinstance(value, bool):
            return _S("true" if value else "false")
        return value
    if isinstance(node, ArrayExpression):
        return [_S("array")] + [to_sexp(e) for e in node.elements]
    if isinstance(node, MemberExpression):
        if node.computed:
            return [_S("index"), to_sexp(node.object), to_sexp(node.property)]
        return [_S("member"), to_sexp(node.object), _S(node.property.name)]  # type: ignore[attr-defined]
    if isinstance(node, CallExpression):
        return [_S("call"), to_sexp(node.callee)] + [to_sexp(a) for a in node.arguments]
    if isinstance(node, UnaryExpression):
        return [_S("unary"), node.operator, to_sexp(node.argument)]
    if isinstance(node, (BinaryExpression, LogicalExpression)):
        tag = "logical" if isinstance(node, LogicalExpression) else "binary"
        return [_S(tag), node.operator, to_sexp(node.left), to_sexp(node.right)]
    if isinstance(node, ConditionalExpression):
        return [
            _S("if"),
            to_sexp(node.test),
            to_sexp(node.consequent),
            to_sexp(node.alternate),
        ]
    raise TypeError(f"Unknown node type: {type(node).__name__}")


def dump_sexp(node: Node) -> str:
    """Render a tree as an S-expression string, e.g. ``(member next foo)``."""
    return sexpdata.dumps(to_sexp(node))
