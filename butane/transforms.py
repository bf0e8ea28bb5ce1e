"""butane/transforms.py – Snapshot rewriting passes.

Three passes run after inlining, in this order:

``coerce_val``
    A snapshot used as a value gets ``.val()``: ``next.name`` becomes
    ``next.name.val()``.  Chains that end in a call, or already call
    ``val()``, are left alone.

``replace_child_syntax``
    Member access on a snapshot becomes ``child()``: ``next.a[b]`` becomes
    ``next.child('a').child(b)``.  Method names are kept, chains rooted at
    an ignored identifier (``auth``) are left alone, and access after
    ``val()`` is ordinary property access.

``replace_firebase_identifiers``
    ``next`` / ``prev`` / ``root`` become ``newData`` / ``data`` / ``root``.

Coercion must see the sugared form (it decides by chain shape), so the
order is fixed.  Index expressions and call arguments inside a chain are
separate expressions and are rewritten on their own.
"""

from __future__ import annotations

import logging
from typing import Optional

from butane import ast as A
from butane.codegen import generate
from butane.config import DEFAULT_CONFIG, CompilerConfig
from butane.parser import parse_expression
from butane.visitor import ExpressionTransformer

logger = logging.getLogger(__name__)

__all__ = [
    "ValueCoercer",
    "ChildSyntaxDesugarer",
    "SnapshotRenamer",
    "coerce_values",
    "desugar_child_syntax",
    "rename_snapshots",
    "coerce_val",
    "replace_child_syntax",
    "replace_firebase_identifiers",
]

VAL = "val"
CHILD = "child"


class _ChainTransformer(ExpressionTransformer):
    """Base for passes that treat member/call chains as a unit."""

    def visit_member_expression(self, node: A.MemberExpression) -> A.Node:
        return self.visit_chain(node)

    def visit_call_expression(self, node: A.CallExpression) -> A.Node:
        return self.visit_chain(node)

    def visit_chain(self, node: A.Node) -> A.Node:
        raise NotImplementedError

    def visit_inside(self, node: A.Node) -> A.Node:
        """Rebuild a chain, visiting only its indices and arguments.

        The root and the links of the chain are kept as they are.
        """
        if isinstance(node, A.MemberExpression):
            obj = self.visit_inside(node.object)
            prop = self.visit(node.property) if node.computed else node.property
            if obj is node.object and prop is node.property:
                return node
            return A.MemberExpression(obj, prop, node.computed)
        if isinstance(node, A.CallExpression):
            callee = self.visit_inside(node.callee)
            arguments = tuple(self.visit(a) for a in node.arguments)
            if callee is node.callee and all(a is b for a, b in zip(arguments, node.arguments)):
                return node
            return A.CallExpression(callee, arguments)
        if isinstance(node, A.Identifier):
            return node
        return self.visit(node)


# ═══════════════════════════════════════════════════════════════════════════════
# VALUE COERCION
# ═══════════════════════════════════════════════════════════════════════════════

class ValueCoercer(_ChainTransformer):
    """Append ``.val()`` where a snapshot is used as a value."""

    def __init__(self, config: Optional[CompilerConfig] = None) -> None:
        self.snapshots = (config or DEFAULT_CONFIG).snapshots

    def _wrap(self, node: A.Node) -> A.Node:
        return A.CallExpression(A.MemberExpression(node, A.Identifier(VAL)))

    def visit_identifier(self, node: A.Identifier) -> A.Node:
        if node.name in self.snapshots:
            return self._wrap(node)
        return node

    def visit_chain(self, node: A.Node) -> A.Node:
        inner = self.visit_inside(node)
        if isinstance(node, A.CallExpression):
            return inner
        root = A.root_identifier(inner)
        if root is None or root.name not in self.snapshots:
            return inner
        if A.chain_has_call(inner, VAL):
            return inner
        return self._wrap(inner)


# ═══════════════════════════════════════════════════════════════════════════════
# CHILD SYNTAX
# ═══════════════════════════════════════════════════════════════════════════════

class ChildSyntaxDesugarer(_ChainTransformer):
    """Rewrite ``a.b`` / ``a[b]`` on snapshots into ``a.child(...)``."""

    def __init__(self, config: Optional[CompilerConfig] = None) -> None:
        config = config or DEFAULT_CONFIG
        self.ignore = config.ignore_identifiers
        self.value_methods = config.value_methods

    def visit_chain(self, node: A.Node) -> A.Node:
        root = A.root_identifier(node)
        if root is None or root.name in self.ignore:
            return self.visit_inside(node)
        return self._rewrite(node)

    def _rewrite(self, node: A.Node) -> A.Node:
        if isinstance(node, A.CallExpression):
            arguments = tuple(self.visit(a) for a in node.arguments)
            callee = node.callee
            if isinstance(callee, A.MemberExpression) and not callee.computed:
                # method call: keep the method, rewrite what it is called on
                obj = self._rewrite(callee.object)
                return A.CallExpression(A.MemberExpression(obj, callee.property), arguments)
            return A.CallExpression(self._rewrite(callee), arguments)
        if isinstance(node, A.MemberExpression):
            obj = self._rewrite(node.object)
            if A.chain_has_call(obj, self.value_methods):
                prop = self.visit(node.property) if node.computed else node.property
                return A.MemberExpression(obj, prop, node.computed)
            if node.computed:
                key = self.visit(node.property)
            else:
                key = A.Literal(node.property.name)
            return A.CallExpression(A.MemberExpression(obj, A.Identifier(CHILD)), (key,))
        if isinstance(node, A.Identifier):
            return node
        return self.visit(node)


# ═══════════════════════════════════════════════════════════════════════════════
# IDENTIFIER RENAMING
# ═══════════════════════════════════════════════════════════════════════════════

class SnapshotRenamer(ExpressionTransformer):
    """Rename shorthand snapshot identifiers to their Firebase names."""

    def __init__(self, config: Optional[CompilerConfig] = None) -> None:
        self.names = (config or DEFAULT_CONFIG).snapshot_identifiers

    def visit_identifier(self, node: A.Identifier) -> A.Node:
        name = self.names.get(node.name)
        if name is None or name == node.name:
            return node
        return A.Identifier(name)


# ═══════════════════════════════════════════════════════════════════════════════
# ENTRY POINTS
# ═══════════════════════════════════════════════════════════════════════════════

def _run(transformer: ExpressionTransformer, node: A.Node) -> A.Node:
    result = transformer.visit(node)
    if result is not node and logger.isEnabledFor(logging.DEBUG):
        logger.debug("%s: %s -> %s", type(transformer).__name__, generate(node), generate(result))
    return result


def coerce_values(node: A.Node, config: Optional[CompilerConfig] = None) -> A.Node:
    return _run(ValueCoercer(config), node)


def desugar_child_syntax(node: A.Node, config: Optional[CompilerConfig] = None) -> A.Node:
    return _run(ChildSyntaxDesugarer(config), node)


def rename_snapshots(node: A.Node, config: Optional[CompilerConfig] = None) -> A.Node:
    return _run(SnapshotRenamer(config), node)


def coerce_val(text: str, config: Optional[CompilerConfig] = None) -> str:
    """``next.foo === 1`` -> ``next.foo.val() === 1``"""
    return generate(coerce_values(parse_expression(text), config))


def replace_child_syntax(text: str, config: Optional[CompilerConfig] = None) -> str:
    """``root.users[$user].name`` -> ``root.child('users').child($user).child('name')``"""
    return generate(desugar_child_syntax(parse_expression(text), config))


def replace_firebase_identifiers(text: str, config: Optional[CompilerConfig] = None) -> str:
    """``next.val() === prev.val()`` -> ``newData.val() === data.val()``"""
    return generate(rename_snapshots(parse_expression(text), config))
