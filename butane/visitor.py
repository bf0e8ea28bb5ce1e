"""
butane/visitor.py
=================

Visitor pattern infrastructure for expression trees.

Provides:
- ``ExpressionVisitor`` — abstract base with default implementations
- ``DepthFirstVisitor`` — generic traversal that visits all children
- ``ExpressionTransformer`` — visitor that rebuilds the tree (for rewrites)
"""

from __future__ import annotations

import abc
from typing import Any

from butane import ast as A

__all__ = [
    "ExpressionVisitor",
    "DepthFirstVisitor",
    "ExpressionTransformer",
]


class ExpressionVisitor(abc.ABC):
    """Abstract base class for expression visitors.

    Each ``visit_X`` method corresponds to a node type.  The default
    implementations call ``generic_visit``, which does nothing.  Subclasses
    override the methods they care about.
    """

    def visit(self, node: A.Node) -> Any:
        """Dispatch to the appropriate visit method."""
        return node.accept(self)

    def generic_visit(self, node: A.Node) -> Any:
        return None

    def visit_identifier(self, node: A.Identifier) -> Any:
        return self.generic_visit(node)

    def visit_literal(self, node: A.Literal) -> Any:
        return self.generic_visit(node)

    def visit_array_expression(self, node: A.ArrayExpression) -> Any:
        return self.generic_visit(node)

    def visit_member_expression(self, node: A.MemberExpression) -> Any:
        return self.generic_visit(node)

    def visit_call_expression(self, node: A.CallExpression) -> Any:
        return self.generic_visit(node)

    def visit_unary_expression(self, node: A.UnaryExpression) -> Any:
        return self.generic_visit(node)

    def visit_binary_expression(self, node: A.BinaryExpression) -> Any:
        return self.generic_visit(node)

    def visit_logical_expression(self, node: A.LogicalExpression) -> Any:
        return self.generic_visit(node)

    def visit_conditional_expression(self, node: A.ConditionalExpression) -> Any:
        return self.generic_visit(node)


class DepthFirstVisitor(ExpressionVisitor):
    """Visitor that traverses all children in depth-first order."""

    def generic_visit(self, node: A.Node) -> Any:
        for child in node.children():
            self.visit(child)
        return None


class ExpressionTransformer(ExpressionVisitor):
    """Visitor that rebuilds the tree, allowing transformations.

    Each ``visit_X`` returns a new node (or the original if unchanged).
    The default rebuilds the node from its visited children, so a subclass
    only overrides the node types it rewrites.
    """

    def generic_visit(self, node: A.Node) -> A.Node:
        return node.map_children(self.visit)
