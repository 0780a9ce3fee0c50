# gitz/optimizer.py
"""
IR optimizer: constant folding, algebraic simplification and dead-code
elimination.

The rewrite is bottom-up: children are optimized first, then the rules
for the node itself are tried.  Statement rewrites may return a list of
statements (possibly empty), which is spliced into the enclosing block.
Running the pass a second time over its own output changes nothing.

    >>> optimize(BinaryExpression("+", NumberLiteral(3), NumberLiteral(4), NUM))
    NumberLiteral(value=7, type=PrimitiveType(tag='num'))
"""

from __future__ import annotations

import logging
import math
import operator
from typing import Any, Callable, Dict

from gitz.core import (
    BooleanLiteral,
    BinaryExpression,
    EmptyOptional,
    IRNode,
    ListLiteral,
    NumberLiteral,
    UnaryExpression,
)
from gitz.visitor import TransformingVisitor

__all__ = ["Optimizer", "optimize"]

logger = logging.getLogger(__name__)

_FOLDABLE: Dict[str, Callable[[Any, Any], Any]] = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "/": operator.truediv,
    "**": operator.pow,
    "<": operator.lt,
    "<=": operator.le,
    "==": operator.eq,
    "!=": operator.ne,
    ">=": operator.ge,
    ">": operator.gt,
}


def optimize(node: IRNode) -> Any:
    """Optimize ``node``; returns a node, or a list for a removed/split statement."""
    return Optimizer().visit(node)


def _is_number(node: Any, value: Any = None) -> bool:
    if not isinstance(node, NumberLiteral):
        return False
    return value is None or node.value == value


def _is_boolean(node: Any, value: bool) -> bool:
    return isinstance(node, BooleanLiteral) and node.value is value


class Optimizer(TransformingVisitor):
    """Bottom-up rewriting of a typed IR tree."""

    # ─────────────────────────────────────────────────────────────
    # Statements
    # ─────────────────────────────────────────────────────────────

    def visit_function_declaration(self, node):
        node.fun.body = self.visit_block(node.fun.body)
        return node

    def visit_assignment(self, node):
        self.generic_visit(node)
        if node.source is node.target:
            logger.debug("removed self-assignment to %s", getattr(node.target, "name", "?"))
            return []
        return node

    def visit_if_statement(self, node):
        self.generic_visit(node)
        if node.alternate == []:
            # A folded-away ``orWhen`` leaves nothing to run.
            node.alternate = None
        if isinstance(node.test, BooleanLiteral):
            if node.test.value:
                return node.consequent
            return node.alternate if node.alternate is not None else []
        return node

    def visit_short_if_statement(self, node):
        self.generic_visit(node)
        if isinstance(node.test, BooleanLiteral):
            return node.consequent if node.test.value else []
        return node

    def visit_while_statement(self, node):
        self.generic_visit(node)
        if _is_boolean(node.test, False):
            return []
        return node

    def visit_repeat_statement(self, node):
        self.generic_visit(node)
        if _is_number(node.count, 0):
            return []
        return node

    def visit_for_range_statement(self, node):
        self.generic_visit(node)
        if _is_number(node.low) and _is_number(node.high) and node.low.value > node.high.value:
            return []
        return node

    def visit_for_statement(self, node):
        self.generic_visit(node)
        if isinstance(node.collection, ListLiteral) and not node.collection.elements:
            return []
        return node

    # ─────────────────────────────────────────────────────────────
    # Expressions
    # ─────────────────────────────────────────────────────────────

    def visit_conditional(self, node):
        self.generic_visit(node)
        if isinstance(node.test, BooleanLiteral):
            return node.consequent if node.test.value else node.alternate
        return node

    def visit_unary_expression(self, node):
        self.generic_visit(node)
        if node.op == "-" and _is_number(node.operand):
            return NumberLiteral(-node.operand.value)
        return node

    def visit_binary_expression(self, node):
        self.generic_visit(node)
        op, left, right = node.op, node.left, node.right

        if op == "??" and isinstance(left, EmptyOptional):
            return right

        if op == "||":
            if _is_boolean(left, False):
                return right
            if _is_boolean(right, False):
                return left
        if op == "&&":
            if _is_boolean(left, True):
                return right
            if _is_boolean(right, True):
                return left

        if _is_number(left) and _is_number(right) and op in _FOLDABLE:
            folded = self._fold(op, left.value, right.value)
            if folded is not None:
                return folded

        if _is_number(left):
            if op == "+" and left.value == 0:
                return right
            if op == "*" and left.value == 1:
                return right
            if op == "*" and left.value == 0:
                return NumberLiteral(0)
            if op == "-" and left.value == 0:
                return UnaryExpression("-", right, right.type)
        if _is_number(right):
            if op == "+" and right.value == 0:
                return left
            if op in ("*", "/") and right.value == 1:
                return left
            if op == "*" and right.value == 0:
                return NumberLiteral(0)
            if op == "**" and right.value == 0:
                return NumberLiteral(1)
        return node

    @staticmethod
    def _fold(op: str, left: Any, right: Any) -> Any:
        try:
            value = _FOLDABLE[op](left, right)
        except ArithmeticError:
            # Leave ``x over 0`` and friends for run time.
            return None
        if isinstance(value, bool):
            return BooleanLiteral(value)
        if isinstance(value, complex):
            return None
        if isinstance(value, float) and not math.isfinite(value):
            return None
        return NumberLiteral(value)
