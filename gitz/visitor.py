#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
gitz/visitor.py
===============

Visitor infrastructure for IR traversal.

Provides:
- ``IRVisitor`` — dispatches ``visit(node)`` to ``visit_<snake_case_class>``
- ``TransformingVisitor`` — rewrites the tree in place; a visit may return
  a replacement node, or a list of statements to splice into a block
"""

from __future__ import annotations

import abc
import re
from dataclasses import fields
from typing import Any, List

from gitz.core import IntrinsicFunction, IRNode, UserFunction

__all__ = [
    "IRVisitor",
    "TransformingVisitor",
    "method_name_for",
]

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def method_name_for(node: IRNode) -> str:
    """``ForRangeStatement`` → ``visit_for_range_statement``."""
    return "visit_" + _CAMEL_BOUNDARY.sub("_", type(node).__name__).lower()


class IRVisitor(abc.ABC):
    """Abstract base class for IR visitors.

    Subclasses define ``visit_X`` methods for the node classes they care
    about; every other node goes to ``generic_visit``.
    """

    def visit(self, node: IRNode) -> Any:
        """Dispatch to the appropriate visit method."""
        method = getattr(self, method_name_for(node), self.generic_visit)
        return method(node)

    def generic_visit(self, node: IRNode) -> Any:
        """Called when no specific visitor method exists."""
        return None


class TransformingVisitor(IRVisitor):
    """Visitor that rewrites the IR in place.

    ``generic_visit`` visits every child field, stores the (possibly
    replaced) result back on the node and returns the node.  Statement
    lists are rebuilt with :meth:`visit_block`, which splices list results
    and drops ``None``.  References to functions (call targets) are not
    descended into; a function body is reached through its declaration.
    """

    def generic_visit(self, node: IRNode) -> Any:
        for f in fields(node):
            value = getattr(node, f.name)
            if isinstance(value, (UserFunction, IntrinsicFunction)):
                continue
            if isinstance(value, list):
                setattr(node, f.name, self.visit_block(value))
            elif isinstance(value, IRNode):
                setattr(node, f.name, self.visit(value))
        return node

    def visit_block(self, statements: List[IRNode]) -> List[IRNode]:
        result: List[IRNode] = []
        for statement in statements:
            rewritten = self.visit(statement)
            if isinstance(rewritten, list):
                result.extend(rewritten)
            elif rewritten is not None:
                result.append(rewritten)
        return result
