# gitz/context.py
"""
Lexical scope chain used by the analyzer.

A :class:`Context` maps names to entities and delegates unresolved
lookups to its parent.  Each block, function body, loop body and catch
clause analyzes inside its own child context, which is dropped once that
construct has been lowered.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from gitz.core import STANDARD_LIBRARY, UserFunction
from gitz.errors import (
    DuplicateDeclarationError,
    SourceSpan,
    UndeclaredIdentifierError,
)

__all__ = ["Context"]

_UNSET = object()


class Context:
    """
    A lexical scope containing name bindings.

    ``in_loop`` is true inside a loop body (and blocks nested in it, but
    not inside functions declared there).  ``current_function`` is the
    innermost enclosing user function, or None at top level.
    """

    def __init__(
        self,
        parent: Optional[Context] = None,
        locals: Optional[Dict[str, Any]] = None,
        in_loop: bool = False,
        current_function: Optional[UserFunction] = None,
    ) -> None:
        self.parent = parent
        self.locals: Dict[str, Any] = dict(locals) if locals else {}
        self.in_loop = in_loop
        self.current_function = current_function

    @classmethod
    def root(cls) -> Context:
        """Fresh root context seeded with the standard library."""
        return cls(locals=dict(STANDARD_LIBRARY))

    def declare(self, name: str, entity: Any, span: Optional[SourceSpan] = None) -> None:
        if name in self.locals:
            raise DuplicateDeclarationError(name, span)
        self.locals[name] = entity

    def is_declared_locally(self, name: str) -> bool:
        return name in self.locals

    def lookup(self, name: str, span: Optional[SourceSpan] = None) -> Any:
        context: Optional[Context] = self
        while context is not None:
            if name in context.locals:
                return context.locals[name]
            context = context.parent
        raise UndeclaredIdentifierError(name, span)

    def child(self, in_loop: Any = _UNSET, current_function: Any = _UNSET) -> Context:
        """New empty scope below this one, inheriting unspecified flags."""
        return Context(
            parent=self,
            in_loop=self.in_loop if in_loop is _UNSET else in_loop,
            current_function=(
                self.current_function if current_function is _UNSET
                else current_function
            ),
        )

    def __repr__(self) -> str:
        depth = 0
        context = self.parent
        while context is not None:
            depth += 1
            context = context.parent
        return (
            f"Context(depth={depth}, names={sorted(self.locals)!r}, "
            f"in_loop={self.in_loop})"
        )
