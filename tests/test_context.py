# tests/test_context.py
"""
Tests for the lexical scope chain.
"""

import pytest

from gitz.context import Context
from gitz.core import NUM, TEXT, IntrinsicFunction, UserFunction, Variable
from gitz.errors import (
    DuplicateDeclarationError,
    ErrorKind,
    SourceSpan,
    UndeclaredIdentifierError,
)


class TestRootContext:

    def test_root_sees_standard_library(self):
        root = Context.root()
        assert isinstance(root.lookup("sqrt"), IntrinsicFunction)
        assert root.lookup("num") == NUM

    def test_roots_are_independent(self):
        a, b = Context.root(), Context.root()
        a.declare("x", Variable("x", NUM))
        assert a.is_declared_locally("x")
        assert not b.is_declared_locally("x")

    def test_root_flags(self):
        root = Context.root()
        assert root.parent is None
        assert root.in_loop is False
        assert root.current_function is None


class TestDeclareAndLookup:

    def test_lookup_walks_parents(self):
        root = Context.root()
        x = Variable("x", NUM)
        root.declare("x", x)
        assert root.child().child().lookup("x") is x

    def test_inner_declaration_shadows_outer(self):
        root = Context.root()
        outer, inner = Variable("x", NUM), Variable("x", TEXT)
        root.declare("x", outer)
        child = root.child()
        child.declare("x", inner)
        assert child.lookup("x") is inner
        assert root.lookup("x") is outer

    def test_duplicate_in_same_scope(self):
        ctx = Context.root()
        ctx.declare("x", Variable("x", NUM))
        with pytest.raises(DuplicateDeclarationError) as exc_info:
            ctx.declare("x", Variable("x", TEXT), SourceSpan(3, 7))
        assert exc_info.value.kind is ErrorKind.DUPLICATE_DECLARATION
        assert str(exc_info.value) == "3:7: Identifier x already declared"

    def test_standard_library_names_cannot_be_redeclared_at_top_level(self):
        with pytest.raises(DuplicateDeclarationError):
            Context.root().declare("sqrt", Variable("sqrt", NUM))

    def test_undeclared(self):
        with pytest.raises(UndeclaredIdentifierError) as exc_info:
            Context.root().child().lookup("nope", SourceSpan(1, 5))
        assert exc_info.value.name == "nope"
        assert exc_info.value.span == SourceSpan(1, 5)

    def test_child_declarations_invisible_to_parent(self):
        root = Context.root()
        root.child().declare("y", Variable("y", NUM))
        with pytest.raises(UndeclaredIdentifierError):
            root.lookup("y")


class TestChildFlags:

    def test_child_inherits_flags(self):
        fun = UserFunction("f")
        ctx = Context.root().child(in_loop=True, current_function=fun)
        grandchild = ctx.child()
        assert grandchild.in_loop is True
        assert grandchild.current_function is fun

    def test_child_overrides_flags(self):
        fun = UserFunction("f")
        loop = Context.root().child(in_loop=True)
        body = loop.child(in_loop=False, current_function=fun)
        assert body.in_loop is False
        assert body.current_function is fun
        assert loop.current_function is None

    def test_repr_mentions_depth(self):
        assert "depth=2" in repr(Context.root().child().child())
