#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
gitz/generator.py
=================

Code generator: typed IR → Python source.

The output is a standalone script.  Every declared entity gets a
suffixed name (``x`` → ``x_1``) so that Gitz identifiers can never
shadow Python keywords or builtins, and so that names re-declared in
nested Gitz blocks stay distinct in Python's flatter scoping.

Mapping notes
-------------
- ``say`` → ``print``; numeric intrinsics → ``math``; ``import math`` is
  only emitted when something uses it
- ``π`` → ``math.pi``
- ``&&``/``||``/``!`` → ``and``/``or``/``not``
- a caught error is bound as its message text
- functions declare ``global``/``nonlocal`` for outer variables they assign
"""

from __future__ import annotations

import logging
import math
import re
from io import StringIO
from typing import Any, Dict, List, Optional, Set

from gitz.core import (
    BOOL,
    NUM,
    TEXT,
    Assignment,
    FunctionDeclaration,
    IfStatement,
    IntrinsicFunction,
    IRNode,
    ListType,
    NumberLiteral,
    Program,
    Type,
    UserFunction,
    Variable,
)
from gitz.visitor import IRVisitor, method_name_for

__all__ = [
    "generate",
    "CodeGenerator",
    "CodeEmitter",
]

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# CODE EMITTER
# ═══════════════════════════════════════════════════════════════════════════

class CodeEmitter:
    """Line-oriented code emission with indentation management."""

    def __init__(self, indent_str: str = "    ") -> None:
        self._buffer = StringIO()
        self._indent_str = indent_str
        self._indent_level = 0

    def emit(self, code: str) -> None:
        """Emit a line of code at the current indentation."""
        if code.strip():
            self._buffer.write(self._indent_str * self._indent_level)
            self._buffer.write(code)
        self._buffer.write("\n")

    def emit_blank(self, count: int = 1) -> None:
        for _ in range(count):
            self._buffer.write("\n")

    def indent(self) -> None:
        self._indent_level += 1

    def dedent(self) -> None:
        self._indent_level = max(0, self._indent_level - 1)

    def block(self, header: str) -> "CodeEmitter._BlockContext":
        """Context manager for indented blocks."""
        return self._BlockContext(self, header)

    class _BlockContext:

        def __init__(self, emitter: "CodeEmitter", header: str) -> None:
            self._emitter = emitter
            self._header = header

        def __enter__(self) -> "CodeEmitter":
            self._emitter.emit(self._header)
            self._emitter.indent()
            return self._emitter

        def __exit__(self, *args: Any) -> None:
            self._emitter.dedent()

    def get_code(self) -> str:
        return self._buffer.getvalue()

    @staticmethod
    def make_identifier(name: str) -> str:
        """Convert a name to a valid Python identifier."""
        if name.isidentifier():
            return name
        result = re.sub(r"\W", "", name)
        if result and result[0].isdigit():
            result = "_" + result
        return result or "_unnamed"


# ═══════════════════════════════════════════════════════════════════════════
# INTRINSICS
# ═══════════════════════════════════════════════════════════════════════════

_MATH_INTRINSICS = {
    "sqrt": "math.sqrt",
    "sin": "math.sin",
    "cos": "math.cos",
    "exp": "math.exp",
    "ln": "math.log",
    "hypot": "math.hypot",
}

_OTHER_INTRINSICS = {
    "say": "print({})",
    "bytes": 'list({}.encode("utf-8"))',
    "codepoints": "[ord(c) for c in {}]",
    "len": "len({})",
}

_BINARY_OPERATORS = {
    "&&": "and",
    "||": "or",
}


# ═══════════════════════════════════════════════════════════════════════════
# GENERATOR
# ═══════════════════════════════════════════════════════════════════════════

def generate(program: Program, indent: str = "    ") -> str:
    """Serialize a Program to Python source text."""
    return CodeGenerator(indent).generate(program)


class CodeGenerator(IRVisitor):
    """Emits Python for IR statements; expressions are rendered to strings."""

    def __init__(self, indent: str = "    ") -> None:
        self.out = CodeEmitter(indent)
        self._names: Dict[int, str] = {}
        self._keep_alive: List[Any] = []
        self._owners: Dict[int, Optional[UserFunction]] = {}
        self._function: Optional[UserFunction] = None
        self._uses_math = False

    def generate(self, program: Program) -> str:
        self.visit(program)
        code = self.out.get_code()
        if self._uses_math:
            code = "import math\n\n" + code
        logger.debug("generated %d lines", code.count("\n"))
        return code

    # ─────────────────────────────────────────────────────────────
    # Names
    # ─────────────────────────────────────────────────────────────

    def _declare(self, entity: Any) -> str:
        """Assign a fresh target name to a newly declared entity."""
        name = f"{CodeEmitter.make_identifier(entity.name)}_{len(self._names) + 1}"
        self._names[id(entity)] = name
        self._keep_alive.append(entity)
        if isinstance(entity, Variable):
            self._owners[id(entity)] = self._function
        return name

    def _name(self, entity: Any) -> str:
        name = self._names.get(id(entity))
        if name is not None:
            return name
        if isinstance(entity, Variable) and entity.name == "π":
            self._uses_math = True
            return "math.pi"
        return self._declare(entity)

    # ─────────────────────────────────────────────────────────────
    # Statements
    # ─────────────────────────────────────────────────────────────

    def _body(self, statements: List[IRNode]) -> None:
        if not statements:
            self.out.emit("pass")
        for statement in statements:
            self.visit(statement)

    def generic_visit(self, node: IRNode) -> None:
        # Expression used as a statement (a call).
        self.out.emit(self.expr(node))

    def visit_program(self, node) -> None:
        for statement in node.statements:
            self.visit(statement)

    def visit_variable_declaration(self, node) -> None:
        initializer = self.expr(node.initializer)
        self.out.emit(f"{self._declare(node.variable)} = {initializer}")

    def visit_function_declaration(self, node) -> None:
        fun = node.fun
        name = self._name(fun)
        outer = self._function
        self._function = fun
        params = ", ".join(self._declare(p) for p in fun.params)
        with self.out.block(f"def {name}({params}):"):
            self._emit_scope_declarations(fun)
            self._body(fun.body)
        self._function = outer
        self.out.emit_blank()

    def _emit_scope_declarations(self, fun: UserFunction) -> None:
        globals_: List[str] = []
        nonlocals: List[str] = []
        for variable in self._assigned_variables(fun.body):
            key = id(variable)
            if key not in self._owners or self._owners[key] is fun:
                continue
            target = globals_ if self._owners[key] is None else nonlocals
            if self._names[key] not in target:
                target.append(self._names[key])
        if globals_:
            self.out.emit(f"global {', '.join(globals_)}")
        if nonlocals:
            self.out.emit(f"nonlocal {', '.join(nonlocals)}")

    def _assigned_variables(self, statements: List[Any]) -> List[Variable]:
        """Variables rebound by ``statements``, not looking into nested functions."""
        found: List[Variable] = []
        seen: Set[int] = set()

        def walk(value: Any) -> None:
            if isinstance(value, list):
                for item in value:
                    walk(item)
                return
            if not isinstance(value, IRNode) or isinstance(value, (UserFunction, IntrinsicFunction)):
                return
            if isinstance(value, FunctionDeclaration):
                return
            if isinstance(value, Assignment) and isinstance(value.target, Variable):
                if id(value.target) not in seen:
                    seen.add(id(value.target))
                    found.append(value.target)
            for child in vars(value).values():
                walk(child)

        walk(statements)
        return found

    def visit_assignment(self, node) -> None:
        self.out.emit(f"{self.expr(node.target)} = {self.expr(node.source)}")

    def visit_if_statement(self, node, keyword: str = "if") -> None:
        with self.out.block(f"{keyword} {self.expr(node.test)}:"):
            self._body(node.consequent)
        if isinstance(node.alternate, IfStatement):
            self.visit_if_statement(node.alternate, keyword="elif")
        elif node.alternate is not None:
            with self.out.block("else:"):
                self._body(node.alternate)

    def visit_short_if_statement(self, node) -> None:
        with self.out.block(f"if {self.expr(node.test)}:"):
            self._body(node.consequent)

    def visit_while_statement(self, node) -> None:
        with self.out.block(f"while {self.expr(node.test)}:"):
            self._body(node.body)

    def visit_repeat_statement(self, node) -> None:
        with self.out.block(f"for _ in range({self.expr(node.count)}):"):
            self._body(node.body)

    def visit_for_range_statement(self, node) -> None:
        low, high = self.expr(node.low), self.expr(node.high)
        if node.op == "...":
            high = f"{high} + 1"
        iterator = self._declare(node.iterator)
        with self.out.block(f"for {iterator} in range({low}, {high}):"):
            self._body(node.body)

    def visit_for_statement(self, node) -> None:
        collection = self.expr(node.collection)
        iterator = self._declare(node.iterator)
        with self.out.block(f"for {iterator} in {collection}:"):
            self._body(node.body)

    def visit_break_statement(self, node) -> None:
        self.out.emit("break")

    def visit_continue_statement(self, node) -> None:
        self.out.emit("continue")

    def visit_return_statement(self, node) -> None:
        self.out.emit(f"return {self.expr(node.expression)}")

    def visit_short_return_statement(self, node) -> None:
        self.out.emit("return")

    def visit_print_statement(self, node) -> None:
        self.out.emit(f"print({', '.join(self.expr(a) for a in node.args)})")

    def visit_try_catch_statement(self, node) -> None:
        with self.out.block("try:"):
            self._body(node.try_block)
        error = self._declare(node.error_variable)
        with self.out.block(f"except Exception as {error}:"):
            self.out.emit(f"{error} = str({error})")
            self._body(node.catch_block)

    # ─────────────────────────────────────────────────────────────
    # Expressions
    # ─────────────────────────────────────────────────────────────

    def expr(self, node: Any) -> str:
        method = getattr(self, "expr_" + method_name_for(node)[len("visit_"):], None)
        if method is None:
            raise TypeError(f"cannot generate code for {type(node).__name__}")
        return method(node)

    def expr_number_literal(self, node) -> str:
        text = repr(node.value)
        if isinstance(node.value, float) and not math.isfinite(node.value):
            # ``1.0e999`` in source overflows to inf
            text = f"float({text!r})"
        return f"({text})" if node.value < 0 else text

    def expr_string_literal(self, node) -> str:
        return repr(node.value)

    def expr_boolean_literal(self, node) -> str:
        return "True" if node.value else "False"

    def expr_variable(self, node) -> str:
        return self._name(node)

    def expr_empty_initializer(self, node) -> str:
        return _default_value(node.type)

    def expr_empty_optional(self, node) -> str:
        return "None"

    def expr_binary_expression(self, node) -> str:
        left, right = self.expr(node.left), self.expr(node.right)
        if node.op == "??":
            return f"({left} if {left} is not None else {right})"
        op = _BINARY_OPERATORS.get(node.op, node.op)
        return f"({left} {op} {right})"

    def expr_unary_expression(self, node) -> str:
        operand = self.expr(node.operand)
        if node.op == "!":
            return f"(not {operand})"
        return f"({node.op}{operand})"

    def expr_function_call(self, node) -> str:
        callee = node.callee
        if isinstance(callee, IntrinsicFunction) and callee.name == "range":
            # ``num`` bounds may be floats; Python's range wants ints.
            return f"list(range({', '.join(self._integral(a) for a in node.args)}))"
        args = ", ".join(self.expr(a) for a in node.args)
        if isinstance(callee, IntrinsicFunction):
            if callee.name in _MATH_INTRINSICS:
                self._uses_math = True
                return f"{_MATH_INTRINSICS[callee.name]}({args})"
            return _OTHER_INTRINSICS[callee.name].format(args)
        return f"{self._name(callee)}({args})"

    def expr_subscript_expression(self, node) -> str:
        return f"{self.expr(node.array)}[{self._integral(node.index)}]"

    def _integral(self, node) -> str:
        text = self.expr(node)
        if isinstance(node, NumberLiteral) and isinstance(node.value, int):
            return text
        return f"int({text})"

    def expr_list_literal(self, node) -> str:
        return f"[{', '.join(self.expr(e) for e in node.elements)}]"

    def expr_conditional(self, node) -> str:
        return (
            f"({self.expr(node.consequent)} if {self.expr(node.test)} "
            f"else {self.expr(node.alternate)})"
        )


def _default_value(t: Type) -> str:
    if t == NUM:
        return "0"
    if t == TEXT:
        return "''"
    if t == BOOL:
        return "False"
    if isinstance(t, ListType):
        return "[]"
    return "None"
