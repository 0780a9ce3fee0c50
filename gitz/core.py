# gitz/core.py
"""
Type model, symbols, IR node classes and the standard library.

Types are immutable values compared structurally.  Symbols are the
entities names resolve to; a :class:`Variable` doubles as the IR node for
a variable reference.  IR nodes are plain mutable dataclasses: the
analyzer builds them, the optimizer may rewrite them in place, and the
generator reads them.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, List, Mapping, Sequence, Tuple, Union

__all__ = [
    # types
    "Type", "PrimitiveType", "ListType", "FunctionType", "OptionalType",
    "NUM", "TEXT", "BOOL", "VOID", "ANY",
    "list_type", "function_type", "is_list_type", "list_element_type",
    "is_assignable",
    # symbols
    "Variable", "UserFunction", "IntrinsicFunction", "Symbol",
    # IR
    "IRNode", "Program", "VariableDeclaration", "FunctionDeclaration",
    "Assignment", "IfStatement", "ShortIfStatement", "WhileStatement",
    "RepeatStatement", "ForRangeStatement", "ForStatement",
    "BreakStatement", "ContinueStatement", "ReturnStatement",
    "ShortReturnStatement", "PrintStatement", "TryCatchStatement",
    "NumberLiteral", "StringLiteral", "BooleanLiteral", "EmptyInitializer",
    "BinaryExpression", "UnaryExpression", "FunctionCall",
    "SubscriptExpression", "ListLiteral", "Conditional", "EmptyOptional",
    "STANDARD_LIBRARY",
]


# ============================================================================
# PART 1 — TYPES
# ============================================================================


class Type(ABC):
    """Base class for Gitz types."""

    @abstractmethod
    def pretty(self) -> str:
        """Return the type as it is written in source."""
        ...


@dataclass(frozen=True, slots=True)
class PrimitiveType(Type):
    """One of the closed set of primitive tags."""
    tag: str

    def pretty(self) -> str:
        return self.tag


@dataclass(frozen=True, slots=True)
class ListType(Type):
    element: Type

    def pretty(self) -> str:
        return f"list<{self.element.pretty()}>"


@dataclass(frozen=True, slots=True)
class FunctionType(Type):
    param_types: Tuple[Type, ...]
    return_type: Type

    def pretty(self) -> str:
        params = ", ".join(p.pretty() for p in self.param_types)
        return f"({params}) -> {self.return_type.pretty()}"


@dataclass(frozen=True, slots=True)
class OptionalType(Type):
    """Type of a possibly-absent value; only produced by ``??`` IR."""
    base: Type

    def pretty(self) -> str:
        return f"{self.base.pretty()}?"


NUM = PrimitiveType("num")
TEXT = PrimitiveType("text")
BOOL = PrimitiveType("bool")
VOID = PrimitiveType("void")
ANY = PrimitiveType("any")

PRIMITIVE_TYPES: Tuple[PrimitiveType, ...] = (NUM, TEXT, BOOL, VOID, ANY)


def list_type(element: Type) -> ListType:
    return ListType(element)


def function_type(param_types: Sequence[Type], return_type: Type) -> FunctionType:
    return FunctionType(tuple(param_types), return_type)


def is_list_type(t: Any) -> bool:
    return isinstance(t, ListType)


def list_element_type(t: Any) -> Type:
    """Element type of a list type, or ``any`` for anything else."""
    if isinstance(t, ListType):
        return t.element
    return ANY


def is_assignable(source: Type, target: Type) -> bool:
    """
    Whether a value of type ``source`` may flow into a slot of type
    ``target``.  ``any`` matches on either side, also nested inside lists.
    """
    if source == target or source == ANY or target == ANY:
        return True
    if isinstance(source, ListType) and isinstance(target, ListType):
        return is_assignable(source.element, target.element)
    return False


# ============================================================================
# PART 2 — IR BASE AND SYMBOLS
# ============================================================================


class IRNode:
    """Base class for every IR node."""

    __slots__ = ()


@dataclass
class Variable(IRNode):
    """A declared variable; also used as the IR for a reference to it."""
    name: str
    type: Type
    mutable: bool = True


@dataclass
class UserFunction(IRNode):
    """
    A function declared in source.  The body is attached after the
    function has been bound, so recursive calls can resolve it.
    """
    name: str
    params: List[Variable] = field(default_factory=list)
    return_type: Type = VOID
    body: List[IRNode] = field(default_factory=list, compare=False, repr=False)

    @property
    def type(self) -> FunctionType:
        return function_type([p.type for p in self.params], self.return_type)


@dataclass(frozen=True)
class IntrinsicFunction(IRNode):
    """A built-in function with a fixed signature and no body."""
    name: str
    type: FunctionType


Symbol = Union[Variable, UserFunction, IntrinsicFunction]


# ============================================================================
# PART 3 — STATEMENTS
# ============================================================================


@dataclass
class Program(IRNode):
    statements: List[IRNode] = field(default_factory=list)


@dataclass
class VariableDeclaration(IRNode):
    variable: Variable
    initializer: IRNode


@dataclass
class FunctionDeclaration(IRNode):
    fun: UserFunction


@dataclass
class Assignment(IRNode):
    target: IRNode
    source: IRNode


@dataclass
class IfStatement(IRNode):
    """``alternate`` is a block, a nested ``IfStatement``, or None."""
    test: IRNode
    consequent: List[IRNode]
    alternate: Union[List[IRNode], "IfStatement", None] = None


@dataclass
class ShortIfStatement(IRNode):
    test: IRNode
    consequent: List[IRNode]


@dataclass
class WhileStatement(IRNode):
    test: IRNode
    body: List[IRNode]


@dataclass
class RepeatStatement(IRNode):
    count: IRNode
    body: List[IRNode]


@dataclass
class ForRangeStatement(IRNode):
    """Counted loop; ``op`` is ``...`` (inclusive) or ``..<`` (exclusive)."""
    iterator: Variable
    low: IRNode
    op: str
    high: IRNode
    body: List[IRNode]


@dataclass
class ForStatement(IRNode):
    iterator: Variable
    collection: IRNode
    body: List[IRNode]


@dataclass
class BreakStatement(IRNode):
    pass


@dataclass
class ContinueStatement(IRNode):
    pass


@dataclass
class ReturnStatement(IRNode):
    expression: IRNode


@dataclass
class ShortReturnStatement(IRNode):
    pass


@dataclass
class PrintStatement(IRNode):
    args: List[IRNode] = field(default_factory=list)


@dataclass
class TryCatchStatement(IRNode):
    try_block: List[IRNode]
    error_variable: Variable
    catch_block: List[IRNode]


# ============================================================================
# PART 4 — EXPRESSIONS
# ============================================================================


@dataclass
class NumberLiteral(IRNode):
    value: Union[int, float]
    type: Type = NUM


@dataclass
class StringLiteral(IRNode):
    value: str
    type: Type = TEXT


@dataclass
class BooleanLiteral(IRNode):
    value: bool
    type: Type = BOOL


@dataclass
class EmptyInitializer(IRNode):
    """Placeholder initializer for ``Make x: T;``."""
    type: Type


@dataclass
class BinaryExpression(IRNode):
    op: str
    left: IRNode
    right: IRNode
    type: Type


@dataclass
class UnaryExpression(IRNode):
    op: str
    operand: IRNode
    type: Type


@dataclass
class FunctionCall(IRNode):
    callee: Union[UserFunction, IntrinsicFunction]
    args: List[IRNode]
    type: Type


@dataclass
class SubscriptExpression(IRNode):
    array: IRNode
    index: IRNode
    type: Type


@dataclass
class ListLiteral(IRNode):
    elements: List[IRNode]
    type: Type


@dataclass
class Conditional(IRNode):
    test: IRNode
    consequent: IRNode
    alternate: IRNode
    type: Type


@dataclass
class EmptyOptional(IRNode):
    base_type: Type

    @property
    def type(self) -> OptionalType:
        return OptionalType(self.base_type)


# ============================================================================
# PART 5 — STANDARD LIBRARY
# ============================================================================


def _intrinsic(name: str, params: Sequence[Type], ret: Type) -> IntrinsicFunction:
    return IntrinsicFunction(name, function_type(params, ret))


def _build_standard_library() -> Mapping[str, Any]:
    entries: dict = {t.tag: t for t in PRIMITIVE_TYPES}
    entries["π"] = Variable("π", NUM, mutable=False)
    entries["true"] = BooleanLiteral(True)
    entries["false"] = BooleanLiteral(False)
    entries["say"] = _intrinsic("say", [ANY], VOID)
    for name in ("sqrt", "sin", "cos", "exp", "ln"):
        entries[name] = _intrinsic(name, [NUM], NUM)
    entries["hypot"] = _intrinsic("hypot", [NUM, NUM], NUM)
    entries["bytes"] = _intrinsic("bytes", [TEXT], list_type(NUM))
    entries["codepoints"] = _intrinsic("codepoints", [TEXT], list_type(NUM))
    entries["len"] = _intrinsic("len", [list_type(ANY)], NUM)
    entries["range"] = _intrinsic("range", [NUM, NUM], list_type(NUM))
    return MappingProxyType(entries)


#: Built once at import; never mutated.  ``Context.root()`` copies it.
STANDARD_LIBRARY: Mapping[str, Any] = _build_standard_library()
