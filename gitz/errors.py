# gitz/errors.py
"""
Gitz Error Types and Reporting Module

Every failure the compiler can produce is an exception carrying a
taxonomy tag (:class:`ErrorKind`), a structured :class:`ErrorCode`, an
optional :class:`SourceSpan` and a human-readable message.  Callers that
need to react to a specific failure match on ``exc.kind`` (or on the
exception class), never on message text.

Error Hierarchy:
────────────────
    GitzError (base)
    ├── GitzSyntaxError                - source text does not match the grammar
    └── SemanticError                  - analysis-time violations
        ├── DuplicateDeclarationError
        ├── UndeclaredIdentifierError
        ├── TypeMismatchError
        ├── ArityMismatchError
        ├── IllegalControlFlowError
        ├── InvalidAssignmentTargetError
        └── NotAFunctionError

Error Codes:
────────────
Codes follow the pattern GITZ-NNNN:
  - 1000-1999: Syntax errors
  - 2000-2999: Type errors
  - 3000-3999: Scope/binding errors
  - 4000-4999: Control-flow errors

Example Usage:
──────────────
    from gitz.errors import ErrorKind, GitzError

    try:
        compile_source(text)
    except GitzError as exc:
        if exc.kind is ErrorKind.UNDECLARED_IDENTIFIER:
            ...
        print(exc)            # "3:7: Identifier y not declared"
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique
from typing import Any, Dict, Optional

__all__ = [
    "ErrorKind",
    "ErrorPhase",
    "ErrorCode",
    "GitzErrorCodes",
    "SourceSpan",
    "GitzError",
    "GitzSyntaxError",
    "SemanticError",
    "DuplicateDeclarationError",
    "UndeclaredIdentifierError",
    "TypeMismatchError",
    "ArityMismatchError",
    "IllegalControlFlowError",
    "InvalidAssignmentTargetError",
    "NotAFunctionError",
]


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR CLASSIFICATION
# ═══════════════════════════════════════════════════════════════════════════════

@unique
class ErrorKind(Enum):
    """Closed taxonomy of compile-time failures."""

    SYNTAX = "syntax"
    DUPLICATE_DECLARATION = "duplicate-declaration"
    UNDECLARED_IDENTIFIER = "undeclared-identifier"
    TYPE_MISMATCH = "type-mismatch"
    ARITY_MISMATCH = "arity-mismatch"
    ILLEGAL_CONTROL_FLOW = "illegal-control-flow"
    INVALID_ASSIGNMENT_TARGET = "invalid-assignment-target"
    NOT_A_FUNCTION = "not-a-function"


@unique
class ErrorPhase(Enum):
    """Compilation phase where the error occurred."""

    SYNTAX = "syntax"          # Parsing
    SEMANTIC = "semantic"      # Type checking, scope resolution


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR CODES
# ═══════════════════════════════════════════════════════════════════════════════

class ErrorCode:
    """
    Structured error code of the form GITZ-NNNN.

    Codes compare equal to their string rendering, so tests and tools
    can write ``exc.code == "GITZ-2001"``.
    """

    __slots__ = ("prefix", "number", "kind", "phase")

    def __init__(
        self,
        prefix: str,
        number: int,
        kind: ErrorKind,
        phase: ErrorPhase,
    ) -> None:
        self.prefix = prefix
        self.number = number
        self.kind = kind
        self.phase = phase

    @property
    def code(self) -> str:
        """Get the full error code string."""
        return f"{self.prefix}-{self.number:04d}"

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"ErrorCode({self.code!r}, {self.kind.name})"

    def __hash__(self) -> int:
        return hash((self.prefix, self.number))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ErrorCode):
            return self.prefix == other.prefix and self.number == other.number
        if isinstance(other, str):
            return self.code == other
        return False


class GitzErrorCodes:
    """Predefined error codes."""

    _P = "GITZ"

    SYNTAX_ERROR = ErrorCode(_P, 1001, ErrorKind.SYNTAX, ErrorPhase.SYNTAX)

    TYPE_MISMATCH = ErrorCode(
        _P, 2001, ErrorKind.TYPE_MISMATCH, ErrorPhase.SEMANTIC)
    ARITY_MISMATCH = ErrorCode(
        _P, 2002, ErrorKind.ARITY_MISMATCH, ErrorPhase.SEMANTIC)
    NOT_A_FUNCTION = ErrorCode(
        _P, 2003, ErrorKind.NOT_A_FUNCTION, ErrorPhase.SEMANTIC)

    DUPLICATE_DECLARATION = ErrorCode(
        _P, 3001, ErrorKind.DUPLICATE_DECLARATION, ErrorPhase.SEMANTIC)
    UNDECLARED_IDENTIFIER = ErrorCode(
        _P, 3002, ErrorKind.UNDECLARED_IDENTIFIER, ErrorPhase.SEMANTIC)
    INVALID_ASSIGNMENT_TARGET = ErrorCode(
        _P, 3003, ErrorKind.INVALID_ASSIGNMENT_TARGET, ErrorPhase.SEMANTIC)

    ILLEGAL_CONTROL_FLOW = ErrorCode(
        _P, 4001, ErrorKind.ILLEGAL_CONTROL_FLOW, ErrorPhase.SEMANTIC)


# ═══════════════════════════════════════════════════════════════════════════════
# SOURCE LOCATION
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SourceSpan:
    """1-based line/column position in the source text."""

    line: int = 0
    column: int = 0

    @classmethod
    def from_offset(cls, text: str, offset: int) -> "SourceSpan":
        """Compute the line/column of a character offset into ``text``."""
        offset = max(0, min(offset, len(text)))
        line = text.count("\n", 0, offset) + 1
        column = offset - (text.rfind("\n", 0, offset) + 1) + 1
        return cls(line=line, column=column)

    def __str__(self) -> str:
        if self.line == 0:
            return "<unknown location>"
        return f"{self.line}:{self.column}"


# ═══════════════════════════════════════════════════════════════════════════════
# EXCEPTION CLASSES
# ═══════════════════════════════════════════════════════════════════════════════

class GitzError(Exception):
    """
    Base exception for all Gitz compile errors.

    ``str(exc)`` is ``line:col: message`` when a position is known and the
    bare message otherwise.
    """

    default_code: ErrorCode = GitzErrorCodes.TYPE_MISMATCH

    def __init__(
        self,
        message: str,
        span: Optional[SourceSpan] = None,
        code: Optional[ErrorCode] = None,
    ) -> None:
        self.message = message
        self.span = span
        self.code = code or self.default_code
        super().__init__(str(self))

    @property
    def kind(self) -> ErrorKind:
        return self.code.kind

    def to_json(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "code": self.code.code,
            "kind": self.kind.value,
            "phase": self.code.phase.value,
            "message": self.message,
            "location": {
                "line": self.span.line,
                "column": self.span.column,
            } if self.span else None,
        }

    def __str__(self) -> str:
        if self.span is not None and self.span.line > 0:
            return f"{self.span}: {self.message}"
        return self.message


# ───────────────────────────────────────────────────────────────────────────────
# SYNTAX ERRORS
# ───────────────────────────────────────────────────────────────────────────────

class GitzSyntaxError(GitzError):
    """Source text rejected by the grammar."""

    default_code = GitzErrorCodes.SYNTAX_ERROR


# ───────────────────────────────────────────────────────────────────────────────
# SEMANTIC ERRORS
# ───────────────────────────────────────────────────────────────────────────────

class SemanticError(GitzError):
    """Error during semantic analysis."""


class DuplicateDeclarationError(SemanticError):
    """Name already bound in the innermost scope."""

    default_code = GitzErrorCodes.DUPLICATE_DECLARATION

    def __init__(self, name: str, span: Optional[SourceSpan] = None) -> None:
        self.name = name
        super().__init__(f"Identifier {name} already declared", span)


class UndeclaredIdentifierError(SemanticError):
    """Name not found anywhere in the scope chain."""

    default_code = GitzErrorCodes.UNDECLARED_IDENTIFIER

    def __init__(self, name: str, span: Optional[SourceSpan] = None) -> None:
        self.name = name
        super().__init__(f"Identifier {name} not declared", span)


class TypeMismatchError(SemanticError):
    """An expression's type does not fit the position it appears in."""

    default_code = GitzErrorCodes.TYPE_MISMATCH

    def __init__(
        self,
        message: str,
        span: Optional[SourceSpan] = None,
        expected: str = "",
        actual: str = "",
    ) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(message, span)


class ArityMismatchError(SemanticError):
    """Call argument count differs from the parameter count."""

    default_code = GitzErrorCodes.ARITY_MISMATCH

    def __init__(
        self,
        name: str,
        expected: int,
        actual: int,
        span: Optional[SourceSpan] = None,
    ) -> None:
        self.name = name
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Expected {expected} argument(s) but got {actual}", span)


class IllegalControlFlowError(SemanticError):
    """``Break``/``Skip``/``give`` outside their lexical context."""

    default_code = GitzErrorCodes.ILLEGAL_CONTROL_FLOW


class InvalidAssignmentTargetError(SemanticError):
    """Assignment target is not an lvalue or names an immutable binding."""

    default_code = GitzErrorCodes.INVALID_ASSIGNMENT_TARGET


class NotAFunctionError(SemanticError):
    """Call target resolves to something that is not callable."""

    default_code = GitzErrorCodes.NOT_A_FUNCTION

    def __init__(self, name: str, span: Optional[SourceSpan] = None) -> None:
        self.name = name
        super().__init__(f"{name} is not a function", span)
