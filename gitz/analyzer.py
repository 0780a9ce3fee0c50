# gitz/analyzer.py
"""
Semantic analysis: concrete syntax tree → typed IR.

The :class:`Analyzer` walks the parsimonious tree produced by
:func:`gitz.grammar.parse`, dispatching on each node's rule name to a
``_visit_<rule>(node, context)`` method.  The current :class:`Context`
is always passed explicitly; scope-introducing constructs hand a child
context to the nodes below them.  The first violated rule raises a
:class:`~gitz.errors.SemanticError` subclass and aborts the unit.
"""

from __future__ import annotations

import logging
from typing import Any, List, Union

from parsimonious.nodes import Node

from gitz import core
from gitz.context import Context
from gitz.core import (
    ANY,
    BOOL,
    NUM,
    TEXT,
    VOID,
    Assignment,
    BinaryExpression,
    BooleanLiteral,
    BreakStatement,
    ContinueStatement,
    EmptyInitializer,
    ForStatement,
    FunctionCall,
    FunctionDeclaration,
    IfStatement,
    IntrinsicFunction,
    IRNode,
    ListLiteral,
    ListType,
    NumberLiteral,
    PrimitiveType,
    PrintStatement,
    Program,
    ReturnStatement,
    ShortReturnStatement,
    StringLiteral,
    SubscriptExpression,
    TryCatchStatement,
    Type,
    UnaryExpression,
    UserFunction,
    Variable,
    VariableDeclaration,
    WhileStatement,
)
from gitz.errors import (
    ArityMismatchError,
    DuplicateDeclarationError,
    IllegalControlFlowError,
    InvalidAssignmentTargetError,
    NotAFunctionError,
    SourceSpan,
    TypeMismatchError,
)
from gitz.grammar import find, find_all, parse, span_of

__all__ = ["Analyzer", "analyze", "BINARY_OPERATORS", "UNARY_OPERATORS"]

logger = logging.getLogger(__name__)

#: Surface operator words → IR operator symbols.
BINARY_OPERATORS = {
    "or": "||",
    "and": "&&",
    "equal": "==",
    "notSame": "!=",
    "smaller": "<",
    "smallerOrEqual": "<=",
    "bigger": ">",
    "biggerOrEqual": ">=",
    "plus": "+",
    "minus": "-",
    "times": "*",
    "over": "/",
    "mod": "%",
    "power": "**",
}

UNARY_OPERATORS = {
    "minus": "-",
    "not": "!",
}

_LIST_ELEMENT_TYPES = (NUM, TEXT, BOOL)


def analyze(source: Union[str, Node]) -> Program:
    """Analyze source text (or an already-parsed tree) into a Program."""
    tree = parse(source) if isinstance(source, str) else source
    return Analyzer().analyze(tree)


class Analyzer:
    """Lowers a Gitz syntax tree into typed IR, checking it on the way."""

    def analyze(self, tree: Node) -> Program:
        context = Context.root()
        program = Program()
        for statement in tree.children[1].children:
            node = self._visit(statement, context)
            logger.debug("lowered %s at %s", type(node).__name__, span_of(statement))
            program.statements.append(node)
        return program

    # ─────────────────────────────────────────────────────────────
    # Dispatch
    # ─────────────────────────────────────────────────────────────

    def _visit(self, node: Node, context: Context) -> Any:
        method = getattr(self, f"_visit_{node.expr_name}", None)
        if method is None:
            raise ValueError(f"no analysis rule for {node.expr_name!r}")
        return method(node, context)

    def _visit_only_child(self, node: Node, context: Context) -> Any:
        return self._visit(node.children[0], context)

    _visit_statement = _visit_only_child
    _visit_unary_exp = _visit_only_child
    _visit_primary = _visit_only_child

    def _block(self, node: Node, context: Context) -> List[IRNode]:
        """Statements of a ``{ ... }`` block, analyzed in ``context``."""
        return [self._visit(s, context) for s in node.children[1].children]

    # ─────────────────────────────────────────────────────────────
    # Checks
    # ─────────────────────────────────────────────────────────────

    @staticmethod
    def _name(id_node: Node) -> str:
        return id_node.children[0].text

    @staticmethod
    def _check_number(e: IRNode, span: SourceSpan) -> None:
        if e.type != NUM:
            raise TypeMismatchError(
                "Expected a number", span, expected="num", actual=e.type.pretty())

    @staticmethod
    def _check_boolean(e: IRNode, span: SourceSpan) -> None:
        if e.type != BOOL:
            raise TypeMismatchError(
                "Expected a boolean", span, expected="bool", actual=e.type.pretty())

    @staticmethod
    def _check_same_type(left: IRNode, right: IRNode, span: SourceSpan) -> None:
        if left.type != right.type:
            raise TypeMismatchError(
                "Operands must have same type", span,
                expected=left.type.pretty(), actual=right.type.pretty())

    @staticmethod
    def _check_assignable(source: IRNode, target: Type, span: SourceSpan) -> None:
        if not core.is_assignable(source.type, target):
            raise TypeMismatchError(
                f"Cannot assign {source.type.pretty()} to {target.pretty()}",
                span, expected=target.pretty(), actual=source.type.pretty())

    @staticmethod
    def _unify_empty_list(source: IRNode, target: Type, span: SourceSpan) -> None:
        # ``[]`` alone says nothing about its element type; take the slot's.
        # An ``any`` slot accepts it as ``list<any>``.
        if isinstance(source, ListLiteral) and not source.elements:
            if target == ANY:
                return
            if not isinstance(target, ListType):
                raise TypeMismatchError(
                    f"Cannot assign list to {target.pretty()}",
                    span, expected=target.pretty(), actual="list")
            source.type = target

    # ─────────────────────────────────────────────────────────────
    # Types
    # ─────────────────────────────────────────────────────────────

    def _type(self, node: Node, context: Context) -> Type:
        inner = node.children[0]
        span = span_of(inner)
        if inner.expr_name == "list_type":
            element = self._type(find(inner, "type"), context)
            if element not in _LIST_ELEMENT_TYPES and not isinstance(element, ListType):
                raise TypeMismatchError("Type expected", span_of(find(inner, "type")))
            return core.list_type(element)
        entity = context.lookup(self._name(inner), span)
        if not isinstance(entity, PrimitiveType):
            raise TypeMismatchError("Type expected", span)
        return entity

    # ─────────────────────────────────────────────────────────────
    # Declarations
    # ─────────────────────────────────────────────────────────────

    def _visit_var_decl(self, node: Node, context: Context) -> VariableDeclaration:
        id_node = node.children[1]
        name, span = self._name(id_node), span_of(id_node)
        if context.is_declared_locally(name):
            raise DuplicateDeclarationError(name, span)
        declared = self._type(node.children[3], context)
        initializer_opt = node.children[4].children
        if initializer_opt:
            initializer = self._visit(initializer_opt[0].children[1], context)
            self._unify_empty_list(initializer, declared, span)
            self._check_assignable(initializer, declared, span)
        else:
            initializer = EmptyInitializer(declared)
        variable = Variable(name, declared, mutable=True)
        context.declare(name, variable, span)
        return VariableDeclaration(variable, initializer)

    def _visit_fun_decl(self, node: Node, context: Context) -> FunctionDeclaration:
        id_node = node.children[1]
        name, span = self._name(id_node), span_of(id_node)
        if context.is_declared_locally(name):
            raise DuplicateDeclarationError(name, span)

        fun = UserFunction(name)
        inner = context.child(in_loop=False, current_function=fun)

        params_opt = node.children[3].children
        if params_opt:
            for param_node in find_all(params_opt[0], "param"):
                param_id = param_node.children[0]
                param = Variable(
                    self._name(param_id),
                    self._type(param_node.children[2], context),
                    mutable=False,
                )
                inner.declare(param.name, param, span_of(param_id))
                fun.params.append(param)

        return_opt = node.children[5].children
        if return_opt:
            fun.return_type = self._type(return_opt[0].children[1], context)

        # Visible in its own body (recursion) and after the declaration.
        inner.declare(name, fun, span)
        context.declare(name, fun, span)

        fun.body = self._block(node.children[6], inner)
        return FunctionDeclaration(fun)

    # ─────────────────────────────────────────────────────────────
    # Control flow
    # ─────────────────────────────────────────────────────────────

    def _visit_if_stmt(self, node: Node, context: Context) -> IfStatement:
        branches = [(node.children[1], node.children[2])]
        for clause in node.children[3].children:
            branches.append((clause.children[1], clause.children[2]))

        lowered = []
        for test_node, block_node in branches:
            test = self._visit(test_node, context)
            self._check_boolean(test, span_of(test_node))
            lowered.append((test, self._block(block_node, context.child())))

        alternate: Any = None
        else_opt = node.children[4].children
        if else_opt:
            alternate = self._block(else_opt[0].children[1], context.child())

        for test, consequent in reversed(lowered):
            alternate = IfStatement(test, consequent, alternate)
        return alternate

    def _visit_while_stmt(self, node: Node, context: Context) -> WhileStatement:
        test = self._visit(node.children[1], context)
        self._check_boolean(test, span_of(node.children[1]))
        body = self._block(node.children[2], context.child(in_loop=True))
        return WhileStatement(test, body)

    def _visit_for_stmt(self, node: Node, context: Context) -> ForStatement:
        collection_node = node.children[3]
        collection = self._visit(collection_node, context)
        if not core.is_list_type(collection.type):
            raise TypeMismatchError(
                "Expected a list", span_of(collection_node),
                expected="list", actual=collection.type.pretty())
        id_node = node.children[1]
        iterator = Variable(
            self._name(id_node), core.list_element_type(collection.type), mutable=True)
        loop_context = context.child(in_loop=True)
        loop_context.declare(iterator.name, iterator, span_of(id_node))
        body = self._block(node.children[4], loop_context)
        return ForStatement(iterator, collection, body)

    def _visit_try_stmt(self, node: Node, context: Context) -> TryCatchStatement:
        try_block = self._block(node.children[1], context.child())
        id_node = node.children[3]
        name, span = self._name(id_node), span_of(id_node)
        # Only the directly enclosing scope is checked for a clash, so an
        # outer name may be shadowed. Kept as observed; open for review.
        if context.is_declared_locally(name):
            raise DuplicateDeclarationError(name, span)
        error_variable = Variable(name, TEXT, mutable=False)
        catch_context = context.child()
        catch_context.declare(name, error_variable, span)
        catch_block = self._block(node.children[4], catch_context)
        return TryCatchStatement(try_block, error_variable, catch_block)

    def _visit_break_stmt(self, node: Node, context: Context) -> BreakStatement:
        if not context.in_loop:
            raise IllegalControlFlowError("Break used outside of a loop", span_of(node))
        return BreakStatement()

    def _visit_continue_stmt(self, node: Node, context: Context) -> ContinueStatement:
        if not context.in_loop:
            raise IllegalControlFlowError("Skip used outside of a loop", span_of(node))
        return ContinueStatement()

    def _visit_return_stmt(
        self, node: Node, context: Context,
    ) -> Union[ReturnStatement, ShortReturnStatement]:
        span = span_of(node)
        fun = context.current_function
        if fun is None:
            raise IllegalControlFlowError("Return used outside of a function", span)
        expression_opt = node.children[1].children
        if not expression_opt:
            if fun.return_type != VOID:
                raise TypeMismatchError(
                    f"Function {fun.name} must return a {fun.return_type.pretty()}",
                    span, expected=fun.return_type.pretty(), actual="void")
            return ShortReturnStatement()
        expression = self._visit(expression_opt[0], context)
        if fun.return_type == VOID:
            raise TypeMismatchError(
                f"Cannot return a value from void function {fun.name}",
                span, expected="void", actual=expression.type.pretty())
        self._unify_empty_list(expression, fun.return_type, span)
        self._check_assignable(expression, fun.return_type, span)
        return ReturnStatement(expression)

    # ─────────────────────────────────────────────────────────────
    # Simple statements
    # ─────────────────────────────────────────────────────────────

    def _visit_print_stmt(self, node: Node, context: Context) -> PrintStatement:
        return PrintStatement(self._args(node.children[2], context))

    def _visit_call_stmt(self, node: Node, context: Context) -> FunctionCall:
        return self._visit(node.children[0], context)

    def _visit_assign_stmt(self, node: Node, context: Context) -> Assignment:
        target_node = node.children[0]
        span = span_of(target_node)
        target = self._assignment_target(target_node.children[0], context, span)
        source = self._visit(node.children[2], context)
        self._unify_empty_list(source, target.type, span)
        self._check_assignable(source, target.type, span)
        return Assignment(target, source)

    def _assignment_target(self, node: Node, context: Context, span: SourceSpan) -> IRNode:
        if node.expr_name == "id":
            entity = context.lookup(self._name(node), span)
            if not isinstance(entity, Variable):
                raise InvalidAssignmentTargetError("Invalid assignment target", span)
            if not entity.mutable:
                raise InvalidAssignmentTargetError(
                    "Cannot assign to immutable variable", span)
            return entity
        if node.expr_name == "subscript":
            return self._visit(node, context)
        raise InvalidAssignmentTargetError("Invalid assignment target", span)

    # ─────────────────────────────────────────────────────────────
    # Expressions
    # ─────────────────────────────────────────────────────────────

    def _args(self, args_opt: Node, context: Context) -> List[IRNode]:
        if not args_opt.children:
            return []
        return [self._visit(e, context) for e in find_all(args_opt.children[0], "exp")]

    def _chain(self, node: Node, context: Context, check) -> IRNode:
        """Fold ``a op b op c`` left-associatively as ``(a op b) op c``."""
        left = self._visit(node.children[0], context)
        for part in node.children[1].children:
            op_node, right_node = part.children
            word = op_node.children[0].text
            right = self._visit(right_node, context)
            result_type = check(word, left, right, span_of(op_node))
            left = BinaryExpression(BINARY_OPERATORS[word], left, right, result_type)
        return left

    def _logical(self, word: str, left: IRNode, right: IRNode, span: SourceSpan) -> Type:
        self._check_boolean(left, span)
        self._check_boolean(right, span)
        return BOOL

    def _comparison(self, word: str, left: IRNode, right: IRNode, span: SourceSpan) -> Type:
        self._check_same_type(left, right, span)
        return BOOL

    def _additive(self, word: str, left: IRNode, right: IRNode, span: SourceSpan) -> Type:
        if word == "plus":
            if left.type not in (NUM, TEXT):
                raise TypeMismatchError(
                    "Expected a number or text", span,
                    expected="num or text", actual=left.type.pretty())
        else:
            self._check_number(left, span)
        self._check_same_type(left, right, span)
        return left.type

    def _multiplicative(self, word: str, left: IRNode, right: IRNode, span: SourceSpan) -> Type:
        self._check_number(left, span)
        self._check_number(right, span)
        return NUM

    def _visit_exp(self, node: Node, context: Context) -> IRNode:
        return self._chain(node, context, self._logical)

    _visit_and_exp = _visit_exp

    def _visit_eq_exp(self, node: Node, context: Context) -> IRNode:
        return self._chain(node, context, self._comparison)

    _visit_rel_exp = _visit_eq_exp

    def _visit_add_exp(self, node: Node, context: Context) -> IRNode:
        return self._chain(node, context, self._additive)

    def _visit_mul_exp(self, node: Node, context: Context) -> IRNode:
        return self._chain(node, context, self._multiplicative)

    def _visit_negation(self, node: Node, context: Context) -> UnaryExpression:
        word = node.children[0].children[0].text
        operand = self._visit(node.children[1], context)
        span = span_of(node.children[1])
        if word == "minus":
            self._check_number(operand, span)
            return UnaryExpression(UNARY_OPERATORS[word], operand, NUM)
        self._check_boolean(operand, span)
        return UnaryExpression(UNARY_OPERATORS[word], operand, BOOL)

    def _visit_paren_exp(self, node: Node, context: Context) -> IRNode:
        return self._visit(node.children[1], context)

    def _visit_call(self, node: Node, context: Context) -> FunctionCall:
        id_node = node.children[0]
        name, span = self._name(id_node), span_of(id_node)
        callee = context.lookup(name, span)
        if not isinstance(callee, (UserFunction, IntrinsicFunction)):
            raise NotAFunctionError(name, span)
        args = self._args(node.children[2], context)
        param_types = callee.type.param_types
        if len(args) != len(param_types):
            raise ArityMismatchError(name, len(param_types), len(args), span)
        for arg, param_type in zip(args, param_types):
            if param_type == NUM:
                self._check_number(arg, span)
            else:
                self._unify_empty_list(arg, param_type, span)
                self._check_assignable(arg, param_type, span)
        return FunctionCall(callee, args, callee.type.return_type)

    def _visit_subscript(self, node: Node, context: Context) -> SubscriptExpression:
        result: IRNode = self._visit_id(node.children[0], context)
        for index_node in node.children[1].children:
            exp_node = index_node.children[1]
            index = self._visit(exp_node, context)
            self._check_number(index, span_of(exp_node))
            # Indexing a non-list yields ``any`` rather than an error.
            # Kept as observed; open for review.
            result = SubscriptExpression(
                result, index, core.list_element_type(result.type))
        return result

    def _visit_list_lit(self, node: Node, context: Context) -> ListLiteral:
        elements = self._args(node.children[1], context)
        if not elements:
            return ListLiteral([], core.list_type(ANY))
        first = elements[0]
        for element in elements[1:]:
            if element.type != first.type:
                raise TypeMismatchError(
                    "List elements must all have the same type", span_of(node),
                    expected=first.type.pretty(), actual=element.type.pretty())
        return ListLiteral(elements, core.list_type(first.type))

    def _visit_id(self, node: Node, context: Context) -> IRNode:
        name, span = self._name(node), span_of(node)
        entity = context.lookup(name, span)
        if isinstance(entity, Variable):
            return entity
        if isinstance(entity, BooleanLiteral):
            return BooleanLiteral(entity.value)
        raise TypeMismatchError(f"{name} is not a value", span)

    # ─────────────────────────────────────────────────────────────
    # Literals
    # ─────────────────────────────────────────────────────────────

    def _visit_float_lit(self, node: Node, context: Context) -> NumberLiteral:
        return NumberLiteral(float(node.children[0].text))

    def _visit_int_lit(self, node: Node, context: Context) -> NumberLiteral:
        return NumberLiteral(int(node.children[0].text))

    def _visit_string_lit(self, node: Node, context: Context) -> StringLiteral:
        return StringLiteral(node.children[0].text[1:-1])

    def _visit_bool_lit(self, node: Node, context: Context) -> BooleanLiteral:
        return BooleanLiteral(node.children[0].text == "true")
