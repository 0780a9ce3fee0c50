# tests/test_optimizer.py
"""
Tests for the IR optimizer: folding, identities, dead-code removal and
idempotence.
"""

import copy

import pytest

from gitz.analyzer import analyze
from gitz.core import (
    BOOL,
    NUM,
    TEXT,
    Assignment,
    BinaryExpression,
    BooleanLiteral,
    Conditional,
    EmptyOptional,
    ForRangeStatement,
    ForStatement,
    FunctionDeclaration,
    IfStatement,
    ListLiteral,
    NumberLiteral,
    PrintStatement,
    Program,
    RepeatStatement,
    ShortIfStatement,
    StringLiteral,
    UnaryExpression,
    UserFunction,
    Variable,
    WhileStatement,
    list_type,
)
from gitz.optimizer import optimize
from tests.conftest import ALL_PROGRAMS


def _num(value):
    return NumberLiteral(value)


def _bin(op, left, right, t=NUM):
    return BinaryExpression(op, left, right, t)


def _say(text):
    return PrintStatement([StringLiteral(text)])


@pytest.fixture
def x():
    return Variable("x", NUM)


class TestConstantFolding:

    def test_addition(self):
        assert optimize(_bin("+", _num(3), _num(4))) == _num(7)

    @pytest.mark.parametrize("op, left, right, expected", [
        ("-", 10, 4, 6),
        ("*", 6, 7, 42),
        ("/", 7, 2, 3.5),
        ("**", 2, 10, 1024),
    ])
    def test_arithmetic(self, op, left, right, expected):
        assert optimize(_bin(op, _num(left), _num(right))) == _num(expected)

    @pytest.mark.parametrize("op, expected", [
        ("<", True), ("<=", True), ("==", False),
        ("!=", True), (">=", False), (">", False),
    ])
    def test_comparisons_fold_to_booleans(self, op, expected):
        assert optimize(_bin(op, _num(1), _num(2), BOOL)) == BooleanLiteral(expected)

    def test_nested_folding(self):
        tree = _bin("*", _bin("+", _num(2), _num(3)), _num(4))
        assert optimize(tree) == _num(20)

    def test_division_by_zero_left_alone(self):
        tree = _bin("/", _num(1), _num(0))
        result = optimize(tree)
        assert isinstance(result, BinaryExpression)
        assert result.op == "/"

    def test_overflow_left_alone(self):
        tree = _bin("**", _num(10.0), _num(1000))
        assert isinstance(optimize(tree), BinaryExpression)

    def test_infinite_result_left_alone(self):
        tree = _bin("*", _num(1e308), _num(10))
        assert isinstance(optimize(tree), BinaryExpression)

    def test_unary_minus_on_literal(self):
        assert optimize(UnaryExpression("-", _num(3), NUM)) == _num(-3)

    def test_modulo_not_folded(self):
        assert isinstance(optimize(_bin("%", _num(7), _num(3))), BinaryExpression)


class TestAlgebraicIdentities:

    def test_times_zero_right(self, x):
        assert optimize(_bin("*", x, _num(0))) == _num(0)

    def test_times_zero_left(self, x):
        assert optimize(_bin("*", _num(0), x)) == _num(0)

    def test_times_zero_with_non_constant_operand(self, x):
        tree = _bin("*", _bin("+", x, _num(1)), _num(0))
        assert optimize(tree) == _num(0)

    @pytest.mark.parametrize("op, left_is_x, literal", [
        ("+", True, 0),
        ("+", False, 0),
        ("*", True, 1),
        ("*", False, 1),
        ("/", True, 1),
    ])
    def test_identity_returns_operand(self, x, op, left_is_x, literal):
        tree = _bin(op, x, _num(literal)) if left_is_x else _bin(op, _num(literal), x)
        assert optimize(tree) is x

    def test_power_zero(self, x):
        assert optimize(_bin("**", x, _num(0))) == _num(1)

    def test_zero_minus(self, x):
        result = optimize(_bin("-", _num(0), x))
        assert result == UnaryExpression("-", x, NUM)

    def test_zero_over_x_kept(self, x):
        assert isinstance(optimize(_bin("/", _num(0), x)), BinaryExpression)

    def test_x_minus_zero_kept(self, x):
        assert isinstance(optimize(_bin("-", x, _num(0))), BinaryExpression)

    def test_logical_identities(self):
        b = Variable("b", BOOL)
        assert optimize(_bin("||", BooleanLiteral(False), b, BOOL)) is b
        assert optimize(_bin("||", b, BooleanLiteral(False), BOOL)) is b
        assert optimize(_bin("&&", BooleanLiteral(True), b, BOOL)) is b
        assert optimize(_bin("&&", b, BooleanLiteral(True), BOOL)) is b

    def test_empty_optional_coalesce(self):
        s = Variable("s", TEXT)
        assert optimize(_bin("??", EmptyOptional(TEXT), s, TEXT)) is s

    def test_conditional_with_literal_test(self, x):
        tree = Conditional(BooleanLiteral(True), x, _num(5), NUM)
        assert optimize(tree) is x
        tree = Conditional(BooleanLiteral(False), x, _num(5), NUM)
        assert optimize(tree) == _num(5)


class TestDeadCode:

    def test_if_false_takes_alternate(self):
        a, b = _say("A"), _say("B")
        assert optimize(IfStatement(BooleanLiteral(False), [a], [b])) == [b]

    def test_if_true_takes_consequent(self):
        a, b = _say("A"), _say("B")
        assert optimize(IfStatement(BooleanLiteral(True), [a], [b])) == [a]

    def test_if_false_without_alternate(self):
        assert optimize(IfStatement(BooleanLiteral(False), [_say("A")])) == []

    def test_if_false_with_nested_alternate(self, x):
        inner = IfStatement(_bin("<", x, _num(1), BOOL), [_say("B")])
        assert optimize(IfStatement(BooleanLiteral(False), [_say("A")], inner)) is inner

    def test_dead_else_if_leaves_no_alternate(self, x):
        dead = IfStatement(BooleanLiteral(False), [_say("B")])
        tree = optimize(IfStatement(_bin("<", x, _num(0), BOOL), [_say("A")], dead))
        assert isinstance(tree, IfStatement)
        assert tree.alternate is None

    def test_folded_test_selects_branch(self):
        tree = IfStatement(_bin("<", _num(1), _num(2), BOOL), [_say("A")], [_say("B")])
        assert optimize(tree) == [_say("A")]

    def test_short_if(self):
        assert optimize(ShortIfStatement(BooleanLiteral(False), [_say("A")])) == []
        assert optimize(ShortIfStatement(BooleanLiteral(True), [_say("A")])) == [_say("A")]

    def test_while_false(self):
        assert optimize(WhileStatement(BooleanLiteral(False), [_say("A")])) == []

    def test_while_true_kept(self):
        tree = WhileStatement(BooleanLiteral(True), [_say("A")])
        assert optimize(tree) is tree

    def test_repeat_zero(self):
        assert optimize(RepeatStatement(_num(0), [_say("A")])) == []

    def test_empty_range(self):
        i = Variable("i", NUM)
        assert optimize(ForRangeStatement(i, _num(5), "...", _num(1), [_say("A")])) == []

    def test_empty_collection(self):
        i = Variable("i", NUM)
        tree = ForStatement(i, ListLiteral([], list_type(NUM)), [_say("A")])
        assert optimize(tree) == []

    def test_self_assignment(self, x):
        assert optimize(Assignment(x, x)) == []

    def test_removed_statements_spliced_out_of_blocks(self):
        a, b = _say("A"), _say("B")
        program = Program([
            IfStatement(BooleanLiteral(False), [a], [b]),
            WhileStatement(BooleanLiteral(False), [a]),
            a,
        ])
        assert optimize(program).statements == [b, a]

    def test_function_bodies_are_optimized(self):
        fun = UserFunction("f", body=[WhileStatement(BooleanLiteral(False), [])])
        optimize(Program([FunctionDeclaration(fun)]))
        assert fun.body == []


class TestIdempotence:

    def _sample_tree(self):
        x = Variable("x", NUM)
        return Program([
            Assignment(x, _bin("+", _bin("*", x, _num(1)), _bin("+", _num(3), _num(4)))),
            IfStatement(
                _bin("<", _num(1), _num(2), BOOL),
                [WhileStatement(BooleanLiteral(False), [_say("never")])],
                [_say("else")],
            ),
            PrintStatement([_bin("-", _num(0), x), Conditional(BooleanLiteral(True), x, x, NUM)]),
        ])

    def test_hand_built_tree(self):
        once = optimize(copy.deepcopy(self._sample_tree()))
        twice = optimize(optimize(copy.deepcopy(self._sample_tree())))
        assert once == twice

    @pytest.mark.parametrize("src", ALL_PROGRAMS)
    def test_analyzed_programs(self, src):
        program = analyze(src)
        once = optimize(copy.deepcopy(program))
        twice = optimize(optimize(copy.deepcopy(program)))
        assert once == twice
