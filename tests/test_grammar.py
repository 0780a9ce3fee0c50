# tests/test_grammar.py
"""
Tests that the Gitz PEG grammar accepts the language's constructs and
that ``parse`` reports rejected input as a positioned syntax error.
"""

import pytest

from gitz.errors import ErrorKind, GitzSyntaxError
from gitz.grammar import GITZ_GRAMMAR, RESERVED_WORDS, find, find_all, parse, span_of
from tests.conftest import ALL_PROGRAMS


class TestGrammarWellFormed:

    def test_grammar_has_key_rules(self):
        for rule in ("program", "statement", "var_decl", "fun_decl",
                     "if_stmt", "for_stmt", "while_stmt", "try_stmt",
                     "exp", "primary", "type"):
            assert rule in GITZ_GRAMMAR, f"Rule {rule!r} missing"

    def test_default_rule_is_program(self):
        assert GITZ_GRAMMAR.default_rule.name == "program"


class TestGrammarAccepts:

    def test_empty_input(self):
        tree = parse("")
        assert tree.expr_name == "program"
        assert tree.children[1].children == []

    def test_whitespace_and_comments_only(self):
        tree = parse("  // nothing here\n\n   // still nothing\n")
        assert tree.children[1].children == []

    @pytest.mark.parametrize("src", [
        "Make x: num;",
        "Make x: num = 1;",
        "Make s: text = \"hi\";",
        "Make b: bool = true;",
        "Make xs: list<num> = [1, 2, 3];",
        "Make xs: list[num] = [];",
        "Make g: list<list<text>> = [[\"a\"]];",
        "Make f: num = 3.25;",
        "Make e: num = 1.5e3;",
        "Show f() {}",
        "Show f(a: num, b: text) -> bool { give true; }",
        "When true { } orWhen false { } orElse { }",
        "Keep x in xs { Break; Skip; }",
        "Keep true { }",
        "Try { } Catch e { }",
        "say();",
        "say(1, \"two\", false);",
        "x = 1;",
        "xs[0][1] = 2;",
        "f(1, 2);",
        "give;",
        "Make x: num = minus 1 plus not true;",
        "Make π2: num = π;",
    ])
    def test_statement_parses(self, src):
        tree = parse(src)
        assert len(tree.children[1].children) == 1

    @pytest.mark.parametrize("src", ALL_PROGRAMS)
    def test_sample_programs_parse(self, src):
        assert parse(src).expr_name == "program"

    def test_keyword_prefix_is_an_identifier(self):
        tree = parse("Make order: num = index;")
        ids = [n.children[0].text for n in find_all(tree, "id")]
        assert ids == ["order", "num", "index"]

    def test_operator_precedence_shape(self):
        tree = parse("Make x: num = 1 plus 2 times 3;")
        add = find(tree, "add_exp")
        # ``times`` binds inside the right operand of ``plus``
        assert len(add.children[1].children) == 1
        right_mul = add.children[1].children[0].children[1]
        assert right_mul.expr_name == "mul_exp"
        assert len(right_mul.children[1].children) == 1


class TestGrammarRejects:

    @pytest.mark.parametrize("src", [
        "Make x: num = ;",
        "Make x num = 1;",
        "Make x: num = 1",
        "When true say(1);",
        "Show f( { }",
        "Keep x in { }",
        "Make Keep: num = 1;",
        "Make s: text = \"unterminated;",
        "say(1 plus);",
    ])
    def test_invalid_source_raises(self, src):
        with pytest.raises(GitzSyntaxError) as exc_info:
            parse(src)
        assert exc_info.value.kind is ErrorKind.SYNTAX
        assert exc_info.value.code == "GITZ-1001"

    def test_error_position_points_at_failing_statement(self):
        src = "Make x: num = 1;\nMake y: num = ;\n"
        with pytest.raises(GitzSyntaxError) as exc_info:
            parse(src)
        assert exc_info.value.span.line == 2
        assert exc_info.value.span.column == 1
        assert "Make y" in exc_info.value.message

    def test_reserved_words_are_not_identifiers(self):
        for word in RESERVED_WORDS:
            with pytest.raises(GitzSyntaxError):
                parse(f"Make {word}: num = 1;")

    @pytest.mark.parametrize("word", RESERVED_WORDS)
    def test_reserved_word_prefix_is_an_identifier(self, word):
        tree = parse(f"Make {word}2: num = 1;")
        assert find(tree, "id").children[0].text == f"{word}2"


class TestTreeHelpers:

    def test_span_of_reports_line_and_column(self):
        tree = parse("Make x: num = 1;\n  say(x);")
        statement = find_all(tree, "print_stmt")[0]
        span = span_of(statement)
        assert (span.line, span.column) == (2, 3)

    def test_find_returns_none_when_absent(self):
        assert find(parse("say(1);"), "fun_decl") is None

    def test_find_all_stops_at_outermost_match(self):
        tree = parse("say(f(1, 2), 3);")
        args = find_all(tree, "args")
        assert len(args) == 1
