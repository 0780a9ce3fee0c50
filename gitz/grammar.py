# gitz/grammar.py
"""
Gitz grammar (Parsimonious PEG) and the ``parse`` front end.

``parse(source)`` returns the parsimonious concrete syntax tree; the
analyzer walks it directly, dispatching on ``node.expr_name``.  Every
token rule swallows the whitespace and ``//`` comments that follow it,
so rules never have to mention layout.

Example::

    Make x: num = 0;
    Keep x smaller 10 {
        x = x plus 1;
    }
    Show greet(name: text) -> text {
        give "Hello " plus name;
    }
"""

from __future__ import annotations

import logging
from typing import Iterator, List, Optional

from parsimonious.exceptions import IncompleteParseError, ParseError
from parsimonious.grammar import Grammar
from parsimonious.nodes import Node

from gitz.errors import GitzSyntaxError, SourceSpan

__all__ = [
    "GITZ_GRAMMAR",
    "RESERVED_WORDS",
    "parse",
    "span_of",
    "find",
    "find_all",
]

logger = logging.getLogger(__name__)

# The ``id`` rule's negative lookahead is built from this tuple.
RESERVED_WORDS = (
    "Make", "Show", "When", "orWhen", "orElse", "Keep", "in", "Try",
    "Catch", "Break", "Skip", "give",
    "plus", "minus", "times", "over", "mod", "power",
    "equal", "notSame", "smallerOrEqual", "smaller", "biggerOrEqual",
    "bigger", "and", "or", "not",
)


# ═══════════════════════════════════════════════════════════════════
#  GRAMMAR
# ═══════════════════════════════════════════════════════════════════

GITZ_GRAMMAR = Grammar(r'''
    # ─────────────────────────────────────────────────────────────
    # Statements
    # ─────────────────────────────────────────────────────────────

    program         = _ statement*

    statement       = var_decl / fun_decl / if_stmt / for_stmt / while_stmt
                    / try_stmt / return_stmt / break_stmt / continue_stmt
                    / print_stmt / assign_stmt / call_stmt

    var_decl        = MAKE id COLON type initializer? SEMI
    initializer     = ASSIGN exp

    fun_decl        = SHOW id LPAREN params? RPAREN return_type? block
    params          = param (COMMA param)*
    param           = id COLON type
    return_type     = ARROW type

    block           = LBRACE statement* RBRACE

    if_stmt         = WHEN exp block else_if* else_clause?
    else_if         = ORWHEN exp block
    else_clause     = ORELSE block

    for_stmt        = KEEP id IN exp block
    while_stmt      = KEEP exp block
    try_stmt        = TRY block CATCH id block

    return_stmt     = GIVE exp? SEMI
    break_stmt      = BREAK SEMI
    continue_stmt   = SKIP SEMI
    print_stmt      = SAY LPAREN args? RPAREN SEMI
    assign_stmt     = primary ASSIGN exp SEMI
    call_stmt       = call SEMI

    args            = exp (COMMA exp)*

    # ─────────────────────────────────────────────────────────────
    # Types
    # ─────────────────────────────────────────────────────────────

    type            = list_type / id
    list_type       = LIST ((LANGLE type RANGLE) / (LBRACKET type RBRACKET))

    # ─────────────────────────────────────────────────────────────
    # Expressions (lowest precedence first)
    # ─────────────────────────────────────────────────────────────

    exp             = and_exp (OR and_exp)*
    and_exp         = eq_exp (AND eq_exp)*
    eq_exp          = rel_exp (eq_op rel_exp)*
    rel_exp         = add_exp (rel_op add_exp)*
    add_exp         = mul_exp (add_op mul_exp)*
    mul_exp         = unary_exp (mul_op unary_exp)*
    unary_exp       = negation / primary
    negation        = unary_op unary_exp

    primary         = paren_exp / call / subscript / float_lit / int_lit
                    / string_lit / list_lit / bool_lit / id
    paren_exp       = LPAREN exp RPAREN
    call            = id LPAREN args? RPAREN
    subscript       = id index+
    index           = LBRACKET exp RBRACKET
    list_lit        = LBRACKET args? RBRACKET

    # ─────────────────────────────────────────────────────────────
    # Tokens
    # ─────────────────────────────────────────────────────────────

    float_lit       = ~r"\d+\.\d+(?:[eE][+-]?\d+)?" _
    int_lit         = ~r"\d+" _
    string_lit      = ~r'"[^"\n]*"' _
    bool_lit        = ~r"(?:true|false)\b" _

    eq_op           = ~r"(?:equal|notSame)\b" _
    rel_op          = ~r"(?:smallerOrEqual|smaller|biggerOrEqual|bigger)\b" _
    add_op          = ~r"(?:plus|minus)\b" _
    mul_op          = ~r"(?:times|over|mod|power)\b" _
    unary_op        = ~r"(?:minus|not)\b" _
    OR              = ~r"or\b" _
    AND             = ~r"and\b" _

    MAKE            = ~r"Make\b" _
    SHOW            = ~r"Show\b" _
    WHEN            = ~r"When\b" _
    ORWHEN          = ~r"orWhen\b" _
    ORELSE          = ~r"orElse\b" _
    KEEP            = ~r"Keep\b" _
    IN              = ~r"in\b" _
    TRY             = ~r"Try\b" _
    CATCH           = ~r"Catch\b" _
    GIVE            = ~r"give\b" _
    BREAK           = ~r"Break\b" _
    SKIP            = ~r"Skip\b" _
    SAY             = ~r"say\b" _
    LIST            = ~r"list\b" _

    ARROW           = "->" _
    ASSIGN          = "=" _
    COLON           = ":" _
    SEMI            = ";" _
    COMMA           = "," _
    LPAREN          = "(" _
    RPAREN          = ")" _
    LBRACE          = "{" _
    RBRACE          = "}" _
    LBRACKET        = "[" _
    RBRACKET        = "]" _
    LANGLE          = "<" _
    RANGLE          = ">" _

    id              = ~r"(?!(?:%(reserved)s)\b)[^\W\d]\w*" _
    _               = ~r"(?:\s|//[^\n]*)*"
''' % {"reserved": "|".join(RESERVED_WORDS)})


# ═══════════════════════════════════════════════════════════════════
#  PARSE ENTRY POINT
# ═══════════════════════════════════════════════════════════════════

def parse(source: str) -> Node:
    """
    Parse Gitz source text into a concrete syntax tree.

    Raises :class:`GitzSyntaxError` carrying the line/column of the first
    piece of text the grammar could not consume.
    """
    try:
        tree = GITZ_GRAMMAR.parse(source)
    except IncompleteParseError as e:
        raise _syntax_error(e, source) from None
    except ParseError as e:
        raise _syntax_error(e, source) from None
    logger.debug("parsed %d characters", len(source))
    return tree


def _syntax_error(e: ParseError, source: str) -> GitzSyntaxError:
    excerpt = source[e.pos:].split("\n", 1)[0][:20]
    if excerpt:
        message = f"Syntax error: unexpected {excerpt!r}"
    else:
        message = "Syntax error: unexpected end of input"
    return GitzSyntaxError(
        message, SourceSpan(line=e.line(), column=e.column()))


# ═══════════════════════════════════════════════════════════════════
#  TREE HELPERS
# ═══════════════════════════════════════════════════════════════════

def span_of(node: Node) -> SourceSpan:
    """Line/column where ``node`` starts."""
    return SourceSpan.from_offset(node.full_text, node.start)


def find(node: Node, name: str) -> Optional[Node]:
    """First descendant (pre-order, ``node`` excluded) named ``name``."""
    for match in _walk_named(node, name):
        return match
    return None


def find_all(node: Node, name: str) -> List[Node]:
    """
    All descendants named ``name``, outermost only: the search does not
    continue below a match.
    """
    return list(_walk_named(node, name))


def _walk_named(node: Node, name: str) -> Iterator[Node]:
    for child in node.children:
        if child.expr_name == name:
            yield child
        else:
            yield from _walk_named(child, name)
