"""gitz — a small statically-typed teaching language compiled to Python.

Submodules
----------
errors
    Exception hierarchy with a closed ``ErrorKind`` taxonomy, structured
    ``GITZ-NNNN`` codes and ``SourceSpan`` positions.

core
    Type model (``num``, ``text``, ``bool``, ``void``, ``any``, lists,
    function signatures), symbols, IR node classes and the standard
    library table.

context
    Lexical scope chain used during analysis.

grammar
    Parsimonious PEG grammar and the ``parse`` front end.

analyzer
    Syntax tree → typed IR, with scope, type and control-flow checks.

optimizer
    Constant folding, algebraic identities and dead-code elimination.

generator
    IR → Python source.

compiler
    ``CompilerOptions`` and the ``compile_source`` pipeline.

Usage
-----
Command-line::

    python -m gitz compile hello.gitz -o hello.py
    python -m gitz check hello.gitz --json
    python -m gitz dump-ir hello.gitz

Programmatic::

    from gitz.compiler import compile_source

    result = compile_source('Make x: num = 1 plus 2; say(x);')
    exec(result.code)
"""

from __future__ import annotations

__version__: str = "0.1.0"
__all__: list[str] = [
    "analyzer",
    "compiler",
    "context",
    "core",
    "errors",
    "generator",
    "grammar",
    "optimizer",
    "visitor",
]
