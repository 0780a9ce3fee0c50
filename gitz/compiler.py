# gitz/compiler.py
"""
Compilation pipeline and its configuration.

``compile_source`` runs parse → analyze → optimize → generate and hands
back both the IR and the generated Python.  Each phase is timed and
logged; errors propagate as :class:`~gitz.errors.GitzError`.
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional

from gitz.analyzer import Analyzer
from gitz.core import Program
from gitz.generator import generate
from gitz.grammar import parse
from gitz.optimizer import optimize

__all__ = ["CompilerOptions", "CompilationResult", "analyze_source", "compile_source"]

logger = logging.getLogger(__name__)


@dataclass
class CompilerOptions:
    """Knobs for a compilation run."""
    optimize: bool = True
    indent: str = "    "

    def validate(self) -> List[str]:
        """Return a list of validation warnings (empty if valid)."""
        warnings: List[str] = []
        if not self.indent:
            warnings.append("indent must not be empty")
        elif self.indent.strip():
            warnings.append("indent must contain only whitespace")
        return warnings


@dataclass
class CompilationResult:
    program: Program
    code: str
    timings: Dict[str, float] = field(default_factory=dict)


@contextmanager
def _timed(phase: str, timings: Dict[str, float]) -> Iterator[None]:
    logger.debug("[%s] starting", phase)
    start = time.perf_counter()
    yield
    timings[phase] = time.perf_counter() - start
    logger.debug("[%s] completed in %.3fs", phase, timings[phase])


def analyze_source(source: str, options: Optional[CompilerOptions] = None) -> Program:
    """Parse, analyze and (optionally) optimize ``source`` into IR."""
    return _front_end(source, options or CompilerOptions(), {})


def _front_end(source: str, options: CompilerOptions, timings: Dict[str, float]) -> Program:
    with _timed("parse", timings):
        tree = parse(source)
    with _timed("analyze", timings):
        program = Analyzer().analyze(tree)
    if options.optimize:
        with _timed("optimize", timings):
            program = optimize(program)
    return program


def compile_source(source: str, options: Optional[CompilerOptions] = None) -> CompilationResult:
    """Compile Gitz source text to Python source text."""
    options = options or CompilerOptions()
    for warning in options.validate():
        logger.warning("compiler options: %s", warning)

    timings: Dict[str, float] = {}
    program = _front_end(source, options, timings)
    with _timed("generate", timings):
        code = generate(program, indent=options.indent)

    logger.info(
        "compiled %d statement(s) in %.3fs",
        len(program.statements), sum(timings.values()),
    )
    return CompilationResult(program=program, code=code, timings=timings)
