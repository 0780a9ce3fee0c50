# tests/conftest.py
"""
Shared Gitz sources and helpers for the test suite.
"""

import pytest

from gitz.compiler import CompilerOptions, compile_source


# ═══════════════════════════════════════════════════════════════════════════
#  SOURCES
# ═══════════════════════════════════════════════════════════════════════════

COUNTER_GITZ = """
Make x: num = 0;
Keep x smaller 10 {
    x = x plus 1;
}
"""

GREET_GITZ = """
Show greet(name: text) -> text {
    give "Hello " plus name;
}
"""

FIB_GITZ = """
// Fibonacci, iteratively
Show fib(n: num) -> num {
    Make a: num = 0;
    Make b: num = 1;
    Keep i in range(0, n) {
        Make t: num = a plus b;
        a = b;
        b = t;
    }
    give a;
}
say(fib(10));
"""

FACTORIAL_GITZ = """
Show fact(n: num) -> num {
    When n smaller 2 {
        give 1;
    }
    give n times fact(n minus 1);
}
say(fact(5));
"""

CLASSIFY_GITZ = """
Show classify(n: num) -> text {
    When n smaller 0 {
        give "negative";
    } orWhen n equal 0 {
        give "zero";
    } orElse {
        give "positive";
    }
}
say(classify(minus 5));
say(classify(0));
say(classify(7));
"""

GLOBAL_COUNTER_GITZ = """
Make total: num = 0;
Show add(n: num) {
    total = total plus n;
}
add(3);
add(4);
say(total);
"""

NESTED_COUNTER_GITZ = """
Show outer() -> num {
    Make count: num = 0;
    Show bump() {
        count = count plus 1;
    }
    bump();
    bump();
    give count;
}
say(outer());
"""

LOOP_CONTROL_GITZ = """
Make xs: list<num> = [1, 2, 3, 4, 5];
Keep x in xs {
    When x equal 2 {
        Skip;
    }
    When x equal 4 {
        Break;
    }
    say(x);
}
"""

TRY_CATCH_GITZ = """
Make zero: num = 0;
Try {
    say(1 over zero);
} Catch e {
    say("error: " plus e);
}
"""

GRID_GITZ = """
Make grid: list<list<num>> = [[1, 2], [3, 4]];
grid[1][0] = 9;
say(grid[1][0] plus grid[0][1]);
"""

MATH_GITZ = """
Make r: num = 2;
say(sqrt(16));
say(hypot(3, 4));
say(π times r times r);
"""

ALL_PROGRAMS = [
    COUNTER_GITZ,
    GREET_GITZ,
    FIB_GITZ,
    FACTORIAL_GITZ,
    CLASSIFY_GITZ,
    GLOBAL_COUNTER_GITZ,
    NESTED_COUNTER_GITZ,
    LOOP_CONTROL_GITZ,
    TRY_CATCH_GITZ,
    GRID_GITZ,
    MATH_GITZ,
]


# ═══════════════════════════════════════════════════════════════════════════
#  HELPERS
# ═══════════════════════════════════════════════════════════════════════════

def run_gitz(source: str, optimize: bool = True) -> dict:
    """Compile ``source`` and exec the result; returns the namespace."""
    code = compile_source(source, CompilerOptions(optimize=optimize)).code
    ns = {}
    exec(compile(code, "<gitz>", "exec"), ns)
    return ns


@pytest.fixture
def gitz_file(tmp_path):
    """Write a Gitz source to a temporary file and return its path."""
    def _write(source: str, name: str = "prog.gitz") -> str:
        path = tmp_path / name
        path.write_text(source, encoding="utf-8")
        return str(path)
    return _write
