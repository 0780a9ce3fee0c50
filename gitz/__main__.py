#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
gitz/__main__.py
================

Command-line entry point for the Gitz compiler.

Usage
-----
    python -m gitz <command> [options] <source-file>

Commands
--------
    compile     Compile a Gitz program to Python
    check       Parse and analyze a program (no code generation)
    dump-ir     Print the (optionally optimized) IR as JSON

Pipeline
--------
    .gitz source
        │
        ▼
    ┌──────────┐
    │  Parser   │   parsimonious PEG → syntax tree
    └────┬─────┘
         ▼
    ┌──────────────┐
    │  Analyzer     │   scopes, types, control flow → typed IR
    └────┬─────────┘
         ▼
    ┌──────────────┐
    │  Optimizer    │   folding, identities, dead branches
    └────┬─────────┘
         ▼
    ┌──────────────┐
    │  Generator    │   IR → Python source
    └──────────────┘

Exit codes: 0 success, 1 compile error, 2 usage or I/O error.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import fields
from typing import Any, Optional, Sequence

from gitz import __version__
from gitz.compiler import CompilerOptions, analyze_source, compile_source
from gitz.core import FunctionDeclaration, IntrinsicFunction, IRNode, Type, UserFunction
from gitz.errors import GitzError

logger = logging.getLogger("gitz")

EXIT_OK = 0
EXIT_COMPILE_ERROR = 1
EXIT_USAGE = 2


# ═══════════════════════════════════════════════════════════════════════════
# SOURCE LOADING
# ═══════════════════════════════════════════════════════════════════════════

def _load_source(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    except FileNotFoundError:
        raise FileNotFoundError(f"Gitz source not found: {path}")
    except PermissionError:
        raise PermissionError(f"Cannot read Gitz source: {path}")
    except UnicodeDecodeError as e:
        raise ValueError(f"Gitz source is not valid UTF-8: {path} ({e})")


def _report(error: GitzError, filename: str, as_json: bool = False) -> None:
    if as_json:
        payload = dict(error.to_json(), file=filename)
        sys.stdout.write(json.dumps(payload, ensure_ascii=False) + "\n")
    else:
        sys.stderr.write(f"{filename}:{error} [{error.code}]\n")


# ═══════════════════════════════════════════════════════════════════════════
# IR DUMPER
# ═══════════════════════════════════════════════════════════════════════════

def ir_to_json(node: Any) -> Any:
    """JSON-friendly rendering of an IR tree."""
    if isinstance(node, list):
        return [ir_to_json(n) for n in node]
    if isinstance(node, Type):
        return node.pretty()
    if isinstance(node, IntrinsicFunction):
        return {"kind": "IntrinsicFunction", "name": node.name}
    if isinstance(node, UserFunction):
        return {"kind": "UserFunction", "name": node.name}
    if isinstance(node, IRNode):
        result = {"kind": type(node).__name__}
        for f in fields(node):
            result[f.name] = ir_to_json(getattr(node, f.name))
        if isinstance(node, FunctionDeclaration):
            fun = node.fun
            result["fun"] = {
                "kind": "UserFunction",
                "name": fun.name,
                "params": ir_to_json(fun.params),
                "return_type": fun.return_type.pretty(),
                "body": ir_to_json(fun.body),
            }
        return result
    return node


# ═══════════════════════════════════════════════════════════════════════════
# COMMAND HANDLERS
# ═══════════════════════════════════════════════════════════════════════════

def cmd_compile(args: argparse.Namespace) -> int:
    """Handle the 'compile' command."""
    try:
        source = _load_source(args.input)
    except (FileNotFoundError, PermissionError, ValueError) as e:
        sys.stderr.write(f"error: {e}\n")
        return EXIT_USAGE

    options = CompilerOptions(optimize=not args.no_optimize)
    try:
        result = compile_source(source, options)
    except GitzError as e:
        _report(e, args.input)
        return EXIT_COMPILE_ERROR

    if args.output:
        try:
            with open(args.output, "w", encoding="utf-8") as f:
                f.write(result.code)
        except OSError as e:
            sys.stderr.write(f"error: cannot write {args.output}: {e}\n")
            return EXIT_USAGE
        logger.info("wrote %s", args.output)
    else:
        sys.stdout.write(result.code)
    return EXIT_OK


def cmd_check(args: argparse.Namespace) -> int:
    """Handle the 'check' command (parse + analyze, no codegen)."""
    try:
        source = _load_source(args.input)
    except (FileNotFoundError, PermissionError, ValueError) as e:
        sys.stderr.write(f"error: {e}\n")
        return EXIT_USAGE

    try:
        analyze_source(source, CompilerOptions(optimize=False))
    except GitzError as e:
        _report(e, args.input, as_json=args.json)
        return EXIT_COMPILE_ERROR

    if args.json:
        sys.stdout.write(json.dumps({"file": args.input, "ok": True}) + "\n")
    else:
        sys.stderr.write(f"{args.input}: ok\n")
    return EXIT_OK


def cmd_dump_ir(args: argparse.Namespace) -> int:
    """Handle the 'dump-ir' command."""
    try:
        source = _load_source(args.input)
    except (FileNotFoundError, PermissionError, ValueError) as e:
        sys.stderr.write(f"error: {e}\n")
        return EXIT_USAGE

    try:
        program = analyze_source(source, CompilerOptions(optimize=not args.no_optimize))
    except GitzError as e:
        _report(e, args.input)
        return EXIT_COMPILE_ERROR

    json.dump(ir_to_json(program), sys.stdout, indent=args.indent, ensure_ascii=False)
    sys.stdout.write("\n")
    return EXIT_OK


# ═══════════════════════════════════════════════════════════════════════════
# ARGUMENT PARSER
# ═══════════════════════════════════════════════════════════════════════════

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gitz",
        description="Compile Gitz programs to Python.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Log pipeline progress (-vv for debug detail)",
    )
    subparsers = parser.add_subparsers(dest="command", metavar="<command>")

    # ── compile ──────────────────────────────────────────────────────────

    p_compile = subparsers.add_parser(
        "compile",
        help="Compile a Gitz program to Python",
    )
    p_compile.add_argument(
        "input",
        help="Input Gitz source file (use '-' for stdin)",
    )
    p_compile.add_argument(
        "-o", "--output",
        default=None,
        help="Output file path (default: stdout)",
    )
    p_compile.add_argument(
        "--no-optimize",
        action="store_true",
        default=False,
        help="Skip the IR optimizer",
    )
    p_compile.set_defaults(func=cmd_compile)

    # ── check ────────────────────────────────────────────────────────────

    p_check = subparsers.add_parser(
        "check",
        help="Parse and analyze a program without generating code",
    )
    p_check.add_argument(
        "input",
        help="Input Gitz source file (use '-' for stdin)",
    )
    p_check.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Report the result as JSON on stdout",
    )
    p_check.set_defaults(func=cmd_check)

    # ── dump-ir ──────────────────────────────────────────────────────────

    p_dump = subparsers.add_parser(
        "dump-ir",
        help="Print the typed IR as JSON",
    )
    p_dump.add_argument(
        "input",
        help="Input Gitz source file (use '-' for stdin)",
    )
    p_dump.add_argument(
        "--no-optimize",
        action="store_true",
        default=False,
        help="Dump the IR as produced by the analyzer",
    )
    p_dump.add_argument(
        "--indent",
        type=int,
        default=2,
        help="JSON indentation width (default: 2)",
    )
    p_dump.set_defaults(func=cmd_dump_ir)

    return parser


# ═══════════════════════════════════════════════════════════════════════════
# MAIN
# ═══════════════════════════════════════════════════════════════════════════

def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the Gitz CLI.

    Parameters
    ----------
    argv : sequence of str, optional
        Command-line arguments. Defaults to sys.argv[1:].

    Returns
    -------
    int
        Exit code (0 = success, non-zero = failure).
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return EXIT_USAGE

    _configure_logging(args.verbose)

    try:
        return args.func(args)
    except KeyboardInterrupt:
        sys.stderr.write("\nInterrupted.\n")
        return 130


if __name__ == "__main__":
    sys.exit(main())
