"""Shared test helpers for the pipehammer test suite."""

from __future__ import annotations

from pipehammer.ast_nodes import Module, PipeDef
from pipehammer.build import load
from pipehammer.checker import Checker
from pipehammer.clauses import SynthesizedClause
from pipehammer.formatter import PipeFormatter
from pipehammer.lexer import Lexer
from pipehammer.normalizer import NormalizedDeclaration, normalize
from pipehammer.parser import Parser
from pipehammer.runtime import Program
from pipehammer.scope import finalize_scope
from pipehammer.symbols import SymbolTable


def parse(source: str) -> Module:
    """Lex and parse source into a Module."""
    tokens = Lexer(source, "<test>").lex()
    return Parser(tokens, "<test>").parse()


def parse_decl(source: str) -> PipeDef:
    """Parse a source holding exactly one declaration."""
    module = parse(source)
    assert len(module.declarations) == 1, module.declarations
    return module.declarations[0]


def normalized(source: str, order: int = 0) -> NormalizedDeclaration:
    return normalize(parse_decl(source), order)


def clauses_of(source: str) -> tuple[SynthesizedClause, ...]:
    """Finalized clauses of every declaration in source."""
    return finalize_scope(parse(source).declarations, "<test>")


def listing(source: str) -> list[str]:
    """Expanded clause listing of source, one entry per clause line."""
    text = PipeFormatter().format_clauses(clauses_of(source))
    return [line for line in text.splitlines() if line.startswith("def ")]


def program(source: str) -> Program:
    """Compile source into a Program, asserting no errors."""
    return load(source, "<test>")


def check(source: str) -> SymbolTable:
    """Parse and check source, asserting no errors. Returns symbol table."""
    checker = Checker()
    st = checker.check(parse(source))
    errors = [d for d in checker.diagnostics if d.severity.value == "error"]
    assert not errors, f"Unexpected errors: {[f'{d.code}: {d.message}' for d in errors]}"
    return st


def check_fails(source: str, error_code: str) -> list:
    """Parse and check source, asserting the given error code appears."""
    checker = Checker()
    checker.check(parse(source))
    matching = [d for d in checker.diagnostics if d.code == error_code]
    assert matching, (
        f"Expected error {error_code} but got: "
        f"{[f'{d.code}: {d.message}' for d in checker.diagnostics] or 'no diagnostics'}"
    )
    return matching


def check_warns(source: str, warning_code: str) -> list:
    """Parse and check source, asserting the given warning code appears."""
    checker = Checker()
    checker.check(parse(source))
    matching = [d for d in checker.diagnostics if d.code == warning_code]
    assert matching, (
        f"Expected warning {warning_code} but got: "
        f"{[f'{d.code}: {d.message}' for d in checker.diagnostics] or 'no diagnostics'}"
    )
    return matching


def codes(source: str) -> list[str]:
    """All diagnostic codes the checker reports for source."""
    checker = Checker()
    checker.check(parse(source))
    return [d.code for d in checker.diagnostics]
