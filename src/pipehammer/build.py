"""Full pipeline: .pipe source -> finalized clauses -> installed Program."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from pipehammer.ast_nodes import Module
from pipehammer.checker import Checker
from pipehammer.clauses import SynthesizedClause
from pipehammer.errors import CompileError, Diagnostic, Severity
from pipehammer.lexer import Lexer
from pipehammer.parser import Parser
from pipehammer.runtime import Program
from pipehammer.scope import finalize_scope


@dataclass
class BuildResult:
    """Outcome of a build."""

    ok: bool
    program: Program | None = None
    module: Module | None = None
    clauses: tuple[SynthesizedClause, ...] = ()
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == Severity.ERROR]


def compile_source(source: str, filename: str = "<stdin>") -> BuildResult:
    """Run the full pipeline: lex -> parse -> check -> synthesize -> finalize -> install.

    Clauses are synthesized even when the checker reports errors, so they
    can still be inspected; the Program is only installed without errors.
    """
    try:
        tokens = Lexer(source, filename).lex()
        module = Parser(tokens, filename).parse()
    except CompileError as e:
        return BuildResult(ok=False, diagnostics=list(e.diagnostics))

    checker = Checker()
    checker.check(module)
    clauses = finalize_scope(module.declarations, filename)

    if checker.has_errors():
        return BuildResult(ok=False, module=module, clauses=clauses,
                           diagnostics=checker.diagnostics)
    return BuildResult(
        ok=True,
        program=Program(clauses, filename),
        module=module,
        clauses=clauses,
        diagnostics=checker.diagnostics,
    )


def compile_file(path: Path) -> BuildResult:
    return compile_source(path.read_text(), str(path))


def load(source: str, filename: str = "<stdin>") -> Program:
    """Compile `source` and return its Program; raises CompileError on errors."""
    result = compile_source(source, filename)
    if not result.ok:
        raise CompileError(result.errors)
    return result.program
