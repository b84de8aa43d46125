"""Two-pass semantic analyzer for `.pipe` modules.

Pass 1: Register every declared function signature.
Pass 2: Check each declaration's guard and body against its pattern
bindings and the known functions.

Diagnostics never block clause synthesis; the build pipeline refuses to
install a module with errors.
"""

from __future__ import annotations

from pipehammer.ast_nodes import Expr, Module, PipeDef
from pipehammer.clauses import FunctionSignature
from pipehammer.errors import Diagnostic, DiagnosticLabel, Severity
from pipehammer.normalizer import NormalizedDeclaration, normalize
from pipehammer.prelude import BUILTINS
from pipehammer.scope import dedupe_by_shape
from pipehammer.source import Span
from pipehammer.symbols import Symbol, SymbolKind, SymbolTable
from pipehammer.synthesizer import default_clause
from pipehammer.walk import function_calls, params_bindings, variable_references


class Checker:
    """Semantic analyzer for a single module."""

    def __init__(self) -> None:
        self.symbols = SymbolTable()
        self.diagnostics: list[Diagnostic] = []

    # ── Public API ──────────────────────────────────────────────

    def check(self, module: Module) -> SymbolTable:
        """Run both passes on a module. Raises nothing; check self.diagnostics."""
        normalized = [normalize(decl, i) for i, decl in enumerate(module.declarations)]

        # Pass 1: register all declarations
        for ndecl, decl in zip(normalized, module.declarations):
            self.symbols.define_function(ndecl.signature, decl.span)

        # Pass 2: check guards and bodies
        for ndecl, decl in zip(normalized, module.declarations):
            self._check_declaration(ndecl, decl)

        self._check_duplicates(normalized)
        return self.symbols

    def has_errors(self) -> bool:
        return any(d.severity == Severity.ERROR for d in self.diagnostics)

    # ── Error helpers ───────────────────────────────────────────

    def _error(self, code: str, message: str, span: Span, notes: list[str] | None = None) -> None:
        self.diagnostics.append(Diagnostic(
            severity=Severity.ERROR,
            code=code,
            message=message,
            labels=[DiagnosticLabel(span=span, message="")],
            notes=notes or [],
        ))

    def _warning(self, code: str, message: str, span: Span, notes: list[str] | None = None) -> None:
        self.diagnostics.append(Diagnostic(
            severity=Severity.WARNING,
            code=code,
            message=message,
            labels=[DiagnosticLabel(span=span, message="")],
            notes=notes or [],
        ))

    # ── Pass 2: Declarations ────────────────────────────────────

    def _check_declaration(self, ndecl: NormalizedDeclaration, decl: PipeDef) -> None:
        self.symbols.push_scope(str(ndecl.signature))
        for name, span in params_bindings(ndecl.params):
            existing = self.symbols.define(Symbol(name, SymbolKind.BINDING, span))
            if existing is not None:
                # a repeated name constrains both positions to equal values
                existing.used = True

        if ndecl.guard is not None:
            self._check_expr(ndecl.guard, in_guard=True)
        self._check_expr(ndecl.body, in_guard=False)

        self._check_unused()
        self.symbols.pop_scope()

    def _is_function_name(self, name: str) -> bool:
        return bool(self.symbols.arities(name)) or name in BUILTINS

    def _check_expr(self, expr: Expr, *, in_guard: bool) -> None:
        for ref in variable_references(expr):
            sym = self.symbols.lookup(ref.name)
            if sym is not None:
                sym.used = True
                if sym.anonymous:
                    self._warning(
                        "W330", f"anonymous binding '{ref.name}' is referenced", ref.span,
                        notes=["names starting with '_' match anything but bind nothing"],
                    )
                continue
            if self._is_function_name(ref.name):
                continue
            if in_guard:
                self._warning(
                    "W310", f"guard references '{ref.name}', which no pattern binds", ref.span,
                )
            else:
                self._error("E301", f"undefined variable '{ref.name}'", ref.span)

        for name, arity, span in function_calls(expr):
            sym = self.symbols.lookup(name)
            if sym is not None:
                sym.used = True
                continue
            self._check_call(name, arity, span)

    def _check_call(self, name: str, arity: int, span: Span) -> None:
        if self.symbols.resolve_function(name, arity) is not None:
            return
        builtin = BUILTINS.get(name)
        if builtin is not None and builtin.accepts(arity):
            return
        notes: list[str] = []
        arities = self.symbols.arities(name)
        if arities:
            known = ", ".join(str(FunctionSignature(name, a)) for a in arities)
            notes.append(f"declared as {known}")
        self._error("E300", f"undefined function '{name}/{arity}'", span, notes=notes)

    def _check_unused(self) -> None:
        """Warn about bindings the guard and body never use."""
        for sym in self.symbols.current_scope.all_symbols():
            if not sym.used and not sym.anonymous:
                self._warning(
                    "W300", f"unused binding '{sym.name}'", sym.span,
                    notes=[f"prefix it with '_' to silence: '_{sym.name}'"],
                )

    # ── Duplicates ──────────────────────────────────────────────

    def _check_duplicates(self, normalized: list[NormalizedDeclaration]) -> None:
        _, dropped = dedupe_by_shape(default_clause(nd) for nd in normalized)
        for clause in dropped:
            self._warning(
                "W320",
                f"declaration of {clause.signature} repeats an earlier one and is dropped",
                clause.head.span,
                notes=["an earlier clause with the same patterns and guard always wins"],
            )
