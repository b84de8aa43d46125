"""Dispatch table and ordered-clause dispatcher.

A `Program` installs the finalized clauses of a scope. Calling a function
tries its clauses top to bottom and runs the body of the first one whose
patterns match and whose guard, if any, evaluates to `true`.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from pipehammer.clauses import ClauseKind, FunctionSignature, SynthesizedClause
from pipehammer.errors import DispatchError, EvaluationError, UnboundNameError, UndefinedFunctionError
from pipehammer.evaluator import Environment, Evaluator
from pipehammer.matcher import match_params
from pipehammer.prelude import BUILTINS
from pipehammer.values import show


@dataclass(frozen=True)
class FunctionRef:
    """A user function or builtin referenced by name, any arity."""

    name: str
    program: Program

    def __call__(self, *args: Any) -> Any:
        return self.program.call(self.name, *args)


class Program:
    """The installed clauses of one scope, indexed by signature."""

    def __init__(self, clauses: Iterable[SynthesizedClause] = (), name: str = "<program>") -> None:
        self.name = name
        self._table: dict[FunctionSignature, list[SynthesizedClause]] = {}
        for clause in clauses:
            self._table.setdefault(clause.signature, []).append(clause)
        self.evaluator = Evaluator(self)

    # ── Introspection ────────────────────────────────────────────

    def signatures(self) -> list[FunctionSignature]:
        return list(self._table)

    def clauses(self, signature: FunctionSignature | None = None) -> tuple[SynthesizedClause, ...]:
        """Installed clauses, in dispatch order; all of them without a signature."""
        if signature is None:
            return tuple(c for group in self._table.values() for c in group)
        return tuple(self._table.get(signature, ()))

    def has_function(self, name: str, arity: int) -> bool:
        return FunctionSignature(name, arity) in self._table

    def defines(self, name: str) -> bool:
        return any(sig.name == name for sig in self._table)

    # ── Calling ──────────────────────────────────────────────────

    def call(self, name: str, *args: Any) -> Any:
        """Call a user function, falling back to a builtin of that name."""
        if self.has_function(name, len(args)):
            return self.dispatch(name, list(args))
        builtin = BUILTINS.get(name)
        if builtin is not None and builtin.accepts(len(args)):
            return builtin(*args)
        raise UndefinedFunctionError(name, len(args))

    def function(self, name: str) -> FunctionRef:
        if not self.defines(name) and name not in BUILTINS:
            raise UndefinedFunctionError(name, 0)
        return FunctionRef(name, self)

    def __getattr__(self, name: str) -> FunctionRef:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self.function(name)
        except UndefinedFunctionError:
            raise AttributeError(name) from None

    def dispatch(self, name: str, args: list[Any]) -> Any:
        """Run the first clause of `name/len(args)` that accepts `args`."""
        signature = FunctionSignature(name, len(args))
        clauses = self._table.get(signature)
        if clauses is None:
            raise UndefinedFunctionError(name, len(args))
        for clause in clauses:
            bindings = match_params(clause.params, args)
            if bindings is None:
                continue
            if clause.guard is not None and not self._guard_holds(clause, bindings):
                continue
            return self.evaluator.evaluate(clause.body, Environment(bindings))
        raise DispatchError(signature, tuple(args), ", ".join(show(a) for a in args))

    def _guard_holds(self, clause: SynthesizedClause, bindings: dict[str, Any]) -> bool:
        try:
            result = self.evaluator.evaluate(clause.guard, Environment(bindings))
        except UnboundNameError:
            # an ok-unwrap guard naming position 0's original binding is
            # decided by the clause the call delegates to
            return clause.kind is ClauseKind.OK_UNWRAP
        except EvaluationError:
            return False
        return result is True
