"""Per-scope clause accumulation and the final dedup-and-order pass.

Declarations are fed to a `DeclarationScope` in source order. Each one is
normalized and synthesized immediately, and its clauses are appended to the
`ClauseAccumulator`. Once every declaration is in, `finalize()` runs once
and yields the ordered clause tuple that a dispatcher tries top to bottom:
per function, error-passthrough clauses first, then ok-unwrap, then default.
"""

from __future__ import annotations

from collections.abc import Iterable

from pipehammer.ast_nodes import PipeDef
from pipehammer.clauses import ClauseKind, FunctionSignature, SynthesizedClause
from pipehammer.errors import ScopeFinalizedError
from pipehammer.normalizer import normalize
from pipehammer.shape import ShapeSignature, shape
from pipehammer.synthesizer import synthesize


class ClauseAccumulator:
    """Append-only clause lists, one per kind, in declaration order."""

    def __init__(self) -> None:
        self._clauses: dict[ClauseKind, list[SynthesizedClause]] = {
            kind: [] for kind in ClauseKind
        }

    def add(self, clause: SynthesizedClause) -> None:
        self._clauses[clause.kind].append(clause)

    def clauses(self, kind: ClauseKind) -> list[SynthesizedClause]:
        return list(self._clauses[kind])

    def __len__(self) -> int:
        return sum(len(c) for c in self._clauses.values())


def dedupe_by_shape(
    clauses: Iterable[SynthesizedClause],
) -> tuple[list[SynthesizedClause], list[SynthesizedClause]]:
    """Stable set-dedup: keep each shape's first clause, drop the rest.

    Returns `(kept, dropped)`, both in their original relative order.
    """
    seen: set[ShapeSignature] = set()
    kept: list[SynthesizedClause] = []
    dropped: list[SynthesizedClause] = []
    for clause in clauses:
        key = shape(clause)
        if key in seen:
            dropped.append(clause)
            continue
        seen.add(key)
        kept.append(clause)
    return kept, dropped


def finalize_clauses(
    default: Iterable[SynthesizedClause],
    ok_unwrap: Iterable[SynthesizedClause],
    error_passthrough: Iterable[SynthesizedClause],
) -> tuple[SynthesizedClause, ...]:
    """Order the clauses of one scope for dispatch."""
    default_kept, _ = dedupe_by_shape(default)
    ok_kept, _ = dedupe_by_shape(ok_unwrap)
    error_kept, _ = dedupe_by_shape(error_passthrough)

    # dict preserves first-insertion order
    functions: dict[FunctionSignature, None] = {}
    for clause in default_kept:
        functions.setdefault(clause.signature, None)

    ordered: list[SynthesizedClause] = []
    for signature in functions:
        for group in (error_kept, ok_kept, default_kept):
            ordered.extend(c for c in group if c.signature == signature)
    return tuple(ordered)


class DeclarationScope:
    """Build context for one declaration unit (one `.pipe` source)."""

    def __init__(self, name: str = "<scope>") -> None:
        self.name = name
        self.accumulator = ClauseAccumulator()
        self._next_order = 0
        self._finalized: tuple[SynthesizedClause, ...] | None = None

    @property
    def finalized(self) -> bool:
        return self._finalized is not None

    def declare(self, decl: PipeDef) -> list[SynthesizedClause]:
        """Process one declaration; returns the clauses it synthesized."""
        if self.finalized:
            raise ScopeFinalizedError(f"scope {self.name} is already finalized")
        ndecl = normalize(decl, self._next_order)
        self._next_order += 1
        clauses = synthesize(ndecl)
        for clause in clauses:
            self.accumulator.add(clause)
        return clauses

    def finalize(self) -> tuple[SynthesizedClause, ...]:
        if self.finalized:
            raise ScopeFinalizedError(f"scope {self.name} is already finalized")
        acc = self.accumulator
        self._finalized = finalize_clauses(
            acc.clauses(ClauseKind.DEFAULT),
            acc.clauses(ClauseKind.OK_UNWRAP),
            acc.clauses(ClauseKind.ERROR_PASSTHROUGH),
        )
        return self._finalized


def finalize_scope(declarations: Iterable[PipeDef], name: str = "<scope>") -> tuple[SynthesizedClause, ...]:
    """Declarations in source order to the ordered clause list."""
    scope = DeclarationScope(name)
    for decl in declarations:
        scope.declare(decl)
    return scope.finalize()
