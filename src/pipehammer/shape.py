"""Binding-name-independent structural signatures of clauses.

Two clauses with equal shapes dispatch identically: same function, same
kind, same patterns and guard up to a consistent renaming of variables.
Bodies never take part.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any

from pipehammer.ast_nodes import (
    AliasPattern,
    BindingPattern,
    Expr,
    IdentifierExpr,
    LambdaExpr,
    ListPattern,
    LiteralPattern,
    MapPattern,
    Pattern,
    RecordPattern,
    ResultPattern,
    TuplePattern,
    WildcardPattern,
)
from pipehammer.clauses import ClauseKind, FunctionSignature, SynthesizedClause

BODY_MARKER = ("body",)


@dataclass(frozen=True)
class ShapeSignature:
    signature: FunctionSignature
    kind: ClauseKind
    tree: tuple


class _Canonicalizer:
    """Numbers variables by first visitation while encoding a clause."""

    def __init__(self) -> None:
        self.placeholders: dict[str, int] = {}
        self.counter = 0

    def _next(self) -> tuple[str, int]:
        index = self.counter
        self.counter += 1
        return ("var", index)

    def _named(self, name: str) -> tuple[str, int]:
        if name.startswith("_"):
            return self._next()
        if name not in self.placeholders:
            self.placeholders[name] = self.counter
            self.counter += 1
        return ("var", self.placeholders[name])

    def pattern(self, p: Pattern) -> tuple:
        if isinstance(p, LiteralPattern):
            return ("lit", type(p.value).__name__, p.value)
        if isinstance(p, WildcardPattern):
            return ("_",)
        if isinstance(p, BindingPattern):
            return self._named(p.name)
        if isinstance(p, TuplePattern):
            return ("tuple", tuple(self.pattern(e) for e in p.elements))
        if isinstance(p, ListPattern):
            elements = tuple(self.pattern(e) for e in p.elements)
            tail = self.pattern(p.tail) if p.tail is not None else None
            return ("list", elements, tail)
        if isinstance(p, MapPattern):
            return ("map", tuple((k, self.pattern(v)) for k, v in p.entries))
        if isinstance(p, RecordPattern):
            return ("record", p.tag, tuple((k, self.pattern(v)) for k, v in p.entries))
        if isinstance(p, ResultPattern):
            return ("result", p.tag, self.pattern(p.inner))
        if isinstance(p, AliasPattern):
            inner = self.pattern(p.pattern)
            return ("alias", inner, self._named(p.name))
        raise TypeError(f"unknown pattern node: {type(p).__name__}")

    def expr(self, e: Expr) -> tuple:
        if isinstance(e, IdentifierExpr):
            if e.name in self.placeholders:
                return ("var", self.placeholders[e.name])
            return ("name", e.name)
        if isinstance(e, LambdaExpr):
            params = tuple(self._named(p) for p in e.params)
            return ("fn", params, self.expr(e.body))
        parts: list[Any] = [type(e).__name__]
        for f in dataclasses.fields(e):
            if f.name == "span":
                continue
            parts.append(self._value(getattr(e, f.name)))
        return tuple(parts)

    def _value(self, value: Any) -> Any:
        if dataclasses.is_dataclass(value):
            return self.expr(value)
        if isinstance(value, (list, tuple)):
            return tuple(self._value(v) for v in value)
        return (type(value).__name__, value)


def shape(clause: SynthesizedClause) -> ShapeSignature:
    """Compute the shape of a clause; total over every well-formed clause."""
    canon = _Canonicalizer()
    params = tuple(canon.pattern(p) for p in clause.params)
    guard = canon.expr(clause.guard) if clause.guard is not None else None
    return ShapeSignature(clause.signature, clause.kind, (params, guard, BODY_MARKER))
