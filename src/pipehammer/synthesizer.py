"""Derive the Default, ErrorPassthrough and OkUnwrap clauses of a declaration.

A declaration `pipe f(p1, ..., pn) when g -> body` expands to:

    def f(Error(e), _, ..., _) -> Error(e)                  # error-passthrough
    def f(Ok(x), p2', ..., pn') when g -> f(x, a2, ..., an)  # ok-unwrap
    def f(p1, ..., pn) when g -> body                       # default

where `p2'..pn'` are the remaining patterns with anonymous bindings given
real names, and `a2..an` the names each remaining argument is bound to.
"""

from __future__ import annotations

import itertools
from collections.abc import Callable

from pipehammer.ast_nodes import (
    AliasPattern,
    BindingPattern,
    DelegateExpr,
    IdentifierExpr,
    ListPattern,
    MapPattern,
    Pattern,
    RecordPattern,
    ResultExpr,
    ResultPattern,
    TuplePattern,
    WildcardPattern,
)
from pipehammer.clauses import ClauseKind, SynthesizedClause
from pipehammer.normalizer import NormalizedDeclaration, Reattach
from pipehammer.source import GENERATED
from pipehammer.walk import identifier_names, params_bindings


class NameSupply:
    """Hands out variable names not already used by a declaration."""

    def __init__(self, taken: set[str]) -> None:
        self.taken = set(taken)

    def fresh(self, base: str) -> str:
        if base not in self.taken:
            self.taken.add(base)
            return base
        return self.numbered(base)

    def numbered(self, base: str) -> str:
        for i in itertools.count(1):
            name = f"{base}{i}"
            if name not in self.taken:
                self.taken.add(name)
                return name
        raise AssertionError("unreachable")


def taken_names(ndecl: NormalizedDeclaration) -> set[str]:
    names = {name for name, _ in params_bindings(ndecl.params)}
    names.add(ndecl.signature.name)
    if ndecl.guard is not None:
        names |= identifier_names(ndecl.guard)
    return names


def ununderscore(pattern: Pattern, new_name: Callable[[], str]) -> Pattern:
    """Give every anonymous binding inside `pattern` a real name."""
    if isinstance(pattern, BindingPattern):
        if pattern.anonymous:
            return BindingPattern(new_name(), pattern.span)
        return pattern
    if isinstance(pattern, TuplePattern):
        return TuplePattern([ununderscore(p, new_name) for p in pattern.elements], pattern.span)
    if isinstance(pattern, ListPattern):
        tail = ununderscore(pattern.tail, new_name) if pattern.tail is not None else None
        return ListPattern([ununderscore(p, new_name) for p in pattern.elements], tail, pattern.span)
    if isinstance(pattern, MapPattern):
        return MapPattern([(k, ununderscore(p, new_name)) for k, p in pattern.entries], pattern.span)
    if isinstance(pattern, RecordPattern):
        return RecordPattern(
            pattern.tag, [(k, ununderscore(p, new_name)) for k, p in pattern.entries], pattern.span,
        )
    if isinstance(pattern, ResultPattern):
        return ResultPattern(pattern.tag, ununderscore(pattern.inner, new_name), pattern.span)
    if isinstance(pattern, AliasPattern):
        name = new_name() if pattern.name.startswith("_") else pattern.name
        return AliasPattern(ununderscore(pattern.pattern, new_name), name, pattern.span)
    return pattern


def default_clause(ndecl: NormalizedDeclaration) -> SynthesizedClause:
    return SynthesizedClause(
        kind=ClauseKind.DEFAULT,
        signature=ndecl.signature,
        head=ndecl.reattach(ndecl.params),
        body=ndecl.body,
        order=ndecl.order,
    )


def error_passthrough_clause(ndecl: NormalizedDeclaration) -> SynthesizedClause:
    """`f(Error(e), _, ...) -> Error(e)`, with no guard."""
    payload = "e"
    params: list[Pattern] = [
        ResultPattern("Error", BindingPattern(payload, GENERATED), GENERATED),
    ]
    params.extend(WildcardPattern(GENERATED) for _ in ndecl.params[1:])
    body = ResultExpr("Error", IdentifierExpr(payload, GENERATED), GENERATED)
    head = Reattach(ndecl.signature.name)(params)
    return SynthesizedClause(
        kind=ClauseKind.ERROR_PASSTHROUGH,
        signature=ndecl.signature,
        head=head,
        body=body,
        order=ndecl.order,
    )


def ok_unwrap_clause(ndecl: NormalizedDeclaration) -> SynthesizedClause:
    """`f(Ok(x), p2', ...) when g -> f(x, a2, ...)`, delegating to `f`."""
    names = NameSupply(taken_names(ndecl))
    unwrapped = names.fresh("x")

    def new_name() -> str:
        return names.numbered("x")

    params: list[Pattern] = [
        ResultPattern("Ok", BindingPattern(unwrapped, GENERATED), GENERATED),
    ]
    args = [IdentifierExpr(unwrapped, GENERATED)]
    for original in ndecl.params[1:]:
        if isinstance(original, WildcardPattern):
            pattern: Pattern = BindingPattern(new_name(), original.span)
        else:
            pattern = ununderscore(original, new_name)
        if isinstance(pattern, (BindingPattern, AliasPattern)):
            arg_name = pattern.name
        else:
            arg_name = new_name()
            pattern = AliasPattern(pattern, arg_name, pattern.span)
        params.append(pattern)
        args.append(IdentifierExpr(arg_name, GENERATED))

    body = DelegateExpr(IdentifierExpr(ndecl.signature.name, GENERATED), args, GENERATED)
    return SynthesizedClause(
        kind=ClauseKind.OK_UNWRAP,
        signature=ndecl.signature,
        head=ndecl.reattach(params),
        body=body,
        order=ndecl.order,
    )


def synthesize(ndecl: NormalizedDeclaration) -> list[SynthesizedClause]:
    """All clauses for one declaration, Default first.

    Arity 0 and plain `def` declarations yield only the Default clause.
    """
    clauses = [default_clause(ndecl)]
    if not ndecl.synthesize or ndecl.signature.arity == 0:
        return clauses
    clauses.append(error_passthrough_clause(ndecl))
    clauses.append(ok_unwrap_clause(ndecl))
    return clauses
