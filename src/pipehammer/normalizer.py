"""Split a declaration into its bare pattern sequence and a guard reattachment."""

from __future__ import annotations

from dataclasses import dataclass

from pipehammer.ast_nodes import Expr, FunctionHead, GuardedHead, Head, Pattern, PipeDef
from pipehammer.clauses import FunctionSignature
from pipehammer.source import GENERATED, Span


@dataclass(frozen=True)
class Reattach:
    """Rebuilds a head around a new pattern sequence.

    With a guard, the result is a `GuardedHead` carrying the original guard
    expression unchanged. Without one, it is a plain `FunctionHead`.
    """

    name: str
    guard: Expr | None = None
    span: Span = GENERATED

    def __call__(self, params: list[Pattern]) -> Head:
        head = FunctionHead(self.name, list(params), self.span)
        if self.guard is None:
            return head
        return GuardedHead(head, self.guard, self.span)


@dataclass(frozen=True)
class NormalizedDeclaration:
    signature: FunctionSignature
    params: list[Pattern]
    reattach: Reattach
    body: Expr
    order: int
    synthesize: bool = True

    @property
    def guard(self) -> Expr | None:
        return self.reattach.guard


def normalize(decl: PipeDef, order: int) -> NormalizedDeclaration:
    """Normalize a parsed declaration seen at position `order` in its scope."""
    head = decl.head
    if isinstance(head, GuardedHead):
        func = head.head
        reattach = Reattach(func.name, head.guard, head.span)
    else:
        func = head
        reattach = Reattach(func.name, None, head.span)
    return NormalizedDeclaration(
        signature=FunctionSignature(func.name, func.arity),
        params=list(func.params),
        reattach=reattach,
        body=decl.body,
        order=order,
        synthesize=decl.synthesize,
    )
