"""AST node definitions for `.pipe` declarations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from pipehammer.source import Span

# ── Patterns ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class LiteralPattern:
    value: object  # int, float, str, bool, None or values.Atom
    span: Span


@dataclass(frozen=True)
class WildcardPattern:
    span: Span


@dataclass(frozen=True)
class BindingPattern:
    name: str
    span: Span

    @property
    def anonymous(self) -> bool:
        """`_name` bindings match anything and bind nothing."""
        return self.name.startswith("_")


@dataclass(frozen=True)
class TuplePattern:
    elements: list[Pattern]
    span: Span


@dataclass(frozen=True)
class ListPattern:
    elements: list[Pattern]
    tail: Pattern | None  # `[h | t]`
    span: Span


@dataclass(frozen=True)
class MapPattern:
    entries: list[tuple[str, Pattern]]
    span: Span


@dataclass(frozen=True)
class RecordPattern:
    tag: str
    entries: list[tuple[str, Pattern]]
    span: Span


@dataclass(frozen=True)
class ResultPattern:
    tag: str  # "Ok" or "Error"
    inner: Pattern
    span: Span


@dataclass(frozen=True)
class AliasPattern:
    pattern: Pattern
    name: str
    span: Span


Pattern = Union[
    LiteralPattern, WildcardPattern, BindingPattern,
    TuplePattern, ListPattern, MapPattern, RecordPattern,
    ResultPattern, AliasPattern,
]


# ── Expressions ──────────────────────────────────────────────────


@dataclass(frozen=True)
class IntegerLit:
    value: int
    span: Span


@dataclass(frozen=True)
class DecimalLit:
    value: float
    span: Span


@dataclass(frozen=True)
class StringLit:
    value: str
    span: Span


@dataclass(frozen=True)
class AtomLit:
    name: str
    span: Span


@dataclass(frozen=True)
class BooleanLit:
    value: bool
    span: Span


@dataclass(frozen=True)
class NilLit:
    span: Span


@dataclass(frozen=True)
class IdentifierExpr:
    name: str
    span: Span


@dataclass(frozen=True)
class TypeIdentifierExpr:
    name: str
    span: Span


@dataclass(frozen=True)
class BinaryExpr:
    left: Expr
    op: str
    right: Expr
    span: Span


@dataclass(frozen=True)
class UnaryExpr:
    op: str
    operand: Expr
    span: Span


@dataclass(frozen=True)
class CallExpr:
    func: Expr
    args: list[Expr]
    span: Span


@dataclass(frozen=True)
class DelegateExpr(CallExpr):
    """A generated call that always dispatches to the named user function.

    Local bindings never shadow the callee.
    """


@dataclass(frozen=True)
class FieldExpr:
    obj: Expr
    field: str
    span: Span


@dataclass(frozen=True)
class PipeExpr:
    left: Expr
    right: Expr
    span: Span


@dataclass(frozen=True)
class AlternativeExpr:
    left: Expr
    right: Expr
    span: Span


@dataclass(frozen=True)
class ResultExpr:
    tag: str  # "Ok" or "Error"
    value: Expr
    span: Span


@dataclass(frozen=True)
class TupleLiteral:
    elements: list[Expr]
    span: Span


@dataclass(frozen=True)
class ListLiteral:
    elements: list[Expr]
    tail: Expr | None
    span: Span


@dataclass(frozen=True)
class MapLiteral:
    entries: list[tuple[str, Expr]]
    span: Span


@dataclass(frozen=True)
class RecordLiteral:
    tag: str
    entries: list[tuple[str, Expr]]
    span: Span


@dataclass(frozen=True)
class LambdaExpr:
    params: list[str]
    body: Expr
    span: Span


@dataclass(frozen=True)
class IfExpr:
    condition: Expr
    then_expr: Expr
    else_expr: Expr
    span: Span


Expr = Union[
    IntegerLit, DecimalLit, StringLit, AtomLit, BooleanLit, NilLit,
    IdentifierExpr, TypeIdentifierExpr,
    BinaryExpr, UnaryExpr, CallExpr, FieldExpr, PipeExpr, AlternativeExpr,
    ResultExpr, TupleLiteral, ListLiteral, MapLiteral, RecordLiteral,
    LambdaExpr, IfExpr,
]


# ── Declarations ─────────────────────────────────────────────────


@dataclass(frozen=True)
class FunctionHead:
    name: str
    params: list[Pattern]
    span: Span

    @property
    def arity(self) -> int:
        return len(self.params)


@dataclass(frozen=True)
class GuardedHead:
    head: FunctionHead
    guard: Expr
    span: Span


Head = Union[FunctionHead, GuardedHead]


@dataclass(frozen=True)
class PipeDef:
    head: Head
    body: Expr
    synthesize: bool  # False for plain `def` clauses
    doc_comment: str | None
    span: Span


@dataclass(frozen=True)
class Module:
    declarations: list[PipeDef]
    span: Span
