"""Dispatch clauses produced by synthesis and consumed by the dispatcher."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

from pipehammer.ast_nodes import Expr, FunctionHead, GuardedHead, Head, Pattern


@dataclass(frozen=True)
class FunctionSignature:
    """Identifies a dispatch target by name and arity."""

    name: str
    arity: int

    def __str__(self) -> str:
        return f"{self.name}/{self.arity}"


class ClauseKind(Enum):
    DEFAULT = auto()
    ERROR_PASSTHROUGH = auto()
    OK_UNWRAP = auto()

    @property
    def label(self) -> str:
        return self.name.lower().replace("_", "-")


@dataclass(frozen=True)
class SynthesizedClause:
    """One (patterns, optional guard, body) alternative for a function."""

    kind: ClauseKind
    signature: FunctionSignature
    head: Head
    body: Expr
    order: int

    @property
    def function_head(self) -> FunctionHead:
        if isinstance(self.head, GuardedHead):
            return self.head.head
        return self.head

    @property
    def params(self) -> list[Pattern]:
        return self.function_head.params

    @property
    def guard(self) -> Expr | None:
        if isinstance(self.head, GuardedHead):
            return self.head.guard
        return None
