"""Symbol table with lexical scoping for the declaration checker."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

from pipehammer.clauses import FunctionSignature
from pipehammer.source import Span


class SymbolKind(Enum):
    BINDING = auto()
    LAMBDA_PARAM = auto()


@dataclass
class Symbol:
    name: str
    kind: SymbolKind
    span: Span
    used: bool = False

    @property
    def anonymous(self) -> bool:
        return self.name.startswith("_")


class Scope:
    """A single lexical scope level."""

    def __init__(self, parent: Scope | None = None, name: str = "") -> None:
        self.parent = parent
        self.name = name
        self._symbols: dict[str, Symbol] = {}

    def define(self, symbol: Symbol) -> Symbol | None:
        """Define a symbol in this scope. Returns existing symbol if duplicate."""
        existing = self._symbols.get(symbol.name)
        if existing is not None:
            return existing
        self._symbols[symbol.name] = symbol
        return None

    def lookup(self, name: str) -> Symbol | None:
        """Look up a name in this scope and all parent scopes."""
        sym = self._symbols.get(name)
        if sym is not None:
            return sym
        if self.parent is not None:
            return self.parent.lookup(name)
        return None

    def all_symbols(self) -> list[Symbol]:
        """Return all symbols defined in this scope."""
        return list(self._symbols.values())


class SymbolTable:
    """Manages binding scopes and the declared function signatures."""

    def __init__(self) -> None:
        self._scope_stack: list[Scope] = [Scope(name="module")]
        self._functions: dict[FunctionSignature, list[Span]] = {}

    @property
    def current_scope(self) -> Scope:
        return self._scope_stack[-1]

    def push_scope(self, name: str = "") -> None:
        self._scope_stack.append(Scope(parent=self.current_scope, name=name))

    def pop_scope(self) -> Scope:
        if len(self._scope_stack) <= 1:
            raise RuntimeError("cannot pop module scope")
        return self._scope_stack.pop()

    def define(self, symbol: Symbol) -> Symbol | None:
        """Define a symbol in the current scope. Returns existing if duplicate."""
        return self.current_scope.define(symbol)

    def lookup(self, name: str) -> Symbol | None:
        """Look up a name in the current scope chain."""
        return self.current_scope.lookup(name)

    def define_function(self, sig: FunctionSignature, span: Span) -> None:
        """Record one declaration of a function signature."""
        self._functions.setdefault(sig, []).append(span)

    def resolve_function(self, name: str, arity: int) -> FunctionSignature | None:
        sig = FunctionSignature(name, arity)
        return sig if sig in self._functions else None

    def arities(self, name: str) -> list[int]:
        """Declared arities of `name`, for arity-mismatch messages."""
        return sorted(sig.arity for sig in self._functions if sig.name == name)

    def all_functions(self) -> dict[FunctionSignature, list[Span]]:
        return dict(self._functions)
