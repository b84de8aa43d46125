"""Traversals over patterns and expressions shared by synthesis and checking."""

from __future__ import annotations

from collections.abc import Iterator

from pipehammer.ast_nodes import (
    AliasPattern,
    AlternativeExpr,
    BinaryExpr,
    BindingPattern,
    CallExpr,
    Expr,
    FieldExpr,
    IdentifierExpr,
    IfExpr,
    LambdaExpr,
    ListLiteral,
    ListPattern,
    MapLiteral,
    MapPattern,
    Pattern,
    PipeExpr,
    RecordLiteral,
    RecordPattern,
    ResultExpr,
    ResultPattern,
    TupleLiteral,
    TuplePattern,
    UnaryExpr,
)
from pipehammer.source import Span


def pattern_children(pattern: Pattern) -> list[Pattern]:
    """Direct sub-patterns, left to right."""
    if isinstance(pattern, TuplePattern):
        return list(pattern.elements)
    if isinstance(pattern, ListPattern):
        tail = [pattern.tail] if pattern.tail is not None else []
        return list(pattern.elements) + tail
    if isinstance(pattern, (MapPattern, RecordPattern)):
        return [p for _, p in pattern.entries]
    if isinstance(pattern, ResultPattern):
        return [pattern.inner]
    if isinstance(pattern, AliasPattern):
        return [pattern.pattern]
    return []


def pattern_bindings(pattern: Pattern) -> Iterator[tuple[str, Span]]:
    """Yield every name a pattern introduces, depth-first, left to right.

    Anonymous `_name` bindings are included; alias names follow the
    bindings of the pattern they wrap.
    """
    if isinstance(pattern, BindingPattern):
        yield pattern.name, pattern.span
        return
    for child in pattern_children(pattern):
        yield from pattern_bindings(child)
    if isinstance(pattern, AliasPattern):
        yield pattern.name, pattern.span


def params_bindings(params: list[Pattern]) -> list[tuple[str, Span]]:
    result: list[tuple[str, Span]] = []
    for param in params:
        result.extend(pattern_bindings(param))
    return result


def expr_children(expr: Expr) -> list[Expr]:
    """Direct sub-expressions, left to right."""
    if isinstance(expr, (BinaryExpr, PipeExpr, AlternativeExpr)):
        return [expr.left, expr.right]
    if isinstance(expr, UnaryExpr):
        return [expr.operand]
    if isinstance(expr, CallExpr):
        return [expr.func, *expr.args]
    if isinstance(expr, FieldExpr):
        return [expr.obj]
    if isinstance(expr, ResultExpr):
        return [expr.value]
    if isinstance(expr, TupleLiteral):
        return list(expr.elements)
    if isinstance(expr, ListLiteral):
        tail = [expr.tail] if expr.tail is not None else []
        return list(expr.elements) + tail
    if isinstance(expr, (MapLiteral, RecordLiteral)):
        return [e for _, e in expr.entries]
    if isinstance(expr, LambdaExpr):
        return [expr.body]
    if isinstance(expr, IfExpr):
        return [expr.condition, expr.then_expr, expr.else_expr]
    return []


def identifier_names(expr: Expr) -> set[str]:
    """Every identifier spelled anywhere in an expression."""
    names: set[str] = set()
    stack = [expr]
    while stack:
        node = stack.pop()
        if isinstance(node, IdentifierExpr):
            names.add(node.name)
        elif isinstance(node, LambdaExpr):
            names.update(node.params)
        stack.extend(expr_children(node))
    return names


def variable_references(expr: Expr, local: frozenset[str] = frozenset()) -> Iterator[IdentifierExpr]:
    """Yield identifiers used as values, skipping lambda parameters.

    A callee identifier counts as a variable reference only when it names a
    lambda parameter in scope; otherwise it is a function name.
    """
    if isinstance(expr, IdentifierExpr):
        if expr.name not in local:
            yield expr
        return
    if isinstance(expr, LambdaExpr):
        yield from variable_references(expr.body, local | frozenset(expr.params))
        return
    if isinstance(expr, CallExpr) and isinstance(expr.func, IdentifierExpr):
        for arg in expr.args:
            yield from variable_references(arg, local)
        return
    if isinstance(expr, PipeExpr):
        yield from variable_references(expr.left, local)
        right = expr.right
        if isinstance(right, CallExpr):
            yield from variable_references(right, local)
        return
    for child in expr_children(expr):
        yield from variable_references(child, local)


def function_calls(expr: Expr, local: frozenset[str] = frozenset()) -> Iterator[tuple[str, int, Span]]:
    """Yield `(name, arity, span)` for each named call, counting pipes.

    `a |> f(b)` calls `f/2`; `a |> f` calls `f/1`. Calls through lambda
    parameters are skipped.
    """
    if isinstance(expr, LambdaExpr):
        yield from function_calls(expr.body, local | frozenset(expr.params))
        return
    if isinstance(expr, PipeExpr):
        yield from function_calls(expr.left, local)
        right = expr.right
        if isinstance(right, IdentifierExpr):
            if right.name not in local:
                yield right.name, 1, right.span
            return
        if isinstance(right, CallExpr):
            func = right.func
            if isinstance(func, IdentifierExpr) and func.name not in local:
                yield func.name, len(right.args) + 1, right.span
            for arg in right.args:
                yield from function_calls(arg, local)
        return
    if isinstance(expr, CallExpr):
        func = expr.func
        if isinstance(func, IdentifierExpr) and func.name not in local:
            yield func.name, len(expr.args), expr.span
        for arg in expr.args:
            yield from function_calls(arg, local)
        return
    for child in expr_children(expr):
        yield from function_calls(child, local)
