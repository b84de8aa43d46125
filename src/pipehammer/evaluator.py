"""Tree-walking evaluator for guard and body expressions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pipehammer.ast_nodes import (
    AlternativeExpr,
    AtomLit,
    BinaryExpr,
    BooleanLit,
    CallExpr,
    DecimalLit,
    DelegateExpr,
    Expr,
    FieldExpr,
    IdentifierExpr,
    IfExpr,
    IntegerLit,
    LambdaExpr,
    ListLiteral,
    MapLiteral,
    NilLit,
    PipeExpr,
    RecordLiteral,
    ResultExpr,
    StringLit,
    TupleLiteral,
    TypeIdentifierExpr,
    UnaryExpr,
)
from pipehammer.errors import EvaluationError, UnboundNameError, UndefinedFunctionError
from pipehammer.matcher import values_equal
from pipehammer.prelude import BUILTINS
from pipehammer.results import RESULT_TAGS, Error, Ok
from pipehammer.source import Span
from pipehammer.values import OK_ATOM, Atom, Closure, Record, RecordType, show

if TYPE_CHECKING:
    from pipehammer.runtime import Program


_MISSING = object()


class Environment:
    """Variable bindings with an optional enclosing environment."""

    def __init__(self, bindings: dict[str, Any] | None = None,
                 parent: Environment | None = None) -> None:
        self.bindings = dict(bindings or {})
        self.parent = parent

    def lookup(self, name: str) -> Any:
        """Return the bound value, or `_MISSING`."""
        env: Environment | None = self
        while env is not None:
            if name in env.bindings:
                return env.bindings[name]
            env = env.parent
        return _MISSING

    def __contains__(self, name: str) -> bool:
        return self.lookup(name) is not _MISSING

    def child(self, bindings: dict[str, Any]) -> Environment:
        return Environment(bindings, self)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def truthy(value: Any) -> bool:
    return value is not None and value is not False


class Evaluator:
    """Evaluates expressions against bindings, calling back into a Program."""

    def __init__(self, program: Program) -> None:
        self.program = program

    def evaluate(self, expr: Expr, env: Environment) -> Any:
        if isinstance(expr, IntegerLit):
            return expr.value
        if isinstance(expr, DecimalLit):
            return expr.value
        if isinstance(expr, StringLit):
            return expr.value
        if isinstance(expr, BooleanLit):
            return expr.value
        if isinstance(expr, NilLit):
            return None
        if isinstance(expr, AtomLit):
            return Atom(expr.name)
        if isinstance(expr, IdentifierExpr):
            return self._eval_identifier(expr, env)
        if isinstance(expr, TypeIdentifierExpr):
            return RecordType(expr.name)
        if isinstance(expr, BinaryExpr):
            return self._eval_binary(expr, env)
        if isinstance(expr, UnaryExpr):
            return self._eval_unary(expr, env)
        if isinstance(expr, DelegateExpr):
            args = [self.evaluate(a, env) for a in expr.args]
            return self.program.dispatch(expr.func.name, args)
        if isinstance(expr, CallExpr):
            return self._eval_call(expr, env)
        if isinstance(expr, FieldExpr):
            return self._eval_field(expr, env)
        if isinstance(expr, PipeExpr):
            return self._eval_pipe(expr, env)
        if isinstance(expr, AlternativeExpr):
            return self._eval_alternative(expr, env)
        if isinstance(expr, ResultExpr):
            return RESULT_TAGS[expr.tag](self.evaluate(expr.value, env))
        if isinstance(expr, TupleLiteral):
            return tuple(self.evaluate(e, env) for e in expr.elements)
        if isinstance(expr, ListLiteral):
            return self._eval_list(expr, env)
        if isinstance(expr, MapLiteral):
            return {k: self.evaluate(v, env) for k, v in expr.entries}
        if isinstance(expr, RecordLiteral):
            return Record(expr.tag, {k: self.evaluate(v, env) for k, v in expr.entries})
        if isinstance(expr, LambdaExpr):
            return Closure(list(expr.params), expr.body, env, self)
        if isinstance(expr, IfExpr):
            if truthy(self.evaluate(expr.condition, env)):
                return self.evaluate(expr.then_expr, env)
            return self.evaluate(expr.else_expr, env)
        raise EvaluationError(f"cannot evaluate {type(expr).__name__}", getattr(expr, "span", None))

    # ── Names and calls ──────────────────────────────────────────

    def _eval_identifier(self, expr: IdentifierExpr, env: Environment) -> Any:
        value = env.lookup(expr.name)
        if value is not _MISSING:
            return value
        if self.program.defines(expr.name) or expr.name in BUILTINS:
            return self.program.function(expr.name)
        raise UnboundNameError(expr.name, expr.span)

    def call_function(self, name: str, args: list[Any], env: Environment, span: Span | None) -> Any:
        """Resolve `name` as a local callable, user function, then builtin."""
        local = env.lookup(name)
        if local is not _MISSING:
            return self.apply(local, args, span)
        if self.program.has_function(name, len(args)):
            return self.program.dispatch(name, args)
        builtin = BUILTINS.get(name)
        if builtin is not None and builtin.accepts(len(args)):
            return builtin(*args)
        raise UndefinedFunctionError(name, len(args), span)

    def apply(self, func: Any, args: list[Any], span: Span | None = None) -> Any:
        if isinstance(func, Closure):
            return self.apply_closure(func, args)
        if callable(func) and not isinstance(func, (RecordType, type)):
            return func(*args)
        raise EvaluationError(f"{show(func)} is not a function", span)

    def apply_closure(self, closure: Closure, args: list[Any]) -> Any:
        if len(args) != len(closure.params):
            raise EvaluationError(
                f"fn/{len(closure.params)} called with {len(args)} argument(s)",
                getattr(closure.body, "span", None),
            )
        env = closure.env.child(dict(zip(closure.params, args)))
        return self.evaluate(closure.body, env)

    def _eval_call(self, expr: CallExpr, env: Environment) -> Any:
        args = [self.evaluate(a, env) for a in expr.args]
        if isinstance(expr.func, IdentifierExpr):
            return self.call_function(expr.func.name, args, env, expr.span)
        return self.apply(self.evaluate(expr.func, env), args, expr.span)

    def _eval_pipe(self, expr: PipeExpr, env: Environment) -> Any:
        value = self.evaluate(expr.left, env)
        right = expr.right
        if isinstance(right, IdentifierExpr):
            return self.call_function(right.name, [value], env, right.span)
        if isinstance(right, CallExpr):
            args = [value] + [self.evaluate(a, env) for a in right.args]
            if isinstance(right.func, IdentifierExpr):
                return self.call_function(right.func.name, args, env, right.span)
            return self.apply(self.evaluate(right.func, env), args, right.span)
        raise EvaluationError("right side of |> must be a function call", right.span)

    def _eval_alternative(self, expr: AlternativeExpr, env: Environment) -> Any:
        value = self.evaluate(expr.left, env)
        if isinstance(value, Ok) or value == OK_ATOM:
            return value
        if isinstance(value, Error):
            return self.evaluate(expr.right, env)
        raise EvaluationError(
            f"<|> expects an Ok or Error result, got {show(value)}", expr.left.span,
        )

    # ── Operators ────────────────────────────────────────────────

    def _eval_binary(self, expr: BinaryExpr, env: Environment) -> Any:
        op = expr.op
        if op in ("and", "or"):
            left = self.evaluate(expr.left, env)
            if not isinstance(left, bool):
                raise EvaluationError(f"'{op}' expects a boolean, got {show(left)}", expr.left.span)
            if op == "and" and not left:
                return False
            if op == "or" and left:
                return True
            right = self.evaluate(expr.right, env)
            if not isinstance(right, bool):
                raise EvaluationError(f"'{op}' expects a boolean, got {show(right)}", expr.right.span)
            return right

        left = self.evaluate(expr.left, env)
        right = self.evaluate(expr.right, env)

        if op == "==":
            return values_equal(left, right, strict=False)
        if op == "!=":
            return not values_equal(left, right, strict=False)
        if op == "<>":
            if not isinstance(left, str) or not isinstance(right, str):
                raise EvaluationError(
                    f"'<>' expects strings, got {show(left)} and {show(right)}", expr.span,
                )
            return left + right
        if op in ("<", ">", "<=", ">="):
            return self._compare(op, left, right, expr.span)

        if not _is_number(left) or not _is_number(right):
            raise EvaluationError(
                f"bad argument in arithmetic expression: {show(left)} {op} {show(right)}",
                expr.span,
            )
        if op == "+":
            return left + right
        if op == "-":
            return left - right
        if op == "*":
            return left * right
        if op == "/":
            if right == 0:
                raise EvaluationError("division by zero", expr.span)
            return left / right
        if op == "%":
            if right == 0:
                raise EvaluationError("division by zero", expr.span)
            return left % right
        raise EvaluationError(f"unknown operator '{op}'", expr.span)

    def _compare(self, op: str, left: Any, right: Any, span: Span) -> bool:
        comparable = (
            (_is_number(left) and _is_number(right))
            or (isinstance(left, str) and isinstance(right, str))
        )
        if not comparable:
            raise EvaluationError(f"cannot compare {show(left)} {op} {show(right)}", span)
        if op == "<":
            return left < right
        if op == ">":
            return left > right
        if op == "<=":
            return left <= right
        return left >= right

    def _eval_unary(self, expr: UnaryExpr, env: Environment) -> Any:
        value = self.evaluate(expr.operand, env)
        if expr.op == "not":
            if not isinstance(value, bool):
                raise EvaluationError(f"'not' expects a boolean, got {show(value)}", expr.span)
            return not value
        if not _is_number(value):
            raise EvaluationError(f"bad argument in unary '-': {show(value)}", expr.span)
        return -value

    def _eval_field(self, expr: FieldExpr, env: Environment) -> Any:
        value = self.evaluate(expr.obj, env)
        if isinstance(value, Record):
            fields = value.fields
        elif isinstance(value, dict):
            fields = value
        else:
            raise EvaluationError(f"cannot access field '{expr.field}' of {show(value)}", expr.span)
        if expr.field not in fields:
            raise EvaluationError(f"key '{expr.field}' not found in {show(value)}", expr.span)
        return fields[expr.field]

    def _eval_list(self, expr: ListLiteral, env: Environment) -> list[Any]:
        items = [self.evaluate(e, env) for e in expr.elements]
        if expr.tail is None:
            return items
        tail = self.evaluate(expr.tail, env)
        if not isinstance(tail, list):
            raise EvaluationError(f"list tail must be a list, got {show(tail)}", expr.tail.span)
        return items + tail
