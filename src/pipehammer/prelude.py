"""Builtin functions available to guards and bodies.

Type predicates and kernel helpers mirror the usual guard vocabulary; the
result helpers (`handle_error`, `from_maybe`, `assert_type`, `error`) are
the convenience combinators pipelines end with.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from pipehammer.errors import EvaluationError
from pipehammer.results import Error, Ok
from pipehammer.values import OK_ATOM, Atom, Record, RecordType, show


@dataclass(frozen=True)
class Builtin:
    name: str
    func: Callable[..., Any]
    min_arity: int
    max_arity: int

    def accepts(self, arity: int) -> bool:
        return self.min_arity <= arity <= self.max_arity

    def __call__(self, *args: Any) -> Any:
        if not self.accepts(len(args)):
            raise EvaluationError(
                f"{self.name} expects {self._arity_text()} argument(s), got {len(args)}"
            )
        return self.func(*args)

    def _arity_text(self) -> str:
        if self.min_arity == self.max_arity:
            return str(self.min_arity)
        return f"{self.min_arity} to {self.max_arity}"


BUILTINS: dict[str, Builtin] = {}


def builtin(name: str, arity: int, max_arity: int | None = None):
    """Register a Python function as a builtin of the given arity range."""
    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        BUILTINS[name] = Builtin(name, func, arity, max_arity if max_arity is not None else arity)
        return func
    return decorator


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _require(ok: bool, name: str, value: Any) -> None:
    if not ok:
        raise EvaluationError(f"bad argument to {name}: {show(value)}")


# ── Type predicates ──────────────────────────────────────────────

_PREDICATES: dict[str, Callable[[Any], bool]] = {
    "is_integer": lambda v: isinstance(v, int) and not isinstance(v, bool),
    "is_float": lambda v: isinstance(v, float),
    "is_number": _is_number,
    "is_string": lambda v: isinstance(v, str),
    "is_atom": lambda v: isinstance(v, Atom) or v is None or isinstance(v, bool),
    "is_boolean": lambda v: isinstance(v, bool),
    "is_nil": lambda v: v is None,
    "is_list": lambda v: isinstance(v, list),
    "is_tuple": lambda v: isinstance(v, tuple),
    "is_map": lambda v: isinstance(v, (dict, Record)),
    "is_record": lambda v: isinstance(v, Record),
    "is_function": callable,
    "is_ok": lambda v: isinstance(v, Ok) or v == OK_ATOM,
    "is_error": lambda v: isinstance(v, Error),
}

for _name, _pred in _PREDICATES.items():
    BUILTINS[_name] = Builtin(_name, _pred, 1, 1)


# ── Kernel helpers ───────────────────────────────────────────────


@builtin("length", 1)
def _length(value: Any) -> int:
    _require(isinstance(value, (list, tuple, str, dict)), "length", value)
    return len(value)


@builtin("hd", 1)
def _hd(value: Any) -> Any:
    _require(isinstance(value, list) and bool(value), "hd", value)
    return value[0]


@builtin("tl", 1)
def _tl(value: Any) -> Any:
    _require(isinstance(value, list) and bool(value), "tl", value)
    return value[1:]


@builtin("elem", 2)
def _elem(value: Any, index: Any) -> Any:
    _require(isinstance(value, tuple), "elem", value)
    _require(isinstance(index, int) and not isinstance(index, bool)
             and 0 <= index < len(value), "elem", index)
    return value[index]


@builtin("abs", 1)
def _abs(value: Any) -> Any:
    _require(_is_number(value), "abs", value)
    return abs(value)


@builtin("min", 2)
def _min(a: Any, b: Any) -> Any:
    _require(_is_number(a) and _is_number(b), "min", (a, b))
    return a if a <= b else b


@builtin("max", 2)
def _max(a: Any, b: Any) -> Any:
    _require(_is_number(a) and _is_number(b), "max", (a, b))
    return a if a >= b else b


def _int_args(name: str, a: Any, b: Any) -> None:
    for v in (a, b):
        _require(isinstance(v, int) and not isinstance(v, bool), name, v)
    if b == 0:
        raise EvaluationError(f"{name}: division by zero")


@builtin("div", 2)
def _div(a: Any, b: Any) -> int:
    """Integer division truncated toward zero."""
    _int_args("div", a, b)
    quotient = abs(a) // abs(b)
    return quotient if (a >= 0) == (b > 0) else -quotient


@builtin("rem", 2)
def _rem(a: Any, b: Any) -> int:
    """Remainder with the sign of the dividend."""
    _int_args("rem", a, b)
    return a - b * _div(a, b)


@builtin("round", 1)
def _round(value: Any) -> int:
    _require(_is_number(value), "round", value)
    # half away from zero
    return int(value + 0.5) if value >= 0 else -int(-value + 0.5)


@builtin("to_string", 1)
def _to_string(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, Atom):
        return value.name
    return show(value)


@builtin("inspect", 1)
def _inspect(value: Any) -> str:
    return show(value)


def _fields(name: str, value: Any) -> dict:
    if isinstance(value, Record):
        return value.fields
    _require(isinstance(value, dict), name, value)
    return value


@builtin("map_get", 2, 3)
def _map_get(value: Any, key: Any, *default: Any) -> Any:
    fields = _fields("map_get", value)
    if key in fields:
        return fields[key]
    if default:
        return default[0]
    raise EvaluationError(f"key {show(key)} not found in {show(value)}")


@builtin("put", 3)
def _put(value: Any, key: Any, item: Any) -> Any:
    fields = {**_fields("put", value), key: item}
    if isinstance(value, Record):
        return Record(value.tag, fields)
    return fields


@builtin("merge", 2)
def _merge(left: Any, right: Any) -> Any:
    fields = {**_fields("merge", left), **_fields("merge", right)}
    if isinstance(left, Record):
        return Record(left.tag, fields)
    return fields


# ── Result helpers ───────────────────────────────────────────────


@builtin("handle_error", 2)
def handle_error(result: Any, handler: Any) -> Any:
    """Run `handler` on an Error's payload; Ok and :ok pass through."""
    _require(callable(handler), "handle_error", handler)
    if isinstance(result, Ok) or result == OK_ATOM:
        return result
    if isinstance(result, Error):
        return handler(result.value)
    raise EvaluationError(f"handle_error expects an Ok or Error result, got {show(result)}")


@builtin("from_maybe", 2)
def from_maybe(value: Any, reason: Any) -> Ok | Error:
    """`nil` becomes `Error(reason)`, anything else `Ok(value)`."""
    if value is None:
        return Error(reason)
    return Ok(value)


@builtin("assert_type", 3)
def assert_type(tag: Any, value: Any, reason: Any) -> Ok | Error:
    """`Ok(value)` if `value` is a record tagged `tag`, else `Error(reason)`."""
    name = tag.name if isinstance(tag, RecordType) else tag
    if isinstance(value, Record) and value.tag == name:
        return Ok(value)
    return Error(reason)


@builtin("error", 1, 5)
def error(reason: Any, *details: Any) -> Error:
    """`error(r)` is `Error(r)`; `error(r, a, ...)` is `Error({r, a, ...})`."""
    if not details:
        return Error(reason)
    return Error((reason, *details))
