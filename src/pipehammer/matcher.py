"""Structural pattern matching of runtime values."""

from __future__ import annotations

from typing import Any

from pipehammer.ast_nodes import (
    AliasPattern,
    BindingPattern,
    ListPattern,
    LiteralPattern,
    MapPattern,
    Pattern,
    RecordPattern,
    ResultPattern,
    TuplePattern,
    WildcardPattern,
)
from pipehammer.results import RESULT_TAGS, Error, Ok
from pipehammer.values import Record


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def values_equal(a: Any, b: Any, *, strict: bool = True) -> bool:
    """Structural equality of runtime values.

    Booleans never equal numbers. With `strict`, `1` and `1.0` differ, as
    they do in patterns; the `==` operator compares numbers by value.
    """
    if _is_number(a) and _is_number(b):
        if strict and type(a) is not type(b):
            return False
        return a == b
    if type(a) is not type(b):
        return False
    if isinstance(a, (tuple, list)):
        return len(a) == len(b) and all(
            values_equal(x, y, strict=strict) for x, y in zip(a, b)
        )
    if isinstance(a, dict):
        return a.keys() == b.keys() and all(
            values_equal(a[k], b[k], strict=strict) for k in a
        )
    if isinstance(a, Record):
        return a.tag == b.tag and values_equal(a.fields, b.fields, strict=strict)
    if isinstance(a, (Ok, Error)):
        return values_equal(a.value, b.value, strict=strict)
    return a == b


def _bind(name: str, value: Any, bindings: dict[str, Any]) -> bool:
    if name.startswith("_"):
        return True
    if name in bindings:
        return values_equal(bindings[name], value)
    bindings[name] = value
    return True


def match_pattern(pattern: Pattern, value: Any, bindings: dict[str, Any]) -> bool:
    """Match `value` against `pattern`, extending `bindings` in place.

    On failure `bindings` may hold partial results; callers discard it.
    """
    if isinstance(pattern, WildcardPattern):
        return True

    if isinstance(pattern, BindingPattern):
        return _bind(pattern.name, value, bindings)

    if isinstance(pattern, LiteralPattern):
        if pattern.value is None:
            return value is None
        return type(value) is type(pattern.value) and value == pattern.value

    if isinstance(pattern, TuplePattern):
        if not isinstance(value, tuple) or len(value) != len(pattern.elements):
            return False
        return all(match_pattern(p, v, bindings) for p, v in zip(pattern.elements, value))

    if isinstance(pattern, ListPattern):
        if not isinstance(value, list):
            return False
        count = len(pattern.elements)
        if pattern.tail is None and len(value) != count:
            return False
        if len(value) < count:
            return False
        if not all(match_pattern(p, v, bindings) for p, v in zip(pattern.elements, value)):
            return False
        if pattern.tail is not None:
            return match_pattern(pattern.tail, value[count:], bindings)
        return True

    if isinstance(pattern, MapPattern):
        if isinstance(value, Record):
            fields = value.fields
        elif isinstance(value, dict):
            fields = value
        else:
            return False
        return _match_entries(pattern.entries, fields, bindings)

    if isinstance(pattern, RecordPattern):
        if not isinstance(value, Record) or value.tag != pattern.tag:
            return False
        return _match_entries(pattern.entries, value.fields, bindings)

    if isinstance(pattern, ResultPattern):
        if not isinstance(value, RESULT_TAGS[pattern.tag]):
            return False
        return match_pattern(pattern.inner, value.value, bindings)

    if isinstance(pattern, AliasPattern):
        if not match_pattern(pattern.pattern, value, bindings):
            return False
        return _bind(pattern.name, value, bindings)

    raise TypeError(f"unknown pattern node: {type(pattern).__name__}")


def _match_entries(entries: list[tuple[str, Pattern]], fields: dict, bindings: dict[str, Any]) -> bool:
    for key, sub in entries:
        if key not in fields:
            return False
        if not match_pattern(sub, fields[key], bindings):
            return False
    return True


def match_params(params: list[Pattern], args: list[Any] | tuple[Any, ...]) -> dict[str, Any] | None:
    """Match a whole argument list; returns the bindings or None."""
    if len(params) != len(args):
        return None
    bindings: dict[str, Any] = {}
    for pattern, value in zip(params, args):
        if not match_pattern(pattern, value, bindings):
            return None
    return bindings
