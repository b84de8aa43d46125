"""Tests for structural pattern matching of runtime values."""

from __future__ import annotations

from pipehammer.matcher import match_params, values_equal
from pipehammer.results import Error, Ok
from pipehammer.values import Atom, Record
from tests.helpers import normalized


def params(head: str):
    """Patterns of `pipe <head> -> nil`."""
    return normalized(f"pipe {head} -> nil\n").params


class TestValuesEqual:
    def test_strict_numbers(self):
        assert values_equal(1, 1)
        assert not values_equal(1, 1.0)
        assert values_equal(1, 1.0, strict=False)

    def test_booleans_never_equal_numbers(self):
        assert not values_equal(True, 1, strict=False)
        assert not values_equal(0, False, strict=False)

    def test_nested(self):
        assert values_equal([Ok({"a": (1, "x")})], [Ok({"a": (1, "x")})])
        assert not values_equal(Ok(1), Error(1))
        assert not values_equal([1, 2], (1, 2))

    def test_records(self):
        assert values_equal(Record("P", {"x": 1}), Record("P", {"x": 1}))
        assert not values_equal(Record("P", {"x": 1}), Record("Q", {"x": 1}))


class TestMatchParams:
    def test_bindings(self):
        assert match_params(params("f(x, y)"), [1, "a"]) == {"x": 1, "y": "a"}

    def test_arity_mismatch(self):
        assert match_params(params("f(x)"), [1, 2]) is None

    def test_wildcard_and_anonymous_bind_nothing(self):
        assert match_params(params("f(_, _y)"), [1, 2]) == {}

    def test_repeated_binding_requires_equal_values(self):
        assert match_params(params("f(x, x)"), [3, 3]) == {"x": 3}
        assert match_params(params("f(x, x)"), [3, 4]) is None

    def test_repeated_anonymous_binding_is_unconstrained(self):
        assert match_params(params("f(_a, _a)"), [3, 4]) == {}

    def test_literals_are_type_strict(self):
        assert match_params(params("f(0)"), [0]) == {}
        assert match_params(params("f(0)"), [0.0]) is None
        assert match_params(params("f(0)"), [False]) is None
        assert match_params(params("f(:ok)"), [Atom("ok")]) == {}
        assert match_params(params("f(nil)"), [None]) == {}
        assert match_params(params("f(nil)"), [False]) is None

    def test_results(self):
        assert match_params(params("f(Ok(v))"), [Ok(5)]) == {"v": 5}
        assert match_params(params("f(Ok(v))"), [Error(5)]) is None
        assert match_params(params("f(Ok(v))"), [5]) is None

    def test_error_pattern(self):
        assert match_params(params("f(Error(e))"), [Error("bad")]) == {"e": "bad"}
        assert match_params(params("f(Error(e))"), [5]) is None

    def test_tuple(self):
        assert match_params(params("f({a, b})"), [(1, 2)]) == {"a": 1, "b": 2}
        assert match_params(params("f({a, b})"), [(1, 2, 3)]) is None
        assert match_params(params("f({a, b})"), [[1, 2]]) is None

    def test_list(self):
        assert match_params(params("f([])"), [[]]) == {}
        assert match_params(params("f([])"), [[1]]) is None
        assert match_params(params("f([a, b])"), [[1, 2]]) == {"a": 1, "b": 2}

    def test_list_tail(self):
        assert match_params(params("f([h | t])"), [[1, 2, 3]]) == {"h": 1, "t": [2, 3]}
        assert match_params(params("f([h | t])"), [[1]]) == {"h": 1, "t": []}
        assert match_params(params("f([h | t])"), [[]]) is None

    def test_map_is_partial(self):
        assert match_params(params("f(%{a: a})"), [{"a": 1, "b": 2}]) == {"a": 1}
        assert match_params(params("f(%{a: a})"), [{"b": 2}]) is None
        assert match_params(params("f(%{})"), [{}]) == {}
        assert match_params(params("f(%{})"), [[]]) is None

    def test_map_pattern_matches_record_fields(self):
        value = Record("Square", {"w": 2})
        assert match_params(params("f(%{w: w})"), [value]) == {"w": 2}

    def test_record(self):
        square = Record("Square", {"w": 2, "h": 3})
        assert match_params(params("f(Square{w: w})"), [square]) == {"w": 2}
        assert match_params(params("f(Circle{})"), [square]) is None
        assert match_params(params("f(Square{})"), [{"w": 2}]) is None

    def test_alias(self):
        value = {"a": 1}
        assert match_params(params("f(%{a: a} = m)"), [value]) == {"a": 1, "m": value}

    def test_alias_on_literal(self):
        assert match_params(params("f(0 = z)"), [0]) == {"z": 0}
        assert match_params(params("f(0 = z)"), [1]) is None
