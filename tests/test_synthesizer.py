"""Tests for declaration normalization and clause synthesis."""

from __future__ import annotations

from pipehammer.ast_nodes import (
    AliasPattern,
    BindingPattern,
    DelegateExpr,
    FunctionHead,
    GuardedHead,
    IdentifierExpr,
    LiteralPattern,
    ResultExpr,
    ResultPattern,
    WildcardPattern,
)
from pipehammer.clauses import ClauseKind, FunctionSignature
from pipehammer.formatter import PipeFormatter
from pipehammer.normalizer import Reattach
from pipehammer.source import GENERATED
from pipehammer.synthesizer import (
    NameSupply,
    default_clause,
    error_passthrough_clause,
    ok_unwrap_clause,
    synthesize,
    taken_names,
    ununderscore,
)
from tests.helpers import normalized, parse_decl


def render(clause) -> str:
    fmt = PipeFormatter()
    return f"{fmt._format_head(clause.head)} -> {fmt._format_expr(clause.body)}"


class TestNormalizer:
    def test_unguarded(self):
        nd = normalized("pipe add(x, y) -> Ok(x + y)\n", order=3)
        assert nd.signature == FunctionSignature("add", 2)
        assert str(nd.signature) == "add/2"
        assert nd.guard is None
        assert nd.order == 3
        assert nd.synthesize

    def test_guarded(self):
        decl = parse_decl("pipe f(x) when x > 0 -> x\n")
        nd = normalized("pipe f(x) when x > 0 -> x\n")
        assert nd.guard == decl.head.guard
        assert [type(p) for p in nd.params] == [BindingPattern]

    def test_reattach_without_guard(self):
        head = Reattach("f")([WildcardPattern(GENERATED)])
        assert isinstance(head, FunctionHead)
        assert head.arity == 1

    def test_reattach_keeps_guard_unchanged(self):
        nd = normalized("pipe f(x) when x > 0 -> x\n")
        head = nd.reattach([BindingPattern("y", GENERATED)])
        assert isinstance(head, GuardedHead)
        assert head.guard is nd.guard
        assert head.head.params[0].name == "y"

    def test_def_is_not_synthesized(self):
        assert not normalized("def f(x) -> x\n").synthesize


class TestNameSupply:
    def test_fresh_prefers_base(self):
        names = NameSupply(set())
        assert names.fresh("x") == "x"
        assert names.fresh("x") == "x1"

    def test_numbered_skips_taken(self):
        names = NameSupply({"x", "x1", "x2"})
        assert names.numbered("x") == "x3"

    def test_taken_names_includes_guard_identifiers(self):
        nd = normalized("pipe f(a) when a > x -> a\n")
        assert taken_names(nd) == {"a", "x", "f"}


class TestUnunderscore:
    def test_renames_nested_anonymous_bindings(self):
        nd = normalized("pipe f(a, {_b, [_c | t]}) -> a\n")
        counter = iter(["n1", "n2"])
        renamed = ununderscore(nd.params[1], lambda: next(counter))
        inner = renamed.elements
        assert inner[0].name == "n1"
        assert inner[1].elements[0].name == "n2"
        assert inner[1].tail.name == "t"

    def test_leaves_literals_and_wildcards(self):
        nd = normalized("pipe f(a, {0, _}) -> a\n")
        renamed = ununderscore(nd.params[1], lambda: "unused")
        assert isinstance(renamed.elements[0], LiteralPattern)
        assert isinstance(renamed.elements[1], WildcardPattern)

    def test_renames_anonymous_alias(self):
        nd = normalized("pipe f(a, %{} = _m) -> a\n")
        renamed = ununderscore(nd.params[1], lambda: "m1")
        assert isinstance(renamed, AliasPattern)
        assert renamed.name == "m1"


class TestDefaultClause:
    def test_preserves_declaration(self):
        nd = normalized("pipe f(x) when is_number(x) -> Ok(x)\n", order=5)
        clause = default_clause(nd)
        assert clause.kind is ClauseKind.DEFAULT
        assert clause.params == nd.params
        assert clause.guard == nd.guard
        assert clause.body == nd.body
        assert clause.order == 5


class TestErrorPassthrough:
    def test_shape(self):
        clause = error_passthrough_clause(normalized("pipe f(x, y, z) when x > y -> Ok(z)\n"))
        assert clause.kind is ClauseKind.ERROR_PASSTHROUGH
        assert clause.guard is None
        first = clause.params[0]
        assert isinstance(first, ResultPattern) and first.tag == "Error"
        assert all(isinstance(p, WildcardPattern) for p in clause.params[1:])
        assert len(clause.params) == 3
        assert isinstance(clause.body, ResultExpr) and clause.body.tag == "Error"
        assert clause.body.value.name == first.inner.name

    def test_listing(self):
        clause = error_passthrough_clause(normalized("pipe f(x, y) -> Ok(x)\n"))
        assert render(clause) == "f(Error(e), _) -> Error(e)"


class TestOkUnwrap:
    def test_simple(self):
        clause = ok_unwrap_clause(normalized("pipe mul(a, b) -> Ok(a * b)\n"))
        assert clause.kind is ClauseKind.OK_UNWRAP
        assert render(clause) == "mul(Ok(x), b) -> mul(x, b)"

    def test_fresh_name_avoids_pattern_bindings(self):
        clause = ok_unwrap_clause(normalized("pipe add(x, y) -> Ok(x + y)\n"))
        assert render(clause) == "add(Ok(x1), y) -> add(x1, y)"

    def test_fresh_name_avoids_guard_identifiers(self):
        clause = ok_unwrap_clause(normalized("pipe f(a) when a > x -> Ok(a)\n"))
        assert render(clause) == "f(Ok(x1)) when a > x -> f(x1)"

    def test_top_level_wildcards_get_names(self):
        clause = ok_unwrap_clause(normalized("pipe f(a, _, _) -> Ok(a)\n"))
        assert render(clause) == "f(Ok(x), x1, x2) -> f(x, x1, x2)"

    def test_anonymous_binding_is_renamed(self):
        clause = ok_unwrap_clause(normalized("pipe ignore_y(x, _y) -> Ok(x)\n"))
        assert render(clause) == "ignore_y(Ok(x1), x2) -> ignore_y(x1, x2)"

    def test_literal_position_is_aliased(self):
        clause = ok_unwrap_clause(normalized("pipe safe_div(_x, 0) -> Error(:division_by_zero)\n"))
        second = clause.params[1]
        assert isinstance(second, AliasPattern)
        assert isinstance(second.pattern, LiteralPattern)
        assert render(clause) == "safe_div(Ok(x), 0 = x1) -> safe_div(x, x1)"

    def test_structured_position_is_aliased_and_ununderscored(self):
        clause = ok_unwrap_clause(normalized("pipe f(x, {_a, b}) -> Ok(b)\n"))
        assert render(clause) == "f(Ok(x1), {x2, b} = x3) -> f(x1, x3)"

    def test_existing_alias_is_reused(self):
        clause = ok_unwrap_clause(normalized("pipe bar(a, %{} = m) -> Ok(m)\n"))
        assert render(clause) == "bar(Ok(x), %{} = m) -> bar(x, m)"

    def test_first_pattern_is_discarded(self):
        clause = ok_unwrap_clause(normalized("pipe foo(Square{w: w}, z) -> Ok(w + z)\n"))
        assert render(clause) == "foo(Ok(x), z) -> foo(x, z)"

    def test_guard_reattached(self):
        nd = normalized("pipe partial(x) when is_list(x) -> Ok(x)\n")
        clause = ok_unwrap_clause(nd)
        assert clause.guard is nd.guard
        assert render(clause) == "partial(Ok(x1)) when is_list(x) -> partial(x1)"

    def test_body_delegates_to_same_function(self):
        clause = ok_unwrap_clause(normalized("pipe g(a, b) -> Ok(a)\n"))
        assert isinstance(clause.body, DelegateExpr)
        assert clause.body.func == IdentifierExpr("g", GENERATED)
        assert len(clause.body.args) == 2

    def test_arity_one(self):
        clause = ok_unwrap_clause(normalized("pipe increment(n) -> Ok(n + 1)\n"))
        assert render(clause) == "increment(Ok(x)) -> increment(x)"

    def test_function_name_is_never_the_unwrapped_name(self):
        clause = ok_unwrap_clause(normalized("pipe x(a) -> Ok(a)\n"))
        assert render(clause) == "x(Ok(x1)) -> x(x1)"

    def test_binding_named_like_the_function_is_forwarded(self):
        clause = ok_unwrap_clause(normalized("pipe scale(n, scale) -> Ok(n * scale)\n"))
        assert render(clause) == "scale(Ok(x), scale) -> scale(x, scale)"
        assert isinstance(clause.body, DelegateExpr)


class TestSynthesize:
    def test_three_clauses_for_pipe(self):
        clauses = synthesize(normalized("pipe f(a) -> Ok(a)\n", order=2))
        assert [c.kind for c in clauses] == [
            ClauseKind.DEFAULT, ClauseKind.ERROR_PASSTHROUGH, ClauseKind.OK_UNWRAP,
        ]
        assert all(c.order == 2 for c in clauses)
        assert all(c.signature == FunctionSignature("f", 1) for c in clauses)

    def test_arity_zero_only_default(self):
        clauses = synthesize(normalized("pipe answer() -> Ok(42)\n"))
        assert [c.kind for c in clauses] == [ClauseKind.DEFAULT]

    def test_def_only_default(self):
        clauses = synthesize(normalized("def f(a) -> a\n"))
        assert [c.kind for c in clauses] == [ClauseKind.DEFAULT]
