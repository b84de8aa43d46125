"""AST-walking pretty-printer for `.pipe` source code.

Produces canonical formatting for declarations and for expanded clause
listings. Regular ``//`` comments are not preserved in the AST (discarded by
the lexer). Doc comments (``///``) are preserved and emitted.
"""

from __future__ import annotations

from collections.abc import Iterable

from pipehammer.ast_nodes import (
    AliasPattern,
    AlternativeExpr,
    AtomLit,
    BinaryExpr,
    BindingPattern,
    BooleanLit,
    CallExpr,
    DecimalLit,
    FieldExpr,
    GuardedHead,
    Head,
    IdentifierExpr,
    IfExpr,
    IntegerLit,
    LambdaExpr,
    ListLiteral,
    ListPattern,
    LiteralPattern,
    MapLiteral,
    MapPattern,
    Module,
    NilLit,
    PipeDef,
    PipeExpr,
    RecordLiteral,
    RecordPattern,
    ResultExpr,
    ResultPattern,
    StringLit,
    TupleLiteral,
    TuplePattern,
    TypeIdentifierExpr,
    UnaryExpr,
    WildcardPattern,
)
from pipehammer.clauses import SynthesizedClause
from pipehammer.values import format_float, show

# Operator precedence table (higher binds tighter), mirrors the parser
_PRECEDENCE: dict[str, int] = {
    "<|>": 1,
    "|>": 2,
    "or": 3,
    "and": 4,
    "==": 5, "!=": 5, "<": 5, ">": 5, "<=": 5, ">=": 5,
    "+": 6, "-": 6, "<>": 6,
    "*": 7, "/": 7, "%": 7,
}
_UNARY_PREC = 8
_POSTFIX_PREC = 9


class PipeFormatter:
    """Format a parsed Module, or a clause list, back to source text."""

    # ── Public API ─────────────────────────────────────────────

    def format(self, module: Module) -> str:
        """Format a module to canonical source text."""
        parts: list[str] = []
        previous: str | None = None
        for decl in module.declarations:
            name = self._head_name(decl.head)
            if previous is not None and (name != previous or decl.doc_comment):
                parts.append("")  # blank line between functions
            parts.append(self._format_declaration(decl))
            previous = name
        result = "\n".join(parts)
        if not result.endswith("\n"):
            result += "\n"
        return result

    def format_clauses(self, clauses: Iterable[SynthesizedClause]) -> str:
        """Render clauses as plain `def` declarations, grouped per function."""
        lines: list[str] = []
        previous = None
        for clause in clauses:
            if previous is not None and clause.signature != previous:
                lines.append("")
            if clause.signature != previous:
                lines.append(f"// {clause.signature}")
            head = self._format_head(clause.head)
            body = self._format_expr(clause.body)
            lines.append(f"def {head} -> {body}  // {clause.kind.label}")
            previous = clause.signature
        return "\n".join(lines) + "\n" if lines else ""

    # ── Declarations ───────────────────────────────────────────

    def _format_declaration(self, decl: PipeDef) -> str:
        lines: list[str] = []
        if decl.doc_comment:
            for doc_line in decl.doc_comment.splitlines():
                lines.append(f"/// {doc_line}" if doc_line else "///")
        keyword = "pipe" if decl.synthesize else "def"
        head = self._format_head(decl.head)
        lines.append(f"{keyword} {head} -> {self._format_expr(decl.body)}")
        return "\n".join(lines)

    @staticmethod
    def _head_name(head: Head) -> str:
        return head.head.name if isinstance(head, GuardedHead) else head.name

    def _format_head(self, head: Head) -> str:
        if isinstance(head, GuardedHead):
            return f"{self._format_head(head.head)} when {self._format_expr(head.guard)}"
        params = ", ".join(self._format_pattern(p) for p in head.params)
        return f"{head.name}({params})"

    # ── Expression formatting ──────────────────────────────────

    def _format_expr(self, expr: object, parent_prec: int = 0) -> str:
        if isinstance(expr, IntegerLit):
            return str(expr.value)
        if isinstance(expr, DecimalLit):
            return format_float(expr.value)
        if isinstance(expr, StringLit):
            return show(expr.value)
        if isinstance(expr, AtomLit):
            return f":{expr.name}"
        if isinstance(expr, BooleanLit):
            return "true" if expr.value else "false"
        if isinstance(expr, NilLit):
            return "nil"
        if isinstance(expr, IdentifierExpr):
            return expr.name
        if isinstance(expr, TypeIdentifierExpr):
            return expr.name
        if isinstance(expr, BinaryExpr):
            return self._format_binary(expr.left, expr.op, expr.right, parent_prec)
        if isinstance(expr, PipeExpr):
            return self._format_binary(expr.left, "|>", expr.right, parent_prec)
        if isinstance(expr, AlternativeExpr):
            return self._format_binary(expr.left, "<|>", expr.right, parent_prec)
        if isinstance(expr, UnaryExpr):
            return self._format_unary(expr, parent_prec)
        if isinstance(expr, CallExpr):
            return self._format_call(expr)
        if isinstance(expr, FieldExpr):
            return f"{self._format_expr(expr.obj, _POSTFIX_PREC)}.{expr.field}"
        if isinstance(expr, ResultExpr):
            return f"{expr.tag}({self._format_expr(expr.value)})"
        if isinstance(expr, TupleLiteral):
            return "{" + ", ".join(self._format_expr(e) for e in expr.elements) + "}"
        if isinstance(expr, ListLiteral):
            elems = ", ".join(self._format_expr(e) for e in expr.elements)
            if expr.tail is not None:
                elems += f" | {self._format_expr(expr.tail)}"
            return f"[{elems}]"
        if isinstance(expr, MapLiteral):
            return "%{" + self._format_entries(expr.entries, self._format_expr) + "}"
        if isinstance(expr, RecordLiteral):
            return expr.tag + "{" + self._format_entries(expr.entries, self._format_expr) + "}"
        if isinstance(expr, LambdaExpr):
            return self._wrap(f"fn({', '.join(expr.params)}) -> {self._format_expr(expr.body)}",
                              parent_prec)
        if isinstance(expr, IfExpr):
            text = (f"if {self._format_expr(expr.condition)} "
                    f"then {self._format_expr(expr.then_expr)} "
                    f"else {self._format_expr(expr.else_expr)}")
            return self._wrap(text, parent_prec)
        return "???"

    def _format_binary(self, left: object, op: str, right: object, parent_prec: int) -> str:
        prec = _PRECEDENCE.get(op, 0)
        result = f"{self._format_expr(left, prec)} {op} {self._format_expr(right, prec + 1)}"
        if prec < parent_prec:
            return f"({result})"
        return result

    def _format_unary(self, expr: UnaryExpr, parent_prec: int) -> str:
        operand = self._format_expr(expr.operand, _UNARY_PREC)
        text = f"not {operand}" if expr.op == "not" else f"-{operand}"
        if _UNARY_PREC < parent_prec:
            return f"({text})"
        return text

    def _format_call(self, expr: CallExpr) -> str:
        func = self._format_expr(expr.func, _POSTFIX_PREC)
        args = ", ".join(self._format_expr(a) for a in expr.args)
        return f"{func}({args})"

    @staticmethod
    def _wrap(text: str, parent_prec: int) -> str:
        return f"({text})" if parent_prec > 0 else text

    @staticmethod
    def _format_entries(entries: list, fmt) -> str:
        return ", ".join(f"{key}: {fmt(value)}" for key, value in entries)

    # ── Pattern formatting ─────────────────────────────────────

    def _format_pattern(self, pat: object) -> str:
        if isinstance(pat, WildcardPattern):
            return "_"
        if isinstance(pat, BindingPattern):
            return pat.name
        if isinstance(pat, LiteralPattern):
            return show(pat.value)
        if isinstance(pat, TuplePattern):
            return "{" + ", ".join(self._format_pattern(p) for p in pat.elements) + "}"
        if isinstance(pat, ListPattern):
            elems = ", ".join(self._format_pattern(p) for p in pat.elements)
            if pat.tail is not None:
                elems += f" | {self._format_pattern(pat.tail)}"
            return f"[{elems}]"
        if isinstance(pat, MapPattern):
            return "%{" + self._format_entries(pat.entries, self._format_pattern) + "}"
        if isinstance(pat, RecordPattern):
            return pat.tag + "{" + self._format_entries(pat.entries, self._format_pattern) + "}"
        if isinstance(pat, ResultPattern):
            return f"{pat.tag}({self._format_pattern(pat.inner)})"
        if isinstance(pat, AliasPattern):
            return f"{self._format_pattern(pat.pattern)} = {pat.name}"
        return "???"
