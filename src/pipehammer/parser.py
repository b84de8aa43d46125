"""Parser for `.pipe` declaration files.

Transforms a token stream into an AST using recursive descent for
declarations and patterns, and a Pratt parser for guard and body
expressions.
"""

from __future__ import annotations

from pipehammer.ast_nodes import (
    AliasPattern,
    AlternativeExpr,
    AtomLit,
    BinaryExpr,
    BindingPattern,
    BooleanLit,
    CallExpr,
    DecimalLit,
    Expr,
    FieldExpr,
    FunctionHead,
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
    Pattern,
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
from pipehammer.errors import CompileError, Diagnostic, DiagnosticLabel, Severity
from pipehammer.source import Span
from pipehammer.tokens import Token, TokenKind
from pipehammer.values import Atom

# ── Binding powers for Pratt parser ─────────────────────────────

# (left_bp, right_bp) for infix operators
_INFIX_BP: dict[TokenKind, tuple[int, int]] = {
    TokenKind.ALT_ARROW: (1, 2),
    TokenKind.PIPE_ARROW: (3, 4),
    TokenKind.OR: (5, 6),
    TokenKind.AND: (7, 8),
    TokenKind.EQUAL: (9, 10),
    TokenKind.NOT_EQUAL: (9, 10),
    TokenKind.LESS: (9, 10),
    TokenKind.GREATER: (9, 10),
    TokenKind.LESS_EQUAL: (9, 10),
    TokenKind.GREATER_EQUAL: (9, 10),
    TokenKind.CONCAT: (11, 12),
    TokenKind.PLUS: (11, 12),
    TokenKind.MINUS: (11, 12),
    TokenKind.STAR: (13, 14),
    TokenKind.SLASH: (13, 14),
    TokenKind.PERCENT: (13, 14),
}

_PREFIX_BP = 15  # right bp for unary `not` and `-`
_POSTFIX_BP = 17  # left bp for calls and field access

_OP_STRINGS: dict[TokenKind, str] = {
    TokenKind.PLUS: '+', TokenKind.MINUS: '-', TokenKind.STAR: '*',
    TokenKind.SLASH: '/', TokenKind.PERCENT: '%', TokenKind.CONCAT: '<>',
    TokenKind.EQUAL: '==', TokenKind.NOT_EQUAL: '!=',
    TokenKind.LESS: '<', TokenKind.GREATER: '>',
    TokenKind.LESS_EQUAL: '<=', TokenKind.GREATER_EQUAL: '>=',
    TokenKind.AND: 'and', TokenKind.OR: 'or',
}

_DECL_KEYWORDS = frozenset({TokenKind.PIPE_DECL, TokenKind.DEF})

_LITERAL_KINDS = frozenset({
    TokenKind.INTEGER_LIT, TokenKind.DECIMAL_LIT, TokenKind.STRING_LIT,
    TokenKind.ATOM_LIT, TokenKind.BOOLEAN_LIT, TokenKind.NIL_LIT,
})


def parse_int(text: str) -> int:
    clean = text.replace('_', '')
    if clean[:2].lower() in ('0x', '0b', '0o'):
        return int(clean, 0)
    return int(clean, 10)


def literal_value(tok: Token) -> object:
    """Convert a literal token into the runtime value it denotes."""
    match tok.kind:
        case TokenKind.INTEGER_LIT:
            return parse_int(tok.value)
        case TokenKind.DECIMAL_LIT:
            return float(tok.value.replace('_', ''))
        case TokenKind.STRING_LIT:
            return tok.value
        case TokenKind.ATOM_LIT:
            return Atom(tok.value)
        case TokenKind.BOOLEAN_LIT:
            return tok.value == 'true'
        case TokenKind.NIL_LIT:
            return None
    raise ValueError(f"not a literal token: {tok.kind.name}")


class Parser:
    """Parses a list of tokens into a `.pipe` AST."""

    def __init__(self, tokens: list[Token], filename: str = "<stdin>") -> None:
        self.tokens = tokens
        self.pos = 0
        self.filename = filename
        self.diagnostics: list[Diagnostic] = []

    # ── Token access ─────────────────────────────────────────────

    def _current(self) -> Token:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return self.tokens[-1]  # EOF

    def _peek(self, offset: int = 0) -> Token:
        idx = self.pos + offset
        if idx < len(self.tokens):
            return self.tokens[idx]
        return self.tokens[-1]

    def _at(self, kind: TokenKind) -> bool:
        return self._current().kind == kind

    def _at_any(self, *kinds: TokenKind) -> bool:
        return self._current().kind in kinds

    def _advance(self) -> Token:
        tok = self._current()
        if self.pos < len(self.tokens) - 1:
            self.pos += 1
        return tok

    def _expect(self, kind: TokenKind) -> Token:
        if self._current().kind == kind:
            return self._advance()
        tok = self._current()
        self._error(f"expected {kind.name}, got {tok.kind.name} ({tok.value!r})", tok.span)
        raise _ParseError

    def _skip_newlines(self) -> None:
        while self._at(TokenKind.NEWLINE):
            self._advance()

    def _error(self, message: str, span: Span) -> None:
        self.diagnostics.append(
            Diagnostic(
                severity=Severity.ERROR,
                code="E200",
                message=message,
                labels=[DiagnosticLabel(span=span, message="")],
            )
        )

    def _span(self, start: Span, end: Span) -> Span:
        """Build a Span from a start span to an end span."""
        return Span(
            self.filename,
            start.start_line, start.start_col,
            end.end_line, end.end_col,
        )

    def _synchronize(self) -> None:
        """Skip tokens until the start of the next declaration."""
        while not self._at(TokenKind.EOF):
            if self._at(TokenKind.NEWLINE):
                self._advance()
                return
            self._advance()

    # ── Top-level parsing ────────────────────────────────────────

    def parse(self) -> Module:
        """Parse the entire token stream into a Module."""
        declarations: list[PipeDef] = []
        self._skip_newlines()

        while not self._at(TokenKind.EOF):
            try:
                decl = self._parse_declaration()
                if decl is not None:
                    declarations.append(decl)
            except _ParseError:
                self._synchronize()
            self._skip_newlines()

        end = self._current().span
        span = Span(self.filename, 1, 1, end.end_line, end.end_col)
        if self.diagnostics:
            raise CompileError(self.diagnostics)
        return Module(declarations=declarations, span=span)

    def parse_standalone_expression(self) -> Expr:
        """Parse a single expression that must span the whole input."""
        self._skip_newlines()
        try:
            expr = self._parse_expression(0)
            self._skip_newlines()
            if not self._at(TokenKind.EOF):
                tok = self._current()
                self._error(f"unexpected token after expression: {tok.value!r}", tok.span)
        except _ParseError:
            pass
        if self.diagnostics:
            raise CompileError(self.diagnostics)
        return expr

    def _parse_declaration(self) -> PipeDef | None:
        """Parse a single top-level declaration."""
        self._skip_newlines()

        doc_lines: list[str] = []
        while self._at(TokenKind.DOC_COMMENT):
            doc_lines.append(self._advance().value)
            self._skip_newlines()
        doc_comment = '\n'.join(doc_lines) if doc_lines else None

        tok = self._current()
        if tok.kind == TokenKind.EOF:
            return None
        if tok.kind not in _DECL_KEYWORDS:
            self._error(
                f"expected 'pipe' or 'def' declaration, got {tok.kind.name} ({tok.value!r})",
                tok.span,
            )
            raise _ParseError

        self._advance()
        head = self._parse_head()
        self._expect(TokenKind.ARROW)
        body = self._parse_expression(0)

        if not self._at_any(TokenKind.NEWLINE, TokenKind.EOF):
            extra = self._current()
            self._error(
                f"unexpected token after declaration body: {extra.kind.name} ({extra.value!r})",
                extra.span,
            )
            raise _ParseError

        return PipeDef(
            head=head,
            body=body,
            synthesize=tok.kind == TokenKind.PIPE_DECL,
            doc_comment=doc_comment,
            span=self._span(tok.span, body.span),
        )

    def _parse_head(self) -> Head:
        name_tok = self._expect(TokenKind.IDENTIFIER)
        self._expect(TokenKind.LPAREN)
        params: list[Pattern] = []
        while not self._at(TokenKind.RPAREN) and not self._at(TokenKind.EOF):
            if params:
                self._expect(TokenKind.COMMA)
            params.append(self._parse_pattern())
        end_tok = self._expect(TokenKind.RPAREN)
        head = FunctionHead(name_tok.value, params, self._span(name_tok.span, end_tok.span))

        if not self._at(TokenKind.WHEN):
            return head
        self._advance()
        guard = self._parse_expression(0)
        return GuardedHead(head, guard, self._span(head.span, guard.span))

    # ── Patterns ─────────────────────────────────────────────────

    def _parse_pattern(self) -> Pattern:
        pattern = self._parse_primary_pattern()
        if self._at(TokenKind.ASSIGN):
            self._advance()
            name_tok = self._expect(TokenKind.IDENTIFIER)
            return AliasPattern(pattern, name_tok.value,
                                self._span(pattern.span, name_tok.span))
        return pattern

    def _parse_primary_pattern(self) -> Pattern:
        tok = self._current()

        if tok.kind == TokenKind.IDENTIFIER and tok.value == '_':
            self._advance()
            return WildcardPattern(tok.span)

        if tok.kind == TokenKind.IDENTIFIER:
            self._advance()
            return BindingPattern(tok.value, tok.span)

        if tok.kind in _LITERAL_KINDS:
            self._advance()
            return LiteralPattern(literal_value(tok), tok.span)

        if tok.kind == TokenKind.MINUS and self._peek(1).kind in (
                TokenKind.INTEGER_LIT, TokenKind.DECIMAL_LIT):
            self._advance()
            num = self._advance()
            return LiteralPattern(-literal_value(num), self._span(tok.span, num.span))

        if tok.kind in (TokenKind.OK, TokenKind.ERROR):
            self._advance()
            self._expect(TokenKind.LPAREN)
            inner = self._parse_pattern()
            end_tok = self._expect(TokenKind.RPAREN)
            return ResultPattern(tok.value, inner, self._span(tok.span, end_tok.span))

        if tok.kind == TokenKind.LBRACE:
            self._advance()
            elements = self._parse_sequence(self._parse_pattern, TokenKind.RBRACE)
            end_tok = self._expect(TokenKind.RBRACE)
            return TuplePattern(elements, self._span(tok.span, end_tok.span))

        if tok.kind == TokenKind.LBRACKET:
            return self._parse_list_pattern()

        if tok.kind == TokenKind.MAP_OPEN:
            self._advance()
            entries = self._parse_entries(self._parse_pattern)
            end_tok = self._expect(TokenKind.RBRACE)
            return MapPattern(entries, self._span(tok.span, end_tok.span))

        if tok.kind == TokenKind.TYPE_IDENTIFIER:
            self._advance()
            if not self._at(TokenKind.LBRACE):
                self._error(f"expected '{{' after record tag '{tok.value}'", tok.span)
                raise _ParseError
            self._advance()
            entries = self._parse_entries(self._parse_pattern)
            end_tok = self._expect(TokenKind.RBRACE)
            return RecordPattern(tok.value, entries, self._span(tok.span, end_tok.span))

        self._error(f"expected pattern, got {tok.kind.name} ({tok.value!r})", tok.span)
        raise _ParseError

    def _parse_list_pattern(self) -> ListPattern:
        start = self._advance().span  # [
        elements: list[Pattern] = []
        tail: Pattern | None = None
        while not self._at(TokenKind.RBRACKET) and not self._at(TokenKind.EOF):
            if elements:
                self._expect(TokenKind.COMMA)
            elements.append(self._parse_pattern())
            if self._at(TokenKind.PIPE):
                self._advance()
                tail = self._parse_pattern()
                break
        end_tok = self._expect(TokenKind.RBRACKET)
        return ListPattern(elements, tail, self._span(start, end_tok.span))

    # ── Shared helpers ───────────────────────────────────────────

    def _parse_sequence(self, parse_item, closing: TokenKind) -> list:
        items = []
        while not self._at(closing) and not self._at(TokenKind.EOF):
            if items:
                self._expect(TokenKind.COMMA)
            items.append(parse_item())
        return items

    def _parse_entries(self, parse_value) -> list[tuple[str, object]]:
        """Parse `key: value, ...` up to (not including) the closing brace."""
        entries: list[tuple[str, object]] = []
        seen: set[str] = set()
        while not self._at(TokenKind.RBRACE) and not self._at(TokenKind.EOF):
            if entries:
                self._expect(TokenKind.COMMA)
            key_tok = self._expect(TokenKind.IDENTIFIER)
            self._expect(TokenKind.COLON)
            if key_tok.value in seen:
                self._error(f"duplicate key '{key_tok.value}'", key_tok.span)
            seen.add(key_tok.value)
            entries.append((key_tok.value, parse_value()))
        return entries

    # ── Pratt expression parser ──────────────────────────────────

    def _parse_expression(self, min_bp: int) -> Expr:
        """Parse an expression using Pratt parsing with binding powers."""
        left = self._parse_prefix()

        while True:
            tok = self._current()

            if tok.kind == TokenKind.DOT:
                if _POSTFIX_BP < min_bp:
                    break
                self._advance()
                field_tok = self._expect(TokenKind.IDENTIFIER)
                left = FieldExpr(left, field_tok.value,
                                 self._span(left.span, field_tok.span))
                continue

            if tok.kind == TokenKind.LPAREN and isinstance(left, IdentifierExpr):
                if _POSTFIX_BP < min_bp:
                    break
                left = self._parse_call_expr(left)
                continue

            if tok.kind in _INFIX_BP:
                left_bp, right_bp = _INFIX_BP[tok.kind]
                if left_bp < min_bp:
                    break
                op_tok = self._advance()
                right = self._parse_expression(right_bp)
                span = self._span(left.span, right.span)
                if op_tok.kind == TokenKind.PIPE_ARROW:
                    if not isinstance(right, (CallExpr, IdentifierExpr)):
                        self._error("right side of |> must be a function call", right.span)
                        raise _ParseError
                    left = PipeExpr(left, right, span)
                elif op_tok.kind == TokenKind.ALT_ARROW:
                    left = AlternativeExpr(left, right, span)
                else:
                    left = BinaryExpr(left, _OP_STRINGS[op_tok.kind], right, span)
                continue

            break

        return left

    def _parse_prefix(self) -> Expr:
        """Parse a prefix expression (atom or unary operator)."""
        tok = self._current()

        if tok.kind in (TokenKind.NOT, TokenKind.MINUS):
            self._advance()
            operand = self._parse_expression(_PREFIX_BP)
            op = 'not' if tok.kind == TokenKind.NOT else '-'
            return UnaryExpr(op, operand, self._span(tok.span, operand.span))

        if tok.kind == TokenKind.INTEGER_LIT:
            self._advance()
            return IntegerLit(parse_int(tok.value), tok.span)

        if tok.kind == TokenKind.DECIMAL_LIT:
            self._advance()
            return DecimalLit(float(tok.value.replace('_', '')), tok.span)

        if tok.kind == TokenKind.STRING_LIT:
            self._advance()
            return StringLit(tok.value, tok.span)

        if tok.kind == TokenKind.ATOM_LIT:
            self._advance()
            return AtomLit(tok.value, tok.span)

        if tok.kind == TokenKind.BOOLEAN_LIT:
            self._advance()
            return BooleanLit(tok.value == 'true', tok.span)

        if tok.kind == TokenKind.NIL_LIT:
            self._advance()
            return NilLit(tok.span)

        if tok.kind == TokenKind.LPAREN:
            self._advance()
            expr = self._parse_expression(0)
            self._expect(TokenKind.RPAREN)
            return expr

        if tok.kind in (TokenKind.OK, TokenKind.ERROR):
            self._advance()
            self._expect(TokenKind.LPAREN)
            value = self._parse_expression(0)
            end_tok = self._expect(TokenKind.RPAREN)
            return ResultExpr(tok.value, value, self._span(tok.span, end_tok.span))

        if tok.kind == TokenKind.LBRACE:
            self._advance()
            elements = self._parse_sequence(lambda: self._parse_expression(0), TokenKind.RBRACE)
            end_tok = self._expect(TokenKind.RBRACE)
            return TupleLiteral(elements, self._span(tok.span, end_tok.span))

        if tok.kind == TokenKind.LBRACKET:
            return self._parse_list_literal()

        if tok.kind == TokenKind.MAP_OPEN:
            self._advance()
            entries = self._parse_entries(lambda: self._parse_expression(0))
            end_tok = self._expect(TokenKind.RBRACE)
            return MapLiteral(entries, self._span(tok.span, end_tok.span))

        if tok.kind == TokenKind.IF:
            return self._parse_if_expr()

        if tok.kind == TokenKind.FN:
            return self._parse_lambda()

        if tok.kind == TokenKind.IDENTIFIER:
            self._advance()
            return IdentifierExpr(tok.value, tok.span)

        if tok.kind == TokenKind.TYPE_IDENTIFIER:
            self._advance()
            if self._at(TokenKind.LBRACE):
                self._advance()
                entries = self._parse_entries(lambda: self._parse_expression(0))
                end_tok = self._expect(TokenKind.RBRACE)
                return RecordLiteral(tok.value, entries, self._span(tok.span, end_tok.span))
            return TypeIdentifierExpr(tok.value, tok.span)

        self._error(f"unexpected token in expression: {tok.kind.name} ({tok.value!r})", tok.span)
        raise _ParseError

    def _parse_call_expr(self, func: Expr) -> CallExpr:
        """Parse a function call: func(args)."""
        self._advance()  # (
        args = self._parse_sequence(lambda: self._parse_expression(0), TokenKind.RPAREN)
        end_tok = self._expect(TokenKind.RPAREN)
        return CallExpr(func, args, self._span(func.span, end_tok.span))

    def _parse_list_literal(self) -> ListLiteral:
        start = self._advance().span  # [
        elements: list[Expr] = []
        tail: Expr | None = None
        while not self._at(TokenKind.RBRACKET) and not self._at(TokenKind.EOF):
            if elements:
                self._expect(TokenKind.COMMA)
            elements.append(self._parse_expression(0))
            if self._at(TokenKind.PIPE):
                self._advance()
                tail = self._parse_expression(0)
                break
        end_tok = self._expect(TokenKind.RBRACKET)
        return ListLiteral(elements, tail, self._span(start, end_tok.span))

    def _parse_if_expr(self) -> IfExpr:
        start = self._advance().span  # 'if'
        condition = self._parse_expression(0)
        self._expect(TokenKind.THEN)
        then_expr = self._parse_expression(0)
        self._expect(TokenKind.ELSE)
        else_expr = self._parse_expression(0)
        return IfExpr(condition, then_expr, else_expr,
                      self._span(start, else_expr.span))

    def _parse_lambda(self) -> LambdaExpr:
        start = self._advance().span  # 'fn'
        self._expect(TokenKind.LPAREN)
        params = self._parse_sequence(
            lambda: self._expect(TokenKind.IDENTIFIER).value, TokenKind.RPAREN,
        )
        self._expect(TokenKind.RPAREN)
        self._expect(TokenKind.ARROW)
        body = self._parse_expression(0)
        return LambdaExpr(params, body, self._span(start, body.span))


def parse_source(source: str, filename: str = "<stdin>") -> Module:
    """Lex and parse a whole `.pipe` source."""
    from pipehammer.lexer import Lexer

    tokens = Lexer(source, filename).lex()
    return Parser(tokens, filename).parse()


def parse_expression(source: str, filename: str = "<expr>") -> Expr:
    """Lex and parse a single expression, e.g. a command line argument."""
    from pipehammer.lexer import Lexer

    tokens = Lexer(source, filename).lex()
    return Parser(tokens, filename).parse_standalone_expression()


class _ParseError(Exception):
    """Internal exception for parser error recovery."""
