"""Lexer for `.pipe` declaration files.

Produces a stream of tokens from source text. A declaration starts in
column 1; a line break only becomes a NEWLINE token when the next
significant line starts in column 1 again, outside any bracket, and the
previous token does not expect a continuation.
"""

from __future__ import annotations

from pipehammer.errors import CompileError, Diagnostic, DiagnosticLabel, Severity
from pipehammer.source import Span
from pipehammer.tokens import (
    KEYWORDS,
    NEWLINE_SUPPRESSED_AFTER,
    Token,
    TokenKind,
)

_TWO_CHAR_OPS: dict[str, TokenKind] = {
    '|>': TokenKind.PIPE_ARROW,
    '->': TokenKind.ARROW,
    '==': TokenKind.EQUAL,
    '!=': TokenKind.NOT_EQUAL,
    '<=': TokenKind.LESS_EQUAL,
    '>=': TokenKind.GREATER_EQUAL,
    '<>': TokenKind.CONCAT,
    '%{': TokenKind.MAP_OPEN,
}

_OPENING = frozenset({
    TokenKind.LPAREN, TokenKind.LBRACKET, TokenKind.LBRACE, TokenKind.MAP_OPEN,
})


class Lexer:
    """Tokenizes `.pipe` source code."""

    def __init__(self, source: str, filename: str = "<stdin>") -> None:
        self.source = source
        self.filename = filename
        self.pos = 0
        self.line = 1
        self.col = 1
        self.bracket_depth = 0
        self.prev_token: Token | None = None
        self.tokens: list[Token] = []
        self.diagnostics: list[Diagnostic] = []
        self._at_line_start = True
        self._pending_newline: tuple[int, int] | None = None

    def lex(self) -> list[Token]:
        """Tokenize the entire source and return the token list."""
        while self.pos < len(self.source):
            if self._at_line_start and self.bracket_depth == 0:
                self._handle_indentation()
            self._at_line_start = False
            self._skip_spaces()
            if self.pos >= len(self.source):
                break
            ch = self.source[self.pos]
            if ch == '\n':
                self._handle_newline()
            elif ch == '/' and self._peek(1) == '/' and self._peek(2) == '/':
                self._lex_doc_comment()
            elif ch == '/' and self._peek(1) == '/':
                self._skip_line_comment()
            elif ch == '"':
                self._lex_string()
            elif ch == ':' and (self._peek(1).isalpha() or self._peek(1) == '_'):
                self._lex_atom()
            elif ch.isdigit():
                self._lex_number()
            elif ch.isalpha() or ch == '_':
                self._lex_identifier()
            else:
                self._lex_operator_or_punct()

        if self._pending_newline is not None:
            self._emit(TokenKind.NEWLINE, "\n", *self._pending_newline)
            self._pending_newline = None
        if self.bracket_depth > 0:
            self._error("unclosed bracket at end of input", self.line, self.col)

        self._emit(TokenKind.EOF, "", self.line, self.col)

        if self.diagnostics:
            raise CompileError(self.diagnostics)
        return self.tokens

    # ── Helpers ───────────────────────────────────────────────────

    def _peek(self, offset: int = 0) -> str:
        idx = self.pos + offset
        if idx < len(self.source):
            return self.source[idx]
        return '\0'

    def _advance(self) -> str:
        ch = self.source[self.pos]
        self.pos += 1
        if ch == '\n':
            self.line += 1
            self.col = 1
        else:
            self.col += 1
        return ch

    def _is_digit_or_underscore(self) -> bool:
        ch = self.source[self.pos]
        return ch.isdigit() or ch == '_'

    def _is_ident_char(self) -> bool:
        ch = self.source[self.pos]
        return ch.isalnum() or ch == '_'

    def _emit(self, kind: TokenKind, value: str, start_line: int, start_col: int) -> Token:
        end_col = self.col - 1 if self.col > 1 else 1
        span = Span(self.filename, start_line, start_col, self.line, end_col)
        tok = Token(kind, value, span)
        self.tokens.append(tok)
        self.prev_token = tok
        return tok

    def _error(self, message: str, line: int, col: int) -> None:
        span = Span(self.filename, line, col, line, col)
        self.diagnostics.append(
            Diagnostic(
                severity=Severity.ERROR,
                code="E100",
                message=message,
                labels=[DiagnosticLabel(span=span, message="")],
            )
        )

    def _skip_spaces(self) -> None:
        """Skip spaces, tabs and carriage returns (but not newlines)."""
        while self.pos < len(self.source) and self.source[self.pos] in (' ', '\t', '\r'):
            if self.source[self.pos] == '\t':
                self._error("tabs are not allowed; use spaces", self.line, self.col)
            self._advance()

    # ── Layout ───────────────────────────────────────────────────

    def _handle_indentation(self) -> None:
        """Decide at the start of a line whether a declaration just ended."""
        indent = 0
        while self.pos < len(self.source) and self.source[self.pos] == ' ':
            indent += 1
            self.pos += 1
            self.col += 1

        # Blank lines and comment-only lines keep the pending newline
        if self.pos >= len(self.source) or self.source[self.pos] in ('\n', '\r'):
            return
        if (self.source.startswith('//', self.pos)
                and not self.source.startswith('///', self.pos)):
            return

        if self._pending_newline is not None and indent == 0:
            self._emit(TokenKind.NEWLINE, "\n", *self._pending_newline)
        self._pending_newline = None

    def _handle_newline(self) -> None:
        start_line = self.line
        start_col = self.col
        self._advance()
        self._at_line_start = True

        if self.bracket_depth > 0:
            return
        if self.prev_token is None:
            return
        if self.prev_token.kind in NEWLINE_SUPPRESSED_AFTER:
            return
        if self.prev_token.kind == TokenKind.NEWLINE:
            return
        if self._pending_newline is None:
            self._pending_newline = (start_line, start_col)

    # ── Comments ─────────────────────────────────────────────────

    def _lex_doc_comment(self) -> None:
        start_line = self.line
        start_col = self.col
        # Skip ///
        self._advance()
        self._advance()
        self._advance()
        if self.pos < len(self.source) and self.source[self.pos] == ' ':
            self._advance()
        text = []
        while self.pos < len(self.source) and self.source[self.pos] not in ('\n', '\r'):
            text.append(self._advance())
        self._emit(TokenKind.DOC_COMMENT, ''.join(text), start_line, start_col)

    def _skip_line_comment(self) -> None:
        while self.pos < len(self.source) and self.source[self.pos] != '\n':
            self._advance()

    # ── Strings and atoms ────────────────────────────────────────

    def _lex_string(self) -> None:
        start_line = self.line
        start_col = self.col
        self._advance()  # skip opening "
        text = []

        while self.pos < len(self.source) and self.source[self.pos] != '"':
            if self.source[self.pos] == '\n':
                self._error("unterminated string literal", start_line, start_col)
                return
            if self.source[self.pos] == '\\':
                text.append(self._lex_escape_sequence())
            else:
                text.append(self._advance())

        if self.pos >= len(self.source):
            self._error("unterminated string literal", start_line, start_col)
            return

        self._advance()  # skip closing "
        self._emit(TokenKind.STRING_LIT, ''.join(text), start_line, start_col)

    def _lex_escape_sequence(self) -> str:
        self._advance()  # skip backslash
        if self.pos >= len(self.source):
            self._error("unexpected end of escape sequence", self.line, self.col)
            return ""
        ch = self._advance()
        escape_map = {'n': '\n', 'r': '\r', 't': '\t', '\\': '\\', '"': '"', '0': '\0'}
        if ch in escape_map:
            return escape_map[ch]
        self._error(f"unknown escape sequence: \\{ch}", self.line, self.col - 1)
        return ch

    def _lex_atom(self) -> None:
        start_line = self.line
        start_col = self.col
        self._advance()  # skip :
        text = []
        while self.pos < len(self.source) and self._is_ident_char():
            text.append(self._advance())
        self._emit(TokenKind.ATOM_LIT, ''.join(text), start_line, start_col)

    # ── Numbers ──────────────────────────────────────────────────

    def _lex_number(self) -> None:
        start_line = self.line
        start_col = self.col
        text = []

        if self.source[self.pos] == '0' and self.pos + 1 < len(self.source):
            digits = {'x': '0123456789abcdefABCDEF_', 'b': '01_', 'o': '01234567_'}
            prefix = self.source[self.pos + 1].lower()
            if prefix in digits:
                text.append(self._advance())  # 0
                text.append(self._advance())  # x, b or o
                while self.pos < len(self.source) and self.source[self.pos] in digits[prefix]:
                    text.append(self._advance())
                if len(text) == 2:
                    self._error(f"missing digits after '{''.join(text)}'", start_line, start_col)
                self._emit(TokenKind.INTEGER_LIT, ''.join(text), start_line, start_col)
                return

        while self.pos < len(self.source) and self._is_digit_or_underscore():
            text.append(self._advance())

        if (self.pos < len(self.source) and self.source[self.pos] == '.'
                and self.pos + 1 < len(self.source) and self.source[self.pos + 1].isdigit()):
            text.append(self._advance())  # .
            while self.pos < len(self.source) and self._is_digit_or_underscore():
                text.append(self._advance())
            self._emit(TokenKind.DECIMAL_LIT, ''.join(text), start_line, start_col)
        else:
            self._emit(TokenKind.INTEGER_LIT, ''.join(text), start_line, start_col)

    # ── Identifiers and Keywords ─────────────────────────────────

    def _lex_identifier(self) -> None:
        start_line = self.line
        start_col = self.col
        text = []
        while self.pos < len(self.source) and self._is_ident_char():
            text.append(self._advance())
        word = ''.join(text)

        if word in KEYWORDS:
            self._emit(KEYWORDS[word], word, start_line, start_col)
            return

        kind = TokenKind.TYPE_IDENTIFIER if word[0].isupper() else TokenKind.IDENTIFIER
        self._emit(kind, word, start_line, start_col)

    # ── Operators and Punctuation ────────────────────────────────

    def _lex_operator_or_punct(self) -> None:
        start_line = self.line
        start_col = self.col
        ch = self.source[self.pos]

        if self.source.startswith('<|>', self.pos):
            for _ in range(3):
                self._advance()
            self._emit(TokenKind.ALT_ARROW, '<|>', start_line, start_col)
            return

        two = self.source[self.pos:self.pos + 2]
        if two in _TWO_CHAR_OPS:
            self._advance()
            self._advance()
            kind = _TWO_CHAR_OPS[two]
            if kind in _OPENING:
                self.bracket_depth += 1
            self._emit(kind, two, start_line, start_col)
            return

        self._advance()
        match ch:
            case '+':
                self._emit(TokenKind.PLUS, '+', start_line, start_col)
            case '-':
                self._emit(TokenKind.MINUS, '-', start_line, start_col)
            case '*':
                self._emit(TokenKind.STAR, '*', start_line, start_col)
            case '/':
                self._emit(TokenKind.SLASH, '/', start_line, start_col)
            case '%':
                self._emit(TokenKind.PERCENT, '%', start_line, start_col)
            case '<':
                self._emit(TokenKind.LESS, '<', start_line, start_col)
            case '>':
                self._emit(TokenKind.GREATER, '>', start_line, start_col)
            case '=':
                self._emit(TokenKind.ASSIGN, '=', start_line, start_col)
            case '.':
                self._emit(TokenKind.DOT, '.', start_line, start_col)
            case '(':
                self.bracket_depth += 1
                self._emit(TokenKind.LPAREN, '(', start_line, start_col)
            case ')':
                self.bracket_depth = max(0, self.bracket_depth - 1)
                self._emit(TokenKind.RPAREN, ')', start_line, start_col)
            case '[':
                self.bracket_depth += 1
                self._emit(TokenKind.LBRACKET, '[', start_line, start_col)
            case ']':
                self.bracket_depth = max(0, self.bracket_depth - 1)
                self._emit(TokenKind.RBRACKET, ']', start_line, start_col)
            case '{':
                self.bracket_depth += 1
                self._emit(TokenKind.LBRACE, '{', start_line, start_col)
            case '}':
                self.bracket_depth = max(0, self.bracket_depth - 1)
                self._emit(TokenKind.RBRACE, '}', start_line, start_col)
            case ',':
                self._emit(TokenKind.COMMA, ',', start_line, start_col)
            case ':':
                self._emit(TokenKind.COLON, ':', start_line, start_col)
            case '|':
                self._emit(TokenKind.PIPE, '|', start_line, start_col)
            case _:
                self._error(f"unexpected character: {ch!r}", start_line, start_col)
