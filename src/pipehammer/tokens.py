"""Token kinds and token representation for the `.pipe` lexer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pipehammer.source import Span


class TokenKind(Enum):
    # Declarations
    PIPE_DECL = auto()
    DEF = auto()
    WHEN = auto()

    # Keywords
    IF = auto()
    THEN = auto()
    ELSE = auto()
    FN = auto()
    AND = auto()
    OR = auto()
    NOT = auto()
    OK = auto()
    ERROR = auto()

    # Literals
    INTEGER_LIT = auto()
    DECIMAL_LIT = auto()
    STRING_LIT = auto()
    ATOM_LIT = auto()
    BOOLEAN_LIT = auto()
    NIL_LIT = auto()

    # Operators
    PLUS = auto()
    MINUS = auto()
    STAR = auto()
    SLASH = auto()
    PERCENT = auto()
    CONCAT = auto()
    EQUAL = auto()
    NOT_EQUAL = auto()
    LESS = auto()
    GREATER = auto()
    LESS_EQUAL = auto()
    GREATER_EQUAL = auto()
    PIPE_ARROW = auto()
    ALT_ARROW = auto()
    ARROW = auto()
    ASSIGN = auto()
    DOT = auto()

    # Punctuation
    LPAREN = auto()
    RPAREN = auto()
    LBRACKET = auto()
    RBRACKET = auto()
    LBRACE = auto()
    RBRACE = auto()
    MAP_OPEN = auto()
    COMMA = auto()
    COLON = auto()
    PIPE = auto()

    # Layout
    NEWLINE = auto()

    # Comments
    DOC_COMMENT = auto()

    # Identifiers
    IDENTIFIER = auto()
    TYPE_IDENTIFIER = auto()

    # Special
    EOF = auto()


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    value: str
    span: Span


KEYWORDS: dict[str, TokenKind] = {
    "pipe": TokenKind.PIPE_DECL,
    "def": TokenKind.DEF,
    "when": TokenKind.WHEN,
    "if": TokenKind.IF,
    "then": TokenKind.THEN,
    "else": TokenKind.ELSE,
    "fn": TokenKind.FN,
    "and": TokenKind.AND,
    "or": TokenKind.OR,
    "not": TokenKind.NOT,
    "Ok": TokenKind.OK,
    "Error": TokenKind.ERROR,
    "true": TokenKind.BOOLEAN_LIT,
    "false": TokenKind.BOOLEAN_LIT,
    "nil": TokenKind.NIL_LIT,
}

# A line break after one of these never ends a declaration.
NEWLINE_SUPPRESSED_AFTER: frozenset[TokenKind] = frozenset({
    TokenKind.WHEN,
    TokenKind.IF,
    TokenKind.THEN,
    TokenKind.ELSE,
    TokenKind.AND,
    TokenKind.OR,
    TokenKind.NOT,
    TokenKind.COMMA,
    TokenKind.PLUS,
    TokenKind.MINUS,
    TokenKind.STAR,
    TokenKind.SLASH,
    TokenKind.PERCENT,
    TokenKind.CONCAT,
    TokenKind.EQUAL,
    TokenKind.NOT_EQUAL,
    TokenKind.LESS,
    TokenKind.GREATER,
    TokenKind.LESS_EQUAL,
    TokenKind.GREATER_EQUAL,
    TokenKind.PIPE_ARROW,
    TokenKind.ALT_ARROW,
    TokenKind.ARROW,
    TokenKind.ASSIGN,
    TokenKind.DOT,
    TokenKind.COLON,
    TokenKind.PIPE,
    TokenKind.LPAREN,
    TokenKind.LBRACKET,
    TokenKind.LBRACE,
    TokenKind.MAP_OPEN,
})
