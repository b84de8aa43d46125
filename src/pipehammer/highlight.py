"""Pygments lexer for `.pipe` sources and terminal highlighting."""

from __future__ import annotations

from pygments import highlight
from pygments.formatters import TerminalFormatter
from pygments.lexer import RegexLexer, bygroups, words
from pygments.token import (
    Comment,
    Keyword,
    Name,
    Number,
    Operator,
    Punctuation,
    String,
    Text,
)

from pipehammer.prelude import BUILTINS


class PipeLexer(RegexLexer):
    """Pygments lexer for pipehammer declaration files."""

    name = "Pipehammer"
    aliases = ["pipehammer", "pipe"]
    filenames = ["*.pipe"]
    mimetypes = ["text/x-pipehammer"]

    tokens = {
        "root": [
            # Whitespace
            (r"\s+", Text),
            # Doc comments (/// ...)
            (r"///.*$", Comment.Special),
            # Line comments (// ...)
            (r"//.*$", Comment.Single),
            # Strings with escape support
            (r'"', String, "string"),
            # Atoms
            (r":[a-zA-Z_][a-zA-Z0-9_]*", String.Symbol),
            # Numbers
            (r"0x[0-9a-fA-F][0-9a-fA-F_]*", Number.Hex),
            (r"0b[01][01_]*", Number.Bin),
            (r"0o[0-7][0-7_]*", Number.Oct),
            (r"[0-9][0-9_]*\.[0-9][0-9_]*", Number.Float),
            (r"[0-9][0-9_]*", Number.Integer),
            # Declaration keyword followed by the function name
            (r"^(pipe|def)(\s+)([a-z_][a-zA-Z0-9_]*)",
             bygroups(Keyword.Declaration, Text, Name.Function)),
            # Core keywords
            (
                words(
                    ("when", "if", "then", "else", "fn", "and", "or", "not"),
                    prefix=r"\b",
                    suffix=r"\b",
                ),
                Keyword,
            ),
            # Result tags
            (words(("Ok", "Error"), prefix=r"\b", suffix=r"\b"), Name.Builtin.Pseudo),
            # Constants
            (r"\b(true|false|nil)\b", Keyword.Constant),
            # Builtins
            (words(tuple(sorted(BUILTINS)), prefix=r"\b", suffix=r"\b(?=\s*\()"), Name.Builtin),
            # Operators (multi-char before single-char)
            (r"<\|>|\|>", Operator),
            (r"%\{", Punctuation),
            (r"==|!=|<=|>=|<>|->", Operator),
            (r"[+\-*/%<>=.]", Operator),
            # Record tags (PascalCase)
            (r"[A-Z][a-zA-Z0-9_]*", Name.Class),
            # Map and record keys
            (r"[a-z_][a-zA-Z0-9_]*(?=:\s)", Name.Attribute),
            # Identifiers
            (r"[a-z_][a-zA-Z0-9_]*", Name),
            # Punctuation
            (r"[(),\[\]{}:|]", Punctuation),
        ],
        # String state, handles escape sequences
        "string": [
            (r'\\[nrt\\"0]', String.Escape),
            (r'[^"\\]+', String),
            (r'"', String, "#pop"),
        ],
    }


def highlight_source(source: str) -> str:
    """Highlight `.pipe` text with ANSI colors for a terminal."""
    return highlight(source, PipeLexer(), TerminalFormatter())
