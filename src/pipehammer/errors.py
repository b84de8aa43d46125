"""Diagnostics for declaration processing and the runtime error hierarchy."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from pipehammer.source import SourceFile, Span


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"
    NOTE = "note"


_COLORS = {
    Severity.ERROR: "\033[1;31m",
    Severity.WARNING: "\033[1;33m",
    Severity.NOTE: "\033[1;36m",
}
_BOLD = "\033[1m"
_BLUE = "\033[1;34m"
_RESET = "\033[0m"


@dataclass(frozen=True)
class DiagnosticLabel:
    """A source location with a short message."""

    span: Span
    message: str


@dataclass
class Diagnostic:
    severity: Severity
    code: str
    message: str
    labels: list[DiagnosticLabel] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)


class DiagnosticRenderer:
    """Renders diagnostics as `error[E300]: message` blocks with excerpts.

    Files are loaded on first use. Text that never touched disk (stdin,
    `run` arguments) is registered up front with :meth:`add_source`.
    """

    def __init__(self, *, color: bool = True) -> None:
        self.color = color
        self._sources: dict[str, SourceFile | None] = {}

    def _c(self, code: str) -> str:
        return code if self.color else ""

    def add_source(self, source: SourceFile) -> None:
        self._sources[source.name] = source

    def _source(self, filename: str) -> SourceFile | None:
        if filename not in self._sources:
            path = Path(filename)
            try:
                self._sources[filename] = SourceFile(path) if path.is_file() else None
            except OSError:
                self._sources[filename] = None
        return self._sources[filename]

    def render(self, diag: Diagnostic) -> str:
        color = self._c(_COLORS[diag.severity])
        bar = f"{self._c(_BLUE)}   |{self._c(_RESET)}"
        lines = [
            f"{color}{diag.severity.value}[{diag.code}]{self._c(_RESET)}"
            f"{self._c(_BOLD)}: {diag.message}{self._c(_RESET)}"
        ]
        for label in diag.labels:
            if label.span.start_line > 0:
                lines.extend(self._excerpt(label, color, bar))
        for note in diag.notes:
            lines.append(f"  {self._c(_BLUE)}={self._c(_RESET)} note: {note}")
        return "\n".join(lines)

    def _excerpt(self, label: DiagnosticLabel, color: str, bar: str) -> list[str]:
        span = label.span
        out = [f"  {self._c(_BLUE)}-->{self._c(_RESET)} {span}", f"  {bar}"]
        source = self._source(span.file)
        if source is not None and span.start_line <= len(source.lines):
            gutter = f"{span.start_line:>4}"
            out.append(
                f"  {self._c(_BLUE)}{gutter} |{self._c(_RESET)} {source.line_at(span.start_line)}"
            )
        if span.start_line == span.end_line:
            carets = "^" * max(1, span.end_col - span.start_col + 1)
            out.append(f"  {bar} {' ' * (span.start_col - 1)}{color}{carets}{self._c(_RESET)}")
        if label.message:
            out.append(f"  {bar}   {color}{label.message}{self._c(_RESET)}")
        return out


class CompileError(Exception):
    """Batch error carrying every diagnostic of a failed lex, parse or check."""

    def __init__(self, diagnostics: list[Diagnostic]) -> None:
        self.diagnostics = diagnostics
        messages = [d.message for d in diagnostics]
        super().__init__(f"{len(diagnostics)} error(s): {'; '.join(messages)}")


# ── Runtime errors ───────────────────────────────────────────────


class PipehammerError(Exception):
    """Base class for errors raised while running generated clauses."""

    code = "R000"

    def __init__(self, message: str, span: Span | None = None) -> None:
        self.message = message
        self.span = span
        super().__init__(message)

    def to_diagnostic(self) -> Diagnostic:
        labels = [DiagnosticLabel(span=self.span, message="")] if self.span else []
        return Diagnostic(
            severity=Severity.ERROR,
            code=self.code,
            message=self.message,
            labels=labels,
        )


class EvaluationError(PipehammerError):
    """A body or guard expression could not be evaluated."""

    code = "R100"


class UnboundNameError(EvaluationError):
    """An expression referenced a variable that no pattern bound."""

    code = "R101"

    def __init__(self, name: str, span: Span | None = None) -> None:
        self.name = name
        super().__init__(f"undefined variable '{name}'", span)


class UndefinedFunctionError(EvaluationError):
    """A call named a function that is neither declared nor builtin."""

    code = "R102"

    def __init__(self, name: str, arity: int, span: Span | None = None) -> None:
        self.name = name
        self.arity = arity
        super().__init__(f"undefined function {name}/{arity}", span)


class DispatchError(PipehammerError):
    """No clause of a function matched the call arguments."""

    code = "R200"

    def __init__(self, signature: object, arguments: tuple, rendered_args: str) -> None:
        self.signature = signature
        self.arguments = arguments
        super().__init__(
            f"no clause of {signature} matches arguments ({rendered_args})"
        )


class ScopeFinalizedError(RuntimeError):
    """A declaration scope was used after its clauses were finalized."""
