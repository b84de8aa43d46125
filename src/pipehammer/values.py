"""Runtime values of the declaration language and their source rendering."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from pipehammer.results import Error, Ok

if TYPE_CHECKING:
    from pipehammer.ast_nodes import Expr
    from pipehammer.evaluator import Environment, Evaluator


@dataclass(frozen=True)
class Atom:
    """A named constant such as `:division_by_zero`."""

    name: str

    def __repr__(self) -> str:
        return f":{self.name}"


OK_ATOM = Atom("ok")


@dataclass
class Record:
    """An open, tagged map: `Square{w: 1, h: 2}`."""

    tag: str
    fields: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RecordType:
    """The value of a bare record tag such as `Circle`."""

    name: str


@dataclass
class Closure:
    """A lambda captured together with its defining environment."""

    params: list[str]
    body: Expr
    env: Environment
    evaluator: Evaluator

    def __call__(self, *args: Any) -> Any:
        return self.evaluator.apply_closure(self, list(args))


def format_float(value: float) -> str:
    """Positional notation that reads back as the same decimal literal."""
    if not math.isfinite(value):
        return repr(value)
    text = repr(value)
    if "e" in text or "E" in text:
        text = format(Decimal(text), "f")
    if "." not in text:
        text += ".0"
    return text


def show(value: Any) -> str:
    """Render a runtime value in `.pipe` source syntax."""
    if value is None:
        return "nil"
    if value is True:
        return "true"
    if value is False:
        return "false"
    if isinstance(value, float):
        return format_float(value)
    if isinstance(value, int):
        return repr(value)
    if isinstance(value, str):
        escaped = (value.replace("\\", "\\\\").replace('"', '\\"')
                   .replace("\n", "\\n").replace("\t", "\\t"))
        return f'"{escaped}"'
    if isinstance(value, Atom):
        return f":{value.name}"
    if isinstance(value, Ok):
        return f"Ok({show(value.value)})"
    if isinstance(value, Error):
        return f"Error({show(value.value)})"
    if isinstance(value, tuple):
        return "{" + ", ".join(show(v) for v in value) + "}"
    if isinstance(value, list):
        return "[" + ", ".join(show(v) for v in value) + "]"
    if isinstance(value, dict):
        return "%{" + _show_entries(value) + "}"
    if isinstance(value, Record):
        return value.tag + "{" + _show_entries(value.fields) + "}"
    if isinstance(value, RecordType):
        return value.name
    if isinstance(value, Closure):
        return f"#Function<fn/{len(value.params)}>"
    if callable(value):
        name = getattr(value, "name", None) or getattr(value, "__name__", "builtin")
        return f"#Function<{name}>"
    return repr(value)


def _show_entries(entries: dict) -> str:
    parts = []
    for key, val in entries.items():
        if isinstance(key, str) and key.isidentifier():
            parts.append(f"{key}: {show(val)}")
        else:
            parts.append(f"{show(key)} => {show(val)}")
    return ", ".join(parts)
