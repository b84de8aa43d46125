"""Tagged result values produced and consumed by generated clauses."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Ok:
    """A successful result wrapping a payload."""

    value: Any
    __match_args__ = ("value",)

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True)
class Error:
    """A failed result wrapping a payload."""

    value: Any
    __match_args__ = ("value",)

    def __repr__(self) -> str:
        return f"Error({self.value!r})"


RESULT_TAGS: dict[str, type] = {"Ok": Ok, "Error": Error}


def is_result(value: object) -> bool:
    return isinstance(value, (Ok, Error))
