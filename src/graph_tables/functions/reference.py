"""Serializable reference to a named function plus its parameters."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any


def render_literal(value: Any) -> str:
    """Render a parameter the way the function reference grammar reads it."""
    if value is None:
        return "null"
    if value is True:
        return "true"
    if value is False:
        return "false"
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(render_literal(v) for v in value) + "]"
    raise TypeError(f"Cannot persist function parameter of type {type(value).__name__}")


def _freeze(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(v) for v in value)
    return value


@dataclass(frozen=True)
class FunctionRef:
    """A named function and the literal parameters bound to it.

    Tables persist these instead of function bodies; ``str(ref)`` is the
    canonical text form, e.g. ``equals("red")``.
    """

    name: str
    args: tuple[Any, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "args", _freeze(self.args))

    def __str__(self) -> str:
        return f"{self.name}({', '.join(render_literal(a) for a in self.args)})"
