"""Registry of functions that tables may reference by name.

Derived attributes, filters and reduce functions are persisted as a name plus
literal parameters (see :class:`FunctionRef`) and bound back to Python
callables through a :class:`FunctionRegistry`. Three calling conventions are
in use:

- derived attributes: ``func(wrapped_item, *params)``; may return an awaitable
- filters: ``func(value, *params)``; ``value`` is the row value, or the index
  for index filters
- reduce functions: ``func(original_item, new_item, attribute, *params)``
"""

from __future__ import annotations

import hashlib
import json
import re
from dataclasses import dataclass
from typing import Any, Callable

from graph_tables.functions.reference import FunctionRef


@dataclass(frozen=True)
class BoundFunction:
    """A FunctionRef resolved to its implementation."""

    ref: FunctionRef
    impl: Callable[..., Any]

    def __call__(self, *args: Any) -> Any:
        return self.impl(*args, *self.ref.args)

    def __str__(self) -> str:
        return str(self.ref)


class FunctionRegistry:
    """Name -> callable mapping."""

    def __init__(self, functions: dict[str, Callable[..., Any]] | None = None) -> None:
        self._functions: dict[str, Callable[..., Any]] = dict(functions or {})

    def register(self, name: str, func: Callable[..., Any] | None = None) -> Any:
        """Register ``func`` under ``name``; usable as a decorator."""
        if func is None:
            def decorator(f: Callable[..., Any]) -> Callable[..., Any]:
                self._functions[name] = f
                return f
            return decorator
        self._functions[name] = func
        return func

    def get(self, name: str) -> Callable[..., Any]:
        try:
            return self._functions[name]
        except KeyError:
            raise KeyError(f"Unknown named function: {name}") from None

    def bind(self, ref: FunctionRef) -> BoundFunction:
        return BoundFunction(ref, self.get(ref.name))

    def copy(self) -> FunctionRegistry:
        return FunctionRegistry(self._functions)

    @property
    def names(self) -> list[str]:
        return sorted(self._functions)

    def __contains__(self, name: object) -> bool:
        return name in self._functions


NAMED_FUNCTIONS = FunctionRegistry()


# ---- Derived attributes ----

@NAMED_FUNCTIONS.register("identity")
def identity(item: Any) -> Any:
    return dict(item.row)


@NAMED_FUNCTIONS.register("noop")
def noop(item: Any) -> None:
    return None


@NAMED_FUNCTIONS.register("index")
def index(item: Any) -> Any:
    return item.index


@NAMED_FUNCTIONS.register("get")
def get(item: Any, attribute: str) -> Any:
    return item.row.get(attribute)


@NAMED_FUNCTIONS.register("sha1")
def sha1(item: Any) -> str:
    payload = json.dumps(item.row, sort_keys=True, default=str)
    return hashlib.sha1(payload.encode("utf-8")).hexdigest()


# ---- Reduce functions ----

@NAMED_FUNCTIONS.register("count")
def count(original: Any, new: Any, attribute: str) -> int:
    return (original.row.get(attribute) or 0) + 1


@NAMED_FUNCTIONS.register("sum")
def sum_(original: Any, new: Any, attribute: str, source: str) -> Any:
    return (original.row.get(attribute) or 0) + (new.row.get(source) or 0)


# ---- Filters ----

@NAMED_FUNCTIONS.register("equals")
def equals(value: Any, expected: Any) -> bool:
    return value == expected


@NAMED_FUNCTIONS.register("not_equals")
def not_equals(value: Any, expected: Any) -> bool:
    return value != expected


@NAMED_FUNCTIONS.register("contains")
def contains(value: Any, needle: Any) -> bool:
    return value is not None and needle in value


@NAMED_FUNCTIONS.register("one_of")
def one_of(value: Any, options: tuple[Any, ...]) -> bool:
    return value in options


@NAMED_FUNCTIONS.register("greater_than")
def greater_than(value: Any, bound: Any) -> bool:
    return value is not None and value > bound


@NAMED_FUNCTIONS.register("less_than")
def less_than(value: Any, bound: Any) -> bool:
    return value is not None and value < bound


@NAMED_FUNCTIONS.register("is_null")
def is_null(value: Any) -> bool:
    return value is None


@NAMED_FUNCTIONS.register("not_null")
def not_null(value: Any) -> bool:
    return value is not None


@NAMED_FUNCTIONS.register("matches")
def matches(value: Any, pattern: str) -> bool:
    return value is not None and re.search(pattern, str(value)) is not None
