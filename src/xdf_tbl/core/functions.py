"""Named aggregate functions available to the split-by-group engine."""

from __future__ import annotations

from typing import Any, Callable

import polars as pl

from .errors import UnknownFunctionError
from .expressions import canonical_stat

AggregateFunction = Callable[[pl.Series], Any]

BUILTIN_FUNCTIONS: dict[str, AggregateFunction] = {
    "n": lambda s: s.len(),
    "count": lambda s: s.count(),
    "mean": lambda s: s.mean(),
    "sum": lambda s: s.sum(),
    "sd": lambda s: s.std(),
    "var": lambda s: s.var(),
    "min": lambda s: s.min(),
    "max": lambda s: s.max(),
    "median": lambda s: s.median(),
    "n_distinct": lambda s: s.n_unique(),
}

_registry: dict[str, AggregateFunction] = {}


def register_function(name: str, fn: AggregateFunction) -> None:
    """Register a named aggregate usable as ``name(column)`` in summarise.

    Registered functions are only supported by method 4, so using one always
    routes the call there.
    """
    if not name.isidentifier():
        raise ValueError(f"Function name must be an identifier: {name!r}")
    if name in BUILTIN_FUNCTIONS or canonical_stat(name) in BUILTIN_FUNCTIONS:
        raise ValueError(f"Cannot override built-in aggregate function: {name}")
    if not callable(fn):
        raise TypeError(f"Aggregate function {name} is not callable")
    _registry[name] = fn


def unregister_function(name: str) -> None:
    _registry.pop(name, None)


def lookup_function(name: str) -> AggregateFunction:
    """Find a built-in or registered function.

    Raises:
        UnknownFunctionError: If nothing is known by that name.
    """
    if name in BUILTIN_FUNCTIONS:
        return BUILTIN_FUNCTIONS[name]
    if canonical_stat(name) in BUILTIN_FUNCTIONS:
        return BUILTIN_FUNCTIONS[canonical_stat(name)]
    if name in _registry:
        return _registry[name]
    raise UnknownFunctionError(f"Unknown aggregate function: {name}")
