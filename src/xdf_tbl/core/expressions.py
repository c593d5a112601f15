"""Parsing and validation of aggregate expressions.

Aggregates are written as call strings such as ``"mean(x)"`` or ``"n()"``.
Only two shapes are accepted: the zero-argument counting call ``n()`` and a
named function applied to exactly one bare column.
"""

from __future__ import annotations

import ast
from collections.abc import Iterable, Mapping
from typing import Optional

from pydantic import BaseModel

from .errors import UnsupportedExpressionError

COUNT_FUNCTION = "n"

# Folded for method selection only; engines still see the function as written
STAT_ALIASES = {
    "count": "n",
    "avg": "mean",
    "std": "sd",
    "stdev": "sd",
    "variance": "var",
}

CUBE_STATS = frozenset({"mean", "sum", "n"})
SUMMARY_STATS = frozenset({"mean", "sum", "sd", "var", "n", "min", "max"})


class AggregateCall(BaseModel):
    """One validated aggregate: ``output = function(column)``."""

    output: str
    function: str
    column: Optional[str] = None  # None only for n()

    @property
    def stat(self) -> str:
        return canonical_stat(self.function)


def canonical_stat(name: str) -> str:
    return STAT_ALIASES.get(name, name)


def parse_aggregate(output: str, expr: object) -> AggregateCall:
    """Parse a single aggregate expression.

    Raises:
        UnsupportedExpressionError: If ``expr`` is not ``n()`` or ``fn(column)``.
    """
    if not isinstance(expr, str):
        raise UnsupportedExpressionError(output, expr)

    try:
        node = ast.parse(expr.strip(), mode="eval").body
    except SyntaxError as e:
        raise UnsupportedExpressionError(output, expr) from e

    if not isinstance(node, ast.Call) or not isinstance(node.func, ast.Name) or node.keywords:
        raise UnsupportedExpressionError(output, expr)

    if not node.args:
        if node.func.id == COUNT_FUNCTION:
            return AggregateCall(output=output, function=COUNT_FUNCTION)
        raise UnsupportedExpressionError(output, expr)

    if len(node.args) != 1 or not isinstance(node.args[0], ast.Name):
        raise UnsupportedExpressionError(output, expr)

    return AggregateCall(output=output, function=node.func.id, column=node.args[0].id)


def validate_aggregates(aggs: Mapping[str, object]) -> list[AggregateCall]:
    """Validate every aggregate before anything touches the engine.

    Fails on the first offending output column.
    """
    calls = []
    for output, expr in aggs.items():
        if not isinstance(output, str) or not output.strip():
            raise UnsupportedExpressionError(str(output), expr)
        calls.append(parse_aggregate(output, expr))
    return calls


def statistic_set(calls: Iterable[AggregateCall]) -> set[str]:
    """Canonical function names used by ``calls``."""
    return {call.stat for call in calls}
