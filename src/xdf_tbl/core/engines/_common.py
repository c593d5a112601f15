"""Helpers shared by the summary engines."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

import polars as pl

from ..errors import UnknownFunctionError
from ..expressions import AggregateCall
from ..storage import XdfTable

SUPPORTED_ENGINE_ARGS = frozenset({"row_filter"})


def prepare_frame(table: XdfTable, engine_args: Mapping[str, Any] | None) -> pl.LazyFrame:
    """Scan the input table and apply engine arguments.

    Args:
        table: Input table
        engine_args: Engine arguments; ``row_filter`` is a polars expression
            applied before aggregation

    Returns:
        Lazy frame over the rows to summarise
    """
    engine_args = engine_args or {}
    unknown = set(engine_args) - SUPPORTED_ENGINE_ARGS
    if unknown:
        raise ValueError(f"Unsupported engine arguments: {sorted(unknown)}")

    lf = table.scan()
    row_filter = engine_args.get("row_filter")
    if row_filter is not None:
        lf = lf.filter(row_filter)
    return lf


def require_stats(calls: Iterable[AggregateCall], allowed: frozenset[str], engine: str) -> None:
    unsupported = sorted({c.function for c in calls if c.stat not in allowed})
    if unsupported:
        raise ValueError(f"{engine} engine does not support: {', '.join(unsupported)}")


def stat_expr(call: AggregateCall) -> pl.Expr:
    """Build the polars expression for a built-in statistic."""
    if call.column is None or call.function == "n":
        return pl.len().cast(pl.Int64).alias(call.output)

    col = pl.col(call.column)
    stat = call.stat
    if call.function == "count":
        expr = col.count().cast(pl.Int64)
    elif stat == "mean":
        expr = col.mean()
    elif stat == "sum":
        expr = col.sum()
    elif stat == "sd":
        expr = col.std()
    elif stat == "var":
        expr = col.var()
    elif stat == "min":
        expr = col.min()
    elif stat == "max":
        expr = col.max()
    else:
        raise UnknownFunctionError(f"No engine expression for aggregate function: {call.function}")
    return expr.alias(call.output)


def summarise_frame(
    lf: pl.LazyFrame, groups: Sequence[str], calls: Sequence[AggregateCall]
) -> pl.DataFrame:
    """Single-pass summary of a lazy frame, grouped or not."""
    exprs = [stat_expr(c) for c in calls]
    if groups:
        return lf.group_by(list(groups)).agg(exprs).collect()
    return lf.select(exprs).collect()


def finish(df: pl.DataFrame, groups: Sequence[str], calls: Sequence[AggregateCall]) -> pl.DataFrame:
    """Order columns as keys then aggregates, and rows by key."""
    df = df.select([*groups, *[c.output for c in calls]])
    if groups:
        df = df.sort(list(groups), nulls_last=True)
    return df
