"""Split-by-group engine applying arbitrary named functions."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

import polars as pl

from ..expressions import AggregateCall
from ..functions import lookup_function
from ..storage import XdfTable
from ._common import finish, prepare_frame


def _apply(call: AggregateCall, part: pl.DataFrame) -> Any:
    if call.column is None:
        return part.height
    return lookup_function(call.function)(part.get_column(call.column))


def run(
    table: XdfTable,
    groups: Sequence[str],
    stats: set[str],
    calls: Sequence[AggregateCall],
    engine_args: Mapping[str, Any] | None = None,
) -> pl.DataFrame:
    """Split the table by group and apply each aggregate to every piece.

    Supports built-in functions and anything added with ``register_function``.

    Raises:
        UnknownFunctionError: If an aggregate names an unknown function
    """
    # Resolve functions up front so unknown names fail before any work
    for call in calls:
        if call.column is not None:
            lookup_function(call.function)

    df = prepare_frame(table, engine_args).collect()

    if groups:
        parts = df.partition_by(list(groups), maintain_order=True, as_dict=True)
    else:
        parts = {(): df}

    columns: dict[str, list[Any]] = {name: [] for name in [*groups, *[c.output for c in calls]]}
    for key, part in parts.items():
        for g, value in zip(groups, key):
            columns[g].append(value)
        for call in calls:
            columns[call.output].append(_apply(call, part))

    series = [pl.Series(g, columns[g], dtype=df.schema[g]) for g in groups]
    series += [pl.Series(c.output, columns[c.output]) for c in calls]
    return finish(pl.DataFrame(series), groups, calls)
