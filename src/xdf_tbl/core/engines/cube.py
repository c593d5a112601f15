"""Cube engine: grouped n/mean/sum in one lazy pass."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

import polars as pl

from ..expressions import CUBE_STATS, AggregateCall
from ..storage import XdfTable
from ._common import finish, prepare_frame, require_stats, summarise_frame


def run(
    table: XdfTable,
    groups: Sequence[str],
    stats: set[str],
    calls: Sequence[AggregateCall],
    engine_args: Mapping[str, Any] | None = None,
) -> pl.DataFrame:
    """Compute n/mean/sum per group.

    Args:
        table: Input table
        groups: Grouping variables (at least one)
        stats: Statistic set of the call
        calls: Validated aggregates
        engine_args: Engine arguments (see ``prepare_frame``)

    Returns:
        One row per group
    """
    if not groups:
        raise ValueError("cube engine requires grouping variables")
    require_stats(calls, CUBE_STATS, "cube")

    lf = prepare_frame(table, engine_args)
    return finish(summarise_frame(lf, groups, calls), groups, calls)
