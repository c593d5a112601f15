"""Split-by-group engine running the summary engine on each group."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

import polars as pl

from ..expressions import SUMMARY_STATS, AggregateCall
from ..storage import XdfTable
from ._common import finish, prepare_frame, require_stats, summarise_frame


def run(
    table: XdfTable,
    groups: Sequence[str],
    stats: set[str],
    calls: Sequence[AggregateCall],
    engine_args: Mapping[str, Any] | None = None,
) -> pl.DataFrame:
    """Summarise one group at a time.

    Only one group's rows are materialized at once, which keeps memory
    bounded when there are very many groups.
    """
    require_stats(calls, SUMMARY_STATS, "summary")
    lf = prepare_frame(table, engine_args)

    if not groups:
        return finish(summarise_frame(lf, groups, calls), groups, calls)

    keys = lf.select(list(groups)).unique(maintain_order=True).collect()
    frames = []
    for key in keys.iter_rows(named=True):
        condition = pl.all_horizontal([pl.col(g).eq_missing(key[g]) for g in groups])
        frames.append(summarise_frame(lf.filter(condition), groups, calls))

    if not frames:
        # Empty input: let the single-pass summary produce the schema
        return finish(summarise_frame(lf, groups, calls), groups, calls)

    return finish(pl.concat(frames, how="vertical_relaxed"), groups, calls)
