"""Summary engine: single-pass descriptive statistics."""

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
    """Compute n/mean/sum/sd/var/min/max, grouped or over the whole table."""
    require_stats(calls, SUMMARY_STATS, "summary")

    lf = prepare_frame(table, engine_args)
    return finish(summarise_frame(lf, groups, calls), groups, calls)
