"""Summary engine grouping on one combined label built from the keys.

Grouping on a single label keeps the number of classification levels equal
to the number of groups actually present, rather than the product of each
key's cardinality. The label is a struct of the key values, so distinct key
tuples never share a label and the key dtypes survive unchanged.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

import polars as pl

from ..expressions import SUMMARY_STATS, AggregateCall
from ..storage import XdfTable
from ._common import finish, prepare_frame, require_stats, stat_expr

LABEL_COLUMN = "__xdf_group_label__"


def run(
    table: XdfTable,
    groups: Sequence[str],
    stats: set[str],
    calls: Sequence[AggregateCall],
    engine_args: Mapping[str, Any] | None = None,
) -> pl.DataFrame:
    if not groups:
        raise ValueError("pasted-label summary requires grouping variables")
    require_stats(calls, SUMMARY_STATS, "summary")

    label = pl.struct([pl.col(g) for g in groups]).alias(LABEL_COLUMN)

    lf = prepare_frame(table, engine_args).with_columns(label)
    # Key columns come back out of the label
    df = (
        lf.group_by(LABEL_COLUMN)
        .agg([stat_expr(c) for c in calls])
        .collect()
        .unnest(LABEL_COLUMN)
    )
    return finish(df, groups, calls)
