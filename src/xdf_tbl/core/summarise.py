"""The summarise verb for file-backed tables."""

from __future__ import annotations

import time
from collections.abc import Mapping
from typing import Any, Optional

from ..config import StoreOptions
from ..utils.logging import get_logger, log_operation
from .dispatch import Engine, dispatch
from .expressions import statistic_set, validate_aggregates
from .materialize import UNSPECIFIED, MaterializedOutput, OutputTarget, materialize, regroup
from .methods import select_method
from .storage import XdfTable

logger = get_logger("summarise")


def summarise(
    data: XdfTable,
    aggs: Optional[Mapping[str, str]] = None,
    *,
    out: Any = UNSPECIFIED,
    method: Optional[int] = None,
    engine_args: Optional[Mapping[str, Any]] = None,
    options: Optional[StoreOptions] = None,
    engines: Optional[Mapping[int, Engine]] = None,
    **named_aggs: str,
) -> MaterializedOutput:
    """Summarise multiple values to a single value per group.

    Aggregates are name-value pairs such as ``m="mean(x)"`` or ``count="n()"``.
    Each must be ``n()`` or a named function applied to a single column;
    derived expressions like ``sum(x + y)`` are rejected. Custom functions
    added with ``register_function`` are allowed and force method 4.

    There are five methods; see ``xdf_tbl.core.methods``. By default method 1
    is used for grouped data whose statistics the cube engine supports, then
    method 2 if the summary engine supports them, otherwise method 4.

    Summarising a distributed table streams the result to this process before
    it is written back to the distributed store.

    Args:
        data: Input table, possibly grouped
        aggs: Aggregates as a mapping of output name to expression
        out: Output target. If not supplied, a new managed table; if None, an
            in-memory frame; if a path or ``XdfTable``, a persistent table there
        method: Explicit method from 1 to 5
        engine_args: Passed through to the engine (e.g. ``row_filter``)
        options: Batch size and scratch/managed directories
        engines: Replacement engine registry
        **named_aggs: Aggregates as keyword arguments

    Returns:
        The result with one level of grouping removed

    Raises:
        ValueError: If no aggregates are given or an output name is repeated
        UnsupportedExpressionError: If an aggregate is not of a supported form
        InvalidMethodSelectorError: If ``method`` is not a number from 1 to 5
        UnexpectedWorkerOutputError: If an engine wrote a table for distributed data
    """
    if not isinstance(data, XdfTable):
        raise TypeError(f"summarise expects an XdfTable, got {type(data).__name__}")

    aggs = aggs or {}
    duplicated = sorted(set(aggs) & set(named_aggs))
    if duplicated:
        raise ValueError(f"Duplicate aggregate output names: {', '.join(duplicated)}")

    requested = {**aggs, **named_aggs}
    if not requested:
        raise ValueError("summarise requires at least one aggregate expression")

    t0 = time.perf_counter()
    calls = validate_aggregates(requested)
    stats = statistic_set(calls)
    target = OutputTarget.coerce(out)
    groups = list(data.groups)

    chosen = select_method(stats, method, groups)
    raw = dispatch(chosen, data, groups, stats, calls, engine_args, engines)
    output = materialize(raw, target, data, options or StoreOptions())
    output.method = int(chosen)

    # summarise consumes the innermost grouping level
    result = regroup(output, groups)

    log_operation(
        logger,
        "summarise",
        duration_ms=(time.perf_counter() - t0) * 1000,
        method=int(chosen),
        location=data.location.value,
        target=target.kind,
        output=result.kind,
    )
    return result


summarize = summarise
