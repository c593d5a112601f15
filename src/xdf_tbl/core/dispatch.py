"""Route a selected summarise method to its engine."""

from __future__ import annotations

import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Callable, Union

import polars as pl

from ..utils.logging import get_logger, log_timing
from .engines import ENGINES
from .errors import UnexpectedWorkerOutputError
from .expressions import AggregateCall
from .storage import StorageLocation, XdfTable

logger = get_logger("dispatch")

Engine = Callable[..., Union[pl.DataFrame, XdfTable]]


@dataclass(frozen=True)
class InMemoryResult:
    """Engine output held as an in-memory frame."""

    frame: pl.DataFrame


@dataclass(frozen=True)
class FileResult:
    """Engine output written to a new file-backed table."""

    table: XdfTable


RawResult = Union[InMemoryResult, FileResult]


def dispatch(
    method: int,
    table: XdfTable,
    groups: Sequence[str],
    stats: set[str],
    calls: Sequence[AggregateCall],
    engine_args: Mapping[str, Any] | None = None,
    engines: Mapping[int, Engine] | None = None,
) -> RawResult:
    """Run the engine for ``method`` and tag its output.

    Engine failures propagate unchanged; there are no retries.

    Args:
        method: Summarise method from 1 to 5
        table: Input table
        groups: Grouping variables
        stats: Statistic set of the call
        calls: Validated aggregates
        engine_args: Passed through to the engine untouched
        engines: Engine registry (defaults to the built-in polars engines)

    Returns:
        The engine's output as ``InMemoryResult`` or ``FileResult``

    Raises:
        UnexpectedWorkerOutputError: If a distributed input produced a
            file-backed result
    """
    registry = ENGINES if engines is None else engines
    engine = registry[int(method)]

    t0 = time.perf_counter()
    result = engine(table, list(groups), set(stats), list(calls), engine_args)
    log_timing(logger, f"engine.{int(method)}", (time.perf_counter() - t0) * 1000)

    if isinstance(result, XdfTable):
        if table.location is not StorageLocation.LOCAL:
            raise UnexpectedWorkerOutputError(
                "cannot have file-backed outputs from summary engines on distributed storage"
            )
        return FileResult(result)

    if isinstance(result, pl.DataFrame):
        return InMemoryResult(result)

    raise TypeError(f"Summary engine returned unsupported result: {type(result).__name__}")
