"""Landing summary results in the representation the caller asked for.

The caller's ``out`` argument picks one of three outputs:

- not supplied: a new managed table next to the input's store;
- ``None``: an in-memory frame;
- a path or ``XdfTable``: a persistent table at that location.

Distributed inputs are always summarised into memory first. A remote client
cannot write to the distributed store, so it builds the table in a local
scratch area and copies it across.
"""

from __future__ import annotations

import os
import uuid
import warnings
from dataclasses import dataclass, field, replace
from pathlib import Path, PurePosixPath
from typing import Any, Literal, Optional

import polars as pl

from ..config import StoreOptions, get_scratch_dir
from ..utils.logging import get_logger
from .dispatch import FileResult, InMemoryResult, RawResult
from .errors import DegradedOutputWarning, UnexpectedWorkerOutputError
from .storage import (
    NativeFileSystem,
    StorageLocation,
    XdfTable,
    delete_table,
    move_table,
    new_managed_table,
    write_table,
)

logger = get_logger("materialize")


class _Unspecified:
    """Marker for an ``out`` argument the caller did not supply."""

    def __repr__(self) -> str:
        return "UNSPECIFIED"


UNSPECIFIED: Any = _Unspecified()


@dataclass(frozen=True)
class OutputTarget:
    """Where the caller wants the result to end up."""

    kind: Literal["unspecified", "none", "named"]
    path: Optional[str] = None
    table: Optional[XdfTable] = None

    def __post_init__(self) -> None:
        """Validate target after creation."""
        if self.kind not in ("unspecified", "none", "named"):
            raise ValueError(f"Unknown output target kind: {self.kind}")
        if self.kind == "named" and (self.path is None) == (self.table is None):
            raise ValueError("Named output needs exactly one of path or table")
        if self.kind != "named" and (self.path is not None or self.table is not None):
            raise ValueError(f"{self.kind.capitalize()} output takes no path or table")

    @classmethod
    def coerce(cls, value: Any) -> OutputTarget:
        """Interpret the caller's ``out`` argument."""
        if isinstance(value, OutputTarget):
            return value
        if value is UNSPECIFIED:
            return cls(kind="unspecified")
        if value is None:
            return cls(kind="none")
        if isinstance(value, XdfTable):
            return cls(kind="named", table=value)
        if isinstance(value, (str, os.PathLike)):
            return cls(kind="named", path=os.fspath(value))
        raise TypeError(f"Unsupported output target: {value!r}")


@dataclass
class MaterializedOutput:
    """Final result of a summarise call, tagged with its storage contract."""

    kind: Literal["memory", "managed", "persistent"]
    frame: pl.DataFrame | None = None
    table: XdfTable | None = None
    groups: list[str] = field(default_factory=list)
    method: int | None = None

    def __post_init__(self) -> None:
        if self.kind == "memory" and (self.frame is None or self.table is not None):
            raise ValueError("Memory output holds a frame and no table")
        if self.kind != "memory" and (self.table is None or self.frame is not None):
            raise ValueError(f"{self.kind.capitalize()} output holds a table and no frame")

    @property
    def is_managed(self) -> bool:
        return self.kind == "managed"

    def collect(self) -> pl.DataFrame:
        """Return the result's rows as an in-memory frame."""
        if self.frame is not None:
            return self.frame
        assert self.table is not None
        return self.table.collect()


def _wrap(table: XdfTable) -> MaterializedOutput:
    return MaterializedOutput(kind="managed" if table.managed else "persistent", table=table)


def materialize(
    raw: RawResult, target: OutputTarget, source: XdfTable, options: StoreOptions | None = None
) -> MaterializedOutput:
    """Turn an engine result into the output the caller asked for.

    Args:
        raw: Engine output
        target: Caller's output target
        source: The summarised input table
        options: Batch size and scratch/managed directories

    Returns:
        The materialized output
    """
    options = options or StoreOptions()
    location = source.location

    if location is StorageLocation.LOCAL:
        return _materialize_native(raw, target, source, options)
    if location in (StorageLocation.DISTRIBUTED_DIRECT, StorageLocation.DISTRIBUTED_REMOTE):
        return _materialize_distributed(raw, target, source, options)
    raise ValueError(f"Unknown storage location: {location}")


def _native_target(target: OutputTarget, source: XdfTable, options: StoreOptions) -> XdfTable:
    if target.table is not None:
        return target.table
    if target.path is not None:
        return XdfTable(
            path=Path(target.path), filesystem=NativeFileSystem(), composite=source.composite
        )
    return new_managed_table(source, options)


def _materialize_native(
    raw: RawResult, target: OutputTarget, source: XdfTable, options: StoreOptions
) -> MaterializedOutput:
    if isinstance(raw, InMemoryResult):
        if target.kind == "none":
            return MaterializedOutput(kind="memory", frame=raw.frame)
        table = _native_target(target, source, options)
        write_table(raw.frame, table, options.rows_per_read)
        return _wrap(table)

    if isinstance(raw, FileResult):
        return _salvage_file_result(raw.table, target, options)

    raise TypeError(f"Unknown raw result: {type(raw).__name__}")


def _salvage_file_result(
    raw_table: XdfTable, target: OutputTarget, options: StoreOptions
) -> MaterializedOutput:
    """Best-effort handling of an engine that wrote its own output table."""
    warnings.warn(
        "unexpected file-backed output from summary engine", DegradedOutputWarning, stacklevel=2
    )

    if target.kind == "named":
        if target.table is not None and not isinstance(target.table.filesystem, NativeFileSystem):
            write_table(raw_table.collect(), target.table, options.rows_per_read)
            delete_table(raw_table)
            return _wrap(target.table)
        dest = target.table.path if target.table is not None else target.path
        assert dest is not None
        return _wrap(move_table(raw_table, dest))

    if target.kind == "unspecified":
        return _wrap(replace(raw_table, managed=True))

    frame = raw_table.collect()
    delete_table(raw_table)
    return MaterializedOutput(kind="memory", frame=frame)


def _distributed_target(
    target: OutputTarget, source: XdfTable, options: StoreOptions, composite: bool
) -> XdfTable:
    """Resolve the output table inside the input's distributed namespace."""
    if target.kind == "unspecified":
        return new_managed_table(source, options, composite=composite)

    if target.table is not None:
        path, managed_flag = str(target.table.path), target.table.managed
    else:
        path, managed_flag = str(target.path), False
    return XdfTable(
        path=path, filesystem=source.filesystem, composite=composite, managed=managed_flag
    )


def _direct_composite(target: OutputTarget, source: XdfTable) -> bool:
    """Composite flag for a table written straight into the distributed store.

    A bare path is always written composite. A managed table follows the
    input, and an explicit table keeps its own layout.
    """
    if target.table is not None:
        return target.table.composite
    if target.kind == "unspecified":
        return source.composite
    return True


def _materialize_distributed(
    raw: RawResult, target: OutputTarget, source: XdfTable, options: StoreOptions
) -> MaterializedOutput:
    if isinstance(raw, FileResult):
        raise UnexpectedWorkerOutputError(
            "cannot have file-backed outputs from summary engines on distributed storage"
        )
    if not isinstance(raw, InMemoryResult):
        raise TypeError(f"Unknown raw result: {type(raw).__name__}")

    if target.kind == "none":
        return MaterializedOutput(kind="memory", frame=raw.frame)

    if source.location is StorageLocation.DISTRIBUTED_REMOTE:
        dest = _distributed_target(target, source, options, composite=source.composite)
        output = _copy_through_scratch(raw.frame, dest, source, options)
    else:
        dest = _distributed_target(
            target, source, options, composite=_direct_composite(target, source)
        )
        output = write_table(raw.frame, dest, options.rows_per_read)

    logger.debug("Wrote summary to distributed path %s", output.path)
    return _wrap(output)


def _copy_through_scratch(
    frame: pl.DataFrame, dest: XdfTable, source: XdfTable, options: StoreOptions
) -> XdfTable:
    """Write ``frame`` to a local scratch table, then copy it to ``dest``.

    The scratch table is removed whether or not the write and copy succeed.
    """
    base = PurePosixPath(dest.basename)
    scratch = XdfTable(
        path=get_scratch_dir(options) / f"{base.stem}-{uuid.uuid4().hex[:8]}{base.suffix}",
        filesystem=NativeFileSystem(),
        composite=dest.composite,
        managed=True,
    )

    try:
        write_table(frame, scratch, options.rows_per_read)
        copied = source.filesystem.copy_from_local(scratch, dest.path)
    finally:
        delete_table(scratch)

    return replace(copied, managed=dest.managed)


def regroup(output: MaterializedOutput, groups: list[str]) -> MaterializedOutput:
    """Drop the innermost grouping level from the output's metadata."""
    remaining = list(groups[:-1])
    output.groups = remaining
    if output.table is not None:
        output.table = replace(output.table, groups=remaining)
    return output
