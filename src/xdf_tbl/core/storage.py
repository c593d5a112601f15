"""File-backed tables and the file systems they live on.

A table is stored as parquet, either as a single file or as a composite
(sharded) directory of ``part-NNNNN.parquet`` files addressed as one unit.
Two file systems are supported: the native local store and a distributed
namespace. A distributed file system flagged ``remote_client`` is reached
through an intermediary and only accepts new tables via ``copy_from_local``.
"""

from __future__ import annotations

import shutil
import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING, Union

import polars as pl

from ..config import DISTRIBUTED_WORK_DIR, ROWS_PER_READ

if TYPE_CHECKING:
    from ..config import StoreOptions


class StorageLocation(str, Enum):
    """Where a table's backing store lives, as seen from this process."""

    LOCAL = "local"
    DISTRIBUTED_DIRECT = "distributed-direct"
    DISTRIBUTED_REMOTE = "distributed-via-remote-client"


@dataclass(frozen=True)
class NativeFileSystem:
    """The local random-access file system."""

    def resolve(self, path: str | Path) -> Path:
        return Path(path)

    def check_writable(self) -> None:
        pass


@dataclass(frozen=True)
class DistributedFileSystem:
    """A distributed namespace mounted at ``root``.

    Paths inside the namespace are posix-style and absolute, e.g. ``/user/me/out``.
    """

    root: Path
    remote_client: bool = False
    work_dir: str = DISTRIBUTED_WORK_DIR

    def resolve(self, path: str | Path) -> Path:
        posix = PurePosixPath("/") / str(path)
        return Path(self.root) / posix.relative_to("/")

    def check_writable(self) -> None:
        """Raise if this process cannot write to the namespace directly."""
        if self.remote_client:
            raise PermissionError(
                "remote client cannot write to the distributed file system directly; "
                "create the table locally and copy it across"
            )

    def copy_from_local(self, local: XdfTable, dest_path: str | PurePosixPath) -> XdfTable:
        """Copy a native table into the namespace at ``dest_path``.

        The copy keeps the composite flag of the local table.
        """
        if not isinstance(local.filesystem, NativeFileSystem):
            raise ValueError("copy_from_local requires a table on the native file system")

        dest = XdfTable(path=str(dest_path), filesystem=self, composite=local.composite)
        source_path = local.local_path
        target_path = dest.local_path

        delete_table(dest)
        target_path.parent.mkdir(parents=True, exist_ok=True)
        if local.composite:
            shutil.copytree(source_path, target_path)
        else:
            shutil.copy2(source_path, target_path)
        return dest


FileSystem = Union[NativeFileSystem, DistributedFileSystem]


@dataclass
class XdfTable:
    """A file-backed table plus its grouping metadata."""

    path: str | Path
    filesystem: FileSystem = field(default_factory=NativeFileSystem)
    composite: bool = False
    groups: list[str] = field(default_factory=list)
    managed: bool = False  # caller-invisible table owned by this package

    @property
    def local_path(self) -> Path:
        """Path of the table's file or shard directory on this machine."""
        return self.filesystem.resolve(self.path)

    @property
    def basename(self) -> str:
        return PurePosixPath(str(self.path)).name

    @property
    def location(self) -> StorageLocation:
        return classify_location(self)

    def exists(self) -> bool:
        return self.local_path.exists()

    def scan(self) -> pl.LazyFrame:
        """Lazily scan every shard of the table."""
        if self.composite:
            return pl.scan_parquet(str(self.local_path / "*.parquet"))
        return pl.scan_parquet(self.local_path)

    def collect(self) -> pl.DataFrame:
        return self.scan().collect()

    def group_by(self, *cols: str) -> XdfTable:
        """Return a copy of this table grouped by ``cols`` (metadata only)."""
        return replace(self, groups=list(cols))

    def ungroup(self) -> XdfTable:
        return replace(self, groups=[])


def classify_location(table: XdfTable) -> StorageLocation:
    """Classify a table's backing store."""
    fs = table.filesystem
    if isinstance(fs, DistributedFileSystem):
        if fs.remote_client:
            return StorageLocation.DISTRIBUTED_REMOTE
        return StorageLocation.DISTRIBUTED_DIRECT
    if isinstance(fs, NativeFileSystem):
        return StorageLocation.LOCAL
    raise TypeError(f"Unknown file system: {type(fs).__name__}")


def detect_composite(path: str | Path, filesystem: FileSystem | None = None) -> bool:
    """Return True if the table at ``path`` is a shard directory."""
    fs = filesystem or NativeFileSystem()
    return fs.resolve(path).is_dir()


def open_xdf(path: str | Path, filesystem: FileSystem | None = None) -> XdfTable:
    """Open an existing table, detecting whether it is composite.

    Raises:
        FileNotFoundError: If nothing exists at ``path``.
    """
    fs = filesystem or NativeFileSystem()
    if not fs.resolve(path).exists():
        raise FileNotFoundError(f"{path} not found")
    return XdfTable(path=path, filesystem=fs, composite=detect_composite(path, fs))


def write_table(
    df: pl.DataFrame, table: XdfTable, rows_per_read: int = ROWS_PER_READ, overwrite: bool = True
) -> XdfTable:
    """Create (or overwrite) ``table`` and stream ``df`` into it.

    Rows are written in batches of ``rows_per_read``: one row group per batch
    for single-file tables, one shard per batch for composite tables.

    Raises:
        PermissionError: If the table's file system is not directly writable.
        FileExistsError: If the table exists and ``overwrite`` is False.
    """
    table.filesystem.check_writable()
    target = table.local_path

    if target.exists():
        if not overwrite:
            raise FileExistsError(f"{table.path} already exists")
        delete_table(table)

    target.parent.mkdir(parents=True, exist_ok=True)

    if table.composite:
        target.mkdir()
        # An empty frame still gets one shard so the schema survives
        for i, start in enumerate(range(0, max(df.height, 1), rows_per_read)):
            df.slice(start, rows_per_read).write_parquet(target / f"part-{i:05d}.parquet")
    else:
        df.write_parquet(target, row_group_size=rows_per_read)

    return table


def move_table(table: XdfTable, dest_path: str | Path) -> XdfTable:
    """Rename a native table to ``dest_path``, replacing whatever is there."""
    if not isinstance(table.filesystem, NativeFileSystem):
        raise ValueError("move_table only supports tables on the native file system")

    dest = replace(table, path=Path(dest_path), managed=False)
    delete_table(dest)
    dest.local_path.parent.mkdir(parents=True, exist_ok=True)
    shutil.move(str(table.local_path), str(dest.local_path))
    return dest


def delete_table(table: XdfTable) -> None:
    """Remove a table's file or shard directory. Missing tables are ignored."""
    target = table.local_path
    if target.is_dir():
        shutil.rmtree(target)
    elif target.exists():
        target.unlink()


def as_xdf(
    df: pl.DataFrame,
    path: str | Path,
    filesystem: FileSystem | None = None,
    composite: bool = False,
    rows_per_read: int = ROWS_PER_READ,
) -> XdfTable:
    """Write an in-memory frame out as a new table."""
    table = XdfTable(path=path, filesystem=filesystem or NativeFileSystem(), composite=composite)
    return write_table(df, table, rows_per_read)


def new_managed_table(
    template: XdfTable, options: StoreOptions, composite: bool | None = None
) -> XdfTable:
    """Allocate a uniquely named managed table next to ``template``'s store.

    Nothing is written. The table inherits ``template``'s file system and,
    unless ``composite`` is given, its composite flag.
    """
    if composite is None:
        composite = template.composite

    name = f"file{uuid.uuid4().hex[:12]}"
    if not composite:
        name += ".parquet"

    fs = template.filesystem
    path: str | Path
    if isinstance(fs, DistributedFileSystem):
        path = str(PurePosixPath(fs.work_dir) / name)
    else:
        path = options.managed_dir / name

    return XdfTable(path=path, filesystem=fs, composite=composite, managed=True)
