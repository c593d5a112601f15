"""Shared fixtures for xdf table tests."""

import polars as pl
import pytest

from xdf_tbl.config import StoreOptions
from xdf_tbl.core.storage import DistributedFileSystem, XdfTable, as_xdf


@pytest.fixture
def options(tmp_path):
    """Store options with small batches and scratch/managed dirs under tmp_path."""
    return StoreOptions(
        rows_per_read=4,
        scratch_dir=tmp_path / "scratch",
        managed_dir=tmp_path / "managed",
    )


@pytest.fixture
def sample_df():
    """Ten rows over three groups of g and two groups of h."""
    return pl.DataFrame(
        {
            "g": ["a", "b", "c", "a", "b", "c", "a", "b", "c", "a"],
            "h": [1, 1, 1, 1, 1, 2, 2, 2, 2, 2],
            "x": [float(i) for i in range(1, 11)],
            "y": [2, 4, 6, 8, 10, 12, 14, 16, 18, 20],
        }
    )


@pytest.fixture
def local_table(sample_df, tmp_path):
    """Single-file table on the native file system."""
    return as_xdf(sample_df, tmp_path / "input.parquet")


@pytest.fixture
def composite_table(sample_df, tmp_path):
    """Composite table on the native file system (three shards)."""
    return as_xdf(sample_df, tmp_path / "input_dir", composite=True, rows_per_read=4)


@pytest.fixture
def dist_root(tmp_path):
    return tmp_path / "dfs"


@pytest.fixture
def direct_table(sample_df, dist_root):
    """Composite table on a directly writable distributed file system."""
    fs = DistributedFileSystem(root=dist_root)
    return as_xdf(sample_df, "/data/input", filesystem=fs, composite=True, rows_per_read=4)


@pytest.fixture
def remote_table(direct_table, dist_root):
    """The same distributed table, seen from a remote client."""
    fs = DistributedFileSystem(root=dist_root, remote_client=True)
    return XdfTable(path="/data/input", filesystem=fs, composite=True)
