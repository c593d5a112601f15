"""Configuration and path management for xdf tables."""

import os
import tempfile
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field

# Load environment variables from .env file
load_dotenv()

# Base paths
BASE_DIR = Path(os.getenv("XDF_TBL_DIR", Path(tempfile.gettempdir()) / "xdf_tbl"))
SCRATCH_DIR = Path(os.getenv("XDF_TBL_SCRATCH_DIR", BASE_DIR / "scratch"))
MANAGED_DIR = Path(os.getenv("XDF_TBL_MANAGED_DIR", BASE_DIR / "managed"))

# Rows written per batch when streaming a frame into a table
ROWS_PER_READ = int(os.getenv("XDF_TBL_ROWS_PER_READ", "500000"))

# Managed tables on a distributed store land here unless the file system says otherwise
DISTRIBUTED_WORK_DIR = os.getenv("XDF_TBL_DISTRIBUTED_WORK_DIR", "/xdf_tbl")


class StoreOptions(BaseModel):
    """Settings handed to the dispatcher and materializer for a single call."""

    rows_per_read: int = Field(default=ROWS_PER_READ, gt=0)
    scratch_dir: Path = Field(default=SCRATCH_DIR)
    managed_dir: Path = Field(default=MANAGED_DIR)


def ensure_directories(options: StoreOptions | None = None) -> None:
    """Create the scratch and managed directories if they don't exist."""
    options = options or StoreOptions()
    for directory in [options.scratch_dir, options.managed_dir]:
        directory.mkdir(parents=True, exist_ok=True)


def get_scratch_dir(options: StoreOptions | None = None) -> Path:
    """Get scratch directory, creating if needed."""
    options = options or StoreOptions()
    ensure_directories(options)
    return options.scratch_dir


def get_managed_dir(options: StoreOptions | None = None) -> Path:
    """Get managed table directory, creating if needed."""
    options = options or StoreOptions()
    ensure_directories(options)
    return options.managed_dir
