"""Summary engines, one per summarise method.

Each engine takes ``(table, groups, stats, calls, engine_args)`` and returns
either an in-memory frame or a file-backed table.
"""

from .cube import run as cube_engine
from .split_general import run as split_general_engine
from .split_summary import run as split_summary_engine
from .summary import run as summary_engine
from .summary_pasted import run as summary_pasted_engine

ENGINES = {
    1: cube_engine,
    2: summary_engine,
    3: summary_pasted_engine,
    4: split_general_engine,
    5: split_summary_engine,
}

__all__ = [
    "ENGINES",
    "cube_engine",
    "summary_engine",
    "summary_pasted_engine",
    "split_general_engine",
    "split_summary_engine",
]
