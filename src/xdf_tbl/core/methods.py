"""Selection of the summarise method.

There are five ways to compute a summary:

1. cube engine: only n(), mean(), sum(); grouped data only (fast)
2. summary engine: n, mean, sum, sd, var, min, max; grouping optional (fast)
3. as 2, but grouping on a single label pasted together from the grouping
   variables, for when the product of key cardinalities is too large (moderate)
4. split by group, apply arbitrary named functions to each group (slow)
5. split by group, run the summary engine on each group (slowest, most scalable)

Methods 3 and 5 are only used when asked for explicitly.
"""

from __future__ import annotations

import numbers
import warnings
from collections.abc import Iterable, Sequence
from enum import IntEnum
from typing import Optional

from ..utils.logging import get_logger
from .errors import InvalidMethodSelectorError, MethodFallbackWarning
from .expressions import CUBE_STATS, SUMMARY_STATS, canonical_stat

logger = get_logger("methods")


class Method(IntEnum):
    CUBE = 1
    SUMMARY = 2
    SUMMARY_PASTED = 3
    SPLIT_GENERAL = 4
    SPLIT_SUMMARY = 5


VALID_METHODS = frozenset(int(m) for m in Method)

METHOD_DESCRIPTIONS = {
    Method.CUBE: "cube engine; n, mean, sum only; grouped data only (fast)",
    Method.SUMMARY: "summary engine; n, mean, sum, sd, var, min, max (fast)",
    Method.SUMMARY_PASTED: "summary engine over pasted grouping labels (moderately fast)",
    Method.SPLIT_GENERAL: "split by group, arbitrary named functions per group (slow)",
    Method.SPLIT_SUMMARY: "split by group, summary engine per group (slowest, most scalable)",
}


def _automatic(cube_ok: bool, summary_ok: bool, grouped: bool) -> Method:
    if cube_ok and grouped:
        return Method.CUBE
    if summary_ok:
        return Method.SUMMARY
    return Method.SPLIT_GENERAL


def _unmet_precondition(
    method: int, cube_ok: bool, summary_ok: bool, grouped: bool
) -> Optional[str]:
    """Return a message for the first precondition ``method`` violates, if any."""
    if method == 1 and not grouped:
        return "grouping variables required for method=1"
    if method == 3 and not grouped:
        return "grouping variables required for method=3"
    if method == 1 and not cube_ok:
        return "requested summary statistics not supported by the cube engine"
    if method in (2, 5) and not summary_ok:
        return "requested summary statistics not supported by the summary engine"
    return None


def select_method(
    stats: Iterable[str], method: Optional[int] = None, groups: Sequence[str] = ()
) -> Method:
    """Choose the summarise method for a set of statistics.

    An explicit ``method`` that cannot handle the statistics or the grouping
    emits a ``MethodFallbackWarning`` and falls back to automatic selection,
    which always succeeds.

    Args:
        stats: Aggregate function names used in the call
        method: Explicit method from 1 to 5, or None for automatic selection
        groups: Grouping variables of the input

    Returns:
        The method to run

    Raises:
        InvalidMethodSelectorError: If ``method`` is not a number from 1 to 5
    """
    if method is not None and (
        isinstance(method, bool)
        or not isinstance(method, numbers.Integral)
        or int(method) not in VALID_METHODS
    ):
        raise InvalidMethodSelectorError(
            f"unknown method selection for summarise (must be a number from 1 to 5): {method!r}"
        )

    canonical = {canonical_stat(s) for s in stats}
    cube_ok = canonical <= CUBE_STATS
    summary_ok = canonical <= SUMMARY_STATS
    grouped = len(groups) > 0

    if method is not None:
        problem = _unmet_precondition(int(method), cube_ok, summary_ok, grouped)
        if problem is None:
            chosen = Method(int(method))
            logger.debug("Using requested summarise method %d", chosen)
            return chosen
        warnings.warn(problem, MethodFallbackWarning, stacklevel=2)

    chosen = _automatic(cube_ok, summary_ok, grouped)
    logger.debug("Selected summarise method %d automatically", chosen)
    return chosen
