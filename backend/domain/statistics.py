"""Descriptive statistics over a day's per-instance values."""
from __future__ import annotations

import math
from typing import Iterable, Optional

from .summary import Stats


def calc_stats(values: Iterable[int]) -> Optional[Stats]:
    """Min, max, mean, median and population standard deviation.

    Returns ``None`` for an empty input: no data is not the same as zero.
    """
    ordered = sorted(values)
    n = len(ordered)
    if n == 0:
        return None

    mean = sum(ordered) / n
    mid = n // 2
    if n % 2 == 0:
        median = (ordered[mid - 1] + ordered[mid]) / 2
    else:
        median = float(ordered[mid])

    squared = sum((value - mean) ** 2 for value in ordered)
    return Stats(
        min=ordered[0],
        max=ordered[-1],
        mean=mean,
        median=median,
        std_dev=math.sqrt(squared / n),
    )
