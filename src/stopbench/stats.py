"""Reduction of raw timing samples to per-point statistics.

Only descriptive statistics are computed: minimum, maximum, median and
population standard deviation.  Execution-time distributions are
right-skewed by scheduler and OS noise, so the median and minimum are
reported instead of the mean.
"""

from __future__ import annotations

import statistics
from typing import Sequence

from stopbench.results import PointStat


# ---------------------------------------------------------------------------
# Descriptive statistics
# ---------------------------------------------------------------------------


def median(values: Sequence[float]) -> float:
    """Median of *values*.

    Odd counts give the central value, even counts the arithmetic mean
    of the two central values.
    """
    if not values:
        raise ValueError("median of an empty sample")
    return statistics.median(values)


def population_std_dev(values: Sequence[float]) -> float:
    """Population standard deviation (divides by n, not n - 1).

    A single sample has a deviation of 0.0.
    """
    if not values:
        raise ValueError("standard deviation of an empty sample")
    if len(values) == 1:
        return 0.0
    return statistics.pstdev(values)


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------


def aggregate(
    name: str,
    samples: Sequence[int],
    *,
    ramp_up: int,
    repeat: int,
) -> PointStat:
    """Reduce the measured samples of one workload point to a PointStat.

    Args:
        name: Benchmark name recorded in the statistic.
        samples: Elapsed nanoseconds, one per measured iteration.
        ramp_up: Number of discarded warm-up iterations (recorded only).
        repeat: Number of measured iterations; must equal ``len(samples)``.

    Raises:
        ValueError: If *samples* is empty or its length differs from *repeat*.
    """
    if not samples:
        raise ValueError(f"No samples to aggregate for benchmark '{name}'")
    if len(samples) != repeat:
        raise ValueError(
            f"Benchmark '{name}' expected {repeat} samples, got {len(samples)}"
        )

    ordered = sorted(int(s) for s in samples)
    mid = median(ordered)
    std_dev = population_std_dev(ordered)

    return PointStat(
        name=name,
        ramp_up=ramp_up,
        repeat=repeat,
        min_nanos=ordered[0],
        max_nanos=ordered[-1],
        # Even counts may yield x.5 nanoseconds.
        median_nanos=int(round(mid)),
        std_dev=float(std_dev),
    )
