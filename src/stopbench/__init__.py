"""stopbench: micro-benchmarks with pausable timing and regression analysis.

Benchmarks are plain functions that receive a :class:`StopWatch`, a
configuration value and one workload point.  Each function is ramped up
and then repeated at every declared workload point; the measured
durations are reduced to min/max/median/std-dev per point and can be
compared against a previous run to find regressions.

Example::

    import time

    from stopbench import BenchmarkRegistry

    def sleepy(stop_watch, config, work):
        time.sleep(work / 1000)

    registry = BenchmarkRegistry("example")
    registry.add("sleep", sleepy, "no config", range(1, 11), repeat=2, ramp_up=1)
    summary = registry.run()
"""

from __future__ import annotations

__version__ = "0.3.0"

from stopbench.compare import AnalysisResult, Comparison, ComparisonKind, analyze  # noqa: E402
from stopbench.errors import (  # noqa: E402
    BenchmarkExecutionError,
    ConfigurationError,
    Failure,
    StopbenchError,
)
from stopbench.registry import Benchmark, BenchmarkRegistry  # noqa: E402
from stopbench.results import PointStat, SeriesResult, Summary  # noqa: E402
from stopbench.stopwatch import StopWatch  # noqa: E402

__all__ = [
    "AnalysisResult",
    "Benchmark",
    "BenchmarkExecutionError",
    "BenchmarkRegistry",
    "Comparison",
    "ComparisonKind",
    "ConfigurationError",
    "Failure",
    "PointStat",
    "SeriesResult",
    "StopWatch",
    "StopbenchError",
    "Summary",
    "__version__",
    "analyze",
]
