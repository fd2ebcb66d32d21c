"""Benchmark registration and orchestration.

A :class:`BenchmarkRegistry` owns a set of uniquely named benchmarks.
``run()`` executes them in registration order, every workload point in
the order it was declared, and assembles the per-point statistics into
a :class:`~stopbench.results.Summary`.
"""

from __future__ import annotations

import dataclasses
import time
from dataclasses import dataclass
from typing import Any, Callable, Iterable

from stopbench.compare import AnalysisResult, analyze
from stopbench.errors import ConfigurationError, Failure
from stopbench.formatting import format_duration
from stopbench.logging import get_logger
from stopbench.results import SeriesResult, Summary, utc_timestamp
from stopbench.runner import ProgressCallback, WorkloadRunner
from stopbench.stopwatch import StopWatch

log = get_logger("registry")

# The measured function: (stop_watch, config, workload_point) -> None | Failure
BenchFunction = Callable[[StopWatch, Any, Any], "Failure | None"]


@dataclass(frozen=True)
class Benchmark:
    """A registered benchmark definition."""

    name: str
    func: BenchFunction
    config: Any
    workload_points: tuple[Any, ...]
    repeat: int = 1
    ramp_up: int = 0

    @property
    def total_iterations(self) -> int:
        """Invocations per workload point (ramp-up + measured)."""
        return self.ramp_up + self.repeat


class BenchmarkRegistry:
    """Run and analyze a suite of benchmarks.

    Usage::

        registry = BenchmarkRegistry("suite")
        registry.add("sort", bench_sort, config, [100, 1000, 10000], repeat=5, ramp_up=1)
        summary = registry.run()

    The registry is not reentrant: calling ``run()`` while a run is in
    progress raises RuntimeError.
    """

    def __init__(
        self,
        name: str,
        progress_callback: ProgressCallback | None = None,
        *,
        clock: Callable[[], int] | None = None,
    ) -> None:
        self.name = name
        self.created_at = utc_timestamp()
        self.progress_callback = progress_callback
        self._clock = clock
        self._benchmarks: dict[str, Benchmark] = {}
        self._series: dict[str, SeriesResult] = {}
        self._running = False

    @classmethod
    def create(cls, name: str) -> BenchmarkRegistry:
        """Create an empty registry named *name*."""
        return cls(name)

    # -- registration -------------------------------------------------------

    def add(
        self,
        name: str,
        func: BenchFunction,
        config: Any,
        workload_points: Iterable[Any],
        repeat: int = 1,
        ramp_up: int = 0,
    ) -> Benchmark:
        """Register a benchmark.

        Args:
            name: Unique benchmark name; the key of its series in the summary.
            func: Called as ``func(stop_watch, config, point)`` for every
                iteration.  Returns None on success or a Failure.
            config: Configuration value passed to every call; rendered
                with ``str()`` in the output.
            workload_points: Points passed to ``func``, in the order they
                are measured and reported.
            repeat: Measured iterations per point (at least 1).
            ramp_up: Discarded warm-up iterations per point.

        Raises:
            ConfigurationError: On a duplicate name, ``repeat < 1``,
                ``ramp_up < 0``, no workload points, or a non-callable
                *func*.  The registry is left unchanged.
        """
        if not isinstance(name, str) or not name.strip():
            raise ConfigurationError("Benchmark name must be a non-empty string")
        if name in self._benchmarks:
            raise ConfigurationError(f"Benchmark with identical name exists: {name}")
        if not callable(func):
            raise ConfigurationError(f"Benchmark '{name}' function is not callable")
        _check_counts(name, repeat, ramp_up)
        points = tuple(workload_points)
        if not points:
            raise ConfigurationError(f"Benchmark '{name}' has no workload points")

        benchmark = Benchmark(
            name=name,
            func=func,
            config=config,
            workload_points=points,
            repeat=repeat,
            ramp_up=ramp_up,
        )
        self._benchmarks[name] = benchmark
        log.debug(
            "Registered benchmark '%s' (%d points, repeat=%d, ramp_up=%d)",
            name,
            len(points),
            repeat,
            ramp_up,
        )
        return benchmark

    def replace(
        self,
        name: str,
        *,
        repeat: int | None = None,
        ramp_up: int | None = None,
    ) -> Benchmark:
        """Change the iteration counts of a registered benchmark.

        The benchmark keeps its position in the run order.

        Raises:
            ConfigurationError: If *name* is unknown or a count is invalid.
        """
        old = self._benchmarks.get(name)
        if old is None:
            raise ConfigurationError(f"Unknown benchmark: {name}")
        new = dataclasses.replace(
            old,
            repeat=old.repeat if repeat is None else repeat,
            ramp_up=old.ramp_up if ramp_up is None else ramp_up,
        )
        _check_counts(name, new.repeat, new.ramp_up)
        self._benchmarks[name] = new
        return new

    # -- introspection ------------------------------------------------------

    @property
    def names(self) -> list[str]:
        """Registered benchmark names in registration order."""
        return list(self._benchmarks)

    @property
    def benchmarks(self) -> list[Benchmark]:
        return list(self._benchmarks.values())

    def get(self, name: str) -> Benchmark | None:
        return self._benchmarks.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._benchmarks

    def __len__(self) -> int:
        return len(self._benchmarks)

    # -- execution ----------------------------------------------------------

    def run(self) -> Summary:
        """Run all benchmarks and return the summary.

        Execution is fail-fast: the first BenchmarkExecutionError aborts
        the whole run and propagates.  Series completed before the
        failure remain available through :meth:`summary`.

        Raises:
            BenchmarkExecutionError: If a measured function fails.
            RuntimeError: If a run is already in progress.
        """
        if self._running:
            raise RuntimeError(f"Registry '{self.name}' is already running")
        self._running = True
        self._series = {}
        try:
            total = len(self._benchmarks)
            log.info("Running %d benchmarks in '%s'", total, self.name)
            for idx, benchmark in enumerate(self._benchmarks.values()):
                log.info(
                    "[%d/%d] %s: %d points x (%d ramp-up + %d measured)",
                    idx + 1,
                    total,
                    benchmark.name,
                    len(benchmark.workload_points),
                    benchmark.ramp_up,
                    benchmark.repeat,
                )
                started = time.monotonic()
                runner = WorkloadRunner(benchmark, self.progress_callback, clock=self._clock)
                self._series[benchmark.name] = runner.run_series()
                log.info(
                    "[%d/%d] %s done in %s",
                    idx + 1,
                    total,
                    benchmark.name,
                    format_duration(time.monotonic() - started),
                )
        finally:
            self._running = False
        return self.summary()

    def summary(self) -> Summary:
        """Summary of the series completed by the latest run."""
        summary = Summary(name=self.name, created_at=self.created_at)
        for series in self._series.values():
            summary.add(series)
        return summary

    def configs(self) -> dict[str, str]:
        """Rendered config of every completed series, keyed by benchmark name."""
        return self.summary().configs()

    # -- rendering and analysis shortcuts -----------------------------------

    def summary_as_json(self) -> str:
        """The current summary as pretty-printed JSON."""
        return self.summary().to_json()

    def summary_as_csv(
        self,
        with_headers: bool = True,
        with_config: bool = False,
    ) -> dict[str, list[str]]:
        """CSV lines per benchmark name.  See :func:`stopbench.export.summary_to_csv`."""
        from stopbench.export import summary_to_csv

        return summary_to_csv(
            self.summary(),
            with_headers=with_headers,
            with_config=with_config,
        )

    def analyze(
        self,
        previous_json: str | None = None,
        threshold: float = 5.0,
    ) -> AnalysisResult:
        """Compare the current summary against a previous one given as JSON.

        With no previous summary every series is reported as new.

        Raises:
            ConfigurationError: If the previous summary belongs to a
                differently named registry.
            ValueError: If *previous_json* is not a valid summary.
        """
        previous = Summary.from_json(previous_json) if previous_json is not None else None
        if previous is not None and previous.name != self.name:
            raise ConfigurationError(
                f"Comparing differently named benchmarks: {self.name} <=> {previous.name}"
            )
        return analyze(self.summary(), previous, threshold)


def _check_counts(name: str, repeat: Any, ramp_up: Any) -> None:
    """Validate the iteration counts of benchmark *name*."""
    if isinstance(repeat, bool) or not isinstance(repeat, int) or repeat < 1:
        raise ConfigurationError(
            f"Benchmark '{name}' must repeat at least once (got repeat={repeat!r})"
        )
    if isinstance(ramp_up, bool) or not isinstance(ramp_up, int) or ramp_up < 0:
        raise ConfigurationError(
            f"Benchmark '{name}' ramp_up cannot be negative (got ramp_up={ramp_up!r})"
        )
