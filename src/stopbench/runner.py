"""Execution of one benchmark at its workload points.

For every workload point the runner performs:

1. ``ramp_up`` warm-up invocations whose durations are discarded, each
   with a fresh, paused StopWatch.
2. ``repeat`` measured invocations, each with a fresh, running
   StopWatch.  The elapsed time left on the watch when the function
   returns is one raw sample.
3. Aggregation of the ``repeat`` samples into a PointStat.

Any failure is fatal: the remaining iterations for the point are
abandoned and a BenchmarkExecutionError is raised with the benchmark
name, point and iteration.  Nothing is retried.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable

from stopbench.errors import BenchmarkExecutionError, Failure
from stopbench.logging import get_logger
from stopbench.results import PointStat, SeriesResult
from stopbench.stats import aggregate
from stopbench.stopwatch import StopWatch, format_elapsed_nanos

if TYPE_CHECKING:
    from stopbench.registry import Benchmark

log = get_logger("runner")

RAMP_UP = "ramp-up"
MEASURE = "measure"


# ---------------------------------------------------------------------------
# Progress callback
# ---------------------------------------------------------------------------


@dataclass
class RunProgress:
    """Progress info passed to the callback after every invocation."""

    phase: str  # "ramp-up" or "measure"
    benchmark: str
    point: str
    iteration: int  # 1-based within the phase
    total_iterations: int  # iterations in the phase
    elapsed_ns: int = 0


ProgressCallback = Callable[[RunProgress], None]


def log_progress(progress: RunProgress) -> None:
    """Default progress callback: log every invocation at DEBUG."""
    marker = "R" if progress.phase == RAMP_UP else "M"
    log.debug(
        "  %-30s %-12s %s%d/%d %s",
        progress.benchmark,
        progress.point,
        marker,
        progress.iteration,
        progress.total_iterations,
        format_elapsed_nanos(progress.elapsed_ns),
    )


# ---------------------------------------------------------------------------
# WorkloadRunner
# ---------------------------------------------------------------------------


class WorkloadRunner:
    """Runs one Benchmark at its workload points.

    Usage::

        runner = WorkloadRunner(benchmark)
        stat = runner.run_point(100)
        series = runner.run_series()
    """

    def __init__(
        self,
        benchmark: Benchmark,
        progress_callback: ProgressCallback | None = None,
        *,
        clock: Callable[[], int] | None = None,
    ) -> None:
        self.benchmark = benchmark
        self.progress: ProgressCallback = progress_callback or log_progress
        self._clock = clock

    def run_series(self) -> SeriesResult:
        """Run every workload point in declared order."""
        series = SeriesResult(
            name=self.benchmark.name,
            config=str(self.benchmark.config),
        )
        for point in self.benchmark.workload_points:
            series.add(str(point), self.run_point(point))
        return series

    def run_point(self, point: Any) -> PointStat:
        """Ramp up, measure and aggregate one workload point.

        Raises:
            BenchmarkExecutionError: If any invocation fails.
        """
        bench = self.benchmark
        key = str(point)

        for i in range(bench.ramp_up):
            watch = StopWatch(self._clock)
            self._invoke(watch, point, key, RAMP_UP, i + 1)
            self.progress(
                RunProgress(
                    phase=RAMP_UP,
                    benchmark=bench.name,
                    point=key,
                    iteration=i + 1,
                    total_iterations=bench.ramp_up,
                    elapsed_ns=watch.stop(),
                )
            )

        samples: list[int] = []
        for i in range(bench.repeat):
            watch = StopWatch(self._clock)
            watch.start()
            self._invoke(watch, point, key, MEASURE, i + 1)
            elapsed = watch.stop()
            samples.append(elapsed)
            self.progress(
                RunProgress(
                    phase=MEASURE,
                    benchmark=bench.name,
                    point=key,
                    iteration=i + 1,
                    total_iterations=bench.repeat,
                    elapsed_ns=elapsed,
                )
            )

        return aggregate(bench.name, samples, ramp_up=bench.ramp_up, repeat=bench.repeat)

    def _invoke(
        self,
        watch: StopWatch,
        point: Any,
        key: str,
        phase: str,
        iteration: int,
    ) -> None:
        """Call the measured function once and translate its failures."""
        bench = self.benchmark
        try:
            outcome = bench.func(watch, bench.config, point)
        except Exception as exc:
            log.error(
                "Benchmark '%s' raised at point '%s' (%s %d): %s",
                bench.name,
                key,
                phase,
                iteration,
                exc,
            )
            raise BenchmarkExecutionError(
                bench.name, key, phase, iteration, f"{type(exc).__name__}: {exc}"
            ) from exc

        if isinstance(outcome, Failure):
            log.error(
                "Benchmark '%s' failed at point '%s' (%s %d): %s",
                bench.name,
                key,
                phase,
                iteration,
                outcome.message,
            )
            raise BenchmarkExecutionError(bench.name, key, phase, iteration, outcome.message)
