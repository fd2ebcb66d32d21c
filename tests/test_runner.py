"""Tests for stopbench.runner — ramp-up/repeat execution of one benchmark."""

from __future__ import annotations

import unittest

from bench_test_helpers import FakeClock, spend

from stopbench.errors import BenchmarkExecutionError, Failure
from stopbench.registry import Benchmark
from stopbench.runner import MEASURE, RAMP_UP, RunProgress, WorkloadRunner
from stopbench.stopwatch import StopWatch


def _benchmark(func, config, points, *, repeat=3, ramp_up=0, name="bench") -> Benchmark:  # type: ignore[no-untyped-def]
    return Benchmark(
        name=name,
        func=func,
        config=config,
        workload_points=tuple(points),
        repeat=repeat,
        ramp_up=ramp_up,
    )


class TestRunPoint(unittest.TestCase):
    """Tests for WorkloadRunner.run_point()."""

    def setUp(self) -> None:
        self.clock = FakeClock()
        self.events: list[RunProgress] = []

    def _runner(self, bench: Benchmark) -> WorkloadRunner:
        return WorkloadRunner(bench, self.events.append, clock=self.clock)

    def test_exactly_repeat_samples(self) -> None:
        """Ramp-up and measure phases run the configured number of times."""
        bench = _benchmark(spend, self.clock, [100], repeat=4, ramp_up=2)
        stat = self._runner(bench).run_point(100)
        self.assertEqual(stat.repeat, 4)
        self.assertEqual(stat.ramp_up, 2)
        measured = [e for e in self.events if e.phase == MEASURE]
        ramped = [e for e in self.events if e.phase == RAMP_UP]
        self.assertEqual(len(measured), 4)
        self.assertEqual(len(ramped), 2)

    def test_ramp_up_samples_never_counted(self) -> None:
        """Ramp-up invocations are slow; the statistic only sees measured ones."""
        calls = {"n": 0}

        def slow_then_fast(watch: StopWatch, clock: FakeClock, point: int) -> None:
            calls["n"] += 1
            watch.resume()
            clock.advance(1_000_000 if calls["n"] <= 3 else point)

        bench = _benchmark(slow_then_fast, self.clock, [50], repeat=2, ramp_up=3)
        stat = self._runner(bench).run_point(50)
        self.assertEqual(calls["n"], 5)
        self.assertEqual(stat.max_nanos, 50)
        self.assertEqual(stat.min_nanos, 50)

    def test_ramp_up_watch_starts_paused(self) -> None:
        """Ramp-up watches start paused, measured watches running."""
        states: list[tuple[str, bool]] = []

        def record(watch: StopWatch, config: object, point: int) -> None:
            states.append(("call", watch.running))

        bench = _benchmark(record, None, [1], repeat=2, ramp_up=1)
        WorkloadRunner(bench, lambda p: None).run_point(1)
        self.assertEqual([running for _, running in states], [False, True, True])

    def test_each_iteration_gets_fresh_watch(self) -> None:
        """No StopWatch is reused between invocations."""
        watches: list[StopWatch] = []

        def record(watch: StopWatch, config: object, point: int) -> None:
            watches.append(watch)

        bench = _benchmark(record, None, [1], repeat=3, ramp_up=2)
        WorkloadRunner(bench, lambda p: None).run_point(1)
        self.assertEqual(len({id(w) for w in watches}), 5)

    def test_paused_work_excluded(self) -> None:
        """Time spent while paused never reaches the samples."""
        def setup_heavy(watch: StopWatch, clock: FakeClock, point: int) -> None:
            watch.pause()
            clock.advance(10_000)  # setup
            watch.resume()
            clock.advance(point)
            watch.pause()
            clock.advance(10_000)  # teardown

        bench = _benchmark(setup_heavy, self.clock, [7], repeat=3)
        stat = self._runner(bench).run_point(7)
        self.assertEqual(stat.median_nanos, 7)
        self.assertEqual(stat.std_dev, 0.0)

    def test_config_and_point_passed_through(self) -> None:
        """The function receives the config and the raw point."""
        seen: list[tuple[object, object]] = []

        def record(watch: StopWatch, config: object, point: object) -> None:
            seen.append((config, point))

        bench = _benchmark(record, {"k": 1}, ["x"], repeat=1)
        WorkloadRunner(bench, lambda p: None).run_point("x")
        self.assertEqual(seen, [({"k": 1}, "x")])

    def test_progress_reports_elapsed(self) -> None:
        """Progress reports carry the elapsed time of each iteration."""
        bench = _benchmark(spend, self.clock, [25], repeat=2)
        self._runner(bench).run_point(25)
        self.assertEqual([e.elapsed_ns for e in self.events], [25, 25])
        self.assertEqual([e.iteration for e in self.events], [1, 2])
        self.assertTrue(all(e.total_iterations == 2 for e in self.events))
        self.assertTrue(all(e.point == "25" for e in self.events))


class TestRunPointFailures(unittest.TestCase):
    """Failures abort the point with context."""

    def test_failure_value_raises_with_context(self) -> None:
        """A returned Failure aborts the point with full context."""
        calls = {"n": 0}

        def flaky(watch: StopWatch, config: object, point: int) -> Failure | None:
            calls["n"] += 1
            if calls["n"] == 2:
                return Failure("disk full")
            return None

        bench = _benchmark(flaky, None, [10], repeat=5, name="flaky")
        with self.assertRaises(BenchmarkExecutionError) as ctx:
            WorkloadRunner(bench, lambda p: None).run_point(10)
        err = ctx.exception
        self.assertEqual(err.benchmark, "flaky")
        self.assertEqual(err.point, "10")
        self.assertEqual(err.phase, MEASURE)
        self.assertEqual(err.iteration, 2)
        self.assertEqual(err.reason, "disk full")
        self.assertIn("flaky", str(err))
        # Remaining iterations were abandoned.
        self.assertEqual(calls["n"], 2)

    def test_exception_is_wrapped_and_chained(self) -> None:
        """Raised exceptions are wrapped and chained."""
        def boom(watch: StopWatch, config: object, point: int) -> None:
            raise KeyError("missing")

        bench = _benchmark(boom, None, [1], repeat=1, ramp_up=1, name="boom")
        with self.assertRaises(BenchmarkExecutionError) as ctx:
            WorkloadRunner(bench, lambda p: None).run_point(1)
        self.assertEqual(ctx.exception.phase, RAMP_UP)
        self.assertEqual(ctx.exception.iteration, 1)
        self.assertIsInstance(ctx.exception.__cause__, KeyError)
        self.assertIn("KeyError", ctx.exception.reason)

    def test_non_failure_return_values_are_success(self) -> None:
        """Any return value other than Failure is success."""
        def returns_value(watch: StopWatch, config: object, point: int) -> int:
            return 42

        bench = _benchmark(returns_value, None, [1], repeat=2)
        stat = WorkloadRunner(bench, lambda p: None).run_point(1)
        self.assertEqual(stat.repeat, 2)


class TestRunSeries(unittest.TestCase):
    """Tests for WorkloadRunner.run_series()."""

    def test_declared_order_preserved(self) -> None:
        """Points are measured and reported in declared order."""
        clock = FakeClock()
        bench = _benchmark(spend, clock, [30, 10, 20, 10], repeat=1)
        series = WorkloadRunner(bench, lambda p: None, clock=clock).run_series()
        self.assertEqual(series.points, ["30", "10", "20", "10"])
        self.assertEqual([s.median_nanos for _, s in series.runs], [30, 10, 20, 10])

    def test_config_rendered(self) -> None:
        """The series config is the str() of the config value."""
        class Config:
            def __str__(self) -> str:
                return "resources: 2"

        def noop(watch: StopWatch, config: object, point: int) -> None:
            return None

        bench = _benchmark(noop, Config(), [1], repeat=1)
        series = WorkloadRunner(bench, lambda p: None).run_series()
        self.assertEqual(series.config, "resources: 2")
        self.assertEqual(series.name, "bench")

    def test_default_progress_callback_logs(self) -> None:
        """Without a callback, progress goes to the DEBUG log."""
        clock = FakeClock()
        bench = _benchmark(spend, clock, [5], repeat=1)
        with self.assertLogs("stopbench.runner", level="DEBUG") as logs:
            WorkloadRunner(bench, clock=clock).run_series()
        self.assertTrue(any("bench" in line for line in logs.output))


if __name__ == "__main__":
    unittest.main()
