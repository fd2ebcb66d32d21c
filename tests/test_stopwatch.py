"""Tests for stopbench.stopwatch — the pausable elapsed-time accumulator."""

from __future__ import annotations

import time
import unittest

from bench_test_helpers import FakeClock

from stopbench.stopwatch import StopWatch, format_elapsed_nanos, nanos_to_sec


class TestStopWatchStates(unittest.TestCase):
    """Tests for start/pause/resume/stop/reset with a fake clock."""

    def setUp(self) -> None:
        self.clock = FakeClock()
        self.watch = StopWatch(self.clock)

    def test_new_watch_is_paused_and_empty(self) -> None:
        """A new watch is paused and accumulates nothing."""
        self.assertFalse(self.watch.running)
        self.clock.advance(500)
        self.assertEqual(self.watch.elapsed_ns, 0)

    def test_start_accumulates(self) -> None:
        """start() measures until stop()."""
        self.watch.start()
        self.clock.advance(100)
        self.assertTrue(self.watch.running)
        self.assertEqual(self.watch.elapsed_ns, 100)
        self.assertEqual(self.watch.stop(), 100)
        self.assertFalse(self.watch.running)

    def test_paused_time_excluded(self) -> None:
        """Time between pause and resume is excluded."""
        self.watch.start()
        self.clock.advance(100)
        self.watch.pause()
        self.clock.advance(1_000)
        self.assertEqual(self.watch.elapsed_ns, 100)
        self.watch.resume()
        self.clock.advance(30)
        self.assertEqual(self.watch.stop(), 130)

    def test_pause_is_idempotent(self) -> None:
        """Pausing twice does not lose or add time."""
        self.watch.start()
        self.clock.advance(10)
        self.watch.pause()
        self.clock.advance(10)
        self.watch.pause()
        self.assertEqual(self.watch.elapsed_ns, 10)

    def test_resume_is_idempotent(self) -> None:
        """Resuming a running watch must not move its checkpoint."""
        self.watch.start()
        self.clock.advance(10)
        self.watch.resume()
        self.clock.advance(10)
        self.assertEqual(self.watch.stop(), 20)

    def test_stop_does_not_alter_further(self) -> None:
        """stop() freezes the total."""
        self.watch.start()
        self.clock.advance(42)
        self.assertEqual(self.watch.stop(), 42)
        self.clock.advance(100)
        self.assertEqual(self.watch.stop(), 42)
        self.assertEqual(self.watch.elapsed_ns, 42)

    def test_start_resets_accumulator(self) -> None:
        """start() begins from zero again."""
        self.watch.start()
        self.clock.advance(50)
        self.watch.stop()
        self.watch.start()
        self.clock.advance(5)
        self.assertEqual(self.watch.stop(), 5)

    def test_reset(self) -> None:
        """reset() zeroes and pauses the watch."""
        self.watch.start()
        self.clock.advance(50)
        self.watch.reset()
        self.assertFalse(self.watch.running)
        self.assertEqual(self.watch.elapsed_ns, 0)

    def test_resume_from_fresh_watch(self) -> None:
        """A never-started watch can be resumed directly."""
        self.watch.resume()
        self.clock.advance(7)
        self.assertEqual(self.watch.stop(), 7)

    def test_multiple_pause_cycles(self) -> None:
        """Several pause/resume cycles add up."""
        self.watch.start()
        for _ in range(3):
            self.clock.advance(10)
            self.watch.pause()
            self.clock.advance(100)
            self.watch.resume()
        self.assertEqual(self.watch.stop(), 30)

    def test_elapsed_sec(self) -> None:
        """elapsed_sec converts to seconds."""
        self.watch.start()
        self.clock.advance(1_500_000_000)
        self.watch.stop()
        self.assertAlmostEqual(self.watch.elapsed_sec, 1.5)

    def test_str_formats_clock(self) -> None:
        """str() renders HH:MM:SS.mmm."""
        self.assertEqual(str(self.watch), "00:00:00.000")
        self.watch.start()
        self.clock.advance(1_003_000_000)
        self.assertEqual(str(self.watch), "00:00:01.003")

    def test_repr_mentions_state(self) -> None:
        """repr() shows the running state."""
        self.assertIn("paused", repr(self.watch))
        self.watch.start()
        self.assertIn("running", repr(self.watch))


class TestStopWatchRealClock(unittest.TestCase):
    """Sanity checks against the real performance counter."""

    def test_measures_sleep(self) -> None:
        """A real sleep is measured."""
        watch = StopWatch()
        watch.start()
        time.sleep(0.01)
        self.assertGreaterEqual(watch.stop(), 10_000_000)

    def test_pause_excludes_sleep(self) -> None:
        """A sleep while paused is not measured."""
        watch = StopWatch()
        watch.start()
        time.sleep(0.003)
        watch.pause()
        time.sleep(0.1)
        watch.resume()
        elapsed = watch.stop()
        self.assertGreaterEqual(elapsed, 3_000_000)
        self.assertLess(elapsed, 100_000_000)


class TestFormatting(unittest.TestCase):
    """Tests for duration helpers."""

    def test_format_zero(self) -> None:
        """Zero renders as midnight."""
        self.assertEqual(format_elapsed_nanos(0), "00:00:00.000")

    def test_format_hours_minutes_seconds_millis(self) -> None:
        """All clock fields are rendered."""
        nanos = ((1 * 60 + 2) * 60 + 3) * 1_000_000_000 + 4_000_000
        self.assertEqual(format_elapsed_nanos(nanos), "01:02:03.004")

    def test_format_truncates_sub_millisecond(self) -> None:
        """Sub-millisecond parts are truncated."""
        self.assertEqual(format_elapsed_nanos(999_999), "00:00:00.000")
        self.assertEqual(format_elapsed_nanos(1_999_999), "00:00:00.001")

    def test_format_accepts_float(self) -> None:
        """Float nanoseconds are accepted."""
        self.assertEqual(format_elapsed_nanos(2_500_000.7), "00:00:00.002")

    def test_nanos_to_sec(self) -> None:
        """Nanoseconds convert to seconds."""
        self.assertAlmostEqual(nanos_to_sec(1_500_000_000), 1.5)
        self.assertEqual(nanos_to_sec(0), 0.0)


if __name__ == "__main__":
    unittest.main()
