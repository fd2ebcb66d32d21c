"""Pausable elapsed-time accumulator.

A :class:`StopWatch` is handed to every measured invocation.  The
measured function may pause it around setup or teardown work; only the
time spent while the watch is running is accumulated.  Durations are
kept as integer nanoseconds taken from :func:`time.perf_counter_ns`.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Callable

NANOS_PER_SEC = 1_000_000_000


# ---------------------------------------------------------------------------
# Duration formatting
# ---------------------------------------------------------------------------


def nanos_to_sec(nanos: float) -> float:
    """Convert nanoseconds to (fractional) seconds."""
    return nanos / NANOS_PER_SEC


def format_elapsed_nanos(nanos: float) -> str:
    """Format a nanosecond duration as a ``HH:MM:SS.mmm`` clock string.

    The value is rendered like a UTC wall clock, so durations of a day
    or more wrap around.  Fractional nanoseconds are truncated.
    """
    secs, rem = divmod(max(int(nanos), 0), NANOS_PER_SEC)
    stamp = datetime.fromtimestamp(secs, tz=timezone.utc)
    return f"{stamp:%H:%M:%S}.{rem // 1_000_000:03d}"


# ---------------------------------------------------------------------------
# StopWatch
# ---------------------------------------------------------------------------


class StopWatch:
    """Measure elapsed time, excluding paused intervals.

    Usage::

        sw = StopWatch()
        sw.start()
        prepare()          # measured
        sw.pause()
        cleanup()          # not measured
        sw.resume()
        elapsed = sw.stop()

    ``pause`` and ``resume`` are idempotent: pausing a paused watch or
    resuming a running one does nothing.  One watch belongs to exactly
    one invocation and must not be shared between threads.
    """

    def __init__(self, clock: Callable[[], int] | None = None) -> None:
        self._clock = clock or time.perf_counter_ns
        self._accumulated = 0
        self._checkpoint = self._clock()
        self._running = False

    @property
    def running(self) -> bool:
        """True while time is being accumulated."""
        return self._running

    @property
    def elapsed_ns(self) -> int:
        """Accumulated nanoseconds, including the current interval if running."""
        if self._running:
            return self._accumulated + max(self._clock() - self._checkpoint, 0)
        return self._accumulated

    @property
    def elapsed_sec(self) -> float:
        """Accumulated time in seconds."""
        return nanos_to_sec(self.elapsed_ns)

    def start(self) -> None:
        """Reset the accumulator and start measuring."""
        self._accumulated = 0
        self._checkpoint = self._clock()
        self._running = True

    def resume(self) -> None:
        """Continue measuring.  No-op if already running."""
        if not self._running:
            self._checkpoint = self._clock()
            self._running = True

    def pause(self) -> None:
        """Freeze the accumulated duration.  No-op if already paused."""
        if self._running:
            self._accumulated += max(self._clock() - self._checkpoint, 0)
            self._running = False

    def stop(self) -> int:
        """Pause and return the accumulated nanoseconds."""
        self.pause()
        return self._accumulated

    def reset(self) -> None:
        """Zero the accumulator and leave the watch paused."""
        self._accumulated = 0
        self._checkpoint = self._clock()
        self._running = False

    def __str__(self) -> str:
        return format_elapsed_nanos(self.elapsed_ns)

    def __repr__(self) -> str:
        state = "running" if self._running else "paused"
        return f"StopWatch({state}, elapsed_ns={self.elapsed_ns})"
