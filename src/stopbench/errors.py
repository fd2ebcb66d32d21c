"""Exceptions and the explicit failure value for measured functions."""

from __future__ import annotations

from dataclasses import dataclass


class StopbenchError(Exception):
    """Base class for all stopbench errors."""


class ConfigurationError(StopbenchError, ValueError):
    """A benchmark or run was configured incorrectly.

    Raised synchronously at registration or profile loading time.  The
    object being configured is left unmodified.
    """


class BenchmarkExecutionError(StopbenchError, RuntimeError):
    """A measured function failed during a run.

    Carries the benchmark name, the point key, the phase
    (``"ramp-up"`` or ``"measure"``) and the 1-based iteration so the
    failure can be located without re-running.
    """

    def __init__(
        self,
        benchmark: str,
        point: str,
        phase: str,
        iteration: int,
        reason: str,
    ) -> None:
        self.benchmark = benchmark
        self.point = point
        self.phase = phase
        self.iteration = iteration
        self.reason = reason
        super().__init__(
            f"Benchmark '{benchmark}' failed at point '{point}' "
            f"({phase} iteration {iteration}): {reason}"
        )

    def __reduce__(self):  # type: ignore[no-untyped-def]
        return (
            type(self),
            (self.benchmark, self.point, self.phase, self.iteration, self.reason),
        )


@dataclass(frozen=True)
class Failure:
    """Returned by a measured function to report a failure without raising."""

    message: str

    def __str__(self) -> str:
        return self.message
