"""Benchmark result data structures and serialization.

Hierarchy::

    Summary (one registry run)
      → series: dict[str, SeriesResult]   (benchmark name → series)
        → runs: list[(point_key, PointStat)]   (declared point order)

JSON layout::

    {"name": ..., "created_at": ...,
     "series": {"<benchmark>": {"name": ..., "config": ...,
                                "runs": [["<point>", {PointStat}], ...]}}}

Derived ``*_sec`` and ``*_str`` fields are written for readers of the
file but recomputed from the nanosecond values on load.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator

from stopbench.stopwatch import format_elapsed_nanos, nanos_to_sec

log = logging.getLogger("stopbench")


def utc_timestamp() -> str:
    """Current time as an ISO-8601 UTC string."""
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Point-level statistic
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PointStat:
    """Timing statistics for one benchmark at one workload point."""

    name: str
    ramp_up: int
    repeat: int
    min_nanos: int
    max_nanos: int
    median_nanos: int
    std_dev: float  # population std-dev, nanoseconds

    @property
    def min_sec(self) -> float:
        return nanos_to_sec(self.min_nanos)

    @property
    def max_sec(self) -> float:
        return nanos_to_sec(self.max_nanos)

    @property
    def median_sec(self) -> float:
        return nanos_to_sec(self.median_nanos)

    @property
    def std_dev_sec(self) -> float:
        return nanos_to_sec(self.std_dev)

    @property
    def min_str(self) -> str:
        return format_elapsed_nanos(self.min_nanos)

    @property
    def max_str(self) -> str:
        return format_elapsed_nanos(self.max_nanos)

    @property
    def median_str(self) -> str:
        return format_elapsed_nanos(self.median_nanos)

    @property
    def std_dev_str(self) -> str:
        return format_elapsed_nanos(self.std_dev)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict, derived fields included."""
        return {
            "name": self.name,
            "ramp_up": self.ramp_up,
            "repeat": self.repeat,
            "min_nanos": self.min_nanos,
            "min_sec": self.min_sec,
            "min_str": self.min_str,
            "max_nanos": self.max_nanos,
            "max_sec": self.max_sec,
            "max_str": self.max_str,
            "median_nanos": self.median_nanos,
            "median_sec": self.median_sec,
            "median_str": self.median_str,
            "std_dev": self.std_dev,
            "std_dev_sec": self.std_dev_sec,
            "std_dev_str": self.std_dev_str,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PointStat:
        """Deserialize from a dict.  Derived fields are ignored."""
        std_dev = data.get("std_dev")
        return cls(
            name=data["name"],
            ramp_up=int(data["ramp_up"]),
            repeat=int(data["repeat"]),
            min_nanos=int(data["min_nanos"]),
            max_nanos=int(data["max_nanos"]),
            median_nanos=int(data["median_nanos"]),
            std_dev=float(std_dev) if std_dev is not None else 0.0,
        )


# ---------------------------------------------------------------------------
# Series-level result
# ---------------------------------------------------------------------------


@dataclass
class SeriesResult:
    """Per-point statistics of one benchmark, in declared point order."""

    name: str
    config: str
    runs: list[tuple[str, PointStat]] = field(default_factory=list)

    def add(self, point: str, stat: PointStat) -> None:
        self.runs.append((point, stat))

    @property
    def points(self) -> list[str]:
        """Point keys in declared order (duplicates kept)."""
        return [point for point, _ in self.runs]

    def get(self, point: str) -> PointStat | None:
        """The statistic for the first occurrence of *point*, if any."""
        for key, stat in self.runs:
            if key == point:
                return stat
        return None

    def __iter__(self) -> Iterator[tuple[str, PointStat]]:
        return iter(self.runs)

    def __len__(self) -> int:
        return len(self.runs)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "config": self.config,
            "runs": [[point, stat.to_dict()] for point, stat in self.runs],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SeriesResult:
        series = cls(name=data["name"], config=data.get("config", ""))
        for point, stat in data.get("runs", []):
            series.add(str(point), PointStat.from_dict(stat))
        return series


# ---------------------------------------------------------------------------
# Run-level summary
# ---------------------------------------------------------------------------


@dataclass
class Summary:
    """All series produced by one registry run."""

    name: str
    created_at: str = field(default_factory=utc_timestamp)
    series: dict[str, SeriesResult] = field(default_factory=dict)

    def add(self, series: SeriesResult) -> None:
        self.series[series.name] = series

    def get(self, name: str) -> SeriesResult | None:
        return self.series.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self.series

    def __len__(self) -> int:
        return len(self.series)

    def configs(self) -> dict[str, str]:
        """Benchmark name → rendered config."""
        return {name: s.config for name, s in self.series.items()}

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            "name": self.name,
            "created_at": self.created_at,
            "series": {name: s.to_dict() for name, s in self.series.items()},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Summary:
        """Deserialize from a dict.

        Raises:
            ValueError: If required fields are missing or mistyped.
        """
        try:
            summary = cls(name=data["name"], created_at=data.get("created_at", ""))
            for name, series_data in data.get("series", {}).items():
                series = SeriesResult.from_dict(series_data)
                summary.series[name] = series
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise ValueError(f"Malformed benchmark summary: {exc!r}") from exc
        return summary

    def to_json(self, indent: int | None = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_json(cls, text: str) -> Summary:
        """Parse a summary from JSON text.

        Raises:
            ValueError: If *text* is not valid JSON or not a summary.
        """
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError(f"Summary must be a JSON object, got {type(data).__name__}")
        return cls.from_dict(data)


# ---------------------------------------------------------------------------
# I/O functions
# ---------------------------------------------------------------------------


def save_summary(path: Path, summary: Summary) -> None:
    """Write *summary* as pretty-printed JSON, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(summary.to_json() + "\n", encoding="utf-8")
    log.info("Wrote %s", path)


def load_summary(path: Path) -> Summary:
    """Load a summary written by :func:`save_summary`.

    Raises:
        FileNotFoundError: If *path* does not exist.
        ValueError: If the file is not a valid summary.
    """
    if not path.exists():
        raise FileNotFoundError(f"No benchmark summary at {path}")
    return Summary.from_json(path.read_text(encoding="utf-8"))
