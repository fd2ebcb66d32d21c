"""Regression analysis between two benchmark summaries.

Every point present in both the current and the previous series is
classified by the relative change of its median::

    change = (current - previous) / previous * 100

``Greater`` (slower, a regression) if change exceeds the threshold,
``Less`` (faster) if it is below minus the threshold, ``Equal``
otherwise.  A series with at least one non-Equal point is divergent,
and its full per-point map, Equal entries included, is reported.
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass, field
from typing import Any

from stopbench.logging import get_logger
from stopbench.results import SeriesResult, Summary

log = get_logger("compare")


# ---------------------------------------------------------------------------
# Point comparison
# ---------------------------------------------------------------------------


class ComparisonKind(str, enum.Enum):
    """Relationship of a current median to its previous value."""

    LESS = "Less"
    EQUAL = "Equal"
    GREATER = "Greater"


@dataclass(frozen=True)
class Comparison:
    """Comparison of one workload point between two runs."""

    kind: ComparisonKind
    point: str
    previous: int  # median nanoseconds
    current: int  # median nanoseconds
    change: float  # signed percent

    @property
    def divergent(self) -> bool:
        return self.kind is not ComparisonKind.EQUAL

    def to_dict(self) -> dict[str, Any]:
        """Serialize as ``{Kind: {point, previous, current, change}}``.

        A non-finite change is written as None (JSON ``null``).
        """
        change = self.change if math.isfinite(self.change) else None
        return {
            self.kind.value: {
                "point": self.point,
                "previous": self.previous,
                "current": self.current,
                "change": change,
            }
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Comparison:
        if len(data) != 1:
            raise ValueError(f"Comparison must have exactly one kind, got {sorted(data)}")
        ((kind, body),) = data.items()
        previous = int(body["previous"])
        current = int(body["current"])
        change = body.get("change")
        if change is None:
            change = math.inf if current > previous else 0.0
        return cls(
            kind=ComparisonKind(kind),
            point=body["point"],
            previous=previous,
            current=current,
            change=float(change),
        )


def percent_change(current: int, previous: int) -> float:
    """Signed percent change from *previous* to *current*.

    A zero baseline gives 0.0 when *current* is also zero and +inf
    otherwise.
    """
    if previous == 0:
        return 0.0 if current == 0 else math.inf
    return (current - previous) * 100.0 / previous


def compare_median(point: str, current: int, previous: int, threshold: float) -> Comparison:
    """Classify one point.  The threshold applies symmetrically by magnitude."""
    change = percent_change(current, previous)
    limit = abs(threshold)
    if change > limit:
        kind = ComparisonKind.GREATER
    elif change < -limit:
        kind = ComparisonKind.LESS
    else:
        kind = ComparisonKind.EQUAL
    return Comparison(
        kind=kind,
        point=point,
        previous=previous,
        current=current,
        change=change,
    )


def compare_series(
    current: SeriesResult,
    previous: SeriesResult,
    threshold: float,
) -> dict[str, Comparison]:
    """Compare the points two series have in common, in current order.

    Points only in *current* are skipped.  A point key that repeats
    within a series is compared once, using its first occurrence on
    each side.
    """
    previous_medians: dict[str, int] = {}
    for point, stat in previous.runs:
        previous_medians.setdefault(point, stat.median_nanos)

    comparisons: dict[str, Comparison] = {}
    for point, stat in current.runs:
        if point in comparisons or point not in previous_medians:
            continue
        comparisons[point] = compare_median(
            point,
            stat.median_nanos,
            previous_medians[point],
            threshold,
        )
    return comparisons


# ---------------------------------------------------------------------------
# Analysis result
# ---------------------------------------------------------------------------


@dataclass
class AnalysisResult:
    """Outcome of comparing a current summary against a previous one."""

    name: str
    new_series: list[str] = field(default_factory=list)
    equal_series: dict[str, dict[str, Comparison]] = field(default_factory=dict)
    divergent_series: dict[str, dict[str, Comparison]] = field(default_factory=dict)

    def add_new(self, name: str) -> None:
        if name not in self.new_series:
            self.new_series.append(name)

    def add(self, name: str, comparisons: dict[str, Comparison]) -> None:
        """File a compared series as equal or divergent."""
        if any(c.divergent for c in comparisons.values()):
            self.divergent_series[name] = comparisons
        else:
            self.equal_series[name] = comparisons

    @property
    def results(self) -> dict[str, dict[str, Comparison]]:
        """Divergent series."""
        return self.divergent_series

    def regressions(self) -> list[tuple[str, Comparison]]:
        """(benchmark, comparison) pairs for every point that got slower."""
        return [
            (name, c)
            for name, comparisons in self.divergent_series.items()
            for c in comparisons.values()
            if c.kind is ComparisonKind.GREATER
        ]

    def improvements(self) -> list[tuple[str, Comparison]]:
        """(benchmark, comparison) pairs for every point that got faster."""
        return [
            (name, c)
            for name, comparisons in self.divergent_series.items()
            for c in comparisons.values()
            if c.kind is ComparisonKind.LESS
        ]

    @property
    def has_regressions(self) -> bool:
        return bool(self.regressions())

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict.

        Equal series are listed with an empty detail mapping.
        """
        return {
            "name": self.name,
            "new_series": list(self.new_series),
            "equal_series": {name: {} for name in self.equal_series},
            "divergent_series": {
                name: {point: c.to_dict() for point, c in comparisons.items()}
                for name, comparisons in self.divergent_series.items()
            },
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AnalysisResult:
        result = cls(name=data["name"])
        for name in data.get("new_series", []):
            result.add_new(name)
        for name, detail in data.get("equal_series", {}).items():
            result.equal_series[name] = {
                point: Comparison.from_dict(c) for point, c in (detail or {}).items()
            }
        for name, detail in data.get("divergent_series", {}).items():
            result.divergent_series[name] = {
                point: Comparison.from_dict(c) for point, c in detail.items()
            }
        return result


# ---------------------------------------------------------------------------
# Analysis
# ---------------------------------------------------------------------------


def analyze(
    current: Summary,
    previous: Summary | None,
    threshold: float,
) -> AnalysisResult:
    """Compare *current* against *previous* with a percent *threshold*.

    Args:
        current: Summary of the run under test.
        previous: Baseline summary, or None to report every series as new.
        threshold: Percent change (by magnitude) above which a point
            counts as Greater or Less.

    Returns:
        AnalysisResult named after *current*.
    """
    if previous is not None and previous.name != current.name:
        log.warning(
            "Comparing differently named summaries: %s <=> %s",
            current.name,
            previous.name,
        )

    result = AnalysisResult(name=current.name)
    for name, series in current.series.items():
        prev_series = previous.get(name) if previous is not None else None
        if prev_series is None:
            log.info("Series '%s' is new", name)
            result.add_new(name)
            continue
        comparisons = compare_series(series, prev_series, threshold)
        result.add(name, comparisons)
        if name in result.divergent_series:
            log.info(
                "Series '%s' diverges beyond %.1f%% at %d of %d points",
                name,
                abs(threshold),
                sum(1 for c in comparisons.values() if c.divergent),
                len(comparisons),
            )
        else:
            log.debug("Series '%s' is equal within %.1f%%", name, abs(threshold))
    return result
