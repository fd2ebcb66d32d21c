"""Export benchmark summaries and analyses to JSON, CSV and Markdown.

CSV comes in two shapes:

- per-benchmark blocks (:func:`summary_to_csv`): one list of lines per
  benchmark, one row per workload point in declared order;
- long format (:func:`export_csv`): a single table with a ``benchmark``
  column, convenient for pandas/R.

Markdown produces a report suitable for READMEs and issues.
"""

from __future__ import annotations

import csv
import io
import json

from stopbench.compare import AnalysisResult, ComparisonKind
from stopbench.formatting import format_nanos, format_pct
from stopbench.results import PointStat, SeriesResult, Summary

CSV_COLUMNS = ["point", "ramp_up", "repeat", "min_sec", "max_sec", "median_sec", "std_dev_sec"]


# ---------------------------------------------------------------------------
# JSON
# ---------------------------------------------------------------------------


def summary_to_json(summary: Summary, indent: int | None = 2) -> str:
    """Render a summary as JSON text."""
    return summary.to_json(indent=indent)


def summary_from_json(text: str) -> Summary:
    """Parse JSON text produced by :func:`summary_to_json`."""
    return Summary.from_json(text)


def analysis_to_json(analysis: AnalysisResult, indent: int | None = 2) -> str:
    """Render an analysis result as JSON text."""
    return json.dumps(analysis.to_dict(), indent=indent)


# ---------------------------------------------------------------------------
# CSV export
# ---------------------------------------------------------------------------


def csv_headers(*, with_std_dev: bool = True) -> list[str]:
    """Column names of the per-benchmark CSV blocks."""
    if with_std_dev:
        return list(CSV_COLUMNS)
    return CSV_COLUMNS[:-1]


def _point_row(point: str, stat: PointStat, with_std_dev: bool) -> list[object]:
    row: list[object] = [
        point,
        stat.ramp_up,
        stat.repeat,
        f"{stat.min_sec:.9f}",
        f"{stat.max_sec:.9f}",
        f"{stat.median_sec:.9f}",
    ]
    if with_std_dev:
        row.append(f"{stat.std_dev_sec:.9f}")
    return row


def series_to_csv(
    series: SeriesResult,
    *,
    with_headers: bool = True,
    with_std_dev: bool = True,
    with_config: bool = False,
) -> list[str]:
    """Render one series as CSV lines (no trailing newlines).

    With *with_config* the header line gets an empty column followed by
    a ``configuration: <config>`` column.
    """
    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")

    if with_headers:
        header: list[str] = csv_headers(with_std_dev=with_std_dev)
        if with_config:
            header = header + ["", f"configuration: {series.config}"]
        writer.writerow(header)

    for point, stat in series.runs:
        writer.writerow(_point_row(point, stat, with_std_dev))

    return output.getvalue().splitlines()


def summary_to_csv(
    summary: Summary,
    *,
    with_headers: bool = True,
    with_std_dev: bool = True,
    with_config: bool = False,
) -> dict[str, list[str]]:
    """Render every series as CSV lines, keyed by benchmark name."""
    return {
        name: series_to_csv(
            series,
            with_headers=with_headers,
            with_std_dev=with_std_dev,
            with_config=with_config,
        )
        for name, series in summary.series.items()
    }


def export_csv(summary: Summary) -> str:
    """Export all series as a single long-format CSV table.

    Columns: benchmark, config, point, ramp_up, repeat, min_nanos,
    max_nanos, median_nanos, std_dev_nanos, min_sec, max_sec,
    median_sec, std_dev_sec
    """
    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow(
        [
            "benchmark",
            "config",
            "point",
            "ramp_up",
            "repeat",
            "min_nanos",
            "max_nanos",
            "median_nanos",
            "std_dev_nanos",
            "min_sec",
            "max_sec",
            "median_sec",
            "std_dev_sec",
        ]
    )
    for name, series in summary.series.items():
        for point, stat in series.runs:
            writer.writerow(
                [
                    name,
                    series.config,
                    point,
                    stat.ramp_up,
                    stat.repeat,
                    stat.min_nanos,
                    stat.max_nanos,
                    stat.median_nanos,
                    f"{stat.std_dev:.1f}",
                    f"{stat.min_sec:.9f}",
                    f"{stat.max_sec:.9f}",
                    f"{stat.median_sec:.9f}",
                    f"{stat.std_dev_sec:.9f}",
                ]
            )
    return output.getvalue()


# ---------------------------------------------------------------------------
# Markdown export
# ---------------------------------------------------------------------------


def export_markdown(summary: Summary, analysis: AnalysisResult | None = None) -> str:
    """Export a summary (and optionally its analysis) as a Markdown report."""
    lines: list[str] = []

    lines.append(f"# {summary.name}")
    lines.append("")
    lines.append(f"Created: {summary.created_at or 'unknown'}")
    lines.append("")

    for name, series in summary.series.items():
        lines.append(f"## {name}")
        lines.append("")
        if series.config:
            lines.append(f"Configuration: `{series.config}`")
            lines.append("")
        lines.append("| Point | Min | Median | Max | Std dev | Repeat |")
        lines.append("|---|---:|---:|---:|---:|---:|")
        for point, stat in series.runs:
            lines.append(
                f"| {point} | {format_nanos(stat.min_nanos)} | "
                f"{format_nanos(stat.median_nanos)} | {format_nanos(stat.max_nanos)} | "
                f"{format_nanos(stat.std_dev)} | {stat.repeat} |"
            )
        lines.append("")

    if analysis is not None:
        _export_markdown_analysis(lines, analysis)

    return "\n".join(lines).rstrip() + "\n"


def _export_markdown_analysis(lines: list[str], analysis: AnalysisResult) -> None:
    """Append the comparison section to lines."""
    lines.append("## Comparison")
    lines.append("")
    if analysis.new_series:
        lines.append(f"- New series: {', '.join(analysis.new_series)}")
    if analysis.equal_series:
        lines.append(f"- Equal series: {', '.join(analysis.equal_series)}")
    if analysis.divergent_series:
        lines.append(f"- Divergent series: {', '.join(analysis.divergent_series)}")
    lines.append("")

    for name, comparisons in analysis.divergent_series.items():
        lines.append(f"### {name}")
        lines.append("")
        lines.append("| Point | Previous | Current | Change | Verdict |")
        lines.append("|---|---:|---:|---:|---|")
        for point, c in comparisons.items():
            verdict = {
                ComparisonKind.GREATER: "slower",
                ComparisonKind.LESS: "faster",
                ComparisonKind.EQUAL: "equal",
            }[c.kind]
            lines.append(
                f"| {point} | {format_nanos(c.previous)} | {format_nanos(c.current)} | "
                f"{format_pct(c.change)} | {verdict} |"
            )
        lines.append("")
