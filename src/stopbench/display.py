"""Terminal display formatting for benchmark summaries and analyses.

Produces aligned tables with Unicode rules.  No external dependencies.
"""

from __future__ import annotations

from stopbench.compare import AnalysisResult, ComparisonKind
from stopbench.formatting import format_nanos, format_pct, format_table
from stopbench.results import Summary

_VERDICT = {
    ComparisonKind.GREATER: "▲ slower",
    ComparisonKind.LESS: "▼ faster",
    ComparisonKind.EQUAL: "= equal",
}


def _title(text: str) -> list[str]:
    return [text, "─" * len(text)]


def format_summary(summary: Summary) -> str:
    """Format every series of a summary as a table per benchmark."""
    lines = _title(summary.name)
    if summary.created_at:
        lines.append(f"Created: {summary.created_at}")
    lines.append("")

    if not summary.series:
        lines.append("  (no series)")
        return "\n".join(lines)

    for name, series in summary.series.items():
        header = name
        if series.config:
            header += f"  [{series.config}]"
        lines.append(header)
        rows = [
            [
                point,
                format_nanos(stat.min_nanos),
                format_nanos(stat.median_nanos),
                format_nanos(stat.max_nanos),
                format_nanos(stat.std_dev),
                f"{stat.ramp_up}+{stat.repeat}",
            ]
            for point, stat in series.runs
        ]
        lines.append(
            format_table(
                ["Point", "Min", "Median", "Max", "Std dev", "Iter"],
                rows,
                alignments=["l", "r", "r", "r", "r", "r"],
                max_col_width={0: 30},
            )
        )
        lines.append("")

    return "\n".join(lines).rstrip()


def format_analysis(analysis: AnalysisResult, *, show_equal_points: bool = True) -> str:
    """Format an analysis result for the terminal.

    Divergent series list every compared point; with
    *show_equal_points* False only the non-Equal points are shown.
    """
    lines = _title(f"Comparison: {analysis.name}")
    lines.append(
        f"New: {len(analysis.new_series)}  "
        f"Equal: {len(analysis.equal_series)}  "
        f"Divergent: {len(analysis.divergent_series)}"
    )
    lines.append("")

    for name in analysis.new_series:
        lines.append(f"  + {name} (new)")
    for name in analysis.equal_series:
        lines.append(f"  = {name}")
    if analysis.new_series or analysis.equal_series:
        lines.append("")

    for name, comparisons in analysis.divergent_series.items():
        lines.append(f"! {name}")
        rows = [
            [
                point,
                format_nanos(c.previous),
                format_nanos(c.current),
                format_pct(c.change),
                _VERDICT[c.kind],
            ]
            for point, c in comparisons.items()
            if show_equal_points or c.divergent
        ]
        lines.append(
            format_table(
                ["Point", "Previous", "Current", "Change", "Verdict"],
                rows,
                alignments=["l", "r", "r", "r", "l"],
                max_col_width={0: 30},
            )
        )
        lines.append("")

    regressions = analysis.regressions()
    if regressions:
        lines.append(f"{len(regressions)} regressed point(s)")
    else:
        lines.append("No regressions")
    return "\n".join(lines)
