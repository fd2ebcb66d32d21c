"""Tests for stopbench.export — JSON, CSV and Markdown rendering."""

from __future__ import annotations

import csv
import io
import json
import unittest

from bench_test_helpers import make_series, make_stat, make_summary

from stopbench.compare import analyze
from stopbench.export import (
    CSV_COLUMNS,
    analysis_to_json,
    csv_headers,
    export_csv,
    export_markdown,
    series_to_csv,
    summary_from_json,
    summary_to_csv,
    summary_to_json,
)
from stopbench.results import SeriesResult


class TestJsonExport(unittest.TestCase):
    """Tests for the JSON helpers."""

    def test_summary_round_trip(self) -> None:
        """summary_to_json output parses back unchanged."""
        summary = make_summary({"a": {"1": 10}})
        restored = summary_from_json(summary_to_json(summary))
        self.assertEqual(restored.series["a"].runs, summary.series["a"].runs)

    def test_analysis_json(self) -> None:
        """Analysis JSON keeps the per-point detail."""
        previous = make_summary({"a": {"1": 100}})
        current = make_summary({"a": {"1": 200}})
        data = json.loads(analysis_to_json(analyze(current, previous, 5.0)))
        self.assertEqual(data["divergent_series"]["a"]["1"]["Greater"]["current"], 200)


class TestCsvBlocks(unittest.TestCase):
    """Tests for series_to_csv() / summary_to_csv()."""

    def setUp(self) -> None:
        self.series = SeriesResult(name="a", config="threads=4")
        self.series.add("100", make_stat(1_500_000_000, minimum=1_000_000_000, std_dev=1e6))
        self.series.add("10", make_stat(500))

    def test_headers(self) -> None:
        """The std-dev column can be dropped from the header."""
        self.assertEqual(csv_headers(), CSV_COLUMNS)
        self.assertNotIn("std_dev_sec", csv_headers(with_std_dev=False))

    def test_one_row_per_point_in_order(self) -> None:
        """One row per point, in declared order."""
        lines = series_to_csv(self.series)
        self.assertEqual(lines[0], ",".join(CSV_COLUMNS))
        self.assertEqual(len(lines), 3)
        row = next(csv.reader([lines[1]]))
        self.assertEqual(row[:3], ["100", "1", "3"])
        self.assertAlmostEqual(float(row[3]), 1.0)
        self.assertAlmostEqual(float(row[5]), 1.5)
        self.assertAlmostEqual(float(row[6]), 0.001)
        self.assertTrue(lines[2].startswith("10,"))

    def test_without_headers(self) -> None:
        """Without headers only data rows remain."""
        lines = series_to_csv(self.series, with_headers=False)
        self.assertEqual(len(lines), 2)
        self.assertTrue(lines[0].startswith("100,"))

    def test_without_std_dev(self) -> None:
        """Rows lose the std-dev column with the header."""
        lines = series_to_csv(self.series, with_std_dev=False)
        self.assertEqual(len(next(csv.reader([lines[1]]))), len(CSV_COLUMNS) - 1)

    def test_config_in_header(self) -> None:
        """with_config appends the configuration column."""
        lines = series_to_csv(self.series, with_config=True)
        header = next(csv.reader([lines[0]]))
        self.assertEqual(header[-2:], ["", "configuration: threads=4"])

    def test_config_ignored_without_headers(self) -> None:
        """The configuration only lives in the header."""
        lines = series_to_csv(self.series, with_headers=False, with_config=True)
        self.assertNotIn("configuration", "\n".join(lines))

    def test_small_durations_are_plain_decimals(self) -> None:
        """Microsecond timings are written without scientific notation."""
        series = SeriesResult(name="tiny", config="")
        series.add("1", make_stat(50_000, repeat=1, ramp_up=0))
        lines = series_to_csv(series, with_headers=False)
        self.assertEqual(lines, ["1,0,1,0.000050000,0.000050000,0.000050000,0.000000000"])

    def test_summary_to_csv_keyed_by_name(self) -> None:
        """Blocks are keyed by benchmark name in run order."""
        summary = make_summary({"b": {"1": 1}, "a": {"1": 1, "2": 2}})
        blocks = summary_to_csv(summary, with_headers=False)
        self.assertEqual(list(blocks), ["b", "a"])
        self.assertEqual(len(blocks["a"]), 2)


class TestLongCsv(unittest.TestCase):
    """Tests for export_csv()."""

    def test_long_format(self) -> None:
        """Long-format CSV has one row per benchmark and point."""
        summary = make_summary({"a": {"1": 100, "2": 200}, "b": {"x": 1_000_000_000}})
        rows = list(csv.DictReader(io.StringIO(export_csv(summary))))
        self.assertEqual(len(rows), 3)
        self.assertEqual([r["benchmark"] for r in rows], ["a", "a", "b"])
        self.assertEqual(rows[2]["point"], "x")
        self.assertEqual(rows[2]["median_nanos"], "1000000000")
        self.assertEqual(rows[2]["median_sec"], "1.000000000")
        self.assertEqual(rows[0]["std_dev_nanos"], "0.0")
        self.assertEqual(rows[0]["config"], "default")


class TestMarkdown(unittest.TestCase):
    """Tests for export_markdown()."""

    def test_summary_only(self) -> None:
        """Markdown has a table per series."""
        summary = make_summary({"sort": {"100": 1_500}})
        md = export_markdown(summary)
        self.assertIn("# suite", md)
        self.assertIn("## sort", md)
        self.assertIn("Configuration: `default`", md)
        self.assertIn("| 100 | 1.50µs | 1.50µs | 1.50µs | 0ns | 3 |", md)
        self.assertNotIn("## Comparison", md)
        self.assertTrue(md.endswith("\n"))

    def test_with_analysis(self) -> None:
        """Markdown includes the comparison section."""
        previous = make_summary({"sort": {"1": 100, "2": 100}, "eq": {"1": 5}})
        current = make_summary(
            {"sort": {"1": 100, "2": 200}, "eq": {"1": 5}, "new": {"1": 1}}
        )
        md = export_markdown(current, analyze(current, previous, 5.0))
        self.assertIn("## Comparison", md)
        self.assertIn("- New series: new", md)
        self.assertIn("- Equal series: eq", md)
        self.assertIn("- Divergent series: sort", md)
        self.assertIn("### sort", md)
        self.assertIn("| 2 | 100ns | 200ns | +100.0% | slower |", md)
        self.assertIn("| 1 | 100ns | 100ns | +0.0% | equal |", md)

    def test_empty_config_omitted(self) -> None:
        """An empty config line is left out."""
        summary = make_summary({})
        summary.add(make_series("a", {"1": 1}, config=""))
        self.assertNotIn("Configuration:", export_markdown(summary))


if __name__ == "__main__":
    unittest.main()
