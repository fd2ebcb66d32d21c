"""Command-line interface for stopbench.

Subcommands:
    stopbench run       Run the benchmarks of a registry
    stopbench compare   Compare two saved summaries
    stopbench show      Display a saved summary
    stopbench export    Export a saved summary to JSON/CSV/Markdown
"""

from __future__ import annotations

import importlib
import importlib.util
import re
import sys
from pathlib import Path
from typing import Any

import click

from stopbench import __version__
from stopbench.errors import BenchmarkExecutionError, ConfigurationError
from stopbench.logging import get_logger, setup_logging
from stopbench.registry import BenchmarkRegistry

log = get_logger("cli")


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """stopbench — micro-benchmarks with regression analysis."""


# ---------------------------------------------------------------------------
# Target loading
# ---------------------------------------------------------------------------


def load_target(target: str) -> BenchmarkRegistry:
    """Resolve ``module:attribute`` (or ``path/to/file.py:attribute``) to a registry.

    The attribute may be a BenchmarkRegistry or a zero-argument callable
    returning one.

    Raises:
        ConfigurationError: If the target cannot be imported, raises while
            loading or building, or is not a registry.
    """
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise ConfigurationError(f"Target must look like 'module:attribute', got '{target}'")

    try:
        if module_name.endswith(".py"):
            path = Path(module_name)
            if not path.exists():
                raise ConfigurationError(f"Benchmark file not found: {path}")
            spec = importlib.util.spec_from_file_location(path.stem, path)
            if spec is None or spec.loader is None:
                raise ConfigurationError(f"Cannot load benchmark file: {path}")
            module = importlib.util.module_from_spec(spec)
            sys.modules[spec.name] = module
            spec.loader.exec_module(module)
        else:
            module = importlib.import_module(module_name)
    except ConfigurationError:
        raise
    except ImportError as exc:
        raise ConfigurationError(f"Cannot import '{module_name}': {exc}") from exc
    except Exception as exc:
        raise ConfigurationError(
            f"Loading '{module_name}' failed: {type(exc).__name__}: {exc}"
        ) from exc

    obj: Any = module
    for part in attr.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as exc:
            raise ConfigurationError(f"'{module_name}' has no attribute '{attr}'") from exc

    if not isinstance(obj, BenchmarkRegistry) and callable(obj):
        try:
            obj = obj()
        except Exception as exc:
            raise ConfigurationError(
                f"'{target}' raised while building the registry: {type(exc).__name__}: {exc}"
            ) from exc
    if not isinstance(obj, BenchmarkRegistry):
        raise ConfigurationError(
            f"'{target}' is not a BenchmarkRegistry (got {type(obj).__name__})"
        )
    return obj


def _csv_filename(name: str) -> str:
    return re.sub(r"[^A-Za-z0-9._-]+", "_", name).strip("_") + ".csv"


# ---------------------------------------------------------------------------
# run
# ---------------------------------------------------------------------------


@main.command()
@click.argument("target")
@click.option(
    "--profile",
    "profile_path",
    type=click.Path(exists=True, path_type=Path),
    help="YAML profile with run settings.",
)
@click.option(
    "--name",
    default=None,
    help="Name the run and its summary (defaults to the registry name).",
)
@click.option("--repeat", type=int, default=None, help="Measured iterations for every benchmark.")
@click.option("--ramp-up", type=int, default=None, help="Warm-up iterations for every benchmark.")
@click.option(
    "-o",
    "--output",
    type=click.Path(path_type=Path),
    default=None,
    help="Write the summary JSON here.",
)
@click.option(
    "--csv-dir",
    type=click.Path(path_type=Path),
    default=None,
    help="Write one CSV file per benchmark into this directory.",
)
@click.option(
    "--compare",
    "baseline",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Previous summary JSON to compare against.",
)
@click.option("--threshold", type=float, default=None, help="Divergence threshold in percent.")
@click.option(
    "--fail-on-regression/--no-fail-on-regression",
    default=None,
    help="Exit with status 1 if any point regressed.",
)
@click.option("-v", "--verbose", is_flag=True, help="Show detailed output.")
@click.option("-q", "--quiet", is_flag=True, help="Only show warnings and errors.")
@click.option("--log-file", type=click.Path(path_type=Path), default=None)
def run(
    target: str,
    profile_path: Path | None,
    name: str | None,
    repeat: int | None,
    ramp_up: int | None,
    output: Path | None,
    csv_dir: Path | None,
    baseline: Path | None,
    threshold: float | None,
    fail_on_regression: bool | None,
    verbose: bool,
    quiet: bool,
    log_file: Path | None,
) -> None:
    """Run the benchmarks registered in TARGET.

    TARGET is ``module:attribute`` or ``path/to/file.py:attribute`` naming
    a BenchmarkRegistry or a function returning one.

    \b
    Examples:
        stopbench run benches.sorting:registry -o results/summary.json
        stopbench run benches/sorting.py:make_registry --repeat 10 \\
            --compare results/previous.json --threshold 5
    """
    from stopbench.compare import analyze
    from stopbench.config import apply_overrides, check_config, config_from_profile, load_profile
    from stopbench.display import format_analysis, format_summary
    from stopbench.export import series_to_csv
    from stopbench.results import load_summary, save_summary

    setup_logging(verbose=verbose, quiet=quiet, log_file=log_file)

    cli_overrides: dict[str, object] = {
        "name": name,
        "repeat": repeat,
        "ramp_up": ramp_up,
        "output": output,
        "csv_dir": csv_dir,
        "baseline": baseline,
        "threshold": threshold,
        "fail_on_regression": fail_on_regression,
    }

    try:
        profile_data = load_profile(profile_path) if profile_path else {}
        config = config_from_profile(profile_data, cli_overrides=cli_overrides)
        check_config(config)
        registry = load_target(target)
        apply_overrides(registry, config)
        if config.name:
            registry.name = config.name
    except ConfigurationError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc

    try:
        summary = registry.run()
    except BenchmarkExecutionError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc
    except KeyboardInterrupt:
        click.echo("\nBenchmark interrupted.", err=True)
        raise SystemExit(130)  # noqa: B904

    click.echo(format_summary(summary))

    if config.output:
        save_summary(config.output, summary)
        click.echo(f"Summary saved to: {config.output}")

    if config.csv_dir:
        config.csv_dir.mkdir(parents=True, exist_ok=True)
        for bench_name, series in summary.series.items():
            lines = series_to_csv(
                series,
                with_headers=config.with_headers,
                with_std_dev=config.with_std_dev,
                with_config=config.with_config,
            )
            path = config.csv_dir / _csv_filename(bench_name)
            path.write_text("\n".join(lines) + "\n", encoding="utf-8")
            log.info("Wrote %s", path)

    if config.baseline:
        try:
            previous = load_summary(config.baseline)
        except ValueError as exc:
            click.echo(f"Error: {exc}", err=True)
            raise SystemExit(1) from exc
        analysis = analyze(summary, previous, config.threshold)
        click.echo()
        click.echo(format_analysis(analysis))
        if config.fail_on_regression and analysis.has_regressions:
            raise SystemExit(1)


# ---------------------------------------------------------------------------
# compare
# ---------------------------------------------------------------------------


@main.command("compare")
@click.argument("current", type=click.Path(exists=True, path_type=Path))
@click.argument("previous", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--threshold",
    type=float,
    default=5.0,
    show_default=True,
    help="Divergence threshold in percent.",
)
@click.option("--json", "as_json", is_flag=True, help="Print the analysis as JSON.")
@click.option(
    "--divergent-only",
    is_flag=True,
    help="Hide Equal points inside divergent series.",
)
@click.option("--fail-on-regression", is_flag=True, help="Exit with status 1 on regressions.")
def compare(
    current: Path,
    previous: Path,
    threshold: float,
    as_json: bool,
    divergent_only: bool,
    fail_on_regression: bool,
) -> None:
    """Compare CURRENT summary against PREVIOUS summary.

    \b
    Examples:
        stopbench compare results/today.json results/yesterday.json
        stopbench compare new.json old.json --threshold 10 --json
    """
    from stopbench.compare import analyze
    from stopbench.display import format_analysis
    from stopbench.export import analysis_to_json
    from stopbench.results import load_summary

    try:
        current_summary = load_summary(current)
        previous_summary = load_summary(previous)
    except ValueError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc

    analysis = analyze(current_summary, previous_summary, threshold)

    if as_json:
        click.echo(analysis_to_json(analysis))
    else:
        click.echo(format_analysis(analysis, show_equal_points=not divergent_only))

    if fail_on_regression and analysis.has_regressions:
        raise SystemExit(1)


# ---------------------------------------------------------------------------
# show
# ---------------------------------------------------------------------------


@main.command("show")
@click.argument("summary_path", type=click.Path(exists=True, path_type=Path))
def show(summary_path: Path) -> None:
    """Display a saved SUMMARY_PATH."""
    from stopbench.display import format_summary
    from stopbench.results import load_summary

    try:
        summary = load_summary(summary_path)
    except ValueError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc
    click.echo(format_summary(summary))


# ---------------------------------------------------------------------------
# export
# ---------------------------------------------------------------------------


@main.command("export")
@click.argument("summary_path", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["json", "csv", "csv-blocks", "markdown"]),
    default="csv",
    show_default=True,
    help="Output format.",
)
@click.option(
    "--compare",
    "baseline",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Previous summary to include a comparison (markdown only).",
)
@click.option("--threshold", type=float, default=5.0, show_default=True)
@click.option("--no-headers", is_flag=True, help="Omit CSV header lines (csv-blocks).")
@click.option("--no-std-dev", is_flag=True, help="Omit the std-dev column (csv-blocks).")
@click.option("--with-config", is_flag=True, help="Add the config to CSV headers (csv-blocks).")
@click.option("-o", "--output", type=click.Path(path_type=Path), default=None)
def export(
    summary_path: Path,
    fmt: str,
    baseline: Path | None,
    threshold: float,
    no_headers: bool,
    no_std_dev: bool,
    with_config: bool,
    output: Path | None,
) -> None:
    """Export a saved summary.

    \b
    Examples:
        stopbench export results/summary.json --format csv > data.csv
        stopbench export results/summary.json --format markdown \\
            --compare results/previous.json -o report.md
    """
    from stopbench.compare import analyze
    from stopbench.export import export_csv, export_markdown, summary_to_csv, summary_to_json
    from stopbench.results import load_summary

    try:
        summary = load_summary(summary_path)
        previous = load_summary(baseline) if baseline else None
    except ValueError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc

    if fmt == "json":
        text = summary_to_json(summary)
    elif fmt == "csv":
        text = export_csv(summary)
    elif fmt == "csv-blocks":
        blocks = summary_to_csv(
            summary,
            with_headers=not no_headers,
            with_std_dev=not no_std_dev,
            with_config=with_config,
        )
        text = "\n\n".join(f"# {name}\n" + "\n".join(lines) for name, lines in blocks.items())
    else:
        analysis = analyze(summary, previous, threshold) if previous is not None else None
        text = export_markdown(summary, analysis)

    if output:
        output.write_text(text if text.endswith("\n") else text + "\n", encoding="utf-8")
        click.echo(f"Exported to {output}")
    else:
        click.echo(text.rstrip("\n"))
