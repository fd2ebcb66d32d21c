"""Run configuration and YAML profile loading.

Handles:
- Loading run profiles from YAML files.
- Merging CLI options with profile values (CLI wins).
- Validating the final configuration before execution.
- Applying iteration-count overrides to a registry.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

from stopbench.errors import ConfigurationError
from stopbench.logging import get_logger

if TYPE_CHECKING:
    from stopbench.registry import BenchmarkRegistry

log = get_logger("config")


# ---------------------------------------------------------------------------
# RunConfig
# ---------------------------------------------------------------------------


@dataclass
class BenchmarkOverride:
    """Per-benchmark iteration counts from a profile."""

    repeat: int | None = None
    ramp_up: int | None = None


@dataclass
class RunConfig:
    """Resolved configuration for a benchmark run."""

    name: str = ""  # replaces the registry name in the summary when set

    # Iteration control (None keeps what the benchmark was registered with)
    repeat: int | None = None
    ramp_up: int | None = None
    benchmarks: dict[str, BenchmarkOverride] = field(default_factory=dict)

    # Regression analysis
    threshold: float = 5.0
    baseline: Path | None = None
    fail_on_regression: bool = False

    # Output
    output: Path | None = None
    csv_dir: Path | None = None
    with_headers: bool = True
    with_std_dev: bool = True
    with_config: bool = False


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


@dataclass
class ValidationError:
    """A single configuration validation error."""

    field: str
    message: str
    severity: str = "error"  # "error" or "warning"


def validate_config(config: RunConfig) -> list[ValidationError]:
    """Validate a run configuration.

    Returns a list of validation errors.  Empty list means valid.
    """
    errors: list[ValidationError] = []

    if config.repeat is not None and config.repeat < 1:
        errors.append(
            ValidationError(
                field="repeat",
                message=f"Need at least 1 measured iteration (got {config.repeat}).",
            )
        )

    if config.ramp_up is not None and config.ramp_up < 0:
        errors.append(
            ValidationError(
                field="ramp_up",
                message=f"Ramp-up iterations cannot be negative (got {config.ramp_up}).",
            )
        )

    for name, override in config.benchmarks.items():
        if override.repeat is not None and override.repeat < 1:
            errors.append(
                ValidationError(
                    field=f"benchmarks.{name}.repeat",
                    message=(
                        f"Benchmark '{name}' needs at least 1 measured iteration "
                        f"(got {override.repeat})."
                    ),
                )
            )
        if override.ramp_up is not None and override.ramp_up < 0:
            errors.append(
                ValidationError(
                    field=f"benchmarks.{name}.ramp_up",
                    message=(
                        f"Benchmark '{name}' ramp-up cannot be negative (got {override.ramp_up})."
                    ),
                )
            )

    if config.threshold < 0:
        errors.append(
            ValidationError(
                field="threshold",
                message=(
                    f"Negative threshold {config.threshold} is applied by magnitude "
                    f"({abs(config.threshold)}%)."
                ),
                severity="warning",
            )
        )

    if config.baseline is not None and not config.baseline.exists():
        errors.append(
            ValidationError(
                field="baseline",
                message=f"Baseline summary does not exist: {config.baseline}",
            )
        )

    return errors


def check_config(config: RunConfig) -> None:
    """Log warnings and raise on fatal validation errors.

    Raises:
        ConfigurationError: If any error-severity problem was found.
    """
    errors = validate_config(config)
    for w in errors:
        if w.severity == "warning":
            log.warning("Config warning: %s: %s", w.field, w.message)
    fatal = [e for e in errors if e.severity == "error"]
    if fatal:
        messages = [f"  {e.field}: {e.message}" for e in fatal]
        raise ConfigurationError("Invalid run configuration:\n" + "\n".join(messages))


# ---------------------------------------------------------------------------
# YAML profile loading
# ---------------------------------------------------------------------------


def load_profile(profile_path: Path) -> dict[str, Any]:
    """Load a run profile from a YAML file.

    Profile format::

        name: "nightly"  # summary name, overrides the registry name
        repeat: 10
        ramp_up: 2
        threshold: 5.0
        output: "results/summary.json"
        csv:
          dir: "results/csv"
          headers: true
          std_dev: true
          config: false

        benchmarks:
          sort-large:
            repeat: 3

    Returns:
        The parsed YAML as a dict.

    Raises:
        FileNotFoundError: If the profile does not exist.
        ConfigurationError: If the file is not a YAML mapping.
    """
    if not profile_path.exists():
        raise FileNotFoundError(f"Profile not found: {profile_path}")

    try:
        data = yaml.safe_load(profile_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in profile {profile_path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Profile must be a YAML mapping, got {type(data).__name__}")

    return data


def _as_count(value: Any, field_name: str) -> int | None:
    """Check an iteration count from a profile; None means unset."""
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(
            f"Profile field '{field_name}' must be an integer, got {value!r}"
        )
    return value


def _as_threshold(value: Any) -> float:
    if isinstance(value, bool):
        raise ConfigurationError(f"Profile field 'threshold' must be a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(
            f"Profile field 'threshold' must be a number, got {value!r}"
        ) from exc


def config_from_profile(
    profile_data: dict[str, Any],
    *,
    cli_overrides: dict[str, Any] | None = None,
) -> RunConfig:
    """Build a RunConfig from a parsed profile and CLI values.

    CLI values that are not None take precedence over the profile.

    Raises:
        ConfigurationError: If a section has the wrong shape or a numeric
            field holds a non-numeric value.
    """
    cli = {k: v for k, v in (cli_overrides or {}).items() if v is not None}

    config = RunConfig(
        name=str(cli.get("name") or profile_data.get("name") or ""),
        repeat=_as_count(cli.get("repeat", profile_data.get("repeat")), "repeat"),
        ramp_up=_as_count(cli.get("ramp_up", profile_data.get("ramp_up")), "ramp_up"),
        threshold=_as_threshold(cli.get("threshold", profile_data.get("threshold", 5.0))),
        fail_on_regression=bool(
            cli.get("fail_on_regression", profile_data.get("fail_on_regression", False))
        ),
    )

    output = cli.get("output", profile_data.get("output"))
    if output:
        config.output = Path(output)
    baseline = cli.get("baseline", profile_data.get("baseline"))
    if baseline:
        config.baseline = Path(baseline)

    csv_data = profile_data.get("csv") or {}
    if not isinstance(csv_data, dict):
        raise ConfigurationError("Profile 'csv' must be a mapping")
    csv_dir = cli.get("csv_dir", csv_data.get("dir"))
    if csv_dir:
        config.csv_dir = Path(csv_dir)
    config.with_headers = bool(csv_data.get("headers", True))
    config.with_std_dev = bool(csv_data.get("std_dev", True))
    config.with_config = bool(csv_data.get("config", False))

    benchmarks_data = profile_data.get("benchmarks") or {}
    if not isinstance(benchmarks_data, dict):
        raise ConfigurationError("Profile 'benchmarks' must be a mapping of name -> settings")
    for name, bench_data in benchmarks_data.items():
        if bench_data is None:
            bench_data = {}
        if not isinstance(bench_data, dict):
            raise ConfigurationError(
                f"Benchmark '{name}' must be a mapping, got {type(bench_data).__name__}"
            )
        config.benchmarks[str(name)] = BenchmarkOverride(
            repeat=_as_count(bench_data.get("repeat"), f"benchmarks.{name}.repeat"),
            ramp_up=_as_count(bench_data.get("ramp_up"), f"benchmarks.{name}.ramp_up"),
        )

    return config


# ---------------------------------------------------------------------------
# Applying overrides
# ---------------------------------------------------------------------------


def apply_overrides(registry: BenchmarkRegistry, config: RunConfig) -> None:
    """Apply global and per-benchmark iteration counts to *registry*.

    Per-benchmark values win over the global ones.  Overrides naming an
    unregistered benchmark are logged and ignored.

    Raises:
        ConfigurationError: If a resulting count is invalid.
    """
    for name in config.benchmarks:
        if name not in registry:
            log.warning("Profile overrides unknown benchmark '%s', ignoring", name)

    for name in registry.names:
        override = config.benchmarks.get(name, BenchmarkOverride())
        repeat = override.repeat if override.repeat is not None else config.repeat
        ramp_up = override.ramp_up if override.ramp_up is not None else config.ramp_up
        if repeat is None and ramp_up is None:
            continue
        registry.replace(name, repeat=repeat, ramp_up=ramp_up)
        log.debug("Benchmark '%s' overridden: repeat=%s ramp_up=%s", name, repeat, ramp_up)
