"""Configuration and input loading for the command-line entry point.

Example config file (chart.yaml):

    chart:
      tension: 0.4
      price_padding: 0.1
      future_buffer: "P14D"      # ISO 8601 duration or seconds
      future_window: null        # Derived from the time range when null
      snap_threshold_px: 20
      min_event_separation_px: 12
      min_marker_radius: 3
      max_marker_radius: 8
      slot_offset_px: 6
      event_baseline: 0.5
      volume_height_px: 30
      volume_bucket: null        # One volume bar per sample when null
    market_hours:
      pre_market_open: "04:00"
      regular_open: "09:30"
      regular_close: "16:00"
      after_hours_close: "20:00"
    logging:
      level: "INFO"

Samples and events are JSON arrays of objects, e.g.::

    [{"timestamp": "2024-03-15T13:30:00Z", "price": 101.5, "volume": 1200}]
    [{"id": "evt-1", "timestamp": "2024-04-25T20:00:00Z", "type": "earnings"}]
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from catalyst_chart.exceptions import ConfigError, DataValidationError
from catalyst_chart.types import ChartConfig, FutureEvent, MarketHours, PriceSample

# Valid log levels
VALID_LOG_LEVELS = frozenset(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])

# Top-level sections accepted in a config file
VALID_SECTIONS = frozenset(["chart", "market_hours", "logging"])


def _read_yaml(config_path: Path) -> Any:
    try:
        with open(config_path) as f:
            return yaml.safe_load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"Configuration file not found: {config_path}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in configuration file: {e}") from e


def parse_chart_config(raw_config: Any) -> ChartConfig:
    """Validate an already-parsed configuration mapping.

    :param raw_config: Parsed YAML document (None means all defaults).
    :returns: Validated ChartConfig.
    :raises ConfigError: If the document is not a valid configuration.
    """
    if raw_config is None:
        return ChartConfig()
    if not isinstance(raw_config, dict):
        raise ConfigError("Configuration must be a YAML mapping")

    unknown = set(raw_config) - VALID_SECTIONS
    if unknown:
        raise ConfigError(f"Unknown configuration sections: {', '.join(sorted(unknown))}")

    raw_chart = raw_config.get("chart") or {}
    if not isinstance(raw_chart, dict):
        raise ConfigError("'chart' must be a mapping")

    raw_hours = raw_config.get("market_hours")
    if raw_hours is not None and not isinstance(raw_hours, dict):
        raise ConfigError("'market_hours' must be a mapping")

    # Parse logging (optional)
    raw_logging = raw_config.get("logging") or {}
    if not isinstance(raw_logging, dict):
        raise ConfigError("'logging' must be a mapping")
    log_level = str(raw_logging.get("level", "INFO")).upper()
    if log_level not in VALID_LOG_LEVELS:
        raise ConfigError(
            f"Invalid log level '{log_level}'. "
            f"Valid: {', '.join(sorted(VALID_LOG_LEVELS))}"
        )

    fields = dict(raw_chart)
    fields["log_level"] = log_level
    try:
        if raw_hours is not None:
            fields["market_hours"] = MarketHours(**raw_hours)
        return ChartConfig(**fields)
    except ValidationError as e:
        raise ConfigError(f"Invalid chart configuration: {e}") from e
    except TypeError as e:
        raise ConfigError(f"Invalid chart configuration: {e}") from e


def load_chart_config(config_path: str | Path) -> ChartConfig:
    """Parse and validate a chart configuration file.

    :param config_path: Path to YAML configuration file.
    :returns: Validated ChartConfig object.
    :raises ConfigError: If file cannot be read or config is invalid.
    """
    return parse_chart_config(_read_yaml(Path(config_path)))


def _read_json_array(path: Path, what: str) -> list[Any]:
    try:
        with open(path) as f:
            raw = json.load(f)
    except FileNotFoundError as e:
        raise DataValidationError(f"{what} file not found: {path}") from e
    except json.JSONDecodeError as e:
        raise DataValidationError(f"Invalid JSON in {what} file: {e}") from e
    if not isinstance(raw, list):
        raise DataValidationError(f"{what} file must contain a JSON array")
    return raw


def load_samples(path: str | Path) -> list[PriceSample]:
    """Load price samples from a JSON array.

    :param path: Path to the JSON file.
    :returns: Samples in file order.
    :raises DataValidationError: If the file is missing or a record is malformed.
    """
    records = _read_json_array(Path(path), "Samples")
    samples = []
    for i, record in enumerate(records):
        try:
            samples.append(PriceSample.model_validate(record))
        except ValidationError as e:
            raise DataValidationError(f"Invalid sample at position {i}: {e}") from e
    return samples


def load_events(path: str | Path) -> list[FutureEvent]:
    """Load future events from a JSON array.

    :param path: Path to the JSON file.
    :returns: Events in file order.
    :raises DataValidationError: If the file is missing or a record is malformed.
    """
    records = _read_json_array(Path(path), "Events")
    events = []
    for i, record in enumerate(records):
        try:
            events.append(FutureEvent.model_validate(record))
        except ValidationError as e:
            raise DataValidationError(f"Invalid event at position {i}: {e}") from e
    return events


__all__ = [
    "VALID_LOG_LEVELS",
    "parse_chart_config",
    "load_chart_config",
    "load_samples",
    "load_events",
]
