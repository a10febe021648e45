"""Tests for configuration and input file loaders."""

import json
from datetime import time, timedelta
from pathlib import Path

import pytest
import yaml

from catalyst_chart.commands.chart_config import (load_chart_config,
                                                  load_events, load_samples,
                                                  parse_chart_config)
from catalyst_chart.exceptions import ConfigError, DataValidationError
from catalyst_chart.types import EventType, Session


def write_yaml(path: Path, content: object) -> Path:
    path.write_text(yaml.safe_dump(content))
    return path


class TestLoadChartConfig:
    """Tests for YAML chart configuration loading."""

    def test_full_config(self, tmp_path: Path) -> None:
        config_path = write_yaml(
            tmp_path / "chart.yaml",
            {
                "chart": {
                    "tension": 0.3,
                    "future_buffer": "P7D",
                    "future_window": 7776000,
                    "snap_threshold_px": 16,
                },
                "market_hours": {
                    "pre_market_open": "07:00",
                    "regular_open": "09:30",
                    "regular_close": "16:00",
                    "after_hours_close": "18:00",
                },
                "logging": {"level": "debug"},
            },
        )
        config = load_chart_config(config_path)
        assert config.tension == 0.3
        assert config.future_buffer == timedelta(days=7)
        assert config.future_window == timedelta(days=90)
        assert config.snap_threshold_px == 16
        assert config.market_hours.pre_market_open == time(7, 0)
        assert config.log_level == "DEBUG"

    def test_empty_file_uses_defaults(self, tmp_path: Path) -> None:
        config_path = tmp_path / "empty.yaml"
        config_path.write_text("")
        config = load_chart_config(config_path)
        assert config.tension == 0.4
        assert config.log_level == "INFO"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            load_chart_config(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        config_path = tmp_path / "bad.yaml"
        config_path.write_text("chart: [unclosed")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_chart_config(config_path)

    def test_invalid_log_level(self) -> None:
        with pytest.raises(ConfigError, match="Invalid log level"):
            parse_chart_config({"logging": {"level": "LOUD"}})

    def test_unknown_section(self) -> None:
        with pytest.raises(ConfigError, match="Unknown configuration sections: colors"):
            parse_chart_config({"colors": {}})

    def test_invalid_tunable(self) -> None:
        """Pydantic validation errors surface as ConfigError."""
        with pytest.raises(ConfigError, match="Invalid chart configuration"):
            parse_chart_config({"chart": {"tension": 3.0}})

    def test_unknown_tunable(self) -> None:
        with pytest.raises(ConfigError, match="Invalid chart configuration"):
            parse_chart_config({"chart": {"tensoin": 0.5}})

    def test_unordered_market_hours(self) -> None:
        with pytest.raises(ConfigError):
            parse_chart_config({"market_hours": {"regular_open": "17:00"}})

    def test_not_a_mapping(self) -> None:
        with pytest.raises(ConfigError, match="mapping"):
            parse_chart_config(["chart"])

    def test_volume_settings(self) -> None:
        config = parse_chart_config(
            {"chart": {"volume_height_px": 24, "volume_bucket": "PT5M"}}
        )
        assert config.volume_height_px == 24
        assert config.volume_bucket == timedelta(minutes=5)


class TestLoadInputs:
    """Tests for JSON sample and event loading."""

    def test_load_samples(self, tmp_path: Path) -> None:
        path = tmp_path / "samples.json"
        path.write_text(
            json.dumps(
                [
                    {"timestamp": "2024-03-15T13:30:00Z", "price": 101.5, "volume": 1200},
                    {"timestamp": "2024-03-15T13:35:00Z", "price": 102, "session": "regular"},
                ]
            )
        )
        samples = load_samples(path)
        assert len(samples) == 2
        assert samples[0].price == 101.5
        assert samples[1].session is Session.REGULAR

    def test_load_events(self, tmp_path: Path) -> None:
        path = tmp_path / "events.json"
        path.write_text(
            json.dumps(
                [
                    {"id": "e1", "timestamp": "2024-04-25T20:00:00Z", "type": "earnings"},
                    {"id": "e2", "timestamp": "2024-05-01T12:00:00Z", "type": "mystery"},
                ]
            )
        )
        events = load_events(path)
        assert [e.type for e in events] == [EventType.EARNINGS, EventType.OTHER]

    def test_malformed_record(self, tmp_path: Path) -> None:
        path = tmp_path / "samples.json"
        path.write_text(json.dumps([{"timestamp": "2024-03-15T13:30:00Z"}]))
        with pytest.raises(DataValidationError, match="position 0"):
            load_samples(path)

    def test_not_an_array(self, tmp_path: Path) -> None:
        path = tmp_path / "events.json"
        path.write_text(json.dumps({"id": "e1"}))
        with pytest.raises(DataValidationError, match="JSON array"):
            load_events(path)

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "events.json"
        path.write_text("[{")
        with pytest.raises(DataValidationError, match="Invalid JSON"):
            load_events(path)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(DataValidationError, match="not found"):
            load_samples(tmp_path / "missing.json")
