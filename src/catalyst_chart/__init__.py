"""Catalyst chart geometry package root."""

from catalyst_chart.exceptions import ChartError, ConfigError, DataValidationError
from catalyst_chart.geometry.engine import ChartGeometryEngine

__all__ = ["ChartError", "ConfigError", "DataValidationError", "ChartGeometryEngine"]
