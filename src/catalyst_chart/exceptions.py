"""Chart geometry exception hierarchy.

All chart-specific exceptions derive from :class:`ChartError` so callers can
catch all geometry-related errors uniformly.
"""

from __future__ import annotations


class ChartError(Exception):
    """Base class for chart geometry exceptions.

    Derived exceptions should extend this class so that callers can catch all
    chart-specific errors uniformly.
    """


class ConfigError(ChartError):
    """Raised when configuration files or parameters are invalid."""


class DataValidationError(ChartError):
    """Raised when input data violates its ordering or shape contract.

    Named DataValidationError to avoid conflict with pydantic's ValidationError.
    """


__all__ = [
    "ChartError",
    "ConfigError",
    "DataValidationError",
]
