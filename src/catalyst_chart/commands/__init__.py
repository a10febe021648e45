"""Command-line support for the chart geometry engine.

Provides configuration loading and validation plus readers for the JSON
sample and event files consumed by the CLI.
"""

from catalyst_chart.commands.chart_config import (load_chart_config,
                                                  load_events, load_samples,
                                                  parse_chart_config)

__all__ = [
    "load_chart_config",
    "parse_chart_config",
    "load_samples",
    "load_events",
]
