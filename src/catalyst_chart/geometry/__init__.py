"""Chart coordinate and geometry engine."""

from catalyst_chart.geometry.axis import (AxisMapper, aggregate_volume,
                                          build_price_scale, build_volume_scale)
from catalyst_chart.geometry.crosshair import CrosshairResolver
from catalyst_chart.geometry.engine import ChartGeometryEngine
from catalyst_chart.geometry.events import EventPlacer, event_color, event_label
from catalyst_chart.geometry.labels import (filter_overlapping_labels,
                                            generate_time_labels)
from catalyst_chart.geometry.sessions import (MarketCalendar,
                                              SessionClassifier,
                                              eastern_utc_offset,
                                              nyse_holidays, to_market_time)
from catalyst_chart.geometry.smoothing import (PathSmoother,
                                               catmull_rom_to_bezier,
                                               y_on_smooth_curve)
from catalyst_chart.geometry.time_range import (AbsoluteTimestampStrategy,
                                                OrdinalIndexStrategy,
                                                PositioningStrategy,
                                                TimeOfDayStrategy,
                                                future_window_for,
                                                resolve_strategy)

__all__ = [
    # Facade
    "ChartGeometryEngine",
    # Time ranges
    "PositioningStrategy",
    "TimeOfDayStrategy",
    "OrdinalIndexStrategy",
    "AbsoluteTimestampStrategy",
    "resolve_strategy",
    "future_window_for",
    # Sessions
    "MarketCalendar",
    "SessionClassifier",
    "eastern_utc_offset",
    "to_market_time",
    "nyse_holidays",
    # Mapping
    "AxisMapper",
    "build_price_scale",
    "build_volume_scale",
    "aggregate_volume",
    # Smoothing
    "PathSmoother",
    "catmull_rom_to_bezier",
    "y_on_smooth_curve",
    # Events
    "EventPlacer",
    "event_color",
    "event_label",
    # Crosshair
    "CrosshairResolver",
    # Labels
    "generate_time_labels",
    "filter_overlapping_labels",
]
