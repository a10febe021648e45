"""Core type definitions for the chart geometry engine.

All data models use Pydantic BaseModel for automatic validation, JSON
serialization, and better error messages. Every model is frozen and every
sequence is a tuple, so a produced Scene is immutable end to end.
"""

from __future__ import annotations

from datetime import datetime, time, timedelta, timezone
from enum import Enum
from typing import Any, Literal, NewType

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# Type aliases for domain-specific identifiers
EventId = NewType("EventId", str)


# ---------------------------------------------------------------------------
# Base Configuration
# ---------------------------------------------------------------------------


class FrozenModel(BaseModel):
    """Base model with frozen (immutable) configuration."""

    model_config = ConfigDict(frozen=True)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC, convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class TimeRange(str, Enum):
    """Viewing window selected for the past region."""

    INTRADAY = "1D"
    WEEK = "1W"
    MONTH = "1M"
    QUARTER = "3M"
    YEAR_TO_DATE = "YTD"
    YEAR = "1Y"
    FIVE_YEAR = "5Y"


class Session(str, Enum):
    """Trading-hours classification of an instant."""

    PRE_MARKET = "pre-market"
    REGULAR = "regular"
    AFTER_HOURS = "after-hours"
    CLOSED = "closed"


class EventType(str, Enum):
    """Closed set of catalyst categories with an explicit fallback."""

    PRODUCT = "product"
    EARNINGS = "earnings"
    INVESTOR_DAY = "investor_day"
    REGULATORY = "regulatory"
    GUIDANCE_UPDATE = "guidance_update"
    CONFERENCE = "conference"
    COMMERCE_EVENT = "commerce_event"
    PARTNERSHIP = "partnership"
    MERGER = "merger"
    LEGAL = "legal"
    CORPORATE = "corporate"
    PRICING = "pricing"
    CAPITAL_MARKETS = "capital_markets"
    DEFENSE_CONTRACT = "defense_contract"
    GUIDANCE = "guidance"
    LAUNCH = "launch"
    FDA = "fda"
    SPLIT = "split"
    DIVIDEND = "dividend"
    OTHER = "other"

    @classmethod
    def _missing_(cls, value: object) -> EventType:
        if isinstance(value, str):
            normalized = value.strip().lower().replace("-", "_").replace(" ", "_")
            for member in cls:
                if member.value == normalized:
                    return member
        return cls.OTHER


class CrosshairKind(str, Enum):
    """What a pointer position resolved to."""

    SAMPLE = "sample"
    EVENT = "event"
    NONE = "none"


class CrosshairMode(str, Enum):
    """How the crosshair position is reported for past-region hits.

    ``SNAP`` places the crosshair on the nearest sample's plotted point.
    ``TRACK`` keeps the pointer's x and reads y off the smoothed curve.
    """

    SNAP = "snap"
    TRACK = "track"


class ReferenceKind(str, Enum):
    """Kind of guide line drawn behind the chart."""

    SPLIT = "split"
    PREVIOUS_CLOSE = "previous_close"


# ---------------------------------------------------------------------------
# Input Types
# ---------------------------------------------------------------------------


class PriceSample(FrozenModel):
    """Historical price observation supplied by the data layer.

    :param timestamp: Instant of the observation (naive values are UTC).
    :param price: Price at the instant.
    :param volume: Traded volume, never negative.
    :param session: Trading session, classified by the engine when omitted.
    """

    timestamp: datetime
    price: float
    volume: int = Field(default=0, ge=0)
    session: Session | None = None

    @field_validator("timestamp")
    @classmethod
    def _timestamp_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class FutureEvent(FrozenModel):
    """Upcoming catalyst placed on the future timeline.

    :param id: Identifier that stays stable across re-fetches.
    :param timestamp: Instant the event is expected.
    :param type: Event category; unknown strings become ``EventType.OTHER``.
    :param significance: Optional weight in [0, 1] used for marker sizing.
    :param title: Optional display title carried through to the marker.
    """

    id: EventId
    timestamp: datetime
    type: EventType = EventType.OTHER
    significance: float | None = Field(default=None, ge=0.0, le=1.0)
    title: str | None = None

    @field_validator("timestamp")
    @classmethod
    def _timestamp_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @field_validator("type", mode="before")
    @classmethod
    def _coerce_type(cls, value: Any) -> Any:
        if isinstance(value, str) and not isinstance(value, EventType):
            return EventType(value)
        return value


class Viewport(FrozenModel):
    """Pixel rectangle the chart is laid out in.

    :param width: Total width in pixels.
    :param height: Total height in pixels.
    :param split_ratio: Fraction of the width given to the past region.
    """

    width: float = Field(gt=0)
    height: float = Field(gt=0)
    split_ratio: float = Field(gt=0.0, lt=1.0)

    @property
    def split_x(self) -> float:
        """Pixel X of the past/future boundary."""
        return self.width * self.split_ratio

    @property
    def future_width(self) -> float:
        return self.width - self.split_x

    def contains(self, x: float, y: float) -> bool:
        return 0.0 <= x <= self.width and 0.0 <= y <= self.height


# ---------------------------------------------------------------------------
# Configuration Types
# ---------------------------------------------------------------------------


class MarketHours(FrozenModel):
    """Session boundaries in market-local (US Eastern) wall-clock time.

    :param pre_market_open: Start of the pre-market session.
    :param regular_open: Start of regular trading.
    :param regular_close: End of regular trading.
    :param after_hours_close: End of the after-hours session.
    """

    pre_market_open: time = time(4, 0)
    regular_open: time = time(9, 30)
    regular_close: time = time(16, 0)
    after_hours_close: time = time(20, 0)

    @model_validator(mode="after")
    def _boundaries_ordered(self) -> MarketHours:
        if not (
            self.pre_market_open
            < self.regular_open
            < self.regular_close
            < self.after_hours_close
        ):
            raise ValueError("market hours must be strictly increasing")
        return self


class ChartConfig(FrozenModel):
    """Tunable parameters for scene construction.

    :param tension: Catmull-Rom tension used by the path smoother.
    :param price_padding: Fraction of the price range added above and below.
    :param future_buffer: Forward offset added to every event's lead time.
    :param future_window: Length of the future timeline, derived when None.
    :param snap_threshold_px: Max pointer distance for snapping to an event.
    :param min_event_separation_px: Markers closer than this share a cluster.
    :param min_marker_radius: Radius for significance 0.
    :param max_marker_radius: Radius for significance 1.
    :param slot_offset_px: Vertical step between slots of one cluster.
    :param event_baseline: Fraction of the height where markers sit.
    :param market_hours: Session boundaries.
    :param axis_day_start: Left edge of the intraday axis, pre-market open if None.
    :param dedupe_tolerance_px: Consecutive points closer than this collapse.
    :param volume_height_px: Height of the volume band at the bottom of the past region.
    :param volume_bucket: Bucket width for aggregating volume bars, one bar per point if None.
    :param log_level: Logging level used by the command-line entry point.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    tension: float = Field(default=0.4, ge=0.0, le=1.0)
    price_padding: float = Field(default=0.1, ge=0.0, lt=0.5)
    future_buffer: timedelta = timedelta(days=14)
    future_window: timedelta | None = None
    snap_threshold_px: float = Field(default=20.0, gt=0)
    min_event_separation_px: float = Field(default=12.0, ge=0)
    min_marker_radius: float = Field(default=3.0, gt=0)
    max_marker_radius: float = Field(default=8.0, gt=0)
    slot_offset_px: float = Field(default=6.0, ge=0)
    event_baseline: float = Field(default=0.5, ge=0.0, le=1.0)
    market_hours: MarketHours = Field(default_factory=MarketHours)
    axis_day_start: time | None = None
    dedupe_tolerance_px: float = Field(default=0.01, ge=0)
    volume_height_px: float = Field(default=30.0, ge=0)
    volume_bucket: timedelta | None = None
    log_level: str = "INFO"

    @model_validator(mode="after")
    def _check_ranges(self) -> ChartConfig:
        if self.max_marker_radius < self.min_marker_radius:
            raise ValueError("max_marker_radius must be >= min_marker_radius")
        if self.future_buffer < timedelta(0):
            raise ValueError("future_buffer must not be negative")
        if self.future_window is not None and self.future_window <= timedelta(0):
            raise ValueError("future_window must be positive")
        if self.volume_bucket is not None and self.volume_bucket <= timedelta(0):
            raise ValueError("volume_bucket must be positive")
        if self.axis_day_start is not None and not (
            self.axis_day_start < self.market_hours.after_hours_close
        ):
            raise ValueError("axis_day_start must precede after_hours_close")
        return self

    @property
    def day_start(self) -> time:
        """Wall-clock time at the left edge of the intraday axis."""
        return self.axis_day_start or self.market_hours.pre_market_open


# ---------------------------------------------------------------------------
# Geometry Types
# ---------------------------------------------------------------------------


class Point(FrozenModel):
    """Pixel coordinate."""

    x: float
    y: float


class BezierSegment(FrozenModel):
    """Cubic Bezier segment ending at ``end``; starts where the previous ended.

    :param cp1: Control point leaving the segment start.
    :param cp2: Control point arriving at the segment end.
    :param end: Segment end point.
    """

    cp1: Point
    cp2: Point
    end: Point


class SmoothPath(FrozenModel):
    """Smoothed curve through an ordered set of points.

    :param start: First point, or None for an empty path.
    :param segments: Bezier segments, one per consecutive point pair.
    :param svg: Equivalent SVG path data.
    """

    start: Point | None = None
    segments: tuple[BezierSegment, ...] = ()
    svg: str = ""

    @property
    def is_empty(self) -> bool:
        return self.start is None

    @property
    def anchors(self) -> tuple[Point, ...]:
        """On-curve points: the start plus every segment end."""
        if self.start is None:
            return ()
        return (self.start, *(segment.end for segment in self.segments))


class PlotPoint(FrozenModel):
    """A price sample mapped to pixel space.

    :param x: Pixel X.
    :param y: Pixel Y.
    :param index: Position of the sample in the caller's sequence.
    :param sample: The mapped sample.
    """

    x: float
    y: float
    index: int
    sample: PriceSample


class EventMarker(FrozenModel):
    """A future event placed on the future timeline.

    :param x: Pixel X of the marker center.
    :param y: Pixel Y of the marker center.
    :param radius: Marker radius in pixels.
    :param event: The placed event.
    :param slot: Slot within its collision cluster (0 for isolated events).
    :param color: Hex color for the event's category.
    """

    x: float
    y: float
    radius: float
    event: FutureEvent
    slot: int = 0
    color: str = "#6b7280"


class ReferenceLine(FrozenModel):
    """Horizontal or vertical guide line.

    :param kind: What the line marks.
    :param orientation: ``"horizontal"`` or ``"vertical"``.
    :param position: Pixel Y for horizontal lines, pixel X for vertical ones.
    :param value: Domain value the line represents, if any.
    """

    kind: ReferenceKind
    orientation: Literal["horizontal", "vertical"]
    position: float
    value: float | None = None


class SessionSpan(FrozenModel):
    """Horizontal extent of one trading session on an intraday chart.

    :param session: Session the span covers.
    :param start_x: Left pixel edge.
    :param end_x: Right pixel edge.
    :param emphasized: Whether the span is drawn at full opacity.
    """

    session: Session
    start_x: float
    end_x: float
    emphasized: bool


class TimeLabel(FrozenModel):
    """Axis label.

    :param text: Label text.
    :param x: Pixel X of the label anchor.
    :param section: Region the label belongs to.
    :param visible: False when the label would overlap a neighbour.
    """

    text: str
    x: float
    section: Literal["past", "future"]
    visible: bool = True


class VolumeBar(FrozenModel):
    """Volume of one sample or bucket, drawn up from the bottom edge.

    :param x: Left pixel edge.
    :param y: Pixel Y of the bar top.
    :param width: Bar width in pixels.
    :param height: Bar height in pixels.
    :param volume: Volume the bar represents.
    :param start: Instant of the first sample in the bar.
    """

    x: float
    y: float
    width: float
    height: float
    volume: int
    start: datetime


class VolumeScale(FrozenModel):
    """Linear volume to bar-height scale.

    :param max_volume: Largest volume on the chart, at least 1.
    :param height: Height of the tallest bar.
    """

    max_volume: int = Field(default=1, ge=1)
    height: float = Field(default=30.0, ge=0)

    def height_for(self, volume: int) -> float:
        return min(self.height, volume / self.max_volume * self.height)


class PriceScale(FrozenModel):
    """Linear price to pixel-Y scale for the past region.

    :param min_price: Lowest price of the padded range.
    :param max_price: Highest price of the padded range.
    :param height: Pixel height the range maps onto.
    """

    min_price: float
    max_price: float
    height: float

    @property
    def is_flat(self) -> bool:
        return self.max_price <= self.min_price

    def y_for(self, price: float) -> float:
        """Map a price to pixel Y, clamped into ``[0, height]``."""
        if self.is_flat:
            return self.height / 2.0
        ratio = (price - self.min_price) / (self.max_price - self.min_price)
        return min(self.height, max(0.0, self.height - ratio * self.height))

    def price_at(self, y: float) -> float:
        """Invert :meth:`y_for` for a pixel Y."""
        if self.is_flat:
            return self.min_price
        return self.min_price + (self.height - y) / self.height * (
            self.max_price - self.min_price
        )


class FutureAxis(FrozenModel):
    """Time-buffer-compressed mapping for the future region.

    :param origin: The "now" instant the axis is measured from.
    :param window: Length of time spanned by the future region.
    :param buffer: Forward offset added to every event's lead time.
    :param start_x: Pixel X of the split line.
    :param end_x: Pixel X of the right edge.
    """

    origin: datetime
    window: timedelta
    buffer: timedelta
    start_x: float
    end_x: float

    @field_validator("origin")
    @classmethod
    def _origin_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    def fraction_for(self, timestamp: datetime) -> float:
        """Share of the future width for an event instant.

        Instants before the origin count as zero lead, so overdue events sit
        at the buffer position with the upcoming ones instead of under the
        split line.
        """
        lead = max(ensure_utc(timestamp) - self.origin, timedelta(0)) + self.buffer
        fraction = lead / self.window
        return min(1.0, max(0.0, fraction))

    def x_for(self, timestamp: datetime) -> float:
        """Pixel X for an event instant."""
        return self.start_x + self.fraction_for(timestamp) * (self.end_x - self.start_x)

    def time_at(self, x: float) -> datetime:
        """Instant under a pixel X, inverting :meth:`x_for`.

        Pixels left of the buffer position map to the origin.
        """
        width = self.end_x - self.start_x
        fraction = 0.0 if width <= 0 else min(1.0, max(0.0, (x - self.start_x) / width))
        return max(self.origin, self.origin + self.window * fraction - self.buffer)


# ---------------------------------------------------------------------------
# Output Types
# ---------------------------------------------------------------------------


class Scene(FrozenModel):
    """Immutable geometry handed to the rendering host.

    :param viewport: Viewport the scene was laid out for.
    :param time_range: Time range of the past region.
    :param split_x: Pixel X of the past/future boundary.
    :param past_points: Samples mapped to pixels, ascending in X.
    :param past_path: Smoothed curve through ``past_points``.
    :param event_markers: One marker per input event.
    :param reference_lines: Guide lines.
    :param session_spans: Session extents (intraday only).
    :param time_labels: Axis labels for both regions.
    :param price_scale: Price scale used for the past region.
    :param future_axis: Mapping used for the future region.
    :param current_session: Session derived from "now".
    :param tension: Tension the path was smoothed with.
    :param volume_scale: Scale used for the volume band.
    :param volume_bars: Volume bars for samples with traded volume.
    """

    viewport: Viewport
    time_range: TimeRange
    split_x: float
    past_points: tuple[PlotPoint, ...] = ()
    past_path: SmoothPath = Field(default_factory=SmoothPath)
    event_markers: tuple[EventMarker, ...] = ()
    reference_lines: tuple[ReferenceLine, ...] = ()
    session_spans: tuple[SessionSpan, ...] = ()
    time_labels: tuple[TimeLabel, ...] = ()
    price_scale: PriceScale
    future_axis: FutureAxis
    current_session: Session = Session.CLOSED
    tension: float = 0.4
    volume_scale: VolumeScale = Field(default_factory=VolumeScale)
    volume_bars: tuple[VolumeBar, ...] = ()


class CrosshairResult(FrozenModel):
    """Outcome of resolving a pointer position against a scene.

    :param kind: Whether a sample, an event, or nothing was hit.
    :param x: Crosshair pixel X, or None when nothing was hit.
    :param y: Crosshair pixel Y, or None when nothing was hit.
    :param sample: Nearest sample for past-region hits.
    :param sample_index: Caller index of that sample.
    :param event: Snapped event for future-region hits.
    :param marker: Marker of the snapped event.
    :param hover_time: Instant under the pointer in the future region.
    """

    kind: CrosshairKind
    x: float | None = None
    y: float | None = None
    sample: PriceSample | None = None
    sample_index: int | None = None
    event: FutureEvent | None = None
    marker: EventMarker | None = None
    hover_time: datetime | None = None

    @classmethod
    def none(cls, hover_time: datetime | None = None) -> CrosshairResult:
        return cls(kind=CrosshairKind.NONE, hover_time=hover_time)


# ---------------------------------------------------------------------------
# Exports
# ---------------------------------------------------------------------------

__all__ = [
    # Type aliases
    "EventId",
    # Base models
    "FrozenModel",
    "ensure_utc",
    # Enumerations
    "TimeRange",
    "Session",
    "EventType",
    "CrosshairKind",
    "CrosshairMode",
    "ReferenceKind",
    # Inputs
    "PriceSample",
    "FutureEvent",
    "Viewport",
    # Configuration
    "MarketHours",
    "ChartConfig",
    # Geometry
    "Point",
    "BezierSegment",
    "SmoothPath",
    "PlotPoint",
    "EventMarker",
    "ReferenceLine",
    "SessionSpan",
    "TimeLabel",
    "VolumeBar",
    "VolumeScale",
    "PriceScale",
    "FutureAxis",
    # Outputs
    "Scene",
    "CrosshairResult",
]
