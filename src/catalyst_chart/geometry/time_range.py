"""Horizontal positioning strategies for the past region.

Each time range selects one of three strategies that turn sample timestamps
into fractions of the past-region width:

- time-of-day (intraday): minutes since the start of the extended trading day
- ordinal index (1W through 1Y): evenly spaced by rank, so closed days leave no gap
- absolute timestamp (5Y): true elapsed time since the window start
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from collections.abc import Sequence
from datetime import datetime, time, timedelta, timezone

import numpy as np
from numpy.typing import NDArray

from catalyst_chart.exceptions import ConfigError
from catalyst_chart.geometry.sessions import market_date, market_instant
from catalyst_chart.types import MarketHours, TimeRange, ensure_utc

DAY = timedelta(days=1)
MONTH = timedelta(days=30)
YEAR = timedelta(days=365)

# Past span shown by the absolute-timestamp strategy
FIVE_YEAR_SPAN = 5 * YEAR


class PositioningStrategy(ABC):
    """Base class for past-region positioning strategies.

    Strategies map an ascending sequence of timestamps to fractions in
    ``[0, 1]`` of the past-region width. Output is non-decreasing whenever the
    input is.
    """

    name: str = "abstract"

    @abstractmethod
    def fractions(
        self,
        timestamps: Sequence[datetime],
        now: datetime,
    ) -> NDArray[np.float64]:
        """Compute the horizontal fraction of every timestamp.

        :param timestamps: Ascending sample timestamps.
        :param now: Current instant.
        :returns: Fractions of the past width, clipped to ``[0, 1]``.
        """
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class TimeOfDayStrategy(PositioningStrategy):
    """Position by wall-clock time within a fixed-length trading day.

    The trading day is the Eastern date of the first timestamp; its length
    runs from ``day_start`` to the after-hours close regardless of how many
    samples exist, so missing minutes never distort spacing.

    :param hours: Session boundaries.
    :param day_start: Wall-clock time at the left edge of the axis.
    """

    name = "time_of_day"

    def __init__(self, hours: MarketHours, day_start: time | None = None) -> None:
        self.hours = hours
        self.day_start = day_start or hours.pre_market_open

    def day_window(self, first: datetime) -> tuple[datetime, datetime]:
        """UTC start and end of the axis for the day containing ``first``."""
        day = market_date(first)
        return (
            market_instant(day, self.day_start),
            market_instant(day, self.hours.after_hours_close),
        )

    def fractions(
        self,
        timestamps: Sequence[datetime],
        now: datetime,
    ) -> NDArray[np.float64]:
        if not timestamps:
            return np.zeros(0, dtype=np.float64)
        start, end = self.day_window(timestamps[0])
        seconds = _epoch_seconds(timestamps)
        span = (end - start).total_seconds()
        return np.clip((seconds - start.timestamp()) / span, 0.0, 1.0)


class OrdinalIndexStrategy(PositioningStrategy):
    """Position by rank, evenly spaced across the past width.

    A single sample sits at the centre.
    """

    name = "ordinal_index"

    def fractions(
        self,
        timestamps: Sequence[datetime],
        now: datetime,
    ) -> NDArray[np.float64]:
        count = len(timestamps)
        if count == 0:
            return np.zeros(0, dtype=np.float64)
        if count == 1:
            return np.array([0.5], dtype=np.float64)
        return np.arange(count, dtype=np.float64) / (count - 1)


class AbsoluteTimestampStrategy(PositioningStrategy):
    """Position by elapsed time since ``now - span``.

    History shorter than the span leaves blank space on the left.

    :param span: Length of the past window.
    """

    name = "absolute_timestamp"

    def __init__(self, span: timedelta = FIVE_YEAR_SPAN) -> None:
        self.span = span

    def fractions(
        self,
        timestamps: Sequence[datetime],
        now: datetime,
    ) -> NDArray[np.float64]:
        if not timestamps:
            return np.zeros(0, dtype=np.float64)
        start = ensure_utc(now) - self.span
        seconds = _epoch_seconds(timestamps)
        return np.clip(
            (seconds - start.timestamp()) / self.span.total_seconds(), 0.0, 1.0
        )


def coerce_time_range(value: TimeRange | str) -> TimeRange:
    """Convert a value to a TimeRange.

    :param value: TimeRange member or its string value (e.g. ``"1D"``).
    :returns: Matching TimeRange.
    :raises ConfigError: If the value names no known time range.
    """
    if isinstance(value, TimeRange):
        return value
    try:
        return TimeRange(value)
    except ValueError as e:
        valid = ", ".join(r.value for r in TimeRange)
        raise ConfigError(f"Unknown time range '{value}'. Valid: {valid}") from e


def resolve_strategy(
    time_range: TimeRange | str,
    hours: MarketHours | None = None,
    day_start: time | None = None,
) -> PositioningStrategy:
    """Select the positioning strategy for a time range.

    :param time_range: Active viewing window.
    :param hours: Session boundaries for the intraday strategy.
    :param day_start: Left edge of the intraday axis.
    :returns: Strategy governing the past region.
    :raises ConfigError: If the time range is not recognized.
    """
    time_range = coerce_time_range(time_range)
    if time_range is TimeRange.INTRADAY:
        return TimeOfDayStrategy(hours or MarketHours(), day_start)
    if time_range is TimeRange.FIVE_YEAR:
        return AbsoluteTimestampStrategy(FIVE_YEAR_SPAN)
    if time_range in (
        TimeRange.WEEK,
        TimeRange.MONTH,
        TimeRange.QUARTER,
        TimeRange.YEAR_TO_DATE,
        TimeRange.YEAR,
    ):
        return OrdinalIndexStrategy()
    raise ConfigError(f"No positioning strategy for time range {time_range!r}")


def future_window_for(
    time_range: TimeRange | str,
    split_ratio: float,
    now: datetime,
) -> timedelta:
    """Length of time spanned by the future region.

    Short ranges show three months per half of the chart width, scaled
    linearly with the future share and never less than one month. YTD mirrors
    the elapsed part of the year (at least 90 days), 1Y and 5Y mirror their
    own span.

    :param time_range: Active viewing window.
    :param split_ratio: Fraction of the width given to the past region.
    :param now: Current instant.
    :returns: Future window length.
    """
    time_range = coerce_time_range(time_range)
    future_percent = (1.0 - split_ratio) * 100.0
    # Base case: 50% width = 3 months
    months = max(1, math.floor(future_percent / 50.0 * 3 + 0.5))

    if time_range in (
        TimeRange.INTRADAY,
        TimeRange.WEEK,
        TimeRange.MONTH,
        TimeRange.QUARTER,
    ):
        return months * MONTH
    if time_range is TimeRange.YEAR_TO_DATE:
        current = ensure_utc(now)
        year_start = datetime(current.year, 1, 1, tzinfo=timezone.utc)
        return max(current - year_start, 90 * DAY)
    if time_range is TimeRange.YEAR:
        return YEAR
    return FIVE_YEAR_SPAN


def _epoch_seconds(timestamps: Sequence[datetime]) -> NDArray[np.float64]:
    return np.array([ensure_utc(ts).timestamp() for ts in timestamps], dtype=np.float64)


__all__ = [
    "DAY",
    "MONTH",
    "YEAR",
    "FIVE_YEAR_SPAN",
    "PositioningStrategy",
    "TimeOfDayStrategy",
    "OrdinalIndexStrategy",
    "AbsoluteTimestampStrategy",
    "coerce_time_range",
    "resolve_strategy",
    "future_window_for",
]
