"""Axis labels spanning the past and future regions."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from datetime import date, datetime, time, timezone

import numpy as np

from catalyst_chart.geometry.sessions import market_date
from catalyst_chart.geometry.time_range import FIVE_YEAR_SPAN
from catalyst_chart.types import (FutureAxis, MarketHours, PlotPoint,
                                  TimeLabel, TimeRange, Viewport)

# Fixed names so labels do not depend on the process locale
MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)

# Max day labels for index-based ranges
_MAX_DAY_LABELS = {TimeRange.WEEK: 5, TimeRange.MONTH: 6}


def clock_label(value: time) -> str:
    """12-hour clock text, minutes omitted on the hour (``"9:30 AM"``, ``"4 PM"``)."""
    hour = value.hour % 12 or 12
    suffix = "AM" if value.hour < 12 else "PM"
    if value.minute:
        return f"{hour}:{value.minute:02d} {suffix}"
    return f"{hour} {suffix}"


def day_label(day: date) -> str:
    return f"{day.month}/{day.day}"


def _minutes(value: time) -> float:
    return value.hour * 60 + value.minute + value.second / 60.0


def _month_starts(start: datetime, end: datetime, step: int = 1) -> Iterator[datetime]:
    """First-of-month instants (UTC) in ``(start, end]``, every ``step`` months."""
    year, month = start.year, start.month
    while True:
        month += step
        while month > 12:
            month -= 12
            year += 1
        current = datetime(year, month, 1, tzinfo=timezone.utc)
        if current > end:
            return
        yield current


def _centers(start: datetime, end: datetime, yearly: bool) -> Iterator[datetime]:
    """Month (15th, noon) or year (July 1st, noon) centres in ``[start, end]``."""
    if yearly:
        for year in range(start.year, end.year + 1):
            center = datetime(year, 7, 1, 12, tzinfo=timezone.utc)
            if start <= center <= end:
                yield center
        return
    year, month = start.year, start.month
    while True:
        center = datetime(year, month, 15, 12, tzinfo=timezone.utc)
        if center > end:
            return
        if center >= start:
            yield center
        month += 1
        if month > 12:
            month, year = 1, year + 1


def _intraday_labels(
    viewport: Viewport,
    hours: MarketHours,
    day_start: time,
) -> list[TimeLabel]:
    span = _minutes(hours.after_hours_close) - _minutes(day_start)
    labels = []
    for boundary in (hours.regular_open, hours.regular_close, hours.after_hours_close):
        fraction = (_minutes(boundary) - _minutes(day_start)) / span
        labels.append(
            TimeLabel(
                text=clock_label(boundary),
                x=min(1.0, max(0.0, fraction)) * viewport.split_x,
                section="past",
            )
        )
    return labels


def _day_labels(points: Sequence[PlotPoint], limit: int) -> list[TimeLabel]:
    days: dict[date, list[PlotPoint]] = {}
    for point in points:
        days.setdefault(market_date(point.sample.timestamp), []).append(point)
    ordered = list(days.items())
    count = min(limit, len(ordered))
    labels = []
    for i in range(count):
        day, members = ordered[(len(ordered) - 1) * i // max(1, count - 1)]
        middle = members[len(members) // 2]
        labels.append(TimeLabel(text=day_label(day), x=middle.x, section="past"))
    return labels


def _calendar_labels(
    points: Sequence[PlotPoint],
    time_range: TimeRange,
    viewport: Viewport,
    axis: FutureAxis,
) -> list[TimeLabel]:
    yearly = time_range is TimeRange.FIVE_YEAR
    if yearly:
        start = axis.origin - FIVE_YEAR_SPAN
        end = axis.origin
        times = np.array([start.timestamp(), end.timestamp()])
        xs = np.array([0.0, viewport.split_x])
    else:
        if not points:
            return []
        start = points[0].sample.timestamp
        end = points[-1].sample.timestamp
        times = np.array([point.sample.timestamp.timestamp() for point in points])
        xs = np.array([point.x for point in points])

    labels = []
    for n, center in enumerate(_centers(start, end, yearly)):
        if time_range in (TimeRange.YEAR_TO_DATE, TimeRange.YEAR) and n % 2:
            continue
        text = str(center.year) if yearly else MONTH_ABBREVIATIONS[center.month - 1]
        x = float(np.interp(center.timestamp(), times, xs))
        labels.append(TimeLabel(text=text, x=x, section="past"))
    return labels


def _future_labels(time_range: TimeRange, axis: FutureAxis) -> list[TimeLabel]:
    horizon = axis.origin + axis.window - axis.buffer
    labels = []
    if time_range is TimeRange.FIVE_YEAR:
        for year in range(axis.origin.year + 1, horizon.year + 1):
            instant = datetime(year, 1, 1, tzinfo=timezone.utc)
            labels.append(TimeLabel(text=str(year), x=axis.x_for(instant), section="future"))
        return labels

    step = 3 if time_range is TimeRange.YEAR else 1
    for instant in _month_starts(axis.origin, horizon, step):
        labels.append(
            TimeLabel(
                text=MONTH_ABBREVIATIONS[instant.month - 1],
                x=axis.x_for(instant),
                section="future",
            )
        )
    return labels


def generate_time_labels(
    points: Sequence[PlotPoint],
    time_range: TimeRange,
    viewport: Viewport,
    axis: FutureAxis,
    hours: MarketHours | None = None,
    day_start: time | None = None,
) -> tuple[TimeLabel, ...]:
    """Build axis labels for both regions.

    :param points: Plotted past points, ascending in x.
    :param time_range: Active time range.
    :param viewport: Chart viewport.
    :param axis: Future-region time mapping.
    :param hours: Session boundaries for intraday clock labels.
    :param day_start: Left edge of the intraday axis.
    :returns: Labels, past section first.
    """
    hours = hours or MarketHours()
    if time_range is TimeRange.INTRADAY:
        past = _intraday_labels(viewport, hours, day_start or hours.pre_market_open)
    elif time_range in _MAX_DAY_LABELS:
        past = _day_labels(points, _MAX_DAY_LABELS[time_range])
    else:
        past = _calendar_labels(points, time_range, viewport, axis)
    return tuple(past + _future_labels(time_range, axis))


def filter_overlapping_labels(
    labels: Sequence[TimeLabel],
    viewport: Viewport,
    min_spacing_px: float | None = None,
    edge_px: float | None = None,
) -> tuple[TimeLabel, ...]:
    """Mark labels visible or hidden so neighbours never overlap.

    Labels are scanned left to right per section. When a section is narrower
    than a quarter of the chart, labels hugging its left edge are hidden too.

    :param labels: Labels to filter.
    :param viewport: Chart viewport.
    :param min_spacing_px: Minimum distance between visible labels (12% of width by default).
    :param edge_px: Edge margin for narrow sections (8% of width by default).
    :returns: Labels in input order with ``visible`` set.
    """
    spacing = viewport.width * 0.12 if min_spacing_px is None else min_spacing_px
    edge = viewport.width * 0.08 if edge_px is None else edge_px

    visible: set[int] = set()
    for section, section_start, narrow in (
        ("past", 0.0, viewport.split_ratio < 0.25),
        ("future", viewport.split_x, viewport.split_ratio > 0.75),
    ):
        members = sorted(
            (i for i, label in enumerate(labels) if label.section == section),
            key=lambda i: labels[i].x,
        )
        last_x = float("-inf")
        for i in members:
            x = labels[i].x
            if narrow and x - section_start < edge:
                continue
            if x - last_x >= spacing:
                visible.add(i)
                last_x = x

    return tuple(
        label.model_copy(update={"visible": i in visible})
        for i, label in enumerate(labels)
    )


__all__ = [
    "MONTH_ABBREVIATIONS",
    "clock_label",
    "day_label",
    "generate_time_labels",
    "filter_overlapping_labels",
]
