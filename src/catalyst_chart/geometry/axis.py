"""Logical to pixel coordinate mapping for both chart regions."""

from __future__ import annotations

import math
from collections.abc import Sequence
from datetime import datetime, timedelta
from itertools import groupby

import numpy as np

from catalyst_chart.exceptions import DataValidationError
from catalyst_chart.geometry.time_range import PositioningStrategy
from catalyst_chart.types import (ChartConfig, FutureAxis, FutureEvent,
                                  PlotPoint, Point, PriceSample, PriceScale,
                                  Viewport, VolumeBar, VolumeScale)


def build_price_scale(
    prices: Sequence[float],
    height: float,
    padding: float = 0.1,
    previous_close: float | None = None,
) -> PriceScale:
    """Build the Y scale for a window of prices.

    The range spans every price (and the previous close, when given), widened
    by ``padding`` of the range on both sides. A window with no variance
    produces a flat scale that maps every price to the vertical centre.

    :param prices: Prices in the active window.
    :param height: Pixel height of the chart.
    :param padding: Fraction of the range added above and below.
    :param previous_close: Optional reference price to keep in view.
    :returns: Price scale.
    """
    values = list(prices)
    if previous_close is not None:
        values.append(previous_close)
    if not values:
        return PriceScale(min_price=0.0, max_price=0.0, height=height)

    low = float(min(values))
    high = float(max(values))
    pad = (high - low) * padding
    return PriceScale(min_price=low - pad, max_price=high + pad, height=height)


def build_volume_scale(volumes: Sequence[int], height: float) -> VolumeScale:
    """Scale volumes so the largest fills ``height``; all-zero input keeps a floor of 1."""
    return VolumeScale(max_volume=max([*volumes, 1]), height=height)


def aggregate_volume(
    points: Sequence[PlotPoint], bucket: timedelta
) -> list[tuple[PlotPoint, int]]:
    """Sum volume over fixed-width time buckets.

    Buckets are aligned to the Unix epoch; each is represented by its
    first point.

    :param points: Plotted points ascending in time.
    :param bucket: Bucket width.
    :returns: ``(first point, total volume)`` per non-empty bucket.
    """
    seconds = bucket.total_seconds()

    def bucket_of(point: PlotPoint) -> int:
        return math.floor(point.sample.timestamp.timestamp() / seconds)

    buckets = []
    for _, group in groupby(points, key=bucket_of):
        members = list(group)
        buckets.append((members[0], sum(member.sample.volume for member in members)))
    return buckets


def collapse_duplicates(samples: Sequence[PriceSample]) -> list[tuple[int, PriceSample]]:
    """Keep the last of every run of samples sharing a timestamp.

    :param samples: Samples ascending by timestamp.
    :returns: ``(caller index, sample)`` pairs with unique timestamps.
    :raises DataValidationError: If timestamps are not ascending.
    """
    kept: list[tuple[int, PriceSample]] = []
    for index, sample in enumerate(samples):
        if kept:
            previous = kept[-1][1].timestamp
            if sample.timestamp < previous:
                raise DataValidationError(
                    f"Price samples must be ascending by timestamp; sample {index} "
                    f"({sample.timestamp.isoformat()}) precedes {previous.isoformat()}"
                )
            if sample.timestamp == previous:
                kept[-1] = (index, sample)
                continue
        kept.append((index, sample))
    return kept


class AxisMapper:
    """Maps samples and events into pixel space.

    The past region covers ``[0, past_width]`` horizontally and the full
    height vertically; Y is inverted so higher prices sit nearer the top.

    :param past_width: Pixel width of the past region.
    :param height: Pixel height of the chart.
    :param config: Chart tunables.
    """

    def __init__(
        self,
        past_width: float,
        height: float,
        config: ChartConfig | None = None,
    ) -> None:
        self.past_width = past_width
        self.height = height
        self.config = config or ChartConfig()

    @classmethod
    def for_viewport(cls, viewport: Viewport, config: ChartConfig | None = None) -> AxisMapper:
        return cls(viewport.split_x, viewport.height, config)

    def price_scale(
        self,
        samples: Sequence[PriceSample],
        previous_close: float | None = None,
    ) -> PriceScale:
        return build_price_scale(
            [sample.price for sample in samples],
            self.height,
            self.config.price_padding,
            previous_close,
        )

    def map_past(
        self,
        samples: Sequence[PriceSample],
        strategy: PositioningStrategy,
        now: datetime,
        scale: PriceScale | None = None,
    ) -> tuple[PlotPoint, ...]:
        """Map every sample to a plotted point.

        Samples sharing a timestamp collapse to the last one, so the result
        never holds more points than there are samples.

        :param samples: Samples ascending by timestamp.
        :param strategy: Positioning strategy for the active time range.
        :param now: Current instant.
        :param scale: Price scale, built from ``samples`` when omitted.
        :returns: Points ascending in x.
        """
        unique = collapse_duplicates(samples)
        if not unique:
            return ()
        scale = scale or self.price_scale([sample for _, sample in unique])
        fractions = strategy.fractions([sample.timestamp for _, sample in unique], now)
        xs = np.clip(fractions * self.past_width, 0.0, self.past_width)
        return tuple(
            PlotPoint(x=float(x), y=scale.y_for(sample.price), index=index, sample=sample)
            for x, (index, sample) in zip(xs, unique)
        )

    def map_past_sample(
        self,
        sample: PriceSample,
        index: int,
        samples: Sequence[PriceSample],
        strategy: PositioningStrategy,
        now: datetime,
    ) -> Point:
        """Map a single sample in the context of its whole window.

        :param sample: Sample to map.
        :param index: Caller index of ``sample`` within ``samples``.
        :param samples: The full active window.
        :param strategy: Positioning strategy for the active time range.
        :param now: Current instant.
        :returns: Pixel coordinate of the sample.
        """
        for point in self.map_past(samples, strategy, now):
            if point.index == index:
                return Point(x=point.x, y=point.y)
        # The sample was superseded by a later duplicate; it shares that position
        for point in self.map_past(samples, strategy, now):
            if point.sample.timestamp == sample.timestamp:
                return Point(x=point.x, y=point.y)
        raise DataValidationError(f"Sample at index {index} is not part of the window")

    def volume_bars(
        self, points: Sequence[PlotPoint]
    ) -> tuple[VolumeScale, tuple[VolumeBar, ...]]:
        """Bars for the volume band along the bottom of the past region.

        Bars are sized to the tightest spacing between neighbours and kept
        inside ``[0, past_width]``. Points without volume get no bar.

        :param points: Plotted points ascending in x.
        :returns: The volume scale and one bar per point or bucket.
        """
        bucket = self.config.volume_bucket
        if bucket is None:
            groups = [(point, point.sample.volume) for point in points]
        else:
            groups = aggregate_volume(points, bucket)
        scale = build_volume_scale(
            [volume for _, volume in groups], min(self.config.volume_height_px, self.height)
        )

        gaps = np.diff([point.x for point, _ in groups])
        gaps = gaps[gaps > 0]
        width = float(gaps.min()) * 0.8 if gaps.size else 1.0

        bars = []
        for point, volume in groups:
            if volume <= 0:
                continue
            left = max(0.0, point.x - width / 2)
            right = min(self.past_width, point.x + width / 2)
            bar_height = scale.height_for(volume)
            bars.append(
                VolumeBar(
                    x=left,
                    y=self.height - bar_height,
                    width=max(0.0, right - left),
                    height=bar_height,
                    volume=volume,
                    start=point.sample.timestamp,
                )
            )
        return scale, tuple(bars)

    @staticmethod
    def future_axis(
        viewport: Viewport,
        now: datetime,
        window: timedelta,
        buffer: timedelta,
    ) -> FutureAxis:
        return FutureAxis(
            origin=now,
            window=window,
            buffer=buffer,
            start_x=viewport.split_x,
            end_x=viewport.width,
        )

    @staticmethod
    def map_future(event: FutureEvent, axis: FutureAxis) -> float:
        """Raw pixel X of an event on the future timeline."""
        return axis.x_for(event.timestamp)


__all__ = [
    "build_price_scale",
    "build_volume_scale",
    "aggregate_volume",
    "collapse_duplicates",
    "AxisMapper",
]
