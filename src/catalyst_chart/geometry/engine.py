"""Scene construction facade.

Composes strategy selection, axis mapping, smoothing, event placement and
labelling into one pure ``build_scene`` call. Every call receives its inputs
explicitly (including "now") and returns a fresh immutable Scene, so the
engine can be shared freely between charts and threads.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime
from itertools import groupby

from catalyst_chart.exceptions import ConfigError
from catalyst_chart.geometry.axis import AxisMapper
from catalyst_chart.geometry.crosshair import CrosshairResolver
from catalyst_chart.geometry.events import EventPlacer
from catalyst_chart.geometry.labels import (filter_overlapping_labels,
                                            generate_time_labels)
from catalyst_chart.geometry.sessions import (MarketCalendar,
                                              SessionClassifier, market_date)
from catalyst_chart.geometry.smoothing import PathSmoother
from catalyst_chart.geometry.time_range import (coerce_time_range,
                                                future_window_for,
                                                resolve_strategy)
from catalyst_chart.types import (ChartConfig, CrosshairMode, CrosshairResult,
                                  FutureEvent, PlotPoint, Point, PriceSample,
                                  ReferenceKind, ReferenceLine, Scene,
                                  Session, SessionSpan, SmoothPath, TimeRange,
                                  Viewport, ensure_utc)

logger = logging.getLogger(__name__)


class ChartGeometryEngine:
    """Builds chart scenes and resolves crosshair queries against them.

    :param config: Chart tunables; defaults apply when omitted.
    :param calendar: Market calendar; the NYSE calendar covering the charted
        years is used when omitted.
    """

    def __init__(
        self,
        config: ChartConfig | None = None,
        calendar: MarketCalendar | None = None,
    ) -> None:
        self.config = config or ChartConfig()
        self.calendar = calendar
        self.placer = EventPlacer(self.config)
        self.resolver = CrosshairResolver(self.config.snap_threshold_px)

    def classifier_for(
        self,
        now: datetime,
        samples: Sequence[PriceSample] = (),
    ) -> SessionClassifier:
        """Session classifier whose calendar covers ``now`` and the samples."""
        calendar = self.calendar
        if calendar is None:
            first_year = samples[0].timestamp.year if samples else now.year
            calendar = MarketCalendar.nyse(range(min(first_year, now.year), now.year + 2))
        return SessionClassifier(self.config.market_hours, calendar)

    def build_scene(
        self,
        samples: Sequence[PriceSample],
        events: Sequence[FutureEvent],
        viewport: Viewport,
        time_range: TimeRange | str,
        now: datetime,
        previous_close: float | None = None,
    ) -> Scene:
        """Lay out a full past/future chart.

        :param samples: Past price samples, ascending by timestamp.
        :param events: Future events.
        :param viewport: Chart viewport and split ratio.
        :param time_range: Active time range.
        :param now: Current instant.
        :param previous_close: Optional reference price drawn as a guide line.
        :returns: Immutable scene.
        :raises ConfigError: If the time range is not recognized.
        :raises DataValidationError: If samples are not ascending.
        """
        time_range = coerce_time_range(time_range)
        now = ensure_utc(now)
        config = self.config

        strategy = resolve_strategy(time_range, config.market_hours, config.day_start)
        logger.debug(
            "Building %s scene with %s for %d samples and %d events",
            time_range.value,
            strategy.name,
            len(samples),
            len(events),
        )

        mapper = AxisMapper.for_viewport(viewport, config)
        scale = mapper.price_scale(samples, previous_close)
        if scale.is_flat and samples:
            logger.debug("Flat price window; centring the past line")
        points = mapper.map_past(samples, strategy, now, scale)
        volume_scale, volume_bars = mapper.volume_bars(points)

        smoother = PathSmoother(
            tension=config.tension,
            bounds=(viewport.width, viewport.height),
            dedupe_tolerance=config.dedupe_tolerance_px,
        )
        path = smoother.smooth([_as_point(point) for point in points])

        window = config.future_window or future_window_for(
            time_range, viewport.split_ratio, now
        )
        axis = AxisMapper.future_axis(viewport, now, window, config.future_buffer)
        markers = self.placer.place(events, viewport, axis)

        classifier = self.classifier_for(now, samples)
        trading_day = None
        if time_range is TimeRange.INTRADAY and samples:
            trading_day = market_date(samples[0].timestamp)
        current = classifier.current_session(now, trading_day)

        spans: tuple[SessionSpan, ...] = ()
        if time_range is TimeRange.INTRADAY:
            spans = session_spans(points, classifier, current)

        labels = filter_overlapping_labels(
            generate_time_labels(
                points, time_range, viewport, axis, config.market_hours, config.day_start
            ),
            viewport,
        )

        references = [
            ReferenceLine(
                kind=ReferenceKind.SPLIT,
                orientation="vertical",
                position=viewport.split_x,
            )
        ]
        if previous_close is not None:
            references.append(
                ReferenceLine(
                    kind=ReferenceKind.PREVIOUS_CLOSE,
                    orientation="horizontal",
                    position=scale.y_for(previous_close),
                    value=previous_close,
                )
            )

        return Scene(
            viewport=viewport,
            time_range=time_range,
            split_x=viewport.split_x,
            past_points=points,
            past_path=path,
            event_markers=markers,
            reference_lines=tuple(references),
            session_spans=spans,
            time_labels=labels,
            price_scale=scale,
            future_axis=axis,
            current_session=current,
            tension=config.tension,
            volume_scale=volume_scale,
            volume_bars=volume_bars,
        )

    def build_sparkline(
        self,
        samples: Sequence[PriceSample],
        time_range: TimeRange | str,
        width: float,
        height: float,
        now: datetime,
    ) -> SmoothPath:
        """Smooth line across the full width, without a future region.

        Used for mini charts and portfolio aggregate lines.

        :raises ConfigError: If the time range is not recognized or the size is not positive.
        """
        if width <= 0 or height <= 0:
            raise ConfigError(f"Sparkline size must be positive, got {width}x{height}")
        strategy = resolve_strategy(
            time_range, self.config.market_hours, self.config.day_start
        )
        mapper = AxisMapper(width, height, self.config)
        points = mapper.map_past(samples, strategy, ensure_utc(now))
        smoother = PathSmoother(
            tension=self.config.tension,
            bounds=(width, height),
            dedupe_tolerance=self.config.dedupe_tolerance_px,
        )
        return smoother.smooth([_as_point(point) for point in points])

    def resolve_crosshair(
        self,
        pointer_x: float,
        pointer_y: float,
        scene: Scene,
        mode: CrosshairMode = CrosshairMode.SNAP,
    ) -> CrosshairResult:
        """Resolve a pointer position against a previously built scene."""
        return self.resolver.resolve(pointer_x, pointer_y, scene, mode)


def session_spans(
    points: Sequence[PlotPoint],
    classifier: SessionClassifier,
    current: Session,
) -> tuple[SessionSpan, ...]:
    """Group consecutive points by session into horizontal spans.

    Each span runs from its first point to the first point of the next span,
    so spans tile the plotted line without gaps. The span matching the
    current session is emphasized; with the market closed, regular hours are.

    :param points: Plotted points, ascending in x.
    :param classifier: Classifier for samples that carry no session.
    :param current: Session derived from "now".
    :returns: Spans, left to right.
    """
    if not points:
        return ()
    emphasized = Session.REGULAR if current is Session.CLOSED else current

    groups = [
        (session, list(members))
        for session, members in groupby(
            points,
            key=lambda point: point.sample.session or classifier.classify(point.sample.timestamp),
        )
    ]
    spans = []
    for i, (session, members) in enumerate(groups):
        end_x = groups[i + 1][1][0].x if i + 1 < len(groups) else members[-1].x
        spans.append(
            SessionSpan(
                session=session,
                start_x=members[0].x,
                end_x=end_x,
                emphasized=session is emphasized,
            )
        )
    return tuple(spans)


def _as_point(point: PlotPoint) -> Point:
    return Point(x=point.x, y=point.y)


__all__ = ["ChartGeometryEngine", "session_spans"]
