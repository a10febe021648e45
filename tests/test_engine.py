"""Tests for the scene construction facade."""

import logging
from datetime import datetime, timedelta, timezone

import pytest
from conftest import NOW, create_event, create_samples
from pydantic import ValidationError

from catalyst_chart import ChartGeometryEngine
from catalyst_chart.exceptions import ConfigError, DataValidationError
from catalyst_chart.geometry.engine import session_spans
from catalyst_chart.geometry.sessions import MarketCalendar, SessionClassifier
from catalyst_chart.types import (ChartConfig, PriceSample, ReferenceKind,
                                  Scene, Session, TimeRange, Viewport)


def random_walk(count: int, start: datetime, step: timedelta) -> list[PriceSample]:
    """Deterministic zig-zag prices."""
    prices = [100.0 + ((i * 37) % 11) - 5 + i * 0.1 for i in range(count)]
    return create_samples(prices, start, step)


def assert_inside(scene: Scene) -> None:
    viewport = scene.viewport
    for point in scene.past_points:
        assert 0.0 <= point.x <= viewport.split_x
        assert 0.0 <= point.y <= viewport.height
    for segment in scene.past_path.segments:
        for p in (segment.cp1, segment.cp2, segment.end):
            assert 0.0 <= p.x <= viewport.width
            assert 0.0 <= p.y <= viewport.height
    for marker in scene.event_markers:
        assert viewport.split_x <= marker.x <= viewport.width
        assert 0.0 <= marker.y <= viewport.height
    for bar in scene.volume_bars:
        assert 0.0 <= bar.x and bar.x + bar.width <= viewport.split_x
        assert 0.0 <= bar.y and bar.y + bar.height <= viewport.height + 1e-9


class TestBuildScene:
    """Tests for ChartGeometryEngine.build_scene."""

    @pytest.fixture
    def engine(self, ninety_day_config: ChartConfig) -> ChartGeometryEngine:
        return ChartGeometryEngine(ninety_day_config)

    def test_intraday_scene(
        self,
        engine: ChartGeometryEngine,
        viewport: Viewport,
        intraday_samples: list[PriceSample],
    ) -> None:
        events = [create_event("e1", NOW + timedelta(days=1))]
        scene = engine.build_scene(intraday_samples, events, viewport, "1D", NOW)

        assert scene.time_range is TimeRange.INTRADAY
        assert scene.split_x == pytest.approx(180.0)
        assert [p.x for p in scene.past_points] == pytest.approx([0.0, 90.0, 180.0])
        assert len(scene.past_path.segments) == 2
        assert scene.event_markers[0].x == pytest.approx(200.0)
        assert scene.tension == 0.4
        assert_inside(scene)

    def test_current_session_from_now(
        self,
        engine: ChartGeometryEngine,
        viewport: Viewport,
        intraday_samples: list[PriceSample],
    ) -> None:
        """Friday 9 PM ET is closed even though the data shows a full day."""
        scene = engine.build_scene(intraday_samples, [], viewport, "1D", NOW)
        assert scene.current_session is Session.CLOSED

    def test_session_spans(
        self,
        engine: ChartGeometryEngine,
        viewport: Viewport,
        intraday_samples: list[PriceSample],
    ) -> None:
        """Spans tile the line; regular hours are emphasized once closed."""
        scene = engine.build_scene(intraday_samples, [], viewport, "1D", NOW)
        spans = scene.session_spans
        assert [s.session for s in spans] == [
            Session.PRE_MARKET,
            Session.REGULAR,
            Session.CLOSED,
        ]
        assert [(s.start_x, s.end_x) for s in spans] == pytest.approx(
            [(0.0, 90.0), (90.0, 180.0), (180.0, 180.0)]
        )
        assert [s.emphasized for s in spans] == [False, True, False]

    def test_live_session_emphasized(
        self,
        engine: ChartGeometryEngine,
        viewport: Viewport,
        intraday_samples: list[PriceSample],
    ) -> None:
        now = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)
        scene = engine.build_scene(intraday_samples[:1], [], viewport, "1D", now)
        assert scene.current_session is Session.PRE_MARKET
        assert scene.session_spans[0].emphasized

    def test_stale_day_is_closed(
        self,
        engine: ChartGeometryEngine,
        viewport: Viewport,
        intraday_samples: list[PriceSample],
    ) -> None:
        """Yesterday's data during today's session never looks live."""
        now = datetime(2024, 3, 18, 15, 0, tzinfo=timezone.utc)
        scene = engine.build_scene(intraday_samples, [], viewport, "1D", now)
        assert scene.current_session is Session.CLOSED

    def test_reference_lines(
        self,
        engine: ChartGeometryEngine,
        viewport: Viewport,
        intraday_samples: list[PriceSample],
    ) -> None:
        scene = engine.build_scene(
            intraday_samples, [], viewport, "1D", NOW, previous_close=102.0
        )
        kinds = {line.kind: line for line in scene.reference_lines}
        assert kinds[ReferenceKind.SPLIT].orientation == "vertical"
        assert kinds[ReferenceKind.SPLIT].position == pytest.approx(180.0)
        close = kinds[ReferenceKind.PREVIOUS_CLOSE]
        assert close.orientation == "horizontal"
        assert close.value == 102.0
        assert close.position == pytest.approx(scene.price_scale.y_for(102.0))

    def test_previous_close_only_split_line_by_default(
        self,
        engine: ChartGeometryEngine,
        viewport: Viewport,
        intraday_samples: list[PriceSample],
    ) -> None:
        scene = engine.build_scene(intraday_samples, [], viewport, "1D", NOW)
        assert [line.kind for line in scene.reference_lines] == [ReferenceKind.SPLIT]

    @pytest.mark.parametrize("time_range", ["1D", "1W", "1M", "3M", "YTD", "1Y", "5Y"])
    def test_every_range_inside_viewport(
        self, engine: ChartGeometryEngine, viewport: Viewport, time_range: str
    ) -> None:
        """Points, control points and markers never leave the viewport."""
        samples = random_walk(60, NOW - timedelta(days=60), timedelta(days=1))
        if time_range == "1D":
            samples = random_walk(60, datetime(2024, 3, 15, 13, 30, tzinfo=timezone.utc),
                                  timedelta(minutes=5))
        events = [
            create_event(f"e{i}", NOW + timedelta(days=i * 3), significance=i / 10)
            for i in range(10)
        ]
        scene = engine.build_scene(samples, events, viewport, time_range, NOW)

        assert_inside(scene)
        xs = [p.x for p in scene.past_points]
        assert xs == sorted(xs)
        assert len(scene.event_markers) == len(events)
        assert scene.session_spans == () or time_range == "1D"

    def test_empty_inputs(self, engine: ChartGeometryEngine, viewport: Viewport) -> None:
        scene = engine.build_scene([], [], viewport, "1M", NOW)
        assert scene.past_points == ()
        assert scene.past_path.is_empty
        assert scene.event_markers == ()

    def test_flat_prices(self, engine: ChartGeometryEngine, viewport: Viewport) -> None:
        samples = create_samples([25.0] * 5, NOW - timedelta(days=5), timedelta(days=1))
        scene = engine.build_scene(samples, [], viewport, "1W", NOW)
        assert all(p.y == 50.0 for p in scene.past_points)

    def test_unsorted_samples_raise(
        self, engine: ChartGeometryEngine, viewport: Viewport
    ) -> None:
        samples = create_samples([1.0, 2.0], NOW, timedelta(days=-1))
        with pytest.raises(DataValidationError):
            engine.build_scene(samples, [], viewport, "1W", NOW)

    def test_unknown_range_raises(
        self, engine: ChartGeometryEngine, viewport: Viewport
    ) -> None:
        with pytest.raises(ConfigError):
            engine.build_scene([], [], viewport, "10Y", NOW)

    def test_deterministic(
        self,
        engine: ChartGeometryEngine,
        viewport: Viewport,
        intraday_samples: list[PriceSample],
    ) -> None:
        """Identical inputs give identical scenes."""
        events = [create_event(i, NOW + timedelta(days=2)) for i in ("c", "a", "b")]
        first = engine.build_scene(intraday_samples, events, viewport, "1D", NOW)
        second = engine.build_scene(intraday_samples, events[::-1], viewport, "1D", NOW)
        assert first == second

    def test_scene_immutable(
        self,
        engine: ChartGeometryEngine,
        viewport: Viewport,
        intraday_samples: list[PriceSample],
    ) -> None:
        scene = engine.build_scene(intraday_samples, [], viewport, "1D", NOW)
        with pytest.raises(ValidationError):
            scene.split_x = 0.0  # type: ignore[misc]
        assert isinstance(scene.past_points, tuple)

    def test_derived_future_window(
        self, viewport: Viewport, intraday_samples: list[PriceSample]
    ) -> None:
        """Without a configured window, a 40% future share spans 60 days."""
        scene = ChartGeometryEngine().build_scene(intraday_samples, [], viewport, "1D", NOW)
        assert scene.future_axis.window == timedelta(days=60)
        assert scene.future_axis.buffer == timedelta(days=14)

    def test_volume_band(
        self,
        engine: ChartGeometryEngine,
        viewport: Viewport,
        intraday_samples: list[PriceSample],
    ) -> None:
        """Samples with volume get bars in the bottom band of the past region."""
        samples = [
            sample.model_copy(update={"volume": volume})
            for sample, volume in zip(intraday_samples, [400, 800, 200])
        ]
        scene = engine.build_scene(samples, [], viewport, "1D", NOW)
        assert scene.volume_scale.max_volume == 800
        assert [bar.volume for bar in scene.volume_bars] == [400, 800, 200]
        assert [bar.height for bar in scene.volume_bars] == pytest.approx([15.0, 30.0, 7.5])
        assert_inside(scene)

    def test_no_volume_no_band(
        self,
        engine: ChartGeometryEngine,
        viewport: Viewport,
        intraday_samples: list[PriceSample],
    ) -> None:
        scene = engine.build_scene(intraday_samples, [], viewport, "1D", NOW)
        assert scene.volume_bars == ()

    def test_crowded_future_inside_viewport(
        self, engine: ChartGeometryEngine, viewport: Viewport
    ) -> None:
        """A large pile of coincident and overdue events keeps every marker in view."""
        events = [
            create_event(f"e{i:03d}", NOW + timedelta(days=i % 10 - 3)) for i in range(150)
        ]
        scene = engine.build_scene([], events, viewport, "1M", NOW)
        assert len(scene.event_markers) == 150
        assert len({(m.x, m.y) for m in scene.event_markers}) == 150
        assert_inside(scene)

    def test_logs_at_debug(
        self,
        engine: ChartGeometryEngine,
        viewport: Viewport,
        intraday_samples: list[PriceSample],
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        with caplog.at_level(logging.DEBUG, logger="catalyst_chart"):
            engine.build_scene(intraday_samples, [], viewport, "1D", NOW)
        assert "time_of_day" in caplog.text


class TestSessionSpans:
    """Tests for span grouping."""

    def test_no_points(self) -> None:
        assert session_spans((), SessionClassifier(), Session.REGULAR) == ()

    def test_sample_session_overrides_classifier(self, viewport: Viewport) -> None:
        sample = PriceSample(
            timestamp=datetime(2024, 3, 15, 15, 0, tzinfo=timezone.utc),
            price=1.0,
            session=Session.AFTER_HOURS,
        )
        scene = ChartGeometryEngine(calendar=MarketCalendar()).build_scene(
            [sample], [], viewport, "1D", NOW
        )
        assert [s.session for s in scene.session_spans] == [Session.AFTER_HOURS]


class TestBuildSparkline:
    """Tests for full-width sparklines."""

    def test_spans_full_width(self) -> None:
        samples = random_walk(20, NOW - timedelta(days=20), timedelta(days=1))
        path = ChartGeometryEngine().build_sparkline(samples, "1M", 120, 40, NOW)
        anchors = path.anchors
        assert anchors[0].x == pytest.approx(0.0)
        assert anchors[-1].x == pytest.approx(120.0)
        assert all(0 <= p.y <= 40 for p in anchors)

    def test_invalid_size(self) -> None:
        with pytest.raises(ConfigError, match="positive"):
            ChartGeometryEngine().build_sparkline([], "1M", 0, 40, NOW)
