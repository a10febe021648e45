"""Shared fixtures for chart geometry tests."""

from datetime import datetime, timedelta, timezone

import pytest

from catalyst_chart.types import ChartConfig, FutureEvent, PriceSample, Viewport

# Friday 2024-03-15 is in US daylight time, so 4:00 AM ET is 08:00 UTC and the
# 8:00 PM ET after-hours close is 00:00 UTC the next day.
TRADING_DAY_START = datetime(2024, 3, 15, 8, 0, tzinfo=timezone.utc)
TRADING_DAY_END = datetime(2024, 3, 16, 0, 0, tzinfo=timezone.utc)
NOW = datetime(2024, 3, 16, 1, 0, tzinfo=timezone.utc)


def create_samples(prices: list[float], start: datetime, step: timedelta) -> list[PriceSample]:
    """Create ascending samples at a fixed interval."""
    return [
        PriceSample(timestamp=start + step * i, price=price)
        for i, price in enumerate(prices)
    ]


def create_event(
    event_id: str,
    timestamp: datetime,
    event_type: str = "earnings",
    significance: float | None = None,
) -> FutureEvent:
    return FutureEvent(
        id=event_id, timestamp=timestamp, type=event_type, significance=significance
    )


@pytest.fixture
def viewport() -> Viewport:
    """300x100 viewport with 60% of the width given to the past."""
    return Viewport(width=300, height=100, split_ratio=0.6)


@pytest.fixture
def intraday_samples() -> list[PriceSample]:
    """Three samples at the start, middle and end of the intraday axis."""
    return [
        PriceSample(timestamp=TRADING_DAY_START, price=100.0),
        PriceSample(timestamp=TRADING_DAY_START + timedelta(hours=8), price=110.0),
        PriceSample(timestamp=TRADING_DAY_END, price=105.0),
    ]


@pytest.fixture
def ninety_day_config() -> ChartConfig:
    """Default tunables with a fixed 90-day future window."""
    return ChartConfig(future_window=timedelta(days=90))
