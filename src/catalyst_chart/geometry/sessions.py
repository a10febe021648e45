"""Trading-session classification in US Eastern market time.

Eastern wall-clock time is derived from fixed UTC offsets and the US daylight
saving rule rather than a timezone database, so every runtime classifies the
same instant identically.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime, time, timedelta, timezone
from typing import NamedTuple

from pydantic import Field

from catalyst_chart.types import (FrozenModel, MarketHours, Session,
                                  ensure_utc)

EASTERN_STANDARD_OFFSET = timedelta(hours=-5)
EASTERN_DAYLIGHT_OFFSET = timedelta(hours=-4)

# Early closes end regular trading at 1:00 PM ET
EARLY_CLOSE = time(13, 0)

_MONDAY, _THURSDAY, _FRIDAY, _SATURDAY, _SUNDAY = 0, 3, 4, 5, 6


# ---------------------------------------------------------------------------
# Eastern Time Arithmetic
# ---------------------------------------------------------------------------


def _nth_weekday(year: int, month: int, weekday: int, n: int) -> date:
    """Date of the n-th given weekday (1-based) in a month."""
    first = date(year, month, 1)
    shift = (weekday - first.weekday()) % 7
    return first + timedelta(days=shift + 7 * (n - 1))


def _last_weekday(year: int, month: int, weekday: int) -> date:
    """Date of the last given weekday in a month."""
    if month == 12:
        last = date(year, 12, 31)
    else:
        last = date(year, month + 1, 1) - timedelta(days=1)
    return last - timedelta(days=(last.weekday() - weekday) % 7)


def eastern_utc_offset(instant: datetime) -> timedelta:
    """UTC offset of US Eastern time at an instant.

    Daylight time runs from 2:00 AM local on the second Sunday of March
    (07:00 UTC) until 2:00 AM local on the first Sunday of November
    (06:00 UTC).

    :param instant: Instant to inspect (naive values are treated as UTC).
    :returns: ``-4h`` during daylight time, ``-5h`` otherwise.
    """
    utc = ensure_utc(instant)
    dst_start = datetime.combine(
        _nth_weekday(utc.year, 3, _SUNDAY, 2), time(7, 0), tzinfo=timezone.utc
    )
    dst_end = datetime.combine(
        _nth_weekday(utc.year, 11, _SUNDAY, 1), time(6, 0), tzinfo=timezone.utc
    )
    if dst_start <= utc < dst_end:
        return EASTERN_DAYLIGHT_OFFSET
    return EASTERN_STANDARD_OFFSET


def to_market_time(instant: datetime) -> datetime:
    """Naive Eastern wall-clock datetime for an instant."""
    utc = ensure_utc(instant)
    return (utc + eastern_utc_offset(utc)).replace(tzinfo=None)


def market_date(instant: datetime) -> date:
    """Eastern calendar date an instant falls on."""
    return to_market_time(instant).date()


def market_instant(day: date, wall_clock: time) -> datetime:
    """UTC instant of an Eastern wall-clock time on a given date."""
    naive = datetime.combine(day, wall_clock)
    guess = (naive - EASTERN_STANDARD_OFFSET).replace(tzinfo=timezone.utc)
    offset = eastern_utc_offset(guess)
    return (naive - offset).replace(tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Holiday Calendar
# ---------------------------------------------------------------------------


def _easter_sunday(year: int) -> date:
    """Gregorian Easter (anonymous computus)."""
    a = year % 19
    b, c = divmod(year, 100)
    d, e = divmod(b, 4)
    f = (b + 8) // 25
    g = (b - f + 1) // 3
    h = (19 * a + b - d - g + 15) % 30
    i, k = divmod(c, 4)
    l = (32 + 2 * e + 2 * i - h - k) % 7  # noqa: E741
    m = (a + 11 * h + 22 * l) // 451
    month, day = divmod(h + l - 7 * m + 114, 31)
    return date(year, month, day + 1)


def _observed(day: date) -> date:
    """Weekend holidays are observed on the adjacent weekday."""
    if day.weekday() == _SATURDAY:
        return day - timedelta(days=1)
    if day.weekday() == _SUNDAY:
        return day + timedelta(days=1)
    return day


def nyse_holidays(year: int) -> dict[date, str]:
    """Full-day NYSE closures for a year.

    New Year's Day falling on a Saturday is not observed on the preceding
    Friday, matching exchange practice.

    :param year: Calendar year.
    :returns: Mapping of closure date to holiday name.
    """
    holidays: dict[date, str] = {}

    new_year = date(year, 1, 1)
    if new_year.weekday() == _SUNDAY:
        holidays[new_year + timedelta(days=1)] = "New Year's Day"
    elif new_year.weekday() != _SATURDAY:
        holidays[new_year] = "New Year's Day"

    holidays[_nth_weekday(year, 1, _MONDAY, 3)] = "Martin Luther King Jr. Day"
    holidays[_nth_weekday(year, 2, _MONDAY, 3)] = "Washington's Birthday"
    holidays[_easter_sunday(year) - timedelta(days=2)] = "Good Friday"
    holidays[_last_weekday(year, 5, _MONDAY)] = "Memorial Day"
    if year >= 2022:
        holidays[_observed(date(year, 6, 19))] = "Juneteenth"
    holidays[_observed(date(year, 7, 4))] = "Independence Day"
    holidays[_nth_weekday(year, 9, _MONDAY, 1)] = "Labor Day"
    holidays[_nth_weekday(year, 11, _THURSDAY, 4)] = "Thanksgiving Day"
    holidays[_observed(date(year, 12, 25))] = "Christmas Day"
    return holidays


def nyse_early_closes(year: int) -> dict[date, time]:
    """Shortened NYSE sessions for a year (1:00 PM ET close)."""
    holidays = nyse_holidays(year)
    candidates = [
        date(year, 7, 3),
        _nth_weekday(year, 11, _THURSDAY, 4) + timedelta(days=1),
        date(year, 12, 24),
    ]
    return {
        day: EARLY_CLOSE
        for day in candidates
        if day.weekday() < _SATURDAY and day not in holidays
    }


class MarketCalendar(FrozenModel):
    """Trading-day calendar.

    :param holidays: Dates with no trading at all.
    :param early_closes: Dates whose regular session ends early, with the close time.
    """

    holidays: frozenset[date] = Field(default_factory=frozenset)
    early_closes: dict[date, time] = Field(default_factory=dict)

    @classmethod
    def nyse(cls, years: Iterable[int]) -> MarketCalendar:
        """Standard NYSE calendar for the given years."""
        holidays: set[date] = set()
        early_closes: dict[date, time] = {}
        for year in sorted(set(years)):
            holidays.update(nyse_holidays(year))
            early_closes.update(nyse_early_closes(year))
        return cls(holidays=frozenset(holidays), early_closes=early_closes)

    def is_trading_day(self, day: date) -> bool:
        return day.weekday() < _SATURDAY and day not in self.holidays

    def regular_close_on(self, day: date, hours: MarketHours) -> time:
        """Regular-session close on a date, honouring early closes."""
        return self.early_closes.get(day, hours.regular_close)


# ---------------------------------------------------------------------------
# Session Classification
# ---------------------------------------------------------------------------


class SessionBounds(NamedTuple):
    """UTC instants of the session boundaries on one trading day."""

    pre_market_open: datetime
    regular_open: datetime
    regular_close: datetime
    after_hours_close: datetime


class SessionClassifier:
    """Classifies instants into trading sessions.

    Boundaries are half-open: an instant exactly on a boundary belongs to the
    session that starts there. Weekends and full holidays are ``closed``.

    :param hours: Session boundaries in Eastern wall-clock time.
    :param calendar: Holiday calendar; weekends only when omitted.
    """

    def __init__(
        self,
        hours: MarketHours | None = None,
        calendar: MarketCalendar | None = None,
    ) -> None:
        self.hours = hours or MarketHours()
        self.calendar = calendar or MarketCalendar()

    def bounds_for(self, day: date) -> SessionBounds:
        """Session boundary instants for an Eastern calendar date."""
        return SessionBounds(
            pre_market_open=market_instant(day, self.hours.pre_market_open),
            regular_open=market_instant(day, self.hours.regular_open),
            regular_close=market_instant(
                day, self.calendar.regular_close_on(day, self.hours)
            ),
            after_hours_close=market_instant(day, self.hours.after_hours_close),
        )

    def classify(self, timestamp: datetime) -> Session:
        """Session an instant falls in."""
        wall = to_market_time(timestamp)
        if not self.calendar.is_trading_day(wall.date()):
            return Session.CLOSED

        clock = wall.time()
        regular_close = self.calendar.regular_close_on(wall.date(), self.hours)
        if self.hours.pre_market_open <= clock < self.hours.regular_open:
            return Session.PRE_MARKET
        if self.hours.regular_open <= clock < regular_close:
            return Session.REGULAR
        if regular_close <= clock < self.hours.after_hours_close:
            return Session.AFTER_HOURS
        return Session.CLOSED

    def current_session(self, now: datetime, trading_day: date | None = None) -> Session:
        """Session used to decide which part of a chart is emphasized.

        Always derived from ``now``; a chart showing a trading day other than
        today's market date is treated as closed.

        :param now: Current instant.
        :param trading_day: Eastern date of the charted day, if any.
        :returns: Session currently in effect for the chart.
        """
        if trading_day is not None and trading_day != market_date(now):
            return Session.CLOSED
        return self.classify(now)


__all__ = [
    "EASTERN_STANDARD_OFFSET",
    "EASTERN_DAYLIGHT_OFFSET",
    "EARLY_CLOSE",
    "eastern_utc_offset",
    "to_market_time",
    "market_date",
    "market_instant",
    "nyse_holidays",
    "nyse_early_closes",
    "MarketCalendar",
    "SessionBounds",
    "SessionClassifier",
]
