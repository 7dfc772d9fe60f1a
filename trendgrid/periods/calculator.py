"""Trading-period calculator — pure function of (instrument, instant).

Computes the five rolling intervals the dashboard evaluates:

- ``daily``: today 00:00 → now
- ``daily1``: yesterday 00:00:00.000 → 23:59:59.999
- ``weekly``: Monday 00:00 → now
- ``monthly``: first trading day of this month → now
- ``monthly1``: first → last trading day of the previous month

Boundaries are civil times in the instrument's governing timezone,
converted back to UTC instants. Non-crypto instruments treat Saturday and
Sunday as non-trading days; no holiday calendar is modelled.
"""

import calendar
import math
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Iterator, Optional

from trendgrid.periods.instruments import (
    AssetType,
    get_asset_type,
    get_governing_timezone,
    is_crypto,
    normalize_symbol,
)
from trendgrid.periods.timezones import civil_to_instant, ensure_utc, now_utc, to_zone

INTERVAL_NAMES: tuple[str, ...] = ("daily", "daily1", "weekly", "monthly", "monthly1")

END_OF_DAY = time(23, 59, 59, 999000)


@dataclass(frozen=True)
class TradingInterval:
    """One evaluation window with UTC-aware bounds."""

    name: str
    label: str
    start: datetime
    end: datetime
    trading_active: bool
    is_historical: bool = False
    is_weekend: Optional[bool] = None  # only meaningful for single-day windows
    timezone: str = "UTC"  # governing zone the bounds were computed in

    @property
    def duration_days(self) -> int:
        return math.ceil((self.end - self.start).total_seconds() / 86400)


@dataclass(frozen=True)
class PeriodSet:
    """The five intervals, addressable by attribute or by name."""

    daily: TradingInterval
    daily1: TradingInterval
    weekly: TradingInterval
    monthly: TradingInterval
    monthly1: TradingInterval

    def __getitem__(self, name: str) -> TradingInterval:
        if name not in INTERVAL_NAMES:
            raise KeyError(name)
        return getattr(self, name)

    def __iter__(self) -> Iterator[TradingInterval]:
        return (getattr(self, n) for n in INTERVAL_NAMES)

    def items(self) -> list[tuple[str, TradingInterval]]:
        return [(n, getattr(self, n)) for n in INTERVAL_NAMES]


@dataclass(frozen=True)
class PeriodsResult:
    """Output of :func:`compute_periods`."""

    instrument: str
    asset_type: AssetType
    timezone: str
    is_crypto: bool
    at: datetime  # UTC
    local_time: datetime  # ``at`` projected into ``timezone``
    is_weekend: bool
    day_of_week: str
    periods: PeriodSet


# ── Trading-day helpers ──────────────────────────────────────────────────


def is_weekend_day(day: date) -> bool:
    """Saturday or Sunday."""
    return day.weekday() >= 5


def first_trading_day(year: int, month: int, crypto: bool = False) -> date:
    """First day of the month, advanced past weekend days unless *crypto*."""
    day = date(year, month, 1)
    if crypto:
        return day
    while is_weekend_day(day):
        day += timedelta(days=1)
    return day


def last_trading_day(year: int, month: int, crypto: bool = False) -> date:
    """Last day of the month, moved back past weekend days unless *crypto*."""
    day = date(year, month, calendar.monthrange(year, month)[1])
    if crypto:
        return day
    while is_weekend_day(day):
        day -= timedelta(days=1)
    return day


def previous_month(year: int, month: int) -> tuple[int, int]:
    """(year, month) of the month before; January rolls back to December."""
    if month == 1:
        return year - 1, 12
    return year, month - 1


def week_start(day: date) -> date:
    """Monday of the ISO week containing *day*."""
    return day - timedelta(days=day.weekday())


# ── Main entry point ─────────────────────────────────────────────────────


def compute_periods(instrument: str, at: Optional[datetime] = None) -> PeriodsResult:
    """Compute the five trading intervals for *instrument* at instant *at*.

    Args:
        instrument: Symbol such as ``"EURUSD"``. Unknown or malformed
            symbols resolve to forex / UTC.
        at: Evaluation instant; defaults to the wall clock. Naive values
            are taken as UTC.

    Returns:
        ``PeriodsResult`` with the classification and the ``PeriodSet``.
    """
    at_utc = ensure_utc(at) if at is not None else now_utc()
    symbol = normalize_symbol(instrument)
    asset_type = get_asset_type(symbol)
    tz_name = get_governing_timezone(symbol)
    crypto = is_crypto(symbol)

    local = to_zone(at_utc, tz_name)
    today = local.date()
    yesterday = today - timedelta(days=1)

    def _start(day: date) -> datetime:
        return civil_to_instant(day, tz_name)

    def _end(day: date) -> datetime:
        return civil_to_instant(day, tz_name, END_OF_DAY)

    today_weekend = is_weekend_day(today)
    yesterday_weekend = is_weekend_day(yesterday)

    daily = TradingInterval(
        name="daily",
        timezone=tz_name,
        label="Daily",
        start=_start(today),
        end=at_utc,
        trading_active=crypto or not today_weekend,
        is_weekend=today_weekend,
    )
    daily1 = TradingInterval(
        name="daily1",
        timezone=tz_name,
        label="Daily-1 (Yesterday)",
        start=_start(yesterday),
        end=_end(yesterday),
        trading_active=crypto or not yesterday_weekend,
        is_historical=True,
        is_weekend=yesterday_weekend,
    )
    weekly = TradingInterval(
        name="weekly",
        timezone=tz_name,
        label="Weekly (Monday to Now)",
        start=_start(week_start(today)),
        end=at_utc,
        trading_active=True,
    )

    month_open = _start(first_trading_day(today.year, today.month, crypto))
    # A month starting on a weekend has no trading yet on its 1st/2nd.
    if month_open > at_utc:
        monthly = TradingInterval(
            name="monthly",
            timezone=tz_name,
            label="Monthly (This Month)",
            start=at_utc,
            end=at_utc,
            trading_active=False,
        )
    else:
        monthly = TradingInterval(
            name="monthly",
            timezone=tz_name,
            label="Monthly (This Month)",
            start=month_open,
            end=at_utc,
            trading_active=True,
        )

    prev_year, prev_month = previous_month(today.year, today.month)
    monthly1 = TradingInterval(
        name="monthly1",
        timezone=tz_name,
        label="Monthly-1 (Previous Month)",
        start=_start(first_trading_day(prev_year, prev_month, crypto)),
        end=_end(last_trading_day(prev_year, prev_month, crypto)),
        trading_active=True,
        is_historical=True,
    )

    return PeriodsResult(
        instrument=symbol,
        asset_type=asset_type,
        timezone=tz_name,
        is_crypto=crypto,
        at=at_utc,
        local_time=local,
        is_weekend=today_weekend,
        day_of_week=local.strftime("%A"),
        periods=PeriodSet(
            daily=daily,
            daily1=daily1,
            weekly=weekly,
            monthly=monthly,
            monthly1=monthly1,
        ),
    )


def periods_to_dict(result: PeriodsResult) -> dict:
    """JSON-friendly representation used by the API and CLI."""
    return {
        "instrument": result.instrument,
        "asset_type": result.asset_type,
        "timezone": result.timezone,
        "is_crypto": result.is_crypto,
        "at": result.at.isoformat(),
        "local_time": result.local_time.isoformat(),
        "is_weekend": result.is_weekend,
        "day_of_week": result.day_of_week,
        "periods": {
            name: {
                "label": iv.label,
                "start": iv.start.isoformat(),
                "end": iv.end.isoformat(),
                "trading_active": iv.trading_active,
                "is_historical": iv.is_historical,
                "is_weekend": iv.is_weekend,
                "duration_days": iv.duration_days,
            }
            for name, iv in result.periods.items()
        },
    }
