"""Trend evaluator — maps a candle series onto the five trading intervals.

The only directional rule in the system: close > open is bullish, close <
open is bearish, equality is neutral. No tolerance band.

The evaluator never raises. Missing data degrades a single interval to
neutral; a closed market forces neutral and cannot be overridden by a
fallback trend.
"""

from datetime import timedelta
from typing import Iterable, Optional

from trendgrid.periods.calculator import INTERVAL_NAMES, PeriodSet, PeriodsResult, TradingInterval
from trendgrid.periods.timezones import civil_to_instant, is_sunday_in_timezone
from trendgrid.trend.models import Candle, EvaluationResult, IntervalTrend, Trend

DEFAULT_LOOKBACK = timedelta(days=5)

# Intervals subject to the Sunday rule.
_SUNDAY_INTERVALS = ("daily", "daily1")


def classify_trend(open_price: Optional[float], close_price: Optional[float]) -> Trend:
    """Apply the open-vs-close rule. Missing prices yield neutral."""
    if open_price is None or close_price is None:
        return "neutral"
    if close_price > open_price:
        return "bullish"
    if close_price < open_price:
        return "bearish"
    return "neutral"


def check_alignment(trends: Iterable[Trend]) -> bool:
    """True iff every trend is the same non-neutral value."""
    values = list(trends)
    if not values or values[0] == "neutral":
        return False
    return all(t == values[0] for t in values)


def _usable(candles: Iterable[Candle]) -> list[Candle]:
    usable = [
        c for c in candles
        if isinstance(c, Candle)
        and isinstance(c.timestamp, (int, float))
        and not isinstance(c.timestamp, bool)
    ]
    usable.sort(key=lambda c: c.timestamp)
    return usable


def bar_start(candle: Candle, tz_name: str) -> float:
    """Epoch seconds at which *candle*'s trading day opens in *tz_name*.

    Providers stamp daily bars in their own exchange zone (Yahoo uses
    00:00 London for FX), so bars are placed by trading date rather than
    by raw timestamp. A bar is inside an interval iff its trading day is.
    """
    return civil_to_instant(candle.trading_day, tz_name).timestamp()


def find_open_candle(
    candles: list[Candle],
    interval: TradingInterval,
    lookback: timedelta = DEFAULT_LOOKBACK,
) -> Optional[Candle]:
    """First candle inside *interval*, else the latest candle within *lookback* before it."""
    start = interval.start.timestamp()
    end = interval.end.timestamp()
    for c in candles:
        if start <= bar_start(c, interval.timezone) <= end:
            return c

    earliest = (interval.start - lookback).timestamp()
    for c in reversed(candles):
        opened = bar_start(c, interval.timezone)
        if opened <= end:
            return c if opened >= earliest else None
    return None


def find_close_candle(candles: list[Candle], interval: TradingInterval) -> Optional[Candle]:
    """Last candle whose trading day opens at or before the end of *interval*."""
    end = interval.end.timestamp()
    for c in reversed(candles):
        if bar_start(c, interval.timezone) <= end:
            return c
    return None


def _evaluate_interval(
    candles: list[Candle],
    interval: TradingInterval,
    market_closed: bool,
    lookback: timedelta,
) -> IntervalTrend:
    if market_closed or not interval.trading_active:
        return IntervalTrend(
            trend="neutral",
            source="closed",
            explanation=f"{interval.label}: market closed => neutral",
        )

    open_candle = find_open_candle(candles, interval, lookback)
    close_candle = find_close_candle(candles, interval)
    if open_candle is None or close_candle is None:
        return IntervalTrend(
            trend="neutral",
            source="data_gap",
            explanation=f"{interval.label}: no candle data for interval",
        )

    open_price = open_candle.open
    close_price = close_candle.close
    if open_price is None or close_price is None:
        return IntervalTrend(
            trend="neutral",
            source="data_gap",
            explanation=f"{interval.label}: missing open/close price",
            open_price=open_price,
            close_price=close_price,
        )

    trend = classify_trend(open_price, close_price)
    if trend == "bullish":
        rule = "close > open"
    elif trend == "bearish":
        rule = "close < open"
    else:
        rule = "open == close"
    return IntervalTrend(
        trend=trend,
        source="primary",
        explanation=f"open={open_price}, close={close_price} => {trend} ({rule})",
        open_price=open_price,
        close_price=close_price,
    )


def _build_result(details: dict[str, IntervalTrend]) -> EvaluationResult:
    trends = [details[name].trend for name in INTERVAL_NAMES]
    return EvaluationResult(
        daily=details["daily"].trend,
        daily1=details["daily1"].trend,
        weekly=details["weekly"].trend,
        monthly=details["monthly"].trend,
        monthly1=details["monthly1"].trend,
        alignment=check_alignment(trends),
        details=details,
    )


def needs_fallback(result: EvaluationResult) -> bool:
    """True if any interval is neutral because of a data gap."""
    return any(d.source == "data_gap" for d in result.details.values())


def apply_fallback(result: EvaluationResult, fallback: Optional[Trend]) -> EvaluationResult:
    """Replace data-gap neutrals with *fallback*.

    Closed-market neutrals and genuine ``open == close`` neutrals are kept.
    A neutral or missing fallback leaves the result unchanged.
    """
    if fallback not in ("bullish", "bearish") or not needs_fallback(result):
        return result

    details: dict[str, IntervalTrend] = {}
    for name, detail in result.details.items():
        if detail.source == "data_gap":
            details[name] = IntervalTrend(
                trend=fallback,
                source="fallback",
                explanation=f"{detail.explanation}; fallback source => {fallback}",
            )
        else:
            details[name] = detail
    return _build_result(details)


def evaluate(
    candles: Optional[Iterable[Candle]],
    periods: PeriodSet,
    fallback: Optional[Trend] = None,
    sunday_closed: bool = False,
    lookback: timedelta = DEFAULT_LOOKBACK,
) -> EvaluationResult:
    """Derive one trend per interval and the alignment flag.

    Args:
        candles: Candle series, ascending by timestamp. May be empty.
        periods: Intervals from :func:`compute_periods`.
        fallback: Optional trend from a secondary source, used only for
            data-gap intervals.
        sunday_closed: Force ``daily`` and ``daily1`` neutral (Sunday rule).
        lookback: How far before an interval's start an opening candle may
            be borrowed from when the interval itself has none.
    """
    series = _usable(candles or [])
    details = {
        name: _evaluate_interval(
            series,
            interval,
            market_closed=sunday_closed and name in _SUNDAY_INTERVALS,
            lookback=lookback,
        )
        for name, interval in periods.items()
    }
    return apply_fallback(_build_result(details), fallback)


def sunday_rule_applies(periods_result: PeriodsResult, display_timezone: str) -> bool:
    """Non-crypto instruments are closed through Sunday in the viewer's timezone."""
    if periods_result.is_crypto:
        return False
    return is_sunday_in_timezone(periods_result.at, display_timezone)


def evaluate_for_display(
    candles: Optional[Iterable[Candle]],
    periods_result: PeriodsResult,
    display_timezone: str = "UTC",
    fallback: Optional[Trend] = None,
) -> EvaluationResult:
    """:func:`evaluate` with the Sunday rule resolved for *display_timezone*."""
    return evaluate(
        candles,
        periods_result.periods,
        fallback=fallback,
        sunday_closed=sunday_rule_applies(periods_result, display_timezone),
    )
