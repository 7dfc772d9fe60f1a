"""Trend data models — candles in, per-interval trends out."""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Literal, Optional

Trend = Literal["bullish", "bearish", "neutral"]

# How an interval's trend was obtained:
#   primary:  compared open/close from the candle series
#   fallback: data gap filled by the fallback source
#   closed:   market closed for the interval, forced neutral
#   data_gap: no usable candle, neutral
TrendSource = Literal["primary", "fallback", "closed", "data_gap"]


@dataclass(frozen=True)
class Candle:
    """A single candle from the market-data provider (high/low unused)."""

    timestamp: int  # epoch seconds
    open: Optional[float]
    close: Optional[float]
    day: Optional[date] = None  # trading date of the bar, if the provider knows it

    @property
    def trading_day(self) -> date:
        """Calendar date the bar belongs to; the UTC date when the provider gave none."""
        if self.day is not None:
            return self.day
        return datetime.fromtimestamp(self.timestamp, tz=timezone.utc).date()


@dataclass(frozen=True)
class IntervalTrend:
    """Trend for one interval together with how it was derived."""

    trend: Trend
    source: TrendSource
    explanation: str
    open_price: Optional[float] = None
    close_price: Optional[float] = None


@dataclass(frozen=True)
class EvaluationResult:
    """Trends for all five intervals plus the alignment flag."""

    daily: Trend
    daily1: Trend
    weekly: Trend
    monthly: Trend
    monthly1: Trend
    alignment: bool
    details: dict[str, IntervalTrend] = field(default_factory=dict, compare=False)

    def trends(self) -> dict[str, Trend]:
        return {
            "daily": self.daily,
            "daily1": self.daily1,
            "weekly": self.weekly,
            "monthly": self.monthly,
            "monthly1": self.monthly1,
        }


@dataclass(frozen=True)
class InstrumentTrend:
    """One dashboard row: an instrument's evaluation plus its metadata."""

    id: str
    instrument: str
    category: str
    asset_type: str
    timezone: str
    result: EvaluationResult
    market_open: bool
    fallback_source: Optional[str]
    last_updated: datetime

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "pair": self.instrument,
            "category": self.category,
            "asset_type": self.asset_type,
            "timezone": self.timezone,
            **self.result.trends(),
            "alignment": self.result.alignment,
            "market_open": self.market_open,
            "fallback_source": self.fallback_source,
            "explanation": {
                name: detail.explanation for name, detail in self.result.details.items()
            },
            "source": {
                name: detail.source for name, detail in self.result.details.items()
            },
            "last_updated": self.last_updated.isoformat(),
        }
