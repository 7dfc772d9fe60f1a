"""TrendService — evaluates the watchlist concurrently.

Each instrument is an independent task: compute periods, fetch the
primary candle series, evaluate, and consult the fallback chain only
when some interval has no usable data. Tasks run concurrently under a
bounded semaphore; a failing instrument is logged and dropped without
affecting the others.
"""

import asyncio
import logging
from datetime import datetime
from typing import Optional

from trendgrid.config import Config
from trendgrid.periods.calculator import compute_periods
from trendgrid.periods.instruments import category_for, instrument_id
from trendgrid.periods.timezones import resolve_display_timezone
from trendgrid.providers.chain import FallbackChain
from trendgrid.providers.yahoo_client import ProviderError, YahooChartClient
from trendgrid.trend.evaluator import (
    apply_fallback,
    evaluate_for_display,
    needs_fallback,
    sunday_rule_applies,
)
from trendgrid.trend.models import InstrumentTrend

logger = logging.getLogger("trendgrid.service")

class TrendService:
    """Orchestrates data fetching and evaluation for many instruments.

    Args:
        config: Global ``Config``.
        provider: A ``YahooChartClient`` (or duck-type exposing
            ``fetch_candles``).
        fallback_chain: Optional ``FallbackChain`` for data-gap intervals.
    """

    def __init__(
        self,
        config: Config,
        provider: YahooChartClient,
        fallback_chain: Optional[FallbackChain] = None,
    ) -> None:
        self._config = config
        self._provider = provider
        self._fallback = fallback_chain if config.fallback_enabled else None

    async def evaluate_instrument(
        self,
        instrument: str,
        display_timezone: str = "UTC",
        at: Optional[datetime] = None,
    ) -> InstrumentTrend:
        """Evaluate a single instrument for the given display timezone."""
        display_tz = resolve_display_timezone(display_timezone)
        periods = compute_periods(instrument, at)
        symbol = periods.instrument

        try:
            candles = await self._provider.fetch_candles(symbol)
        except ProviderError as exc:
            logger.warning("Primary data unavailable for %s: %s", symbol, exc)
            candles = []

        result = evaluate_for_display(candles, periods, display_tz)

        fallback_source: Optional[str] = None
        if needs_fallback(result):
            if self._fallback is not None:
                trend, fallback_source = await self._fallback.resolve(symbol)
                result = apply_fallback(result, trend)
            else:
                logger.debug("Data gap for %s; fallback disabled", symbol)

        daily_open = periods.periods.daily.trading_active and not sunday_rule_applies(
            periods, display_tz
        )

        logger.debug(
            "%s => D=%s D1=%s W=%s M=%s M1=%s aligned=%s",
            symbol, result.daily, result.daily1, result.weekly,
            result.monthly, result.monthly1, result.alignment,
        )

        return InstrumentTrend(
            id=instrument_id(symbol),
            instrument=symbol,
            category=category_for(symbol),
            asset_type=periods.asset_type,
            timezone=periods.timezone,
            result=result,
            market_open=daily_open,
            fallback_source=fallback_source,
            last_updated=periods.at,
        )

    async def evaluate_all(
        self,
        instruments: Optional[list[str]] = None,
        display_timezone: str = "UTC",
        at: Optional[datetime] = None,
    ) -> list[InstrumentTrend]:
        """Evaluate *instruments* concurrently, keeping input order.

        ``None`` means the configured instruments. Failed instruments are
        logged and omitted from the result; cancellation propagates.
        """
        if instruments is None:
            instruments = self._config.instruments
        symbols = list(instruments)
        semaphore = asyncio.Semaphore(self._config.max_concurrency)

        async def _run(symbol: str) -> InstrumentTrend:
            async with semaphore:
                return await self.evaluate_instrument(symbol, display_timezone, at)

        outcomes = await asyncio.gather(
            *(_run(s) for s in symbols),
            return_exceptions=True,
        )

        results: list[InstrumentTrend] = []
        for symbol, outcome in zip(symbols, outcomes):
            if isinstance(outcome, Exception):
                logger.error("Evaluation failed for %s: %s", symbol, outcome)
                continue
            if isinstance(outcome, BaseException):
                raise outcome
            results.append(outcome)

        logger.info(
            "Evaluated %d/%d instruments (%d aligned) for %s",
            len(results), len(symbols),
            sum(1 for r in results if r.result.alignment),
            resolve_display_timezone(display_timezone),
        )
        return results
