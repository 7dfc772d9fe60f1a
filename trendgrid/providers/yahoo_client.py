"""Yahoo Finance chart API async client.

Fetches daily candle series for the dashboard instruments. Transient
failures are retried with exponential backoff; anything else surfaces as
``ProviderError`` for the caller to isolate per instrument.
"""

import asyncio
import logging
from datetime import date, datetime, timedelta, timezone
from typing import Optional

import httpx

from trendgrid.config import Config
from trendgrid.periods.instruments import normalize_symbol
from trendgrid.periods.timezones import to_zone
from trendgrid.trend.evaluator import classify_trend
from trendgrid.trend.models import Candle, Trend

logger = logging.getLogger("trendgrid.providers")

# Retry settings
_MAX_RETRIES = 3
_RETRY_BASE_DELAY = 1.0  # seconds; doubles each attempt
_RETRYABLE_STATUS_CODES = {502, 503, 504, 429}

_HEADERS = {
    "User-Agent": "Mozilla/5.0",
    "Accept": "application/json",
}

# Instruments whose Yahoo ticker is not ``<PAIR>=X``.
YAHOO_SYMBOLS: dict[str, str] = {
    "BTCUSD": "BTC-USD",
    "ETHUSD": "ETH-USD",
    "XRPUSD": "XRP-USD",
    "US100": "^NDX",
    "US30": "^DJI",
    "SPX": "^GSPC",
    "UK100": "^FTSE",
    "GER40": "^GDAXI",
    "JPN225": "^N225",
    "BRENT": "BZ=F",
    "WTI": "CL=F",
    "XAUUSD": "GC=F",
    "XAGUSD": "SI=F",
}


class ProviderError(Exception):
    """Market-data provider failed or returned an unusable payload."""


def yahoo_symbol(instrument: str) -> str:
    """Map a dashboard symbol to its Yahoo Finance ticker."""
    symbol = normalize_symbol(instrument)
    if symbol in YAHOO_SYMBOLS:
        return YAHOO_SYMBOLS[symbol]
    return f"{symbol}=X"


def _bar_day(ts: int, meta: dict) -> Optional[date]:
    """Trading date of a bar stamped *ts*, in the exchange's own zone."""
    tz_name = meta.get("exchangeTimezoneName")
    if isinstance(tz_name, str) and tz_name:
        return to_zone(datetime.fromtimestamp(ts, tz=timezone.utc), tz_name).date()
    offset = meta.get("gmtoffset")
    if isinstance(offset, (int, float)):
        return (datetime.fromtimestamp(ts, tz=timezone.utc) + timedelta(seconds=offset)).date()
    return None


def parse_chart(payload: dict) -> list[Candle]:
    """Turn a ``/v8/finance/chart`` payload into candles, oldest first.

    Null open/close values are kept as ``None``. Each candle carries the
    trading date of its bar in the exchange timezone reported by ``meta``.
    Raises ``ProviderError`` when the payload does not have the expected
    shape.
    """
    try:
        chart = payload["chart"]
        results = chart.get("result") or []
        if not results:
            error = chart.get("error") or {}
            raise ProviderError(
                f"No chart result: {error.get('description', 'empty result')}"
            )
        result = results[0]
        meta = result.get("meta")
        if not isinstance(meta, dict):
            meta = {}
        timestamps = result.get("timestamp") or []
        quote = result["indicators"]["quote"][0]
        opens = quote.get("open") or []
        closes = quote.get("close") or []
    except (KeyError, IndexError, TypeError, AttributeError) as exc:
        raise ProviderError(f"Malformed chart payload: {exc!r}") from exc

    candles: list[Candle] = []
    for idx, ts in enumerate(timestamps):
        if ts is None:
            continue
        o = opens[idx] if idx < len(opens) else None
        c = closes[idx] if idx < len(closes) else None
        candles.append(
            Candle(
                timestamp=int(ts),
                open=float(o) if o is not None else None,
                close=float(c) if c is not None else None,
                day=_bar_day(int(ts), meta),
            )
        )
    candles.sort(key=lambda candle: candle.timestamp)
    return candles


class YahooChartClient:
    """Async client wrapping the Yahoo Finance chart endpoint."""

    def __init__(self, config: Config) -> None:
        self._config = config
        self._base_url = config.yahoo_base_url
        self._timeout = config.request_timeout_seconds
        self._headers = dict(_HEADERS)

    # ── Retry helper ─────────────────────────────────────────────────────

    async def _request_with_retry(
        self,
        method: str,
        url: str,
        **kwargs,
    ) -> httpx.Response:
        """Execute an HTTP request with exponential-backoff retry.

        Retries on transient server errors (502, 503, 504) and rate-limits
        (429). Other HTTP errors raise ``ProviderError`` immediately.
        """
        last_exc: Optional[Exception] = None

        for attempt in range(_MAX_RETRIES):
            try:
                async with httpx.AsyncClient() as client:
                    resp = await getattr(client, method)(
                        url,
                        headers=self._headers,
                        timeout=self._timeout,
                        **kwargs,
                    )

                if resp.status_code in _RETRYABLE_STATUS_CODES:
                    delay = _RETRY_BASE_DELAY * (2 ** attempt)
                    logger.warning(
                        "Yahoo %s %s returned %d — retry %d/%d in %.1fs",
                        method.upper(), url, resp.status_code,
                        attempt + 1, _MAX_RETRIES, delay,
                    )
                    last_exc = ProviderError(
                        f"Yahoo returned {resp.status_code} for {url}"
                    )
                    await asyncio.sleep(delay)
                    continue

                resp.raise_for_status()
                return resp

            except httpx.HTTPStatusError as exc:
                raise ProviderError(
                    f"Yahoo returned {exc.response.status_code} for {url}"
                ) from exc

            except httpx.TransportError as exc:
                delay = _RETRY_BASE_DELAY * (2 ** attempt)
                logger.warning(
                    "Yahoo %s %s transport error (%s) — retry %d/%d in %.1fs",
                    method.upper(), url, exc,
                    attempt + 1, _MAX_RETRIES, delay,
                )
                last_exc = ProviderError(f"Transport error for {url}: {exc}")
                await asyncio.sleep(delay)

        # All retries exhausted
        raise last_exc  # type: ignore[misc]

    # ── Candle data ──────────────────────────────────────────────────────

    async def fetch_candles(
        self,
        instrument: str,
        interval: str = "1d",
        range_: str = "3mo",
    ) -> list[Candle]:
        """Fetch a candle series for *instrument*.

        Args:
            instrument: Dashboard symbol, e.g. ``"EURUSD"``.
            interval: Yahoo bar size, e.g. ``"1d"`` or ``"1h"``.
            range_: Yahoo lookback window; ``"3mo"`` always covers the
                previous calendar month.

        Returns:
            List of ``Candle`` objects ordered oldest-first.
        """
        url = f"{self._base_url}/v8/finance/chart/{yahoo_symbol(instrument)}"
        params = {"interval": interval, "range": range_}

        resp = await self._request_with_retry("get", url, params=params)

        try:
            payload = resp.json()
        except ValueError as exc:
            raise ProviderError(f"Non-JSON response for {instrument}") from exc

        candles = parse_chart(payload)
        logger.debug("Fetched %d %s candles for %s", len(candles), interval, instrument)
        return candles

    async def fetch_trend(self, instrument: str) -> Trend:
        """Coarse session direction: last market price vs previous close.

        Used as a fallback source; reads only the chart ``meta`` block so it
        still works when the quote arrays are empty.
        """
        url = f"{self._base_url}/v8/finance/chart/{yahoo_symbol(instrument)}"
        resp = await self._request_with_retry(
            "get", url, params={"interval": "1d", "range": "5d"},
        )
        try:
            meta = resp.json()["chart"]["result"][0]["meta"]
            price = meta.get("regularMarketPrice")
            previous = meta.get("chartPreviousClose", meta.get("previousClose"))
        except (ValueError, KeyError, IndexError, TypeError, AttributeError) as exc:
            raise ProviderError(f"Malformed chart meta for {instrument}") from exc
        return classify_trend(previous, price)
