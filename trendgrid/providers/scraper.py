"""TradingView page scraper — coarse up/down signal when Yahoo has no data.

Best effort only: every failure resolves to ``"neutral"``.
"""

import logging
import re

import httpx

from trendgrid.config import Config
from trendgrid.periods.instruments import get_asset_type, normalize_symbol
from trendgrid.trend.models import Trend

logger = logging.getLogger("trendgrid.providers")

TRADINGVIEW_SYMBOLS: dict[str, str] = {
    "BTCUSD": "BITSTAMP-BTCUSD",
    "ETHUSD": "BITSTAMP-ETHUSD",
    "XRPUSD": "BITSTAMP-XRPUSD",
    "XAUUSD": "OANDA-XAUUSD",
    "XAGUSD": "OANDA-XAGUSD",
    "BRENT": "TVC-UKOIL",
    "WTI": "TVC-USOIL",
    "US30": "TVC-DJI",
    "US100": "NASDAQ-NDX",
    "SPX": "SP-SPX",
    "UK100": "TVC-UKX",
    "GER40": "XETR-DAX",
    "JPN225": "TVC-NI225",
}

# Tried in order; the first match decides the direction.
_CHANGE_PATTERNS = [
    re.compile(r'"change"\s*:\s*(-?\d+(?:\.\d+)?(?:[eE]-?\d+)?)'),
    re.compile(r'"ch"\s*:\s*(-?\d+(?:\.\d+)?(?:[eE]-?\d+)?)'),
    re.compile(r'"change_percent"\s*:\s*(-?\d+(?:\.\d+)?(?:[eE]-?\d+)?)'),
    re.compile(r'"chp"\s*:\s*(-?\d+(?:\.\d+)?(?:[eE]-?\d+)?)'),
]


def tradingview_slug(instrument: str) -> str:
    symbol = normalize_symbol(instrument)
    if symbol in TRADINGVIEW_SYMBOLS:
        return TRADINGVIEW_SYMBOLS[symbol]
    if get_asset_type(symbol) == "forex":
        return f"FX-{symbol}"
    return symbol


def extract_trend(html: str) -> Trend:
    """Read the daily change embedded in a symbol page and map it to a trend."""
    for pattern in _CHANGE_PATTERNS:
        match = pattern.search(html)
        if match is None:
            continue
        change = float(match.group(1))
        if change > 0:
            return "bullish"
        if change < 0:
            return "bearish"
        return "neutral"
    return "neutral"


class TradingViewScraper:
    """Fetches TradingView symbol pages and extracts a direction."""

    def __init__(self, config: Config) -> None:
        self._base_url = config.tradingview_base_url
        self._timeout = config.request_timeout_seconds
        self._headers = {
            "User-Agent": "Mozilla/5.0",
            "Accept": "text/html",
        }

    async def fetch_trend(self, instrument: str) -> Trend:
        url = f"{self._base_url}/symbols/{tradingview_slug(instrument)}/"
        try:
            async with httpx.AsyncClient() as client:
                resp = await client.get(
                    url,
                    headers=self._headers,
                    timeout=self._timeout,
                )
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            logger.debug("TradingView scrape failed for %s: %s", instrument, exc)
            return "neutral"

        trend = extract_trend(resp.text)
        logger.debug("TradingView signal for %s: %s", instrument, trend)
        return trend
