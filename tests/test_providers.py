"""Tests for the fallback trend sources — TradingView scraper and FallbackChain."""

from unittest.mock import AsyncMock

import pytest
import httpx

from trendgrid.config import Config
from trendgrid.providers.chain import FallbackChain, NamedSource, TrendSource
from trendgrid.providers.scraper import TradingViewScraper, extract_trend, tradingview_slug


def _make_config() -> Config:
    return Config(
        display_timezone="UTC",
        cache_ttl_seconds=60.0,
        max_concurrency=4,
        request_timeout_seconds=5.0,
        yahoo_base_url="https://yahoo.test",
        tradingview_base_url="https://tv.test",
        fallback_enabled=True,
        instruments=("EURUSD",),
        log_level="INFO",
        api_port=8080,
    )


def _source(trend=None, exc=None) -> AsyncMock:
    source = AsyncMock()
    if exc is not None:
        source.fetch_trend.side_effect = exc
    else:
        source.fetch_trend.return_value = trend
    return source


# ── Scraper ──────────────────────────────────────────────────────────────


class TestTradingViewSlug:
    def test_forex_prefixed(self):
        assert tradingview_slug("eur/usd") == "FX-EURUSD"

    def test_mapped_symbols(self):
        assert tradingview_slug("BTCUSD") == "BITSTAMP-BTCUSD"
        assert tradingview_slug("GER40") == "XETR-DAX"


class TestExtractTrend:
    def test_positive_change(self):
        assert extract_trend('<script>{"change": 0.0012, "chp": 0.11}</script>') == "bullish"

    def test_negative_change(self):
        assert extract_trend('{"ch":-1.5}') == "bearish"

    def test_zero_change(self):
        assert extract_trend('{"change": 0}') == "neutral"

    def test_first_pattern_wins(self):
        assert extract_trend('{"chp": 0.4, "change": -0.2}') == "bearish"

    def test_nothing_found(self):
        assert extract_trend("<html><body>maintenance</body></html>") == "neutral"


@pytest.mark.asyncio
async def test_scraper_fetches_symbol_page(monkeypatch):
    scraper = TradingViewScraper(_make_config())
    captured = {}

    async def _mock_get(self, url, *, headers=None, params=None, timeout=None):
        captured["url"] = url
        return httpx.Response(
            200, text='{"change_percent": -0.35}', request=httpx.Request("GET", url)
        )

    monkeypatch.setattr(httpx.AsyncClient, "get", _mock_get)

    assert await scraper.fetch_trend("XAUUSD") == "bearish"
    assert captured["url"] == "https://tv.test/symbols/OANDA-XAUUSD/"


@pytest.mark.asyncio
async def test_scraper_http_error_is_neutral(monkeypatch):
    scraper = TradingViewScraper(_make_config())

    async def _mock_get(self, url, *, headers=None, params=None, timeout=None):
        return httpx.Response(403, text="blocked", request=httpx.Request("GET", url))

    monkeypatch.setattr(httpx.AsyncClient, "get", _mock_get)

    assert await scraper.fetch_trend("EURUSD") == "neutral"


@pytest.mark.asyncio
async def test_scraper_transport_error_is_neutral(monkeypatch):
    scraper = TradingViewScraper(_make_config())

    async def _mock_get(self, url, *, headers=None, params=None, timeout=None):
        raise httpx.ReadTimeout("timed out")

    monkeypatch.setattr(httpx.AsyncClient, "get", _mock_get)

    assert await scraper.fetch_trend("EURUSD") == "neutral"


def test_scraper_satisfies_trend_source_protocol():
    assert isinstance(TradingViewScraper(_make_config()), TrendSource)


# ── Fallback chain ───────────────────────────────────────────────────────


class TestFallbackChain:
    @pytest.mark.asyncio
    async def test_first_non_neutral_wins(self):
        first = _source("bearish")
        second = _source("bullish")
        chain = FallbackChain([NamedSource("yahoo_session", first), NamedSource("tradingview", second)])

        assert await chain.resolve("EURUSD") == ("bearish", "yahoo_session")
        second.fetch_trend.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_neutral_falls_through(self):
        chain = FallbackChain([
            NamedSource("yahoo_session", _source("neutral")),
            NamedSource("tradingview", _source("bullish")),
        ])
        assert await chain.resolve("EURUSD") == ("bullish", "tradingview")

    @pytest.mark.asyncio
    async def test_failing_source_is_skipped(self):
        chain = FallbackChain([
            NamedSource("yahoo_session", _source(exc=RuntimeError("boom"))),
            NamedSource("tradingview", _source("bearish")),
        ])
        assert await chain.resolve("EURUSD") == ("bearish", "tradingview")

    @pytest.mark.asyncio
    async def test_nothing_helps(self):
        chain = FallbackChain([
            NamedSource("yahoo_session", _source("neutral")),
            NamedSource("tradingview", _source(exc=RuntimeError("blocked"))),
        ])
        assert await chain.resolve("EURUSD") == ("neutral", None)

    @pytest.mark.asyncio
    async def test_empty_chain(self):
        assert await FallbackChain([]).resolve("EURUSD") == ("neutral", None)

    def test_names_in_order(self):
        chain = FallbackChain([
            NamedSource("yahoo_session", _source("neutral")),
            NamedSource("tradingview", _source("neutral")),
        ])
        assert chain.names == ["yahoo_session", "tradingview"]
