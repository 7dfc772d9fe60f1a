"""Tests for trendgrid.providers.yahoo_client — chart client with mocked HTTP responses."""

from datetime import date, datetime, timezone

import pytest
import httpx

from trendgrid.config import Config
from trendgrid.periods.calculator import compute_periods
from trendgrid.providers import yahoo_client
from trendgrid.providers.yahoo_client import (
    ProviderError,
    YahooChartClient,
    parse_chart,
    yahoo_symbol,
)
from trendgrid.trend.evaluator import evaluate
from trendgrid.trend.models import Candle


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


# ── Mock Yahoo responses ─────────────────────────────────────────────────

MOCK_CHART_RESPONSE = {
    "chart": {
        "result": [
            {
                "meta": {
                    "symbol": "EURUSD=X",
                    "exchangeTimezoneName": "Europe/London",
                    "gmtoffset": 0,
                    "regularMarketPrice": 1.0980,
                    "chartPreviousClose": 1.0950,
                },
                "timestamp": [1710460800, 1710374400, 1710547200],
                "indicators": {
                    "quote": [
                        {
                            "open": [1.0930, 1.0905, None],
                            "close": [1.0950, 1.0930, 1.0980],
                            "high": [1.0960, 1.0940, 1.0990],
                            "low": [1.0920, 1.0900, 1.0940],
                        }
                    ]
                },
            }
        ],
        "error": None,
    }
}

MOCK_NOT_FOUND = {
    "chart": {
        "result": None,
        "error": {"code": "Not Found", "description": "No data found, symbol may be delisted"},
    }
}


def _response(status: int, url: str, json=None) -> httpx.Response:
    return httpx.Response(status, json=json, request=httpx.Request("GET", url))


# ── Symbol mapping ───────────────────────────────────────────────────────


@pytest.mark.parametrize(
    "instrument, expected",
    [
        ("EURUSD", "EURUSD=X"),
        ("eur/usd", "EURUSD=X"),
        ("BTCUSD", "BTC-USD"),
        ("US100", "^NDX"),
        ("US30", "^DJI"),
        ("XAUUSD", "GC=F"),
        ("JPN225", "^N225"),
    ],
)
def test_yahoo_symbol(instrument, expected):
    assert yahoo_symbol(instrument) == expected


# ── Payload parsing ──────────────────────────────────────────────────────


def test_parse_chart_sorts_and_keeps_nulls():
    candles = parse_chart(MOCK_CHART_RESPONSE)
    assert [c.timestamp for c in candles] == [1710374400, 1710460800, 1710547200]
    assert candles[0] == Candle(
        timestamp=1710374400, open=1.0905, close=1.0930, day=date(2024, 3, 14)
    )
    assert candles[-1].open is None
    assert candles[-1].close == pytest.approx(1.0980)


def test_parse_chart_error_block():
    with pytest.raises(ProviderError, match="No data found"):
        parse_chart(MOCK_NOT_FOUND)


def test_parse_chart_malformed():
    with pytest.raises(ProviderError):
        parse_chart({"unexpected": True})


def test_parse_chart_no_timestamps_is_empty():
    payload = {
        "chart": {
            "result": [{"meta": {}, "indicators": {"quote": [{}]}}],
            "error": None,
        }
    }
    assert parse_chart(payload) == []


# ── HTTP client ──────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_fetch_candles(monkeypatch):
    """URL, query params and candle fields built from the mock response."""
    client = YahooChartClient(_make_config())
    captured = {}

    async def _mock_get(self, url, *, headers=None, params=None, timeout=None):
        captured.update(url=url, params=params, timeout=timeout)
        return _response(200, url, MOCK_CHART_RESPONSE)

    monkeypatch.setattr(httpx.AsyncClient, "get", _mock_get)

    candles = await client.fetch_candles("EURUSD")
    assert len(candles) == 3
    assert captured["url"] == "https://yahoo.test/v8/finance/chart/EURUSD=X"
    assert captured["params"] == {"interval": "1d", "range": "3mo"}
    assert captured["timeout"] == 5.0


@pytest.mark.asyncio
async def test_retries_transient_status(monkeypatch):
    """503 twice, then 200: the third attempt succeeds."""
    monkeypatch.setattr(yahoo_client, "_RETRY_BASE_DELAY", 0)
    client = YahooChartClient(_make_config())
    calls = []

    async def _mock_get(self, url, *, headers=None, params=None, timeout=None):
        calls.append(url)
        if len(calls) < 3:
            return _response(503, url)
        return _response(200, url, MOCK_CHART_RESPONSE)

    monkeypatch.setattr(httpx.AsyncClient, "get", _mock_get)

    candles = await client.fetch_candles("EURUSD")
    assert len(calls) == 3
    assert len(candles) == 3


@pytest.mark.asyncio
async def test_retries_exhausted(monkeypatch):
    monkeypatch.setattr(yahoo_client, "_RETRY_BASE_DELAY", 0)
    client = YahooChartClient(_make_config())

    async def _mock_get(self, url, *, headers=None, params=None, timeout=None):
        return _response(429, url)

    monkeypatch.setattr(httpx.AsyncClient, "get", _mock_get)

    with pytest.raises(ProviderError, match="429"):
        await client.fetch_candles("EURUSD")


@pytest.mark.asyncio
async def test_transport_error_retried_then_raised(monkeypatch):
    monkeypatch.setattr(yahoo_client, "_RETRY_BASE_DELAY", 0)
    client = YahooChartClient(_make_config())
    calls = []

    async def _mock_get(self, url, *, headers=None, params=None, timeout=None):
        calls.append(url)
        raise httpx.ConnectError("connection refused")

    monkeypatch.setattr(httpx.AsyncClient, "get", _mock_get)

    with pytest.raises(ProviderError, match="Transport error"):
        await client.fetch_candles("EURUSD")
    assert len(calls) == 3


@pytest.mark.asyncio
async def test_not_found_raises_immediately(monkeypatch):
    client = YahooChartClient(_make_config())
    calls = []

    async def _mock_get(self, url, *, headers=None, params=None, timeout=None):
        calls.append(url)
        return _response(404, url, MOCK_NOT_FOUND)

    monkeypatch.setattr(httpx.AsyncClient, "get", _mock_get)

    with pytest.raises(ProviderError, match="404"):
        await client.fetch_candles("NOPE")
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_fetch_trend_reads_meta(monkeypatch):
    client = YahooChartClient(_make_config())
    captured = {}

    async def _mock_get(self, url, *, headers=None, params=None, timeout=None):
        captured.update(params=params)
        return _response(200, url, MOCK_CHART_RESPONSE)

    monkeypatch.setattr(httpx.AsyncClient, "get", _mock_get)

    assert await client.fetch_trend("EURUSD") == "bullish"
    assert captured["params"]["range"] == "5d"


@pytest.mark.asyncio
async def test_fetch_trend_malformed_meta(monkeypatch):
    client = YahooChartClient(_make_config())

    async def _mock_get(self, url, *, headers=None, params=None, timeout=None):
        return _response(200, url, MOCK_NOT_FOUND)

    monkeypatch.setattr(httpx.AsyncClient, "get", _mock_get)

    with pytest.raises(ProviderError):
        await client.fetch_trend("EURUSD")


# ── Trading-day anchoring ────────────────────────────────────────────────


def _epoch(*args) -> int:
    return int(datetime(*args, tzinfo=timezone.utc).timestamp())


def _chart(symbol: str, bars: list[tuple[int, float, float]], meta_extra=None) -> dict:
    meta = {"symbol": symbol}
    meta.update(meta_extra or {})
    return {
        "chart": {
            "result": [
                {
                    "meta": meta,
                    "timestamp": [ts for ts, _, _ in bars],
                    "indicators": {
                        "quote": [
                            {
                                "open": [o for _, o, _ in bars],
                                "close": [c for _, _, c in bars],
                            }
                        ]
                    },
                }
            ],
            "error": None,
        }
    }


def test_bar_day_uses_exchange_timezone():
    # 00:00 London during BST is 23:00 UTC the previous evening.
    payload = _chart(
        "USDCAD=X",
        [(_epoch(2024, 6, 12, 23, 0), 1.37, 1.38)],
        {"exchangeTimezoneName": "Europe/London", "gmtoffset": 3600},
    )
    assert parse_chart(payload)[0].day == date(2024, 6, 13)


def test_bar_day_from_gmtoffset_when_zone_missing():
    payload = _chart("USDCAD=X", [(_epoch(2024, 6, 12, 23, 0), 1.37, 1.38)], {"gmtoffset": 3600})
    assert parse_chart(payload)[0].day == date(2024, 6, 13)


def test_bar_day_unknown_without_meta():
    payload = _chart("USDCAD=X", [(_epoch(2024, 6, 12, 23, 0), 1.37, 1.38)])
    candle = parse_chart(payload)[0]
    assert candle.day is None
    assert candle.trading_day == date(2024, 6, 12)


def test_new_york_pair_yesterday_uses_closed_bar():
    """USDCAD is anchored to New York; Yahoo stamps its bars at 00:00 London."""
    payload = _chart(
        "USDCAD=X",
        [
            (_epoch(2024, 6, 12, 23, 0), 1.3700, 1.3800),  # Thu 13 Jun, closed
            (_epoch(2024, 6, 13, 23, 0), 1.3800, 1.3750),  # Fri 14 Jun, live
        ],
        {"exchangeTimezoneName": "Europe/London", "gmtoffset": 3600},
    )
    periods = compute_periods("USDCAD", datetime(2024, 6, 14, 10, 0, tzinfo=timezone.utc)).periods

    result = evaluate(parse_chart(payload), periods)

    assert result.daily1 == "bullish"
    assert result.details["daily1"].close_price == pytest.approx(1.3800)
    assert result.daily == "bearish"
    assert result.details["daily"].open_price == pytest.approx(1.3800)
