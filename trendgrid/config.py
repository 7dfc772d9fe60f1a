"""TrendGrid — application configuration.

Loads .env variables into a typed config object.
Validates numeric variables on startup.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from trendgrid.periods.instruments import WATCHLIST, normalize_symbol
from trendgrid.periods.timezones import resolve_display_timezone


_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Config:
    """Typed configuration loaded from environment variables."""

    display_timezone: str
    cache_ttl_seconds: float
    max_concurrency: int
    request_timeout_seconds: float
    yahoo_base_url: str
    tradingview_base_url: str
    fallback_enabled: bool
    instruments: tuple[str, ...]
    log_level: str
    api_port: int


def _number(name: str, default: str, cast):
    raw = os.environ.get(name, default)
    try:
        value = cast(raw)
    except ValueError:
        raise ValueError(f"Invalid value for {name}: {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


def _instruments(raw: str) -> tuple[str, ...]:
    symbols = [normalize_symbol(s) for s in raw.split(",")]
    symbols = [s for s in symbols if s]
    if not symbols:
        return tuple(entry.instrument for entry in WATCHLIST)
    return tuple(dict.fromkeys(symbols))


def load_config(env_path: str | None = None) -> Config:
    """Load configuration from environment variables.

    Every variable is optional. Raises ``ValueError`` naming the variable
    when a numeric setting cannot be parsed or is not positive.
    """
    load_dotenv(dotenv_path=env_path)

    return Config(
        display_timezone=resolve_display_timezone(
            os.environ.get("DISPLAY_TIMEZONE", "UTC")
        ),
        cache_ttl_seconds=_number("CACHE_TTL_SECONDS", "60", float),
        max_concurrency=_number("MAX_CONCURRENCY", "8", int),
        request_timeout_seconds=_number("REQUEST_TIMEOUT_SECONDS", "15", float),
        yahoo_base_url=os.environ.get(
            "YAHOO_BASE_URL", "https://query1.finance.yahoo.com"
        ).rstrip("/"),
        tradingview_base_url=os.environ.get(
            "TRADINGVIEW_BASE_URL", "https://www.tradingview.com"
        ).rstrip("/"),
        fallback_enabled=os.environ.get("FALLBACK_ENABLED", "true").strip().lower() in _TRUTHY,
        instruments=_instruments(os.environ.get("INSTRUMENTS", "")),
        log_level=os.environ.get("LOG_LEVEL", "INFO"),
        api_port=_number("API_PORT", "8080", int),
    )
