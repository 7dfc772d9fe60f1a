"""Instrument metadata — asset classification and governing timezones.

All lookups are pure functions of the symbol string. Unknown symbols fall
back to ``forex`` / ``UTC`` rather than raising.
"""

from dataclasses import dataclass
from typing import Literal

AssetType = Literal["forex", "crypto", "commodity", "index"]

DEFAULT_ASSET_TYPE: AssetType = "forex"
DEFAULT_TIMEZONE = "UTC"


# ── Classification tables ────────────────────────────────────────────────

# Base currency → primary trading-centre timezone.
CURRENCY_TIMEZONES: dict[str, str] = {
    "USD": "America/New_York",
    "EUR": "Europe/London",
    "GBP": "Europe/London",
    "JPY": "Asia/Tokyo",
    "CHF": "Europe/Zurich",
    "AUD": "Australia/Sydney",
    "NZD": "Pacific/Auckland",
    "CAD": "America/Toronto",
    "BTC": "UTC",
    "ETH": "UTC",
    "XRP": "UTC",
}

# Commodities and indices are anchored to their exchange, not a currency.
SYMBOL_TIMEZONES: dict[str, str] = {
    "XAUUSD": "America/New_York",
    "XAGUSD": "America/New_York",
    "WTI": "America/New_York",
    "BRENT": "Europe/London",
    "US30": "America/New_York",
    "US100": "America/New_York",
    "SPX": "America/New_York",
    "UK100": "Europe/London",
    "GER40": "Europe/Berlin",
    "JPN225": "Asia/Tokyo",
}

ASSET_TYPES: dict[str, AssetType] = {
    # Forex
    "AUDCAD": "forex", "AUDCHF": "forex", "AUDJPY": "forex", "AUDNZD": "forex",
    "AUDUSD": "forex", "CADCHF": "forex", "CADJPY": "forex", "CHFJPY": "forex",
    "EURAUD": "forex", "EURCAD": "forex", "EURCHF": "forex", "EURGBP": "forex",
    "EURJPY": "forex", "EURNZD": "forex", "EURUSD": "forex",
    "GBPAUD": "forex", "GBPCAD": "forex", "GBPCHF": "forex", "GBPJPY": "forex",
    "GBPNZD": "forex", "GBPUSD": "forex",
    "NZDCAD": "forex", "NZDCHF": "forex", "NZDJPY": "forex", "NZDUSD": "forex",
    "USDCAD": "forex", "USDCHF": "forex", "USDJPY": "forex",
    # Crypto
    "BTCUSD": "crypto", "ETHUSD": "crypto", "XRPUSD": "crypto",
    # Commodities
    "XAUUSD": "commodity", "XAGUSD": "commodity", "BRENT": "commodity", "WTI": "commodity",
    # Indices
    "US30": "index", "US100": "index", "SPX": "index",
    "UK100": "index", "GER40": "index", "JPN225": "index",
}


@dataclass(frozen=True)
class WatchlistEntry:
    """One row of the dashboard watchlist."""

    id: str
    instrument: str
    category: str  # "major", "minor", "commodity", "index", "crypto"


# ── Default watchlist ────────────────────────────────────────────────────

_WATCHLIST_ROWS: list[tuple[str, str]] = [
    ("AUDCAD", "minor"), ("AUDCHF", "minor"), ("AUDJPY", "minor"),
    ("AUDNZD", "minor"), ("AUDUSD", "major"), ("BRENT", "commodity"),
    ("BTCUSD", "crypto"), ("CADCHF", "minor"), ("CADJPY", "minor"),
    ("CHFJPY", "minor"), ("EURAUD", "minor"), ("EURCAD", "minor"),
    ("EURCHF", "minor"), ("EURGBP", "minor"), ("EURJPY", "major"),
    ("EURNZD", "minor"), ("EURUSD", "major"), ("GBPAUD", "minor"),
    ("GBPCAD", "minor"), ("GBPCHF", "minor"), ("GBPJPY", "major"),
    ("GBPNZD", "minor"), ("GBPUSD", "major"), ("NZDCAD", "minor"),
    ("NZDCHF", "minor"), ("NZDJPY", "minor"), ("NZDUSD", "major"),
    ("US100", "index"), ("US30", "index"), ("USDCAD", "major"),
    ("USDCHF", "major"), ("USDJPY", "major"), ("WTI", "commodity"),
    ("XAGUSD", "commodity"), ("XAUUSD", "commodity"),
]

WATCHLIST: list[WatchlistEntry] = [
    WatchlistEntry(id=str(i), instrument=sym, category=cat)
    for i, (sym, cat) in enumerate(_WATCHLIST_ROWS, start=1)
]


# ── Lookups ──────────────────────────────────────────────────────────────


def normalize_symbol(instrument) -> str:
    """Return the canonical upper-case symbol, e.g. ``"eur/usd"`` → ``"EURUSD"``.

    Non-string input yields an empty string.
    """
    if not isinstance(instrument, str):
        return ""
    cleaned = instrument.strip().upper()
    for sep in ("/", "_", "-", " "):
        cleaned = cleaned.replace(sep, "")
    return cleaned


def get_asset_type(instrument) -> AssetType:
    """Classify *instrument*; unknown symbols are treated as forex."""
    return ASSET_TYPES.get(normalize_symbol(instrument), DEFAULT_ASSET_TYPE)


def is_crypto(instrument) -> bool:
    return get_asset_type(instrument) == "crypto"


def get_governing_timezone(instrument) -> str:
    """Return the IANA zone anchoring calendar boundaries for *instrument*.

    Exchange-traded symbols use their fixed zone; everything else is keyed
    off the base currency (first three characters).
    """
    symbol = normalize_symbol(instrument)
    if symbol in SYMBOL_TIMEZONES:
        return SYMBOL_TIMEZONES[symbol]
    return CURRENCY_TIMEZONES.get(symbol[:3], DEFAULT_TIMEZONE)


def instrument_id(instrument) -> str:
    """Watchlist id for *instrument*; unlisted symbols use the symbol itself."""
    symbol = normalize_symbol(instrument)
    for entry in WATCHLIST:
        if entry.instrument == symbol:
            return entry.id
    return symbol


def category_for(instrument) -> str:
    """Watchlist category for *instrument*, derived from asset type if unlisted."""
    symbol = normalize_symbol(instrument)
    for entry in WATCHLIST:
        if entry.instrument == symbol:
            return entry.category
    asset_type = get_asset_type(symbol)
    return "minor" if asset_type == "forex" else asset_type
