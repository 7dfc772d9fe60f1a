"""Internal API routers — /instruments, /timezones, /periods, /trends, /cache endpoints.

No evaluation logic here. Delegates to the period calculator, the trend
service and the result cache injected at startup.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from trendgrid.cache import CacheKey, ResultCache
from trendgrid.periods.calculator import compute_periods, periods_to_dict
from trendgrid.periods.instruments import (
    WATCHLIST,
    category_for,
    get_asset_type,
    get_governing_timezone,
    instrument_id,
)
from trendgrid.periods.timezones import (
    DISPLAY_TIMEZONES,
    parse_instant,
    resolve_display_timezone,
)
from trendgrid.trend.stats import summarize

logger = logging.getLogger("trendgrid.api")
router = APIRouter()

# ── Shared state (set during app startup) ────────────────────────────────

_service = None  # Set via configure_routers()
_cache: Optional[ResultCache] = None  # Set via configure_routers()
_instruments: list[str] = [entry.instrument for entry in WATCHLIST]


def configure_routers(
    service=None,
    cache: Optional[ResultCache] = None,
    instruments: Optional[list[str]] = None,
) -> None:
    """Inject dependencies from the application startup.

    Args:
        service: A ``TrendService`` instance (or duck-type for tests).
        cache: The ``ResultCache`` owned by the application.
        instruments: Watchlist symbols served by ``/trends``.
    """
    global _service, _cache, _instruments  # noqa: PLW0603
    _service = service
    _cache = cache
    if instruments is not None:
        _instruments = list(instruments)


def _parse_at(at: Optional[str]) -> Optional[datetime]:
    try:
        return parse_instant(at)
    except ValueError:
        raise HTTPException(
            status_code=422, detail=f"Invalid ISO-8601 instant: {at!r}"
        ) from None


# ── Endpoints ────────────────────────────────────────────────────────────


@router.get("/instruments")
async def get_instruments():
    """Return the served instruments with classification metadata."""
    return {
        "instruments": [
            {
                "id": instrument_id(symbol),
                "pair": symbol,
                "category": category_for(symbol),
                "asset_type": get_asset_type(symbol),
                "timezone": get_governing_timezone(symbol),
            }
            for symbol in _instruments
        ]
    }


@router.get("/timezones")
async def get_timezones():
    """Return the supported display timezones."""
    return {
        "timezones": [
            {"value": tz.value, "label": tz.label, "abbreviation": tz.abbreviation}
            for tz in DISPLAY_TIMEZONES
        ]
    }


@router.get("/periods/{instrument}")
async def get_periods(instrument: str, at: Optional[str] = Query(default=None)):
    """Return the five trading intervals for *instrument*."""
    return periods_to_dict(compute_periods(instrument, _parse_at(at)))


@router.get("/trends")
async def get_trends(
    tz: Optional[str] = Query(default=None, alias="timezone"),
    at: Optional[str] = Query(default=None),
    refresh: bool = Query(default=False),
):
    """Return trends for the whole watchlist, cached per timezone."""
    display_tz = resolve_display_timezone(tz)
    at_dt = _parse_at(at)
    if _service is None:
        return {"timezone": display_tz, "trends": [], "summary": summarize([]), "cached": False}

    key = CacheKey.build(_instruments, display_tz, at_dt)
    if _cache is not None and not refresh:
        cached = _cache.get(key)
        if cached is not None:
            logger.debug("Serving cached trends for %s", display_tz)
            return {**cached, "cached": True}

    rows = await _service.evaluate_all(_instruments, display_tz, at_dt)
    payload = {
        "timezone": display_tz,
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "trends": [row.to_dict() for row in rows],
        "summary": summarize(rows),
    }
    if _cache is not None:
        _cache.set(key, payload)
    return {**payload, "cached": False}


@router.get("/trends/{instrument}")
async def get_instrument_trend(
    instrument: str,
    tz: Optional[str] = Query(default=None, alias="timezone"),
    at: Optional[str] = Query(default=None),
):
    """Return trends for a single instrument (never cached)."""
    display_tz = resolve_display_timezone(tz)
    at_dt = _parse_at(at)
    if _service is None:
        raise HTTPException(status_code=503, detail="Trend service not configured")
    row = await _service.evaluate_instrument(instrument, display_tz, at_dt)
    return row.to_dict()


@router.post("/cache/invalidate")
async def invalidate_cache():
    """Drop every cached batch result."""
    if _cache is None:
        return {"removed": 0}
    return {"removed": _cache.invalidate()}


@router.get("/cache/stats")
async def get_cache_stats():
    if _cache is None:
        return {"entries": 0}
    return _cache.stats()
