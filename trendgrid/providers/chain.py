"""Fallback chain — try secondary trend sources in order.

Stops at the first source returning a non-neutral trend. A source that
raises is logged and skipped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Protocol, runtime_checkable

from trendgrid.trend.models import Trend

logger = logging.getLogger("trendgrid.providers")


@runtime_checkable
class TrendSource(Protocol):
    """Anything that can produce a coarse trend for an instrument."""

    async def fetch_trend(self, instrument: str) -> Trend:
        ...


@dataclass(frozen=True)
class NamedSource:
    name: str
    source: TrendSource


class FallbackChain:
    """Ordered list of fallback trend sources."""

    def __init__(self, sources: list[NamedSource]) -> None:
        self._sources = list(sources)

    @property
    def names(self) -> list[str]:
        return [s.name for s in self._sources]

    async def resolve(self, instrument: str) -> tuple[Trend, Optional[str]]:
        """Return ``(trend, source_name)``; ``("neutral", None)`` if nothing helped."""
        for named in self._sources:
            try:
                trend = await named.source.fetch_trend(instrument)
            except Exception as exc:
                logger.warning(
                    "Fallback source '%s' failed for %s: %s",
                    named.name, instrument, exc,
                )
                continue
            if trend in ("bullish", "bearish"):
                logger.info(
                    "Fallback source '%s' resolved %s => %s",
                    named.name, instrument, trend,
                )
                return trend, named.name
        return "neutral", None
