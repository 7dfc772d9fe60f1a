"""Market summary — pure counts over a batch of evaluated instruments."""

import math

from trendgrid.trend.models import InstrumentTrend


def summarize(rows: list[InstrumentTrend]) -> dict:
    """Compute the dashboard summary for one batch of rows.

    Returns:
        Dict with ``total``, ``aligned``, ``aligned_pct`` (whole percent,
        half rounded up), ``bullish_daily`` and ``bearish_daily``.
    """
    if not rows:
        return {
            "total": 0,
            "aligned": 0,
            "aligned_pct": 0,
            "bullish_daily": 0,
            "bearish_daily": 0,
        }

    total = len(rows)
    aligned = sum(1 for r in rows if r.result.alignment)

    return {
        "total": total,
        "aligned": aligned,
        "aligned_pct": math.floor(aligned * 100 / total + 0.5),
        "bullish_daily": sum(1 for r in rows if r.result.daily == "bullish"),
        "bearish_daily": sum(1 for r in rows if r.result.daily == "bearish"),
    }
