"""CLI dashboard — prints trading periods and the trend table to the console."""

from trendgrid.periods.calculator import PeriodsResult
from trendgrid.trend.models import InstrumentTrend
from trendgrid.trend.stats import summarize

_TREND_MARKS = {"bullish": "▲ bull", "bearish": "▼ bear", "neutral": "· ----"}


def _fmt(dt) -> str:
    return dt.strftime("%Y-%m-%d %H:%M:%S")


def print_periods(result: PeriodsResult) -> str:
    """Format and print the trading periods for one instrument.

    Args:
        result: Output of ``compute_periods``.

    Returns:
        The formatted string (also printed to stdout).
    """
    trading = "24/7 trading" if result.is_crypto else "weekday trading"
    day_kind = "weekend" if result.is_weekend else "weekday"

    lines = [
        f"──────────────── Trading periods: {result.instrument} ────────────────",
        f"  Asset type:  {result.asset_type} ({trading})",
        f"  Timezone:    {result.timezone}",
        f"  UTC time:    {_fmt(result.at)}",
        f"  Local time:  {_fmt(result.local_time)}",
        f"  Day:         {result.day_of_week} ({day_kind})",
        "",
    ]
    for name, period in result.periods.items():
        status = "active" if period.trading_active else "inactive"
        flags = []
        if period.is_weekend is not None:
            flags.append("weekend" if period.is_weekend else "weekday")
        if period.is_historical:
            flags.append("historical")
        suffix = f" ({', '.join(flags)})" if flags else ""
        lines.append(f"  {name.upper():<9}{status}{suffix} [{period.duration_days} days]")
        lines.append(f"           start: {_fmt(period.start)} UTC")
        lines.append(f"           end:   {_fmt(period.end)} UTC")
    lines.append("─" * 66)

    output = "\n".join(lines)
    print(output)
    return output


def print_trend_table(rows: list[InstrumentTrend], display_timezone: str = "UTC") -> str:
    """Format and print the multi-timeframe trend table.

    Returns:
        The formatted string (also printed to stdout).
    """
    header = (
        f"  {'PAIR':<8} {'M-1':<7} {'M':<7} {'W':<7} {'D-1':<7} {'D':<7} ALIGNED"
    )
    lines = [
        f"──────────────── Trend alignment ({display_timezone}) ────────────────",
        header,
    ]
    for row in rows:
        r = row.result
        cells = [_TREND_MARKS[t] for t in (r.monthly1, r.monthly, r.weekly, r.daily1, r.daily)]
        aligned = "YES" if r.alignment else "no"
        lines.append(
            f"  {row.instrument:<8} " + " ".join(f"{c:<7}" for c in cells) + f" {aligned}"
        )
    summary = summarize(rows)
    lines.append(
        f"  {summary['aligned']}/{summary['total']} instruments aligned ({summary['aligned_pct']}%)"
        f" | daily: {summary['bullish_daily']} bull, {summary['bearish_daily']} bear"
    )
    lines.append("─" * 66)

    output = "\n".join(lines)
    print(output)
    return output
