"""TrendGrid — application entry point.

Boots the FastAPI internal server and provides the CLI entry point for
serve, periods, and trends modes.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from trendgrid.api.routers import router

app = FastAPI(title="TrendGrid Internal API", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)
app.include_router(router)

logger = logging.getLogger("trendgrid")


@app.get("/health")
async def health():
    return {"status": "ok"}


def build_service(config):
    """Wire the market-data client, fallback chain and trend service."""
    from trendgrid.providers.chain import FallbackChain, NamedSource
    from trendgrid.providers.scraper import TradingViewScraper
    from trendgrid.providers.yahoo_client import YahooChartClient
    from trendgrid.service import TrendService

    provider = YahooChartClient(config)
    chain = FallbackChain([
        NamedSource("yahoo_session", provider),
        NamedSource("tradingview", TradingViewScraper(config)),
    ])
    return TrendService(config=config, provider=provider, fallback_chain=chain)


# ── CLI ──────────────────────────────────────────────────────────────────


def _run_cli() -> None:
    """Parse CLI arguments and dispatch to the appropriate mode."""
    import argparse
    import asyncio

    from trendgrid.config import load_config
    from trendgrid.periods.timezones import parse_instant, resolve_display_timezone

    parser = argparse.ArgumentParser(description="TrendGrid multi-timeframe trend dashboard")
    parser.add_argument(
        "--mode",
        choices=["serve", "periods", "trends"],
        default="serve",
        help="Run mode (default: serve)",
    )
    parser.add_argument("--instrument", default="EURUSD", help="Instrument for periods mode")
    parser.add_argument("--at", help="Override evaluation instant (ISO-8601)")
    parser.add_argument("--timezone", help="Display timezone (default from config)")
    parser.add_argument("--port", type=int, help="API port (default from config)")
    args = parser.parse_args()

    config = load_config()

    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        at = parse_instant(args.at)
    except ValueError:
        parser.error(f"--at must be an ISO-8601 instant, got {args.at!r}")
    display_tz = resolve_display_timezone(args.timezone or config.display_timezone)

    if args.mode == "periods":
        from trendgrid.cli.dashboard import print_periods
        from trendgrid.periods.calculator import compute_periods

        print_periods(compute_periods(args.instrument, at))
        return

    service = build_service(config)

    if args.mode == "trends":
        from trendgrid.cli.dashboard import print_trend_table

        rows = asyncio.run(service.evaluate_all(list(config.instruments), display_tz, at))
        print_trend_table(rows, display_tz)
        return

    _run_server(config, service, args.port or config.api_port)


def _run_server(config, service, port: int) -> None:
    """Inject collaborators into the routers and start uvicorn."""
    import uvicorn

    from trendgrid.api.routers import configure_routers
    from trendgrid.cache import ResultCache

    configure_routers(
        service=service,
        cache=ResultCache(ttl_seconds=config.cache_ttl_seconds),
        instruments=list(config.instruments),
    )
    logger.info(
        "Starting TrendGrid API on port %d with %d instrument(s).",
        port, len(config.instruments),
    )
    uvicorn.run(app, host="0.0.0.0", port=port, log_level="info")


if __name__ == "__main__":
    _run_cli()
