# src/socialprice/app.py
"""
Application Entry Point - Session Wiring and Startup

This module serves as the composition root for SocialPrice. It builds the
shared backend client handle, the realtime feed and the rate service once,
injects them into a MarketSession for the configured product, and keeps the
session live while the hourly rate refresh loop runs.

The websocket bridge that publishes backend changes into the BroadcastFeed
is provided by the hosting application; without it the session still loads,
computes and refreshes rates.

Files that USE this module:
- socialprice console script (pyproject entry point)

Files that this module USES:
- socialprice.shared.logging_conf (setup_logging for logging configuration)
- socialprice.config (settings for configuration management)
- socialprice.adapters.backend (PostgrestClient, BroadcastFeed)
- socialprice.adapters.providers (OpenErApiProvider)
- socialprice.adapters.formatting (market_lines for the summary)
- socialprice.application (RatesService, MarketSession)
"""

from __future__ import annotations  # Enable postponed evaluation of annotations for forward references

import asyncio  # Asynchronous programming support for the refresh loop
import logging  # Standard library for logging messages and errors
import sys  # System-specific parameters and functions for exit codes
from typing import Optional  # Type hints for optional values

from socialprice.shared.logging_conf import setup_logging  # Configure logging with file rotation
from socialprice.adapters.backend import BroadcastFeed, PostgrestClient  # Backend client and realtime feed
from socialprice.adapters.formatting import market_lines  # Plain-text market summary
from socialprice.adapters.providers import OpenErApiProvider  # Exchange rate source
from socialprice.application import MarketSession, RatesService  # Session and rate table
from socialprice.application.stores.product import placeholder_product  # Product shown before the first load
from socialprice.config import settings  # Application configuration and settings
from socialprice.domain.models import CurrencyCode, MarketStats  # Display currency and stats types

logger = logging.getLogger(__name__)


def build_session(config=settings, rates: Optional[RatesService] = None,
                  feed: Optional[BroadcastFeed] = None) -> MarketSession:
    """
    Wire a MarketSession from configuration.

    Args:
        config: Settings instance (defaults to the global settings)
        rates: Optional pre-built RatesService (defaults to the open.er-api provider)
        feed: Optional realtime feed (defaults to a new BroadcastFeed)
    """
    rates = rates or RatesService(
        provider=OpenErApiProvider(config.rates_url, config.http_timeout_seconds),
        refresh_seconds=config.rates_refresh_seconds,
    )
    client = PostgrestClient(config.rest_url, config.backend_key, config.http_timeout_seconds)
    currency = CurrencyCode(config.display_currency)
    return MarketSession(
        client,
        feed or BroadcastFeed(),
        config.product_id,
        rates,
        display_currency=currency,
        history_window=config.history_window,
        price_history_limit=config.price_history_limit,
        triple_limit_factor=config.triple_limit_factor,
        placeholder=placeholder_product(config.product_id, currency),
    )


async def _serve(session: MarketSession) -> None:
    def log_summary(stats: MarketStats) -> None:
        logger.info("Market update\n%s", market_lines(stats, session.display_currency, session.product))

    stop = asyncio.Event()
    unsubscribe = session.subscribe(log_summary)
    try:
        with session:
            log_summary(session.stats)
            await session.rates.run(stop)
    finally:
        unsubscribe()
        stop.set()


def main() -> None:
    """
    Initialize and start the market session.

    This function:
    1. Sets up logging and validates configuration
    2. Builds the rate service, backend client and session
    3. Loads the product page and logs the market summary
    4. Keeps refreshing rates until interrupted
    """
    setup_logging(
        level=logging.INFO,
        log_file=settings.log_file,
        log_dir=settings.log_dir,
        max_bytes=settings.log_max_bytes,
        backup_count=settings.log_backup_count,
        product_id=settings.product_id,
    )

    if not settings.backend_url:
        logger.error("BACKEND_URL is not configured; set it in the environment or .env")
        sys.exit(1)

    session = build_session()
    logger.info("Starting SocialPrice for product %s", settings.product_id)
    try:
        asyncio.run(_serve(session))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")


if __name__ == "__main__":
    main()
