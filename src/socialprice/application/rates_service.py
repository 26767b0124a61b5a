# src/socialprice/application/rates_service.py
"""
Rates Service - Live Exchange Rate Table with Static Fallback

This module owns the rate table every store reads when it converts values
into the display currency. It starts from the static fallback table,
refreshes from an injected RateProvider on a fixed interval, and never
clears the table: on any fetch failure the last good table is kept.

States: LOADING (before the first refresh attempt completes), READY, and
REFRESHING while a tick is in flight.

Files that USE this module:
- socialprice.application.stores.* (read the current rate table)
- socialprice.application.market_session (rebuilds stats on rate changes)
- socialprice.app (schedules the refresh loop)
- tests.test_rates_service (unit tests)

Files that this module USES:
- socialprice.adapters.providers.base (RateProvider interface)
- socialprice.domain.currency (FALLBACK_RATES, RateTable)
- socialprice.shared.observable (listener registry)
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Optional

from socialprice.adapters.providers.base import RateProvider
from socialprice.domain.currency import FALLBACK_RATES, RateTable
from socialprice.domain.models import CurrencyCode
from socialprice.shared.observable import Observable

log = logging.getLogger(__name__)

DEFAULT_REFRESH_SECONDS = 60 * 60


class RateState(str, Enum):
    LOADING = "loading"
    READY = "ready"
    REFRESHING = "refreshing"


class RatesService(Observable["RatesService"]):
    """
    Holds the current rate table and refreshes it from a provider.
    Readers get an immutable view; only refresh() writes.
    """

    def __init__(self, provider: Optional[RateProvider] = None,
                 refresh_seconds: int = DEFAULT_REFRESH_SECONDS,
                 fallback: RateTable = FALLBACK_RATES):
        """
        Initialize the service with the fallback table.

        Args:
            provider: Rate source; without one the fallback table is permanent
            refresh_seconds: Interval between refreshes in run()
            fallback: Table used until the first successful refresh
        """
        super().__init__()
        self.provider = provider
        self.refresh_seconds = refresh_seconds
        self._rates: RateTable = MappingProxyType(dict(fallback))
        self.state = RateState.LOADING
        self.last_updated: Optional[datetime] = None
        self.last_error: Optional[str] = None

    @property
    def rates(self) -> RateTable:
        return self._rates

    @property
    def loading(self) -> bool:
        return self.state == RateState.LOADING

    def refresh(self) -> bool:
        """
        Fetch fresh rates once and swap them in.

        Currencies missing from the response keep their previous value.
        Failures are logged, never raised.

        Returns:
            True if the table was refreshed, False if the previous table was kept
        """
        if self.provider is None:
            self.state = RateState.READY
            return False

        previous_state = self.state
        self.state = RateState.REFRESHING
        try:
            fetched = self.provider.usd_rates(list(CurrencyCode))
        except Exception as e:
            self.last_error = str(e)
            self.state = RateState.READY
            log.warning("Rate refresh failed, keeping previous table: %s", e)
            return False

        merged = dict(self._rates)
        merged.update({CurrencyCode(c): float(r) for c, r in fetched.items() if r and r > 0})
        merged[CurrencyCode.USD] = 1.0

        changed = merged != dict(self._rates)
        self._rates = MappingProxyType(merged)
        self.last_updated = datetime.now(timezone.utc)
        self.last_error = None
        self.state = RateState.READY
        log.info("Rates refreshed (was %s): %s", previous_state.value,
                 {c.value: r for c, r in merged.items()})

        if changed:
            self._notify(self)
        return True

    async def run(self, stop_event: Optional[asyncio.Event] = None) -> None:
        """
        Refresh on a fixed interval until stop_event is set.

        No backoff: a failed tick simply waits for the next one.
        """
        stop_event = stop_event or asyncio.Event()
        log.info("Rate refresh loop started (every %ss)", self.refresh_seconds)
        while not stop_event.is_set():
            self.refresh()
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self.refresh_seconds)
            except asyncio.TimeoutError:
                continue
        log.info("Rate refresh loop stopped")
