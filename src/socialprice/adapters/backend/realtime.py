# src/socialprice/adapters/backend/realtime.py
"""
Broadcast Feed - In-process Fan-out of Realtime Change Events

The websocket transport of the hosted backend lives outside this package.
Whatever bridges it publishes each change into a BroadcastFeed, which hands
it to every live subscription whose table, event type and product filter
match. Delivery is at-least-once from the consumer's point of view, so
subscribers must be idempotent.

Files that USE this module:
- socialprice.app (shared feed handed to every store)
- tests.* (drives realtime events in store and session tests)

Files that this module USES:
- socialprice.adapters.backend.base (RealtimeFeed, RealtimeEvent, Subscription)
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable

from socialprice.adapters.backend.base import INSERT, RealtimeEvent, RealtimeFeed, Subscription

log = logging.getLogger(__name__)


@dataclass
class _Route:
    table: str
    product_id: int
    events: frozenset
    filter_column: str
    callback: Callable[[RealtimeEvent], None]
    subscription: Subscription


class BroadcastFeed(RealtimeFeed):
    def __init__(self) -> None:
        self._routes: list[_Route] = []

    def subscribe(self, table: str, product_id: int,
                  callback: Callable[[RealtimeEvent], None], *,
                  events: Iterable[str] = (INSERT,),
                  filter_column: str = "product_id") -> Subscription:
        route: _Route

        def release() -> None:
            if route in self._routes:
                self._routes.remove(route)
            log.info("Realtime %s subscription closed (product %s)", table, product_id)

        subscription = Subscription(on_close=release)
        route = _Route(
            table=table,
            product_id=product_id,
            events=frozenset(e.upper() for e in events),
            filter_column=filter_column,
            callback=callback,
            subscription=subscription,
        )
        self._routes.append(route)
        log.info("Realtime %s subscription open (product %s)", table, product_id)
        return subscription

    @property
    def subscription_count(self) -> int:
        return len(self._routes)

    def publish(self, table: str, event: RealtimeEvent) -> int:
        """
        Deliver one change event to every matching subscription.

        Returns:
            Number of subscribers the event was delivered to
        """
        delivered = 0
        for route in list(self._routes):
            if route.table != table or event.event_type.upper() not in route.events:
                continue
            if event.new.get(route.filter_column) != route.product_id:
                continue
            if not route.subscription.active:
                continue
            route.callback(event)
            delivered += 1
        return delivered
