# src/socialprice/application/stores/base.py
"""
Entity Store Base - Load, Realtime Merge and Optimistic Writes

Every collection shown on the product page (votes, offers, opinions, owner
price history) is owned by one store. A store reconciles three sources of
truth into a single ordered in-memory list:

1. load(): a one-shot full query, replacing local state wholesale
2. apply_remote_event(): the realtime feed (at-least-once, unordered with
   respect to our own writes)
3. _submit(): locally originated writes, appended immediately as
   Pending(temp_id) and replaced in place by the stored row, keyed
   Confirmed(id), once the backend answers, or removed again if the write
   fails

Realtime INSERTs for an id that is already Confirmed locally are dropped,
and a confirmation that finds the same id already delivered by realtime
removes that duplicate, so both arrival orders converge to one entry.

Files that USE this module:
- socialprice.application.stores.votes (VoteStore)
- socialprice.application.stores.offers (OfferStore)
- socialprice.application.stores.opinions (OpinionStore)
- socialprice.application.stores.price_history (PriceHistoryStore)

Files that this module USES:
- socialprice.adapters.backend.base (BackendClient, RealtimeFeed, RealtimeEvent)
- socialprice.application.rates_service (read-only rate table)
- socialprice.domain.currency (convert)
- socialprice.domain.history (RunningAggregate)
- socialprice.shared.observable (listener registry)
"""
from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any, Generic, Iterable, Optional, TypeVar

from socialprice.adapters.backend.base import (
    INSERT,
    UPDATE,
    BackendClient,
    RealtimeEvent,
    RealtimeFeed,
    Row,
    Subscription,
)
from socialprice.application.rates_service import RatesService
from socialprice.domain.currency import convert
from socialprice.domain.errors import BackendError, SubmissionError
from socialprice.domain.history import RunningAggregate
from socialprice.domain.models import Confirmed, CurrencyCode, HistoryPoint, ItemKey, Money, Pending
from socialprice.shared.observable import Observable

log = logging.getLogger(__name__)

E = TypeVar("E")

_last_temp_id = 0


def next_temp_id() -> int:
    """Strictly increasing, clock-derived id for optimistic items."""
    global _last_temp_id
    candidate = time.time_ns() // 1000
    _last_temp_id = max(candidate, _last_temp_id + 1)
    return _last_temp_id


def parse_timestamp(value: Any) -> datetime:
    """
    Parse a backend timestamp (ISO string or datetime) into an aware datetime.
    Missing values fall back to the current UTC time.
    """
    if value is None or value == "":
        return datetime.now(timezone.utc)
    if isinstance(value, datetime):
        ts = value
    else:
        text = str(value)
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        ts = datetime.fromisoformat(text)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


class EntityStore(Observable["EntityStore"], Generic[E]):
    """
    Base class for one product-scoped, append-only entity collection.

    Subclasses define the table, row mapping and statistics.
    """

    table: str = ""
    order_column: str = "created_at"
    realtime_events: tuple[str, ...] = (INSERT,)

    def __init__(self, client: BackendClient, feed: RealtimeFeed, product_id: int,
                 rates: RatesService, display_currency: CurrencyCode = CurrencyCode.USD,
                 max_items: Optional[int] = None):
        super().__init__()
        self.client = client
        self.feed = feed
        self.product_id = product_id
        self.rates = rates
        self.display_currency = CurrencyCode(display_currency)
        self.max_items = max_items
        self.loaded = False
        self._items: list[E] = []
        self._history: Optional[RunningAggregate] = self._make_history()
        self._subscription: Optional[Subscription] = None
        self._rates_unsubscribe = None

    # --- subclass hooks ---

    def _from_row(self, row: Row) -> E:
        raise NotImplementedError

    def _to_row(self, item: E) -> Row:
        raise NotImplementedError

    def _value_of(self, item: E) -> Money:
        raise NotImplementedError

    def _timestamp_of(self, item: E) -> datetime:
        raise NotImplementedError

    def _make_history(self) -> Optional[RunningAggregate]:
        return None

    def _apply_update(self, row: Row) -> bool:
        return False

    def _query_rows(self) -> list[Row]:
        return self.client.select(
            self.table,
            filters={"product_id": self.product_id},
            order=self.order_column,
            ascending=True,
        )

    # --- read side ---

    @property
    def items(self) -> list[E]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def recent(self, limit: int = 15) -> list[E]:
        """Newest first."""
        return list(reversed(self._items))[:limit]

    @property
    def history(self) -> list[HistoryPoint]:
        return self._history.points if self._history is not None else []

    def to_display(self, money: Money) -> float:
        return convert(money.amount, money.currency, self.display_currency, self.rates.rates)

    def display_values(self) -> list[float]:
        return [self.to_display(self._value_of(item)) for item in self._items]

    def find(self, key: ItemKey) -> Optional[E]:
        for item in self._items:
            if item.key == key:
                return item
        return None

    def _index_of(self, key: ItemKey) -> Optional[int]:
        for i, item in enumerate(self._items):
            if item.key == key:
                return i
        return None

    # --- derived state ---

    def _rebuild_history(self) -> None:
        if self._history is None:
            return
        self._history.rebuild(
            (self._timestamp_of(item), self.to_display(self._value_of(item)))
            for item in self._items
        )

    def _changed(self) -> None:
        self._notify(self)

    def set_display_currency(self, currency: CurrencyCode) -> None:
        self.display_currency = CurrencyCode(currency)
        self._rebuild_history()
        self._changed()

    def _on_rates_changed(self, _rates: RatesService) -> None:
        self._rebuild_history()
        self._changed()

    # --- load ---

    def _map_rows(self, rows: Iterable[Row]) -> list[E]:
        items = []
        for row in rows:
            try:
                items.append(self._from_row(row))
            except (KeyError, TypeError, ValueError) as e:
                log.warning("Skipping malformed %s row %s: %s", self.table, row.get("id"), e)
        return items

    def load(self) -> bool:
        """
        Replace local state with the backend's current collection.

        Safe to call repeatedly. On failure prior state is kept.

        Returns:
            True if state was replaced, False if the query failed
        """
        try:
            rows = self._query_rows()
        except BackendError as e:
            log.error("Error loading %s for product %s: %s", self.table, self.product_id, e)
            return False

        self._items = self._map_rows(rows)
        self._trim()
        self._rebuild_history()
        self.loaded = True
        log.info("Loaded %d %s for product %s", len(self._items), self.table, self.product_id)
        self._changed()
        return True

    # --- realtime ---

    def apply_remote_event(self, event: RealtimeEvent) -> bool:
        """
        Merge one realtime change event.

        Returns:
            True if local state changed
        """
        row = event.new or {}
        if row.get("product_id", self.product_id) != self.product_id:
            return False

        event_type = event.event_type.upper()
        if event_type == INSERT:
            return self._apply_insert(row)
        if event_type == UPDATE:
            return self._apply_update(row)
        log.debug("Ignoring %s event on %s", event_type, self.table)
        return False

    def _apply_insert(self, row: Row) -> bool:
        if "id" not in row:
            log.warning("Realtime %s INSERT without id ignored", self.table)
            return False
        if self.find(Confirmed(row["id"])) is not None:
            log.debug("Realtime %s id=%s already present, ignoring", self.table, row["id"])
            return False
        try:
            item = self._from_row(row)
        except (KeyError, TypeError, ValueError) as e:
            log.warning("Malformed realtime %s row %s: %s", self.table, row.get("id"), e)
            return False

        self._append(item)
        log.info("Realtime %s id=%s merged", self.table, row["id"])
        return True

    def _append(self, item: E) -> None:
        self._items.append(item)
        trimmed = self._trim()
        if self._history is not None:
            if trimmed:
                self._rebuild_history()
            else:
                self._history.append(self._timestamp_of(item), self.to_display(self._value_of(item)))
        self._changed()

    def _trim(self) -> bool:
        if self.max_items is not None and len(self._items) > self.max_items:
            del self._items[: len(self._items) - self.max_items]
            return True
        return False

    # --- optimistic writes ---

    def _submit(self, item: E) -> E:
        """
        Append item optimistically, insert it, then reconcile it with the stored row.

        Raises:
            SubmissionError: If the insert failed (the item has been removed again)
        """
        pending_key = item.key
        self._append(item)
        log.debug("%s %s added optimistically", self.table, pending_key)

        try:
            row = self.client.insert(self.table, self._to_row(item))
        except BackendError as e:
            self._rollback(pending_key)
            log.error("Error saving %s, rolled back: %s", self.table, e)
            raise SubmissionError(f"Could not save to {self.table}: {e}") from e

        confirmed = self._reconcile(pending_key, row)
        log.info("%s saved with id=%s", self.table, row["id"])
        return confirmed if confirmed is not None else self._confirmed_from(item, row)

    def _rollback(self, key: ItemKey) -> None:
        idx = self._index_of(key)
        if idx is None:
            return
        del self._items[idx]
        self._rebuild_history()
        self._changed()

    def _confirmed_from(self, pending: E, row: Row) -> E:
        """The stored version of a pending item; backend values win over local ones."""
        if not row.get(self.order_column):
            return pending.confirm(row["id"])
        try:
            return self._from_row(row)
        except (KeyError, TypeError, ValueError) as e:
            log.warning("Stored %s row %s unreadable, keeping local values: %s", self.table, row.get("id"), e)
            return pending.confirm(row["id"])

    def _reconcile(self, pending_key: Pending, row: Row) -> Optional[E]:
        """
        Replace the Pending item with the stored row in the same position.

        If the realtime feed already delivered the same row, that copy is
        dropped so exactly one entry remains. History is rebuilt when the
        stored timestamp differs from the local one.
        """
        backend_id = row["id"]
        duplicate = self._index_of(Confirmed(backend_id))
        if duplicate is not None:
            del self._items[duplicate]
            log.debug("%s id=%s delivered twice, keeping optimistic slot", self.table, backend_id)

        idx = self._index_of(pending_key)
        if idx is None:
            # A full reload replaced state while the write was in flight
            if duplicate is not None:
                self._rebuild_history()
                self._changed()
            return None

        pending = self._items[idx]
        confirmed = self._confirmed_from(pending, row)
        self._items[idx] = confirmed
        if duplicate is not None or self._timestamp_of(confirmed) != self._timestamp_of(pending):
            self._rebuild_history()
        self._changed()
        return confirmed

    # --- lifecycle ---

    def start(self) -> None:
        """Load the collection and open the realtime subscription (once)."""
        self.load()
        if self._subscription is None or not self._subscription.active:
            self._subscription = self.feed.subscribe(
                self.table, self.product_id, self.apply_remote_event, events=self.realtime_events
            )
        if self._rates_unsubscribe is None:
            self._rates_unsubscribe = self.rates.subscribe(self._on_rates_changed)

    def stop(self) -> None:
        """Release the realtime subscription and rate listener."""
        if self._subscription is not None:
            self._subscription.close()
            self._subscription = None
        if self._rates_unsubscribe is not None:
            self._rates_unsubscribe()
            self._rates_unsubscribe = None

    @property
    def listening(self) -> bool:
        return self._subscription is not None and self._subscription.active

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, *exc) -> None:
        self.stop()
