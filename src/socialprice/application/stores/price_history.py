# src/socialprice/application/stores/price_history.py
"""
Price History Store - Persisted Owner Base Price Series

Every time the owner saves a new base price a row is appended to
price_history. The store keeps the most recent rows (50 by default) and
exposes them as chart points in the display currency.

Files that USE this module:
- socialprice.application.market_session (appends a point on product save)
- tests.test_stores (unit tests)

Files that this module USES:
- socialprice.application.stores.base (EntityStore)
- socialprice.domain.history (point_labels)
"""
from __future__ import annotations

from datetime import datetime

from socialprice.adapters.backend.base import Row
from socialprice.application.stores.base import EntityStore, next_temp_id, now_utc, parse_timestamp
from socialprice.domain.history import bucket_key, point_labels
from socialprice.domain.models import Confirmed, CurrencyCode, HistoryPoint, Money, Pending, PricePoint

DEFAULT_LIMIT = 50


class PriceHistoryStore(EntityStore[PricePoint]):
    table = "price_history"
    order_column = "created_at"

    def __init__(self, *args, limit: int = DEFAULT_LIMIT, **kwargs):
        kwargs.setdefault("max_items", limit)
        super().__init__(*args, **kwargs)
        self.limit = limit

    def _query_rows(self) -> list[Row]:
        # newest `limit` rows, returned oldest first
        rows = self.client.select(
            self.table,
            filters={"product_id": self.product_id},
            order=self.order_column,
            ascending=False,
            limit=self.limit,
        )
        return list(reversed(rows))

    def _from_row(self, row: Row) -> PricePoint:
        return PricePoint(
            key=Confirmed(row["id"]),
            price=Money(float(row["price"]), CurrencyCode(row["currency"])),
            created_at=parse_timestamp(row.get("created_at")),
        )

    def _to_row(self, item: PricePoint) -> Row:
        return {
            "product_id": self.product_id,
            "price": item.price.amount,
            "currency": item.price.currency.value,
        }

    def _value_of(self, item: PricePoint) -> Money:
        return item.price

    def _timestamp_of(self, item: PricePoint) -> datetime:
        return item.created_at

    def add_price_point(self, price: float, currency: CurrencyCode) -> PricePoint:
        """
        Record a new owner base price.

        Raises:
            SubmissionError: If saving failed (the point has been removed)
        """
        point = PricePoint(
            key=Pending(next_temp_id()),
            price=Money(float(price), CurrencyCode(currency)),
            created_at=now_utc(),
        )
        return self._submit(point)

    @property
    def history(self) -> list[HistoryPoint]:
        points = []
        for item in self._items:
            time_label, date_label = point_labels(bucket_key(item.created_at))
            points.append(HistoryPoint(value=self.to_display(item.price), time=time_label, date=date_label))
        return points
