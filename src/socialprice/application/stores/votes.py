# src/socialprice/application/stores/votes.py
"""
Vote Store - Anonymous Price Votes and the Social Average

Votes are immutable price estimates. The store keeps them in creation order,
derives the social-sentiment average in the display currency and maintains
the running-average history series for the evolution chart.

Files that USE this module:
- socialprice.application.market_session (vote average feeds market stats)
- tests.test_stores (unit tests)

Files that this module USES:
- socialprice.application.stores.base (EntityStore)
- socialprice.domain.history (RunningAverage)
- socialprice.domain.models (Vote, VoteStats, Money)
"""
from __future__ import annotations

from datetime import datetime

from socialprice.adapters.backend.base import Row
from socialprice.application.stores.base import EntityStore, next_temp_id, now_utc, parse_timestamp
from socialprice.domain.history import DEFAULT_WINDOW, RunningAverage
from socialprice.domain.models import Confirmed, CurrencyCode, Money, Pending, Vote, VoteStats


class VoteStore(EntityStore[Vote]):
    table = "votes"
    order_column = "timestamp"

    def __init__(self, *args, history_window: int = DEFAULT_WINDOW, **kwargs):
        self.history_window = history_window
        super().__init__(*args, **kwargs)

    def _make_history(self) -> RunningAverage:
        return RunningAverage(window=self.history_window)

    def _from_row(self, row: Row) -> Vote:
        return Vote(
            key=Confirmed(row["id"]),
            value=Money(float(row["value"]), CurrencyCode(row["currency"])),
            timestamp=parse_timestamp(row.get("timestamp")),
        )

    def _to_row(self, item: Vote) -> Row:
        return {
            "product_id": self.product_id,
            "value": item.value.amount,
            "currency": item.value.currency.value,
        }

    def _value_of(self, item: Vote) -> Money:
        return item.value

    def _timestamp_of(self, item: Vote) -> datetime:
        return item.timestamp

    def submit(self, amount: float, currency: CurrencyCode) -> Vote:
        """
        Cast a vote. Appears locally at once, then is saved.

        Returns:
            The confirmed vote

        Raises:
            SubmissionError: If saving failed (the vote has been removed)
        """
        vote = Vote(
            key=Pending(next_temp_id()),
            value=Money(float(amount), CurrencyCode(currency)),
            timestamp=now_utc(),
        )
        return self._submit(vote)

    @property
    def stats(self) -> VoteStats:
        values = self.display_values()
        avg = sum(values) / len(values) if values else 0.0
        return VoteStats(total_votes=len(values), avg_sentiment=avg)
