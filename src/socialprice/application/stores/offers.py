# src/socialprice/application/stores/offers.py
"""
Offer Store - Formal Bids and the Best-Offer Curve

Offers carry a bidder name and a status (pending, accepted, rejected). Besides
the shared load/merge/submit behaviour, the store accepts realtime UPDATE
events that change an offer's status, and can change status itself with
optimistic rollback.

Accepting one offer does not reject the others. While an offer is accepted,
the remaining pending offers are only displayed as "superseded".

Files that USE this module:
- socialprice.application.market_session (best/average offer, accept flow)
- tests.test_stores (unit tests)

Files that this module USES:
- socialprice.application.stores.base (EntityStore)
- socialprice.domain.history (RunningMaximum)
- socialprice.domain.models (Offer, OfferStats, OfferStatus, Money)
"""
from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Optional

from socialprice.adapters.backend.base import INSERT, UPDATE, Row
from socialprice.application.stores.base import EntityStore, next_temp_id, now_utc, parse_timestamp
from socialprice.domain.errors import BackendError, InvalidTransitionError, SubmissionError
from socialprice.domain.history import DEFAULT_WINDOW, RunningMaximum
from socialprice.domain.models import Confirmed, CurrencyCode, Money, Offer, OfferStats, OfferStatus, Pending

log = logging.getLogger(__name__)

SUPERSEDED = "superseded"

# pending -> accepted | rejected; nothing else
_ALLOWED = {
    OfferStatus.PENDING: {OfferStatus.ACCEPTED, OfferStatus.REJECTED},
    OfferStatus.ACCEPTED: set(),
    OfferStatus.REJECTED: set(),
}


class OfferStore(EntityStore[Offer]):
    table = "offers"
    order_column = "created_at"
    realtime_events = (INSERT, UPDATE)

    def __init__(self, *args, history_window: int = DEFAULT_WINDOW, **kwargs):
        self.history_window = history_window
        super().__init__(*args, **kwargs)

    def _make_history(self) -> RunningMaximum:
        return RunningMaximum(window=self.history_window)

    def _from_row(self, row: Row) -> Offer:
        return Offer(
            key=Confirmed(row["id"]),
            bidder=row.get("bidder_name") or "",
            value=Money(float(row["amount"]), CurrencyCode(row["currency"])),
            status=OfferStatus(row.get("status") or OfferStatus.PENDING.value),
            created_at=parse_timestamp(row.get("created_at")),
        )

    def _to_row(self, item: Offer) -> Row:
        return {
            "product_id": self.product_id,
            "bidder_name": item.bidder,
            "amount": item.value.amount,
            "currency": item.value.currency.value,
        }

    def _value_of(self, item: Offer) -> Money:
        return item.value

    def _timestamp_of(self, item: Offer) -> datetime:
        return item.created_at

    def submit(self, bidder: str, amount: float, currency: CurrencyCode) -> Offer:
        """
        Place an offer. Appears locally at once as pending, then is saved.

        Raises:
            SubmissionError: If saving failed (the offer has been removed)
        """
        offer = Offer(
            key=Pending(next_temp_id()),
            bidder=bidder,
            value=Money(float(amount), CurrencyCode(currency)),
            status=OfferStatus.PENDING,
            created_at=now_utc(),
        )
        return self._submit(offer)

    # --- status changes ---

    def _replace_status(self, offer_id: int, status: OfferStatus) -> Optional[Offer]:
        idx = self._index_of(Confirmed(offer_id))
        if idx is None:
            return None
        previous = self._items[idx]
        self._items[idx] = replace(previous, status=status)
        self._changed()
        return previous

    def _apply_update(self, row: Row) -> bool:
        try:
            status = OfferStatus(row.get("status"))
        except ValueError:
            log.warning("Realtime offer id=%s has unknown status %r", row.get("id"), row.get("status"))
            return False
        current = self.find(Confirmed(row.get("id")))
        if current is None or current.status == status:
            return False
        self._replace_status(row["id"], status)
        log.info("Realtime offer id=%s status -> %s", row["id"], status.value)
        return True

    def set_status(self, offer_id: int, status: OfferStatus) -> Offer:
        """
        Move a confirmed offer from pending to accepted or rejected.

        Applied locally first; reverted if the backend update fails.

        Raises:
            InvalidTransitionError: If the offer is unknown, unconfirmed or not pending
            SubmissionError: If the backend update failed
        """
        status = OfferStatus(status)
        current = self.find(Confirmed(offer_id))
        if current is None:
            raise InvalidTransitionError(f"Offer {offer_id} is not a confirmed offer")
        if status not in _ALLOWED[current.status]:
            raise InvalidTransitionError(
                f"Offer {offer_id} cannot move from {current.status.value} to {status.value}"
            )

        self._replace_status(offer_id, status)
        try:
            self.client.update(self.table, {"status": status.value}, filters={"id": offer_id})
        except BackendError as e:
            self._replace_status(offer_id, current.status)
            log.error("Error updating offer %s status: %s", offer_id, e)
            raise SubmissionError(f"Could not update offer {offer_id}: {e}") from e

        log.info("Offer %s marked %s", offer_id, status.value)
        return self.find(Confirmed(offer_id))

    def accept(self, offer_id: int) -> Offer:
        return self.set_status(offer_id, OfferStatus.ACCEPTED)

    def reject(self, offer_id: int) -> Offer:
        return self.set_status(offer_id, OfferStatus.REJECTED)

    def withdraw_acceptance(self, offer_id: int) -> Offer:
        """
        Return an accepted offer to pending when the sale it started could not close.

        Raises:
            InvalidTransitionError: If the offer is not a confirmed, accepted offer
            SubmissionError: If the backend update failed (the offer stays accepted)
        """
        current = self.find(Confirmed(offer_id))
        if current is None or current.status != OfferStatus.ACCEPTED:
            raise InvalidTransitionError(f"Offer {offer_id} is not an accepted offer")

        self._replace_status(offer_id, OfferStatus.PENDING)
        try:
            self.client.update(self.table, {"status": OfferStatus.PENDING.value}, filters={"id": offer_id})
        except BackendError as e:
            self._replace_status(offer_id, OfferStatus.ACCEPTED)
            log.error("Error withdrawing acceptance of offer %s: %s", offer_id, e)
            raise SubmissionError(f"Could not reopen offer {offer_id}: {e}") from e

        log.info("Offer %s back to pending", offer_id)
        return self.find(Confirmed(offer_id))

    # --- read side ---

    @property
    def accepted_offer(self) -> Optional[Offer]:
        for offer in self._items:
            if offer.status == OfferStatus.ACCEPTED:
                return offer
        return None

    def display_status(self, offer: Offer) -> str:
        """Status label for the offer list; pending offers lose to an accepted one."""
        if offer.status == OfferStatus.PENDING and self.accepted_offer is not None:
            return SUPERSEDED
        return offer.status.value

    def listing(self) -> list[Offer]:
        """Accepted offer first, then newest first."""
        newest = list(reversed(self._items))
        return sorted(newest, key=lambda o: o.status != OfferStatus.ACCEPTED)

    @property
    def stats(self) -> OfferStats:
        values = self.display_values()
        return OfferStats(
            total_offers=len(values),
            max_offer=max(values) if values else 0.0,
            avg_offer=sum(values) / len(values) if values else 0.0,
            pending_count=sum(1 for o in self._items if o.status == OfferStatus.PENDING),
            accepted_offer=self.accepted_offer,
        )
