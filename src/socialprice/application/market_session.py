# src/socialprice/application/market_session.py
"""
Market Session - One Product Page Wired End to End

Composes the rate table, the product and the vote / offer / opinion /
price-history stores for a single product, recomputes MarketStats whenever
any of them changes, and exposes the user intents of the page:

- submit_vote, submit_offer, submit_opinion (validated before any I/O)
- save_product (save, reload votes and offers, record the new base price)
- accept_offer (accept the offer, then sell the product at its amount)
- toggle_lock, set_display_currency

Validation failures come back as ValidationResult(valid=False) without
touching the network. Write failures raise SubmissionError after the
stores have rolled back.

Files that USE this module:
- socialprice.app (composition root)
- tests.test_market_session (end-to-end scenarios)

Files that this module USES:
- socialprice.application.stores.* (all entity stores)
- socialprice.application.rates_service (RatesService)
- socialprice.domain.market (compute_market_stats)
- socialprice.shared.validators (triple limit and required fields)
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from socialprice.adapters.backend.base import BackendClient, RealtimeFeed
from socialprice.application.rates_service import RatesService
from socialprice.application.stores.offers import OfferStore
from socialprice.application.stores.opinions import OpinionStore
from socialprice.application.stores.price_history import DEFAULT_LIMIT, PriceHistoryStore
from socialprice.application.stores.product import ProductStore
from socialprice.application.stores.votes import VoteStore
from socialprice.domain.errors import InvalidTransitionError, SubmissionError
from socialprice.domain.history import DEFAULT_WINDOW
from socialprice.domain.market import compute_market_stats
from socialprice.domain.models import (
    Confirmed,
    CurrencyCode,
    MarketStats,
    Money,
    Offer,
    OfferStatus,
    Product,
    ProductStatus,
)
from socialprice.domain.sentiment import SentimentClassifier
from socialprice.shared.observable import Observable
from socialprice.shared.validators import (
    TRIPLE_LIMIT_FACTOR,
    VALID,
    ValidationResult,
    sanitize_user_input,
    validate_positive_number,
    validate_required,
    validate_triple_limit,
)

log = logging.getLogger(__name__)


class MarketSession(Observable[MarketStats]):
    """Live product page: stores, rates and derived market statistics."""

    def __init__(self, client: BackendClient, feed: RealtimeFeed, product_id: int,
                 rates: RatesService, display_currency: CurrencyCode = CurrencyCode.USD,
                 classifier: Optional[SentimentClassifier] = None,
                 history_window: int = DEFAULT_WINDOW,
                 price_history_limit: int = DEFAULT_LIMIT,
                 triple_limit_factor: float = TRIPLE_LIMIT_FACTOR,
                 placeholder: Optional[Product] = None):
        super().__init__()
        self.product_id = product_id
        self.rates = rates
        self.display_currency = CurrencyCode(display_currency)
        self.triple_limit_factor = triple_limit_factor

        common = dict(display_currency=self.display_currency)
        self.product_store = ProductStore(client, feed, product_id, rates, placeholder=placeholder)
        self.votes = VoteStore(client, feed, product_id, rates, history_window=history_window, **common)
        self.offers = OfferStore(client, feed, product_id, rates, history_window=history_window, **common)
        self.opinions = OpinionStore(client, feed, product_id, rates, classifier=classifier, **common)
        self.price_history = PriceHistoryStore(client, feed, product_id, rates,
                                               limit=price_history_limit, **common)

        self._unsubscribers: list[Callable[[], None]] = []
        self._stats = self._compute()
        self.is_open = False

    # --- derived stats ---

    @property
    def product(self) -> Product:
        return self.product_store.product

    @property
    def stats(self) -> MarketStats:
        return self._stats

    def _compute(self) -> MarketStats:
        vote_stats = self.votes.stats
        offer_stats = self.offers.stats
        return compute_market_stats(
            owner_price_in_main=self.product_store.owner_price_in(self.display_currency),
            avg_sentiment=vote_stats.avg_sentiment,
            max_offer=offer_stats.max_offer,
            avg_offer=offer_stats.avg_offer,
        )

    def _recompute(self, *_: Any) -> None:
        self._stats = self._compute()
        self._notify(self._stats)

    # --- lifecycle ---

    def _entity_stores(self):
        return (self.votes, self.offers, self.opinions, self.price_history)

    def open(self) -> "MarketSession":
        """Load everything, subscribe to realtime and start recomputing stats."""
        if self.is_open:
            return self
        self.product_store.start()
        for store in self._entity_stores():
            store.start()
        self._unsubscribers = [self.product_store.subscribe(self._recompute)]
        self._unsubscribers += [store.subscribe(self._recompute) for store in self._entity_stores()]
        self._unsubscribers.append(self.rates.subscribe(self._recompute))
        self.is_open = True
        self._recompute()
        log.info("Market session open for product %s (%s)", self.product_id, self.display_currency.value)
        return self

    def close(self) -> None:
        """Release every subscription. Safe to call twice."""
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
        for store in self._entity_stores():
            store.stop()
        self.product_store.stop()
        if self.is_open:
            log.info("Market session closed for product %s", self.product_id)
        self.is_open = False

    def __enter__(self) -> "MarketSession":
        return self.open()

    def __exit__(self, *exc) -> None:
        self.close()

    def set_display_currency(self, currency: CurrencyCode) -> None:
        self.display_currency = CurrencyCode(currency)
        for store in self._entity_stores():
            store.set_display_currency(self.display_currency)
        self._recompute()

    # --- validation ---

    def validate_amount(self, amount: float, currency: CurrencyCode) -> ValidationResult:
        """Positive-number and triple-limit check against the current base price."""
        if not validate_positive_number(amount):
            return ValidationResult(valid=False, message="Amount must be greater than zero")
        base = self.product.owner_price
        return validate_triple_limit(
            amount, CurrencyCode(currency), base.amount, base.currency,
            self.rates.rates, self.triple_limit_factor,
        )

    # --- intents ---

    def submit_vote(self, amount: float, currency: CurrencyCode) -> ValidationResult:
        result = self.validate_amount(amount, currency)
        if not result.valid:
            log.info("Vote rejected: %s", result.message)
            return result
        self.votes.submit(amount, currency)
        return VALID

    def submit_offer(self, bidder: str, amount: float, currency: CurrencyCode) -> ValidationResult:
        if self.product.status != ProductStatus.OPEN:
            return ValidationResult(valid=False, message=f"Negotiation is {self.product.status.value}")
        bidder = sanitize_user_input(bidder, max_length=120)
        error = validate_required(bidder, "Bidder name")
        if error:
            return ValidationResult(valid=False, message=error)
        result = self.validate_amount(amount, currency)
        if not result.valid:
            log.info("Offer rejected: %s", result.message)
            return result
        self.offers.submit(bidder, amount, currency)
        return VALID

    def submit_opinion(self, author: str, content: str, amount: float,
                       currency: CurrencyCode) -> ValidationResult:
        content = sanitize_user_input(content)
        error = validate_required(content, "Opinion")
        if error:
            return ValidationResult(valid=False, message=error)
        result = self.validate_amount(amount, currency)
        if not result.valid:
            return result
        self.opinions.submit(sanitize_user_input(author, max_length=120), content, amount, currency)
        return VALID

    def save_product(self, **updates: Any) -> Product:
        """
        Save owner edits, then refresh votes and offers and record the base price.

        Raises:
            SubmissionError: If the product save or the price point failed
        """
        product = self.product_store.save(**updates)
        self.votes.load()
        self.offers.load()
        if "owner_price" in updates:
            price = product.owner_price
            self.price_history.add_price_point(price.amount, price.currency)
        return product

    def toggle_lock(self) -> Product:
        return self.product_store.toggle_lock()

    def accept_offer(self, offer_id: int) -> Offer:
        """
        Accept an offer and close the sale at its amount. Irreversible.

        Other pending offers are left untouched and shown as superseded.
        If the sale cannot be recorded the offer goes back to pending; an
        offer left accepted by an earlier failed attempt only completes the
        sale.

        Raises:
            InvalidTransitionError: If the product is sold or the offer cannot be accepted
            SubmissionError: If a backend update failed
        """
        if self.product.status == ProductStatus.SOLD:
            raise InvalidTransitionError(f"Product {self.product_id} is already sold")

        offer = self.offers.find(Confirmed(offer_id))
        if offer is not None and offer.status == OfferStatus.ACCEPTED:
            log.info("Offer %s already accepted, completing the sale", offer_id)
        else:
            offer = self.offers.accept(offer_id)

        try:
            self.product_store.sell(Money(offer.value.amount, offer.value.currency))
        except SubmissionError:
            try:
                self.offers.withdraw_acceptance(offer_id)
            except SubmissionError as e:
                log.error("Offer %s stays accepted after the failed sale: %s", offer_id, e)
            raise

        log.info("Offer %s accepted, product %s sold", offer_id, self.product_id)
        return offer
