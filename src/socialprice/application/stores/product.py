# src/socialprice/application/stores/product.py
"""
Product Store - The Listed Product and its Sale Lifecycle

Holds the single product of the page, joined with its seller. Status moves
open <-> locked at the owner's will, and open|locked -> sold (terminal) when
an offer is accepted. Saving the edit form re-opens the product and clears
any final price.

All writes are applied locally first and reverted if the backend update
fails. Remote updates trigger a full reload so the seller join stays fresh.

Files that USE this module:
- socialprice.application.market_session (owner price, save/lock/sell flows)
- tests.test_product_store (unit tests)

Files that this module USES:
- socialprice.adapters.backend.base (BackendClient, RealtimeFeed)
- socialprice.application.rates_service (owner price conversion)
- socialprice.domain.currency (convert)
- socialprice.shared.observable (listener registry)
"""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Optional

from socialprice.adapters.backend.base import UPDATE, BackendClient, RealtimeEvent, RealtimeFeed, Row, Subscription
from socialprice.application.rates_service import RatesService
from socialprice.domain.currency import convert
from socialprice.domain.errors import BackendError, InvalidTransitionError, SubmissionError, ValidationError
from socialprice.domain.models import CurrencyCode, Money, Product, ProductStatus, Seller
from socialprice.shared.observable import Observable
from socialprice.shared.validators import validate_positive_number

log = logging.getLogger(__name__)

EDITABLE_FIELDS = ("name", "description", "content", "owner_price", "images", "video_url")


def _seller_from(data: Any) -> Seller:
    if isinstance(data, list):
        data = data[0] if data else None
    if not isinstance(data, dict):
        return Seller(name="")
    return Seller(
        name=data.get("name") or "",
        avatar=data.get("avatar") or "",
        level=data.get("level") or "",
        verified=bool(data.get("verified")),
    )


def product_from_row(row: Row) -> Product:
    """Map a products row (with optional `sellers` join) to a Product."""
    final_price = None
    if row.get("final_price") is not None:
        final_price = Money(
            float(row["final_price"]),
            CurrencyCode(row.get("final_currency") or row["owner_currency"]),
        )
    return Product(
        id=row["id"],
        name=row.get("name") or "",
        description=row.get("description") or "",
        content=row.get("content") or "",
        owner_price=Money(float(row["owner_price"]), CurrencyCode(row["owner_currency"])),
        status=ProductStatus(row.get("status") or ProductStatus.OPEN.value),
        final_price=final_price,
        images=tuple(row.get("images") or ()),
        video_url=row.get("video_url") or "",
        seller=_seller_from(row.get("sellers")),
    )


def placeholder_product(product_id: int, currency: CurrencyCode = CurrencyCode.USD) -> Product:
    """Stand-in shown until the first load succeeds."""
    return Product(id=product_id, name="", owner_price=Money(0.0, CurrencyCode(currency)))


class ProductStore(Observable["ProductStore"]):
    table = "products"

    def __init__(self, client: BackendClient, feed: RealtimeFeed, product_id: int,
                 rates: RatesService, placeholder: Optional[Product] = None):
        super().__init__()
        self.client = client
        self.feed = feed
        self.product_id = product_id
        self.rates = rates
        self.loaded = False
        self._product = placeholder or placeholder_product(product_id)
        self._subscription: Optional[Subscription] = None

    @property
    def product(self) -> Product:
        return self._product

    def owner_price_in(self, currency: CurrencyCode) -> float:
        price = self._product.owner_price
        return convert(price.amount, price.currency, CurrencyCode(currency), self.rates.rates)

    def _set(self, product: Product) -> None:
        self._product = product
        self._notify(self)

    def load(self) -> bool:
        """
        Fetch the product joined with its seller.

        Returns:
            True if the product was replaced, False on failure or if missing
        """
        try:
            rows = self.client.select(
                self.table, filters={"id": self.product_id}, columns="*,sellers(*)", limit=1
            )
        except BackendError as e:
            log.error("Error loading product %s: %s", self.product_id, e)
            return False
        if not rows:
            log.warning("Product %s not found", self.product_id)
            return False
        try:
            product = product_from_row(rows[0])
        except (KeyError, TypeError, ValueError) as e:
            log.error("Malformed product row %s: %s", self.product_id, e)
            return False

        self.loaded = True
        self._set(product)
        log.info("Product %s loaded: %s (%s)", product.id, product.name, product.status.value)
        return True

    def _write(self, updated: Product, values: Row, action: str) -> Product:
        previous = self._product
        self._set(updated)
        try:
            self.client.update(self.table, values, filters={"id": self.product_id})
        except BackendError as e:
            self._set(previous)
            log.error("Error %s product %s, rolled back: %s", action, self.product_id, e)
            raise SubmissionError(f"Could not {action} product {self.product_id}: {e}") from e
        return updated

    def _owner_price_from(self, value: Any) -> Money:
        if isinstance(value, Money):
            price = value
        elif isinstance(value, bool) or not isinstance(value, (int, float, str)):
            raise ValidationError(f"Owner price must be Money or a number, got {type(value).__name__}")
        else:
            try:
                price = Money(float(value), self._product.owner_price.currency)
            except ValueError as e:
                raise ValidationError(f"Owner price is not a number: {value!r}") from e
        if not validate_positive_number(price.amount):
            raise ValidationError("Owner price must be greater than zero")
        return price

    def save(self, **updates: Any) -> Product:
        """
        Save owner edits. The product is re-opened and its final price cleared.

        Args:
            **updates: Any of name, description, content, owner_price, images,
                       video_url. owner_price is Money, or a plain number kept
                       in the product's current currency.

        Raises:
            ValidationError: If an unknown field or an invalid owner price is passed
            SubmissionError: If the backend update failed (local state reverted)
        """
        unknown = set(updates) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Cannot edit product fields: {sorted(unknown)}")
        if "images" in updates:
            updates["images"] = tuple(updates["images"])
        if "owner_price" in updates:
            updates["owner_price"] = self._owner_price_from(updates["owner_price"])

        updated = replace(self._product, **updates, status=ProductStatus.OPEN, final_price=None)
        values = {
            "name": updated.name,
            "description": updated.description,
            "content": updated.content,
            "owner_price": updated.owner_price.amount,
            "owner_currency": updated.owner_price.currency.value,
            "images": list(updated.images),
            "video_url": updated.video_url,
            "status": ProductStatus.OPEN.value,
            "final_price": None,
        }
        return self._write(updated, values, "save")

    def toggle_lock(self) -> Product:
        """
        Switch between open and locked.

        Raises:
            InvalidTransitionError: If the product is already sold
            SubmissionError: If the backend update failed
        """
        current = self._product.status
        if current == ProductStatus.SOLD:
            raise InvalidTransitionError("A sold product cannot be locked or reopened")
        new_status = ProductStatus.LOCKED if current == ProductStatus.OPEN else ProductStatus.OPEN
        return self._write(
            replace(self._product, status=new_status), {"status": new_status.value}, "lock"
        )

    def sell(self, final_price: Money) -> Product:
        """
        Mark the product sold at final_price. Terminal.

        Raises:
            InvalidTransitionError: If the product is already sold
            SubmissionError: If the backend update failed
        """
        if self._product.status == ProductStatus.SOLD:
            raise InvalidTransitionError(f"Product {self.product_id} is already sold")
        return self._write(
            replace(self._product, status=ProductStatus.SOLD, final_price=final_price),
            {
                "status": ProductStatus.SOLD.value,
                "final_price": final_price.amount,
                "final_currency": final_price.currency.value,
            },
            "sell",
        )

    def apply_remote_event(self, event: RealtimeEvent) -> bool:
        if event.new.get("id", self.product_id) != self.product_id:
            return False
        log.info("Product %s changed remotely, reloading", self.product_id)
        return self.load()

    def start(self) -> None:
        self.load()
        if self._subscription is None or not self._subscription.active:
            self._subscription = self.feed.subscribe(
                self.table, self.product_id, self.apply_remote_event,
                events=(UPDATE,), filter_column="id",
            )

    def stop(self) -> None:
        if self._subscription is not None:
            self._subscription.close()
            self._subscription = None

    @property
    def listening(self) -> bool:
        return self._subscription is not None and self._subscription.active

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, *exc) -> None:
        self.stop()
