# src/socialprice/domain/models.py
"""
Domain Models - Pure Business Objects

This module contains domain models representing core marketplace concepts:
- Money and currency codes
- Votes, offers, opinions and the product they target
- Chart history points and derived market statistics
- Item keys tracking optimistic (pending) vs backend-confirmed items

Files that USE this module:
- socialprice.application.* (stores and session build and hold these models)
- socialprice.adapters.* (backend rows are mapped into these models)
- tests.* (tests use domain models for test data)

Files that this module USES:
- None (pure domain layer, no external dependencies)
"""

from __future__ import annotations  # Enable postponed evaluation of annotations

from dataclasses import dataclass, field, replace  # Data classes for immutable value objects
from datetime import datetime  # Timestamps for votes, offers and opinions
from enum import Enum  # Closed sets of codes and states
from typing import Optional, Union  # Type hints for optional values and tagged unions


class CurrencyCode(str, Enum):
    """Supported display and input currencies."""
    USD = "USD"
    COP = "COP"
    MXN = "MXN"


class OfferStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class ProductStatus(str, Enum):
    OPEN = "open"
    LOCKED = "locked"
    SOLD = "sold"


class Sentiment(str, Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


@dataclass(frozen=True)
class Money:
    """An amount in a specific currency. Never compared across currencies directly."""
    amount: float
    currency: CurrencyCode


# --- Item keys ---
# A locally submitted item starts as Pending and becomes Confirmed once the
# backend returns its row id. Backend ids and temporary ids never share a
# namespace because the tag differs.

@dataclass(frozen=True)
class Pending:
    temp_id: int


@dataclass(frozen=True)
class Confirmed:
    id: int


ItemKey = Union[Pending, Confirmed]


class _Keyed:
    """Mixin for entities identified by an ItemKey."""

    key: ItemKey

    @property
    def id(self) -> int:
        if isinstance(self.key, Confirmed):
            return self.key.id
        return self.key.temp_id

    @property
    def is_pending(self) -> bool:
        return isinstance(self.key, Pending)

    def confirm(self, backend_id: int):
        """Return a copy of this item keyed by the backend-assigned id."""
        return replace(self, key=Confirmed(backend_id))


@dataclass(frozen=True)
class Vote(_Keyed):
    key: ItemKey
    value: Money
    timestamp: datetime


@dataclass(frozen=True)
class Offer(_Keyed):
    key: ItemKey
    bidder: str
    value: Money
    status: OfferStatus
    created_at: datetime

    @property
    def date(self) -> str:
        """Short display date, e.g. '23/01/2026'."""
        return self.created_at.strftime("%d/%m/%Y")


@dataclass(frozen=True)
class Opinion(_Keyed):
    key: ItemKey
    author: str
    content: str
    value: Money
    sentiment: Sentiment
    timestamp: datetime


@dataclass(frozen=True)
class PricePoint(_Keyed):
    """One row of the owner's base price history."""
    key: ItemKey
    price: Money
    created_at: datetime


@dataclass(frozen=True)
class Seller:
    name: str
    avatar: str = ""
    level: str = ""
    verified: bool = False


@dataclass(frozen=True)
class Product:
    """
    The single product being priced.

    Attributes:
        id: Backend product id
        name: Display name
        description: Short description
        content: Long-form content (markdown, rendered by the UI)
        owner_price: Base price set by the seller
        status: open, locked or sold
        final_price: Sale price once sold, otherwise None
        images: Image URLs
        video_url: Optional video URL
        seller: Owning seller
    """
    id: int
    name: str
    owner_price: Money
    description: str = ""
    content: str = ""
    status: ProductStatus = ProductStatus.OPEN
    final_price: Optional[Money] = None
    images: tuple[str, ...] = field(default_factory=tuple)
    video_url: str = ""
    seller: Seller = field(default_factory=lambda: Seller(name=""))


@dataclass(frozen=True)
class HistoryPoint:
    """One chart sample in the display currency at minute resolution."""
    value: float
    time: str  # "HH:MM"
    date: str  # "DD/MM"


@dataclass(frozen=True)
class VoteStats:
    total_votes: int = 0
    avg_sentiment: float = 0.0


@dataclass(frozen=True)
class OfferStats:
    total_offers: int = 0
    max_offer: float = 0.0
    avg_offer: float = 0.0
    pending_count: int = 0
    accepted_offer: Optional[Offer] = None


@dataclass(frozen=True)
class OpinionStats:
    total: int = 0
    positive: int = 0
    neutral: int = 0
    negative: int = 0
    avg_value: float = 0.0


@dataclass(frozen=True)
class MarketStats:
    """
    Market intelligence derived from product, votes and offers.

    Attributes:
        owner_price_in_main: Owner base price in the display currency
        avg_sentiment: Average vote value in the display currency
        max_offer: Highest offer in the display currency
        avg_offer: Average offer in the display currency
        market_premium: % by which the vote average exceeds the owner price
        convergence_index: 0-100 closeness of votes to offers (or owner price)
        inflation_risk: Highest offer relative to owner price (3x ~ 100)
    """
    owner_price_in_main: float
    avg_sentiment: float
    max_offer: float
    avg_offer: float
    market_premium: float
    convergence_index: float
    inflation_risk: float
