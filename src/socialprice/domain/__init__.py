# src/socialprice/domain/__init__.py
"""
Domain Layer - Pure Business Objects

This package contains domain models and business rules.
No dependencies on infrastructure or external systems.
"""

from socialprice.domain.models import (
    Confirmed,
    CurrencyCode,
    HistoryPoint,
    MarketStats,
    Money,
    Offer,
    OfferStatus,
    Opinion,
    Pending,
    PricePoint,
    Product,
    ProductStatus,
    Seller,
    Sentiment,
    Vote,
)
from socialprice.domain.errors import (
    BackendError,
    DomainError,
    InvalidTransitionError,
    ProviderUnavailableError,
    SubmissionError,
    ValidationError,
)

__all__ = [
    "CurrencyCode",
    "Money",
    "Pending",
    "Confirmed",
    "Vote",
    "Offer",
    "OfferStatus",
    "Opinion",
    "Sentiment",
    "Product",
    "ProductStatus",
    "Seller",
    "PricePoint",
    "HistoryPoint",
    "MarketStats",
    "DomainError",
    "BackendError",
    "SubmissionError",
    "InvalidTransitionError",
    "ProviderUnavailableError",
    "ValidationError",
]
