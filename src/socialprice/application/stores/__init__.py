# src/socialprice/application/stores/__init__.py
"""
Entity Stores - One Store per Backend Collection

Each store owns one collection of the product page and merges the initial
load, realtime events and optimistic local writes into it.
"""

from socialprice.application.stores.base import EntityStore
from socialprice.application.stores.offers import OfferStore
from socialprice.application.stores.opinions import OpinionStore
from socialprice.application.stores.price_history import PriceHistoryStore
from socialprice.application.stores.product import ProductStore
from socialprice.application.stores.votes import VoteStore

__all__ = [
    "EntityStore",
    "VoteStore",
    "OfferStore",
    "OpinionStore",
    "PriceHistoryStore",
    "ProductStore",
]
