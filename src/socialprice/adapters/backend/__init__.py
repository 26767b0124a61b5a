# src/socialprice/adapters/backend/__init__.py
"""
Backend Adapters - Hosted Database and Realtime Feed

This package contains the query client and realtime feed used by the stores.
"""

from socialprice.adapters.backend.base import (
    INSERT,
    UPDATE,
    BackendClient,
    RealtimeEvent,
    RealtimeFeed,
    Subscription,
)
from socialprice.adapters.backend.postgrest import PostgrestClient
from socialprice.adapters.backend.realtime import BroadcastFeed

__all__ = [
    "INSERT",
    "UPDATE",
    "BackendClient",
    "RealtimeEvent",
    "RealtimeFeed",
    "Subscription",
    "PostgrestClient",
    "BroadcastFeed",
]
