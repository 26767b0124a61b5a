# src/socialprice/adapters/backend/base.py
"""
Backend Interfaces - Query Client and Realtime Feed Contracts

The hosted backend is an external collaborator reached through two seams:

- BackendClient: select / insert / update rows of a table
- RealtimeFeed: per-table change notifications filtered by product

Both are injected into every store, so stores can run against the real
HTTP client or against an in-memory fake in tests.

Files that USE this module:
- socialprice.adapters.backend.postgrest (PostgrestClient implements BackendClient)
- socialprice.adapters.backend.realtime (BroadcastFeed implements RealtimeFeed)
- socialprice.application.stores.* (stores depend on both interfaces)

Files that this module USES:
- None (pure interface definition)
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping, Optional

Row = dict[str, Any]

INSERT = "INSERT"
UPDATE = "UPDATE"


@dataclass(frozen=True)
class RealtimeEvent:
    """One change notification: the event type and the new row."""
    event_type: str
    new: Row = field(default_factory=dict)
    table: str = ""


class BackendClient(ABC):
    @abstractmethod
    def select(self, table: str, *, filters: Optional[Mapping[str, Any]] = None,
               order: Optional[str] = None, ascending: bool = True,
               limit: Optional[int] = None, columns: str = "*") -> list[Row]:
        """Return rows matching equality filters, optionally ordered and limited."""
        raise NotImplementedError

    @abstractmethod
    def insert(self, table: str, row: Mapping[str, Any]) -> Row:
        """Insert one row and return it as stored (with its backend id)."""
        raise NotImplementedError

    @abstractmethod
    def update(self, table: str, values: Mapping[str, Any], *,
               filters: Mapping[str, Any]) -> list[Row]:
        """Update matching rows and return them as stored."""
        raise NotImplementedError


class Subscription:
    """Handle for a live realtime subscription. close() is idempotent."""

    def __init__(self, on_close: Optional[Callable[[], None]] = None):
        self._on_close = on_close
        self.active = True

    def close(self) -> None:
        if not self.active:
            return
        self.active = False
        if self._on_close is not None:
            self._on_close()

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class RealtimeFeed(ABC):
    @abstractmethod
    def subscribe(self, table: str, product_id: int,
                  callback: Callable[[RealtimeEvent], None], *,
                  events: Iterable[str] = (INSERT,),
                  filter_column: str = "product_id") -> Subscription:
        """Deliver matching change events to callback until the subscription is closed."""
        raise NotImplementedError
