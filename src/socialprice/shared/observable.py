# src/socialprice/shared/observable.py
"""
Observable - Listener Registry for Stores and Services

Stores and services keep their state private and announce changes to
registered listeners. subscribe() returns a callable that removes the
listener again. A failing listener is logged and does not stop the others.

Files that USE this module:
- socialprice.application.stores.base (every entity store)
- socialprice.application.rates_service (rate table changes)
- socialprice.application.market_session (market stats changes)
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Generic, TypeVar

log = logging.getLogger(__name__)

T = TypeVar("T")
Listener = Callable[[T], Any]


class Observable(Generic[T]):
    def __init__(self) -> None:
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, payload: T) -> None:
        for listener in list(self._listeners):
            try:
                listener(payload)
            except Exception as e:
                log.exception("Listener %r failed: %s", listener, e)
