# tests/conftest.py
"""
Shared Test Fixtures - In-memory Backend and Realtime Feed

Provides a FakeBackend implementing BackendClient over plain dicts, so the
stores and the session can be exercised without any network. Failures and
realtime races are scripted per test.

Files that USE this module:
- pytest (fixtures are injected into every test module)

Files that this module USES:
- socialprice.adapters.backend (BackendClient, BroadcastFeed, RealtimeEvent)
- socialprice.application.rates_service (RatesService)
"""
import itertools
from datetime import datetime, timedelta, timezone

import pytest  # Testing framework for fixtures

from socialprice.adapters.backend import INSERT, BackendClient, BroadcastFeed, RealtimeEvent
from socialprice.application.rates_service import RatesService
from socialprice.domain.errors import BackendError

BASE_TIME = datetime(2026, 1, 23, 10, 0, tzinfo=timezone.utc)

_TIMESTAMP_COLUMN = {"votes": "timestamp"}


def minutes(n):
    """ISO timestamp n minutes after BASE_TIME."""
    return (BASE_TIME + timedelta(minutes=n)).isoformat()


class FakeBackend(BackendClient):
    """Dict-backed BackendClient with scriptable failures and insert hooks."""

    def __init__(self):
        self.tables = {}
        self._ids = itertools.count(1)
        self.fail_next = {}  # "operation" or "operation:table" -> exception to raise once
        self.on_insert = None  # callable(table, stored_row) run before insert returns
        self.calls = []
        self._clock = itertools.count(0)

    def seed(self, table, *rows):
        stored = []
        for row in rows:
            row = dict(row)
            row.setdefault("id", next(self._ids))
            self.tables.setdefault(table, []).append(row)
            stored.append(row)
        return stored

    def _maybe_fail(self, operation, table):
        error = self.fail_next.pop(f"{operation}:{table}", None) or self.fail_next.pop(operation, None)
        if error is not None:
            raise error

    def select(self, table, *, filters=None, order=None, ascending=True, limit=None, columns="*"):
        self.calls.append(("select", table, dict(filters or {})))
        self._maybe_fail("select", table)
        rows = [
            dict(r) for r in self.tables.get(table, [])
            if all(r.get(k) == v for k, v in (filters or {}).items())
        ]
        if order:
            rows.sort(key=lambda r: r.get(order) or "", reverse=not ascending)
        if limit is not None:
            rows = rows[:limit]
        return rows

    def insert(self, table, row):
        self.calls.append(("insert", table, dict(row)))
        self._maybe_fail("insert", table)
        stored = dict(row)
        stored["id"] = next(self._ids)
        stored.setdefault(_TIMESTAMP_COLUMN.get(table, "created_at"), minutes(next(self._clock)))
        if table == "offers":
            stored.setdefault("status", "pending")
        self.tables.setdefault(table, []).append(stored)
        if self.on_insert is not None:
            self.on_insert(table, dict(stored))
        return dict(stored)

    def update(self, table, values, *, filters):
        self.calls.append(("update", table, dict(values), dict(filters)))
        self._maybe_fail("update", table)
        updated = []
        for r in self.tables.get(table, []):
            if all(r.get(k) == v for k, v in filters.items()):
                r.update(values)
                updated.append(dict(r))
        return updated

    def count(self, operation):
        return sum(1 for c in self.calls if c[0] == operation)


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def feed():
    return BroadcastFeed()


@pytest.fixture
def rates():
    return RatesService(provider=None)


@pytest.fixture
def product_row():
    return {
        "id": 1,
        "name": "AI Strategy Consulting (Monthly)",
        "description": "Premium workflow optimization",
        "content": "## Scope",
        "owner_price": 1000,
        "owner_currency": "USD",
        "status": "open",
        "final_price": None,
        "final_currency": "USD",
        "images": ["/images/hero.png"],
        "video_url": "",
        "sellers": {"name": "@TECH_MASTER_ELITE", "avatar": "a.svg", "level": "PREMIUM", "verified": True},
    }


def insert_event(row):
    return RealtimeEvent(event_type=INSERT, new=dict(row))


def backend_down():
    return BackendError("connection refused")
