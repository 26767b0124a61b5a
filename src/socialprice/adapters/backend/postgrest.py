# src/socialprice/adapters/backend/postgrest.py
"""
PostgREST Client - HTTP Access to the Hosted Backend Tables

This module implements BackendClient over the PostgREST API exposed by the
hosted Postgres backend (GET/POST/PATCH on /rest/v1/<table>). Equality
filters are sent as `column=eq.value`, ordering as `order=column.asc`, and
writes ask for the stored row back with `Prefer: return=representation`.

Every transport, HTTP or JSON failure is logged and raised as BackendError;
callers never see requests exceptions.

Files that USE this module:
- socialprice.app (builds the shared client handle)
- tests.test_postgrest (unit tests)

Files that this module USES:
- socialprice.adapters.backend.base (BackendClient interface)
- socialprice.config (settings for backend URL, key and timeout)
- socialprice.domain.errors (BackendError)
"""
from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

import requests

from socialprice.adapters.backend.base import BackendClient, Row
from socialprice.config import settings
from socialprice.domain.errors import BackendError

log = logging.getLogger(__name__)


def _filter_params(filters: Optional[Mapping[str, Any]]) -> dict[str, str]:
    params: dict[str, str] = {}
    for column, value in (filters or {}).items():
        if isinstance(value, bool):
            value = str(value).lower()
        params[column] = f"eq.{value}"
    return params


class PostgrestClient(BackendClient):
    def __init__(self, base_url: Optional[str] = None, api_key: Optional[str] = None,
                 timeout: Optional[int] = None, session: Optional[requests.Session] = None):
        """
        Initialize the backend client.

        Args:
            base_url: REST root, e.g. https://xyz.example.co/rest/v1 (defaults to settings.rest_url)
            api_key: Anon/service key (defaults to settings.backend_key)
            timeout: Optional HTTP timeout in seconds (defaults to settings.http_timeout_seconds)
            session: Optional requests.Session to reuse connections

        Raises:
            ValueError: If no backend URL is configured
        """
        if base_url is None and not settings.backend_url:
            raise ValueError("BACKEND_URL not configured")
        self.base_url = (base_url or settings.rest_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.backend_key
        self.timeout = timeout or settings.http_timeout_seconds
        self.session = session or requests.Session()
        self.session.headers.update({
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        })

    def _request(self, method: str, table: str, *, params: Optional[dict] = None,
                 json: Any = None, headers: Optional[dict] = None) -> Any:
        url = f"{self.base_url}/{table}"
        try:
            resp = self.session.request(
                method, url, params=params, json=json, headers=headers, timeout=self.timeout
            )
            resp.raise_for_status()
            if not resp.content:
                return []
            return resp.json()
        except requests.exceptions.Timeout:
            log.warning("Backend %s %s timed out after %d seconds", method, table, self.timeout)
            raise BackendError(f"{method} {table} timed out after {self.timeout}s")
        except requests.exceptions.HTTPError as e:
            log.error("Backend %s %s HTTP error: %s", method, table, e)
            raise BackendError(f"{method} {table} HTTP error: {e}") from e
        except requests.exceptions.RequestException as e:
            log.warning("Backend %s %s request failed: %s", method, table, e)
            raise BackendError(f"{method} {table} request failed: {e}") from e
        except ValueError as e:
            log.error("Backend %s %s returned invalid JSON: %s", method, table, e)
            raise BackendError(f"{method} {table} returned invalid JSON: {e}") from e

    def select(self, table: str, *, filters: Optional[Mapping[str, Any]] = None,
               order: Optional[str] = None, ascending: bool = True,
               limit: Optional[int] = None, columns: str = "*") -> list[Row]:
        params = {"select": columns, **_filter_params(filters)}
        if order:
            params["order"] = f"{order}.{'asc' if ascending else 'desc'}"
        if limit is not None:
            params["limit"] = str(limit)
        data = self._request("GET", table, params=params)
        if not isinstance(data, list):
            raise BackendError(f"GET {table} returned non-list JSON")
        return data

    def insert(self, table: str, row: Mapping[str, Any]) -> Row:
        data = self._request(
            "POST", table, json=dict(row), headers={"Prefer": "return=representation"}
        )
        if isinstance(data, list):
            if not data:
                raise BackendError(f"POST {table} returned no row")
            data = data[0]
        if not isinstance(data, dict) or "id" not in data:
            raise BackendError(f"POST {table} returned a row without id")
        log.debug("Inserted %s row id=%s", table, data["id"])
        return data

    def update(self, table: str, values: Mapping[str, Any], *,
               filters: Mapping[str, Any]) -> list[Row]:
        if not filters:
            raise ValueError("update requires at least one filter")
        data = self._request(
            "PATCH", table, params=_filter_params(filters), json=dict(values),
            headers={"Prefer": "return=representation"},
        )
        return data if isinstance(data, list) else [data]
