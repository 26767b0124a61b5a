# src/socialprice/adapters/providers/open_er_api.py
"""
Open ExchangeRate-API Provider for USD-based Rates

This module implements the client for the free open.er-api.com endpoint,
which needs no API key and returns every rate relative to 1 USD:

    {"result": "success", "base_code": "USD", "rates": {"COP": 3950.1, ...}}

Only the requested currency codes are returned; codes absent from the
response are simply omitted so the caller can keep its previous value.

Files that USE this module:
- socialprice.app (wires OpenErApiProvider into RatesService)
- tests.test_providers (unit tests)

Files that this module USES:
- socialprice.adapters.providers.base (RateProvider interface)
- socialprice.config (settings for API URL and timeout)
- socialprice.domain.errors (ProviderUnavailableError)
"""
import logging
from typing import Dict, Iterable, Optional

import requests

from socialprice.adapters.providers.base import RateProvider
from socialprice.config import settings
from socialprice.domain.errors import ProviderUnavailableError
from socialprice.domain.models import CurrencyCode

log = logging.getLogger(__name__)


class OpenErApiProvider(RateProvider):
    def __init__(self, base_url: Optional[str] = None, timeout: Optional[int] = None):
        """
        Initialize the rate source client.

        Args:
            base_url: Optional custom API URL (defaults to settings.rates_url)
            timeout: Optional HTTP timeout in seconds (defaults to settings.http_timeout_seconds)
        """
        self.url = base_url or settings.rates_url
        self.timeout = timeout or settings.http_timeout_seconds

    def get_latest_raw(self) -> dict:
        """
        Fetch the raw JSON payload from the rate source.

        Raises:
            ProviderUnavailableError: On network errors, HTTP errors or invalid JSON
        """
        try:
            log.info("Fetching USD rates from %s", self.url)
            resp = requests.get(self.url, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except requests.exceptions.Timeout:
            log.warning("Rate source timeout after %d seconds", self.timeout)
            raise ProviderUnavailableError(f"Rate source timeout after {self.timeout}s")
        except requests.exceptions.HTTPError as e:
            log.warning("Rate source HTTP error: %s", e)
            raise ProviderUnavailableError(f"Rate source HTTP error: {e}") from e
        except requests.exceptions.RequestException as e:
            log.warning("Rate source request failed (network/connection error): %s", e)
            raise ProviderUnavailableError(f"Rate source request failed: {e}") from e
        except ValueError as e:
            log.error("Rate source returned invalid JSON: %s", e)
            raise ProviderUnavailableError(f"Rate source returned invalid JSON: {e}") from e

        if not isinstance(data, dict):
            log.error("Rate source returned non-dict JSON: %s", type(data))
            raise ProviderUnavailableError("Rate source returned non-dict JSON")
        return data

    def usd_rates(self, codes: Iterable[CurrencyCode]) -> Dict[CurrencyCode, float]:
        """
        Get units-per-USD for the requested currencies.

        Returns:
            Mapping of code to positive rate; USD is always 1.0

        Raises:
            ProviderUnavailableError: If the request fails or the payload is unusable
        """
        data = self.get_latest_raw()

        if data.get("result", "success") != "success":
            log.error("Rate source reported failure: %s", data.get("error-type", data.get("result")))
            raise ProviderUnavailableError(f"Rate source reported {data.get('result')}")

        raw = data.get("rates")
        if not isinstance(raw, dict):
            log.error("Rate source unexpected schema: %s", data)
            raise ProviderUnavailableError("Rate source response missing 'rates' field")

        out: Dict[CurrencyCode, float] = {}
        for code in codes:
            code = CurrencyCode(code)
            if code == CurrencyCode.USD:
                out[code] = 1.0
                continue
            try:
                value = float(raw[code.value])
            except (KeyError, TypeError, ValueError):
                log.warning("Rate source has no usable rate for %s", code.value)
                continue
            if value <= 0:
                log.warning("Rate source returned non-positive rate for %s: %s", code.value, value)
                continue
            out[code] = value

        log.info("Rate source updated: %s", {c.value: r for c, r in out.items()})
        return out
