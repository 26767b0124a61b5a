# tests/test_providers.py
"""
Provider Tests - Unit Tests for the Exchange Rate Provider

This module tests OpenErApiProvider: API interaction, error translation and
extraction of the requested currency codes.

Files that USE this module:
- pytest (test runner executes these tests)

Files that this module USES:
- socialprice.adapters.providers.open_er_api (OpenErApiProvider for testing)
- unittest.mock (Mock for API mocking)
- pytest (testing framework)
"""
import pytest  # Testing framework for writing and running tests

from unittest.mock import Mock, patch  # Mock objects and patching for testing without real API calls
import requests  # HTTP library (used for mocking responses)

from socialprice.adapters.providers.open_er_api import OpenErApiProvider  # Rate provider to test
from socialprice.domain.errors import ProviderUnavailableError
from socialprice.domain.models import CurrencyCode

GET = 'socialprice.adapters.providers.open_er_api.requests.get'


def _response(payload):
    mock_response = Mock()
    mock_response.json.return_value = payload
    mock_response.raise_for_status.return_value = None
    return mock_response


class TestOpenErApiProvider:
    def test_init_with_defaults(self):
        provider = OpenErApiProvider()
        assert provider.timeout == 10
        assert "open.er-api.com" in provider.url

    def test_init_with_overrides(self):
        provider = OpenErApiProvider("https://rates.example.com/usd", timeout=3)
        assert provider.url == "https://rates.example.com/usd"
        assert provider.timeout == 3

    @patch(GET)
    def test_usd_rates_success(self, mock_get):
        mock_get.return_value = _response(
            {"result": "success", "base_code": "USD", "rates": {"USD": 1, "COP": 3950.5, "MXN": 17.2, "EUR": 0.9}}
        )
        rates = OpenErApiProvider().usd_rates(list(CurrencyCode))
        assert rates == {CurrencyCode.USD: 1.0, CurrencyCode.COP: 3950.5, CurrencyCode.MXN: 17.2}
        mock_get.assert_called_once()

    @patch(GET)
    def test_usd_rates_skips_missing_and_non_positive(self, mock_get):
        mock_get.return_value = _response({"result": "success", "rates": {"COP": 0, "MXN": "n/a"}})
        rates = OpenErApiProvider().usd_rates(list(CurrencyCode))
        assert rates == {CurrencyCode.USD: 1.0}

    @patch(GET)
    def test_request_failure(self, mock_get):
        mock_get.side_effect = requests.exceptions.RequestException("API Error")
        with pytest.raises(ProviderUnavailableError, match="request failed"):
            OpenErApiProvider().get_latest_raw()

    @patch(GET)
    def test_timeout(self, mock_get):
        mock_get.side_effect = requests.exceptions.Timeout()
        with pytest.raises(ProviderUnavailableError, match="timeout"):
            OpenErApiProvider().get_latest_raw()

    @patch(GET)
    def test_http_error(self, mock_get):
        mock_response = Mock()
        mock_response.raise_for_status.side_effect = requests.exceptions.HTTPError("503 Server Error")
        mock_get.return_value = mock_response
        with pytest.raises(ProviderUnavailableError, match="HTTP error"):
            OpenErApiProvider().get_latest_raw()

    @patch(GET)
    def test_invalid_json(self, mock_get):
        mock_response = Mock()
        mock_response.json.side_effect = ValueError("Invalid JSON")
        mock_response.raise_for_status.return_value = None
        mock_get.return_value = mock_response
        with pytest.raises(ProviderUnavailableError, match="invalid JSON"):
            OpenErApiProvider().get_latest_raw()

    @patch(GET)
    def test_non_dict_payload(self, mock_get):
        mock_get.return_value = _response(["not", "a", "dict"])
        with pytest.raises(ProviderUnavailableError, match="non-dict"):
            OpenErApiProvider().get_latest_raw()

    @patch(GET)
    def test_reported_error(self, mock_get):
        mock_get.return_value = _response({"result": "error", "error-type": "unsupported-code"})
        with pytest.raises(ProviderUnavailableError):
            OpenErApiProvider().usd_rates([CurrencyCode.COP])

    @patch(GET)
    def test_missing_rates_field(self, mock_get):
        mock_get.return_value = _response({"result": "success"})
        with pytest.raises(ProviderUnavailableError, match="missing 'rates'"):
            OpenErApiProvider().usd_rates([CurrencyCode.COP])
