# src/socialprice/adapters/providers/base.py
"""
Base Provider Interface for Exchange Rate Providers

This module defines the abstract base class for all exchange rate providers.
A provider returns, for each requested currency, the quantity of that
currency equal to 1 USD.

Files that USE this module:
- socialprice.adapters.providers.open_er_api (OpenErApiProvider implements RateProvider)
- socialprice.application.rates_service (RatesService depends on RateProvider)

Files that this module USES:
- socialprice.domain.models (CurrencyCode)
"""
from abc import ABC, abstractmethod
from typing import Dict, Iterable

from socialprice.domain.models import CurrencyCode


class RateProvider(ABC):
    @abstractmethod
    def usd_rates(self, codes: Iterable[CurrencyCode]) -> Dict[CurrencyCode, float]:
        """Return units-per-USD for the requested codes that the source knows."""
        raise NotImplementedError
