# src/socialprice/adapters/providers/__init__.py
"""
Provider Adapters - External API Clients

This package contains adapters for external exchange rate APIs.
All providers implement the RateProvider interface.
"""

from socialprice.adapters.providers.base import RateProvider
from socialprice.adapters.providers.open_er_api import OpenErApiProvider

__all__ = [
    "RateProvider",
    "OpenErApiProvider",
]
