# src/socialprice/application/__init__.py
"""
Application Layer - Use Cases and Services

This package contains application services that orchestrate domain logic.
No direct I/O dependencies - uses adapters through injected interfaces.
"""

from socialprice.application.rates_service import RatesService, RateState
from socialprice.application.market_session import MarketSession

__all__ = [
    "RatesService",
    "RateState",
    "MarketSession",
]
