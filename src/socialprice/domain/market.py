# src/socialprice/domain/market.py
"""
Market Statistics - Premium, Convergence and Inflation Risk

Pure functions combining the owner's base price, the vote average and the
offer pool (all already in the display currency) into market intelligence.
No state, no history: recompute on every change.

Files that USE this module:
- socialprice.application.market_session (compute_market_stats on every update)
- tests.test_market (unit tests)

Files that this module USES:
- socialprice.domain.models (MarketStats)
"""
from __future__ import annotations

from socialprice.domain.models import MarketStats

# An offer at 3x the base price maps to roughly 100
INFLATION_SCALE = 33.3


def market_premium(owner_price: float, vote_avg: float) -> float:
    """Percentage by which the vote average exceeds the owner price."""
    if owner_price <= 0:
        return 0.0
    return (vote_avg - owner_price) / owner_price * 100


def _closeness(a: float, b: float) -> float:
    return (1 - abs(a - b) / max(a, b)) * 100


def convergence_index(vote_avg: float, offer_max: float, owner_price: float = 0.0) -> float:
    """
    Symmetric closeness of the vote average to the best offer, 0-100.

    100 means identical; 50 means one value is double the other.
    Without offers the owner price stands in for the best offer.
    """
    if vote_avg > 0 and offer_max > 0:
        return _closeness(vote_avg, offer_max)
    if vote_avg > 0:
        return _closeness(vote_avg, owner_price)
    return 0.0


def inflation_risk(owner_price: float, offer_max: float) -> float:
    if owner_price <= 0:
        return 0.0
    return offer_max / owner_price * INFLATION_SCALE


def compute_market_stats(owner_price_in_main: float, avg_sentiment: float,
                         max_offer: float, avg_offer: float) -> MarketStats:
    """
    Build a MarketStats snapshot from currency-normalized inputs.

    Args:
        owner_price_in_main: Owner base price in the display currency
        avg_sentiment: Average vote value in the display currency
        max_offer: Highest offer in the display currency
        avg_offer: Average offer in the display currency

    Returns:
        MarketStats with premium, convergence index and inflation risk
    """
    return MarketStats(
        owner_price_in_main=owner_price_in_main,
        avg_sentiment=avg_sentiment,
        max_offer=max_offer,
        avg_offer=avg_offer,
        market_premium=market_premium(owner_price_in_main, avg_sentiment),
        convergence_index=convergence_index(avg_sentiment, max_offer, owner_price_in_main),
        inflation_risk=inflation_risk(owner_price_in_main, max_offer),
    )
