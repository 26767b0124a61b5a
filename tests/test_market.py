# tests/test_market.py
"""
Market Statistics Tests - Premium, Convergence Index and Inflation Risk

Files that USE this module:
- pytest (test runner executes these tests)

Files that this module USES:
- socialprice.domain.market (pure statistics functions)
- pytest (testing framework)
"""
import pytest  # Testing framework for writing and running tests

from socialprice.domain.market import (
    compute_market_stats,
    convergence_index,
    inflation_risk,
    market_premium,
)


class TestMarketPremium:
    def test_positive_and_negative(self):
        assert market_premium(1000, 1100) == pytest.approx(10)
        assert market_premium(1000, 900) == pytest.approx(-10)

    def test_zero_owner_price(self):
        assert market_premium(0, 500) == 0


class TestConvergenceIndex:
    def test_identical_values(self):
        assert convergence_index(1000, 1000) == 100

    def test_symmetric(self):
        assert convergence_index(1000, 1200) == pytest.approx(convergence_index(1200, 1000))

    def test_double_is_half(self):
        assert convergence_index(500, 1000) == pytest.approx(50)

    def test_no_offers_uses_owner_price(self):
        assert convergence_index(1000, 0, owner_price=1000) == 100
        assert convergence_index(900, 0, owner_price=1000) == pytest.approx(90)

    def test_no_votes(self):
        assert convergence_index(0, 1200, owner_price=1000) == 0


class TestInflationRisk:
    def test_triple_offer_near_hundred(self):
        assert inflation_risk(1000, 3000) == pytest.approx(99.9)

    def test_zero_owner_price(self):
        assert inflation_risk(0, 3000) == 0


def test_compute_market_stats_scenario():
    stats = compute_market_stats(owner_price_in_main=1000, avg_sentiment=1000, max_offer=1200, avg_offer=1200)
    assert stats.market_premium == pytest.approx(0)
    assert stats.convergence_index == pytest.approx(83.333, rel=1e-3)
    assert stats.inflation_risk == pytest.approx(39.96)
    assert stats.max_offer == 1200
