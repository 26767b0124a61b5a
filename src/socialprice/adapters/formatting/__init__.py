# src/socialprice/adapters/formatting/__init__.py
"""
Formatting Adapters - Plain-text Output

This package contains formatters for market summaries and listings.
"""

from socialprice.adapters.formatting.formatter import (
    history_lines,
    market_lines,
    offer_lines,
)

__all__ = [
    "market_lines",
    "history_lines",
    "offer_lines",
]
