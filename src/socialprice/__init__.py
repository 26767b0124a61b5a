# src/socialprice/__init__.py
"""
SocialPrice - Social Pricing Marketplace Core

Client-side aggregation engine for a product page whose price is negotiated
by anonymous votes, formal offers and free-text opinions. Merges optimistic
local writes with realtime backend events and derives live market statistics
(premium, convergence, inflation risk) across currencies.
"""

__version__ = "0.1.0"
