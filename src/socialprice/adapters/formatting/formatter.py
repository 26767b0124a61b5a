# src/socialprice/adapters/formatting/formatter.py
"""
Market Formatter - Plain-text Presentation of Market State

This module turns market statistics, history series and offer listings into
plain text lines, used by the console entry point and handy for logs.

Files that USE this module:
- socialprice.app (prints the market summary)
- tests.test_formatter (unit tests)

Files that this module USES:
- socialprice.domain.currency (format_currency, CURRENCY_LABELS)
- socialprice.domain.models (MarketStats, HistoryPoint, Product, Offer)
"""
from __future__ import annotations

from typing import Optional, Sequence

from socialprice.domain.currency import CURRENCY_LABELS, format_currency
from socialprice.domain.models import CurrencyCode, HistoryPoint, MarketStats, Offer, Product


def _fmt_pct(value: float) -> str:
    """
    Format a signed percentage with a trend marker.

    Returns:
        Formatted string like '+12.5% 📈', '-3.1% 📉' or '0.0% ⏸'
    """
    arrow = "📈" if value > 0 else ("📉" if value < 0 else "⏸")
    return f"{value:+.1f}% {arrow}" if value else f"0.0% {arrow}"


def _fmt_gauge(value: float, width: int = 10) -> str:
    """Render a 0-100 value as a bar, e.g. '[######----] 60%'."""
    clamped = max(0.0, min(100.0, value))
    filled = int(round(clamped / 100 * width))
    return f"[{'#' * filled}{'-' * (width - filled)}] {value:.0f}%"


def market_lines(stats: MarketStats, currency: CurrencyCode,
                 product: Optional[Product] = None) -> str:
    """
    Format market statistics as plain text lines.

    Args:
        stats: Current market statistics
        currency: Display currency of the stats
        product: Optional product for the title and status line

    Returns:
        Multi-line summary
    """
    lines = []
    if product is not None:
        title = product.name or f"Product #{product.id}"
        lines.append(f"{title} [{product.status.value.upper()}]")
        if product.final_price is not None:
            lines.append(f"— Sold for: {format_currency(product.final_price.amount, product.final_price.currency)}")

    lines.append(f"— Currency: {CURRENCY_LABELS[CurrencyCode(currency)]}")
    lines.append(f"— Owner price: {format_currency(stats.owner_price_in_main, currency)}")
    lines.append(f"— Social average: {format_currency(stats.avg_sentiment, currency)}")
    lines.append(f"— Best offer: {format_currency(stats.max_offer, currency)}")
    lines.append(f"— Average offer: {format_currency(stats.avg_offer, currency)}")
    lines.append(f"— Market premium: {_fmt_pct(stats.market_premium)}")
    lines.append(f"— Convergence: {_fmt_gauge(stats.convergence_index)}")
    lines.append(f"— Inflation risk: {_fmt_gauge(stats.inflation_risk)}")
    return "\n".join(lines)


def history_lines(title: str, points: Sequence[HistoryPoint], currency: CurrencyCode) -> str:
    """One line per point, oldest first; a placeholder when there is no data."""
    if not points:
        return f"{title}\n— waiting for data"
    rows = [f"— {p.date} {p.time}  {format_currency(round(p.value, 2), currency)}" for p in points]
    return "\n".join([title, *rows])


def offer_lines(offers: Sequence[Offer], status_of=None) -> str:
    """
    Format an offer listing.

    Args:
        offers: Offers in display order
        status_of: Optional callable returning the status label of an offer
    """
    if not offers:
        return "No offers yet"
    lines = []
    for offer in offers:
        status = status_of(offer) if status_of else offer.status.value
        pending = " (sending)" if offer.is_pending else ""
        lines.append(
            f"— {offer.bidder}: {format_currency(offer.value.amount, offer.value.currency)} "
            f"[{status}] {offer.date}{pending}"
        )
    return "\n".join(lines)
