# src/socialprice/domain/currency.py
"""
Currency Conversion - Rate Table Arithmetic and Formatting

Pure functions converting amounts between currency codes through USD as the
common unit, plus helpers to format and parse amounts for display.

A rate table maps each CurrencyCode to the quantity of that currency equal
to 1 USD, so rates[USD] is always 1.

Files that USE this module:
- socialprice.application.stores.* (convert every item into the display currency)
- socialprice.application.rates_service (FALLBACK_RATES as the initial table)
- socialprice.shared.validators (triple-limit check in the base currency)
- socialprice.adapters.formatting.formatter (format_currency)
- tests.test_currency (unit tests)

Files that this module USES:
- socialprice.domain.models (CurrencyCode)
"""
from __future__ import annotations

import math
import re
from types import MappingProxyType
from typing import Mapping, Optional

from socialprice.domain.models import CurrencyCode

RateTable = Mapping[CurrencyCode, float]

# Static table used until the first successful refresh
FALLBACK_RATES: RateTable = MappingProxyType({
    CurrencyCode.USD: 1.0,
    CurrencyCode.COP: 4000.0,
    CurrencyCode.MXN: 18.0,
})

CURRENCY_SYMBOLS = {
    CurrencyCode.USD: "$",
    CurrencyCode.COP: "$",
    CurrencyCode.MXN: "$",
}

CURRENCY_LABELS = {
    CurrencyCode.USD: "US Dollar (USD)",
    CurrencyCode.COP: "Colombian Peso (COP)",
    CurrencyCode.MXN: "Mexican Peso (MXN)",
}


def _rate(rates: RateTable, code: CurrencyCode) -> float:
    # Missing or unusable rate degrades to parity instead of failing
    value = rates.get(code)
    if not value or value <= 0:
        return 1.0
    return value


def convert(amount: float, from_currency: CurrencyCode, to_currency: CurrencyCode,
            rates: RateTable) -> float:
    """
    Convert an amount between currencies using a USD-based rate table.

    Args:
        amount: Amount in from_currency
        from_currency: Source currency code
        to_currency: Target currency code
        rates: Units of each currency per 1 USD

    Returns:
        Amount in to_currency. Returned unchanged when both codes match.
    """
    if from_currency == to_currency:
        return amount
    in_usd = amount / _rate(rates, from_currency)
    return in_usd * _rate(rates, to_currency)


def currency_symbol(code: CurrencyCode) -> str:
    return CURRENCY_SYMBOLS.get(code, "$")


def format_currency(value: Optional[float], code: CurrencyCode) -> str:
    """
    Format an amount for display, e.g. '$1,200 USD' or '$12.50 MXN'.

    Decimals are only shown when the value has a fractional part.
    None or NaN renders as '$0'.
    """
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return "$0"
    symbol = currency_symbol(code)
    code_str = CurrencyCode(code).value
    if float(value) % 1 == 0:
        return f"{symbol}{value:,.0f} {code_str}"
    return f"{symbol}{value:,.2f} {code_str}"


def parse_amount(text: str) -> float:
    """
    Parse a user-typed amount, dropping thousands separators.

    Accepts '1.000.000', '1,000,000' or '1000000'. Empty input or a lone
    '-' parses as 0.

    Raises:
        ValueError: If the remaining text is not a number
    """
    if not text or text.strip() == "-":
        return 0.0
    clean = re.sub(r"[.,\s]", "", text.strip())
    return float(clean)
