# src/socialprice/shared/validators.py
"""
Input Validation Utilities - Business Rules and Data Validation

This module provides validation functions for user input and configuration.
Its central rule is the Triple Limit: no vote, offer or opinion value may be
more than 3x the product's current base price (compared in the base
currency, by absolute value). The check is advisory and client-side only.

Files that USE this module:
- socialprice.application.market_session (validates votes, offers, opinions)
- socialprice.config.settings (uses validation functions in Settings field validators)
- tests.test_validators (unit tests)

Files that this module USES:
- socialprice.domain.currency (convert, format_currency, FALLBACK_RATES)
- socialprice.domain.models (CurrencyCode)
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Optional

from socialprice.domain.currency import FALLBACK_RATES, RateTable, convert, format_currency
from socialprice.domain.models import CurrencyCode

TRIPLE_LIMIT_FACTOR = 3.0


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of a synchronous validation check."""
    valid: bool
    message: Optional[str] = None
    limit: Optional[float] = None

    def __bool__(self) -> bool:
        return self.valid


VALID = ValidationResult(valid=True)


def validate_triple_limit(amount: float, amount_currency: CurrencyCode,
                          base_price: float, base_currency: CurrencyCode,
                          rates: RateTable = FALLBACK_RATES,
                          factor: float = TRIPLE_LIMIT_FACTOR) -> ValidationResult:
    """
    Check that an amount does not exceed `factor` times the base price.

    Args:
        amount: Submitted value
        amount_currency: Currency of the submitted value
        base_price: Product's current base price
        base_currency: Currency of the base price
        rates: Rate table used for the conversion
        factor: Multiple of the base price allowed (default: 3)

    Returns:
        ValidationResult; when invalid, `limit` is the maximum expressed
        in the amount's currency and `message` quotes it.
    """
    amount_in_base = convert(amount, amount_currency, base_currency, rates)
    limit_in_base = base_price * factor

    if abs(amount_in_base) > limit_in_base:
        local_limit = convert(limit_in_base, base_currency, amount_currency, rates)
        return ValidationResult(
            valid=False,
            message=(
                f"Value exceeds the allowed limit (±{format_currency(local_limit, amount_currency)}). "
                f"The maximum is {factor:g}x the original price."
            ),
            limit=local_limit,
        )
    return VALID


def validate_required(value: Optional[str], field_name: str) -> Optional[str]:
    """
    Validate that a text field is not empty.

    Returns:
        Error message if empty, None otherwise
    """
    if not value or not value.strip():
        return f"{field_name} is required"
    return None


def validate_positive_number(value: float) -> bool:
    """True for finite numbers greater than zero."""
    try:
        num = float(value)
    except (TypeError, ValueError):
        return False
    return not math.isnan(num) and not math.isinf(num) and num > 0


def validate_currency_code(code: str) -> bool:
    try:
        CurrencyCode(code)
    except ValueError:
        return False
    return True


def validate_url(url: str) -> bool:
    """
    Validate an http(s) URL.

    Args:
        url: URL to validate

    Returns:
        True if valid, False otherwise
    """
    if not url:
        return False
    return bool(re.match(r'^https?://[^\s/$.?#][^\s]*$', url))


def validate_api_key(api_key: str, min_length: int = 10) -> bool:
    """
    Validate API key format.

    Args:
        api_key: API key to validate
        min_length: Minimum length requirement

    Returns:
        True if valid, False otherwise
    """
    if not api_key:
        return False

    return len(api_key) >= min_length and not api_key.isspace()


def sanitize_user_input(text: str, max_length: int = 1000) -> str:
    """
    Sanitize user input text.

    Args:
        text: Input text to sanitize
        max_length: Maximum allowed length

    Returns:
        Sanitized text
    """
    if not text:
        return ""

    # Remove potentially dangerous characters
    sanitized = re.sub(r'[<>"\']', '', text)

    # Limit length
    if len(sanitized) > max_length:
        sanitized = sanitized[:max_length]

    return sanitized.strip()
