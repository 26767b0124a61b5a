# src/socialprice/shared/__init__.py
"""
Shared Utilities - Cross-cutting Concerns

This package contains shared utilities used across all layers:
- Validation (triple limit, required fields)
- Listener registry
- Logging configuration
"""

from socialprice.shared.validators import (
    ValidationResult,
    sanitize_user_input,
    validate_api_key,
    validate_currency_code,
    validate_positive_number,
    validate_required,
    validate_triple_limit,
    validate_url,
)
from socialprice.shared.observable import Observable

__all__ = [
    "ValidationResult",
    "validate_triple_limit",
    "validate_required",
    "validate_positive_number",
    "validate_currency_code",
    "validate_url",
    "validate_api_key",
    "sanitize_user_input",
    "Observable",
]
