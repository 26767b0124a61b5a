# src/socialprice/domain/errors.py
"""
Domain Errors - Business Logic Exceptions

This module defines domain-specific exceptions that represent
business rule violations and failures at the store boundary.
"""


class DomainError(Exception):
    """Base exception for domain errors."""
    pass


class BackendError(DomainError):
    """Raised by backend clients when a query, insert or update fails."""
    pass


class SubmissionError(DomainError):
    """Raised when a write failed and its optimistic entry was rolled back."""
    pass


class InvalidTransitionError(DomainError):
    """Raised when a product or offer status change is not allowed."""
    pass


class ProviderUnavailableError(DomainError):
    """Raised when the exchange rate source is unavailable."""
    pass


class ValidationError(DomainError, ValueError):
    """Raised when an input value is malformed."""
    pass
