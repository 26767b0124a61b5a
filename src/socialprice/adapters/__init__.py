# src/socialprice/adapters/__init__.py
"""
Adapters Layer - External Interfaces

This package contains all adapters for external systems:
- Providers (exchange rate APIs)
- Backend (hosted database and realtime feed)
- Formatting (output)
"""

__all__ = []
