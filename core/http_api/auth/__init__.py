"""
Storefront HTTP API Auth — Public API
=======================================
"""

from core.http_api.auth.provider import (
    API_KEY_INVALID,
    AuthProvider,
    InMemoryAuthProvider,
    extract_api_key,
    resolve_principal,
)

__all__ = [
    "API_KEY_INVALID",
    "AuthProvider",
    "InMemoryAuthProvider",
    "extract_api_key",
    "resolve_principal",
]
