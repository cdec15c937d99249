"""
Storefront HTTP API Auth — Principal Resolution
=================================================
Maps an API key to the Principal handed to the order core.

Session handling lives upstream; this layer only turns a credential
into (user_id, role, user_type). An unknown role claim is refused.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol

from core.errors import RejectionReason
from core.identity.roles import Principal

HEADER_API_KEY = "x-api-key"
HEADER_AUTHORIZATION = "authorization"
BEARER_PREFIX = "bearer "

API_KEY_INVALID = "API_KEY_INVALID"


class AuthProvider(Protocol):
    def resolve_api_key(self, api_key: str) -> Optional[Principal]:
        ...


class InMemoryAuthProvider:
    """
    Deterministic in-memory auth provider for tests/bootstrap.
    """

    def __init__(self, api_key_to_principal: Mapping[str, Principal] | None = None):
        normalized: dict[str, Principal] = {}
        for api_key, principal in sorted(
            dict(api_key_to_principal or {}).items(),
            key=lambda item: item[0],
        ):
            if not isinstance(api_key, str) or not api_key.strip():
                raise ValueError("API key must be a non-empty string.")
            if not isinstance(principal, Principal):
                raise ValueError("Principal must be Principal.")
            normalized[api_key] = principal
        self._api_key_to_principal = normalized

    def resolve_api_key(self, api_key: str) -> Optional[Principal]:
        if not isinstance(api_key, str):
            return None
        return self._api_key_to_principal.get(api_key)


def _normalize_headers(headers: dict[str, Any] | None) -> dict[str, str]:
    normalized: dict[str, str] = {}
    for key, value in (headers or {}).items():
        normalized[str(key).strip().lower()] = str(value).strip()
    return normalized


def extract_api_key(headers: dict[str, Any] | None) -> Optional[str]:
    """X-API-KEY wins over an Authorization bearer token."""
    normalized = _normalize_headers(headers)
    api_key = normalized.get(HEADER_API_KEY)
    if api_key:
        return api_key
    authorization = normalized.get(HEADER_AUTHORIZATION, "")
    if authorization.lower().startswith(BEARER_PREFIX):
        token = authorization[len(BEARER_PREFIX):].strip()
        return token or None
    return None


def resolve_principal(
    headers: dict[str, Any] | None,
    provider: AuthProvider,
) -> Optional[Principal] | RejectionReason:
    """
    None means an anonymous caller (guest checkout).
    A credential that resolves to nothing is a rejection, never anonymous.
    """
    api_key = extract_api_key(headers)
    if api_key is None:
        return None
    principal = provider.resolve_api_key(api_key)
    if principal is None:
        return RejectionReason(
            code=API_KEY_INVALID,
            message="Invalid API key.",
            policy_name="http_api_auth_resolver",
        )
    return principal


__all__ = [
    "AuthProvider",
    "InMemoryAuthProvider",
    "HEADER_API_KEY",
    "API_KEY_INVALID",
    "extract_api_key",
    "resolve_principal",
]
