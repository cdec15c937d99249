"""
Storefront HTTP API — Dependencies
====================================
Injected services and providers for handler wiring.
"""

from __future__ import annotations

from dataclasses import dataclass

from core.http_api.auth.provider import AuthProvider


@dataclass(frozen=True)
class HttpApiDependencies:
    order_service: object
    inventory_service: object
    auth_provider: AuthProvider
