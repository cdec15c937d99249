"""
Storefront Django Adapter Wiring
==================================
Constructs HttpApiDependencies over the Django-backed store.

Adapter-only glue: services, repositories and the API-key provider
are assembled once per process and shared by every view.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Mapping

from django.conf import settings

from adapters.django_store.repositories import (
    DjangoCatalog,
    DjangoOrderRepository,
    DjangoStockLedger,
    DjangoUnitOfWork,
)
from core.config import load_checkout_config
from core.events import EventPublisher
from core.http_api.auth import InMemoryAuthProvider
from core.http_api.dependencies import HttpApiDependencies
from core.identity.roles import Principal, parse_role
from core.time import SystemClock
from engines.inventory.services import InventoryService
from engines.orders.numbering import OrderNumberGenerator
from engines.orders.services import OrderService

logger = logging.getLogger("storefront.http_api")

DEV_ADMIN_API_KEY = "dev-admin-key"
DEV_RETAIL_API_KEY = "dev-retail-key"
DEV_WHOLESALE_API_KEY = "dev-wholesale-key"

_DEV_API_KEYS: dict[str, dict[str, Any]] = {
    DEV_ADMIN_API_KEY: {"user_id": "live-admin-user", "role": "ADMIN"},
    DEV_RETAIL_API_KEY: {
        "user_id": "live-retail-user", "role": "RETAIL", "user_type": "individual",
    },
    DEV_WHOLESALE_API_KEY: {
        "user_id": "live-wholesale-user", "role": "WHOLESALE", "user_type": "business",
    },
}

_DEPENDENCIES_LOCK = threading.Lock()
_DEPENDENCIES: HttpApiDependencies | None = None


def build_auth_provider(
    api_keys: Mapping[str, Mapping[str, Any]] | None,
) -> InMemoryAuthProvider:
    """
    api_keys maps an API key to {"user_id", "role", "user_type"?}.
    An unknown role fails the wiring instead of downgrading the caller.
    """
    principals = {}
    for api_key, claims in dict(api_keys or {}).items():
        principals[api_key] = Principal(
            user_id=str(claims["user_id"]),
            role=parse_role(claims.get("role")),
            user_type=claims.get("user_type"),
        )
    return InMemoryAuthProvider(principals)


def _create_dependencies() -> HttpApiDependencies:
    clock = SystemClock()
    catalog = DjangoCatalog()
    ledger = DjangoStockLedger(clock=clock)
    unit_of_work = DjangoUnitOfWork()
    publisher = EventPublisher()

    order_service = OrderService(
        catalog=catalog,
        ledger=ledger,
        orders=DjangoOrderRepository(),
        unit_of_work=unit_of_work,
        publisher=publisher,
        config=load_checkout_config(),
        clock=clock,
        numbering=OrderNumberGenerator(clock=clock),
    )
    inventory_service = InventoryService(
        catalog=catalog,
        ledger=ledger,
        unit_of_work=unit_of_work,
        publisher=publisher,
        clock=clock,
    )

    api_keys = getattr(settings, "STOREFRONT_API_KEYS", None)
    if api_keys is None:
        logger.warning("STOREFRONT_API_KEYS not set; using development API keys.")
        api_keys = _DEV_API_KEYS

    return HttpApiDependencies(
        order_service=order_service,
        inventory_service=inventory_service,
        auth_provider=build_auth_provider(api_keys),
    )


def build_dependencies() -> HttpApiDependencies:
    """
    Lazy singleton wiring for adapter runtime.
    """
    global _DEPENDENCIES
    with _DEPENDENCIES_LOCK:
        if _DEPENDENCIES is None:
            _DEPENDENCIES = _create_dependencies()
        return _DEPENDENCIES


def reset_dependencies() -> None:
    """Drop the cached wiring so the next request rebuilds it from settings."""
    global _DEPENDENCIES
    with _DEPENDENCIES_LOCK:
        _DEPENDENCIES = None
