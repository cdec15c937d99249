"""
Storefront Inventory Engine — Catalog Repository
==================================================
Read/write access to product snapshots for pricing and stock.

Protocol + in-memory implementation. The Django-backed catalog
lives in adapters.django_store.
"""

from __future__ import annotations

import threading
from typing import Dict, Optional, Protocol, Tuple

from core.primitives.product import Product


class CatalogRepository(Protocol):
    def get_product(self, product_id: str) -> Optional[Product]:
        ...

    def save_product(self, product: Product) -> Product:
        ...

    def list_products(self) -> Tuple[Product, ...]:
        ...


class InMemoryCatalog:
    """
    Thread-safe in-memory catalog.

    The lock may be shared with the stock ledger and order repository
    so that a unit of work can snapshot all of them together.
    """

    def __init__(self, products=(), *, lock: Optional[threading.RLock] = None):
        self._lock = lock or threading.RLock()
        self._products: Dict[str, Product] = {}
        for product in products:
            self.save_product(product)

    def get_product(self, product_id: str) -> Optional[Product]:
        with self._lock:
            return self._products.get(product_id)

    def save_product(self, product: Product) -> Product:
        if not isinstance(product, Product):
            raise TypeError("product must be Product.")
        with self._lock:
            self._products[product.product_id] = product
        return product

    def list_products(self) -> Tuple[Product, ...]:
        with self._lock:
            return tuple(
                self._products[key] for key in sorted(self._products)
            )

    def _snapshot(self) -> Dict[str, Product]:
        return dict(self._products)

    def _restore(self, snapshot: Dict[str, Product]) -> None:
        self._products = dict(snapshot)
