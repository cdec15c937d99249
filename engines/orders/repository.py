"""
Storefront Orders Engine — Order Repository & In-Memory Store
===============================================================
Protocols for order storage, plus an in-memory store that gives the
same all-or-nothing semantics as a database transaction.

InMemoryStorefrontStore shares one re-entrant lock between catalog,
stock ledger and orders. atomic() holds it for the whole block, so
units of work are serialized; a block that raises is rolled back to
the snapshot taken on entry. on_commit() callbacks run only after the
outermost block exits cleanly.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Callable, Dict, List, Optional, Protocol, Tuple

from core.errors import StaleStateError
from core.time import Clock, SystemClock
from engines.inventory.catalog import InMemoryCatalog
from engines.inventory.ledger import InMemoryStockLedger
from engines.orders.models import Order

logger = logging.getLogger("storefront.orders")


# ══════════════════════════════════════════════════════════════
# PROTOCOL
# ══════════════════════════════════════════════════════════════

class OrderRepository(Protocol):
    def get(self, order_id: str) -> Optional[Order]:
        ...

    def get_by_number(self, order_number: str) -> Optional[Order]:
        ...

    def add(self, order: Order) -> Order:
        ...

    def save(self, order: Order, *, expected_version: int) -> Order:
        """Replace the stored order; StaleStateError if its version moved."""
        ...

    def list_orders(self, *, user_id: Optional[str] = None) -> Tuple[Order, ...]:
        ...


# ══════════════════════════════════════════════════════════════
# IN-MEMORY ORDERS
# ══════════════════════════════════════════════════════════════

class InMemoryOrderRepository:
    def __init__(self, *, lock: Optional[threading.RLock] = None):
        self._lock = lock or threading.RLock()
        self._orders: Dict[str, Order] = {}

    def get(self, order_id: str) -> Optional[Order]:
        with self._lock:
            return self._orders.get(order_id)

    def get_by_number(self, order_number: str) -> Optional[Order]:
        with self._lock:
            for order in self._orders.values():
                if order.order_number == order_number:
                    return order
        return None

    def add(self, order: Order) -> Order:
        with self._lock:
            if order.order_id in self._orders:
                raise ValueError(f"Order '{order.order_id}' already exists.")
            self._orders[order.order_id] = order
        return order

    def save(self, order: Order, *, expected_version: int) -> Order:
        with self._lock:
            current = self._orders.get(order.order_id)
            actual = current.version if current is not None else None
            if actual != expected_version:
                raise StaleStateError(order.order_id, expected_version, actual)
            self._orders[order.order_id] = order
        return order

    def list_orders(self, *, user_id: Optional[str] = None) -> Tuple[Order, ...]:
        with self._lock:
            orders = [
                o for o in self._orders.values()
                if user_id is None or o.user_id == user_id
            ]
        return tuple(sorted(orders, key=lambda o: (o.created_at, o.order_number), reverse=True))

    def _snapshot(self) -> Dict[str, Order]:
        return dict(self._orders)

    def _restore(self, snapshot: Dict[str, Order]) -> None:
        self._orders = dict(snapshot)


# ══════════════════════════════════════════════════════════════
# IN-MEMORY STORE (unit of work)
# ══════════════════════════════════════════════════════════════

class InMemoryStorefrontStore:
    """Catalog + stock ledger + orders behind one lock."""

    def __init__(self, products=(), *, clock: Optional[Clock] = None):
        self._lock = threading.RLock()
        self.clock = clock or SystemClock()
        self.catalog = InMemoryCatalog(products, lock=self._lock)
        self.ledger = InMemoryStockLedger(self.catalog, clock=self.clock, lock=self._lock)
        self.orders = InMemoryOrderRepository(lock=self._lock)
        self._pending_callbacks: List[List[Callable[[], None]]] = []

    def _snapshot(self) -> tuple:
        return (
            self.catalog._snapshot(),
            self.ledger._snapshot(),
            self.orders._snapshot(),
        )

    def _restore(self, snapshot: tuple) -> None:
        catalog, ledger, orders = snapshot
        self.catalog._restore(catalog)
        self.ledger._restore(ledger)
        self.orders._restore(orders)

    @contextmanager
    def atomic(self):
        with self._lock:
            snapshot = self._snapshot()
            self._pending_callbacks.append([])
            try:
                yield self
            except BaseException:
                self._pending_callbacks.pop()
                self._restore(snapshot)
                raise
            callbacks = self._pending_callbacks.pop()
            if self._pending_callbacks:
                self._pending_callbacks[-1].extend(callbacks)
                return
        for callback in callbacks:
            callback()

    def on_commit(self, callback: Callable[[], None]) -> None:
        """Run callback after the outermost atomic block commits (now if none)."""
        with self._lock:
            if self._pending_callbacks:
                self._pending_callbacks[-1].append(callback)
                return
        callback()
