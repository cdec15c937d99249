"""
Storefront Inventory Engine — Stock Ledger
============================================
Available quantity per product, with atomic reserve and restore.

RULES:
- reserve() checks stock >= quantity and decrements in one step;
  two reservations of the last unit can never both succeed
- restore() always increments; deduplication is the caller's job
  (an order restores exactly once, on its transition to CANCELLED)
- every change is recorded as a StockMovement
- stock_quantity never goes below zero

The in-memory ledger serializes through a lock. The Django ledger
(adapters.django_store) uses a conditional UPDATE instead.
"""

from __future__ import annotations

import logging
import threading
import uuid
from enum import Enum
from typing import List, Optional, Protocol, Tuple

from core.errors import InsufficientStockError, InvalidProductError
from core.primitives.inventory import MovementReason, MovementType, StockMovement
from core.time import Clock, SystemClock
from engines.inventory.catalog import InMemoryCatalog

logger = logging.getLogger("storefront.inventory")


# ══════════════════════════════════════════════════════════════
# STOCK STATUS DERIVATION (read-only, display)
# ══════════════════════════════════════════════════════════════

class StockStatus(Enum):
    OUT_OF_STOCK = "out_of_stock"
    LOW_STOCK = "low_stock"
    IN_STOCK = "in_stock"
    OVERSTOCK = "overstock"


MIN_REORDER_POINT = 10
OVERSTOCK_FACTOR = 10


def reorder_point(min_order_quantity: int) -> int:
    return max(2 * min_order_quantity, MIN_REORDER_POINT)


def derive_stock_status(stock_quantity: int, min_order_quantity: int) -> StockStatus:
    point = reorder_point(min_order_quantity)
    if stock_quantity <= 0:
        return StockStatus.OUT_OF_STOCK
    if stock_quantity <= point:
        return StockStatus.LOW_STOCK
    if stock_quantity > OVERSTOCK_FACTOR * point:
        return StockStatus.OVERSTOCK
    return StockStatus.IN_STOCK


def _require_positive_quantity(quantity: int) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ValueError("quantity must be positive integer.")


# ══════════════════════════════════════════════════════════════
# PROTOCOL
# ══════════════════════════════════════════════════════════════

class StockLedger(Protocol):
    def reserve(
        self,
        product_id: str,
        quantity: int,
        *,
        reason: MovementReason = MovementReason.ORDER_PLACED,
        reference_id: Optional[str] = None,
        actor_id: Optional[str] = None,
    ) -> StockMovement:
        """Decrement atomically or raise InsufficientStockError."""
        ...

    def restore(
        self,
        product_id: str,
        quantity: int,
        *,
        reason: MovementReason = MovementReason.ORDER_CANCELLED,
        reference_id: Optional[str] = None,
        actor_id: Optional[str] = None,
    ) -> StockMovement:
        ...

    def adjust(
        self,
        product_id: str,
        delta: int,
        *,
        actor_id: Optional[str] = None,
        note: str = "",
        reference_id: Optional[str] = None,
    ) -> StockMovement:
        """Manual correction; a negative delta may not overdraw stock."""
        ...

    def current_stock(self, product_id: str) -> int:
        ...

    def movements(self, product_id: Optional[str] = None) -> Tuple[StockMovement, ...]:
        ...


# ══════════════════════════════════════════════════════════════
# IN-MEMORY LEDGER
# ══════════════════════════════════════════════════════════════

class InMemoryStockLedger:
    """Stock ledger over an InMemoryCatalog. Thread-safe."""

    def __init__(
        self,
        catalog: InMemoryCatalog,
        *,
        clock: Optional[Clock] = None,
        lock: Optional[threading.RLock] = None,
    ):
        self._catalog = catalog
        self._clock = clock or SystemClock()
        self._lock = lock or threading.RLock()
        self._movements: List[StockMovement] = []

    def _record(
        self,
        *,
        product_id: str,
        movement_type: MovementType,
        reason: MovementReason,
        quantity: int,
        balance_after: int,
        reference_id: Optional[str],
        actor_id: Optional[str],
        note: str = "",
    ) -> StockMovement:
        movement = StockMovement(
            movement_id=uuid.uuid4(),
            product_id=product_id,
            movement_type=movement_type,
            reason=reason,
            quantity=quantity,
            balance_after=balance_after,
            occurred_at=self._clock.now_utc(),
            reference_id=reference_id,
            actor_id=actor_id,
            note=note,
        )
        self._movements.append(movement)
        return movement

    def _apply(
        self,
        product_id: str,
        delta: int,
        *,
        movement_type: MovementType,
        reason: MovementReason,
        reference_id: Optional[str],
        actor_id: Optional[str],
        note: str = "",
    ) -> StockMovement:
        with self._lock:
            product = self._catalog.get_product(product_id)
            if product is None:
                raise InvalidProductError(product_id)
            new_stock = product.stock_quantity + delta
            if new_stock < 0:
                logger.warning(
                    f"Stock {movement_type.value} refused for {product_id}: "
                    f"{product.stock_quantity} available, {-delta} requested"
                )
                raise InsufficientStockError(
                    product_id, -delta, product.stock_quantity,
                )
            self._catalog.save_product(product.with_stock(new_stock))
            return self._record(
                product_id=product_id,
                movement_type=movement_type,
                reason=reason,
                quantity=abs(delta),
                balance_after=new_stock,
                reference_id=reference_id,
                actor_id=actor_id,
                note=note,
            )

    def reserve(
        self,
        product_id: str,
        quantity: int,
        *,
        reason: MovementReason = MovementReason.ORDER_PLACED,
        reference_id: Optional[str] = None,
        actor_id: Optional[str] = None,
    ) -> StockMovement:
        _require_positive_quantity(quantity)
        return self._apply(
            product_id,
            -quantity,
            movement_type=MovementType.RESERVE,
            reason=reason,
            reference_id=reference_id,
            actor_id=actor_id,
        )

    def restore(
        self,
        product_id: str,
        quantity: int,
        *,
        reason: MovementReason = MovementReason.ORDER_CANCELLED,
        reference_id: Optional[str] = None,
        actor_id: Optional[str] = None,
    ) -> StockMovement:
        _require_positive_quantity(quantity)
        return self._apply(
            product_id,
            quantity,
            movement_type=MovementType.RESTORE,
            reason=reason,
            reference_id=reference_id,
            actor_id=actor_id,
        )

    def adjust(
        self,
        product_id: str,
        delta: int,
        *,
        actor_id: Optional[str] = None,
        note: str = "",
        reference_id: Optional[str] = None,
    ) -> StockMovement:
        if isinstance(delta, bool) or not isinstance(delta, int) or delta == 0:
            raise ValueError("delta must be non-zero integer.")
        return self._apply(
            product_id,
            delta,
            movement_type=(
                MovementType.ADJUST_IN if delta > 0 else MovementType.ADJUST_OUT
            ),
            reason=MovementReason.MANUAL_ADJUSTMENT,
            reference_id=reference_id,
            actor_id=actor_id,
            note=note,
        )

    def current_stock(self, product_id: str) -> int:
        product = self._catalog.get_product(product_id)
        if product is None:
            raise InvalidProductError(product_id)
        return product.stock_quantity

    def movements(self, product_id: Optional[str] = None) -> Tuple[StockMovement, ...]:
        with self._lock:
            if product_id is None:
                return tuple(self._movements)
            return tuple(m for m in self._movements if m.product_id == product_id)

    def _snapshot(self) -> List[StockMovement]:
        return list(self._movements)

    def _restore(self, snapshot: List[StockMovement]) -> None:
        self._movements = list(snapshot)
