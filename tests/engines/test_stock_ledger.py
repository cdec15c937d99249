"""
Storefront — Stock Ledger Tests
=================================
Atomic reserve/restore, movement log and stock status derivation.
"""

import threading
from datetime import datetime, timezone

import pytest

from core.errors import InsufficientStockError, InvalidProductError
from core.primitives.inventory import MovementReason, MovementType
from core.primitives.product import Product
from core.time import FixedClock
from engines.inventory.catalog import InMemoryCatalog
from engines.inventory.ledger import (
    InMemoryStockLedger,
    StockStatus,
    derive_stock_status,
    reorder_point,
)

NOW = datetime(2026, 3, 1, 9, 0, 0, tzinfo=timezone.utc)


def _ledger(stock: int = 10) -> InMemoryStockLedger:
    catalog = InMemoryCatalog([
        Product(
            product_id="P-1",
            name="Shirt",
            price=100,
            wholesale_price=90,
            stock_quantity=stock,
        ),
    ])
    return InMemoryStockLedger(catalog, clock=FixedClock(NOW))


# ══════════════════════════════════════════════════════════════
# RESERVE / RESTORE
# ══════════════════════════════════════════════════════════════

class TestReserve:
    def test_reserve_decrements(self):
        ledger = _ledger(10)
        movement = ledger.reserve("P-1", 3, reference_id="ORD-1")
        assert ledger.current_stock("P-1") == 7
        assert movement.movement_type == MovementType.RESERVE
        assert movement.reason == MovementReason.ORDER_PLACED
        assert movement.quantity == 3
        assert movement.balance_after == 7
        assert movement.occurred_at == NOW
        assert movement.reference_id == "ORD-1"

    def test_reserve_exact_stock(self):
        ledger = _ledger(3)
        ledger.reserve("P-1", 3)
        assert ledger.current_stock("P-1") == 0

    def test_reserve_more_than_available(self):
        ledger = _ledger(2)
        with pytest.raises(InsufficientStockError) as exc_info:
            ledger.reserve("P-1", 3)
        assert exc_info.value.available == 2
        assert exc_info.value.requested == 3
        assert ledger.current_stock("P-1") == 2
        assert ledger.movements() == ()

    def test_reserve_unknown_product(self):
        with pytest.raises(InvalidProductError):
            _ledger().reserve("NOPE", 1)

    @pytest.mark.parametrize("quantity", [0, -1, 1.5])
    def test_reserve_requires_positive_integer(self, quantity):
        with pytest.raises(ValueError):
            _ledger().reserve("P-1", quantity)

    def test_last_unit_reserved_once_under_contention(self):
        ledger = _ledger(1)
        outcomes = []
        barrier = threading.Barrier(8)

        def _buy():
            barrier.wait()
            try:
                ledger.reserve("P-1", 1)
                outcomes.append("ok")
            except InsufficientStockError:
                outcomes.append("refused")

        threads = [threading.Thread(target=_buy) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert outcomes.count("ok") == 1
        assert outcomes.count("refused") == 7
        assert ledger.current_stock("P-1") == 0


class TestRestore:
    def test_restore_increments(self):
        ledger = _ledger(10)
        ledger.reserve("P-1", 3)
        movement = ledger.restore("P-1", 3, reference_id="ORD-1")
        assert ledger.current_stock("P-1") == 10
        assert movement.movement_type == MovementType.RESTORE
        assert movement.reason == MovementReason.ORDER_CANCELLED

    def test_movements_filtered_by_product(self):
        ledger = _ledger(10)
        ledger.reserve("P-1", 2)
        ledger.restore("P-1", 1)
        assert len(ledger.movements("P-1")) == 2
        assert ledger.movements("P-2") == ()


class TestAdjust:
    def test_adjust_in_and_out(self):
        ledger = _ledger(10)
        inbound = ledger.adjust("P-1", 5, actor_id="admin-1", note="restock")
        outbound = ledger.adjust("P-1", -3, actor_id="admin-1", note="damaged")
        assert inbound.movement_type == MovementType.ADJUST_IN
        assert outbound.movement_type == MovementType.ADJUST_OUT
        assert outbound.reason == MovementReason.MANUAL_ADJUSTMENT
        assert ledger.current_stock("P-1") == 12

    def test_adjust_cannot_overdraw(self):
        ledger = _ledger(2)
        with pytest.raises(InsufficientStockError):
            ledger.adjust("P-1", -5)
        assert ledger.current_stock("P-1") == 2

    def test_zero_delta_rejected(self):
        with pytest.raises(ValueError):
            _ledger().adjust("P-1", 0)


# ══════════════════════════════════════════════════════════════
# STOCK STATUS
# ══════════════════════════════════════════════════════════════

class TestStockStatus:
    def test_reorder_point_floor(self):
        assert reorder_point(1) == 10
        assert reorder_point(5) == 10
        assert reorder_point(8) == 16

    @pytest.mark.parametrize(
        "stock, moq, expected",
        [
            (0, 1, StockStatus.OUT_OF_STOCK),
            (10, 1, StockStatus.LOW_STOCK),
            (11, 1, StockStatus.IN_STOCK),
            (100, 1, StockStatus.IN_STOCK),
            (101, 1, StockStatus.OVERSTOCK),
            (16, 8, StockStatus.LOW_STOCK),
            (17, 8, StockStatus.IN_STOCK),
        ],
    )
    def test_derivation(self, stock, moq, expected):
        assert derive_stock_status(stock, moq) == expected
