"""
Storefront — Inventory Service Tests
======================================
Admin stock adjustments, stock report and reorder alerts.
"""

from datetime import datetime, timezone

import pytest

from core.errors import (
    InsufficientStockError,
    InvalidProductError,
    ReasonCode,
    UnauthorizedError,
    ValidationError,
)
from core.events import EventPublisher, SubscriberRegistry
from core.identity.roles import Principal, Role
from core.primitives.inventory import MovementType
from core.primitives.product import Product
from core.time import FixedClock
from engines.inventory.commands import StockAdjustRequest
from engines.inventory.events import INVENTORY_STOCK_ADJUSTED_V1
from engines.inventory.ledger import StockStatus
from engines.inventory.services import InventoryService
from engines.orders.repository import InMemoryStorefrontStore

NOW = datetime(2026, 3, 4, 8, 0, 0, tzinfo=timezone.utc)
ADMIN = Principal(user_id="admin-1", role=Role.ADMIN)
BUYER = Principal(user_id="retail-1", role=Role.RETAIL)


def _setup():
    store = InMemoryStorefrontStore(
        [
            Product(product_id="A", name="Shirt", price=100, wholesale_price=90, stock_quantity=20),
            Product(product_id="B", name="Belt", price=50, wholesale_price=45, stock_quantity=0),
            Product(product_id="C", name="Cap", price=40, wholesale_price=30,
                    min_order_quantity=5, stock_quantity=8),
            Product(product_id="D", name="Scarf", price=70, wholesale_price=60, stock_quantity=500),
            Product(product_id="E", name="Old Hat", price=10, wholesale_price=9,
                    stock_quantity=0, is_active=False),
        ],
        clock=FixedClock(NOW),
    )
    events = []
    registry = SubscriberRegistry()
    registry.register_subscriber(INVENTORY_STOCK_ADJUSTED_V1, events.append, "test_recorder")
    service = InventoryService(
        catalog=store.catalog,
        ledger=store.ledger,
        unit_of_work=store,
        publisher=EventPublisher(registry),
        clock=store.clock,
    )
    return store, service, events


def _adjust(adjustment_type, quantity, product_id="A", reason="Cycle count correction"):
    return StockAdjustRequest(
        product_id=product_id,
        adjustment_type=adjustment_type,
        quantity=quantity,
        reason=reason,
    )


class TestStockAdjustRequest:
    def test_reason_minimum_length(self):
        with pytest.raises(ValidationError) as exc_info:
            _adjust("add", 1, reason="oops")
        assert exc_info.value.code == ReasonCode.REASON_REQUIRED

    def test_invalid_type(self):
        with pytest.raises(ValidationError) as exc_info:
            _adjust("multiply", 2)
        assert exc_info.value.code == ReasonCode.INVALID_STOCK_ADJUSTMENT

    def test_add_requires_positive(self):
        with pytest.raises(ValidationError):
            _adjust("add", 0)

    def test_set_allows_zero(self):
        assert _adjust("set", 0).delta_from(12) == -12

    def test_from_dict_accepts_type_alias(self):
        request = StockAdjustRequest.from_dict({
            "product_id": "A", "type": "remove", "quantity": 2, "reason": "Damaged in transit",
        })
        assert request.adjustment_type == "remove"
        assert request.delta_from(10) == -2


class TestAdjustStock:
    def test_add(self):
        store, service, events = _setup()
        result = service.adjust_stock(ADMIN, _adjust("add", 5))
        assert result.previous_stock == 20
        assert result.new_stock == 25
        assert result.movement.movement_type == MovementType.ADJUST_IN
        assert result.movement.note == "Cycle count correction"
        assert result.movement.actor_id == "admin-1"
        assert store.ledger.current_stock("A") == 25
        assert len(events) == 1
        assert events[0].payload["new_stock"] == 25

    def test_remove(self):
        store, service, _ = _setup()
        result = service.adjust_stock(ADMIN, _adjust("remove", 20))
        assert result.new_stock == 0
        assert store.ledger.current_stock("A") == 0

    def test_remove_more_than_available(self):
        store, service, events = _setup()
        with pytest.raises(InsufficientStockError):
            service.adjust_stock(ADMIN, _adjust("remove", 21))
        assert store.ledger.current_stock("A") == 20
        assert events == []

    def test_set(self):
        store, service, _ = _setup()
        result = service.adjust_stock(ADMIN, _adjust("set", 3))
        assert result.movement.movement_type == MovementType.ADJUST_OUT
        assert result.movement.quantity == 17
        assert store.ledger.current_stock("A") == 3

    def test_set_to_current_is_noop(self):
        store, service, events = _setup()
        result = service.adjust_stock(ADMIN, _adjust("set", 20))
        assert not result.changed
        assert store.ledger.movements() == ()
        assert events == []

    def test_unknown_product(self):
        _, service, _ = _setup()
        with pytest.raises(InvalidProductError):
            service.adjust_stock(ADMIN, _adjust("add", 1, product_id="NOPE"))

    def test_admin_only(self):
        store, service, _ = _setup()
        with pytest.raises(UnauthorizedError):
            service.adjust_stock(BUYER, _adjust("add", 1))
        with pytest.raises(UnauthorizedError):
            service.adjust_stock(None, _adjust("add", 1))
        assert store.ledger.current_stock("A") == 20


class TestStockReport:
    def test_report_lines(self):
        _, service, _ = _setup()
        lines = {line.product_id: line for line in service.stock_report(ADMIN)}
        assert lines["A"].stock_status == StockStatus.IN_STOCK
        assert lines["B"].stock_status == StockStatus.OUT_OF_STOCK
        assert lines["C"].stock_status == StockStatus.LOW_STOCK
        assert lines["C"].reorder_point == 10
        assert lines["D"].stock_status == StockStatus.OVERSTOCK
        assert lines["A"].to_dict()["stock_status"] == "in_stock"

    def test_reorder_alerts_skip_inactive(self):
        _, service, _ = _setup()
        alerts = service.reorder_alerts(ADMIN)
        assert [line.product_id for line in alerts] == ["B", "C"]
        assert all(line.needs_reorder for line in alerts)

    def test_report_admin_only(self):
        _, service, _ = _setup()
        with pytest.raises(UnauthorizedError):
            service.stock_report(BUYER)
        with pytest.raises(UnauthorizedError):
            service.reorder_alerts(None)
