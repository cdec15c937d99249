"""
Storefront — Order Service Tests
==================================
Application-level orchestration: events after commit, read access,
and concurrent checkouts against the last unit of stock.
"""

import threading
from datetime import datetime, timezone

import pytest

from core.errors import (
    InsufficientStockError,
    OrderNotFoundError,
    UnauthorizedError,
)
from core.events import EventPublisher, SubscriberRegistry
from core.identity.roles import Principal, Role
from core.primitives.product import BulkPriceTier, Product
from core.time import FixedClock
from engines.orders.commands import (
    CancelOrderRequest,
    CartLine,
    CreateOrderRequest,
    ItemEdit,
    PaymentVerifyRequest,
    StatusTransitionRequest,
    UpdateItemsRequest,
)
from engines.orders.events import (
    ORDERS_EVENT_TYPES,
    ORDERS_ORDER_CANCELLED_V1,
    ORDERS_ORDER_CREATED_V1,
    ORDERS_ORDER_ITEMS_UPDATED_V1,
    ORDERS_ORDER_STATUS_CHANGED_V1,
    ORDERS_PAYMENT_VERIFIED_V1,
)
from engines.orders.models import Address, GuestInfo, OrderStatus, PaymentMethod, PaymentStatus
from engines.orders.repository import InMemoryStorefrontStore
from engines.orders.services import OrderService

NOW = datetime(2026, 3, 3, 10, 0, 0, tzinfo=timezone.utc)
ADDRESS = Address(full_name="Sadia", line1="1 Park Street", city="Khulna", phone="01500000000")
ADMIN = Principal(user_id="admin-1", role=Role.ADMIN)
BUYER = Principal(user_id="retail-1", role=Role.RETAIL)
OTHER_BUYER = Principal(user_id="retail-2", role=Role.RETAIL)
WHOLESALE = Principal(user_id="wholesale-1", role=Role.WHOLESALE)


class RecordingSubscriber:
    def __init__(self):
        self.events = []

    def __call__(self, event):
        self.events.append(event)


def _setup(stock=10, registry=None):
    store = InMemoryStorefrontStore(
        [
            Product(product_id="A", name="Shirt", price=100, wholesale_price=90,
                    min_order_quantity=6, stock_quantity=stock,
                    bulk_pricing=(BulkPriceTier(threshold_quantity=10, unit_price=85),)),
        ],
        clock=FixedClock(NOW),
    )
    registry = registry or SubscriberRegistry()
    recorder = RecordingSubscriber()
    for event_type in ORDERS_EVENT_TYPES:
        registry.register_subscriber(event_type, recorder, "test_recorder")
    service = OrderService(
        catalog=store.catalog,
        ledger=store.ledger,
        orders=store.orders,
        unit_of_work=store,
        publisher=EventPublisher(registry),
        clock=store.clock,
    )
    return store, service, recorder


def _create(service, principal=BUYER, quantity=3, method=PaymentMethod.CASH_ON_DELIVERY, reference=None):
    return service.create_order(
        CreateOrderRequest(
            lines=(CartLine(product_id="A", quantity=quantity),),
            shipping_address=ADDRESS,
            billing_address=ADDRESS,
            payment_method=method,
            payment_reference=reference,
            guest_info=None if principal else GuestInfo(name="Guest", mobile="01600000000"),
        ),
        principal,
    )


# ══════════════════════════════════════════════════════════════
# EVENTS
# ══════════════════════════════════════════════════════════════

class TestEvents:
    def test_created_event(self):
        _, service, recorder = _setup()
        order = _create(service)
        assert [e.event_type for e in recorder.events] == [ORDERS_ORDER_CREATED_V1]
        event = recorder.events[0]
        assert event.payload["order_id"] == order.order_id
        assert event.actor_id == "retail-1"
        assert event.occurred_at == NOW
        assert event.source_engine == "orders"

    def test_failed_checkout_publishes_nothing(self):
        _, service, recorder = _setup(stock=2)
        with pytest.raises(InsufficientStockError):
            _create(service, quantity=3)
        assert recorder.events == []

    def test_full_flow_events(self):
        _, service, recorder = _setup()
        order = _create(service, method=PaymentMethod.BANK_TRANSFER, reference="BANK-778899")
        order = service.verify_payment(ADMIN, PaymentVerifyRequest(
            order_id=order.order_id, outcome=PaymentStatus.PAID,
        ))
        order = service.update_items(ADMIN, UpdateItemsRequest(
            order_id=order.order_id,
            items=(ItemEdit(product_id="A", quantity=4, unit_price=100),),
        ))
        order = service.transition_status(ADMIN, StatusTransitionRequest(
            order_id=order.order_id, target_status=OrderStatus.CONFIRMED,
        ))
        service.cancel_order(ADMIN, CancelOrderRequest(
            order_id=order.order_id, reason="Fraud check failed",
        ))

        assert [e.event_type for e in recorder.events] == [
            ORDERS_ORDER_CREATED_V1,
            ORDERS_PAYMENT_VERIFIED_V1,
            ORDERS_ORDER_ITEMS_UPDATED_V1,
            ORDERS_ORDER_STATUS_CHANGED_V1,
            ORDERS_ORDER_CANCELLED_V1,
        ]

    def test_transition_to_cancelled_emits_cancelled(self):
        store, service, recorder = _setup()
        order = _create(service)
        service.transition_status(ADMIN, StatusTransitionRequest(
            order_id=order.order_id, target_status=OrderStatus.CANCELLED, reason="Duplicate",
        ))
        assert recorder.events[-1].event_type == ORDERS_ORDER_CANCELLED_V1
        assert store.ledger.current_stock("A") == 10

    def test_subscriber_failure_keeps_order(self):
        def _broken(event):
            raise RuntimeError("sms gateway down")

        registry = SubscriberRegistry()
        registry.register_subscriber(ORDERS_ORDER_CREATED_V1, _broken, "sms")
        store, service, recorder = _setup(registry=registry)

        order = _create(service)
        assert store.orders.get(order.order_id) is not None
        assert store.ledger.current_stock("A") == 7
        assert len(recorder.events) == 1


# ══════════════════════════════════════════════════════════════
# READS
# ══════════════════════════════════════════════════════════════

class TestReads:
    def test_preview_matches_order_pricing(self):
        _, service, _ = _setup(stock=100)
        preview = service.preview_cart(WHOLESALE, (CartLine(product_id="A", quantity=2),))
        order = _create(service, principal=WHOLESALE, quantity=2)
        assert preview[0].effective_quantity == order.items[0].quantity == 6
        assert preview[0].unit_price == order.items[0].unit_price == 90

    def test_preview_does_not_reserve(self):
        store, service, _ = _setup()
        service.preview_cart(None, (CartLine(product_id="A", quantity=10),))
        assert store.ledger.current_stock("A") == 10

    def test_get_order_owner_or_admin(self):
        _, service, _ = _setup()
        order = _create(service)
        assert service.get_order(BUYER, order.order_id) == order
        assert service.get_order(ADMIN, order.order_id) == order
        with pytest.raises(UnauthorizedError):
            service.get_order(OTHER_BUYER, order.order_id)
        with pytest.raises(UnauthorizedError):
            service.get_order(None, order.order_id)
        with pytest.raises(OrderNotFoundError):
            service.get_order(ADMIN, "missing")

    def test_list_orders_scoped(self):
        _, service, _ = _setup()
        mine = _create(service, quantity=1)
        _create(service, principal=OTHER_BUYER, quantity=1)
        _create(service, principal=None, quantity=1)

        assert service.list_orders(BUYER) == (mine,)
        assert len(service.list_orders(ADMIN)) == 3
        with pytest.raises(UnauthorizedError):
            service.list_orders(None)


# ══════════════════════════════════════════════════════════════
# CONCURRENCY
# ══════════════════════════════════════════════════════════════

class TestConcurrentCheckout:
    def test_last_unit_sold_once(self):
        store, service, recorder = _setup(stock=1)
        buyers = [Principal(user_id=f"buyer-{i}", role=Role.RETAIL) for i in range(6)]
        barrier = threading.Barrier(len(buyers))
        results = []
        results_lock = threading.Lock()

        def _checkout(principal):
            barrier.wait()
            try:
                order = _create(service, principal=principal, quantity=1)
                outcome = ("ok", order.order_number)
            except InsufficientStockError:
                outcome = ("refused", None)
            with results_lock:
                results.append(outcome)

        threads = [threading.Thread(target=_checkout, args=(b,)) for b in buyers]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert [r[0] for r in results].count("ok") == 1
        assert store.ledger.current_stock("A") == 0
        assert len(store.orders.list_orders()) == 1
        assert len(recorder.events) == 1

    def test_order_numbers_unique(self):
        _, service, _ = _setup(stock=100)
        numbers = {_create(service, quantity=1).order_number for _ in range(20)}
        assert len(numbers) == 20
