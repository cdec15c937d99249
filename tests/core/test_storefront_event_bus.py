"""
Storefront — Event Bus Tests
==============================
Subscriber registration, failure-isolated dispatch, and publishing
only after the unit of work commits.
"""

from datetime import datetime, timezone

import pytest

from core.events import (
    DomainEvent,
    DuplicateSubscriberError,
    EventBusError,
    EventPublisher,
    InvalidEventTypeFormat,
    SubscriberRegistry,
    dispatch,
    publish_after_commit,
    validate_event_type,
)
from core.primitives.product import Product
from engines.orders.repository import InMemoryStorefrontStore

NOW = datetime(2026, 3, 5, 12, 0, 0, tzinfo=timezone.utc)
EVENT_TYPE = "orders.order.created.v1"


def _event(**payload):
    return DomainEvent(event_type=EVENT_TYPE, occurred_at=NOW, payload=payload, actor_id="u1")


@pytest.mark.parametrize(
    "event_type",
    ["orders.order.created.v1", "inventory.stock.adjusted.v12"],
)
def test_valid_event_types(event_type):
    validate_event_type(event_type)


@pytest.mark.parametrize(
    "event_type",
    ["orders.created", "Orders.order.created.v1", "orders.order.created", "", None],
)
def test_invalid_event_types(event_type):
    with pytest.raises(InvalidEventTypeFormat):
        validate_event_type(event_type)


def test_event_envelope():
    event = _event(order_id="o-1")
    assert event.source_engine == "orders"
    data = event.to_dict()
    assert data["event_type"] == EVENT_TYPE
    assert data["payload"] == {"order_id": "o-1"}
    assert data["occurred_at"] == NOW.isoformat()


def test_duplicate_subscriber_rejected():
    def handler(event):
        return None

    registry = SubscriberRegistry()
    registry.register_subscriber(EVENT_TYPE, handler, "sms")
    with pytest.raises(DuplicateSubscriberError):
        registry.register_subscriber(EVENT_TYPE, handler, "sms")
    assert registry.subscriber_count(EVENT_TYPE) == 1


def test_non_callable_rejected():
    with pytest.raises(EventBusError):
        SubscriberRegistry().register_subscriber(EVENT_TYPE, "not a handler", "x")


def test_dispatch_isolates_failures():
    received = []

    def _broken(event):
        raise RuntimeError("mailer offline")

    registry = SubscriberRegistry()
    registry.register_subscriber(EVENT_TYPE, _broken, "email")
    registry.register_subscriber(EVENT_TYPE, received.append, "audit")

    result = dispatch(_event(order_id="o-1"), registry)

    assert result["subscribers_notified"] == 1
    assert result["subscribers_failed"] == 1
    assert result["failures"][0]["error_type"] == "RuntimeError"
    assert result["failures"][0]["subscriber"] == "email"
    assert len(received) == 1


def test_dispatch_without_subscribers():
    result = dispatch(_event(), SubscriberRegistry())
    assert result["subscribers_notified"] == 0
    assert result["failures"] == []


def _store():
    return InMemoryStorefrontStore(
        [Product(product_id="A", name="Shirt", price=100, wholesale_price=90, stock_quantity=5)],
    )


def test_publish_waits_for_commit():
    store = _store()
    registry = SubscriberRegistry()
    received = []
    registry.register_subscriber(EVENT_TYPE, received.append, "audit")
    publisher = EventPublisher(registry)

    with store.atomic():
        publish_after_commit(store, publisher, _event(order_id="o-1"))
        with store.atomic():
            publish_after_commit(store, publisher, _event(order_id="o-2"))
        assert received == []

    assert [e.payload["order_id"] for e in received] == ["o-1", "o-2"]


def test_rollback_discards_events():
    store = _store()
    registry = SubscriberRegistry()
    received = []
    registry.register_subscriber(EVENT_TYPE, received.append, "audit")

    with pytest.raises(RuntimeError):
        with store.atomic():
            store.ledger.reserve("A", 2)
            publish_after_commit(store, EventPublisher(registry), _event(order_id="o-1"))
            raise RuntimeError("boom")

    assert received == []
    assert store.ledger.current_stock("A") == 5


def test_publish_outside_transaction_is_immediate():
    store = _store()
    registry = SubscriberRegistry()
    received = []
    registry.register_subscriber(EVENT_TYPE, received.append, "audit")
    publish_after_commit(store, EventPublisher(registry), _event())
    assert len(received) == 1


def test_no_publisher_is_a_noop():
    publish_after_commit(_store(), None, _event())


def test_failing_publisher_does_not_raise():
    class _Exploding(EventPublisher):
        def publish(self, event):
            raise ConnectionError("broker down")

    store = _store()
    with store.atomic():
        publish_after_commit(store, _Exploding(), _event())
