"""
Storefront — Payment Verification Tests
=========================================
Admin confirmation of manual payments.
"""

from datetime import datetime, timezone

import pytest

from core.errors import (
    InvalidTransitionError,
    ReasonCode,
    StaleStateError,
    UnauthorizedError,
    ValidationError,
)
from core.identity.roles import Principal, Role
from core.primitives.product import Product
from core.time import FixedClock
from engines.orders.assembler import OrderAssembler
from engines.orders.commands import CartLine, CreateOrderRequest, PaymentVerifyRequest
from engines.orders.models import (
    Address,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from engines.orders.payments import PaymentVerification
from engines.orders.repository import InMemoryStorefrontStore
from engines.orders.workflows import PAYMENT_STATUS_WORKFLOW

NOW = datetime(2026, 3, 2, 15, 30, 0, tzinfo=timezone.utc)
ADDRESS = Address(full_name="Nadia", line1="7 Station Road", city="Sylhet", phone="01900000000")
ADMIN = Principal(user_id="admin-1", role=Role.ADMIN)
BUYER = Principal(user_id="retail-1", role=Role.RETAIL)


def _setup():
    store = InMemoryStorefrontStore(
        [Product(product_id="A", name="Shirt", price=100, wholesale_price=90, stock_quantity=10)],
        clock=FixedClock(NOW),
    )
    assembler = OrderAssembler(
        catalog=store.catalog,
        ledger=store.ledger,
        orders=store.orders,
        unit_of_work=store,
        clock=store.clock,
    )
    payments = PaymentVerification(orders=store.orders, unit_of_work=store, clock=store.clock)
    return store, assembler, payments


def _place(assembler, method=PaymentMethod.MOBILE_WALLET, reference="TXN12345"):
    return assembler.create_order(
        CreateOrderRequest(
            lines=(CartLine(product_id="A", quantity=1),),
            shipping_address=ADDRESS,
            billing_address=ADDRESS,
            payment_method=method,
            payment_reference=reference,
        ),
        BUYER,
    )


def _verify(payments, order, outcome, note="", principal=ADMIN, **kwargs):
    return payments.verify(
        principal,
        PaymentVerifyRequest(order_id=order.order_id, outcome=outcome, note=note, **kwargs),
    )


class TestPaymentWorkflow:
    def test_failed_and_refunded_terminal(self):
        assert PAYMENT_STATUS_WORKFLOW.is_terminal("FAILED")
        assert PAYMENT_STATUS_WORKFLOW.is_terminal("REFUNDED")
        assert not PAYMENT_STATUS_WORKFLOW.is_terminal("PAID")

    def test_partial_and_refund_follow_paid(self):
        assert PAYMENT_STATUS_WORKFLOW.is_valid_transition("PAID", "REFUNDED")
        assert PAYMENT_STATUS_WORKFLOW.is_valid_transition("PAID", "PARTIAL")
        assert not PAYMENT_STATUS_WORKFLOW.is_valid_transition("FAILED", "PAID")


class TestVerify:
    def test_mark_paid(self):
        store, assembler, payments = _setup()
        order = _place(assembler)
        assert order.payment_status == PaymentStatus.PENDING_VERIFICATION

        verified = _verify(payments, order, PaymentStatus.PAID, note="Matched statement")
        assert verified.payment_status == PaymentStatus.PAID
        assert verified.payment_verified_by == "admin-1"
        assert verified.payment_verified_at == NOW
        assert verified.payment_notes == "Matched statement"
        assert verified.status == OrderStatus.PENDING
        assert verified.version == order.version + 1
        assert verified.status_history[-1].workflow == "PaymentStatus"
        assert store.orders.get(order.order_id) == verified

    def test_mark_failed_requires_note(self):
        _, assembler, payments = _setup()
        order = _place(assembler)
        with pytest.raises(ValidationError) as exc_info:
            _verify(payments, order, PaymentStatus.FAILED)
        assert exc_info.value.code == ReasonCode.REASON_REQUIRED

        failed = _verify(payments, order, PaymentStatus.FAILED, note="No such transaction")
        assert failed.payment_status == PaymentStatus.FAILED
        assert failed.payment_notes == "No such transaction"
        assert failed.status == OrderStatus.PENDING

    def test_second_verification_rejected(self):
        store, assembler, payments = _setup()
        order = _place(assembler)
        verified = _verify(payments, order, PaymentStatus.PAID)
        store.clock.advance(60)

        with pytest.raises(InvalidTransitionError):
            _verify(payments, order, PaymentStatus.FAILED, note="changed my mind")
        with pytest.raises(InvalidTransitionError):
            _verify(payments, order, PaymentStatus.PAID)

        stored = store.orders.get(order.order_id)
        assert stored.payment_status == PaymentStatus.PAID
        assert stored.updated_at == verified.updated_at
        assert stored.version == verified.version

    def test_pending_cash_order_verifiable(self):
        _, assembler, payments = _setup()
        order = _place(assembler, method=PaymentMethod.CASH_ON_DELIVERY, reference=None)
        assert order.payment_status == PaymentStatus.PENDING
        assert _verify(payments, order, PaymentStatus.PAID).payment_status == PaymentStatus.PAID

    def test_non_admin_rejected(self):
        store, assembler, payments = _setup()
        order = _place(assembler)
        with pytest.raises(UnauthorizedError):
            _verify(payments, order, PaymentStatus.PAID, principal=BUYER)
        assert store.orders.get(order.order_id).payment_status == PaymentStatus.PENDING_VERIFICATION

    def test_stale_version(self):
        _, assembler, payments = _setup()
        order = _place(assembler)
        with pytest.raises(StaleStateError):
            _verify(payments, order, PaymentStatus.PAID, expected_version=7)

    def test_outcome_limited_to_paid_or_failed(self):
        with pytest.raises(ValidationError):
            PaymentVerifyRequest(order_id="o-1", outcome=PaymentStatus.REFUNDED)

    def test_from_dict_reads_status_and_note(self):
        request = PaymentVerifyRequest.from_dict("o-1", {"status": "paid", "note": "ok"})
        assert request.outcome == PaymentStatus.PAID
        assert request.note == "ok"
        with pytest.raises(ValidationError):
            PaymentVerifyRequest.from_dict("o-1", {"status": "REFUNDED"})
