"""
Storefront Orders Engine — Application Service
================================================
Single entry point for the HTTP boundary.

Orchestrates:
1. Checkout (OrderAssembler)
2. Fulfillment transitions and cancellation (OrderLifecycle)
3. Manual payment verification (PaymentVerification)
4. Read access with owner/admin checks
5. Event publishing after commit
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

from core.config import CheckoutConfig
from core.errors import OrderNotFoundError, ReasonCode, UnauthorizedError
from core.events import DomainEvent, EventPublisher, publish_after_commit
from core.identity import Principal, customer_class_for, require_admin_or_owner
from core.persistence import UnitOfWork
from core.time import Clock, SystemClock
from engines.inventory.catalog import CatalogRepository
from engines.inventory.ledger import StockLedger
from engines.orders.assembler import OrderAssembler
from engines.orders.commands import (
    CancelOrderRequest,
    CartLine,
    CreateOrderRequest,
    PaymentVerifyRequest,
    StatusTransitionRequest,
    UpdateItemsRequest,
)
from engines.orders.events import (
    ORDERS_ORDER_CANCELLED_V1,
    build_items_updated_payload,
    build_order_cancelled_payload,
    build_order_created_payload,
    build_payment_verified_payload,
    build_status_changed_payload,
    resolve_orders_event_type,
)
from engines.orders.lifecycle import OrderLifecycle
from engines.orders.models import Order, OrderStatus
from engines.orders.numbering import OrderNumberGenerator
from engines.orders.payments import PaymentVerification
from engines.orders.repository import OrderRepository
from engines.pricing.resolver import PriceResolution

logger = logging.getLogger("storefront.orders")


class OrderService:
    """Orders Engine application service."""

    def __init__(
        self,
        *,
        catalog: CatalogRepository,
        ledger: StockLedger,
        orders: OrderRepository,
        unit_of_work: UnitOfWork,
        publisher: Optional[EventPublisher] = None,
        config: Optional[CheckoutConfig] = None,
        clock: Optional[Clock] = None,
        numbering: Optional[OrderNumberGenerator] = None,
    ):
        self._orders = orders
        self._uow = unit_of_work
        self._publisher = publisher
        self._clock = clock or SystemClock()
        self._assembler = OrderAssembler(
            catalog=catalog,
            ledger=ledger,
            orders=orders,
            unit_of_work=unit_of_work,
            config=config,
            clock=self._clock,
            numbering=numbering,
        )
        self._lifecycle = OrderLifecycle(
            orders=orders,
            ledger=ledger,
            unit_of_work=unit_of_work,
            clock=self._clock,
        )
        self._payments = PaymentVerification(
            orders=orders,
            unit_of_work=unit_of_work,
            clock=self._clock,
        )

    @property
    def assembler(self) -> OrderAssembler:
        return self._assembler

    @property
    def lifecycle(self) -> OrderLifecycle:
        return self._lifecycle

    @property
    def payments(self) -> PaymentVerification:
        return self._payments

    def _emit(self, event_type: str, payload: dict, *, actor_id: Optional[str]) -> None:
        publish_after_commit(self._uow, self._publisher, DomainEvent(
            event_type=event_type,
            occurred_at=self._clock.now_utc(),
            payload=payload,
            actor_id=actor_id,
        ))

    @staticmethod
    def _actor_id(principal: Optional[Principal]) -> Optional[str]:
        return principal.user_id if principal is not None else None

    # ── Commands ───────────────────────────────────────────────

    def create_order(
        self,
        request: CreateOrderRequest,
        principal: Optional[Principal] = None,
    ) -> Order:
        with self._uow.atomic():
            order = self._assembler.create_order(request, principal)
            self._emit(
                resolve_orders_event_type(request.command_type),
                build_order_created_payload(order),
                actor_id=self._actor_id(principal),
            )
        return order

    def transition_status(
        self,
        principal: Optional[Principal],
        request: StatusTransitionRequest,
    ) -> Order:
        with self._uow.atomic():
            before = self._orders.get(request.order_id)
            after = self._lifecycle.transition(principal, request)
            if after.status == OrderStatus.CANCELLED:
                self._emit(
                    ORDERS_ORDER_CANCELLED_V1,
                    build_order_cancelled_payload(before, after),
                    actor_id=self._actor_id(principal),
                )
            else:
                self._emit(
                    resolve_orders_event_type(request.command_type),
                    build_status_changed_payload(
                        before, after, actor_id=self._actor_id(principal),
                    ),
                    actor_id=self._actor_id(principal),
                )
        return after

    def cancel_order(
        self,
        principal: Optional[Principal],
        request: CancelOrderRequest,
    ) -> Order:
        with self._uow.atomic():
            before = self._orders.get(request.order_id)
            after = self._lifecycle.cancel(principal, request)
            self._emit(
                resolve_orders_event_type(request.command_type),
                build_order_cancelled_payload(before, after),
                actor_id=self._actor_id(principal),
            )
        return after

    def update_items(
        self,
        principal: Optional[Principal],
        request: UpdateItemsRequest,
    ) -> Order:
        with self._uow.atomic():
            before, after = self._assembler.update_items(principal, request)
            self._emit(
                resolve_orders_event_type(request.command_type),
                build_items_updated_payload(
                    before, after, actor_id=self._actor_id(principal),
                ),
                actor_id=self._actor_id(principal),
            )
        return after

    def verify_payment(
        self,
        principal: Optional[Principal],
        request: PaymentVerifyRequest,
    ) -> Order:
        with self._uow.atomic():
            before = self._orders.get(request.order_id)
            after = self._payments.verify(principal, request)
            self._emit(
                resolve_orders_event_type(request.command_type),
                build_payment_verified_payload(before, after),
                actor_id=self._actor_id(principal),
            )
        return after

    # ── Queries ────────────────────────────────────────────────

    def preview_cart(
        self,
        principal: Optional[Principal],
        lines: Tuple[CartLine, ...],
    ) -> Tuple[PriceResolution, ...]:
        """Same pricing the order will get, without reserving stock."""
        customer_class = customer_class_for(principal)
        return tuple(
            resolution
            for resolution, _, _ in self._assembler.price_cart(lines, customer_class)
        )

    def get_order(self, principal: Optional[Principal], order_id: str) -> Order:
        order = self._orders.get(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        require_admin_or_owner(principal, owner_id=order.owner_id, operation="view_order")
        return order

    def list_orders(self, principal: Optional[Principal]) -> Tuple[Order, ...]:
        """Admins see every order; buyers see their own."""
        if principal is None:
            raise UnauthorizedError(
                "Authentication required.", code=ReasonCode.ADMIN_REQUIRED,
            )
        if principal.is_admin:
            return self._orders.list_orders()
        return self._orders.list_orders(user_id=principal.user_id)
