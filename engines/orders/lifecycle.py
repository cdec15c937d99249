"""
Storefront Orders Engine — Order Lifecycle
============================================
Fulfillment status transitions.

PENDING → CONFIRMED → PROCESSING → SHIPPED → DELIVERED, forward only;
an admin may skip steps. Any non-terminal status may be CANCELLED,
which restores stock for every item. Cancellation and the restores
are one unit of work: if a restore fails the order keeps its prior
status and the caller may retry.

DELIVERED, CANCELLED and RETURNED are terminal.
"""

from __future__ import annotations

import logging
import uuid
from typing import Optional

from core.errors import InvalidTransitionError, ValidationError
from core.identity import Principal, require_admin, require_admin_or_owner
from core.persistence import UnitOfWork
from core.primitives.inventory import MovementReason
from core.primitives.workflow import StateTransition
from core.time import Clock, SystemClock
from engines.inventory.ledger import StockLedger
from engines.orders.assembler import load_order_for_update
from engines.orders.commands import CancelOrderRequest, StatusTransitionRequest
from engines.orders.models import Order, OrderStatus
from engines.orders.policies import cancellation_reason_policy
from engines.orders.repository import OrderRepository
from engines.orders.workflows import ORDER_STATUS_WORKFLOW

logger = logging.getLogger("storefront.orders")


class OrderLifecycle:
    def __init__(
        self,
        *,
        orders: OrderRepository,
        ledger: StockLedger,
        unit_of_work: UnitOfWork,
        clock: Optional[Clock] = None,
    ):
        self._orders = orders
        self._ledger = ledger
        self._uow = unit_of_work
        self._clock = clock or SystemClock()

    def _transition_record(
        self,
        order: Order,
        target: OrderStatus,
        *,
        actor_id: str,
        reason: str,
        at,
    ) -> StateTransition:
        return StateTransition(
            transition_id=uuid.uuid4(),
            workflow=ORDER_STATUS_WORKFLOW.name,
            from_state=order.status.value,
            to_state=target.value,
            actor_id=actor_id,
            transitioned_at=at,
            reason=reason,
        )

    def _require_transition(self, order: Order, target: OrderStatus) -> None:
        try:
            ORDER_STATUS_WORKFLOW.require_transition(order.status.value, target.value)
        except InvalidTransitionError:
            logger.warning(
                f"Rejected {order.status.value} → {target.value} "
                f"for order {order.order_number}"
            )
            raise

    def transition(
        self,
        principal: Optional[Principal],
        request: StatusTransitionRequest,
    ) -> Order:
        """Admin status change. A CANCELLED target is routed through cancel()."""
        actor = require_admin(principal, operation="transition_order_status")

        if request.target_status == OrderStatus.CANCELLED:
            return self.cancel(actor, CancelOrderRequest(
                order_id=request.order_id,
                reason=request.reason,
                expected_version=request.expected_version,
            ))

        with self._uow.atomic():
            order = load_order_for_update(
                self._orders, request.order_id, request.expected_version,
            )
            self._require_transition(order, request.target_status)
            now = self._clock.now_utc()
            updated = order.evolve(
                at=now,
                transition=self._transition_record(
                    order, request.target_status,
                    actor_id=actor.user_id, reason=request.reason, at=now,
                ),
                status=request.target_status,
            )
            self._orders.save(updated, expected_version=order.version)

        logger.info(
            f"Order {order.order_number}: {order.status.value} → "
            f"{updated.status.value} by {actor.user_id}"
        )
        return updated

    def cancel(
        self,
        principal: Optional[Principal],
        request: CancelOrderRequest,
    ) -> Order:
        with self._uow.atomic():
            order = load_order_for_update(
                self._orders, request.order_id, request.expected_version,
            )
            actor = require_admin_or_owner(
                principal, owner_id=order.owner_id, operation="cancel_order",
            )
            self._require_transition(order, OrderStatus.CANCELLED)

            reason = cancellation_reason_policy(request.reason)
            if reason is not None:
                raise ValidationError.from_reason(reason, order_id=request.order_id)

            quantities = order.item_quantities()
            for product_id in sorted(quantities):
                self._ledger.restore(
                    product_id,
                    quantities[product_id],
                    reason=MovementReason.ORDER_CANCELLED,
                    reference_id=order.order_number,
                    actor_id=actor.user_id,
                )

            now = self._clock.now_utc()
            cancellation_reason = request.reason.strip()
            updated = order.evolve(
                at=now,
                transition=self._transition_record(
                    order, OrderStatus.CANCELLED,
                    actor_id=actor.user_id, reason=cancellation_reason, at=now,
                ),
                status=OrderStatus.CANCELLED,
                cancelled_at=now,
                cancelled_by=actor.user_id,
                cancellation_reason=cancellation_reason,
            )
            self._orders.save(updated, expected_version=order.version)

        logger.info(
            f"Order {order.order_number} cancelled by {actor.user_id} "
            f"from {order.status.value}; restored {sum(quantities.values())} unit(s)"
        )
        return updated
