"""
Storefront Orders Engine — Payment Verification
=================================================
Admin confirmation of manual payments (bank transfer, mobile wallet)
against the buyer's transaction reference.

RULES:
- Only ADMIN / SUPER_ADMIN may verify
- Accepted only while payment_status is PENDING or
  PENDING_VERIFICATION; verifying twice is an invalid transition
- FAILED requires a rejection note; PAID takes an optional note
- Never touches the fulfillment status
"""

from __future__ import annotations

import logging
import uuid
from typing import Optional

from core.errors import InvalidTransitionError, ValidationError
from core.identity import Principal, require_admin
from core.persistence import UnitOfWork
from core.primitives.workflow import StateTransition
from core.time import Clock, SystemClock
from engines.orders.assembler import load_order_for_update
from engines.orders.commands import PaymentVerifyRequest
from engines.orders.models import Order
from engines.orders.policies import payment_rejection_note_policy
from engines.orders.repository import OrderRepository
from engines.orders.workflows import (
    PAYMENT_STATUS_WORKFLOW,
    VERIFIABLE_PAYMENT_STATUSES,
)

logger = logging.getLogger("storefront.payments")


class PaymentVerification:
    def __init__(
        self,
        *,
        orders: OrderRepository,
        unit_of_work: UnitOfWork,
        clock: Optional[Clock] = None,
    ):
        self._orders = orders
        self._uow = unit_of_work
        self._clock = clock or SystemClock()

    def verify(
        self,
        principal: Optional[Principal],
        request: PaymentVerifyRequest,
    ) -> Order:
        actor = require_admin(principal, operation="verify_payment")

        reason = payment_rejection_note_policy(request.outcome, request.note)
        if reason is not None:
            raise ValidationError.from_reason(reason, order_id=request.order_id)

        with self._uow.atomic():
            order = load_order_for_update(
                self._orders, request.order_id, request.expected_version,
            )
            current = order.payment_status
            if current not in VERIFIABLE_PAYMENT_STATUSES:
                logger.warning(
                    f"Verification refused for {order.order_number}: "
                    f"payment already {current.value}"
                )
                raise InvalidTransitionError(
                    current.value,
                    request.outcome.value,
                    f"Payment for order {order.order_number} is already "
                    f"{current.value}; only pending payments can be verified.",
                )
            PAYMENT_STATUS_WORKFLOW.require_transition(
                current.value, request.outcome.value,
            )

            now = self._clock.now_utc()
            note = request.note.strip()
            updated = order.evolve(
                at=now,
                transition=StateTransition(
                    transition_id=uuid.uuid4(),
                    workflow=PAYMENT_STATUS_WORKFLOW.name,
                    from_state=current.value,
                    to_state=request.outcome.value,
                    actor_id=actor.user_id,
                    transitioned_at=now,
                    reason=note,
                ),
                payment_status=request.outcome,
                payment_verified_at=now,
                payment_verified_by=actor.user_id,
                payment_notes=note,
            )
            self._orders.save(updated, expected_version=order.version)

        logger.info(
            f"Payment for order {order.order_number} marked "
            f"{updated.payment_status.value} by {actor.user_id} "
            f"(reference: {order.payment_reference or 'N/A'})"
        )
        return updated
