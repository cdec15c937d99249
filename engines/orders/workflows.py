"""
Storefront Orders Engine — State Machines
===========================================
Fulfillment status and payment status are two independent machines
on the same Order. Neither drives the other; every combination of
the two is a legal order state.
"""

from __future__ import annotations

from core.primitives.workflow import WorkflowDefinition
from engines.orders.models import OrderStatus, PaymentStatus

_S = OrderStatus
_P = PaymentStatus

# Manual forward targets. An admin may skip steps (PENDING → DELIVERED)
# but never move backwards or sideways.
FORWARD_STATUSES = (_S.CONFIRMED, _S.PROCESSING, _S.SHIPPED, _S.DELIVERED)

STATUS_RANK = {
    _S.PENDING: 0,
    _S.CONFIRMED: 1,
    _S.PROCESSING: 2,
    _S.SHIPPED: 3,
    _S.DELIVERED: 4,
}


def _forward_from(status: OrderStatus) -> frozenset:
    rank = STATUS_RANK[status]
    return frozenset(
        target.value for target in FORWARD_STATUSES if STATUS_RANK[target] > rank
    )


ORDER_STATUS_WORKFLOW = WorkflowDefinition(
    name="OrderStatus",
    initial_state=_S.PENDING.value,
    # RETURNED has no inbound transition yet; DELIVERED stays terminal.
    terminal_states=frozenset({
        _S.DELIVERED.value, _S.CANCELLED.value, _S.RETURNED.value,
    }),
    transitions={
        _S.PENDING.value: _forward_from(_S.PENDING) | {_S.CANCELLED.value},
        _S.CONFIRMED.value: _forward_from(_S.CONFIRMED) | {_S.CANCELLED.value},
        _S.PROCESSING.value: _forward_from(_S.PROCESSING) | {_S.CANCELLED.value},
        _S.SHIPPED.value: _forward_from(_S.SHIPPED) | {_S.CANCELLED.value},
        _S.DELIVERED.value: frozenset(),
        _S.CANCELLED.value: frozenset(),
        _S.RETURNED.value: frozenset(),
    },
)


PAYMENT_STATUS_WORKFLOW = WorkflowDefinition(
    name="PaymentStatus",
    initial_state=_P.PENDING.value,
    terminal_states=frozenset({_P.FAILED.value, _P.REFUNDED.value}),
    transitions={
        _P.PENDING.value: frozenset({
            _P.PENDING_VERIFICATION.value, _P.PAID.value, _P.FAILED.value,
        }),
        _P.PENDING_VERIFICATION.value: frozenset({_P.PAID.value, _P.FAILED.value}),
        # PARTIAL/REFUNDED have no driving operation; kept for manual use.
        _P.PAID.value: frozenset({_P.PARTIAL.value, _P.REFUNDED.value}),
        _P.PARTIAL.value: frozenset({_P.PAID.value, _P.REFUNDED.value}),
        _P.FAILED.value: frozenset(),
        _P.REFUNDED.value: frozenset(),
    },
)

# Statuses from which an admin may record a verification outcome.
VERIFIABLE_PAYMENT_STATUSES = frozenset({_P.PENDING, _P.PENDING_VERIFICATION})

EDITABLE_ORDER_STATUSES = frozenset({_S.PENDING})
