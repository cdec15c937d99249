"""
Storefront Orders Engine — Policies
=====================================
Validation policies for checkout and order mutations.

A policy returns None (pass) or a RejectionReason. The services
decide which error carries the reason.
"""

from __future__ import annotations

from typing import Optional

from core.errors import ReasonCode, RejectionReason
from core.identity.roles import Principal
from engines.orders.models import (
    MANUAL_PAYMENT_METHODS,
    GuestInfo,
    Order,
    PaymentMethod,
    PaymentStatus,
)
from engines.orders.workflows import EDITABLE_ORDER_STATUSES


# ══════════════════════════════════════════════════════════════
# CHECKOUT
# ══════════════════════════════════════════════════════════════

def buyer_identity_policy(
    principal: Optional[Principal],
    guest_info: Optional[GuestInfo],
) -> Optional[RejectionReason]:
    """Registered buyers carry no guest info; anonymous buyers must."""
    if principal is None and guest_info is None:
        return RejectionReason(
            code=ReasonCode.GUEST_IDENTITY_INCOMPLETE,
            message="Guest name and mobile number are required.",
            policy_name="buyer_identity_policy",
        )
    if principal is not None and guest_info is not None:
        return RejectionReason(
            code=ReasonCode.IDENTITY_CONFLICT,
            message="Signed-in buyers cannot submit guest details.",
            policy_name="buyer_identity_policy",
        )
    return None


def manual_payment_reference_policy(
    payment_method: PaymentMethod,
    payment_reference: Optional[str],
    *,
    min_length: int,
) -> Optional[RejectionReason]:
    if payment_method not in MANUAL_PAYMENT_METHODS:
        return None

    reference = (payment_reference or "").strip()
    if len(reference) < min_length:
        return RejectionReason(
            code=ReasonCode.PAYMENT_REFERENCE_REQUIRED,
            message=(
                f"A transaction reference of at least {min_length} characters "
                f"is required for {payment_method.value}."
            ),
            policy_name="manual_payment_reference_policy",
        )
    return None


# ══════════════════════════════════════════════════════════════
# ORDER MUTATIONS
# ══════════════════════════════════════════════════════════════

def expected_version_policy(
    order: Order,
    expected_version: Optional[int],
) -> Optional[RejectionReason]:
    if expected_version is None or expected_version == order.version:
        return None
    return RejectionReason(
        code=ReasonCode.STALE_STATE,
        message=(
            f"Order {order.order_number} changed since it was read "
            f"(version {expected_version}, now {order.version})."
        ),
        policy_name="expected_version_policy",
    )


def order_editable_policy(order: Order) -> Optional[RejectionReason]:
    if order.status in EDITABLE_ORDER_STATUSES:
        return None
    return RejectionReason(
        code=ReasonCode.ORDER_NOT_EDITABLE,
        message=(
            f"Order {order.order_number} is {order.status.value}; "
            f"items can only be edited while PENDING."
        ),
        policy_name="order_editable_policy",
    )


def cancellation_reason_policy(reason: str) -> Optional[RejectionReason]:
    if reason and reason.strip():
        return None
    return RejectionReason(
        code=ReasonCode.REASON_REQUIRED,
        message="A cancellation reason is required.",
        policy_name="cancellation_reason_policy",
    )


def payment_rejection_note_policy(
    outcome: PaymentStatus,
    note: str,
) -> Optional[RejectionReason]:
    if outcome != PaymentStatus.FAILED:
        return None
    if note and note.strip():
        return None
    return RejectionReason(
        code=ReasonCode.REASON_REQUIRED,
        message="A rejection reason is required when marking a payment FAILED.",
        policy_name="payment_rejection_note_policy",
    )
