"""
Storefront Orders Engine — Event Types and Payload Builders
=============================================================
Orders build payloads only. Publishing happens after commit, so a
subscriber (email, SMS, audit) never hears about a rolled-back change.
"""

from __future__ import annotations

from typing import Optional

from engines.orders.commands import (
    ORDERS_ORDER_CANCEL_REQUEST,
    ORDERS_ORDER_CREATE_REQUEST,
    ORDERS_ORDER_TRANSITION_REQUEST,
    ORDERS_ORDER_UPDATE_ITEMS_REQUEST,
    ORDERS_PAYMENT_VERIFY_REQUEST,
)
from engines.orders.models import Order


# ══════════════════════════════════════════════════════════════
# EVENT TYPE CONSTANTS
# ══════════════════════════════════════════════════════════════

ORDERS_ORDER_CREATED_V1 = "orders.order.created.v1"
ORDERS_ORDER_STATUS_CHANGED_V1 = "orders.order.status_changed.v1"
ORDERS_ORDER_CANCELLED_V1 = "orders.order.cancelled.v1"
ORDERS_ORDER_ITEMS_UPDATED_V1 = "orders.order.items_updated.v1"
ORDERS_PAYMENT_VERIFIED_V1 = "orders.payment.verified.v1"

ORDERS_EVENT_TYPES = (
    ORDERS_ORDER_CREATED_V1,
    ORDERS_ORDER_STATUS_CHANGED_V1,
    ORDERS_ORDER_CANCELLED_V1,
    ORDERS_ORDER_ITEMS_UPDATED_V1,
    ORDERS_PAYMENT_VERIFIED_V1,
)


# ══════════════════════════════════════════════════════════════
# COMMAND → EVENT MAPPING
# ══════════════════════════════════════════════════════════════

COMMAND_TO_EVENT_TYPE = {
    ORDERS_ORDER_CREATE_REQUEST: ORDERS_ORDER_CREATED_V1,
    ORDERS_ORDER_TRANSITION_REQUEST: ORDERS_ORDER_STATUS_CHANGED_V1,
    ORDERS_ORDER_CANCEL_REQUEST: ORDERS_ORDER_CANCELLED_V1,
    ORDERS_ORDER_UPDATE_ITEMS_REQUEST: ORDERS_ORDER_ITEMS_UPDATED_V1,
    ORDERS_PAYMENT_VERIFY_REQUEST: ORDERS_PAYMENT_VERIFIED_V1,
}


def resolve_orders_event_type(command_type: str) -> str | None:
    return COMMAND_TO_EVENT_TYPE.get(command_type)


# ══════════════════════════════════════════════════════════════
# PAYLOAD BUILDERS
# ══════════════════════════════════════════════════════════════

def _base_payload(order: Order) -> dict:
    return {
        "order_id": order.order_id,
        "order_number": order.order_number,
        "user_id": order.user_id,
        "guest_contact": (
            {"name": order.guest_info.name, "mobile": order.guest_info.mobile,
             "email": order.guest_info.email}
            if order.guest_info else None
        ),
        "version": order.version,
    }


def build_order_created_payload(order: Order) -> dict:
    payload = _base_payload(order)
    payload.update({
        "items": [item.to_dict() for item in order.items],
        "payment_method": order.payment_method.value,
        "payment_status": order.payment_status.value,
        "currency": order.currency,
        "subtotal": order.subtotal,
        "shipping": order.shipping,
        "tax": order.tax,
        "total": order.total,
        "created_at": order.created_at.isoformat(),
    })
    return payload


def build_status_changed_payload(before: Order, after: Order, *, actor_id: Optional[str]) -> dict:
    payload = _base_payload(after)
    payload.update({
        "from_status": before.status.value,
        "to_status": after.status.value,
        "actor_id": actor_id,
        "changed_at": after.updated_at.isoformat(),
    })
    return payload


def build_order_cancelled_payload(before: Order, after: Order) -> dict:
    payload = _base_payload(after)
    payload.update({
        "from_status": before.status.value,
        "cancelled_by": after.cancelled_by,
        "cancellation_reason": after.cancellation_reason,
        "restored": [
            {"product_id": item.product_id, "quantity": item.quantity}
            for item in after.items
        ],
        "cancelled_at": after.cancelled_at.isoformat(),
    })
    return payload


def build_items_updated_payload(before: Order, after: Order, *, actor_id: Optional[str]) -> dict:
    payload = _base_payload(after)
    payload.update({
        "previous_items": [item.to_dict() for item in before.items],
        "items": [item.to_dict() for item in after.items],
        "previous_total": before.total,
        "total": after.total,
        "actor_id": actor_id,
        "updated_at": after.updated_at.isoformat(),
    })
    return payload


def build_payment_verified_payload(before: Order, after: Order) -> dict:
    payload = _base_payload(after)
    payload.update({
        "from_payment_status": before.payment_status.value,
        "payment_status": after.payment_status.value,
        "payment_reference": after.payment_reference,
        "payment_notes": after.payment_notes,
        "verified_by": after.payment_verified_by,
        "verified_at": after.payment_verified_at.isoformat(),
    })
    return payload
