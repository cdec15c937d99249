"""
Storefront Orders Engine — Request Commands
=============================================
Typed order requests, validated on construction. Structural checks
live here; checks that need config, stock or the current order state
are policies evaluated by the services.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from core.errors import ReasonCode, ValidationError
from engines.orders.models import (
    Address,
    GuestInfo,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    parse_payment_method,
)


# ══════════════════════════════════════════════════════════════
# COMMAND TYPE CONSTANTS
# ══════════════════════════════════════════════════════════════

ORDERS_ORDER_CREATE_REQUEST = "orders.order.create.request"
ORDERS_ORDER_TRANSITION_REQUEST = "orders.order.transition.request"
ORDERS_ORDER_CANCEL_REQUEST = "orders.order.cancel.request"
ORDERS_ORDER_UPDATE_ITEMS_REQUEST = "orders.order.update_items.request"
ORDERS_PAYMENT_VERIFY_REQUEST = "orders.payment.verify.request"

ORDERS_COMMAND_TYPES = frozenset({
    ORDERS_ORDER_CREATE_REQUEST,
    ORDERS_ORDER_TRANSITION_REQUEST,
    ORDERS_ORDER_CANCEL_REQUEST,
    ORDERS_ORDER_UPDATE_ITEMS_REQUEST,
    ORDERS_PAYMENT_VERIFY_REQUEST,
})

VERIFICATION_OUTCOMES = frozenset({PaymentStatus.PAID, PaymentStatus.FAILED})


def _require_order_id(order_id) -> None:
    if not order_id or not isinstance(order_id, str):
        raise ValidationError("order_id must be non-empty.")


def _check_expected_version(expected_version) -> None:
    if expected_version is None:
        return
    if isinstance(expected_version, bool) or not isinstance(expected_version, int):
        raise ValidationError("expected_version must be an integer.")


def _require_int(value, field_name: str, code: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(
            f"{field_name} must be an integer.",
            code=code,
            details={"field": field_name, "value": value},
        )


def _optional_reference(value) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError("payment_reference must be a string.")
    return value.strip() or None


# ══════════════════════════════════════════════════════════════
# CHECKOUT
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class CartLine:
    """
    One cart line as submitted by the buyer.

    unit_price_at_add_time is advisory. The price is always
    recomputed at order creation.
    """
    product_id: str
    quantity: int
    unit_price_at_add_time: Optional[int] = None

    def __post_init__(self):
        if not self.product_id or not isinstance(self.product_id, str):
            raise ValidationError("product_id must be non-empty.")
        _require_int(self.quantity, "quantity", ReasonCode.INVALID_QUANTITY)

    @classmethod
    def from_dict(cls, data) -> CartLine:
        if not isinstance(data, dict):
            raise ValidationError("Each cart line must be an object.")
        product_id = data.get("product_id")
        return cls(
            product_id=str(product_id) if product_id is not None else "",
            quantity=data.get("quantity"),
            unit_price_at_add_time=data.get("unit_price"),
        )


@dataclass(frozen=True)
class CreateOrderRequest:
    lines: Tuple[CartLine, ...]
    shipping_address: Address
    billing_address: Address
    payment_method: PaymentMethod
    payment_reference: Optional[str] = None
    guest_info: Optional[GuestInfo] = None
    notes: str = ""

    command_type = ORDERS_ORDER_CREATE_REQUEST

    def __post_init__(self):
        if not isinstance(self.lines, tuple):
            raise ValidationError("lines must be a tuple of CartLine.")
        if not self.lines:
            raise ValidationError("Order items are required.", code=ReasonCode.EMPTY_CART)
        if not isinstance(self.shipping_address, Address):
            raise ValidationError(
                "shipping_address must be Address.", code=ReasonCode.ADDRESS_INCOMPLETE,
            )
        if not isinstance(self.billing_address, Address):
            raise ValidationError(
                "billing_address must be Address.", code=ReasonCode.ADDRESS_INCOMPLETE,
            )
        if not isinstance(self.payment_method, PaymentMethod):
            raise ValidationError("payment_method must be PaymentMethod.")
        if self.payment_reference is not None and not isinstance(self.payment_reference, str):
            raise ValidationError("payment_reference must be a string.")
        if not isinstance(self.notes, str):
            raise ValidationError("notes must be a string.")

    @classmethod
    def from_dict(cls, data: dict) -> CreateOrderRequest:
        items = data.get("items")
        if not isinstance(items, list) or not items:
            raise ValidationError("Order items are required.", code=ReasonCode.EMPTY_CART)
        shipping = data.get("shipping_address")
        if shipping is None:
            raise ValidationError(
                "Shipping address is required.", code=ReasonCode.ADDRESS_INCOMPLETE,
            )
        billing = data.get("billing_address") or shipping
        guest = data.get("guest_info")
        return cls(
            lines=tuple(CartLine.from_dict(item) for item in items),
            shipping_address=Address.from_dict(shipping),
            billing_address=Address.from_dict(billing),
            payment_method=parse_payment_method(data.get("payment_method")),
            payment_reference=_optional_reference(data.get("payment_reference")),
            guest_info=GuestInfo.from_dict(guest) if guest is not None else None,
            notes=data.get("notes") or "",
        )


# ══════════════════════════════════════════════════════════════
# ADMIN ITEM EDIT
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ItemEdit:
    """Replacement quantity/price pair for one product on a PENDING order."""
    product_id: str
    quantity: int
    unit_price: int

    def __post_init__(self):
        if not self.product_id or not isinstance(self.product_id, str):
            raise ValidationError("product_id must be non-empty.")
        _require_int(self.quantity, "quantity", ReasonCode.INVALID_QUANTITY)
        if self.quantity <= 0:
            raise ValidationError(
                f"Quantity for product '{self.product_id}' must be greater than 0.",
                code=ReasonCode.INVALID_QUANTITY,
                details={"product_id": self.product_id},
            )
        _require_int(self.unit_price, "unit_price", ReasonCode.INVALID_PRICE)
        if self.unit_price < 0:
            raise ValidationError(
                f"Price for product '{self.product_id}' cannot be negative.",
                code=ReasonCode.INVALID_PRICE,
                details={"product_id": self.product_id},
            )

    @classmethod
    def from_dict(cls, data) -> ItemEdit:
        if not isinstance(data, dict):
            raise ValidationError("Each item must be an object.")
        product_id = data.get("product_id")
        return cls(
            product_id=str(product_id) if product_id is not None else "",
            quantity=data.get("quantity"),
            unit_price=data.get("unit_price"),
        )


@dataclass(frozen=True)
class UpdateItemsRequest:
    """
    Full replacement of an order's items. Products absent from
    items are removed from the order.
    """
    order_id: str
    items: Tuple[ItemEdit, ...]
    expected_version: Optional[int] = None

    command_type = ORDERS_ORDER_UPDATE_ITEMS_REQUEST

    def __post_init__(self):
        _require_order_id(self.order_id)
        if not isinstance(self.items, tuple):
            raise ValidationError("items must be a tuple of ItemEdit.")
        if not self.items:
            raise ValidationError(
                "An order must keep at least one item.", code=ReasonCode.EMPTY_CART,
            )
        seen = set()
        for item in self.items:
            if item.product_id in seen:
                raise ValidationError(
                    f"Product '{item.product_id}' listed more than once.",
                    details={"product_id": item.product_id},
                )
            seen.add(item.product_id)
        _check_expected_version(self.expected_version)

    @classmethod
    def from_dict(cls, order_id: str, data: dict) -> UpdateItemsRequest:
        items = data.get("items")
        if not isinstance(items, list):
            raise ValidationError("Items array is required.")
        return cls(
            order_id=order_id,
            items=tuple(ItemEdit.from_dict(item) for item in items),
            expected_version=data.get("expected_version"),
        )


# ══════════════════════════════════════════════════════════════
# STATUS TRANSITIONS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class StatusTransitionRequest:
    order_id: str
    target_status: OrderStatus
    reason: str = ""
    expected_version: Optional[int] = None

    command_type = ORDERS_ORDER_TRANSITION_REQUEST

    def __post_init__(self):
        _require_order_id(self.order_id)
        if not isinstance(self.target_status, OrderStatus):
            raise ValidationError("target_status must be OrderStatus.")
        if not isinstance(self.reason, str):
            raise ValidationError("reason must be a string.")
        _check_expected_version(self.expected_version)

    @classmethod
    def from_dict(cls, order_id: str, data: dict) -> StatusTransitionRequest:
        raw = data.get("status")
        if not isinstance(raw, str) or not raw.strip():
            raise ValidationError("status is required.")
        try:
            target = OrderStatus(raw.strip().upper())
        except ValueError:
            raise ValidationError(
                f"Status '{raw}' is not valid.", details={"status": raw},
            ) from None
        return cls(
            order_id=order_id,
            target_status=target,
            reason=data.get("reason") or "",
            expected_version=data.get("expected_version"),
        )


@dataclass(frozen=True)
class CancelOrderRequest:
    """Cancellation by the owner or an admin. A reason is mandatory."""
    order_id: str
    reason: str
    expected_version: Optional[int] = None

    command_type = ORDERS_ORDER_CANCEL_REQUEST

    def __post_init__(self):
        _require_order_id(self.order_id)
        if not isinstance(self.reason, str):
            raise ValidationError("reason must be a string.", code=ReasonCode.REASON_REQUIRED)
        _check_expected_version(self.expected_version)

    @classmethod
    def from_dict(cls, order_id: str, data: dict) -> CancelOrderRequest:
        return cls(
            order_id=order_id,
            reason=data.get("reason") or "",
            expected_version=data.get("expected_version"),
        )


# ══════════════════════════════════════════════════════════════
# PAYMENT VERIFICATION
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class PaymentVerifyRequest:
    """
    Admin outcome for a manual payment: PAID, or FAILED with a note
    explaining the rejection.
    """
    order_id: str
    outcome: PaymentStatus
    note: str = ""
    expected_version: Optional[int] = None

    command_type = ORDERS_PAYMENT_VERIFY_REQUEST

    def __post_init__(self):
        _require_order_id(self.order_id)
        if self.outcome not in VERIFICATION_OUTCOMES:
            raise ValidationError(
                "Verification outcome must be PAID or FAILED.",
                details={"outcome": getattr(self.outcome, "value", self.outcome)},
            )
        if not isinstance(self.note, str):
            raise ValidationError("note must be a string.")
        _check_expected_version(self.expected_version)

    @classmethod
    def from_dict(cls, order_id: str, data: dict) -> PaymentVerifyRequest:
        raw = data.get("status") or data.get("outcome") or ""
        outcome = {
            "PAID": PaymentStatus.PAID,
            "FAILED": PaymentStatus.FAILED,
        }.get(str(raw).strip().upper())
        if outcome is None:
            raise ValidationError(
                "Verification outcome must be PAID or FAILED.",
                details={"outcome": raw},
            )
        return cls(
            order_id=order_id,
            outcome=outcome,
            note=data.get("note") or "",
            expected_version=data.get("expected_version"),
        )
