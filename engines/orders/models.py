"""
Storefront Orders Engine — Order Aggregate
============================================
Immutable Order with its item snapshots, addresses and the two
orthogonal state axes: fulfillment status and payment status.

RULES:
- subtotal == Σ item.line_total
- total == subtotal + shipping + tax
- user_id XOR guest_info
- item name/unit_price are snapshots taken at creation; only the
  admin item edit may replace them
- every mutation produces a new Order with version + 1

This file contains NO persistence logic.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

from core.errors import ReasonCode, ValidationError
from core.identity.roles import CustomerClass
from core.primitives.workflow import StateTransition


# ══════════════════════════════════════════════════════════════
# ENUMS
# ══════════════════════════════════════════════════════════════

class OrderStatus(Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"
    RETURNED = "RETURNED"


class PaymentStatus(Enum):
    PENDING = "PENDING"
    PENDING_VERIFICATION = "PENDING_VERIFICATION"
    PAID = "PAID"
    FAILED = "FAILED"
    PARTIAL = "PARTIAL"
    REFUNDED = "REFUNDED"


class PaymentMethod(Enum):
    CASH_ON_DELIVERY = "cash_on_delivery"
    CREDIT_CARD = "credit_card"
    BANK_TRANSFER = "bank_transfer"
    MOBILE_WALLET = "mobile_wallet"


# Settled out-of-band; an admin confirms against the buyer's reference.
MANUAL_PAYMENT_METHODS = frozenset({
    PaymentMethod.BANK_TRANSFER,
    PaymentMethod.MOBILE_WALLET,
})

_PAYMENT_METHOD_ALIASES = {
    "cod": PaymentMethod.CASH_ON_DELIVERY,
    "bkash": PaymentMethod.MOBILE_WALLET,
    "nagad": PaymentMethod.MOBILE_WALLET,
}


def parse_payment_method(value) -> PaymentMethod:
    if isinstance(value, PaymentMethod):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(
            "Payment method is required.",
            code=ReasonCode.INVALID_PAYMENT_METHOD,
        )
    normalized = value.strip().lower()
    if normalized in _PAYMENT_METHOD_ALIASES:
        return _PAYMENT_METHOD_ALIASES[normalized]
    try:
        return PaymentMethod(normalized)
    except ValueError:
        raise ValidationError(
            f"Payment method '{value}' is not supported.",
            code=ReasonCode.INVALID_PAYMENT_METHOD,
            details={"payment_method": value},
        ) from None


def _require_text(value, field_name: str, code: str) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(
            f"{field_name} is required.",
            code=code,
            details={"field": field_name},
        )


# ══════════════════════════════════════════════════════════════
# VALUE OBJECTS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Address:
    full_name: str
    line1: str
    city: str
    phone: str
    line2: str = ""
    postal_code: str = ""
    country: str = ""

    def __post_init__(self):
        for name in ("full_name", "line1", "city", "phone"):
            _require_text(getattr(self, name), name, ReasonCode.ADDRESS_INCOMPLETE)

    def to_dict(self) -> dict:
        return {
            "full_name": self.full_name,
            "line1": self.line1,
            "line2": self.line2,
            "city": self.city,
            "postal_code": self.postal_code,
            "country": self.country,
            "phone": self.phone,
        }

    @classmethod
    def from_dict(cls, data) -> Address:
        if not isinstance(data, dict):
            raise ValidationError(
                "Address must be an object.",
                code=ReasonCode.ADDRESS_INCOMPLETE,
            )
        return cls(
            full_name=data.get("full_name", ""),
            line1=data.get("line1", ""),
            city=data.get("city", ""),
            phone=data.get("phone", ""),
            line2=data.get("line2") or "",
            postal_code=data.get("postal_code") or "",
            country=data.get("country") or "",
        )


@dataclass(frozen=True)
class GuestInfo:
    """Contact details for an order placed without an account."""
    name: str
    mobile: str
    email: Optional[str] = None
    company_name: Optional[str] = None

    def __post_init__(self):
        _require_text(self.name, "guest name", ReasonCode.GUEST_IDENTITY_INCOMPLETE)
        _require_text(self.mobile, "guest mobile", ReasonCode.GUEST_IDENTITY_INCOMPLETE)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "mobile": self.mobile,
            "email": self.email,
            "company_name": self.company_name,
        }

    @classmethod
    def from_dict(cls, data) -> GuestInfo:
        if not isinstance(data, dict):
            raise ValidationError(
                "Guest name and mobile number are required.",
                code=ReasonCode.GUEST_IDENTITY_INCOMPLETE,
            )
        return cls(
            name=data.get("name", ""),
            mobile=data.get("mobile", ""),
            email=data.get("email") or None,
            company_name=data.get("company_name") or None,
        )


@dataclass(frozen=True)
class OrderItem:
    """Line snapshot. unit_price and name never follow later catalog edits."""
    product_id: str
    name: str
    unit_price: int
    quantity: int
    line_total: int
    sku: Optional[str] = None

    def __post_init__(self):
        if not self.product_id:
            raise ValueError("product_id must be non-empty.")
        if not isinstance(self.unit_price, int) or self.unit_price < 0:
            raise ValueError("unit_price must be non-negative integer.")
        if not isinstance(self.quantity, int) or self.quantity <= 0:
            raise ValueError("quantity must be positive integer.")
        if self.line_total != self.unit_price * self.quantity:
            raise ValueError(
                f"line_total {self.line_total} != "
                f"{self.unit_price} × {self.quantity}."
            )

    @classmethod
    def priced(
        cls,
        *,
        product_id: str,
        name: str,
        unit_price: int,
        quantity: int,
        sku: Optional[str] = None,
    ) -> OrderItem:
        return cls(
            product_id=product_id,
            name=name,
            unit_price=unit_price,
            quantity=quantity,
            line_total=unit_price * quantity,
            sku=sku,
        )

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "name": self.name,
            "sku": self.sku,
            "unit_price": self.unit_price,
            "quantity": self.quantity,
            "line_total": self.line_total,
        }


# ══════════════════════════════════════════════════════════════
# ORDER AGGREGATE
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Order:
    order_id: str
    order_number: str
    items: Tuple[OrderItem, ...]
    shipping_address: Address
    billing_address: Address
    payment_method: PaymentMethod
    customer_class: CustomerClass
    currency: str
    subtotal: int
    shipping: int
    tax: int
    total: int
    status: OrderStatus
    payment_status: PaymentStatus
    created_at: datetime
    updated_at: datetime
    user_id: Optional[str] = None
    guest_info: Optional[GuestInfo] = None
    payment_reference: Optional[str] = None
    payment_verified_at: Optional[datetime] = None
    payment_verified_by: Optional[str] = None
    payment_notes: str = ""
    notes: str = ""
    cancelled_at: Optional[datetime] = None
    cancelled_by: Optional[str] = None
    cancellation_reason: str = ""
    status_history: Tuple[StateTransition, ...] = field(default_factory=tuple)
    version: int = 1

    def __post_init__(self):
        if not self.order_id:
            raise ValueError("order_id must be non-empty.")
        if not self.order_number:
            raise ValueError("order_number must be non-empty.")
        if not self.items:
            raise ValueError("Order must have at least one item.")
        for item in self.items:
            if not isinstance(item, OrderItem):
                raise TypeError("items must contain OrderItem instances.")
        if (self.user_id is None) == (self.guest_info is None):
            raise ValueError("Order needs exactly one of user_id or guest_info.")
        if not isinstance(self.status, OrderStatus):
            raise ValueError("status must be OrderStatus enum.")
        if not isinstance(self.payment_status, PaymentStatus):
            raise ValueError("payment_status must be PaymentStatus enum.")
        if self.subtotal != sum(item.line_total for item in self.items):
            raise ValueError("subtotal must equal the sum of line totals.")
        if self.total != self.subtotal + self.shipping + self.tax:
            raise ValueError("total must equal subtotal + shipping + tax.")
        if not isinstance(self.version, int) or self.version < 1:
            raise ValueError("version must be integer >= 1.")

    @property
    def is_guest(self) -> bool:
        return self.guest_info is not None

    @property
    def owner_id(self) -> Optional[str]:
        return self.user_id

    def item_quantities(self) -> dict:
        """product_id → total quantity across lines."""
        quantities: dict = {}
        for item in self.items:
            quantities[item.product_id] = quantities.get(item.product_id, 0) + item.quantity
        return quantities

    def evolve(self, *, at: datetime, transition: Optional[StateTransition] = None, **changes) -> Order:
        """Next version of this order. Bumps version and updated_at."""
        history = self.status_history
        if transition is not None:
            history = history + (transition,)
        return replace(
            self,
            updated_at=at,
            status_history=history,
            version=self.version + 1,
            **changes,
        )

    def to_dict(self) -> dict:
        return {
            "order_id": self.order_id,
            "order_number": self.order_number,
            "user_id": self.user_id,
            "guest_info": self.guest_info.to_dict() if self.guest_info else None,
            "customer_class": self.customer_class.value,
            "items": [item.to_dict() for item in self.items],
            "shipping_address": self.shipping_address.to_dict(),
            "billing_address": self.billing_address.to_dict(),
            "payment_method": self.payment_method.value,
            "payment_reference": self.payment_reference,
            "payment_status": self.payment_status.value,
            "payment_verified_at": (
                self.payment_verified_at.isoformat() if self.payment_verified_at else None
            ),
            "payment_verified_by": self.payment_verified_by,
            "payment_notes": self.payment_notes,
            "notes": self.notes,
            "currency": self.currency,
            "subtotal": self.subtotal,
            "shipping": self.shipping,
            "tax": self.tax,
            "total": self.total,
            "status": self.status.value,
            "cancelled_at": self.cancelled_at.isoformat() if self.cancelled_at else None,
            "cancelled_by": self.cancelled_by,
            "cancellation_reason": self.cancellation_reason,
            "status_history": [t.to_dict() for t in self.status_history],
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "version": self.version,
        }
