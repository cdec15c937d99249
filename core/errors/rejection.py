"""
Storefront Core — Rejection Model
===================================
Structured rejection reasons produced by validation policies.

A policy never raises. It returns either None (pass) or a
RejectionReason. The calling service decides which error type
carries the reason back to the caller.

Every rejection must be:
- Deterministic (same input → same rejection)
- Machine-readable (code)
- Human-readable (message, shown verbatim to the buyer/admin)
"""

from __future__ import annotations

from dataclasses import dataclass


# ══════════════════════════════════════════════════════════════
# REJECTION REASON (frozen explanation structure)
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class RejectionReason:
    """
    Structured reason for a refused operation.

    Fields:
        code:        Machine-readable rejection code (e.g. 'PAYMENT_REFERENCE_REQUIRED').
        message:     Human-readable explanation.
        policy_name: Name of the policy that caused rejection.
    """

    code: str
    message: str
    policy_name: str

    def __post_init__(self):
        if not self.code or not isinstance(self.code, str):
            raise ValueError("code must be a non-empty string.")

        if not self.message or not isinstance(self.message, str):
            raise ValueError("message must be a non-empty string.")

        if not self.policy_name or not isinstance(self.policy_name, str):
            raise ValueError("policy_name must be a non-empty string.")

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "policy_name": self.policy_name,
        }


# ══════════════════════════════════════════════════════════════
# STANDARD REJECTION CODES
# ══════════════════════════════════════════════════════════════

class ReasonCode:
    """
    Known rejection codes.

    Convention: SCREAMING_SNAKE_CASE.
    """

    # ── Catalog / stock ───────────────────────────────────────
    PRODUCT_NOT_FOUND = "PRODUCT_NOT_FOUND"
    PRODUCT_INACTIVE = "PRODUCT_INACTIVE"
    INSUFFICIENT_STOCK = "INSUFFICIENT_STOCK"
    INVALID_STOCK_ADJUSTMENT = "INVALID_STOCK_ADJUSTMENT"

    # ── Checkout input ────────────────────────────────────────
    EMPTY_CART = "EMPTY_CART"
    INVALID_QUANTITY = "INVALID_QUANTITY"
    INVALID_PRICE = "INVALID_PRICE"
    ADDRESS_INCOMPLETE = "ADDRESS_INCOMPLETE"
    GUEST_IDENTITY_INCOMPLETE = "GUEST_IDENTITY_INCOMPLETE"
    IDENTITY_CONFLICT = "IDENTITY_CONFLICT"
    INVALID_PAYMENT_METHOD = "INVALID_PAYMENT_METHOD"
    PAYMENT_REFERENCE_REQUIRED = "PAYMENT_REFERENCE_REQUIRED"

    # ── Lifecycle ─────────────────────────────────────────────
    ORDER_NOT_FOUND = "ORDER_NOT_FOUND"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    ORDER_NOT_EDITABLE = "ORDER_NOT_EDITABLE"
    REASON_REQUIRED = "REASON_REQUIRED"
    STALE_STATE = "STALE_STATE"

    # ── Actor ─────────────────────────────────────────────────
    ADMIN_REQUIRED = "ADMIN_REQUIRED"
    NOT_ORDER_OWNER = "NOT_ORDER_OWNER"
    UNKNOWN_ROLE = "UNKNOWN_ROLE"
