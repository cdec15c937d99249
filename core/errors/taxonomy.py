"""
Storefront Core — Error Taxonomy
==================================
Every failure the order core surfaces to its caller.

These are local validation failures: raised synchronously, never
retried by the core, and carrying enough detail for the caller to
show a corrective message.
"""

from __future__ import annotations

from typing import Any, Optional

from core.errors.rejection import ReasonCode, RejectionReason


class StorefrontError(Exception):
    """Base error for storefront core operations."""

    default_code = "STOREFRONT_ERROR"

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        reason: Optional[RejectionReason] = None,
    ):
        self.message = message
        self.code = code or (reason.code if reason is not None else self.default_code)
        self.details = dict(details or {})
        self.reason = reason
        if reason is not None:
            self.details.setdefault("policy_name", reason.policy_name)
        super().__init__(message)

    @classmethod
    def from_reason(cls, reason: RejectionReason, **details: Any):
        return cls(reason.message, reason=reason, details=details)

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "details": dict(self.details),
        }


class InvalidProductError(StorefrontError):
    """Product missing or inactive at order time."""

    default_code = ReasonCode.PRODUCT_NOT_FOUND

    def __init__(self, product_id: str, message: Optional[str] = None, **kwargs):
        self.product_id = product_id
        kwargs.setdefault("details", {"product_id": product_id})
        super().__init__(
            message or f"Product '{product_id}' is not available.",
            **kwargs,
        )


class InsufficientStockError(StorefrontError):
    """Requested quantity exceeds available stock at reservation time."""

    default_code = ReasonCode.INSUFFICIENT_STOCK

    def __init__(self, product_id: str, requested: int, available: Optional[int] = None):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        if available is None:
            message = (
                f"Insufficient stock for product '{product_id}': "
                f"{requested} requested."
            )
        else:
            message = (
                f"Insufficient stock for product '{product_id}': "
                f"{available} available, {requested} requested."
            )
        super().__init__(
            message,
            details={
                "product_id": product_id,
                "requested": requested,
                "available": available,
            },
        )


class ValidationError(StorefrontError, ValueError):
    """Caller input is missing or malformed; shown verbatim for correction."""

    default_code = "VALIDATION_FAILED"


class InvalidTransitionError(StorefrontError):
    """Status or payment transition not permitted from the current state."""

    default_code = ReasonCode.INVALID_TRANSITION

    def __init__(
        self,
        from_state: str,
        to_state: str,
        message: Optional[str] = None,
        *,
        code: Optional[str] = None,
    ):
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            message or f"Invalid transition: {from_state} → {to_state}.",
            code=code,
            details={"from_state": from_state, "to_state": to_state},
        )


class UnauthorizedError(StorefrontError):
    """Caller's role does not permit the operation."""

    default_code = ReasonCode.ADMIN_REQUIRED


class OrderNotFoundError(StorefrontError):
    default_code = ReasonCode.ORDER_NOT_FOUND

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(
            f"Order '{order_id}' not found.",
            details={"order_id": order_id},
        )


class StaleStateError(StorefrontError):
    """Another writer changed the order since the caller last read it."""

    default_code = ReasonCode.STALE_STATE

    def __init__(self, order_id: str, expected_version: int, actual_version: Optional[int] = None):
        self.order_id = order_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Order '{order_id}' was modified concurrently "
            f"(expected version {expected_version}, found {actual_version}).",
            details={
                "order_id": order_id,
                "expected_version": expected_version,
                "actual_version": actual_version,
            },
        )
