"""
Storefront Core — Errors Public API
=====================================
Error taxonomy and structured rejection reasons.
"""

from core.errors.rejection import ReasonCode, RejectionReason
from core.errors.taxonomy import (
    InsufficientStockError,
    InvalidProductError,
    InvalidTransitionError,
    OrderNotFoundError,
    StaleStateError,
    StorefrontError,
    UnauthorizedError,
    ValidationError,
)

__all__ = [
    "ReasonCode",
    "RejectionReason",
    "StorefrontError",
    "InvalidProductError",
    "InsufficientStockError",
    "ValidationError",
    "InvalidTransitionError",
    "UnauthorizedError",
    "OrderNotFoundError",
    "StaleStateError",
]
