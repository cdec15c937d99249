"""
Storefront Stock Movement Primitive
=====================================
Every change to a product's stock_quantity is expressed as a
StockMovement. No hidden mutations: reservations at checkout,
restores on cancellation, and manual admin adjustments all leave
an auditable record.

This file contains NO persistence logic.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


# ══════════════════════════════════════════════════════════════
# ENUMS
# ══════════════════════════════════════════════════════════════

class MovementType(Enum):
    RESERVE = "RESERVE"          # Stock held for an order
    RESTORE = "RESTORE"          # Reserved stock returned
    ADJUST_IN = "ADJUST_IN"      # Manual increase (restock, count correction)
    ADJUST_OUT = "ADJUST_OUT"    # Manual decrease (damage, shrinkage)


class MovementReason(Enum):
    ORDER_PLACED = "ORDER_PLACED"
    ORDER_ROLLBACK = "ORDER_ROLLBACK"
    ORDER_CANCELLED = "ORDER_CANCELLED"
    ORDER_EDITED = "ORDER_EDITED"
    MANUAL_ADJUSTMENT = "MANUAL_ADJUSTMENT"


_INBOUND = frozenset({MovementType.RESTORE, MovementType.ADJUST_IN})


# ══════════════════════════════════════════════════════════════
# STOCK MOVEMENT
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class StockMovement:
    """
    Single stock movement record.

    Fields:
        movement_id:    Unique identifier
        product_id:     Product whose stock changed
        movement_type:  RESERVE | RESTORE | ADJUST_IN | ADJUST_OUT
        reason:         Why the movement happened
        quantity:       Units moved (always positive)
        balance_after:  stock_quantity right after the movement
        occurred_at:    When it happened
        reference_id:   Order number or adjustment reference
        actor_id:       Who caused it (None for system)
        note:           Free text (admin adjustment reason)
    """
    movement_id: uuid.UUID
    product_id: str
    movement_type: MovementType
    reason: MovementReason
    quantity: int
    balance_after: int
    occurred_at: datetime
    reference_id: Optional[str] = None
    actor_id: Optional[str] = None
    note: str = ""

    def __post_init__(self):
        if not isinstance(self.movement_id, uuid.UUID):
            raise ValueError("movement_id must be UUID.")
        if not self.product_id or not isinstance(self.product_id, str):
            raise ValueError("product_id must be non-empty string.")
        if not isinstance(self.movement_type, MovementType):
            raise ValueError("movement_type must be MovementType enum.")
        if not isinstance(self.reason, MovementReason):
            raise ValueError("reason must be MovementReason enum.")
        if not isinstance(self.quantity, int) or self.quantity <= 0:
            raise ValueError("quantity must be positive integer.")
        if not isinstance(self.balance_after, int) or self.balance_after < 0:
            raise ValueError("balance_after must be non-negative integer.")

    @property
    def net_quantity_change(self) -> int:
        if self.movement_type in _INBOUND:
            return self.quantity
        return -self.quantity

    def to_dict(self) -> dict:
        return {
            "movement_id": str(self.movement_id),
            "product_id": self.product_id,
            "movement_type": self.movement_type.value,
            "reason": self.reason.value,
            "quantity": self.quantity,
            "balance_after": self.balance_after,
            "occurred_at": self.occurred_at.isoformat(),
            "reference_id": self.reference_id,
            "actor_id": self.actor_id,
            "note": self.note,
        }
