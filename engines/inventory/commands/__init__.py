"""
Storefront Inventory Engine — Request Commands
================================================
Typed admin stock requests, validated on construction.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from core.errors import ReasonCode, ValidationError


# ══════════════════════════════════════════════════════════════
# COMMAND TYPE CONSTANTS
# ══════════════════════════════════════════════════════════════

INVENTORY_STOCK_ADJUST_REQUEST = "inventory.stock.adjust.request"

INVENTORY_COMMAND_TYPES = frozenset({
    INVENTORY_STOCK_ADJUST_REQUEST,
})

ADJUST_ADD = "add"
ADJUST_REMOVE = "remove"
ADJUST_SET = "set"

VALID_ADJUSTMENT_TYPES = frozenset({ADJUST_ADD, ADJUST_REMOVE, ADJUST_SET})

MIN_ADJUSTMENT_REASON_LENGTH = 5


# ══════════════════════════════════════════════════════════════
# REQUEST COMMANDS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class StockAdjustRequest:
    """
    Manual stock correction by an admin.

    add/remove move stock by quantity; set replaces it outright.
    The reason is kept on the resulting StockMovement.
    """
    product_id: str
    adjustment_type: str
    quantity: int
    reason: str
    reference_id: Optional[str] = None

    command_type = INVENTORY_STOCK_ADJUST_REQUEST

    def __post_init__(self):
        if not self.product_id or not isinstance(self.product_id, str):
            raise ValidationError(
                "product_id must be non-empty.",
                code=ReasonCode.INVALID_STOCK_ADJUSTMENT,
            )
        if (
            not isinstance(self.adjustment_type, str)
            or self.adjustment_type not in VALID_ADJUSTMENT_TYPES
        ):
            raise ValidationError(
                f"adjustment_type '{self.adjustment_type}' not valid. "
                f"Must be one of: {sorted(VALID_ADJUSTMENT_TYPES)}",
                code=ReasonCode.INVALID_STOCK_ADJUSTMENT,
                details={"adjustment_type": self.adjustment_type},
            )
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int):
            raise ValidationError(
                "quantity must be an integer.",
                code=ReasonCode.INVALID_STOCK_ADJUSTMENT,
            )
        if self.adjustment_type == ADJUST_SET:
            if self.quantity < 0:
                raise ValidationError(
                    "quantity must be >= 0 for set.",
                    code=ReasonCode.INVALID_STOCK_ADJUSTMENT,
                )
        elif self.quantity <= 0:
            raise ValidationError(
                f"quantity must be positive for {self.adjustment_type}.",
                code=ReasonCode.INVALID_STOCK_ADJUSTMENT,
            )
        if (
            not isinstance(self.reason, str)
            or len(self.reason.strip()) < MIN_ADJUSTMENT_REASON_LENGTH
        ):
            raise ValidationError(
                f"reason must be at least {MIN_ADJUSTMENT_REASON_LENGTH} characters.",
                code=ReasonCode.REASON_REQUIRED,
            )

    def delta_from(self, current_stock: int) -> int:
        """Signed change this request makes to current_stock."""
        if self.adjustment_type == ADJUST_ADD:
            return self.quantity
        if self.adjustment_type == ADJUST_REMOVE:
            return -self.quantity
        return self.quantity - current_stock

    @classmethod
    def from_dict(cls, data: dict) -> StockAdjustRequest:
        return cls(
            product_id=data.get("product_id"),
            adjustment_type=data.get("adjustment_type", data.get("type")),
            quantity=data.get("quantity"),
            reason=data.get("reason", ""),
            reference_id=data.get("reference_id"),
        )
