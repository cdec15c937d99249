"""
Storefront Inventory Engine — Event Types and Payload Builders
================================================================
Inventory builds payloads only. Publishing happens after commit.
"""

from __future__ import annotations

from typing import Optional

from core.primitives.inventory import StockMovement
from engines.inventory.commands import (
    INVENTORY_STOCK_ADJUST_REQUEST,
    StockAdjustRequest,
)


# ══════════════════════════════════════════════════════════════
# EVENT TYPE CONSTANTS
# ══════════════════════════════════════════════════════════════

INVENTORY_STOCK_ADJUSTED_V1 = "inventory.stock.adjusted.v1"

INVENTORY_EVENT_TYPES = (
    INVENTORY_STOCK_ADJUSTED_V1,
)

COMMAND_TO_EVENT_TYPE = {
    INVENTORY_STOCK_ADJUST_REQUEST: INVENTORY_STOCK_ADJUSTED_V1,
}


def resolve_inventory_event_type(command_type: str) -> str | None:
    return COMMAND_TO_EVENT_TYPE.get(command_type)


# ══════════════════════════════════════════════════════════════
# PAYLOAD BUILDERS
# ══════════════════════════════════════════════════════════════

def build_stock_adjusted_payload(
    request: StockAdjustRequest,
    movement: StockMovement,
    *,
    previous_stock: int,
    actor_id: Optional[str],
) -> dict:
    return {
        "product_id": request.product_id,
        "adjustment_type": request.adjustment_type,
        "requested_quantity": request.quantity,
        "movement_id": str(movement.movement_id),
        "movement_type": movement.movement_type.value,
        "quantity": movement.quantity,
        "previous_stock": previous_stock,
        "new_stock": movement.balance_after,
        "reason": request.reason,
        "reference_id": request.reference_id,
        "actor_id": actor_id,
        "adjusted_at": movement.occurred_at.isoformat(),
    }
