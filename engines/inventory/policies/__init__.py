"""
Storefront Inventory Engine — Policies
========================================
Validation policies for manual stock operations.
"""

from __future__ import annotations

from typing import Optional

from core.errors import ReasonCode, RejectionReason
from core.primitives.product import Product
from engines.inventory.commands import ADJUST_REMOVE, StockAdjustRequest


def product_exists_policy(
    product: Optional[Product],
    product_id: str,
) -> Optional[RejectionReason]:
    if product is None:
        return RejectionReason(
            code=ReasonCode.PRODUCT_NOT_FOUND,
            message=f"Product '{product_id}' not found.",
            policy_name="product_exists_policy",
        )
    return None


def stock_removal_policy(
    request: StockAdjustRequest,
    current_stock: int,
) -> Optional[RejectionReason]:
    """Reject a removal that would take stock below zero."""
    if request.adjustment_type != ADJUST_REMOVE:
        return None

    if request.quantity > current_stock:
        return RejectionReason(
            code=ReasonCode.INSUFFICIENT_STOCK,
            message=(
                f"Cannot remove {request.quantity} units: only "
                f"{current_stock} available for product {request.product_id}."
            ),
            policy_name="stock_removal_policy",
        )

    return None
