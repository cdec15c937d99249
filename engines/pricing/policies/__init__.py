"""
Storefront Pricing Engine — Policies
======================================
A product must exist and be active before it can be priced.
"""

from __future__ import annotations

from typing import Optional

from core.errors import ReasonCode, RejectionReason
from core.primitives.product import Product


def product_orderable_policy(
    product: Optional[Product],
    product_id: str,
) -> Optional[RejectionReason]:
    if product is None:
        return RejectionReason(
            code=ReasonCode.PRODUCT_NOT_FOUND,
            message=f"Product '{product_id}' not found.",
            policy_name="product_orderable_policy",
        )
    if not product.is_active:
        return RejectionReason(
            code=ReasonCode.PRODUCT_INACTIVE,
            message=f"Product '{product.name}' is no longer available.",
            policy_name="product_orderable_policy",
        )
    return None
