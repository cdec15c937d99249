"""
Storefront Pricing Engine — Quantity & Price Resolution
=========================================================
Single source of truth for what a buyer may order and at what price.
The same resolution runs for cart previews and, authoritatively,
at order creation.

Rules:
- WHOLESALE buyers are clamped up to the product MOQ; GUEST and
  RETAIL buyers are clamped up to 1. Clamping never rejects.
- When bulk tiers exist, the tier with the highest threshold not
  exceeding the effective quantity sets the unit price.
- With no qualifying tier the class base price applies:
  wholesale_price for WHOLESALE, price for GUEST/RETAIL.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from core.errors import InvalidProductError, ReasonCode, ValidationError
from core.identity.roles import CustomerClass
from core.primitives.product import BulkPriceTier, Product
from engines.pricing.policies import product_orderable_policy

logger = logging.getLogger("storefront.pricing")


class ProductLookup(Protocol):
    def get_product(self, product_id: str) -> Optional[Product]:
        ...


# ══════════════════════════════════════════════════════════════
# RESULT
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class PriceResolution:
    product_id: str
    requested_quantity: int
    effective_quantity: int
    unit_price: int
    line_total: int
    tier_applied: Optional[BulkPriceTier] = None

    @property
    def was_clamped(self) -> bool:
        return self.effective_quantity != self.requested_quantity

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "requested_quantity": self.requested_quantity,
            "effective_quantity": self.effective_quantity,
            "unit_price": self.unit_price,
            "line_total": self.line_total,
            "tier_applied": (
                self.tier_applied.to_dict() if self.tier_applied else None
            ),
        }


# ══════════════════════════════════════════════════════════════
# PURE HELPERS
# ══════════════════════════════════════════════════════════════

def quantity_floor(product: Product, customer_class: CustomerClass) -> int:
    if customer_class == CustomerClass.WHOLESALE:
        return product.min_order_quantity
    return 1


def select_bulk_tier(
    tiers: tuple[BulkPriceTier, ...],
    quantity: int,
) -> Optional[BulkPriceTier]:
    """Highest threshold that is <= quantity, or None."""
    qualifying = [t for t in tiers if t.threshold_quantity <= quantity]
    if not qualifying:
        return None
    return max(qualifying, key=lambda t: t.threshold_quantity)


def base_unit_price(product: Product, customer_class: CustomerClass) -> int:
    if customer_class == CustomerClass.WHOLESALE:
        return product.wholesale_price
    return product.price


# ══════════════════════════════════════════════════════════════
# RESOLVER
# ══════════════════════════════════════════════════════════════

class PricingResolver:
    """
    Resolves effective quantity and unit price for one cart line.

    No side effects. The optional catalog is only used by
    resolve_by_id() to look the product up.
    """

    def __init__(self, catalog: Optional[ProductLookup] = None):
        self._catalog = catalog

    def resolve(
        self,
        product: Product,
        requested_quantity: int,
        customer_class: CustomerClass,
    ) -> PriceResolution:
        if not isinstance(product, Product):
            raise TypeError("product must be Product.")
        reason = product_orderable_policy(product, product.product_id)
        if reason is not None:
            raise InvalidProductError(
                product.product_id, reason.message, code=reason.code, reason=reason,
            )
        if not isinstance(customer_class, CustomerClass):
            raise ValidationError("customer_class must be CustomerClass.")
        if isinstance(requested_quantity, bool) or not isinstance(requested_quantity, int):
            raise ValidationError(
                f"Quantity for product '{product.product_id}' must be an integer.",
                code=ReasonCode.INVALID_QUANTITY,
                details={"product_id": product.product_id},
            )

        effective_quantity = max(
            requested_quantity, quantity_floor(product, customer_class)
        )
        tier = select_bulk_tier(product.bulk_pricing, effective_quantity)
        unit_price = (
            tier.unit_price if tier is not None
            else base_unit_price(product, customer_class)
        )

        if effective_quantity != requested_quantity:
            logger.debug(
                f"Clamped quantity for {product.product_id} "
                f"({customer_class.value}): {requested_quantity} → {effective_quantity}"
            )

        return PriceResolution(
            product_id=product.product_id,
            requested_quantity=requested_quantity,
            effective_quantity=effective_quantity,
            unit_price=unit_price,
            line_total=unit_price * effective_quantity,
            tier_applied=tier,
        )

    def resolve_by_id(
        self,
        product_id: str,
        requested_quantity: int,
        customer_class: CustomerClass,
    ) -> PriceResolution:
        if self._catalog is None:
            raise RuntimeError("PricingResolver has no catalog for lookups.")
        product = self._catalog.get_product(product_id)
        reason = product_orderable_policy(product, product_id)
        if reason is not None:
            raise InvalidProductError(
                product_id, reason.message, code=reason.code, reason=reason,
            )
        return self.resolve(product, requested_quantity, customer_class)
