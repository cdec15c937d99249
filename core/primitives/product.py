"""
Storefront Product Primitive — Catalog Snapshot for Pricing & Stock
=====================================================================
The order core reads products; it never edits catalog content.

RULES:
- All prices are integer minor units (no floats)
- stock_quantity >= 0 at all times
- min_order_quantity >= 1 (only enforced for wholesale buyers)
- bulk_pricing thresholds are >= 1 and strictly increasing

This file contains NO persistence logic.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, Tuple


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


# ══════════════════════════════════════════════════════════════
# BULK PRICE TIER
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class BulkPriceTier:
    """Unit price that applies once the line quantity reaches threshold_quantity."""
    threshold_quantity: int
    unit_price: int

    def __post_init__(self):
        if not _is_int(self.threshold_quantity) or self.threshold_quantity < 1:
            raise ValueError("threshold_quantity must be integer >= 1.")
        if not _is_int(self.unit_price) or self.unit_price < 0:
            raise ValueError("unit_price must be non-negative integer (minor units).")

    def to_dict(self) -> dict:
        return {
            "threshold_quantity": self.threshold_quantity,
            "unit_price": self.unit_price,
        }

    @classmethod
    def from_dict(cls, data: dict) -> BulkPriceTier:
        return cls(
            threshold_quantity=data["threshold_quantity"],
            unit_price=data["unit_price"],
        )


def validate_bulk_pricing(tiers: Tuple[BulkPriceTier, ...]) -> None:
    """Raise ValueError unless thresholds are strictly increasing."""
    previous: Optional[int] = None
    for index, tier in enumerate(tiers):
        if not isinstance(tier, BulkPriceTier):
            raise TypeError(f"bulk_pricing[{index}] must be BulkPriceTier.")
        if previous is not None and tier.threshold_quantity <= previous:
            raise ValueError(
                f"bulk_pricing thresholds must be strictly increasing: "
                f"tier {index + 1} threshold {tier.threshold_quantity} "
                f"follows {previous}."
            )
        previous = tier.threshold_quantity


# ══════════════════════════════════════════════════════════════
# PRODUCT
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Product:
    """
    Immutable product snapshot as seen by pricing and stock.

    Fields:
        product_id:          Catalog identifier
        name:                Display name (snapshotted onto order items)
        price:               Retail unit price (GUEST/RETAIL)
        wholesale_price:     Wholesale unit price (WHOLESALE)
        min_order_quantity:  MOQ for wholesale buyers
        stock_quantity:      Units available to reserve
        bulk_pricing:        Ordered tiers, lowest threshold first
        is_active:           Inactive products cannot be ordered
        sku:                 Optional stock keeping unit
    """
    product_id: str
    name: str
    price: int
    wholesale_price: int
    min_order_quantity: int = 1
    stock_quantity: int = 0
    bulk_pricing: Tuple[BulkPriceTier, ...] = ()
    is_active: bool = True
    sku: Optional[str] = None

    def __post_init__(self):
        if not self.product_id or not isinstance(self.product_id, str):
            raise ValueError("product_id must be non-empty string.")
        if not self.name or not isinstance(self.name, str):
            raise ValueError("name must be non-empty string.")
        if not _is_int(self.price) or self.price < 0:
            raise ValueError("price must be non-negative integer (minor units).")
        if not _is_int(self.wholesale_price) or self.wholesale_price < 0:
            raise ValueError(
                "wholesale_price must be non-negative integer (minor units)."
            )
        if not _is_int(self.min_order_quantity) or self.min_order_quantity < 1:
            raise ValueError("min_order_quantity must be integer >= 1.")
        if not _is_int(self.stock_quantity) or self.stock_quantity < 0:
            raise ValueError("stock_quantity must be non-negative integer.")
        if not isinstance(self.bulk_pricing, tuple):
            raise TypeError("bulk_pricing must be a tuple of BulkPriceTier.")
        validate_bulk_pricing(self.bulk_pricing)

    def with_stock(self, stock_quantity: int) -> Product:
        return replace(self, stock_quantity=stock_quantity)

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "name": self.name,
            "sku": self.sku,
            "price": self.price,
            "wholesale_price": self.wholesale_price,
            "min_order_quantity": self.min_order_quantity,
            "stock_quantity": self.stock_quantity,
            "bulk_pricing": [t.to_dict() for t in self.bulk_pricing],
            "is_active": self.is_active,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Product:
        return cls(
            product_id=data["product_id"],
            name=data["name"],
            sku=data.get("sku"),
            price=data["price"],
            wholesale_price=data["wholesale_price"],
            min_order_quantity=data.get("min_order_quantity", 1),
            stock_quantity=data.get("stock_quantity", 0),
            bulk_pricing=tuple(
                BulkPriceTier.from_dict(t) for t in data.get("bulk_pricing", ())
            ),
            is_active=data.get("is_active", True),
        )
