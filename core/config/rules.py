"""
Storefront Core Config — Checkout Rules
=========================================
Shipping, tax and manual-payment rules applied at order creation.

Rates and fees are deployment configuration, never hardcoded in
engine logic. Defaults match the storefront's launch settings:
flat 50.00 shipping and 5% tax.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Mapping, Optional


# ══════════════════════════════════════════════════════════════
# TAX RULE
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class TaxRule:
    """
    Flat tax applied to the order subtotal.

    rate is a Decimal fraction: Decimal("0.05") means 5%.
    """

    rate: Decimal = Decimal("0.05")
    tax_type: str = "VAT"

    def __post_init__(self) -> None:
        if not isinstance(self.rate, Decimal):
            raise TypeError("Tax rate must be Decimal.")
        if not Decimal("0") <= self.rate <= Decimal("1"):
            raise ValueError(f"Tax rate must be between 0 and 1, got {self.rate}.")

    def compute_tax(self, amount: int) -> int:
        """Tax in minor units, rounded half-up."""
        raw = Decimal(amount) * self.rate
        return int(raw.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


# ══════════════════════════════════════════════════════════════
# CHECKOUT CONFIG
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class CheckoutConfig:
    """
    Fields:
        currency:                       ISO 4217 code for every order amount
        shipping_flat_fee:              Minor units charged once per order
        tax_rule:                       Applied to the subtotal
        manual_reference_min_length:    Minimum transaction reference length
                                        for bank transfer / mobile wallet
        reconcile_stock_on_item_edit:   Admin item edits reserve/restore the
                                        quantity delta when True
    """

    currency: str = "BDT"
    shipping_flat_fee: int = 5000
    tax_rule: TaxRule = field(default_factory=TaxRule)
    manual_reference_min_length: int = 5
    reconcile_stock_on_item_edit: bool = True

    def __post_init__(self) -> None:
        if not self.currency or len(self.currency) != 3:
            raise ValueError("currency must be 3-letter ISO 4217 code.")
        if not isinstance(self.shipping_flat_fee, int) or self.shipping_flat_fee < 0:
            raise ValueError("shipping_flat_fee must be non-negative integer.")
        if not isinstance(self.tax_rule, TaxRule):
            raise TypeError("tax_rule must be TaxRule.")
        if (
            not isinstance(self.manual_reference_min_length, int)
            or self.manual_reference_min_length < 1
        ):
            raise ValueError("manual_reference_min_length must be integer >= 1.")

    def shipping_for(self, subtotal: int) -> int:
        # Flat rate; subtotal kept in the signature for tiered shipping later.
        return self.shipping_flat_fee


def checkout_config_from_mapping(raw: Optional[Mapping[str, Any]]) -> CheckoutConfig:
    """Build a CheckoutConfig from a settings-style dict. Unknown keys are rejected."""
    if not raw:
        return CheckoutConfig()
    known = {
        "CURRENCY",
        "SHIPPING_FLAT_FEE",
        "TAX_RATE",
        "MANUAL_REFERENCE_MIN_LENGTH",
        "RECONCILE_STOCK_ON_ITEM_EDIT",
    }
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ValueError(f"Unknown checkout settings: {unknown}")

    kwargs: dict[str, Any] = {}
    if "CURRENCY" in raw:
        kwargs["currency"] = str(raw["CURRENCY"]).upper()
    if "SHIPPING_FLAT_FEE" in raw:
        kwargs["shipping_flat_fee"] = raw["SHIPPING_FLAT_FEE"]
    if "TAX_RATE" in raw:
        try:
            rate = Decimal(str(raw["TAX_RATE"]))
        except InvalidOperation as exc:
            raise ValueError(f"TAX_RATE '{raw['TAX_RATE']}' is not a number.") from exc
        kwargs["tax_rule"] = TaxRule(rate=rate)
    if "MANUAL_REFERENCE_MIN_LENGTH" in raw:
        kwargs["manual_reference_min_length"] = raw["MANUAL_REFERENCE_MIN_LENGTH"]
    if "RECONCILE_STOCK_ON_ITEM_EDIT" in raw:
        kwargs["reconcile_stock_on_item_edit"] = bool(raw["RECONCILE_STOCK_ON_ITEM_EDIT"])
    return CheckoutConfig(**kwargs)


def load_checkout_config() -> CheckoutConfig:
    """
    Read STOREFRONT_CHECKOUT from Django settings when Django is configured;
    otherwise return the defaults.
    """
    from django.conf import settings
    from django.core.exceptions import ImproperlyConfigured

    try:
        raw = getattr(settings, "STOREFRONT_CHECKOUT", None)
    except ImproperlyConfigured:
        return CheckoutConfig()
    return checkout_config_from_mapping(raw)
