"""
Storefront Core Config — Public API
=====================================
Checkout rules (shipping, tax, manual payment references).
"""

from core.config.rules import (
    CheckoutConfig,
    TaxRule,
    checkout_config_from_mapping,
    load_checkout_config,
)

__all__ = [
    "CheckoutConfig",
    "TaxRule",
    "checkout_config_from_mapping",
    "load_checkout_config",
]
