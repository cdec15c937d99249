"""
Storefront — Checkout Config Tests
====================================
"""

from decimal import Decimal

import pytest

from core.config.rules import (
    CheckoutConfig,
    TaxRule,
    checkout_config_from_mapping,
    load_checkout_config,
)


def test_defaults():
    config = CheckoutConfig()
    assert config.currency == "BDT"
    assert config.shipping_for(123_456) == 5000
    assert config.tax_rule.rate == Decimal("0.05")
    assert config.manual_reference_min_length == 5
    assert config.reconcile_stock_on_item_edit is True


@pytest.mark.parametrize(
    "amount, expected",
    [(0, 0), (30000, 1500), (10, 1), (9, 0), (1234, 62)],
)
def test_tax_rounds_half_up(amount, expected):
    assert TaxRule().compute_tax(amount) == expected


def test_tax_rate_bounds():
    with pytest.raises(ValueError):
        TaxRule(rate=Decimal("1.5"))
    with pytest.raises(TypeError):
        TaxRule(rate=0.05)


def test_config_validation():
    with pytest.raises(ValueError):
        CheckoutConfig(currency="TAKA")
    with pytest.raises(ValueError):
        CheckoutConfig(shipping_flat_fee=-1)
    with pytest.raises(ValueError):
        CheckoutConfig(manual_reference_min_length=0)


def test_from_mapping():
    config = checkout_config_from_mapping({
        "CURRENCY": "usd",
        "SHIPPING_FLAT_FEE": 0,
        "TAX_RATE": "0.075",
        "RECONCILE_STOCK_ON_ITEM_EDIT": False,
    })
    assert config.currency == "USD"
    assert config.shipping_flat_fee == 0
    assert config.tax_rule.rate == Decimal("0.075")
    assert config.reconcile_stock_on_item_edit is False


def test_from_mapping_empty_gives_defaults():
    assert checkout_config_from_mapping(None) == CheckoutConfig()
    assert checkout_config_from_mapping({}) == CheckoutConfig()


def test_from_mapping_rejects_unknown_keys():
    with pytest.raises(ValueError, match="SHIPPING_FEE"):
        checkout_config_from_mapping({"SHIPPING_FEE": 10})


def test_from_mapping_rejects_bad_rate():
    with pytest.raises(ValueError):
        checkout_config_from_mapping({"TAX_RATE": "five percent"})


def test_load_from_settings(settings):
    settings.STOREFRONT_CHECKOUT = {"SHIPPING_FLAT_FEE": 12000}
    assert load_checkout_config().shipping_flat_fee == 12000
