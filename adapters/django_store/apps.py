"""
Storefront Django Store - App Configuration
=============================================
Products, bulk price tiers, stock movements, orders and order items.
"""

from django.apps import AppConfig


class StorefrontStoreConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "adapters.django_store"
    label = "storefront_store"
    verbose_name = "Storefront Store"
