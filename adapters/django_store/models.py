"""
Storefront Django Store - Relational State
============================================
Rows behind the catalog, stock ledger and order repositories.

Money columns are integer minor units. Order timestamps come from the
injected clock, so they are plain DateTimeFields (no auto_now).
"""

from __future__ import annotations

import uuid

from django.db import models


class OrderStatusChoice(models.TextChoices):
    PENDING = "PENDING", "Pending"
    CONFIRMED = "CONFIRMED", "Confirmed"
    PROCESSING = "PROCESSING", "Processing"
    SHIPPED = "SHIPPED", "Shipped"
    DELIVERED = "DELIVERED", "Delivered"
    CANCELLED = "CANCELLED", "Cancelled"
    RETURNED = "RETURNED", "Returned"


class PaymentStatusChoice(models.TextChoices):
    PENDING = "PENDING", "Pending"
    PENDING_VERIFICATION = "PENDING_VERIFICATION", "Pending verification"
    PAID = "PAID", "Paid"
    FAILED = "FAILED", "Failed"
    PARTIAL = "PARTIAL", "Partial"
    REFUNDED = "REFUNDED", "Refunded"


class MovementTypeChoice(models.TextChoices):
    RESERVE = "RESERVE", "Reserve"
    RESTORE = "RESTORE", "Restore"
    ADJUST_IN = "ADJUST_IN", "Adjust in"
    ADJUST_OUT = "ADJUST_OUT", "Adjust out"


class Product(models.Model):
    product_id = models.CharField(primary_key=True, max_length=64)
    name = models.CharField(max_length=255)
    sku = models.CharField(max_length=64, null=True, blank=True)
    price = models.BigIntegerField()
    wholesale_price = models.BigIntegerField()
    min_order_quantity = models.PositiveIntegerField(default=1)
    stock_quantity = models.IntegerField(default=0)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "storefront_products"
        ordering = ["product_id"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(stock_quantity__gte=0),
                name="chk_product_stock_non_negative",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.product_id} ({self.name})"


class BulkPriceTier(models.Model):
    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name="bulk_tiers",
        db_column="product_id",
    )
    threshold_quantity = models.PositiveIntegerField()
    unit_price = models.BigIntegerField()

    class Meta:
        db_table = "storefront_bulk_price_tiers"
        ordering = ["product_id", "threshold_quantity"]
        constraints = [
            models.UniqueConstraint(
                fields=["product", "threshold_quantity"],
                name="uq_bulk_tier_product_threshold",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.product_id} >= {self.threshold_quantity} @ {self.unit_price}"


class StockMovement(models.Model):
    movement_id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    product_id = models.CharField(max_length=64, db_index=True)
    movement_type = models.CharField(max_length=20, choices=MovementTypeChoice.choices)
    reason = models.CharField(max_length=32)
    quantity = models.PositiveIntegerField()
    balance_after = models.IntegerField()
    occurred_at = models.DateTimeField()
    reference_id = models.CharField(max_length=64, null=True, blank=True)
    actor_id = models.CharField(max_length=255, null=True, blank=True)
    note = models.TextField(default="", blank=True)

    class Meta:
        db_table = "storefront_stock_movements"
        ordering = ["occurred_at", "movement_id"]

    def __str__(self) -> str:
        return f"{self.movement_type} {self.quantity} × {self.product_id}"


class Order(models.Model):
    order_id = models.CharField(primary_key=True, max_length=64)
    order_number = models.CharField(max_length=64, unique=True)
    user_id = models.CharField(max_length=255, null=True, blank=True, db_index=True)
    guest_name = models.CharField(max_length=255, null=True, blank=True)
    guest_mobile = models.CharField(max_length=64, null=True, blank=True)
    guest_email = models.CharField(max_length=255, null=True, blank=True)
    guest_company = models.CharField(max_length=255, null=True, blank=True)
    customer_class = models.CharField(max_length=16)
    shipping_address = models.JSONField()
    billing_address = models.JSONField()
    payment_method = models.CharField(max_length=32)
    payment_reference = models.CharField(max_length=128, null=True, blank=True)
    payment_status = models.CharField(max_length=32, choices=PaymentStatusChoice.choices)
    payment_verified_at = models.DateTimeField(null=True, blank=True)
    payment_verified_by = models.CharField(max_length=255, null=True, blank=True)
    payment_notes = models.TextField(default="", blank=True)
    notes = models.TextField(default="", blank=True)
    currency = models.CharField(max_length=3)
    subtotal = models.BigIntegerField()
    shipping = models.BigIntegerField()
    tax = models.BigIntegerField()
    total = models.BigIntegerField()
    status = models.CharField(max_length=16, choices=OrderStatusChoice.choices)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancelled_by = models.CharField(max_length=255, null=True, blank=True)
    cancellation_reason = models.TextField(default="", blank=True)
    status_history = models.JSONField(default=list)
    version = models.PositiveIntegerField(default=1)
    created_at = models.DateTimeField()
    updated_at = models.DateTimeField()

    class Meta:
        db_table = "storefront_orders"
        ordering = ["-created_at", "-order_number"]
        indexes = [
            models.Index(fields=["status", "created_at"], name="idx_order_status_created"),
        ]

    def __str__(self) -> str:
        return f"{self.order_number} ({self.status})"


class OrderItem(models.Model):
    order = models.ForeignKey(
        Order,
        on_delete=models.CASCADE,
        related_name="order_items",
        db_column="order_id",
    )
    position = models.PositiveIntegerField()
    product_id = models.CharField(max_length=64, db_index=True)
    name = models.CharField(max_length=255)
    sku = models.CharField(max_length=64, null=True, blank=True)
    unit_price = models.BigIntegerField()
    quantity = models.PositiveIntegerField()
    line_total = models.BigIntegerField()

    class Meta:
        db_table = "storefront_order_items"
        ordering = ["order_id", "position"]
        constraints = [
            models.UniqueConstraint(
                fields=["order", "position"],
                name="uq_order_item_position",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.order_id}#{self.position} {self.product_id} × {self.quantity}"
