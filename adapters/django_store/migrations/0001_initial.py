import uuid

from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Product",
            fields=[
                ("product_id", models.CharField(max_length=64, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255)),
                ("sku", models.CharField(blank=True, max_length=64, null=True)),
                ("price", models.BigIntegerField()),
                ("wholesale_price", models.BigIntegerField()),
                ("min_order_quantity", models.PositiveIntegerField(default=1)),
                ("stock_quantity", models.IntegerField(default=0)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "storefront_products",
                "ordering": ["product_id"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(stock_quantity__gte=0),
                        name="chk_product_stock_non_negative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="BulkPriceTier",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("threshold_quantity", models.PositiveIntegerField()),
                ("unit_price", models.BigIntegerField()),
                (
                    "product",
                    models.ForeignKey(
                        db_column="product_id",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="bulk_tiers",
                        to="storefront_store.product",
                    ),
                ),
            ],
            options={
                "db_table": "storefront_bulk_price_tiers",
                "ordering": ["product_id", "threshold_quantity"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("product", "threshold_quantity"),
                        name="uq_bulk_tier_product_threshold",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="StockMovement",
            fields=[
                ("movement_id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("product_id", models.CharField(db_index=True, max_length=64)),
                (
                    "movement_type",
                    models.CharField(
                        choices=[
                            ("RESERVE", "Reserve"),
                            ("RESTORE", "Restore"),
                            ("ADJUST_IN", "Adjust in"),
                            ("ADJUST_OUT", "Adjust out"),
                        ],
                        max_length=20,
                    ),
                ),
                ("reason", models.CharField(max_length=32)),
                ("quantity", models.PositiveIntegerField()),
                ("balance_after", models.IntegerField()),
                ("occurred_at", models.DateTimeField()),
                ("reference_id", models.CharField(blank=True, max_length=64, null=True)),
                ("actor_id", models.CharField(blank=True, max_length=255, null=True)),
                ("note", models.TextField(blank=True, default="")),
            ],
            options={
                "db_table": "storefront_stock_movements",
                "ordering": ["occurred_at", "movement_id"],
            },
        ),
        migrations.CreateModel(
            name="Order",
            fields=[
                ("order_id", models.CharField(max_length=64, primary_key=True, serialize=False)),
                ("order_number", models.CharField(max_length=64, unique=True)),
                ("user_id", models.CharField(blank=True, db_index=True, max_length=255, null=True)),
                ("guest_name", models.CharField(blank=True, max_length=255, null=True)),
                ("guest_mobile", models.CharField(blank=True, max_length=64, null=True)),
                ("guest_email", models.CharField(blank=True, max_length=255, null=True)),
                ("guest_company", models.CharField(blank=True, max_length=255, null=True)),
                ("customer_class", models.CharField(max_length=16)),
                ("shipping_address", models.JSONField()),
                ("billing_address", models.JSONField()),
                ("payment_method", models.CharField(max_length=32)),
                ("payment_reference", models.CharField(blank=True, max_length=128, null=True)),
                (
                    "payment_status",
                    models.CharField(
                        choices=[
                            ("PENDING", "Pending"),
                            ("PENDING_VERIFICATION", "Pending verification"),
                            ("PAID", "Paid"),
                            ("FAILED", "Failed"),
                            ("PARTIAL", "Partial"),
                            ("REFUNDED", "Refunded"),
                        ],
                        max_length=32,
                    ),
                ),
                ("payment_verified_at", models.DateTimeField(blank=True, null=True)),
                ("payment_verified_by", models.CharField(blank=True, max_length=255, null=True)),
                ("payment_notes", models.TextField(blank=True, default="")),
                ("notes", models.TextField(blank=True, default="")),
                ("currency", models.CharField(max_length=3)),
                ("subtotal", models.BigIntegerField()),
                ("shipping", models.BigIntegerField()),
                ("tax", models.BigIntegerField()),
                ("total", models.BigIntegerField()),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("PENDING", "Pending"),
                            ("CONFIRMED", "Confirmed"),
                            ("PROCESSING", "Processing"),
                            ("SHIPPED", "Shipped"),
                            ("DELIVERED", "Delivered"),
                            ("CANCELLED", "Cancelled"),
                            ("RETURNED", "Returned"),
                        ],
                        max_length=16,
                    ),
                ),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                ("cancelled_by", models.CharField(blank=True, max_length=255, null=True)),
                ("cancellation_reason", models.TextField(blank=True, default="")),
                ("status_history", models.JSONField(default=list)),
                ("version", models.PositiveIntegerField(default=1)),
                ("created_at", models.DateTimeField()),
                ("updated_at", models.DateTimeField()),
            ],
            options={
                "db_table": "storefront_orders",
                "ordering": ["-created_at", "-order_number"],
                "indexes": [
                    models.Index(fields=["status", "created_at"], name="idx_order_status_created"),
                ],
            },
        ),
        migrations.CreateModel(
            name="OrderItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("position", models.PositiveIntegerField()),
                ("product_id", models.CharField(db_index=True, max_length=64)),
                ("name", models.CharField(max_length=255)),
                ("sku", models.CharField(blank=True, max_length=64, null=True)),
                ("unit_price", models.BigIntegerField()),
                ("quantity", models.PositiveIntegerField()),
                ("line_total", models.BigIntegerField()),
                (
                    "order",
                    models.ForeignKey(
                        db_column="order_id",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="order_items",
                        to="storefront_store.order",
                    ),
                ),
            ],
            options={
                "db_table": "storefront_order_items",
                "ordering": ["order_id", "position"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("order", "position"),
                        name="uq_order_item_position",
                    ),
                ],
            },
        ),
    ]
