"""
Storefront Django Store - Repositories
========================================
Django-backed CatalogRepository, StockLedger, OrderRepository and
UnitOfWork.

Stock reservation is a conditional UPDATE:
    UPDATE storefront_products SET stock_quantity = stock_quantity - :q
    WHERE product_id = :id AND stock_quantity >= :q
Concurrent reservations of the last unit serialize in the database;
exactly one matches a row.

Order saves are an optimistic check on version:
    UPDATE storefront_orders SET ... WHERE order_id = :id AND version = :expected
Zero rows means another writer got there first.
"""

from __future__ import annotations

import logging
import uuid
from typing import Optional, Tuple

from django.db import transaction
from django.db.models import F

from adapters.django_store import models as rows
from core.errors import InsufficientStockError, InvalidProductError, StaleStateError
from core.identity.roles import CustomerClass
from core.primitives.inventory import MovementReason, MovementType, StockMovement
from core.primitives.product import BulkPriceTier, Product
from core.primitives.workflow import StateTransition
from core.time import Clock, SystemClock
from engines.orders.models import (
    Address,
    GuestInfo,
    Order,
    OrderItem,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)

logger = logging.getLogger("storefront.inventory")
orders_logger = logging.getLogger("storefront.orders")


# ══════════════════════════════════════════════════════════════
# UNIT OF WORK
# ══════════════════════════════════════════════════════════════

class DjangoUnitOfWork:
    def atomic(self):
        return transaction.atomic()

    def on_commit(self, callback) -> None:
        transaction.on_commit(callback)


# ══════════════════════════════════════════════════════════════
# CATALOG
# ══════════════════════════════════════════════════════════════

def product_from_row(row: rows.Product) -> Product:
    return Product(
        product_id=row.product_id,
        name=row.name,
        sku=row.sku,
        price=row.price,
        wholesale_price=row.wholesale_price,
        min_order_quantity=row.min_order_quantity,
        stock_quantity=row.stock_quantity,
        bulk_pricing=tuple(
            BulkPriceTier(
                threshold_quantity=tier.threshold_quantity,
                unit_price=tier.unit_price,
            )
            for tier in sorted(row.bulk_tiers.all(), key=lambda t: t.threshold_quantity)
        ),
        is_active=row.is_active,
    )


class DjangoCatalog:
    def get_product(self, product_id: str) -> Optional[Product]:
        row = (
            rows.Product.objects.prefetch_related("bulk_tiers")
            .filter(product_id=product_id)
            .first()
        )
        return product_from_row(row) if row is not None else None

    @transaction.atomic
    def save_product(self, product: Product) -> Product:
        if not isinstance(product, Product):
            raise TypeError("product must be Product.")
        row, _ = rows.Product.objects.update_or_create(
            product_id=product.product_id,
            defaults={
                "name": product.name,
                "sku": product.sku,
                "price": product.price,
                "wholesale_price": product.wholesale_price,
                "min_order_quantity": product.min_order_quantity,
                "stock_quantity": product.stock_quantity,
                "is_active": product.is_active,
            },
        )
        row.bulk_tiers.all().delete()
        rows.BulkPriceTier.objects.bulk_create([
            rows.BulkPriceTier(
                product=row,
                threshold_quantity=tier.threshold_quantity,
                unit_price=tier.unit_price,
            )
            for tier in product.bulk_pricing
        ])
        return product

    def list_products(self) -> Tuple[Product, ...]:
        return tuple(
            product_from_row(row)
            for row in rows.Product.objects.prefetch_related("bulk_tiers").order_by("product_id")
        )


# ══════════════════════════════════════════════════════════════
# STOCK LEDGER
# ══════════════════════════════════════════════════════════════

def movement_from_row(row: rows.StockMovement) -> StockMovement:
    return StockMovement(
        movement_id=row.movement_id,
        product_id=row.product_id,
        movement_type=MovementType(row.movement_type),
        reason=MovementReason(row.reason),
        quantity=row.quantity,
        balance_after=row.balance_after,
        occurred_at=row.occurred_at,
        reference_id=row.reference_id,
        actor_id=row.actor_id,
        note=row.note,
    )


class DjangoStockLedger:
    def __init__(self, *, clock: Optional[Clock] = None):
        self._clock = clock or SystemClock()

    def _stock_of(self, product_id: str) -> Optional[int]:
        return (
            rows.Product.objects.filter(product_id=product_id)
            .values_list("stock_quantity", flat=True)
            .first()
        )

    def _record(
        self,
        *,
        product_id: str,
        movement_type: MovementType,
        reason: MovementReason,
        quantity: int,
        reference_id: Optional[str],
        actor_id: Optional[str],
        note: str = "",
    ) -> StockMovement:
        row = rows.StockMovement.objects.create(
            movement_id=uuid.uuid4(),
            product_id=product_id,
            movement_type=movement_type.value,
            reason=reason.value,
            quantity=quantity,
            balance_after=self._stock_of(product_id),
            occurred_at=self._clock.now_utc(),
            reference_id=reference_id,
            actor_id=actor_id,
            note=note,
        )
        return movement_from_row(row)

    def _decrement(self, product_id: str, quantity: int) -> None:
        matched = rows.Product.objects.filter(
            product_id=product_id,
            stock_quantity__gte=quantity,
        ).update(stock_quantity=F("stock_quantity") - quantity)
        if matched == 1:
            return
        available = self._stock_of(product_id)
        if available is None:
            raise InvalidProductError(product_id)
        logger.warning(
            f"Reservation refused for {product_id}: "
            f"{available} available, {quantity} requested"
        )
        raise InsufficientStockError(product_id, quantity, available)

    def _increment(self, product_id: str, quantity: int) -> None:
        matched = rows.Product.objects.filter(product_id=product_id).update(
            stock_quantity=F("stock_quantity") + quantity,
        )
        if matched == 0:
            raise InvalidProductError(product_id)

    @staticmethod
    def _require_positive(quantity: int) -> None:
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValueError("quantity must be positive integer.")

    def reserve(
        self,
        product_id: str,
        quantity: int,
        *,
        reason: MovementReason = MovementReason.ORDER_PLACED,
        reference_id: Optional[str] = None,
        actor_id: Optional[str] = None,
    ) -> StockMovement:
        self._require_positive(quantity)
        with transaction.atomic():
            self._decrement(product_id, quantity)
            return self._record(
                product_id=product_id,
                movement_type=MovementType.RESERVE,
                reason=reason,
                quantity=quantity,
                reference_id=reference_id,
                actor_id=actor_id,
            )

    def restore(
        self,
        product_id: str,
        quantity: int,
        *,
        reason: MovementReason = MovementReason.ORDER_CANCELLED,
        reference_id: Optional[str] = None,
        actor_id: Optional[str] = None,
    ) -> StockMovement:
        self._require_positive(quantity)
        with transaction.atomic():
            self._increment(product_id, quantity)
            return self._record(
                product_id=product_id,
                movement_type=MovementType.RESTORE,
                reason=reason,
                quantity=quantity,
                reference_id=reference_id,
                actor_id=actor_id,
            )

    def adjust(
        self,
        product_id: str,
        delta: int,
        *,
        actor_id: Optional[str] = None,
        note: str = "",
        reference_id: Optional[str] = None,
    ) -> StockMovement:
        if isinstance(delta, bool) or not isinstance(delta, int) or delta == 0:
            raise ValueError("delta must be non-zero integer.")
        with transaction.atomic():
            if delta > 0:
                self._increment(product_id, delta)
            else:
                self._decrement(product_id, -delta)
            return self._record(
                product_id=product_id,
                movement_type=(
                    MovementType.ADJUST_IN if delta > 0 else MovementType.ADJUST_OUT
                ),
                reason=MovementReason.MANUAL_ADJUSTMENT,
                quantity=abs(delta),
                reference_id=reference_id,
                actor_id=actor_id,
                note=note,
            )

    def current_stock(self, product_id: str) -> int:
        stock = self._stock_of(product_id)
        if stock is None:
            raise InvalidProductError(product_id)
        return stock

    def movements(self, product_id: Optional[str] = None) -> Tuple[StockMovement, ...]:
        queryset = rows.StockMovement.objects.all()
        if product_id is not None:
            queryset = queryset.filter(product_id=product_id)
        return tuple(movement_from_row(row) for row in queryset)


# ══════════════════════════════════════════════════════════════
# ORDERS
# ══════════════════════════════════════════════════════════════

def _order_fields(order: Order) -> dict:
    guest = order.guest_info
    return {
        "order_number": order.order_number,
        "user_id": order.user_id,
        "guest_name": guest.name if guest else None,
        "guest_mobile": guest.mobile if guest else None,
        "guest_email": guest.email if guest else None,
        "guest_company": guest.company_name if guest else None,
        "customer_class": order.customer_class.value,
        "shipping_address": order.shipping_address.to_dict(),
        "billing_address": order.billing_address.to_dict(),
        "payment_method": order.payment_method.value,
        "payment_reference": order.payment_reference,
        "payment_status": order.payment_status.value,
        "payment_verified_at": order.payment_verified_at,
        "payment_verified_by": order.payment_verified_by,
        "payment_notes": order.payment_notes,
        "notes": order.notes,
        "currency": order.currency,
        "subtotal": order.subtotal,
        "shipping": order.shipping,
        "tax": order.tax,
        "total": order.total,
        "status": order.status.value,
        "cancelled_at": order.cancelled_at,
        "cancelled_by": order.cancelled_by,
        "cancellation_reason": order.cancellation_reason,
        "status_history": [t.to_dict() for t in order.status_history],
        "version": order.version,
        "created_at": order.created_at,
        "updated_at": order.updated_at,
    }


def order_from_row(row: rows.Order) -> Order:
    guest = None
    if row.guest_name is not None:
        guest = GuestInfo(
            name=row.guest_name,
            mobile=row.guest_mobile,
            email=row.guest_email,
            company_name=row.guest_company,
        )
    return Order(
        order_id=row.order_id,
        order_number=row.order_number,
        items=tuple(
            OrderItem(
                product_id=item.product_id,
                name=item.name,
                sku=item.sku,
                unit_price=item.unit_price,
                quantity=item.quantity,
                line_total=item.line_total,
            )
            for item in sorted(row.order_items.all(), key=lambda i: i.position)
        ),
        shipping_address=Address.from_dict(row.shipping_address),
        billing_address=Address.from_dict(row.billing_address),
        payment_method=PaymentMethod(row.payment_method),
        customer_class=CustomerClass(row.customer_class),
        currency=row.currency,
        subtotal=row.subtotal,
        shipping=row.shipping,
        tax=row.tax,
        total=row.total,
        status=OrderStatus(row.status),
        payment_status=PaymentStatus(row.payment_status),
        created_at=row.created_at,
        updated_at=row.updated_at,
        user_id=row.user_id,
        guest_info=guest,
        payment_reference=row.payment_reference,
        payment_verified_at=row.payment_verified_at,
        payment_verified_by=row.payment_verified_by,
        payment_notes=row.payment_notes,
        notes=row.notes,
        cancelled_at=row.cancelled_at,
        cancelled_by=row.cancelled_by,
        cancellation_reason=row.cancellation_reason,
        status_history=tuple(StateTransition.from_dict(t) for t in row.status_history),
        version=row.version,
    )


class DjangoOrderRepository:
    def _queryset(self):
        return rows.Order.objects.prefetch_related("order_items")

    def _write_items(self, row: rows.Order, order: Order) -> None:
        row.order_items.all().delete()
        rows.OrderItem.objects.bulk_create([
            rows.OrderItem(
                order=row,
                position=position,
                product_id=item.product_id,
                name=item.name,
                sku=item.sku,
                unit_price=item.unit_price,
                quantity=item.quantity,
                line_total=item.line_total,
            )
            for position, item in enumerate(order.items, start=1)
        ])

    def get(self, order_id: str) -> Optional[Order]:
        row = self._queryset().filter(order_id=order_id).first()
        return order_from_row(row) if row is not None else None

    def get_by_number(self, order_number: str) -> Optional[Order]:
        row = self._queryset().filter(order_number=order_number).first()
        return order_from_row(row) if row is not None else None

    @transaction.atomic
    def add(self, order: Order) -> Order:
        row = rows.Order.objects.create(order_id=order.order_id, **_order_fields(order))
        self._write_items(row, order)
        return order

    @transaction.atomic
    def save(self, order: Order, *, expected_version: int) -> Order:
        matched = rows.Order.objects.filter(
            order_id=order.order_id,
            version=expected_version,
        ).update(**_order_fields(order))
        if matched == 0:
            actual = (
                rows.Order.objects.filter(order_id=order.order_id)
                .values_list("version", flat=True)
                .first()
            )
            orders_logger.warning(
                f"Stale write on order {order.order_id}: "
                f"expected version {expected_version}, found {actual}"
            )
            raise StaleStateError(order.order_id, expected_version, actual)
        row = rows.Order.objects.get(order_id=order.order_id)
        self._write_items(row, order)
        return order

    def list_orders(self, *, user_id: Optional[str] = None) -> Tuple[Order, ...]:
        queryset = self._queryset()
        if user_id is not None:
            queryset = queryset.filter(user_id=user_id)
        return tuple(order_from_row(row) for row in queryset)
