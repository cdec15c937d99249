"""
Storefront Orders Engine — Order Assembler
============================================
Turns a submitted cart into a persisted Order, and applies the admin
item edit on PENDING orders.

Checkout algorithm:
1. Buyer identity and manual-payment reference policies
2. Authoritative pricing per cart line (PricingResolver)
3. Stock reservation per product in ascending product_id order;
   on the first failure every earlier reservation is restored
4. Totals, item snapshots, initial status/payment status
5. Persist

Steps 2–5 run in one unit of work: either the reservations and the
Order commit together or neither does.
"""

from __future__ import annotations

import logging
import uuid
from typing import Dict, List, Optional, Tuple

from core.config import CheckoutConfig
from core.errors import (
    InvalidProductError,
    InvalidTransitionError,
    OrderNotFoundError,
    StaleStateError,
    StorefrontError,
    ValidationError,
)
from core.identity import Principal, customer_class_for, require_admin
from core.identity.roles import CustomerClass
from core.persistence import UnitOfWork
from core.primitives.inventory import MovementReason
from core.time import Clock, SystemClock
from engines.inventory.catalog import CatalogRepository
from engines.inventory.ledger import StockLedger
from engines.orders.commands import CartLine, CreateOrderRequest, UpdateItemsRequest
from engines.orders.models import (
    MANUAL_PAYMENT_METHODS,
    Order,
    OrderItem,
    OrderStatus,
    PaymentStatus,
)
from engines.orders.numbering import OrderNumberGenerator
from engines.orders.policies import (
    buyer_identity_policy,
    expected_version_policy,
    manual_payment_reference_policy,
    order_editable_policy,
)
from engines.orders.repository import OrderRepository
from engines.pricing.policies import product_orderable_policy
from engines.pricing.resolver import PriceResolution, PricingResolver

logger = logging.getLogger("storefront.orders")


def load_order_for_update(
    orders: OrderRepository,
    order_id: str,
    expected_version: Optional[int],
) -> Order:
    """Fetch an order inside a unit of work, enforcing expected_version."""
    order = orders.get(order_id)
    if order is None:
        raise OrderNotFoundError(order_id)
    reason = expected_version_policy(order, expected_version)
    if reason is not None:
        logger.warning(reason.message)
        raise StaleStateError(order_id, expected_version, order.version)
    return order


class OrderAssembler:
    def __init__(
        self,
        *,
        catalog: CatalogRepository,
        ledger: StockLedger,
        orders: OrderRepository,
        unit_of_work: UnitOfWork,
        config: Optional[CheckoutConfig] = None,
        clock: Optional[Clock] = None,
        numbering: Optional[OrderNumberGenerator] = None,
        pricing: Optional[PricingResolver] = None,
    ):
        self._catalog = catalog
        self._ledger = ledger
        self._orders = orders
        self._uow = unit_of_work
        self._config = config or CheckoutConfig()
        self._clock = clock or SystemClock()
        self._numbering = numbering or OrderNumberGenerator(clock=self._clock)
        self._pricing = pricing or PricingResolver(catalog)

    @property
    def config(self) -> CheckoutConfig:
        return self._config

    # ── Pricing ────────────────────────────────────────────────

    def price_cart(
        self,
        lines: Tuple[CartLine, ...],
        customer_class: CustomerClass,
    ) -> Tuple[Tuple[PriceResolution, str, Optional[str]], ...]:
        """(resolution, name snapshot, sku) per line. Read-only."""
        priced = []
        for line in lines:
            product = self._catalog.get_product(line.product_id)
            reason = product_orderable_policy(product, line.product_id)
            if reason is not None:
                logger.warning(f"Checkout rejected: {reason.message}")
                raise InvalidProductError(
                    line.product_id, reason.message, code=reason.code, reason=reason,
                )
            resolution = self._pricing.resolve(product, line.quantity, customer_class)
            priced.append((resolution, product.name, product.sku))
        return tuple(priced)

    # ── Stock ──────────────────────────────────────────────────

    def _reserve_all(
        self,
        quantities: Dict[str, int],
        *,
        reference_id: str,
        actor_id: Optional[str],
        reason: MovementReason,
    ) -> None:
        """Reserve in ascending product_id; restore earlier ones on failure."""
        reserved: List[Tuple[str, int]] = []
        try:
            for product_id in sorted(quantities):
                quantity = quantities[product_id]
                self._ledger.reserve(
                    product_id,
                    quantity,
                    reason=reason,
                    reference_id=reference_id,
                    actor_id=actor_id,
                )
                reserved.append((product_id, quantity))
        except StorefrontError:
            self._compensate(reserved, reference_id=reference_id, actor_id=actor_id)
            raise

    def _compensate(
        self,
        reserved: List[Tuple[str, int]],
        *,
        reference_id: str,
        actor_id: Optional[str],
    ) -> None:
        for product_id, quantity in reserved:
            self._ledger.restore(
                product_id,
                quantity,
                reason=MovementReason.ORDER_ROLLBACK,
                reference_id=reference_id,
                actor_id=actor_id,
            )
        if reserved:
            logger.warning(
                f"Rolled back {len(reserved)} reservation(s) for {reference_id}"
            )

    def _apply_stock_deltas(
        self,
        deltas: Dict[str, int],
        *,
        reference_id: str,
        actor_id: Optional[str],
    ) -> None:
        """Positive delta reserves, negative restores. Ascending product_id."""
        applied: List[Tuple[str, int]] = []
        try:
            for product_id in sorted(deltas):
                delta = deltas[product_id]
                if delta > 0:
                    self._ledger.reserve(
                        product_id, delta,
                        reason=MovementReason.ORDER_EDITED,
                        reference_id=reference_id,
                        actor_id=actor_id,
                    )
                elif delta < 0:
                    self._ledger.restore(
                        product_id, -delta,
                        reason=MovementReason.ORDER_EDITED,
                        reference_id=reference_id,
                        actor_id=actor_id,
                    )
                else:
                    continue
                applied.append((product_id, delta))
        except StorefrontError:
            for product_id, delta in reversed(applied):
                if delta > 0:
                    self._ledger.restore(
                        product_id, delta,
                        reason=MovementReason.ORDER_ROLLBACK,
                        reference_id=reference_id,
                        actor_id=actor_id,
                    )
                else:
                    self._ledger.reserve(
                        product_id, -delta,
                        reason=MovementReason.ORDER_ROLLBACK,
                        reference_id=reference_id,
                        actor_id=actor_id,
                    )
            raise

    # ── Checkout ───────────────────────────────────────────────

    def create_order(
        self,
        request: CreateOrderRequest,
        principal: Optional[Principal] = None,
    ) -> Order:
        reason = buyer_identity_policy(principal, request.guest_info)
        if reason is not None:
            raise ValidationError.from_reason(reason)

        reason = manual_payment_reference_policy(
            request.payment_method,
            request.payment_reference,
            min_length=self._config.manual_reference_min_length,
        )
        if reason is not None:
            raise ValidationError.from_reason(
                reason, payment_method=request.payment_method.value,
            )

        customer_class = customer_class_for(principal)
        actor_id = principal.user_id if principal is not None else None

        with self._uow.atomic():
            priced = self.price_cart(request.lines, customer_class)

            items = tuple(
                OrderItem(
                    product_id=resolution.product_id,
                    name=name,
                    unit_price=resolution.unit_price,
                    quantity=resolution.effective_quantity,
                    line_total=resolution.line_total,
                    sku=sku,
                )
                for resolution, name, sku in priced
            )
            quantities: Dict[str, int] = {}
            for item in items:
                quantities[item.product_id] = quantities.get(item.product_id, 0) + item.quantity

            order_number = self._numbering.next_number()
            self._reserve_all(
                quantities,
                reference_id=order_number,
                actor_id=actor_id,
                reason=MovementReason.ORDER_PLACED,
            )

            subtotal = sum(item.line_total for item in items)
            shipping = self._config.shipping_for(subtotal)
            tax = self._config.tax_rule.compute_tax(subtotal)
            is_manual = request.payment_method in MANUAL_PAYMENT_METHODS
            now = self._clock.now_utc()

            order = Order(
                order_id=str(uuid.uuid4()),
                order_number=order_number,
                items=items,
                shipping_address=request.shipping_address,
                billing_address=request.billing_address,
                payment_method=request.payment_method,
                customer_class=customer_class,
                currency=self._config.currency,
                subtotal=subtotal,
                shipping=shipping,
                tax=tax,
                total=subtotal + shipping + tax,
                status=OrderStatus.PENDING,
                payment_status=(
                    PaymentStatus.PENDING_VERIFICATION if is_manual
                    else PaymentStatus.PENDING
                ),
                created_at=now,
                updated_at=now,
                user_id=actor_id,
                guest_info=request.guest_info if principal is None else None,
                payment_reference=(
                    request.payment_reference.strip()
                    if request.payment_reference else None
                ),
                notes=request.notes,
            )
            self._orders.add(order)

        logger.info(
            f"Order {order.order_number} created "
            f"({'guest' if order.is_guest else order.user_id}, "
            f"{customer_class.value}): {len(items)} item(s), total {order.total}"
        )
        return order

    # ── Admin item edit ────────────────────────────────────────

    def update_items(
        self,
        principal: Optional[Principal],
        request: UpdateItemsRequest,
    ) -> Tuple[Order, Order]:
        """
        Replace the items of a PENDING order.

        Returns (before, after). Stock is reconciled for the quantity
        delta when the checkout config says so.
        """
        actor = require_admin(principal, operation="update_order_items")

        with self._uow.atomic():
            order = load_order_for_update(
                self._orders, request.order_id, request.expected_version,
            )
            reason = order_editable_policy(order)
            if reason is not None:
                logger.warning(reason.message)
                raise InvalidTransitionError(
                    order.status.value,
                    order.status.value,
                    reason.message,
                    code=reason.code,
                )

            existing = {item.product_id: item for item in order.items}
            new_items = []
            for edit in request.items:
                product = self._catalog.get_product(edit.product_id)
                if product is None:
                    raise InvalidProductError(edit.product_id)
                snapshot = existing.get(edit.product_id)
                new_items.append(OrderItem.priced(
                    product_id=edit.product_id,
                    name=snapshot.name if snapshot else product.name,
                    unit_price=edit.unit_price,
                    quantity=edit.quantity,
                    sku=snapshot.sku if snapshot else product.sku,
                ))

            if self._config.reconcile_stock_on_item_edit:
                old = order.item_quantities()
                new = {item.product_id: item.quantity for item in new_items}
                deltas = {
                    product_id: new.get(product_id, 0) - old.get(product_id, 0)
                    for product_id in set(old) | set(new)
                }
                self._apply_stock_deltas(
                    deltas,
                    reference_id=order.order_number,
                    actor_id=actor.user_id,
                )

            subtotal = sum(item.line_total for item in new_items)
            tax = self._config.tax_rule.compute_tax(subtotal)
            updated = order.evolve(
                at=self._clock.now_utc(),
                items=tuple(new_items),
                subtotal=subtotal,
                tax=tax,
                total=subtotal + order.shipping + tax,
            )
            self._orders.save(updated, expected_version=order.version)

        logger.info(
            f"Order {order.order_number} items updated by {actor.user_id}: "
            f"total {order.total} → {updated.total}"
        )
        return order, updated
