"""
Storefront Inventory Engine — Application Service
===================================================
Admin stock adjustments, the stock report and reorder alerts.

Orchestrates:
1. Admin role re-validation
2. Policy checks against the current stock
3. Ledger adjustment inside a unit of work
4. Event publishing after commit
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from core.errors import InsufficientStockError, InvalidProductError
from core.events import DomainEvent, EventPublisher, publish_after_commit
from core.identity import Principal, require_admin
from core.persistence import UnitOfWork
from core.primitives.inventory import StockMovement
from core.primitives.product import Product
from core.time import Clock, SystemClock
from engines.inventory.catalog import CatalogRepository
from engines.inventory.commands import StockAdjustRequest
from engines.inventory.events import (
    build_stock_adjusted_payload,
    resolve_inventory_event_type,
)
from engines.inventory.ledger import (
    StockLedger,
    StockStatus,
    derive_stock_status,
    reorder_point,
)
from engines.inventory.policies import product_exists_policy, stock_removal_policy

logger = logging.getLogger("storefront.inventory")


# ══════════════════════════════════════════════════════════════
# RESULTS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class StockAdjustResult:
    product_id: str
    previous_stock: int
    new_stock: int
    movement: Optional[StockMovement] = None

    @property
    def changed(self) -> bool:
        return self.movement is not None

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "previous_stock": self.previous_stock,
            "new_stock": self.new_stock,
            "movement": self.movement.to_dict() if self.movement else None,
        }


@dataclass(frozen=True)
class StockReportLine:
    product_id: str
    name: str
    sku: Optional[str]
    stock_quantity: int
    min_order_quantity: int
    reorder_point: int
    stock_status: StockStatus
    is_active: bool

    @property
    def needs_reorder(self) -> bool:
        return self.stock_status in (StockStatus.OUT_OF_STOCK, StockStatus.LOW_STOCK)

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "name": self.name,
            "sku": self.sku,
            "stock_quantity": self.stock_quantity,
            "min_order_quantity": self.min_order_quantity,
            "reorder_point": self.reorder_point,
            "stock_status": self.stock_status.value,
            "is_active": self.is_active,
        }


def build_report_line(product: Product) -> StockReportLine:
    return StockReportLine(
        product_id=product.product_id,
        name=product.name,
        sku=product.sku,
        stock_quantity=product.stock_quantity,
        min_order_quantity=product.min_order_quantity,
        reorder_point=reorder_point(product.min_order_quantity),
        stock_status=derive_stock_status(
            product.stock_quantity, product.min_order_quantity,
        ),
        is_active=product.is_active,
    )


# ══════════════════════════════════════════════════════════════
# APPLICATION SERVICE
# ══════════════════════════════════════════════════════════════

class InventoryService:
    """Inventory Engine application service."""

    def __init__(
        self,
        *,
        catalog: CatalogRepository,
        ledger: StockLedger,
        unit_of_work: UnitOfWork,
        publisher: Optional[EventPublisher] = None,
        clock: Optional[Clock] = None,
    ):
        self._catalog = catalog
        self._ledger = ledger
        self._uow = unit_of_work
        self._publisher = publisher
        self._clock = clock or SystemClock()

    def adjust_stock(
        self,
        principal: Optional[Principal],
        request: StockAdjustRequest,
    ) -> StockAdjustResult:
        actor = require_admin(principal, operation="adjust_stock")

        with self._uow.atomic():
            product = self._catalog.get_product(request.product_id)
            reason = product_exists_policy(product, request.product_id)
            if reason is not None:
                raise InvalidProductError(
                    request.product_id, reason.message, code=reason.code, reason=reason,
                )

            previous = self._ledger.current_stock(request.product_id)
            reason = stock_removal_policy(request, previous)
            if reason is not None:
                logger.warning(f"Stock adjustment rejected: {reason.message}")
                raise InsufficientStockError(
                    request.product_id, request.quantity, previous,
                )

            delta = request.delta_from(previous)
            if delta == 0:
                return StockAdjustResult(
                    product_id=request.product_id,
                    previous_stock=previous,
                    new_stock=previous,
                )

            movement = self._ledger.adjust(
                request.product_id,
                delta,
                actor_id=actor.user_id,
                note=request.reason.strip(),
                reference_id=request.reference_id,
            )

            publish_after_commit(self._uow, self._publisher, DomainEvent(
                event_type=resolve_inventory_event_type(request.command_type),
                occurred_at=self._clock.now_utc(),
                payload=build_stock_adjusted_payload(
                    request, movement, previous_stock=previous, actor_id=actor.user_id,
                ),
                actor_id=actor.user_id,
            ))

        logger.info(
            f"Stock adjusted for {request.product_id} by {actor.user_id}: "
            f"{previous} → {movement.balance_after} ({request.adjustment_type})"
        )

        return StockAdjustResult(
            product_id=request.product_id,
            previous_stock=previous,
            new_stock=movement.balance_after,
            movement=movement,
        )

    # ── Read side ──────────────────────────────────────────────

    def stock_report(
        self,
        principal: Optional[Principal],
    ) -> Tuple[StockReportLine, ...]:
        require_admin(principal, operation="stock_report")
        return tuple(
            build_report_line(product) for product in self._catalog.list_products()
        )

    def reorder_alerts(
        self,
        principal: Optional[Principal],
    ) -> Tuple[StockReportLine, ...]:
        """Active products that are out of stock or at/below reorder point."""
        return tuple(
            line for line in self.stock_report(principal)
            if line.is_active and line.needs_reorder
        )
