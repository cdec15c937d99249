"""
Storefront HTTP API — Handlers
================================
Framework-agnostic request handlers over the order and inventory
services. Every handler takes already-decoded inputs (path params,
JSON body, headers) and returns an HttpApiResult; web adapters only
render it.

Buyer routes:
    post_cart_preview         POST  /v1/cart/preview
    post_order_create         POST  /v1/orders
    list_orders               GET   /v1/orders
    get_order                 GET   /v1/orders/<id>
    post_order_cancel         POST  /v1/orders/<id>/cancel

Admin routes:
    post_admin_order_status   POST  /v1/admin/orders/<id>/status
    patch_admin_order_items   PATCH /v1/admin/orders/<id>/items
    post_admin_verify_payment POST  /v1/admin/orders/<id>/verify-payment
    post_admin_stock_adjust   POST  /v1/admin/stock/adjust
    get_admin_stock_report    GET   /v1/admin/stock
    get_admin_reorder_alerts  GET   /v1/admin/stock/alerts
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from core.errors import RejectionReason, StorefrontError
from core.http_api.auth.provider import resolve_principal
from core.http_api.contracts import HttpApiResult
from core.http_api.errors import (
    error_response,
    rejection_response,
    storefront_error_result,
    success_response,
)
from core.identity.roles import Principal
from engines.inventory.commands import StockAdjustRequest
from engines.orders.commands import (
    CancelOrderRequest,
    CartLine,
    CreateOrderRequest,
    PaymentVerifyRequest,
    StatusTransitionRequest,
    UpdateItemsRequest,
)

logger = logging.getLogger("storefront.http_api")


# ══════════════════════════════════════════════════════════════
# INTERNALS
# ══════════════════════════════════════════════════════════════

def _invalid_request(message: str) -> HttpApiResult:
    return HttpApiResult(
        status=400,
        body=error_response(code="INVALID_REQUEST", message=message, details={}),
    )


def _require_body(body: Any) -> dict[str, Any]:
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise ValueError("Request body must be a JSON object.")
    return body


def _resolve_caller(
    dependencies,
    headers: dict[str, Any] | None,
) -> Optional[Principal] | HttpApiResult:
    resolved = resolve_principal(headers, dependencies.auth_provider)
    if isinstance(resolved, RejectionReason):
        return HttpApiResult(status=401, body=rejection_response(resolved))
    return resolved


def _run(
    call: Callable[[Optional[Principal]], Any],
    dependencies,
    *,
    headers: dict[str, Any] | None,
    operation: str,
    success_status: int = 200,
) -> HttpApiResult:
    """
    Resolve the caller, run the service call and map the outcome.

    Core errors keep their code and details; malformed input is
    INVALID_REQUEST; anything else is logged and reported as 500.
    """
    principal = _resolve_caller(dependencies, headers)
    if isinstance(principal, HttpApiResult):
        return principal

    try:
        data = call(principal)
    except StorefrontError as exc:
        logger.info(f"{operation} rejected: {exc.code} ({exc.message})")
        return storefront_error_result(exc, authenticated=principal is not None)
    except ValueError as exc:
        return _invalid_request(str(exc))
    except Exception as exc:
        logger.error(f"{operation} failed: {exc}", exc_info=True)
        return HttpApiResult(
            status=500,
            body=error_response(
                code="HANDLER_EXECUTION_FAILED",
                message=f"Failed to execute {operation}.",
                details={"error_type": type(exc).__name__},
            ),
        )
    return HttpApiResult(status=success_status, body=success_response(data))


def _serialize_orders(orders) -> dict[str, Any]:
    return {
        "items": [order.to_dict() for order in orders],
        "count": len(orders),
    }


# ══════════════════════════════════════════════════════════════
# BUYER ROUTES
# ══════════════════════════════════════════════════════════════

def post_cart_preview(
    body: Any,
    dependencies,
    headers: dict[str, Any] | None = None,
) -> HttpApiResult:
    def _call(principal):
        items = _require_body(body).get("items")
        if not isinstance(items, list):
            raise ValueError("items must be a list.")
        lines = tuple(CartLine.from_dict(item) for item in items)
        resolutions = dependencies.order_service.preview_cart(principal, lines)
        return {
            "lines": [resolution.to_dict() for resolution in resolutions],
            "subtotal": sum(resolution.line_total for resolution in resolutions),
        }

    return _run(_call, dependencies, headers=headers, operation="cart_preview")


def post_order_create(
    body: Any,
    dependencies,
    headers: dict[str, Any] | None = None,
) -> HttpApiResult:
    def _call(principal):
        request = CreateOrderRequest.from_dict(_require_body(body))
        order = dependencies.order_service.create_order(request, principal)
        return order.to_dict()

    return _run(
        _call, dependencies,
        headers=headers, operation="create_order", success_status=201,
    )


def list_orders(
    dependencies,
    headers: dict[str, Any] | None = None,
) -> HttpApiResult:
    def _call(principal):
        return _serialize_orders(dependencies.order_service.list_orders(principal))

    return _run(_call, dependencies, headers=headers, operation="list_orders")


def get_order(
    order_id: str,
    dependencies,
    headers: dict[str, Any] | None = None,
) -> HttpApiResult:
    def _call(principal):
        return dependencies.order_service.get_order(principal, order_id).to_dict()

    return _run(_call, dependencies, headers=headers, operation="get_order")


def post_order_cancel(
    order_id: str,
    body: Any,
    dependencies,
    headers: dict[str, Any] | None = None,
) -> HttpApiResult:
    def _call(principal):
        request = CancelOrderRequest.from_dict(order_id, _require_body(body))
        return dependencies.order_service.cancel_order(principal, request).to_dict()

    return _run(_call, dependencies, headers=headers, operation="cancel_order")


# ══════════════════════════════════════════════════════════════
# ADMIN ROUTES
# ══════════════════════════════════════════════════════════════

def post_admin_order_status(
    order_id: str,
    body: Any,
    dependencies,
    headers: dict[str, Any] | None = None,
) -> HttpApiResult:
    def _call(principal):
        request = StatusTransitionRequest.from_dict(order_id, _require_body(body))
        order = dependencies.order_service.transition_status(principal, request)
        return order.to_dict()

    return _run(_call, dependencies, headers=headers, operation="transition_status")


def patch_admin_order_items(
    order_id: str,
    body: Any,
    dependencies,
    headers: dict[str, Any] | None = None,
) -> HttpApiResult:
    def _call(principal):
        request = UpdateItemsRequest.from_dict(order_id, _require_body(body))
        return dependencies.order_service.update_items(principal, request).to_dict()

    return _run(_call, dependencies, headers=headers, operation="update_items")


def post_admin_verify_payment(
    order_id: str,
    body: Any,
    dependencies,
    headers: dict[str, Any] | None = None,
) -> HttpApiResult:
    def _call(principal):
        request = PaymentVerifyRequest.from_dict(order_id, _require_body(body))
        return dependencies.order_service.verify_payment(principal, request).to_dict()

    return _run(_call, dependencies, headers=headers, operation="verify_payment")


def post_admin_stock_adjust(
    body: Any,
    dependencies,
    headers: dict[str, Any] | None = None,
) -> HttpApiResult:
    def _call(principal):
        request = StockAdjustRequest.from_dict(_require_body(body))
        result = dependencies.inventory_service.adjust_stock(principal, request)
        return result.to_dict()

    return _run(_call, dependencies, headers=headers, operation="adjust_stock")


def get_admin_stock_report(
    dependencies,
    headers: dict[str, Any] | None = None,
) -> HttpApiResult:
    def _call(principal):
        lines = dependencies.inventory_service.stock_report(principal)
        return {
            "items": [line.to_dict() for line in lines],
            "count": len(lines),
        }

    return _run(_call, dependencies, headers=headers, operation="stock_report")


def get_admin_reorder_alerts(
    dependencies,
    headers: dict[str, Any] | None = None,
) -> HttpApiResult:
    def _call(principal):
        lines = dependencies.inventory_service.reorder_alerts(principal)
        return {
            "items": [line.to_dict() for line in lines],
            "count": len(lines),
        }

    return _run(_call, dependencies, headers=headers, operation="reorder_alerts")
