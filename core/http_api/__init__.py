"""
Storefront HTTP API — Public API
==================================
"""

from core.http_api.contracts import HttpApiErrorBody, HttpApiResponse, HttpApiResult
from core.http_api.dependencies import HttpApiDependencies
from core.http_api.errors import (
    error_response,
    map_rejection_reason,
    rejection_response,
    status_for_error,
    success_response,
)
from core.http_api.handlers import (
    get_admin_reorder_alerts,
    get_admin_stock_report,
    get_order,
    list_orders,
    patch_admin_order_items,
    post_admin_order_status,
    post_admin_stock_adjust,
    post_admin_verify_payment,
    post_cart_preview,
    post_order_cancel,
    post_order_create,
)

__all__ = [
    "HttpApiErrorBody",
    "HttpApiResponse",
    "HttpApiResult",
    "HttpApiDependencies",
    "error_response",
    "success_response",
    "map_rejection_reason",
    "rejection_response",
    "status_for_error",
    "post_cart_preview",
    "post_order_create",
    "list_orders",
    "get_order",
    "post_order_cancel",
    "post_admin_order_status",
    "patch_admin_order_items",
    "post_admin_verify_payment",
    "post_admin_stock_adjust",
    "get_admin_stock_report",
    "get_admin_reorder_alerts",
]
