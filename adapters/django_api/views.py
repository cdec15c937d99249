"""
Storefront Django Adapter Views
=================================
Pass-through HTTP views over core/http_api handlers.
"""

from __future__ import annotations

import json
from typing import Any

from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt

from adapters.django_api.wiring import build_dependencies
from core.http_api.contracts import HttpApiResult
from core.http_api.errors import error_response
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


def _headers_from_request(request: HttpRequest) -> dict[str, str]:
    return {str(key): str(value) for key, value in request.headers.items()}


def _json_error(code: str, message: str, status: int = 400) -> JsonResponse:
    return JsonResponse(
        error_response(code=code, message=message, details={}),
        status=status,
    )


def _parse_json_body(request: HttpRequest) -> dict[str, Any]:
    if not request.body:
        return {}
    try:
        parsed = json.loads(request.body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ValueError("Request body must be valid JSON.") from exc
    if not isinstance(parsed, dict):
        raise ValueError("Request body must be a JSON object.")
    return parsed


def _render(result: HttpApiResult) -> JsonResponse:
    return JsonResponse(result.body, status=result.status)


def _method_not_allowed() -> JsonResponse:
    return _json_error(
        "METHOD_NOT_ALLOWED",
        "Method not allowed for this endpoint.",
        status=405,
    )


def _dispatch_read(read_handler, request: HttpRequest, *args) -> JsonResponse:
    return _render(read_handler(
        *args,
        build_dependencies(),
        headers=_headers_from_request(request),
    ))


def _dispatch_write(write_handler, request: HttpRequest, *args) -> JsonResponse:
    try:
        body = _parse_json_body(request)
    except ValueError as exc:
        return _json_error("INVALID_REQUEST", str(exc), status=400)
    return _render(write_handler(
        *args,
        body,
        build_dependencies(),
        headers=_headers_from_request(request),
    ))


# ══════════════════════════════════════════════════════════════
# BUYER
# ══════════════════════════════════════════════════════════════

@csrf_exempt
def cart_preview_view(request: HttpRequest) -> JsonResponse:
    if request.method != "POST":
        return _method_not_allowed()
    return _dispatch_write(post_cart_preview, request)


@csrf_exempt
def orders_view(request: HttpRequest) -> JsonResponse:
    if request.method == "POST":
        return _dispatch_write(post_order_create, request)
    if request.method == "GET":
        return _dispatch_read(list_orders, request)
    return _method_not_allowed()


@csrf_exempt
def order_detail_view(request: HttpRequest, order_id: str) -> JsonResponse:
    if request.method != "GET":
        return _method_not_allowed()
    return _dispatch_read(get_order, request, order_id)


@csrf_exempt
def order_cancel_view(request: HttpRequest, order_id: str) -> JsonResponse:
    if request.method != "POST":
        return _method_not_allowed()
    return _dispatch_write(post_order_cancel, request, order_id)


# ══════════════════════════════════════════════════════════════
# ADMIN
# ══════════════════════════════════════════════════════════════

@csrf_exempt
def admin_order_status_view(request: HttpRequest, order_id: str) -> JsonResponse:
    if request.method != "POST":
        return _method_not_allowed()
    return _dispatch_write(post_admin_order_status, request, order_id)


@csrf_exempt
def admin_order_items_view(request: HttpRequest, order_id: str) -> JsonResponse:
    if request.method != "PATCH":
        return _method_not_allowed()
    return _dispatch_write(patch_admin_order_items, request, order_id)


@csrf_exempt
def admin_verify_payment_view(request: HttpRequest, order_id: str) -> JsonResponse:
    if request.method not in ("POST", "PATCH"):
        return _method_not_allowed()
    return _dispatch_write(post_admin_verify_payment, request, order_id)


@csrf_exempt
def admin_stock_view(request: HttpRequest) -> JsonResponse:
    if request.method != "GET":
        return _method_not_allowed()
    return _dispatch_read(get_admin_stock_report, request)


@csrf_exempt
def admin_stock_alerts_view(request: HttpRequest) -> JsonResponse:
    if request.method != "GET":
        return _method_not_allowed()
    return _dispatch_read(get_admin_reorder_alerts, request)


@csrf_exempt
def admin_stock_adjust_view(request: HttpRequest) -> JsonResponse:
    if request.method != "POST":
        return _method_not_allowed()
    return _dispatch_write(post_admin_stock_adjust, request)
