"""
Storefront — HTTP API Handler Tests
=====================================
Framework-agnostic handlers over in-memory services: envelope shape,
credential resolution and error-to-status mapping.
"""

from datetime import datetime, timezone

import pytest

from core.errors import (
    InsufficientStockError,
    InvalidTransitionError,
    OrderNotFoundError,
    UnauthorizedError,
    ValidationError,
)
from core.http_api import (
    HttpApiDependencies,
    HttpApiResult,
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
    status_for_error,
)
from core.http_api.auth import InMemoryAuthProvider, extract_api_key
from core.identity.roles import Principal, Role
from core.primitives.product import BulkPriceTier, Product
from core.time import FixedClock
from engines.inventory.services import InventoryService
from engines.orders.repository import InMemoryStorefrontStore
from engines.orders.services import OrderService

NOW = datetime(2026, 3, 7, 14, 0, 0, tzinfo=timezone.utc)

ADMIN_KEY = {"X-API-KEY": "admin-key"}
RETAIL_KEY = {"X-API-KEY": "retail-key"}
OTHER_KEY = {"X-API-KEY": "other-key"}
WHOLESALE_KEY = {"Authorization": "Bearer wholesale-key"}

ADDRESS = {
    "full_name": "Tanvir",
    "line1": "22 River Road",
    "city": "Barishal",
    "phone": "01300000000",
}


def _deps(stock=10):
    store = InMemoryStorefrontStore(
        [
            Product(product_id="A", name="Shirt", price=100, wholesale_price=90,
                    min_order_quantity=6, stock_quantity=stock,
                    bulk_pricing=(BulkPriceTier(threshold_quantity=10, unit_price=85),)),
            Product(product_id="B", name="Belt", price=50, wholesale_price=45, stock_quantity=0),
        ],
        clock=FixedClock(NOW),
    )
    order_service = OrderService(
        catalog=store.catalog,
        ledger=store.ledger,
        orders=store.orders,
        unit_of_work=store,
        clock=store.clock,
    )
    inventory_service = InventoryService(
        catalog=store.catalog,
        ledger=store.ledger,
        unit_of_work=store,
        clock=store.clock,
    )
    auth = InMemoryAuthProvider({
        "admin-key": Principal("admin-1", Role.ADMIN),
        "retail-key": Principal("retail-1", Role.RETAIL),
        "other-key": Principal("retail-2", Role.RETAIL),
        "wholesale-key": Principal("wholesale-1", Role.WHOLESALE, user_type="business"),
    })
    deps = HttpApiDependencies(
        order_service=order_service,
        inventory_service=inventory_service,
        auth_provider=auth,
    )
    return store, deps


def _order_body(**overrides):
    body = {
        "items": [{"product_id": "A", "quantity": 3}],
        "shipping_address": ADDRESS,
        "payment_method": "cod",
    }
    body.update(overrides)
    return body


def _place(deps, headers=RETAIL_KEY, **overrides):
    result = post_order_create(_order_body(**overrides), deps, headers)
    assert result.status == 201, result.body
    return result.body["data"]


# ══════════════════════════════════════════════════════════════
# CREDENTIALS
# ══════════════════════════════════════════════════════════════

def test_extract_api_key_prefers_x_api_key():
    headers = {"x-api-key": "k1", "Authorization": "Bearer k2"}
    assert extract_api_key(headers) == "k1"
    assert extract_api_key({"Authorization": "Bearer k2"}) == "k2"
    assert extract_api_key({"Authorization": "Basic abc"}) is None
    assert extract_api_key(None) is None


def test_unknown_api_key_is_401():
    _, deps = _deps()
    result = list_orders(deps, {"X-API-KEY": "stolen"})
    assert result.status == 401
    assert result.body["error"]["code"] == "API_KEY_INVALID"


def test_bearer_token_resolves_wholesale_pricing():
    _, deps = _deps(stock=50)
    result = post_cart_preview({"items": [{"product_id": "A", "quantity": 2}]}, deps, WHOLESALE_KEY)
    assert result.status == 200
    line = result.body["data"]["lines"][0]
    assert line["effective_quantity"] == 6
    assert line["unit_price"] == 90
    assert result.body["data"]["subtotal"] == 540


# ══════════════════════════════════════════════════════════════
# BUYER ROUTES
# ══════════════════════════════════════════════════════════════

def test_create_order_envelope():
    store, deps = _deps()
    order = _place(deps)
    assert order["status"] == "PENDING"
    assert order["payment_status"] == "PENDING"
    assert order["payment_method"] == "cash_on_delivery"
    assert order["user_id"] == "retail-1"
    assert order["subtotal"] == 300
    assert order["total"] == 300 + 5000 + 15
    assert store.ledger.current_stock("A") == 7


def test_guest_checkout_without_credentials():
    _, deps = _deps()
    result = post_order_create(
        _order_body(guest_info={"name": "Guest", "mobile": "01600000000"}), deps, None,
    )
    assert result.status == 201
    assert result.body["data"]["user_id"] is None
    assert result.body["data"]["guest_info"]["mobile"] == "01600000000"


def test_guest_checkout_requires_identity():
    _, deps = _deps()
    result = post_order_create(_order_body(), deps, None)
    assert result.status == 400
    assert result.body["ok"] is False
    assert result.body["error"]["code"] == "GUEST_IDENTITY_INCOMPLETE"


def test_insufficient_stock_is_409():
    store, deps = _deps(stock=2)
    result = post_order_create(_order_body(), deps, RETAIL_KEY)
    assert result.status == 409
    assert result.body["error"]["code"] == "INSUFFICIENT_STOCK"
    assert result.body["error"]["details"]["available"] == 2
    assert store.ledger.current_stock("A") == 2


def test_unknown_product_is_400():
    _, deps = _deps()
    result = post_order_create(
        _order_body(items=[{"product_id": "NOPE", "quantity": 1}]), deps, RETAIL_KEY,
    )
    assert result.status == 400
    assert result.body["error"]["code"] == "PRODUCT_NOT_FOUND"


def test_manual_payment_requires_reference():
    _, deps = _deps()
    result = post_order_create(_order_body(payment_method="bkash"), deps, RETAIL_KEY)
    assert result.status == 400
    assert result.body["error"]["code"] == "PAYMENT_REFERENCE_REQUIRED"


def test_non_object_body_is_invalid_request():
    _, deps = _deps()
    result = post_order_create(["items"], deps, RETAIL_KEY)
    assert result.status == 400
    assert result.body["error"]["code"] == "INVALID_REQUEST"



@pytest.mark.parametrize(
    "overrides",
    [
        {"payment_reference": 123},
        {"notes": ["gift wrap"]},
        {"items": [{"product_id": "A", "quantity": "3"}]},
    ],
)
def test_wrongly_typed_fields_are_400(overrides):
    store, deps = _deps()
    result = post_order_create(_order_body(**overrides), deps, RETAIL_KEY)
    assert result.status == 400
    assert result.body["ok"] is False
    assert result.body["error"]["code"] != "HANDLER_EXECUTION_FAILED"
    assert store.ledger.current_stock("A") == 10

def test_get_order_access():
    _, deps = _deps()
    order = _place(deps)
    assert get_order(order["order_id"], deps, RETAIL_KEY).status == 200
    assert get_order(order["order_id"], deps, ADMIN_KEY).status == 200
    assert get_order(order["order_id"], deps, OTHER_KEY).status == 403
    assert get_order(order["order_id"], deps, None).status == 401
    assert get_order("missing", deps, ADMIN_KEY).status == 404


def test_list_orders_scoped_to_caller():
    _, deps = _deps()
    _place(deps)
    _place(deps, headers=OTHER_KEY)
    mine = list_orders(deps, RETAIL_KEY)
    assert mine.body["data"]["count"] == 1
    assert list_orders(deps, ADMIN_KEY).body["data"]["count"] == 2


def test_owner_cancel_restores_stock():
    store, deps = _deps()
    order = _place(deps)
    result = post_order_cancel(order["order_id"], {"reason": "Ordered twice"}, deps, RETAIL_KEY)
    assert result.status == 200
    assert result.body["data"]["status"] == "CANCELLED"
    assert store.ledger.current_stock("A") == 10

    again = post_order_cancel(order["order_id"], {"reason": "Again"}, deps, RETAIL_KEY)
    assert again.status == 409
    assert store.ledger.current_stock("A") == 10


def test_cancel_without_reason_is_400():
    _, deps = _deps()
    order = _place(deps)
    result = post_order_cancel(order["order_id"], {}, deps, RETAIL_KEY)
    assert result.status == 400
    assert result.body["error"]["code"] == "REASON_REQUIRED"


# ══════════════════════════════════════════════════════════════
# ADMIN ROUTES
# ══════════════════════════════════════════════════════════════

def test_status_transition():
    _, deps = _deps()
    order = _place(deps)
    result = post_admin_order_status(order["order_id"], {"status": "confirmed"}, deps, ADMIN_KEY)
    assert result.status == 200
    assert result.body["data"]["status"] == "CONFIRMED"

    backwards = post_admin_order_status(order["order_id"], {"status": "PENDING"}, deps, ADMIN_KEY)
    assert backwards.status == 409
    assert backwards.body["error"]["code"] == "INVALID_TRANSITION"


def test_status_transition_requires_admin():
    _, deps = _deps()
    order = _place(deps)
    result = post_admin_order_status(order["order_id"], {"status": "SHIPPED"}, deps, RETAIL_KEY)
    assert result.status == 403
    assert result.body["error"]["code"] == "ADMIN_REQUIRED"
    assert post_admin_order_status(order["order_id"], {"status": "SHIPPED"}, deps, None).status == 401


def test_owner_cannot_cancel_through_status_route():
    store, deps = _deps()
    order = _place(deps)
    result = post_admin_order_status(
        order["order_id"], {"status": "CANCELLED", "reason": "Changed my mind"}, deps, RETAIL_KEY,
    )
    assert result.status == 403
    assert result.body["error"]["code"] == "ADMIN_REQUIRED"
    assert store.ledger.current_stock("A") == 7
    assert get_order(order["order_id"], deps, RETAIL_KEY).body["data"]["status"] == "PENDING"


def test_non_string_reason_is_400():
    _, deps = _deps()
    order = _place(deps)
    result = post_admin_order_status(
        order["order_id"], {"status": "CANCELLED", "reason": 42}, deps, ADMIN_KEY,
    )
    assert result.status == 400
    assert result.body["error"]["code"] == "VALIDATION_FAILED"


def test_unknown_status_is_400():
    _, deps = _deps()
    order = _place(deps)
    result = post_admin_order_status(order["order_id"], {"status": "LOST"}, deps, ADMIN_KEY)
    assert result.status == 400


def test_item_edit():
    store, deps = _deps()
    order = _place(deps)
    result = patch_admin_order_items(
        order["order_id"],
        {"items": [{"product_id": "A", "quantity": 5, "unit_price": 95}]},
        deps,
        ADMIN_KEY,
    )
    assert result.status == 200
    assert result.body["data"]["subtotal"] == 475
    assert store.ledger.current_stock("A") == 5


def test_verify_payment():
    _, deps = _deps()
    order = _place(deps, payment_method="bank_transfer", payment_reference="TRX-2026-001")
    assert order["payment_status"] == "PENDING_VERIFICATION"

    result = post_admin_verify_payment(
        order["order_id"], {"status": "PAID", "note": "Matched"}, deps, ADMIN_KEY,
    )
    assert result.status == 200
    assert result.body["data"]["payment_status"] == "PAID"
    assert result.body["data"]["payment_verified_by"] == "admin-1"

    repeat = post_admin_verify_payment(order["order_id"], {"status": "PAID"}, deps, ADMIN_KEY)
    assert repeat.status == 409


def test_stock_adjust_and_report():
    store, deps = _deps()
    result = post_admin_stock_adjust(
        {"product_id": "B", "type": "add", "quantity": 12, "reason": "Supplier delivery"},
        deps,
        ADMIN_KEY,
    )
    assert result.status == 200
    assert result.body["data"]["new_stock"] == 12
    assert store.ledger.current_stock("B") == 12

    report = get_admin_stock_report(deps, ADMIN_KEY)
    assert report.body["data"]["count"] == 2

    alerts = get_admin_reorder_alerts(deps, ADMIN_KEY)
    assert alerts.status == 200
    assert [line["product_id"] for line in alerts.body["data"]["items"]] == ["A"]


def test_stock_adjust_requires_admin():
    _, deps = _deps()
    result = post_admin_stock_adjust(
        {"product_id": "B", "type": "add", "quantity": 1, "reason": "Supplier delivery"},
        deps,
        RETAIL_KEY,
    )
    assert result.status == 403
    assert get_admin_stock_report(deps, None).status == 401


def test_stock_adjust_with_list_type_is_400():
    store, deps = _deps()
    result = post_admin_stock_adjust(
        {"product_id": "B", "type": ["add"], "quantity": 1, "reason": "Supplier delivery"},
        deps,
        ADMIN_KEY,
    )
    assert result.status == 400
    assert result.body["error"]["code"] == "INVALID_STOCK_ADJUSTMENT"
    assert store.ledger.current_stock("B") == 0


# ══════════════════════════════════════════════════════════════
# ERROR MAPPING
# ══════════════════════════════════════════════════════════════

@pytest.mark.parametrize(
    "exc, authenticated, status",
    [
        (ValidationError("bad"), True, 400),
        (UnauthorizedError("no"), True, 403),
        (UnauthorizedError("no"), False, 401),
        (OrderNotFoundError("o-1"), True, 404),
        (InsufficientStockError("A", 3, 1), True, 409),
        (InvalidTransitionError("PENDING", "PENDING"), True, 409),
    ],
)
def test_status_for_error(exc, authenticated, status):
    assert status_for_error(exc, authenticated=authenticated) == status


class _BrokenService:
    def __init__(self, exc):
        self._exc = exc

    def list_orders(self, principal):
        raise self._exc


def _broken_deps(exc):
    _, deps = _deps()
    return HttpApiDependencies(
        order_service=_BrokenService(exc),
        inventory_service=deps.inventory_service,
        auth_provider=deps.auth_provider,
    )


@pytest.mark.parametrize(
    "exc",
    [RuntimeError("database exploded"), KeyError("order_number"), TypeError("bad operand")],
)
def test_unexpected_failure_is_500(exc):
    result = list_orders(_broken_deps(exc), ADMIN_KEY)
    assert isinstance(result, HttpApiResult)
    assert result.status == 500
    assert result.body["error"]["code"] == "HANDLER_EXECUTION_FAILED"
    assert result.body["error"]["details"]["error_type"] == type(exc).__name__


def test_plain_value_error_is_invalid_request():
    result = list_orders(_broken_deps(ValueError("page must be positive")), ADMIN_KEY)
    assert result.status == 400
    assert result.body["error"]["code"] == "INVALID_REQUEST"
    assert result.body["error"]["message"] == "page must be positive"
