"""
Storefront HTTP API — Error Mapping
=====================================
Stable transport mapping for core errors and handler failures.

Status codes:
    400  ValidationError, InvalidProductError
    401  no (or an unknown) API key on a call that needs one
    403  UnauthorizedError for an authenticated caller
    404  OrderNotFoundError
    409  InsufficientStockError, InvalidTransitionError, StaleStateError
    500  anything else
"""

from __future__ import annotations

from typing import Any, Optional

from core.errors import (
    InsufficientStockError,
    InvalidProductError,
    InvalidTransitionError,
    OrderNotFoundError,
    RejectionReason,
    StaleStateError,
    StorefrontError,
    UnauthorizedError,
    ValidationError,
)
from core.http_api.contracts import HttpApiErrorBody, HttpApiResponse, HttpApiResult

_STATUS_BY_ERROR: tuple[tuple[type, int], ...] = (
    (ValidationError, 400),
    (InvalidProductError, 400),
    (OrderNotFoundError, 404),
    (InsufficientStockError, 409),
    (InvalidTransitionError, 409),
    (StaleStateError, 409),
)


def error_response(
    *,
    code: str,
    message: str,
    details: Optional[dict[str, Any]] = None,
) -> dict[str, Any]:
    return HttpApiResponse(
        ok=False,
        error=HttpApiErrorBody(
            code=code,
            message=message,
            details=details or {},
        ),
    ).to_dict()


def success_response(
    data: Any,
    *,
    meta: Optional[dict[str, Any]] = None,
) -> dict[str, Any]:
    return HttpApiResponse(ok=True, data=data, meta=meta).to_dict()


def map_rejection_reason(reason: RejectionReason) -> HttpApiErrorBody:
    return HttpApiErrorBody(
        code=reason.code,
        message=reason.message,
        details={"policy_name": reason.policy_name},
    )


def rejection_response(
    reason: RejectionReason,
    *,
    extra_details: Optional[dict[str, Any]] = None,
) -> dict[str, Any]:
    mapped = map_rejection_reason(reason)
    details = dict(mapped.details)
    if extra_details:
        details.update(extra_details)
    return error_response(
        code=mapped.code,
        message=mapped.message,
        details=details,
    )


def status_for_error(exc: StorefrontError, *, authenticated: bool = True) -> int:
    if isinstance(exc, UnauthorizedError):
        return 403 if authenticated else 401
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status
    return 400


def storefront_error_result(
    exc: StorefrontError,
    *,
    authenticated: bool = True,
) -> HttpApiResult:
    return HttpApiResult(
        status=status_for_error(exc, authenticated=authenticated),
        body=error_response(
            code=exc.code,
            message=exc.message,
            details=_json_safe(exc.details),
        ),
    )


def _json_safe(details: dict[str, Any]) -> dict[str, Any]:
    safe: dict[str, Any] = {}
    for key, value in details.items():
        if value is None or isinstance(value, (str, int, float, bool)):
            safe[key] = value
        else:
            safe[key] = str(value)
    return safe
