"""
Storefront Identity — Authorization Guards
============================================
Role checks run at the boundary of every admin-only operation,
regardless of what the client UI already gated.
"""

from __future__ import annotations

import logging
from typing import Optional

from core.errors import ReasonCode, RejectionReason, UnauthorizedError
from core.identity.roles import ADMIN_ROLES, Principal

logger = logging.getLogger("storefront.identity")


def evaluate_admin_requirement(
    principal: Optional[Principal],
    *,
    operation: str,
) -> Optional[RejectionReason]:
    if principal is None:
        return RejectionReason(
            code=ReasonCode.ADMIN_REQUIRED,
            message=f"Authentication required for '{operation}'.",
            policy_name="admin_requirement",
        )
    if not isinstance(principal, Principal):
        return RejectionReason(
            code=ReasonCode.ADMIN_REQUIRED,
            message="principal must be Principal.",
            policy_name="admin_requirement",
        )
    if principal.role not in ADMIN_ROLES:
        return RejectionReason(
            code=ReasonCode.ADMIN_REQUIRED,
            message=(
                f"Role {principal.role.value} may not perform '{operation}'. "
                f"Admin access required."
            ),
            policy_name="admin_requirement",
        )
    return None


def require_admin(principal: Optional[Principal], *, operation: str) -> Principal:
    """Raise UnauthorizedError unless the principal is ADMIN or SUPER_ADMIN."""
    reason = evaluate_admin_requirement(principal, operation=operation)
    if reason is not None:
        actor = principal.user_id if isinstance(principal, Principal) else None
        logger.warning(f"Denied '{operation}' for actor {actor}: {reason.code}")
        raise UnauthorizedError.from_reason(reason, operation=operation)
    return principal


def require_admin_or_owner(
    principal: Optional[Principal],
    *,
    owner_id: Optional[str],
    operation: str,
) -> Principal:
    """Admins pass; otherwise the principal must own the resource."""
    if isinstance(principal, Principal):
        if principal.is_admin:
            return principal
        if owner_id is not None and principal.user_id == owner_id:
            return principal
    reason = RejectionReason(
        code=ReasonCode.NOT_ORDER_OWNER,
        message=f"You are not authorized to perform '{operation}' on this order.",
        policy_name="admin_or_owner_requirement",
    )
    actor = principal.user_id if isinstance(principal, Principal) else None
    logger.warning(f"Denied '{operation}' for actor {actor}: {reason.code}")
    raise UnauthorizedError.from_reason(reason, operation=operation)
