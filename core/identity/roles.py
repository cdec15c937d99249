"""
Storefront Identity — Roles and Principals
============================================
Closed role enumeration for every caller of the order core.

Authentication is resolved upstream. The core only receives a
Principal (user_id, role, user_type) and re-checks the role itself
on every state-mutating call.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from core.errors import ReasonCode, UnauthorizedError


# ══════════════════════════════════════════════════════════════
# ENUMS
# ══════════════════════════════════════════════════════════════

class Role(Enum):
    GUEST = "GUEST"
    RETAIL = "RETAIL"
    WHOLESALE = "WHOLESALE"
    ADMIN = "ADMIN"
    SUPER_ADMIN = "SUPER_ADMIN"


class CustomerClass(Enum):
    """Pricing class of a buyer. Only WHOLESALE is subject to MOQ."""
    GUEST = "GUEST"
    RETAIL = "RETAIL"
    WHOLESALE = "WHOLESALE"


ADMIN_ROLES = frozenset({Role.ADMIN, Role.SUPER_ADMIN})

_ROLE_TO_CUSTOMER_CLASS = {
    Role.GUEST: CustomerClass.GUEST,
    Role.RETAIL: CustomerClass.RETAIL,
    Role.WHOLESALE: CustomerClass.WHOLESALE,
    # Admins buying through the storefront pay retail prices.
    Role.ADMIN: CustomerClass.RETAIL,
    Role.SUPER_ADMIN: CustomerClass.RETAIL,
}


def parse_role(value) -> Role:
    """
    Parse an upstream role claim. Case-insensitive on the name.

    Unknown claims are refused outright rather than downgraded.
    """
    if isinstance(value, Role):
        return value
    if not isinstance(value, str) or not value.strip():
        raise UnauthorizedError(
            "Role claim is missing.",
            code=ReasonCode.UNKNOWN_ROLE,
        )
    normalized = value.strip().upper()
    try:
        return Role(normalized)
    except ValueError:
        raise UnauthorizedError(
            f"Role '{value}' is not recognised.",
            code=ReasonCode.UNKNOWN_ROLE,
            details={"role": value},
        ) from None


def parse_customer_class(value) -> CustomerClass:
    if isinstance(value, CustomerClass):
        return value
    if not isinstance(value, str):
        raise ValueError("customer_class must be a string.")
    try:
        return CustomerClass(value.strip().upper())
    except ValueError:
        raise ValueError(
            f"customer_class '{value}' not valid. "
            f"Must be one of: {sorted(c.value for c in CustomerClass)}"
        ) from None


# ══════════════════════════════════════════════════════════════
# PRINCIPAL
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Principal:
    """
    Authenticated caller as handed over by the session layer.

    Fields:
        user_id:    Stable user identifier.
        role:       Closed Role enumeration.
        user_type:  Free-form account type from the session layer
                    (e.g. "business", "individual"); informational only.
    """
    user_id: str
    role: Role
    user_type: Optional[str] = None

    def __post_init__(self):
        if not self.user_id or not isinstance(self.user_id, str):
            raise ValueError("user_id must be a non-empty string.")
        if not isinstance(self.role, Role):
            raise ValueError("role must be Role enum.")

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "role": self.role.value,
            "user_type": self.user_type,
        }


def customer_class_for(principal: Optional[Principal]) -> CustomerClass:
    """Anonymous callers buy as GUEST."""
    if principal is None:
        return CustomerClass.GUEST
    return _ROLE_TO_CUSTOMER_CLASS[principal.role]
