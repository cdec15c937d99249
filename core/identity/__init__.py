"""
Storefront Identity — Public API
==================================
Closed role enumeration, principals and authorization guards.
"""

from core.identity.policy import (
    evaluate_admin_requirement,
    require_admin,
    require_admin_or_owner,
)
from core.identity.roles import (
    ADMIN_ROLES,
    CustomerClass,
    Principal,
    Role,
    customer_class_for,
    parse_customer_class,
    parse_role,
)

__all__ = [
    "ADMIN_ROLES",
    "CustomerClass",
    "Principal",
    "Role",
    "customer_class_for",
    "parse_customer_class",
    "parse_role",
    "evaluate_admin_requirement",
    "require_admin",
    "require_admin_or_owner",
]
