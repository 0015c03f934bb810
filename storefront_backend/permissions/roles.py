# permissions/roles.py

from __future__ import annotations

from typing import Optional

from rest_framework.permissions import BasePermission


# =========================================================
# ROLE CONSTANTS
# =========================================================
# admin:    back-office owner (payment verification, refunds)
# employee: counter / warehouse staff (fulfillment, pickup redemption)
# customer: storefront shopper
ROLE_ADMIN = "admin"
ROLE_EMPLOYEE = "employee"
ROLE_CUSTOMER = "customer"

STAFF_ROLES = {
    ROLE_ADMIN,
    ROLE_EMPLOYEE,
}


# =========================================================
# CAPABILITIES (THE REAL PERMISSION LANGUAGE)
# =========================================================
# Views protect capabilities, not raw roles.
CAP_ORDERS_VIEW_ALL = "orders.view_all"
CAP_ORDERS_VERIFY_PAYMENT = "orders.verify_payment"
CAP_ORDERS_FULFILL = "orders.fulfill"
CAP_ORDERS_CANCEL_ANY = "orders.cancel_any"
CAP_ORDERS_REFUND = "orders.refund"
CAP_ORDERS_AUDIT_VIEW = "orders.audit_view"

CAP_PICKUP_VERIFY = "pickup.verify"
CAP_PICKUP_REDEEM = "pickup.redeem"

ALL_CAPABILITIES = {
    CAP_ORDERS_VIEW_ALL,
    CAP_ORDERS_VERIFY_PAYMENT,
    CAP_ORDERS_FULFILL,
    CAP_ORDERS_CANCEL_ANY,
    CAP_ORDERS_REFUND,
    CAP_ORDERS_AUDIT_VIEW,
    CAP_PICKUP_VERIFY,
    CAP_PICKUP_REDEEM,
}


# =========================================================
# ROLE → CAPABILITY MAP
# =========================================================
ROLE_CAPABILITIES: dict[str, set[str]] = {
    ROLE_ADMIN: {
        *ALL_CAPABILITIES,
    },
    ROLE_EMPLOYEE: {
        CAP_ORDERS_VIEW_ALL,
        CAP_ORDERS_FULFILL,
        CAP_PICKUP_VERIFY,
        CAP_PICKUP_REDEEM,
        # no payment verification, no refunds
    },
    ROLE_CUSTOMER: set(),
}


# =========================================================
# Helpers
# =========================================================
def get_user_role(user) -> Optional[str]:
    return getattr(user, "role", None)


def capabilities_for(user) -> set[str]:
    if not user or not getattr(user, "is_authenticated", False):
        return set()

    if getattr(user, "is_superuser", False):
        return set(ALL_CAPABILITIES)

    return set(ROLE_CAPABILITIES.get(get_user_role(user), set()))


def user_has_capability(user, capability: str) -> bool:
    return capability in capabilities_for(user)


def is_staff_user(user) -> bool:
    if not user or not getattr(user, "is_authenticated", False):
        return False
    return get_user_role(user) in STAFF_ROLES or bool(getattr(user, "is_superuser", False))


# =========================================================
# Capability Permissions
# =========================================================
class HasCapability(BasePermission):
    """
    Require a specific capability.

    Usage:
        permission_classes = [IsAuthenticated, HasCapability]
        view.required_capability = CAP_ORDERS_VERIFY_PAYMENT
    """

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False

        required = getattr(view, "required_capability", None)
        if not required:
            # deny-by-default
            return False

        return required in capabilities_for(user)


class HasAnyCapability(BasePermission):
    """
    Require ANY capability from a set.

    Usage:
        view.required_any_capabilities = {CAP_PICKUP_VERIFY, CAP_ORDERS_VIEW_ALL}
    """

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False

        required = getattr(view, "required_any_capabilities", None)
        if not required:
            return False

        caps = capabilities_for(user)
        return any(cap in caps for cap in set(required))

