"""
Role-based permission utilities for platform staff.

Roles are ``user``, ``admin`` and ``superadmin``. A superadmin passes every
check; an admin needs the specific permission flag stored on the user row.
"""

from typing import Dict, FrozenSet

ROLE_USER = "user"
ROLE_ADMIN = "admin"
ROLE_SUPERADMIN = "superadmin"

ALLOWED_ROLES: FrozenSet[str] = frozenset({ROLE_USER, ROLE_ADMIN, ROLE_SUPERADMIN})
STAFF_ROLES: FrozenSet[str] = frozenset({ROLE_ADMIN, ROLE_SUPERADMIN})

PERM_MANAGE_SHIELD = "can_manage_shield"
PERM_MANAGE_USERS = "can_manage_users"
PERM_MANAGE_PROMOTIONS = "can_manage_promotions"
PERM_MANAGE_PAYMENTS = "can_manage_payments"
PERM_VIEW_ANALYTICS = "can_view_analytics"

ADMIN_PERMISSIONS: FrozenSet[str] = frozenset({
    PERM_MANAGE_SHIELD,
    PERM_MANAGE_USERS,
    PERM_MANAGE_PROMOTIONS,
    PERM_MANAGE_PAYMENTS,
    PERM_VIEW_ANALYTICS,
})


def validate_role(role: str) -> None:
    """
    Validate that a role is allowed.

    Raises:
        ValueError: If role is not allowed
    """
    if role not in ALLOWED_ROLES:
        raise ValueError(f"Invalid role '{role}'. Allowed roles: {sorted(ALLOWED_ROLES)}")


def is_staff(user) -> bool:
    return getattr(user, "role", None) in STAFF_ROLES


def can_manage_promotions(user) -> bool:
    """Staff, or any account granted the promotions flag directly."""
    return is_staff(user) or bool(getattr(user, PERM_MANAGE_PROMOTIONS, False))


def has_permission(user, permission: str) -> bool:
    """Return True when the user holds ``permission``.

    Unknown permission names never match, even for a superadmin.
    """
    if permission not in ADMIN_PERMISSIONS:
        return False
    role = getattr(user, "role", None)
    if role == ROLE_SUPERADMIN:
        return True
    if role == ROLE_ADMIN:
        return bool(getattr(user, permission, False))
    return False


def permissions_for(user) -> Dict[str, bool]:
    """Return the effective permission map for display."""
    return {perm: has_permission(user, perm) for perm in sorted(ADMIN_PERMISSIONS)}
