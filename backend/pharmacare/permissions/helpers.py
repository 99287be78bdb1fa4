# Overview: Utility functions for permission lookups and role checks.

from .definitions import PERMISSION_DEFINITIONS
from .roles import DEFAULT_ROLE_PERMISSIONS


class PermissionDeniedError(Exception):
    """Raised when a role lacks the permission an action needs."""
    def __init__(self, permission_code: str, role: str | None = None):
        super().__init__(f"Permission denied: {permission_code}")
        self.permission_code = permission_code
        self.role = role


def get_all_permission_codes():
    """Get list of all permission codes."""
    return [perm[0] for perm in PERMISSION_DEFINITIONS]


def validate_permission_code(code):
    """Check if a permission code is valid."""
    return code in get_all_permission_codes()


def get_role_permissions(role: str | None) -> set[str]:
    if role is None:
        return set()
    return set(DEFAULT_ROLE_PERMISSIONS.get(role, ()))


def has_permission(role: str | None, permission_code: str) -> bool:
    if not validate_permission_code(permission_code):
        raise ValueError(f"Unknown permission code: {permission_code}")
    return permission_code in get_role_permissions(role)


def require_permission(role: str | None, permission_code: str) -> None:
    if not has_permission(role, permission_code):
        raise PermissionDeniedError(permission_code, role)


def can_edit_medicines(role: str | None) -> bool:
    return has_permission(role, "EDIT_MEDICINES")


def can_manage_users(role: str | None) -> bool:
    return has_permission(role, "MANAGE_USERS")
