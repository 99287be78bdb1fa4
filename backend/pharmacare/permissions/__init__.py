# Overview: Permission system package.
# Re-exports all public APIs.

from .categories import PermissionCategory
from .definitions import (
    PERMISSION_DEFINITIONS,
    INVENTORY_PERMISSIONS,
    SALES_PERMISSIONS,
    REPORT_PERMISSIONS,
    USER_PERMISSIONS,
)
from .roles import DEFAULT_ROLE_PERMISSIONS
from .helpers import (
    PermissionDeniedError,
    get_all_permission_codes,
    validate_permission_code,
    get_role_permissions,
    has_permission,
    require_permission,
    can_edit_medicines,
    can_manage_users,
)

__all__ = [
    "PermissionCategory",
    "PERMISSION_DEFINITIONS",
    "INVENTORY_PERMISSIONS",
    "SALES_PERMISSIONS",
    "REPORT_PERMISSIONS",
    "USER_PERMISSIONS",
    "DEFAULT_ROLE_PERMISSIONS",
    "PermissionDeniedError",
    "get_all_permission_codes",
    "validate_permission_code",
    "get_role_permissions",
    "has_permission",
    "require_permission",
    "can_edit_medicines",
    "can_manage_users",
]
