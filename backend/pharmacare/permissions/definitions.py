# Overview: All permission definitions organized by category.
# Each permission is defined as: (code, name, description, category)

from .categories import PermissionCategory


# -- INVENTORY --

INVENTORY_PERMISSIONS = [
    (
        "VIEW_MEDICINES",
        "View Medicines",
        "Browse the medicine list with stock and expiry status",
        PermissionCategory.INVENTORY,
    ),
    (
        "EDIT_MEDICINES",
        "Edit Medicines",
        "Create, edit and delete medicines",
        PermissionCategory.INVENTORY,
    ),
    (
        "REFILL_MEDICINES",
        "Refill Medicines",
        "Record refills that add stock to a medicine",
        PermissionCategory.INVENTORY,
    ),
]


# -- SALES --

SALES_PERMISSIONS = [
    (
        "USE_POS",
        "Use Point of Sale",
        "Build carts and complete checkouts",
        PermissionCategory.SALES,
    ),
]


# -- REPORTS --

REPORT_PERMISSIONS = [
    (
        "VIEW_REPORTS",
        "View Reports",
        "Sales figures, top sellers and inventory alerts",
        PermissionCategory.REPORTS,
    ),
]


# -- USERS --

USER_PERMISSIONS = [
    (
        "MANAGE_USERS",
        "Manage Users",
        "Create, edit and delete staff accounts",
        PermissionCategory.USERS,
    ),
]


PERMISSION_DEFINITIONS = (
    INVENTORY_PERMISSIONS
    + SALES_PERMISSIONS
    + REPORT_PERMISSIONS
    + USER_PERMISSIONS
)
