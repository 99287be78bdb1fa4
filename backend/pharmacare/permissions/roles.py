# Overview: Default permission sets for the three staff roles.
#
# Medicine editing is open to owners and pharmacists. User management is
# owner-only.

DEFAULT_ROLE_PERMISSIONS = {
    "owner": [
        "VIEW_MEDICINES",
        "EDIT_MEDICINES",
        "REFILL_MEDICINES",
        "USE_POS",
        "VIEW_REPORTS",
        "MANAGE_USERS",
    ],
    "pharmacist": [
        "VIEW_MEDICINES",
        "EDIT_MEDICINES",
        "REFILL_MEDICINES",
        "USE_POS",
        "VIEW_REPORTS",
    ],
    "cashier": [
        "VIEW_MEDICINES",
        "USE_POS",
    ],
}
