# Overview: Which screen to show and which dashboard views a role may open.

"""
Presentation-boundary gating.

Services do not check roles; callers route every view change through
open_view(), which refuses views the role has no permission for.
"""

from __future__ import annotations

import enum

from .permissions import PermissionDeniedError, has_permission, require_permission
from .services.identity_service import IdentityStore, SessionUser


class Screen(str, enum.Enum):
    LOADING = "LOADING"
    LOGIN = "LOGIN"
    DASHBOARD = "DASHBOARD"


class DashboardView(str, enum.Enum):
    MAIN = "main"
    MEDICINES = "medicines"
    POS = "pos"
    REPORTS = "reports"
    USERS = "users"


def required_permission(view: DashboardView) -> str | None:
    """Permission needed to open a view; None when any logged-in user may."""
    if view is DashboardView.MAIN:
        return None
    if view is DashboardView.MEDICINES:
        return "VIEW_MEDICINES"
    if view is DashboardView.POS:
        return "USE_POS"
    if view is DashboardView.REPORTS:
        return "VIEW_REPORTS"
    if view is DashboardView.USERS:
        return "MANAGE_USERS"
    raise ValueError(f"Unknown dashboard view: {view!r}")


def current_screen(identity: IdentityStore) -> Screen:
    if identity.is_loading:
        return Screen.LOADING
    if identity.current_user is None:
        return Screen.LOGIN
    return Screen.DASHBOARD


def available_views(role: str | None) -> list[DashboardView]:
    views = []
    for view in DashboardView:
        permission = required_permission(view)
        if permission is None or has_permission(role, permission):
            views.append(view)
    return views


def open_view(user: SessionUser | None, view: DashboardView | str) -> DashboardView:
    """
    Resolve a requested view for the logged-in user.

    Raises PermissionDeniedError when nobody is logged in or the role lacks
    the view's permission, ValueError for an unknown view name.
    """
    view = DashboardView(view)
    permission = required_permission(view)

    if user is None:
        raise PermissionDeniedError(permission or "LOGIN_REQUIRED")
    if permission is not None:
        require_permission(user.role, permission)
    return view
