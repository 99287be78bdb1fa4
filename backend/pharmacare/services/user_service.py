# Overview: Service-layer operations for staff accounts; encapsulates user administration.

"""
User Administration

Access to this module is owner-only; the check happens where the caller
opens the users view (see pharmacare.dashboard), not here.

- password is required on create; on update an empty password keeps the
  current one
- usernames are unique
- serialized users never carry the password
- the logged-in user and cashiers with recorded sales cannot be deleted
"""

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import USER_ROLES, Sale, User
from ..time_utils import utcnow
from ..validation import ConflictError, ValidationError, require_text
from .identity_service import get_identity_store

ALL_ROLES = "all"


class UserNotFoundError(LookupError):
    """Raised when a user id does not exist."""
    def __init__(self, user_id):
        super().__init__(f"User {user_id} not found")
        self.user_id = user_id


def _validate_role(role) -> str:
    role = require_text(role, "role")
    if role not in USER_ROLES:
        raise ValidationError(f"role must be one of: {', '.join(USER_ROLES)}")
    return role


def _validate_email(email) -> str:
    email = require_text(email, "email", max_length=255)
    if "@" not in email:
        raise ValidationError("email must be a valid address")
    return email


def _ensure_username_free(username: str, exclude_user_id: int | None = None) -> None:
    query = db.session.query(User).filter(User.username == username)
    if exclude_user_id is not None:
        query = query.filter(User.id != exclude_user_id)
    if query.first():
        raise ConflictError("Username already exists")


def list_users(text: str | None = None, role: str | None = ALL_ROLES) -> list[User]:
    """Search by name, username or email (case-insensitive), filtered by role."""
    query = db.session.query(User)

    needle = (text or "").strip().lower()
    if needle:
        query = query.filter(
            db.or_(
                db.func.lower(User.name).contains(needle, autoescape=True),
                db.func.lower(User.username).contains(needle, autoescape=True),
                db.func.lower(User.email).contains(needle, autoescape=True),
            )
        )

    if role and role != ALL_ROLES:
        query = query.filter(User.role == role)

    return query.order_by(User.id.asc()).all()


def get_user(user_id: int) -> User | None:
    return db.session.query(User).filter_by(id=user_id).first()


def create_user(
    *,
    name: str,
    username: str,
    email: str,
    role: str,
    password: str,
) -> User:
    name = require_text(name, "name", max_length=128)
    username = require_text(username, "username", max_length=64)
    email = _validate_email(email)
    role = _validate_role(role)
    if not password:
        raise ValidationError("password is required")

    _ensure_username_free(username)

    user = User(
        name=name,
        username=username,
        email=email,
        role=role,
        password=password,
        created_at=utcnow(),
    )
    db.session.add(user)
    db.session.commit()

    current_app.logger.info("Created user %s with role %s", user.username, user.role)
    return user


def update_user(
    user_id: int,
    *,
    name: str,
    username: str,
    email: str,
    role: str,
    password: str | None = None,
) -> User:
    """Replace a user's details. An empty or missing password leaves it unchanged."""
    user = get_user(user_id)
    if user is None:
        raise UserNotFoundError(user_id)

    name = require_text(name, "name", max_length=128)
    username = require_text(username, "username", max_length=64)
    email = _validate_email(email)
    role = _validate_role(role)

    _ensure_username_free(username, exclude_user_id=user.id)

    user.name = name
    user.username = username
    user.email = email
    if user.role != role:
        current_app.logger.info("Changing role of %s from %s to %s", user.username, user.role, role)
    user.role = role
    if password:
        user.password = password

    db.session.commit()
    return user


def delete_user(user_id: int) -> bool:
    """
    Remove a user; False when it does not exist.

    The logged-in user and users with recorded sales cannot be deleted
    (ConflictError); sales keep their cashier reference.
    """
    user = get_user(user_id)
    if user is None:
        return False

    current = get_identity_store().current_user
    if current is not None and current.id == user.id:
        raise ConflictError("Cannot delete the logged-in user")
    if db.session.query(Sale.id).filter(Sale.cashier_id == user.id).first():
        raise ConflictError("User has recorded sales")

    db.session.delete(user)
    db.session.commit()

    current_app.logger.info("Deleted user %s", user_id)
    return True
