# Overview: Service-layer operations for login state; encapsulates the current session.

"""
Identity Store

Holds the currently logged-in user and keeps a copy in session storage so a
restart picks up where the last run left off.

- Credentials are checked against the users table: exact username match,
  plaintext password equality. No hashing, lockout or throttling.
- Until restore() has run once, the store is "loading": current_user is None
  and callers should not decide between login screen and dashboard yet.
- A failed login returns False; it never raises.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass

from flask import current_app

from ..extensions import db
from ..models import User
from ..session_storage import SessionStorage
from ..time_utils import to_utc_z

SESSION_KEY = "pharmacy_user"


@dataclass(frozen=True)
class SessionUser:
    """The logged-in user as held by the session (no password)."""
    id: int
    name: str
    username: str
    email: str
    role: str
    created_at: str | None = None

    @classmethod
    def from_user(cls, user: User) -> "SessionUser":
        return cls(
            id=user.id,
            name=user.name,
            username=user.username,
            email=user.email,
            role=user.role,
            created_at=to_utc_z(user.created_at),
        )

    @classmethod
    def from_dict(cls, data: dict) -> "SessionUser":
        return cls(
            id=int(data["id"]),
            name=str(data["name"]),
            username=str(data["username"]),
            email=str(data["email"]),
            role=str(data["role"]),
            created_at=data.get("created_at"),
        )

    def to_dict(self) -> dict:
        return asdict(self)


class IdentityStore:
    def __init__(self, storage: SessionStorage):
        self._storage = storage
        self._user: SessionUser | None = None
        self._restored = False

    @property
    def is_loading(self) -> bool:
        return not self._restored

    @property
    def current_user(self) -> SessionUser | None:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None

    def restore(self) -> SessionUser | None:
        """Load the persisted session once. Later calls return the current user."""
        if self._restored:
            return self._user

        try:
            raw = self._storage.get(SESSION_KEY)
            if raw:
                self._user = SessionUser.from_dict(json.loads(raw))
        except (ValueError, KeyError, TypeError):
            current_app.logger.warning("Discarding unreadable stored session")
            self._storage.remove(SESSION_KEY)
            self._user = None
        else:
            if self._user is not None:
                current_app.logger.info("Restored session for %s", self._user.username)

        self._restored = True
        return self._user

    def login(self, username: str, password: str) -> bool:
        user = db.session.query(User).filter_by(username=username).first()

        if user is None or user.password != password:
            current_app.logger.warning("Failed login attempt for %r", username)
            return False

        session_user = SessionUser.from_user(user)
        self._user = session_user
        self._storage.set(SESSION_KEY, json.dumps(session_user.to_dict()))
        # A completed login also settles any pending restore
        self._restored = True

        current_app.logger.info("User %s logged in as %s", user.username, user.role)
        return True

    def logout(self) -> None:
        if self._user is not None:
            current_app.logger.info("User %s logged out", self._user.username)
        self._user = None
        self._storage.remove(SESSION_KEY)


def get_identity_store() -> IdentityStore:
    """The identity store owned by the running application."""
    return current_app.extensions["pharmacare.identity"]
