"""Server-side session record."""

import secrets
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from ntumiwa.utils import now

AUTHENTICATED = "authenticated"
CSRF_TOKEN = "csrf_token"
USERNAME = "username"


def generate_session_id() -> str:
    """256 random bits rendered as URL-safe text."""
    return secrets.token_urlsafe(32)


def generate_csrf_token() -> str:
    return secrets.token_urlsafe(32)


def _initial_data() -> dict[str, Any]:
    return {AUTHENTICATED: False, CSRF_TOKEN: generate_csrf_token()}


@dataclass(eq=False)
class Session:
    """One client's server-side state, keyed by an opaque id carried in a signed cookie.

    Every live session holds a boolean ``authenticated`` flag and a non-empty
    ``csrf_token``. Requests share the stored instance by reference, so
    changes made while handling a request are visible when it is saved.

    Migration replaces the instance instead of mutating it and marks the old one
    ``retired``; a retired instance is never written to the store again.
    """

    id: str = field(default_factory=generate_session_id)
    data: dict[str, Any] = field(default_factory=_initial_data)
    created_at: datetime = field(default_factory=now)
    last_activity_at: datetime = field(default_factory=now)
    retired: bool = field(default=False, repr=False)

    def get(self, key: str) -> Any:
        return self.data.get(key)

    def put(self, key: str, value: Any) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)

    @property
    def csrf_token(self) -> str:
        return str(self.data[CSRF_TOKEN])
