"""Errors raised by the session layer.

None of these are UserError subclasses: cookie and store failures are resolved
internally by minting a fresh session, and context/invariant failures are
wiring bugs that surface as 500 responses.
"""


class CookieError(Exception):
    """Base class for signed cookie failures."""


class InvalidCookieValueError(CookieError):
    """Cookie value is malformed or its signature does not match."""

    def __init__(self, message: str = "invalid cookie value") -> None:
        super().__init__(message)


class CookieValueTooLongError(CookieError):
    """Serialized cookie exceeds the 4096 byte browser limit."""

    def __init__(self, message: str = "cookie value too long") -> None:
        super().__init__(message)


class SessionNotFoundError(Exception):
    """Session id is not present in the store."""


class SessionContextError(RuntimeError):
    """No session is attached to the current request."""


class SessionInvariantError(RuntimeError):
    """Session data violates a shape the session layer always guarantees."""


class SessionRetiredError(RuntimeError):
    """Session object was replaced by a migration and must not be saved again."""
