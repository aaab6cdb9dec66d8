from abc import ABC


class UserError(ABC, Exception):
    """Base class for user-related errors.

    All errors that inherit from UserError will have their messages
    displayed to the user. These errors should not contain any
    sensitive information.
    """


class NotFoundError(UserError):
    """Raised when a requested resource is not found."""

    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(message)


class AuthenticationError(UserError):
    """Raised when credential verification fails."""

    def __init__(self, message: str = "Invalid username or password") -> None:
        super().__init__(message)


class AccessDeniedError(UserError):
    """Raised when a request is rejected by the session or authentication guards."""

    def __init__(self, message: str = "Unauthenticated") -> None:
        super().__init__(message)


class ValidationError(UserError):
    """Raised when user input fails validation."""


class ConflictError(UserError):
    """Raised when a change conflicts with the current state of a resource."""
