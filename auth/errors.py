"""
auth/errors.py -- Error taxonomy for account operations.

Every AuthService failure is one of these. They carry a stable machine code
and a human-readable message but know nothing about HTTP -- api/main.py owns
the status-code mapping.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for all account-operation failures."""

    code = "auth_error"
    default_message = "Authentication error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInput(AuthError):
    """Client data failed a stated constraint (password length, empty contribution)."""

    code = "invalid_input"
    default_message = "Invalid input"


class UserExists(AuthError):
    """Username uniqueness violation."""

    code = "conflict"
    default_message = "User already exists"


class UserNotFound(AuthError):
    code = "not_found"
    default_message = "User not found"


class InvalidCredentials(AuthError):
    """Password did not verify against the stored hash."""

    code = "invalid_credentials"
    default_message = "Invalid credentials"


class TokenMissing(AuthError):
    """No bearer token was presented."""

    code = "unauthenticated"
    default_message = "Access token missing"


class TokenInvalid(AuthError):
    """Bearer token failed signature, shape, or expiry checks."""

    code = "forbidden"
    default_message = "Invalid or expired token"


class InternalError(AuthError):
    """A collaborator (database, hasher) failed unexpectedly."""

    code = "internal_error"
    default_message = "Internal server error"
