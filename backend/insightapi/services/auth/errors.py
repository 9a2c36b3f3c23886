"""
Failure kinds of the authentication session lifecycle.

Each kind carries a stable machine-readable ``code`` and a client-safe
message; ``BaseService.translate_exceptions`` maps them to HTTP statuses.
"""

from __future__ import annotations

from insightapi.services._shared.errors import ServiceError


class AuthError(ServiceError):
    """Base class of every authentication failure kind."""

    code = "AUTH_ERROR"
    default_message = "Authentication failed."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class PrincipalExistsError(AuthError):
    """Registration collided with an existing username or email."""

    code = "USER_EXISTS"
    default_message = "User with this username or email already exists."


class AuthFailedError(AuthError):
    """Unknown email or wrong password. Both cases are indistinguishable."""

    code = "AUTH_FAILED"
    default_message = "Invalid email or password."


class InvalidTokenError(AuthError):
    code = "AUTH_INVALID_TOKEN"
    default_message = "Invalid refresh token."


class TokenExpiredError(AuthError):
    code = "AUTH_TOKEN_EXPIRED"
    default_message = "Refresh token expired. Please log in again."


class AuthCompromisedError(AuthError):
    """A retired refresh token was presented again."""

    code = "AUTH_COMPROMISED"
    default_message = "Compromised refresh token used. All sessions logged out."


__all__ = [
    "AuthCompromisedError",
    "AuthError",
    "AuthFailedError",
    "InvalidTokenError",
    "PrincipalExistsError",
    "TokenExpiredError",
]
