from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from typing import Any, Protocol

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


class TokenError(Enum):
    """Why a token failed verification."""

    INVALID_SIGNATURE = auto()
    EXPIRED = auto()
    MALFORMED = auto()


@dataclass(frozen=True, slots=True)
class TokenClaims:
    """
    Verified, typed view over a token payload.

    :ivar principal_id: Subject of the token (string form of the principal id).
    :ivar token_type: ``"access"`` or ``"refresh"``.
    :ivar expires_at: Absolute expiry (UTC).
    :ivar username: Identity name (access tokens only).
    :ivar token_id: Unique per-mint identifier (refresh tokens only).
    :ivar token_version: Session generation snapshot (refresh tokens only).
    """

    principal_id: str
    token_type: str
    expires_at: datetime
    username: str | None = None
    token_id: str | None = None
    token_version: int = 1
    raw: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)


@dataclass(frozen=True, slots=True)
class TokenVerification:
    """
    Tagged verification result: exactly one of ``claims`` / ``error`` is set.

    Callers branch on :attr:`ok` instead of catching exceptions.
    """

    claims: TokenClaims | None = None
    error: TokenError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.claims is not None

    @classmethod
    def success(cls, claims: TokenClaims) -> TokenVerification:
        return cls(claims=claims)

    @classmethod
    def failure(cls, error: TokenError) -> TokenVerification:
        return cls(error=error)


@dataclass(frozen=True, slots=True)
class SignedToken:
    """An encoded token together with its absolute expiry."""

    token: str
    expires_at: datetime


class TokenCodec(Protocol):
    """
    Port for signing and verifying the two token kinds.

    Access and refresh tokens MUST be signed with independent secrets.
    """

    def new_token_id(self, principal_id: int | str) -> str: ...

    def sign_access(self, principal_id: int | str, username: str) -> SignedToken: ...

    def sign_refresh(
        self, principal_id: int | str, token_id: str, *, token_version: int = 1
    ) -> SignedToken: ...

    def verify(
        self,
        token: str,
        secret: str,
        *,
        expected_type: str,
        ignore_expiration: bool = False,
    ) -> TokenVerification: ...

    def verify_access(self, token: str) -> TokenVerification: ...

    def verify_refresh(
        self, token: str, *, ignore_expiration: bool = False
    ) -> TokenVerification: ...
