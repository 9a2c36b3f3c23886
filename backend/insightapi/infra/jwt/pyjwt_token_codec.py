# insightapi/infra/jwt/pyjwt_token_codec.py
from __future__ import annotations

import secrets
import time
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import uuid4

import jwt

from insightapi.services._shared.ports.token_codec import (
    ACCESS_TOKEN_TYPE,
    REFRESH_TOKEN_TYPE,
    SignedToken,
    TokenClaims,
    TokenCodec,
    TokenError,
    TokenVerification,
)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class JWTTokenCodec(TokenCodec):
    """
    PyJWT adapter signing access and refresh tokens with distinct secrets.

    Access tokens carry the claims flask-jwt-extended expects (string ``sub``,
    ``type``, ``fresh``, ``jti``) so protected routes can be guarded with
    ``verify_jwt_in_request``. Refresh tokens carry the rotation id in ``jti``
    and the principal's token_version in ``tv``.

    :param access_secret: HMAC key for access tokens.
    :param refresh_secret: HMAC key for refresh tokens. Must differ.
    :param access_ttl: Access token lifetime.
    :param refresh_ttl: Refresh token lifetime.
    :param algorithm: JWS algorithm (HMAC family).
    :param clock: Returns the current aware UTC time.
    :raises ValueError: If a secret is empty or both secrets are equal.
    """

    def __init__(
        self,
        *,
        access_secret: str,
        refresh_secret: str,
        access_ttl: timedelta = timedelta(minutes=15),
        refresh_ttl: timedelta = timedelta(days=7),
        algorithm: str = "HS256",
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if not access_secret or not refresh_secret:
            raise ValueError("Both access and refresh secrets are required.")
        if access_secret == refresh_secret:
            raise ValueError("Access and refresh tokens must use different secrets.")
        self.access_secret = access_secret
        self.refresh_secret = refresh_secret
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl
        self.algorithm = algorithm
        self._clock = clock

    @classmethod
    def from_config(cls, config: Any) -> JWTTokenCodec:
        """Build a codec from a Flask config mapping."""
        return cls(
            access_secret=config["JWT_ACCESS_SECRET"],
            refresh_secret=config["JWT_REFRESH_SECRET"],
            access_ttl=config["JWT_ACCESS_EXPIRES"],
            refresh_ttl=config["JWT_REFRESH_EXPIRES"],
            algorithm=config.get("JWT_ALGORITHM", "HS256"),
        )

    # -------------------- minting --------------------

    def new_token_id(self, principal_id: int | str) -> str:
        # Nanosecond marker plus 48 random bits: unique even within one clock tick
        return f"{principal_id}-{time.time_ns()}-{secrets.token_hex(6)}"

    def _encode(self, claims: dict[str, Any], secret: str, ttl: timedelta) -> SignedToken:
        now = self._clock()
        expires_at = now + ttl
        payload = {
            **claims,
            "iat": int(now.timestamp()),
            "nbf": int(now.timestamp()),
            "exp": int(expires_at.timestamp()),
        }
        token = jwt.encode(payload, secret, algorithm=self.algorithm)
        return SignedToken(token=token, expires_at=expires_at)

    def sign_access(self, principal_id: int | str, username: str) -> SignedToken:
        claims = {
            "sub": str(principal_id),
            "username": username,
            "type": ACCESS_TOKEN_TYPE,
            "fresh": False,
            "jti": str(uuid4()),
        }
        return self._encode(claims, self.access_secret, self.access_ttl)

    def sign_refresh(
        self, principal_id: int | str, token_id: str, *, token_version: int = 1
    ) -> SignedToken:
        claims = {
            "sub": str(principal_id),
            "jti": token_id,
            "tv": int(token_version),
            "type": REFRESH_TOKEN_TYPE,
        }
        return self._encode(claims, self.refresh_secret, self.refresh_ttl)

    # -------------------- verification ---------------

    def verify(
        self,
        token: str,
        secret: str,
        *,
        expected_type: str,
        ignore_expiration: bool = False,
    ) -> TokenVerification:
        """
        Verify ``token`` against ``secret``. Never raises.

        :returns: Success with typed claims, or a failure tag.
        """
        if not isinstance(token, str) or not token:
            return TokenVerification.failure(TokenError.MALFORMED)
        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[self.algorithm],
                options={"verify_exp": not ignore_expiration, "require": ["exp", "sub"]},
                leeway=0,
            )
        except jwt.ExpiredSignatureError:
            return TokenVerification.failure(TokenError.EXPIRED)
        except jwt.InvalidSignatureError:
            return TokenVerification.failure(TokenError.INVALID_SIGNATURE)
        except jwt.PyJWTError:
            return TokenVerification.failure(TokenError.MALFORMED)

        claims = self._to_claims(payload, expected_type)
        if claims is None:
            return TokenVerification.failure(TokenError.MALFORMED)
        return TokenVerification.success(claims)

    def verify_access(self, token: str) -> TokenVerification:
        return self.verify(token, self.access_secret, expected_type=ACCESS_TOKEN_TYPE)

    def verify_refresh(self, token: str, *, ignore_expiration: bool = False) -> TokenVerification:
        return self.verify(
            token,
            self.refresh_secret,
            expected_type=REFRESH_TOKEN_TYPE,
            ignore_expiration=ignore_expiration,
        )

    @staticmethod
    def _to_claims(payload: dict[str, Any], expected_type: str) -> TokenClaims | None:
        if payload.get("type") != expected_type:
            return None
        subject = payload.get("sub")
        if not isinstance(subject, str) or not subject:
            return None
        token_id = payload.get("jti")
        if expected_type == REFRESH_TOKEN_TYPE and not (isinstance(token_id, str) and token_id):
            return None
        try:
            expires_at = datetime.fromtimestamp(int(payload["exp"]), tz=UTC)
            token_version = int(payload.get("tv", 1))
        except (TypeError, ValueError, OverflowError):
            return None
        return TokenClaims(
            principal_id=subject,
            token_type=expected_type,
            expires_at=expires_at,
            username=payload.get("username"),
            token_id=token_id,
            token_version=token_version,
            raw=payload,
        )
