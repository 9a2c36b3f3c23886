# insightapi/services/auth/service.py
from __future__ import annotations

import logging
from enum import Enum

from insightapi.services._shared.base import BaseService, ServiceContext
from insightapi.services._shared.errors import ConflictError
from insightapi.services._shared.ports.credential_store import CredentialStore, PrincipalRecord
from insightapi.services._shared.ports.password_hasher import PasswordHasher
from insightapi.services._shared.ports.token_codec import TokenClaims, TokenCodec, TokenError
from insightapi.services.auth.dto import (
    AuthSessionOut,
    LoginIn,
    LogoutIn,
    PrincipalOut,
    RefreshIn,
    RegisterIn,
    TokenPairOut,
)
from insightapi.services.auth.errors import (
    AuthCompromisedError,
    AuthError,
    AuthFailedError,
    InvalidTokenError,
    PrincipalExistsError,
    TokenExpiredError,
)


class CompromisePolicy(str, Enum):
    """
    What to do when a retired refresh token is presented again.

    ``WIPE`` clears the revocation set only; refresh tokens that were never
    rotated stay usable. ``REVOKE_ALL`` also bumps the principal's
    token_version, so every outstanding refresh token stops verifying.
    """

    WIPE = "wipe"
    REVOKE_ALL = "revoke_all"


class AuthService(BaseService):
    """
    Authentication lifecycle service (register / login / refresh / logout).

    Tokens are minted and verified through a :class:`TokenCodec` holding two
    independent secrets. Refresh tokens are single-use: every successful
    refresh retires the presented token id into the principal's revocation
    set, and presenting a retired id again is treated as a compromise.

    The service keeps no state between calls; build one per request.
    """

    def __init__(
        self,
        *,
        store: CredentialStore,
        codec: TokenCodec,
        hasher: PasswordHasher,
        compromise_policy: CompromisePolicy | str = CompromisePolicy.WIPE,
        ctx: ServiceContext | None = None,
    ) -> None:
        """
        Initialize the service with its dependencies.

        :param store: Principals and their revocation sets.
        :param codec: Signs and verifies access/refresh tokens.
        :param hasher: One-way password hashing.
        :param compromise_policy: Reaction to refresh-token reuse.
        :param ctx: Request-scoped context.
        """
        super().__init__(ctx=ctx)
        self.store = store
        self.codec = codec
        self.hasher = hasher
        self.compromise_policy = CompromisePolicy(compromise_policy)

    # ------------------------------------------------------------------ #
    # Register
    # ------------------------------------------------------------------ #

    def register(self, dto: RegisterIn) -> AuthSessionOut:
        """
        Create a principal and issue its first token pair.

        :raises PrincipalExistsError: If username or email is already taken.
        """
        username = dto.username.strip()
        email = dto.email.strip().lower()

        if self.store.find_by_identity_or_email(username, email) is not None:
            raise PrincipalExistsError()

        digest = self.hasher.hash(dto.password)
        try:
            record = self.store.create(username=username, email=email, password_hash=digest)
        except ConflictError as exc:
            # Lost a race against a concurrent registration
            raise PrincipalExistsError() from exc

        tokens = self._issue_pair(record)
        self.log_event("user_registered", principal_id=record.id)
        return AuthSessionOut(principal=self.to_principal_out(record), tokens=tokens)

    # ------------------------------------------------------------------ #
    # Login
    # ------------------------------------------------------------------ #

    def login(self, dto: LoginIn) -> AuthSessionOut:
        """
        Authenticate credentials and issue a fresh token pair.

        Unknown email and wrong password raise the very same error, and the
        unknown-email path still pays for one hash verification.

        :raises AuthFailedError: If credentials are invalid.
        """
        record = self.store.find_by_email(dto.email)
        if record is None:
            self.hasher.verify_dummy(dto.password)
            raise AuthFailedError()
        if not self.hasher.verify(dto.password, record.password_hash):
            raise AuthFailedError()

        tokens = self._issue_pair(record)
        self.log_event("user_logged_in", principal_id=record.id)
        return AuthSessionOut(principal=self.to_principal_out(record), tokens=tokens)

    # ------------------------------------------------------------------ #
    # Refresh with rotation
    # ------------------------------------------------------------------ #

    def refresh(self, dto: RefreshIn) -> TokenPairOut:
        """
        Rotate a refresh token and emit a new token pair.

        Security
        --------
        - Requires a refresh token signed with the refresh secret.
        - The presented token id is retired on success (rotation).
        - **Reuse detection**: a retired id triggers the compromise policy.

        :raises InvalidTokenError: Bad signature, malformed payload, unknown
            principal or a token minted before a global logout.
        :raises TokenExpiredError: Token past its expiry.
        :raises AuthCompromisedError: Token id already retired.
        """
        if not dto.refresh_token:
            raise InvalidTokenError("No refresh token provided.")

        claims = self._verify_refresh(dto.refresh_token)
        principal_id = self._coerce_principal_id(claims.principal_id)

        record = self.store.find_by_id(principal_id)
        if record is None:
            raise InvalidTokenError("Invalid refresh token payload.")
        if claims.token_version < record.token_version:
            raise InvalidTokenError("Session has been revoked. Please log in again.")

        token_id = str(claims.token_id)
        if token_id in record.revoked_token_ids:
            self._handle_compromise(record)
            raise AuthCompromisedError()

        tokens = self._issue_pair(record)
        if not self.store.append_revoked_token_id(
            principal_id, token_id, expires_at=claims.expires_at
        ):
            # Another request rotated the same token between our read and write
            self.log_event(
                "refresh_rotation_race", level=logging.WARNING, principal_id=principal_id
            )
        self.log_event("token_refreshed", principal_id=principal_id)
        return tokens

    # ------------------------------------------------------------------ #
    # Logout
    # ------------------------------------------------------------------ #

    def logout(self, dto: LogoutIn) -> None:
        """
        Retire the presented refresh token. Optionally revoke all sessions.

        Never raises: a missing, garbage or expired token, or an unknown
        principal, is logged and ignored.
        """
        try:
            self._logout(dto)
        except AuthError as exc:
            self.logger.debug("Logout ignored: %s", exc.code)
        except Exception:
            self.logger.warning("Logout failed to update the revocation set", exc_info=True)

    def _logout(self, dto: LogoutIn) -> None:
        if not dto.refresh_token:
            return

        result = self.codec.verify_refresh(dto.refresh_token)
        expired = result.error is TokenError.EXPIRED
        if expired:
            # Still retire the id, but an expired token may not end other sessions
            result = self.codec.verify_refresh(dto.refresh_token, ignore_expiration=True)
        if not result.ok or result.claims is None:
            self.logger.debug("Logout with unverifiable token: %s", result.error)
            return

        claims = result.claims
        principal_id = self._coerce_principal_id(claims.principal_id)
        if self.store.find_by_id(principal_id) is None:
            return

        self.store.append_revoked_token_id(
            principal_id, str(claims.token_id), expires_at=claims.expires_at
        )
        all_sessions = dto.all_sessions and not expired
        if all_sessions:
            self.store.bump_token_version(principal_id)
        elif dto.all_sessions:
            self.logger.info("Logout of all sessions refused for an expired refresh token")
        self.log_event("user_logged_out", principal_id=principal_id, all_sessions=all_sessions)

    # ------------------------------------------------------------------ #
    # Whoami
    # ------------------------------------------------------------------ #

    def whoami(self, principal_id: int | str) -> PrincipalOut:
        """
        Return the principal behind a verified access token.

        :raises InvalidTokenError: If the principal no longer exists.
        """
        record = self.store.find_by_id(self._coerce_principal_id(principal_id))
        if record is None:
            raise InvalidTokenError("User belonging to this token no longer exists.")
        return self.to_principal_out(record)

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _verify_refresh(self, token: str) -> TokenClaims:
        result = self.codec.verify_refresh(token)
        if result.error is TokenError.EXPIRED:
            raise TokenExpiredError()
        if not result.ok or result.claims is None:
            raise InvalidTokenError()
        return result.claims

    def _handle_compromise(self, record: PrincipalRecord) -> None:
        self.log_event(
            "refresh_token_reuse_detected",
            level=logging.WARNING,
            principal_id=record.id,
            policy=self.compromise_policy.value,
        )
        self.store.clear_revocation_set(record.id)
        if self.compromise_policy is CompromisePolicy.REVOKE_ALL:
            self.store.bump_token_version(record.id)

    def _issue_pair(self, record: PrincipalRecord) -> TokenPairOut:
        token_id = self.codec.new_token_id(record.id)
        access = self.codec.sign_access(record.id, record.username)
        refresh = self.codec.sign_refresh(record.id, token_id, token_version=record.token_version)
        return TokenPairOut(
            access_token=access.token,
            refresh_token=refresh.token,
            access_expires_at=access.expires_at,
            refresh_expires_at=refresh.expires_at,
        )

    @staticmethod
    def to_principal_out(record: PrincipalRecord) -> PrincipalOut:
        return PrincipalOut(
            id=record.id,
            username=record.username,
            email=record.email,
            created_at=record.created_at,
        )

    @staticmethod
    def _coerce_principal_id(subject: int | str) -> int:
        """Ensure the JWT subject can be treated as an integer principal id."""
        if isinstance(subject, int):
            return subject
        if isinstance(subject, str) and subject.isdigit():
            return int(subject)
        raise InvalidTokenError("Invalid refresh token payload.")
