"""
insightapi.services._shared.ports
=================================

*Ports* (hexagonal interfaces) the authentication service depends on.

Modules
-------
- :mod:`credential_store`:
    :class:`~.CredentialStore` and :class:`~.PrincipalRecord`, plus the
    in-memory :class:`~.InMemoryCredentialStore`.

- :mod:`revocation_store`:
    :class:`~.RevocationStore`, the per-principal set of retired refresh-token
    ids, plus :class:`~.InMemoryRevocationStore`.

- :mod:`token_codec`:
    :class:`~.TokenCodec` and the tagged :class:`~.TokenVerification` result.

- :mod:`password_hasher`:
    :class:`~.PasswordHasher`.

Design Notes
------------
The set of collaborators is closed and typed: services receive concrete
adapters through their constructor, never by name lookup at runtime.
Concrete adapters (SQLAlchemy, Redis, PyJWT, werkzeug) live under
``insightapi.infra``.
"""

from __future__ import annotations

from .credential_store import CredentialStore, InMemoryCredentialStore, PrincipalRecord
from .password_hasher import PasswordHasher
from .revocation_store import InMemoryRevocationStore, RevocationStore
from .token_codec import (
    ACCESS_TOKEN_TYPE,
    REFRESH_TOKEN_TYPE,
    SignedToken,
    TokenClaims,
    TokenCodec,
    TokenError,
    TokenVerification,
)

__all__ = [
    "ACCESS_TOKEN_TYPE",
    "REFRESH_TOKEN_TYPE",
    "CredentialStore",
    "InMemoryCredentialStore",
    "InMemoryRevocationStore",
    "PasswordHasher",
    "PrincipalRecord",
    "RevocationStore",
    "SignedToken",
    "TokenClaims",
    "TokenCodec",
    "TokenError",
    "TokenVerification",
]
