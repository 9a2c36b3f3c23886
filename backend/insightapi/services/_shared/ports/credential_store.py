from __future__ import annotations

import threading
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import Protocol

from insightapi.services._shared.errors import ConflictError, NotFoundError

from .revocation_store import InMemoryRevocationStore, RevocationStore


@dataclass(frozen=True, slots=True)
class PrincipalRecord:
    """
    Read-model of a stored principal.

    :ivar id: Immutable principal identifier.
    :ivar username: Unique public identity.
    :ivar email: Unique, normalized login email.
    :ivar password_hash: Salted digest. Never leaves the service layer.
    :ivar token_version: Session generation; refresh tokens carry a snapshot.
    :ivar revoked_token_ids: The revocation set at read time.
    """

    id: int
    username: str
    email: str
    password_hash: str = field(repr=False)
    token_version: int = 1
    revoked_token_ids: frozenset[str] = frozenset()
    created_at: datetime | None = None
    updated_at: datetime | None = None


class CredentialStore(Protocol):
    """
    Persistence port for principals and their revocation sets.

    Every operation MUST be atomic at the single-principal granularity.
    """

    def find_by_email(self, email: str) -> PrincipalRecord | None:
        """Look a principal up by (normalized) email."""

    def find_by_id(self, principal_id: int) -> PrincipalRecord | None:
        """Look a principal up by id, revocation set included."""

    def find_by_identity_or_email(self, username: str, email: str) -> PrincipalRecord | None:
        """Return any principal colliding on username or email."""

    def create(self, *, username: str, email: str, password_hash: str) -> PrincipalRecord:
        """
        Persist a new principal.

        :raises ConflictError: If username or email is already taken.
        """

    def append_revoked_token_id(
        self, principal_id: int, token_id: str, *, expires_at: datetime
    ) -> bool:
        """Add ``token_id`` to the revocation set. :returns: ``True`` if new."""

    def clear_revocation_set(self, principal_id: int) -> int:
        """Wipe the revocation set. :returns: Number of entries removed."""

    def bump_token_version(self, principal_id: int) -> int:
        """
        Increment the session generation.

        :returns: The new token_version.
        :raises NotFoundError: If the principal does not exist.
        """


class InMemoryCredentialStore(CredentialStore):
    """
    Dict-backed credential store used by unit tests and local experiments.

    The revocation set is delegated to a :class:`RevocationStore` so the same
    service code runs against any revocation backend.
    """

    def __init__(self, revocations: RevocationStore | None = None) -> None:
        self.revocations = revocations or InMemoryRevocationStore()
        self._rows: dict[int, PrincipalRecord] = {}
        self._seq = 0
        self._lock = threading.Lock()

    def _with_revocations(self, row: PrincipalRecord | None) -> PrincipalRecord | None:
        if row is None:
            return None
        return replace(row, revoked_token_ids=self.revocations.members(row.id))

    def find_by_email(self, email: str) -> PrincipalRecord | None:
        key = email.strip().lower()
        with self._lock:
            row = next((r for r in self._rows.values() if r.email == key), None)
        return self._with_revocations(row)

    def find_by_id(self, principal_id: int) -> PrincipalRecord | None:
        with self._lock:
            row = self._rows.get(principal_id)
        return self._with_revocations(row)

    def find_by_identity_or_email(self, username: str, email: str) -> PrincipalRecord | None:
        name, key = username.strip(), email.strip().lower()
        with self._lock:
            row = next(
                (r for r in self._rows.values() if r.username == name or r.email == key),
                None,
            )
        return self._with_revocations(row)

    def create(self, *, username: str, email: str, password_hash: str) -> PrincipalRecord:
        name, key = username.strip(), email.strip().lower()
        with self._lock:
            if any(r.username == name or r.email == key for r in self._rows.values()):
                raise ConflictError("User", "username or email already exists")
            self._seq += 1
            now = datetime.now(UTC)
            row = PrincipalRecord(
                id=self._seq,
                username=name,
                email=key,
                password_hash=password_hash,
                created_at=now,
                updated_at=now,
            )
            self._rows[row.id] = row
        return row

    def append_revoked_token_id(
        self, principal_id: int, token_id: str, *, expires_at: datetime
    ) -> bool:
        return self.revocations.add(principal_id, token_id, expires_at=expires_at)

    def clear_revocation_set(self, principal_id: int) -> int:
        return self.revocations.clear(principal_id)

    def bump_token_version(self, principal_id: int) -> int:
        with self._lock:
            row = self._rows.get(principal_id)
            if row is None:
                raise NotFoundError("User", principal_id)
            row = replace(row, token_version=row.token_version + 1, updated_at=datetime.now(UTC))
            self._rows[principal_id] = row
            return row.token_version

    def delete(self, principal_id: int) -> None:
        """Drop a principal (test helper simulating account removal)."""
        with self._lock:
            self._rows.pop(principal_id, None)
        self.revocations.clear(principal_id)
