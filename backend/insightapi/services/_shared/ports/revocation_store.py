from __future__ import annotations

import threading
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Protocol


class RevocationStore(Protocol):
    """
    Per-principal set of retired refresh-token identifiers.

    Answers one question: "has this token id ever been retired for this
    principal?". Entries remember the retired token's own expiry so they can
    be dropped once the token could no longer verify.

    Every method MUST be atomic for a single principal.
    """

    def contains(self, principal_id: int, token_id: str) -> bool:
        """Return ``True`` if ``token_id`` is in the principal's set."""

    def add(self, principal_id: int, token_id: str, *, expires_at: datetime) -> bool:
        """Add ``token_id``. :returns: ``True`` if it was not present before."""

    def clear(self, principal_id: int) -> int:
        """Wipe the principal's set. :returns: Number of entries removed."""

    def members(self, principal_id: int) -> frozenset[str]:
        """Snapshot of the principal's set."""

    def prune(self, now: datetime | None = None) -> int:
        """Drop entries whose token expired before ``now``. :returns: Count."""


class InMemoryRevocationStore(RevocationStore):
    """
    Simple in-memory revocation set keyed by principal id.

    .. note::
       Uses a threading lock to simulate per-principal atomicity in unit tests.
    """

    def __init__(self) -> None:
        self._sets: dict[int, dict[str, datetime]] = {}
        self._lock = threading.Lock()

    def contains(self, principal_id: int, token_id: str) -> bool:
        with self._lock:
            return token_id in self._sets.get(principal_id, {})

    def add(self, principal_id: int, token_id: str, *, expires_at: datetime) -> bool:
        with self._lock:
            entries = self._sets.setdefault(principal_id, {})
            if token_id in entries:
                return False
            entries[token_id] = expires_at
            return True

    def clear(self, principal_id: int) -> int:
        with self._lock:
            return len(self._sets.pop(principal_id, {}))

    def members(self, principal_id: int) -> frozenset[str]:
        with self._lock:
            return frozenset(self._sets.get(principal_id, {}))

    def prune(self, now: datetime | None = None) -> int:
        cutoff = now or datetime.now(UTC)
        removed = 0
        with self._lock:
            for entries in self._sets.values():
                stale: Iterable[str] = [t for t, exp in entries.items() if exp < cutoff]
                for token_id in stale:
                    del entries[token_id]
                    removed += 1
        return removed
