"""Unit tests for the in-memory store doubles used by service tests."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from insightapi.services._shared.errors import ConflictError, NotFoundError
from insightapi.services._shared.ports import InMemoryCredentialStore, InMemoryRevocationStore


def _exp(hours: int = 1) -> datetime:
    return datetime.now(UTC) + timedelta(hours=hours)


class TestInMemoryRevocationStore:
    def test_add_contains_clear(self):
        store = InMemoryRevocationStore()
        assert store.add(1, "a", expires_at=_exp()) is True
        assert store.add(1, "a", expires_at=_exp()) is False
        assert store.contains(1, "a")
        assert store.clear(1) == 1
        assert not store.contains(1, "a")

    def test_prune(self):
        store = InMemoryRevocationStore()
        store.add(1, "old", expires_at=_exp(-1))
        store.add(1, "new", expires_at=_exp(1))
        assert store.prune() == 1
        assert store.members(1) == frozenset({"new"})


class TestInMemoryCredentialStore:
    def test_create_normalizes_and_rejects_duplicates(self):
        store = InMemoryCredentialStore()
        record = store.create(username=" alice ", email="Alice@Example.COM", password_hash="h")
        assert record.username == "alice"
        assert record.email == "alice@example.com"
        with pytest.raises(ConflictError):
            store.create(username="alice", email="x@example.com", password_hash="h")
        with pytest.raises(ConflictError):
            store.create(username="x", email="ALICE@example.com", password_hash="h")

    def test_find_includes_revocation_snapshot(self):
        store = InMemoryCredentialStore()
        record = store.create(username="bob", email="bob@example.com", password_hash="h")
        store.append_revoked_token_id(record.id, "t1", expires_at=_exp())
        assert store.find_by_id(record.id).revoked_token_ids == frozenset({"t1"})
        assert store.find_by_email("BOB@example.com").revoked_token_ids == frozenset({"t1"})

    def test_bump_token_version(self):
        store = InMemoryCredentialStore()
        record = store.create(username="carol", email="carol@example.com", password_hash="h")
        assert store.bump_token_version(record.id) == 2
        with pytest.raises(NotFoundError):
            store.bump_token_version(999)

    def test_delete_drops_principal_and_set(self):
        store = InMemoryCredentialStore()
        record = store.create(username="dave", email="dave@example.com", password_hash="h")
        store.append_revoked_token_id(record.id, "t1", expires_at=_exp())
        store.delete(record.id)
        assert store.find_by_id(record.id) is None
        assert store.revocations.members(record.id) == frozenset()
