"""Integration-style unit tests for the SQLAlchemy credential/revocation stores."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from insightapi.infra.sqlalchemy.credential_store import SqlAlchemyCredentialStore
from insightapi.infra.sqlalchemy.revocation_store import SqlAlchemyRevocationStore
from insightapi.models import RevokedRefreshToken
from insightapi.services._shared.errors import ConflictError, NotFoundError
from tests.factories.user import UserFactory


@pytest.fixture
def store(app) -> SqlAlchemyCredentialStore:
    return SqlAlchemyCredentialStore()


class TestPrincipals:
    def test_create_and_find(self, store):
        created = store.create(username="alice", email="Alice@Example.com", password_hash="h")
        assert created.id is not None
        assert created.email == "alice@example.com"
        assert created.token_version == 1

        by_email = store.find_by_email("ALICE@example.com")
        by_id = store.find_by_id(created.id)
        assert by_email == by_id
        assert by_id.revoked_token_ids == frozenset()

    def test_find_by_identity_or_email(self, store, factories):
        user = UserFactory(username="bob", email="bob@example.com")
        assert store.find_by_identity_or_email("bob", "other@example.com").id == user.id
        assert store.find_by_identity_or_email("other", "bob@example.com").id == user.id
        assert store.find_by_identity_or_email("other", "other@example.com") is None

    @pytest.mark.parametrize(
        "username,email",
        [("carol", "someone@example.com"), ("someone", "carol@example.com")],
    )
    def test_create_duplicate_raises_conflict(self, store, factories, username, email):
        UserFactory(username="carol", email="carol@example.com")
        with pytest.raises(ConflictError):
            store.create(username=username, email=email, password_hash="h")

    def test_password_hash_not_in_repr(self, store):
        record = store.create(username="dave", email="dave@example.com", password_hash="SECRET")
        assert "SECRET" not in repr(record)

    def test_bump_token_version(self, store, factories):
        user = UserFactory()
        assert store.bump_token_version(user.id) == 2
        assert store.bump_token_version(user.id) == 3
        assert store.find_by_id(user.id).token_version == 3

    def test_bump_unknown_principal(self, store):
        with pytest.raises(NotFoundError):
            store.bump_token_version(9999)


class TestRevocationSet:
    def test_append_is_idempotent(self, store, factories):
        user = UserFactory()
        exp = datetime.now(UTC) + timedelta(days=1)
        assert store.append_revoked_token_id(user.id, "t1", expires_at=exp) is True
        assert store.append_revoked_token_id(user.id, "t1", expires_at=exp) is False
        assert store.find_by_id(user.id).revoked_token_ids == frozenset({"t1"})

    def test_clear_returns_removed_count(self, store, factories):
        user = UserFactory()
        other = UserFactory()
        exp = datetime.now(UTC) + timedelta(days=1)
        store.append_revoked_token_id(user.id, "t1", expires_at=exp)
        store.append_revoked_token_id(user.id, "t2", expires_at=exp)
        store.append_revoked_token_id(other.id, "t3", expires_at=exp)

        assert store.clear_revocation_set(user.id) == 2
        assert store.find_by_id(user.id).revoked_token_ids == frozenset()
        assert store.find_by_id(other.id).revoked_token_ids == frozenset({"t3"})

    def test_prune_drops_expired_entries(self, app, factories, session):
        revocations = SqlAlchemyRevocationStore()
        user = UserFactory()
        now = datetime.now(UTC)
        revocations.add(user.id, "expired", expires_at=now - timedelta(minutes=1))
        revocations.add(user.id, "live", expires_at=now + timedelta(days=1))

        assert revocations.prune(now) == 1
        assert revocations.members(user.id) == frozenset({"live"})
        assert revocations.contains(user.id, "live")
        assert not revocations.contains(user.id, "expired")
        assert session.query(RevokedRefreshToken).count() == 1
