"""Unit tests for UserRepository."""

import pytest
from insightapi.repositories.user import UserRepository
from tests.factories.user import UserFactory


class TestUserRepository:
    """Ensure ``UserRepository`` performs core persistence operations."""

    @pytest.fixture()
    def repo(self, session):
        return UserRepository(session)

    def test_get_by_email_is_case_insensitive(self, repo, factories):
        u = UserFactory(email="alice@example.com", username="alice")

        fetched = repo.get_by_email("  ALICE@example.com ")
        assert fetched is not None
        assert fetched.id == u.id
        assert fetched.username == "alice"

    def test_get_by_username_or_email(self, repo, factories):
        u = UserFactory(email="bob@example.com", username="bob")
        assert repo.get_by_username_or_email("bob", "x@example.com").id == u.id
        assert repo.get_by_username_or_email("x", "BOB@example.com").id == u.id
        assert repo.get_by_username_or_email("x", "x@example.com") is None

    def test_create_flushes_and_assigns_id(self, repo, session):
        user = repo.create(username="carol", email="Carol@Example.com", password_hash="h")
        assert user.id is not None
        assert user.email == "carol@example.com"
        assert user.token_version == 1
        session.commit()

    def test_bump_token_version(self, repo, factories, session):
        u = UserFactory()
        assert repo.bump_token_version(u.id) == 2
        session.commit()
        session.expire_all()
        assert repo.get(u.id).token_version == 2

    def test_bump_unknown_user(self, repo):
        with pytest.raises(LookupError):
            repo.bump_token_version(12345)
