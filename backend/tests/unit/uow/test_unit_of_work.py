"""Transaction semantics the SQL stores rely on."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from insightapi.models import RevokedRefreshToken, User
from insightapi.uow import SQLAlchemyReadOnlyUnitOfWork, SQLAlchemyUnitOfWork
from sqlalchemy import func, select
from tests.factories.user import UserFactory

EXPIRES = datetime.now(UTC) + timedelta(days=1)


def _count(session, model) -> int:
    return session.scalar(select(func.count()).select_from(model))


class TestWriter:
    def test_commits_on_clean_exit(self, app, session):
        with SQLAlchemyUnitOfWork() as uow:
            user = uow.users.create(username="alice", email="alice@example.com", password_hash="x")
            uow.revoked_tokens.insert_if_absent(user_id=user.id, token_id="t1", expires_at=EXPIRES)

        session.rollback()  # nothing pending may survive outside the unit of work
        assert _count(session, User) == 1
        assert _count(session, RevokedRefreshToken) == 1

    def test_rolls_back_every_write_on_error(self, app, session):
        with pytest.raises(RuntimeError), SQLAlchemyUnitOfWork() as uow:
            user = uow.users.create(username="bob", email="bob@example.com", password_hash="x")
            uow.revoked_tokens.insert_if_absent(user_id=user.id, token_id="t1", expires_at=EXPIRES)
            raise RuntimeError("store failure")

        assert _count(session, User) == 0
        assert _count(session, RevokedRefreshToken) == 0


class TestReadOnly:
    def test_reads_see_committed_rows(self, app, factories):
        user = UserFactory(email="carol@example.com")
        with SQLAlchemyReadOnlyUnitOfWork() as uow:
            assert uow.users.get_by_email("CAROL@example.com").id == user.id

    def test_flush_of_pending_changes_is_blocked(self, app, factories):
        user = UserFactory()
        with SQLAlchemyReadOnlyUnitOfWork() as uow, pytest.raises(RuntimeError, match="flush blocked"):
            uow.session.get(User, user.id).token_version = 99
            uow.session.flush()

        with SQLAlchemyReadOnlyUnitOfWork() as uow:
            assert uow.session.get(User, user.id).token_version == 1

    def test_commit_is_refused(self, app):
        with SQLAlchemyReadOnlyUnitOfWork() as uow, pytest.raises(RuntimeError, match="commit"):
            uow.commit()

    def test_guard_does_not_outlive_the_block(self, app, session):
        with SQLAlchemyReadOnlyUnitOfWork():
            pass
        with SQLAlchemyUnitOfWork() as uow:
            uow.users.create(username="dave", email="dave@example.com", password_hash="x")
        assert _count(session, User) == 1
