"""Tests for the ``flask revocations`` command group."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from insightapi.infra.sqlalchemy.revocation_store import SqlAlchemyRevocationStore
from tests.factories.user import UserFactory


def test_prune_removes_expired_entries(app, factories):
    user = UserFactory()
    store = SqlAlchemyRevocationStore()
    now = datetime.now(UTC)
    store.add(user.id, "expired", expires_at=now - timedelta(hours=1))
    store.add(user.id, "live", expires_at=now + timedelta(hours=1))

    result = app.test_cli_runner().invoke(args=["revocations", "prune"])

    assert result.exit_code == 0, result.output
    assert "Pruned 1 expired revocation entry." in result.output
    assert store.members(user.id) == frozenset({"live"})


def test_show_reports_set_size(app, factories):
    user = UserFactory(email="alice@example.com", username="alice")
    SqlAlchemyRevocationStore().add(
        user.id, "t1", expires_at=datetime.now(UTC) + timedelta(hours=1)
    )

    result = app.test_cli_runner().invoke(args=["revocations", "show", "alice@example.com"])

    assert result.exit_code == 0, result.output
    assert "alice <alice@example.com>: 1 revoked refresh token(s), token_version=1" in result.output


def test_show_unknown_email(app):
    result = app.test_cli_runner().invoke(args=["revocations", "show", "nobody@example.com"])
    assert result.exit_code != 0
    assert "No user with email" in result.output
