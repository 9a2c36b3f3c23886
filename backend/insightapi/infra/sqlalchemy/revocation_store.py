# insightapi/infra/sqlalchemy/revocation_store.py
from __future__ import annotations

from datetime import UTC, datetime

from insightapi.services._shared.ports.revocation_store import RevocationStore
from insightapi.uow.sqlalchemy_uow import SQLAlchemyReadOnlyUnitOfWork, SQLAlchemyUnitOfWork


def _as_utc(value: datetime) -> datetime:
    """Aware datetimes are converted to UTC; naive ones are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class SqlAlchemyRevocationStore(RevocationStore):
    """
    Revocation set persisted in ``revoked_refresh_tokens``.

    Each call runs in its own unit of work, so every operation is one
    transaction. ``add`` relies on ``ON CONFLICT DO NOTHING`` and the
    ``(user_id, token_id)`` unique constraint to stay idempotent under
    concurrent rotation.
    """

    def contains(self, principal_id: int, token_id: str) -> bool:
        with SQLAlchemyReadOnlyUnitOfWork() as uow:
            return uow.revoked_tokens.exists(principal_id, token_id)

    def add(self, principal_id: int, token_id: str, *, expires_at: datetime) -> bool:
        with SQLAlchemyUnitOfWork() as uow:
            return uow.revoked_tokens.insert_if_absent(
                user_id=principal_id, token_id=token_id, expires_at=_as_utc(expires_at)
            )

    def clear(self, principal_id: int) -> int:
        with SQLAlchemyUnitOfWork() as uow:
            return uow.revoked_tokens.delete_for_user(principal_id)

    def members(self, principal_id: int) -> frozenset[str]:
        with SQLAlchemyReadOnlyUnitOfWork() as uow:
            return frozenset(uow.revoked_tokens.token_ids_for(principal_id))

    def prune(self, now: datetime | None = None) -> int:
        cutoff = _as_utc(now or datetime.now(UTC))
        with SQLAlchemyUnitOfWork() as uow:
            return uow.revoked_tokens.delete_expired(cutoff)
