"""Repository for the per-principal revocation set table."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from insightapi.models.revoked_token import RevokedRefreshToken
from insightapi.repositories.base import BaseRepository


class RevokedTokenRepository(BaseRepository[RevokedRefreshToken]):
    """Persistence-only access to :class:`RevokedRefreshToken` rows."""

    model = RevokedRefreshToken

    def exists(self, user_id: int, token_id: str) -> bool:
        stmt = select(RevokedRefreshToken.id).where(
            RevokedRefreshToken.user_id == user_id,
            RevokedRefreshToken.token_id == token_id,
        )
        return self.session.execute(stmt).first() is not None

    def token_ids_for(self, user_id: int) -> set[str]:
        """Return every revoked token id recorded for ``user_id``."""
        stmt = select(RevokedRefreshToken.token_id).where(RevokedRefreshToken.user_id == user_id)
        return set(self.session.execute(stmt).scalars())

    def insert_if_absent(self, *, user_id: int, token_id: str, expires_at: datetime) -> bool:
        """
        Insert an entry unless the ``(user_id, token_id)`` pair already exists.

        Uses ``ON CONFLICT DO NOTHING`` where the dialect has it so concurrent
        writers never fail on the unique constraint.

        :returns: ``True`` when a row was inserted.
        """
        values = {"user_id": user_id, "token_id": token_id, "expires_at": expires_at}
        dialect = self.session.get_bind().dialect.name
        if dialect in ("sqlite", "postgresql"):
            insert = sqlite_insert if dialect == "sqlite" else pg_insert
            stmt = (
                insert(RevokedRefreshToken)
                .values(**values)
                .on_conflict_do_nothing(index_elements=["user_id", "token_id"])
            )
            return self.session.execute(stmt).rowcount == 1
        if self.exists(user_id, token_id):
            return False
        self.add(RevokedRefreshToken(**values))
        return True

    def delete_for_user(self, user_id: int) -> int:
        """Delete the whole revocation set of ``user_id``; return rows removed."""
        stmt = delete(RevokedRefreshToken).where(RevokedRefreshToken.user_id == user_id)
        return int(self.session.execute(stmt).rowcount or 0)

    def delete_expired(self, now: datetime) -> int:
        """Delete entries whose token expired before ``now``."""
        stmt = delete(RevokedRefreshToken).where(RevokedRefreshToken.expires_at < now)
        return int(self.session.execute(stmt).rowcount or 0)
