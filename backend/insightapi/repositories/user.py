"""User repository for principal lookups and session-generation updates."""

from __future__ import annotations

from sqlalchemy import func, or_, select, update

from insightapi.models.user import User
from insightapi.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Persistence-only repository for :class:`User`.

    It NEVER hashes passwords or handles tokens, only DB-level user management.
    """

    model = User

    def get_by_email(self, email: str) -> User | None:
        """Fetch a user by email (case-insensitive).

        :param email: Email address to normalise and search.
        :returns: User instance or ``None`` when not found.
        """
        stmt = select(User).where(User.email == email.lower().strip())
        return self.first(stmt)

    def get_by_username_or_email(self, username: str, email: str) -> User | None:
        """Return any user colliding on username or email."""
        stmt = select(User).where(
            or_(User.username == username.strip(), User.email == email.lower().strip())
        )
        return self.first(stmt)

    def create(self, *, username: str, email: str, password_hash: str) -> User:
        """Insert a new user row and flush it."""
        return self.add(User(username=username, email=email, password_hash=password_hash))

    def bump_token_version(self, user_id: int) -> int:
        """
        Atomically increment ``token_version``.

        :returns: New token_version after increment.
        :raises LookupError: If the user does not exist.
        """
        # Single UPDATE so concurrent bumps never lose an increment.
        result = self.session.execute(
            update(User)
            .where(User.id == user_id)
            .values(token_version=User.token_version + 1, updated_at=func.now())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise LookupError(f"User {user_id} not found.")
        version = self.session.execute(
            select(User.token_version).where(User.id == user_id)
        ).scalar_one()
        return int(version)
