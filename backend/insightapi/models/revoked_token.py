"""Revoked refresh-token identifiers, one row per retired token."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from insightapi.core.extensions import db

from .base import PKMixin, ReprMixin

if TYPE_CHECKING:
    from .user import User


class RevokedRefreshToken(PKMixin, ReprMixin, db.Model):
    """
    Entry of a principal's revocation set.

    ``expires_at`` is the expiry of the retired token itself: once it has
    passed, the token fails verification anyway and the row may be pruned.
    """

    __tablename__ = "revoked_refresh_tokens"
    __repr_fields__ = ("user_id", "expires_at")

    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    token_id: Mapped[str] = mapped_column(String(128), nullable=False)
    revoked_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    user: Mapped[User] = relationship(back_populates="revoked_tokens")

    __table_args__ = (
        UniqueConstraint("user_id", "token_id", name="uq_revoked_refresh_tokens_user_token"),
        Index("ix_revoked_refresh_tokens_expires_at", "expires_at"),
    )
