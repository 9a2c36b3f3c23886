"""Persistence-only repositories."""

from .revoked_token import RevokedTokenRepository
from .user import UserRepository

__all__ = [
    "RevokedTokenRepository",
    "UserRepository",
]
