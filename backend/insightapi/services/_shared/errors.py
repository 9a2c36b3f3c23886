"""
Store-level failures shared by every service.

Stores raise these instead of driver exceptions so services never see
SQLAlchemy or redis errors directly. Nothing here knows about HTTP; the
mapping to problem responses lives in ``BaseService.translate_exceptions``.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError


def violates(exc: IntegrityError, *names: str) -> bool:
    """
    Tell whether ``exc`` was raised by one of the given constraints.

    PostgreSQL reports the constraint name (``uq_users_email``) while SQLite
    only reports the column (``users.email``), so pass both when the store
    must run on either.
    """
    message = str(exc.orig or exc).lower()
    return any(name.lower() in message for name in names)


class ServiceError(Exception):
    """Root of every error a service may raise on purpose."""


@dataclass(slots=True)
class NotFoundError(ServiceError):
    """``entity`` identified by ``key`` does not exist."""

    entity: str
    key: str | int

    def __str__(self) -> str:
        return f"{self.entity} not found: {self.key}"


@dataclass(slots=True)
class ConflictError(ServiceError):
    """A uniqueness rule on ``entity`` rejected the write."""

    entity: str
    detail: str

    def __str__(self) -> str:
        return f"Conflict on {self.entity}: {self.detail}"
