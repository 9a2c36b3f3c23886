"""Transaction boundary shared by the credential and revocation stores."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from insightapi.repositories import RevokedTokenRepository, UserRepository


class UnitOfWork(ABC):
    """
    One store operation, one transaction.

    The auth service never spans a transaction across calls: every store
    method opens its own unit of work, so a principal's revocation set is
    always changed atomically and a failure leaves no partial write.
    """

    users: UserRepository
    revoked_tokens: RevokedTokenRepository

    @abstractmethod
    def __enter__(self) -> UnitOfWork: ...

    @abstractmethod
    def __exit__(self, exc_type, exc, tb) -> None: ...

    @abstractmethod
    def commit(self) -> None: ...

    @abstractmethod
    def rollback(self) -> None: ...
