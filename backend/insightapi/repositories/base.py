"""Shared base of the persistence-only repositories.

A repository issues statements on the session it was given and nothing
more: the unit of work that built it owns commit and rollback.
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from sqlalchemy import Select
from sqlalchemy.orm import Session

E = TypeVar("E")


class BaseRepository(Generic[E]):
    """Primary-key lookup, insert-and-flush and first-row helpers for ``model``."""

    model: type[E]

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, entity_id: Any) -> E | None:
        return self.session.get(self.model, entity_id)

    def add(self, entity: E) -> E:
        """Stage ``entity`` and flush so its generated key is available."""
        self.session.add(entity)
        self.session.flush()
        return entity

    def first(self, stmt: Select[Any]) -> E | None:
        return self.session.execute(stmt).scalars().first()
