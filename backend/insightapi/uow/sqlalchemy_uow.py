"""Units of work over the Flask-SQLAlchemy scoped session."""

from __future__ import annotations

from sqlalchemy import event
from sqlalchemy.orm import Session

from insightapi.core.extensions import db
from insightapi.repositories import RevokedTokenRepository, UserRepository
from insightapi.uow.base import UnitOfWork


class _ScopedSessionUnitOfWork(UnitOfWork):
    """Binds both repositories to the request's scoped session."""

    def __init__(self) -> None:
        self.session = db.session
        self.users = UserRepository(self.session)
        self.revoked_tokens = RevokedTokenRepository(self.session)

    def rollback(self) -> None:
        self.session.rollback()


class SQLAlchemyUnitOfWork(_ScopedSessionUnitOfWork):
    """Read-write scope: commit on a clean exit, roll back on any exception."""

    def __enter__(self) -> SQLAlchemyUnitOfWork:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self.rollback()
            return
        try:
            self.commit()
        except Exception:
            self.rollback()
            raise

    def commit(self) -> None:
        self.session.commit()


class SQLAlchemyReadOnlyUnitOfWork(_ScopedSessionUnitOfWork):
    """
    Read scope used by every store lookup.

    A ``before_flush`` hook on the concrete session rejects any pending ORM
    change, and the scope always ends in a rollback.
    """

    def __enter__(self) -> SQLAlchemyReadOnlyUnitOfWork:
        # The listener must target the thread-local Session, not the registry
        self._guarded: Session = db.session()
        event.listen(self._guarded, "before_flush", _refuse_flush)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            self.rollback()
        finally:
            if event.contains(self._guarded, "before_flush", _refuse_flush):
                event.remove(self._guarded, "before_flush", _refuse_flush)

    def commit(self) -> None:
        raise RuntimeError("Read-only UnitOfWork does not allow commit().")


def _refuse_flush(session: Session, flush_context, instances) -> None:
    if session.new or session.dirty or session.deleted:
        raise RuntimeError("Read-only UnitOfWork: ORM flush blocked (pending changes present).")
