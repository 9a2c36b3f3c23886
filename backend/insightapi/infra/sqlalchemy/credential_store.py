# insightapi/infra/sqlalchemy/credential_store.py
from __future__ import annotations

from dataclasses import replace
from datetime import datetime

from sqlalchemy.exc import IntegrityError

from insightapi.infra.sqlalchemy.revocation_store import SqlAlchemyRevocationStore
from insightapi.models.user import User
from insightapi.services._shared.errors import ConflictError, NotFoundError, violates
from insightapi.services._shared.ports.credential_store import CredentialStore, PrincipalRecord
from insightapi.services._shared.ports.revocation_store import RevocationStore
from insightapi.uow.sqlalchemy_uow import SQLAlchemyReadOnlyUnitOfWork, SQLAlchemyUnitOfWork


def _to_record(user: User) -> PrincipalRecord:
    return PrincipalRecord(
        id=user.id,
        username=user.username,
        email=user.email,
        password_hash=user.password_hash,
        token_version=user.token_version,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


class SqlAlchemyCredentialStore(CredentialStore):
    """
    Credential store over the ``users`` table.

    Revocation-set operations are delegated to ``revocations`` (SQL table by
    default, Redis when configured), so principals and revoked ids can live
    in different backends.

    .. note::
       Requires an active Flask app context (Flask-SQLAlchemy session).
    """

    def __init__(self, revocations: RevocationStore | None = None) -> None:
        self.revocations = revocations or SqlAlchemyRevocationStore()

    def _with_revocations(self, record: PrincipalRecord | None) -> PrincipalRecord | None:
        if record is None:
            return None
        return replace(record, revoked_token_ids=self.revocations.members(record.id))

    # -------------------- principals -----------------

    def find_by_email(self, email: str) -> PrincipalRecord | None:
        with SQLAlchemyReadOnlyUnitOfWork() as uow:
            user = uow.users.get_by_email(email)
            record = _to_record(user) if user else None
        return self._with_revocations(record)

    def find_by_id(self, principal_id: int) -> PrincipalRecord | None:
        with SQLAlchemyReadOnlyUnitOfWork() as uow:
            user = uow.users.get(principal_id)
            record = _to_record(user) if user else None
        return self._with_revocations(record)

    def find_by_identity_or_email(self, username: str, email: str) -> PrincipalRecord | None:
        with SQLAlchemyReadOnlyUnitOfWork() as uow:
            user = uow.users.get_by_username_or_email(username, email)
            record = _to_record(user) if user else None
        return self._with_revocations(record)

    def create(self, *, username: str, email: str, password_hash: str) -> PrincipalRecord:
        try:
            with SQLAlchemyUnitOfWork() as uow:
                user = uow.users.create(
                    username=username, email=email, password_hash=password_hash
                )
                record = _to_record(user)
        except IntegrityError as exc:
            field = "email" if violates(exc, "uq_users_email", "users.email") else "username"
            raise ConflictError("User", f"{field} already exists") from exc
        return record

    def bump_token_version(self, principal_id: int) -> int:
        try:
            with SQLAlchemyUnitOfWork() as uow:
                return uow.users.bump_token_version(principal_id)
        except LookupError as exc:
            raise NotFoundError("User", principal_id) from exc

    # -------------------- revocation set -------------

    def append_revoked_token_id(
        self, principal_id: int, token_id: str, *, expires_at: datetime
    ) -> bool:
        return self.revocations.add(principal_id, token_id, expires_at=expires_at)

    def clear_revocation_set(self, principal_id: int) -> int:
        return self.revocations.clear(principal_id)
