"""Flask CLI commands for maintaining refresh-token revocation sets."""

from __future__ import annotations

import logging
from datetime import UTC, datetime

import click
from flask.cli import with_appcontext

from insightapi.api.deps import build_revocation_store
from insightapi.infra.sqlalchemy.credential_store import SqlAlchemyCredentialStore

LOGGER = logging.getLogger(__name__)


@click.group("revocations")
def revocations_cli() -> None:
    """Inspect and prune revoked refresh-token ids."""


@revocations_cli.command("prune")
@with_appcontext
def prune_command() -> None:
    """Delete entries whose refresh token has already expired."""
    store = build_revocation_store()
    removed = store.prune(datetime.now(UTC))
    LOGGER.info("Pruned revocation entries", extra={"event": "revocations_pruned"})
    click.echo(f"Pruned {removed} expired revocation entr{'y' if removed == 1 else 'ies'}.")


@revocations_cli.command("show")
@click.argument("email")
@with_appcontext
def show_command(email: str) -> None:
    """Print the size of a user's revocation set."""
    store = SqlAlchemyCredentialStore(revocations=build_revocation_store())
    record = store.find_by_email(email)
    if record is None:
        raise click.ClickException(f"No user with email {email!r}.")
    click.echo(
        f"{record.username} <{record.email}>: "
        f"{len(record.revoked_token_ids)} revoked refresh token(s), "
        f"token_version={record.token_version}"
    )
