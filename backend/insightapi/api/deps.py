"""Shared API helpers for request parsing and cross-cutting concerns."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from typing import Any, TypeVar

from flask import Response, current_app, jsonify, request
from flask_jwt_extended import verify_jwt_in_request

from insightapi.core.extensions import get_redis
from insightapi.core.logger import ensure_request_id
from insightapi.infra.jwt.pyjwt_token_codec import JWTTokenCodec
from insightapi.infra.redis.redis_revocation_store import RedisRevocationStore
from insightapi.infra.security.werkzeug_password_hasher import WerkzeugPasswordHasher
from insightapi.infra.sqlalchemy.credential_store import SqlAlchemyCredentialStore
from insightapi.infra.sqlalchemy.revocation_store import SqlAlchemyRevocationStore
from insightapi.services._shared.base import ServiceContext
from insightapi.services._shared.ports.revocation_store import RevocationStore
from insightapi.services.auth.service import AuthService

F = TypeVar("F", bound=Callable[..., Any])


def require_auth(func: F) -> F:
    """Ensure the request carries a valid JWT access token."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        verify_jwt_in_request(optional=False)
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            request_endpoint = getattr(request, "endpoint", None)
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request_endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]


def build_revocation_store() -> RevocationStore:
    """Return the revocation store selected by ``REVOCATION_BACKEND``."""

    backend = str(current_app.config.get("REVOCATION_BACKEND", "sql")).lower()
    if backend == "redis":
        return RedisRevocationStore(get_redis())
    return SqlAlchemyRevocationStore()


def _password_hasher() -> WerkzeugPasswordHasher:
    # The dummy digest costs one hash, so the hasher is built once per app
    hasher = current_app.extensions.get("password_hasher")
    if hasher is None:
        hasher = WerkzeugPasswordHasher(
            method=current_app.config["PASSWORD_HASH_METHOD"],
            salt_length=int(current_app.config.get("PASSWORD_SALT_LENGTH", 16)),
        )
        current_app.extensions["password_hasher"] = hasher
    return hasher


def get_auth_service() -> AuthService:
    """Wire an :class:`AuthService` from the current app configuration."""

    cfg = current_app.config
    return AuthService(
        store=SqlAlchemyCredentialStore(revocations=build_revocation_store()),
        codec=JWTTokenCodec.from_config(cfg),
        hasher=_password_hasher(),
        compromise_policy=str(cfg.get("AUTH_COMPROMISE_POLICY", "wipe")).lower(),
        ctx=ServiceContext(request_id=ensure_request_id()),
    )
