"""Authentication endpoints using the service layer."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

from flask import Blueprint, after_this_request, current_app, request
from flask_jwt_extended import get_jwt_identity
from marshmallow import ValidationError
from werkzeug.exceptions import RequestEntityTooLarge

from insightapi.api.cookies import REFRESH_COOKIE, clear_auth_cookies, set_auth_cookies
from insightapi.api.deps import get_auth_service, json_response, require_auth, timing
from insightapi.core.extensions import limiter
from insightapi.schemas import LoginSchema, LogoutSchema, PrincipalSchema, RegisterSchema
from insightapi.services._shared.errors import ServiceError
from insightapi.services.auth.dto import LoginIn, LogoutIn, RefreshIn, RegisterIn
from insightapi.services.auth.service import AuthService

bp = Blueprint("auth", __name__, url_prefix="/auth")

register_schema = RegisterSchema()
login_schema = LoginSchema()
logout_schema = LogoutSchema()
principal_schema = PrincipalSchema()

T = TypeVar("T")


def _login_rate_limit() -> str:
    return str(current_app.config.get("AUTH_LOGIN_RATE_LIMIT", "5 per minute"))


def _run(service: AuthService, call: Callable[[], T]) -> T:
    """Invoke a service operation, turning service errors into API errors."""

    try:
        return call()
    except ServiceError as exc:
        raise service.translate_exceptions(exc) from exc


@bp.post("/register")
@timing
def register():
    """Register a new user, start a session and return the principal."""

    data = register_schema.load(request.get_json(silent=True) or {})
    service = get_auth_service()
    session = _run(service, lambda: service.register(RegisterIn(**data)))
    response = json_response({"data": principal_schema.dump(session.principal)}, status=201)
    return set_auth_cookies(response, session.tokens)


@bp.post("/login")
@limiter.limit(_login_rate_limit)
@timing
def login():
    """Authenticate credentials and start a session."""

    data = login_schema.load(request.get_json(silent=True) or {})
    service = get_auth_service()
    session = _run(service, lambda: service.login(LoginIn(**data)))
    response = json_response({"data": principal_schema.dump(session.principal)})
    return set_auth_cookies(response, session.tokens)


@bp.route("/refresh", methods=["GET", "POST"])
@timing
def refresh():
    """Rotate the refresh cookie and issue a new token pair.

    Any failure clears both cookies, whatever error response is rendered.
    """

    try:
        service = get_auth_service()
        tokens = _run(
            service, lambda: service.refresh(RefreshIn(request.cookies.get(REFRESH_COOKIE)))
        )
    except Exception:
        after_this_request(clear_auth_cookies)
        raise
    response = json_response({"data": {"message": "Access token refreshed."}})
    return set_auth_cookies(response, tokens)


@bp.post("/logout")
@timing
def logout():
    """Retire the refresh cookie and clear both cookies. Always succeeds."""

    try:
        options: dict[str, Any] = logout_schema.load(request.get_json(silent=True) or {})
    except (ValidationError, RequestEntityTooLarge):
        options = {"all_sessions": False}
    service = get_auth_service()
    service.logout(
        LogoutIn(
            refresh_token=request.cookies.get(REFRESH_COOKIE),
            all_sessions=options["all_sessions"],
        )
    )
    response = json_response({"data": {"message": "Logged out successfully."}})
    return clear_auth_cookies(response)


@bp.get("/me")
@require_auth
@timing
def me():
    """Return the authenticated principal."""

    service = get_auth_service()
    principal = _run(service, lambda: service.whoami(get_jwt_identity()))
    return json_response({"data": principal_schema.dump(principal)})
