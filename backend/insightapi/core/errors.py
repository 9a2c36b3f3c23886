"""RFC 7807 problem responses for every error the API can return."""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from flask import Flask, Response, has_request_context, jsonify, request
from marshmallow import ValidationError
from sqlalchemy.exc import OperationalError
from werkzeug.exceptions import HTTPException

from insightapi.core.logger import ensure_request_id

log = logging.getLogger(__name__)

PROBLEM_MIMETYPE = "application/problem+json"

# Stable ``code`` for statuses raised by werkzeug/Flask-Limiter
_STATUS_CODES = {
    400: "bad_request",
    401: "unauthorized",
    404: "not_found",
    405: "method_not_allowed",
    413: "payload_too_large",
    415: "unsupported_media_type",
    429: "too_many_requests",
    500: "internal_server_error",
    503: "service_unavailable",
}


def problem(
    status: int, code: str, detail: str, *, details: dict[str, Any] | None = None
) -> dict[str, Any]:
    """
    Build a Problem Details body.

    Besides the RFC 7807 members it carries ``code`` (what clients branch
    on, e.g. ``AUTH_COMPROMISED``) and the ``request_id`` of the exchange.
    """
    body: dict[str, Any] = {
        "type": "about:blank",
        "title": HTTPStatus(status).phrase,
        "status": int(status),
        "detail": detail,
        "code": code,
        "instance": request.path if has_request_context() else None,
        "request_id": ensure_request_id(),
    }
    if details:
        body["details"] = details
    return body


def problem_response(body: dict[str, Any]) -> tuple[Response, int]:
    resp = jsonify(body)
    resp.mimetype = PROBLEM_MIMETYPE
    return resp, body["status"]


class APIError(Exception):
    """
    Error raised by views (usually via ``BaseService.translate_exceptions``).

    :param message: Client-safe detail.
    :param status_code: HTTP status.
    :param code: Stable machine-readable code.
    :param details: Optional structured payload.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        code: str = "bad_request",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = int(status_code)
        self.code = code
        self.details = details or {}

    def to_problem(self) -> dict[str, Any]:
        return problem(self.status_code, self.code, self.message, details=self.details)


class NotFound(APIError):
    def __init__(self, message: str = "Resource not found", code: str = "not_found") -> None:
        super().__init__(message, status_code=HTTPStatus.NOT_FOUND, code=code)


class Conflict(APIError):
    """409; registration reports ``USER_EXISTS`` through it."""

    def __init__(self, message: str = "Conflict", code: str = "conflict") -> None:
        super().__init__(message, status_code=HTTPStatus.CONFLICT, code=code)


class Unauthorized(APIError):
    """401; every auth failure kind except an existing principal."""

    def __init__(self, message: str = "Unauthorized", code: str = "unauthorized") -> None:
        super().__init__(message, status_code=HTTPStatus.UNAUTHORIZED, code=code)


def _register_jwt_loaders() -> None:
    """Render access-token guard failures (``/me``) as problems too."""
    from insightapi.core.extensions import jwt

    def _unauthorized(code: str, detail: str) -> tuple[Response, int]:
        return problem_response(problem(HTTPStatus.UNAUTHORIZED, code, detail))

    @jwt.unauthorized_loader
    def _missing_token(reason: str):
        return _unauthorized("AUTH_REQUIRED", "Authentication failed: No access token provided.")

    @jwt.expired_token_loader
    def _expired_token(jwt_header: dict[str, Any], jwt_data: dict[str, Any]):
        return _unauthorized("AUTH_TOKEN_EXPIRED", "Access token expired. Please refresh.")

    @jwt.invalid_token_loader
    def _invalid_token(reason: str):
        log.info("Access token rejected: %s", reason)
        return _unauthorized("AUTH_FAILED", "Invalid or expired token.")


def init_app(app: Flask) -> None:
    """
    Install the problem+json handlers on ``app``.

    4xx are logged as warnings, 5xx as errors with the traceback. Internal
    details never reach the response body.
    """
    _register_jwt_loaders()

    def _render(body: dict[str, Any], *, exc_info: bool = False) -> tuple[Response, int]:
        level = logging.ERROR if body["status"] >= 500 else logging.WARNING
        log.log(
            level,
            "%s %s: %s",
            body["status"],
            body["code"],
            body["detail"],
            exc_info=exc_info,
        )
        return problem_response(body)

    @app.errorhandler(APIError)
    def handle_api_error(err: APIError):
        return _render(err.to_problem())

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        status = int(err.code or HTTPStatus.INTERNAL_SERVER_ERROR)
        if status == HTTPStatus.NOT_FOUND:
            detail = f"Can't find {request.path} on this server!"
        else:
            detail = (err.description or HTTPStatus(status).phrase).strip()
        response, _ = _render(problem(status, _STATUS_CODES.get(status, "error"), detail))
        # Keep Retry-After and friends set by the rate limiter
        for key, value in err.get_headers():
            if key.lower() != "content-type":
                response.headers.setdefault(key, value)
        return response, status

    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        body = problem(
            HTTPStatus.UNPROCESSABLE_ENTITY,
            "validation_error",
            "Validation failed",
            details={"errors": err.messages},
        )
        return _render(body)

    @app.errorhandler(OperationalError)
    def handle_operational_error(err: OperationalError):
        body = problem(
            HTTPStatus.SERVICE_UNAVAILABLE, "service_unavailable", "Service temporarily unavailable"
        )
        return _render(body, exc_info=True)

    @app.errorhandler(Exception)
    def handle_unexpected_error(err: Exception):
        body = problem(
            HTTPStatus.INTERNAL_SERVER_ERROR, "internal_server_error", "An unexpected error occurred."
        )
        return _render(body, exc_info=True)
