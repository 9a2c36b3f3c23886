"""HttpOnly cookie transport for the access/refresh token pair."""

from __future__ import annotations

from datetime import UTC, datetime

from flask import Response, current_app

from insightapi.services.auth.dto import TokenPairOut

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"
# Placeholder value written when a cookie is cleared
CLEARED_VALUE = "loggedout"
_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def _cookie_options() -> dict[str, object]:
    cfg = current_app.config
    return {
        "httponly": True,
        "secure": bool(cfg.get("AUTH_COOKIE_SECURE", True)),
        "samesite": cfg.get("AUTH_COOKIE_SAMESITE", "Lax"),
    }


def _paths() -> tuple[str, str]:
    cfg = current_app.config
    return (
        str(cfg.get("ACCESS_COOKIE_PATH", "/api/v1")),
        str(cfg.get("REFRESH_COOKIE_PATH", "/api/v1/auth")),
    )


def set_auth_cookies(response: Response, tokens: TokenPairOut) -> Response:
    """
    Attach both tokens as HttpOnly cookies.

    Max-Age follows each token's own lifetime so the browser drops the cookie
    when the token could no longer verify.
    """
    cfg = current_app.config
    access_path, refresh_path = _paths()
    options = _cookie_options()
    response.set_cookie(
        ACCESS_COOKIE,
        tokens.access_token,
        max_age=int(cfg["JWT_ACCESS_EXPIRES"].total_seconds()),
        path=access_path,
        **options,  # type: ignore[arg-type]
    )
    response.set_cookie(
        REFRESH_COOKIE,
        tokens.refresh_token,
        max_age=int(cfg["JWT_REFRESH_EXPIRES"].total_seconds()),
        path=refresh_path,
        **options,  # type: ignore[arg-type]
    )
    return response


def clear_auth_cookies(response: Response) -> Response:
    """Overwrite both cookies with a placeholder that expires immediately."""
    access_path, refresh_path = _paths()
    options = _cookie_options()
    for name, path in ((ACCESS_COOKIE, access_path), (REFRESH_COOKIE, refresh_path)):
        response.set_cookie(
            name,
            CLEARED_VALUE,
            max_age=0,
            expires=_EPOCH,
            path=path,
            **options,  # type: ignore[arg-type]
        )
    return response


__all__ = [
    "ACCESS_COOKIE",
    "CLEARED_VALUE",
    "REFRESH_COOKIE",
    "clear_auth_cookies",
    "set_auth_cookies",
]
