"""HTTP surface: versioned blueprints mounted under ``API_BASE_PREFIX``."""

from __future__ import annotations

from collections.abc import Iterable

from flask import Blueprint, Flask


def _join(*segments: str) -> str:
    return "/" + "/".join(s.strip("/") for s in segments if s.strip("/"))


def mount(app: Flask, prefix: str, entries: Iterable[tuple[Blueprint, str]]) -> None:
    """Register each ``(blueprint, sub_prefix)`` pair below ``prefix``.

    An empty ``sub_prefix`` mounts the blueprint at ``prefix`` itself, which
    is where the health probe lives.
    """
    for bp, sub_prefix in entries:
        app.register_blueprint(bp, url_prefix=_join(prefix, sub_prefix))


def init_app(app: Flask) -> None:
    """Mount API v1 (``/api/v1`` by default) on ``app``.

    Cookie paths (``ACCESS_COOKIE_PATH``/``REFRESH_COOKIE_PATH``) assume this
    layout; change them together with ``API_BASE_PREFIX``.
    """
    from insightapi.api.v1 import API_VERSION, REGISTRY

    mount(app, _join(app.config.get("API_BASE_PREFIX", "/api"), API_VERSION), REGISTRY)


__all__ = ["init_app", "mount"]
