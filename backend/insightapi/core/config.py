"""Application settings with environment-based simple classes."""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from datetime import timedelta
from typing import Final

from dotenv import load_dotenv

# Public selector env var (keep neutral name to avoid collisions)
ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'

# Loads .env in development (no-op when missing)
load_dotenv()

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$", re.IGNORECASE)
_DURATION_UNITS = {"": "seconds", "s": "seconds", "m": "minutes", "h": "hours", "d": "days"}


def env_bool(name: str, default: bool = False) -> bool:
    """Parse a boolean flag from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable to inspect.
    default: bool, optional
        Value returned when the variable is unset. Defaults to ``False``.

    Returns
    -------
    bool
        ``True`` if the value resembles ``{"1", "true", "yes", "y", "on"}``
        ignoring case; otherwise ``False`` or ``default`` when missing.
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "y", "on"}


def parse_duration(raw: str | int | timedelta) -> timedelta:
    """Parse a compact duration such as ``"15m"``, ``"7d"`` or ``"3600"``.

    Parameters
    ----------
    raw:
        A :class:`~datetime.timedelta`, a number of seconds, or a string made
        of an integer and an optional ``s``/``m``/``h``/``d`` suffix.

    Raises
    ------
    ValueError
        If the value cannot be interpreted.
    """
    if isinstance(raw, timedelta):
        return raw
    if isinstance(raw, int):
        return timedelta(seconds=raw)
    match = _DURATION_RE.match(str(raw))
    if not match:
        raise ValueError(f"Invalid duration: {raw!r}")
    amount, unit = match.groups()
    return timedelta(**{_DURATION_UNITS[unit.lower()]: int(amount)})


def env_duration(name: str, default: str) -> timedelta:
    """Read a duration from the environment, see :func:`parse_duration`."""
    return parse_duration(os.getenv(name, default))


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    API_BASE_PREFIX: str
        Root path for registering API blueprints.
    SECRET_KEY: str
        Flask secret. Unused by the token flow but required by extensions.
    JWT_ACCESS_SECRET: str
        Key signing access tokens. Must differ from ``JWT_REFRESH_SECRET``.
    JWT_REFRESH_SECRET: str
        Key signing refresh tokens.
    JWT_ACCESS_EXPIRES / JWT_REFRESH_EXPIRES: timedelta
        Token lifetimes, parsed from compact strings such as ``15m``/``7d``.
    PASSWORD_HASH_METHOD: str
        Werkzeug hashing method and cost (e.g. ``scrypt`` or
        ``pbkdf2:sha256:600000``).
    REVOCATION_BACKEND: str
        ``sql`` keeps revoked refresh-token ids in the database; ``redis``
        keeps them in Redis with a per-entry expiry.
    AUTH_COMPROMISE_POLICY: str
        ``wipe`` clears the revocation set on refresh-token reuse;
        ``revoke_all`` additionally invalidates every outstanding session.
    SQLALCHEMY_DATABASE_URI: str
        Database connection string consumed by SQLAlchemy.
    LOG_LEVEL: str
        Root logging verbosity (``INFO`` by default).
    CORS_ORIGINS: str
        Comma-separated list of allowed origins for CORS.

    Notes
    -----
    Values are primarily sourced from environment variables, enabling
    configuration without code changes.
    """

    APP_NAME = "InsightAPI"
    API_BASE_PREFIX = "/api"

    # Secrets / security
    SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME")
    JWT_ACCESS_SECRET = os.getenv("JWT_ACCESS_SECRET", "CHANGE_ME_ACCESS")
    JWT_REFRESH_SECRET = os.getenv("JWT_REFRESH_SECRET", "CHANGE_ME_REFRESH")
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ACCESS_EXPIRES = env_duration("JWT_ACCESS_EXPIRY", "15m")
    JWT_REFRESH_EXPIRES = env_duration("JWT_REFRESH_EXPIRY", "7d")

    # flask-jwt-extended guards protected routes with the access secret only
    JWT_TOKEN_LOCATION = ["cookies", "headers"]
    JWT_ACCESS_COOKIE_NAME = "accessToken"
    JWT_COOKIE_CSRF_PROTECT = False

    PASSWORD_HASH_METHOD = os.getenv("PASSWORD_HASH_METHOD", "scrypt")
    PASSWORD_SALT_LENGTH = int(os.getenv("PASSWORD_SALT_LENGTH", "16"))

    REVOCATION_BACKEND = os.getenv("REVOCATION_BACKEND", "sql")
    AUTH_COMPROMISE_POLICY = os.getenv("AUTH_COMPROMISE_POLICY", "wipe")

    # Cookies
    ACCESS_COOKIE_PATH = os.getenv("ACCESS_COOKIE_PATH", "/api/v1")
    REFRESH_COOKIE_PATH = os.getenv("REFRESH_COOKIE_PATH", "/api/v1/auth")
    AUTH_COOKIE_SAMESITE = os.getenv("AUTH_COOKIE_SAMESITE", "Lax")
    AUTH_COOKIE_SECURE = env_bool("AUTH_COOKIE_SECURE", True)

    # DB / Redis
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    REDIS_URL = os.getenv("REDIS_URL")

    # Rate limiting (Flask-Limiter, fixed window)
    RATELIMIT_ENABLED = env_bool("RATELIMIT_ENABLED", True)
    RATELIMIT_DEFAULT = os.getenv("RATELIMIT_DEFAULT", "100 per minute")
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
    RATELIMIT_STRATEGY = "fixed-window"
    AUTH_LOGIN_RATE_LIMIT = os.getenv("AUTH_LOGIN_RATE_LIMIT", "5 per minute")

    # Flask & JSON
    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False
    MAX_CONTENT_LENGTH = 10 * 1024

    # Logging & CORS
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173")

    # Flask built-ins
    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Configuration tailored for local development.

    Notes
    -----
    Enables debug mode and allows cookies over plain HTTP.
    """

    DEBUG = env_bool("FLASK_DEBUG", True)
    AUTH_COOKIE_SECURE = env_bool("AUTH_COOKIE_SECURE", False)
    CORS_MAX_AGE = 600  # 10 minutes


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Uses an in-memory SQLite database unless ``TEST_DATABASE_URL`` is set.
    - Uses a cheap password hash so the suite stays fast.
    - Disables rate limiting and secure cookies.
    """

    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    JWT_ACCESS_SECRET = "test-access-secret-0123456789abcdef"
    JWT_REFRESH_SECRET = "test-refresh-secret-0123456789abcdef"
    PASSWORD_HASH_METHOD = "pbkdf2:sha256:1000"
    REVOCATION_BACKEND = "sql"
    AUTH_COMPROMISE_POLICY = "wipe"
    AUTH_COOKIE_SECURE = False
    RATELIMIT_ENABLED = False
    LOG_LEVEL = "WARNING"
    PROPAGATE_EXCEPTIONS = False


class ProductionConfig(BaseConfig):
    """Configuration defaults for production deployments.

    Notes
    -----
    Secrets have no usable defaults here; :func:`validate_config` refuses to
    boot when they are missing.
    """

    DEBUG = False
    SQLALCHEMY_ECHO = False
    PROPAGATE_EXCEPTIONS = False
    JWT_ACCESS_SECRET = os.getenv("JWT_ACCESS_SECRET", "")
    JWT_REFRESH_SECRET = os.getenv("JWT_REFRESH_SECRET", "")
    AUTH_COOKIE_SECURE = True


# Map names -> classes (simple, explicit)
CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Return the configuration class inferred from ``APP_ENV``.

    Falls back to :class:`DevelopmentConfig` when ``APP_ENV`` is unset or
    unknown.
    """
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)


def validate_config(config: Mapping[str, object]) -> None:
    """Fail fast on settings the auth flow cannot run with.

    :param config: The Flask config mapping.
    :raises RuntimeError: If a JWT secret is missing or both secrets are equal,
        or if an enum-like setting has an unknown value.
    """
    access = config.get("JWT_ACCESS_SECRET")
    refresh = config.get("JWT_REFRESH_SECRET")
    if not access or not refresh:
        raise RuntimeError("FATAL: JWT_ACCESS_SECRET and JWT_REFRESH_SECRET must be set.")
    if access == refresh:
        raise RuntimeError("FATAL: access and refresh tokens must use different secrets.")

    backend = str(config.get("REVOCATION_BACKEND", "sql")).lower()
    if backend not in {"sql", "redis"}:
        raise RuntimeError(f"Unknown REVOCATION_BACKEND {backend!r} (expected 'sql' or 'redis').")
    if backend == "redis" and not config.get("REDIS_URL"):
        raise RuntimeError("REVOCATION_BACKEND='redis' requires REDIS_URL.")

    policy = str(config.get("AUTH_COMPROMISE_POLICY", "wipe")).lower()
    if policy not in {"wipe", "revoke_all"}:
        raise RuntimeError(f"Unknown AUTH_COMPROMISE_POLICY {policy!r}.")
