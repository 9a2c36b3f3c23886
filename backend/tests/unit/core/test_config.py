"""Unit tests for configuration parsing and fail-fast validation."""

from __future__ import annotations

from datetime import timedelta

import pytest
from insightapi.core import config as cfg


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("15m", timedelta(minutes=15)),
        ("7d", timedelta(days=7)),
        ("2h", timedelta(hours=2)),
        ("30s", timedelta(seconds=30)),
        ("3600", timedelta(seconds=3600)),
        (90, timedelta(seconds=90)),
        (timedelta(minutes=1), timedelta(minutes=1)),
    ],
)
def test_parse_duration(raw, expected):
    assert cfg.parse_duration(raw) == expected


@pytest.mark.parametrize("raw", ["", "15 minutes", "m15", "-5m"])
def test_parse_duration_rejects_garbage(raw):
    with pytest.raises(ValueError):
        cfg.parse_duration(raw)


def test_env_bool(monkeypatch):
    monkeypatch.setenv("SOME_FLAG", "Yes")
    assert cfg.env_bool("SOME_FLAG") is True
    monkeypatch.setenv("SOME_FLAG", "0")
    assert cfg.env_bool("SOME_FLAG", True) is False
    monkeypatch.delenv("SOME_FLAG")
    assert cfg.env_bool("SOME_FLAG", True) is True


def test_get_config_follows_app_env(monkeypatch):
    monkeypatch.setenv(cfg.ENV_VAR, "production")
    assert cfg.get_config() is cfg.ProductionConfig
    monkeypatch.setenv(cfg.ENV_VAR, "nonsense")
    assert cfg.get_config() is cfg.DevelopmentConfig


def _valid(**overrides):
    base = {
        "JWT_ACCESS_SECRET": "a" * 32,
        "JWT_REFRESH_SECRET": "r" * 32,
        "REVOCATION_BACKEND": "sql",
        "AUTH_COMPROMISE_POLICY": "wipe",
    }
    base.update(overrides)
    return base


def test_validate_config_accepts_valid_settings():
    cfg.validate_config(_valid())
    cfg.validate_config(_valid(REVOCATION_BACKEND="redis", REDIS_URL="redis://localhost:6379/0"))
    cfg.validate_config(_valid(AUTH_COMPROMISE_POLICY="revoke_all"))


@pytest.mark.parametrize(
    "overrides,match",
    [
        ({"JWT_ACCESS_SECRET": ""}, "must be set"),
        ({"JWT_REFRESH_SECRET": None}, "must be set"),
        ({"JWT_REFRESH_SECRET": "a" * 32}, "different secrets"),
        ({"REVOCATION_BACKEND": "memcached"}, "REVOCATION_BACKEND"),
        ({"REVOCATION_BACKEND": "redis"}, "REDIS_URL"),
        ({"AUTH_COMPROMISE_POLICY": "shrug"}, "AUTH_COMPROMISE_POLICY"),
    ],
)
def test_validate_config_fails_fast(overrides, match):
    with pytest.raises(RuntimeError, match=match):
        cfg.validate_config(_valid(**overrides))


def test_production_without_secrets_refuses_to_boot(monkeypatch):
    from insightapi.factory import create_app

    monkeypatch.setattr(cfg.ProductionConfig, "JWT_ACCESS_SECRET", "")
    with pytest.raises(RuntimeError, match="must be set"):
        create_app(cfg.ProductionConfig, instance_relative_config=False)
