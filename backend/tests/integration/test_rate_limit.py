"""Login throttling through Flask-Limiter."""

from __future__ import annotations

import pytest
from insightapi.core import config as cfg
from insightapi.core.extensions import db as _db
from insightapi.factory import create_app


class RateLimitedConfig(cfg.TestingConfig):
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    REDIS_URL = None
    RATELIMIT_ENABLED = True
    RATELIMIT_STORAGE_URI = "memory://"
    AUTH_LOGIN_RATE_LIMIT = "2 per minute"


@pytest.fixture
def limited_client():
    app = create_app(RateLimitedConfig, instance_relative_config=False)
    with app.app_context():
        _db.create_all()
        yield app.test_client()
        _db.session.remove()
        _db.drop_all()


def test_login_is_throttled(limited_client):
    payload = {"email": "nobody@example.com", "password": "Passw0rd!"}
    statuses = [limited_client.post("/api/v1/auth/login", json=payload).status_code for _ in range(3)]
    assert statuses[:2] == [401, 401]
    assert statuses[2] == 429

    resp = limited_client.post("/api/v1/auth/login", json=payload)
    assert resp.mimetype == "application/problem+json"
    assert resp.get_json()["code"] == "too_many_requests"
