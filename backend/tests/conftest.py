"""Pytest fixtures building an isolated application per test.

Each test gets a fresh app bound to its own in-memory SQLite database, so
committed data (the unit of work always commits) never leaks between cases.
"""

from __future__ import annotations

import os
from types import SimpleNamespace

import pytest
from insightapi.core.config import TestingConfig
from insightapi.core.extensions import db as _db  # Flask-SQLAlchemy instance
from insightapi.factory import create_app  # application factory under test


class TestConfig(TestingConfig):
    """Testing configuration for creating the Flask app.

    Notes
    -----
    - Uses an in-memory SQLite database for speed.
    - Cheap password hashing, rate limiting off, plain-HTTP cookies.
    - Avoids hitting external services (no Redis).
    """

    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    REDIS_URL = None
    REVOCATION_BACKEND = "sql"


@pytest.fixture()
def app():
    """Create a Flask application configured for testing.

    Yields
    ------
    flask.Flask
        Application with :class:`TestConfig` applied, an active app context and
        all tables created.
    """
    # Ensure env-based config does not leak into tests
    os.environ.pop("DATABASE_URL", None)
    app = create_app(TestConfig, instance_relative_config=False)
    app.logger.setLevel("WARNING")
    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture()
def db(app):
    """Database extension bound to the testing application."""
    return _db


@pytest.fixture()
def session(db):
    """The Flask-scoped SQLAlchemy session used by the application code."""
    return db.session


@pytest.fixture()
def client(app):
    """Flask test client for transport-level tests."""
    return app.test_client()


@pytest.fixture(scope="session")
def faker():
    """Provide a :class:`faker.Faker` instance seeded for deterministic tests."""
    from faker import Faker

    fk = Faker()
    Faker.seed(1337)
    return fk


@pytest.fixture()
def factories(app):
    """Factory classes with fresh sequences; persisting needs the ``app`` context."""
    from tests.factories.user import UserFactory

    UserFactory.reset_sequence()
    return SimpleNamespace(user=UserFactory)
