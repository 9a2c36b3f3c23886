"""Factory Boy base class persisting through the Flask-scoped session."""

from __future__ import annotations

import factory
from insightapi.core.extensions import db


def _app_session():
    # Resolved per call: only valid inside the app context the ``app`` fixture pushes
    return db.session


class BaseFactory(factory.alchemy.SQLAlchemyModelFactory):
    class Meta:
        abstract = True
        sqlalchemy_session_factory = _app_session
        # Stores read through units of work that roll back, so rows must be committed
        sqlalchemy_session_persistence = "commit"
