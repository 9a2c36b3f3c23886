"""Service layer public API.

This package exposes the essential building blocks for the service layer so that
callers can import from :mod:`insightapi.services` without knowing internal
structure.

Re-exports
----------
- Base primitives (from ``insightapi.services._shared.base``)
    * :class:`BaseService`
    * :class:`ServiceContext`

- Auth service (from ``insightapi.services.auth``)
    * :class:`AuthService`, :class:`CompromisePolicy`
    * DTOs: :class:`RegisterIn`, :class:`LoginIn`, :class:`RefreshIn`,
      :class:`LogoutIn`, :class:`PrincipalOut`, :class:`TokenPairOut`,
      :class:`AuthSessionOut`
"""

from __future__ import annotations

from insightapi.services._shared.base import BaseService, ServiceContext
from insightapi.services.auth.dto import (
    AuthSessionOut,
    LoginIn,
    LogoutIn,
    PrincipalOut,
    RefreshIn,
    RegisterIn,
    TokenPairOut,
)
from insightapi.services.auth.service import AuthService, CompromisePolicy

__all__ = [
    "AuthService",
    "AuthSessionOut",
    "BaseService",
    "CompromisePolicy",
    "LoginIn",
    "LogoutIn",
    "PrincipalOut",
    "RefreshIn",
    "RegisterIn",
    "ServiceContext",
    "TokenPairOut",
]
