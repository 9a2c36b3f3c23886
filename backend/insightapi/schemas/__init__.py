"""Convenience exports for application schemas."""

from __future__ import annotations

from .auth import LoginSchema, LogoutSchema, PrincipalSchema, RegisterSchema

__all__ = [
    "LoginSchema",
    "LogoutSchema",
    "PrincipalSchema",
    "RegisterSchema",
]
