"""Authentication-related Marshmallow schemas."""

from __future__ import annotations

from typing import Any

from marshmallow import Schema, fields, pre_load, validate

PASSWORD_POLICY = validate.Regexp(
    r"^(?=.*[a-z])(?=.*[A-Z])(?=.*[0-9])",
    error=(
        "Password must contain at least one uppercase letter, one lowercase letter, "
        "and one number."
    ),
)

# Same rule the User model enforces: the domain must contain a dot
EMAIL_DOMAIN = validate.Regexp(
    r"^[^@]+@[^@]+\.[^@]+$", error="Email domain must contain a dot."
)


class _TrimmedInputSchema(Schema):
    """Strip surrounding whitespace from identity fields before validation."""

    TRIMMED = ("username", "email")

    @pre_load
    def _trim(self, data: Any, **kwargs: Any) -> Any:
        if not isinstance(data, dict):
            return data
        return {
            key: value.strip() if key in self.TRIMMED and isinstance(value, str) else value
            for key, value in data.items()
        }


class RegisterSchema(_TrimmedInputSchema):
    """Input payload for account registration."""

    username = fields.String(required=True, validate=validate.Length(min=3, max=30))
    email = fields.Email(required=True, validate=[validate.Length(max=254), EMAIL_DOMAIN])
    password = fields.String(
        required=True,
        validate=[
            validate.Length(min=8, max=128, error="Password must be at least 8 characters."),
            PASSWORD_POLICY,
        ],
    )


class LoginSchema(_TrimmedInputSchema):
    """Input payload for authenticating a user."""

    email = fields.Email(required=True, validate=validate.Length(max=254))
    password = fields.String(required=True, validate=validate.Length(min=1, max=128))


class LogoutSchema(Schema):
    """Optional logout body."""

    all_sessions = fields.Boolean(load_default=False)


class PrincipalSchema(Schema):
    """Public representation of a principal. The password digest is never dumped."""

    id = fields.Integer(required=True)
    username = fields.String(required=True)
    email = fields.Email(required=True)
    created_at = fields.DateTime(allow_none=True)
