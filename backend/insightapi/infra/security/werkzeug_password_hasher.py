# insightapi/infra/security/werkzeug_password_hasher.py
from __future__ import annotations

from dataclasses import dataclass, field

from werkzeug.security import check_password_hash, generate_password_hash

from insightapi.services._shared.ports.password_hasher import PasswordHasher


@dataclass(slots=True)
class WerkzeugPasswordHasher(PasswordHasher):
    """
    Password hasher backed by :mod:`werkzeug.security`.

    :param method: Werkzeug method string, cost included
        (``scrypt``, ``pbkdf2:sha256:600000`` ...).
    :param salt_length: Random salt length per digest.
    """

    method: str = "scrypt"
    salt_length: int = 16
    _dummy_digest: str = field(init=False, repr=False)

    def __post_init__(self) -> None:
        # Same method and cost as real digests so the dummy check costs the same
        self._dummy_digest = generate_password_hash(
            "dummy-password-for-timing", method=self.method, salt_length=self.salt_length
        )

    def hash(self, plaintext: str) -> str:
        if not isinstance(plaintext, str) or not plaintext:
            raise ValueError("Password must be a non-empty string.")
        return generate_password_hash(plaintext, method=self.method, salt_length=self.salt_length)

    def verify(self, plaintext: str, digest: str) -> bool:
        if not isinstance(plaintext, str) or not isinstance(digest, str) or not digest:
            return False
        try:
            return check_password_hash(digest, plaintext)
        except (ValueError, TypeError):
            # Unknown method or missing separators in a stored digest
            return False

    def verify_dummy(self, plaintext: str) -> bool:
        self.verify(plaintext if isinstance(plaintext, str) else "", self._dummy_digest)
        return False
